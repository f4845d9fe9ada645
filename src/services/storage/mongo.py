"""
MongoDB Storage Implementation

DESIGN DECISION: Projects, users, currencies and categories live in a
MongoDB database. References between documents are stored as ObjectIds
and converted to hex strings at this boundary, so the rest of the code
only ever sees plain string identifiers.

TRADEOFFS:
- No multi-document transactions (project creation and linking the
  project to its user are two separate writes)
- Reference expansion happens in Python through populate.py rather
  than with $lookup, keeping the populate step explicit

All driver exceptions are wrapped in the storage exception taxonomy so
the route layer can render them uniformly.
"""

from enum import Enum
from typing import Any, Optional, TypeVar

from bson import ObjectId
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from src.config import get_settings
from src.models.audit import AuditEvent
from src.models.project import Category, Currency, Project, User
from src.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    CurrencyStorageInterface,
    DuplicateError,
    ProjectStorageInterface,
    StorageError,
    UserStorageInterface,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

# Fields (python names) holding ObjectId references, per collection
PROJECT_REFERENCES = (
    "owners",
    "users",
    "main_currency",
    "currencies",
    "categories",
    "created_by",
    "modified_by",
)
USER_REFERENCES = ("projects",)
CATEGORY_REFERENCES = ("project", "parent")


def _encode_reference(value: Any) -> Any:
    if isinstance(value, list):
        return [ObjectId(v) for v in value]
    if value is None:
        return None
    return ObjectId(value)


def _encode_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def encode_changes(changes: dict[str, Any], references: tuple[str, ...]) -> dict[str, Any]:
    """Turn python field names and string ids into stored field names and ObjectIds."""
    encoded = {}
    for field, value in changes.items():
        if field in references:
            value = _encode_reference(value)
        encoded[to_camel(field)] = _encode_value(value)
    return encoded


def to_document(model: BaseModel, references: tuple[str, ...]) -> dict[str, Any]:
    """Serialize a model into a MongoDB document."""
    data = model.model_dump()
    document = encode_changes(
        {field: value for field, value in data.items() if field != "id"},
        references,
    )
    document["_id"] = ObjectId(data["id"])
    return document


def _stringify(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [_stringify(v) for v in value]
    if isinstance(value, dict):
        return {k: _stringify(v) for k, v in value.items()}
    return value


def from_document(model_cls: type[ModelT], document: dict[str, Any]) -> ModelT:
    """Build a model from a MongoDB document."""
    return model_cls.model_validate(_stringify(document))


def _id_filter(document_id: str) -> Optional[dict[str, Any]]:
    # A malformed id can never match a stored document
    if not ObjectId.is_valid(document_id):
        return None
    return {"_id": ObjectId(document_id)}


def _ids(values: list[str]) -> list[ObjectId]:
    return [ObjectId(v) for v in values if ObjectId.is_valid(v)]


class MongoClient:
    """
    Thin wrapper around the async driver client.

    The connection is created lazily on first use.
    """

    def __init__(self, client: Optional[AsyncMongoClient] = None):
        self._settings = get_settings().mongo
        self._client = client
        self._database = None

    def connect(self) -> AsyncMongoClient:
        if self._client is None:
            try:
                self._client = AsyncMongoClient(
                    self._settings.uri,
                    serverSelectionTimeoutMS=self._settings.server_selection_timeout_ms,
                    tz_aware=True,
                )
            except PyMongoError as e:
                raise ConnectionError(f"Failed to connect to MongoDB: {e}")
        return self._client

    @property
    def database(self):
        if self._database is None:
            self._database = self.connect()[self._settings.database]
        return self._database

    def collection(self, name: str):
        return self.database[name]

    async def ping(self) -> bool:
        try:
            await self.database.command("ping")
            return True
        except PyMongoError:
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._database = None


def _wrap_errors(action: str, error: PyMongoError) -> StorageError:
    if isinstance(error, DuplicateKeyError):
        return DuplicateError(f"Failed to {action}: {error}")
    if isinstance(error, ConnectionFailure):
        return ConnectionError(f"Failed to {action}: {error}")
    return StorageError(f"Failed to {action}: {error}")


class MongoProjectStorage(ProjectStorageInterface):
    """Projects collection."""

    def __init__(self, client: Optional[MongoClient] = None):
        self._client = client or MongoClient()
        self._collection_name = get_settings().mongo.projects_collection

    @property
    def _collection(self):
        return self._client.collection(self._collection_name)

    def _query(
        self,
        project_id: str,
        member_id: Optional[str],
        owner_id: Optional[str],
    ) -> Optional[dict[str, Any]]:
        query = _id_filter(project_id)
        if query is None:
            return None
        for field, user_id in (("users", member_id), ("owners", owner_id)):
            if user_id is None:
                continue
            if not ObjectId.is_valid(user_id):
                return None
            query[field] = ObjectId(user_id)
        return query

    async def insert_project(self, project: Project) -> Project:
        try:
            await self._collection.insert_one(to_document(project, PROJECT_REFERENCES))
            return project
        except PyMongoError as e:
            raise _wrap_errors("save project", e)

    async def find_project(
        self,
        project_id: str,
        member_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Optional[Project]:
        query = self._query(project_id, member_id, owner_id)
        if query is None:
            return None
        try:
            document = await self._collection.find_one(query)
        except PyMongoError as e:
            raise _wrap_errors("find project", e)
        return from_document(Project, document) if document else None

    async def find_projects(self, member_id: str) -> list[Project]:
        if not ObjectId.is_valid(member_id):
            return []
        try:
            documents = await self._collection.find({"users": ObjectId(member_id)}).to_list()
        except PyMongoError as e:
            raise _wrap_errors("list projects", e)
        return [from_document(Project, document) for document in documents]

    async def update_project(
        self,
        project_id: str,
        changes: dict[str, Any],
        member_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Optional[Project]:
        query = self._query(project_id, member_id, owner_id)
        if query is None:
            return None
        try:
            document = await self._collection.find_one_and_update(
                query,
                {"$set": encode_changes(changes, PROJECT_REFERENCES)},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise _wrap_errors("update project", e)
        return from_document(Project, document) if document else None

    async def add_category_ref(self, project_id: str, category_id: str) -> bool:
        query = _id_filter(project_id)
        if query is None:
            return False
        try:
            result = await self._collection.update_one(
                query,
                {"$addToSet": {"categories": ObjectId(category_id)}},
            )
        except PyMongoError as e:
            raise _wrap_errors("add category to project", e)
        return result.matched_count > 0

    async def remove_category_refs(
        self,
        project_id: str,
        category_ids: list[str],
    ) -> bool:
        query = _id_filter(project_id)
        if query is None:
            return False
        try:
            result = await self._collection.update_one(
                query,
                {"$pull": {"categories": {"$in": _ids(category_ids)}}},
            )
        except PyMongoError as e:
            raise _wrap_errors("remove categories from project", e)
        return result.matched_count > 0


class MongoUserStorage(UserStorageInterface):
    """Users collection."""

    def __init__(self, client: Optional[MongoClient] = None):
        self._client = client or MongoClient()
        self._collection_name = get_settings().mongo.users_collection

    @property
    def _collection(self):
        return self._client.collection(self._collection_name)

    async def insert_user(self, user: User) -> User:
        try:
            await self._collection.insert_one(to_document(user, USER_REFERENCES))
            return user
        except PyMongoError as e:
            raise _wrap_errors("save user", e)

    async def get_user(self, user_id: str) -> Optional[User]:
        query = _id_filter(user_id)
        if query is None:
            return None
        try:
            document = await self._collection.find_one(query)
        except PyMongoError as e:
            raise _wrap_errors("find user", e)
        return from_document(User, document) if document else None

    async def get_users(self, user_ids: list[str]) -> list[User]:
        try:
            documents = await self._collection.find(
                {"_id": {"$in": _ids(user_ids)}}
            ).to_list()
        except PyMongoError as e:
            raise _wrap_errors("find users", e)
        return [from_document(User, document) for document in documents]

    async def add_project_to_user(self, user_id: str, project_id: str) -> bool:
        query = _id_filter(user_id)
        if query is None:
            return False
        try:
            result = await self._collection.update_one(
                query,
                {"$addToSet": {"projects": ObjectId(project_id)}},
            )
        except PyMongoError as e:
            raise _wrap_errors("add project to user", e)
        return result.matched_count > 0


class MongoCurrencyStorage(CurrencyStorageInterface):
    """Currencies collection."""

    def __init__(self, client: Optional[MongoClient] = None):
        self._client = client or MongoClient()
        self._collection_name = get_settings().mongo.currencies_collection

    @property
    def _collection(self):
        return self._client.collection(self._collection_name)

    async def insert_currency(self, currency: Currency) -> Currency:
        try:
            await self._collection.insert_one(to_document(currency, ()))
            return currency
        except PyMongoError as e:
            raise _wrap_errors("save currency", e)

    async def get_currency(self, currency_id: str) -> Optional[Currency]:
        query = _id_filter(currency_id)
        if query is None:
            return None
        try:
            document = await self._collection.find_one(query)
        except PyMongoError as e:
            raise _wrap_errors("find currency", e)
        return from_document(Currency, document) if document else None

    async def get_currencies(self, currency_ids: list[str]) -> list[Currency]:
        try:
            documents = await self._collection.find(
                {"_id": {"$in": _ids(currency_ids)}}
            ).to_list()
        except PyMongoError as e:
            raise _wrap_errors("find currencies", e)
        return [from_document(Currency, document) for document in documents]

    async def list_currencies(self) -> list[Currency]:
        try:
            documents = await self._collection.find({}).to_list()
        except PyMongoError as e:
            raise _wrap_errors("list currencies", e)
        return [from_document(Currency, document) for document in documents]


class MongoCategoryStorage(CategoryStorageInterface):
    """Categories collection."""

    def __init__(self, client: Optional[MongoClient] = None):
        self._client = client or MongoClient()
        self._collection_name = get_settings().mongo.categories_collection

    @property
    def _collection(self):
        return self._client.collection(self._collection_name)

    async def insert_category(self, category: Category) -> Category:
        try:
            await self._collection.insert_one(to_document(category, CATEGORY_REFERENCES))
            return category
        except PyMongoError as e:
            raise _wrap_errors("save category", e)

    async def get_category(self, category_id: str) -> Optional[Category]:
        query = _id_filter(category_id)
        if query is None:
            return None
        try:
            document = await self._collection.find_one(query)
        except PyMongoError as e:
            raise _wrap_errors("find category", e)
        return from_document(Category, document) if document else None

    async def list_categories(self, project_id: str) -> list[Category]:
        if not ObjectId.is_valid(project_id):
            return []
        try:
            documents = await self._collection.find(
                {"project": ObjectId(project_id)}
            ).to_list()
        except PyMongoError as e:
            raise _wrap_errors("list categories", e)
        return [from_document(Category, document) for document in documents]

    async def update_category(
        self,
        category_id: str,
        changes: dict[str, Any],
    ) -> Optional[Category]:
        query = _id_filter(category_id)
        if query is None:
            return None
        try:
            document = await self._collection.find_one_and_update(
                query,
                {"$set": encode_changes(changes, CATEGORY_REFERENCES)},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise _wrap_errors("update category", e)
        return from_document(Category, document) if document else None

    async def delete_categories(self, category_ids: list[str]) -> int:
        try:
            result = await self._collection.delete_many(
                {"_id": {"$in": _ids(category_ids)}}
            )
        except PyMongoError as e:
            raise _wrap_errors("delete categories", e)
        return result.deleted_count


class MongoAuditStorage(AuditStorageInterface):
    """
    Audit collection.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[MongoClient] = None):
        self._client = client or MongoClient()
        self._collection_name = get_settings().mongo.audit_collection

    @property
    def _collection(self):
        return self._client.collection(self._collection_name)

    @staticmethod
    def _document_to_event(document: dict[str, Any]) -> AuditEvent:
        data = dict(document)
        data["event_id"] = data.pop("_id")
        return AuditEvent.model_validate(data)

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            await self._collection.insert_one(event.to_document())
            return True
        except PyMongoError as e:
            raise _wrap_errors("write audit event", e)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        try:
            documents = await self._collection.find(
                {"entity_type": entity_type, "entity_id": entity_id}
            ).sort("timestamp", 1).to_list()
        except PyMongoError as e:
            raise _wrap_errors("get audit events", e)
        return [self._document_to_event(document) for document in documents]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            documents = await self._collection.find({}).sort(
                "timestamp", -1
            ).limit(limit).to_list()
        except PyMongoError as e:
            raise _wrap_errors("get audit events", e)
        return [self._document_to_event(document) for document in documents]
