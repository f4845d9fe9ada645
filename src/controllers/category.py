"""
Category Controller

Categories form a tree per project: a category may have a parent of the
same project and the same category type. Deleting a category deletes its
whole subtree and unlinks every removed id from the project.
"""

from typing import Optional
from uuid import UUID

import structlog

from src.audit import AuditLogger
from src.controllers.access import require_member_project
from src.models.project import Category, CategoryInput, CategoryType
from src.services.storage import (
    CategoryStorageInterface,
    NotFoundError,
    ProjectStorageInterface,
)
from src.validation import ValidationError, is_valid_and_exist


logger = structlog.get_logger(__name__)


def _descendants(category_id: str, categories: list[Category]) -> list[str]:
    """Ids of every category below `category_id`, breadth first."""
    children: dict[str, list[str]] = {}
    for category in categories:
        if category.parent:
            children.setdefault(category.parent, []).append(category.id)

    found: list[str] = []
    queue = list(children.get(category_id, []))
    while queue:
        current = queue.pop(0)
        if current in found:
            continue
        found.append(current)
        queue.extend(children.get(current, []))
    return found


class CategoryController:
    """Category CRUD scoped to a project the user is a member of."""

    def __init__(
        self,
        category_storage: CategoryStorageInterface,
        project_storage: ProjectStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._categories = category_storage
        self._projects = project_storage
        self._audit_logger = audit_logger

    async def get_by_id(self, category_id: str) -> Category:
        category = await self._categories.get_category(category_id)
        if category is None:
            logger.error("category_not_found", category_id=category_id)
            raise NotFoundError(f"Category with given id wasn't found: {category_id}")
        return category

    async def _get_project_category(self, project_id: str, category_id: str) -> Category:
        category = await is_valid_and_exist(category_id, self)
        if category.project != project_id:
            raise NotFoundError(f"Category with given id wasn't found: {category_id}")
        return category

    async def _validate_parent(
        self,
        project_id: str,
        parent_id: str,
        category_type: CategoryType,
    ) -> Category:
        try:
            parent = await self._get_project_category(project_id, parent_id)
        except NotFoundError:
            raise ValidationError(f"Parent category doesn't exist: {parent_id}")
        if parent.category_type != category_type:
            raise ValidationError("Parent category must have the same category type")
        return parent

    async def put(
        self,
        project_id: str,
        user_id: str,
        category: CategoryInput,
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        """
        Add a category to a project.

        Returns:
            The stored category
        """
        await require_member_project(self._projects, project_id, user_id)
        if category.parent:
            await self._validate_parent(project_id, category.parent, category.category_type)

        new_category = Category(
            project=project_id,
            name=category.name,
            category_type=category.category_type,
            parent=category.parent,
        )
        stored = await self._categories.insert_category(new_category)
        await self._projects.add_category_ref(project_id, stored.id)

        logger.info("category_added", category_id=stored.id, project_id=project_id)
        if self._audit_logger:
            await self._audit_logger.log_category_added(
                category_id=stored.id,
                project_id=project_id,
                user_id=user_id,
                name=stored.name,
                correlation_id=correlation_id,
            )
        return stored

    async def get_all(self, project_id: str, user_id: str) -> list[Category]:
        """All categories of a project."""
        await require_member_project(self._projects, project_id, user_id)
        return await self._categories.list_categories(project_id)

    async def update_category(
        self,
        project_id: str,
        user_id: str,
        category_id: str,
        category: CategoryInput,
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        """
        Update name, type and parent of a category.

        Raises:
            ValidationError: If the new parent is invalid or would create a cycle,
                or if the type changes while the category has children
            NotFoundError: If the category isn't part of the project
        """
        await require_member_project(self._projects, project_id, user_id)
        existing = await self._get_project_category(project_id, category_id)
        project_categories = await self._categories.list_categories(project_id)
        descendants = _descendants(category_id, project_categories)

        if category.parent:
            if category.parent == category_id or category.parent in descendants:
                raise ValidationError("Category can't be placed under itself")
            await self._validate_parent(project_id, category.parent, category.category_type)

        if category.category_type != existing.category_type and descendants:
            raise ValidationError("Category type can't change while it has subcategories")

        updated = await self._categories.update_category(
            category_id,
            {
                "name": category.name,
                "category_type": category.category_type,
                "parent": category.parent,
            },
        )
        if updated is None:
            raise NotFoundError(f"Category with given id wasn't found: {category_id}")

        logger.info("category_updated", category_id=category_id, project_id=project_id)
        if self._audit_logger:
            await self._audit_logger.log_category_updated(
                category_id=category_id,
                project_id=project_id,
                user_id=user_id,
                correlation_id=correlation_id,
            )
        return updated

    async def delete_category(
        self,
        project_id: str,
        user_id: str,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[str]:
        """
        Delete a category together with all its subcategories.

        Returns:
            Ids of every removed category
        """
        await require_member_project(self._projects, project_id, user_id)
        await self._get_project_category(project_id, category_id)

        project_categories = await self._categories.list_categories(project_id)
        removed = [category_id] + _descendants(category_id, project_categories)

        await self._categories.delete_categories(removed)
        await self._projects.remove_category_refs(project_id, removed)

        logger.info("category_deleted", category_id=category_id, removed=removed)
        if self._audit_logger:
            await self._audit_logger.log_category_deleted(
                category_id=category_id,
                project_id=project_id,
                user_id=user_id,
                removed_ids=removed,
                correlation_id=correlation_id,
            )
        return removed
