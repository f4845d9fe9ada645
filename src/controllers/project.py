"""
Project Controller

The entry point for every project operation. Each operation is a short
chain of awaited datastore calls; each call starts only after the previous
one finished successfully.

KNOWN GAPS:
- Creating a project is two writes: the project document, then the id on
  the creator's user document. There is no transaction. If the second write
  fails the project stays behind without an owner link; this is logged and
  audited as `project_user_link_failed` and the error is raised.
- `update_currencies` writes through the currency controller and then reads
  the project again. Nothing is locked in between, so the read can observe
  a concurrent change made by another request.
"""

from typing import Optional
from uuid import UUID

import structlog

from src.audit import AuditLogger
from src.controllers.access import require_member_project
from src.controllers.category import CategoryController
from src.controllers.currency import CurrencyController
from src.models.project import (
    PROJECT_POPULATE_FIELDS,
    Category,
    CategoryInput,
    Currency,
    ExpandedProject,
    Project,
    utcnow,
)
from src.services.storage import (
    NotFoundError,
    ProjectPopulator,
    ProjectStorageInterface,
    UserStorageInterface,
)
from src.validation import ensure_object_id, validate_project_name


logger = structlog.get_logger(__name__)


class ProjectController:
    """
    Project lifecycle: create, read, rename and currency updates.

    Category operations are delegated to the CategoryController and
    currency mutations to the CurrencyController without extra logic.
    """

    def __init__(
        self,
        project_storage: ProjectStorageInterface,
        user_storage: UserStorageInterface,
        populator: ProjectPopulator,
        currency_controller: CurrencyController,
        category_controller: CategoryController,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._projects = project_storage
        self._users = user_storage
        self._populator = populator
        self._currency_controller = currency_controller
        self._category_controller = category_controller
        self._audit_logger = audit_logger

    async def create(
        self,
        name: str,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ExpandedProject:
        """
        Create new project owned by the user.

        Steps (each only after the previous one succeeded):
        1. Insert the project with the user as its only owner and member
        2. Add the project id to the user's projects
        3. Expand references for the response

        Returns:
            The expanded project

        Raises:
            ValidationError: Blank name or malformed user id
            NotFoundError: The user document doesn't exist (project is orphaned)
            StorageError: Any datastore failure, unmodified
        """
        name = validate_project_name(name)
        ensure_object_id(user_id)

        new_project = Project(
            name=name,
            owners=[user_id],
            users=[user_id],
            created=utcnow(),
            created_by=user_id,
            modified_by=user_id,
        )

        try:
            project = await self._projects.insert_project(new_project)
        except Exception as e:
            logger.error("project_not_created", user_id=user_id, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_project_create_failed(
                    user_id=user_id,
                    name=name,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        try:
            linked = await self._users.add_project_to_user(user_id, project.id)
        except Exception as e:
            await self._report_orphan(project.id, user_id, str(e), correlation_id)
            raise
        if not linked:
            error = NotFoundError(f"User with given id wasn't found: {user_id}")
            await self._report_orphan(project.id, user_id, error.message, correlation_id)
            raise error

        try:
            expanded = await self._populator.populate(project, PROJECT_POPULATE_FIELDS)
        except Exception as e:
            logger.error("project_not_populated", project_id=project.id, error=str(e))
            raise

        logger.info("project_created", project_id=project.id, user_id=user_id)
        if self._audit_logger:
            await self._audit_logger.log_project_created(
                project_id=project.id,
                user_id=user_id,
                name=name,
                correlation_id=correlation_id,
            )
        return expanded

    async def _report_orphan(
        self,
        project_id: str,
        user_id: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> None:
        logger.error(
            "project_not_added_to_user",
            project_id=project_id,
            user_id=user_id,
            error=error_message,
        )
        if self._audit_logger:
            await self._audit_logger.log_project_user_link_failed(
                project_id=project_id,
                user_id=user_id,
                error_message=error_message,
                correlation_id=correlation_id,
            )

    async def get_by_id(self, project_id: str, user_id: str) -> ExpandedProject:
        """
        Get project by id.

        Only projects listing the user in `users` are visible. A project
        that exists for somebody else is reported as not found.

        Raises:
            ValidationError: Malformed project id
            NotFoundError: No visible project with this id
        """
        project = await require_member_project(self._projects, project_id, user_id)
        logger.info("project_found", project_id=project_id, user_id=user_id)
        return await self._populator.populate(project, PROJECT_POPULATE_FIELDS)

    async def get_all(self, user_id: str) -> list[ExpandedProject]:
        """
        Get list of all projects the user is a member of.

        The order is whatever the datastore returns.
        """
        projects = await self._projects.find_projects(user_id)
        logger.info("projects_found", user_id=user_id, count=len(projects))
        return await self._populator.populate_many(projects, PROJECT_POPULATE_FIELDS)

    async def rename(
        self,
        project_id: str,
        user_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """
        Rename project. Only owners may rename.

        Returns:
            The new project name

        Raises:
            NotFoundError: No project with this id owned by the user
        """
        name = validate_project_name(name)
        ensure_object_id(project_id)

        project = await self._projects.update_project(
            project_id,
            {"name": name, "modified_by": user_id},
            owner_id=user_id,
        )
        if project is None:
            logger.error("project_not_renamed", project_id=project_id, user_id=user_id)
            raise NotFoundError(f"Project was not renamed: {project_id}")

        logger.info("project_renamed", project_id=project_id)
        if self._audit_logger:
            await self._audit_logger.log_project_renamed(
                project_id=project_id,
                user_id=user_id,
                name=project.name,
                correlation_id=correlation_id,
            )
        return project.name

    async def update_currencies(
        self,
        project_id: str,
        user_id: str,
        currency_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> list[Currency]:
        """
        Update currencies array in given project.

        Returns:
            The project's currencies, expanded, as read after the update
        """
        await self._currency_controller.update_project_currencies(
            project_id,
            user_id,
            currency_ids,
            correlation_id=correlation_id,
        )
        project = await self.get_by_id(project_id, user_id)
        return project.currencies

    async def update_main_currency(
        self,
        project_id: str,
        user_id: str,
        currency_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Currency:
        return await self._currency_controller.update_project_main_currency(
            project_id,
            user_id,
            currency_id,
            correlation_id=correlation_id,
        )

    async def add_category(
        self,
        project_id: str,
        user_id: str,
        category: CategoryInput,
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        return await self._category_controller.put(
            project_id,
            user_id,
            category,
            correlation_id=correlation_id,
        )

    async def get_categories(self, project_id: str, user_id: str) -> list[Category]:
        return await self._category_controller.get_all(project_id, user_id)

    async def update_category(
        self,
        project_id: str,
        user_id: str,
        category_id: str,
        category: CategoryInput,
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        return await self._category_controller.update_category(
            project_id,
            user_id,
            category_id,
            category,
            correlation_id=correlation_id,
        )

    async def delete_category(
        self,
        project_id: str,
        user_id: str,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[str]:
        return await self._category_controller.delete_category(
            project_id,
            user_id,
            category_id,
            correlation_id=correlation_id,
        )
