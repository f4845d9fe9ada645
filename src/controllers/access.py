"""Project access checks shared by the sub-controllers."""

import structlog

from src.models.project import Project
from src.services.storage import NotFoundError, ProjectStorageInterface
from src.validation import ensure_object_id


logger = structlog.get_logger(__name__)


async def require_member_project(
    projects: ProjectStorageInterface,
    project_id: str,
    user_id: str,
) -> Project:
    """
    Load a project the user is a member of.

    A project the user can't see is reported exactly like a missing one.

    Raises:
        ValidationError: If the project id is malformed
        NotFoundError: If no such project exists for this user
    """
    ensure_object_id(project_id)
    project = await projects.find_project(project_id, member_id=user_id)
    if project is None:
        logger.error("project_not_found", project_id=project_id, user_id=user_id)
        raise NotFoundError(f"Project with given id wasn't found: {project_id}")
    return project
