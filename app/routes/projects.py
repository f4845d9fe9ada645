"""
Project Routes

Routes under /projects/{project_id} first run the `load_project` hook. When
it could not load the project the handler answers with the stashed error
and never calls the controller.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.dependencies import authenticate, get_project_controller, load_project
from app.errors import send_error
from src.audit import create_correlation_id
from src.controllers import ProjectController
from src.models.project import (
    Category,
    CategoryInput,
    Currency,
    ExpandedProject,
    ProjectCreate,
    ProjectCurrenciesUpdate,
    ProjectMainCurrencyUpdate,
    ProjectRename,
)


router = APIRouter(tags=["projects"])


@router.post("/projects", response_model=ExpandedProject)
async def create_project(
    payload: ProjectCreate,
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    return await controller.create(
        payload.name,
        user_id,
        correlation_id=create_correlation_id(),
    )


@router.get("/projects", response_model=list[ExpandedProject])
async def list_projects(
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    return await controller.get_all(user_id)


@router.get("/projects/{project_id}", response_model=ExpandedProject)
async def get_project(
    request: Request,
    project: Optional[ExpandedProject] = Depends(load_project),
):
    if project is None:
        return send_error(request.state.error)
    return project


@router.post("/projects/{project_id}/update-currencies", response_model=list[Currency])
async def update_currencies(
    request: Request,
    payload: ProjectCurrenciesUpdate,
    project: Optional[ExpandedProject] = Depends(load_project),
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    if project is None:
        return send_error(request.state.error)
    return await controller.update_currencies(
        project.id,
        user_id,
        payload.currencies,
        correlation_id=create_correlation_id(),
    )


@router.post("/projects/{project_id}/update-main-currency", response_model=Currency)
async def update_main_currency(
    request: Request,
    payload: ProjectMainCurrencyUpdate,
    project: Optional[ExpandedProject] = Depends(load_project),
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    if project is None:
        return send_error(request.state.error)
    return await controller.update_main_currency(
        project.id,
        user_id,
        payload.main_currency,
        correlation_id=create_correlation_id(),
    )


@router.post("/projects/{project_id}/rename", response_model=str)
async def rename_project(
    request: Request,
    payload: ProjectRename,
    project: Optional[ExpandedProject] = Depends(load_project),
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    if project is None:
        return send_error(request.state.error)
    return await controller.rename(
        project.id,
        user_id,
        payload.name,
        correlation_id=create_correlation_id(),
    )


# Categories ------------------------------------------------------------------

@router.get("/projects/{project_id}/categories", response_model=list[Category])
async def list_categories(
    request: Request,
    project: Optional[ExpandedProject] = Depends(load_project),
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    if project is None:
        return send_error(request.state.error)
    return await controller.get_categories(project.id, user_id)


@router.post("/projects/{project_id}/categories", response_model=Category)
async def add_category(
    request: Request,
    payload: CategoryInput,
    project: Optional[ExpandedProject] = Depends(load_project),
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    if project is None:
        return send_error(request.state.error)
    return await controller.add_category(
        project.id,
        user_id,
        payload,
        correlation_id=create_correlation_id(),
    )


@router.put("/projects/{project_id}/categories/{category_id}", response_model=Category)
async def update_category(
    request: Request,
    category_id: str,
    payload: CategoryInput,
    project: Optional[ExpandedProject] = Depends(load_project),
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    if project is None:
        return send_error(request.state.error)
    return await controller.update_category(
        project.id,
        user_id,
        category_id,
        payload,
        correlation_id=create_correlation_id(),
    )


@router.delete("/projects/{project_id}/categories/{category_id}", response_model=list[str])
async def delete_category(
    request: Request,
    category_id: str,
    project: Optional[ExpandedProject] = Depends(load_project),
    user_id: str = Depends(authenticate),
    controller: ProjectController = Depends(get_project_controller),
):
    if project is None:
        return send_error(request.state.error)
    return await controller.delete_category(
        project.id,
        user_id,
        category_id,
        correlation_id=create_correlation_id(),
    )
