"""
Project routes, with the project's tasks nested underneath.

POST   /api/projects                    → create (counts against max_projects)
GET    /api/projects                    → list the caller's tenant projects
GET    /api/projects/{id}               → details
PUT    /api/projects/{id}               → partial update
DELETE /api/projects/{id}               → delete project and all its tasks
POST   /api/projects/{id}/tasks         → create task
GET    /api/projects/{id}/tasks         → list tasks
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker import operations
from tracker.auth import get_client_ip, get_current_actor
from tracker.core.authorization import ActorContext
from tracker.core.result import Err
from tracker.database import get_db
from tracker.exception_handlers import err_response
from tracker.models.project import ProjectStatus
from tracker.models.task import TaskPriority, TaskStatus
from tracker.routes.responses import render
from tracker.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate
from tracker.schemas.task import TaskCreate, TaskResponse

router = APIRouter(tags=["Projects"])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project_route(
    payload: ProjectCreate,
    request: Request,
    tenant_id: int | None = Query(None, description="Target tenant; required for super_admin"),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.create_project(db, actor, payload, get_client_ip(request), tenant_id=tenant_id)
    return render(result, request, ProjectResponse)


@router.get("", response_model=list[ProjectResponse])
async def list_projects_route(
    request: Request,
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    tenant_id: int | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.list_projects(
        db, actor, status=status_filter, tenant_id=tenant_id, skip=skip, limit=limit
    )
    return render(result, request, ProjectResponse, many=True)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project_route(
    project_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.get_project(db, actor, project_id)
    return render(result, request, ProjectResponse)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project_route(
    project_id: int,
    payload: ProjectUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.update_project(db, actor, project_id, payload, get_client_ip(request))
    return render(result, request, ProjectResponse)


@router.delete("/{project_id}")
async def delete_project_route(
    project_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.delete_project(db, actor, project_id, get_client_ip(request))
    if isinstance(result, Err):
        return err_response(result, request.url.path)
    return {"id": result.data}


@router.post("/{project_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task_route(
    project_id: int,
    payload: TaskCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.create_task(db, actor, project_id, payload, get_client_ip(request))
    return render(result, request, TaskResponse)


@router.get("/{project_id}/tasks", response_model=list[TaskResponse])
async def list_tasks_route(
    project_id: int,
    request: Request,
    status_filter: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = None,
    assigned_to: int | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.list_tasks(
        db,
        actor,
        project_id,
        status=status_filter,
        priority=priority,
        assigned_to=assigned_to,
        skip=skip,
        limit=limit,
    )
    return render(result, request, TaskResponse, many=True)
