from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tracker import operations
from tracker.auth import get_client_ip, get_current_actor
from tracker.core.authorization import ActorContext
from tracker.core.result import Err
from tracker.database import get_db
from tracker.exception_handlers import err_response
from tracker.routes.responses import render
from tracker.schemas.task import TaskResponse, TaskStatusUpdate, TaskUpdate

router = APIRouter(tags=["Tasks"])


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task_route(
    task_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.get_task(db, actor, task_id)
    return render(result, request, TaskResponse)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task_route(
    task_id: int,
    payload: TaskUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.update_task(db, actor, task_id, payload, get_client_ip(request))
    return render(result, request, TaskResponse)


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status_route(
    task_id: int,
    payload: TaskStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.update_task_status(db, actor, task_id, payload, get_client_ip(request))
    return render(result, request, TaskResponse)


@router.delete("/{task_id}")
async def delete_task_route(
    task_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.delete_task(db, actor, task_id, get_client_ip(request))
    if isinstance(result, Err):
        return err_response(result, request.url.path)
    return {"id": result.data}
