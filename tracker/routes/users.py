from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tracker import operations
from tracker.auth import get_client_ip, get_current_actor
from tracker.constants.roles import UserRole
from tracker.core.authorization import ActorContext
from tracker.core.result import Err
from tracker.database import get_db
from tracker.exception_handlers import err_response
from tracker.routes.responses import render
from tracker.schemas.user import UserResponse, UserUpdate

router = APIRouter(tags=["Users"])


@router.get("", response_model=list[UserResponse])
async def list_users_route(
    request: Request,
    role: UserRole | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """List users in the caller's own tenant."""
    result = await operations.list_users(db, actor, role=role, skip=skip, limit=limit)
    return render(result, request, UserResponse, many=True)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_route(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.get_user(db, actor, user_id)
    return render(result, request, UserResponse)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user_route(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.update_user(db, actor, user_id, payload, get_client_ip(request))
    return render(result, request, UserResponse)


@router.delete("/{user_id}")
async def delete_user_route(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.delete_user(db, actor, user_id, get_client_ip(request))
    if isinstance(result, Err):
        return err_response(result, request.url.path)
    return {"id": result.data}
