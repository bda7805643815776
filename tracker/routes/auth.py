"""
Authentication routes

POST /auth/register → self-service tenant signup (public)
POST /auth/login    → exchange credentials for a bearer token
GET  /auth/me       → the caller's profile and tenant quota
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker import operations
from tracker.auth import get_client_ip, get_current_actor
from tracker.core.authorization import ActorContext
from tracker.core.result import Err
from tracker.database import get_db
from tracker.exception_handlers import err_response
from tracker.routes.responses import render
from tracker.schemas.auth import LoginRequest, MeResponse, Token
from tracker.schemas.tenant import TenantRegister, TenantResponse
from tracker.schemas.user import UserResponse

router = APIRouter(tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: TenantRegister, request: Request, db: AsyncSession = Depends(get_db)):
    result = await operations.register_tenant(db, payload, get_client_ip(request))
    if isinstance(result, Err):
        return err_response(result, request.url.path)
    tenant, admin = result.data
    return {
        "tenant": TenantResponse.model_validate(tenant),
        "admin": UserResponse.model_validate(admin),
    }


@router.post("/login", response_model=Token)
async def login(payload: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    result = await operations.authenticate(db, payload, get_client_ip(request))
    return render(result, request, Token)


@router.get("/me", response_model=MeResponse)
async def me(
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.get_profile(db, actor)
    if isinstance(result, Err):
        return err_response(result, request.url.path)
    user, tenant = result.data
    return MeResponse(
        user=UserResponse.model_validate(user),
        tenant=TenantResponse.model_validate(tenant) if tenant is not None else None,
    )
