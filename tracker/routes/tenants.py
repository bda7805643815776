"""
Tenant Administration Routes

GET    /api/tenants                     → list tenants (super_admin)
POST   /api/tenants                     → create tenant (super_admin)
GET    /api/tenants/{tenant_id}         → tenant details (own tenant or super_admin)
PUT    /api/tenants/{tenant_id}         → update name/status/plan (super_admin)
POST   /api/tenants/{tenant_id}/users   → create user (tenant_admin or super_admin)
GET    /api/tenants/{tenant_id}/users   → list users of a tenant
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker import operations
from tracker.auth import get_client_ip, get_current_actor
from tracker.constants.plans import SubscriptionPlan
from tracker.constants.roles import UserRole
from tracker.core.authorization import ActorContext
from tracker.database import get_db
from tracker.models.tenant import TenantStatus
from tracker.routes.responses import render
from tracker.schemas.tenant import TenantCreate, TenantResponse, TenantUpdate
from tracker.schemas.user import UserCreate, UserResponse

router = APIRouter(tags=["Tenants"])


@router.get("", response_model=list[TenantResponse])
async def list_tenants_route(
    request: Request,
    status_filter: TenantStatus | None = Query(None, alias="status"),
    subscription_plan: SubscriptionPlan | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.list_tenants(
        db, actor, status=status_filter, subscription_plan=subscription_plan, skip=skip, limit=limit
    )
    return render(result, request, TenantResponse, many=True)


@router.post("", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant_route(
    payload: TenantCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.create_tenant(db, actor, payload, get_client_ip(request))
    return render(result, request, TenantResponse)


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant_route(
    tenant_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.get_tenant(db, actor, tenant_id)
    return render(result, request, TenantResponse)


@router.put("/{tenant_id}", response_model=TenantResponse)
async def update_tenant_route(
    tenant_id: int,
    payload: TenantUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.update_tenant(db, actor, tenant_id, payload, get_client_ip(request))
    return render(result, request, TenantResponse)


@router.post("/{tenant_id}/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant_user_route(
    tenant_id: int,
    payload: UserCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.create_user(db, actor, tenant_id, payload, get_client_ip(request))
    return render(result, request, UserResponse)


@router.get("/{tenant_id}/users", response_model=list[UserResponse])
async def list_tenant_users_route(
    tenant_id: int,
    request: Request,
    role: UserRole | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    result = await operations.list_users(db, actor, tenant_id=tenant_id, role=role, skip=skip, limit=limit)
    return render(result, request, UserResponse, many=True)
