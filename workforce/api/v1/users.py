# workforce/api/v1/users.py
from __future__ import annotations
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from workforce.api.deps import RequestContext, authorize, get_services
from workforce.container import Services
from workforce.core.roles import registry
from workforce.domain.models import UserRole
from workforce.schemas.auth import CreateUserIn, UserOut, UserRoleIn, UserStatusIn
from workforce.schemas.common import Envelope

router = APIRouter(prefix="/users", tags=["users"])

CREATE_USER = registry.register("users.create", UserRole.COMPANY_ADMIN)
LIST_USERS = registry.register("users.list", UserRole.COMPANY_ADMIN)
GET_USER = registry.register("users.get", UserRole.COMPANY_ADMIN)
SET_USER_STATUS = registry.register("users.set_status", UserRole.COMPANY_ADMIN)
SET_USER_ROLE = registry.register("users.set_role", UserRole.COMPANY_ADMIN)
DELETE_USER = registry.register("users.delete", UserRole.COMPANY_ADMIN)


@router.post("", response_model=Envelope[UserOut], status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserIn,
    ctx: RequestContext = Depends(authorize(CREATE_USER)),
    services: Services = Depends(get_services),
):
    user = await services.users.create_user(
        ctx.user,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
        company_id=body.company_id,
    )
    return Envelope[UserOut].ok(UserOut.from_user(user), "User created successfully")


@router.get("", response_model=Envelope[List[UserOut]])
async def list_users(
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    search: Optional[str] = Query(default=None, max_length=100),
    company_id: Optional[str] = Query(default=None, alias="companyId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    ctx: RequestContext = Depends(authorize(LIST_USERS)),
    services: Services = Depends(get_services),
):
    """
    Users of the caller's company. `companyId` is honoured for super admins only.
    """
    users, total = await services.users.list_users(
        ctx.user,
        role=role,
        is_active=is_active,
        search=search,
        company_id=company_id,
        page=page,
        limit=limit,
    )
    return Envelope[List[UserOut]].ok(
        [UserOut.from_user(u) for u in users],
        meta={"total": total, "page": page, "limit": limit},
    )


@router.get("/{user_id}", response_model=Envelope[UserOut])
async def get_user(
    user_id: str,
    ctx: RequestContext = Depends(authorize(GET_USER)),
    services: Services = Depends(get_services),
):
    user = await services.users.get_user(ctx.user, user_id)
    return Envelope[UserOut].ok(UserOut.from_user(user))


@router.patch("/{user_id}/status", response_model=Envelope[UserOut])
async def set_user_status(
    user_id: str,
    body: UserStatusIn,
    ctx: RequestContext = Depends(authorize(SET_USER_STATUS)),
    services: Services = Depends(get_services),
):
    user = await services.users.set_active(ctx.user, user_id, body.is_active)
    message = "User activated" if body.is_active else "User deactivated"
    return Envelope[UserOut].ok(UserOut.from_user(user), message)


@router.patch("/{user_id}/role", response_model=Envelope[UserOut])
async def set_user_role(
    user_id: str,
    body: UserRoleIn,
    ctx: RequestContext = Depends(authorize(SET_USER_ROLE)),
    services: Services = Depends(get_services),
):
    user = await services.users.update_role(ctx.user, user_id, body.role)
    return Envelope[UserOut].ok(UserOut.from_user(user), "User role updated")


@router.delete("/{user_id}", response_model=Envelope[None])
async def delete_user(
    user_id: str,
    ctx: RequestContext = Depends(authorize(DELETE_USER)),
    services: Services = Depends(get_services),
):
    await services.users.delete_user(ctx.user, user_id)
    return Envelope[None].ok(message="User deleted successfully")
