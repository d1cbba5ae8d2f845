"""
Authentication endpoints.

Follows Layer 1 and Layer 3 rules:
- Validate input with Pydantic schemas
- Return minimal information on failure
- ALWAYS use Pydantic models for request/response
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, Request, status
from workforce.api.deps import RequestContext, authorize, get_services
from workforce.container import Services
from workforce.core.roles import registry
from workforce.schemas.auth import (
    AuthOut,
    ChangePasswordIn,
    LoginIn,
    MeOut,
    RefreshIn,
    RegisterIn,
    TenantOut,
    TokenPairOut,
    UserOut,
)
from workforce.schemas.common import Envelope

router = APIRouter(prefix="/auth", tags=["auth"])

CHANGE_PASSWORD = registry.register("auth.change_password", tenant_scoped=False)
LOGOUT = registry.register("auth.logout", tenant_scoped=False)
ME = registry.register("auth.me")


def _auth_out(result) -> AuthOut:
    return AuthOut(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserOut.from_user(result.user),
    )


@router.post("/login", response_model=Envelope[AuthOut])
async def login(body: LoginIn, req: Request, services: Services = Depends(get_services)):
    """
    Authenticate user and issue an access/refresh token pair.

    Wrong email and wrong password get the same 401; a deactivated account
    with the right password gets a 403.
    """
    ip = req.client.host if req.client else "unknown"
    await services.login_limiter.hit(ip)
    result = await services.auth.authenticate(body.email, body.password)
    return Envelope[AuthOut].ok(_auth_out(result), "Login successful")


@router.post("/register", response_model=Envelope[AuthOut], status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, services: Services = Depends(get_services)):
    result = await services.auth.register(
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
        company_id=body.company_id,
    )
    return Envelope[AuthOut].ok(_auth_out(result), "User registered successfully")


@router.post("/refresh", response_model=Envelope[TokenPairOut])
async def refresh(body: RefreshIn, services: Services = Depends(get_services)):
    """
    Rotate the refresh token. The submitted token is invalid afterwards.
    """
    pair = await services.auth.refresh(body.refresh_token)
    return Envelope[TokenPairOut].ok(
        TokenPairOut(access_token=pair.access_token, refresh_token=pair.refresh_token),
        "Token refreshed successfully",
    )


@router.post("/change-password", response_model=Envelope[None])
async def change_password(
    body: ChangePasswordIn,
    ctx: RequestContext = Depends(authorize(CHANGE_PASSWORD)),
    services: Services = Depends(get_services),
):
    await services.auth.change_password(ctx.user.id, body.current_password, body.new_password)
    return Envelope[None].ok(message="Password changed successfully")


@router.post("/logout", response_model=Envelope[None])
async def logout(
    ctx: RequestContext = Depends(authorize(LOGOUT)),
    services: Services = Depends(get_services),
):
    await services.auth.logout(ctx.user.id)
    return Envelope[None].ok(message="Logged out successfully")


@router.get("/me", response_model=Envelope[MeOut])
async def me(ctx: RequestContext = Depends(authorize(ME))):
    """
    Current user and, for company users, the resolved company context.
    """
    company = TenantOut.from_context(ctx.tenant) if ctx.tenant else None
    return Envelope[MeOut].ok(MeOut(user=UserOut.from_user(ctx.user), company=company))
