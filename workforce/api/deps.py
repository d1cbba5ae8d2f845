"""
FastAPI dependencies for the auth chain.

bearer token → TokenIssuer.verify → user (read-through cache) → TenantResolver
→ AccessGuard. The result is an explicit RequestContext handed to the handler;
nothing is attached to the request object.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional
from fastapi import Depends, Request
from workforce.container import Services
from workforce.core.auth import extract_bearer
from workforce.core.errors import AccountDeactivated, InvalidCredentials
from workforce.core.roles import OperationPolicy
from workforce.domain.models import TenantContext, TokenKind, TokenPayload, User


@dataclass(frozen=True)
class RequestContext:
    user: User
    token: TokenPayload
    tenant: Optional[TenantContext] = None


def get_services(req: Request) -> Services:
    return req.app.state.services


async def auth_required(req: Request, services: Services = Depends(get_services)) -> RequestContext:
    """
    Validate the access token and load the current user.

    Role and company come from the user record (cache or DB), not from the
    token, so a role change or deactivation applies as soon as the cache
    entry is invalidated.

    Raises:
        MissingBearerToken / TokenExpired / TokenMalformed / TokenKindMismatch
        InvalidCredentials: user deleted since the token was issued
        AccountDeactivated: user disabled since the token was issued
    """
    token = extract_bearer(req)
    payload = services.issuer.verify(token, TokenKind.ACCESS)

    user = await services.auth.load_user(payload.user_id)
    if user is None:
        raise InvalidCredentials("User not found")
    if not user.is_active:
        raise AccountDeactivated("User account is deactivated")
    return RequestContext(user=user, token=payload)


def authorize(policy: OperationPolicy) -> Callable:
    """
    Dependency factory enforcing an operation's registered policy.

    Example:
        @router.get("/{user_id}")
        async def get_user(user_id: str, ctx: RequestContext = Depends(authorize(GET_USER))):
            ...
    """
    async def _inner(
        ctx: RequestContext = Depends(auth_required),
        services: Services = Depends(get_services),
    ) -> RequestContext:
        tenant = None
        if policy.tenant_scoped:
            tenant = await services.tenants.resolve(ctx.user)
        services.guard.check(policy, ctx.user, tenant)
        return RequestContext(user=ctx.user, token=ctx.token, tenant=tenant)

    return _inner
