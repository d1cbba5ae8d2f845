"""
RBAC (Role-Based Access Control) module for the Workforce backend.

Follows Layer 2 rules:
- Roles are: SUPER_ADMIN, COMPANY_ADMIN, EMPLOYEE
- Every protected operation declares its allowed roles when it is registered
- RBAC logic MUST live in this dedicated module, not scattered
- SUPER_ADMIN is cross-tenant and satisfies every role check
- Never trust role or company information from the client; always from the
  server-side user record
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, Optional
from workforce.core.errors import InsufficientRole, TenantContextMissing
from workforce.core.logger import log_security_event
from workforce.domain.models import TenantContext, User, UserRole


@dataclass(frozen=True)
class OperationPolicy:
    """
    Authorization metadata attached to one operation.

    An empty `roles` set means any authenticated role may call it.
    `tenant_scoped` operations need a resolved TenantContext for non
    super-admin callers.
    """
    name: str
    roles: FrozenSet[UserRole] = field(default_factory=frozenset)
    tenant_scoped: bool = True

    def allows_role(self, role: UserRole) -> bool:
        return role is UserRole.SUPER_ADMIN or not self.roles or role in self.roles


class PolicyRegistry:
    """Operation name -> OperationPolicy, filled in as routes are declared."""

    def __init__(self):
        self._policies: Dict[str, OperationPolicy] = {}

    def register(self, name: str, *roles: UserRole, tenant_scoped: bool = True) -> OperationPolicy:
        """
        Declare the roles an operation requires.

        Example:
            DEACTIVATE_USER = registry.register("users.set_status", UserRole.COMPANY_ADMIN)

            @router.patch("/{user_id}/status")
            async def set_status(ctx: RequestContext = Depends(authorize(DEACTIVATE_USER))):
                ...
        """
        if name in self._policies:
            raise ValueError(f"Operation already registered: {name}")
        policy = OperationPolicy(name=name, roles=frozenset(UserRole(r) for r in roles), tenant_scoped=tenant_scoped)
        self._policies[name] = policy
        return policy

    def get(self, name: str) -> Optional[OperationPolicy]:
        return self._policies.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._policies

    def __iter__(self) -> Iterator[OperationPolicy]:
        return iter(self._policies.values())


registry = PolicyRegistry()


class AccessGuard:
    """Final gate before a handler runs: role membership, then tenant scope."""

    def check(self, policy: OperationPolicy, user: User, tenant: Optional[TenantContext]) -> None:
        """
        Raises:
            InsufficientRole: caller's role is not in the declared set
            TenantContextMissing: tenant-scoped operation reached without a tenant
        """
        if user.role is UserRole.SUPER_ADMIN:
            return

        if not policy.allows_role(user.role):
            log_security_event(
                action=policy.name,
                result="denied",
                user_id=user.id,
                company_id=user.company_id,
                meta={
                    "reason": "insufficient_role",
                    "required_roles": sorted(r.value for r in policy.roles),
                    "current_role": user.role.value,
                },
                level="warning",
            )
            raise InsufficientRole(
                meta={
                    "required_roles": sorted(r.value for r in policy.roles),
                    "current_role": user.role.value,
                }
            )

        if policy.tenant_scoped and tenant is None:
            # TenantResolver runs first, so reaching this is a wiring bug
            log_security_event(
                action=policy.name,
                result="denied",
                user_id=user.id,
                company_id=user.company_id,
                meta={"reason": "tenant_context_missing"},
                level="critical",
            )
            raise TenantContextMissing()
