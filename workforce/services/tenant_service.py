"""
Tenant (company) context resolution.

Runs after authentication and before the access guard. Authentication
happens upstream: an anonymous request passes through untouched.
"""
from __future__ import annotations
from typing import Optional
from workforce.core.errors import MissingTenant, SubscriptionInactive, TenantNotFound
from workforce.core.logger import log_security_event
from workforce.domain.models import SubscriptionStatus, TenantContext, User, UserRole
from workforce.repositories.company_repo import CompanyRepository


class TenantResolver:
    def __init__(self, companies: CompanyRepository):
        self._companies = companies

    async def resolve(self, user: Optional[User]) -> Optional[TenantContext]:
        """
        Build the company context for the caller.

        Args:
            user: Authenticated user, or None for anonymous requests

        Returns:
            TenantContext, or None for anonymous callers and SUPER_ADMIN
            (cross-tenant by design)

        Raises:
            MissingTenant: non super-admin without a company
            TenantNotFound: company deleted after the token was issued
            SubscriptionInactive: company has a subscription that is not ACTIVE
        """
        if user is None:
            return None

        if user.role is UserRole.SUPER_ADMIN:
            return None

        if not user.company_id:
            log_security_event(
                action="tenant_resolve",
                result="denied",
                user_id=user.id,
                meta={"reason": "missing_tenant"},
                level="warning",
            )
            raise MissingTenant()

        company = await self._companies.get_with_subscription(user.company_id)
        if company is None:
            log_security_event(
                action="tenant_resolve",
                result="denied",
                user_id=user.id,
                company_id=user.company_id,
                meta={"reason": "tenant_not_found"},
                level="warning",
            )
            raise TenantNotFound()

        # No subscription record at all passes; only an existing, non-active one blocks
        subscription = company.subscription
        if subscription is not None and subscription.status is not SubscriptionStatus.ACTIVE:
            log_security_event(
                action="tenant_resolve",
                result="denied",
                user_id=user.id,
                company_id=company.id,
                meta={"reason": "subscription_inactive", "status": subscription.status.value},
                level="warning",
            )
            raise SubscriptionInactive(meta={"status": subscription.status.value})

        return TenantContext(
            id=company.id,
            name=company.name,
            registration_code=company.registration_code,
            subscription_status=subscription.status if subscription else None,
            settings=company.settings,
        )
