"""Tests for company context resolution."""

import pytest

from workforce.core.errors import MissingTenant, SubscriptionInactive, TenantNotFound
from workforce.domain.models import SubscriptionStatus, User, UserRole
from workforce.services.tenant_service import TenantResolver


@pytest.fixture
def resolver(company_repo):
    return TenantResolver(company_repo)


def make_user(role=UserRole.EMPLOYEE, company_id="C1"):
    return User(id="u1", email="a@x.com", full_name="A", role=role, company_id=company_id)


@pytest.mark.asyncio
async def test_anonymous_passes_through(resolver):
    assert await resolver.resolve(None) is None


@pytest.mark.asyncio
async def test_super_admin_bypasses_tenant_checks(resolver):
    # Even pointing at a past-due company
    assert await resolver.resolve(make_user(UserRole.SUPER_ADMIN, company_id="C2")) is None
    assert await resolver.resolve(make_user(UserRole.SUPER_ADMIN, company_id=None)) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.COMPANY_ADMIN, UserRole.EMPLOYEE])
async def test_missing_company_id(resolver, role):
    with pytest.raises(MissingTenant):
        await resolver.resolve(make_user(role, company_id=None))


@pytest.mark.asyncio
async def test_deleted_company(resolver):
    with pytest.raises(TenantNotFound):
        await resolver.resolve(make_user(company_id="gone"))


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.COMPANY_ADMIN, UserRole.EMPLOYEE])
async def test_past_due_subscription_blocks(resolver, role):
    with pytest.raises(SubscriptionInactive) as exc_info:
        await resolver.resolve(make_user(role, company_id="C2"))
    assert exc_info.value.meta["status"] == "PAST_DUE"


@pytest.mark.asyncio
async def test_trialing_subscription_blocks(resolver):
    with pytest.raises(SubscriptionInactive):
        await resolver.resolve(make_user(company_id="C4"))


@pytest.mark.asyncio
async def test_canceled_subscription_blocks(resolver, company_repo):
    company_repo.add("C5", SubscriptionStatus.CANCELED)
    with pytest.raises(SubscriptionInactive):
        await resolver.resolve(make_user(company_id="C5"))


@pytest.mark.asyncio
async def test_company_without_subscription_passes(resolver):
    ctx = await resolver.resolve(make_user(company_id="C3"))
    assert ctx.id == "C3"
    assert ctx.subscription_status is None


@pytest.mark.asyncio
async def test_active_company_context(resolver):
    ctx = await resolver.resolve(make_user(company_id="C1"))
    assert ctx.id == "C1"
    assert ctx.name == "Active Co"
    assert ctx.registration_code == "REG-C1"
    assert ctx.subscription_status is SubscriptionStatus.ACTIVE
    assert ctx.settings.lateness_tolerance_minutes == 10
    assert ctx.settings.allow_wfh is True
