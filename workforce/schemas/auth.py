"""
Request/response schemas for the auth and user endpoints.

Follows Layer 3 rules:
- ALWAYS use Pydantic models for request/response
- Validate input once at the boundary; services trust typed values
"""
from __future__ import annotations
from typing import Optional
from pydantic import EmailStr, Field, field_validator
from workforce.core.security import MAX_PASSWORD_BYTES
from workforce.domain.models import CompanySettings, SubscriptionStatus, TenantContext, User, UserRole
from workforce.schemas.common import CamelModel


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class LoginIn(CamelModel):
    """Request schema for user login."""
    # Plain str: lookup is an exact match against the stored address
    email: str = Field(..., min_length=3, max_length=320, description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class RegisterIn(CamelModel):
    """Request schema for registration."""
    full_name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="User password")
    role: UserRole = Field(..., description="Requested role")
    company_id: Optional[str] = Field(default=None, description="Company the user belongs to")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class CreateUserIn(RegisterIn):
    """Administrator-created user; `companyId` defaults to the caller's company."""


class RefreshIn(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordIn(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class UserOut(CamelModel):
    id: str
    email: str
    full_name: str
    role: UserRole
    company_id: Optional[str] = None
    is_active: bool

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            company_id=user.company_id,
            is_active=user.is_active,
        )


class TokenPairOut(CamelModel):
    access_token: str
    refresh_token: str


class AuthOut(TokenPairOut):
    user: UserOut


class CompanySettingsOut(CamelModel):
    lateness_tolerance_minutes: int
    overtime_rate_weekday: float
    overtime_rate_weekend: float
    allow_wfh: bool
    wfh_clock_in_needs_location: bool


class TenantOut(CamelModel):
    id: str
    name: str
    registration_code: str
    subscription_status: Optional[SubscriptionStatus] = None
    settings: Optional[CompanySettingsOut] = None

    @classmethod
    def from_context(cls, ctx: TenantContext) -> "TenantOut":
        settings: Optional[CompanySettings] = ctx.settings
        return cls(
            id=ctx.id,
            name=ctx.name,
            registration_code=ctx.registration_code,
            subscription_status=ctx.subscription_status,
            settings=CompanySettingsOut(**settings.model_dump()) if settings else None,
        )


class MeOut(CamelModel):
    user: UserOut
    company: Optional[TenantOut] = None


class UserStatusIn(CamelModel):
    is_active: bool


class UserRoleIn(CamelModel):
    role: UserRole
