from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    COMPANY_ADMIN = "COMPANY_ADMIN"
    EMPLOYEE = "EMPLOYEE"


class SubscriptionStatus(str, Enum):
    TRIALING = "TRIALING"
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class User(BaseModel):
    """User as seen by everything outside persistence: no password hash."""
    id: str
    email: str
    full_name: str
    role: UserRole
    company_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserRecord(User):
    password_hash: str

    def public(self) -> User:
        return User(**self.model_dump(exclude={"password_hash"}))


class NewUser(BaseModel):
    email: str
    password_hash: str
    full_name: str
    role: UserRole
    company_id: Optional[str] = None


class CompanySettings(BaseModel):
    lateness_tolerance_minutes: int = 15
    overtime_rate_weekday: float = 1.5
    overtime_rate_weekend: float = 2.0
    allow_wfh: bool = False
    wfh_clock_in_needs_location: bool = False


class Subscription(BaseModel):
    company_id: str
    plan_id: str
    status: SubscriptionStatus
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    trial_end: Optional[date] = None


class Company(BaseModel):
    id: str
    name: str
    registration_code: str
    subscription: Optional[Subscription] = None
    settings: Optional[CompanySettings] = None


class TenantContext(BaseModel):
    """Per-request company snapshot. Built by TenantResolver, never stored."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    registration_code: str
    subscription_status: Optional[SubscriptionStatus] = None
    settings: Optional[CompanySettings] = None


class TokenPayload(BaseModel):
    user_id: str
    email: str
    role: UserRole
    company_id: Optional[str] = None
    kind: TokenKind = TokenKind.ACCESS
    jti: Optional[str] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def for_user(cls, user: User) -> "TokenPayload":
        return cls(
            user_id=user.id,
            email=user.email,
            role=user.role,
            company_id=user.company_id,
        )


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
