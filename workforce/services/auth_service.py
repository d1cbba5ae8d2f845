"""
Authentication service: credential checks, login, registration, token
rotation, password changes and logout.

Follows Layer 1 and Layer 6 rules:
- Validates credentials securely
- Returns minimal information on failure (no "user not found vs wrong password" distinction)
- Logs security events (login attempts, refreshes, password changes)
- NEVER logs plaintext passwords, hashes or tokens
"""
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel
from workforce.core.auth import TokenIssuer
from workforce.core.errors import (
    AccountDeactivated,
    CurrentPasswordIncorrect,
    EmailAlreadyExists,
    InsufficientRole,
    InvalidCompanyReference,
    InvalidCredentials,
    InvalidSession,
    SubscriptionInactive,
    UserNotFound,
)
from workforce.core.logger import log_security_event
from workforce.core.security import hash_password_async, make_dummy_hash, verify_password_async
from workforce.domain.models import (
    NewUser,
    SubscriptionStatus,
    TokenKind,
    TokenPair,
    TokenPayload,
    User,
    UserRole,
)
from workforce.repositories.company_repo import CompanyRepository
from workforce.repositories.user_repo import UserRepository
from workforce.services.session_store import SessionStore
from workforce.services.user_cache import UserCache


class AuthResult(BaseModel):
    access_token: str
    refresh_token: str
    user: User


class CredentialValidator:
    """Email/password check against the stored bcrypt hash."""

    def __init__(self, users: UserRepository, bcrypt_rounds: int = 12):
        self._users = users
        # Same cost as stored hashes, so unknown emails take as long as wrong passwords
        self._dummy_hash = make_dummy_hash(bcrypt_rounds)

    async def validate(self, email: str, password: str) -> User:
        """
        Verify credentials.

        Args:
            email: Exact email as stored (case-sensitive)
            password: Plaintext password

        Returns:
            The user without its password hash

        Raises:
            InvalidCredentials: unknown email or wrong password (indistinguishable)
            AccountDeactivated: password correct but account disabled
        """
        record = await self._users.get_by_email(email)

        matched = await verify_password_async(
            password,
            record.password_hash if record else None,
            fallback_hash=self._dummy_hash,
        )

        if record is None or not matched:
            log_security_event(
                action="login",
                result="failure",
                user_id=record.id if record else None,
                meta={"reason": "invalid_credentials"},
            )
            raise InvalidCredentials()

        if not record.is_active:
            log_security_event(
                action="login",
                result="failure",
                user_id=record.id,
                company_id=record.company_id,
                meta={"reason": "user_disabled"},
            )
            raise AccountDeactivated()

        return record.public()


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        companies: CompanyRepository,
        issuer: TokenIssuer,
        sessions: SessionStore,
        user_cache: UserCache,
        bcrypt_rounds: int = 12,
    ):
        self._users = users
        self._companies = companies
        self._issuer = issuer
        self._sessions = sessions
        self._user_cache = user_cache
        self._rounds = bcrypt_rounds
        self.credentials = CredentialValidator(users, bcrypt_rounds)

    async def authenticate(self, email: str, password: str) -> AuthResult:
        user = await self.credentials.validate(email, password)
        return await self.login(user)

    async def login(self, user: User) -> AuthResult:
        """
        Issue an access/refresh pair and make the refresh token the user's only live one.
        """
        pair = self._issuer.issue_pair(TokenPayload.for_user(user))
        await self._sessions.start_session(user.id, pair.refresh_token)

        log_security_event(
            action="login",
            result="success",
            user_id=user.id,
            company_id=user.company_id,
            meta={"role": user.role.value},
        )
        return AuthResult(access_token=pair.access_token, refresh_token=pair.refresh_token, user=user)

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        role: UserRole,
        company_id: Optional[str] = None,
        allow_privileged: bool = False,
    ) -> AuthResult:
        """
        Create a user and log them in.

        Args:
            allow_privileged: permit creating SUPER_ADMIN (bootstrap script only)

        Raises:
            EmailAlreadyExists: email taken
            InsufficientRole: SUPER_ADMIN requested through the public path
            InvalidCompanyReference: company missing, or required but not given
            SubscriptionInactive: company has no ACTIVE subscription
        """
        if role is UserRole.SUPER_ADMIN and not allow_privileged:
            log_security_event(
                action="register",
                result="denied",
                meta={"reason": "privileged_role_requested"},
                level="warning",
            )
            raise InsufficientRole("Cannot self-register as a super administrator")

        if await self._users.get_by_email(email) is not None:
            raise EmailAlreadyExists()

        if company_id:
            company = await self._companies.get_with_subscription(company_id)
            if company is None:
                raise InvalidCompanyReference()
            if role is not UserRole.SUPER_ADMIN:
                subscription = company.subscription
                if subscription is None or subscription.status is not SubscriptionStatus.ACTIVE:
                    raise SubscriptionInactive("Company does not have an active subscription")
        elif role is not UserRole.SUPER_ADMIN:
            raise InvalidCompanyReference("Company ID is required for non-super admin users")

        password_hash = await hash_password_async(password, self._rounds)
        record = await self._users.create(
            NewUser(
                email=email,
                password_hash=password_hash,
                full_name=full_name,
                role=role,
                company_id=company_id,
            )
        )
        user = record.public()
        await self._user_cache.set(user.id, user)

        log_security_event(
            action="register",
            result="success",
            user_id=user.id,
            company_id=user.company_id,
            meta={"role": user.role.value},
        )
        return await self.login(user)

    async def load_user(self, user_id: str) -> Optional[User]:
        """Read-through user lookup: cache first, persistence on a miss."""
        return await self._user_cache.get_or_load(user_id, self._load_public_user)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """
        Rotate a refresh token.

        The presented token must be the one currently stored for its user.
        The new refresh token overwrites it, so the presented one is dead
        as soon as this returns.

        Raises:
            TokenExpired / TokenMalformed / TokenKindMismatch: bad token
            InvalidSession: token is not the live one, or its user is gone
            AccountDeactivated: user disabled since the token was issued
        """
        payload = self._issuer.verify(refresh_token, TokenKind.REFRESH)

        if not await self._sessions.is_valid(payload.user_id, refresh_token):
            log_security_event(
                action="token_refresh",
                result="failure",
                user_id=payload.user_id,
                meta={"reason": "invalid_session"},
                level="warning",
            )
            raise InvalidSession()

        user = await self.load_user(payload.user_id)
        if user is None:
            await self._sessions.end_session(payload.user_id)
            raise InvalidSession("User not found")
        if not user.is_active:
            await self._sessions.end_session(payload.user_id)
            raise AccountDeactivated("User account is deactivated")

        pair = self._issuer.issue_pair(TokenPayload.for_user(user))
        await self._sessions.start_session(user.id, pair.refresh_token)

        log_security_event(
            action="token_refresh",
            result="success",
            user_id=user.id,
            company_id=user.company_id,
        )
        return pair

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        record = await self._users.get_by_id(user_id)
        if record is None:
            raise UserNotFound()

        if not await verify_password_async(current_password, record.password_hash):
            log_security_event(
                action="password_change",
                result="failure",
                user_id=user_id,
                company_id=record.company_id,
                meta={"reason": "current_password_incorrect"},
            )
            raise CurrentPasswordIncorrect()

        new_hash = await hash_password_async(new_password, self._rounds)
        await self._users.update_password(user_id, new_hash)
        await self._user_cache.invalidate(user_id)

        log_security_event(
            action="password_change",
            result="success",
            user_id=user_id,
            company_id=record.company_id,
        )

    async def logout(self, user_id: str) -> None:
        """End the user's refresh session. Safe to call repeatedly."""
        await self._sessions.end_session(user_id)
        log_security_event(action="logout", result="success", user_id=user_id)

    async def _load_public_user(self, user_id: str) -> Optional[User]:
        record = await self._users.get_by_id(user_id)
        return record.public() if record else None
