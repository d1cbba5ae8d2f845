"""
Service layer for user administration.

Follows Layer 4 rules:
- Data access MUST be routed through repository/service layers
- Keep clean separation: API → service → repository → DB

Every change to role, active flag or existence invalidates the cached user
right here, at the call site, and never waits for the TTL.
"""
from __future__ import annotations
from typing import List, Optional, Tuple
from workforce.core.errors import (
    CrossTenantAccess,
    EmailAlreadyExists,
    InsufficientRole,
    InvalidCompanyReference,
    SelfModificationForbidden,
    UserNotFound,
)
from workforce.core.logger import log_security_event
from workforce.core.security import hash_password_async
from workforce.domain.models import NewUser, User, UserRole
from workforce.repositories.company_repo import CompanyRepository
from workforce.repositories.user_repo import UserRepository
from workforce.services.session_store import SessionStore
from workforce.services.user_cache import UserCache


class UserService:
    def __init__(
        self,
        users: UserRepository,
        user_cache: UserCache,
        sessions: SessionStore,
        companies: CompanyRepository,
        bcrypt_rounds: int = 12,
    ):
        self._users = users
        self._user_cache = user_cache
        self._sessions = sessions
        self._companies = companies
        self._rounds = bcrypt_rounds

    async def create_user(
        self,
        actor: User,
        email: str,
        password: str,
        full_name: str,
        role: UserRole,
        company_id: Optional[str] = None,
    ) -> User:
        """
        Create a user on behalf of an administrator. No session is started.

        A company admin always creates into their own company: an omitted
        `company_id` defaults to it, any other company is refused.

        Raises:
            CrossTenantAccess: company admin targeting another company
            InsufficientRole: company admin creating an admin role
            EmailAlreadyExists: email taken
            InvalidCompanyReference: company missing, or required but not given
        """
        if actor.role is not UserRole.SUPER_ADMIN:
            if company_id is None:
                company_id = actor.company_id
            elif company_id != actor.company_id:
                log_security_event(
                    action="user_create",
                    result="denied",
                    user_id=actor.id,
                    company_id=actor.company_id,
                    meta={"target_company_id": company_id},
                    level="warning",
                )
                raise CrossTenantAccess("Cannot create users for other companies")
            if role in (UserRole.SUPER_ADMIN, UserRole.COMPANY_ADMIN):
                raise InsufficientRole("Insufficient permissions to create this user type")

        if await self._users.get_by_email(email) is not None:
            raise EmailAlreadyExists()

        if company_id:
            if await self._companies.get_with_subscription(company_id) is None:
                raise InvalidCompanyReference()
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
            action="user_create",
            result="success",
            user_id=actor.id,
            company_id=user.company_id,
            meta={"target_user_id": user.id, "role": role.value},
        )
        return user

    async def list_users(
        self,
        actor: User,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        company_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], int]:
        """
        Page through users. Only a super admin may pick `company_id`;
        everyone else always sees their own company.
        """
        scope = company_id if actor.role is UserRole.SUPER_ADMIN else actor.company_id
        records, total = await self._users.list_users(
            company_id=scope,
            role=role,
            is_active=is_active,
            search=search,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return [r.public() for r in records], total

    async def get_user(self, actor: User, user_id: str) -> User:
        """
        Fetch a user through the read-through cache.

        Raises:
            UserNotFound: no such user
            CrossTenantAccess: user belongs to another company
        """
        user = await self._user_cache.get_or_load(user_id, self._load)
        if user is None:
            raise UserNotFound()
        self._check_same_tenant(actor, user)
        return user

    async def set_active(self, actor: User, user_id: str, is_active: bool) -> User:
        """
        Activate or deactivate a user.

        Deactivation also ends the user's refresh session, so the account
        cannot mint new tokens even before its cached record would expire.
        """
        if user_id == actor.id and not is_active:
            raise SelfModificationForbidden("Cannot deactivate your own account")
        await self._get_in_tenant(actor, user_id)

        updated = await self._users.set_active(user_id, is_active)
        if updated is None:
            raise UserNotFound()
        await self._user_cache.invalidate(user_id)
        if not is_active:
            await self._sessions.end_session(user_id)

        log_security_event(
            action="user_status_change",
            result="success",
            user_id=actor.id,
            company_id=updated.company_id,
            meta={"target_user_id": user_id, "is_active": is_active},
        )
        return updated.public()

    async def update_role(self, actor: User, user_id: str, role: UserRole) -> User:
        if actor.role is not UserRole.SUPER_ADMIN and role in (UserRole.SUPER_ADMIN, UserRole.COMPANY_ADMIN):
            raise InsufficientRole("Insufficient permissions to change user role")
        await self._get_in_tenant(actor, user_id)

        updated = await self._users.update_role(user_id, role)
        if updated is None:
            raise UserNotFound()
        await self._user_cache.invalidate(user_id)

        log_security_event(
            action="role_change",
            result="success",
            user_id=actor.id,
            company_id=updated.company_id,
            meta={"target_user_id": user_id, "role": role.value},
        )
        return updated.public()

    async def delete_user(self, actor: User, user_id: str) -> None:
        if user_id == actor.id:
            raise SelfModificationForbidden("Cannot delete your own account")
        await self._get_in_tenant(actor, user_id)

        if not await self._users.delete(user_id):
            raise UserNotFound()
        await self._user_cache.invalidate(user_id)
        await self._sessions.end_session(user_id)

        log_security_event(
            action="user_delete",
            result="success",
            user_id=actor.id,
            company_id=actor.company_id,
            meta={"target_user_id": user_id},
        )

    async def _get_in_tenant(self, actor: User, user_id: str) -> User:
        # Mutations read persistence directly; a cached copy may be about to change
        record = await self._users.get_by_id(user_id)
        if record is None:
            raise UserNotFound()
        target = record.public()
        self._check_same_tenant(actor, target)
        return target

    @staticmethod
    def _check_same_tenant(actor: User, target: User) -> None:
        if actor.role is UserRole.SUPER_ADMIN:
            return
        if target.company_id != actor.company_id:
            log_security_event(
                action="cross_tenant_access",
                result="denied",
                user_id=actor.id,
                company_id=actor.company_id,
                meta={"target_user_id": target.id},
                level="warning",
            )
            raise CrossTenantAccess()

    async def _load(self, user_id: str):
        record = await self._users.get_by_id(user_id)
        return record.public() if record else None
