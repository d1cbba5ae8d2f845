# workforce/core/errors.py
from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"                        # 401
    INVALID_CREDENTIALS = "invalid_credentials"          # 401
    TOKEN_EXPIRED = "token_expired"                      # 401
    TOKEN_MALFORMED = "token_malformed"                  # 401
    TOKEN_KIND_MISMATCH = "token_kind_mismatch"          # 401
    INVALID_SESSION = "invalid_session"                  # 401
    ACCOUNT_DEACTIVATED = "account_deactivated"          # 403
    MISSING_TENANT = "missing_tenant"                    # 403
    TENANT_NOT_FOUND = "tenant_not_found"                # 403
    SUBSCRIPTION_INACTIVE = "subscription_inactive"      # 403
    INSUFFICIENT_ROLE = "insufficient_role"              # 403
    CROSS_TENANT_ACCESS = "cross_tenant_access"          # 403
    NOT_FOUND = "not_found"                              # 404
    EMAIL_ALREADY_EXISTS = "email_already_exists"        # 409
    BAD_REQUEST = "bad_request"                          # 400
    INVALID_COMPANY_REFERENCE = "invalid_company_reference"  # 400
    CURRENT_PASSWORD_INCORRECT = "current_password_incorrect"  # 400
    VALIDATION_ERROR = "validation_error"                # 422
    RATE_LIMITED = "rate_limited"                        # 429
    TENANT_CONTEXT_MISSING = "tenant_context_missing"    # 500
    INTERNAL_ERROR = "internal_error"                    # 500
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"    # 503


class AppError(Exception):
    """
    Typed rejection with a stable code.

    Frontend should key on `meta.code` for i18n and behavior; `message`
    is safe to show and never reveals more than the caller already knows.
    """
    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    message: str = "Internal error"

    def __init__(self, message: Optional[str] = None, meta: Optional[Dict[str, Any]] = None):
        self.message = message or type(self).message
        self.meta = meta or {}
        super().__init__(self.message)

    def to_meta(self) -> Dict[str, Any]:
        return {"code": self.code.value, **self.meta}


# --- authentication ---

class InvalidCredentials(AppError):
    status_code = 401
    code = ErrorCode.INVALID_CREDENTIALS
    message = "Invalid credentials"


class AccountDeactivated(AppError):
    status_code = 403
    code = ErrorCode.ACCOUNT_DEACTIVATED
    message = "Account is deactivated"


class MissingBearerToken(AppError):
    status_code = 401
    code = ErrorCode.UNAUTHORIZED
    message = "Missing bearer token"


class TokenExpired(AppError):
    status_code = 401
    code = ErrorCode.TOKEN_EXPIRED
    message = "Token has expired"


class TokenMalformed(AppError):
    status_code = 401
    code = ErrorCode.TOKEN_MALFORMED
    message = "Invalid token"


class TokenKindMismatch(AppError):
    status_code = 401
    code = ErrorCode.TOKEN_KIND_MISMATCH
    message = "Wrong token type"


class InvalidSession(AppError):
    status_code = 401
    code = ErrorCode.INVALID_SESSION
    message = "Invalid refresh token"


# --- tenant / authorization ---

class MissingTenant(AppError):
    status_code = 403
    code = ErrorCode.MISSING_TENANT
    message = "User must be associated with a company"


class TenantNotFound(AppError):
    status_code = 403
    code = ErrorCode.TENANT_NOT_FOUND
    message = "Company not found"


class SubscriptionInactive(AppError):
    status_code = 403
    code = ErrorCode.SUBSCRIPTION_INACTIVE
    message = "Company subscription is not active"


class InsufficientRole(AppError):
    status_code = 403
    code = ErrorCode.INSUFFICIENT_ROLE
    message = "You do not have permission for this action"


class CrossTenantAccess(AppError):
    status_code = 403
    code = ErrorCode.CROSS_TENANT_ACCESS
    message = "Access denied to this user"


class TenantContextMissing(AppError):
    status_code = 500
    code = ErrorCode.TENANT_CONTEXT_MISSING
    message = "Company context not found"


# --- input / state ---

class EmailAlreadyExists(AppError):
    status_code = 409
    code = ErrorCode.EMAIL_ALREADY_EXISTS
    message = "User with this email already exists"


class InvalidCompanyReference(AppError):
    status_code = 400
    code = ErrorCode.INVALID_COMPANY_REFERENCE
    message = "Invalid company ID"


class CurrentPasswordIncorrect(AppError):
    status_code = 400
    code = ErrorCode.CURRENT_PASSWORD_INCORRECT
    message = "Current password is incorrect"


class UserNotFound(AppError):
    status_code = 404
    code = ErrorCode.NOT_FOUND
    message = "User not found"


class SelfModificationForbidden(AppError):
    status_code = 400
    code = ErrorCode.BAD_REQUEST
    message = "Cannot perform this action on your own account"


class RateLimited(AppError):
    status_code = 429
    code = ErrorCode.RATE_LIMITED
    message = "Too many requests, try again later"


# --- infrastructure ---

class DependencyUnavailable(AppError):
    """Cache or database is unreachable. Operational incident, not a denial."""
    status_code = 503
    code = ErrorCode.DEPENDENCY_UNAVAILABLE
    message = "Service temporarily unavailable"

    def __init__(self, component: str, message: Optional[str] = None):
        self.component = component
        super().__init__(message, meta={"component": component})
