"""
Authentication and JWT token management module.

Follows Layer 1 rules:
- Sign tokens with strong, private signing keys from environment variables
- NEVER hardcode secrets or keys in the repository
- Include user_id, company_id, and role in JWT claims
- Set sensible expirations for access tokens
- Only accept tokens via secure headers (Authorization: Bearer <token>)

Tokens are opaque bearer credentials. The issuer never stores them; whether a
refresh token is still the live one for its user is SessionStore's job.
"""
from __future__ import annotations
import datetime
import uuid
from typing import Optional
import jwt
from fastapi import Request
from pydantic import ValidationError
from workforce.core.config import Settings
from workforce.core.errors import (
    MissingBearerToken,
    TokenExpired,
    TokenKindMismatch,
    TokenMalformed,
)
from workforce.domain.models import TokenKind, TokenPair, TokenPayload

ALGORITHM = "HS256"
REFRESH_TOKEN_TTL = datetime.timedelta(days=7)


class TokenIssuer:
    """Mints and verifies signed access/refresh tokens."""

    def __init__(
        self,
        secret: str,
        refresh_secret: Optional[str] = None,
        access_ttl: datetime.timedelta = datetime.timedelta(hours=24),
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._refresh_secret = refresh_secret or secret
        self._access_ttl = access_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.JWT_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            access_ttl=datetime.timedelta(minutes=settings.JWT_EXP_MIN),
        )

    def issue_access_token(self, payload: TokenPayload) -> str:
        """
        Sign an access token carrying the user's id, role and company.

        Args:
            payload: Identity claims (kind/jti/timestamps are ignored and re-set)

        Returns:
            Encoded JWT string
        """
        return self._sign(payload, TokenKind.ACCESS, self._secret, self._access_ttl)

    def issue_refresh_token(self, payload: TokenPayload) -> str:
        """Sign a refresh token with the refresh secret and a fixed 7-day expiry."""
        return self._sign(payload, TokenKind.REFRESH, self._refresh_secret, REFRESH_TOKEN_TTL)

    def issue_pair(self, payload: TokenPayload) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(payload),
            refresh_token=self.issue_refresh_token(payload),
        )

    def verify(self, token: str, expected_kind: TokenKind = TokenKind.ACCESS) -> TokenPayload:
        """
        Validate signature, expiry and kind of a token.

        Args:
            token: Encoded JWT
            expected_kind: Kind the caller is willing to accept

        Returns:
            Decoded TokenPayload

        Raises:
            TokenMalformed: Not a JWT, bad signature, or missing claims
            TokenKindMismatch: Valid-looking token of the other kind
            TokenExpired: Signature fine but past its expiry
        """
        try:
            header_claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            raise TokenMalformed()

        if header_claims.get("type") != expected_kind.value:
            raise TokenKindMismatch(meta={"expected": expected_kind.value})

        secret = self._refresh_secret if expected_kind is TokenKind.REFRESH else self._secret
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError:
            raise TokenMalformed()

        try:
            return TokenPayload(
                user_id=claims["sub"],
                email=claims.get("email", ""),
                role=claims.get("role"),
                company_id=claims.get("company_id"),
                kind=expected_kind,
                jti=claims.get("jti"),
                issued_at=_from_ts(claims["iat"]),
                expires_at=_from_ts(claims["exp"]),
            )
        except ValidationError:
            raise TokenMalformed()

    @staticmethod
    def _sign(
        payload: TokenPayload,
        kind: TokenKind,
        secret: str,
        ttl: datetime.timedelta,
    ) -> str:
        now = datetime.datetime.now(datetime.timezone.utc)
        claims = {
            "sub": str(payload.user_id),
            "email": payload.email,
            "role": payload.role.value,
            "company_id": payload.company_id,
            "type": kind.value,
            # Unique per token: two pairs minted in the same second must differ
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(claims, secret, algorithm=ALGORITHM)


def _from_ts(value) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(int(value), tz=datetime.timezone.utc)


def extract_bearer(req: Request) -> str:
    """
    Pull the bearer token from the Authorization header.

    Raises:
        MissingBearerToken: Header missing or not a Bearer scheme
    """
    auth = req.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        raise MissingBearerToken()
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise MissingBearerToken()
    return token
