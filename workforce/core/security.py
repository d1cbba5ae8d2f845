"""
Password hashing and verification utilities.

Follows Layer 1 rules:
- Always use a strong hashing algorithm (bcrypt)
- NEVER log plaintext passwords or hashes

bcrypt is CPU-bound; the async helpers push it to the worker thread pool so
one verification never stalls the event loop for every other request.
"""
from __future__ import annotations
import bcrypt
from fastapi.concurrency import run_in_threadpool

# bcrypt input limit. Longer passwords are refused, never truncated.
MAX_PASSWORD_BYTES = 72


def _to_bytes(x) -> bytes:
    """Convert input to bytes for bcrypt."""
    if x is None:
        return b""
    if isinstance(x, (bytes, bytearray)):
        return bytes(x)
    return str(x).encode()


def hash_password(plain: str, rounds: int = 12) -> str:
    """
    Hash a plaintext password using bcrypt.

    Args:
        plain: Plaintext password
        rounds: bcrypt cost factor

    Returns:
        Hashed password string

    Raises:
        ValueError: password longer than MAX_PASSWORD_BYTES once UTF-8 encoded
    """
    raw = _to_bytes(plain)
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode()


def make_dummy_hash(rounds: int = 12) -> str:
    """Hash of a throwaway secret at `rounds`, for checks against unknown accounts."""
    return hash_password("workforce-timing-equalizer", rounds)


def verify_password(plain: str, hashed: str | None, fallback_hash: str | None = None) -> bool:
    """
    Verify a plaintext password against a hash.

    A missing or unparseable hash never matches, nor does an over-long
    password. When `hashed` is None and a `fallback_hash` is given, the
    comparison still runs against the fallback so the call costs the same
    as a real check.

    Args:
        plain: Plaintext password to verify
        hashed: Hashed password to compare against
        fallback_hash: Hash checked instead when `hashed` is None

    Returns:
        True if password matches, False otherwise
    """
    target = hashed or fallback_hash
    raw = _to_bytes(plain)
    if target is None or len(raw) > MAX_PASSWORD_BYTES:
        return False
    try:
        matched = bcrypt.checkpw(raw, _to_bytes(target))
        return matched and hashed is not None
    except ValueError:
        # Invalid salt / corrupt hash stored for the user
        return False


async def hash_password_async(plain: str, rounds: int = 12) -> str:
    return await run_in_threadpool(hash_password, plain, rounds)


async def verify_password_async(plain: str, hashed: str | None, fallback_hash: str | None = None) -> bool:
    return await run_in_threadpool(verify_password, plain, hashed, fallback_hash)
