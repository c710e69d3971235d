"""Signed link tokens for manager / employee actions that happen outside a login session.

Token format: ``<hex HMAC-SHA256 of "data|expires_ms">.<expires_ms>``
where ``expires_ms`` is the expiry as epoch milliseconds.

Signed data is always scoped with a purpose prefix (see the ``*_scope``
helpers) so a link issued for one action cannot be replayed for another.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import time
from datetime import timedelta

from training_portal.core.config import settings

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>?")
_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def _secret() -> bytes | None:
    return settings.auth_secret.encode("utf-8") if settings.auth_secret else None


def _sign(secret: bytes, data: str, expires_ms: int) -> str:
    payload = f"{data}|{expires_ms}".encode("utf-8")
    return hmac.new(secret, payload, hashlib.sha256).hexdigest()


def nomination_scope(nomination_id: str) -> str:
    return f"nomination:{nomination_id}"


def employee_feedback_scope(enrollment_id: str) -> str:
    return f"feedback:employee:{enrollment_id}"


def manager_feedback_scope(enrollment_id: str) -> str:
    return f"feedback:manager:{enrollment_id}"


def generate_secure_token(data: str, ttl: timedelta | None = None) -> str:
    """Return a signed, time-limited token for *data*.

    Raises RuntimeError when AUTH_SECRET is not configured; the check lives
    here (not at import) so the app can start without it.
    """
    secret = _secret()
    if not secret:
        raise RuntimeError("AUTH_SECRET is required for token generation.")

    ttl = ttl if ttl is not None else timedelta(days=settings.token_ttl_days)
    expires_ms = int(time.time() * 1000) + int(ttl.total_seconds() * 1000)
    return f"{_sign(secret, data, expires_ms)}.{expires_ms}"


def verify_secure_token(token: str | None, data: str | None) -> bool:
    """True if *token* was issued for *data* and has not expired."""
    secret = _secret()
    if not token or not data or not secret:
        logger.warning("[Security] Token verification failed: missing token, data, or secret.")
        return False

    signature, sep, expires_str = token.partition(".")
    if not sep or not _HEX_RE.fullmatch(signature) or not expires_str:
        logger.warning("[Security] Token verification failed: invalid token format.")
        return False

    try:
        expires_ms = int(expires_str)
    except ValueError:
        logger.warning("[Security] Token verification failed: invalid expiry.")
        return False

    if time.time() * 1000 > expires_ms:
        logger.warning("[Security] Token verification failed: token expired for data: %s", data)
        return False

    expected = _sign(secret, data, expires_ms)
    if not hmac.compare_digest(signature.lower(), expected):
        logger.warning("[Security] Token verification failed: invalid signature for data: %s", data)
        return False
    return True


def sanitize_input(value: str | None) -> str:
    """Strip HTML tags and surrounding whitespace from user-provided text."""
    if not value:
        return ""
    return _TAG_RE.sub("", str(value)).strip()
