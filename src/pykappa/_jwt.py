"""Unverified JWT claim access.

The session engine only reads ``exp``, ``sub`` and ``email`` from tokens it
just received from the identity provider.  Signatures are verified by the
backend wherever a token is redeemed, so nothing here checks them.
"""

from __future__ import annotations

from typing import Any

from jose import jwt
from jose.exceptions import JOSEError


def unverified_claims(token: str) -> dict[str, Any] | None:
    """Return the token's claims, or ``None`` if it cannot be decoded."""
    if not token:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except (JOSEError, ValueError, TypeError):
        return None
    return claims if isinstance(claims, dict) else None


def expiry_ms(token: str) -> int | None:
    """Return the ``exp`` claim in epoch milliseconds, or ``None``."""
    claims = unverified_claims(token)
    if claims is None:
        return None
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return int(exp * 1000)
