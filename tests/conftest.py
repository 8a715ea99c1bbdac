from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from jose import jwt

NOW_MS = 1_700_000_000_000


def _encode(exp_offset_s: int | None = 3600, **claims: Any) -> str:
    payload: dict[str, Any] = {"sub": "sub-123", "email": "jane@example.com", **claims}
    if exp_offset_s is not None:
        payload["exp"] = NOW_MS // 1000 + exp_offset_s
    return jwt.encode(payload, "test-secret", algorithm="HS256")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build an HS256 id token expiring *exp_offset_s* seconds after ``NOW_MS``."""
    return _encode


@pytest.fixture
def now_ms() -> int:
    return NOW_MS
