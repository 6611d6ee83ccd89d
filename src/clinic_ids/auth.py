"""API key gate for the identifier endpoints.

Anyone who can call decode can recover raw record ids, so the ids router
sits behind an X-API-Key header. An empty configured key means
development mode: no key required.
"""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def make_api_key_checker(expected_key: str):
    """Return a FastAPI dependency that checks the X-API-Key header."""

    async def check_api_key(
        api_key: str | None = Security(_api_key_header),
    ) -> str | None:
        if not expected_key:
            return None
        if api_key is None or not secrets.compare_digest(
            api_key.encode("utf-8"), expected_key.encode("utf-8")
        ):
            raise HTTPException(
                status_code=401,
                detail="Invalid or missing API key",
            )
        return api_key

    return check_api_key
