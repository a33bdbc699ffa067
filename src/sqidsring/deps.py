"""FastAPI dependencies for gateway routes.

API key check: an empty key means development mode (no auth required),
a non-empty key must match the X-API-Key header.
"""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from sqidsring.decoder import DecoderRing

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_decoder(request: Request) -> DecoderRing:
    """Get the decoder ring from app state."""
    return request.app.state.decoder


def make_api_key_checker(expected_key: str):
    """Dependency guarding the gateway routers with a shared API key."""

    async def check_api_key(
        api_key: str | None = Security(_api_key_header),
    ) -> str | None:
        if expected_key and (
            api_key is None or not secrets.compare_digest(api_key, expected_key)
        ):
            raise HTTPException(status_code=401, detail="Invalid or missing API key")
        return api_key

    return check_api_key
