"""Meta endpoints — health and version."""

from __future__ import annotations

from fastapi import APIRouter

GATEWAY_VERSION = "0.1.0"

router = APIRouter(prefix="/api/v1", tags=["meta"])


@router.get("/health")
def health():
    return {"status": "ok", "service": "sqidsring"}


@router.get("/version")
def version():
    return {"gateway": GATEWAY_VERSION}
