"""Meta endpoints — health and version."""

from __future__ import annotations

from fastapi import APIRouter

from clinic_ids import __version__

router = APIRouter(prefix="/api/v1", tags=["meta"])


@router.get("/health")
def health():
    return {"status": "ok", "service": "clinic-ids"}


@router.get("/version")
def version():
    return {
        "gateway": __version__,
        "token_format": "aes-256-cbc:hex-iv:urlsafe-base64",
    }
