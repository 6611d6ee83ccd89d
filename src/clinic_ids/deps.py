"""FastAPI dependencies for clinic-ids routes."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from clinic_ids.codec import IdentifierCodec


def get_codec(request: Request) -> IdentifierCodec:
    """Get the identifier codec from app state."""
    return request.app.state.codec


def require_record_id(
    record_id: str,
    codec: IdentifierCodec = Depends(get_codec),
) -> str:
    """Decode the ``{record_id}`` path segment or fail the request with 400."""
    plaintext = codec.decode(record_id)
    if not plaintext:
        raise HTTPException(status_code=400, detail="Invalid identifier")
    return plaintext
