"""Identifier endpoints — encode ids for links, decode tokens from links.

Other services of the clinic system call these instead of holding the
obfuscation secret themselves.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from clinic_ids.codec import IdentifierCodec
from clinic_ids.deps import get_codec, require_record_id

router = APIRouter(prefix="/api/v1/ids", tags=["ids"])

MAX_BATCH = 500


class EncodeRequest(BaseModel):
    id: str = Field(..., min_length=1)


class EncodeBatchRequest(BaseModel):
    ids: list[str] = Field(default_factory=list, max_length=MAX_BATCH)


class DecodeBatchRequest(BaseModel):
    tokens: list[str] = Field(default_factory=list, max_length=MAX_BATCH)


@router.post("/encode")
def encode_id(
    body: EncodeRequest,
    codec: IdentifierCodec = Depends(get_codec),
):
    return {"token": codec.encode(body.id)}


@router.post("/encode-batch")
def encode_batch(
    body: EncodeBatchRequest,
    codec: IdentifierCodec = Depends(get_codec),
):
    return {"tokens": [codec.encode(record_id) for record_id in body.ids]}


@router.get("/{record_id}")
def decode_id(record_id: str = Depends(require_record_id)):
    return {"id": record_id}


@router.post("/decode-batch")
def decode_batch(
    body: DecodeBatchRequest,
    codec: IdentifierCodec = Depends(get_codec),
):
    return {"ids": [codec.decode(token) for token in body.tokens]}
