"""Token endpoints — integer IDs in, opaque tokens out, and back.

Request and response bodies are themselves records with marked fields, so
every request goes through the same decoder ring a service embedding this
package would use.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, NonNegativeInt

from sqidsring.decoder import DecoderRing
from sqidsring.deps import get_decoder
from sqidsring.errors import InvalidTokenError
from sqidsring.schema import Decode, Encode

router = APIRouter(prefix="/api/v1/tokens", tags=["tokens"])


class IdBatch(BaseModel):
    ids: Annotated[list[NonNegativeInt], Encode]


class TokenBatch(BaseModel):
    ids: Annotated[list[str], Decode]


class TokenRef(BaseModel):
    id: Annotated[str, Decode]


class IdRef(BaseModel):
    id: int


@router.post("/encode")
def encode_ids(batch: IdBatch, decoder: DecoderRing = Depends(get_decoder)):
    tokens = decoder.encode(batch, TokenBatch)
    return tokens.model_dump(mode="json")


@router.post("/decode")
def decode_tokens(batch: TokenBatch, decoder: DecoderRing = Depends(get_decoder)):
    ids = decoder.decode(batch, IdBatch)
    return ids.model_dump(mode="json")


@router.get("/{token}")
def resolve_token(token: str, decoder: DecoderRing = Depends(get_decoder)):
    try:
        ref = decoder.decode(TokenRef(id=token), IdRef)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ref.model_dump(mode="json")
