"""The token codec boundary.

The decoder ring only needs two calls from a codec: turn a list of
non-negative integers into a token, and turn a token back into the list.
Sqids is the default implementation; anything with the same two methods
can stand in for it.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from sqids import Sqids

from sqidsring.config import SqidsRingConfig


class TokenCodec(Protocol):
    def encode(self, numbers: Sequence[int]) -> str:
        """Raise ValueError when the numbers cannot be encoded."""
        ...

    def decode(self, token: str) -> list[int]:
        """Return an empty list when the token is not recognised."""
        ...


def build_codec(config: SqidsRingConfig) -> Sqids:
    """Build a Sqids codec. Unset options fall back to the library defaults."""
    kwargs: dict = {}
    if config.alphabet:
        kwargs["alphabet"] = config.alphabet
    if config.min_length:
        kwargs["min_length"] = config.min_length
    if config.blocklist is not None:
        kwargs["blocklist"] = set(config.blocklist)
    return Sqids(**kwargs)
