"""Transcoding errors.

Every failure is fatal to the call that raised it. Errors carry a path of
field names (and sequence indexes) so a failure deep inside a nested record
is attributable to one field: ``items[2].id``.
"""

from __future__ import annotations


class TranscodeError(Exception):
    """Base class for everything the decoder ring raises."""

    def __init__(self, message: str, *, path: tuple[str | int, ...] = ()):
        super().__init__(message)
        self.message = message
        self.path = tuple(path)

    def within(self, segment: str | int) -> TranscodeError:
        """Prepend a field name or sequence index to the error path."""
        self.path = (segment, *self.path)
        return self

    @property
    def field(self) -> str:
        rendered = ""
        for segment in self.path:
            if isinstance(segment, int):
                rendered += f"[{segment}]"
            elif rendered:
                rendered += f".{segment}"
            else:
                rendered = segment
        return rendered

    def __str__(self) -> str:
        if self.path:
            return f"{self.field}: {self.message}"
        return self.message


class ShapeError(TranscodeError):
    """Source or destination is not the shape the walk requires."""


class FieldTypeError(TranscodeError, TypeError):
    """A field's type does not fit the operation or the destination."""


class InvalidTokenError(TranscodeError, ValueError):
    """The codec could not recover any identifier from a token."""

    def __init__(self, token: str, *, path: tuple[str | int, ...] = ()):
        super().__init__(f"invalid token: {token!r}", path=path)
        self.token = token


class CodecError(TranscodeError):
    """The codec rejected the input. The codec's exception is the cause."""
