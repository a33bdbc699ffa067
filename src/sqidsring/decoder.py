"""The decoder ring — integer ID obfuscation between storage and clients.

Internal records carry integer primary keys. Clients should only ever see
opaque tokens. The decoder ring walks a source record field by field and
fills a structurally parallel destination record: fields marked for the
requested operation are converted through the token codec, nested records
are walked with the same operation, everything else is copied after an
assignability check.

    ring = DecoderRing(build_codec(config))
    public = ring.encode(user, PublicUser)
    user = ring.decode(public, User)

The destination may be a record type (a new instance is built) or a mutable
record instance (fields are assigned in place once the whole walk has
succeeded). Any TranscodeError means the destination must be discarded.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import logging
from typing import Any, get_args, get_origin

from sqidsring.codec import TokenCodec
from sqidsring.compat import check_assignable, type_name
from sqidsring.errors import (
    CodecError,
    FieldTypeError,
    InvalidTokenError,
    ShapeError,
    TranscodeError,
)
from sqidsring.schema import (
    Operation,
    describe,
    is_frozen,
    is_record,
    is_record_type,
    is_union,
    record_type_of,
    strip_annotated,
)

logger = logging.getLogger("sqidsring")

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)
_NESTED_CONTAINERS = (list, tuple, set, frozenset, dict)


class DecoderRing:
    """Converts marked ID fields to tokens (encode) and back (decode)."""

    def __init__(self, codec: TokenCodec):
        self.codec = codec

    def encode(self, src: Any, dst: Any) -> Any:
        """Tokenize fields marked Encode, copy or walk the rest."""
        return self.transcode(src, dst, Operation.ENCODE)

    def decode(self, src: Any, dst: Any) -> Any:
        """Detokenize fields marked Decode, copy or walk the rest."""
        return self.transcode(src, dst, Operation.DECODE)

    def transcode(self, src: Any, dst: Any, op: Operation | str) -> Any:
        op = Operation(op)
        if not is_record(src):
            raise ShapeError(f"source must be a record, got {type(src).__name__}")

        if is_record_type(dst):
            logger.debug("%s %s into new %s", op.value, type(src).__name__, dst.__name__)
            return self._transcode_record(src, dst, op)

        if not is_record(dst):
            raise ShapeError(
                f"destination must be a record instance or record type, "
                f"got {type(dst).__name__}"
            )
        dst_type = type(dst)
        if is_frozen(dst_type):
            raise ShapeError(
                f"destination {dst_type.__name__} is frozen; "
                "pass the type to build a new instance"
            )

        logger.debug("%s %s into %s", op.value, type(src).__name__, dst_type.__name__)
        values = self._walk(src, dst_type, op)
        for name, value in values.items():
            setattr(dst, name, value)
        return dst

    # ── Shape walker ──────────────────────────────────────────

    def _walk(self, src: Any, dst_type: type, op: Operation) -> dict[str, Any]:
        src_fields = describe(type(src))
        dst_fields = describe(dst_type)
        values: dict[str, Any] = {}

        for name, shape in src_fields.items():
            dst_shape = dst_fields.get(name)
            if dst_shape is None:
                raise ShapeError("missing destination field", path=(name,))

            value = getattr(src, name)
            try:
                if shape.marker == op.value:
                    values[name] = self._dispatch(value, dst_shape.annotation, op)
                    continue
                nested_type = record_type_of(dst_shape.annotation)
                if is_record(value) and nested_type is not None:
                    values[name] = self._transcode_record(value, nested_type, op)
                else:
                    values[name] = check_assignable(value, dst_shape.annotation)
            except TranscodeError as exc:
                exc.within(name)
                raise

        return values

    def _transcode_record(self, src: Any, dst_type: type, op: Operation) -> Any:
        return _build(dst_type, self._walk(src, dst_type, op))

    # ── Dispatcher ────────────────────────────────────────────

    def _dispatch(self, value: Any, dst_tp: Any, op: Operation) -> Any:
        if isinstance(value, (list, tuple)):
            return self._convert_sequence(value, dst_tp, op)
        if is_record(value):
            record_type = record_type_of(dst_tp)
            if record_type is None:
                raise FieldTypeError(
                    f"destination field of type {type_name(dst_tp)} is not a record"
                )
            return self._transcode_record(value, record_type, op)
        if value is None:
            return check_assignable(None, dst_tp)
        return self._convert_scalar(value, dst_tp, op)

    # ── Scalar and sequence converters ────────────────────────

    def _convert_scalar(self, value: Any, dst_tp: Any, op: Operation) -> Any:
        if op is Operation.ENCODE:
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise FieldTypeError(
                    f"field is not a non-negative integer: {type(value).__name__} {value!r}"
                )
            try:
                token = self.codec.encode([value])
            except ValueError as exc:
                raise CodecError(f"codec rejected {value}: {exc}") from exc
            return check_assignable(token, dst_tp)

        if op is Operation.DECODE:
            if not isinstance(value, str):
                raise FieldTypeError(f"field is not a string: {type(value).__name__}")
            numbers = self.codec.decode(value)
            if not numbers:
                raise InvalidTokenError(value)
            return check_assignable(numbers[0], dst_tp)

        raise ValueError(f"unknown operation: {op!r}")

    def _convert_sequence(self, items: Any, dst_tp: Any, op: Operation) -> Any:
        container, item_tp = _sequence_type_of(dst_tp)
        if container is None:
            raise FieldTypeError(
                f"destination field of type {type_name(dst_tp)} is not a sequence"
            )

        converted = []
        for index, item in enumerate(items):
            try:
                converted.append(self._convert_item(item, item_tp, op))
            except TranscodeError as exc:
                exc.within(index)
                raise
        return container(converted)

    def _convert_item(self, item: Any, item_tp: Any, op: Operation) -> Any:
        if is_record(item):
            record_type = record_type_of(item_tp)
            if record_type is None:
                raise FieldTypeError(
                    f"sequence element type {type_name(item_tp)} is not a record"
                )
            return self._transcode_record(item, record_type, op)
        if isinstance(item, _NESTED_CONTAINERS):
            raise ShapeError(f"unsupported element kind: {type(item).__name__}")
        return self._convert_scalar(item, item_tp, op)


def _sequence_type_of(tp: Any) -> tuple[type | None, Any]:
    """Result container and element type for a declared sequence field."""
    tp = strip_annotated(tp)
    if is_union(tp):
        members = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(members) != 1:
            return None, None
        tp = strip_annotated(members[0])
    if tp is Any:
        return list, Any

    origin = get_origin(tp) or tp
    if origin not in _SEQUENCE_ORIGINS:
        return None, None

    args = get_args(tp)
    if origin is tuple:
        if not args:
            return tuple, Any
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple, args[0]
        # fixed-length tuples are positional records, not sequences
        return None, None
    return list, (args[0] if args else Any)


def _build(record_type: type, values: dict[str, Any]) -> Any:
    shapes = describe(record_type)
    for name, shape in shapes.items():
        if shape.required and name not in values:
            raise ShapeError("destination field has no source counterpart", path=(name,))

    if not dataclasses.is_dataclass(record_type):
        return record_type.model_construct(**values)

    init_values = {k: v for k, v in values.items() if shapes[k].init}
    record = record_type(**init_values)
    for name, value in values.items():
        if not shapes[name].init:
            object.__setattr__(record, name, value)
    return record
