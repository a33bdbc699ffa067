"""Record shapes and the markers that select which fields get converted.

Records are dataclass instances or pydantic models. A field opts into
conversion with a marker in its type hint::

    @dataclass
    class User:
        id: Annotated[int, Encode]
        username: str

or, on dataclasses, with field metadata in the style of a struct tag::

    id: int = field(metadata={"sqids": "encode"})   # or Encode, Operation.ENCODE
"""

from __future__ import annotations

import dataclasses
import enum
import types
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from sqidsring.errors import ShapeError

SQIDS_KEY = "sqids"


class Operation(str, enum.Enum):
    ENCODE = "encode"
    DECODE = "decode"


@dataclass(frozen=True)
class Convert:
    """Marker placed in ``Annotated`` metadata."""

    operation: Operation


Encode = Convert(Operation.ENCODE)
Decode = Convert(Operation.DECODE)


@dataclass(frozen=True)
class FieldShape:
    name: str
    annotation: Any
    marker: str | None
    required: bool
    init: bool = True


def strip_annotated(tp: Any) -> Any:
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def is_union(tp: Any) -> bool:
    return get_origin(tp) in (Union, types.UnionType)


def is_record_type(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def is_record(value: Any) -> bool:
    if isinstance(value, type):
        return False
    return dataclasses.is_dataclass(value) or isinstance(value, BaseModel)


def is_frozen(record_type: type) -> bool:
    if dataclasses.is_dataclass(record_type):
        return record_type.__dataclass_params__.frozen
    return bool(record_type.model_config.get("frozen", False))


def record_type_of(tp: Any) -> type | None:
    """The record class a declared field type holds, looking through Optional."""
    tp = strip_annotated(tp)
    if is_record_type(tp):
        return tp
    if is_union(tp):
        candidates = [strip_annotated(arg) for arg in get_args(tp)]
        records = [arg for arg in candidates if is_record_type(arg)]
        if len(records) == 1:
            return records[0]
    return None


def marker_value(marker: Any) -> str | None:
    """Normalise a marker given as Convert, Operation or plain string."""
    if isinstance(marker, Convert):
        return marker.operation.value
    if isinstance(marker, Operation):
        return marker.value
    if isinstance(marker, str):
        return marker
    return None


def _marker_of(metadata) -> str | None:
    for item in metadata:
        if isinstance(item, Convert):
            return item.operation.value
    return None


def marker_in_hint(hint: Any) -> str | None:
    """Find a Convert marker on a hint, including Annotated members of a union."""
    if get_origin(hint) is Annotated:
        marker = _marker_of(hint.__metadata__)
        if marker is not None:
            return marker
        hint = get_args(hint)[0]
    if is_union(hint):
        for arg in get_args(hint):
            marker = marker_in_hint(arg)
            if marker is not None:
                return marker
    return None


@lru_cache(maxsize=None)
def describe(record_type: type) -> dict[str, FieldShape]:
    """Field shapes of a record type, keyed by name, in declaration order."""
    if dataclasses.is_dataclass(record_type):
        return _describe_dataclass(record_type)
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        return _describe_model(record_type)
    raise ShapeError(f"{record_type!r} is not a record type")


def _describe_dataclass(record_type: type) -> dict[str, FieldShape]:
    try:
        hints = get_type_hints(record_type, include_extras=True)
    except NameError as exc:
        raise ShapeError(
            f"cannot resolve type hints of {record_type.__name__}: {exc}"
        ) from exc

    shapes = {}
    for f in dataclasses.fields(record_type):
        hint = hints.get(f.name, Any)
        marker = marker_in_hint(hint)
        if marker is None and SQIDS_KEY in f.metadata:
            marker = marker_value(f.metadata[SQIDS_KEY])
        required = (
            f.init
            and f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        )
        shapes[f.name] = FieldShape(
            name=f.name,
            annotation=strip_annotated(hint),
            marker=marker,
            required=required,
            init=f.init,
        )
    return shapes


def _describe_model(record_type: type[BaseModel]) -> dict[str, FieldShape]:
    shapes = {}
    for name, info in record_type.model_fields.items():
        shapes[name] = FieldShape(
            name=name,
            annotation=strip_annotated(info.annotation),
            marker=_marker_of(info.metadata) or marker_in_hint(info.annotation),
            required=info.is_required(),
        )
    return shapes
