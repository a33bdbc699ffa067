"""Assignability of runtime values to declared field types."""

from __future__ import annotations

import collections.abc
from typing import Any, Literal, TypeVar, get_args, get_origin

from sqidsring.errors import FieldTypeError
from sqidsring.schema import is_union, strip_annotated

_MAPPINGS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def is_assignable(value: Any, tp: Any) -> bool:
    """Whether ``value`` may be stored in a field declared as ``tp``."""
    tp = strip_annotated(tp)
    if tp is Any or tp is object or isinstance(tp, TypeVar):
        return True
    if tp is None or tp is type(None):
        return value is None
    if hasattr(tp, "__supertype__"):  # NewType
        return is_assignable(value, tp.__supertype__)
    if is_union(tp):
        return any(is_assignable(value, arg) for arg in get_args(tp))

    origin = get_origin(tp)
    if origin is Literal:
        return value in get_args(tp)
    if origin is not None:
        return _is_assignable_container(value, origin, get_args(tp))

    if not isinstance(tp, type):
        return True
    if tp is float:
        return isinstance(value, (int, float))
    if tp is complex:
        return isinstance(value, (int, float, complex))
    return isinstance(value, tp)


def _is_assignable_container(value: Any, origin: Any, args: tuple) -> bool:
    if not isinstance(origin, type) or not isinstance(value, origin):
        return False
    if not args:
        return True
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return all(is_assignable(item, args[0]) for item in value)
        if args == ((),):
            return len(value) == 0
        return len(value) == len(args) and all(
            is_assignable(item, arg) for item, arg in zip(value, args)
        )
    if origin in _MAPPINGS:
        key_tp, value_tp = args if len(args) == 2 else (Any, Any)
        return all(
            is_assignable(k, key_tp) and is_assignable(v, value_tp)
            for k, v in value.items()
        )
    # one-shot iterators are copied unchecked rather than consumed
    if isinstance(value, collections.abc.Collection):
        return all(is_assignable(item, args[0]) for item in value)
    return True


def type_name(tp: Any) -> str:
    tp = strip_annotated(tp)
    if isinstance(tp, type) and get_origin(tp) is None:
        return tp.__name__
    return repr(tp).replace("typing.", "")


def _hint(value: Any, tp: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool) and is_assignable("", tp):
        return " You may have forgotten to mark the field with Encode."
    if isinstance(value, str) and is_assignable(0, tp):
        return " You may have forgotten to mark the field with Decode."
    return ""


def check_assignable(value: Any, tp: Any) -> Any:
    """Return ``value`` if it fits ``tp``, else raise FieldTypeError."""
    if is_assignable(value, tp):
        return value
    raise FieldTypeError(
        f"value of type {type(value).__name__} is not assignable "
        f"to field of type {type_name(tp)}.{_hint(value, tp)}"
    )
