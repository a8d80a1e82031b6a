"""
Record conversion strategies.

Types that are not natively representable are stored as binary blobs using
one of two strategies, chosen explicitly when the conversion is built:

- ``structural_conversion``: field-by-field JSON (the neutral interchange
  format). Works for types exposing ``to_dict``/``from_dict`` and for
  dataclasses whose field annotations are JSON-shaped.
- ``archival_conversion``: pickle object-graph archival. Preserves identity
  and reference cycles. Decoding only resolves classes named in an explicit
  allow-list.

Notes
-----
The JSON encoder is run with ``allow_nan=False``: records holding NaN or
infinite floats cannot be encoded and produce INVALID.

Dataclass fields are stored for ``init=True`` fields only and rebuilt through
the class constructor, so ``init=False`` fields are recomputed on decode.
Supported field annotations are ``str``, ``int``, ``float``, ``bool``,
``None``, ``list[X]``, ``dict[str, X]``, unions of those (``X | None``) and
nested dataclasses following the same rules. Any other annotation is rejected
when the conversion is built; such types should implement
``to_dict``/``from_dict``.
"""

from __future__ import annotations

import dataclasses
import functools
import io
import json
import logging
import pickle
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, Protocol, Self, TypeVar

from .conversion import INVALID, Decoded, Encoded

log = logging.getLogger(__name__)

T = TypeVar("T")

_PICKLE_ERRORS: tuple[type[BaseException], ...] = (
    pickle.PicklingError,
    AttributeError,
    RecursionError,
    TypeError,
)

_SCALAR_FIELD_TYPES: tuple[type, ...] = (str, int, float, bool)
_NONE_TYPE = type(None)
_UNION_ORIGINS = (typing.Union, types.UnionType)


class SupportsRecordCoding(Protocol):
    """Protocol for record types with an explicit field mapping."""

    def to_dict(self) -> dict[str, Any]:
        """Convert the record to a JSON-serializable dictionary."""
        ...

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Self:
        """Construct the record from a mapping, raising ValueError if invalid."""
        ...


def _has_record_coding(record_type: type) -> bool:
    return callable(getattr(record_type, "to_dict", None)) and callable(
        getattr(record_type, "from_dict", None)
    )


def _is_record_class(hint: Any) -> bool:
    return isinstance(hint, type) and dataclasses.is_dataclass(hint)


@functools.lru_cache(maxsize=None)
def _init_field_hints(record_type: type) -> tuple[tuple[str, Any], ...]:
    """
    Resolve the annotations of a dataclass's constructor fields.

    Raises
    ------
    TypeError
        If annotations cannot be resolved or the class declares InitVar
        pseudo-fields (which cannot be read back from an instance).
    """
    try:
        hints = typing.get_type_hints(record_type)
    except (NameError, TypeError) as exc:
        raise TypeError(
            f"Cannot resolve field annotations of {record_type.__qualname__}: {exc}"
        ) from exc
    if any(isinstance(hint, dataclasses.InitVar) for hint in hints.values()):
        raise TypeError(
            f"{record_type.__qualname__} uses InitVar fields; implement to_dict/from_dict"
        )
    return tuple((f.name, hints[f.name]) for f in dataclasses.fields(record_type) if f.init)


def _check_annotation(hint: Any, owner: type, seen: set[type]) -> None:
    """Raise TypeError if ``hint`` has no JSON field encoding."""
    if hint in _SCALAR_FIELD_TYPES or hint is _NONE_TYPE:
        return
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is list and len(args) == 1:
        _check_annotation(args[0], owner, seen)
        return
    if origin is dict and len(args) == 2 and args[0] is str:
        _check_annotation(args[1], owner, seen)
        return
    if origin in _UNION_ORIGINS:
        for arm in args:
            _check_annotation(arm, owner, seen)
        return
    if _is_record_class(hint):
        if hint in seen:
            return
        seen.add(hint)
        for _, nested in _init_field_hints(hint):
            _check_annotation(nested, hint, seen)
        return
    raise TypeError(
        f"{owner.__qualname__} has a field annotated {hint!r}, which has no JSON "
        "encoding; implement to_dict/from_dict"
    )


def _matches_scalar(value: Any, expected: type) -> bool:
    if expected is bool:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def _field_to_json(hint: Any, value: Any) -> Any:
    """Encode one field value; raise ValueError if it does not match ``hint``."""
    if hint is _NONE_TYPE:
        if value is not None:
            raise ValueError(f"expected None, got {type(value).__name__}")
        return None
    if hint in _SCALAR_FIELD_TYPES:
        if not _matches_scalar(value, hint):
            raise ValueError(f"expected {hint.__name__}, got {type(value).__name__}")
        return float(value) if hint is float else value
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is list:
        if not isinstance(value, list):
            raise ValueError(f"expected list, got {type(value).__name__}")
        return [_field_to_json(args[0], item) for item in value]
    if origin is dict:
        if not isinstance(value, dict) or not all(isinstance(k, str) for k in value):
            raise ValueError("expected a mapping with str keys")
        return {k: _field_to_json(args[1], item) for k, item in value.items()}
    if origin in _UNION_ORIGINS:
        for arm in args:
            try:
                return _field_to_json(arm, value)
            except ValueError:
                continue
        raise ValueError(f"{type(value).__name__} matches no member of {hint!r}")
    # Exact class: a subclass instance would decode as the base class.
    if type(value) is not hint:
        raise ValueError(f"expected {hint.__qualname__}, got {type(value).__name__}")
    return _record_to_json(hint, value)


def _record_to_json(record_type: type, value: Any) -> dict[str, Any]:
    return {
        name: _field_to_json(hint, getattr(value, name))
        for name, hint in _init_field_hints(record_type)
    }


def _field_from_json(hint: Any, value: Any) -> Any:
    """Decode one field value; raise ValueError if its shape does not match."""
    if hint is _NONE_TYPE:
        if value is not None:
            raise ValueError("expected null")
        return None
    if hint in _SCALAR_FIELD_TYPES:
        if not _matches_scalar(value, hint):
            raise ValueError(f"expected {hint.__name__}")
        return float(value) if hint is float else value
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is list:
        if not isinstance(value, list):
            raise ValueError("expected a list")
        return [_field_from_json(args[0], item) for item in value]
    if origin is dict:
        if not isinstance(value, dict):
            raise ValueError("expected an object")
        return {k: _field_from_json(args[1], item) for k, item in value.items()}
    if origin in _UNION_ORIGINS:
        for arm in args:
            try:
                return _field_from_json(arm, value)
            except ValueError:
                continue
        raise ValueError(f"value matches no member of {hint!r}")
    return _record_from_json(hint, value)


def _record_from_json(record_type: type, payload: Any) -> Any:
    if not isinstance(payload, dict):
        raise ValueError(f"{record_type.__qualname__} payload is not an object")
    hints = _init_field_hints(record_type)
    names = {name for name, _ in hints}
    if set(payload) != names:
        missing = ", ".join(sorted(names.difference(payload)))
        unknown = ", ".join(sorted(set(payload).difference(names)))
        raise ValueError(f"field mismatch (missing: {missing or '-'}; unknown: {unknown or '-'})")
    return record_type(**{name: _field_from_json(hint, payload[name]) for name, hint in hints})


@dataclass(frozen=True, slots=True)
class StructuralConversion(Generic[T]):
    """
    JSON-in-a-blob conversion for a record type.

    Attributes
    ----------
    record_type:
        The concrete record class.

    Raises
    ------
    TypeError
        If ``record_type`` exposes no ``to_dict``/``from_dict`` and is not a
        dataclass with supported field annotations.
    """

    record_type: type[T]
    _uses_record_coding: bool = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        uses_record_coding = _has_record_coding(self.record_type)
        if not uses_record_coding:
            if not _is_record_class(self.record_type):
                raise TypeError(
                    f"{self.record_type.__qualname__} needs to_dict/from_dict or must be a dataclass"
                )
            _check_annotation(self.record_type, self.record_type, set())
        object.__setattr__(self, "_uses_record_coding", uses_record_coding)

    def decode(self, native: Any) -> Decoded[T]:
        if not isinstance(native, bytes):
            return INVALID
        try:
            payload = json.loads(native)
        except (RecursionError, ValueError):
            return INVALID
        if not isinstance(payload, dict):
            return INVALID
        try:
            if self._uses_record_coding:
                value = self.record_type.from_dict(payload)  # type: ignore[attr-defined]
            else:
                value = _record_from_json(self.record_type, payload)
        except Exception as exc:  # user from_dict or __post_init__ may raise anything
            log.debug("Rejected %s payload: %s", self.record_type.__qualname__, exc)
            return INVALID
        if not isinstance(value, self.record_type):
            return INVALID
        return value

    def encode(self, value: T) -> Encoded:
        if not isinstance(value, self.record_type):
            return INVALID
        try:
            if self._uses_record_coding:
                payload = value.to_dict()  # type: ignore[attr-defined]
            else:
                payload = _field_to_json(self.record_type, value)
            text = json.dumps(
                payload,
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except (RecursionError, TypeError, ValueError) as exc:
            log.warning("Cannot encode %s: %s", self.record_type.__qualname__, exc)
            return INVALID
        return text.encode("utf-8")


class _AllowListUnpickler(pickle.Unpickler):
    """Unpickler that resolves only explicitly allowed classes."""

    def __init__(self, file: io.BytesIO, allowed: frozenset[tuple[str, str]]) -> None:
        super().__init__(file)
        self._allowed = allowed

    def find_class(self, module: str, name: str) -> Any:
        if (module, name) not in self._allowed:
            raise pickle.UnpicklingError(f"class {module}.{name} is not in the allow-list")
        return super().find_class(module, name)


@dataclass(frozen=True, slots=True)
class ArchivalConversion(Generic[T]):
    """
    Pickle-in-a-blob conversion for an object graph rooted at ``root``.

    Attributes
    ----------
    root:
        Expected class of the decoded root object.
    allowed:
        Additional classes the archive may reference (field values, members
        of the graph). Builtin containers and scalars need no entry.
    """

    root: type[T]
    allowed: frozenset[type] = frozenset()

    def _allowed_names(self) -> frozenset[tuple[str, str]]:
        return frozenset((cls.__module__, cls.__qualname__) for cls in (self.root, *self.allowed))

    def decode(self, native: Any) -> Decoded[T]:
        if not isinstance(native, bytes):
            return INVALID
        try:
            value = _AllowListUnpickler(io.BytesIO(native), self._allowed_names()).load()
        except Exception as exc:  # load() may raise anything on crafted input
            log.debug("Rejected %s archive: %s", self.root.__qualname__, exc)
            return INVALID
        if not isinstance(value, self.root):
            return INVALID
        return value

    def encode(self, value: T) -> Encoded:
        if not isinstance(value, self.root):
            return INVALID
        try:
            return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except _PICKLE_ERRORS as exc:
            log.warning("Cannot archive %s: %s", self.root.__qualname__, exc)
            return INVALID


def structural_conversion(record_type: type[T]) -> StructuralConversion[T]:
    """
    Build a JSON-blob conversion for ``record_type``.

    Parameters
    ----------
    record_type:
        A dataclass, or a class implementing ``SupportsRecordCoding``.

    Returns
    -------
    StructuralConversion
        Conversion storing the record as UTF-8 JSON bytes.
    """
    return StructuralConversion(record_type)


def archival_conversion(root: type[T], *, allowed: tuple[type, ...] = ()) -> ArchivalConversion[T]:
    """
    Build a pickle-blob conversion for ``root``.

    Parameters
    ----------
    root:
        Expected class of the archived root object.
    allowed:
        Further classes the archive may contain, e.g. ``datetime.datetime``
        or the classes of nested members.

    Returns
    -------
    ArchivalConversion
        Conversion whose decode refuses any class outside the allow-list.
    """
    return ArchivalConversion(root, frozenset(allowed))
