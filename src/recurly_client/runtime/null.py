"""
Nullable wire values.

Recurly treats an absent XML element differently from an element holding a
zero value: sending ``<tax_exempt>false</tax_exempt>`` clears the flag, while
leaving the element out leaves it untouched. The types in this module carry that
third state.

Each type is an immutable ``(value, valid)`` pair:

* ``valid=False`` -- no opinion; the element is omitted from requests.
* ``valid=True``  -- send exactly ``value``, including ``False``/``0``.

Build valid values with ``new_bool``/``new_int``/``new_float``/``new_time`` (or
``NullBool.of(...)``). A bare ``NullBool()`` is the omitted state.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar
from xml.etree import ElementTree

from .errors import DecodeError

T = TypeVar("T")

#: Datetime layout used by Recurly. All times are sent in UTC.
DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_XSI_NIL = "{http://www.w3.org/2001/XMLSchema-instance}nil"

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_RX_INT = re.compile(r"^[+-]?\d+$")
_RX_DATETIME = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)


def is_nil_element(elem: Optional[ElementTree.Element]) -> bool:
    """
    Check whether an element stands for "no value".

    An element is nil when it is absent, carries a ``nil="nil"``/``nil="true"``
    marker attribute, or has no text at all.
    """
    if elem is None:
        return True
    for key in ("nil", _XSI_NIL):
        marker = elem.attrib.get(key)
        if marker is not None and marker.strip().lower() in ("nil", "true"):
            return True
    return not (elem.text or "").strip()


@dataclass(frozen=True)
class Nullable(Generic[T]):
    """Base class for the tri-state wire values."""

    value: Any = None
    valid: bool = False

    @classmethod
    def of(cls, value: T) -> "Nullable[T]":
        """Build a valid value."""
        return cls(value=cls._coerce(value), valid=True)

    @classmethod
    def _coerce(cls, value: Any) -> Any:
        return value

    @classmethod
    def parse(cls, text: str) -> T:
        """
        Parse a wire literal.

        Raises:
            DecodeError: If the literal is malformed
        """
        raise NotImplementedError

    def format(self) -> str:
        """Render the wire literal for a valid value."""
        raise NotImplementedError

    def get(self) -> Optional[T]:
        """Return the value, or None when not valid."""
        return self.value if self.valid else None

    def __str__(self) -> str:
        return self.format() if self.valid else ""

    def to_element(self, tag: str) -> Optional[ElementTree.Element]:
        """Encode as ``<tag>literal</tag>``, or None when not valid."""
        if not self.valid:
            return None
        elem = ElementTree.Element(tag)
        elem.text = self.format()
        return elem

    @classmethod
    def from_element(cls, elem: Optional[ElementTree.Element]) -> "Nullable[T]":
        """
        Decode an element, which may be None when the element was absent.

        Raises:
            DecodeError: If the element holds a malformed literal
        """
        if is_nil_element(elem):
            return cls()
        return cls(value=cls.parse(elem.text.strip()), valid=True)

    def to_json(self) -> Any:
        """JSON-friendly value: the plain value, or None when not valid."""
        return self.value if self.valid else None


@dataclass(frozen=True)
class NullBool(Nullable[bool]):
    """A bool that can distinguish false from unset."""

    value: bool = False
    valid: bool = False

    @classmethod
    def _coerce(cls, value: Any) -> bool:
        if not isinstance(value, bool):
            raise TypeError(f"NullBool requires a bool, got {type(value).__name__}")
        return value

    @classmethod
    def parse(cls, text: str) -> bool:
        if text in _TRUE_LITERALS:
            return True
        if text in _FALSE_LITERALS:
            return False
        raise DecodeError(f"invalid bool literal: {text!r}")

    def format(self) -> str:
        return "true" if self.value else "false"

    def is_(self, b: bool) -> bool:
        """Check whether the value is valid and equal to b."""
        return self.valid and self.value == b


@dataclass(frozen=True)
class NullInt(Nullable[int]):
    """An int that can distinguish zero from unset."""

    value: int = 0
    valid: bool = False

    @classmethod
    def _coerce(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"NullInt requires an int, got {type(value).__name__}")
        return value

    @classmethod
    def parse(cls, text: str) -> int:
        if not _RX_INT.match(text):
            raise DecodeError(f"invalid int literal: {text!r}")
        return int(text)

    def format(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class NullFloat(Nullable[float]):
    """A float that can distinguish 0.0 from unset."""

    value: float = 0.0
    valid: bool = False

    @classmethod
    def _coerce(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"NullFloat requires a number, got {type(value).__name__}")
        return float(value)

    @classmethod
    def parse(cls, text: str) -> float:
        if "_" in text:
            raise DecodeError(f"invalid float literal: {text!r}")
        try:
            return float(text)
        except ValueError as e:
            raise DecodeError(f"invalid float literal: {text!r}", cause=e) from e

    def format(self) -> str:
        # repr() is the shortest string that round-trips
        text = repr(self.value)
        if text.endswith(".0"):
            text = text[:-2]
        return text


@dataclass(frozen=True)
class NullTime(Nullable[datetime]):
    """
    A UTC datetime that can be unset.

    Values are normalized to UTC and truncated to whole seconds, the precision
    of the wire format. Naive datetimes are taken to be UTC already.
    """

    value: Optional[datetime] = None
    valid: bool = False

    @classmethod
    def _coerce(cls, value: Any) -> datetime:
        if not isinstance(value, datetime):
            raise TypeError(f"NullTime requires a datetime, got {type(value).__name__}")
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0)

    @classmethod
    def from_string(cls, text: str) -> "NullTime":
        """Build a valid NullTime from a DATETIME_FORMAT string."""
        return cls.of(cls.parse(text))

    @classmethod
    def parse(cls, text: str) -> datetime:
        match = _RX_DATETIME.match(text)
        if not match:
            raise DecodeError(f"invalid datetime literal: {text!r}")
        base, fraction, offset = match.groups()
        if offset == "Z":
            offset = "+00:00"
        if fraction:
            fraction = fraction[:7].ljust(7, "0")
        else:
            fraction = ""
        try:
            parsed = datetime.fromisoformat(f"{base}{fraction}{offset}")
        except ValueError as e:
            raise DecodeError(f"invalid datetime literal: {text!r}", cause=e) from e
        return cls._coerce(parsed)

    def format(self) -> str:
        return self.value.astimezone(timezone.utc).strftime(DATETIME_FORMAT)

    def to_json(self) -> Any:
        return self.format() if self.valid else None


def new_bool(b: bool) -> NullBool:
    """Create a valid NullBool."""
    return NullBool.of(b)


def new_int(i: int) -> NullInt:
    """Create a valid NullInt."""
    return NullInt.of(i)


def new_float(f: float) -> NullFloat:
    """Create a valid NullFloat."""
    return NullFloat.of(f)


def new_time(t: datetime) -> NullTime:
    """Create a valid NullTime (converted to UTC)."""
    return NullTime.of(t)


def format_datetime(t: datetime) -> str:
    """Format a datetime in the wire layout, converting to UTC first."""
    return NullTime.of(t).format()


__all__ = [
    "DATETIME_FORMAT",
    "Nullable",
    "NullBool",
    "NullInt",
    "NullFloat",
    "NullTime",
    "new_bool",
    "new_int",
    "new_float",
    "new_time",
    "format_datetime",
    "is_nil_element",
]
