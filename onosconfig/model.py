"""Native configuration value model and model-path metadata."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from onosconfig.errors import UnsupportedError


class ValueType(IntEnum):
    """The type of a native configuration value."""

    EMPTY = 0
    STRING = 1
    INT = 2
    UINT = 3
    BOOL = 4
    DECIMAL = 5
    FLOAT = 6
    BYTES = 7
    LEAFLIST_STRING = 8
    LEAFLIST_INT = 9
    LEAFLIST_UINT = 10
    LEAFLIST_BOOL = 11
    LEAFLIST_DECIMAL = 12
    LEAFLIST_FLOAT = 13
    LEAFLIST_BYTES = 14


class Width(IntEnum):
    """The bit width of an integer value."""

    UNKNOWN = 0
    EIGHT = 8
    SIXTEEN = 16
    THIRTY_TWO = 32
    SIXTY_FOUR = 64


_BOOL_TEXT = {True: "true", False: "false"}


def _format_decimal(digits: int, precision: int) -> str:
    if precision <= 0:
        return str(digits)
    whole, frac = divmod(abs(digits), 10 ** precision)
    sign = "-" if digits < 0 else ""
    return f"{sign}{whole}.{frac:0{precision}d}"


def _format_bytes(value: bytes) -> str:
    return base64.b64encode(bytes(value)).decode("ascii")


@dataclass
class TypedValue:
    """A native value.

    ``value`` holds the Python value for ``type``: a str, int, bool, float or
    bytes, a list of those for leaf-lists, and the unscaled digits (or a list
    of them) for decimals. ``type_opts[0]`` is the integer width, or the
    precision of a decimal.
    """

    type: ValueType = ValueType.EMPTY
    value: Any = None
    type_opts: list[int] = field(default_factory=list)

    @property
    def _opt0(self) -> int:
        return int(self.type_opts[0]) if self.type_opts else 0

    def value_to_string(self) -> str:
        """Return the value rendered as text."""
        v = self.value
        match self.type:
            case ValueType.EMPTY:
                return ""
            case ValueType.STRING:
                return str(v)
            case ValueType.INT | ValueType.UINT:
                return str(int(v))
            case ValueType.BOOL:
                return _BOOL_TEXT[bool(v)]
            case ValueType.DECIMAL:
                return _format_decimal(int(v), self._opt0)
            case ValueType.FLOAT:
                return f"{float(v):f}"
            case ValueType.BYTES:
                return _format_bytes(v)
            case ValueType.LEAFLIST_STRING:
                return ",".join(str(x) for x in v)
            case ValueType.LEAFLIST_INT | ValueType.LEAFLIST_UINT:
                return ",".join(str(int(x)) for x in v)
            case ValueType.LEAFLIST_BOOL:
                return ",".join(_BOOL_TEXT[bool(x)] for x in v)
            case ValueType.LEAFLIST_DECIMAL:
                return ",".join(_format_decimal(int(x), self._opt0) for x in v)
            case ValueType.LEAFLIST_FLOAT:
                return ",".join(f"{float(x):f}" for x in v)
            case ValueType.LEAFLIST_BYTES:
                return ",".join(_format_bytes(x) for x in v)
        raise UnsupportedError(f"Unsupported type {self.type}")


@dataclass
class PathValue:
    """A value at a configuration path, possibly marked as deleted."""

    path: str = ""
    value: TypedValue = field(default_factory=TypedValue)
    deleted: bool = False


@dataclass
class ReadWritePath:
    """Metadata of a writable leaf of a device model."""

    path: str = ""
    value_type: ValueType = ValueType.EMPTY
    type_opts: list[int] = field(default_factory=list)
    description: str = ""
    units: str = ""
    is_a_key: bool = False
    attr_name: str = ""
    mandatory: bool = False
    default: str = ""
    range: list[str] = field(default_factory=list)
    length: list[str] = field(default_factory=list)


@dataclass
class ReadOnlySubPath:
    """Metadata of a read-only leaf below a read-only path of a device model."""

    sub_path: str = ""
    value_type: ValueType = ValueType.EMPTY
    type_opts: list[int] = field(default_factory=list)
    description: str = ""
    units: str = ""
    is_a_key: bool = False
    attr_name: str = ""