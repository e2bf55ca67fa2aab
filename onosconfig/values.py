"""Conversion between gNMI typed values and native configuration values."""

from __future__ import annotations

import math
import struct

from onosconfig import gnmi
from onosconfig.errors import InvalidError, UnsupportedError
from onosconfig.gnmi import Decimal64, ScalarArray, ValueKind
from onosconfig.model import ReadWritePath, TypedValue, ValueType, Width


def _to_float32(x: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def _type_opt0(model_path: ReadWritePath | None) -> int:
    if model_path is not None and model_path.type_opts:
        return int(model_path.type_opts[0])
    return 0


def gnmi_typed_value_to_native_type(
    gnmi_tv: gnmi.TypedValue, model_path: ReadWritePath | None = None
) -> TypedValue:
    """Convert a gNMI value to a native value.

    Integer widths (and a leaf-list's width or decimal precision) come from the
    first type option of ``model_path`` when one is given.
    """
    v = gnmi_tv.value
    opt0 = _type_opt0(model_path)
    match gnmi_tv.kind:
        case ValueKind.STRING | ValueKind.ASCII:
            return TypedValue(ValueType.STRING, str(v))
        case ValueKind.INT:
            return TypedValue(ValueType.INT, int(v), [opt0 or int(Width.THIRTY_TWO)])
        case ValueKind.UINT:
            return TypedValue(ValueType.UINT, int(v), [opt0 or int(Width.THIRTY_TWO)])
        case ValueKind.BOOL:
            return TypedValue(ValueType.BOOL, bool(v))
        case ValueKind.BYTES:
            return TypedValue(ValueType.BYTES, bytes(v))
        case ValueKind.DECIMAL:
            return TypedValue(ValueType.DECIMAL, int(v.digits), [int(v.precision) & 0xFF])
        case ValueKind.FLOAT:
            return TypedValue(ValueType.FLOAT, float(v))
        case ValueKind.LEAFLIST:
            return _handle_leaf_list(v, opt0 & 0xFF)
    raise UnsupportedError(f"not yet supported {gnmi_tv.kind.value}: {v!r}")


def _handle_leaf_list(leaf_list: ScalarArray, type_opt0: int) -> TypedValue:
    """Convert a leaf-list; ``type_opt0`` is a width for integers or a decimal precision."""
    strings: list[str] = []
    ints: list[int] = []
    uints: list[int] = []
    bools: list[bool] = []
    byte_values: list[bytes] = []
    digits: list[int] = []
    floats: list[float] = []
    precision = type_opt0

    elements = leaf_list.element if leaf_list is not None else []
    for leaf in elements:
        u = leaf.value
        match leaf.kind:
            case ValueKind.STRING | ValueKind.ASCII:
                strings.append(str(u))
            case ValueKind.INT:
                ints.append(int(u))
            case ValueKind.UINT:
                uints.append(int(u))
            case ValueKind.BOOL:
                bools.append(bool(u))
            case ValueKind.BYTES:
                byte_values.append(bytes(u))
            case ValueKind.DECIMAL:
                digits.append(int(u.digits))
                precision = int(u.precision) & 0xFF
            case ValueKind.FLOAT:
                floats.append(float(u))
            case _:
                raise UnsupportedError(f"leaf list type Not yet supported {leaf.kind.value}")

    width = type_opt0 if type_opt0 > 0 else int(Width.THIRTY_TWO)

    if strings:
        return TypedValue(ValueType.LEAFLIST_STRING, strings)
    if ints:
        return TypedValue(ValueType.LEAFLIST_INT, ints, [width])
    if uints:
        return TypedValue(ValueType.LEAFLIST_UINT, uints, [width])
    if bools:
        return TypedValue(ValueType.LEAFLIST_BOOL, bools)
    if byte_values:
        return TypedValue(ValueType.LEAFLIST_BYTES, byte_values)
    if digits:
        return TypedValue(ValueType.LEAFLIST_DECIMAL, digits, [precision])
    if floats:
        return TypedValue(ValueType.LEAFLIST_FLOAT, floats)
    raise InvalidError("empty leaf list given")


def _leaf_list(kind: ValueKind, items) -> gnmi.TypedValue:
    return gnmi.TypedValue(
        ValueKind.LEAFLIST,
        ScalarArray(element=[gnmi.TypedValue(kind, item) for item in items]),
    )


def native_type_to_gnmi_typed_value(typed_value: TypedValue) -> gnmi.TypedValue:
    """Convert a native value to a gNMI value."""
    v = typed_value.value
    precision = int(typed_value.type_opts[0]) if typed_value.type_opts else 0
    match typed_value.type:
        case ValueType.EMPTY:
            return gnmi.TypedValue(ValueKind.ANY, None)
        case ValueType.STRING:
            return gnmi.TypedValue(ValueKind.STRING, str(v))
        case ValueType.INT:
            return gnmi.TypedValue(ValueKind.INT, int(v))
        case ValueType.UINT:
            return gnmi.TypedValue(ValueKind.UINT, int(v))
        case ValueType.BOOL:
            return gnmi.TypedValue(ValueKind.BOOL, bool(v))
        case ValueType.DECIMAL:
            return gnmi.TypedValue(ValueKind.DECIMAL, Decimal64(int(v), precision))
        case ValueType.FLOAT:
            return gnmi.TypedValue(ValueKind.FLOAT, _to_float32(float(v)))
        case ValueType.BYTES:
            return gnmi.TypedValue(ValueKind.BYTES, bytes(v))
        case ValueType.LEAFLIST_STRING:
            return _leaf_list(ValueKind.STRING, (str(s) for s in v))
        case ValueType.LEAFLIST_INT:
            return _leaf_list(ValueKind.INT, (int(i) for i in v))
        case ValueType.LEAFLIST_UINT:
            return _leaf_list(ValueKind.UINT, (int(u) for u in v))
        case ValueType.LEAFLIST_BOOL:
            return _leaf_list(ValueKind.BOOL, (bool(b) for b in v))
        case ValueType.LEAFLIST_DECIMAL:
            return _leaf_list(ValueKind.DECIMAL, (Decimal64(int(d), precision) for d in v))
        case ValueType.LEAFLIST_FLOAT:
            return _leaf_list(ValueKind.FLOAT, (_to_float32(float(f)) for f in v))
        case ValueType.LEAFLIST_BYTES:
            return _leaf_list(ValueKind.BYTES, (bytes(b) for b in v))
    raise UnsupportedError(f"Unsupported type {int(typed_value.type)}")