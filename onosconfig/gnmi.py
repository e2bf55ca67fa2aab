"""gNMI path and value model, path parsing and human-readable rendering."""

from __future__ import annotations

import base64
import json
import math
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from onosconfig.errors import InvalidError


class ValueKind(Enum):
    """The variant held by a gNMI TypedValue."""

    STRING = "string_val"
    INT = "int_val"
    UINT = "uint_val"
    BOOL = "bool_val"
    BYTES = "bytes_val"
    FLOAT = "float_val"
    DECIMAL = "decimal_val"
    LEAFLIST = "leaflist_val"
    ANY = "any_val"
    JSON = "json_val"
    JSON_IETF = "json_ietf_val"
    ASCII = "ascii_val"
    PROTO_BYTES = "proto_bytes"


@dataclass
class PathElem:
    """One element of a gNMI path, with its optional list keys."""

    name: str
    key: dict[str, str] = field(default_factory=dict)


@dataclass
class Path:
    """A gNMI path: ``elem`` for v0.4 and later, ``element`` for v0.3."""

    elem: list[PathElem] = field(default_factory=list)
    element: list[str] = field(default_factory=list)
    target: str = ""
    origin: str = ""


@dataclass(frozen=True)
class Decimal64:
    """A fixed-point decimal: ``digits`` scaled by 10 ** -precision."""

    digits: int
    precision: int = 0


@dataclass
class ScalarArray:
    """The elements of a leaf-list value."""

    element: list[TypedValue] = field(default_factory=list)


def _text_bytes(data: bytes) -> str:
    parts = []
    for b in data:
        ch = chr(b)
        if ch == '"':
            parts.append('\\"')
        elif ch == "\\":
            parts.append("\\\\")
        elif ch == "\n":
            parts.append("\\n")
        elif ch == "\r":
            parts.append("\\r")
        elif ch == "\t":
            parts.append("\\t")
        elif 0x20 <= b < 0x7F:
            parts.append(ch)
        else:
            parts.append(f"\\x{b:02x}")
    return "".join(parts)


@dataclass(frozen=True)
class AnyValue:
    """An opaque protobuf ``Any`` message."""

    type_url: str = ""
    value: bytes = b""

    def __str__(self) -> str:
        fields = []
        if self.type_url:
            fields.append(f'type_url:"{_text_bytes(self.type_url.encode())}"')
        if self.value:
            fields.append(f'value:"{_text_bytes(self.value)}"')
        return " ".join(fields)


@dataclass
class TypedValue:
    """A gNMI value: its kind and the Python value for that kind."""

    kind: ValueKind
    value: Any = None


@dataclass
class Update:
    """A path and the value to set at it."""

    path: Path | None = None
    val: TypedValue | None = None


@dataclass
class SetRequest:
    """A gNMI Set request."""

    prefix: Path | None = None
    delete: list[Path] = field(default_factory=list)
    replace: list[Update] = field(default_factory=list)
    update: list[Update] = field(default_factory=list)


def parse_gnmi_elements(elms: list[str]) -> Path:
    """Build a gNMI path from user-supplied path elements."""
    parsed = []
    for e in elms:
        name, keys = _parse_element(e)
        parsed.append(PathElem(name=name, key=keys))
    return Path(elem=parsed)


def _parse_element(path_element: str) -> tuple[str, dict[str, str]]:
    name, key_start = _find_unescaped(path_element, "[")
    if key_start < 0:
        return name, {}
    if not name:
        raise InvalidError(f"failed to find element name in {path_element!r}")
    keys: dict[str, str] = {}
    key_part = path_element[key_start:]
    while key_part:
        k, v, key_part = _parse_key(key_part)
        keys[k] = v
    return name, keys


def _parse_key(s: str) -> tuple[str, str, str]:
    if s[0] != "[":
        raise InvalidError(f"failed to find opening '[' in {s!r}")
    k, i_eq = _find_unescaped(s[1:], "=")
    if i_eq < 0:
        raise InvalidError(f"failed to find '=' in {s!r}")
    if not k:
        raise InvalidError(f"failed to find key name in {s!r}")
    rhs = s[1 + i_eq + 1:]
    v, i_close = _find_unescaped(rhs, "]")
    if i_close < 0:
        raise InvalidError(f"failed to find ']' in {s!r}")
    if not v:
        raise InvalidError(f"failed to find key value in {s!r}")
    return k, v, rhs[i_close + 1:]


def _find_unescaped(s: str, find: str) -> tuple[str, int]:
    """Return the unescaped text before the first unescaped ``find`` and its raw index."""
    if "\\" not in s:
        i = s.find(find)
        if i < 0:
            return s, -1
        return s[:i], i
    out = []
    i = 0
    n = len(s)
    while i < n:
        ch = s[i]
        if ch == find:
            return "".join(out), i
        if ch == "\\" and i < n - 1:
            i += 1
            ch = s[i]
        out.append(ch)
        i += 1
    return "".join(out), -1


def split_paths(paths: list[str]) -> list[list[str]]:
    """Split several gNMI paths into their elements."""
    return [split_path(p) for p in paths]


def split_path(path: str) -> list[str]:
    """Split a gNMI path into its elements; no validation is done."""
    result = []
    if path.startswith("/"):
        path = path[1:]
    while path:
        i = _next_token_index(path)
        result.append(path[:i])
        path = path[i:]
        if path.startswith("/"):
            path = path[1:]
    return result


def _next_token_index(path: str) -> int:
    in_brackets = False
    escape = False
    for i, c in enumerate(path):
        if c == "[":
            in_brackets = True
            escape = False
        elif c == "]":
            if not escape:
                in_brackets = False
            escape = False
        elif c == "\\":
            escape = not escape
        elif c == "/":
            if not in_brackets and not escape:
                return i
            escape = False
        else:
            escape = False
    return len(path)


def _safe(s: str, esc: str) -> str:
    return "".join("\\" + c if c in (esc, "\\") else c for c in s)


def str_path(path: Path | None) -> str:
    """Render a gNMI path as text, e.g. ``/a/b/c[e=f]``."""
    if path is None:
        return "/"
    if path.elem:
        return str_path_elem(path.elem)
    if path.element:
        return "/" + "/".join(path.element)
    return "/"


def str_path_elem(path_elem: list[PathElem]) -> str:
    """Render path elements as text, keys in alphabetical order."""
    parts = []
    for elm in path_elem:
        parts.append("/" + _safe(elm.name, "/"))
        for k in sorted(elm.key):
            parts.append(f"[{k}={_safe(elm.key[k], ']')}]")
    return "".join(parts)


def str_val(val: TypedValue) -> str:
    """Return a human-readable string for a gNMI value."""
    v = val.value
    match val.kind:
        case ValueKind.STRING | ValueKind.ASCII:
            return v
        case ValueKind.JSON | ValueKind.JSON_IETF:
            return _str_json(v)
        case ValueKind.INT | ValueKind.UINT:
            return str(int(v))
        case ValueKind.BOOL:
            return "true" if v else "false"
        case ValueKind.BYTES | ValueKind.PROTO_BYTES:
            return base64.b64encode(bytes(v)).decode("ascii")
        case ValueKind.DECIMAL:
            return _str_decimal64(v)
        case ValueKind.FLOAT:
            return _format_float32(float(v))
        case ValueKind.LEAFLIST:
            return "[" + ", ".join(str_val(e) for e in v.element) + "]"
        case ValueKind.ANY:
            return "<nil>" if v is None else str(v)
    raise TypeError(f"unsupported value kind {val.kind!r}")


def _str_json(raw: bytes | str) -> str:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, (bytes, bytearray)) else raw
    try:
        json.loads(text)
    except ValueError as err:
        return f"(error unmarshalling json: {err})\n" + text
    return _indent_json(text)


def _indent_json(text: str) -> str:
    body = text.lstrip(" \t\r\n")
    stripped = body.rstrip(" \t\r\n")
    trailing = body[len(stripped):]
    out: list[str] = []
    depth = 0
    in_str = False
    esc = False
    need_indent = False

    def newline() -> None:
        out.append("\n" + "  " * depth)

    for ch in stripped:
        if in_str:
            out.append(ch)
            if esc:
                esc = False
            elif ch == "\\":
                esc = True
            elif ch == '"':
                in_str = False
            continue
        if ch in " \t\r\n":
            continue
        if need_indent:
            need_indent = False
            if ch in "]}":
                out.append(ch)
                continue
            depth += 1
            newline()
        if ch == '"':
            in_str = True
            out.append(ch)
        elif ch in "{[":
            out.append(ch)
            need_indent = True
        elif ch == ",":
            out.append(ch)
            newline()
        elif ch == ":":
            out.append(": ")
        elif ch in "]}":
            depth -= 1
            newline()
            out.append(ch)
        else:
            out.append(ch)
    return "".join(out) + trailing


def _str_decimal64(d: Decimal64) -> str:
    if d.precision > 0:
        div = 10 ** d.precision
        q, r = divmod(abs(d.digits), div)
        whole = -q if d.digits < 0 else q
        frac = r
    else:
        whole = d.digits
        frac = 0
    return f"{whole}.{frac}"


def _to_float32(x: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def _format_float32(x: float) -> str:
    """Format like the shortest 'g' rendering of a 32-bit float."""
    f = _to_float32(x)
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "+Inf" if f > 0 else "-Inf"
    if f == 0:
        return "-0" if math.copysign(1.0, f) < 0 else "0"
    text = f"{f:.8e}"
    for prec in range(1, 10):
        candidate = f"{f:.{prec - 1}e}"
        if _to_float32(float(candidate)) == f:
            text = candidate
            break
    mantissa, exp_text = text.split("e")
    neg = mantissa.startswith("-")
    digits = mantissa.lstrip("-").replace(".", "").rstrip("0") or "0"
    exp = int(exp_text)
    sign = "-" if neg else ""
    if exp < -4 or exp >= 6:
        result = digits[0]
        if len(digits) > 1:
            result += "." + digits[1:]
        exp_sign = "-" if exp < 0 else "+"
        return f"{sign}{result}e{exp_sign}{abs(exp):02d}"
    dp = exp + 1
    if dp > 0:
        whole = digits[:dp].ljust(dp, "0")
        frac = digits[dp:]
    else:
        whole = "0"
        frac = "0" * (-dp) + digits
    return sign + whole + ("." + frac if frac else "")