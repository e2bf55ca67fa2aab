"""Building JSON trees from configuration path values, and pruning deleted paths."""

from __future__ import annotations

import base64
import json
import math
import struct
from collections.abc import Iterable, Mapping
from typing import Any

from onosconfig.errors import InvalidError
from onosconfig.gnmi import split_path
from onosconfig.model import PathValue, TypedValue, ValueType, Width

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def build_tree(values: Iterable[PathValue], json_rfc7951: bool = False) -> bytes:
    """Build an indented JSON tree from path values.

    Deleted paths and everything below them are left out. With
    ``json_rfc7951`` set, 64-bit integers, decimals and floats are written as
    strings, as RFC 7951 requires.
    """
    root: dict[str, Any] = {}
    for pv in prune_path_values(list(values), False):
        _add_path_to_tree(pv.path, pv.value, root, json_rfc7951)
    try:
        text = json.dumps(root, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False)
    except ValueError as err:
        raise InvalidError(f"unable to encode tree: {err}") from err
    for ch, escaped in _HTML_ESCAPES:
        text = text.replace(ch, escaped)
    return text.encode("utf-8")


def _add_path_to_tree(path: str, value: TypedValue, node: Any, rfc: bool) -> None:
    if not isinstance(node, dict):
        raise InvalidError(f"could not convert node {node!r} for {path}")
    elems = split_path(path)
    if not elems:
        raise InvalidError(f"no path elements in {path!r}")
    head = elems[0]
    if len(elems) == 1:
        _set_leaf(node, head, value, rfc)
        return

    refine = "/".join(elems[1:])
    if not refine:
        return
    refine = "/" + refine

    if "=" in head:
        _add_list_item(head, refine, value, node, rfc)
    elif head in node:
        _add_path_to_tree(refine, value, node[head], rfc)
    else:
        child: dict[str, Any] = {}
        _add_path_to_tree(refine, value, child, rfc)
        node[head] = child


def _parse_keys(elem: str) -> tuple[str, dict[str, str]]:
    brkt = elem.find("[")
    if brkt < 0:
        raise InvalidError(f"missing '[' in list element {elem}")
    list_name = elem[:brkt]
    key_map: dict[str, str] = {}
    key_string = elem[brkt:]
    while "=" in key_string:
        open_at = key_string.find("[")
        eq = key_string.find("=")
        close_at = key_string.find("]")
        if open_at < 0 or close_at < 0 or not open_at < eq < close_at:
            raise InvalidError(f"malformed list key in {elem}")
        key_map[key_string[open_at + 1:eq]] = key_string[eq + 1:close_at]
        key_string = key_string[close_at + 1:]
    return list_name, key_map


def _add_list_item(head: str, refine: str, value: TypedValue, node: dict, rfc: bool) -> None:
    list_name, key_map = _parse_keys(head)
    if list_name not in node:
        node[list_name] = []
    items = node[list_name]
    if not isinstance(items, list):
        raise InvalidError(f"Failed to convert list slice {list_name}")

    item: Any = None
    found = 0
    for idx, existing in enumerate(items):
        if not isinstance(existing, dict):
            raise InvalidError(f"Failed to convert list slice {idx}")
        for k, v in key_map.items():
            if k in existing:
                if _basic_str(existing[k]) == _basic_str(v):
                    found += 1
                    item = existing
                else:
                    found = 0
                    break

    is_new = found < len(key_map)
    if is_new:
        item = key_map
    _add_path_to_tree(refine, value, item, rfc)
    if is_new:
        items.append(item)


def _basic_str(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, str)):
        return str(v)
    return f"<{type(v).__name__} Value>"


def _to_float32(x: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def _float32(x: float) -> float:
    """Return the shortest decimal that reads back as the same 32-bit float."""
    f = _to_float32(float(x))
    if not math.isfinite(f) or f == 0:
        return f
    for prec in range(1, 10):
        candidate = float(f"{f:.{prec - 1}e}")
        if _to_float32(candidate) == f:
            return candidate
    return f


def _b64(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def _opt0(value: TypedValue) -> int:
    return int(value.type_opts[0]) if value.type_opts else 0


def _set_leaf(node: dict, name: str, value: TypedValue, rfc: bool) -> None:
    v = value.value
    wide = _opt0(value) > int(Width.THIRTY_TWO)
    match value.type:
        case ValueType.EMPTY:
            return
        case ValueType.STRING:
            node[name] = str(v)
        case ValueType.INT | ValueType.UINT:
            node[name] = value.value_to_string() if rfc and wide else int(v)
        case ValueType.DECIMAL:
            node[name] = value.value_to_string() if rfc else int(v) / 10 ** _opt0(value)
        case ValueType.FLOAT:
            node[name] = value.value_to_string() if rfc else _float32(v)
        case ValueType.BOOL:
            node[name] = bool(v)
        case ValueType.BYTES:
            node[name] = _b64(v)
        case ValueType.LEAFLIST_STRING:
            node[name] = [str(s) for s in v]
        case ValueType.LEAFLIST_INT | ValueType.LEAFLIST_UINT:
            node[name] = [str(int(i)) for i in v] if rfc and wide else [int(i) for i in v]
        case ValueType.LEAFLIST_BOOL:
            node[name] = [bool(b) for b in v]
        case ValueType.LEAFLIST_DECIMAL:
            scale = 10 ** _opt0(value)
            node[name] = [int(d) / scale for d in v]
        case ValueType.LEAFLIST_FLOAT:
            node[name] = [_float32(f) for f in v]
        case ValueType.LEAFLIST_BYTES:
            node[name] = [_b64(b) for b in v]
        case _:
            node[name] = f"unexpected {int(value.type)}"


def prune_path_values(paths: Iterable[PathValue], leave_top_deleted_paths: bool) -> list[PathValue]:
    """Return the paths in order, without deleted paths and their sub-paths.

    With ``leave_top_deleted_paths`` the top-most deleted path of each pruned
    sub-tree is kept as a tomb-stone.
    """
    pruned: list[PathValue] = []
    deleting_prefix = ""
    for pv in sorted(paths, key=lambda p: p.path):
        if pv.deleted and (not deleting_prefix or not pv.path.startswith(deleting_prefix)):
            deleting_prefix = pv.path
            if leave_top_deleted_paths:
                pruned.append(pv)
        if not deleting_prefix or not pv.path.startswith(deleting_prefix):
            pruned.append(pv)
            deleting_prefix = ""
    return pruned


def prune_path_map(
    path_map: Mapping[str, PathValue], leave_top_deleted_paths: bool
) -> dict[str, PathValue]:
    """Like prune_path_values, for a mapping keyed by path."""
    pruned = prune_path_values(list(path_map.values()), leave_top_deleted_paths)
    return {pv.path: pv for pv in pruned}