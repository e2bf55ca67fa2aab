"""Formatting of request bodies sent to, and responses read from, a policy agent."""

from __future__ import annotations

from onosconfig.errors import InvalidError


def _mask(text: str) -> str:
    # The policy agent cannot handle '-', so '_' is parked as '^' and '-' becomes '_'.
    return text.replace("_", "^").replace("-", "_")


def _unmask(text: str) -> str:
    return text.replace("_", "-").replace("^", "_")


def format_input(json_bytes: bytes | str, groups: list[str], target: str) -> str:
    """Wrap a JSON tree in an ``input`` object holding the groups and target."""
    body = json_bytes.decode("utf-8") if isinstance(json_bytes, (bytes, bytearray)) else json_bytes
    lines = [f'\t\t\t"{g}"' for g in groups]
    groups_text = "".join(line + ("," if i < len(lines) - 1 else "") + "\n"
                          for i, line in enumerate(lines))
    return (
        '{\n\t"input": {\n\t\t"groups":[\n'
        f"{_mask(groups_text)}\t\t],\n"
        f'\t\t"target":"{_mask(target)}",\n'
        f"{_mask(body[2:])}\n}}"
    )


def format_output(body: bytes | str) -> str:
    """Restore the masked characters; return '' for an empty result."""
    text = body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else body
    text = _unmask(text)
    if '"result":' not in text:
        raise InvalidError(f"Unexpected body from OPA: {text}")
    if '"result":[]' in text:
        return ""
    return text