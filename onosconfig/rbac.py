"""Simple group-based authorisation of configuration changes."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence

from onosconfig.errors import UnauthenticatedError

ADMIN_GROUPS_ENV = "ADMINGROUPS"
_SEPARATOR = ";"


def _first_value(metadata: Mapping[str, str | Sequence[str]], key: str) -> str:
    for name, value in metadata.items():
        if name.lower() == key:
            if isinstance(value, str):
                return value
            return value[0] if value else ""
    return ""


def temporary_evaluate(metadata: Mapping[str, str | Sequence[str]]) -> str:
    """Return the first caller group found in ``$ADMINGROUPS``.

    The ``groups`` metadata entry holds groups separated by ';'. A group is
    accepted when it occurs anywhere in the admin groups text.
    """
    admin_groups = os.environ.get(ADMIN_GROUPS_ENV, "")
    for group in _first_value(metadata, "groups").split(_SEPARATOR):
        if group in admin_groups:
            return group
    raise UnauthenticatedError(f"Set allowed only for {admin_groups}")