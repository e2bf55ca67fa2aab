"""Building path values and gNMI Set requests from native configuration changes."""

from __future__ import annotations

from collections.abc import Iterable

from onosconfig.errors import ConfigError, InvalidError
from onosconfig.gnmi import Path, SetRequest, Update, parse_gnmi_elements, split_path
from onosconfig.model import PathValue, TypedValue
from onosconfig.path import is_path_valid
from onosconfig.values import native_type_to_gnmi_typed_value


def new_change_value(path: str, value: TypedValue, delete: bool = False) -> PathValue:
    """Return a path value after checking that the path is valid."""
    is_path_valid(path)
    return PathValue(path=path, value=value, deleted=delete)


def path_values_to_gnmi_change(values: Iterable[PathValue], target: str) -> SetRequest:
    """Convert path values to a gNMI Set request addressed to ``target``."""
    deletes: list[Path] = []
    updates: list[Update] = []

    for path_value in values:
        parsed = parse_gnmi_elements(split_path(path_value.path))
        if path_value.deleted:
            deletes.append(Path(elem=parsed.elem))
            continue
        try:
            gnmi_value = native_type_to_gnmi_typed_value(path_value.value)
        except ConfigError as err:
            raise InvalidError(f"error converting {path_value.path}: {err}") from err
        updates.append(Update(path=Path(elem=parsed.elem), val=gnmi_value))

    return SetRequest(
        prefix=Path(target=target),
        delete=deletes,
        replace=[],
        update=updates,
    )