"""Model-path helpers: index handling, validation and model lookups."""

from __future__ import annotations

import re

from onosconfig.errors import InvalidError, NotFoundError
from onosconfig.model import ReadOnlySubPath, ReadWritePath, TypedValue, ValueType

MATCH_ON_INDEX = r"(\[.*?]).*?"
VALID_PATH_REGEXP = r"(/[a-zA-Z0-9:=\-\._\[\]]+)+"
INDEX_ALLOWED_CHARS = r"^([a-zA-Z0-9\*\-\._])+$"

_ON_INDEX = re.compile(MATCH_ON_INDEX)
_VALID_PATH = re.compile(VALID_PATH_REGEXP)
_INDEX_CHARS = re.compile(r"[a-zA-Z0-9\*\-\._]+")

ReadWritePathMap = dict[str, ReadWritePath]
NamespaceMap = dict[str, str]


class ReadOnlyPathMap(dict[str, dict[str, ReadOnlySubPath]]):
    """Read-only base paths mapped to their sub-paths and metadata."""

    def _full_paths(self):
        for base, sub_paths in self.items():
            for sub, meta in sub_paths.items():
                yield (base if sub == "/" else base + sub), meta

    def just_paths(self) -> list[str]:
        """Return every full read-only path."""
        return [full for full, _ in self._full_paths()]

    def type_for_path(self, path: str) -> ValueType:
        """Return the value type of a full read-only path."""
        for full, meta in self._full_paths():
            if full == path:
                return meta.value_type
        raise NotFoundError(f"path {path} not found in RO paths of model")


def _indices(path: str) -> list[str]:
    return _ON_INDEX.findall(path)


def remove_path_indices(path: str) -> str:
    """Remove the index parts of a path so it compares with a model path."""
    for index in _indices(path):
        path = path.replace(index, "", 1)
    return path


def anonymize_path_indices(path: str) -> str:
    """Replace every index value in a path with ``*``."""
    for index in _indices(path):
        parts = index.split("=")
        parts[-1] = "*]"
        path = path.replace(index, "=".join(parts), 1)
    return path


def check_path_index_is_valid(index: str) -> None:
    """Raise InvalidError unless the index value uses only allowed characters."""
    if not _INDEX_CHARS.fullmatch(index):
        raise InvalidError(
            f"index value '{index}' does not match pattern '{INDEX_ALLOWED_CHARS}'"
        )


def extract_index_names(path: str) -> tuple[list[str], list[str]]:
    """Return the index names and index values of a path, in order."""
    names: list[str] = []
    values: list[str] = []
    for index in _indices(path):
        eq = index.rfind("=")
        if eq < 0:
            raise InvalidError(f"index {index} in {path} has no value")
        names.append(index[1:eq])
        values.append(index[eq + 1:-1])
    return names, values


def find_path_from_model(
    path: str, rw_paths: ReadWritePathMap, exact: bool
) -> tuple[bool, ReadWritePath]:
    """Find the model entry for a path.

    Returns whether the match was exact and the matching entry. Without an
    exact match, and unless ``exact`` is set, the first model path that has
    the index-free path as a prefix is returned.
    """
    rw_path = rw_paths.get(anonymize_path_indices(path))
    if rw_path is not None:
        return True, rw_path
    if exact:
        raise InvalidError(
            f"unable to find exact match for RW model path {path}. "
            f"{len(rw_paths)} paths inspected"
        )

    search = remove_path_indices(path)
    if path.endswith("]"):
        names, _ = extract_index_names(path)
        search = f"{search}/{names[-1]}"

    for model_path, model_elem in rw_paths.items():
        if remove_path_indices(model_path).startswith(search):
            return False, model_elem

    raise InvalidError(
        f"unable to find RW model path {path} ( without index {search}). "
        f"{len(rw_paths)} paths inspected"
    )


def check_key_value(path: str, rw_path: ReadWritePath, val: TypedValue) -> None:
    """Check that a key attribute's value equals the key in its parent's index."""
    names, values = extract_index_names(path)
    if not names:
        return
    text = val.value_to_string()
    for name, value in zip(names, values):
        check_path_index_is_valid(value)
        if not rw_path.is_a_key or (rw_path.attr_name == name and value == text):
            return
    raise InvalidError(
        f"index attribute {rw_path.attr_name}={text} does not match {path}"
    )


def is_path_valid(path: str) -> None:
    """Raise InvalidError unless the path is slash-separated, allowed elements."""
    match = _VALID_PATH.search(path)
    found = match.group(0) if match else ""
    if path != found:
        raise InvalidError(f"invalid path {path}. Must match {VALID_PATH_REGEXP}")


def get_parent_path(path: str) -> str:
    """Return the immediate parent of a path; '' for a top-level path or '/'."""
    i = path.rfind("/")
    if i <= 0:
        return ""
    return path[:i]