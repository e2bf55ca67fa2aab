"""Regular expressions built from wild-carded gNMI paths and change names."""

from __future__ import annotations

import re

_LEGAL_CHARS = r"a-zA-Z0-9_:,\-\."


def _anchor(query: str, exact: bool) -> re.Pattern[str]:
    return re.compile(f"^{query}$" if exact else f"^{query}")


def match_wildcard_regexp(query: str, exact: bool) -> re.Pattern[str]:
    """Compile a gNMI wild-carded path: ``*`` is one element, ``...`` any depth."""
    pattern = query.replace("[", r"\[")
    pattern = pattern.replace("*", f"[{_LEGAL_CHARS}]*?")
    pattern = pattern.replace("...", ".*")
    return _anchor(pattern, exact)


def match_wildcard_ch_name_regexp(query: str, exact: bool) -> re.Pattern[str]:
    """Compile a wild-carded name: ``?`` is one character, ``*`` any run."""
    pattern = query.replace("?", f"[{_LEGAL_CHARS}]{{1}}")
    pattern = pattern.replace("*", f"[{_LEGAL_CHARS}]*?")
    return _anchor(pattern, exact)