from __future__ import annotations

import re

_first_int_re = re.compile(r"\d+")
_session_suffix_re = re.compile(r" - Session \d+$")
_cancelled_re = re.compile(r"cancell?ed", re.IGNORECASE)


def extract_match_number(name: str | None) -> int:
    """Return the first integer in a match display name ("Q12" -> 12, "SF 2-1" -> 2)."""

    if not name:
        return 0
    m = _first_int_re.search(name)
    return int(m.group(0)) if m else 0


def strip_session_suffix(name: str) -> str:
    return _session_suffix_re.sub("", name)


def session_name(name: str, session_number: int) -> str:
    return f"{name} - Session {session_number}"


def looks_cancelled(name: str) -> bool:
    return bool(_cancelled_re.search(name))
