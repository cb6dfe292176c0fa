"""Contract address extraction helpers."""

from __future__ import annotations

import re
from typing import Iterable

ADDRESS_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")
_FULL_ADDRESS = re.compile(r"^0x[a-fA-F0-9]{40}$")


def normalize_address(value: str) -> str:
    """Return the canonical lowercase form of an address, or "" if invalid."""
    raw = (value or "").strip()
    if not _FULL_ADDRESS.match(raw):
        return ""
    return raw.lower()


def extract_addresses(*sources: str | Iterable[str]) -> list[str]:
    """
    Collect every address-looking token from text sources.

    Each source is either a string or an iterable of strings (e.g. request URLs).
    Returns lowercase addresses, deduplicated, in first-seen order.
    """
    seen: dict[str, None] = {}
    for source in sources:
        chunks = [source] if isinstance(source, str) else list(source or [])
        for chunk in chunks:
            for match in ADDRESS_PATTERN.findall(chunk or ""):
                seen.setdefault(match.lower(), None)
    return list(seen)
