"""Phone number normalization used for storage and duplicate detection.

Numbers are mapped to a ``+``-prefixed, country-coded form. Indonesian local
numbers (``08...``) and numbers written with the ``62`` country code but no
plus sign are recognized explicitly; any other bare digit sequence is assumed
to already carry its country code.
"""

from __future__ import annotations

import re

INDONESIA_COUNTRY_CODE = "62"
MATCH_FRAGMENT_LENGTH = 9

_LOCAL_FORMAT = re.compile(r"^0([1-9][0-9]{8,11})$")


def _strip_phone(raw: str) -> str:
    text = raw.strip()
    digits = "".join(ch for ch in text if ch.isdigit() and ch.isascii())
    if text.startswith("+"):
        return f"+{digits}"
    return digits


def normalize_phone(raw: str | None) -> str | None:
    """Return the canonical ``+<country><number>`` form, or None when no digits remain.

    Examples:
        081234567890     -> +6281234567890
        6281234567890    -> +6281234567890
        +62 812-3456-7890 -> +6281234567890
        1 202 555 1234   -> +12025551234
    """
    if not raw:
        return None

    cleaned = _strip_phone(str(raw))
    digits = cleaned.lstrip("+")
    if not digits:
        return None

    if cleaned.startswith("+"):
        return cleaned

    local = _LOCAL_FORMAT.match(cleaned)
    if local:
        return f"+{INDONESIA_COUNTRY_CODE}{local.group(1)}"

    # 62xxxxxxxxx and other bare numbers already carry their country code
    return f"+{cleaned}"


def normalize_for_comparison(raw: str | None) -> str | None:
    """Canonical form without its leading ``+``, so legacy rows stored without it still match."""
    normalized = normalize_phone(raw)
    if normalized is None:
        return None
    return normalized[1:] if normalized.startswith("+") else normalized


def phone_match_fragment(comparison_phone: str) -> str:
    # shorter numbers fall back to the whole string
    return comparison_phone[-MATCH_FRAGMENT_LENGTH:]
