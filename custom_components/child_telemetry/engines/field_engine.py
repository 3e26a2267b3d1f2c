"""Field Engine - Tolerant extraction of typed values from raw records.

Producers write the same logical field under different names and units
depending on their schema generation (`usageMinutes` vs `usageSeconds` vs
`usageMillis`, `isBlocked` vs `blocked` vs `allowed`). Every normalizer in the
integration reads raw records through these helpers with an ordered list of
candidates, so the priority order of aliases is declared once in const.py.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.math_utils import is_finite_number, parse_duration_text

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..type_defs import RawRecord

# (field name, unit divisor to minutes)
NumberCandidate = tuple[str, float]
# (field name, inverted)
FlagCandidate = tuple[str, bool]


def resolve_number(
    record: RawRecord, candidates: Sequence[NumberCandidate]
) -> float | None:
    """Return the first finite numeric candidate divided by its unit divisor.

    Args:
        record: Raw producer record
        candidates: Ordered (field, divisor) pairs, e.g.
                    (("usageMinutes", 1), ("usageSeconds", 60), ("usageMillis", 60000))

    Returns:
        Value in canonical units, or None if no candidate holds a number.

    Example:
        >>> resolve_number({"usageSeconds": 5400}, const.APP_USAGE_CANDIDATES)
        90.0
    """
    for key, divisor in candidates:
        value = record.get(key)
        if is_finite_number(value):
            return value / divisor
    return None


def resolve_minutes(
    record: RawRecord,
    candidates: Sequence[NumberCandidate],
    text_keys: Sequence[str] = (),
) -> float:
    """Resolve a duration in minutes with free-text and zero fallbacks.

    Numeric candidates are tried first, then the first string among
    `text_keys` is parsed as "<n>h <n>m". Final fallback is 0.
    """
    minutes, _ = resolve_minutes_with_text(record, candidates, text_keys)
    return minutes


def resolve_minutes_with_text(
    record: RawRecord,
    candidates: Sequence[NumberCandidate],
    text_keys: Sequence[str] = (),
) -> tuple[float, str | None]:
    """Resolve minutes and also return the raw text it was parsed from.

    Returns:
        (minutes, source_text) where source_text is None unless the value came
        from a free-text field. Callers use it to keep the producer's label.
    """
    numeric = resolve_number(record, candidates)
    if numeric is not None:
        return numeric, None

    for key in text_keys:
        value = record.get(key)
        if isinstance(value, str):
            return parse_duration_text(value), value

    return 0.0, None


def resolve_string(
    record: RawRecord, keys: Iterable[str], default: str | None = None
) -> str | None:
    """Return the first string field that is not blank."""
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return default


def resolve_optional_number(record: RawRecord, keys: Iterable[str]) -> float | None:
    """Return the first finite number among `keys` without unit conversion."""
    return resolve_number(record, [(key, 1) for key in keys])


def resolve_bool(record: RawRecord, keys: Iterable[str]) -> bool | None:
    """Return the first real boolean among `keys`."""
    for key in keys:
        value = record.get(key)
        if isinstance(value, bool):
            return value
    return None


def resolve_flag(
    record: RawRecord,
    candidates: Sequence[FlagCandidate],
    status_keys: Sequence[str] = (),
    status_value: str = "",
    default: bool = False,
) -> bool:
    """Resolve a status flag from boolean aliases and status strings.

    Args:
        record: Raw producer record
        candidates: Ordered (field, inverted) pairs; the first boolean wins
        status_keys: String fields compared case-insensitively to status_value
        status_value: The status string that means True
        default: Returned when nothing matches

    Example:
        >>> resolve_flag({"allowed": False}, const.BLOCKED_FLAG_CANDIDATES)
        True
    """
    for key, inverted in candidates:
        value = record.get(key)
        if isinstance(value, bool):
            return not value if inverted else value

    for key in status_keys:
        value = record.get(key)
        if isinstance(value, str):
            return value.lower() == status_value.lower()

    return default


def resolve_blocked(record: RawRecord) -> bool:
    """Return whether an app record is blocked.

    Alias priority: isBlocked, blocked, !allowed, status == "blocked",
    mode == "blocked"; default False.
    """
    return resolve_flag(
        record,
        const.BLOCKED_FLAG_CANDIDATES,
        const.BLOCKED_STATUS_FIELDS,
        const.APP_STATUS_BLOCKED,
    )


def infer_category(
    record: RawRecord, name: str, package_name: str | None = None
) -> str:
    """Return the explicit category or infer one from the app identity.

    Inference lowercases the package name (or the display name when there is
    no package) and walks const.CATEGORY_KEYWORDS in order; the first group
    with a keyword contained in it wins.

    Examples:
        infer_category({}, "YouTube") → "Entertainment"
        infer_category({}, "Chat", "com.instagram.android") → "Social Media"
        infer_category({"category": "Books"}, "Kindle") → "Books"
    """
    explicit = record.get("category")
    if isinstance(explicit, str) and explicit.strip():
        return explicit

    key = (package_name or name or "").lower()
    for category, keywords in const.CATEGORY_KEYWORDS:
        if any(keyword in key for keyword in keywords):
            return category

    return const.CATEGORY_UNCATEGORIZED
