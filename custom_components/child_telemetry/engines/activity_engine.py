"""Activity Engine - Normalization and freshest-wins merge of the current app.

Two producers report the foreground app: a collection of session-like records
and an embedded field on the child's root document. Both are normalized the
same way here and merged with a commutative reducer so the result does not
depend on which source delivered last.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import coerce_first_datetime
from .field_engine import resolve_number, resolve_string

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import NormalizedActivity, RawRecord

_EPOCH = datetime.fromtimestamp(0, UTC)


def normalize_current_app(
    doc_id: str | None, record: RawRecord | None
) -> NormalizedActivity | None:
    """Normalize one raw current-app record.

    Returns None only when there is no record at all. A record with no usable
    name still produces an activity named const.UNKNOWN_APP_NAME.
    """
    if not record:
        return None

    return {
        "id": doc_id,
        "name": resolve_string(record, const.ACTIVITY_NAME_FIELDS)
        or const.UNKNOWN_APP_NAME,
        "package_name": resolve_string(record, const.ACTIVITY_PACKAGE_FIELDS),
        "category": resolve_string(record, const.ACTIVITY_CATEGORY_FIELDS),
        "icon_url": resolve_string(record, const.ICON_URL_FIELDS),
        "started_at": coerce_first_datetime(record, const.ACTIVITY_STARTED_FIELDS),
        "last_updated": coerce_first_datetime(record, const.ACTIVITY_UPDATED_FIELDS),
        "duration_minutes": resolve_number(
            record, const.ACTIVITY_DURATION_CANDIDATES
        ),
    }


def freshness(activity: NormalizedActivity) -> datetime:
    """Comparison key: last_updated, else started_at, else the epoch."""
    return activity["last_updated"] or activity["started_at"] or _EPOCH


def pick_fresher(
    candidate: NormalizedActivity | None, incumbent: NormalizedActivity | None
) -> NormalizedActivity | None:
    """Return whichever activity is fresher.

    - None never replaces a present value
    - Ties keep the incumbent, so re-delivering the same record is a no-op
    """
    if candidate is None:
        return incumbent
    if incumbent is None:
        return candidate
    return candidate if freshness(candidate) > freshness(incumbent) else incumbent


def freshest_of(activities: Iterable[NormalizedActivity]) -> NormalizedActivity | None:
    """Reduce a snapshot of session records to its most recently updated one."""
    winner: NormalizedActivity | None = None
    for activity in activities:
        winner = pick_fresher(activity, winner)
    return winner


def embedded_current_app(root_record: RawRecord | None) -> NormalizedActivity | None:
    """Normalize the `currentApp` object embedded on a child root document."""
    if not root_record:
        return None
    embedded = root_record.get(const.FIELD_EMBEDDED_CURRENT_APP)
    if not isinstance(embedded, Mapping) or not embedded:
        return None
    return normalize_current_app("childDoc", embedded)
