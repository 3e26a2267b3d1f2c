"""Content Engine - Risk scoring of safe-search classification results.

The classifier reports five labels (adult, violence, racy, medical, spoof),
each on the ordinal likelihood scale VERY_UNLIKELY..VERY_LIKELY. This engine
maps that vector to a 0-1 risk score and a block decision.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..type_defs import ContentAnalysis

_LIKELY_OR_ABOVE = frozenset({const.LIKELIHOOD_LIKELY, const.LIKELIHOOD_VERY_LIKELY})


def _label(annotation: Mapping[str, Any], key: str) -> str:
    value = annotation.get(key)
    return str(value) if value else const.LIKELIHOOD_UNKNOWN


def likelihood_weight(label: str) -> float:
    """Numeric weight of a likelihood label; unknown labels weigh 0."""
    return const.LIKELIHOOD_WEIGHTS.get(label, 0.0)


def risk_score(annotation: Mapping[str, Any]) -> float:
    """Weighted combination adult*0.5 + violence*0.3 + racy*0.2."""
    return (
        likelihood_weight(_label(annotation, const.SAFE_SEARCH_ADULT))
        * const.RISK_WEIGHT_ADULT
        + likelihood_weight(_label(annotation, const.SAFE_SEARCH_VIOLENCE))
        * const.RISK_WEIGHT_VIOLENCE
        + likelihood_weight(_label(annotation, const.SAFE_SEARCH_RACY))
        * const.RISK_WEIGHT_RACY
    )


def score_safe_search(annotation: Mapping[str, Any]) -> ContentAnalysis:
    """Build a ContentAnalysis from a raw five-label annotation.

    Content is blocked when adult or violence is LIKELY or above, or when
    racy is VERY_LIKELY.

    Example:
        >>> score_safe_search({"adult": "LIKELY", "violence": "UNLIKELY", "racy": "POSSIBLE"})
        {..., "risk_score": 0.49, "should_block": True}
    """
    adult = _label(annotation, const.SAFE_SEARCH_ADULT)
    violence = _label(annotation, const.SAFE_SEARCH_VIOLENCE)
    racy = _label(annotation, const.SAFE_SEARCH_RACY)

    is_adult = adult in _LIKELY_OR_ABOVE
    is_violent = violence in _LIKELY_OR_ABOVE

    return {
        "is_adult": is_adult,
        "is_violent": is_violent,
        "is_racy": racy in _LIKELY_OR_ABOVE,
        "adult": adult,
        "violence": violence,
        "racy": racy,
        "medical": _label(annotation, const.SAFE_SEARCH_MEDICAL),
        "spoof": _label(annotation, const.SAFE_SEARCH_SPOOF),
        "risk_score": risk_score(annotation),
        "should_block": is_adult
        or is_violent
        or racy == const.LIKELIHOOD_VERY_LIKELY,
    }


def severity_label(score: float) -> str:
    """HIGH RISK at 0.8 and above, MODERATE at 0.5 and above, else LOW."""
    if score >= const.RISK_THRESHOLD_HIGH:
        return const.SEVERITY_HIGH
    if score >= const.RISK_THRESHOLD_MODERATE:
        return const.SEVERITY_MODERATE
    return const.SEVERITY_LOW


def estimate_monthly_cost(images_per_month: int) -> float:
    """Classification cost for a month: first 1000 images free, then 1.50/1000."""
    billable = max(0, images_per_month - const.CLASSIFICATION_FREE_QUOTA)
    return round(billable / 1000 * const.CLASSIFICATION_PRICE_PER_THOUSAND, 2)
