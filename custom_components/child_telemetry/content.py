# File: content.py
"""Content screening service wrapper.

The image classifier itself is an external collaborator; this module only
calls it and scores what comes back. Unlike the subscription managers, a
failed analysis is an explicit request that the caller must handle, so it
raises ContentAnalysisError.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

from homeassistant.exceptions import HomeAssistantError

from . import const
from .engines.content_engine import score_safe_search, severity_label

if TYPE_CHECKING:
    from .type_defs import ContentAnalysis


class ContentAnalysisError(HomeAssistantError):
    """Raised when an image cannot be classified."""


class ContentClassifier(Protocol):
    """External safe-search classifier."""

    async def async_classify(self, image: bytes | str) -> Mapping[str, Any] | None:
        """Return the five-label likelihood annotation for an image.

        Keys: adult, violence, racy, medical, spoof. Values are likelihood
        names such as "LIKELY". None means the service returned no annotation.
        """


async def async_analyze_content(
    classifier: ContentClassifier, image: bytes | str
) -> ContentAnalysis:
    """Classify an image and score the result.

    Args:
        classifier: Safe-search classifier
        image: Raw bytes or base64 text, passed through unchanged

    Raises:
        ContentAnalysisError: If the classifier fails or returns no annotation
    """
    const.LOGGER.debug("Content screening: classifying image")
    try:
        annotation = await classifier.async_classify(image)
    except ContentAnalysisError:
        raise
    except Exception as err:  # pylint: disable=broad-except
        const.LOGGER.error("Content screening: classifier error: %s", err)
        raise ContentAnalysisError(f"Content analysis failed: {err}") from err

    if not isinstance(annotation, Mapping):
        raise ContentAnalysisError(
            "Content analysis failed: no safe-search annotation returned"
        )

    analysis = score_safe_search(annotation)
    const.LOGGER.debug(
        "Content screening: risk %.2f (%s), block=%s",
        analysis["risk_score"],
        severity_label(analysis["risk_score"]),
        analysis["should_block"],
    )
    return analysis
