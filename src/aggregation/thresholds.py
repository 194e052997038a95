"""Confidence thresholds shared by matching, routing and review callers.

These are product policy, not tuning knobs: the matching floor, the
display cutoff and the auto-accept cutoff are read by several callers and
must agree everywhere, so they live here as named constants.
"""

from typing import Iterable, TypeVar

# Below this a suggestion is not shown at all (e.g. owner-suggestion badges).
DISPLAY_THRESHOLD = 0.5

# Matches below this are dropped by every matcher; the rubric's own
# "not a real match" band.
MATCH_CONFIDENCE_FLOOR = 0.6

# At or above this a suggestion is pre-selected for the reviewer.
AUTO_ACCEPT_THRESHOLD = 0.8

T = TypeVar("T")


def is_displayable(confidence: float | None) -> bool:
    return confidence is not None and confidence >= DISPLAY_THRESHOLD


def is_auto_accept(confidence: float | None) -> bool:
    return confidence is not None and confidence >= AUTO_ACCEPT_THRESHOLD


def passes_match_floor(confidence: float | None) -> bool:
    return confidence is not None and confidence >= MATCH_CONFIDENCE_FLOOR


def select_auto_accepted(candidates: Iterable[T]) -> list[T]:
    """Candidates (anything with ``.confidence``) that should be pre-selected."""
    return [c for c in candidates if is_auto_accept(getattr(c, "confidence", None))]
