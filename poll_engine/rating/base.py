"""
Rating model record.

Each rating system is one RatingModel value: a closed set of tagged variants
looked up by RatingSystem, never subclassed.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..models import RatingSystem

# Update functions mutate (winner_state, loser_state) in place.
ApplyUpdate = Callable[[Any, Any, bool, float], None]


def accept_any_outcome(winner_state: Any, is_draw: bool) -> None:
    pass


@dataclass(frozen=True)
class RatingModel:
    """Functions implementing one rating system over its own state type."""

    system: RatingSystem
    state_type: type
    create_state: Callable[[float], Any]
    apply_update: ApplyUpdate
    win_probability: Callable[[Any, Any], float]
    value: Callable[[Any], float]
    uncertainty: Callable[[Any], float]
    gap_scale: Callable[[Any], float]
    has_uncertainty: bool = True
    weighted_by_reliability: bool = False
    # Raises ValidationError for outcomes the model cannot represent
    check_outcome: Callable[[Any, bool], None] = accept_any_outcome
