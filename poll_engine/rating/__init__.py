"""
Rating models.

Provides the interchangeable per-option rating systems used by pairwise polls.

Available systems:
- Elo: logistic expectation with divisor 400 and a fixed k-factor
- Bradley-Terry: logistic with divisor beta and shrinking sigma
- Crowd Bradley-Terry: reliability-weighted steps and shrinking beta
- TrueSkill: Gaussian update via the trueskill package
"""

from .base import RatingModel
from .registry import (
    RATING_MODELS,
    check_outcome,
    ensure_participant,
    get_rankings,
    get_rating_value,
    get_uncertainty,
    initialize,
    model_for,
    model_for_state,
    update,
)

__all__ = [
    "RATING_MODELS",
    "RatingModel",
    "check_outcome",
    "ensure_participant",
    "get_rankings",
    "get_rating_value",
    "get_uncertainty",
    "initialize",
    "model_for",
    "model_for_state",
    "update",
]
