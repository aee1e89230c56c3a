"""
Elo rating model.

Standard logistic expectation with divisor 400; no uncertainty term.
"""

from ..models import EloState, RatingSystem
from .base import RatingModel

ELO_DIVISOR = 400.0


def create_state(timestamp: float) -> EloState:
    return EloState(timestamp=timestamp)


def expected_score(a: EloState, b: EloState) -> float:
    """Probability that a beats b."""
    return 1.0 / (1.0 + 10.0 ** ((b.rating - a.rating) / ELO_DIVISOR))


def apply_update(winner: EloState, loser: EloState, is_draw: bool, weight: float) -> None:
    expected_winner = expected_score(winner, loser)
    expected_loser = 1.0 - expected_winner
    actual_winner, actual_loser = (0.5, 0.5) if is_draw else (1.0, 0.0)

    winner.rating += weight * winner.k_factor * (actual_winner - expected_winner)
    loser.rating += weight * loser.k_factor * (actual_loser - expected_loser)


MODEL = RatingModel(
    system=RatingSystem.ELO,
    state_type=EloState,
    create_state=create_state,
    apply_update=apply_update,
    win_probability=expected_score,
    value=lambda state: state.rating,
    uncertainty=lambda state: 0.0,
    gap_scale=lambda state: ELO_DIVISOR,
    has_uncertainty=False,
)
