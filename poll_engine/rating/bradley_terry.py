"""
Bradley-Terry rating models.

Two variants share the logistic preference model:

- Plain Bradley-Terry: logistic with divisor beta, gradient step on mu and a
  variance reduction of gamma * p * (1 - p) on sigma.
- Crowd Bradley-Terry: unscaled logistic, step size grows slowly with the
  number of comparisons and is multiplied by the annotator's reliability;
  beta shrinks geometrically and serves as the uncertainty.

Both floor their uncertainty at UNCERTAINTY_FLOOR and never let it grow.
"""

import math

from ..models import BradleyTerryState, CrowdState, RatingSystem, UNCERTAINTY_FLOOR
from .base import RatingModel

CROWD_MAX_GAMMA = 0.5
CROWD_GAMMA_GROWTH = 0.05
CROWD_BETA_DECAY = 0.9


def _logistic(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


def _outcome(is_draw: bool) -> float:
    return 0.5 if is_draw else 1.0


def bt_win_probability(a: BradleyTerryState, b: BradleyTerryState) -> float:
    return _logistic((a.mu - b.mu) / a.beta)


def bt_apply_update(
    winner: BradleyTerryState, loser: BradleyTerryState, is_draw: bool, weight: float
) -> None:
    p = bt_win_probability(winner, loser)
    mu_delta = weight * winner.gamma * (_outcome(is_draw) - p)
    variance_delta = weight * winner.gamma * p * (1.0 - p)

    winner.mu += mu_delta
    loser.mu -= mu_delta
    for state in (winner, loser):
        shrunk = math.sqrt(max(UNCERTAINTY_FLOOR ** 2, state.sigma ** 2 - variance_delta))
        state.sigma = min(state.sigma, shrunk)


def dynamic_gamma(state: CrowdState) -> float:
    """Learning rate that grows with experience, capped at CROWD_MAX_GAMMA."""
    return min(CROWD_MAX_GAMMA, state.gamma + CROWD_GAMMA_GROWTH * math.log(state.comparisons + 1))


def crowd_win_probability(a: CrowdState, b: CrowdState) -> float:
    return _logistic(a.mu - b.mu)


def crowd_apply_update(winner: CrowdState, loser: CrowdState, is_draw: bool, weight: float) -> None:
    p = crowd_win_probability(winner, loser)
    step = dynamic_gamma(winner) * (_outcome(is_draw) - p) * weight

    winner.mu += step / winner.beta
    loser.mu -= step / loser.beta
    for state in (winner, loser):
        state.beta = min(state.beta, max(state.beta * CROWD_BETA_DECAY, UNCERTAINTY_FLOOR))


BRADLEY_TERRY = RatingModel(
    system=RatingSystem.BRADLEY_TERRY,
    state_type=BradleyTerryState,
    create_state=lambda timestamp: BradleyTerryState(timestamp=timestamp),
    apply_update=bt_apply_update,
    win_probability=bt_win_probability,
    value=lambda state: state.mu,
    uncertainty=lambda state: state.sigma,
    gap_scale=lambda state: 1.0,
)

CROWD = RatingModel(
    system=RatingSystem.CROWD,
    state_type=CrowdState,
    create_state=lambda timestamp: CrowdState(timestamp=timestamp),
    apply_update=crowd_apply_update,
    win_probability=crowd_win_probability,
    value=lambda state: state.mu,
    uncertainty=lambda state: state.beta,
    gap_scale=lambda state: 1.0,
    weighted_by_reliability=True,
)
