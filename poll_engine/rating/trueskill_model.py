"""
TrueSkill rating model.

Uses the trueskill package for the Gaussian 1-vs-1 update. Each update builds
an environment from the winner's beta, tau and draw probability, so the draw
margin follows the option's own configuration instead of global state.
"""

import math

from trueskill import Rating, TrueSkill, rate_1vs1  # type: ignore[import-untyped]

from ..exceptions import ValidationError
from ..models import RatingSystem, TrueSkillState, TS_INITIAL_MU, TS_INITIAL_SIGMA, UNCERTAINTY_FLOOR
from .base import RatingModel


def _environment(state: TrueSkillState) -> TrueSkill:
    return TrueSkill(
        mu=TS_INITIAL_MU,
        sigma=TS_INITIAL_SIGMA,
        beta=state.beta,
        tau=state.tau,
        draw_probability=state.draw_probability,
    )


def win_probability(a: TrueSkillState, b: TrueSkillState) -> float:
    """Probability that a beats b under the Gaussian performance model."""
    env = _environment(a)
    denominator = math.sqrt(2 * a.beta ** 2 + a.sigma ** 2 + b.sigma ** 2)
    return env.cdf((a.mu - b.mu) / denominator)


def check_outcome(winner: TrueSkillState, is_draw: bool) -> None:
    if is_draw and winner.draw_probability == 0:
        raise ValidationError("draws are impossible when draw_probability is 0")


def apply_update(winner: TrueSkillState, loser: TrueSkillState, is_draw: bool, weight: float) -> None:
    check_outcome(winner, is_draw)

    env = _environment(winner)
    new_winner, new_loser = rate_1vs1(  # type: ignore[misc]
        Rating(mu=winner.mu, sigma=winner.sigma),  # type: ignore[arg-type]
        Rating(mu=loser.mu, sigma=loser.sigma),  # type: ignore[arg-type]
        drawn=is_draw,
        env=env,
    )

    # Partial weights move each side part of the way toward the full update
    for state, rating in ((winner, new_winner), (loser, new_loser)):
        state.mu += weight * (rating.mu - state.mu)  # type: ignore[attr-defined]
        sigma = state.sigma + weight * (rating.sigma - state.sigma)  # type: ignore[attr-defined]
        # The tau step can inflate variance; uncertainty never grows on an update
        state.sigma = min(state.sigma, max(UNCERTAINTY_FLOOR, sigma))


MODEL = RatingModel(
    system=RatingSystem.TRUESKILL,
    state_type=TrueSkillState,
    create_state=lambda timestamp: TrueSkillState(timestamp=timestamp),
    apply_update=apply_update,
    win_probability=win_probability,
    check_outcome=check_outcome,
    value=lambda state: state.mu,
    uncertainty=lambda state: state.sigma,
    gap_scale=lambda state: state.beta,
)
