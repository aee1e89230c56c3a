"""
Rating system dispatch.

Maps every RatingSystem to its RatingModel and exposes the model-agnostic
operations used by the rest of the engine: initialize, update and the
(value, uncertainty) projections.
"""

import time

from ..exceptions import InvalidStateError, ValidationError
from ..logging_config import get_logger
from ..models import GlobalPairwiseStats, OptionId, OptionRatingState, RankingEntry, RatingSystem
from . import bradley_terry, elo, trueskill_model
from .base import RatingModel

# Module-level logger
logger = get_logger("rating")

RATING_MODELS: dict[RatingSystem, RatingModel] = {
    RatingSystem.ELO: elo.MODEL,
    RatingSystem.BRADLEY_TERRY: bradley_terry.BRADLEY_TERRY,
    RatingSystem.CROWD: bradley_terry.CROWD,
    RatingSystem.TRUESKILL: trueskill_model.MODEL,
}

_MODELS_BY_STATE_TYPE: dict[type, RatingModel] = {
    model.state_type: model for model in RATING_MODELS.values()
}


def model_for(system: RatingSystem) -> RatingModel:
    try:
        return RATING_MODELS[RatingSystem(system)]
    except ValueError as e:
        raise InvalidStateError(f"Unknown rating system: {system!r}") from e


def model_for_state(state: OptionRatingState) -> RatingModel:
    try:
        return _MODELS_BY_STATE_TYPE[type(state)]
    except KeyError as e:
        raise InvalidStateError(f"Unknown rating state type: {type(state).__name__}") from e


def initialize(system: RatingSystem, option_count: int, timestamp: float | None = None) -> GlobalPairwiseStats:
    """Seed options 0..option_count-1 with the model's default state."""
    if option_count < 0:
        raise ValidationError(f"option_count must be non-negative, got {option_count}")

    model = model_for(system)
    created = time.time() if timestamp is None else timestamp
    stats = GlobalPairwiseStats(system=model.system)
    for option_id in range(option_count):
        stats.participants[option_id] = model.create_state(created)
    logger.debug(f"Initialized {model.system.value} stats for {option_count} options")
    return stats


def ensure_participant(
    stats: GlobalPairwiseStats, option_id: OptionId, timestamp: float | None = None
) -> OptionRatingState:
    """Return the option's state, creating a default one on first use."""
    model = model_for(stats.system)
    state = stats.participants.get(option_id)
    if state is None:
        state = model.create_state(time.time() if timestamp is None else timestamp)
        stats.participants[option_id] = state
        logger.debug(f"Lazily initialized option {option_id}")
    elif not isinstance(state, model.state_type):
        raise InvalidStateError(
            f"option {option_id} holds {type(state).__name__} in a {model.system.value} poll"
        )
    return state


def check_outcome(stats: GlobalPairwiseStats, winner: OptionId, is_draw: bool = False) -> None:
    """Reject outcomes the poll's model cannot represent, without touching stats."""
    model = model_for(stats.system)
    state = stats.participants.get(winner)
    if not isinstance(state, model.state_type):
        state = model.create_state(0.0)
    model.check_outcome(state, is_draw)


def update(
    stats: GlobalPairwiseStats,
    winner: OptionId,
    loser: OptionId,
    is_draw: bool = False,
    weight: float = 1.0,
    timestamp: float | None = None,
) -> GlobalPairwiseStats:
    """
    Apply one comparison to the two options involved.

    Args:
        stats: Statistics to mutate in place
        winner: Option that won (or one side of a draw)
        loser: Option that lost (or the other side of a draw)
        is_draw: Whether the comparison was a draw
        weight: Step-size multiplier in [0, 1]
        timestamp: Time recorded on both states (defaults to now)

    Returns:
        The same statistics object, updated
    """
    if winner == loser:
        raise ValidationError(f"option {winner} cannot be compared with itself")
    if not (0.0 <= weight <= 1.0):
        raise ValidationError(f"weight must be within [0, 1], got {weight}")

    check_outcome(stats, winner, is_draw)

    model = model_for(stats.system)
    when = time.time() if timestamp is None else timestamp
    winner_state = ensure_participant(stats, winner, when)
    loser_state = ensure_participant(stats, loser, when)

    before_winner = model.value(winner_state)
    before_loser = model.value(loser_state)
    model.apply_update(winner_state, loser_state, is_draw, weight)

    winner_state.wins += 0.5 if is_draw else 1.0
    loser_state.wins += 0.5 if is_draw else 0.0
    winner_state.comparisons += 1
    loser_state.comparisons += 1
    winner_state.timestamp = when
    loser_state.timestamp = when

    logger.debug(
        f"Rating update ({model.system.value}): {winner} {before_winner:.3f}->{model.value(winner_state):.3f}, "
        f"{loser} {before_loser:.3f}->{model.value(loser_state):.3f}"
    )
    return stats


def get_rating_value(state: OptionRatingState) -> float:
    """Project a state onto its scalar rating (rating or mu)."""
    return model_for_state(state).value(state)


def get_uncertainty(state: OptionRatingState) -> float:
    """Project a state onto its uncertainty (0 for models without one)."""
    return model_for_state(state).uncertainty(state)


def get_rankings(stats: GlobalPairwiseStats) -> list[RankingEntry]:
    """Options sorted by rating, highest first; ties keep index order."""
    entries = [
        RankingEntry(
            option_index=option_id,
            value=get_rating_value(state),
            uncertainty=get_uncertainty(state),
            wins=state.wins,
            comparisons=state.comparisons,
        )
        for option_id, state in stats.participants.items()
    ]
    entries.sort(key=lambda entry: (-entry.value, entry.option_index))
    return entries
