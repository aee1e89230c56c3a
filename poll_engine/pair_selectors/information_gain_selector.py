"""
Information-gain pair selector.

Scores every pair the annotator has not judged yet and samples one of the
top candidates with probability proportional to its score, so concurrent
annotators are not all steered down the same deterministic path.
"""

import math
from collections.abc import Sequence

import numpy as np
from typing_extensions import override

from ..exceptions import ConfigurationError, ValidationError
from ..interfaces import PairSelector
from ..logging_config import get_logger
from ..models import AnnotatorId, Comparison, GlobalPairwiseStats, OptionId, OptionRatingState
from ..rating import RatingModel, model_for
from .history import PairHistoryIndex, unjudged_pairs

# Module-level logger
logger = get_logger("information_gain_selector")

DEFAULT_TOP_K = 10
DEFAULT_GAMMA = 0.5


def pair_score(
    a: OptionRatingState,
    b: OptionRatingState,
    model: RatingModel,
    reliability: float = 1.0,
    gamma: float = DEFAULT_GAMMA,
) -> float:
    """
    Heuristic information gain of asking for a comparison between a and b.

    combined uncertainty * ambiguity / (1 + fewest comparisons), where
    ambiguity = 1 - tanh(|gap| / scale) is biased by the annotator's
    reliability with weight gamma: reliable annotators favour close pairs,
    unreliable ones favour clear pairs that calibrate them.
    """
    if model.has_uncertainty:
        combined = math.hypot(model.uncertainty(a), model.uncertainty(b))
    else:
        combined = 1.0

    gap = abs(model.value(a) - model.value(b))
    ambiguity = 1.0 - math.tanh(gap / model.gap_scale(a))
    calibrated = reliability * ambiguity + (1.0 - reliability) * (1.0 - ambiguity)
    biased = (1.0 - gamma) * ambiguity + gamma * calibrated

    return combined * biased / (1 + min(a.comparisons, b.comparisons))


def select_next_pair(
    option_ids: Sequence[OptionId],
    annotator_id: AnnotatorId,
    comparison_history: Sequence[Comparison],
    stats: GlobalPairwiseStats,
    gamma: float = DEFAULT_GAMMA,
    top_k: int = DEFAULT_TOP_K,
    rng: np.random.Generator | None = None,
) -> tuple[OptionId, OptionId] | None:
    """
    Pick the next pair for an annotator.

    Returns:
        (low, high) option pair, or None when every pair has been judged by
        this annotator
    """
    if not (0.0 <= gamma <= 1.0):
        raise ValidationError(f"gamma must be within [0, 1], got {gamma}")
    if top_k < 1:
        raise ValidationError(f"top_k must be at least 1, got {top_k}")

    history = PairHistoryIndex(comparison_history)
    candidates = unjudged_pairs(option_ids, annotator_id, history)
    if not candidates:
        logger.debug(f"No pairs left for annotator {annotator_id}")
        return None

    model = model_for(stats.system)
    annotator = stats.annotators.get(annotator_id)
    reliability = annotator.reliability if annotator else 1.0

    def state_of(option_id: OptionId) -> OptionRatingState:
        # Options without ratings are scored as fresh, without being stored
        state = stats.participants.get(option_id)
        return state if state is not None else model.create_state(0.0)

    scored = [
        (pair, pair_score(state_of(pair[0]), state_of(pair[1]), model, reliability, gamma))
        for pair in candidates
    ]
    scored.sort(key=lambda item: (-item[1], item[0]))
    top = scored[:top_k]

    weights = np.array([score for _, score in top], dtype=float)
    total = weights.sum()
    if total > 0:
        probabilities = weights / total
    else:
        probabilities = np.ones(len(top)) / len(top)

    generator = rng if rng is not None else np.random.default_rng()
    choice = int(generator.choice(len(top), p=probabilities))
    pair, score = top[choice]

    logger.debug(
        f"Selected pair {pair} for {annotator_id} (score {score:.4f}, "
        f"{len(candidates)} candidates, reliability {reliability:.2f})"
    )
    return pair


class InformationGainSelector(PairSelector):
    """Adaptive selector maximizing the pair information-gain heuristic."""

    def __init__(
        self,
        gamma: float = DEFAULT_GAMMA,
        top_k: int = DEFAULT_TOP_K,
        rng: np.random.Generator | None = None,
    ):
        """
        Initialize information-gain selector.

        Args:
            gamma: Weight of the annotator-reliability bias (0 disables it)
            top_k: Number of best-scoring pairs to sample from
            rng: Random generator for the weighted draw
        """
        if not (0.0 <= gamma <= 1.0):
            raise ConfigurationError(f"gamma must be within [0, 1], got {gamma}")
        if top_k < 1:
            raise ConfigurationError(f"top_k must be at least 1, got {top_k}")
        self.gamma = gamma
        self.top_k = top_k
        self.rng = rng if rng is not None else np.random.default_rng()

    @override
    def select_next_pair(
        self,
        option_ids: Sequence[OptionId],
        annotator_id: AnnotatorId,
        comparison_history: Sequence[Comparison],
        stats: GlobalPairwiseStats,
    ) -> tuple[OptionId, OptionId] | None:
        return select_next_pair(
            option_ids,
            annotator_id,
            comparison_history,
            stats,
            gamma=self.gamma,
            top_k=self.top_k,
            rng=self.rng,
        )
