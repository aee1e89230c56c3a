"""
Random pair selector.

Simple stateless selector for baselines and simulations.
"""

from collections.abc import Sequence

import numpy as np
from typing_extensions import override

from ..interfaces import PairSelector
from ..logging_config import get_logger
from ..models import AnnotatorId, Comparison, GlobalPairwiseStats, OptionId
from .history import PairHistoryIndex, unjudged_pairs


class RandomPairSelector(PairSelector):
    """Uniformly random unjudged pair - for testing/baseline."""

    def __init__(self, rng: np.random.Generator | None = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.logger = get_logger("random_selector")

    @override
    def select_next_pair(
        self,
        option_ids: Sequence[OptionId],
        annotator_id: AnnotatorId,
        comparison_history: Sequence[Comparison],
        stats: GlobalPairwiseStats,
    ) -> tuple[OptionId, OptionId] | None:
        """Return a random pair the annotator has not judged."""
        candidates = unjudged_pairs(option_ids, annotator_id, PairHistoryIndex(comparison_history))
        if not candidates:
            self.logger.debug(f"No pairs left for annotator {annotator_id}")
            return None

        pair = candidates[int(self.rng.integers(len(candidates)))]
        self.logger.debug(f"Selected random pair {pair} from {len(candidates)} candidates")
        return pair
