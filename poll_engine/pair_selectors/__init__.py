"""
Pair selector implementations.

Provides implementations of the PairSelector interface for choosing which
pair of options an annotator should compare next.

Available implementations:
- InformationGainSelector: Samples among the most informative unjudged pairs
- RandomPairSelector: Uniformly random unjudged pair
"""

from .history import PairHistoryEntry, PairHistoryIndex, unjudged_pairs
from .information_gain_selector import InformationGainSelector, pair_score, select_next_pair
from .random_selector import RandomPairSelector

__all__ = [
    "InformationGainSelector",
    "PairHistoryEntry",
    "PairHistoryIndex",
    "RandomPairSelector",
    "pair_score",
    "select_next_pair",
    "unjudged_pairs",
]
