"""
Pair history index.

Derived view over the comparison log: for every unordered pair, how often it
was judged and by whom. Never persisted.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..models import AnnotatorId, Comparison, OptionId, pair_key


@dataclass
class PairHistoryEntry:
    count: int = 0
    annotators: set[AnnotatorId] = field(default_factory=set)


class PairHistoryIndex:
    """Per-pair judgment counts and annotator sets."""

    def __init__(self, comparisons: Iterable[Comparison] = ()):
        self._entries: dict[tuple[OptionId, OptionId], PairHistoryEntry] = {}
        for comparison in comparisons:
            self.add(comparison)

    def add(self, comparison: Comparison) -> None:
        entry = self._entries.setdefault(comparison.pair, PairHistoryEntry())
        entry.count += 1
        entry.annotators.add(comparison.annotator)

    def count(self, a: OptionId, b: OptionId) -> int:
        entry = self._entries.get(pair_key(a, b))
        return entry.count if entry else 0

    def judged_by(self, a: OptionId, b: OptionId, annotator_id: AnnotatorId) -> bool:
        entry = self._entries.get(pair_key(a, b))
        return entry is not None and annotator_id in entry.annotators

    def pairs_judged_by(self, annotator_id: AnnotatorId) -> set[tuple[OptionId, OptionId]]:
        return {pair for pair, entry in self._entries.items() if annotator_id in entry.annotators}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return pair_key(pair[0], pair[1]) in self._entries


def unjudged_pairs(
    option_ids: Iterable[OptionId], annotator_id: AnnotatorId, history: PairHistoryIndex
) -> list[tuple[OptionId, OptionId]]:
    """All (low, high) pairs the annotator has not judged yet, in index order."""
    ids = sorted(set(option_ids))
    judged = history.pairs_judged_by(annotator_id)
    return [
        (a, b)
        for i, a in enumerate(ids)
        for b in ids[i + 1:]
        if (a, b) not in judged
    ]
