"""
Abstract base classes and persisted document shapes for the poll engine.

All interfaces are synchronous; the engine never suspends.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from typing import Any

from typing_extensions import NotRequired, TypedDict

from .models import AnnotatorId, Comparison, GlobalPairwiseStats, OptionId, PluralityBallot, Poll, RankedBallot


class EloStateDocument(TypedDict):
    rating: float
    kFactor: float
    wins: float
    comparisons: int
    timestamp: float


class BradleyTerryStateDocument(TypedDict):
    """Shared by the plain and crowd Bradley-Terry variants."""
    mu: float
    sigma: float
    beta: float
    gamma: float
    wins: float
    comparisons: int
    timestamp: float


class TrueSkillStateDocument(TypedDict):
    mu: float
    sigma: float
    beta: float
    tau: float
    drawProbability: float
    wins: float
    comparisons: int
    timestamp: float


class AnnotatorDocument(TypedDict):
    alpha: float
    beta: float
    reliability: float
    comparisons: int


class PairwiseStatsDocument(TypedDict):
    """Persisted GlobalPairwiseStats; participant keys are option indices as strings."""
    system: str
    participants: dict[str, dict[str, Any]]
    annotators: dict[str, AnnotatorDocument]


class OptionDocument(TypedDict):
    id: str
    text: str
    votes: NotRequired[int]
    imageUrl: NotRequired[str | None]


class PairwiseVoteDocument(TypedDict):
    userId: str
    winner: int
    loser: int
    timestamp: float
    isDraw: NotRequired[bool]


class RankedVoteDocument(TypedDict):
    userId: str
    rankings: dict[str, int]
    timestamp: float


class PluralityVoteDocument(TypedDict):
    userId: str
    selections: list[int]
    timestamp: float


class PollDocument(TypedDict):
    id: str
    title: str
    description: NotRequired[str]
    options: list[OptionDocument]
    votingFormat: str
    ratingSystem: NotRequired[str | None]
    tabulationMethod: NotRequired[str]
    createdAt: float
    createdBy: NotRequired[str]
    singleVoteUsers: NotRequired[list[str]]
    pairwiseStats: NotRequired[PairwiseStatsDocument | None]
    pairwiseVotes: NotRequired[list[PairwiseVoteDocument]]
    rankedVotes: NotRequired[list[RankedVoteDocument]]
    pluralityVotes: NotRequired[list[PluralityVoteDocument]]


Vote = Comparison | RankedBallot | PluralityBallot


class PollStore(ABC):
    """Interface for the document store holding polls and their votes."""

    @abstractmethod
    def create_poll(self, poll: Poll) -> None:
        """Persist a new poll record."""
        pass

    @abstractmethod
    def load_poll(self, poll_id: str) -> Poll:
        """Read the full poll record, votes included."""
        pass

    @abstractmethod
    def list_polls(self) -> Iterable[str]:
        """Return the ids of all stored polls."""
        pass

    @abstractmethod
    def append_vote(self, poll_id: str, vote: Vote) -> None:
        """Atomically append one vote record."""
        pass

    @abstractmethod
    def save_pairwise_stats(self, poll_id: str, stats: GlobalPairwiseStats) -> None:
        """Atomically replace the poll's pairwise statistics."""
        pass

    @abstractmethod
    def record_single_vote(self, poll_id: str, option_index: int, user_id: str) -> None:
        """Increment an option's counter and remember the voter."""
        pass

    @abstractmethod
    def lock(self, poll_id: str) -> AbstractContextManager[Any]:
        """
        Serialize read-modify-write cycles on one poll.

        Callers hold the lock from loading the poll until every write for the
        new vote has been issued.
        """
        pass


class PairSelector(ABC):
    """Interface for choosing the next comparison for an annotator."""

    @abstractmethod
    def select_next_pair(
        self,
        option_ids: Sequence[OptionId],
        annotator_id: AnnotatorId,
        comparison_history: Sequence[Comparison],
        stats: GlobalPairwiseStats,
    ) -> tuple[OptionId, OptionId] | None:
        """
        Select the next pair of options to compare.

        Args:
            option_ids: All options of the poll
            annotator_id: The annotator asking for work
            comparison_history: Every comparison recorded so far
            stats: Current pairwise statistics

        Returns:
            A pair of distinct options, or None when the annotator has judged
            every pair
        """
        pass
