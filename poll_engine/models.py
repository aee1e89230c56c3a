"""
Core dataclasses for the poll engine.

Defines options, votes, per-option rating states and the poll-scoped
statistics object, with validation.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .exceptions import InvalidStateError, ValidationError

OptionId = int
AnnotatorId = str

UNRANKED = -1
UNCERTAINTY_FLOOR = 0.1

# Elo
ELO_INITIAL_RATING = 1500.0
ELO_K_FACTOR = 32.0

# Bradley-Terry
BT_INITIAL_MU = 0.0
BT_INITIAL_SIGMA = 1.0
BT_BETA = 0.5
BT_GAMMA = 0.1

# Crowd Bradley-Terry
CROWD_INITIAL_MU = 0.0
CROWD_INITIAL_SIGMA = 1.0
CROWD_BETA = 1.0
CROWD_GAMMA = 0.1

# TrueSkill
TS_INITIAL_MU = 25.0
TS_INITIAL_SIGMA = 8.333
TS_BETA = 4.166
TS_TAU = 0.0833
TS_DRAW_PROBABILITY = 0.1


class RatingSystem(str, Enum):
    """Rating systems available for pairwise polls."""

    ELO = "elo"
    BRADLEY_TERRY = "bradley-terry"
    CROWD = "crowd-bt"
    TRUESKILL = "trueskill"


class VotingFormat(str, Enum):
    SINGLE = "single"
    PLURALITY = "plurality"
    RANKED = "ranked"
    PAIRWISE = "pairwise"


class TabulationMethod(str, Enum):
    """Elimination rule used for ranked ballots."""

    IRV = "irv"
    COOMBS = "coombs"


def _check_counts(state: object, wins: float, comparisons: int) -> None:
    if comparisons < 0 or wins < 0:
        raise InvalidStateError(f"negative counters in {state!r}")
    if wins > comparisons:
        raise InvalidStateError(f"wins exceed comparisons in {state!r}")


@dataclass
class PollOption:
    """A candidate within a poll."""

    id: str
    text: str
    votes: int = 0
    image_url: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("option id cannot be empty")
        if not self.text:
            raise ValidationError("option text cannot be empty")
        if self.votes < 0:
            raise InvalidStateError(f"option {self.id} has a negative vote count")


@dataclass(frozen=True)
class Comparison:
    """One pairwise judgment by one annotator."""

    winner: OptionId
    loser: OptionId
    annotator: AnnotatorId
    timestamp: float = field(default_factory=time.time)
    is_draw: bool = False

    def __post_init__(self) -> None:
        if self.winner == self.loser:
            raise ValidationError(f"option {self.winner} cannot be compared with itself")
        if self.winner < 0 or self.loser < 0:
            raise ValidationError("option indices must be non-negative")
        if not self.annotator:
            raise ValidationError("annotator cannot be empty")

    @property
    def pair(self) -> tuple[OptionId, OptionId]:
        return pair_key(self.winner, self.loser)


def pair_key(a: OptionId, b: OptionId) -> tuple[OptionId, OptionId]:
    """Order-independent key for an unordered option pair."""
    return (a, b) if a <= b else (b, a)


@dataclass(frozen=True)
class RankedBallot:
    """A ranked-choice ballot; lower rank means more preferred."""

    voter: str
    rankings: dict[str, int]
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not self.voter:
            raise ValidationError("voter cannot be empty")
        seen: set[int] = set()
        for option_id, rank in self.rankings.items():
            if rank <= UNRANKED:
                continue
            if rank in seen:
                raise ValidationError(f"ballot from {self.voter} repeats rank {rank} (option {option_id})")
            seen.add(rank)

    def preferences(self) -> list[str]:
        """Ranked option ids, most preferred first; unranked options are dropped."""
        ranked = [(rank, option_id) for option_id, rank in self.rankings.items() if rank > UNRANKED]
        return [option_id for _, option_id in sorted(ranked)]


@dataclass(frozen=True)
class PluralityBallot:
    """A multi-select ballot."""

    voter: str
    selections: list[OptionId]
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not self.voter:
            raise ValidationError("voter cannot be empty")
        if len(set(self.selections)) != len(self.selections):
            raise ValidationError(f"ballot from {self.voter} selects an option twice")


@dataclass
class EloState:
    rating: float = ELO_INITIAL_RATING
    k_factor: float = ELO_K_FACTOR
    wins: float = 0.0
    comparisons: int = 0
    timestamp: float = 0.0

    def check(self) -> None:
        _check_counts(self, self.wins, self.comparisons)
        if self.k_factor <= 0:
            raise InvalidStateError(f"k_factor must be positive in {self!r}")


@dataclass
class BradleyTerryState:
    mu: float = BT_INITIAL_MU
    sigma: float = BT_INITIAL_SIGMA
    beta: float = BT_BETA
    gamma: float = BT_GAMMA
    wins: float = 0.0
    comparisons: int = 0
    timestamp: float = 0.0

    def check(self) -> None:
        _check_counts(self, self.wins, self.comparisons)
        if self.sigma <= 0 or self.beta <= 0:
            raise InvalidStateError(f"uncertainty must be positive in {self!r}")


@dataclass
class CrowdState:
    """Bradley-Terry state whose beta doubles as the shrinking uncertainty."""

    mu: float = CROWD_INITIAL_MU
    sigma: float = CROWD_INITIAL_SIGMA
    beta: float = CROWD_BETA
    gamma: float = CROWD_GAMMA
    wins: float = 0.0
    comparisons: int = 0
    timestamp: float = 0.0

    def check(self) -> None:
        _check_counts(self, self.wins, self.comparisons)
        if self.sigma <= 0 or self.beta <= 0:
            raise InvalidStateError(f"uncertainty must be positive in {self!r}")


@dataclass
class TrueSkillState:
    mu: float = TS_INITIAL_MU
    sigma: float = TS_INITIAL_SIGMA
    beta: float = TS_BETA
    tau: float = TS_TAU
    draw_probability: float = TS_DRAW_PROBABILITY
    wins: float = 0.0
    comparisons: int = 0
    timestamp: float = 0.0

    def check(self) -> None:
        _check_counts(self, self.wins, self.comparisons)
        if self.sigma <= 0 or self.beta <= 0:
            raise InvalidStateError(f"uncertainty must be positive in {self!r}")
        if not (0.0 <= self.draw_probability < 1.0):
            raise InvalidStateError(f"draw_probability out of range in {self!r}")


OptionRatingState = Union[EloState, BradleyTerryState, CrowdState, TrueSkillState]


@dataclass
class AnnotatorState:
    """Beta-Bernoulli reliability estimate for one annotator in one poll."""

    annotator_id: AnnotatorId
    alpha: float = 1.0
    beta: float = 1.0
    # Annotators start trusted; recomputed from alpha/beta on each observation
    reliability: float = 1.0
    comparisons: int = 0

    def check(self) -> None:
        if self.alpha < 1 or self.beta < 1:
            raise InvalidStateError(f"alpha and beta must be >= 1 in {self!r}")
        if not (0.0 < self.reliability <= 1.0):
            raise InvalidStateError(f"reliability out of range in {self!r}")
        if self.comparisons < 0:
            raise InvalidStateError(f"negative comparison count in {self!r}")


@dataclass
class GlobalPairwiseStats:
    """Poll-scoped rating and reliability state for a pairwise poll."""

    system: RatingSystem
    participants: dict[OptionId, OptionRatingState] = field(default_factory=dict)
    annotators: dict[AnnotatorId, AnnotatorState] = field(default_factory=dict)

    def check(self) -> None:
        """Fail fast on state that violates the data model invariants."""
        for option_id, state in self.participants.items():
            if option_id < 0:
                raise InvalidStateError(f"negative option index {option_id}")
            state.check()
        for annotator in self.annotators.values():
            annotator.check()


@dataclass(frozen=True)
class RankedWinner:
    """A winner extracted from ranked ballots."""

    option_index: int
    round: int
    vote_count: int


@dataclass(frozen=True)
class OptionTally:
    """Per-option result for single-choice and plurality polls."""

    option_index: int
    votes: int
    percentage: float


@dataclass(frozen=True)
class RankingEntry:
    """One row of a pairwise ranking."""

    option_index: OptionId
    value: float
    uncertainty: float
    wins: float
    comparisons: int

    @property
    def win_percentage(self) -> float:
        if self.comparisons == 0:
            return 0.0
        return self.wins / self.comparisons * 100.0


@dataclass
class Poll:
    """Full poll record as read from the store."""

    id: str
    title: str
    options: list[PollOption]
    voting_format: VotingFormat
    description: str = ""
    created_by: str = "anonymous"
    created_at: float = field(default_factory=time.time)
    rating_system: RatingSystem | None = None
    tabulation_method: TabulationMethod = TabulationMethod.IRV
    single_vote_users: list[str] = field(default_factory=list)
    ranked_votes: list[RankedBallot] = field(default_factory=list)
    plurality_votes: list[PluralityBallot] = field(default_factory=list)
    pairwise_votes: list[Comparison] = field(default_factory=list)
    pairwise_stats: GlobalPairwiseStats | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("poll id cannot be empty")
        if not self.title:
            raise ValidationError("poll title cannot be empty")
        if len(self.options) < 2:
            raise ValidationError("a poll needs at least two options")
        ids = [option.id for option in self.options]
        if len(set(ids)) != len(ids):
            raise ValidationError("option ids must be unique")

    @property
    def option_indices(self) -> list[OptionId]:
        return list(range(len(self.options)))
