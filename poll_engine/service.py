"""
Poll service.

Composes the engine with a PollStore: every vote is validated, logged and
folded into the poll's results under the poll's lock.
"""

import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from .exceptions import ConfigurationError, DuplicateVoteError, ValidationError
from .interfaces import PairSelector, PollStore
from .logging_config import get_logger
from .models import (
    Comparison,
    GlobalPairwiseStats,
    OptionId,
    OptionTally,
    PluralityBallot,
    Poll,
    PollOption,
    RankedBallot,
    RankedWinner,
    RankingEntry,
    RatingSystem,
    TabulationMethod,
    VotingFormat,
)
from .pair_selectors import InformationGainSelector
from .pairwise import DEFAULT_REPROCESS_EVERY, process_comparison, reprocess, should_reprocess
from .rating import get_rankings, initialize
from .tabulation import (
    calculate_results,
    plurality_results,
    single_choice_results,
    validate_ballots,
    validate_plurality_ballot,
)

# Module-level logger
logger = get_logger("service")


@dataclass
class EngineConfig:
    """Configuration for the poll service."""

    reprocess_every: int = DEFAULT_REPROCESS_EVERY  # full replay every N pairwise votes
    top_k: int = 10  # candidate pairs kept for the weighted draw
    exploration_gamma: float = 0.5  # weight of the reliability bias, 0 <= gamma <= 1
    rating_system: RatingSystem = RatingSystem.BRADLEY_TERRY  # for polls that don't name one
    seed: int | None = None  # pair sampling seed

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.reprocess_every <= 0:
            raise ConfigurationError(f"reprocess_every must be positive, got {self.reprocess_every}")
        if self.top_k < 1:
            raise ConfigurationError(f"top_k must be at least 1, got {self.top_k}")
        if not (0.0 <= self.exploration_gamma <= 1.0):
            raise ConfigurationError(f"exploration_gamma must be within [0, 1], got {self.exploration_gamma}")
        try:
            self.rating_system = RatingSystem(self.rating_system)
        except ValueError as e:
            raise ConfigurationError(f"Unknown rating system: {self.rating_system!r}") from e


@dataclass
class PairwiseVoteOutcome:
    """What a pairwise vote produced."""

    stats: GlobalPairwiseStats
    next_pair: tuple[OptionId, OptionId] | None
    reprocessed: bool


@dataclass
class PollResults:
    """Results of a poll in whichever shape its voting format produces."""

    poll_id: str
    voting_format: VotingFormat
    total_votes: int
    tallies: list[OptionTally] = field(default_factory=list)
    winners: list[RankedWinner] = field(default_factory=list)
    rankings: list[RankingEntry] = field(default_factory=list)

    def share(self, winner: RankedWinner) -> float:
        """Percentage of all ballots that backed a ranked winner in its round."""
        if self.total_votes == 0:
            return 0.0
        return winner.vote_count / self.total_votes * 100.0


class PollService:
    """Entry point for creating polls, casting votes and reading results."""

    def __init__(self, store: PollStore, config: EngineConfig | None = None, selector: PairSelector | None = None):
        """
        Initialize the service.

        Args:
            store: Persistence backend
            config: Engine configuration (defaults apply when omitted)
            selector: Pair selector; an information-gain selector built from
                the config when omitted
        """
        self.store: PollStore = store
        self.config: EngineConfig = config if config is not None else EngineConfig()
        self.selector: PairSelector = (
            selector
            if selector is not None
            else InformationGainSelector(
                gamma=self.config.exploration_gamma,
                top_k=self.config.top_k,
                rng=np.random.default_rng(self.config.seed),
            )
        )

    def create_poll(
        self,
        title: str,
        options: Sequence[str],
        voting_format: VotingFormat,
        description: str = "",
        created_by: str = "anonymous",
        rating_system: RatingSystem | None = None,
        tabulation_method: TabulationMethod = TabulationMethod.IRV,
        poll_id: str | None = None,
    ) -> Poll:
        """
        Create and store a new poll.

        Option ids are the options' positions as strings. Pairwise polls get
        their statistics seeded for every option.
        """
        try:
            voting_format = VotingFormat(voting_format)
            tabulation_method = TabulationMethod(tabulation_method)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        created_at = time.time()
        system = None
        stats = None
        if voting_format is VotingFormat.PAIRWISE:
            system = RatingSystem(rating_system) if rating_system is not None else self.config.rating_system
            stats = initialize(system, len(options), timestamp=created_at)

        poll = Poll(
            id=poll_id or uuid.uuid4().hex,
            title=title,
            description=description,
            options=[PollOption(id=str(position), text=text) for position, text in enumerate(options)],
            voting_format=voting_format,
            created_by=created_by,
            created_at=created_at,
            rating_system=system,
            tabulation_method=tabulation_method,
            pairwise_stats=stats,
        )
        self.store.create_poll(poll)
        logger.info(f"Poll {poll.id} created: {title!r} ({voting_format.value}, {len(options)} options)")
        return poll

    def submit_pairwise_vote(
        self,
        poll_id: str,
        winner: OptionId,
        loser: OptionId,
        user_id: str,
        is_draw: bool = False,
        timestamp: float | None = None,
    ) -> PairwiseVoteOutcome:
        """
        Record one comparison and update the poll's ratings.

        Every `reprocess_every`-th vote replays the whole log instead of
        applying an incremental update.
        """
        with self.store.lock(poll_id):
            poll = self.store.load_poll(poll_id)
            _require_format(poll, VotingFormat.PAIRWISE)
            comparison = Comparison(
                winner=winner,
                loser=loser,
                annotator=user_id,
                timestamp=time.time() if timestamp is None else timestamp,
                is_draw=is_draw,
            )
            system = self._system_of(poll)
            history = [*poll.pairwise_votes, comparison]

            reprocessed = should_reprocess(len(history), self.config.reprocess_every)
            if reprocessed:
                stats = reprocess(history, system, poll.option_indices)
            else:
                stats = poll.pairwise_stats or initialize(system, len(poll.options), timestamp=poll.created_at)
                process_comparison(stats, comparison, poll.option_indices)

            self.store.append_vote(poll_id, comparison)
            self.store.save_pairwise_stats(poll_id, stats)

        logger.info(
            f"Pairwise vote on {poll_id} by {user_id}: {winner} {'draws' if is_draw else 'beats'} {loser}"
            f"{' (reprocessed)' if reprocessed else ''}"
        )
        next_pair = self.selector.select_next_pair(poll.option_indices, user_id, history, stats)
        return PairwiseVoteOutcome(stats=stats, next_pair=next_pair, reprocessed=reprocessed)

    def next_comparison(self, poll_id: str, user_id: str) -> tuple[OptionId, OptionId] | None:
        """Pick the next pair for a user, or None once they have judged every pair."""
        poll = self.store.load_poll(poll_id)
        _require_format(poll, VotingFormat.PAIRWISE)
        stats = poll.pairwise_stats or initialize(self._system_of(poll), len(poll.options), timestamp=poll.created_at)
        return self.selector.select_next_pair(poll.option_indices, user_id, poll.pairwise_votes, stats)

    def submit_ranked_vote(
        self, poll_id: str, user_id: str, rankings: dict[str, int], timestamp: float | None = None
    ) -> RankedBallot:
        with self.store.lock(poll_id):
            poll = self.store.load_poll(poll_id)
            _require_format(poll, VotingFormat.RANKED)
            if any(ballot.voter == user_id for ballot in poll.ranked_votes):
                raise DuplicateVoteError(f"{user_id} has already voted in poll {poll_id}")
            ballot = RankedBallot(
                voter=user_id, rankings=dict(rankings), timestamp=time.time() if timestamp is None else timestamp
            )
            validate_ballots([ballot], poll.options)
            self.store.append_vote(poll_id, ballot)

        logger.info(f"Ranked vote on {poll_id} by {user_id}")
        return ballot

    def submit_plurality_vote(
        self, poll_id: str, user_id: str, selections: Sequence[int], timestamp: float | None = None
    ) -> PluralityBallot:
        with self.store.lock(poll_id):
            poll = self.store.load_poll(poll_id)
            _require_format(poll, VotingFormat.PLURALITY)
            if any(ballot.voter == user_id for ballot in poll.plurality_votes):
                raise DuplicateVoteError(f"{user_id} has already voted in poll {poll_id}")
            ballot = PluralityBallot(
                voter=user_id, selections=list(selections), timestamp=time.time() if timestamp is None else timestamp
            )
            validate_plurality_ballot(ballot, len(poll.options))
            self.store.append_vote(poll_id, ballot)

        logger.info(f"Plurality vote on {poll_id} by {user_id}: {ballot.selections}")
        return ballot

    def submit_single_vote(self, poll_id: str, user_id: str, option_index: int) -> None:
        with self.store.lock(poll_id):
            poll = self.store.load_poll(poll_id)
            _require_format(poll, VotingFormat.SINGLE)
            if not user_id:
                raise ValidationError("voter cannot be empty")
            if user_id in poll.single_vote_users:
                raise DuplicateVoteError(f"{user_id} has already voted in poll {poll_id}")
            if not (0 <= option_index < len(poll.options)):
                raise ValidationError(f"Option index {option_index} out of range for poll {poll_id}")
            self.store.record_single_vote(poll_id, option_index, user_id)

        logger.info(f"Single vote on {poll_id} by {user_id}: option {option_index}")

    def results(self, poll_id: str, winners_needed: int = 1) -> PollResults:
        """Compute results from the complete stored vote set."""
        poll = self.store.load_poll(poll_id)

        if poll.voting_format is VotingFormat.RANKED:
            winners = calculate_results(poll.ranked_votes, poll.options, winners_needed, poll.tabulation_method)
            return PollResults(poll.id, poll.voting_format, len(poll.ranked_votes), winners=winners)

        if poll.voting_format is VotingFormat.PLURALITY:
            tallies = plurality_results(poll.plurality_votes, len(poll.options))
            return PollResults(poll.id, poll.voting_format, len(poll.plurality_votes), tallies=tallies)

        if poll.voting_format is VotingFormat.SINGLE:
            tallies = single_choice_results(poll.options)
            return PollResults(poll.id, poll.voting_format, sum(tally.votes for tally in tallies), tallies=tallies)

        stats = poll.pairwise_stats or initialize(self._system_of(poll), len(poll.options), timestamp=poll.created_at)
        return PollResults(poll.id, poll.voting_format, len(poll.pairwise_votes), rankings=get_rankings(stats))

    def reprocess_poll(self, poll_id: str) -> GlobalPairwiseStats:
        """Replay a pairwise poll's full vote log and store the result."""
        with self.store.lock(poll_id):
            poll = self.store.load_poll(poll_id)
            _require_format(poll, VotingFormat.PAIRWISE)
            stats = reprocess(poll.pairwise_votes, self._system_of(poll), poll.option_indices)
            self.store.save_pairwise_stats(poll_id, stats)
        return stats

    def _system_of(self, poll: Poll) -> RatingSystem:
        if poll.rating_system is not None:
            return poll.rating_system
        if poll.pairwise_stats is not None:
            return poll.pairwise_stats.system
        return self.config.rating_system


def _require_format(poll: Poll, expected: VotingFormat) -> None:
    if poll.voting_format is not expected:
        raise ValidationError(
            f"Poll {poll.id} uses {poll.voting_format.value} voting, not {expected.value}"
        )
