"""
Poll Engine - voting and adaptive pairwise ranking

Tabulates single-choice, plurality and ranked-choice polls, and ranks options
in pairwise polls with interchangeable rating systems, annotator reliability
weighting and information-gain pair selection.
"""

from loguru import logger

from .exceptions import (
    ConfigurationError,
    DuplicateVoteError,
    InvalidStateError,
    PollEngineError,
    PollNotFoundError,
    ValidationError,
)
from .interfaces import PairSelector, PollStore
from .models import (
    AnnotatorState,
    Comparison,
    GlobalPairwiseStats,
    PluralityBallot,
    Poll,
    PollOption,
    RankedBallot,
    RankedWinner,
    RatingSystem,
    TabulationMethod,
    VotingFormat,
)
from .pairwise import process_comparison, reprocess, should_reprocess
from .service import EngineConfig, PollResults, PollService

# Silent until the embedding application calls setup_logging
logger.disable("poll_engine")

__version__ = "0.1.0"
__all__ = [
    "AnnotatorState",
    "Comparison",
    "ConfigurationError",
    "DuplicateVoteError",
    "EngineConfig",
    "GlobalPairwiseStats",
    "InvalidStateError",
    "PairSelector",
    "PluralityBallot",
    "Poll",
    "PollEngineError",
    "PollNotFoundError",
    "PollOption",
    "PollResults",
    "PollService",
    "PollStore",
    "RankedBallot",
    "RankedWinner",
    "RatingSystem",
    "TabulationMethod",
    "ValidationError",
    "VotingFormat",
    "process_comparison",
    "reprocess",
    "should_reprocess",
]
