"""
JSONL poll store.

Each poll lives in its own directory: ``poll.json`` holds the poll record and
its pairwise statistics (rewritten atomically), ``votes.jsonl`` is the
append-only vote log.
"""

import json
import os
import re
import threading
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any

from typing_extensions import override

from ..exceptions import InvalidStateError, PollNotFoundError, ValidationError
from ..interfaces import PollStore, Vote
from ..logging_config import get_logger
from ..models import Comparison, GlobalPairwiseStats, PluralityBallot, Poll, RankedBallot, VotingFormat
from ..serialization import (
    comparison_from_document,
    comparison_to_document,
    plurality_ballot_from_document,
    plurality_ballot_to_document,
    poll_from_document,
    poll_to_document,
    ranked_ballot_from_document,
    ranked_ballot_to_document,
    stats_to_document,
)

# Module-level logger
logger = get_logger("jsonl_store")

POLL_FILE = "poll.json"
VOTES_FILE = "votes.jsonl"

_POLL_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class JSONLPollStore(PollStore):
    """
    Directory-per-poll store backed by JSON and JSONL files.

    Per-poll locks live in this process only; one store instance should own a
    root directory.
    """

    root: Path

    def __init__(self, root: Path | str):
        """
        Initialize the store.

        Args:
            root: Directory holding one subdirectory per poll
        """
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        logger.info(f"JSONL poll store initialized at {self.root}")

    def _poll_dir(self, poll_id: str) -> Path:
        if not _POLL_ID_PATTERN.match(poll_id):
            raise ValidationError(f"Invalid poll id: {poll_id!r}")
        return self.root / poll_id

    def _existing_poll_dir(self, poll_id: str) -> Path:
        poll_dir = self._poll_dir(poll_id)
        if not (poll_dir / POLL_FILE).exists():
            raise PollNotFoundError(f"Poll not found: {poll_id}")
        return poll_dir

    def _write_record(self, poll_dir: Path, document: Any) -> None:
        path = poll_dir / POLL_FILE
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)

    def _read_record(self, poll_dir: Path) -> dict[str, Any]:
        path = poll_dir / POLL_FILE
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidStateError(f"Corrupt poll record {path}: {e}") from e
        if not isinstance(data, dict):
            raise InvalidStateError(f"Poll record {path} is not an object")
        return data

    @override
    def create_poll(self, poll: Poll) -> None:
        poll_dir = self._poll_dir(poll.id)
        if (poll_dir / POLL_FILE).exists():
            raise ValidationError(f"Poll already exists: {poll.id}")
        poll_dir.mkdir(parents=True, exist_ok=True)
        self._write_record(poll_dir, poll_to_document(poll, include_votes=False))
        for vote in [*poll.pairwise_votes, *poll.ranked_votes, *poll.plurality_votes]:
            self._append_line(poll_dir, vote)
        logger.info(f"Created poll {poll.id} ({poll.voting_format.value}, {len(poll.options)} options)")

    @override
    def load_poll(self, poll_id: str) -> Poll:
        poll_dir = self._existing_poll_dir(poll_id)
        document = self._read_record(poll_dir)
        document["pairwiseVotes"] = []
        document["rankedVotes"] = []
        document["pluralityVotes"] = []
        poll = poll_from_document(document)

        for vote in self._load_votes(poll_dir):
            if isinstance(vote, Comparison):
                poll.pairwise_votes.append(vote)
            elif isinstance(vote, RankedBallot):
                poll.ranked_votes.append(vote)
            else:
                poll.plurality_votes.append(vote)
        return poll

    @override
    def list_polls(self) -> Iterable[str]:
        return sorted(path.parent.name for path in self.root.glob(f"*/{POLL_FILE}"))

    @override
    def append_vote(self, poll_id: str, vote: Vote) -> None:
        poll_dir = self._existing_poll_dir(poll_id)
        self._append_line(poll_dir, vote)
        logger.debug(f"Appended {type(vote).__name__} to poll {poll_id}")

    @override
    def save_pairwise_stats(self, poll_id: str, stats: GlobalPairwiseStats) -> None:
        poll_dir = self._existing_poll_dir(poll_id)
        document = self._read_record(poll_dir)
        document["pairwiseStats"] = stats_to_document(stats)
        self._write_record(poll_dir, document)
        logger.debug(f"Saved pairwise stats for poll {poll_id}")

    @override
    def record_single_vote(self, poll_id: str, option_index: int, user_id: str) -> None:
        poll_dir = self._existing_poll_dir(poll_id)
        document = self._read_record(poll_dir)
        options = document.get("options", [])
        if not (0 <= option_index < len(options)):
            raise ValidationError(f"Option index {option_index} out of range for poll {poll_id}")
        options[option_index]["votes"] = int(options[option_index].get("votes", 0)) + 1
        document.setdefault("singleVoteUsers", []).append(user_id)
        self._write_record(poll_dir, document)
        logger.debug(f"Recorded single vote by {user_id} on poll {poll_id}")

    @override
    def lock(self, poll_id: str) -> AbstractContextManager[Any]:
        with self._locks_guard:
            return self._locks.setdefault(poll_id, threading.Lock())

    def _append_line(self, poll_dir: Path, vote: Vote) -> None:
        if isinstance(vote, Comparison):
            data: dict[str, Any] = dict(comparison_to_document(vote))
            data["format"] = VotingFormat.PAIRWISE.value
        elif isinstance(vote, RankedBallot):
            data = dict(ranked_ballot_to_document(vote))
            data["format"] = VotingFormat.RANKED.value
        elif isinstance(vote, PluralityBallot):
            data = dict(plurality_ballot_to_document(vote))
            data["format"] = VotingFormat.PLURALITY.value
        else:
            raise ValidationError(f"Unsupported vote type: {type(vote).__name__}")

        with open(poll_dir / VOTES_FILE, "a", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
            f.write("\n")

    def _load_votes(self, poll_dir: Path) -> Iterator[Vote]:
        path = poll_dir / VOTES_FILE
        if not path.exists():
            return

        with open(path, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    data = json.loads(line)
                    if not isinstance(data, dict):
                        raise InvalidStateError("vote line is not an object")
                    vote_format = data.pop("format", None)
                    if vote_format == VotingFormat.PAIRWISE.value:
                        yield comparison_from_document(data)
                    elif vote_format == VotingFormat.RANKED.value:
                        yield ranked_ballot_from_document(data)
                    elif vote_format == VotingFormat.PLURALITY.value:
                        yield plurality_ballot_from_document(data)
                    else:
                        raise InvalidStateError(f"unknown vote format {vote_format!r}")
                except (json.JSONDecodeError, InvalidStateError) as e:
                    # Skip corrupted or invalid lines
                    logger.warning(f"Skipping invalid vote line {line_number} in {path}: {e}")
                    continue
