"""
Tests for JSONLPollStore.

Focus on persistence, atomic record rewrites and tolerance of corrupt vote lines.
"""

import json
import tempfile
from pathlib import Path

import pytest

from poll_engine.exceptions import InvalidStateError, PollNotFoundError, ValidationError
from poll_engine.models import (
    Comparison,
    PluralityBallot,
    Poll,
    PollOption,
    RankedBallot,
    RatingSystem,
    VotingFormat,
)
from poll_engine.rating import initialize, update
from poll_engine.storage import JSONLPollStore


def make_poll(poll_id: str = "poll-1", voting_format: VotingFormat = VotingFormat.PAIRWISE) -> Poll:
    pairwise = voting_format is VotingFormat.PAIRWISE
    return Poll(
        id=poll_id,
        title="Favourite colour",
        options=[PollOption(id="0", text="Red"), PollOption(id="1", text="Green"), PollOption(id="2", text="Blue")],
        voting_format=voting_format,
        created_at=5.0,
        rating_system=RatingSystem.ELO if pairwise else None,
        pairwise_stats=initialize(RatingSystem.ELO, 3, timestamp=5.0) if pairwise else None,
    )


class TestJSONLPollStore:
    """Test JSONLPollStore behavior through public interface."""

    def test_create_and_load_poll(self) -> None:
        """A created poll loads back unchanged."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            store = JSONLPollStore(Path(temp_dir))
            poll = make_poll()

            # Act
            store.create_poll(poll)
            loaded = store.load_poll("poll-1")

            # Assert
            assert loaded == poll
            assert list(store.list_polls()) == ["poll-1"]

    def test_votes_are_appended_by_format(self) -> None:
        """Each vote type lands in its own list when loaded."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            store = JSONLPollStore(Path(temp_dir))
            store.create_poll(make_poll())
            comparison = Comparison(winner=0, loser=1, annotator="a", timestamp=6.0)
            ranked = RankedBallot(voter="b", rankings={"0": 0, "1": 1}, timestamp=7.0)
            plurality = PluralityBallot(voter="c", selections=[2], timestamp=8.0)

            # Act
            store.append_vote("poll-1", comparison)
            store.append_vote("poll-1", ranked)
            store.append_vote("poll-1", plurality)
            loaded = store.load_poll("poll-1")

            # Assert
            assert loaded.pairwise_votes == [comparison]
            assert loaded.ranked_votes == [ranked]
            assert loaded.plurality_votes == [plurality]

            lines = (Path(temp_dir) / "poll-1" / "votes.jsonl").read_text(encoding="utf-8").splitlines()
            assert [json.loads(line)["format"] for line in lines] == ["pairwise", "ranked", "plurality"]

    def test_corrupt_vote_lines_are_skipped(self) -> None:
        """Garbage in the vote log is skipped, valid lines still load."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            store = JSONLPollStore(Path(temp_dir))
            store.create_poll(make_poll())
            store.append_vote("poll-1", Comparison(winner=0, loser=1, annotator="a", timestamp=6.0))
            with open(Path(temp_dir) / "poll-1" / "votes.jsonl", "a", encoding="utf-8") as f:
                f.write("{not json\n")
                f.write(json.dumps({"format": "pairwise", "userId": "x", "winner": 2, "loser": 2, "timestamp": 1.0}))
                f.write("\n")
                f.write(json.dumps({"format": "telepathy"}) + "\n")
            store.append_vote("poll-1", Comparison(winner=2, loser=1, annotator="b", timestamp=7.0))

            # Act
            loaded = store.load_poll("poll-1")

            # Assert
            assert [vote.annotator for vote in loaded.pairwise_votes] == ["a", "b"]

    def test_save_pairwise_stats_replaces_record(self) -> None:
        """Stored statistics are replaced and no temp file is left behind."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            store = JSONLPollStore(Path(temp_dir))
            store.create_poll(make_poll())
            stats = initialize(RatingSystem.ELO, 3, timestamp=5.0)
            update(stats, 2, 0, timestamp=6.0)

            # Act
            store.save_pairwise_stats("poll-1", stats)

            # Assert
            assert store.load_poll("poll-1").pairwise_stats == stats
            assert sorted(path.name for path in (Path(temp_dir) / "poll-1").iterdir()) == ["poll.json"]

    def test_record_single_vote(self) -> None:
        """Single votes bump the counter and remember the voter."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            store = JSONLPollStore(Path(temp_dir))
            store.create_poll(make_poll(voting_format=VotingFormat.SINGLE))

            # Act
            store.record_single_vote("poll-1", 1, "alice")
            store.record_single_vote("poll-1", 1, "bob")
            loaded = store.load_poll("poll-1")

            # Assert
            assert [option.votes for option in loaded.options] == [0, 2, 0]
            assert loaded.single_vote_users == ["alice", "bob"]

    def test_missing_and_duplicate_polls(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = JSONLPollStore(Path(temp_dir))
            store.create_poll(make_poll())

            with pytest.raises(PollNotFoundError):
                store.load_poll("nope")
            with pytest.raises(PollNotFoundError):
                store.append_vote("nope", Comparison(winner=0, loser=1, annotator="a"))
            with pytest.raises(ValidationError):
                store.create_poll(make_poll())

    def test_path_like_poll_id_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = JSONLPollStore(Path(temp_dir))
            with pytest.raises(ValidationError):
                store.load_poll("../etc")

    def test_corrupt_poll_record_raises(self) -> None:
        """A damaged poll.json is corrupted state, not silently skipped."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            store = JSONLPollStore(Path(temp_dir))
            store.create_poll(make_poll())
            (Path(temp_dir) / "poll-1" / "poll.json").write_text("{truncated", encoding="utf-8")

            # Act & Assert
            with pytest.raises(InvalidStateError):
                store.load_poll("poll-1")

    def test_lock_is_per_poll(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = JSONLPollStore(Path(temp_dir))

            assert store.lock("a") is store.lock("a")
            assert store.lock("a") is not store.lock("b")
