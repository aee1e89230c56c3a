"""
Tests for document conversion.

Focus on rejecting malformed persisted state.
"""

import pytest

from poll_engine.exceptions import InvalidStateError
from poll_engine.models import Comparison, Poll, PollOption, RatingSystem, VotingFormat
from poll_engine.pairwise import reprocess
from poll_engine.serialization import (
    comparison_from_document,
    comparison_to_document,
    poll_from_document,
    poll_to_document,
    stats_from_document,
    stats_to_document,
)


class TestStatsDocuments:
    """Test pairwise statistics conversion."""

    @pytest.mark.parametrize("system", list(RatingSystem))
    def test_restores_equal_stats(self, system: RatingSystem) -> None:
        """A stored document rebuilds the same statistics."""
        # Arrange
        stats = reprocess(
            [
                Comparison(winner=0, loser=1, annotator="a", timestamp=1.0),
                Comparison(winner=1, loser=2, annotator="b", timestamp=2.0),
            ],
            system,
            [0, 1, 2],
        )

        # Act
        restored = stats_from_document(stats_to_document(stats))

        # Assert
        assert restored == stats

    def test_camel_case_field_names(self) -> None:
        """Multi-word fields are stored in camelCase with string option keys."""
        # Arrange
        stats = reprocess([], RatingSystem.TRUESKILL, [0])

        # Act
        document = stats_to_document(stats)

        # Assert
        assert "drawProbability" in document["participants"]["0"]
        assert document["system"] == "trueskill"

    def test_non_numeric_participant_key_rejected(self) -> None:
        document = stats_to_document(reprocess([], RatingSystem.ELO, [0]))
        document["participants"]["first"] = document["participants"].pop("0")

        with pytest.raises(InvalidStateError):
            stats_from_document(document)

    def test_missing_field_rejected(self) -> None:
        document = stats_to_document(reprocess([], RatingSystem.ELO, [0]))
        del document["participants"]["0"]["kFactor"]

        with pytest.raises(InvalidStateError):
            stats_from_document(document)

    def test_invariant_violation_rejected(self) -> None:
        """Wins exceeding comparisons is corrupted state."""
        document = stats_to_document(reprocess([], RatingSystem.BRADLEY_TERRY, [0]))
        document["participants"]["0"]["wins"] = 3

        with pytest.raises(InvalidStateError):
            stats_from_document(document)

    def test_unknown_system_rejected(self) -> None:
        with pytest.raises(InvalidStateError):
            stats_from_document({"system": "glicko", "participants": {}, "annotators": {}})


class TestVoteAndPollDocuments:
    """Test vote and poll record conversion."""

    def test_draw_flag_only_written_for_draws(self) -> None:
        win = comparison_to_document(Comparison(winner=0, loser=1, annotator="a", timestamp=1.0))
        draw = comparison_to_document(Comparison(winner=0, loser=1, annotator="a", timestamp=1.0, is_draw=True))

        assert "isDraw" not in win
        assert draw["isDraw"] is True
        assert comparison_from_document(draw).is_draw

    def test_stored_self_comparison_is_corrupted_state(self) -> None:
        with pytest.raises(InvalidStateError):
            comparison_from_document({"userId": "a", "winner": 1, "loser": 1, "timestamp": 1.0})

    def test_poll_record(self) -> None:
        """A poll survives conversion, votes included."""
        # Arrange
        poll = Poll(
            id="p1",
            title="Lunch",
            options=[PollOption(id="0", text="Pizza"), PollOption(id="1", text="Sushi", image_url="sushi.png")],
            voting_format=VotingFormat.PAIRWISE,
            created_at=10.0,
            rating_system=RatingSystem.ELO,
            pairwise_votes=[Comparison(winner=1, loser=0, annotator="a", timestamp=11.0)],
        )

        # Act
        restored = poll_from_document(poll_to_document(poll))

        # Assert
        assert restored == poll

    def test_poll_with_one_option_rejected(self) -> None:
        with pytest.raises(InvalidStateError):
            poll_from_document({
                "id": "p1",
                "title": "Lonely",
                "options": [{"id": "0", "text": "Only"}],
                "votingFormat": "single",
                "createdAt": 1.0,
            })
