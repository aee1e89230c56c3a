"""
Tests for single-choice and plurality tallies.
"""

import pytest

from poll_engine.exceptions import ValidationError
from poll_engine.models import PluralityBallot, PollOption
from poll_engine.tabulation import plurality_results, single_choice_results


class TestSingleChoice:
    """Test single-choice percentages."""

    def test_percentage_of_total(self) -> None:
        # Arrange
        options = [PollOption(id="0", text="Yes", votes=3), PollOption(id="1", text="No", votes=1)]

        # Act
        tallies = single_choice_results(options)

        # Assert
        assert [tally.votes for tally in tallies] == [3, 1]
        assert tallies[0].percentage == pytest.approx(75.0)
        assert tallies[1].percentage == pytest.approx(25.0)

    def test_no_votes_is_zero_percent(self) -> None:
        options = [PollOption(id="0", text="Yes"), PollOption(id="1", text="No")]
        assert all(tally.percentage == 0.0 for tally in single_choice_results(options))


class TestPlurality:
    """Test multi-select tallies."""

    def test_percentage_relative_to_leader(self) -> None:
        """The most-selected option is 100%; others scale against it."""
        # Arrange
        ballots = [
            PluralityBallot(voter="a", selections=[0, 1]),
            PluralityBallot(voter="b", selections=[0]),
            PluralityBallot(voter="c", selections=[0, 2]),
            PluralityBallot(voter="d", selections=[1]),
        ]

        # Act
        tallies = plurality_results(ballots, 3)

        # Assert
        assert [tally.votes for tally in tallies] == [3, 2, 1]
        assert [tally.percentage for tally in tallies] == pytest.approx([100.0, 200.0 / 3, 100.0 / 3])

    def test_no_ballots(self) -> None:
        tallies = plurality_results([], 2)
        assert [(tally.votes, tally.percentage) for tally in tallies] == [(0, 0.0), (0, 0.0)]

    def test_out_of_range_selection_rejected(self) -> None:
        with pytest.raises(ValidationError):
            plurality_results([PluralityBallot(voter="a", selections=[5])], 3)

    def test_empty_and_repeated_selections_rejected(self) -> None:
        with pytest.raises(ValidationError):
            plurality_results([PluralityBallot(voter="a", selections=[])], 3)
        with pytest.raises(ValidationError):
            PluralityBallot(voter="a", selections=[1, 1])
