"""
Tests for ranked-choice tabulation.

Focus on round-by-round elimination under IRV and Coombs.
"""

import pytest

from poll_engine.exceptions import ValidationError
from poll_engine.models import PollOption, RankedBallot, RankedWinner, TabulationMethod
from poll_engine.tabulation import (
    calculate_coombs_results,
    calculate_irv_results,
    calculate_results,
    has_duplicate_rankings,
    tally_first_choices,
    tally_last_places,
)

OPTIONS = [PollOption(id="A", text="Alpha"), PollOption(id="B", text="Bravo"), PollOption(id="C", text="Charlie")]


def ballot(voter: str, *order: str) -> RankedBallot:
    return RankedBallot(voter=voter, rankings={option_id: rank for rank, option_id in enumerate(order)})


class TestRankedTabulation:
    """Test winner extraction from ranked ballots."""

    def test_majority_in_first_round(self) -> None:
        """A first-choice majority wins round 1."""
        # Arrange
        ballots = [ballot("v1", "A", "B", "C"), ballot("v2", "A", "C", "B"), ballot("v3", "B", "A", "C")]

        # Act
        winners = calculate_irv_results(ballots, OPTIONS)

        # Assert
        assert winners == [RankedWinner(option_index=0, round=1, vote_count=2)]

    @pytest.mark.parametrize("method", list(TabulationMethod))
    def test_first_choice_tie_eliminates_lowest_index(self, method: TabulationMethod) -> None:
        """IRV breaks the first-choice tie by option order; Coombs drops A on last places."""
        # Arrange
        ballots = [ballot("v1", "A", "B", "C"), ballot("v2", "B", "C", "A"), ballot("v3", "C", "B", "A")]

        # Act
        winners = calculate_results(ballots, OPTIONS, method=method)

        # Assert
        assert winners == [RankedWinner(option_index=1, round=2, vote_count=2)]

    @pytest.mark.parametrize("method", list(TabulationMethod))
    def test_cyclic_ballots_break_ties_by_option_order(self, method: TabulationMethod) -> None:
        """A Condorcet cycle ties first and last places alike; A goes first, then B beats C."""
        # Arrange
        ballots = [ballot("v1", "A", "B", "C"), ballot("v2", "B", "C", "A"), ballot("v3", "C", "A", "B")]

        # Act
        winners = calculate_results(ballots, OPTIONS, method=method)

        # Assert
        assert winners == [RankedWinner(option_index=1, round=2, vote_count=2)]

    def test_irv_and_coombs_diverge(self) -> None:
        """IRV drops the weakest first choice; Coombs drops the most disliked."""
        # Arrange
        ballots = [
            ballot("v1", "A", "B", "C"),
            ballot("v2", "A", "B", "C"),
            ballot("v3", "C", "B", "A"),
            ballot("v4", "C", "B", "A"),
            ballot("v5", "B", "A", "C"),
        ]

        # Act
        irv = calculate_irv_results(ballots, OPTIONS)
        coombs = calculate_coombs_results(ballots, OPTIONS)

        # Assert
        assert irv == [RankedWinner(option_index=0, round=2, vote_count=3)]
        assert coombs == [RankedWinner(option_index=1, round=2, vote_count=3)]

    def test_multiple_winners(self) -> None:
        """Winners are removed and counting continues for the next seat."""
        # Arrange
        ballots = [ballot("v1", "A", "B", "C"), ballot("v2", "A", "B", "C"), ballot("v3", "B", "C", "A")]

        # Act
        winners = calculate_irv_results(ballots, OPTIONS, winners_needed=2)

        # Assert
        assert winners == [
            RankedWinner(option_index=0, round=1, vote_count=2),
            RankedWinner(option_index=1, round=2, vote_count=3),
        ]

    def test_partial_ballots_and_unranked_sentinel(self) -> None:
        """Unranked options (-1) are skipped; exhausted ballots stop counting."""
        # Arrange
        ballots = [
            RankedBallot(voter="v1", rankings={"A": 0, "B": -1, "C": -1}),
            RankedBallot(voter="v2", rankings={"B": 0, "A": -1}),
            RankedBallot(voter="v3", rankings={"C": 0, "B": 1}),
            RankedBallot(voter="v4", rankings={"B": 0}),
        ]

        # Act
        winners = calculate_irv_results(ballots, OPTIONS)

        # Assert
        assert winners == [RankedWinner(option_index=1, round=2, vote_count=2)]

    def test_no_ballots(self) -> None:
        """No ballots produce no winners."""
        assert calculate_irv_results([], OPTIONS) == []

    def test_all_abstaining_ballots(self) -> None:
        """Ballots that rank nothing cast no votes and produce no winners."""
        ballots = [RankedBallot(voter="v1", rankings={"A": -1, "B": -1})]
        assert calculate_coombs_results(ballots, OPTIONS) == []

    @pytest.mark.parametrize("winners_needed", [0, 4])
    def test_invalid_winner_count(self, winners_needed: int) -> None:
        with pytest.raises(ValidationError):
            calculate_irv_results([ballot("v1", "A")], OPTIONS, winners_needed=winners_needed)

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            calculate_irv_results([ballot("v1", "Z", "A")], OPTIONS)

    def test_duplicate_rank_rejected_on_construction(self) -> None:
        with pytest.raises(ValidationError):
            RankedBallot(voter="v1", rankings={"A": 0, "B": 0})


class TestTallies:
    """Test first-choice tallies and rank checks."""

    def test_first_choices_conserve_ballots(self) -> None:
        """Each non-exhausted ballot adds exactly one vote."""
        # Arrange
        ballots = [ballot("v1", "A", "B"), ballot("v2", "B", "A"), ballot("v3", "A"), ballot("v4", "C")]

        # Act
        counts = tally_first_choices(ballots, OPTIONS, eliminated=["A"])

        # Assert
        assert counts == {"B": 2, "C": 1}
        assert sum(counts.values()) == 3, "The ballot ranking only A is exhausted"

    def test_last_places_count_lowest_ranked_remaining_option(self) -> None:
        """A ballot's last place is its lowest-ranked option still in the race."""
        # Arrange
        ballots = [ballot("v1", "A", "B", "C"), ballot("v2", "C", "B", "A"), ballot("v3", "B")]

        # Act
        counts = tally_last_places(ballots, OPTIONS, eliminated=[])

        # Assert
        assert counts == {"A": 1, "B": 1, "C": 1}

    def test_last_places_skip_eliminated_options(self) -> None:
        # Arrange
        ballots = [ballot("v1", "A", "B", "C"), ballot("v2", "B", "A", "C"), ballot("v3", "B", "C")]

        # Act
        counts = tally_last_places(ballots, OPTIONS, eliminated=["C"])

        # Assert
        assert counts == {"A": 1, "B": 2}

    def test_has_duplicate_rankings(self) -> None:
        assert has_duplicate_rankings([0, 1, 1])
        assert not has_duplicate_rankings([0, -1, -1, 1])
        assert not has_duplicate_rankings([])
