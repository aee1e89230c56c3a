"""
Tests for the annotator reliability model.
"""

import pytest

from poll_engine.annotators import ensure_annotator, initialize_annotator, update_reliability
from poll_engine.models import Comparison, RatingSystem
from poll_engine.pairwise import process_comparison
from poll_engine.rating import initialize, update


class TestAnnotatorReliability:
    """Test the Beta-Bernoulli reliability updates."""

    def test_initial_annotator_is_trusted(self) -> None:
        """A new annotator starts with alpha = beta = 1 and reliability 1."""
        annotator = initialize_annotator("alice")

        assert annotator.alpha == 1.0
        assert annotator.beta == 1.0
        assert annotator.reliability == 1.0
        assert annotator.comparisons == 0

    def test_agreement_increments_alpha(self) -> None:
        """Voting for the favourite counts as agreement."""
        # Arrange
        stats = initialize(RatingSystem.ELO, 2)
        update(stats, 0, 1)
        annotator = ensure_annotator(stats, "alice")

        # Act
        update_reliability(annotator, Comparison(winner=0, loser=1, annotator="alice"), stats)

        # Assert
        assert annotator.alpha == 2.0
        assert annotator.beta == 1.0
        assert annotator.reliability == 2.0 / 3.0

    def test_disagreement_increments_beta(self) -> None:
        """Voting for the underdog counts as disagreement."""
        # Arrange
        stats = initialize(RatingSystem.ELO, 2)
        update(stats, 0, 1)
        annotator = ensure_annotator(stats, "bob")

        # Act
        update_reliability(annotator, Comparison(winner=1, loser=0, annotator="bob"), stats)

        # Assert
        assert annotator.beta == 2.0
        assert annotator.reliability == 1.0 / 3.0

    def test_even_model_counts_as_disagreement(self) -> None:
        """The first vote in a fresh poll has no favourite, so it counts against the annotator."""
        # Arrange
        stats = initialize(RatingSystem.CROWD, 2)

        # Act
        process_comparison(stats, Comparison(winner=0, loser=1, annotator="carol", timestamp=1.0))

        # Assert
        annotator = stats.annotators["carol"]
        assert (annotator.alpha, annotator.beta, annotator.reliability) == (1.0, 2.0, 0.5)
        assert stats.participants[0].mu == pytest.approx(0.025), "Crowd step is scaled by reliability 0.5"

    def test_draws_carry_no_evidence(self) -> None:
        """Draws leave alpha and beta unchanged even when the model has a favourite."""
        # Arrange
        stats = initialize(RatingSystem.BRADLEY_TERRY, 2)
        update(stats, 0, 1)
        annotator = ensure_annotator(stats, "carol")

        # Act
        update_reliability(annotator, Comparison(winner=1, loser=0, annotator="carol", is_draw=True), stats)

        # Assert
        assert (annotator.alpha, annotator.beta, annotator.reliability) == (1.0, 1.0, 1.0)

    def test_process_comparison_counts_annotator(self) -> None:
        """Processing a comparison creates the annotator and counts it."""
        # Arrange
        stats = initialize(RatingSystem.CROWD, 3)

        # Act
        process_comparison(stats, Comparison(winner=0, loser=1, annotator="dave", timestamp=1.0))
        process_comparison(stats, Comparison(winner=0, loser=2, annotator="dave", timestamp=2.0))

        # Assert
        annotator = stats.annotators["dave"]
        assert annotator.comparisons == 2
        assert 0.0 < annotator.reliability <= 1.0
