"""
Simulated annotators.

Answers comparisons from latent scores with Gaussian noise, for driving
sessions without human voters.
"""

from collections.abc import Mapping, Sequence

import numpy as np

from .exceptions import ValidationError
from .logging_config import get_logger
from .models import AnnotatorId, Comparison, OptionId
from .service import PollService

# Module-level logger
logger = get_logger("simulation")


class SimulatedAnnotator:
    """
    Annotator that prefers the option with the higher noisy latent score.

    With noise 0 it always agrees with the ground truth; larger noise makes it
    flip close pairs more often.
    """

    def __init__(
        self,
        annotator_id: AnnotatorId,
        ground_truth: Mapping[OptionId, float],
        noise: float = 0.1,
        rng: np.random.Generator | None = None,
    ):
        """
        Initialize simulated annotator.

        Args:
            annotator_id: Identity the votes are cast under
            ground_truth: Latent score per option (higher is better)
            noise: Standard deviation of the Gaussian added to each score
            rng: Random generator for the noise
        """
        if noise < 0:
            raise ValidationError(f"noise must be non-negative, got {noise}")
        self.annotator_id = annotator_id
        self.ground_truth = dict(ground_truth)
        self.noise = noise
        self.rng = rng if rng is not None else np.random.default_rng()

    def _noisy_score(self, option_id: OptionId) -> float:
        score = self.ground_truth.get(option_id, 0.0)
        if self.noise == 0:
            return score
        return score + float(self.rng.normal(0.0, self.noise))

    def judge(self, a: OptionId, b: OptionId) -> Comparison:
        """Compare two options; ties in noisy score go to the lower index."""
        score_a = self._noisy_score(a)
        score_b = self._noisy_score(b)
        if score_a > score_b or (score_a == score_b and a < b):
            return Comparison(winner=a, loser=b, annotator=self.annotator_id)
        return Comparison(winner=b, loser=a, annotator=self.annotator_id)


def simulate_session(
    service: PollService,
    poll_id: str,
    annotators: Sequence[SimulatedAnnotator],
    budget: int,
) -> int:
    """
    Let annotators take turns voting until the budget is spent or nobody has
    an unjudged pair left.

    Returns:
        Number of votes cast
    """
    if budget < 0:
        raise ValidationError(f"budget must be non-negative, got {budget}")

    cast = 0
    exhausted: set[AnnotatorId] = set()
    while cast < budget and len(exhausted) < len(annotators):
        for annotator in annotators:
            if cast >= budget:
                break
            if annotator.annotator_id in exhausted:
                continue
            pair = service.next_comparison(poll_id, annotator.annotator_id)
            if pair is None:
                exhausted.add(annotator.annotator_id)
                logger.debug(f"{annotator.annotator_id} has judged every pair")
                continue
            comparison = annotator.judge(*pair)
            service.submit_pairwise_vote(
                poll_id,
                comparison.winner,
                comparison.loser,
                annotator.annotator_id,
                timestamp=comparison.timestamp,
            )
            cast += 1

    logger.info(f"Simulated session on {poll_id} finished after {cast} votes")
    return cast
