"""
Annotator reliability model.

Each annotator's agreement with the consensus ranking is a Beta-Bernoulli
process: agreeing with the model's implied preference adds to alpha,
disagreeing adds to beta.
"""

from .logging_config import get_logger
from .models import AnnotatorId, AnnotatorState, Comparison, GlobalPairwiseStats
from .rating import model_for

# Module-level logger
logger = get_logger("annotators")


def initialize_annotator(annotator_id: AnnotatorId) -> AnnotatorState:
    """Uninformative prior; the annotator starts fully trusted."""
    return AnnotatorState(annotator_id=annotator_id, alpha=1.0, beta=1.0, reliability=1.0)


def ensure_annotator(stats: GlobalPairwiseStats, annotator_id: AnnotatorId) -> AnnotatorState:
    annotator = stats.annotators.get(annotator_id)
    if annotator is None:
        annotator = initialize_annotator(annotator_id)
        stats.annotators[annotator_id] = annotator
    return annotator


def update_reliability(
    annotator: AnnotatorState, comparison: Comparison, stats: GlobalPairwiseStats
) -> AnnotatorState:
    """
    Score the comparison against the current ratings.

    Only a model that favours the observed winner counts as agreement; an
    exactly even model counts against the annotator. Draws and options
    without ratings carry no evidence and leave alpha and beta untouched.
    """
    winner_state = stats.participants.get(comparison.winner)
    loser_state = stats.participants.get(comparison.loser)
    if comparison.is_draw or winner_state is None or loser_state is None:
        return annotator

    model = model_for(stats.system)
    p = model.win_probability(winner_state, loser_state)
    if p > 0.5:
        annotator.alpha += 1.0
    else:
        annotator.beta += 1.0

    annotator.reliability = annotator.alpha / (annotator.alpha + annotator.beta)
    logger.debug(
        f"Annotator {annotator.annotator_id}: p={p:.3f}, reliability={annotator.reliability:.3f}"
    )
    return annotator
