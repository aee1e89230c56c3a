"""
Pairwise comparison processing.

Incremental path: process_comparison applies one observation to the
statistics in place. Batch path: reprocess rebuilds the statistics from the
complete comparison log, which removes the order-dependent drift that
accumulates in the incremental state.
"""

from collections.abc import Iterable, Sequence

from .annotators import ensure_annotator, update_reliability
from .exceptions import ValidationError
from .logging_config import get_logger
from .models import Comparison, GlobalPairwiseStats, OptionId, RatingSystem
from .rating import check_outcome, ensure_participant, initialize, model_for, update

# Module-level logger
logger = get_logger("pairwise")

DEFAULT_REPROCESS_EVERY = 10


def process_comparison(
    stats: GlobalPairwiseStats,
    comparison: Comparison,
    option_ids: Iterable[OptionId] | None = None,
) -> GlobalPairwiseStats:
    """
    Apply one comparison: annotator reliability first, then the rating update.

    Args:
        stats: Statistics to mutate in place
        comparison: The new observation
        option_ids: Options that exist in the poll; when given, comparisons
            naming any other option are rejected before anything changes

    Returns:
        The same statistics object, updated
    """
    if option_ids is not None:
        known = set(option_ids)
        for option_id in (comparison.winner, comparison.loser):
            if option_id not in known:
                raise ValidationError(f"Unknown option {option_id} in comparison by {comparison.annotator}")

    check_outcome(stats, comparison.winner, comparison.is_draw)
    model = model_for(stats.system)
    ensure_participant(stats, comparison.winner, comparison.timestamp)
    ensure_participant(stats, comparison.loser, comparison.timestamp)
    annotator = ensure_annotator(stats, comparison.annotator)

    update_reliability(annotator, comparison, stats)
    weight = annotator.reliability if model.weighted_by_reliability else 1.0
    update(
        stats,
        comparison.winner,
        comparison.loser,
        is_draw=comparison.is_draw,
        weight=weight,
        timestamp=comparison.timestamp,
    )
    annotator.comparisons += 1
    return stats


def reprocess(
    comparisons: Sequence[Comparison],
    system: RatingSystem,
    option_ids: Iterable[OptionId] | None = None,
) -> GlobalPairwiseStats:
    """
    Recompute statistics from scratch by replaying the comparison log.

    Comparisons are replayed in timestamp order; equal timestamps keep their
    log order. The result depends only on the arguments, so rerunning it is
    always safe.
    """
    ordered = sorted(comparisons, key=lambda comparison: comparison.timestamp)
    start = ordered[0].timestamp if ordered else 0.0

    known = None if option_ids is None else list(option_ids)
    stats = initialize(system, 0, timestamp=start)
    for option_id in known or ():
        ensure_participant(stats, option_id, start)

    for comparison in ordered:
        process_comparison(stats, comparison, known)

    logger.info(
        f"Reprocessed {len(ordered)} comparisons into {len(stats.participants)} options "
        f"and {len(stats.annotators)} annotators ({stats.system.value})"
    )
    return stats


def should_reprocess(comparison_count: int, every: int = DEFAULT_REPROCESS_EVERY) -> bool:
    """True on every Nth comparison."""
    if every <= 0:
        raise ValidationError(f"reprocess interval must be positive, got {every}")
    return comparison_count > 0 and comparison_count % every == 0
