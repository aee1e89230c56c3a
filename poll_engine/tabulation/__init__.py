"""
Vote tabulation.

Stateless result computation recomputed from the complete vote set:
- Ranked ballots: Instant-Runoff and Coombs elimination
- Single choice and plurality: per-option tallies
"""

from .ranked import (
    calculate_coombs_results,
    calculate_irv_results,
    calculate_results,
    has_duplicate_rankings,
    tally_first_choices,
    tally_last_places,
    validate_ballots,
)
from .simple import plurality_results, single_choice_results, validate_plurality_ballot

__all__ = [
    "calculate_coombs_results",
    "calculate_irv_results",
    "calculate_results",
    "has_duplicate_rankings",
    "plurality_results",
    "single_choice_results",
    "tally_first_choices",
    "tally_last_places",
    "validate_ballots",
    "validate_plurality_ballot",
]
