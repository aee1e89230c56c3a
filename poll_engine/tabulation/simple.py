"""
Single-choice and plurality tallies.
"""

from collections.abc import Sequence

from ..exceptions import ValidationError
from ..models import OptionTally, PluralityBallot, PollOption


def single_choice_results(options: Sequence[PollOption]) -> list[OptionTally]:
    """Per-option counters as a share of all votes."""
    total = sum(option.votes for option in options)
    return [
        OptionTally(
            option_index=position,
            votes=option.votes,
            percentage=option.votes / total * 100.0 if total > 0 else 0.0,
        )
        for position, option in enumerate(options)
    ]


def validate_plurality_ballot(ballot: PluralityBallot, option_count: int) -> None:
    if not ballot.selections:
        raise ValidationError(f"ballot from {ballot.voter} selects nothing")
    for selection in ballot.selections:
        if not (0 <= selection < option_count):
            raise ValidationError(f"ballot from {ballot.voter} selects unknown option {selection}")


def plurality_results(ballots: Sequence[PluralityBallot], option_count: int) -> list[OptionTally]:
    """Selections per option, scaled against the most-selected option."""
    counts = [0] * option_count
    for ballot in ballots:
        validate_plurality_ballot(ballot, option_count)
        for selection in ballot.selections:
            counts[selection] += 1

    most = max(counts, default=0)
    return [
        OptionTally(
            option_index=position,
            votes=count,
            percentage=count / most * 100.0 if most > 0 else 0.0,
        )
        for position, count in enumerate(counts)
    ]
