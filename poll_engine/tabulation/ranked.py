"""
Ranked-choice tabulation.

Instant-Runoff and Coombs elimination over the same ballots, with
multi-winner extraction. Each round either declares a winner or eliminates
exactly one option, so the loop always terminates.

Ties are broken by the option's position in the poll: the lowest index is
the one eliminated, or the one declared when leaders tie.
"""

from collections.abc import Iterable, Sequence

from ..exceptions import ValidationError
from ..logging_config import get_logger
from ..models import UNRANKED, PollOption, RankedBallot, RankedWinner, TabulationMethod

# Module-level logger
logger = get_logger("ranked")


def has_duplicate_rankings(ranks: Iterable[int]) -> bool:
    """True if any rank other than the unranked sentinel repeats."""
    seen: set[int] = set()
    for rank in ranks:
        if rank <= UNRANKED:
            continue
        if rank in seen:
            return True
        seen.add(rank)
    return False


def validate_ballots(ballots: Sequence[RankedBallot], options: Sequence[PollOption]) -> None:
    """Reject ballots that name options outside the poll."""
    known = {option.id for option in options}
    for ballot in ballots:
        unknown = set(ballot.rankings) - known
        if unknown:
            raise ValidationError(f"ballot from {ballot.voter} ranks unknown options {sorted(unknown)}")


def _first_choice_counts(preferences: Sequence[list[str]], remaining: Sequence[str]) -> dict[str, int]:
    counts = {option_id: 0 for option_id in remaining}
    for preference in preferences:
        if preference:
            counts[preference[0]] += 1
    return counts


def _last_place_counts(preferences: Sequence[list[str]], remaining: Sequence[str]) -> dict[str, int]:
    counts = {option_id: 0 for option_id in remaining}
    for preference in preferences:
        if preference:
            counts[preference[-1]] += 1
    return counts


def _restrict(ballots: Sequence[RankedBallot], remaining: Sequence[str]) -> list[list[str]]:
    # Filtering the ordered preferences re-ranks them contiguously from 0
    allowed = set(remaining)
    return [[option_id for option_id in ballot.preferences() if option_id in allowed] for ballot in ballots]


def tally_first_choices(
    ballots: Sequence[RankedBallot],
    options: Sequence[PollOption],
    eliminated: Iterable[str] = (),
) -> dict[str, int]:
    """First-choice votes per remaining option; exhausted ballots abstain."""
    removed = set(eliminated)
    remaining = [option.id for option in options if option.id not in removed]
    return _first_choice_counts(_restrict(ballots, remaining), remaining)


def tally_last_places(
    ballots: Sequence[RankedBallot],
    options: Sequence[PollOption],
    eliminated: Iterable[str] = (),
) -> dict[str, int]:
    """Last-place votes per remaining option."""
    removed = set(eliminated)
    remaining = [option.id for option in options if option.id not in removed]
    return _last_place_counts(_restrict(ballots, remaining), remaining)


def calculate_results(
    ballots: Sequence[RankedBallot],
    options: Sequence[PollOption],
    winners_needed: int = 1,
    method: TabulationMethod = TabulationMethod.IRV,
) -> list[RankedWinner]:
    """
    Extract winners from ranked ballots.

    Args:
        ballots: Complete ballot set
        options: Poll options; positions define option indices and tie order
        winners_needed: Number of winners to extract
        method: IRV (eliminate fewest first choices) or Coombs (eliminate
            most last places)

    Returns:
        Winners in the order they were declared; empty for an empty or
        entirely abstaining ballot set
    """
    if winners_needed <= 0 or winners_needed > len(options):
        raise ValidationError(
            f"winners_needed must be between 1 and {len(options)}, got {winners_needed}"
        )
    method = TabulationMethod(method)
    validate_ballots(ballots, options)
    if not ballots:
        return []

    index = {option.id: position for position, option in enumerate(options)}
    remaining = [option.id for option in options]
    preferences = _restrict(ballots, remaining)
    winners: list[RankedWinner] = []
    round_number = 0

    while len(winners) < winners_needed and remaining:
        round_number += 1
        counts = _first_choice_counts(preferences, remaining)
        cast = sum(counts.values())
        if cast == 0:
            logger.debug(f"Round {round_number}: no votes cast, stopping")
            break

        leader = max(remaining, key=lambda option_id: (counts[option_id], -index[option_id]))
        seats_left = winners_needed - len(winners)

        if counts[leader] > cast / 2 or len(remaining) <= seats_left:
            winners.append(RankedWinner(option_index=index[leader], round=round_number, vote_count=counts[leader]))
            resolved = leader
            logger.debug(f"Round {round_number}: {leader} wins with {counts[leader]}/{cast}")
        elif method is TabulationMethod.COOMBS:
            last_places = _last_place_counts(preferences, remaining)
            resolved = max(remaining, key=lambda option_id: (last_places[option_id], -index[option_id]))
            logger.debug(f"Round {round_number}: eliminating {resolved} ({last_places[resolved]} last places)")
        else:
            resolved = min(remaining, key=lambda option_id: (counts[option_id], index[option_id]))
            logger.debug(f"Round {round_number}: eliminating {resolved} ({counts[resolved]} first choices)")

        remaining.remove(resolved)
        preferences = [[option_id for option_id in preference if option_id != resolved] for preference in preferences]

    return winners


def calculate_irv_results(
    ballots: Sequence[RankedBallot], options: Sequence[PollOption], winners_needed: int = 1
) -> list[RankedWinner]:
    return calculate_results(ballots, options, winners_needed, TabulationMethod.IRV)


def calculate_coombs_results(
    ballots: Sequence[RankedBallot], options: Sequence[PollOption], winners_needed: int = 1
) -> list[RankedWinner]:
    return calculate_results(ballots, options, winners_needed, TabulationMethod.COOMBS)
