"""
Conversion between engine dataclasses and persisted documents.

Documents use the camelCase field names of the poll record. Everything read
back is validated with pydantic TypeAdapters and then checked against the
data model invariants; anything malformed raises InvalidStateError.
"""

from dataclasses import fields
from typing import Any

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from .exceptions import InvalidStateError, ValidationError
from .interfaces import (
    AnnotatorDocument,
    BradleyTerryStateDocument,
    EloStateDocument,
    OptionDocument,
    PairwiseStatsDocument,
    PairwiseVoteDocument,
    PluralityVoteDocument,
    PollDocument,
    RankedVoteDocument,
    TrueSkillStateDocument,
)
from .models import (
    AnnotatorState,
    Comparison,
    GlobalPairwiseStats,
    OptionRatingState,
    PluralityBallot,
    Poll,
    PollOption,
    RankedBallot,
    RatingSystem,
    TabulationMethod,
    VotingFormat,
)
from .rating import model_for

_STATE_DOCUMENTS: dict[RatingSystem, Any] = {
    RatingSystem.ELO: EloStateDocument,
    RatingSystem.BRADLEY_TERRY: BradleyTerryStateDocument,
    RatingSystem.CROWD: BradleyTerryStateDocument,
    RatingSystem.TRUESKILL: TrueSkillStateDocument,
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _validate(document_type: Any, data: object, what: str) -> Any:
    try:
        return TypeAdapter(document_type).validate_python(data)
    except PydanticValidationError as e:
        raise InvalidStateError(f"Malformed {what}: {e}") from e


def state_to_document(state: OptionRatingState) -> dict[str, Any]:
    return {_camel(f.name): getattr(state, f.name) for f in fields(state)}


def state_from_document(system: RatingSystem, data: object) -> OptionRatingState:
    document = _validate(_STATE_DOCUMENTS[system], data, f"{system.value} option state")
    state_type = model_for(system).state_type
    return state_type(**{f.name: document[_camel(f.name)] for f in fields(state_type)})


def annotator_to_document(annotator: AnnotatorState) -> AnnotatorDocument:
    return {
        "alpha": annotator.alpha,
        "beta": annotator.beta,
        "reliability": annotator.reliability,
        "comparisons": annotator.comparisons,
    }


def stats_to_document(stats: GlobalPairwiseStats) -> PairwiseStatsDocument:
    return {
        "system": stats.system.value,
        "participants": {
            str(option_id): state_to_document(state) for option_id, state in sorted(stats.participants.items())
        },
        "annotators": {
            annotator_id: annotator_to_document(annotator) for annotator_id, annotator in stats.annotators.items()
        },
    }


def stats_from_document(data: object) -> GlobalPairwiseStats:
    """Rebuild statistics; fails fast on anything that violates the invariants."""
    document = _validate(PairwiseStatsDocument, data, "pairwise stats")
    try:
        system = RatingSystem(document["system"])
    except ValueError as e:
        raise InvalidStateError(f"Unknown rating system: {document['system']!r}") from e

    stats = GlobalPairwiseStats(system=system)
    for key, raw_state in document["participants"].items():
        try:
            option_id = int(key)
        except ValueError as e:
            raise InvalidStateError(f"Participant key is not an option index: {key!r}") from e
        stats.participants[option_id] = state_from_document(system, raw_state)

    for annotator_id, annotator in document["annotators"].items():
        stats.annotators[annotator_id] = AnnotatorState(
            annotator_id=annotator_id,
            alpha=annotator["alpha"],
            beta=annotator["beta"],
            reliability=annotator["reliability"],
            comparisons=annotator["comparisons"],
        )

    stats.check()
    return stats


def comparison_to_document(comparison: Comparison) -> PairwiseVoteDocument:
    document: PairwiseVoteDocument = {
        "userId": comparison.annotator,
        "winner": comparison.winner,
        "loser": comparison.loser,
        "timestamp": comparison.timestamp,
    }
    if comparison.is_draw:
        document["isDraw"] = True
    return document


def comparison_from_document(data: object) -> Comparison:
    document = _validate(PairwiseVoteDocument, data, "pairwise vote")
    return _rebuild(
        Comparison,
        winner=document["winner"],
        loser=document["loser"],
        annotator=document["userId"],
        timestamp=document["timestamp"],
        is_draw=document.get("isDraw", False),
    )


def ranked_ballot_to_document(ballot: RankedBallot) -> RankedVoteDocument:
    return {"userId": ballot.voter, "rankings": dict(ballot.rankings), "timestamp": ballot.timestamp}


def ranked_ballot_from_document(data: object) -> RankedBallot:
    document = _validate(RankedVoteDocument, data, "ranked vote")
    return _rebuild(
        RankedBallot, voter=document["userId"], rankings=document["rankings"], timestamp=document["timestamp"]
    )


def plurality_ballot_to_document(ballot: PluralityBallot) -> PluralityVoteDocument:
    return {"userId": ballot.voter, "selections": list(ballot.selections), "timestamp": ballot.timestamp}


def plurality_ballot_from_document(data: object) -> PluralityBallot:
    document = _validate(PluralityVoteDocument, data, "plurality vote")
    return _rebuild(
        PluralityBallot, voter=document["userId"], selections=document["selections"], timestamp=document["timestamp"]
    )


def _rebuild(cls: Any, **kwargs: Any) -> Any:
    # Stored records that fail input validation are corrupted state
    try:
        return cls(**kwargs)
    except ValidationError as e:
        raise InvalidStateError(f"Stored {cls.__name__} is invalid: {e}") from e


def option_to_document(option: PollOption) -> OptionDocument:
    document: OptionDocument = {"id": option.id, "text": option.text, "votes": option.votes}
    if option.image_url is not None:
        document["imageUrl"] = option.image_url
    return document


def poll_to_document(poll: Poll, include_votes: bool = True) -> PollDocument:
    """
    Serialize a poll record.

    Args:
        poll: The poll to serialize
        include_votes: Whether to embed the vote lists (stores that keep votes
            in a separate log pass False)
    """
    document: PollDocument = {
        "id": poll.id,
        "title": poll.title,
        "description": poll.description,
        "options": [option_to_document(option) for option in poll.options],
        "votingFormat": poll.voting_format.value,
        "ratingSystem": poll.rating_system.value if poll.rating_system else None,
        "tabulationMethod": poll.tabulation_method.value,
        "createdAt": poll.created_at,
        "createdBy": poll.created_by,
        "singleVoteUsers": list(poll.single_vote_users),
        "pairwiseStats": stats_to_document(poll.pairwise_stats) if poll.pairwise_stats else None,
    }
    if include_votes:
        document["pairwiseVotes"] = [comparison_to_document(vote) for vote in poll.pairwise_votes]
        document["rankedVotes"] = [ranked_ballot_to_document(vote) for vote in poll.ranked_votes]
        document["pluralityVotes"] = [plurality_ballot_to_document(vote) for vote in poll.plurality_votes]
    return document


def poll_from_document(data: object) -> Poll:
    document = _validate(PollDocument, data, "poll record")
    try:
        voting_format = VotingFormat(document["votingFormat"])
        rating_system = RatingSystem(document["ratingSystem"]) if document.get("ratingSystem") else None
        tabulation_method = TabulationMethod(document.get("tabulationMethod", TabulationMethod.IRV.value))
    except ValueError as e:
        raise InvalidStateError(f"Poll {document['id']} has an unknown enum value: {e}") from e

    stats_document = document.get("pairwiseStats")
    options = [
        _rebuild(
            PollOption,
            id=option["id"],
            text=option["text"],
            votes=option.get("votes", 0),
            image_url=option.get("imageUrl"),
        )
        for option in document["options"]
    ]
    return _rebuild(
        Poll,
        id=document["id"],
        title=document["title"],
        description=document.get("description", ""),
        options=options,
        voting_format=voting_format,
        rating_system=rating_system,
        tabulation_method=tabulation_method,
        created_at=document["createdAt"],
        created_by=document.get("createdBy", "anonymous"),
        single_vote_users=list(document.get("singleVoteUsers", [])),
        pairwise_stats=stats_from_document(stats_document) if stats_document else None,
        pairwise_votes=[comparison_from_document(vote) for vote in document.get("pairwiseVotes", [])],
        ranked_votes=[ranked_ballot_from_document(vote) for vote in document.get("rankedVotes", [])],
        plurality_votes=[plurality_ballot_from_document(vote) for vote in document.get("pluralityVotes", [])],
    )
