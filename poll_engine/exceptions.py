"""
Exception classes for the poll engine.

Centralized location for all custom exceptions to avoid circular imports.
"""


class PollEngineError(Exception):
    """Base exception for all poll engine errors."""
    pass


class ValidationError(PollEngineError):
    """Invalid input rejected before any state was touched."""
    pass


class DuplicateVoteError(ValidationError):
    """A voter tried to vote twice where only one vote is allowed."""
    pass


class InvalidStateError(PollEngineError):
    """Persisted state violates the data model invariants."""
    pass


class ConfigurationError(PollEngineError):
    """Base exception for configuration-related errors."""
    pass


class PollNotFoundError(PollEngineError):
    """The store holds no poll with the requested id."""
    pass
