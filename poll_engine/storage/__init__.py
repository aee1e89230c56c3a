"""Storage backends for polls and votes."""

from .jsonl_store import JSONLPollStore

__all__ = ["JSONLPollStore"]
