"""Shared error types for ask.

Goal: don't silently turn infrastructure failures into model "content".
Provider/persistence failures should be explicit and handled at the right layer.
"""


class AskError(Exception):
    """Base error for ask."""


class ConfigError(AskError):
    """Required configuration (usually the API key) is missing or invalid."""


class ProviderCallError(AskError):
    """LLM/provider call failed (network/auth/model/etc.)."""


class PersistenceError(AskError):
    """Context file could not be read, parsed or written."""


class PruningError(AskError):
    """Context pruning could not be completed."""


class PruningResponseError(PruningError):
    """The model's pruning answer was not a JSON array of indices."""


class AnalysisError(AskError):
    """Directory analysis failed."""
