"""Error taxonomy shared by the core, the stores and the CLI.

Only errors that make a whole operation meaningless propagate to the caller.
Per-repository failures are raised as SourceUnavailable by the commit source
and turned into diagnostic strings by the aggregator.
"""

from __future__ import annotations


class CommitscopeError(Exception):
    """Base class for all commitscope errors."""


class SourceUnavailable(CommitscopeError):
    """A repository path is invalid, inaccessible, or git itself failed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class MissingDateRange(CommitscopeError, ValueError):
    """A custom window was requested without both bounds."""


class PersistenceFailure(CommitscopeError):
    """A store read or write failed. Never retried by the core."""
