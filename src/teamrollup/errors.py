"""
teamrollup.errors - Exception hierarchy.

The engine itself never raises for untrustworthy input; these exceptions
cover programmer errors, configuration problems, and callers that opt into
exceptions for rejected mutations via MutationResult.unwrap().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from teamrollup.graph.mutations import MutationError


class TeamRollupError(Exception):
    """Base class for all teamrollup errors."""


class ConfigError(TeamRollupError):
    """Configuration file is unreadable or holds invalid values."""


class MutationRejected(TeamRollupError):
    """A structural mutation was rejected; nothing was applied.

    Attributes:
        error: The typed MutationError describing the rejection.
    """

    def __init__(self, error: MutationError) -> None:
        super().__init__(str(error))
        self.error = error


__all__ = ["TeamRollupError", "ConfigError", "MutationRejected"]
