from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ReconciliationError(Exception):
    """Standard error raised while cleaning occurrence tables.

    Parameters
    ----------
    code:
        Short machine readable error code.
    message:
        Human readable error message.
    """

    code: str
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code}: {self.message}"


class InvalidInputError(ReconciliationError):
    """The input table is empty, not tabular or lacks required columns."""

    def __init__(self, message: str) -> None:
        super().__init__("invalid_input", message)


class ExternalResolutionError(ReconciliationError):
    """The taxonomic name-resolution service failed or was unreachable."""

    def __init__(self, message: str) -> None:
        super().__init__("external_resolution", message)


class InternalConsistencyError(ReconciliationError):
    """A record could not be matched back to its resolved family/genus pair."""

    def __init__(self, message: str) -> None:
        super().__init__("internal_consistency", message)


__all__ = [
    "ReconciliationError",
    "InvalidInputError",
    "ExternalResolutionError",
    "InternalConsistencyError",
]
