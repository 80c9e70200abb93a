"""Error kinds surfaced by the quiz core."""

from __future__ import annotations


class QuizError(Exception):
    """Base class for recoverable quiz errors."""


class PersistenceError(QuizError):
    """Durable history storage could not be read, written or parsed."""


class EmptyExportError(QuizError):
    """Export was requested while the history ledger is empty."""

    def __init__(self) -> None:
        super().__init__("No hay datos para exportar")


class InvalidSelection(QuizError):
    """Selected value is not a valid answer for the current question."""
