"""Application service tying question generation, scoring and history together."""

from __future__ import annotations

import logging
import random
from pathlib import Path

from .config import Settings
from .errors import InvalidSelection, PersistenceError
from .feedback import feedback_for
from .game import apply_answer, restart_state
from .generator import generate_options, generate_question
from .ledger import Clock, HistoryLedger
from .models import AnswerOutcome, GameState, HistoryEntry, HistoryStats, Question
from .storage import HistoryStorage, MemoryStorage, open_storage

logger = logging.getLogger(__name__)


class QuizService:
    """Owns one game session: state counters, current question and history."""

    def __init__(
        self,
        storage: HistoryStorage,
        rng: random.Random | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Load history from storage and present the first question.

        Corrupt stored history does not stop the game: the session starts with
        an empty history and ``history_warning`` describes the problem.
        """
        self.rng = rng if rng is not None else random.Random()
        self.ledger = HistoryLedger(storage, clock=clock)
        self.state: GameState = restart_state()
        self.history_warning: str | None = None
        self.persistent = True
        try:
            self.ledger.load()
        except PersistenceError as exc:
            logger.warning("Starting with an empty history: %s", exc)
            self.history_warning = str(exc)

        self.question: Question
        self.options: tuple[int, ...]
        self.answered = False
        self.request_new_question()

    @classmethod
    def from_settings(cls, settings: Settings) -> QuizService:
        """Create a service using the configured storage and seed."""
        storage = open_storage(settings.storage, settings.data_dir)
        rng = random.Random(settings.seed) if settings.seed is not None else None
        return cls(storage, rng=rng)

    @classmethod
    def unsaved(cls, settings: Settings, reason: str) -> QuizService:
        """Create a session whose history lives only in memory because storage is unavailable."""
        rng = random.Random(settings.seed) if settings.seed is not None else None
        service = cls(MemoryStorage(), rng=rng)
        service.persistent = False
        service.history_warning = reason
        return service

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        """Answered questions, newest first."""
        return self.ledger.entries

    def request_new_question(self) -> Question:
        """Replace the current question without touching the counters."""
        self.question = generate_question(self.state.level, self.rng)
        self.options = generate_options(self.question, self.rng)
        self.answered = False
        return self.question

    def select_answer(self, value: int) -> AnswerOutcome:
        """Answer the current question with one of its options."""
        if self.answered:
            raise InvalidSelection("La pregunta actual ya fue respondida.")
        if value not in self.options:
            raise InvalidSelection(f"{value} no es una de las opciones.")

        correct = value == self.question.correct_result
        history_saved = True
        try:
            entry = self.ledger.record(self.question.text, value, self.question.correct_result, self.state.level)
        except PersistenceError as exc:
            logger.warning("History entry kept in memory only: %s", exc)
            entry = self.ledger.entries[0]
            history_saved = False

        self.state, leveled_up = apply_answer(self.state, correct)
        self.answered = True
        if leveled_up:
            logger.info("Level up to %d", self.state.level)
        return AnswerOutcome(
            correct=correct,
            leveled_up=leveled_up,
            feedback=feedback_for(self.question, correct, self.rng),
            entry=entry,
            state=self.state,
            history_saved=history_saved,
        )

    def restart(self) -> Question:
        """Reset counters and start over with a new question; history is kept."""
        self.state = restart_state()
        return self.request_new_question()

    def clear_history(self, confirmed: bool) -> bool:
        """Clear history when the caller confirmed it."""
        return self.ledger.clear(confirmed)

    def export_history(self) -> bytes:
        """Return the history as CSV bytes."""
        return self.ledger.export_csv()

    def export_history_to(self, directory: Path | str) -> Path:
        """Write the history CSV into a directory."""
        return self.ledger.export_to(directory)

    def import_history(self, import_path: Path | str) -> int:
        """Merge history entries from a JSON file."""
        return self.ledger.import_entries(Path(import_path).read_bytes())

    def history_stats(self) -> HistoryStats:
        return self.ledger.stats()

    def close(self) -> None:
        """Close resources."""
        self.ledger.storage.close()
