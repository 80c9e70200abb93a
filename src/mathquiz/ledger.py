"""Newest-first history of answered questions, persisted after every change."""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Callable
from dataclasses import asdict
from datetime import UTC, date, datetime
from pathlib import Path
from typing import cast

from .errors import EmptyExportError, PersistenceError
from .models import HistoryEntry, HistoryStats
from .storage import HistoryStorage

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"
CSV_HEADER = ("Fecha y Hora", "Pregunta", "Tu Respuesta", "Respuesta Correcta", "Resultado", "Nivel")
EXPORT_PREFIX = "historial_matematicas_"

# Keys written by the browser version of the quiz.
LEGACY_KEYS = {
    "dateTime": "timestamp",
    "question": "question_text",
    "userAnswer": "user_answer",
    "correctAnswer": "correct_answer",
    "isCorrect": "is_correct",
}


def _local_now() -> datetime:
    return datetime.now().astimezone()


class HistoryLedger:
    """Ordered log of answered questions backed by one storage slot."""

    def __init__(self, storage: HistoryStorage, clock: Clock | None = None) -> None:
        self.storage = storage
        self._clock = clock if clock is not None else _local_now
        self._entries: list[HistoryEntry] = []

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        """Entries, newest first."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> list[HistoryEntry]:
        """Replace in-memory entries with the persisted ones.

        A missing slot loads as an empty history. Unreadable or malformed data
        raises PersistenceError and leaves the in-memory entries untouched.
        """
        raw = self.storage.load()
        if raw is None:
            self._entries = []
            return []
        try:
            decoded: object = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise PersistenceError(f"Stored history is not valid JSON: {exc}") from exc
        if not isinstance(decoded, list):
            raise PersistenceError("Stored history must be a JSON array.")

        entries: list[HistoryEntry] = []
        for index, item in enumerate(cast(list[object], decoded)):
            try:
                entries.append(_entry_from_dict(item))
            except ValueError as exc:
                raise PersistenceError(f"Stored history entry {index} is invalid: {exc}") from exc
        self._entries = entries
        logger.debug("Loaded %d history entries", len(entries))
        return list(entries)

    def record(self, question_text: str, user_answer: int, correct_answer: int, level: int) -> HistoryEntry:
        """Prepend a new entry and persist the ledger.

        On PersistenceError the entry is kept in memory for the session.
        """
        now = self._clock()
        entry_id = int(now.timestamp() * 1000)
        if self._entries:
            entry_id = max(entry_id, self._entries[0].id + 1)
        entry = HistoryEntry(
            id=entry_id,
            timestamp=now.strftime(TIMESTAMP_FORMAT),
            question_text=question_text,
            user_answer=user_answer,
            correct_answer=correct_answer,
            is_correct=user_answer == correct_answer,
            level=level,
        )
        self._entries.insert(0, entry)
        self._persist()
        logger.debug("Recorded history entry %d (%s)", entry.id, "correct" if entry.is_correct else "incorrect")
        return entry

    def clear(self, confirmed: bool) -> bool:
        """Remove every entry when the caller has confirmed; return whether it did."""
        if not confirmed:
            return False
        previous = self._entries
        self._entries = []
        try:
            self._persist()
        except PersistenceError:
            self._entries = previous
            raise
        logger.info("Cleared history")
        return True

    def stats(self) -> HistoryStats:
        correct = sum(1 for entry in self._entries if entry.is_correct)
        return HistoryStats(total=len(self._entries), correct=correct, incorrect=len(self._entries) - correct)

    def export_csv(self) -> bytes:
        """Render the ledger, newest first, as UTF-8 CSV."""
        if not self._entries:
            raise EmptyExportError()
        buffer = io.StringIO()
        buffer.write(",".join(CSV_HEADER) + "\n")
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for entry in self._entries:
            writer.writerow(
                [
                    entry.timestamp,
                    entry.question_text,
                    entry.user_answer,
                    entry.correct_answer,
                    "Correcto" if entry.is_correct else "Incorrecto",
                    entry.level,
                ]
            )
        return buffer.getvalue().encode("utf-8")

    def export_to(self, directory: Path | str, today: date | None = None) -> Path:
        """Write the CSV export into a directory and return the file path."""
        payload = self.export_csv()
        path = Path(directory) / export_filename(today)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        logger.info("Exported %d history entries to %s", len(self._entries), path)
        return path

    def import_entries(self, raw: bytes) -> int:
        """Merge entries from a JSON array, skipping known ids and invalid rows.

        Accepts both the stored key style and the browser key style. Returns
        the number of entries added.
        """
        decoded: object = json.loads(raw.decode("utf-8-sig"))
        if not isinstance(decoded, list):
            raise ValueError("Import file root must be a JSON array.")

        known_ids = {entry.id for entry in self._entries}
        added: list[HistoryEntry] = []
        for item in cast(list[object], decoded):
            try:
                entry = _entry_from_dict(item)
            except ValueError as exc:
                logger.debug("Skipping invalid imported entry: %s", exc)
                continue
            if entry.id in known_ids:
                continue
            known_ids.add(entry.id)
            added.append(entry)

        if added:
            self._entries = sorted([*self._entries, *added], key=lambda entry: entry.id, reverse=True)
            self._persist()
        logger.info("Imported %d history entries", len(added))
        return len(added)

    def _persist(self) -> None:
        payload = json.dumps([asdict(entry) for entry in self._entries], ensure_ascii=False)
        self.storage.save(payload.encode("utf-8"))


def export_filename(today: date | None = None) -> str:
    """Return the CSV file name for an export made on ``today`` (UTC date by default)."""
    day = today if today is not None else datetime.now(UTC).date()
    return f"{EXPORT_PREFIX}{day.isoformat()}.csv"


def _entry_from_dict(raw: object) -> HistoryEntry:
    """Build an entry from a stored record in either key style."""
    if not isinstance(raw, dict):
        raise ValueError("entry must be a JSON object")
    row = {LEGACY_KEYS.get(str(key), str(key)): value for key, value in cast(dict[object, object], raw).items()}

    entry_id = _require_int(row, "id")
    user_answer = _require_int(row, "user_answer")
    correct_answer = _require_int(row, "correct_answer")
    level = _require_int(row, "level")
    timestamp = row.get("timestamp")
    question_text = row.get("question_text")
    if not isinstance(timestamp, str):
        raise ValueError("timestamp must be a string")
    if not isinstance(question_text, str):
        raise ValueError("question_text must be a string")

    is_correct = row.get("is_correct", user_answer == correct_answer)
    if not isinstance(is_correct, bool):
        raise ValueError("is_correct must be a boolean")
    if is_correct != (user_answer == correct_answer):
        raise ValueError("is_correct contradicts user_answer and correct_answer")
    return HistoryEntry(
        id=entry_id,
        timestamp=timestamp,
        question_text=question_text,
        user_answer=user_answer,
        correct_answer=correct_answer,
        is_correct=is_correct,
        level=level,
    )


def _require_int(row: dict[str, object], key: str) -> int:
    value = row.get(key)
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"{key} must be an integer")
