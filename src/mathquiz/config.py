"""Runtime settings resolved from command-line flags and the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .storage import STORAGE_KINDS

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(".mathquiz")
DEFAULT_STORAGE = "sqlite"


@dataclass(frozen=True)
class Settings:
    """Where history lives and how questions are randomized."""

    data_dir: Path = DEFAULT_DATA_DIR
    storage: str = DEFAULT_STORAGE
    seed: int | None = None


def load_settings(
    data_dir: str | None = None,
    storage: str | None = None,
    seed: int | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings: explicit values first, then MATHQUIZ_* variables, then defaults."""
    env = os.environ if environ is None else environ

    if data_dir is None:
        data_dir = env.get("MATHQUIZ_HOME") or None
    resolved_dir = Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR

    if storage is None:
        storage = env.get("MATHQUIZ_STORAGE") or DEFAULT_STORAGE
        if storage not in STORAGE_KINDS:
            logger.warning("Ignoring unknown MATHQUIZ_STORAGE=%r; using %s", storage, DEFAULT_STORAGE)
            storage = DEFAULT_STORAGE
    elif storage not in STORAGE_KINDS:
        raise ValueError(f"Unknown storage kind {storage!r}; expected one of {', '.join(STORAGE_KINDS)}.")

    if seed is None:
        seed_text = env.get("MATHQUIZ_SEED", "").strip()
        if seed_text:
            try:
                seed = int(seed_text)
            except ValueError:
                raise ValueError(f"MATHQUIZ_SEED must be an integer, got {seed_text!r}.") from None

    return Settings(data_dir=resolved_dir, storage=storage, seed=seed)
