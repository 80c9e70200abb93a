"""Signed-integer addition and subtraction quiz with a persisted answer history."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

_CHECKOUT_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _checkout_version() -> str | None:
    """Return the version declared by the source checkout, if running from one."""
    try:
        with _CHECKOUT_PYPROJECT.open("rb") as handle:
            project = tomllib.load(handle).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return None
    if project.get("name") != "mathquiz":
        return None
    declared = project.get("version")
    return declared if isinstance(declared, str) else None


def _resolve_version() -> str:
    checkout = _checkout_version()
    if checkout is not None:
        return checkout
    try:
        return version("mathquiz")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _resolve_version()
