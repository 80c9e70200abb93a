"""Score and level transitions over immutable game state."""

from __future__ import annotations

from dataclasses import replace

from .models import POINTS_PER_LEVEL, QUESTIONS_PER_LEVEL, GameState


def restart_state() -> GameState:
    """Return the state of a freshly started game."""
    return GameState()


def apply_answer(state: GameState, correct: bool) -> tuple[GameState, bool]:
    """Apply one answered question and return (new_state, leveled_up).

    Points use the level at the time of the answer. The level goes up after
    every fifth answer, correct or not.
    """
    score = state.score
    correct_count = state.correct_count
    if correct:
        correct_count += 1
        score += POINTS_PER_LEVEL * state.level

    answered = state.questions_answered + 1
    leveled_up = answered % QUESTIONS_PER_LEVEL == 0
    level = state.level + 1 if leveled_up else state.level
    return (
        replace(state, score=score, level=level, correct_count=correct_count, questions_answered=answered),
        leveled_up,
    )
