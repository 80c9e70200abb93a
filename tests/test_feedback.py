import random

from mathquiz.feedback import (
    BOTH_NEGATIVE_HINT,
    CORRECT_MESSAGES,
    DEFAULT_ERROR_DETAIL,
    MIXED_SIGNS_HINT,
    SUBTRACTION_HINT,
    error_details,
    feedback_for,
)
from mathquiz.models import ADD, SUBTRACT, Question


def test_correct_feedback_picks_praise() -> None:
    feedback = feedback_for(Question(1, 2, ADD, 3), True, random.Random(0))
    assert feedback.kind == "correct"
    assert feedback.correct is True
    assert feedback.message in CORRECT_MESSAGES
    assert feedback.explanation == ""


def test_incorrect_feedback_states_answer() -> None:
    feedback = feedback_for(Question(-5, 3, ADD, -2), False)
    assert feedback.correct is False
    assert feedback.message == "❌ Incorrecto. La respuesta correcta es -2."
    assert feedback.explanation == MIXED_SIGNS_HINT


def test_incorrect_feedback_explanations_by_category() -> None:
    assert feedback_for(Question(-5, -3, ADD, -8), False).explanation == BOTH_NEGATIVE_HINT
    assert feedback_for(Question(5, 3, ADD, 8), False).explanation == ""
    assert feedback_for(Question(5, 3, SUBTRACT, 2), False).explanation == SUBTRACTION_HINT


def test_error_details_known_and_unknown() -> None:
    assert "mismo signo = positivo" in error_details("multiplicacion-signos")
    assert error_details("nope") == DEFAULT_ERROR_DETAIL
