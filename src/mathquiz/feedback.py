"""Spanish feedback text for answered questions."""

from __future__ import annotations

import random

from .models import ADD, Feedback, Question

CORRECT_MESSAGES = (
    "¡Excelente! 🎉",
    "¡Correcto! 👍",
    "¡Muy bien! 🌟",
    "¡Perfecto! ⭐",
    "¡Genial! 🚀",
)

BOTH_NEGATIVE_HINT = "Recuerda: números negativos se suman y el resultado es negativo."
MIXED_SIGNS_HINT = "Con signos diferentes, resta los valores absolutos y usa el signo del mayor."
SUBTRACTION_HINT = "En la resta, cambia el signo del segundo número y aplica la regla de suma."

ERROR_DETAILS = {
    "suma-signos-diferentes": (
        "Cuando sumas números con signos diferentes, debes restar el menor del mayor "
        "y usar el signo del número con mayor valor absoluto."
    ),
    "resta-negativa": "En la resta, recuerda cambiar el signo del sustraendo y luego aplicar las reglas de suma.",
    "multiplicacion-signos": "En multiplicación: mismo signo = positivo, diferente signo = negativo.",
    "division-signos": "En división se aplican las mismas reglas que en multiplicación.",
}
DEFAULT_ERROR_DETAIL = "Error común en operaciones con números negativos."


def explanation_for(question: Question) -> str:
    """Return the sign-rule reminder matching a question, or an empty string."""
    if question.operator != ADD:
        return SUBTRACTION_HINT
    a_negative = question.operand_a < 0
    b_negative = question.operand_b < 0
    if a_negative and b_negative:
        return BOTH_NEGATIVE_HINT
    if a_negative or b_negative:
        return MIXED_SIGNS_HINT
    return ""


def feedback_for(question: Question, correct: bool, rng: random.Random | None = None) -> Feedback:
    """Classify an answer and build its feedback text."""
    if correct:
        source = rng if rng is not None else random
        return Feedback(kind="correct", message=source.choice(CORRECT_MESSAGES))
    return Feedback(
        kind="incorrect",
        message=f"❌ Incorrecto. La respuesta correcta es {question.correct_result}.",
        explanation=explanation_for(question),
    )


def error_details(error_type: str) -> str:
    """Return the longer tip for a common-error category."""
    return ERROR_DETAILS.get(error_type, DEFAULT_ERROR_DETAIL)
