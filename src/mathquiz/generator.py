"""Question and answer-option generation.

Options mix the correct result with distractors modelled on the mistakes
students make with signed numbers:

- using the other operator,
- dropping the minus signs of the operands,
- flipping the sign of the result.
"""

from __future__ import annotations

import random

from .models import ADD, OPERATORS, Question

MAX_DISTRACTORS = 3


def max_magnitude(level: int) -> int:
    """Return the largest absolute operand value for a level."""
    if level < 1:
        raise ValueError(f"Level must be at least 1, got {level}.")
    return 10 + (level - 1) * 5


def generate_question(level: int, rng: random.Random | None = None) -> Question:
    """Generate a random question whose operands fit the level's range."""
    source = rng if rng is not None else random
    limit = max_magnitude(level)
    operator = source.choice(OPERATORS)
    operand_a = source.randint(-limit, limit)
    operand_b = source.randint(-limit, limit)
    result = operand_a + operand_b if operator == ADD else operand_a - operand_b
    return Question(operand_a=operand_a, operand_b=operand_b, operator=operator, correct_result=result)


def wrong_answers(question: Question) -> list[int]:
    """Return up to three distinct distractors in heuristic order."""
    a = question.operand_a
    b = question.operand_b
    candidates: list[int] = []

    # Operator swap.
    candidates.append(a - b if question.operator == ADD else a + b)

    # Sign ignoring only applies when a negative operand is involved.
    if a < 0 or b < 0:
        unsigned_sum = abs(a) + abs(b)
        candidates.append(-unsigned_sum if question.operator == ADD else unsigned_sum)

    # Sign flip.
    candidates.append(-question.correct_result)

    distractors: list[int] = []
    for value in candidates:
        if value == question.correct_result or value in distractors:
            continue
        distractors.append(value)
    return distractors[:MAX_DISTRACTORS]


def shuffle_options(options: list[int], rng: random.Random | None = None) -> list[int]:
    """Shuffle options in place with an unbiased permutation and return them."""
    source = rng if rng is not None else random
    source.shuffle(options)
    return options


def generate_options(question: Question, rng: random.Random | None = None) -> tuple[int, ...]:
    """Return the correct result and its distractors in random display order.

    Heuristic collisions (for example ``0 + 0``) can leave fewer than three
    distractors; no random backfill is added.
    """
    options = [question.correct_result, *wrong_answers(question)]
    return tuple(shuffle_options(options, rng))
