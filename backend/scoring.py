from typing import Optional, Tuple

import config
from models import Question


def _choice_index(submitted: str) -> Optional[int]:
    letter = submitted.strip().lower()
    if letter in config.CHOICE_LETTERS:
        return config.CHOICE_LETTERS.index(letter)
    return None


def is_correct_answer(question: Question, submitted: str) -> bool:
    if question.type == "multiple_choice":
        index = _choice_index(submitted)
        options = question.options or []
        if index is None or index >= len(options):
            return False
        # Option text must match the stored answer exactly
        return options[index] == question.correct_answer
    return submitted.strip().lower() == question.correct_answer.strip().lower()


def evaluate_answer(question: Question, submitted: str) -> Tuple[bool, int]:
    """Score a submission: (is_correct, signed points delta)."""
    correct = is_correct_answer(question, submitted)
    points = question.points if correct else -question.wrong_answer_penalty
    return correct, points
