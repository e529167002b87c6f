import logging
import random
from typing import Optional

from errors import ExhaustionError
from models import Question

logger = logging.getLogger(__name__)


async def select_question(store, question_type: str, exclude_id: Optional[int] = None,
                          rng: Optional[random.Random] = None) -> Question:
    """Pick a random question of the given type.

    Only ``exclude_id`` (the question shown last) is skipped, so a long round
    can repeat earlier questions.
    """
    candidates = await store.get_questions_by_type(question_type)
    eligible = [q for q in candidates if q.id != exclude_id]
    if not eligible:
        logger.warning("No eligible %s question (excluded: %s)", question_type, exclude_id)
        raise ExhaustionError("No more questions available")
    return (rng or random).choice(eligible)
