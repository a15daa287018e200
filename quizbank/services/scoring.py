from typing import Optional
from quizbank.models.orm import QuestionType


def score_answer(question, user_answer: Optional[str]) -> bool:
    """Compare a submitted answer with the question's canonical answer.

    Objective questions store the correct option letter, fill-blank questions
    the expected text. Both comparisons ignore surrounding whitespace and case.
    There is no partial credit, and an empty answer is never correct.
    """
    given = (user_answer or "").strip()
    if not given:
        return False
    expected = (question.correct_answer or "").strip()
    if question.type == QuestionType.OBJECTIVE:
        return given.upper() == expected.upper()
    return given.casefold() == expected.casefold()
