"""
Domain errors for quiz generation and attempts.

Every error carries the HTTP status it maps to, a stable ``type`` slug and an
optional payload with the offending ids. ``main.py`` renders them into the
common error envelope.
"""
from typing import Any, Dict, Iterable, List, Optional


class QuizError(Exception):
    status_code: int = 400
    error_type: str = "quiz_error"
    message: str = "Quiz request failed"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "type": self.error_type, "status_code": self.status_code, **self.extra}


class InsufficientQuestionPool(QuizError):
    error_type = "insufficient_question_pool"
    message = "Not enough questions available. Please contact admin."

    def __init__(self, required: int, available: int):
        super().__init__(required=required, available=available)
        self.required = required
        self.available = available


class AttemptNotFound(QuizError):
    status_code = 404
    error_type = "attempt_not_found"
    message = "Quiz attempt not found"

    def __init__(self, attempt_id: int):
        super().__init__(attempt_id=attempt_id)


class AlreadySubmitted(QuizError):
    status_code = 409
    error_type = "already_submitted"
    message = "Quiz already submitted"

    def __init__(self, attempt_id: int):
        super().__init__(attempt_id=attempt_id)


class AttemptInProgress(QuizError):
    status_code = 409
    error_type = "attempt_in_progress"
    message = "Quiz attempt has not been submitted yet"

    def __init__(self, attempt_id: int):
        super().__init__(attempt_id=attempt_id)


class InvalidQuestionId(QuizError):
    error_type = "invalid_question_id"
    message = "Invalid question IDs submitted. All questions must be from the original quiz attempt."

    def __init__(self, invalid_ids: Iterable[int]):
        self.invalid_ids: List[int] = list(invalid_ids)
        super().__init__(invalid_question_ids=self.invalid_ids)


class AnswerCountMismatch(QuizError):
    error_type = "answer_count_mismatch"

    def __init__(self, expected: int, received: int, missing_ids: Iterable[int] = (),
                 duplicate_ids: Iterable[int] = ()):
        self.missing_ids = sorted(missing_ids)
        self.duplicate_ids = sorted(duplicate_ids)
        if self.duplicate_ids:
            message = f"Duplicate answers submitted for questions {self.duplicate_ids}"
        else:
            message = f"Expected {expected} answers, but received {received}"
        super().__init__(message, expected=expected, received=received,
                         missing_question_ids=self.missing_ids, duplicate_question_ids=self.duplicate_ids)


class QuestionNotFound(QuizError):
    status_code = 404
    error_type = "question_not_found"

    def __init__(self, question_id: int):
        super().__init__(f"Question ID {question_id} not found", question_id=question_id)


class InvalidQuestionRecord(QuizError):
    status_code = 422
    error_type = "invalid_question_record"
    message = "Validation errors found"

    def __init__(self, errors: List[str]):
        super().__init__(errors=errors)
