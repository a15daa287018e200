"""
Quiz attempt lifecycle: start, submit, quit and review.

An attempt is ``in_progress`` until its ``submitted_at`` is set, after which it
is terminal. The placeholder answer rows written at start are the membership
list of the quiz; submissions are validated against them and update them in
place.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from quizbank.core.errors import (
    AlreadySubmitted, AnswerCountMismatch, AttemptInProgress, AttemptNotFound,
    InsufficientQuestionPool, InvalidQuestionId, QuestionNotFound,
)
from quizbank.models.orm import Question, QuizAnswer, QuizAttempt
from quizbank.repositories.history import HistoryTracker
from quizbank.repositories.questions import QuestionRepository
from quizbank.services.generator import QuizGenerator
from quizbank.services.scoring import score_answer

logger = logging.getLogger(__name__)

MIN_QUESTIONS = 10


@dataclass
class SubmittedAnswer:
    question_id: int
    user_answer: str = ""


@dataclass
class StartedQuiz:
    attempt_id: int
    questions: List[Question]


@dataclass
class QuestionResult:
    question: Question
    user_answer: str
    is_correct: bool


@dataclass
class AttemptResult:
    attempt_id: int
    score: int
    total_questions: int
    results: List[QuestionResult] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptManager:
    def __init__(self, db: Session, generator: QuizGenerator, questions: QuestionRepository,
                 history: HistoryTracker, min_questions: int = MIN_QUESTIONS,
                 clock: Callable[[], datetime] = _utcnow):
        self.db = db
        self.generator = generator
        self.questions = questions
        self.history = history
        self.min_questions = min_questions
        self.clock = clock

    # ---------- start ----------

    def start(self, user_id: str) -> StartedQuiz:
        try:
            questions = self.generator.generate(user_id)
            if len(questions) < self.min_questions:
                raise InsufficientQuestionPool(required=self.min_questions, available=len(questions))

            attempt = QuizAttempt(user_id=user_id, total_questions=len(questions), created_at=self.clock())
            attempt.answers = [QuizAnswer(question_id=q.id, user_answer="", is_correct=False) for q in questions]
            self.db.add(attempt)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("user %s started attempt %s with %d questions", user_id, attempt.id, len(questions))
        return StartedQuiz(attempt_id=attempt.id, questions=questions)

    # ---------- submit / quit ----------

    def submit(self, attempt_id: int, user_id: str, answers: Sequence[SubmittedAnswer]) -> AttemptResult:
        return self._finalize(attempt_id, user_id, answers, require_all=True)

    def quit(self, attempt_id: int, user_id: str, answers: Sequence[SubmittedAnswer]) -> AttemptResult:
        return self._finalize(attempt_id, user_id, answers, require_all=False)

    def _load_attempt(self, attempt_id: int, user_id: str) -> QuizAttempt:
        attempt = self.db.scalar(select(QuizAttempt).where(QuizAttempt.id == attempt_id, QuizAttempt.user_id == user_id))
        if not attempt:
            raise AttemptNotFound(attempt_id)
        return attempt

    def _validate(self, placeholders: Dict[int, QuizAnswer],
                  answers: Sequence[SubmittedAnswer], require_all: bool) -> None:
        ids = [a.question_id for a in answers]
        invalid = [qid for qid in ids if qid not in placeholders]
        if invalid:
            raise InvalidQuestionId(invalid)
        dupes = [qid for qid, n in Counter(ids).items() if n > 1]
        if dupes:
            raise AnswerCountMismatch(expected=len(placeholders), received=len(ids), duplicate_ids=dupes)
        if require_all and len(ids) != len(placeholders):
            raise AnswerCountMismatch(expected=len(placeholders), received=len(ids),
                                      missing_ids=set(placeholders) - set(ids))

    def _finalize(self, attempt_id: int, user_id: str, answers: Sequence[SubmittedAnswer],
                  require_all: bool) -> AttemptResult:
        action = "submit" if require_all else "quit"
        try:
            attempt = self._load_attempt(attempt_id, user_id)
            if attempt.is_completed:
                raise AlreadySubmitted(attempt_id)
            placeholders = {a.question_id: a for a in attempt.answers}
            self._validate(placeholders, answers, require_all)

            question_map = {q.id: q for q in self.questions.find_by_ids(placeholders)}
            for qid in placeholders:
                if qid not in question_map:
                    raise QuestionNotFound(qid)

            now = self.clock()
            for a in answers:
                row = placeholders[a.question_id]
                row.user_answer = a.user_answer or ""
                row.is_correct = score_answer(question_map[a.question_id], a.user_answer)
                self.history.upsert(user_id, a.question_id, row.is_correct, now)

            score = sum(1 for row in placeholders.values() if row.is_correct)
            # only the first finalizer flips submitted_at; a concurrent one matches no row
            res = self.db.execute(
                update(QuizAttempt)
                .where(QuizAttempt.id == attempt.id, QuizAttempt.submitted_at.is_(None))
                .values(submitted_at=now, score=score)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise AlreadySubmitted(attempt_id)
            self.db.commit()
        except (AttemptNotFound, AlreadySubmitted, InvalidQuestionId, AnswerCountMismatch) as e:
            self.db.rollback()
            logger.warning("rejected %s of attempt %s by user %s: %s", action, attempt_id, user_id, e.message)
            raise
        except Exception:
            self.db.rollback()
            raise

        logger.info("user %s finished attempt %s via %s with score %d/%d",
                    user_id, attempt_id, action, score, attempt.total_questions)
        return self._result(attempt.id, score, attempt.total_questions, placeholders.values(), question_map)

    # ---------- review ----------

    def review(self, attempt_id: int, user_id: str) -> AttemptResult:
        attempt = self._load_attempt(attempt_id, user_id)
        if not attempt.is_completed:
            raise AttemptInProgress(attempt_id)
        question_map = {q.id: q for q in self.questions.find_by_ids(a.question_id for a in attempt.answers)}
        rows = [a for a in attempt.answers if a.question_id in question_map]
        return self._result(attempt.id, attempt.score or 0, attempt.total_questions, rows, question_map)

    @staticmethod
    def _result(attempt_id: int, score: int, total: int, rows, question_map: Dict[int, Question]) -> AttemptResult:
        ordered = sorted(rows, key=lambda r: r.id)
        return AttemptResult(
            attempt_id=attempt_id, score=score, total_questions=total,
            results=[QuestionResult(question=question_map[r.question_id], user_answer=r.user_answer,
                                    is_correct=r.is_correct) for r in ordered],
        )


def build_manager(db: Session, distribution: Optional[Dict[str, int]] = None, rng=None,
                  min_questions: int = MIN_QUESTIONS) -> AttemptManager:
    """Wire an AttemptManager with store-backed collaborators on one session."""
    questions = QuestionRepository(db)
    history = HistoryTracker(db)
    generator = QuizGenerator(questions, history, rng=rng, distribution=distribution)
    return AttemptManager(db, generator, questions, history, min_questions=min_questions)
