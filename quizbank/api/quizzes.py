from fastapi import APIRouter, Depends
from typing import List, Optional
from sqlalchemy.orm import Session
from quizbank.api.schemas import CamelModel, OptionOut
from quizbank.core.auth import quiz_taker, TokenData
from quizbank.core.config import settings
from quizbank.core.database import get_db
from quizbank.services.attempts import AttemptManager, AttemptResult, SubmittedAnswer, build_manager

router = APIRouter()


class QuestionOut(CamelModel):
    id: int
    text: str
    type: str
    complexity: str
    options: List[OptionOut]


class QuizStarted(CamelModel):
    attempt_id: int
    questions: List[QuestionOut]


class AnswerIn(CamelModel):
    question_id: int
    user_answer: Optional[str] = ""


class QuizSubmit(CamelModel):
    attempt_id: int
    answers: List[AnswerIn]


class QuestionResultOut(CamelModel):
    question_id: int
    text: str
    type: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    options: List[OptionOut]


class QuizResult(CamelModel):
    attempt_id: int
    score: int
    total_questions: int
    results: List[QuestionResultOut]


def get_manager(db: Session = Depends(get_db)) -> AttemptManager:
    return build_manager(db, distribution=settings.QUIZ_DISTRIBUTION, min_questions=settings.QUIZ_MIN_QUESTIONS)


def _options(q) -> List[OptionOut]:
    return [OptionOut(letter=o.letter, text=o.text) for o in q.options]


def _result_out(result: AttemptResult) -> QuizResult:
    return QuizResult(
        attempt_id=result.attempt_id, score=result.score, total_questions=result.total_questions,
        results=[QuestionResultOut(
            question_id=r.question.id, text=r.question.text, type=r.question.type.value,
            user_answer=r.user_answer, correct_answer=r.question.correct_answer,
            is_correct=r.is_correct, options=_options(r.question),
        ) for r in result.results],
    )


def _answers(payload: QuizSubmit) -> List[SubmittedAnswer]:
    return [SubmittedAnswer(question_id=a.question_id, user_answer=a.user_answer) for a in payload.answers]


@router.post("/start", response_model=QuizStarted)
def start_quiz(user: TokenData = Depends(quiz_taker), manager: AttemptManager = Depends(get_manager)):
    started = manager.start(user.sub)
    # canonical answers never leave the server before finalization
    return QuizStarted(attempt_id=started.attempt_id, questions=[
        QuestionOut(id=q.id, text=q.text, type=q.type.value, complexity=q.complexity.value, options=_options(q))
        for q in started.questions
    ])


@router.post("/submit", response_model=QuizResult)
def submit_quiz(payload: QuizSubmit, user: TokenData = Depends(quiz_taker),
                manager: AttemptManager = Depends(get_manager)):
    return _result_out(manager.submit(payload.attempt_id, user.sub, _answers(payload)))


@router.post("/quit", response_model=QuizResult)
def quit_quiz(payload: QuizSubmit, user: TokenData = Depends(quiz_taker),
              manager: AttemptManager = Depends(get_manager)):
    return _result_out(manager.quit(payload.attempt_id, user.sub, _answers(payload)))


@router.get("/attempts/{attempt_id}", response_model=QuizResult)
def review_attempt(attempt_id: int, user: TokenData = Depends(quiz_taker),
                   manager: AttemptManager = Depends(get_manager)):
    return _result_out(manager.review(attempt_id, user.sub))
