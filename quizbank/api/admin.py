import logging
from fastapi import APIRouter, Depends
from typing import Dict, List, Optional, Union
from sqlalchemy.orm import Session
from quizbank.api.schemas import CamelModel, OptionOut
from quizbank.core.auth import bank_admin, TokenData
from quizbank.core.database import get_db
from quizbank.repositories.questions import QuestionRepository
from quizbank.services.records import build_records

logger = logging.getLogger(__name__)

router = APIRouter()


class QuestionIn(CamelModel):
    # loosely typed on purpose: build_records reports every bad row at once
    text: str = ""
    type: str = ""
    complexity: str = ""
    correct_answer: str = ""
    subject: Optional[str] = None
    options: Union[str, List[OptionOut]] = []


class QuestionBatch(CamelModel):
    questions: List[QuestionIn]


class QuestionSummary(CamelModel):
    id: int
    text: str
    type: str
    complexity: str


class QuestionsCreated(CamelModel):
    count: int
    questions: List[QuestionSummary]


class BankStats(CamelModel):
    total: int
    by_complexity: Dict[str, int]
    by_type: Dict[str, int]
    by_subject: Dict[str, int]


@router.post("/questions", response_model=QuestionsCreated, status_code=201)
def upload_questions(payload: QuestionBatch, user: TokenData = Depends(bank_admin), db: Session = Depends(get_db)):
    records = build_records([q.model_dump() for q in payload.questions])
    try:
        inserted = QuestionRepository(db).add_many(records)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("admin %s added %d questions", user.sub, len(inserted))
    return QuestionsCreated(count=len(inserted), questions=[
        QuestionSummary(id=q.id, text=q.text, type=q.type.value, complexity=q.complexity.value) for q in inserted
    ])


@router.get("/questions/stats", response_model=BankStats, dependencies=[Depends(bank_admin)])
def question_stats(db: Session = Depends(get_db)):
    return BankStats(**QuestionRepository(db).stats())
