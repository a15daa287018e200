from typing import Dict, Iterable, List, Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload
from quizbank.models.orm import Question, Option, QuestionType, Complexity


class QuestionRepository:
    """Read and bulk-insert access to the question bank."""

    def __init__(self, db: Session):
        self.db = db

    def _select(self):
        return select(Question).options(selectinload(Question.options)).order_by(Question.id)

    def find_available(self, exclude_ids: Iterable[int] = ()) -> List[Question]:
        exclude = list(exclude_ids)
        stmt = self._select()
        # an empty NOT IN must mean "exclude nothing"
        if exclude:
            stmt = stmt.where(Question.id.not_in(exclude))
        return list(self.db.scalars(stmt).all())

    def find_by_id(self, question_id: int) -> Optional[Question]:
        return self.db.scalar(self._select().where(Question.id == question_id))

    def find_by_ids(self, ids: Iterable[int]) -> List[Question]:
        ids = list(ids)
        if not ids:
            return []
        return list(self.db.scalars(self._select().where(Question.id.in_(ids))).all())

    def add_many(self, records) -> List[Question]:
        """Insert validated question records; the caller commits."""
        inserted = []
        for r in records:
            q = Question(text=r.text, type=r.type, complexity=r.complexity,
                         correct_answer=r.correct_answer, subject=r.subject)
            if r.type == QuestionType.OBJECTIVE:
                q.options = [Option(letter=o.letter, text=o.text) for o in r.options]
            self.db.add(q)
            inserted.append(q)
        self.db.flush()
        return inserted

    def stats(self) -> Dict[str, object]:
        total = self.db.scalar(select(func.count(Question.id))) or 0
        by_complexity = {c.value: 0 for c in Complexity}
        for level, n in self.db.execute(select(Question.complexity, func.count(Question.id)).group_by(Question.complexity)).all():
            by_complexity[level.value] = n
        by_type = {t.value: 0 for t in QuestionType}
        for qtype, n in self.db.execute(select(Question.type, func.count(Question.id)).group_by(Question.type)).all():
            by_type[qtype.value] = n
        rows = self.db.execute(
            select(Question.subject, func.count(Question.id)).where(Question.subject.is_not(None))
            .group_by(Question.subject).order_by(func.count(Question.id).desc(), Question.subject)
        ).all()
        return {"total": total, "by_complexity": by_complexity, "by_type": by_type,
                "by_subject": {subject: n for subject, n in rows}}
