from datetime import datetime
from typing import List
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from quizbank.models.orm import UserQuestionHistory

# dialects with INSERT .. ON CONFLICT DO UPDATE
UPSERT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class HistoryTracker:
    """Per-user record of the last correctness seen for each question."""

    def __init__(self, db: Session):
        self.db = db

    def correctly_answered_ids(self, user_id: str) -> List[int]:
        stmt = select(UserQuestionHistory.question_id).where(
            UserQuestionHistory.user_id == user_id, UserQuestionHistory.is_correct.is_(True)
        )
        return list(self.db.scalars(stmt).all())

    def upsert(self, user_id: str, question_id: int, correct: bool, at: datetime) -> None:
        """Write the (user, question) row in one statement; the last writer wins.

        A concurrent finalization that inserted the row first turns this call
        into an update instead of a unique-constraint failure.
        """
        values = dict(user_id=user_id, question_id=question_id, is_correct=correct, last_attempted_at=at)
        insert = UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(UserQuestionHistory).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[UserQuestionHistory.user_id, UserQuestionHistory.question_id],
                set_={"is_correct": stmt.excluded.is_correct, "last_attempted_at": stmt.excluded.last_attempted_at},
            )
            self.db.execute(stmt)
            return
        self._upsert_with_savepoint(values)

    def _upsert_with_savepoint(self, values: dict) -> None:
        stmt = update(UserQuestionHistory).where(
            UserQuestionHistory.user_id == values["user_id"],
            UserQuestionHistory.question_id == values["question_id"],
        ).values(is_correct=values["is_correct"], last_attempted_at=values["last_attempted_at"])
        if self.db.execute(stmt).rowcount:
            return
        try:
            with self.db.begin_nested():
                self.db.add(UserQuestionHistory(**values))
        except IntegrityError:
            # lost the insert race; the row exists now
            self.db.execute(stmt)
