import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    BigInteger, Boolean, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint, func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# sqlite only autoincrements a plain INTEGER primary key
PK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase): pass


class QuestionType(str, enum.Enum):
    OBJECTIVE = "objective"
    FILL_BLANK = "fill_blank"


class Complexity(str, enum.Enum):
    EASY = "easy"
    MODERATE = "moderate"
    COMPLEX = "complex"


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("idx_questions_complexity", "complexity"),
    )

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[QuestionType] = mapped_column(
        SQLEnum(QuestionType, values_callable=lambda e: [m.value for m in e], native_enum=False), nullable=False
    )
    complexity: Mapped[Complexity] = mapped_column(
        SQLEnum(Complexity, values_callable=lambda e: [m.value for m in e], native_enum=False), nullable=False
    )
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    options: Mapped[List["Option"]] = relationship(
        back_populates="question", cascade="all, delete-orphan", order_by="Option.letter"
    )


class Option(Base):
    __tablename__ = "question_options"
    __table_args__ = (
        UniqueConstraint("question_id", "letter", name="uq_question_option"),
    )

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    question_id: Mapped[int] = mapped_column(
        PK, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    letter: Mapped[str] = mapped_column(String(1), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    question: Mapped["Question"] = relationship(back_populates="options")


class UserQuestionHistory(Base):
    __tablename__ = "user_question_history"
    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_user_question"),
        Index("idx_uqh_user_correct", "user_id", "is_correct"),
    )

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    question_id: Mapped[int] = mapped_column(
        PK, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    last_attempted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        Index("idx_qa_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    score: Mapped[Optional[int]] = mapped_column(Integer)

    answers: Mapped[List["QuizAnswer"]] = relationship(
        back_populates="attempt", cascade="all, delete-orphan", order_by="QuizAnswer.id"
    )

    @property
    def is_completed(self) -> bool:
        return self.submitted_at is not None


class QuizAnswer(Base):
    __tablename__ = "quiz_answers"
    __table_args__ = (
        UniqueConstraint("quiz_attempt_id", "question_id", name="uq_quiz_answer"),
    )

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    quiz_attempt_id: Mapped[int] = mapped_column(
        PK, ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[int] = mapped_column(PK, ForeignKey("questions.id"), nullable=False)
    user_answer: Mapped[str] = mapped_column(Text, default="", nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    attempt: Mapped["QuizAttempt"] = relationship(back_populates="answers")
