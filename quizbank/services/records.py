"""
Validation of question records handed over by the question-bank loader.

The loader reads spreadsheet rows (Question Text, Question Type, Options,
Correct Answer, Complexity Level, Subject) and passes them here as plain
mappings. Options may arrive either as a list of ``{letter, text}`` objects or
in the spreadsheet form ``"A: Paris, B: Rome"``.
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from quizbank.core.errors import InvalidQuestionRecord
from quizbank.models.orm import Complexity, QuestionType

OPTION_RE = re.compile(r"([A-Z])[:.]\s*([^,]+)")

TYPE_ALIASES = {"fill in the blanks": "fill_blank", "fill in the blank": "fill_blank"}


def parse_options(text: str) -> List[Dict[str, str]]:
    """Parse ``"A: Option1, B: Option2"`` (or ``A.`` separators) into option dicts."""
    return [{"letter": m.group(1), "text": m.group(2).strip()} for m in OPTION_RE.finditer(text or "")]


class OptionRecord(BaseModel):
    letter: str
    text: str

    @field_validator("letter")
    @classmethod
    def single_upper_letter(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 1 or not v.isalpha():
            raise ValueError("option letter must be a single letter")
        return v

    @field_validator("text")
    @classmethod
    def non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("option text is required")
        return v


class QuestionRecord(BaseModel):
    text: str
    type: QuestionType
    complexity: Complexity
    correct_answer: str
    subject: Optional[str] = None
    options: List[OptionRecord] = []

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return TYPE_ALIASES.get(v, v)
        return v

    @field_validator("complexity", mode="before")
    @classmethod
    def normalize_complexity(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("options", mode="before")
    @classmethod
    def split_options(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_options(v)
        return v or []

    @field_validator("text", "correct_answer")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("subject")
    @classmethod
    def blank_subject(cls, v: Optional[str]) -> Optional[str]:
        return (v or "").strip() or None

    @model_validator(mode="after")
    def check_options(self) -> "QuestionRecord":
        if self.type == QuestionType.OBJECTIVE:
            if len(self.options) < 2:
                raise ValueError("at least 2 options required for objective questions")
            letters = [o.letter for o in self.options]
            if len(set(letters)) != len(letters):
                raise ValueError("option letters must be unique")
            self.correct_answer = self.correct_answer.upper()
            if self.correct_answer not in letters:
                raise ValueError(f"correct answer {self.correct_answer!r} is not one of the options {letters}")
        else:
            self.options = []
        return self


def _describe(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e["loc"])
        parts.append(f"{loc}: {e['msg']}" if loc else e["msg"])
    return "; ".join(parts)


def build_records(rows: Sequence[Union[Mapping[str, Any], BaseModel]]) -> List[QuestionRecord]:
    """Validate every row, collecting all problems before failing."""
    records, errors = [], []
    for i, row in enumerate(rows, start=1):
        data = row.model_dump() if isinstance(row, BaseModel) else dict(row)
        try:
            records.append(QuestionRecord.model_validate(data))
        except ValidationError as e:
            errors.append(f"Row {i}: {_describe(e)}")
    if errors:
        raise InvalidQuestionRecord(errors)
    if not records:
        raise InvalidQuestionRecord(["No valid questions found"])
    return records
