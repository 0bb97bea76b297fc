"""
Data Models
===========
Pydantic models for the exam domain shared by both decoders.

Attributes are snake_case in Python; the serialized form uses the
camelCase names the exam management application reads and writes.
Always dump with ``model_dump(by_alias=True, mode="json")``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


class QuestionType(str, Enum):
    """Supported question formats."""
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    ASSIGNMENT = "ASSIGNMENT"
    CODE = "CODE"


class StatusType(str, Enum):
    """Lifecycle status of an exam."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DRAFT = "DRAFT"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


class ImportErrorType(str, Enum):
    """Why an import did not end with a stored exam."""
    VALIDATION_ERROR = "validation-error"
    ERROR = "error"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ─── Exam Aggregate ───────────────────────────────────────────────────────────


class Category(BaseModel):
    id: Optional[int] = None
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssignmentOption(_CamelModel):
    """A bucket that answers of an assignment question are matched to."""
    id: int
    text: str
    question_id: Optional[int] = Field(default=None, alias="questionId")
    row_id: Optional[int] = Field(default=None, alias="rowId")


class Answer(_CamelModel):
    """
    One selectable answer.

    ``is_correct`` is used by choice questions, ``assigned_option_id`` by
    assignment questions. Both live on the same model.
    """
    id: Optional[int] = None
    answer_text: str = Field(alias="answerText")
    description: Optional[str] = None
    is_correct: Optional[bool] = Field(default=None, alias="isCorrect")
    assigned_option_id: Optional[int] = Field(
        default=None, alias="assignedOptionId"
    )
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    question_id: Optional[int] = Field(default=None, alias="questionId")


class Question(_CamelModel):
    """A single assessment item with its answers and assignment options."""
    id: Optional[int] = None
    question_text: str = Field(alias="questionText")
    points_total: int = Field(alias="pointsTotal")
    type: QuestionType
    answers: list[Answer] = Field(default_factory=list)
    points_per_correct_answer: Optional[int] = Field(
        default=None, alias="pointsPerCorrectAnswer"
    )
    category: Optional[Category] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    options: list[AssignmentOption] = Field(default_factory=list)
    exam_id: Optional[int] = Field(default=None, alias="examId")

    @property
    def correct_answer_count(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    @property
    def unassigned_answer_count(self) -> int:
        return sum(1 for a in self.answers if a.assigned_option_id is None)


class Exam(_CamelModel):
    """
    Top-level aggregate produced by an import.

    Identity and timestamps stay ``None`` until the exam is persisted.
    """
    id: Optional[int] = None
    name: str
    description: str = ""
    duration: Optional[int] = None
    points_to_succeeded: Optional[int] = Field(
        default=None, alias="pointsToSucceeded"
    )
    max_questions_real_exam: Optional[int] = Field(
        default=None, alias="maxQuestionsRealExam"
    )
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    category: Optional[Category] = None
    questions: list[Question]
    status_type: Optional[StatusType] = Field(
        default=StatusType.DRAFT, alias="statusType"
    )

    @property
    def points_total(self) -> int:
        return sum(q.points_total for q in self.questions)

    def to_json_dict(self) -> dict:
        """Wire representation (camelCase, JSON-safe values)."""
        return self.model_dump(by_alias=True, mode="json")


# ─── Import Pipeline Models ──────────────────────────────────────────────────


class ImportFile(BaseModel):
    """A fully buffered file handed to the import pipeline."""
    id: str
    name: str
    media_type: str
    data: Union[bytes, str]


class ExamImportResult(_CamelModel):
    """Outcome of importing one file."""
    success: bool
    id: str
    error_type: Optional[ImportErrorType] = Field(
        default=None, alias="errorType"
    )
    invalid_cache_id: Optional[int] = Field(
        default=None, alias="invalidCacheId"
    )


class CachedInvalidExam(BaseModel):
    """A rejected import kept for later inspection or retry."""
    id: int
    exam: str = Field(description="Raw JSON of the rejected exam")
    error_type: ImportErrorType = ImportErrorType.VALIDATION_ERROR
    cached_at: Optional[datetime] = None


class CachedExamStatistics(BaseModel):
    total: int = 0
    validation_errors: int = 0
    general_errors: int = 0
    most_recent_date: Optional[datetime] = None


class ImportReport(BaseModel):
    """Post-import summary of a parsed exam."""
    total_questions: int = 0
    questions_by_type: dict[str, int] = Field(default_factory=dict)
    total_points: int = 0
    points_to_succeeded: Optional[int] = None
    questions_without_answers: list[int] = Field(default_factory=list)
    questions_without_correct_answer: list[int] = Field(default_factory=list)
    unassigned_answers: int = 0

    @computed_field
    @property
    def is_complete(self) -> bool:
        """True when every question has answers and a solution."""
        return (
            self.total_questions > 0
            and not self.questions_without_answers
            and not self.questions_without_correct_answer
            and self.unassigned_answers == 0
        )
