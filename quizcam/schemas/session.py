# quizcam/schemas/session.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from quizcam.schemas.quiz import Difficulty, Question


class AnsweredQuestion(Question):
    """Question plus the user's (single, final) answer"""
    user_option_index: Optional[int] = Field(None, description="Selected option (0-3), None if unanswered", ge=0, le=3)
    is_correct: Optional[bool] = Field(None, description="Cached at answer time, None if unanswered")

    @model_validator(mode="after")
    def _check_answer(self) -> "AnsweredQuestion":
        if self.user_option_index is None:
            if self.is_correct is not None:
                raise ValueError("unanswered question cannot carry is_correct")
        elif self.is_correct != (self.user_option_index == self.correct_option_index):
            raise ValueError("is_correct does not match the recorded answer")
        return self

    @classmethod
    def from_question(cls, question: Question) -> "AnsweredQuestion":
        return cls(**question.model_dump())

    @property
    def is_answered(self) -> bool:
        return self.user_option_index is not None

    @property
    def user_option(self) -> Optional[str]:
        if self.user_option_index is None:
            return None
        return self.options[self.user_option_index]

    def answered(self, option_index: int) -> "AnsweredQuestion":
        """Return the answered copy of this question. isCorrect is computed here, once."""
        return AnsweredQuestion(
            text=self.text,
            options=list(self.options),
            correct_option_index=self.correct_option_index,
            user_option_index=option_index,
            is_correct=option_index == self.correct_option_index,
        )


def count_correct(answered_questions: List[AnsweredQuestion]) -> int:
    """Unanswered questions count as incorrect."""
    return sum(1 for question in answered_questions if question.is_correct is True)


class SessionResult(BaseModel):
    """Finished quiz session, immutable once created"""
    model_config = ConfigDict(frozen=True)

    answered_questions: List[AnsweredQuestion] = Field(default_factory=list)
    score: int = Field(0, ge=0)
    language: str = Field("", description="Language code of the quiz content")
    completed_at: Optional[datetime] = None
    difficulty: Optional[Difficulty] = None

    @model_validator(mode="after")
    def _check_score(self) -> "SessionResult":
        expected = count_correct(self.answered_questions)
        if self.score != expected:
            raise ValueError(f"score {self.score} does not match {expected} correct answers")
        return self

    @property
    def total_questions(self) -> int:
        return len(self.answered_questions)

    @classmethod
    def empty(cls) -> "SessionResult":
        """Degraded result used when a handoff cannot be resolved"""
        return cls()


class PerformanceFeedbackDraft(BaseModel):
    """Schema the structured generator fills in when analysing a finished quiz"""
    overall_feedback: str = Field(..., description="Overall feedback on the quiz performance")
    areas_for_improvement: List[str] = Field(default_factory=list, description="Specific areas to improve")
    encouraging_message: str = Field(..., description="An encouraging message for the user")


class PerformanceFeedback(PerformanceFeedbackDraft):
    """Feedback returned to the caller; the score is always computed locally"""
    score_percent: float = Field(..., ge=0, le=100, description="Correct answers as a percentage")


class ResultRow(BaseModel):
    """One display row of the results view"""
    question: str
    user_answer: str = Field(..., description='Chosen option text, or "Not answered"')
    correct_answer: str
    is_correct: bool


class ResultsSummary(BaseModel):
    rows: List[ResultRow] = Field(default_factory=list)
    score: int = 0
    total: int = 0
    language: str = ""
