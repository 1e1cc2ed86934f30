# quizcam/schemas/quiz.py

import base64
import binascii
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 10
DEFAULT_QUESTION_COUNT = 5
OPTIONS_PER_QUESTION = 4

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<payload>[A-Za-z0-9+/=\s]+)$")
LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}(?:-[A-Za-z0-9]{2,8})*$")


class Difficulty(str, Enum):
    """Quiz difficulty level"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def split_data_uri(value: str) -> tuple:
    """Return (mime_type, raw_bytes) for an image data URI, raising ValueError if malformed."""
    match = DATA_URI_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError("image must be a data URI: 'data:image/<type>;base64,<payload>'")
    try:
        raw = base64.b64decode("".join(match.group("payload").split()), validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("image payload is not valid base64")
    if not raw:
        raise ValueError("image payload is empty")
    return match.group("mime"), raw


class QuizRequest(BaseModel):
    """Request to generate a quiz from a photo"""
    image: str = Field(..., description="Photo as a data URI: 'data:<mimetype>;base64,<encoded_data>'")
    question_count: int = Field(
        DEFAULT_QUESTION_COUNT,
        description="Number of questions to generate",
        ge=MIN_QUESTION_COUNT,
        le=MAX_QUESTION_COUNT,
    )
    difficulty: Difficulty = Field(Difficulty.MEDIUM, description="Difficulty: easy, medium, hard")

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str) -> str:
        split_data_uri(value)
        return value.strip()

    @property
    def mime_type(self) -> str:
        return split_data_uri(self.image)[0]


class Question(BaseModel):
    """Single multiple-choice question, immutable once produced by the pipeline"""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Question text")
    options: List[str] = Field(
        ...,
        min_length=OPTIONS_PER_QUESTION,
        max_length=OPTIONS_PER_QUESTION,
        description="Exactly 4 answer options",
    )
    correct_option_index: int = Field(..., description="Index of the correct option (0-3)", ge=0, le=3)

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_option_index]


class QuizDraft(BaseModel):
    """Schema the structured generator must fill in"""
    questions: List[Question] = Field(..., description="The generated quiz questions")


class QuizPayload(BaseModel):
    """Validated quiz handed from the generation pipeline to a session"""
    questions: List[Question] = Field(..., min_length=MIN_QUESTION_COUNT, max_length=MAX_QUESTION_COUNT)
    detected_language: str = Field(..., description="Language code of the quiz content")
    difficulty: Optional[Difficulty] = None

    @field_validator("detected_language")
    @classmethod
    def _check_language(cls, value: str) -> str:
        value = value.strip()
        if not LANGUAGE_CODE_PATTERN.match(value):
            raise ValueError(f"invalid language code: {value!r}")
        return value
