"""
Result handoff between a finished session and the results view.

The token is a URL query string:

    v=1&quiz=<json list>&score=2&language=en&completed_at=<iso-8601>&difficulty=easy

`quiz` holds one object per question:
    {"question", "options", "correct_answer_index", "user_answer", "is_correct"}

`decode` is strict and raises ParseError. `resolve` never raises and falls
back to an empty result.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlencode

from pydantic import ValidationError as PydanticValidationError

from quizcam.core.errors import ParseError
from quizcam.schemas.quiz import Difficulty
from quizcam.schemas.session import AnsweredQuestion, ResultRow, ResultsSummary, SessionResult

logger = logging.getLogger(__name__)

HANDOFF_VERSION = 1
NOT_ANSWERED = "Not answered"
DEFAULT_RESULTS_PATH = "/quiz-results"


def _question_to_dict(question: AnsweredQuestion) -> Dict[str, Any]:
    return {
        "question": question.text,
        "options": list(question.options),
        "correct_answer_index": question.correct_option_index,
        "user_answer": question.user_option_index,
        "is_correct": question.is_correct,
    }


def _question_from_dict(item: Any) -> AnsweredQuestion:
    if not isinstance(item, dict):
        raise ParseError(f"quiz entry must be an object, got {type(item).__name__}")
    try:
        return AnsweredQuestion(
            text=item["question"],
            options=item["options"],
            correct_option_index=item["correct_answer_index"],
            user_option_index=item.get("user_answer"),
            is_correct=item.get("is_correct"),
        )
    except KeyError as e:
        raise ParseError(f"quiz entry is missing {e}") from e
    except PydanticValidationError as e:
        raise ParseError(f"invalid quiz entry: {e}") from e


def publish(result: SessionResult) -> str:
    """Encode a finished result as an opaque handoff token."""
    params = {
        "v": str(HANDOFF_VERSION),
        "quiz": json.dumps([_question_to_dict(q) for q in result.answered_questions], ensure_ascii=False),
        "score": str(result.score),
        "language": result.language,
    }
    if result.completed_at is not None:
        params["completed_at"] = result.completed_at.isoformat()
    if result.difficulty is not None:
        params["difficulty"] = result.difficulty.value
    return urlencode(params)


def _single(params: Dict[str, List[str]], name: str, required: bool = True) -> Optional[str]:
    values = params.get(name)
    if not values:
        if required:
            raise ParseError(f"handoff token is missing '{name}'")
        return None
    if len(values) > 1:
        raise ParseError(f"handoff token repeats '{name}'")
    return values[0]


def decode(token: str) -> SessionResult:
    """
    Strictly decode a handoff token.

    Raises:
        ParseError: malformed token, unsupported version, schema violation or
            a score that does not match the answers
    """
    if not isinstance(token, str) or not token.strip():
        raise ParseError("handoff token is empty")

    try:
        params = parse_qs(token.strip().lstrip("?"), keep_blank_values=True, strict_parsing=True)
    except ValueError as e:
        raise ParseError(f"handoff token is not a query string: {e}") from e

    version = _single(params, "v", required=False) or str(HANDOFF_VERSION)
    if version != str(HANDOFF_VERSION):
        raise ParseError(f"unsupported handoff version: {version}")

    try:
        quiz = json.loads(_single(params, "quiz"))
    except json.JSONDecodeError as e:
        raise ParseError(f"quiz is not valid JSON: {e}") from e
    except RecursionError as e:
        raise ParseError("quiz is nested too deeply") from e
    if not isinstance(quiz, list):
        raise ParseError("quiz must be a JSON list")
    answered_questions = [_question_from_dict(item) for item in quiz]

    try:
        score = int(_single(params, "score"))
    except ValueError as e:
        raise ParseError(f"score is not an integer: {e}") from e

    language = _single(params, "language")

    completed_at = None
    raw_completed_at = _single(params, "completed_at", required=False)
    if raw_completed_at:
        try:
            completed_at = datetime.fromisoformat(raw_completed_at)
        except ValueError as e:
            raise ParseError(f"completed_at is not ISO-8601: {e}") from e

    difficulty = None
    raw_difficulty = _single(params, "difficulty", required=False)
    if raw_difficulty:
        try:
            difficulty = Difficulty(raw_difficulty)
        except ValueError as e:
            raise ParseError(f"unknown difficulty: {raw_difficulty}") from e

    try:
        return SessionResult(
            answered_questions=answered_questions,
            score=score,
            language=language,
            completed_at=completed_at,
            difficulty=difficulty,
        )
    except PydanticValidationError as e:
        raise ParseError(f"inconsistent session result: {e}") from e


def resolve(token: Optional[str]) -> SessionResult:
    """Decode a handoff token, degrading to an empty result instead of raising."""
    try:
        return decode(token)
    except ParseError as e:
        logger.warning(f"Could not resolve quiz results, showing empty result: {e}")
        return SessionResult.empty()


def build_results_url(result: SessionResult, base_path: str = DEFAULT_RESULTS_PATH) -> str:
    return f"{base_path}?{publish(result)}"


def summarize(result: SessionResult) -> ResultsSummary:
    """Display rows for the results view; unanswered questions read "Not answered"."""
    rows = [
        ResultRow(
            question=question.text,
            user_answer=question.user_option if question.is_answered else NOT_ANSWERED,
            correct_answer=question.correct_option,
            is_correct=question.is_correct is True,
        )
        for question in result.answered_questions
    ]
    return ResultsSummary(
        rows=rows,
        score=result.score,
        total=result.total_questions,
        language=result.language,
    )
