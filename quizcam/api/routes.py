"""
API Routes
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from quizcam.agents import PerformanceAgent, QuizGenerationPipeline
from quizcam.config import get_settings
from quizcam.core import handoff
from quizcam.core.errors import GenerationError, QuizEngineError, ValidationError
from quizcam.dependencies import (
    get_performance_agent,
    get_quiz_history,
    get_quiz_pipeline,
    get_session_registry,
)
from quizcam.schemas.quiz import DEFAULT_QUESTION_COUNT, Difficulty, QuizPayload
from quizcam.schemas.session import PerformanceFeedback, ResultsSummary, SessionResult
from quizcam.services.quiz_session import QuizSession, SessionState
from quizcam.services.session_store import QuizHistory, SessionRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


# ====== Quiz Generation Models ======

class GenerateQuizRequest(BaseModel):
    """Quiz generation request; constraints are enforced by the pipeline"""
    image: str = Field(..., description="Photo as a data URI")
    question_count: int = Field(DEFAULT_QUESTION_COUNT, description="Number of questions (1-10)")
    difficulty: str = Field(Difficulty.MEDIUM.value, description="easy, medium, hard")


# ====== Session Models ======

class QuestionView(BaseModel):
    """Question as shown to the player; the answer is revealed once answered"""
    index: int
    text: str
    options: List[str]
    user_option_index: Optional[int] = None
    is_correct: Optional[bool] = None
    correct_option_index: Optional[int] = None


class SessionView(BaseModel):
    session_id: str
    state: SessionState
    current_index: Optional[int] = None
    current_question: Optional[QuestionView] = None
    total_questions: int
    score: int
    language: str
    difficulty: Optional[Difficulty] = None
    has_pending_advance: bool = False


class AnswerRequest(BaseModel):
    question_index: int = Field(..., description="Index of the question being answered")
    option_index: int = Field(..., description="Selected option (0-3)")


class AnswerResponse(SessionView):
    accepted: bool


class FinishResponse(SessionView):
    result: Optional[SessionResult] = None
    handoff_token: Optional[str] = None
    results_url: Optional[str] = None


# ====== Results Models ======

class ResultsResponse(BaseModel):
    result: SessionResult
    summary: ResultsSummary


class AnalyzeRequest(BaseModel):
    token: str = Field(..., description="Handoff token produced when the quiz finished")


# ====== Helpers ======

def _raise_for_engine_error(error: QuizEngineError) -> None:
    if isinstance(error, ValidationError):
        raise HTTPException(status_code=422, detail=str(error))
    raise HTTPException(status_code=502, detail=str(error))


def _session_view(session_id: str, session: QuizSession) -> dict:
    current_question = None
    question = session.current_question
    if question is not None:
        current_question = QuestionView(
            index=session.current_index,
            text=question.text,
            options=list(question.options),
            user_option_index=question.user_option_index,
            is_correct=question.is_correct,
            correct_option_index=question.correct_option_index if question.is_answered else None,
        )
    return {
        "session_id": session_id,
        "state": session.state,
        "current_index": session.current_index,
        "current_question": current_question,
        "total_questions": session.total_questions,
        "score": session.score,
        "language": session.language,
        "difficulty": session.difficulty,
        "has_pending_advance": session.has_pending_advance,
    }


def _get_session_or_404(registry: SessionRegistry, session_id: str) -> QuizSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Quiz session '{session_id}' not found")
    return session


# ====== Quiz Generation ======

@router.post("/quiz/generate", response_model=QuizPayload)
async def generate_quiz(
    request: GenerateQuizRequest,
    pipeline: QuizGenerationPipeline = Depends(get_quiz_pipeline),
):
    """Turn a photo into a quiz"""
    try:
        return await pipeline.generate(request.model_dump())
    except QuizEngineError as e:
        _raise_for_engine_error(e)


# ====== Quiz Sessions ======

@router.post("/sessions", response_model=SessionView, status_code=201)
async def create_session(
    payload: QuizPayload,
    registry: SessionRegistry = Depends(get_session_registry),
):
    session_id, session = registry.create(payload)
    return _session_view(session_id, session)


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session_or_404(registry, session_id)
    return _session_view(session_id, session)


@router.post("/sessions/{session_id}/answer", response_model=AnswerResponse)
async def answer_question(
    session_id: str,
    request: AnswerRequest,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Submit an answer; ignored (accepted=false) unless it targets the current unanswered question"""
    session = _get_session_or_404(registry, session_id)
    accepted = session.answer(request.question_index, request.option_index)
    return {**_session_view(session_id, session), "accepted": accepted}


@router.post("/sessions/{session_id}/finish", response_model=FinishResponse)
async def finish_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session_or_404(registry, session_id)
    result = session.finish()

    response = _session_view(session_id, session)
    if result is not None:
        response.update({
            "result": result,
            "handoff_token": handoff.publish(result),
            "results_url": handoff.build_results_url(result, get_settings().results_path),
        })
    return response


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Drop a session and cancel its pending auto-advance"""
    if not registry.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Quiz session '{session_id}' not found")


# ====== Results ======

@router.get("/results", response_model=ResultsResponse)
async def get_results(token: Optional[str] = None):
    """Resolve a handoff token; malformed tokens yield an empty result"""
    result = handoff.resolve(token)
    return {"result": result, "summary": handoff.summarize(result)}


@router.post("/results/analyze", response_model=PerformanceFeedback)
async def analyze_results(
    request: AnalyzeRequest,
    agent: PerformanceAgent = Depends(get_performance_agent),
):
    """Coach feedback for a finished quiz; unreadable or empty results are rejected"""
    result = handoff.resolve(request.token)
    if result.total_questions == 0:
        raise HTTPException(status_code=422, detail="No quiz results to analyze")
    try:
        return await agent.analyze(result)
    except GenerationError as e:
        _raise_for_engine_error(e)


@router.get("/history", response_model=List[SessionResult])
async def get_history(history: QuizHistory = Depends(get_quiz_history)):
    return history.results()
