from typing import TypedDict, List, Any, Optional

from quizcam.schemas.quiz import Question, QuizPayload, QuizRequest


# --- Define the State for the Quiz Generation Graph ---
class QuizGenerationState(TypedDict, total=False):
    """
    Represents the state of the quiz generation graph.
    """
    # Input
    raw_request: Any  # QuizRequest or a mapping, re-validated by the first node

    # Intermediate states of the generation workflow
    request: QuizRequest
    detected_language: str
    draft_questions: List[Question]
    questions: List[Question]
    translated: bool

    # Output
    payload: Optional[QuizPayload]
