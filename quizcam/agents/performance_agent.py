"""
Quiz performance analysis agent

[Role]
  Reads a finished SessionResult and asks the structured generator for
  personalised feedback on how the user did.

[Flow]
  POST /api/results/analyze
    -> handoff.resolve(token) -> SessionResult
    -> PerformanceAgent.analyze()
        1) turn every answered question into a history line
           (question, user answer or "Not answered", correct answer, is_correct)
        2) fill performance_prompt.txt
        3) structured generation -> PerformanceFeedbackDraft
        4) attach score_percent, computed here and never taken from the model
"""
import logging
from typing import Any, Dict, List, Optional

from langsmith import traceable

from quizcam.core.errors import GenerationError
from quizcam.core.handoff import NOT_ANSWERED
from quizcam.ports.structured_generator import StructuredGenerator
from quizcam.schemas.quiz import Difficulty
from quizcam.schemas.session import (
    PerformanceFeedback,
    PerformanceFeedbackDraft,
    SessionResult,
    count_correct,
)
from quizcam.utils.prompt_loader import load_prompt

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Utilities
# ──────────────────────────────────────────────

def score_percent(result: SessionResult) -> float:
    """Correct answers as a percentage; 0 for an empty quiz."""
    if not result.answered_questions:
        return 0.0
    return round(count_correct(result.answered_questions) / len(result.answered_questions) * 100, 2)


def build_quiz_history(result: SessionResult) -> List[Dict[str, Any]]:
    history = []
    for question in result.answered_questions:
        history.append({
            "question": question.text,
            "user_answer": question.user_option if question.is_answered else NOT_ANSWERED,
            "correct_answer": question.correct_option,
            "is_correct": question.is_correct is True,
        })
    return history


def _format_quiz_history(history: List[Dict[str, Any]]) -> str:
    if not history:
        return "(no questions)"
    lines = []
    for item in history:
        lines.append(
            f"  Question: {item['question']}\n"
            f"  User Answer: {item['user_answer']}\n"
            f"  Correct Answer: {item['correct_answer']}\n"
            f"  Is Correct: {item['is_correct']}"
        )
    return "\n\n".join(lines)


# ──────────────────────────────────────────────
# PerformanceAgent
# ──────────────────────────────────────────────

class PerformanceAgent:
    """Structured-generation based performance analyzer

    Usage:
        agent = PerformanceAgent(generator)
        feedback = await agent.analyze(result)
    """

    def __init__(self, generator: StructuredGenerator, temperature: float = 0.5):
        self.generator = generator
        self.temperature = temperature
        self.system_prompt = load_prompt("performance_prompt.txt")

    def build_prompt(self, result: SessionResult, difficulty: Optional[Difficulty] = None) -> str:
        difficulty = difficulty or result.difficulty
        # quiz text is substituted last so placeholders inside it stay verbatim
        return (
            self.system_prompt
            .replace("{difficulty}", difficulty.value if difficulty else "unspecified")
            .replace("{question_count}", str(result.total_questions))
            .replace("{score_percent}", f"{score_percent(result):g}")
            .replace("{language}", result.language or "en")
            .replace("{quiz_history}", _format_quiz_history(build_quiz_history(result)))
        )

    @traceable(name="quiz_analyze_performance", run_type="chain")
    async def analyze(
        self, result: SessionResult, difficulty: Optional[Difficulty] = None
    ) -> PerformanceFeedback:
        """
        Raises:
            GenerationError: the model call failed or returned an invalid feedback object
        """
        try:
            draft = await self.generator.generate(
                instructions=self.build_prompt(result, difficulty),
                response_model=PerformanceFeedbackDraft,
                temperature=self.temperature,
            )
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Performance analysis failed: {e}")
            raise GenerationError(f"Performance analysis failed: {e}") from e

        feedback = PerformanceFeedback(
            **draft.model_dump(),
            score_percent=score_percent(result),
        )
        logger.info(f"Performance analysed: score={feedback.score_percent}%, questions={result.total_questions}")
        return feedback
