"""
Quiz generation pipeline (photo -> validated quiz)

[Flow]
  QuizRequest -> QuizGenerationPipeline.generate()
    1) validate the request (no network call on failure)
    2) detect the language of the photo (mandatory, always first)
    3) structured generation in the detected language
    4) translation pass when the language is not in the native allowlist
    5) assemble the QuizPayload

[Failure semantics]
  All-or-nothing: ValidationError, GenerationError or ToolError propagate and
  no partially built or partially translated payload is ever returned.
"""
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from langsmith import traceable

from quizcam.agents.quiz_generation.graph import create_quiz_generation_graph
from quizcam.agents.quiz_generation.nodes import QuizGenerationNodes
from quizcam.agents.quiz_generation.tools import build_language_tools
from quizcam.config import Settings
from quizcam.core.errors import GenerationError, QuizEngineError
from quizcam.ports.language_tools import LanguageToolSet
from quizcam.ports.notifications import GENERATION_FAILED, QUIZ_GENERATED, NotificationSink
from quizcam.ports.structured_generator import StructuredGenerator
from quizcam.schemas.quiz import QuizPayload, QuizRequest

logger = logging.getLogger(__name__)


class QuizGenerationPipeline:
    """Photo-to-quiz pipeline, a thin wrapper around a LangGraph workflow.

    Usage:
        pipeline = QuizGenerationPipeline(generator, language_tools)
        payload = await pipeline.generate({"image": data_uri, "question_count": 3, "difficulty": "easy"})
    """

    def __init__(
        self,
        generator: StructuredGenerator,
        language_tools: LanguageToolSet,
        native_language_codes: Iterable[str] = ("en", "hi"),
        translation_enabled: bool = True,
        temperature: Optional[float] = None,
        notifier: Optional[NotificationSink] = None,
    ):
        self.nodes = QuizGenerationNodes(
            generator=generator,
            language_tools=build_language_tools(language_tools),
            native_language_codes=native_language_codes,
            translation_enabled=translation_enabled,
            temperature=temperature,
        )
        self.notifier = notifier
        self._app = create_quiz_generation_graph(self.nodes).compile()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        generator: StructuredGenerator,
        language_tools: LanguageToolSet,
        notifier: Optional[NotificationSink] = None,
    ) -> "QuizGenerationPipeline":
        return cls(
            generator=generator,
            language_tools=language_tools,
            native_language_codes=settings.native_language_codes,
            translation_enabled=settings.translation_enabled,
            temperature=settings.generation_temperature,
            notifier=notifier,
        )

    def _notify(self, event: str, message: str, **details: Any) -> None:
        if self.notifier is not None:
            self.notifier.notify(event, message, **details)

    @traceable(name="quiz_generate", run_type="chain")
    async def generate(self, request: Union[QuizRequest, Mapping[str, Any]]) -> QuizPayload:
        """
        Turn a photo into a validated quiz.

        Raises:
            ValidationError: the request violates its invariants
            ToolError: language detection or translation failed
            GenerationError: model failure or output that breaks the quiz schema
        """
        try:
            final_state = await self._app.ainvoke({"raw_request": request})
        except QuizEngineError as e:
            logger.warning(f"Quiz generation failed ({type(e).__name__}): {e}")
            self._notify(
                GENERATION_FAILED,
                "Failed to generate quiz. Please try again.",
                error_type=type(e).__name__,
                reason=str(e),
            )
            raise

        payload = final_state.get("payload")
        if payload is None:
            raise GenerationError("Quiz generation finished without a payload")

        self._notify(
            QUIZ_GENERATED,
            f"Generated {len(payload.questions)} questions",
            language=payload.detected_language,
        )
        return payload
