# quizcam/agents/quiz_generation/nodes.py

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from langchain_core.tools import BaseTool
from pydantic import ValidationError as PydanticValidationError

from quizcam.agents.quiz_generation.state import QuizGenerationState
from quizcam.agents.quiz_generation.tools import DETECT_LANGUAGE_TOOL, TRANSLATE_TOOL
from quizcam.core.errors import GenerationError, ToolError, ValidationError
from quizcam.core.language import is_native_language, normalize_language_code
from quizcam.ports.structured_generator import StructuredGenerator
from quizcam.schemas.quiz import OPTIONS_PER_QUESTION, Difficulty, Question, QuizDraft, QuizPayload, QuizRequest
from quizcam.utils.prompt_loader import load_prompt

# --- Constants ---
TRANSLATE_ROUTE = "translate"
ASSEMBLE_ROUTE = "assemble"

DIFFICULTY_INSTRUCTIONS = {
    Difficulty.EASY: "Ask about obvious, clearly visible details. Distractors should be clearly wrong.",
    Difficulty.MEDIUM: "Mix visible details with simple inferences. Distractors should be plausible.",
    Difficulty.HARD: "Ask about fine details, relationships and inferences. Distractors should be close to the answer.",
}

logger = logging.getLogger(__name__)


def _describe_validation_error(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "request"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)


class QuizGenerationNodes:
    """
    Node functions of the quiz generation graph.

    The generator and the language tools are bound per instance.
    """

    def __init__(
        self,
        generator: StructuredGenerator,
        language_tools: Dict[str, BaseTool],
        native_language_codes: Iterable[str] = ("en", "hi"),
        translation_enabled: bool = True,
        temperature: Optional[float] = None,
    ):
        self.generator = generator
        self.language_tools = language_tools
        self.native_language_codes = list(native_language_codes)
        self.translation_enabled = translation_enabled
        self.temperature = temperature
        self.prompt_template = load_prompt("quiz_prompt.txt")

    # ──────────────────────────────────────────
    # 1) validate
    # ──────────────────────────────────────────

    def validate_request_node(self, state: QuizGenerationState) -> Dict[str, Any]:
        raw = state.get("raw_request")
        if isinstance(raw, QuizRequest):
            raw = raw.model_dump()

        try:
            request = QuizRequest.model_validate(raw)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid quiz request: {_describe_validation_error(e)}") from e

        logger.info(
            f"Quiz request accepted: question_count={request.question_count}, "
            f"difficulty={request.difficulty.value}, mime={request.mime_type}"
        )
        return {"request": request}

    # ──────────────────────────────────────────
    # 2) detect language (always before generation)
    # ──────────────────────────────────────────

    async def detect_language_node(self, state: QuizGenerationState) -> Dict[str, Any]:
        request = state["request"]
        tool = self.language_tools[DETECT_LANGUAGE_TOOL]

        try:
            raw_code = await tool.ainvoke({"image": request.image})
        except ToolError:
            raise
        except Exception as e:
            logger.error(f"Language detection failed: {e}")
            raise ToolError(f"Language detection failed: {e}") from e

        detected_language = normalize_language_code(raw_code)
        logger.info(f"Detected quiz language: {detected_language}")
        return {"detected_language": detected_language}

    # ──────────────────────────────────────────
    # 3) structured generation
    # ──────────────────────────────────────────

    def build_prompt(self, request: QuizRequest, language: str) -> str:
        return (
            self.prompt_template
            .replace("{question_count}", str(request.question_count))
            .replace("{difficulty}", request.difficulty.value)
            .replace("{difficulty_instruction}", DIFFICULTY_INSTRUCTIONS[request.difficulty])
            .replace("{language}", language)
        )

    async def generate_questions_node(self, state: QuizGenerationState) -> Dict[str, Any]:
        request = state["request"]
        language = state["detected_language"]

        try:
            draft = await self.generator.generate(
                instructions=self.build_prompt(request, language),
                response_model=QuizDraft,
                image=request.image,
                temperature=self.temperature,
            )
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Structured generation failed: {e}")
            raise GenerationError(f"Structured generation failed: {e}") from e

        if len(draft.questions) != request.question_count:
            raise GenerationError(
                f"Generator returned {len(draft.questions)} questions, expected {request.question_count}"
            )

        questions = list(draft.questions)
        return {"draft_questions": questions, "questions": questions, "translated": False}

    def needs_translation(self, language: str) -> bool:
        return self.translation_enabled and not is_native_language(language, self.native_language_codes)

    def route_after_generation(self, state: QuizGenerationState) -> str:
        if self.needs_translation(state["detected_language"]):
            return TRANSLATE_ROUTE
        return ASSEMBLE_ROUTE

    # ──────────────────────────────────────────
    # 4) translation pass (non-native languages only)
    # ──────────────────────────────────────────

    async def _translate_text(self, text: str, language: str) -> str:
        tool = self.language_tools[TRANSLATE_TOOL]
        try:
            translated = await tool.ainvoke({"text": text, "target_language": language})
        except ToolError:
            raise
        except Exception as e:
            raise ToolError(f"Translation failed: {e}") from e

        if not isinstance(translated, str) or not translated.strip():
            raise ToolError("Translation returned empty text")
        return translated.strip()

    async def _translate_all(self, texts: List[str], language: str) -> List[str]:
        """Translate concurrently; the first failure cancels every call still in flight."""
        tasks = [asyncio.ensure_future(self._translate_text(text, language)) for text in texts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            if pending:
                logger.info(f"Cancelled {len(pending)} outstanding translation calls")
            raise

    async def translate_questions_node(self, state: QuizGenerationState) -> Dict[str, Any]:
        language = state["detected_language"]
        drafts: List[Question] = state["draft_questions"]
        logger.info(f"Translating {len(drafts)} questions into {language}")

        # question text followed by its 4 options, per question
        texts = [text for question in drafts for text in (question.text, *question.options)]
        try:
            results = await self._translate_all(texts, language)
        except ToolError as e:
            logger.error(f"Translation pass aborted: {e}")
            raise

        width = 1 + OPTIONS_PER_QUESTION
        translated = [
            Question(
                text=results[i * width],
                options=results[i * width + 1:(i + 1) * width],
                correct_option_index=question.correct_option_index,
            )
            for i, question in enumerate(drafts)
        ]
        return {"questions": translated, "translated": True}

    # ──────────────────────────────────────────
    # 5) assemble
    # ──────────────────────────────────────────

    def assemble_payload_node(self, state: QuizGenerationState) -> Dict[str, Any]:
        request = state["request"]
        try:
            payload = QuizPayload(
                questions=state["questions"],
                detected_language=state["detected_language"],
                difficulty=request.difficulty,
            )
        except PydanticValidationError as e:
            raise GenerationError(f"Assembled quiz is invalid: {_describe_validation_error(e)}") from e

        logger.info(
            f"Quiz assembled: {len(payload.questions)} questions, language={payload.detected_language}, "
            f"translated={state.get('translated', False)}"
        )
        return {"payload": payload}
