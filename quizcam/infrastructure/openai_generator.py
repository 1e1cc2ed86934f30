"""
OpenAI Structured Generator Implementation

StructuredGenerator backed by OpenAI chat completions (or any OpenAI-compatible
endpoint such as Upstage) with a JSON schema response format.
No automatic retry: a failed generation surfaces to the caller, who may re-invoke.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Type

from langsmith import traceable
from openai import AsyncOpenAI, OpenAIError

from quizcam.core.errors import GenerationError
from quizcam.ports.structured_generator import StructuredGenerator, T
from quizcam.utils.json_utils import safe_json_parse


logger = logging.getLogger(__name__)


class OpenAIStructuredGenerator(StructuredGenerator):
    """
    Structured generation over OpenAI chat completions

    Features:
        - JSON schema response format derived from the pydantic response model
        - Optional image attachment (data URI) for vision models
        - Output re-validated locally; schema violations raise GenerationError

    Example:
        generator = OpenAIStructuredGenerator(api_key="...", model="gpt-4o-mini")
        draft = await generator.generate(instructions="...", response_model=QuizDraft, image=data_uri)
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: int = 30,
        temperature: float = 0.7,
        client: Optional[Any] = None,
    ):
        """
        Args:
            api_key: OpenAI API key
            model: chat model name
            base_url: OpenAI-compatible endpoint (None for api.openai.com)
            timeout: request timeout in seconds
            temperature: default sampling temperature
            client: preconstructed AsyncOpenAI-compatible client
        """
        self._model = model
        self._timeout = timeout
        self._temperature = temperature

        if client is not None:
            self._client = client
        else:
            if not api_key:
                logger.warning("OPENAI_API_KEY is not set. Structured generation calls will fail.")
            self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout)
        logger.info(f"OpenAIStructuredGenerator initialized: model={model}, timeout={timeout}s")

    @staticmethod
    def _build_messages(instructions: str, image: Optional[str]) -> List[Dict[str, Any]]:
        user_content: List[Dict[str, Any]] = [
            {"type": "text", "text": "Respond with a single JSON object that matches the requested schema."}
        ]
        if image:
            user_content.append({"type": "image_url", "image_url": {"url": image}})

        return [
            {"role": "system", "content": instructions},
            {"role": "user", "content": user_content},
        ]

    @staticmethod
    def _response_format(response_model: Type[T]) -> Dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": response_model.__name__,
                "schema": response_model.model_json_schema(),
                "strict": False,
            },
        }

    @traceable(name="structured_generate", run_type="llm")
    async def generate(
        self,
        *,
        instructions: str,
        response_model: Type[T],
        image: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> T:
        temperature = self._temperature if temperature is None else temperature
        logger.debug(
            f"Invoking generator: model={self._model}, schema={response_model.__name__}, "
            f"image={'yes' if image else 'no'}, temperature={temperature}"
        )

        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=self._build_messages(instructions, image),
                response_format=self._response_format(response_model),
                temperature=temperature,
            )
        except TimeoutError as e:
            logger.error(f"Generator timeout: {e}")
            raise GenerationError(f"Generation timed out after {self._timeout}s") from e
        except OpenAIError as e:
            logger.error(f"Generator API error: {e}")
            raise GenerationError(f"Generation call failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise GenerationError("Model returned an empty response")

        try:
            data = safe_json_parse(content)
        except json.JSONDecodeError as e:
            logger.error(f"Generator returned non-JSON output: {content[:200]}")
            raise GenerationError("Model output is not a JSON object") from e

        logger.info(f"Generator response received: schema={response_model.__name__}, length={len(content)}")
        return self.validate_output(response_model, data)

    def get_model_name(self) -> str:
        return self._model

    def __repr__(self) -> str:
        return f"<OpenAIStructuredGenerator model={self._model}>"
