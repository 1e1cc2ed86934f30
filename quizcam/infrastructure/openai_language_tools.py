"""
OpenAI Language Tools Implementation

LanguageToolSet backed by OpenAI chat completions:
    - detect_language: vision call over the photo, JSON answer {"language_code": ...}
    - translate: plain chat call, retried with exponential backoff (tenacity)
"""
import json
import logging
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from quizcam.core.errors import ToolError
from quizcam.core.language import normalize_language_code
from quizcam.ports.language_tools import LanguageToolSet
from quizcam.utils.json_utils import safe_json_parse
from quizcam.utils.prompt_loader import load_prompt


logger = logging.getLogger(__name__)


class OpenAILanguageTools(LanguageToolSet):
    """
    Language detection and translation over OpenAI chat completions

    Features:
        - Translation retries (translation_max_attempts, exponential backoff)
        - Detection is never retried: a failure aborts the pipeline immediately

    Example:
        tools = OpenAILanguageTools(api_key="...", model="gpt-4o-mini")
        await tools.detect_language(data_uri)          # "mr"
        await tools.translate("Which animal?", "mr")
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: int = 30,
        max_attempts: int = 2,
        retry_wait: float = 0.5,
        client: Optional[Any] = None,
    ):
        self._model = model
        self._max_attempts = max(1, max_attempts)
        self._retry_wait = retry_wait
        self._detect_prompt = load_prompt("detect_language_prompt.txt")
        self._translate_prompt = load_prompt("translate_prompt.txt")

        if client is not None:
            self._client = client
        else:
            if not api_key:
                logger.warning("OPENAI_API_KEY is not set. Language tool calls will fail.")
            self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout)
        logger.info(f"OpenAILanguageTools initialized: model={model}, max_attempts={self._max_attempts}")

    async def _complete(self, **kwargs: Any) -> str:
        try:
            completion = await self._client.chat.completions.create(model=self._model, **kwargs)
        except (OpenAIError, TimeoutError) as e:
            logger.error(f"Language tool API error: {e}")
            raise ToolError(f"Language tool call failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise ToolError("Language tool returned an empty response")
        return content.strip()

    async def detect_language(self, image: str) -> str:
        content = await self._complete(
            messages=[
                {"role": "system", "content": self._detect_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "Which language is the text in this photo written in?"},
                        {"type": "image_url", "image_url": {"url": image}},
                    ],
                },
            ],
            response_format={"type": "json_object"},
            temperature=0,
        )

        try:
            data = safe_json_parse(content)
        except json.JSONDecodeError as e:
            raise ToolError("Language detection returned non-JSON output") from e

        code = normalize_language_code(data.get("language_code"))
        logger.info(f"Detected language: {code}")
        return code

    async def _translate_once(self, text: str, target_language: str) -> str:
        return await self._complete(
            messages=[
                {"role": "system", "content": self._translate_prompt.replace("{target_language}", target_language)},
                {"role": "user", "content": text},
            ],
            temperature=0,
        )

    async def translate(self, text: str, target_language: str) -> str:
        if not text.strip():
            return text

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=10),
            retry=retry_if_exception_type(ToolError),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"Retrying translation into {target_language} "
                        f"(attempt {attempt.retry_state.attempt_number}/{self._max_attempts})"
                    )
                return await self._translate_once(text, target_language)

    def get_model_name(self) -> str:
        return self._model

    def __repr__(self) -> str:
        return f"<OpenAILanguageTools model={self._model}>"
