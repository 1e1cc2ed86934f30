"""
Structured Generator Port (Interface)

Schema-constrained model invocation. Business logic depends on this interface only,
so the generation pipeline can be exercised with test doubles.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from quizcam.core.errors import GenerationError

T = TypeVar("T", bound=BaseModel)


class StructuredGenerator(ABC):
    """
    Schema-constrained generative model interface

    Implementations:
        - OpenAIStructuredGenerator: OpenAI (or compatible) chat completions with JSON schema output
        - test doubles in tests/conftest.py

    Example:
        generator = OpenAIStructuredGenerator(api_key="...")
        draft = await generator.generate(
            instructions="Write 3 questions about the photo",
            response_model=QuizDraft,
            image="data:image/png;base64,...",
        )
    """

    @abstractmethod
    async def generate(
        self,
        *,
        instructions: str,
        response_model: Type[T],
        image: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> T:
        """
        Invoke the model and return its output validated against response_model.

        Args:
            instructions: system/task instructions for the model
            response_model: pydantic model the output must satisfy
            image: optional image data URI attached to the request
            temperature: sampling temperature (None uses the implementation default)

        Returns:
            An instance of response_model

        Raises:
            GenerationError: transport/model failure or output that fails schema validation
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the model name in use (e.g. "gpt-4o-mini")"""
        pass

    @staticmethod
    def validate_output(response_model: Type[T], data: Any) -> T:
        """Validate raw model output, converting schema failures into GenerationError."""
        try:
            return response_model.model_validate(data)
        except PydanticValidationError as e:
            raise GenerationError(
                f"Model output failed {response_model.__name__} schema validation: {e.error_count()} error(s)"
            ) from e
