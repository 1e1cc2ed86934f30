"""
Language Tool Set Port (Interface)

Two narrowly scoped tools the generation pipeline invokes as discrete steps.
"""
from abc import ABC, abstractmethod


class LanguageToolSet(ABC):
    """
    Language detection and translation tools

    Implementations:
        - OpenAILanguageTools: vision-based detection + chat-based translation

    Example:
        tools = OpenAILanguageTools(api_key="...")
        code = await tools.detect_language("data:image/png;base64,...")   # "mr"
        text = await tools.translate("What is shown?", "mr")
    """

    @abstractmethod
    async def detect_language(self, image: str) -> str:
        """
        Detect the dominant language of the text visible in an image.

        Args:
            image: image data URI

        Returns:
            str: language code (e.g. "en", "mr")

        Raises:
            ToolError: detection failed or returned an unusable code
        """
        pass

    @abstractmethod
    async def translate(self, text: str, target_language: str) -> str:
        """
        Translate text into target_language.

        Raises:
            ToolError: translation failed
        """
        pass
