# quizcam/agents/quiz_generation/tools.py

"""
LangChain Tools for the quiz generation pipeline

Tools exposed to the generation workflow:
- detect_language: language of the text in the photo
- translate_text: translation of one question/option into the quiz language

Both tools delegate to an injected LanguageToolSet.
"""

from typing import Dict

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from quizcam.ports.language_tools import LanguageToolSet

DETECT_LANGUAGE_TOOL = "detect_language"
TRANSLATE_TOOL = "translate_text"


class DetectLanguageInput(BaseModel):
    image: str = Field(..., description="Photo as a data URI")


class TranslateInput(BaseModel):
    text: str = Field(..., description="Text to translate")
    target_language: str = Field(..., description="Target language code (e.g. 'mr')")


def build_language_tools(toolset: LanguageToolSet) -> Dict[str, BaseTool]:
    """
    Wrap a LanguageToolSet as LangChain tools keyed by tool name.

    Example:
        >>> tools = build_language_tools(OpenAILanguageTools(api_key="..."))
        >>> await tools["detect_language"].ainvoke({"image": data_uri})
        'mr'
    """
    detect_tool = StructuredTool.from_function(
        coroutine=toolset.detect_language,
        name=DETECT_LANGUAGE_TOOL,
        description="Detect the language of the text visible in a photo. Returns a language code.",
        args_schema=DetectLanguageInput,
    )
    translate_tool = StructuredTool.from_function(
        coroutine=toolset.translate,
        name=TRANSLATE_TOOL,
        description="Translate a piece of quiz text into the target language. Returns the translated text.",
        args_schema=TranslateInput,
    )
    return {DETECT_LANGUAGE_TOOL: detect_tool, TRANSLATE_TOOL: translate_tool}
