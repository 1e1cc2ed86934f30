import json
import re
from typing import Any, Dict

from quizcam.utils.logger import get_logger

logger = get_logger(__name__)


def safe_json_parse(text: str) -> Dict[str, Any]:
    """
    Robustly parse a JSON object from LLM output, handling markdown blocks and raw control characters.

    Raises:
        json.JSONDecodeError: no JSON object could be recovered
    """
    if not text:
        raise json.JSONDecodeError("Empty LLM output", text or "", 0)

    text = text.strip()

    # Strip ```json ... ``` fences
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()

    # strict=False lets raw newlines inside strings through
    try:
        parsed = json.loads(text, strict=False)
    except json.JSONDecodeError as e:
        logger.debug(f"Initial JSON parse failed: {e}. Attempting cleanup.")

        text = re.sub(r'```json\s*|\s*```', '', text).strip()

        # Keep everything between the first '{' and the last '}'
        start = text.find('{')
        end = text.rfind('}')
        if start == -1 or end <= start:
            logger.error(f"JSON parsing failed after cleanup. Problematic text:\n{text[:500]}")
            raise
        parsed = json.loads(text[start:end + 1], strict=False)

    if not isinstance(parsed, dict):
        raise json.JSONDecodeError("Expected a JSON object", text, 0)
    return parsed
