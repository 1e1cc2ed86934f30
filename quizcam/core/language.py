from typing import Any, Iterable

from quizcam.core.errors import ToolError
from quizcam.schemas.quiz import LANGUAGE_CODE_PATTERN


def normalize_language_code(raw: Any) -> str:
    """Trim and lower-case the primary subtag ("EN" -> "en", "pt_BR" -> "pt-BR"); ToolError if unusable."""
    code = str(raw or "").strip().replace("_", "-")
    primary, _, rest = code.partition("-")
    code = primary.lower() + (f"-{rest}" if rest else "")
    if not LANGUAGE_CODE_PATTERN.match(code):
        raise ToolError(f"Unusable language code: {raw!r}")
    return code


def primary_subtag(code: str) -> str:
    return code.split("-", 1)[0].lower()


def is_native_language(code: str, native_language_codes: Iterable[str]) -> bool:
    """True when the generator is trusted to write this language directly (no translation pass)."""
    natives = {primary_subtag(native) for native in native_language_codes}
    return primary_subtag(code) in natives
