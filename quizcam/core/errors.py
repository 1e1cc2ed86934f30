"""
Engine error taxonomy

- ValidationError: malformed QuizRequest. Raised before any network call.
- GenerationError: model/network failure or model output that breaks the quiz schema.
- ToolError: language detection or translation failure. Aborts the whole pipeline call.
- ParseError: malformed handoff token. Recovered inside handoff.resolve(), never surfaced.
"""


class QuizEngineError(Exception):
    """Base class for every error raised by the engine"""
    pass


class ValidationError(QuizEngineError):
    """QuizRequest violates its invariants"""
    pass


class GenerationError(QuizEngineError):
    """Structured generation failed or produced an invalid quiz"""
    pass


class ToolError(QuizEngineError):
    """Language detection or translation failed"""
    pass


class ParseError(QuizEngineError):
    """Handoff token could not be decoded"""
    pass
