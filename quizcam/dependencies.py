"""
FastAPI Dependency Injection

Builds the generator, language tools, pipeline and session registry once and
injects them into the endpoints. Tests replace them via app.dependency_overrides.
"""
import logging
from functools import lru_cache

from fastapi import Depends

from quizcam.agents import PerformanceAgent, QuizGenerationPipeline
from quizcam.config import get_settings
from quizcam.infrastructure import LoggingNotificationSink, OpenAILanguageTools, OpenAIStructuredGenerator
from quizcam.ports import LanguageToolSet, NotificationSink, StructuredGenerator
from quizcam.services.quiz_session import QuizSession
from quizcam.services.session_store import QuizHistory, SessionRegistry


logger = logging.getLogger(__name__)


@lru_cache()
def get_structured_generator() -> StructuredGenerator:
    settings = get_settings()
    generator = OpenAIStructuredGenerator(
        api_key=settings.openai_api_key,
        model=settings.generation_model,
        base_url=settings.llm_base_url or None,
        timeout=settings.llm_timeout,
        temperature=settings.generation_temperature,
    )
    logger.info("Structured generator created")
    return generator


@lru_cache()
def get_language_tools() -> LanguageToolSet:
    settings = get_settings()
    tools = OpenAILanguageTools(
        api_key=settings.openai_api_key,
        model=settings.tool_model,
        base_url=settings.llm_base_url or None,
        timeout=settings.llm_timeout,
        max_attempts=settings.translation_max_attempts,
        retry_wait=settings.translation_retry_wait,
    )
    logger.info("Language tools created")
    return tools


@lru_cache()
def get_notifier() -> NotificationSink:
    return LoggingNotificationSink()


@lru_cache()
def get_quiz_history() -> QuizHistory:
    """Process-wide quiz history (lost on restart)"""
    return QuizHistory()


def create_quiz_pipeline(
    generator: StructuredGenerator = None,
    language_tools: LanguageToolSet = None,
    notifier: NotificationSink = None,
) -> QuizGenerationPipeline:
    """
    Build a quiz generation pipeline (direct-call helper)

    Args:
        generator: Structured generator (None = settings-based default)
        language_tools: Language tool set (None = settings-based default)
        notifier: Notification sink (None = logging sink)
    """
    pipeline = QuizGenerationPipeline.from_settings(
        get_settings(),
        generator=generator or get_structured_generator(),
        language_tools=language_tools or get_language_tools(),
        notifier=notifier or get_notifier(),
    )
    logger.info("Quiz generation pipeline created")
    return pipeline


@lru_cache()
def get_quiz_pipeline() -> QuizGenerationPipeline:
    return create_quiz_pipeline()


@lru_cache()
def get_session_registry() -> SessionRegistry:
    settings = get_settings()
    history = get_quiz_history()
    notifier = get_notifier()

    def session_factory() -> QuizSession:
        return QuizSession(
            auto_advance_delay=settings.auto_advance_delay,
            history=history,
            notifier=notifier,
        )

    return SessionRegistry(session_factory, ttl=settings.session_ttl)


def get_performance_agent(
    generator: StructuredGenerator = Depends(get_structured_generator),
) -> PerformanceAgent:
    return PerformanceAgent(generator)
