"""
Infrastructure (Adapters)

Outer layer of the clean architecture.
Concrete implementations of the port interfaces (OpenAI, logging).
"""
from quizcam.infrastructure.openai_generator import OpenAIStructuredGenerator
from quizcam.infrastructure.openai_language_tools import OpenAILanguageTools
from quizcam.infrastructure.notifications import LoggingNotificationSink

__all__ = ["OpenAIStructuredGenerator", "OpenAILanguageTools", "LoggingNotificationSink"]
