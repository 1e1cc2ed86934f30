"""
Ports (Interfaces)

Inner layer of the clean architecture.
Keeps the quiz engine independent from concrete model providers.
"""
from quizcam.ports.structured_generator import StructuredGenerator
from quizcam.ports.language_tools import LanguageToolSet
from quizcam.ports.notifications import NotificationSink

__all__ = ["StructuredGenerator", "LanguageToolSet", "NotificationSink"]
