"""
Notification Port (Interface)

The engine emits named success/failure events; an external presenter renders them.
"""
from abc import ABC, abstractmethod
from typing import Any

QUIZ_GENERATED = "quiz_generated"
GENERATION_FAILED = "generation_failed"
QUIZ_FINISHED = "quiz_finished"


class NotificationSink(ABC):
    """Receives engine events such as "generation_failed" or "quiz_finished"."""

    @abstractmethod
    def notify(self, event: str, message: str, **details: Any) -> None:
        pass
