"""
Logging Notification Sink

Default NotificationSink: writes engine events to the application log, where an
external presenter (toast surface, dashboard) can pick them up.
"""
import logging
from typing import Any

from quizcam.ports.notifications import GENERATION_FAILED, NotificationSink


logger = logging.getLogger(__name__)


class LoggingNotificationSink(NotificationSink):
    """Log every event; failures at WARNING, everything else at INFO."""

    def notify(self, event: str, message: str, **details: Any) -> None:
        level = logging.WARNING if event == GENERATION_FAILED else logging.INFO
        suffix = f" {details}" if details else ""
        logger.log(level, f"[{event}] {message}{suffix}")
