"""
Test configuration for stable local/CI execution.
"""
from __future__ import annotations

import asyncio
import base64
import inspect
import os
from typing import Any, Callable, Dict, List, Optional

import pytest

# Disable external tracing uploads during tests.
os.environ.setdefault("LANGSMITH_TRACING", "false")
os.environ.setdefault("LANGCHAIN_TRACING_V2", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from quizcam.core.errors import ToolError  # noqa: E402
from quizcam.ports.language_tools import LanguageToolSet  # noqa: E402
from quizcam.ports.notifications import NotificationSink  # noqa: E402
from quizcam.ports.structured_generator import StructuredGenerator  # noqa: E402
from quizcam.schemas.quiz import QuizPayload  # noqa: E402
from quizcam.services.quiz_session import Scheduler  # noqa: E402


def pytest_pyfunc_call(pyfuncitem):
    """
    Minimal asyncio runner to support async test functions without extra plugins.
    """
    testfunction = pyfuncitem.obj
    if not inspect.iscoroutinefunction(testfunction):
        return None

    kwargs = {
        argname: pyfuncitem.funcargs[argname]
        for argname in pyfuncitem._fixtureinfo.argnames
    }
    asyncio.run(testfunction(**kwargs))
    return True


# ──────────────────────────────────────────────
# Test doubles
# ──────────────────────────────────────────────

class RecordingGenerator(StructuredGenerator):
    """Returns scripted outputs in order; an Exception entry is raised instead."""

    def __init__(self, outputs: List[Any], call_log: List[str]):
        self.outputs = list(outputs)
        self.calls: List[Dict[str, Any]] = []
        self.call_log = call_log

    async def generate(self, *, instructions, response_model, image=None, temperature=None):
        self.call_log.append("generate")
        self.calls.append({
            "instructions": instructions,
            "response_model": response_model,
            "image": image,
            "temperature": temperature,
        })
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return self.validate_output(response_model, output)

    def get_model_name(self) -> str:
        return "recording-generator"


class ScriptedLanguageTools(LanguageToolSet):
    """Detects a fixed language and translates by prefixing "[<lang>] "."""

    def __init__(self, language: Any, call_log: List[str], fail_on: Optional[set] = None, delay: float = 0):
        self.language = language
        self.call_log = call_log
        self.fail_on = fail_on or set()
        self.delay = delay
        self.translated: List[str] = []

    async def detect_language(self, image: str) -> str:
        self.call_log.append("detect_language")
        if isinstance(self.language, Exception):
            raise self.language
        return self.language

    async def translate(self, text: str, target_language: str) -> str:
        self.call_log.append("translate")
        await asyncio.sleep(0)
        if text in self.fail_on:
            raise ToolError(f"cannot translate {text!r}")
        if self.delay:
            await asyncio.sleep(self.delay)
        self.translated.append(text)
        return f"[{target_language}] {text}"


class ManualHandle:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Scheduler driven by the test: nothing fires until fire() is called."""

    def __init__(self):
        self.handles: List[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def fire(self, handle: Optional[ManualHandle] = None) -> None:
        """Fire one handle (the latest pending one by default), even if it was cancelled."""
        if handle is None:
            handle = self.pending[-1]
        handle.callback()

    def fire_all(self) -> None:
        for handle in self.pending:
            handle.callback()


class RecordingNotifier(NotificationSink):
    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def notify(self, event: str, message: str, **details: Any) -> None:
        self.events.append({"event": event, "message": message, **details})

    def names(self) -> List[str]:
        return [item["event"] for item in self.events]


# ──────────────────────────────────────────────
# Sample data
# ──────────────────────────────────────────────

def make_question(number: int, correct: int = 0) -> Dict[str, Any]:
    return {
        "text": f"Question {number}?",
        "options": [f"Q{number} option {i}" for i in range(4)],
        "correct_option_index": correct,
    }


def make_draft(count: int) -> Dict[str, Any]:
    return {"questions": [make_question(i + 1, correct=i % 4) for i in range(count)]}


@pytest.fixture
def image_data_uri() -> str:
    return "data:image/png;base64," + base64.b64encode(b"\x89PNG fake image bytes").decode("ascii")


@pytest.fixture
def draft_factory() -> Callable[[int], Dict[str, Any]]:
    return make_draft


@pytest.fixture
def three_question_payload() -> QuizPayload:
    """Three questions whose correct options are 0, 1 and 2."""
    return QuizPayload(
        questions=[make_question(i + 1, correct=i) for i in range(3)],
        detected_language="en",
    )


@pytest.fixture
def call_log() -> List[str]:
    return []


@pytest.fixture
def make_generator(call_log) -> Callable[..., RecordingGenerator]:
    def _make(*outputs: Any) -> RecordingGenerator:
        return RecordingGenerator(list(outputs), call_log)
    return _make


@pytest.fixture
def make_language_tools(call_log) -> Callable[..., ScriptedLanguageTools]:
    def _make(language: Any = "en", fail_on: Optional[set] = None, delay: float = 0) -> ScriptedLanguageTools:
        return ScriptedLanguageTools(language, call_log, fail_on=fail_on, delay=delay)
    return _make


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
