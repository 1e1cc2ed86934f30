"""
Quiz session state machine

[States]
  IDLE -> ACTIVE(index) -> FINISHED
  FINISHED -> IDLE via reset(), any state -> ACTIVE(0) via start()

[Answering]
  - only the current question can be answered, and only once
  - an accepted answer schedules exactly one auto-advance
  - misuse is a silent no-op returning False (logged at debug level)

[Timer]
  The session owns at most one pending advance handle. Scheduling cancels
  the previous handle first; start/finish/reset cancel it as well. Each
  callback carries (epoch, index) and is ignored once either has moved on.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from quizcam.ports.notifications import QUIZ_FINISHED, NotificationSink
from quizcam.schemas.quiz import OPTIONS_PER_QUESTION, Difficulty, QuizPayload
from quizcam.schemas.session import AnsweredQuestion, SessionResult, count_correct

if TYPE_CHECKING:
    from quizcam.services.session_store import QuizHistory

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


class Scheduler(ABC):
    """Delayed-callback source; returned handles must expose cancel()"""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        pass


class AsyncioScheduler(Scheduler):
    """Schedules on the running event loop"""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class QuizSession:
    """
    One quiz attempt, from the first question to a SessionResult.

    Usage:
        session = QuizSession(auto_advance_delay=1.0, history=history)
        session.start(payload)
        session.answer(0, 2)    # True, advance scheduled
        session.answer(0, 1)    # False, already answered
        result = session.finish()
    """

    def __init__(
        self,
        auto_advance_delay: float = 1.0,
        scheduler: Optional[Scheduler] = None,
        history: Optional["QuizHistory"] = None,
        notifier: Optional[NotificationSink] = None,
    ):
        self.auto_advance_delay = auto_advance_delay
        self.scheduler = scheduler or AsyncioScheduler()
        self.history = history
        self.notifier = notifier

        self._state = SessionState.IDLE
        self._questions: List[AnsweredQuestion] = []
        self._index = 0
        self._language = ""
        self._difficulty: Optional[Difficulty] = None
        self._result: Optional[SessionResult] = None
        self._pending: Any = None
        self._epoch = 0

    # ──────────────────────────────────────────
    # Accessors
    # ──────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_index(self) -> Optional[int]:
        if self._state != SessionState.ACTIVE:
            return None
        return self._index

    @property
    def current_question(self) -> Optional[AnsweredQuestion]:
        if self._state != SessionState.ACTIVE:
            return None
        return self._questions[self._index]

    @property
    def answered_questions(self) -> List[AnsweredQuestion]:
        return list(self._questions)

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def language(self) -> str:
        return self._language

    @property
    def difficulty(self) -> Optional[Difficulty]:
        return self._difficulty

    @property
    def score(self) -> int:
        return count_correct(self._questions)

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def has_pending_advance(self) -> bool:
        return self._pending is not None

    # ──────────────────────────────────────────
    # Transitions
    # ──────────────────────────────────────────

    def start(self, payload: QuizPayload) -> None:
        self._cancel_pending()
        self._epoch += 1
        self._questions = [AnsweredQuestion.from_question(question) for question in payload.questions]
        self._index = 0
        self._language = payload.detected_language
        self._difficulty = payload.difficulty
        self._result = None
        self._state = SessionState.ACTIVE
        logger.info(f"Quiz session started: {len(self._questions)} questions, language={self._language}")

    def answer(self, question_index: int, option_index: int) -> bool:
        """Record the user's choice for the current question. Returns False when ignored."""
        if self._state != SessionState.ACTIVE:
            logger.debug(f"Answer ignored: session is {self._state.value}")
            return False
        if question_index != self._index:
            logger.debug(f"Answer ignored: question {question_index} is not current ({self._index})")
            return False
        if not 0 <= option_index < OPTIONS_PER_QUESTION:
            logger.debug(f"Answer ignored: option index {option_index} out of range")
            return False

        question = self._questions[self._index]
        if question.is_answered:
            logger.debug(f"Answer ignored: question {question_index} already answered")
            return False

        self._questions[self._index] = question.answered(option_index)
        self._schedule_advance()
        return True

    def finish(self) -> Optional[SessionResult]:
        """End the quiz now. Unanswered questions count as incorrect."""
        if self._state == SessionState.IDLE:
            return None
        if self._state == SessionState.FINISHED:
            return self._result
        return self._complete()

    def reset(self) -> None:
        self._cancel_pending()
        self._epoch += 1
        self._questions = []
        self._index = 0
        self._language = ""
        self._difficulty = None
        self._result = None
        self._state = SessionState.IDLE

    # ──────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_advance(self) -> None:
        self._cancel_pending()
        epoch, index = self._epoch, self._index
        self._pending = self.scheduler.call_later(
            self.auto_advance_delay,
            lambda: self._advance(epoch, index),
        )

    def _advance(self, epoch: int, index: int) -> None:
        if epoch != self._epoch or self._state != SessionState.ACTIVE or index != self._index:
            logger.debug(f"Stale auto-advance ignored (epoch={epoch}, index={index})")
            return

        self._pending = None
        if self._index + 1 < len(self._questions):
            self._index += 1
        else:
            self._complete()

    def _complete(self) -> SessionResult:
        self._cancel_pending()
        self._epoch += 1
        result = SessionResult(
            answered_questions=list(self._questions),
            score=count_correct(self._questions),
            language=self._language,
            completed_at=datetime.now(timezone.utc),
            difficulty=self._difficulty,
        )
        self._result = result
        self._state = SessionState.FINISHED

        if self.history is not None:
            self.history.append(result)
        if self.notifier is not None:
            self.notifier.notify(
                QUIZ_FINISHED,
                f"Quiz finished with score {result.score}/{result.total_questions}",
                score=result.score,
                total=result.total_questions,
                language=result.language,
            )
        logger.info(f"Quiz session finished: {result.score}/{result.total_questions}")
        return result
