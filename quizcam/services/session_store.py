# quizcam/services/session_store.py

import time
import uuid
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from quizcam.schemas.quiz import QuizPayload
from quizcam.schemas.session import SessionResult
from quizcam.services.quiz_session import QuizSession
from quizcam.utils.logger import get_logger

logger = get_logger(__name__)


class QuizHistory:
    """
    Append-only, insertion-ordered list of finished quiz results.

    WARNING: results live only as long as the process.
    """

    def __init__(self):
        self._results: List[SessionResult] = []

    def append(self, result: SessionResult) -> None:
        self._results.append(result)
        logger.debug("Quiz result stored in history (%d total)", len(self._results))

    def results(self) -> List[SessionResult]:
        return list(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[SessionResult]:
        return iter(list(self._results))


class SessionRegistry:
    """
    In-memory registry of live quiz sessions, keyed by session id.

    Sessions own a running auto-advance timer, so they are kept as live
    objects rather than serialized state. A session untouched for `ttl`
    seconds is dropped (and its timer cancelled) on the next create or get.
    """

    def __init__(
        self,
        session_factory: Callable[[], QuizSession],
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory
        self.ttl = ttl  # seconds; None or 0 keeps sessions until deleted
        self._clock = clock
        self._sessions: Dict[str, QuizSession] = {}
        self._last_access: Dict[str, float] = {}

    def create_new_session_id(self) -> str:
        return str(uuid.uuid4())

    def create(self, payload: QuizPayload) -> Tuple[str, QuizSession]:
        """Create a session, start it with the payload and register it."""
        self.purge_expired()
        session_id = self.create_new_session_id()
        session = self._session_factory()
        session.start(payload)
        self._sessions[session_id] = session
        self._last_access[session_id] = self._clock()
        logger.info("Quiz session %s started (%d questions)", session_id, session.total_questions)
        return session_id, session

    def get(self, session_id: str) -> Optional[QuizSession]:
        """Look up a live session and extend its lifetime."""
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_access[session_id] = self._clock()
        return session

    def delete(self, session_id: str) -> bool:
        """Drop a session and cancel its timer. Returns False for unknown ids."""
        session = self._sessions.pop(session_id, None)
        self._last_access.pop(session_id, None)
        if session is None:
            return False
        session.reset()
        logger.info("Quiz session %s deleted", session_id)
        return True

    def purge_expired(self) -> int:
        if not self.ttl:
            return 0
        cutoff = self._clock() - self.ttl
        expired = [session_id for session_id, seen in self._last_access.items() if seen <= cutoff]
        for session_id in expired:
            self._sessions.pop(session_id).reset()
            del self._last_access[session_id]
        if expired:
            logger.info("Expired %d idle quiz sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
