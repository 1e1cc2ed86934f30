# tests/test_quiz_session.py

import asyncio

import pytest

from quizcam.ports.notifications import QUIZ_FINISHED
from quizcam.schemas.quiz import QuizPayload
from quizcam.services.quiz_session import QuizSession, SessionState
from quizcam.services.session_store import QuizHistory, SessionRegistry


@pytest.fixture
def history():
    return QuizHistory()


@pytest.fixture
def session(scheduler, history, notifier):
    return QuizSession(auto_advance_delay=1.0, scheduler=scheduler, history=history, notifier=notifier)


class TestLifecycle:

    def test_new_session_is_idle(self, session):
        assert session.state == SessionState.IDLE
        assert session.current_index is None
        assert session.current_question is None
        assert session.finish() is None

    def test_start_enters_first_question_unanswered(self, session, three_question_payload):
        session.start(three_question_payload)

        assert session.state == SessionState.ACTIVE
        assert session.current_index == 0
        assert session.total_questions == 3
        assert session.language == "en"
        assert all(not question.is_answered for question in session.answered_questions)
        assert session.score == 0

    def test_answer_in_idle_is_ignored(self, session, scheduler):
        assert session.answer(0, 0) is False
        assert scheduler.handles == []


class TestAnswering:

    def test_answer_locks_question(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)

        assert session.answer(0, 0) is True
        assert session.answer(0, 1) is False
        assert session.answered_questions[0].user_option_index == 0
        assert session.answered_questions[0].is_correct is True
        assert len(scheduler.handles) == 1

    def test_answer_for_other_question_is_ignored(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)

        assert session.answer(1, 1) is False
        assert scheduler.handles == []
        assert not session.answered_questions[1].is_answered

    @pytest.mark.parametrize("option_index", [-1, 4])
    def test_out_of_range_option_is_ignored(self, session, scheduler, three_question_payload, option_index):
        session.start(three_question_payload)

        assert session.answer(0, option_index) is False
        assert scheduler.handles == []

    def test_exactly_one_advance_per_accepted_answer(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)
        session.answer(0, 0)
        session.answer(0, 0)
        session.answer(0, 3)

        assert len(scheduler.pending) == 1
        assert scheduler.pending[0].delay == 1.0

        scheduler.fire()
        assert session.current_index == 1
        assert not session.has_pending_advance

    def test_advance_from_last_question_finishes(self, session, scheduler, history, three_question_payload):
        session.start(three_question_payload)
        for index in range(3):
            session.answer(index, index)
            scheduler.fire()

        assert session.state == SessionState.FINISHED
        assert session.result.score == 3
        assert len(history) == 1


class TestScoring:

    def test_three_question_scenario(self, session, scheduler, history, notifier, three_question_payload):
        """Q0 correct, Q1 wrong, Q2 never answered -> score 1 of 3"""
        session.start(three_question_payload)

        session.answer(0, 0)
        scheduler.fire()
        session.answer(1, 3)
        scheduler.fire()
        result = session.finish()

        assert result.score == 1
        assert result.total_questions == 3
        assert [q.is_correct for q in result.answered_questions] == [True, False, None]
        assert result.answered_questions[2].user_option_index is None
        assert result.language == "en"
        assert result.completed_at is not None
        assert result.completed_at.tzinfo is not None
        assert history.results() == [result]
        assert notifier.names() == [QUIZ_FINISHED]
        assert notifier.events[0]["message"] == "Quiz finished with score 1/3"

    def test_easy_quiz_finished_early(self, session, scheduler):
        payload = QuizPayload(
            questions=[
                {"text": "Q1?", "options": ["a", "b", "c", "d"], "correct_option_index": 2},
                {"text": "Q2?", "options": ["a", "b", "c", "d"], "correct_option_index": 1},
                {"text": "Q3?", "options": ["a", "b", "c", "d"], "correct_option_index": 3},
            ],
            detected_language="en",
            difficulty="easy",
        )
        session.start(payload)

        assert session.answer(0, 2) is True
        scheduler.fire()
        assert session.answer(1, 0) is True
        result = session.finish()

        assert result.score == 1
        assert len(result.answered_questions) == 3
        assert result.answered_questions[2].user_option_index is None
        assert result.answered_questions[2].is_correct is None

    def test_score_counts_only_correct_answers(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)
        session.answer(0, 1)
        scheduler.fire()
        session.answer(1, 1)

        assert session.score == 1


class TestTimers:

    def test_finish_cancels_pending_advance(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)
        session.answer(0, 0)
        handle = scheduler.pending[0]

        result = session.finish()

        assert handle.cancelled
        assert not session.has_pending_advance
        assert session.state == SessionState.FINISHED
        assert result.score == 1

    def test_stale_callback_after_finish_is_ignored(self, session, scheduler, history, three_question_payload):
        session.start(three_question_payload)
        session.answer(0, 0)
        handle = scheduler.pending[0]
        result = session.finish()

        scheduler.fire(handle)

        assert session.state == SessionState.FINISHED
        assert session.result is result
        assert len(history) == 1

    def test_stale_callback_after_restart_is_ignored(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)
        session.answer(0, 0)
        stale = scheduler.pending[0]

        session.start(three_question_payload)
        assert stale.cancelled
        scheduler.fire(stale)

        assert session.state == SessionState.ACTIVE
        assert session.current_index == 0
        assert not session.answered_questions[0].is_answered

    def test_reset_cancels_and_returns_to_idle(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)
        session.answer(0, 0)
        handle = scheduler.pending[0]

        session.reset()
        scheduler.fire(handle)

        assert handle.cancelled
        assert session.state == SessionState.IDLE
        assert session.total_questions == 0

    async def test_asyncio_scheduler_advances_after_delay(self, history, three_question_payload):
        session = QuizSession(auto_advance_delay=0.01, history=history)
        session.start(three_question_payload)

        session.answer(0, 0)
        assert session.current_index == 0
        assert session.has_pending_advance

        await asyncio.sleep(0.05)
        assert session.current_index == 1
        assert not session.has_pending_advance


class TestFinish:

    def test_finish_is_idempotent(self, session, history, notifier, three_question_payload):
        session.start(three_question_payload)

        first = session.finish()
        second = session.finish()

        assert first is second
        assert len(history) == 1
        assert notifier.names() == [QUIZ_FINISHED]
        assert first.score == 0

    def test_answer_after_finish_is_ignored(self, session, three_question_payload):
        session.start(three_question_payload)
        session.finish()

        assert session.answer(0, 0) is False

    def test_restart_after_finish_starts_fresh(self, session, scheduler, three_question_payload):
        session.start(three_question_payload)
        session.answer(0, 0)
        session.finish()

        session.start(three_question_payload)

        assert session.state == SessionState.ACTIVE
        assert session.result is None
        assert session.score == 0

    def test_difficulty_carried_into_result(self, session, three_question_payload):
        payload = QuizPayload(
            questions=three_question_payload.questions,
            detected_language="mr",
            difficulty="hard",
        )
        session.start(payload)

        result = session.finish()

        assert result.difficulty.value == "hard"
        assert result.language == "mr"


class TestSessionRegistry:

    def test_create_starts_and_registers(self, scheduler, three_question_payload):
        registry = SessionRegistry(lambda: QuizSession(scheduler=scheduler))

        session_id, session = registry.create(three_question_payload)

        assert registry.get(session_id) is session
        assert session.state == SessionState.ACTIVE
        assert len(registry) == 1

    def test_unknown_session(self, scheduler):
        registry = SessionRegistry(lambda: QuizSession(scheduler=scheduler))
        assert registry.get("missing") is None

    def test_delete_resets_session(self, scheduler, three_question_payload):
        registry = SessionRegistry(lambda: QuizSession(scheduler=scheduler))
        session_id, session = registry.create(three_question_payload)
        session.answer(0, 0)

        registry.delete(session_id)

        assert registry.get(session_id) is None
        assert session.state == SessionState.IDLE
        assert scheduler.handles[0].cancelled

    def test_delete_unknown_session(self, scheduler):
        registry = SessionRegistry(lambda: QuizSession(scheduler=scheduler))
        assert registry.delete("missing") is False


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSessionExpiry:

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def registry(self, scheduler, clock):
        return SessionRegistry(lambda: QuizSession(scheduler=scheduler), ttl=60, clock=clock)

    def test_idle_session_is_dropped_after_ttl(self, registry, clock, scheduler, three_question_payload):
        session_id, session = registry.create(three_question_payload)
        session.answer(0, 0)

        clock.now += 61

        assert registry.get(session_id) is None
        assert len(registry) == 0
        assert session.state == SessionState.IDLE
        assert scheduler.handles[0].cancelled

    def test_access_extends_lifetime(self, registry, clock, three_question_payload):
        session_id, session = registry.create(three_question_payload)

        clock.now += 40
        assert registry.get(session_id) is session
        clock.now += 40

        assert registry.get(session_id) is session

    def test_create_purges_other_idle_sessions(self, registry, clock, three_question_payload):
        stale_id, _ = registry.create(three_question_payload)
        clock.now += 61

        fresh_id, _ = registry.create(three_question_payload)

        assert len(registry) == 1
        assert registry.get(stale_id) is None
        assert registry.get(fresh_id) is not None

    def test_finished_sessions_expire_too(self, registry, clock, three_question_payload):
        session_id, session = registry.create(three_question_payload)
        session.finish()

        clock.now += 61

        assert registry.purge_expired() == 1
        assert len(registry) == 0

    def test_no_ttl_keeps_sessions(self, scheduler, clock, three_question_payload):
        registry = SessionRegistry(lambda: QuizSession(scheduler=scheduler), ttl=None, clock=clock)
        session_id, session = registry.create(three_question_payload)

        clock.now += 10 ** 6

        assert registry.get(session_id) is session


class TestQuizHistory:

    def test_append_keeps_insertion_order(self, session, history, scheduler, three_question_payload):
        session.start(three_question_payload)
        first = session.finish()
        session.start(three_question_payload)
        session.answer(0, 0)
        second = session.finish()

        assert list(history) == [first, second]
        assert history.results() == [first, second]
