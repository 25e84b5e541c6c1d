import anyio
import pytest

from mock_interview.client.api import ApiError, InvalidQuestionSetError
from mock_interview.client.controller import InterviewController, SessionPhase, SubmissionRejected
from mock_interview.client.models import AUTO_SUBMIT_SENTINEL, Candidate, Question, TimerState
from mock_interview.client.store import CandidateStore


pytestmark = pytest.mark.anyio

QUESTIONS = [
    Question("q1", "easy", "What is JSX?"),
    Question("q2", "easy", "What does npm do?"),
    Question("q3", "medium", "Explain reconciliation."),
    Question("q4", "medium", "Explain the event loop."),
    Question("q5", "hard", "Design a rate limiter."),
    Question("q6", "hard", "Server-side render a large app."),
]


class FakeClock:
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds * 1000)


class FakeApi:
    def __init__(self, parsed=None, questions=None):
        self.parsed = parsed if parsed is not None else {
            "name": "Jane Doe", "email": "jane@example.com", "phone": "4155550199", "text": "...",
        }
        self.questions = list(QUESTIONS) if questions is None else questions
        self.question_calls = 0
        self.graded = []
        self.summaries = []
        self.fail_grading = False
        self.fail_summary = False

    async def parse_resume(self, path):
        return dict(self.parsed)

    async def generate_questions(self, role=None, stack=None):
        self.question_calls += 1
        if len(self.questions) != 6:
            raise InvalidQuestionSetError("Backend must return exactly 6 questions.")
        return list(self.questions)

    async def grade_answer(self, question, answer):
        self.graded.append((question, answer))
        if self.fail_grading:
            raise ApiError(500, "grading failed")
        return {"score": 7, "feedback": "Good."}

    async def final_summary(self, candidate):
        self.summaries.append(candidate)
        if self.fail_summary:
            raise ApiError(500, "summary failed")
        return {"finalScorePercent": 70, "summary": "Solid."}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return CandidateStore(tmp_path / "candidates.json")


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def controller(store, api, clock):
    return InterviewController(store, api, clock=clock)


async def _started(controller):
    candidate, missing = await controller.upload_resume("jane_resume.pdf")
    assert missing == ()
    return candidate


async def test_upload_with_all_fields_starts_immediately(controller, api, store):
    candidate = await _started(controller)
    assert controller.phase is SessionPhase.ANSWERING
    assert controller.current_question == QUESTIONS[0]
    assert controller.remaining() == 20
    assert api.question_calls == 1
    stored = store.get_required(candidate.id)
    assert stored.resume_text == "jane_resume.pdf"
    assert stored.questions_length == 6
    assert stored.timer.question_index == 0


async def test_upload_with_missing_fields_waits_for_profile(store, clock):
    api = FakeApi(parsed={"name": None, "email": "x@example.com", "phone": None, "text": ""})
    controller = InterviewController(store, api, clock=clock)
    candidate, missing = await controller.upload_resume("cv.docx")

    assert missing == ("name", "phone")
    assert controller.phase is SessionPhase.NOT_STARTED
    assert api.question_calls == 0

    await controller.complete_profile(candidate.id, name="Alex Kim", phone="555-123-4567")
    stored = store.get_required(candidate.id)
    assert (stored.name, stored.email, stored.phone) == ("Alex Kim", "x@example.com", "555-123-4567")
    assert controller.phase is SessionPhase.ANSWERING


async def test_wrong_question_count_is_rejected(store, clock):
    api = FakeApi(questions=QUESTIONS[:5])
    controller = InterviewController(store, api, clock=clock)
    with pytest.raises(InvalidQuestionSetError):
        await controller.upload_resume("cv.pdf")
    assert store.all()[0].questions == ()


async def test_remaining_is_recomputed_from_timestamps(controller, clock):
    await _started(controller)
    clock.advance(7.9)
    assert controller.remaining() == 13
    clock.advance(100)
    assert controller.remaining() == 0


async def test_ticks_do_not_lose_subsecond_time(controller, clock):
    await _started(controller)
    for _ in range(10):
        clock.advance(0.5)
        await controller.tick()
    assert controller.remaining() == 15


async def test_auto_submit_on_expiry(controller, api, clock, store):
    candidate = await _started(controller)
    clock.advance(20)
    remaining = await controller.tick()

    assert remaining == 0
    answer = store.get_required(candidate.id).answers[0]
    assert answer.response_text == AUTO_SUBMIT_SENTINEL
    assert answer.auto_submitted is True
    assert answer.time_taken_seconds == 20
    assert answer.score == 7
    assert api.graded == [("What is JSX?", AUTO_SUBMIT_SENTINEL)]
    assert controller.current_index == 1
    assert controller.phase is SessionPhase.ANSWERING
    assert controller.remaining() == 20


async def test_auto_submit_keeps_typed_draft(controller, clock, store):
    candidate = await _started(controller)
    controller.draft = "JSX is a syntax"
    clock.advance(25)
    await controller.tick()
    answer = store.get_required(candidate.id).answers[0]
    assert answer.response_text == "JSX is a syntax"
    assert answer.auto_submitted is True


async def test_manual_submit_records_time_taken(controller, clock, store):
    candidate = await _started(controller)
    clock.advance(6)
    answer = await controller.submit("A syntax extension for JavaScript.")
    assert answer.time_taken_seconds == 6
    assert answer.auto_submitted is False
    assert answer.score == 7 and answer.feedback == "Good."
    stored = store.get_required(candidate.id)
    assert stored.current_index == 1
    assert stored.answers[0] == answer


async def test_manual_submit_validation(controller, clock, store):
    candidate = await _started(controller)
    with pytest.raises(SubmissionRejected):
        await controller.submit("   ")

    controller.pause()
    with pytest.raises(SubmissionRejected):
        await controller.submit("an answer")
    controller.resume()

    clock.advance(21)
    with pytest.raises(SubmissionRejected):
        await controller.submit("too late")
    assert store.get_required(candidate.id).answers == ()


async def test_pause_freezes_and_resume_continues(controller, clock, store):
    candidate = await _started(controller)
    clock.advance(5)
    assert controller.pause() is True
    clock.advance(300)
    assert controller.remaining() == 15
    await controller.tick()
    assert controller.remaining() == 15

    assert controller.resume() is True
    clock.advance(3)
    assert controller.remaining() == 12
    assert store.get_required(candidate.id).paused is False


async def test_pausing_twice_equals_pausing_once(controller, clock, store):
    candidate = await _started(controller)
    clock.advance(4)
    assert controller.pause() is True
    snapshot = store.get_required(candidate.id)
    clock.advance(2)
    assert controller.pause() is False
    assert store.get_required(candidate.id) == snapshot
    assert controller.remaining() == 16


async def test_grading_failure_is_not_fatal(controller, api, store):
    candidate = await _started(controller)
    api.fail_grading = True
    await controller.submit("answer")
    stored = store.get_required(candidate.id)
    assert stored.answers[0].score is None
    assert stored.answers[0].feedback is None
    assert controller.phase is SessionPhase.ANSWERING
    assert controller.current_index == 1


async def test_end_to_end_interview(controller, api, clock, store):
    candidate = await _started(controller)
    for i in range(6):
        if i % 2:
            clock.advance(controller.remaining())
            await controller.tick()
        else:
            clock.advance(3)
            await controller.submit(f"answer {i + 1}")

    stored = store.get_required(candidate.id)
    assert controller.phase is SessionPhase.COMPLETED
    assert stored.final_score == 70
    assert stored.summary == "Solid."
    assert stored.current_index == 6
    assert len(api.summaries) == 1
    assert len(api.summaries[0].answers) == 6
    assert [a.auto_submitted for a in stored.answers] == [False, True, False, True, False, True]
    assert [a.time_taken_seconds for a in stored.answers] == [3, 20, 3, 60, 3, 120]
    assert store.find_unfinished() is None


async def test_summary_failure_leaves_candidate_incomplete(controller, api, clock, store):
    candidate = await _started(controller)
    api.fail_summary = True
    for _ in range(6):
        await controller.submit("answer")

    stored = store.get_required(candidate.id)
    assert controller.phase is SessionPhase.INCOMPLETE
    assert stored.final_score is None
    assert len(stored.answers) == 6
    assert len(api.summaries) == 1


async def test_reopening_incomplete_candidate_does_not_resummarize(controller, api, store):
    candidate = await _started(controller)
    api.fail_summary = True
    for _ in range(6):
        await controller.submit("answer")
    controller.close_interview()

    api.fail_summary = False
    reopened = await controller.open_candidate(candidate.id)
    assert controller.phase is SessionPhase.INCOMPLETE
    assert reopened.final_score is None
    assert len(api.summaries) == 1


async def test_resume_unfinished_after_reload(store, api, clock, tmp_path):
    first = InterviewController(store, api, clock=clock)
    candidate = await _started(first)
    await first.submit("answer 1")
    clock.advance(8)
    await first.tick()
    first.close()

    clock.advance(5)
    reloaded = CandidateStore(store.path)
    second = InterviewController(reloaded, api, clock=clock)
    offer = second.resume_offer()
    assert offer.id == candidate.id
    assert second.resume_offer() is None

    await second.open_candidate(offer.id)
    assert api.question_calls == 1
    assert second.current_index == 1
    assert second.remaining() == 20 - 8 - 5


async def test_resume_of_paused_candidate_ignores_paused_time(store, api, clock):
    first = InterviewController(store, api, clock=clock)
    candidate = await _started(first)
    clock.advance(4)
    first.pause()
    first.close()

    clock.advance(3600)
    second = InterviewController(CandidateStore(store.path), api, clock=clock)
    await second.open_candidate(candidate.id)
    assert second.remaining() == 16
    assert second.paused is False


async def test_open_completed_candidate_is_view_only(store, api, clock):
    store.add(Candidate(id="done", name="Jane", questions=tuple(QUESTIONS), questions_length=6, final_score=90.0))
    controller = InterviewController(store, api, clock=clock)
    await controller.open_candidate("done")
    assert controller.phase is SessionPhase.COMPLETED
    assert controller.current_question is None
    with pytest.raises(SubmissionRejected):
        await controller.submit("anything")


async def test_results_after_close_are_discarded(store, clock):
    class SlowGrader(FakeApi):
        async def grade_answer(self, question, answer):
            controller.close()
            return {"score": 9, "feedback": "late"}

    api = SlowGrader()
    controller = InterviewController(store, api, clock=clock)
    candidate = await _started(controller)
    await controller.submit("answer")

    stored = store.get_required(candidate.id)
    assert stored.answers[0].score is None
    assert controller.phase is SessionPhase.NOT_STARTED


async def test_countdown_drives_expired_questions_to_completion(store, api):
    class TickingClock(FakeClock):
        # every read moves time forward by one second
        def __call__(self):
            self.now += 1000
            return self.now

    controller = InterviewController(store, api, clock=TickingClock())
    candidate = await _started(controller)
    await controller.countdown(interval=0)

    stored = store.get_required(candidate.id)
    assert controller.phase is SessionPhase.COMPLETED
    assert all(a.auto_submitted for a in stored.answers)
    assert len(api.summaries) == 1


async def test_only_one_countdown_runs(controller):
    await _started(controller)
    async with anyio.create_task_group() as tg:
        tg.start_soon(controller.countdown, 10)
        await anyio.sleep(0)
        first = controller._countdown_scope
        tg.start_soon(controller.countdown, 10)
        await anyio.sleep(0)
        assert first.cancel_called
        assert controller._countdown_scope is not first
        controller.pause()
    assert controller._countdown_scope is None
