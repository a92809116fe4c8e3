"""
Unit tests for SessionCoordinator: the session state machine, timers and teardown.
"""

import asyncio
from unittest.mock import Mock, patch

import pytest

from analysis.scoring import SessionScorer
from audio.exceptions import DeviceUnavailableError, PermissionDeniedError
from audio.sampler import VolumeSampler
from session import config as session_config
from session.config import SessionConfig
from session.exceptions import InvalidTransitionError
from session.models import FeedbackCategory, SessionState, SpeechAnalysis
from session.questions import get_question
from session.session_coordinator import ANALYSIS_ERROR, DEVICE_ERROR, MICROPHONE_ERROR, SessionCoordinator
from _helpers import (
    SCENARIO_TRANSCRIPT,
    FailingAudioInput,
    FakeAudioInput,
    ManualScheduler,
    RecordingProgressSink,
)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def audio_input():
    return FakeAudioInput()


@pytest.fixture
def sink():
    return RecordingProgressSink()


@pytest.fixture
def question():
    # personal-1 has a 90 second time limit
    return get_question("personal-1")


class GatedSampler(VolumeSampler):
    """Sampler whose initialize waits for a gate, then fails with ``exc`` if given."""

    def __init__(self, audio_input, scheduler, gate, exc=None):
        super().__init__(audio_input, scheduler, sample_interval=0.1)
        self.gate = gate
        self.exc = exc

    async def initialize(self):
        await self.gate.wait()
        if self.exc is not None:
            raise self.exc
        await super().initialize()


def make_coordinator(scheduler, audio_input, config=None, **kwargs):
    def factory():
        return VolumeSampler(audio_input, scheduler, sample_interval=0.1)

    return SessionCoordinator(
        scheduler,
        sampler_factory=factory,
        config=config or session_config.TestingConfig(),
        **kwargs,
    )


@pytest.fixture
def coordinator(scheduler, audio_input, sink):
    coordinator = make_coordinator(scheduler, audio_input, progress_sink=sink)
    yield coordinator
    coordinator.close()


class TestStart:

    @pytest.mark.asyncio
    async def test_start_prepares_with_minimum_duration(self, scheduler, audio_input, question):
        coordinator = make_coordinator(scheduler, audio_input, config=SessionConfig())

        assert await coordinator.start(question=question)
        assert coordinator.state == SessionState.PREPARING
        assert coordinator.time_remaining == 300
        assert coordinator.question == question
        assert audio_input.is_open

        scheduler.advance(2.9)
        assert coordinator.state == SessionState.PREPARING
        scheduler.advance(0.1)
        assert coordinator.state == SessionState.SPEAKING
        coordinator.close()

    @pytest.mark.asyncio
    async def test_longer_question_limit_wins(self, scheduler, audio_input):
        coordinator = make_coordinator(scheduler, audio_input, config=SessionConfig(min_session_sec=60))
        await coordinator.start(question=get_question("biz-3"))
        assert coordinator.time_remaining == 300
        coordinator.close()

    @pytest.mark.asyncio
    async def test_random_question_respects_filters(self, coordinator):
        await coordinator.start(category="creative", difficulty="advanced")
        assert coordinator.question.id == "creative-3"

    @pytest.mark.asyncio
    async def test_permission_denied_stays_idle(self, scheduler, sink):
        coordinator = make_coordinator(scheduler, FailingAudioInput(PermissionDeniedError("denied")), progress_sink=sink)

        assert await coordinator.start() is False
        assert coordinator.state == SessionState.IDLE
        assert coordinator.error == MICROPHONE_ERROR
        assert coordinator.sampler is None
        assert scheduler.pending() == []

    @pytest.mark.asyncio
    async def test_missing_device_message(self, scheduler):
        coordinator = make_coordinator(scheduler, FailingAudioInput(DeviceUnavailableError("no device")))
        assert await coordinator.start() is False
        assert coordinator.error == DEVICE_ERROR

    @pytest.mark.asyncio
    async def test_start_while_active_raises(self, coordinator, question):
        await coordinator.start(question=question)
        with pytest.raises(InvalidTransitionError):
            await coordinator.start(question=question)

    @pytest.mark.asyncio
    async def test_start_after_results_resets(self, coordinator, scheduler, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.stop_speaking()
        scheduler.advance(0)
        assert coordinator.state == SessionState.RESULTS

        assert await coordinator.start(question=question)
        assert coordinator.state == SessionState.PREPARING
        assert coordinator.result is None

    @pytest.mark.asyncio
    async def test_unknown_category(self, coordinator):
        with pytest.raises(ValueError):
            await coordinator.start(category="sports")
        assert coordinator.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_abandoned_start_failure_leaves_next_session_alone(self, scheduler, sink, question):
        gates = [asyncio.Event(), asyncio.Event()]
        errors = [DeviceUnavailableError("no device"), None]
        samplers = []

        def factory():
            index = len(samplers)
            samplers.append(GatedSampler(FakeAudioInput(), scheduler, gates[index], errors[index]))
            return samplers[-1]

        coordinator = SessionCoordinator(
            scheduler, sampler_factory=factory, config=session_config.TestingConfig(), progress_sink=sink
        )
        first = asyncio.create_task(coordinator.start(question=question))
        await asyncio.sleep(0)
        coordinator.reset()
        second = asyncio.create_task(coordinator.start(question=question))
        await asyncio.sleep(0)

        gates[0].set()
        assert await first is False
        assert coordinator.question == question
        assert coordinator.error is None
        with pytest.raises(InvalidTransitionError):
            await coordinator.start(question=question)

        gates[1].set()
        assert await second is True
        scheduler.advance(0)
        coordinator.stop_speaking()
        scheduler.advance(0)

        assert coordinator.state == SessionState.RESULTS
        assert coordinator.result.question == question
        assert not coordinator.result.degraded
        assert len(sink.updates) == 1
        coordinator.close()


class TestSessionFlow:

    @pytest.mark.asyncio
    async def test_end_to_end_scenario(self, coordinator, scheduler, sink, question):
        states = []
        results = []
        coordinator.on_state_change = lambda old, new: states.append(new)
        coordinator.on_results = results.append

        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.transcript_feed.push(SCENARIO_TRANSCRIPT, is_final=True)
        scheduler.advance(30)
        assert coordinator.elapsed_seconds == pytest.approx(30)

        coordinator.stop_speaking()
        assert coordinator.state == SessionState.ANALYZING
        scheduler.advance(0)

        assert states == [
            SessionState.PREPARING,
            SessionState.SPEAKING,
            SessionState.ANALYZING,
            SessionState.RESULTS,
        ]
        result = await coordinator.wait_for_results()
        assert results == [result]
        assert result.transcript == SCENARIO_TRANSCRIPT
        assert result.duration_seconds == pytest.approx(30)
        assert not result.degraded

        analysis = result.analysis
        assert analysis.clarity.speech_rate == 24
        assert analysis.clarity.filler_word_count == 3
        assert analysis.clarity.articulation == pytest.approx(75.0)
        assert analysis.volume.consistency == pytest.approx(100.0)
        assert analysis.overall_score == 79
        assert [i.category for i in result.feedback] == [FeedbackCategory.COHERENCE]

        assert len(sink.updates) == 1
        assert sink.updates[0].overall_score == 79
        assert sink.updates[0].category == question.category

    @pytest.mark.asyncio
    async def test_countdown_expiry_goes_through_analyzing(self, coordinator, scheduler, question):
        states = []
        coordinator.on_state_change = lambda old, new: states.append(new)
        await coordinator.start(question=question)
        scheduler.advance(0)
        assert coordinator.time_remaining == 90

        scheduler.advance(45)
        assert coordinator.time_remaining == 45
        scheduler.advance(45)

        assert coordinator.state == SessionState.RESULTS
        assert SessionState.ANALYZING in states
        assert coordinator.time_remaining == 0
        assert coordinator.result.duration_seconds == pytest.approx(90)

    @pytest.mark.asyncio
    async def test_stop_speaking_idempotent(self, coordinator, scheduler, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        scheduler.advance(5)
        coordinator.stop_speaking()
        coordinator.stop_speaking()
        scheduler.advance(0)
        coordinator.stop_speaking()
        assert coordinator.state == SessionState.RESULTS

    @pytest.mark.asyncio
    async def test_stop_speaking_requires_speaking(self, coordinator, question):
        with pytest.raises(InvalidTransitionError):
            coordinator.stop_speaking()
        await coordinator.start(question=question)
        with pytest.raises(InvalidTransitionError):
            coordinator.stop_speaking()

    @pytest.mark.asyncio
    async def test_analysis_waits_for_delay(self, scheduler, audio_input, question):
        config = session_config.TestingConfig(analysis_delay_sec=1.0)
        coordinator = make_coordinator(scheduler, audio_input, config=config)
        await coordinator.start(question=question)
        scheduler.advance(0)
        scheduler.advance(10)
        coordinator.stop_speaking()

        scheduler.advance(0.5)
        assert coordinator.state == SessionState.ANALYZING
        scheduler.advance(0.5)
        assert coordinator.state == SessionState.RESULTS
        coordinator.close()

    @pytest.mark.asyncio
    async def test_sampler_released_after_analysis(self, coordinator, scheduler, audio_input, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        scheduler.advance(3)
        coordinator.stop_speaking()
        scheduler.advance(0)

        assert audio_input.close_count == 1
        assert coordinator.sampler is None
        assert scheduler.pending() == []

    @pytest.mark.asyncio
    async def test_analysis_failure_degrades(self, coordinator, scheduler, sink, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.transcript_feed.push("some words here", is_final=True)
        scheduler.advance(5)
        coordinator.stop_speaking()

        with patch.object(SessionScorer, "analyze_speech", side_effect=RuntimeError("boom")):
            scheduler.advance(0)

        result = coordinator.result
        assert coordinator.state == SessionState.RESULTS
        assert result.degraded
        assert result.analysis == SpeechAnalysis.empty()
        assert result.feedback == []
        assert result.error == ANALYSIS_ERROR
        assert coordinator.error == ANALYSIS_ERROR
        assert sink.updates == []

    @pytest.mark.asyncio
    async def test_progress_sink_failure_is_logged(self, scheduler, audio_input, question, caplog):
        sink = Mock()
        sink.record.side_effect = IOError("disk full")
        coordinator = make_coordinator(scheduler, audio_input, progress_sink=sink)
        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.stop_speaking()
        scheduler.advance(0)

        assert coordinator.state == SessionState.RESULTS
        assert sink.record.call_count == 1
        assert "Progress update failed" in caplog.text
        coordinator.close()

    @pytest.mark.asyncio
    async def test_recognition_error_degrades_gracefully(self, coordinator, scheduler, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.transcript_feed.push("I was saying something", is_final=True)
        coordinator.transcript_feed.report_error("network")
        scheduler.advance(5)
        assert coordinator.state == SessionState.SPEAKING

        coordinator.stop_speaking()
        scheduler.advance(0)
        result = coordinator.result
        assert not result.degraded
        assert result.transcript == "I was saying something"
        assert result.error == "Speech recognition error: network"


class TestLiveFeedback:

    @pytest.mark.asyncio
    async def test_live_feedback_accumulates(self, coordinator, scheduler, question):
        received = []
        coordinator.on_live_feedback = received.extend
        await coordinator.start(question=question)
        scheduler.advance(0)

        sizes = []
        for chunk in ["um so this is", "my answer uh", "basically I like it"]:
            coordinator.transcript_feed.push(chunk, is_final=True)
            scheduler.advance(2)
            sizes.append(len(coordinator.live_feedback))

        assert sizes == sorted(sizes)
        assert sizes[-1] > 0
        assert list(coordinator.live_feedback) == received

        coordinator.stop_speaking()
        scheduler.advance(0)
        assert list(coordinator.result.live_feedback) == received

    @pytest.mark.asyncio
    async def test_no_live_feedback_before_interval(self, coordinator, scheduler, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.transcript_feed.push("um uh um this is a filler storm", is_final=True)
        scheduler.advance(1.9)
        assert coordinator.live_feedback == ()

    @pytest.mark.asyncio
    async def test_reset_clears_live_feedback(self, coordinator, scheduler, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.transcript_feed.push("um this is my answer", is_final=True)
        scheduler.advance(2)
        assert coordinator.live_feedback

        coordinator.reset()
        assert coordinator.live_feedback == ()


class TestTeardown:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("advance_to", [None, 0, 5])
    async def test_reset_cancels_every_timer(self, coordinator, scheduler, audio_input, question, advance_to):
        await coordinator.start(question=question)
        if advance_to is not None:
            scheduler.advance(0)
            scheduler.advance(advance_to)

        coordinator.reset()

        assert coordinator.state == SessionState.IDLE
        assert coordinator.active_timers == []
        assert scheduler.pending() == []
        assert audio_input.close_count == 1
        assert not coordinator.transcript_feed.is_listening
        assert coordinator.time_remaining == 0

    @pytest.mark.asyncio
    async def test_reset_during_analysis_drops_result(self, scheduler, audio_input, sink, question):
        coordinator = make_coordinator(scheduler, audio_input, config=session_config.TestingConfig(analysis_delay_sec=1.0), progress_sink=sink)
        await coordinator.start(question=question)
        scheduler.advance(0)
        scheduler.advance(3)
        coordinator.stop_speaking()
        coordinator.reset()
        scheduler.advance(5)

        assert coordinator.state == SessionState.IDLE
        assert coordinator.result is None
        assert sink.updates == []

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, coordinator, question):
        await coordinator.start(question=question)
        coordinator.close()
        coordinator.close()
        assert coordinator.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_async_context_manager(self, scheduler, audio_input, question):
        async with make_coordinator(scheduler, audio_input) as coordinator:
            await coordinator.start(question=question)
            scheduler.advance(0)
        assert coordinator.state == SessionState.IDLE
        assert scheduler.pending() == []


class TestPracticeAgain:

    @pytest.mark.asyncio
    async def test_same_question_again(self, coordinator, scheduler, question):
        await coordinator.start(question=question)
        scheduler.advance(0)
        coordinator.stop_speaking()
        scheduler.advance(0)

        assert await coordinator.practice_again()
        assert coordinator.state == SessionState.PREPARING
        assert coordinator.question.id == question.id
        assert coordinator.live_feedback == ()

    @pytest.mark.asyncio
    async def test_requires_results(self, coordinator):
        with pytest.raises(InvalidTransitionError):
            await coordinator.practice_again()
