"""
Session coordinator for timed speaking practice.

Orchestrates the volume sampler, transcript feed, scorer and feedback
generator through the session lifecycle:

    idle -> preparing -> speaking -> analyzing -> results

``reset`` returns to idle from any state and is the single teardown path.
"""

import asyncio
import logging
import math
import random
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from analysis.feedback_generator import FeedbackGenerator, LiveFeedbackTracker
from analysis.messages import DEFAULT_TONE
from analysis.scoring import SessionScorer
from audio.devices import SoundDeviceInput
from audio.exceptions import AudioDeviceError, PermissionDeniedError
from audio.processors import VolumeProcessor
from audio.sampler import VolumeSampler
from utils.scheduler import Scheduler, TimerHandle

from .config import SessionConfig
from .exceptions import InvalidTransitionError
from .models import (
    FeedbackItem,
    ProgressUpdate,
    SessionResult,
    SessionState,
    SpeakingQuestion,
    SpeechAnalysis,
)
from .progress import ProgressSink
from .questions import get_random_question
from .transcript import TranscriptFeed

logger = logging.getLogger(__name__)

SamplerFactory = Callable[[], VolumeSampler]

MICROPHONE_ERROR = "Failed to start session. Please check your microphone permissions."
DEVICE_ERROR = "Failed to start session: no usable microphone was found."
ANALYSIS_ERROR = "Failed to analyze session. Please try again."


def default_sampler_factory(config: SessionConfig, scheduler: Scheduler) -> SamplerFactory:
    """Factory creating a microphone-backed sampler per session."""

    def factory() -> VolumeSampler:
        return VolumeSampler(
            SoundDeviceInput(
                device_name=config.input_device_name,
                sample_rate=config.audio_sample_rate,
                blocksize=config.fft_size,
            ),
            scheduler,
            processor=VolumeProcessor(
                fft_size=config.fft_size,
                smoothing=config.smoothing_time_constant,
                min_decibels=config.min_decibels,
                max_decibels=config.max_decibels,
            ),
            sample_interval=config.volume_sample_interval_sec,
        )

    return factory


class SessionCoordinator:
    """
    Coordinates one speaking session at a time.

    Owns:
    - the VolumeSampler of the current session (created per session)
    - the TranscriptFeed the recognizer pushes into
    - every scheduled task (preparation, countdown, live feedback, analysis)

    All callbacks run on the scheduler's thread; nothing here is locked.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        sampler_factory: Optional[SamplerFactory] = None,
        transcript_feed: Optional[TranscriptFeed] = None,
        config: Optional[SessionConfig] = None,
        progress_sink: Optional[ProgressSink] = None,
        tone: str = DEFAULT_TONE,
        rng: Optional[random.Random] = None,
        on_results: Optional[Callable[[SessionResult], None]] = None,
        on_state_change: Optional[Callable[[SessionState, SessionState], None]] = None,
        on_live_feedback: Optional[Callable[[List[FeedbackItem]], None]] = None,
    ):
        """
        Initialize session coordinator.

        Args:
            scheduler: Clock and timer source for every scheduled task
            sampler_factory: Creates a fresh VolumeSampler per session
                (microphone-backed default if None)
            transcript_feed: Feed the recognizer pushes into (creates one if None)
            config: Session timing/audio settings (defaults if None)
            progress_sink: Receives a ProgressUpdate per completed session
            tone: Feedback message tone ('standard' or 'executive')
            rng: Random source for question selection
        """
        self.scheduler = scheduler
        self.config = config or SessionConfig()
        self.sampler_factory = sampler_factory or default_sampler_factory(self.config, scheduler)
        self.transcript_feed = transcript_feed or TranscriptFeed()
        self.progress_sink = progress_sink
        self.rng = rng

        self.feedback_generator = FeedbackGenerator(tone)
        self.live_tracker = LiveFeedbackTracker(tone)

        self.on_results = on_results
        self.on_state_change = on_state_change
        self.on_live_feedback = on_live_feedback

        self._state = SessionState.IDLE
        self._session_id: Optional[str] = None
        self._question: Optional[SpeakingQuestion] = None
        self._sampler: Optional[VolumeSampler] = None
        self._scorer: Optional[SessionScorer] = None
        self._timers: Dict[str, TimerHandle] = {}
        self._starting = False
        self._generation = 0

        self._start_time: Optional[float] = None
        self._duration = 0.0
        self._time_remaining = 0.0
        self._result: Optional[SessionResult] = None
        self._error: Optional[str] = None
        self._results_ready = asyncio.Event()

        logger.info(f"SessionCoordinator initialized: tone={tone}, min_session={self.config.min_session_sec}s")

    # --- Read-only state ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def question(self) -> Optional[SpeakingQuestion]:
        return self._question

    @property
    def sampler(self) -> Optional[VolumeSampler]:
        return self._sampler

    @property
    def time_remaining(self) -> int:
        """Whole seconds left on the speaking countdown."""
        return int(math.ceil(self._time_remaining))

    @property
    def elapsed_seconds(self) -> float:
        """Speaking time so far, or the final duration once speaking ended."""
        if self._state == SessionState.SPEAKING and self._start_time is not None:
            return max(0.0, self.scheduler.now() - self._start_time)
        if self._state in (SessionState.ANALYZING, SessionState.RESULTS):
            return self._duration
        return 0.0

    @property
    def live_feedback(self) -> Tuple[FeedbackItem, ...]:
        return tuple(self.live_tracker.items)

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def error(self) -> Optional[str]:
        """User-facing message for the last failure, if any."""
        return self._error

    @property
    def active_timers(self) -> List[str]:
        return [name for name, handle in self._timers.items() if not handle.cancelled]

    # --- Lifecycle ---

    async def start(
        self,
        question: Optional[SpeakingQuestion] = None,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> bool:
        """
        Start a session: acquire the microphone, then run the preparation countdown.

        Args:
            question: Question to answer (random from the catalog if None)
            category: Catalog filter when picking a random question
            difficulty: Catalog filter when picking a random question

        Returns:
            True once preparing; False if the audio input could not be acquired
            (``error`` then holds the reason and the state stays idle)

        Raises:
            InvalidTransitionError: A session is already in progress
            ValueError: No catalog question matches the filters
        """
        if self._state == SessionState.RESULTS:
            self.reset()
        if self._state != SessionState.IDLE or self._starting:
            raise InvalidTransitionError(
                f"Cannot start a session while {self._state.value}", session_id=self._session_id
            )

        if question is None:
            question = get_random_question(category, difficulty, self.rng)

        self._starting = True
        self._error = None
        self._result = None
        self._results_ready.clear()
        self._session_id = uuid.uuid4().hex[:8]
        self._question = question
        generation = self._generation

        sampler = None
        try:
            sampler = self.sampler_factory()
            self._sampler = sampler
            await sampler.initialize()
        except Exception as exc:
            if sampler is not None:
                sampler.cleanup()
            if generation != self._generation:
                # reset() ran while the device was opening; a newer session owns the fields
                logger.info(f"Abandoned session start failed: {exc}")
                return False
            if isinstance(exc, AudioDeviceError) and not isinstance(exc, PermissionDeniedError):
                self._error = DEVICE_ERROR
            else:
                self._error = MICROPHONE_ERROR
            logger.error(f"[{self._session_id}] Audio input failed: {exc}")
            if self._sampler is sampler:
                self._sampler = None
            self._question = None
            self._starting = False
            return False

        if generation != self._generation:
            # reset() ran while the device was opening
            sampler.cleanup()
            logger.info("Session start abandoned by reset")
            return False
        self._starting = False

        self._scorer = SessionScorer(sampler)
        self.live_tracker.reset()
        self._time_remaining = float(max(self.config.min_session_sec, question.time_limit))
        self._set_state(SessionState.PREPARING)
        self._schedule_once("preparation", self.config.preparation_countdown_sec, self._begin_speaking)
        logger.info(
            f"[{self._session_id}] Session prepared: question={question.id}, "
            f"time_limit={self.time_remaining}s"
        )
        return True

    def _begin_speaking(self) -> None:
        if self._state != SessionState.PREPARING:
            return

        self._start_time = self.scheduler.now()
        self._duration = 0.0
        self._set_state(SessionState.SPEAKING)

        try:
            self._sampler.start_recording()
        except AudioDeviceError as exc:
            logger.warning(f"[{self._session_id}] Volume sampling unavailable: {exc}")

        try:
            self.transcript_feed.start_listening()
        except Exception as exc:
            logger.warning(f"[{self._session_id}] Transcript feed failed to start: {exc}")
            self._error = f"Speech recognition error: {exc}"

        self._schedule_every("live-feedback", self.config.live_feedback_interval_sec, self._live_tick)
        self._schedule_every("countdown", self.config.countdown_tick_sec, self._countdown_tick)

    def _countdown_tick(self) -> None:
        if self._state != SessionState.SPEAKING:
            return
        self._time_remaining = max(0.0, self._time_remaining - self.config.countdown_tick_sec)
        if self._time_remaining <= 0:
            logger.info(f"[{self._session_id}] Time is up")
            self.stop_speaking()

    def _live_tick(self) -> None:
        if self._state != SessionState.SPEAKING:
            return

        transcript = self.transcript_feed.current_transcript
        try:
            analysis = self._scorer.analyze_speech(transcript, self.elapsed_seconds)
            new_items = self.live_tracker.update(analysis, transcript)
        except Exception as exc:
            logger.warning(f"[{self._session_id}] Live feedback skipped: {exc}", exc_info=True)
            return

        if new_items:
            self._emit(self.on_live_feedback, new_items)

    def stop_speaking(self) -> None:
        """
        End the speaking phase and schedule the final analysis.

        Safe to call again once analysis has started.

        Raises:
            InvalidTransitionError: No answer is being recorded
        """
        if self._state in (SessionState.ANALYZING, SessionState.RESULTS):
            return
        if self._state != SessionState.SPEAKING:
            raise InvalidTransitionError(
                f"Cannot stop speaking while {self._state.value}", session_id=self._session_id
            )

        self._cancel("live-feedback")
        self._cancel("countdown")
        if self._sampler is not None:
            self._sampler.stop_recording()
        self.transcript_feed.stop_listening()

        self._duration = max(0.0, self.scheduler.now() - self._start_time)
        self._set_state(SessionState.ANALYZING)
        self._schedule_once("analysis", self.config.analysis_delay_sec, self._run_analysis)
        logger.info(f"[{self._session_id}] Speaking stopped after {self._duration:.1f}s")

    def _run_analysis(self) -> None:
        if self._state != SessionState.ANALYZING:
            return

        transcript = self.transcript_feed.current_transcript
        error = self._error or self._recognition_error()
        try:
            analysis = self._scorer.analyze_speech(transcript, self._duration)
            feedback = self.feedback_generator.generate_final_feedback(analysis)
            result = self._build_result(transcript, analysis, feedback, error=error)
        except Exception as exc:
            logger.error(f"[{self._session_id}] Analysis failed: {exc}", exc_info=True)
            result = self._build_result(
                transcript, SpeechAnalysis.empty(), [], error=ANALYSIS_ERROR, degraded=True
            )

        self._release_sampler()
        self._error = result.error
        self._result = result
        self._set_state(SessionState.RESULTS)
        logger.info(
            f"[{self._session_id}] Session complete: overall={result.analysis.overall_score}, "
            f"feedback={len(result.feedback)}, degraded={result.degraded}"
        )

        if not result.degraded:
            self._record_progress(result.analysis)
        self._emit(self.on_results, result)
        self._results_ready.set()

    def _build_result(
        self,
        transcript: str,
        analysis: SpeechAnalysis,
        feedback: List[FeedbackItem],
        error: Optional[str] = None,
        degraded: bool = False,
    ) -> SessionResult:
        return SessionResult(
            question=self._question,
            transcript=transcript,
            duration_seconds=self._duration,
            analysis=analysis,
            feedback=feedback,
            live_feedback=self.live_tracker.items,
            degraded=degraded,
            error=error,
        )

    def _recognition_error(self) -> Optional[str]:
        last_error = self.transcript_feed.last_error
        return f"Speech recognition error: {last_error.message}" if last_error else None

    def _record_progress(self, analysis: SpeechAnalysis) -> None:
        if self.progress_sink is None:
            return
        try:
            update = ProgressUpdate(
                total_sessions_delta=1,
                overall_score=analysis.overall_score,
                streak_delta=1,
                category=self._question.category,
            )
            self.progress_sink.record(update)
        except Exception as exc:
            logger.error(f"[{self._session_id}] Progress update failed: {exc}", exc_info=True)

    async def wait_for_results(self) -> SessionResult:
        """Wait until the current session reaches results."""
        await self._results_ready.wait()
        return self._result

    async def practice_again(self) -> bool:
        """
        Answer the same question again.

        Raises:
            InvalidTransitionError: No finished session to repeat
        """
        if self._state != SessionState.RESULTS:
            raise InvalidTransitionError(
                f"Cannot practice again while {self._state.value}", session_id=self._session_id
            )
        question = self._question
        self.reset()
        return await self.start(question=question)

    def reset(self) -> None:
        """
        Tear everything down and return to idle. Safe to call in any state,
        any number of times.
        """
        for name in list(self._timers):
            self._cancel(name)
        self._release_sampler()
        self.transcript_feed.stop_listening()
        self.live_tracker.reset()

        self._generation += 1
        self._starting = False
        self._scorer = None
        self._question = None
        self._start_time = None
        self._duration = 0.0
        self._time_remaining = 0.0
        self._result = None
        self._error = None
        self._results_ready.clear()

        if self._state != SessionState.IDLE:
            self._set_state(SessionState.IDLE)
            logger.info(f"[{self._session_id}] Session reset")

    def close(self) -> None:
        self.reset()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # --- Internals ---

    def _set_state(self, new_state: SessionState) -> None:
        old_state, self._state = self._state, new_state
        logger.debug(f"[{self._session_id}] {old_state.value} -> {new_state.value}")
        self._emit(self.on_state_change, old_state, new_state)

    def _schedule_once(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        self._cancel(name)

        def fire() -> None:
            self._timers.pop(name, None)
            callback()

        self._timers[name] = self.scheduler.call_later(delay, fire, name=name)

    def _schedule_every(self, name: str, interval: float, callback: Callable[[], None]) -> None:
        self._cancel(name)
        self._timers[name] = self.scheduler.call_every(interval, callback, name=name)

    def _cancel(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _release_sampler(self) -> None:
        if self._sampler is not None:
            self._sampler.cleanup()
            self._sampler = None

    def _emit(self, callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(f"[{self._session_id}] Session callback failed")
