"""
Live volume sampling for a speaking session.

The sampler owns one audio input for one session and builds the Volume
History of the current recording span, one energy reading per tick.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from utils.scheduler import Scheduler, TimerHandle

from . import constants
from .devices import AudioInput
from .exceptions import AudioDeviceError, DeviceUnavailableError
from .processors import VolumeProcessor

logger = logging.getLogger(__name__)


class VolumeSampler:
    """
    Samples signal energy from a live input into an append-only history.

    Responsibilities:
    - Acquire and release the audio input
    - Schedule one energy reading per animation-frame tick while recording
    - Expose the Volume History read by the scorer
    """

    def __init__(
        self,
        audio_input: AudioInput,
        scheduler: Scheduler,
        processor: Optional[VolumeProcessor] = None,
        sample_interval: float = constants.SAMPLE_INTERVAL_SEC,
    ):
        """
        Initialize volume sampler.

        Args:
            audio_input: Device handle to read frames from
            scheduler: Clock/timer source driving the sampling tick
            processor: Energy meter (creates default if None)
            sample_interval: Seconds between readings
        """
        if sample_interval <= 0:
            raise ValueError(f"sample_interval must be > 0, got {sample_interval}")

        self.audio_input = audio_input
        self.scheduler = scheduler
        self.processor = processor or VolumeProcessor()
        self.sample_interval = sample_interval

        self._history: List[float] = []
        self._tick: Optional[TimerHandle] = None
        self._initialized = False
        self._read_errors = 0

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_recording(self) -> bool:
        return self._tick is not None

    @property
    def volume_history(self) -> Tuple[float, ...]:
        """Snapshot of the readings taken in the current recording span."""
        return tuple(self._history)

    @property
    def current_volume(self) -> float:
        """Latest reading on a 0-100 scale (0 before the first reading)."""
        if not self._history:
            return 0.0
        return self._history[-1] / constants.BYTE_SCALE_MAX * 100.0

    @property
    def read_errors(self) -> int:
        return self._read_errors

    async def initialize(self) -> None:
        """
        Acquire the audio input.

        Raises:
            PermissionDeniedError: Access to the microphone was refused
            DeviceUnavailableError: No usable input device
        """
        if self._initialized:
            return

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.audio_input.open)
        except AudioDeviceError:
            raise
        except Exception as exc:
            raise DeviceUnavailableError(str(exc), device=self.audio_input.name) from exc

        self._initialized = True
        logger.info(f"VolumeSampler initialized on '{self.audio_input.name or 'default'}'")

    def start_recording(self) -> None:
        """Clear the history and start sampling until ``stop_recording``."""
        if not self._initialized:
            raise DeviceUnavailableError("Sampler is not initialized", device=self.audio_input.name)

        self.stop_recording()
        self._history = []
        self._read_errors = 0
        self.processor.reset()
        self._tick = self.scheduler.call_every(self.sample_interval, self._sample, name="volume-sample")
        logger.debug(f"Volume sampling started every {self.sample_interval:.4f}s")

    def stop_recording(self) -> None:
        """Stop sampling; the history stays readable until the next recording."""
        if self._tick is None:
            return
        self._tick.cancel()
        self._tick = None
        logger.debug(f"Volume sampling stopped with {len(self._history)} samples")

    def _sample(self) -> None:
        try:
            frame = self.audio_input.read()
            if frame is None or len(frame) == 0:
                return
            self._history.append(self.processor.frame_energy(frame))
        except Exception as exc:
            # A failed read only costs this tick's sample
            self._read_errors += 1
            logger.debug(f"Volume read failed ({self._read_errors} so far): {exc}")

    def cleanup(self) -> None:
        """Release the device and timers. Safe to call more than once."""
        self.stop_recording()
        if self._initialized:
            try:
                self.audio_input.close()
            except Exception as exc:
                logger.warning(f"Error closing audio input: {exc}")
            self._initialized = False
            logger.info("VolumeSampler cleaned up")
        self._history = []

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.cleanup()
        return False
