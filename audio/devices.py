"""Audio input devices for live volume sampling."""

import logging
from typing import Any, Dict, List, Optional

import numpy as np

from . import constants
from .exceptions import AudioDeviceError, DeviceUnavailableError, PermissionDeniedError

logger = logging.getLogger(__name__)

PERMISSION_MARKERS = ("permission", "denied", "not authorized", "access")


class AudioInput:
    """
    Live microphone-like handle consumed by ``VolumeSampler``.

    ``open`` may block (it runs in an executor); ``read`` must not.
    """

    name: Optional[str] = None

    def open(self) -> None:
        raise NotImplementedError

    def read(self) -> Optional[np.ndarray]:
        """Return the mono frames captured since the last call, or None if none are ready."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


def list_input_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise DeviceUnavailableError(f"sounddevice is unavailable: {exc}") from exc

    devices = sd.query_devices()
    return [dict(d) for d in devices if d.get("max_input_channels", 0) > 0]


def select_preferred_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not candidates:
        raise DeviceUnavailableError("No input devices found.", device=prefer_name)
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
        logger.warning(f"Input device '{prefer_name}' not found, using '{candidates[0].get('name')}'")
    return candidates[0]


def classify_device_error(exc: Exception, device: Optional[str] = None) -> AudioDeviceError:
    """Map a PortAudio/OS failure onto the device error taxonomy."""
    text = str(exc).lower()
    if isinstance(exc, PermissionError) or any(marker in text for marker in PERMISSION_MARKERS):
        return PermissionDeniedError(f"Microphone access denied: {exc}", device=device)
    return DeviceUnavailableError(f"Cannot open input device: {exc}", device=device)


class SoundDeviceInput(AudioInput):
    """Microphone input through a non-blocking ``sounddevice.InputStream``."""

    def __init__(
        self,
        device_name: Optional[str] = None,
        sample_rate: int = constants.DEFAULT_SAMPLE_RATE,
        blocksize: int = constants.FFT_SIZE,
    ):
        self.name = device_name
        self.sample_rate = sample_rate
        self.blocksize = blocksize
        self._stream = None

    def open(self) -> None:
        if self._stream is not None:
            return
        try:
            import sounddevice as sd
        except Exception as exc:  # pragma: no cover - environment-dependent
            raise DeviceUnavailableError(f"sounddevice is unavailable: {exc}", device=self.name) from exc

        try:
            device = select_preferred_device(list_input_devices(), prefer_name=self.name)
            self.name = device.get("name")
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=constants.DEFAULT_CHANNELS,
                dtype="float32",
                device=device.get("index"),
                blocksize=self.blocksize,
            )
            stream.start()
        except AudioDeviceError:
            raise
        except Exception as exc:
            raise classify_device_error(exc, device=self.name) from exc

        self._stream = stream
        logger.info(f"Opened input device '{self.name}' at {self.sample_rate} Hz")

    def read(self) -> Optional[np.ndarray]:
        if self._stream is None:
            return None
        available = self._stream.read_available
        if available <= 0:
            return None
        data, overflowed = self._stream.read(available)
        if overflowed:
            logger.debug("Input overflow while sampling volume")
        return np.asarray(data)[:, 0]

    def close(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info(f"Closed input device '{self.name}'")
