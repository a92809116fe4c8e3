# audio/exceptions.py
"""Custom exceptions for audio input acquisition."""

from typing import Optional


class AudioDeviceError(Exception):
    """Base exception for audio input failures."""

    def __init__(self, message: str, device: Optional[str] = None):
        self.message = message
        self.device = device or "default"
        super().__init__(f"[Device: {self.device}] {message}")


class PermissionDeniedError(AudioDeviceError):
    """Raised when the operating system refuses access to the microphone."""
    pass


class DeviceUnavailableError(AudioDeviceError):
    """Raised when no usable audio input device exists or it cannot be opened."""
    pass
