"""Audio package for the speaking coach.

This module exports the live audio components:
- VolumeSampler: Per-session volume history from a live input (primary entry point)
- Specialized components for advanced usage:
  - VolumeProcessor: Spectrum-based energy per frame
  - SoundDeviceInput: Microphone input through sounddevice
  - AudioInput: Input contract for custom sources

Transcript metrics live in ``audio.text_metrics`` and volume statistics in
``audio.metrics``.
"""

from .devices import AudioInput, SoundDeviceInput, list_input_devices
from .exceptions import AudioDeviceError, DeviceUnavailableError, PermissionDeniedError
from .processors import VolumeProcessor
from .sampler import VolumeSampler

__all__ = [
    "AudioInput",
    "SoundDeviceInput",
    "list_input_devices",
    "AudioDeviceError",
    "DeviceUnavailableError",
    "PermissionDeniedError",
    "VolumeProcessor",
    "VolumeSampler",
]
