"""
Unit tests for the audio components.

Tests VolumeProcessor, device helpers and VolumeSampler.
"""

import numpy as np
import pytest

from audio.devices import classify_device_error, select_preferred_device
from audio.exceptions import AudioDeviceError, DeviceUnavailableError, PermissionDeniedError
from audio.processors import VolumeProcessor
from audio.sampler import VolumeSampler
from _helpers import FailingAudioInput, FakeAudioInput, ManualScheduler, sine_frame


# ============================================================================
# VolumeProcessor Tests
# ============================================================================

class TestVolumeProcessor:

    @pytest.fixture
    def processor(self):
        return VolumeProcessor()

    def test_defaults(self, processor):
        assert processor.fft_size == 256
        assert processor.bin_count == 128

    def test_silence_is_zero(self, processor):
        assert processor.frame_energy(np.zeros(256)) == 0.0

    def test_louder_signal_reads_higher(self):
        quiet = VolumeProcessor(smoothing=0.0).frame_energy(sine_frame(0.01))
        loud = VolumeProcessor(smoothing=0.0).frame_energy(sine_frame(0.8))
        assert 0.0 < quiet < loud <= 255.0

    def test_short_frame_is_padded(self, processor):
        value = processor.frame_energy(sine_frame(0.5, size=64, cycles=2))
        assert 0.0 < value <= 255.0

    def test_uses_most_recent_window(self):
        frame = np.concatenate([sine_frame(0.8, size=1024, cycles=32), np.zeros(256)])
        assert VolumeProcessor(smoothing=0.0).frame_energy(frame) == 0.0

    def test_smoothing_damps_transients(self):
        smooth = VolumeProcessor(smoothing=0.8)
        raw = VolumeProcessor(smoothing=0.0)
        for p in (smooth, raw):
            p.frame_energy(np.zeros(256))
        assert smooth.frame_energy(sine_frame(0.8)) < raw.frame_energy(sine_frame(0.8))

    def test_reset_clears_smoothing(self):
        processor = VolumeProcessor()
        first = processor.frame_energy(sine_frame(0.5))
        processor.frame_energy(np.zeros(256))
        processor.reset()
        assert processor.frame_energy(sine_frame(0.5)) == pytest.approx(first)

    @pytest.mark.parametrize("kwargs", [
        {"fft_size": 100},
        {"fft_size": 16},
        {"smoothing": 1.0},
        {"min_decibels": -30.0, "max_decibels": -100.0},
    ])
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            VolumeProcessor(**kwargs)


# ============================================================================
# Device helper Tests
# ============================================================================

class TestDevices:

    def test_permission_error_classified(self):
        err = classify_device_error(PermissionError("nope"), device="mic")
        assert isinstance(err, PermissionDeniedError)
        assert err.device == "mic"

    def test_permission_text_classified(self):
        err = classify_device_error(RuntimeError("Microphone access denied by system"))
        assert isinstance(err, PermissionDeniedError)

    def test_other_errors_unavailable(self):
        err = classify_device_error(RuntimeError("Invalid number of channels"))
        assert isinstance(err, DeviceUnavailableError)
        assert err.device == "default"
        assert "[Device: default]" in str(err)

    def test_select_preferred_device(self):
        devices = [{"name": "Built-in Microphone", "index": 0}, {"name": "USB Headset", "index": 3}]
        assert select_preferred_device(devices, "usb")["index"] == 3
        assert select_preferred_device(devices, "missing")["index"] == 0
        assert select_preferred_device(devices)["index"] == 0

    def test_select_without_devices(self):
        with pytest.raises(DeviceUnavailableError):
            select_preferred_device([])


# ============================================================================
# VolumeSampler Tests
# ============================================================================

class TestVolumeSampler:

    @pytest.fixture
    def scheduler(self):
        return ManualScheduler()

    @pytest.fixture
    def audio_input(self):
        return FakeAudioInput()

    @pytest.fixture
    def sampler(self, audio_input, scheduler):
        sampler = VolumeSampler(audio_input, scheduler, sample_interval=0.1)
        yield sampler
        sampler.cleanup()

    @pytest.mark.asyncio
    async def test_initialize_opens_once(self, sampler, audio_input):
        await sampler.initialize()
        await sampler.initialize()
        assert sampler.is_initialized
        assert audio_input.open_count == 1

    def test_start_requires_initialize(self, sampler):
        with pytest.raises(DeviceUnavailableError):
            sampler.start_recording()

    @pytest.mark.asyncio
    async def test_records_one_sample_per_tick(self, sampler, scheduler):
        await sampler.initialize()
        sampler.start_recording()
        scheduler.advance(1.0)

        assert sampler.is_recording
        assert len(sampler.volume_history) == 10
        assert all(0.0 <= v <= 255.0 for v in sampler.volume_history)
        assert 0.0 < sampler.current_volume <= 100.0

    @pytest.mark.asyncio
    async def test_stop_keeps_history_until_next_start(self, sampler, scheduler):
        await sampler.initialize()
        sampler.start_recording()
        scheduler.advance(0.5)
        sampler.stop_recording()
        sampler.stop_recording()
        scheduler.advance(1.0)

        assert not sampler.is_recording
        assert len(sampler.volume_history) == 5
        assert scheduler.pending() == []

        sampler.start_recording()
        assert sampler.volume_history == ()

    @pytest.mark.asyncio
    async def test_read_errors_skip_sample(self, sampler, scheduler, audio_input):
        await sampler.initialize()
        audio_input.fail_reads = 3
        sampler.start_recording()
        scheduler.advance(1.0)

        assert sampler.read_errors == 3
        assert len(sampler.volume_history) == 7

    @pytest.mark.asyncio
    async def test_no_frame_no_sample(self, scheduler):
        audio_input = FakeAudioInput(frame=np.zeros(0, dtype=np.float32))
        sampler = VolumeSampler(audio_input, scheduler, sample_interval=0.1)
        await sampler.initialize()
        sampler.start_recording()
        scheduler.advance(1.0)
        assert sampler.volume_history == ()
        assert sampler.current_volume == 0.0

    @pytest.mark.asyncio
    async def test_permission_denied_propagates(self, scheduler):
        sampler = VolumeSampler(FailingAudioInput(PermissionDeniedError("denied")), scheduler)
        with pytest.raises(PermissionDeniedError):
            await sampler.initialize()
        assert not sampler.is_initialized

    @pytest.mark.asyncio
    async def test_unexpected_open_error_wrapped(self, scheduler):
        sampler = VolumeSampler(FailingAudioInput(RuntimeError("PortAudio not initialized")), scheduler)
        with pytest.raises(DeviceUnavailableError) as exc_info:
            await sampler.initialize()
        assert isinstance(exc_info.value, AudioDeviceError)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_cleanup_releases_everything(self, sampler, scheduler, audio_input):
        await sampler.initialize()
        sampler.start_recording()
        scheduler.advance(0.3)
        sampler.cleanup()
        sampler.cleanup()

        assert audio_input.close_count == 1
        assert not sampler.is_initialized
        assert not sampler.is_recording
        assert sampler.volume_history == ()
        assert scheduler.pending() == []

    def test_invalid_interval(self, audio_input, scheduler):
        with pytest.raises(ValueError):
            VolumeSampler(audio_input, scheduler, sample_interval=0)
