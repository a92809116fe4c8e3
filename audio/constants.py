# audio/constants.py
"""Centralized constants for the audio processing modules."""

# --- Input stream ---
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_CHANNELS = 1

# --- Spectrum analyser (volume sampling) ---
FFT_SIZE = 256  # frequency bins = FFT_SIZE // 2
SMOOTHING_TIME_CONSTANT = 0.8
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0
BYTE_SCALE_MAX = 255.0
SAMPLE_INTERVAL_SEC = 1.0 / 60.0  # one reading per animation frame

# --- Speech Metrics ---
# English filler words and phrases. Multi-word entries are matched as fixed phrases.
FILLER_WORDS = [
    "um", "uh", "er", "ah", "like",
    "you know", "basically", "actually", "literally",
    "sort of", "kind of", "i mean", "you see",
    "i guess", "i suppose", "let me see",
]

# Lexical markers for the coherence heuristic
CONNECTIVE_MARKERS = ["because", "therefore", "however"]
EXEMPLAR_MARKERS = ["for example", "specifically", "such as"]
SEQUENCE_MARKERS = ["first", "second", "finally"]
