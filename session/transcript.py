"""
Transcript feed for a speaking session.

Speech recognizers are outside this package: they push ``(text, is_final)``
events into a ``TranscriptFeed`` and the session reads ``current_transcript``
whenever it needs it. Final segments accumulate; the latest interim text is
shown after them until the recognizer finalizes it.
"""

import logging
from typing import Callable, List, Optional

from .exceptions import RecognitionError

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en-US"


class TranscriptFeed:
    """Append-only transcript buffer with observer callbacks."""

    def __init__(
        self,
        on_update: Optional[Callable[[str], None]] = None,
        on_final: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        language: str = DEFAULT_LANGUAGE,
    ):
        # BCP-47 tag the pushing recognizer should transcribe in
        self.language = language
        self.on_update = on_update
        self.on_final = on_final
        self.on_error = on_error

        self._final_segments: List[str] = []
        self._interim = ""
        self._listening = False
        self._last_error: Optional[RecognitionError] = None

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def last_error(self) -> Optional[RecognitionError]:
        return self._last_error

    @property
    def final_transcript(self) -> str:
        return " ".join(self._final_segments)

    @property
    def current_transcript(self) -> str:
        """Final text followed by the pending interim text."""
        parts = self._final_segments + ([self._interim] if self._interim else [])
        return " ".join(parts)

    def start_listening(self) -> None:
        """Clear the buffer and accept pushes."""
        self._final_segments = []
        self._interim = ""
        self._last_error = None
        self._listening = True
        logger.debug(f"Transcript feed listening ({self.language})")

    def stop_listening(self) -> None:
        """Stop accepting pushes; pending interim text is kept as-is."""
        if self._listening:
            self._listening = False
            logger.debug("Transcript feed stopped")

    def push(self, text: str, is_final: bool = False) -> None:
        """
        Deliver a recognizer event.

        Args:
            text: Recognized text of the current segment
            is_final: True when the recognizer will not revise this segment
        """
        if not self._listening:
            logger.debug("Ignoring transcript push while not listening")
            return

        text = (text or "").strip()
        if is_final:
            if text:
                self._final_segments.append(text)
            self._interim = ""
        else:
            self._interim = text

        transcript = self.current_transcript
        self._notify(self.on_update, transcript)
        if is_final:
            self._notify(self.on_final, self.final_transcript)

    def report_error(self, message: str) -> None:
        """Recognizer failure: logged, listening stops, what was heard is kept."""
        logger.warning(f"Speech recognition error: {message}")
        self._last_error = RecognitionError(message)
        self._listening = False
        self._notify(self.on_error, message)

    def _notify(self, callback: Optional[Callable[[str], None]], value: str) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("Transcript callback failed")
