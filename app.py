"""
Command-line entry point for the speaking coach.

    python app.py questions [--category C] [--difficulty D]
    python app.py analyze --transcript TEXT --duration SECONDS [--volume V ...]
    python app.py practice [--category C] [--difficulty D] [--min-seconds N]
"""

import argparse
import asyncio
import json
import logging
import sys
import threading
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

from analysis.feedback_generator import FeedbackGenerator  # noqa: E402
from analysis.scoring import score_speech  # noqa: E402
from config import FEEDBACK_TONES, settings  # noqa: E402
from session.config import get_config  # noqa: E402
from session.exceptions import SessionError  # noqa: E402
from session.models import Difficulty, FeedbackItem, QuestionCategory, SessionState  # noqa: E402
from session.progress import ProgressTracker, unlocked_achievements  # noqa: E402
from session.questions import filter_questions  # noqa: E402
from session.session_coordinator import SessionCoordinator  # noqa: E402
from session.transcript import TranscriptFeed  # noqa: E402
from utils.logging import parse_level, setup_logging  # noqa: E402
from utils.scheduler import AsyncioScheduler  # noqa: E402

logger = logging.getLogger(__name__)

STOP_WORDS = {"/stop", "/done"}


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def cmd_questions(args: argparse.Namespace) -> int:
    questions = filter_questions(args.category, args.difficulty)
    _print_json([q.model_dump(mode="json") for q in questions])
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    if args.file:
        with open(args.file, encoding="utf-8") as fh:
            transcript = fh.read()
    else:
        transcript = args.transcript or ""

    analysis = score_speech(transcript, args.volume or [], args.duration)
    feedback = FeedbackGenerator(args.tone).generate_final_feedback(analysis)
    _print_json({
        "analysis": analysis.model_dump(mode="json"),
        "feedback": [item.model_dump(mode="json") for item in feedback],
    })
    return 0


def _print_live(items: List[FeedbackItem]) -> None:
    for item in items:
        line = f"[{item.priority.value}] {item.message}"
        if item.suggestion:
            line += f" - {item.suggestion}"
        print(line, file=sys.stderr)


class TypedTranscript:
    """Feeds typed lines into the transcript. Lines typed while preparing are held until speaking."""

    def __init__(self, coordinator: SessionCoordinator):
        self.coordinator = coordinator
        self.pending: List[str] = []

    def push(self, text: str) -> None:
        if self.coordinator.state == SessionState.PREPARING:
            self.pending.append(text)
            return
        self.flush()
        self.coordinator.transcript_feed.push(text, True)

    def flush(self) -> None:
        if self.coordinator.state != SessionState.SPEAKING:
            return
        for text in self.pending:
            self.coordinator.transcript_feed.push(text, True)
        self.pending.clear()


def _read_stdin_lines(loop: asyncio.AbstractEventLoop, coordinator: SessionCoordinator, typed: TypedTranscript) -> None:
    """Forward typed lines into the transcript feed; runs on a daemon thread."""
    for raw in sys.stdin:
        text = raw.strip()
        if text.lower() in STOP_WORDS:
            loop.call_soon_threadsafe(_stop_if_speaking, coordinator)
            return
        if text:
            loop.call_soon_threadsafe(typed.push, text)
    loop.call_soon_threadsafe(_stop_if_speaking, coordinator)


def build_transcript_feed() -> TranscriptFeed:
    return TranscriptFeed(language=settings.SPEECHCOACH_LANGUAGE)


def _stop_if_speaking(coordinator: SessionCoordinator) -> None:
    if coordinator.state == SessionState.SPEAKING:
        coordinator.stop_speaking()


async def _practice(args: argparse.Namespace) -> int:
    config = get_config(args.env)
    if args.min_seconds is not None:
        config = config.model_copy(update={"min_session_sec": args.min_seconds})
    if settings.SPEECHCOACH_INPUT_DEVICE and not config.input_device_name:
        config = config.model_copy(update={"input_device_name": settings.SPEECHCOACH_INPUT_DEVICE})

    loop = asyncio.get_running_loop()
    tracker = ProgressTracker()
    coordinator = SessionCoordinator(
        AsyncioScheduler(),
        transcript_feed=build_transcript_feed(),
        config=config,
        progress_sink=tracker,
        tone=args.tone,
        on_live_feedback=_print_live,
    )
    typed = TypedTranscript(coordinator)

    def on_state_change(old: SessionState, new: SessionState) -> None:
        print(f"-- {new.value}", file=sys.stderr)
        if new == SessionState.SPEAKING:
            # runs after the feed has started listening
            loop.call_soon(typed.flush)

    coordinator.on_state_change = on_state_change

    async with coordinator:
        if not await coordinator.start(category=args.category, difficulty=args.difficulty):
            print(coordinator.error, file=sys.stderr)
            return 1

        question = coordinator.question
        print(f"\n{question.question}", file=sys.stderr)
        if question.context:
            print(f"({question.context})", file=sys.stderr)
        print(
            f"Type what you say, one line at a time. '/stop' or Ctrl-D ends the answer "
            f"({coordinator.time_remaining}s max).\n",
            file=sys.stderr,
        )

        reader = threading.Thread(target=_read_stdin_lines, args=(loop, coordinator, typed), daemon=True)
        reader.start()

        result = await coordinator.wait_for_results()
        _print_json({
            "result": result.model_dump(mode="json"),
            "progress": tracker.progress.model_dump(mode="json"),
            "achievements": [a.model_dump(mode="json") for a in unlocked_achievements(tracker.progress)],
            "newly_unlocked": [a.id for a in tracker.newly_unlocked],
        })
    return 0 if not result.degraded else 2


def cmd_practice(args: argparse.Namespace) -> int:
    return asyncio.run(_practice(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="speaking-coach", description=settings.APP_DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"{settings.APP_NAME} {settings.APP_VERSION}")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="DEBUG, INFO, WARNING, ERROR")
    sub = parser.add_subparsers(dest="command", required=True)

    categories = [c.value for c in QuestionCategory]
    difficulties = [d.value for d in Difficulty]

    p_questions = sub.add_parser("questions", help="List catalog questions")
    p_questions.add_argument("--category", choices=categories)
    p_questions.add_argument("--difficulty", choices=difficulties)
    p_questions.set_defaults(func=cmd_questions)

    p_analyze = sub.add_parser("analyze", help="Score a transcript")
    source = p_analyze.add_mutually_exclusive_group(required=True)
    source.add_argument("--transcript", help="Transcript text")
    source.add_argument("--file", help="Path to a UTF-8 transcript file")
    p_analyze.add_argument("--duration", type=float, required=True, help="Speaking time in seconds")
    p_analyze.add_argument("--volume", type=float, nargs="*", help="Volume History (0-255 readings)")
    p_analyze.add_argument("--tone", choices=FEEDBACK_TONES, default=settings.SPEECHCOACH_FEEDBACK_TONE)
    p_analyze.set_defaults(func=cmd_analyze)

    p_practice = sub.add_parser("practice", help="Timed session with the microphone and typed transcript")
    p_practice.add_argument("--category", choices=categories)
    p_practice.add_argument("--difficulty", choices=difficulties)
    p_practice.add_argument("--min-seconds", type=int, help="Override the minimum session length")
    p_practice.add_argument("--env", help="Config profile: production, development or testing")
    p_practice.add_argument("--tone", choices=FEEDBACK_TONES, default=settings.SPEECHCOACH_FEEDBACK_TONE)
    p_practice.set_defaults(func=cmd_practice)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        level=parse_level(args.log_level),
        json_output=settings.JSON_LOGS,
        log_file=settings.LOG_FILE,
    )
    try:
        return args.func(args)
    except (SessionError, ValueError) as exc:
        logger.error(f"{args.command} failed: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
