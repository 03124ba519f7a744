"""
Speak Coach - terminal pronunciation practice

Flow:
1. A phrase is shown in the practice language.
2. "Record" it (recognition is simulated) or type what you said.
3. The attempt is scored, feedback is shown and XP is awarded.
4. Progress and history persist between runs.

Setup (from repo root):

    python -m venv .venv
    source .venv/bin/activate   # or .venv\\Scripts\\activate on Windows
    pip install -e .

Optional .env:
    GROQ_API_KEY=gsk_...

Then run:
    python main.py                 # interactive practice
    python main.py stats           # progress and history summary
    python main.py score "The sun is shining today." "The sun is shinin today"
"""

import argparse
import random
import sys
import threading
from pathlib import Path
from typing import List, Optional

from speakcoach import config
from speakcoach.auth import AuthManager
from speakcoach.database import open_database
from speakcoach.errors import InvalidCredentialError, SpeakCoachError
from speakcoach.feedback import select_feedback
from speakcoach.languages import LANGUAGES, get_language_option
from speakcoach.logger import logger
from speakcoach.models import AttemptResult, Notice
from speakcoach.recognition import SimulatedRecognizer
from speakcoach.scoring import find_mismatches, score_breakdown
from speakcoach.session import PracticeSession

NOTICE_PREFIX = {"success": "✓", "info": "•", "warning": "⚠"}

HELP_TEXT = """Commands:
  [Enter]      record the phrase (press Enter again to stop early)
  t <text>     type what you said instead of recording
  n            new phrase
  p            show progress
  h            show recent history
  l <code>     change practice language
  f <code>     change feedback language
  k <key>      save a Groq API key (k - to clear it)
  c            clear practice history
  q            quit"""


def print_notice(notice: Notice) -> None:
    print(f"  {NOTICE_PREFIX.get(notice.level, '•')} {notice.message}")


def print_result(result: AttemptResult) -> None:
    print(f'\n  You said: "{result.spoken}"')
    print(f"  Accuracy: {result.similarity}%")
    print(f"  Feedback: {result.feedback}\n")


def print_progress(session: PracticeSession) -> None:
    progress = session.progress
    stats = session.stats()
    print(f"\n  Level {progress.level}  {progress.xp}/{progress.xp_to_next_level} XP ({progress.percent}%)")
    print(f"  Streak: {progress.streak} day(s)   Practiced: {progress.practiced}")
    if progress.has_consistent_learner_badge:
        print('  Achieved "Consistent Learner" badge!')
    print(f"  Average accuracy: {stats.average_accuracy}%   Best: {stats.best_accuracy}%")
    if stats.timeline:
        print(f"  Recent trend: {' → '.join(str(v) for v in stats.timeline)}")
    for code, count in stats.language_counts.items():
        option = get_language_option(code)
        label = f"{option.flag} {option.name}" if option else "Unknown"
        print(f"  {label}: {count}")
    print()


def print_history(session: PracticeSession, limit: int = 5) -> None:
    entries = session.practice_history[:limit]
    if not entries:
        print("\n  No practice yet.\n")
        return
    print()
    for entry in entries:
        print(f"  [{entry.timestamp[:19]}] {entry.similarity:>3}%  {entry.phrase}")
        print(f"        said: {entry.spoken}")
    print()


def record(session: PracticeSession) -> None:
    """Run a timed recording; Enter stops early, otherwise the timeout does.

    The result is printed as soon as processing finishes, even while the
    prompt is still waiting for Enter after an auto-stop.
    """
    done = threading.Event()

    def show(result: AttemptResult) -> None:
        print_result(result)
        done.set()

    session.on_result = show
    session.start_recording()
    print(f"  🎤 Recording... press Enter to stop (auto-stop after {session.recording_timeout:.0f}s, "
          "then Enter to continue)")
    input()
    if session.is_recording:
        session.stop_recording()
        print("  Processing...")
    done.wait()


def run_practice(session: PracticeSession) -> None:
    print(HELP_TEXT)
    session.ensure_phrase()
    while True:
        phrase = session.current_phrase
        print(f'\n  [{phrase.language}] "{phrase.text}"')
        try:
            line = input("> ").strip()
        except EOFError:
            return

        command, _, argument = line.partition(" ")
        try:
            if command == "":
                record(session)
            elif command == "t":
                print_result(session.run_attempt(spoken=argument))
            elif command == "n":
                session.new_phrase()
            elif command == "p":
                print_progress(session)
            elif command == "h":
                print_history(session)
            elif command == "l":
                session.set_practice_language(argument)
            elif command == "f":
                session.set_feedback_language(argument)
            elif command == "k":
                session.set_api_key(None if argument in ("", "-") else argument)
            elif command == "c":
                session.clear_history()
            elif command == "q":
                return
            else:
                print(HELP_TEXT)
        except ValueError as e:
            print(f"  {e}. Supported: {', '.join(o.code for o in LANGUAGES)}")
        except SpeakCoachError as e:
            logger.warning(str(e))


def cmd_score(args: argparse.Namespace) -> int:
    breakdown = score_breakdown(args.original, args.spoken)
    mismatches = find_mismatches(args.original, args.spoken)
    print(f"Score: {breakdown.final} (word match {breakdown.word_match}, edit distance {breakdown.edit_distance})")
    print(f"Mismatched words: {', '.join(mismatches) or '-'}")
    print(select_feedback(breakdown.final, mismatches, args.original, args.spoken, args.feedback_language))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pronunciation practice in the terminal.")
    parser.add_argument("--data", help="Path of the local state file (overrides SPEAKCOACH_DATA_PATH)")
    parser.add_argument("--seed", type=int, help="Seed for phrase choice and simulated recognition")
    parser.add_argument("--quiet", action="store_true", help="Disable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("practice", help="Interactive practice (default)")
    sub.add_parser("stats", help="Show progress and history")
    sub.add_parser("clear", help="Delete all stored practice data")

    score = sub.add_parser("score", help="Score a transcript against a phrase")
    score.add_argument("original")
    score.add_argument("spoken")
    score.add_argument("--feedback-language", default="en-US")

    login = sub.add_parser("login", help="Store the profile from a Google ID token")
    login.add_argument("credential")
    sub.add_parser("logout", help="Forget the stored profile")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.quiet:
        logger.enabled = False

    if args.command == "score":
        return cmd_score(args)

    logger.banner("Speak Coach - Starting")
    config.log_configuration()

    store = open_database(data_path=Path(args.data).expanduser() if args.data else None)

    if args.command in ("login", "logout"):
        auth = AuthManager(store)
        if args.command == "logout":
            auth.logout()
            return 0
        try:
            user = auth.login(args.credential)
        except InvalidCredentialError as e:
            logger.error(str(e))
            return 1
        print(f"Logged in as {user.name} <{user.email}>")
        return 0

    rng = random.Random(args.seed)
    session = PracticeSession(store, recognizer=SimulatedRecognizer(rng), rng=rng, listener=print_notice)

    auth = AuthManager(store)
    if auth.current_user:
        print(f"Welcome back, {auth.current_user.name}!")

    if args.command == "stats":
        print_progress(session)
        print_history(session, limit=session.history.capacity)
        return 0
    if args.command == "clear":
        session.clear_all_data()
        return 0

    run_practice(session)
    return 0


if __name__ == "__main__":
    sys.exit(main())
