"""
Practice session: the state one learner works against.

Flow of one attempt:
1. start_recording()  IDLE → RECORDING, auto-stop armed
2. stop_recording()   RECORDING → PROCESSING (by the learner or the auto-stop)
3. recognition delay elapses → text is recognized, scored, given feedback,
   appended to history and turned into XP; PROCESSING → IDLE

Once PROCESSING has begun the attempt always completes with an
AttemptResult. Only one attempt can be in flight at a time.
"""

import random
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from . import config
from .api import TextGenerator, get_phrase, get_text_generator
from .database import (
    FEEDBACK_LANGUAGE_KEY,
    PRACTICE_LANGUAGE_KEY,
    DatabaseClient,
)
from .errors import NoPhraseError, SessionBusyError
from .feedback import EXCELLENT_THRESHOLD, GOOD_THRESHOLD, resolve_feedback
from .history import HistoryStore, compute_stats
from .languages import is_supported
from .logger import logger
from .models import AttemptResult, HistoryStats, Notice, Phrase, Progress, RecordingState
from .progression import ProgressionEngine
from .recognition import Recognizer, SimulatedRecognizer
from .scoring import find_mismatches, score_breakdown


class TimerHandle:
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadScheduler:
    """Runs callbacks after a delay on daemon timer threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return TimerHandle(timer)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PracticeSession:
    """Owns history, progress, settings and the recording state machine."""

    def __init__(
        self,
        store: DatabaseClient,
        recognizer: Optional[Recognizer] = None,
        generator: Optional[TextGenerator] = None,
        rng: Optional[random.Random] = None,
        scheduler=None,
        listener: Optional[Callable[[Notice], None]] = None,
        on_result: Optional[Callable[[AttemptResult], None]] = None,
        clock: Callable[[], datetime] = utc_now,
        recording_timeout: Optional[float] = None,
        recognition_delay: Optional[float] = None,
    ):
        self.store = store
        self.rng = rng or random.Random()
        self.recognizer = recognizer or SimulatedRecognizer(self.rng)
        self.scheduler = scheduler or ThreadScheduler()
        self.listener = listener
        self.on_result = on_result
        self.clock = clock
        self.recording_timeout = config.RECORDING_TIMEOUT_S if recording_timeout is None else recording_timeout
        self.recognition_delay = config.RECOGNITION_DELAY_S if recognition_delay is None else recognition_delay

        self.history = HistoryStore(store)
        self.history.load()
        self.progress: Progress = store.load_progress()
        self.practice_language = store.load_language(PRACTICE_LANGUAGE_KEY)
        self.feedback_language = store.load_language(FEEDBACK_LANGUAGE_KEY)
        self.api_key: Optional[str] = store.load_api_key() or config.GROQ_API_KEY

        self._generator_pinned = generator is not None
        self.generator = generator or get_text_generator(self.api_key, self.rng)
        self.engine = ProgressionEngine(on_level_up=self._on_level_up)

        self.state = RecordingState.IDLE
        self.current_phrase: Optional[Phrase] = None
        self.spoken_text = ""
        self.last_result: Optional[AttemptResult] = None

        self._lock = threading.RLock()
        self._active_phrase: Optional[Phrase] = None
        self._pending = None

        logger.info(
            f"Session ready: level {self.progress.level}, {len(self.history)} past attempt(s), "
            f"practice={self.practice_language}, feedback={self.feedback_language}"
        )

    # ---------------------------------------------------------------------------
    # Notifications
    # ---------------------------------------------------------------------------

    def _notify(self, level: str, message: str) -> None:
        if self.listener is None:
            return
        try:
            self.listener(Notice(level=level, message=message))
        except Exception as e:
            logger.error(f"Notice listener failed: {e}")

    def _on_level_up(self, level: int) -> None:
        self._notify("success", f"🎉 Level up! You're now level {level}!")

    # ---------------------------------------------------------------------------
    # State helpers
    # ---------------------------------------------------------------------------

    @property
    def is_recording(self) -> bool:
        return self.state == RecordingState.RECORDING

    @property
    def is_processing(self) -> bool:
        return self.state == RecordingState.PROCESSING

    @property
    def is_busy(self) -> bool:
        return self.state != RecordingState.IDLE

    def _ensure_idle(self, action: str) -> None:
        if self.is_busy:
            raise SessionBusyError(f"Cannot {action} while an attempt is {self.state.value}")

    def _transition(self, new_state: RecordingState) -> None:
        logger.rec_transition(self.state.name, new_state.name)
        self.state = new_state

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # ---------------------------------------------------------------------------
    # Phrases and settings
    # ---------------------------------------------------------------------------

    def new_phrase(self) -> Phrase:
        """Replace the current phrase with a fresh one in the practice language."""
        with self._lock:
            self._ensure_idle("change the phrase")
            text, used_fallback = get_phrase(self.generator, self.practice_language, self.rng)
            if used_fallback and self.generator.is_remote:
                self._notify("warning", "Could not generate a phrase, using a built-in one instead.")
            self.current_phrase = Phrase(text=text, language=self.practice_language)
            self.spoken_text = ""
            return self.current_phrase

    def ensure_phrase(self) -> Phrase:
        return self.current_phrase or self.new_phrase()

    def set_practice_language(self, code: str) -> Phrase:
        if not is_supported(code):
            raise ValueError(f"Unsupported language code: {code}")
        with self._lock:
            self._ensure_idle("change the practice language")
            self.practice_language = code
            self.store.save_language(PRACTICE_LANGUAGE_KEY, code)
            self._notify("success", f"Practice language changed to {code.split('-')[0].upper()}")
            return self.new_phrase()

    def set_feedback_language(self, code: str) -> None:
        if not is_supported(code):
            raise ValueError(f"Unsupported language code: {code}")
        with self._lock:
            self.feedback_language = code
            self.store.save_language(FEEDBACK_LANGUAGE_KEY, code)
            self._notify("success", f"Feedback language changed to {code.split('-')[0].upper()}")

    def set_api_key(self, api_key: Optional[str]) -> None:
        """Store (or clear, with a falsy value) the generation credential."""
        with self._lock:
            self.api_key = api_key or None
            self.store.save_api_key(self.api_key)
            if not self._generator_pinned:
                self.generator = get_text_generator(self.api_key, self.rng)
            if self.api_key:
                self._notify("success", "Groq API key saved. AI-generated phrases and feedback are enabled.")

    def clear_api_key(self) -> None:
        self.set_api_key(None)

    # ---------------------------------------------------------------------------
    # Recording lifecycle
    # ---------------------------------------------------------------------------

    def start_recording(self) -> None:
        with self._lock:
            self._ensure_idle("start recording")
            if self.current_phrase is None:
                raise NoPhraseError("No phrase loaded; call new_phrase() first")

            self._active_phrase = self.current_phrase
            self.spoken_text = ""
            self._transition(RecordingState.RECORDING)
            self._notify("info", "Recording started... Speak now!")
            self._pending = self.scheduler.call_later(self.recording_timeout, self._auto_stop)

    def _auto_stop(self) -> None:
        logger.rec(f"Recording timeout ({self.recording_timeout}s) reached")
        self.stop_recording()

    def stop_recording(self) -> None:
        """End the recording early or on timeout; a no-op unless recording."""
        with self._lock:
            if self.state != RecordingState.RECORDING:
                return
            self._cancel_pending()
            self._transition(RecordingState.PROCESSING)
            self._pending = self.scheduler.call_later(self.recognition_delay, self._finish_processing)

    def _finish_processing(self) -> None:
        with self._lock:
            if self.state != RecordingState.PROCESSING:
                return
            self._pending = None
            result = self._complete_attempt(self._active_phrase)
        if self.on_result is not None:
            try:
                self.on_result(result)
            except Exception as e:
                logger.error(f"Result callback failed: {e}")

    def run_attempt(self, spoken: Optional[str] = None) -> AttemptResult:
        """Run a whole attempt synchronously, optionally with a known transcript."""
        with self._lock:
            self._ensure_idle("start recording")
            if self.current_phrase is None:
                raise NoPhraseError("No phrase loaded; call new_phrase() first")
            self._active_phrase = self.current_phrase
            self._transition(RecordingState.RECORDING)
            self._transition(RecordingState.PROCESSING)
            return self._complete_attempt(self._active_phrase, spoken)

    def _recognize(self, phrase: Phrase) -> str:
        try:
            return self.recognizer.recognize(phrase)
        except Exception as e:
            logger.error(f"Recognition failed, treating attempt as silent: {e}")
            return ""

    def _complete_attempt(self, phrase: Phrase, spoken: Optional[str] = None) -> AttemptResult:
        """Score, record and reward one attempt, then return to IDLE. Must not raise."""
        spoken = self._recognize(phrase) if spoken is None else spoken
        self.spoken_text = spoken

        breakdown = score_breakdown(phrase.text, spoken)
        score = breakdown.final
        mismatches = find_mismatches(phrase.text, spoken)
        logger.score(
            f"'{spoken}' → {score} (words {breakdown.word_match}, edit {breakdown.edit_distance}); "
            f"mismatched: {', '.join(mismatches) or '-'}"
        )

        outcome = resolve_feedback(
            self.generator, score, mismatches, phrase.text, spoken, self.feedback_language
        )
        if outcome.used_fallback and self.generator.is_remote:
            self._notify("warning", "AI feedback is unavailable right now, showing standard feedback.")

        result = AttemptResult(
            phrase=phrase.text,
            spoken=spoken,
            similarity=score,
            feedback=outcome.text,
            timestamp=self.clock().isoformat(),
            language=phrase.language,
        )

        self.history.add(result)
        self.progress = self.engine.update(self.progress, score).progress
        self.store.save_progress(self.progress)
        self.last_result = result
        self._active_phrase = None
        self._transition(RecordingState.IDLE)

        if score > EXCELLENT_THRESHOLD:
            self._notify("success", "Great job! Your pronunciation was excellent!")
        elif score > GOOD_THRESHOLD:
            self._notify("info", "Good effort! Keep practicing to improve.")
        else:
            self._notify("warning", "Let's try that again. Focus on clear pronunciation.")
        return result

    # ---------------------------------------------------------------------------
    # History and data management
    # ---------------------------------------------------------------------------

    @property
    def practice_history(self) -> List[AttemptResult]:
        return list(self.history.entries)

    def stats(self) -> HistoryStats:
        return compute_stats(self.history.entries)

    def clear_history(self) -> None:
        with self._lock:
            self._ensure_idle("clear the history")
            self.history.clear()

    def clear_all_data(self) -> None:
        """Wipe every persisted value and return to first-run defaults."""
        with self._lock:
            self._ensure_idle("clear data")
            self.store.clear()
            self.history.reset()
            self.progress = Progress()
            self.practice_language = self.store.load_language(PRACTICE_LANGUAGE_KEY)
            self.feedback_language = self.store.load_language(FEEDBACK_LANGUAGE_KEY)
            self.api_key = None
            if not self._generator_pinned:
                self.generator = get_text_generator(None, self.rng)
            self.last_result = None
            self.current_phrase = None
            self._notify("success", "All practice data has been cleared.")
