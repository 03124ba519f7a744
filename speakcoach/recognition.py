"""
Speech recognition collaborators.

Real audio capture is out of scope: SimulatedRecognizer echoes the target
phrase and sometimes clips a word the way a misheard recording would.
ScriptedRecognizer returns text supplied ahead of time (typed input in the
terminal driver, fixed transcripts in tests).
"""

import random
from collections import deque
from typing import Deque, Iterable, Optional

from . import config
from .logger import logger
from .models import Phrase


class Recognizer:
    """Produces the spoken text once a recording completes."""

    def recognize(self, phrase: Phrase) -> str:
        raise NotImplementedError


class SimulatedRecognizer(Recognizer):
    def __init__(self, rng: Optional[random.Random] = None, error_rate: Optional[float] = None):
        self.rng = rng or random.Random()
        self.error_rate = config.RECOGNITION_ERROR_RATE if error_rate is None else error_rate

    def recognize(self, phrase: Phrase) -> str:
        words = phrase.text.split(" ")
        if self.rng.random() < self.error_rate:
            index = self.rng.randrange(len(words))
            logger.debug(f"Simulated recognition error on word {index}: '{words[index]}'")
            words[index] = words[index][1:]
        return " ".join(words)


class ScriptedRecognizer(Recognizer):
    """Returns queued transcripts in order; echoes the phrase when the queue is empty."""

    def __init__(self, transcripts: Iterable[str] = ()):
        self._queue: Deque[str] = deque(transcripts)

    def push(self, text: str) -> None:
        self._queue.append(text)

    def recognize(self, phrase: Phrase) -> str:
        if self._queue:
            return self._queue.popleft()
        return phrase.text
