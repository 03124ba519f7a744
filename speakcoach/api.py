"""
Text generation services for Speak Coach.

This module handles:
- Practice phrase generation
- Personalized pronunciation feedback

Generation goes through Groq's OpenAI-compatible endpoint using the `openai`
client. The key comes from the session settings or from .env:

    GROQ_API_KEY=gsk_...

Without a key (or when a call fails) callers fall back to the offline
generator: phrases from the built-in pool, feedback from the templates.
"""

import json
import random
from typing import List, Optional, Tuple

from openai import OpenAI

from . import config
from .errors import GenerationError
from .feedback import select_feedback
from .languages import language_name, pick_pool_phrase, resolve_language
from .logger import logger, Timer


class TextGenerator:
    """Capability interface for the phrase/feedback collaborator."""

    #: False for the offline implementation
    is_remote = False

    def generate_phrase(self, language: str) -> str:
        raise NotImplementedError

    def generate_feedback(
        self,
        score: int,
        mismatches: List[str],
        original: str,
        spoken: str,
        feedback_language: str,
    ) -> str:
        raise NotImplementedError


class OfflineTextGenerator(TextGenerator):
    """Always-available generator backed by the phrase pool and feedback templates."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_phrase(self, language: str) -> str:
        return pick_pool_phrase(language, self.rng)

    def generate_feedback(self, score, mismatches, original, spoken, feedback_language) -> str:
        return select_feedback(score, mismatches, original, spoken, feedback_language)


class GroqTextGenerator(TextGenerator):
    """Generator calling a Groq chat model through the OpenAI client."""

    is_remote = True

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[OpenAI] = None,
    ):
        self.model = model or config.GROQ_MODEL
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url or config.GROQ_BASE_URL,
            timeout=timeout if timeout is not None else config.API_TIMEOUT_S,
            max_retries=0,
        )

    def _chat(self, purpose: str, messages: List[dict], temperature: float, max_tokens: int) -> str:
        logger.api_call(f"chat.completions.create ({purpose})", model=self.model)
        try:
            with Timer() as timer:
                completion = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            logger.api_response("chat.completions.create", duration_ms=timer.duration_ms)
            content = completion.choices[0].message.content
        except Exception as e:
            raise GenerationError(f"{purpose} request failed: {e}") from e

        text = (content or "").strip().strip('"').strip()
        if not text:
            raise GenerationError(f"{purpose} request returned an empty completion")
        return text

    def generate_phrase(self, language: str) -> str:
        name = language_name(language)
        messages = [
            {
                "role": "system",
                "content": (
                    "You write short practice sentences for pronunciation training. "
                    f"Write ONE natural, everyday sentence in {name} with 5 to 10 words. "
                    "Reply with the sentence only: no quotes, no translation, no explanation."
                ),
            },
            {"role": "user", "content": f"Give me a new sentence to practice in {name}."},
        ]
        return self._chat("phrase", messages, temperature=0.9, max_tokens=60)

    def generate_feedback(self, score, mismatches, original, spoken, feedback_language) -> str:
        messages = [
            {
                "role": "system",
                "content": (
                    "You are a friendly pronunciation coach. The learner read a phrase aloud and "
                    "their speech was transcribed. Give short, encouraging feedback (at most two "
                    "sentences) that mentions the words they should work on, if any. "
                    f"Answer in {language_name(feedback_language)} only."
                ),
            },
            {
                "role": "user",
                "content": json.dumps(
                    {
                        "score": score,
                        "expected_phrase": original,
                        "transcription": spoken,
                        "words_to_improve": mismatches,
                    },
                    ensure_ascii=False,
                ),
            },
        ]
        return self._chat("feedback", messages, temperature=0.5, max_tokens=150)


def get_text_generator(api_key: Optional[str], rng: Optional[random.Random] = None) -> TextGenerator:
    """Pick the generator for the configured credential (no key → offline)."""
    if api_key:
        logger.api(f"Using Groq generator (key {config.mask_key(api_key)})")
        return GroqTextGenerator(api_key)
    logger.api("No API key configured, using offline generator")
    return OfflineTextGenerator(rng)


def get_phrase(generator: TextGenerator, language: str, rng: random.Random) -> Tuple[str, bool]:
    """
    Fetch a practice phrase.

    Returns (text, used_fallback); any generator failure falls back to the
    built-in pool.
    """
    language = resolve_language(language)
    try:
        phrase = generator.generate_phrase(language)
        logger.success(f"Phrase ready ({language}): '{phrase[:50]}'")
        return phrase, False
    except Exception as e:
        logger.api_error(f"Phrase generation failed, using built-in pool: {e}")
        return pick_pool_phrase(language, rng), True
