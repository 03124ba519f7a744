"""
Feedback selection.

select_feedback() is the deterministic path: one of three localized
templates picked by score tier. resolve_feedback() asks the configured
generator first and always falls back to the templates, so callers get a
feedback string no matter what the generator does.
"""

from dataclasses import dataclass
from typing import Dict, List

from .languages import resolve_language
from .logger import logger

EXCELLENT_THRESHOLD = 90   # score > 90
GOOD_THRESHOLD = 70        # 70 < score <= 90

EXCELLENT: Dict[str, str] = {
    "pt-BR": "Excelente pronúncia! Continue assim.",
    "en-US": "Excellent pronunciation! Keep it up.",
    "es-ES": "¡Excelente pronunciación! Sigue así.",
    "fr-FR": "Excellente prononciation ! Continuez comme ça.",
    "it-IT": "Pronuncia eccellente! Continua così.",
    "de-DE": "Ausgezeichnete Aussprache! Weiter so.",
}

# Used when the tier is "good" but no individual word was flagged
GOOD: Dict[str, str] = {
    "pt-BR": "Boa pronúncia, mas pode melhorar com mais prática.",
    "en-US": "Good pronunciation, but it can be improved with more practice.",
    "es-ES": "Buena pronunciación, pero puede mejorar con más práctica.",
    "fr-FR": "Bonne prononciation, mais elle peut s'améliorer avec plus de pratique.",
    "it-IT": "Buona pronuncia, ma può migliorare con più pratica.",
    "de-DE": "Gute Aussprache, aber mit mehr Übung geht es noch besser.",
}

GOOD_WITH_WORDS: Dict[str, str] = {
    "pt-BR": "Boa pronúncia! Pratique mais estas palavras: {words}.",
    "en-US": "Good pronunciation! Practice these words a bit more: {words}.",
    "es-ES": "¡Buena pronunciación! Practica un poco más estas palabras: {words}.",
    "fr-FR": "Bonne prononciation ! Entraînez-vous encore sur ces mots : {words}.",
    "it-IT": "Buona pronuncia! Esercitati ancora su queste parole: {words}.",
    "de-DE": "Gute Aussprache! Übe diese Wörter noch etwas: {words}.",
}

RETRY: Dict[str, str] = {
    "pt-BR": "Tente novamente focando na pronúncia clara de cada palavra.",
    "en-US": "Try again focusing on clear pronunciation of each word.",
    "es-ES": "Inténtalo de nuevo centrándote en pronunciar claramente cada palabra.",
    "fr-FR": "Réessayez en vous concentrant sur une prononciation claire de chaque mot.",
    "it-IT": "Riprova concentrandoti sulla pronuncia chiara di ogni parola.",
    "de-DE": "Versuche es noch einmal und sprich jedes Wort deutlich aus.",
}


@dataclass(frozen=True)
class FeedbackOutcome:
    text: str
    used_fallback: bool = False


def select_feedback(
    score: int,
    mismatches: List[str],
    original: str,
    spoken: str,
    feedback_language: str,
) -> str:
    """Template feedback for a score; unknown locales use the default locale."""
    language = resolve_language(feedback_language)
    if score > EXCELLENT_THRESHOLD:
        return EXCELLENT[language]
    if score > GOOD_THRESHOLD:
        if mismatches:
            return GOOD_WITH_WORDS[language].format(words=", ".join(mismatches))
        return GOOD[language]
    return RETRY[language]


def resolve_feedback(
    generator,
    score: int,
    mismatches: List[str],
    original: str,
    spoken: str,
    feedback_language: str,
) -> FeedbackOutcome:
    """Feedback from the generator, or the template when it fails. Never raises."""
    try:
        text = generator.generate_feedback(score, mismatches, original, spoken, feedback_language)
        if text and text.strip():
            return FeedbackOutcome(text=text.strip())
        logger.warning("Feedback generator returned nothing, using template")
    except Exception as e:
        logger.api_error(f"Feedback generation failed, using template: {e}")
    return FeedbackOutcome(
        text=select_feedback(score, mismatches, original, spoken, feedback_language),
        used_fallback=True,
    )
