from unittest.mock import MagicMock

import pytest

from speakcoach.feedback import (
    EXCELLENT,
    GOOD,
    RETRY,
    resolve_feedback,
    select_feedback,
)
from speakcoach.languages import SUPPORTED_CODES


def feedback(score, mismatches=(), language="en-US"):
    return select_feedback(score, list(mismatches), "original", "spoken", language)


@pytest.mark.parametrize("score", [91, 95, 100])
def test_excellent_tier(score):
    assert feedback(score) == "Excellent pronunciation! Keep it up."


@pytest.mark.parametrize("score", [71, 80, 90])
def test_good_tier_names_mismatched_words(score):
    text = feedback(score, ["new", "languages"])
    assert text == "Good pronunciation! Practice these words a bit more: new, languages."


def test_good_tier_without_words_uses_generic_message():
    assert feedback(85) == GOOD["en-US"]


@pytest.mark.parametrize("score", [0, 50, 70])
def test_retry_tier(score):
    assert feedback(score, ["new"]) == "Try again focusing on clear pronunciation of each word."


def test_every_locale_has_all_tiers():
    for code in SUPPORTED_CODES:
        assert feedback(100, language=code) == EXCELLENT[code]
        assert feedback(10, language=code) == RETRY[code]
        assert "sol" in feedback(80, ["sol"], language=code)


def test_localized_templates():
    assert feedback(95, language="pt-BR") == "Excelente pronúncia! Continue assim."
    assert feedback(50, language="de-DE") == RETRY["de-DE"]


def test_unknown_locale_falls_back_to_default():
    assert feedback(95, language="xx-XX") == EXCELLENT["en-US"]
    assert feedback(50, language=None) == RETRY["en-US"]


def test_resolve_uses_generator_text():
    generator = MagicMock()
    generator.generate_feedback.return_value = "  Nice work on 'sun'!  "

    outcome = resolve_feedback(generator, 80, ["sun"], "The sun", "The son", "en-US")

    assert outcome.text == "Nice work on 'sun'!"
    assert outcome.used_fallback is False
    generator.generate_feedback.assert_called_once_with(80, ["sun"], "The sun", "The son", "en-US")


def test_resolve_falls_back_when_generator_raises():
    generator = MagicMock()
    generator.generate_feedback.side_effect = TimeoutError("slow network")

    outcome = resolve_feedback(generator, 95, [], "a", "a", "fr-FR")

    assert outcome.used_fallback is True
    assert outcome.text == EXCELLENT["fr-FR"]


def test_resolve_falls_back_on_blank_text():
    generator = MagicMock()
    generator.generate_feedback.return_value = "   "

    outcome = resolve_feedback(generator, 40, [], "a", "b", "it-IT")

    assert outcome.used_fallback is True
    assert outcome.text == RETRY["it-IT"]
