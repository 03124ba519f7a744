"""
Supported locales and the built-in phrase pool.

The pool is used whenever no generation API key is configured or the
generation call fails.
"""

import random
from typing import Dict, List, Optional

from .models import LanguageOption

DEFAULT_LANGUAGE = "en-US"

LANGUAGES: List[LanguageOption] = [
    LanguageOption(name="Português", code="pt-BR", flag="🇧🇷"),
    LanguageOption(name="English", code="en-US", flag="🇺🇸"),
    LanguageOption(name="Español", code="es-ES", flag="🇪🇸"),
    LanguageOption(name="Français", code="fr-FR", flag="🇫🇷"),
    LanguageOption(name="Italiano", code="it-IT", flag="🇮🇹"),
    LanguageOption(name="Deutsch", code="de-DE", flag="🇩🇪"),
]

SUPPORTED_CODES = [option.code for option in LANGUAGES]

# Names used inside generation prompts
LANGUAGE_NAMES: Dict[str, str] = {
    "pt-BR": "Portuguese",
    "en-US": "English",
    "es-ES": "Spanish",
    "fr-FR": "French",
    "it-IT": "Italian",
    "de-DE": "German",
}

PHRASE_POOL: Dict[str, List[str]] = {
    "pt-BR": [
        "O sol está brilhando hoje.",
        "Eu gosto de aprender novos idiomas.",
        "A comida brasileira é muito saborosa.",
        "O Brasil é um país maravilhoso.",
        "Vamos praticar português juntos?",
    ],
    "en-US": [
        "The sun is shining today.",
        "I like learning new languages.",
        "The weather is really nice outside.",
        "How are you doing today?",
        "Let's practice English together.",
    ],
    "es-ES": [
        "El sol está brillando hoy.",
        "Me gusta aprender nuevos idiomas.",
        "La comida española es muy sabrosa.",
        "España es un país maravilloso.",
        "¿Vamos a practicar español juntos?",
    ],
    "fr-FR": [
        "Le soleil brille aujourd'hui.",
        "J'aime apprendre de nouvelles langues.",
        "La cuisine française est très savoureuse.",
        "La France est un pays merveilleux.",
        "Pratiquons le français ensemble.",
    ],
    "it-IT": [
        "Il sole splende oggi.",
        "Mi piace imparare nuove lingue.",
        "La cucina italiana è molto gustosa.",
        "L'Italia è un paese meraviglioso.",
        "Pratichiamo l'italiano insieme.",
    ],
    "de-DE": [
        "Die Sonne scheint heute.",
        "Ich lerne gerne neue Sprachen.",
        "Das deutsche Essen ist sehr lecker.",
        "Deutschland ist ein wunderbares Land.",
        "Lass uns zusammen Deutsch üben.",
    ],
}


def is_supported(code: Optional[str]) -> bool:
    return code in SUPPORTED_CODES


def resolve_language(code: Optional[str]) -> str:
    """Map any code onto a supported one, falling back to the default locale."""
    return code if is_supported(code) else DEFAULT_LANGUAGE


def get_language_option(code: Optional[str]) -> Optional[LanguageOption]:
    for option in LANGUAGES:
        if option.code == code:
            return option
    return None


def language_name(code: Optional[str]) -> str:
    return LANGUAGE_NAMES[resolve_language(code)]


def pick_pool_phrase(language: Optional[str], rng: random.Random) -> str:
    """Draw a phrase uniformly at random from the built-in pool."""
    return rng.choice(PHRASE_POOL[resolve_language(language)])
