"""
Configuration for Speak Coach.

Values are read from a .env file at the project root (python-dotenv) and
fall back to the defaults below:

    GROQ_API_KEY=gsk_...
    GROQ_MODEL=llama3-8b-8192
    SPEAKCOACH_DATA_PATH=~/.speakcoach/state.json
    FIREBASE_CREDENTIALS_PATH=./service-account.json   # optional
    FIREBASE_DOCUMENT_ID=my-laptop                     # optional

A key saved through the session (settings) takes precedence over GROQ_API_KEY.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .logger import logger


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def mask_key(key: Optional[str]) -> str:
    """Mask a credential for logging (first 8 and last 4 chars)."""
    if not key:
        return ""
    return f"{key[:8]}...{key[-4:]}" if len(key) > 12 else "***"


dotenv_loaded = load_dotenv()

DEBUG = _env_bool("SPEAKCOACH_DEBUG", "true")
logger.enabled = DEBUG

# Generation collaborator (Groq exposes an OpenAI-compatible endpoint)
GROQ_API_KEY: Optional[str] = os.getenv("GROQ_API_KEY") or None
GROQ_BASE_URL = os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama3-8b-8192")
API_TIMEOUT_S = float(os.getenv("API_TIMEOUT_S", "10"))

# Recording lifecycle
RECORDING_TIMEOUT_S = float(os.getenv("RECORDING_TIMEOUT_S", "5.0"))
RECOGNITION_DELAY_S = float(os.getenv("RECOGNITION_DELAY_S", "1.5"))
RECOGNITION_ERROR_RATE = float(os.getenv("RECOGNITION_ERROR_RATE", "0.3"))

# Persistence
DATA_PATH = Path(os.getenv("SPEAKCOACH_DATA_PATH", "~/.speakcoach/state.json")).expanduser()
FIREBASE_CREDENTIALS_PATH: Optional[str] = os.getenv("FIREBASE_CREDENTIALS_PATH") or None
FIREBASE_COLLECTION = os.getenv("FIREBASE_COLLECTION", "speakcoach")
# One Firestore document per installation; identity does not partition practice data
FIREBASE_DOCUMENT_ID = os.getenv("FIREBASE_DOCUMENT_ID", "default_user")


def log_configuration() -> None:
    """Print the effective configuration (called once by the driver)."""
    logger.separator("Speak Coach - Configuration")
    if dotenv_loaded:
        logger.env_success("dotenv file loaded successfully")
    else:
        logger.warning("No .env file found or file is empty")

    if GROQ_API_KEY:
        logger.env_success(f"GROQ_API_KEY found: {mask_key(GROQ_API_KEY)}")
    else:
        logger.env("GROQ_API_KEY not set, phrases and feedback will come from the offline pool")

    logger.env(f"Generation model: {GROQ_MODEL} (timeout {API_TIMEOUT_S:.0f}s)")
    logger.env(f"Recording timeout: {RECORDING_TIMEOUT_S}s, recognition delay: {RECOGNITION_DELAY_S}s")
    logger.env(f"Local data path: {DATA_PATH}")
    if FIREBASE_CREDENTIALS_PATH:
        logger.env(f"Firestore credentials: {FIREBASE_CREDENTIALS_PATH} "
                   f"(document {FIREBASE_COLLECTION}/{FIREBASE_DOCUMENT_ID})")
