"""
Persisted key-value state for Speak Coach.

Six independently keyed values are stored, each as a string:

- practiceHistory  -> JSON list of AttemptResult
- userProgress     -> JSON Progress
- practiceLanguage -> language code
- feedbackLanguage -> language code
- groqApiKey       -> generation credential
- user             -> JSON UserIdentity

Backends:
- Firebase Firestore (one document per installation:
  {FIREBASE_COLLECTION}/{FIREBASE_DOCUMENT_ID}) when
  FIREBASE_CREDENTIALS_PATH points at a service account file
- a local JSON file otherwise (SPEAKCOACH_DATA_PATH)
- memory only (MemoryStore) for tests

An in-memory cache always sits in front of the backend, so reads never hit
the network after startup. A value that cannot be parsed is discarded and
the default is used instead.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from . import config
from .languages import DEFAULT_LANGUAGE, is_supported
from .logger import logger
from .models import AttemptResult, Progress, UserIdentity

HISTORY_KEY = "practiceHistory"
PROGRESS_KEY = "userProgress"
PRACTICE_LANGUAGE_KEY = "practiceLanguage"
FEEDBACK_LANGUAGE_KEY = "feedbackLanguage"
API_KEY_KEY = "groqApiKey"
USER_KEY = "user"

ALL_KEYS = (
    HISTORY_KEY,
    PROGRESS_KEY,
    PRACTICE_LANGUAGE_KEY,
    FEEDBACK_LANGUAGE_KEY,
    API_KEY_KEY,
    USER_KEY,
)


class DatabaseClient:
    """
    Key-value store with Firestore, local-file and memory backends.

    Firestore layout:
    - {collection}/{document_id} -> {key: string value, ...}

    The logged-in identity is just another stored value; it does not
    select the document.
    """

    def __init__(self, data_path: Optional[Path] = None, document_id: Optional[str] = None):
        self.db = None
        self._initialized = False
        self._document_id = document_id or config.FIREBASE_DOCUMENT_ID
        self._data_path = data_path

        self._cache: Dict[str, str] = {}

    # ---------------------------------------------------------------------------
    # Connection
    # ---------------------------------------------------------------------------

    def initialize(self, credentials_path: Optional[str] = None) -> bool:
        """
        Connect Firestore if credentials are available, then load all keys.

        Args:
            credentials_path: Path to a Firebase service account JSON.
                              If None, FIREBASE_CREDENTIALS_PATH is used.

        Returns:
            True if Firestore is connected, False when running on the local file.
        """
        logger.separator("Storage Initialization")

        creds_path = credentials_path or config.FIREBASE_CREDENTIALS_PATH
        if creds_path and not self._initialized:
            self._connect_firestore(creds_path)

        if self.is_connected():
            self._cache = self._read_document()
        elif self._data_path is not None:
            logger.db(f"Using local store: {self._data_path}")
            self._cache = self._read_file()
        logger.db(f"Loaded {len(self._cache)} stored key(s)")
        return self.is_connected()

    def _connect_firestore(self, creds_path: str) -> None:
        if not os.path.exists(creds_path):
            logger.db_error(f"Credentials file not found at: {creds_path}")
            logger.warning("Falling back to the local store")
            return

        try:
            logger.debug(f"[DB] Loading Firebase credentials from {creds_path}")
            try:
                app = firebase_admin.get_app()
            except ValueError:
                app = firebase_admin.initialize_app(credentials.Certificate(creds_path))
            self.db = firestore.client(app)
            self._initialized = True
            logger.success("[DB] Firebase Firestore connected")
        except Exception as e:
            logger.db_error(f"Failed to initialize Firebase: {e}")
            logger.warning("Falling back to the local store")
            self.db = None

    def is_connected(self) -> bool:
        """True when values are written through to Firestore."""
        return self._initialized and self.db is not None

    def _document(self):
        return self.db.collection(config.FIREBASE_COLLECTION).document(self._document_id)

    def _read_document(self) -> Dict[str, str]:
        try:
            doc = self._document().get()
            if not doc.exists:
                return {}
            return {k: v for k, v in (doc.to_dict() or {}).items() if isinstance(v, str)}
        except Exception as e:
            logger.db_error(f"Error reading Firestore document: {e}")
            return {}

    def _read_file(self) -> Dict[str, str]:
        if not self._data_path.exists():
            return {}
        try:
            data = json.loads(self._data_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Local store {self._data_path} is unreadable, starting fresh: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Local store {self._data_path} is not a JSON object, starting fresh")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self, changed: Dict[str, Optional[str]]) -> bool:
        """Write changed keys through to the backend (None deletes)."""
        if self.is_connected():
            try:
                updates = {k: (firestore.DELETE_FIELD if v is None else v) for k, v in changed.items()}
                self._document().set(updates, merge=True)
                return True
            except Exception as e:
                logger.db_error(f"Error writing to Firestore: {e}")
                return False

        if self._data_path is None:
            return True

        try:
            self._write_file()
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.db_error(f"Error writing local store: {e}")
            return False

    def _write_file(self) -> None:
        """Replace the local file atomically; the temp file never outlives a failed write."""
        self._data_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._data_path.parent), suffix=".tmp")
        replaced = False
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._cache, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._data_path)
            replaced = True
        finally:
            if not replaced and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    # ---------------------------------------------------------------------------
    # Raw key-value operations
    # ---------------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    def set(self, key: str, value: str) -> bool:
        self._cache[key] = value
        return self._flush({key: value})

    def delete(self, key: str) -> bool:
        if key not in self._cache:
            return True
        del self._cache[key]
        return self._flush({key: None})

    def clear(self) -> bool:
        """Remove every Speak Coach key."""
        removed = {key: None for key in ALL_KEYS if key in self._cache}
        for key in removed:
            del self._cache[key]
        logger.db(f"Cleared {len(removed)} stored key(s)")
        return self._flush(removed) if removed else True

    # ---------------------------------------------------------------------------
    # Typed values
    # ---------------------------------------------------------------------------

    def _load_json(self, key: str) -> Any:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            self._discard(key, "not valid JSON")
            return None

    def _discard(self, key: str, reason: str) -> None:
        logger.warning(f"Stored '{key}' is corrupt ({reason}), reverting to default")
        self.delete(key)

    def load_progress(self) -> Progress:
        data = self._load_json(PROGRESS_KEY)
        if data is None:
            return Progress()
        try:
            return Progress.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            self._discard(PROGRESS_KEY, str(e))
            return Progress()

    def save_progress(self, progress: Progress) -> bool:
        return self.set(PROGRESS_KEY, json.dumps(progress.to_dict()))

    def load_history(self) -> List[AttemptResult]:
        data = self._load_json(HISTORY_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            self._discard(HISTORY_KEY, "expected a list")
            return []
        try:
            return [AttemptResult.from_dict(entry) for entry in data]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self._discard(HISTORY_KEY, str(e))
            return []

    def save_history(self, history: List[AttemptResult]) -> bool:
        payload = [entry.to_dict() for entry in history]
        return self.set(HISTORY_KEY, json.dumps(payload, ensure_ascii=False))

    def load_language(self, key: str, default: str = DEFAULT_LANGUAGE) -> str:
        code = self.get(key)
        if code is None:
            return default
        if not is_supported(code):
            self._discard(key, f"unsupported language code {code!r}")
            return default
        return code

    def save_language(self, key: str, code: str) -> bool:
        return self.set(key, code)

    def load_api_key(self) -> Optional[str]:
        return self.get(API_KEY_KEY) or None

    def save_api_key(self, api_key: Optional[str]) -> bool:
        if not api_key:
            return self.delete(API_KEY_KEY)
        return self.set(API_KEY_KEY, api_key)

    def load_user(self) -> Optional[UserIdentity]:
        data = self._load_json(USER_KEY)
        if data is None:
            return None
        try:
            return UserIdentity.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self._discard(USER_KEY, str(e))
            return None

    def save_user(self, user: Optional[UserIdentity]) -> bool:
        if user is None:
            return self.delete(USER_KEY)
        return self.set(USER_KEY, json.dumps(user.to_dict(), ensure_ascii=False))


class MemoryStore(DatabaseClient):
    """Process-local store; nothing is written to disk or the network."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__(data_path=None)
        self._cache = dict(initial or {})

    def initialize(self, credentials_path: Optional[str] = None) -> bool:
        return False


def open_database(
    data_path: Optional[Path] = None,
    credentials_path: Optional[str] = None,
    document_id: Optional[str] = None,
) -> DatabaseClient:
    """Create and initialize the store used by the application."""
    client = DatabaseClient(data_path=data_path or config.DATA_PATH, document_id=document_id)
    client.initialize(credentials_path)
    return client
