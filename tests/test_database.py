import json
from unittest.mock import MagicMock

from jose import jwt

from speakcoach import config
from speakcoach.auth import AuthManager
from speakcoach.database import (
    API_KEY_KEY,
    FEEDBACK_LANGUAGE_KEY,
    HISTORY_KEY,
    PRACTICE_LANGUAGE_KEY,
    PROGRESS_KEY,
    USER_KEY,
    DatabaseClient,
    MemoryStore,
    open_database,
)
from speakcoach.models import AttemptResult, Progress, UserIdentity


def attempt(similarity=82, language="en-US"):
    return AttemptResult(
        phrase="I like learning new languages.",
        spoken="I like learning languages.",
        similarity=similarity,
        feedback="Good pronunciation! Practice these words a bit more: new.",
        timestamp="2025-10-20T15:30:00+00:00",
        language=language,
    )


def test_defaults_when_empty(store):
    assert store.load_progress() == Progress()
    assert store.load_history() == []
    assert store.load_language(PRACTICE_LANGUAGE_KEY) == "en-US"
    assert store.load_api_key() is None
    assert store.load_user() is None


def test_progress_is_stored_with_camel_case_keys(store):
    store.save_progress(Progress(level=2, xp=15, xp_to_next_level=150, streak=1, practiced=8))

    assert json.loads(store.get(PROGRESS_KEY)) == {
        "level": 2, "xp": 15, "xpToNextLevel": 150, "streak": 1, "practiced": 8,
    }
    assert store.load_progress() == Progress(level=2, xp=15, xp_to_next_level=150, streak=1, practiced=8)


def test_history_and_user_are_restored(store):
    user = UserIdentity(id="42", name="Ana", email="ana@example.com")
    store.save_history([attempt(90, "pt-BR"), attempt(40)])
    store.save_user(user)

    assert [a.similarity for a in store.load_history()] == [90, 40]
    assert store.load_history()[0].language == "pt-BR"
    assert store.load_user() == user


def test_history_entry_without_language_reads_as_unknown():
    legacy = attempt().to_dict()
    del legacy["language"]
    store = MemoryStore({HISTORY_KEY: json.dumps([legacy])})

    assert store.load_history()[0].language == "unknown"


def test_corrupt_json_is_discarded():
    store = MemoryStore({PROGRESS_KEY: "{not json", HISTORY_KEY: "[[["})

    assert store.load_progress() == Progress()
    assert store.load_history() == []
    assert store.get(PROGRESS_KEY) is None
    assert store.get(HISTORY_KEY) is None


def test_out_of_range_progress_is_discarded():
    bad = {"level": 0, "xp": -5, "xpToNextLevel": 100}
    store = MemoryStore({PROGRESS_KEY: json.dumps(bad)})

    assert store.load_progress() == Progress()
    assert store.get(PROGRESS_KEY) is None


def test_history_with_a_malformed_entry_is_discarded():
    store = MemoryStore({HISTORY_KEY: json.dumps([attempt().to_dict(), {"phrase": "x"}])})
    assert store.load_history() == []


def test_history_that_is_not_a_list_is_discarded():
    store = MemoryStore({HISTORY_KEY: json.dumps({"phrase": "x"})})
    assert store.load_history() == []


def test_unsupported_language_falls_back():
    store = MemoryStore({PRACTICE_LANGUAGE_KEY: "klingon", FEEDBACK_LANGUAGE_KEY: "fr-FR"})

    assert store.load_language(PRACTICE_LANGUAGE_KEY) == "en-US"
    assert store.load_language(FEEDBACK_LANGUAGE_KEY) == "fr-FR"
    assert store.get(PRACTICE_LANGUAGE_KEY) is None


def test_empty_api_key_deletes_it(store):
    store.save_api_key("gsk_test")
    assert store.load_api_key() == "gsk_test"

    store.save_api_key("")
    assert store.get(API_KEY_KEY) is None


def test_clear_removes_every_key(store):
    store.save_progress(Progress(level=3))
    store.save_history([attempt()])
    store.save_language(PRACTICE_LANGUAGE_KEY, "de-DE")
    store.save_api_key("gsk_test")
    store.save_user(UserIdentity(id="1", name="A", email="a@example.com"))

    assert store.clear() is True
    for key in (HISTORY_KEY, PROGRESS_KEY, PRACTICE_LANGUAGE_KEY, API_KEY_KEY, USER_KEY):
        assert store.get(key) is None


def test_local_file_survives_restart(tmp_path):
    path = tmp_path / "state" / "speakcoach.json"
    first = DatabaseClient(data_path=path)
    assert first.initialize() is False
    first.save_progress(Progress(level=4, xp=7, xp_to_next_level=338))
    first.save_language(FEEDBACK_LANGUAGE_KEY, "it-IT")

    assert path.exists()
    second = open_database(data_path=path)
    assert second.load_progress() == Progress(level=4, xp=7, xp_to_next_level=338)
    assert second.load_language(FEEDBACK_LANGUAGE_KEY) == "it-IT"


def test_local_file_delete_is_persisted(tmp_path):
    path = tmp_path / "speakcoach.json"
    client = open_database(data_path=path)
    client.save_api_key("gsk_test")
    client.save_api_key(None)

    assert API_KEY_KEY not in json.loads(path.read_text(encoding="utf-8"))


def test_unreadable_local_file_starts_fresh(tmp_path):
    path = tmp_path / "speakcoach.json"
    path.write_text("this is not json", encoding="utf-8")

    client = open_database(data_path=path)

    assert client.load_progress() == Progress()
    client.save_progress(Progress(level=2))
    assert json.loads(path.read_text(encoding="utf-8"))[PROGRESS_KEY]


def test_missing_credentials_file_uses_local_store(tmp_path):
    client = DatabaseClient(data_path=tmp_path / "speakcoach.json")

    assert client.initialize(str(tmp_path / "missing.json")) is False
    assert client.is_connected() is False


def test_failed_local_write_leaves_no_temp_file(tmp_path, monkeypatch):
    path = tmp_path / "speakcoach.json"
    client = open_database(data_path=path)
    client.save_language(PRACTICE_LANGUAGE_KEY, "fr-FR")

    def disk_full(src, dst):
        raise OSError("No space left on device")

    monkeypatch.setattr("speakcoach.database.os.replace", disk_full)

    assert client.save_language(PRACTICE_LANGUAGE_KEY, "de-DE") is False
    assert [p.name for p in tmp_path.iterdir()] == ["speakcoach.json"]
    assert json.loads(path.read_text(encoding="utf-8"))[PRACTICE_LANGUAGE_KEY] == "fr-FR"


def fake_firestore(client):
    client.db = MagicMock()
    client._initialized = True
    return client.db


def test_firestore_writes_go_to_configured_document():
    client = DatabaseClient(document_id="my-laptop")
    db = fake_firestore(client)

    client.save_language(PRACTICE_LANGUAGE_KEY, "de-DE")

    db.collection.assert_called_with(config.FIREBASE_COLLECTION)
    db.collection.return_value.document.assert_called_with("my-laptop")
    db.collection.return_value.document.return_value.set.assert_called_with(
        {PRACTICE_LANGUAGE_KEY: "de-DE"}, merge=True
    )


def test_document_id_defaults_to_setting(monkeypatch):
    monkeypatch.setattr(config, "FIREBASE_DOCUMENT_ID", "family-pc")
    client = DatabaseClient()
    db = fake_firestore(client)

    client.save_api_key("gsk_test")

    db.collection.return_value.document.assert_called_with("family-pc")


def test_login_does_not_move_the_document():
    client = DatabaseClient(document_id="my-laptop")
    db = fake_firestore(client)

    AuthManager(client).login(jwt.encode({"sub": "42", "name": "Ana"}, "k", algorithm="HS256"))

    documents = {c.args[0] for c in db.collection.return_value.document.call_args_list}
    assert documents == {"my-laptop"}
