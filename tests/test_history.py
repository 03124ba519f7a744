from speakcoach.history import HISTORY_CAPACITY, HistoryStore, compute_stats
from speakcoach.models import AttemptResult, HistoryStats


def attempt(similarity, language="en-US", n=0):
    return AttemptResult(
        phrase=f"phrase {n}",
        spoken=f"spoken {n}",
        similarity=similarity,
        feedback="ok",
        timestamp=f"2025-10-20T15:{n % 60:02d}:00+00:00",
        language=language,
    )


def test_newest_attempt_comes_first(store):
    history = HistoryStore(store, capacity=20)
    history.add(attempt(10, n=1))
    history.add(attempt(20, n=2))

    assert [a.similarity for a in history.entries] == [20, 10]
    assert len(history) == 2


def test_capacity_drops_the_oldest(store):
    history = HistoryStore(store, capacity=20)
    for n in range(21):
        history.add(attempt(n, n=n))

    assert len(history) == 20
    assert history.entries[0].similarity == 20
    assert history.entries[-1].similarity == 1


def test_every_mutation_is_persisted(store):
    history = HistoryStore(store, capacity=20)
    history.add(attempt(75, n=1))

    reloaded = HistoryStore(store, capacity=20)
    reloaded.load()
    assert [a.similarity for a in reloaded.entries] == [75]

    history.clear()
    reloaded.load()
    assert len(reloaded) == 0


def test_load_truncates_oversized_history(store):
    store.save_history([attempt(n, n=n) for n in range(30)])

    history = HistoryStore(store, capacity=20)
    history.load()

    assert len(history) == 20
    assert history.entries[0].similarity == 0


def test_reset_does_not_write(store):
    history = HistoryStore(store, capacity=20)
    history.add(attempt(50))
    history.reset()

    assert len(history) == 0
    assert len(store.load_history()) == 1


def test_stats_of_empty_history():
    assert compute_stats([]) == HistoryStats()


def test_stats_aggregate():
    entries = [attempt(90, "pt-BR"), attempt(85), attempt(40, "unknown")]

    stats = compute_stats(entries)

    assert stats.total_practiced == 3
    assert stats.average_accuracy == 72      # 71.67
    assert stats.best_accuracy == 90
    assert stats.language_counts == {"pt-BR": 1, "en-US": 1, "unknown": 1}
    assert stats.timeline == [40, 85, 90]


def test_average_rounds_half_up():
    assert compute_stats([attempt(70), attempt(71)]).average_accuracy == 71


def test_timeline_keeps_ten_most_recent_oldest_first():
    entries = [attempt(score) for score in range(100, 85, -1)]   # newest first: 100..86

    stats = compute_stats(entries)

    assert stats.timeline == list(range(91, 101))


def test_capacity_is_fixed_at_twenty(store):
    history = HistoryStore(store, capacity=50)
    for n in range(25):
        history.add(attempt(n, n=n))

    assert history.capacity == HISTORY_CAPACITY == 20
    assert len(history) == 20
    assert len(store.load_history()) == 20


def test_default_capacity(store):
    assert HistoryStore(store).capacity == 20


def test_zero_capacity_keeps_nothing(store):
    history = HistoryStore(store, capacity=0)
    history.add(attempt(90))

    assert history.capacity == 0
    assert len(history) == 0
    assert store.load_history() == []
