from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from i3_tracker.engine import SessionEngine
from i3_tracker.errors import WriteError
from i3_tracker.models import FocusChanged, FocusSnapshot, LogRecord, Shutdown, Tick

T0 = datetime(2026, 10, 18, 9, 0, 0)


class FakeClock:
    def __init__(self) -> None:
        self.now = T0

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


class FakeWriter:
    def __init__(self, fail: bool = False) -> None:
        self.records: list[LogRecord] = []
        self.flushes = 0
        self.fail = fail

    def append(self, record: LogRecord) -> None:
        if self.fail:
            raise WriteError("disk full")
        self.records.append(record)

    def flush(self) -> None:
        self.flushes += 1


class FakeTimer:
    def __init__(self) -> None:
        self.armed: list[int] = []

    def arm(self, token: int) -> None:
        self.armed.append(token)


def window(name: str, container_id: int = 1) -> FocusSnapshot:
    return FocusSnapshot(container_id=container_id, window_class="Term", window_title=name, workspace="1")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def writer() -> FakeWriter:
    return FakeWriter()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def engine(writer, timer, clock) -> SessionEngine:
    return SessionEngine(writer, timer, next_id=1, clock=clock)


def test_first_focus_opens_session_without_record(engine, writer, timer):
    engine.handle(FocusChanged(window("A")))

    assert engine.tracking
    assert writer.records == []
    assert timer.armed == [1]


def test_focus_changes_emit_one_less_record_than_events(engine, writer, clock):
    for index in range(6):
        engine.handle(FocusChanged(window(f"w{index}", index)))
        clock.advance(2)

    assert len(writer.records) == 5
    assert [r.record_id for r in writer.records] == [1, 2, 3, 4, 5]
    assert [r.snapshot.window_title for r in writer.records] == ["w0", "w1", "w2", "w3", "w4"]
    assert all(r.duration == timedelta(seconds=2) for r in writer.records)


def test_focus_change_arms_timer_with_new_next_id(engine, timer):
    engine.handle(FocusChanged(window("A")))
    engine.handle(FocusChanged(window("B")))
    engine.handle(FocusChanged(window("C")))

    assert timer.armed == [1, 2, 3]


def test_worked_example(engine, writer, clock):
    engine.handle(FocusChanged(window("A")))
    clock.advance(3)
    engine.handle(FocusChanged(window("B")))
    clock.advance(10)
    engine.handle(Tick(2))
    clock.advance(2)
    engine.handle(Shutdown())

    summary = [(r.record_id, r.snapshot.window_title, r.duration_seconds) for r in writer.records]
    assert summary == [(1, "A", 3), (2, "B", 10), (3, "B", 2)]
    assert sum(r.duration_seconds for r in writer.records if r.snapshot.window_title == "B") == 12
    assert writer.flushes == 1


def test_stale_tick_is_ignored(engine, writer, timer, clock):
    engine.handle(FocusChanged(window("A")))
    clock.advance(4)
    engine.handle(FocusChanged(window("B")))
    current = engine.current
    armed = list(timer.armed)

    for _ in range(20):
        clock.advance(10)
        engine.handle(Tick(1))

    assert len(writer.records) == 1
    assert engine.current is current
    assert engine.next_id == 2
    assert timer.armed == armed


def test_matching_tick_splits_session_with_same_snapshot(engine, writer, timer, clock):
    snapshot = window("editor")
    engine.handle(FocusChanged(snapshot))
    for _ in range(3):
        clock.advance(10)
        engine.handle(Tick(engine.next_id))
    clock.advance(7)
    engine.handle(FocusChanged(window("other", 2)))

    assert [r.record_id for r in writer.records] == [1, 2, 3, 4]
    assert all(r.snapshot is snapshot for r in writer.records)
    assert sum((r.duration for r in writer.records), timedelta()) == timedelta(seconds=37)
    assert [r.start_time for r in writer.records][1:] == [r.end_time for r in writer.records][:-1]
    assert timer.armed == [1, 2, 3, 4, 5]


def test_tick_before_any_focus_does_nothing(engine, writer, timer):
    engine.handle(Tick(1))

    assert not engine.tracking
    assert writer.records == []
    assert timer.armed == []


def test_shutdown_while_idle_writes_nothing(engine, writer):
    engine.handle(Shutdown())

    assert writer.records == []
    assert writer.flushes == 1
    assert engine.finished


def test_shutdown_is_terminal(engine, writer, clock):
    engine.handle(FocusChanged(window("A")))
    clock.advance(5)
    engine.handle(Shutdown())
    clock.advance(5)
    engine.handle(Tick(2))
    engine.handle(FocusChanged(window("B")))
    engine.handle(Shutdown())

    assert len(writer.records) == 1
    assert writer.records[0].duration_seconds == 5
    assert writer.flushes == 1
    assert not engine.tracking


def test_ids_resume_from_prior_run(writer, timer, clock):
    engine = SessionEngine(writer, timer, next_id=42, clock=clock)
    engine.handle(FocusChanged(window("A")))
    engine.handle(FocusChanged(window("B")))
    engine.handle(Shutdown())

    assert [r.record_id for r in writer.records] == [42, 43]


def test_write_failure_propagates(timer, clock):
    engine = SessionEngine(FakeWriter(fail=True), timer, clock=clock)
    engine.handle(FocusChanged(window("A")))

    with pytest.raises(WriteError):
        engine.handle(FocusChanged(window("B")))
    assert engine.next_id == 1


def test_unknown_event_rejected(engine):
    with pytest.raises(TypeError):
        engine.handle("focus")  # type: ignore[arg-type]


def test_default_clock_is_timezone_aware(writer, timer):
    engine = SessionEngine(writer, timer)
    engine.handle(FocusChanged(window("A")))
    engine.handle(Shutdown())

    (record,) = writer.records
    assert record.start_time.tzinfo is not None
    assert record.duration >= timedelta(0)
