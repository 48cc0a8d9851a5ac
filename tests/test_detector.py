import logging

import pytest

from filewatch.core.backup import BackupWriter
from filewatch.core.detector import ChangeDetector
from filewatch.core.hasher import hash_file
from filewatch.core.models import ChangeKind
from filewatch.errors import BackupError, HashingError


def backups(path):
    return BackupWriter().list_backups(path)


def test_first_tick_without_starting_backup_only_sets_baseline(watched, clock):
    detector = ChangeDetector(watched, clock=clock)

    assert detector.check() is None
    assert backups(watched) == []
    assert detector.fingerprint == hash_file(watched)


def test_starting_backup_on_first_tick(watched, clock):
    detector = ChangeDetector(watched, starting_backup=True, clock=clock)

    event = detector.check()

    assert event.kind is ChangeKind.STARTING
    assert event.previous is None
    assert [p.read_bytes() for p in backups(watched)] == [b"A"]
    assert detector.check() is None
    assert len(backups(watched)) == 1


def test_unchanged_file_creates_no_backup(watched, clock):
    detector = ChangeDetector(watched, clock=clock)
    detector.check()
    for _ in range(3):
        assert detector.check() is None
    assert backups(watched) == []


def test_rewriting_same_content_is_not_a_change(watched, clock):
    detector = ChangeDetector(watched, clock=clock)
    detector.check()
    watched.write_bytes(b"A")
    assert detector.check() is None


def test_one_change_creates_exactly_one_backup(watched, clock):
    detector = ChangeDetector(watched, clock=clock)
    detector.check()

    watched.write_bytes(b"changed content")
    event = detector.check()

    assert event.kind is ChangeKind.CHANGED
    assert event.artifact.path.read_bytes() == b"changed content"
    assert event.fingerprint == hash_file(watched)
    assert detector.check() is None
    assert len(backups(watched)) == 1


def test_a_b_b_a_scenario(watched, clock):
    detector = ChangeDetector(watched, clock=clock)

    assert detector.check() is None

    watched.write_bytes(b"B")
    assert detector.check() is not None
    assert [p.read_bytes() for p in backups(watched)] == [b"B"]

    assert detector.check() is None
    assert len(backups(watched)) == 1

    watched.write_bytes(b"A")
    assert detector.check() is not None
    assert [p.read_bytes() for p in backups(watched)] == [b"B", b"A"]


def test_backup_timestamps_increase(watched, clock):
    detector = ChangeDetector(watched, starting_backup=True, clock=clock)
    stamps = []
    for content in (b"1", b"2", b"3"):
        watched.write_bytes(content)
        stamps.append(detector.check().timestamp)
    assert stamps == sorted(stamps)
    assert stamps[0] == "20240309123045123"


def test_clock_going_backwards_does_not_reorder_backups(watched):
    from datetime import datetime, timezone

    times = iter([
        datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc),
        datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
    ])
    detector = ChangeDetector(watched, starting_backup=True, clock=lambda: next(times))
    first = detector.check()
    watched.write_bytes(b"B")
    second = detector.check()

    assert second.timestamp == first.timestamp
    names = [p.name for p in backups(watched)]
    assert names == [first.artifact.path.name, second.artifact.path.name]


def test_logs_starting_and_changed_lines(watched, clock, caplog):
    caplog.set_level(logging.INFO, logger="filewatch.core.detector")
    detector = ChangeDetector(watched, starting_backup=True, clock=clock)

    detector.check()
    watched.write_bytes(b"B")
    event = detector.check()

    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
    assert messages[0].startswith("Making a starting backup. 20240309123045123: 0x")
    assert messages[1] == f"File changed! {event.timestamp}: {event.fingerprint.hex}"
    assert len(event.fingerprint.hex) == 34


def test_quiet_suppresses_log_lines_but_still_backs_up(watched, clock, caplog):
    caplog.set_level(logging.INFO, logger="filewatch.core.detector")
    detector = ChangeDetector(watched, starting_backup=True, quiet=True, clock=clock)

    detector.check()
    watched.write_bytes(b"B")
    detector.check()

    assert [r for r in caplog.records if r.levelno >= logging.INFO] == []
    assert len(backups(watched)) == 2


def test_listeners_receive_events(watched, clock):
    seen = []
    detector = ChangeDetector(watched, clock=clock, listeners=[seen.append])
    detector.check()
    watched.write_bytes(b"B")
    event = detector.check()
    assert seen == [event]


def test_unreadable_file_is_fatal(watched, clock):
    detector = ChangeDetector(watched, clock=clock)
    detector.check()
    baseline = detector.fingerprint

    watched.unlink()
    with pytest.raises(HashingError) as excinfo:
        detector.check()

    assert "Unable to hash file" in str(excinfo.value)
    assert detector.fingerprint == baseline


def test_missing_file_on_first_tick_is_fatal(tmp_path, clock):
    detector = ChangeDetector(tmp_path / "missing.conf", starting_backup=True, clock=clock)
    with pytest.raises(HashingError):
        detector.check()
    assert detector.state.force_backup is True


def test_failed_backup_keeps_previous_fingerprint(watched, clock):
    class BrokenWriter(BackupWriter):
        def write(self, source, timestamp):
            raise BackupError(source, "nowhere", "disk full")

    detector = ChangeDetector(watched, writer=BrokenWriter(), clock=clock)
    detector.check()
    baseline = detector.fingerprint

    watched.write_bytes(b"B")
    with pytest.raises(BackupError):
        detector.check()
    assert detector.fingerprint == baseline
