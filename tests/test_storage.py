# File: tests/test_storage.py
from datetime import datetime, timedelta, timezone

from pdf_scout.storage import create_run_directory, run_timestamp, unique_path

MOMENT = datetime(2024, 5, 1, 12, 30, 5, 123000, tzinfo=timezone.utc)


def test_run_timestamp_format():
    assert run_timestamp(MOMENT) == "2024-05-01T12-30-05-123Z"


def test_run_timestamp_converts_to_utc():
    local = MOMENT.astimezone(timezone(timedelta(hours=3)))
    assert run_timestamp(local) == "2024-05-01T12-30-05-123Z"


def test_create_run_directory_creates_root(tmp_path):
    root = tmp_path / "nested" / "downloads"
    run_dir = create_run_directory(root, clock=lambda: MOMENT)

    assert root.is_dir()
    assert run_dir == root / "2024-05-01T12-30-05-123Z"
    assert run_dir.is_dir()
    assert list(run_dir.iterdir()) == []


def test_runs_get_disjoint_directories(tmp_path):
    first = create_run_directory(tmp_path, clock=lambda: MOMENT)
    second = create_run_directory(tmp_path, clock=lambda: MOMENT)
    third = create_run_directory(tmp_path, clock=lambda: MOMENT + timedelta(milliseconds=1))

    assert len({first, second, third}) == 3
    assert second.name == "2024-05-01T12-30-05-123Z_1"
    assert third.name == "2024-05-01T12-30-05-124Z"


def test_unique_path_skips_existing_and_taken(tmp_path):
    (tmp_path / "a.pdf").write_bytes(b"")
    taken = {"a_1.pdf"}

    assert unique_path(tmp_path, "a.pdf", taken).name == "a_2.pdf"
    assert unique_path(tmp_path, "noext", taken).name == "noext"
    assert unique_path(tmp_path, "noext", taken).name == "noext_1"
    assert {"a_2.pdf", "noext", "noext_1"} <= taken
