"""Tests for lenient loading, strict saving and startup cleanup."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from taskboard.storage.store import StorageError, cleanup_data_file, load_tasks, save_tasks


class TestLoadTasks:
    """load_tasks() never raises and drops malformed records."""

    def test_missing_file_creates_directory(self, data_file: Path) -> None:
        assert load_tasks(data_file) == []
        assert data_file.parent.is_dir()
        assert not data_file.exists()

    @pytest.mark.parametrize("content", ["", "   \n"])
    def test_blank_file(self, data_file: Path, content: str) -> None:
        data_file.parent.mkdir(parents=True)
        data_file.write_text(content)
        assert load_tasks(data_file) == []

    def test_corrupt_json_logged(self, data_file: Path, caplog: pytest.LogCaptureFixture) -> None:
        data_file.parent.mkdir(parents=True)
        data_file.write_text("[{not json")
        with caplog.at_level(logging.ERROR, logger="taskboard"):
            assert load_tasks(data_file) == []
        assert "Error loading tasks" in caplog.text

    def test_nesting_too_deep_reads_as_empty(
        self, data_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        data_file.parent.mkdir(parents=True)
        data_file.write_text("[" * 200_000 + "]" * 200_000)
        with caplog.at_level(logging.ERROR, logger="taskboard"):
            assert load_tasks(data_file) == []
        assert "Error loading tasks" in caplog.text

    @pytest.mark.parametrize("value", [{"tasks": []}, "tasks", 42, None])
    def test_non_array(self, seed, data_file: Path, value: object) -> None:
        seed(value)
        assert load_tasks(data_file) == []

    def test_round_trips_well_formed_records(self, seed, make_task, data_file: Path) -> None:
        tasks = [make_task(title="one"), make_task(title="two", dueDate=1_900_000_000_000)]
        seed(tasks)
        assert load_tasks(data_file) == tasks

    def test_record_missing_created_at_dropped(
        self, seed, make_task, data_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        good = make_task(title="good")
        bad = make_task(title="bad")
        del bad["createdAt"]
        seed([good, bad])
        with caplog.at_level(logging.WARNING, logger="taskboard"):
            assert load_tasks(data_file) == [good]
        assert "Skipping invalid task" in caplog.text

    @pytest.mark.parametrize(
        "overrides",
        [
            {"id": 7},
            {"title": None},
            {"completed": "yes"},
            {"completed": 1},
            {"createdAt": "yesterday"},
            {"createdAt": True},
        ],
    )
    def test_wrong_field_types_dropped(
        self, seed, make_task, data_file: Path, overrides: dict
    ) -> None:
        seed([make_task(**overrides)])
        assert load_tasks(data_file) == []

    def test_non_object_records_dropped(self, seed, make_task, data_file: Path) -> None:
        good = make_task()
        seed(["string", 3, None, [], good])
        assert load_tasks(data_file) == [good]

    def test_blank_title_dropped(
        self, seed, make_task, data_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blank = make_task(id="task_blank", title="   ")
        seed([blank])
        with caplog.at_level(logging.WARNING, logger="taskboard"):
            assert load_tasks(data_file) == []
        assert "empty title (ID: task_blank)" in caplog.text

    def test_title_trimmed_and_extras_dropped(self, seed, make_task, data_file: Path) -> None:
        seed([make_task(title="  padded  ", priority="high", dueDate="soon")])
        [task] = load_tasks(data_file)
        assert task["title"] == "padded"
        assert set(task) == {"id", "title", "completed", "createdAt"}

    def test_zero_due_date_kept(self, seed, make_task, data_file: Path) -> None:
        seed([make_task(dueDate=0)])
        assert load_tasks(data_file)[0]["dueDate"] == 0


class TestSaveTasks:
    """save_tasks() rejects the whole write if any record is malformed."""

    def test_writes_pretty_json(self, make_task, data_file: Path) -> None:
        task = make_task(title="Write report")
        save_tasks(data_file, [task])
        text = data_file.read_text()
        assert text.endswith("\n")
        assert json.loads(text) == [task]
        assert text.startswith("[\n  {\n")

    def test_creates_directory(self, make_task, data_file: Path) -> None:
        save_tasks(data_file, [make_task()])
        assert data_file.exists()

    def test_trims_titles(self, make_task, data_file: Path, read_file) -> None:
        save_tasks(data_file, [make_task(title="  spaced  ")])
        assert read_file()[0]["title"] == "spaced"

    def test_non_list_rejected(self, data_file: Path) -> None:
        with pytest.raises(StorageError, match="Tasks must be an array"):
            save_tasks(data_file, {"id": "a"})  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("record", "message"),
        [
            ("text", "Invalid task object"),
            ({"id": "", "title": "t", "completed": False, "createdAt": 1}, "valid id"),
            ({"id": "a", "title": 5, "completed": False, "createdAt": 1}, "title must be"),
            ({"id": "a", "title": "t", "completed": "no", "createdAt": 1}, "completed must be"),
            ({"id": "a", "title": "t", "completed": False}, "createdAt must be"),
            ({"id": "a", "title": "  ", "completed": False, "createdAt": 1}, "empty title"),
        ],
    )
    def test_bad_record_aborts_write(
        self, seed, make_task, data_file: Path, read_file, record: object, message: str
    ) -> None:
        existing = [make_task(title="kept")]
        seed(existing)

        with pytest.raises(StorageError, match=message):
            save_tasks(data_file, [make_task(), record])  # type: ignore[list-item]

        assert read_file() == existing

    def test_write_failure_wrapped(self, make_task, data_file: Path) -> None:
        with patch("taskboard.storage.store.atomic_write", side_effect=OSError("read-only")):
            with pytest.raises(StorageError, match="Failed to save tasks: read-only"):
                save_tasks(data_file, [make_task()])


class TestCleanupDataFile:
    def test_resaves_sanitized_collection(
        self, seed, make_task, data_file: Path, read_file
    ) -> None:
        good = make_task(title="  keep me ")
        seed([good, {"id": "broken"}, make_task(title="")])

        assert cleanup_data_file(data_file) == 1
        [saved] = read_file()
        assert saved["title"] == "keep me"

    def test_empty_collection_untouched(self, data_file: Path) -> None:
        assert cleanup_data_file(data_file) == 0
        assert not data_file.exists()

    def test_save_failure_returns_zero(self, seed, make_task, data_file: Path) -> None:
        seed([make_task()])
        with patch("taskboard.storage.store.atomic_write", side_effect=OSError("nope")):
            assert cleanup_data_file(data_file) == 0

    def test_unparseable_nesting_returns_zero(self, data_file: Path) -> None:
        data_file.parent.mkdir(parents=True)
        data_file.write_text("[" * 200_000 + "]" * 200_000)
        assert cleanup_data_file(data_file) == 0
