"""Tests for the tracker client and the open-task source."""

import subprocess
from unittest.mock import patch

import pytest

from epicrunner.core.exceptions import EpicNotFoundError, SetupError, TrackerError
from epicrunner.core.tracker import Epic, TaskSource, TrackerClient


def _completed(cmd, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


class TestTrackerClient:
    """Test TrackerClient command construction and parsing."""

    def setup_method(self):
        self.client = TrackerClient(command="lb", working_dir="/tmp")

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_list_with_parent_and_status(self, mock_run):
        mock_run.return_value = _completed(
            [], stdout="EP-1.1 open Login form\n\nEP-1.2 open Session store\n"
        )

        items = self.client.list_items(parent="EP-1", status="open")

        assert items == ["EP-1.1 open Login form", "EP-1.2 open Session store"]
        cmd = mock_run.call_args[0][0]
        assert cmd == ["lb", "list", "--parent", "EP-1", "-s", "open"]
        assert mock_run.call_args[1]["cwd"] == "/tmp"

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_failed_command_raises(self, mock_run):
        mock_run.return_value = _completed([], returncode=1, stderr="database locked")

        with pytest.raises(TrackerError, match="database locked"):
            self.client.list_items()

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_missing_cli(self, mock_run):
        mock_run.side_effect = FileNotFoundError()

        with pytest.raises(TrackerError, match="not found"):
            self.client.sync()

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_sync(self, mock_run):
        mock_run.return_value = _completed([])

        self.client.sync()

        assert mock_run.call_args[0][0] == ["lb", "sync"]

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_exists(self, mock_run):
        mock_run.return_value = _completed([], returncode=0)
        assert self.client.exists("EP-1") is True

        mock_run.return_value = _completed([], returncode=1)
        assert self.client.exists("EP-404") is False

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_get_title_from_first_line(self, mock_run):
        mock_run.return_value = _completed(
            [], stdout="EP-1 Add user login\nstatus: open\ntype: epic\n"
        )

        assert self.client.get_title("EP-1") == "Add user login"

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_get_title_empty_output(self, mock_run):
        mock_run.return_value = _completed([], stdout="")

        assert self.client.get_title("EP-1") == ""

    @patch("epicrunner.core.tracker.subprocess.run")
    def test_multi_word_command(self, mock_run):
        mock_run.return_value = _completed([])
        client = TrackerClient(command="uv run lb", working_dir="/tmp")

        client.sync()

        assert mock_run.call_args[0][0] == ["uv", "run", "lb", "sync"]


class TestTaskSource:
    """Test TaskSource against the in-memory tracker."""

    def test_load_epic(self, fake_tracker):
        epic = TaskSource(fake_tracker).load_epic("EP-1")

        assert epic == Epic(id="EP-1", title="Add user login")

    def test_load_unknown_epic_lists_items(self, fake_tracker):
        with pytest.raises(EpicNotFoundError) as exc_info:
            TaskSource(fake_tracker).load_epic("EP-404")

        error = exc_info.value
        assert isinstance(error, SetupError)
        assert error.epic_id == "EP-404"
        assert "EP-1 Add user login" in error.available_items

    def test_load_unknown_epic_with_broken_listing(self, fake_tracker, monkeypatch):
        def broken(*args, **kwargs):
            raise TrackerError("listing failed")

        monkeypatch.setattr(fake_tracker, "list_items", broken)

        with pytest.raises(EpicNotFoundError) as exc_info:
            TaskSource(fake_tracker).load_epic("EP-404")
        assert exc_info.value.available_items == []

    def test_remaining_open(self, fake_tracker):
        source = TaskSource(fake_tracker)

        assert source.remaining_open("EP-1") == 2
        fake_tracker.close_one("EP-1")
        assert source.remaining_open("EP-1") == 1

    def test_remaining_open_other_epic_is_zero(self, fake_tracker):
        assert TaskSource(fake_tracker).remaining_open("EP-2") == 0

    def test_failed_query_propagates(self, fake_tracker):
        fake_tracker.failing_open_queries = 1

        with pytest.raises(TrackerError):
            TaskSource(fake_tracker).remaining_open("EP-1")
