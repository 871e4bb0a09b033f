"""Tests for launching the user's editor."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from commitguard.review.editor import editor_command, open_in_editor

PATH = Path("/repo/src/app.js")


class TestEditorCommand:
    def test_visual_wins_over_editor(self):
        command = editor_command(PATH, 12, {"VISUAL": "nvim", "EDITOR": "nano"})
        assert command == ["nvim", "+12", "/repo/src/app.js"]

    def test_code_family_uses_goto(self):
        command = editor_command(PATH, 5, {"EDITOR": "code --wait"})
        assert command == ["code", "--wait", "-g", "/repo/src/app.js:5"]

    def test_full_path_to_editor(self):
        command = editor_command(PATH, 3, {"EDITOR": "/usr/bin/vim"})
        assert command == ["/usr/bin/vim", "+3", "/repo/src/app.js"]

    def test_unknown_editor_gets_path_only(self):
        assert editor_command(PATH, 3, {"EDITOR": "gedit"}) == ["gedit", "/repo/src/app.js"]

    def test_falls_back_to_code_on_path(self):
        with patch("commitguard.review.editor.shutil.which", return_value="/usr/local/bin/code"):
            command = editor_command(PATH, 7, {})
        assert command == ["/usr/local/bin/code", "-g", "/repo/src/app.js:7"]

    def test_no_editor_available(self):
        with patch("commitguard.review.editor.shutil.which", return_value=None):
            assert editor_command(PATH, 7, {"EDITOR": "  "}) is None


class TestOpenInEditor:
    def test_returns_false_without_editor(self):
        with patch("commitguard.review.editor.shutil.which", return_value=None):
            assert open_in_editor(PATH, 1, environ={}) is False

    def test_successful_launch(self):
        process = MagicMock()
        process.wait.return_value = 0
        with patch("commitguard.review.editor.subprocess.Popen", return_value=process) as popen:
            assert open_in_editor(PATH, 4, timeout_ms=500, environ={"EDITOR": "vim"}) is True
        popen.assert_called_once_with(["vim", "+4", "/repo/src/app.js"])
        process.wait.assert_called_once_with(timeout=0.5)

    def test_still_running_counts_as_launched(self):
        process = MagicMock()
        process.wait.side_effect = subprocess.TimeoutExpired("vim", 0.5)
        with patch("commitguard.review.editor.subprocess.Popen", return_value=process):
            assert open_in_editor(PATH, 4, environ={"EDITOR": "vim"}) is True

    def test_nonzero_exit_is_failure(self):
        process = MagicMock()
        process.wait.return_value = 2
        with patch("commitguard.review.editor.subprocess.Popen", return_value=process):
            assert open_in_editor(PATH, 4, environ={"EDITOR": "vim"}) is False

    def test_missing_binary_is_failure(self):
        with patch("commitguard.review.editor.subprocess.Popen", side_effect=FileNotFoundError("vim")):
            assert open_in_editor(PATH, 4, environ={"EDITOR": "vim"}) is False
