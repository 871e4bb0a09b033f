"""Tests for re-staging and committing applied fixes."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from commitguard.core.config import FixConfig
from commitguard.core.errors import GitError
from commitguard.core.git import Git
from commitguard.fix.recommit import Recommitter, ticket_from_branch


@pytest.fixture
def git() -> MagicMock:
    mock = MagicMock(spec=Git)
    mock.current_branch.return_value = "feature/PROJ-42-login-form"
    return mock


class TestTicketFromBranch:
    @pytest.mark.parametrize("branch, ticket", [
        ("feature/PROJ-42-login-form", "PROJ-42"),
        ("AB2-7", "AB2-7"),
        ("bugfix/ui-12-lowercase", "chore"),
        ("main", "chore"),
        ("", "chore"),
    ])
    def test_extracts_first_ticket(self, branch: str, ticket: str):
        assert ticket_from_branch(branch) == ticket


class TestRecommitter:
    def test_message_uses_branch_ticket(self, git: MagicMock):
        assert Recommitter(git).build_message(2) == "PROJ-42: apply commitguard fixes to 2 file(s)"

    def test_message_override(self, git: MagicMock):
        recommitter = Recommitter(git, FixConfig(commit_message="fix: tidy"))
        assert recommitter.build_message(3) == "fix: tidy"
        git.current_branch.assert_not_called()

    def test_branch_lookup_failure_falls_back_to_chore(self, git: MagicMock):
        git.current_branch.side_effect = GitError(["rev-parse"], 128, "fatal")
        assert Recommitter(git).build_message(1) == "chore: apply commitguard fixes to 1 file(s)"

    def test_recommit_stages_and_commits_with_hook_bypass(self, git: MagicMock):
        result = Recommitter(git).recommit(["src/a.js", "src/b.js"])

        assert result.success is True
        assert result.files == ["src/a.js", "src/b.js"]
        git.add.assert_called_once_with(["src/a.js", "src/b.js"])
        git.commit.assert_called_once_with(
            "PROJ-42: apply commitguard fixes to 2 file(s)",
            env={"COMMITGUARD_SKIP": "1"},
        )

    def test_commit_failure_is_reported(self, git: MagicMock):
        git.commit.side_effect = GitError(["commit"], 1, "nothing to commit")

        result = Recommitter(git).recommit(["src/a.js"])

        assert result.success is False
        assert "nothing to commit" in result.message
        assert result.commit_message.startswith("PROJ-42:")

    def test_restage_failure_skips_commit(self, git: MagicMock):
        git.add.side_effect = GitError(["add"], 128, "index.lock exists")

        result = Recommitter(git).recommit(["src/a.js"])

        assert result.success is False
        git.commit.assert_not_called()
