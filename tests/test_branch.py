"""Tests for feature branch naming and creation."""

import re

import pytest

from epicrunner.core.branch import (
    MAX_SLUG_LENGTH,
    BranchManager,
    derive_branch_name,
    slugify,
)
from epicrunner.core.exceptions import BranchExistsError, SetupError
from epicrunner.core.git_utils import GitUtils


class TestSlugify:
    """Test title slugs."""

    def test_simple_title(self):
        assert slugify("Add user login") == "add-user-login"

    def test_punctuation_runs_collapse(self):
        assert slugify("Fix the $#@! bug!!") == "fix-the-bug"

    def test_leading_and_trailing_separators_stripped(self):
        assert slugify("  --Refactor: core--  ") == "refactor-core"

    def test_non_ascii_is_replaced(self):
        assert slugify("Café menü") == "caf-men"

    def test_truncated_to_max_length(self):
        slug = slugify("a" * 80)
        assert slug == "a" * MAX_SLUG_LENGTH

    def test_truncation_does_not_leave_trailing_hyphen(self):
        # Character 50 would be the separator between the words
        title = "x" * 49 + " tail"
        assert slugify(title) == "x" * 49

    def test_empty_title(self):
        assert slugify("") == ""
        assert slugify("!!!") == ""


class TestDeriveBranchName:
    """Test branch name derivation."""

    def test_prefix_is_epic_id(self):
        assert derive_branch_name("EP-1", "Fix the $#@! bug!!") == "EP-1-fix-the-bug"

    def test_deterministic(self):
        first = derive_branch_name("lb-42", "Improve search ranking")
        second = derive_branch_name("lb-42", "Improve search ranking")
        assert first == second == "lb-42-improve-search-ranking"

    def test_slug_part_matches_pattern(self):
        titles = ["Mixed CASE Title", "tabs\tand\nnewlines", "emoji 🚀 launch", "a" * 200]
        for title in titles:
            name = derive_branch_name("EP-7", title)
            assert name.startswith("EP-7-")
            slug = name[len("EP-7-"):]
            assert re.fullmatch(r"[a-z0-9]+(-[a-z0-9]+)*", slug)
            assert len(slug) <= MAX_SLUG_LENGTH

    def test_empty_slug_uses_epic_id(self):
        assert derive_branch_name("EP-9", "???") == "EP-9"


class TestBranchManagerWithFakes:
    """Test BranchManager decisions against the in-memory git fake."""

    def test_creates_new_branch(self, fake_git):
        manager = BranchManager(fake_git)

        created = manager.create_and_checkout("EP-1-add-login")

        assert created is True
        assert fake_git.current_branch == "EP-1-add-login"

    def test_existing_branch_raises(self, fake_git):
        fake_git.local_commits["EP-1-add-login"] = 3
        manager = BranchManager(fake_git)

        with pytest.raises(BranchExistsError, match="already exists"):
            manager.create_and_checkout("EP-1-add-login")
        assert fake_git.current_branch == "main"

    def test_branch_exists_error_is_setup_error(self):
        assert issubclass(BranchExistsError, SetupError)

    def test_existing_branch_reused_when_allowed(self, fake_git):
        fake_git.local_commits["EP-1-add-login"] = 3
        manager = BranchManager(fake_git, reuse_existing=True)

        created = manager.create_and_checkout("EP-1-add-login")

        assert created is False
        assert fake_git.current_branch == "EP-1-add-login"

    def test_already_on_branch_is_reused(self, fake_git):
        fake_git.local_commits["EP-1-add-login"] = 3
        fake_git.current_branch = "EP-1-add-login"
        manager = BranchManager(fake_git)

        assert manager.create_and_checkout("EP-1-add-login") is False


@pytest.mark.git
class TestBranchManagerWithGit:
    """Test BranchManager against a real repository."""

    def test_create_branch_from_head(self, git_repo):
        git = GitUtils(git_repo)
        head = git.get_current_commit()
        manager = BranchManager(git)

        assert manager.create_and_checkout("EP-1-add-login") is True

        assert git.get_current_branch() == "EP-1-add-login"
        assert git.get_current_commit() == head

    def test_second_create_fails_from_other_branch(self, git_repo):
        git = GitUtils(git_repo)
        manager = BranchManager(git)
        manager.create_and_checkout("EP-1-add-login")
        git.checkout("main")

        with pytest.raises(BranchExistsError):
            manager.create_and_checkout("EP-1-add-login")
        assert git.get_current_branch() == "main"
