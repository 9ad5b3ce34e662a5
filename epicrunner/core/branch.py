"""Feature branch naming and creation."""

import re

from .exceptions import BranchExistsError
from .git_utils import GitUtils

MAX_SLUG_LENGTH = 50

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Turn a free-form title into a lowercase, hyphen-separated slug.

    Examples:
        >>> slugify("Fix the $#@! bug!!")
        'fix-the-bug'
    """
    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")
    # Truncation can expose a hyphen at the cut point
    return slug[:max_length].rstrip("-")


def derive_branch_name(
    epic_id: str, title: str, max_slug_length: int = MAX_SLUG_LENGTH
) -> str:
    """Derive the feature branch name for an epic.

    Pure and deterministic: the same (epic_id, title) always yields the same
    name, so a re-run targets the same branch.

    Args:
        epic_id: Epic identifier, used as the prefix
        title: Epic title
        max_slug_length: Maximum length of the title part

    Returns:
        "<epic_id>-<slug>", or the epic id alone when the title has no
        alphanumeric characters
    """
    slug = slugify(title, max_slug_length)
    if not slug:
        return epic_id
    return f"{epic_id}-{slug}"


class BranchManager:
    """Creates the isolated line of work for a run."""

    def __init__(self, git: GitUtils, reuse_existing: bool = False):
        """Initialize branch manager.

        Args:
            git: Git utilities for the workspace
            reuse_existing: Check out an existing branch of the same name
                instead of failing
        """
        self.git = git
        self.reuse_existing = reuse_existing

    def derive_branch_name(self, epic_id: str, title: str) -> str:
        return derive_branch_name(epic_id, title)

    def create_and_checkout(self, name: str) -> bool:
        """Create the branch from HEAD and switch to it.

        Returns:
            True if a new branch was created, False if an existing one was reused

        Raises:
            BranchExistsError: If the branch exists and reuse is not allowed
        """
        if not self.git.branch_exists(name):
            self.git.create_branch(name)
            return True

        if self.git.get_current_branch() == name:
            return False

        if not self.reuse_existing:
            raise BranchExistsError(
                f"Branch '{name}' already exists. Delete it, or enable "
                "git.reuse_existing_branch to continue on it."
            )

        self.git.checkout(name)
        return False
