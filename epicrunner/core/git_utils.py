"""Git utilities for feature branches and publication."""

import subprocess
from pathlib import Path
from typing import Optional, Tuple

from .exceptions import GitOperationError


class GitUtils:
    """
    Utility class for the git operations used by an epic run.

    Provides safe wrappers around git commands for creating the feature
    branch, pushing it to the remote, and querying repository state.
    """

    def __init__(self, repo_path: Optional[Path] = None, remote: str = "origin"):
        """
        Initialize Git utilities.

        Args:
            repo_path: Path to git repository (default: current directory)
            remote: Name of the remote used for fetch and push
        """
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        self.remote = remote

        if not self.is_git_repo():
            raise GitOperationError(f"Not a git repository: {self.repo_path}")

    def _run_git(
        self, *args: str, check: bool = True, capture: bool = True
    ) -> Tuple[int, str, str]:
        """
        Run a git command.

        Args:
            args: Git command arguments
            check: Raise error on non-zero exit
            capture: Capture stdout/stderr

        Returns:
            Tuple of (returncode, stdout, stderr)

        Raises:
            GitOperationError: If command fails and check=True
        """
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise GitOperationError("Git command not found") from e
        except OSError as e:
            raise GitOperationError(f"Git operation failed: {e}") from e

        if check and result.returncode != 0:
            raise GitOperationError(
                f"Git command failed: git {' '.join(args)}\n"
                f"Error: {result.stderr}"
            )

        return result.returncode, result.stdout, result.stderr

    def is_git_repo(self) -> bool:
        """Check if the repository path is inside a git work tree."""
        returncode, _, _ = self._run_git(
            "rev-parse", "--git-dir", check=False, capture=True
        )
        return returncode == 0

    def get_current_branch(self) -> str:
        """
        Get the name of the current branch.

        Raises:
            GitOperationError: If not on a branch
        """
        _, stdout, _ = self._run_git("rev-parse", "--abbrev-ref", "HEAD")
        branch = stdout.strip()

        if branch == "HEAD":
            raise GitOperationError("Not currently on a branch (detached HEAD)")

        return branch

    def get_current_commit(self) -> str:
        """Get the current commit hash."""
        _, stdout, _ = self._run_git("rev-parse", "HEAD")
        return stdout.strip()

    def branch_exists(self, name: str) -> bool:
        """Check if a local branch exists."""
        returncode, _, _ = self._run_git(
            "show-ref", "--verify", "--quiet", f"refs/heads/{name}", check=False
        )
        return returncode == 0

    def remote_branch_exists(self, name: str) -> bool:
        """Check if the remote-tracking ref for a branch exists locally."""
        returncode, _, _ = self._run_git(
            "show-ref",
            "--verify",
            "--quiet",
            f"refs/remotes/{self.remote}/{name}",
            check=False,
        )
        return returncode == 0

    def create_branch(self, name: str) -> None:
        """
        Create a branch from HEAD and switch the working tree to it.

        Raises:
            GitOperationError: If the branch cannot be created
        """
        self._run_git("checkout", "-b", name)

    def checkout(self, ref: str) -> None:
        """
        Checkout a git reference.

        Raises:
            GitOperationError: If checkout fails
        """
        self._run_git("checkout", ref)

    def has_unpushed_commits(self, branch: str) -> bool:
        """
        Check whether a branch has commits its remote-tracking ref lacks.

        A branch that was never pushed always counts as unpushed.
        """
        if not self.remote_branch_exists(branch):
            return True

        _, stdout, _ = self._run_git(
            "rev-list", "--count", f"{self.remote}/{branch}..{branch}"
        )
        return int(stdout.strip() or "0") > 0

    def push(self, branch: str, set_upstream: bool = True) -> None:
        """
        Push a branch to the configured remote.

        Raises:
            GitOperationError: If push fails
        """
        args = ["push"]
        if set_upstream:
            args.append("-u")
        args.extend([self.remote, branch])
        self._run_git(*args)
