"""Shared pytest fixtures and utilities for epicrunner tests."""

import io
import subprocess
from pathlib import Path
from typing import Callable, Generator, List

import pytest
from rich.console import Console

from epicrunner.core.attempt_executor import AttemptExecutor
from epicrunner.core.branch import BranchManager
from epicrunner.core.tracker import TaskSource
from epicrunner.orchestrator.epic_runner import EpicRunner
from epicrunner.orchestrator.failure_tracker import FailureTracker
from epicrunner.orchestrator.sync_manager import SyncManager
from tests.mocks import FakeGit, FakeTracker, ScriptedAgent


def _git(*args: str, cwd: Path) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


# ============================================================================
# Git Fixtures
# ============================================================================


@pytest.fixture
def git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary git repository on branch ``main``.

    The repository is initialized with:
    - Git config (user.name and user.email)
    - Initial commit with README.md

    Yields:
        Path to the git repository
    """
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir(parents=True, exist_ok=True)

    _git("init", cwd=repo_path)
    _git("symbolic-ref", "HEAD", "refs/heads/main", cwd=repo_path)
    _git("config", "user.name", "Test User", cwd=repo_path)
    _git("config", "user.email", "test@example.com", cwd=repo_path)

    readme = repo_path / "README.md"
    readme.write_text("# Test Repository\n\nGenerated for testing.\n")
    _git("add", ".", cwd=repo_path)
    _git("commit", "-m", "Initial commit", cwd=repo_path)

    yield repo_path


@pytest.fixture
def git_repo_with_remote(git_repo: Path, tmp_path: Path) -> Generator[Path, None, None]:
    """Attach a bare repository as ``origin`` to ``git_repo``.

    Yields:
        Path to the working repository
    """
    remote_path = tmp_path / "remote.git"
    _git("init", "--bare", str(remote_path), cwd=tmp_path)
    _git("remote", "add", "origin", str(remote_path), cwd=git_repo)
    _git("push", "-u", "origin", "main", cwd=git_repo)

    yield git_repo


@pytest.fixture
def make_git_commit(git_repo: Path) -> Callable[..., None]:
    """Factory fixture for making git commits in the test repo."""

    def _make_commit(message: str, file_path: str = "work.txt", content: str = "test") -> None:
        file = git_repo / file_path
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(content)
        _git("add", file_path, cwd=git_repo)
        _git("commit", "-m", message, cwd=git_repo)

    return _make_commit


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def console() -> Console:
    """Console writing into memory; read it with ``console.file.getvalue()``."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_tracker() -> FakeTracker:
    """Tracker with epic EP-1 holding two open tasks."""
    return FakeTracker(
        epics={"EP-1": "Add user login"},
        open_tasks={"EP-1": ["EP-1.1", "EP-1.2"]},
    )


@pytest.fixture
def make_runner(
    fake_tracker: FakeTracker, fake_git: FakeGit, console: Console, tmp_path: Path
) -> Callable[..., EpicRunner]:
    """Factory building an EpicRunner around fakes and a scripted agent.

    The returned runner exposes the agent as ``runner.agent``.
    """

    def _make(
        outcomes: List[str],
        epic_id: str = "EP-1",
        threshold: int = 3,
        reuse_existing: bool = False,
        summaries_dir: Path = None,
        activity_logger=None,
        query_retry_delay: float = 0,
    ) -> EpicRunner:
        agent = ScriptedAgent(outcomes, fake_tracker, fake_git, epic_id)
        runner = EpicRunner(
            task_source=TaskSource(fake_tracker),
            branch_manager=BranchManager(fake_git, reuse_existing=reuse_existing),
            attempt_executor=AttemptExecutor(agent, log_dir=tmp_path / "logs"),
            sync_manager=SyncManager(fake_tracker, fake_git),
            failure_tracker=FailureTracker(threshold),
            console=console,
            activity_logger=activity_logger,
            summaries_dir=summaries_dir,
            run_id="test-run",
            query_retry_delay=query_retry_delay,
        )
        runner.agent = agent
        return runner

    return _make


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may be slower)"
    )
    config.addinivalue_line("markers", "git: mark test as requiring git operations")
