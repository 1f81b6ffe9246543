# tests/conftest.py
import os
import sys
from typing import List, Optional

import pytest

# Ensure src/ is on PYTHONPATH for tests run without installing
src_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, "src"))
if src_root not in sys.path:
    sys.path.insert(0, src_root)

from comma.errors import TransientProviderError  # noqa: E402
from comma.llm.provider import GenerationBackend  # noqa: E402
from comma.vcs.models import ChangedFile, RepositoryContext, VersionControl  # noqa: E402


class FakeBackend(GenerationBackend):
    """Backend returning (or raising) scripted outcomes in order."""

    def __init__(self, outcomes, name: str = "fake"):
        self.outcomes = list(outcomes)
        self.name = name
        self.calls = []
        self.closed = False

    async def generate(self, prompt: str, max_tokens: int) -> str:
        self.calls.append((prompt, max_tokens))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


class FakeVCS(VersionControl):
    def __init__(
        self,
        diff: str = "",
        files: Optional[List[ChangedFile]] = None,
        context: Optional[RepositoryContext] = None,
        remote: Optional[str] = None,
        commit_error: Optional[Exception] = None,
    ):
        self.diff = diff
        self.files = files or []
        self.context = context or RepositoryContext(repo_name="demo", branch="main")
        self.remote = remote
        self.commit_error = commit_error
        self.commits: List[str] = []

    def get_changed_diff(self, staged: bool = True) -> str:
        return self.diff

    def get_changed_files(self) -> List[ChangedFile]:
        return list(self.files)

    def get_repository_context(self) -> RepositoryContext:
        return self.context

    def commit(self, message: str) -> None:
        if self.commit_error is not None:
            raise self.commit_error
        self.commits.append(message)

    def get_remote_url(self) -> Optional[str]:
        return self.remote


def transient(message: str = "boom", status_code: int = 500) -> TransientProviderError:
    return TransientProviderError(message, provider="openai", status_code=status_code)


class SleepRecorder:
    """Drop-in for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
