"""
Version control data model and collaborator interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


# Porcelain status codes grouped by the kind of file operation
ADDED_STATUSES = {"A", "??"}
DELETED_STATUSES = {"D"}
MODIFIED_STATUSES = {"M", "R", "C", "T", "U"}


@dataclass(frozen=True)
class ChangedFile:
    """A changed file and its short status code (A, M, D, R, ??)"""
    path: str
    status: str = ""

    @property
    def is_added(self) -> bool:
        return self.status in ADDED_STATUSES

    @property
    def is_deleted(self) -> bool:
        return self.status in DELETED_STATUSES

    @property
    def is_modified(self) -> bool:
        return self.status in MODIFIED_STATUSES


@dataclass(frozen=True)
class ChangeStats:
    """Size of a change set"""
    changed_files: int = 0
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class ChangeSet:
    """The diff and file list for one generation request"""
    diff_text: str
    files: Tuple[ChangedFile, ...] = ()

    @property
    def file_paths(self) -> List[str]:
        return [f.path for f in self.files]

    def stats(self) -> ChangeStats:
        """Count added/removed lines, skipping file header markers."""
        additions = 0
        deletions = 0
        for line in self.diff_text.split("\n"):
            if line.startswith("+") and not line.startswith("+++"):
                additions += 1
            elif line.startswith("-") and not line.startswith("---"):
                deletions += 1
        return ChangeStats(
            changed_files=len(self.files),
            additions=additions,
            deletions=deletions,
        )


@dataclass
class RepositoryContext:
    """Information about the repository used to enrich prompts"""
    repo_name: str = "unknown"
    branch: str = "unknown"
    last_commit_message: str = ""
    recent_messages: List[str] = field(default_factory=list)
    project_type: str = ""


class VersionControl(ABC):
    """
    Version control collaborator.

    Implementations raise VersionControlError (or CommitExecutionError from
    commit) on failure.
    """

    @abstractmethod
    def get_changed_diff(self, staged: bool = True) -> str:
        pass

    @abstractmethod
    def get_changed_files(self) -> List[ChangedFile]:
        pass

    @abstractmethod
    def get_repository_context(self) -> RepositoryContext:
        pass

    @abstractmethod
    def commit(self, message: str) -> None:
        pass

    def get_remote_url(self) -> Optional[str]:
        """URL of the origin remote, if any"""
        return None
