"""
Git implementation of the version control collaborator, built on GitPython.
"""

import logging
from pathlib import Path
from typing import List, Optional

import git
from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from ..errors import CommitExecutionError, VersionControlError
from .models import ChangedFile, RepositoryContext, VersionControl

logger = logging.getLogger(__name__)


# Marker files used to guess the project type, checked in order
PROJECT_MARKERS = [
    ("go.mod", "go"),
    ("package.json", "node"),
    ("pyproject.toml", "python"),
    ("setup.py", "python"),
    ("requirements.txt", "python"),
    ("Cargo.toml", "rust"),
    ("pom.xml", "java"),
    ("build.gradle", "java"),
    ("Gemfile", "ruby"),
    ("composer.json", "php"),
]

RECENT_MESSAGE_COUNT = 10


def detect_project_type(root: Path) -> str:
    """Guess the project type from marker files in the repository root."""
    for marker, project_type in PROJECT_MARKERS:
        if (root / marker).exists():
            return project_type
    return ""


def parse_porcelain_status(output: str) -> List[ChangedFile]:
    """
    Parse `git status --porcelain` output.

    Format: XY PATH or XY OLD -> NEW. The index column wins when both
    columns are set; renames keep the new path.
    """
    changes = []

    for line in output.split("\n"):
        if len(line) < 4:
            continue

        code = line[:2]
        path = line[3:].strip()

        if code == "??":
            status = "??"
        else:
            status = code[0] if code[0] != " " else code[1]

        if " -> " in path:
            path = path.split(" -> ", 1)[1]

        changes.append(ChangedFile(path=path.strip('"'), status=status))

    return changes


class GitRepository(VersionControl):
    """
    Git repository accessed through GitPython.

    Example:
        repo = GitRepository(".")
        diff = repo.get_changed_diff(staged=True)
    """

    def __init__(self, path: str = "."):
        """
        Open the repository containing path.

        Raises:
            VersionControlError: If path is not inside a git repository
        """
        try:
            self._repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise VersionControlError(f"Not a git repository: {path}") from e

        self.root = Path(self._repo.working_tree_dir or path)
        logger.debug(f"Opened git repository at {self.root}")

    def get_changed_diff(self, staged: bool = True) -> str:
        """Diff of staged changes (or of the working tree when staged=False)."""
        try:
            if staged:
                return self._repo.git.diff("--cached")
            return self._repo.git.diff()
        except GitCommandError as e:
            raise VersionControlError(f"Failed to get changes: {e}") from e

    def get_changed_files(self) -> List[ChangedFile]:
        try:
            output = self._repo.git.status("--porcelain")
        except GitCommandError as e:
            raise VersionControlError(f"Failed to get changed files: {e}") from e
        return parse_porcelain_status(output)

    def get_repository_context(self) -> RepositoryContext:
        """
        Collect repository name, branch and recent history.

        Missing pieces (detached HEAD, no commits yet) degrade to defaults.
        """
        context = RepositoryContext(
            repo_name=self.root.name,
            project_type=detect_project_type(self.root),
        )

        try:
            context.branch = self._repo.active_branch.name
        except TypeError:
            # Detached HEAD
            try:
                context.branch = f"(detached at {self._repo.head.commit.hexsha[:8]})"
            except ValueError:
                pass

        try:
            messages = [
                commit.message.strip()
                for commit in self._repo.iter_commits(max_count=RECENT_MESSAGE_COUNT)
            ]
        except (GitCommandError, ValueError):
            # No commits yet
            messages = []

        context.recent_messages = messages
        if messages:
            context.last_commit_message = messages[0]

        return context

    def commit(self, message: str) -> None:
        try:
            self._repo.git.commit("-m", message)
        except GitCommandError as e:
            raise CommitExecutionError(f"Failed to commit: {e.stderr or e}") from e

    def get_remote_url(self) -> Optional[str]:
        try:
            return self._repo.remotes.origin.url
        except (AttributeError, IndexError, ValueError, git.exc.GitError):
            return None
