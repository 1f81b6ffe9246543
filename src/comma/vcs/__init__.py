"""
Version control collaborator.

The git implementation lives in comma.vcs.git_repository and is imported
explicitly so that the pipeline does not require a git executable.
"""

from .models import (
    ChangedFile,
    ChangeSet,
    ChangeStats,
    RepositoryContext,
    VersionControl,
)

__all__ = [
    "ChangedFile",
    "ChangeSet",
    "ChangeStats",
    "RepositoryContext",
    "VersionControl",
]
