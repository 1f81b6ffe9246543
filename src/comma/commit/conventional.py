"""
Conventional commit vocabulary shared by prompts and validation.

A header looks like ``type(scope)!: subject``. The scope and the breaking
change marker are optional.
"""

import re
from enum import Enum


class CommitType(Enum):
    """Commit types the generator asks for and the classifier suggests."""

    FEAT = "feat"
    FIX = "fix"
    DOCS = "docs"
    STYLE = "style"
    REFACTOR = "refactor"
    TEST = "test"
    CHORE = "chore"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.value]


_DESCRIPTIONS = {
    "feat": "A new feature",
    "fix": "A bug fix",
    "docs": "Documentation only changes",
    "style": "Formatting or whitespace, no change in behavior",
    "refactor": "Restructured code that neither fixes a bug nor adds a feature",
    "test": "New or corrected tests",
    "chore": "Build, dependency or tooling maintenance",
}

COMMIT_TYPE_NAMES = [t.value for t in CommitType]

# Types outside the generated vocabulary that are still accepted in headers
EXTRA_HEADER_TYPES = ["perf", "build", "ci", "revert"]

CONVENTIONAL_HEADER_PATTERN = (
    r"^(" + "|".join(COMMIT_TYPE_NAMES + EXTRA_HEADER_TYPES) + r")(\([^)]+\))?!?: \S.*"
)

_HEADER_RE = re.compile(CONVENTIONAL_HEADER_PATTERN)


def is_conventional_commit(message: str) -> bool:
    """True if the first line of message is a conventional header."""
    if not message:
        return False
    header = message.strip().split("\n", 1)[0]
    return _HEADER_RE.match(header) is not None
