"""
Commit message validation against team convention rules.

A rule is a regular expression searched against the whole message. Required
rules that do not match make the message invalid; optional rules only produce
notices. A rule with a malformed pattern is reported and skipped.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List

from .conventional import CONVENTIONAL_HEADER_PATTERN


@dataclass(frozen=True)
class ConventionRule:
    """A named regex check applied to commit messages"""
    name: str
    pattern: str
    required: bool = True
    error_message: str = ""
    description: str = ""

    @property
    def failure_message(self) -> str:
        return self.error_message or f"Commit message does not satisfy '{self.name}'"


@dataclass
class ValidationResult:
    """Result of commit message validation."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)

    def format_report(self) -> str:
        """Format validation report for display."""
        if self.valid and not self.errors and not self.notices:
            return "✅ Commit message follows team conventions"

        lines = []
        if self.valid:
            lines.append("✅ Commit message is valid (with suggestions):")
        else:
            lines.append("⚠️  Commit message does not follow team conventions:")

        for error in self.errors:
            lines.append(f"  - {error}")

        if self.notices:
            lines.append("Suggestions:")
            for notice in self.notices:
                lines.append(f"  - {notice}")

        return "\n".join(lines)


DEFAULT_CONVENTIONAL_RULE = ConventionRule(
    name="conventional-format",
    pattern=CONVENTIONAL_HEADER_PATTERN,
    required=True,
    error_message="Commit message must follow the format type(scope): description",
    description="Conventional Commits header",
)


def validate_commit_message(message: str, rules: Iterable[ConventionRule]) -> ValidationResult:
    """
    Validate a commit message against convention rules.

    Examples:
        >>> validate_commit_message("update stuff", [DEFAULT_CONVENTIONAL_RULE]).valid
        False
        >>> validate_commit_message("fix(auth): correct token refresh", [DEFAULT_CONVENTIONAL_RULE]).valid
        True

    Args:
        message: Commit message to check
        rules: Rules to apply, in order

    Returns:
        ValidationResult. No rules means valid with no errors.
    """
    result = ValidationResult(valid=True)

    for rule in rules:
        try:
            matched = re.search(rule.pattern, message) is not None
        except (re.error, TypeError) as e:
            result.errors.append(f"Error in check '{rule.name}': {e}")
            continue

        if matched:
            continue

        if rule.required:
            result.errors.append(rule.failure_message)
            result.valid = False
        else:
            result.notices.append(rule.failure_message)

    return result
