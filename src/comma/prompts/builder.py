"""
Prompt builder - Renders commit message prompts from templates.

Templates use {{NAME}} placeholders (case-insensitive; the Go-style
{{ .Changes }} form is accepted too). Unknown placeholders are left as-is.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from ..commit.conventional import CommitType
from ..config import DEFAULT_TEMPLATE
from ..vcs.models import RepositoryContext

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\s*\.?(\w+)\s*\}\}")

# Recent commit messages listed in the prompt
RECENT_COMMITS_IN_PROMPT = 5


@dataclass
class PromptHint:
    """Suggested commit type and scope from classification"""
    commit_type: str = ""
    scope: str = ""

    def render(self) -> str:
        if not self.commit_type:
            return ""
        text = f"This change appears to be a {self.commit_type}"
        if self.scope:
            text += f" in the {self.scope} scope"
        return text + "."


def _first_line(message: str) -> str:
    return message.strip().split("\n", 1)[0]


class PromptBuilder:
    """
    Builds the prompt sent to the model.

    Example:
        builder = PromptBuilder(settings.template)
        prompt = builder.build(diff_text, context, commit_type="feat", commit_scope="api")
    """

    def __init__(self, template: Optional[str] = None):
        self.template = DEFAULT_TEMPLATE if template is None else template

    def _values(
        self,
        changes: str,
        context: RepositoryContext,
        hint: PromptHint,
        files: Sequence[str]
    ) -> Dict[str, str]:
        recent = context.recent_messages[:RECENT_COMMITS_IN_PROMPT]
        return {
            "CHANGES": changes,
            "REPO_NAME": context.repo_name,
            "BRANCH": context.branch,
            "LAST_COMMIT": _first_line(context.last_commit_message),
            "RECENT_COMMITS": "\n".join(f"- {_first_line(m)}" for m in recent),
            "PROJECT_TYPE": context.project_type,
            "COMMIT_TYPE": hint.commit_type,
            "COMMIT_SCOPE": hint.scope,
            "FILES": "\n".join(files),
        }

    @staticmethod
    def is_usable(template: str) -> bool:
        """A template is usable when it is non-empty and its braces balance."""
        if not template or not template.strip():
            return False
        return template.count("{{") == template.count("}}")

    def render(self, template: str, values: Dict[str, str]) -> str:
        """Substitute known placeholders; leave unknown ones untouched."""
        def substitute(match: re.Match) -> str:
            # {{ .Changes }} and {{changes}} both map onto CHANGES
            key = match.group(1).upper()
            if key in values:
                return values[key]
            logger.debug(f"Unknown template placeholder: {match.group(0)}")
            return match.group(0)

        return PLACEHOLDER_RE.sub(substitute, template)

    def build(
        self,
        changes: str,
        context: Optional[RepositoryContext] = None,
        commit_type: str = "",
        commit_scope: str = "",
        files: Sequence[str] = ()
    ) -> str:
        """
        Build the prompt for a change set.

        The type/scope hint is appended as a suggestion when the rendered
        template does not already mention the type.

        Args:
            changes: Diff text
            context: Repository context for template variables
            commit_type: Suggested commit type, or ""
            commit_scope: Suggested scope, or ""
            files: Changed file paths

        Returns:
            Prompt text
        """
        context = context or RepositoryContext()
        hint = PromptHint(commit_type, commit_scope)

        if not self.is_usable(self.template):
            logger.warning("Prompt template is empty or malformed, using fallback prompt")
            return self.build_fallback(changes, hint)

        prompt = self.render(self.template, self._values(changes, context, hint, files))

        if hint.commit_type and hint.commit_type not in prompt:
            prompt += f"\n\nHint: {hint.render()}"

        return prompt

    def build_fallback(self, changes: str, hint: PromptHint) -> str:
        """Simple prompt used when the template cannot be rendered."""
        sections = ["Generate a git commit message for the following changes:"]

        if hint.commit_type:
            sections.append(hint.render())

        type_lines = "\n".join(
            f"- {t.value}: {t.description}" for t in CommitType
        )
        sections.append(
            "Follow the conventional commit format: <type>(<scope>): <subject>\n"
            f"Types:\n{type_lines}"
        )
        sections.append(f"Changes:\n{changes}")

        return "\n\n".join(sections)
