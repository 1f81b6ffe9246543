"""
Heuristic commit type classification.

Scores a change set against weighted regex tables to suggest a conventional
commit type and scope before the model is asked. The classifier is a pure
function of its inputs: it performs no I/O and never raises, degrading to an
empty suggestion list instead.
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Sequence, Tuple, Union

from ..vcs.models import ChangedFile

# Weight added per pattern occurrence in the diff body
CONTENT_WEIGHT = 0.3
# Weight added per (file, pattern) match on a changed path
FILE_WEIGHT = 0.2

ADDED_ONLY_BONUS = 0.3
DELETED_ONLY_BONUS = 0.3
MODIFIED_ONLY_BONUS = 0.2

# Normalized scores at or below this are dropped
MIN_CONFIDENCE = 0.1

SCOPE_MAJORITY = 0.5


def _compile(patterns: Dict[str, List[Tuple[str, int]]]) -> Dict[str, List[Pattern]]:
    return {
        commit_type: [re.compile(pattern, flags) for pattern, flags in entries]
        for commit_type, entries in patterns.items()
    }


_I = re.IGNORECASE

# Patterns matched against the diff body
CONTENT_PATTERNS = _compile({
    "feat": [
        (r"add(ed|ing)?\s+(new|feature)", _I),
        (r"(implement|create)\s+new", _I),
        (r"introduce", _I),
    ],
    "fix": [
        (r"fix(ed|ing)?", _I),
        (r"(correct|resolve)\s+(bug|issue|problem|error)", _I),
        (r"patch", _I),
    ],
    "docs": [
        (r"document", _I),
        (r"readme", _I),
        (r"\.md$", 0),
    ],
    "style": [
        (r"format", _I),
        (r"style", _I),
        (r"whitespace", _I),
        (r"indent", _I),
    ],
    "refactor": [
        (r"refactor", _I),
        (r"restructure", _I),
        (r"clean(up)?", _I),
        (r"simplif(y|ied)", _I),
    ],
    "test": [
        (r"test", _I),
        (r"spec", _I),
        (r"_test\.go$", 0),
        (r"test_.+\.py$", 0),
    ],
    "chore": [
        (r"chore", _I),
        (r"dependency", _I),
        (r"version bump", _I),
        (r"upgrade", _I),
        (r"package(-lock)?\.json$", 0),
        (r"go\.(mod|sum)$", 0),
    ],
})

# Patterns matched against each changed file path
FILE_PATTERNS = _compile({
    "feat": [
        (r"\.go$", 0),
        (r"\.py$", 0),
        (r"\.js$", 0),
        (r"\.ts$", 0),
        (r"\.rb$", 0),
        (r"\.java$", 0),
    ],
    "docs": [
        (r"\.md$", 0),
        (r"docs/", 0),
        (r"README", 0),
        (r"CONTRIBUTING", 0),
    ],
    "test": [
        (r"_test\.go$", 0),
        (r"test_.+\.py$", 0),
        (r"spec\.js$", 0),
        (r"/tests?/", 0),
    ],
    "chore": [
        (r"package(-lock)?\.json$", 0),
        (r"go\.(mod|sum)$", 0),
        (r"Makefile", 0),
        (r"Dockerfile", 0),
        (r"\.github/", 0),
    ],
})

RATIONALES = {
    "feat": "New functionality appears to be added",
    "fix": "Changes look like bug fixes",
    "docs": "Documentation files were modified",
    "style": "Code style or formatting changes",
    "refactor": "Code restructuring without functionality change",
    "test": "Test files were modified",
    "chore": "Maintenance changes to build or dependencies",
}


@dataclass
class Classification:
    """A suggested commit type with its normalized confidence"""
    type: str
    scope: str = ""
    confidence: float = 0.0
    rationale: str = ""


FileInput = Union[ChangedFile, str]


def _as_changed_files(files: Sequence[FileInput]) -> List[ChangedFile]:
    return [f if isinstance(f, ChangedFile) else ChangedFile(path=str(f)) for f in files]


def detect_scope(file_paths: Sequence[str]) -> str:
    """
    Find the top-level directory that holds a strict majority of the files.

    Root-level files count toward the total but never become a scope.

    Args:
        file_paths: Changed file paths

    Returns:
        Directory name, or "" when no directory covers more than half the files
    """
    if not file_paths:
        return ""

    counts = Counter(
        path.split("/", 1)[0]
        for path in file_paths
        if "/" in path.strip("/")
    )
    if not counts:
        return ""

    # most_common is stable, but ties cannot reach a strict majority anyway
    scope, count = counts.most_common(1)[0]
    if count > len(file_paths) * SCOPE_MAJORITY:
        return scope
    return ""


class Classifier:
    """
    Suggests commit types from a diff and its changed files.

    Example:
        classifier = Classifier(recent_messages=context.recent_messages)
        suggestions = classifier.classify(diff_text, change_set.files)
        if suggestions and suggestions[0].confidence > 0.6:
            hint = suggestions[0].type
    """

    def __init__(self, recent_messages: Optional[Sequence[str]] = None):
        # Kept for context; recent history does not influence the scores
        self.recent_messages = list(recent_messages or [])

    def classify(self, diff_text: str, files: Sequence[FileInput]) -> List[Classification]:
        """
        Classify a change set.

        Args:
            diff_text: Unified diff of the changes
            files: Changed files (ChangedFile, or bare paths with unknown status)

        Returns:
            Classifications with confidence > 0.1, highest first. Confidences
            sum to at most 1.0. Empty when there is nothing to go on.
        """
        if not diff_text or not files:
            return []

        changed = _as_changed_files(files)
        scores: Dict[str, float] = {t: 0.0 for t in CONTENT_PATTERNS}
        for commit_type in FILE_PATTERNS:
            scores.setdefault(commit_type, 0.0)

        for commit_type, patterns in CONTENT_PATTERNS.items():
            for pattern in patterns:
                matches = sum(1 for _ in pattern.finditer(diff_text))
                scores[commit_type] += CONTENT_WEIGHT * matches

        for changed_file in changed:
            for commit_type, patterns in FILE_PATTERNS.items():
                for pattern in patterns:
                    if pattern.search(changed_file.path):
                        scores[commit_type] += FILE_WEIGHT

        self._apply_operation_signals(changed, scores)

        total = sum(scores.values())
        if total <= 0:
            return []

        results = [
            Classification(
                type=commit_type,
                confidence=score / total,
                rationale=RATIONALES.get(commit_type, ""),
            )
            for commit_type, score in scores.items()
            if score / total > MIN_CONFIDENCE
        ]
        results.sort(key=lambda c: (-c.confidence, c.type))

        if results:
            results[0].scope = detect_scope([f.path for f in changed])

        return results

    @staticmethod
    def _apply_operation_signals(files: List[ChangedFile], scores: Dict[str, float]) -> None:
        """Bonus scores for purely additive, deleting, or modifying change sets."""
        added = sum(1 for f in files if f.is_added)
        deleted = sum(1 for f in files if f.is_deleted)
        modified = sum(1 for f in files if f.is_modified)

        if added and not modified and not deleted:
            scores["feat"] += ADDED_ONLY_BONUS
        elif deleted and not added:
            scores["refactor"] += DELETED_ONLY_BONUS
        elif modified and not added and not deleted:
            scores["fix"] += MODIFIED_ONLY_BONUS


def classify_changes(
    diff_text: str,
    files: Sequence[FileInput],
    recent_messages: Optional[Sequence[str]] = None
) -> List[Classification]:
    """Functional form of Classifier.classify."""
    return Classifier(recent_messages).classify(diff_text, files)
