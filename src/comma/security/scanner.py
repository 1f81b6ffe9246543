"""
Sensitive data detection in diffs.

Only lines added by the diff are scanned. Findings are advisory: the scanner
never raises and never blocks generation.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Pattern, Tuple

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Severity of a finding."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class Finding:
    """A line that looks like it contains sensitive data"""
    kind: str
    severity: Severity
    line_content: str
    line_number: int
    suggestion: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.kind} at line {self.line_number}: {self.suggestion}"


@dataclass(frozen=True)
class SecretPattern:
    name: str
    regex: Pattern
    severity: Severity
    suggestion: str


def _pattern(name: str, regex: str, suggestion: str, flags: int = 0,
             severity: Severity = Severity.HIGH) -> SecretPattern:
    return SecretPattern(name, re.compile(regex, flags), severity, suggestion)


DEFAULT_PATTERNS: Tuple[SecretPattern, ...] = (
    _pattern(
        "AWS Key",
        r"AKIA[0-9A-Z]{16}",
        "Store AWS credentials using environment variables or AWS credential providers",
    ),
    _pattern(
        "Generic API Key",
        r"""(api|app)_(key|token|secret)\s*[=:]\s*['"][0-9a-zA-Z]{16,}['"]""",
        "Move API keys to environment variables or a secure vault",
        re.IGNORECASE,
    ),
    _pattern(
        "Password",
        r"""pass(word)?\s*[=:]\s*['"][^'"]{8,}['"]""",
        "Never hardcode passwords. Use configuration management or environment variables",
        re.IGNORECASE,
    ),
    _pattern(
        "Private Key",
        r"-----BEGIN( RSA| OPENSSH)? PRIVATE KEY-----",
        "Remove private keys from code. Store in a secure location outside the repository",
    ),
    _pattern(
        "Connection String",
        r"""(mongodb|redis|postgres|mysql)://[^\s'"]+""",
        "Move connection strings to environment variables or configuration files",
        re.IGNORECASE,
    ),
    _pattern(
        "IP Address",
        r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b",
        "Consider using hostnames instead of hardcoded IP addresses",
    ),
)


def _added_lines(diff_text: str):
    """Yield (1-based line number, content) for each line the diff adds."""
    for index, line in enumerate(diff_text.split("\n")):
        if line.startswith("+") and not line.startswith("+++"):
            yield index + 1, line[1:]


class SecretScanner:
    """
    Scans the added lines of a diff for credentials and other sensitive data.

    Example:
        findings = SecretScanner().scan(diff_text)
        for finding in findings:
            print(finding)
    """

    def __init__(self, patterns: Tuple[SecretPattern, ...] = DEFAULT_PATTERNS):
        self.patterns = patterns

    def scan(self, diff_text: str) -> List[Finding]:
        """
        Scan a diff.

        Returns:
            One finding per (added line, matching pattern), in line order
        """
        findings: List[Finding] = []
        if not diff_text:
            return findings

        for line_number, content in _added_lines(diff_text):
            for pattern in self.patterns:
                if pattern.regex.search(content):
                    findings.append(Finding(
                        kind=pattern.name,
                        severity=pattern.severity,
                        line_content=content,
                        line_number=line_number,
                        suggestion=pattern.suggestion,
                    ))

        if findings:
            logger.warning(f"Found {len(findings)} potential sensitive data issue(s) in changes")

        return findings


def scan_diff(diff_text: str) -> List[Finding]:
    """Scan a diff with the default patterns."""
    return SecretScanner().scan(diff_text)
