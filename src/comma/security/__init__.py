"""
Sensitive data scanning for diffs.
"""

from .scanner import Finding, SecretScanner, Severity, scan_diff

__all__ = ["Finding", "SecretScanner", "Severity", "scan_diff"]
