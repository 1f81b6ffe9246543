"""
Heuristic analysis of change sets.
"""

from .classifier import Classification, Classifier, classify_changes, detect_scope

__all__ = ["Classification", "Classifier", "classify_changes", "detect_scope"]
