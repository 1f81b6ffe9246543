"""
Prompts module - Commit message prompt construction.
"""

from .builder import PromptBuilder, PromptHint


__all__ = [
    "PromptBuilder",
    "PromptHint",
]
