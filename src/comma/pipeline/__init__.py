"""
Commit message generation pipeline.
"""

from .orchestrator import GenerationOptions, GenerationOrchestrator, GenerationResult

__all__ = ["GenerationOptions", "GenerationOrchestrator", "GenerationResult"]
