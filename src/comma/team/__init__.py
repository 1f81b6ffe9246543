"""
Team configuration: shared templates and convention checks.
"""

from .config import (
    TeamConfig,
    TeamManager,
    TeamTemplate,
    detect_team_from_remote,
)

__all__ = [
    "TeamConfig",
    "TeamManager",
    "TeamTemplate",
    "detect_team_from_remote",
]
