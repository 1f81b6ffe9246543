"""
comma - commit message generation from staged changes.
"""

__version__ = "0.1.0"
