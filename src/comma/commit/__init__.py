"""
Commit message conventions, validation and caching.

**Main Components:**
- **conventional**: Conventional commit types and header pattern
- **validator**: Team convention rule checks
- **cache**: On-disk cache of generated messages
"""

from .conventional import (
    CommitType,
    COMMIT_TYPE_NAMES,
    CONVENTIONAL_HEADER_PATTERN,
    is_conventional_commit,
)

from .validator import (
    ConventionRule,
    ValidationResult,
    DEFAULT_CONVENTIONAL_RULE,
    validate_commit_message,
)

from .cache import CacheEntry, CommitCache, fingerprint

__all__ = [
    # Conventional commits
    "CommitType",
    "COMMIT_TYPE_NAMES",
    "CONVENTIONAL_HEADER_PATTERN",
    "is_conventional_commit",
    # Validation
    "ConventionRule",
    "ValidationResult",
    "DEFAULT_CONVENTIONAL_RULE",
    "validate_commit_message",
    # Cache
    "CacheEntry",
    "CommitCache",
    "fingerprint",
]
