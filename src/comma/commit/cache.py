"""
On-disk cache of generated commit messages.

Entries are keyed by the sha256 of the change text and stored one JSON file
per key. Concurrent writers of the same key are safe: each write goes to a
temp file that is renamed over the target, so the last writer wins and
readers never see a partial record.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from ..errors import CacheError
from ..vcs.models import ChangeStats

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
CACHE_SUFFIX = ".json"


@dataclass
class CacheEntry:
    """A cached commit message"""
    key: str
    message: str
    created_at: datetime
    provider: str = ""
    stats: ChangeStats = field(default_factory=ChangeStats)

    def to_record(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "created_at": self.created_at.isoformat(),
            "provider": self.provider,
            "stats": asdict(self.stats),
        }

    @classmethod
    def from_record(cls, key: str, record: Dict[str, Any]) -> "CacheEntry":
        """
        Build an entry from a decoded record.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        created_at = datetime.fromisoformat(record["created_at"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        message = record["message"]
        if not isinstance(message, str):
            raise ValueError(f"message must be a string, got {type(message).__name__}")

        stats = record.get("stats") or {}
        return cls(
            key=key,
            message=message,
            created_at=created_at,
            provider=str(record.get("provider", "")),
            stats=ChangeStats(
                changed_files=int(stats.get("changed_files", 0)),
                additions=int(stats.get("additions", 0)),
                deletions=int(stats.get("deletions", 0)),
            ),
        )


def fingerprint(change_text: str) -> str:
    """Cache key for a change text (sha256 hex digest)."""
    return hashlib.sha256(change_text.encode("utf-8")).hexdigest()


class CommitCache:
    """
    File-backed commit message cache with a time-to-live.

    Every failure (unreadable directory, corrupt record, failed write) is
    logged and treated as a miss or a no-op. The cache never raises into
    the generation pipeline.

    Example:
        cache = CommitCache(settings.cache_dir, ttl_seconds=settings.cache_ttl_seconds)
        entry = cache.get(diff_text)
        if entry is None:
            message = await generate(...)
            cache.set(diff_text, message, "openai", change_set.stats())
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        enabled: bool = True,
        clock: Callable[[], float] = time.time
    ):
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self._clock = clock

        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}{CACHE_SUFFIX}"

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def _is_stale(self, entry: CacheEntry) -> bool:
        age = self._clock() - entry.created_at.timestamp()
        return age > self.ttl_seconds

    def _record_lookup(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def _remove(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            # Another process got there first
            return False
        except OSError as e:
            logger.warning(f"Failed to remove cache file {path}: {e}")
            return False

    def _read(self, path: Path) -> Optional[CacheEntry]:
        """
        Read and decode one record.

        Returns:
            The entry, or None if the file does not exist

        Raises:
            CacheError: If the file cannot be read or decoded
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise CacheError(f"Failed to read cache file {path}: {e}") from e

        try:
            return CacheEntry.from_record(path.stem, record)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CacheError(f"Malformed cache entry {path.name}: {e}") from e

    def _load(self, path: Path) -> Optional[CacheEntry]:
        try:
            return self._read(path)
        except CacheError as e:
            logger.warning(f"Ignoring cache entry: {e}")
            return None

    def get(self, change_text: str) -> Optional[CacheEntry]:
        """
        Look up the message cached for change_text.

        Stale entries are deleted and reported as a miss.
        """
        if not self.enabled:
            return None

        key = fingerprint(change_text)
        path = self._path_for(key)
        entry = self._load(path)

        if entry is None:
            self._record_lookup(False)
            return None

        if self._is_stale(entry):
            logger.debug(f"Cache entry {key[:12]} expired")
            self._remove(path)
            self._record_lookup(False)
            return None

        logger.debug(f"Cache hit for {key[:12]}")
        self._record_lookup(True)
        return entry

    def set(
        self,
        change_text: str,
        message: str,
        provider: str = "",
        stats: Optional[ChangeStats] = None
    ) -> None:
        """Store message for change_text, replacing any existing entry."""
        if not self.enabled:
            return

        key = fingerprint(change_text)
        entry = CacheEntry(
            key=key,
            message=message,
            created_at=self._now(),
            provider=provider,
            stats=stats or ChangeStats(),
        )

        tmp_name = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key[:12]}-", suffix=".tmp", dir=str(self.cache_dir)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry.to_record(), f, indent=2)
            os.replace(tmp_name, self._path_for(key))
            tmp_name = None
            logger.debug(f"Cached message for {key[:12]}")
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write cache entry {key[:12]}: {e}")
        finally:
            if tmp_name is not None:
                self._remove(Path(tmp_name))

    def _entry_paths(self):
        try:
            return [p for p in self.cache_dir.iterdir() if p.suffix == CACHE_SUFFIX and p.is_file()]
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Failed to list cache directory {self.cache_dir}: {e}")
            return []

    def sweep(self) -> int:
        """
        Remove every stale entry in one pass.

        Corrupt records are removed as well.

        Returns:
            Number of entries removed
        """
        removed = 0
        for path in self._entry_paths():
            entry = self._load(path)
            if entry is None or self._is_stale(entry):
                if self._remove(path):
                    removed += 1

        if removed:
            logger.info(f"Removed {removed} stale cache entries")
        return removed

    def clear(self) -> int:
        """Remove all entries. Returns the number removed."""
        removed = sum(1 for path in self._entry_paths() if self._remove(path))
        with self._lock:
            self._hits = 0
            self._misses = 0
        return removed

    def stats(self) -> Dict[str, Any]:
        """Entry count and hit/miss counters for this instance."""
        with self._lock:
            hits = self._hits
            misses = self._misses

        total = hits + misses
        return {
            "entries": len(self._entry_paths()),
            "hits": hits,
            "misses": misses,
            "hit_rate": hits / total if total else 0.0,
        }
