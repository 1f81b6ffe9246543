"""
Audit trail of generation and commit events.

Events are appended as JSON lines to <config_dir>/audit/<YYYY-MM>-audit.log.
Recording is fire-and-forget: failures are logged and never raised.
"""

import getpass
import json
import logging
import socket
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

# Rough characters-per-token ratio used for usage estimates
CHARS_PER_TOKEN = 4


def estimate_tokens(prompt: str, message: str = "") -> int:
    """Approximate token usage of a request and its response."""
    return len(prompt + message) // CHARS_PER_TOKEN


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        # No login name in the environment or password database
        pass
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


@dataclass
class AuditEvent:
    """One audited action"""
    action: str
    status: str = STATUS_SUCCESS
    provider: str = ""
    repo_name: str = ""
    tokens_used: int = 0
    error: str = ""
    user: str = ""
    timestamp: Optional[datetime] = None

    def to_record(self) -> Dict[str, Any]:
        record = asdict(self)
        record["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        # Empty optional fields are omitted
        for key in ("provider", "repo_name", "tokens_used", "error"):
            if not record[key]:
                del record[key]
        return record


class AuditLogger:
    """
    Appends audit events to monthly JSON-lines files.

    Example:
        audit = AuditLogger(settings.audit_dir, enabled=settings.audit_logging)
        audit.record_event(AuditEvent(action="generate", provider="openai", tokens_used=120))
    """

    def __init__(
        self,
        audit_dir: Union[str, Path],
        enabled: bool = True,
        clock: Callable[[], float] = time.time
    ):
        self.audit_dir = Path(audit_dir)
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()

    def log_path_for(self, when: datetime) -> Path:
        return self.audit_dir / f"{when.strftime('%Y-%m')}-audit.log"

    def record_event(self, event: AuditEvent) -> None:
        """Append an event. Missing timestamp and user are filled in."""
        if not self.enabled:
            return

        if event.timestamp is None:
            event.timestamp = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        if not event.user:
            event.user = _default_user()

        path = self.log_path_for(event.timestamp)
        try:
            line = json.dumps(event.to_record())
            with self._lock:
                self.audit_dir.mkdir(parents=True, exist_ok=True)
                with open(path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write audit event '{event.action}': {e}")

    def usage_report(self, month: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Summarize one month of events.

        Returns:
            Dict with total_requests, total_tokens, avg_tokens, by_provider
            and errors
        """
        month = month or datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        path = self.log_path_for(month)

        total_requests = 0
        total_tokens = 0
        errors = 0
        by_provider: Dict[str, int] = {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                lines = f.readlines()
        except FileNotFoundError:
            lines = []
        except OSError as e:
            logger.warning(f"Failed to read audit log {path}: {e}")
            lines = []

        for line in lines:
            try:
                record = json.loads(line)
            except ValueError:
                continue
            if record.get("action") != "generate":
                continue

            total_requests += 1
            total_tokens += int(record.get("tokens_used", 0))
            if record.get("status") == STATUS_ERROR:
                errors += 1
            provider = record.get("provider") or "unknown"
            by_provider[provider] = by_provider.get(provider, 0) + 1

        return {
            "total_requests": total_requests,
            "total_tokens": total_tokens,
            "avg_tokens": total_tokens // total_requests if total_requests else 0,
            "by_provider": by_provider,
            "errors": errors,
        }
