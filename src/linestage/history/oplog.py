"""Operation log — one JSON object per line, newest appended last."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

LOG_FILE = "operations.log"


@dataclass
class OperationLogEntry:
    timestamp: str
    operation: str
    details: str
    repo_path: str
    success: bool
    error: Optional[str] = None


class OperationLog:
    """Append-only log of staging attempts for one repository."""

    def __init__(self, repo_root: Path, directory: str = ".linestage") -> None:
        self.repo_root = repo_root
        self.path = repo_root / directory / LOG_FILE

    def log_operation(
        self,
        operation: str,
        details: str,
        success: bool,
        error: Optional[str] = None,
    ) -> OperationLogEntry:
        entry = OperationLogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            operation=operation,
            details=details,
            repo_path=str(self.repo_root),
            success=success,
            error=error,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def get_operation_logs(self, limit: Optional[int] = None) -> List[OperationLogEntry]:
        """Return logged entries, newest first."""
        if not self.path.is_file():
            return []

        entries: List[OperationLogEntry] = []
        with open(self.path, encoding="utf-8", errors="replace") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    entries.append(OperationLogEntry(**json.loads(line)))
                except (ValueError, TypeError):
                    logger.warning("Skipping unreadable entry at %s:%d", self.path, lineno)

        entries.reverse()
        if limit is not None:
            entries = entries[:limit]
        return entries
