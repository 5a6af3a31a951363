"""Call audit trail for the AIStor MCP server."""

from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock


class CallAuditWriter:
    """CSV writer for the per-call audit trail.

    Appends one row per dispatched operation, including rejected ones.
    Thread-safe with lazy file creation.
    """

    CSV_HEADERS = [
        "timestamp",
        "correlation_id",
        "tool",
        "tier",
        "latency_ms",
        "status",
        "error_kind",
    ]

    def __init__(self, csv_path: str | Path, enabled: bool = True):
        self.csv_path = Path(csv_path)
        self.enabled = enabled
        self._lock = Lock()
        self._initialized = False

    def _ensure_file(self) -> None:
        """Create CSV file with headers if needed."""
        if self._initialized:
            return

        self.csv_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.csv_path.exists():
            with open(self.csv_path, "w", newline="") as f:
                csv.DictWriter(f, fieldnames=self.CSV_HEADERS).writeheader()

        self._initialized = True

    def record(
        self,
        correlation_id: str,
        tool: str,
        tier: str,
        latency_ms: float,
        success: bool,
        error_kind: str | None = None,
    ) -> None:
        """Append a record to the audit CSV."""
        if not self.enabled:
            return

        row = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "correlation_id": correlation_id,
            "tool": tool,
            "tier": tier,
            "latency_ms": round(latency_ms, 2),
            "status": "ok" if success else "error",
            "error_kind": error_kind or "",
        }

        with self._lock:
            self._ensure_file()

            with open(self.csv_path, "a", newline="") as f:
                csv.DictWriter(f, fieldnames=self.CSV_HEADERS).writerow(row)
