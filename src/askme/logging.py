"""JSONL trace logging for debug requests."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    stage: str | None = None
    key_index: int | None = None
    model: str | None = None
    reason: str | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {} and v != []}


class JSONLLogger:
    """Logger that writes structured logs in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path,
        filename: str = "askme.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False, default=str) + "\n")

    def log(
        self,
        event: str,
        *,
        stage: str | None = None,
        key_index: int | None = None,
        model: str | None = None,
        reason: str | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            stage=stage,
            key_index=key_index,
            model=model,
            reason=reason,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_llm_request(
        self,
        stage: str,
        *,
        key_index: int,
        model: str,
        messages_count: int,
        has_tools: bool,
    ) -> None:
        """Log an upstream completion request."""
        self.log(
            "llm_request",
            stage=stage,
            key_index=key_index,
            model=model,
            messages_count=messages_count,
            has_tools=has_tools,
        )

    def log_key_rotation(self, from_index: int, to_index: int) -> None:
        self.log("key_rotation", from_index=from_index, to_index=to_index)

    def log_tool_call(self, tool_name: str, raw_arguments: str | None) -> None:
        self.log("tool_call", tool_name=tool_name, raw_arguments=raw_arguments)

    def log_tool_result(self, results: list[dict[str, Any]]) -> None:
        """Log which key paths resolved, without their values."""
        self.log(
            "tool_result",
            key_paths=[r["key_path"] for r in results],
            found=[r["found"] for r in results],
        )


def configure_logger(log_dir: str | Path | None, max_size_mb: float = 10.0) -> JSONLLogger | None:
    """Build the trace logger, or None when no directory is configured."""
    if log_dir is None:
        return None
    return JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
