"""Trace — lifecycle events for readiness and run attempts.

Every readiness transition and every run attempt produces a TraceEvent.
The TraceBus keeps them in memory and, when persistence is enabled,
appends them to ~/.devrate/traces/<session_id>.jsonl so `devrate trace`
works after the session has ended.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from devrate.config import settings
from devrate.utils import get_logger

logger = get_logger("trace")


class TraceEvent(BaseModel):
    """A single lifecycle event.

    event_type is one of: poll_tick, libs_ready, libs_timeout,
    editor_initializing, editor_failed, interactive, terminal_ready,
    terminal_failed, run_start, run_complete, run_stale, run_rejected,
    teardown.
    """

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str = Field(description="Ties this event to one orchestrator lifetime")
    event_type: str
    source: str = Field(description="Component that emitted it (e.g. 'readiness', 'runner')")
    payload: dict[str, Any] = Field(default_factory=dict)
    error: str = Field(default="")
    duration_ms: float = Field(default=0.0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SessionTrace(BaseModel):
    """All events of one session, in timestamp order."""

    session_id: str
    events: list[TraceEvent] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    total_duration_ms: float = 0.0
    success: bool = True
    started_at: datetime | None = None
    completed_at: datetime | None = None


class TraceBus:
    """In-memory event bus with optional JSONL persistence."""

    def __init__(self, trace_dir: Path | None = None, persist: bool = True) -> None:
        self._events: list[TraceEvent] = []
        self._trace_dir = trace_dir or settings.trace_dir
        self._persist = persist

    def emit(self, event: TraceEvent) -> None:
        self._events.append(event)
        if self._persist:
            self._write_to_file(event)

    def _write_to_file(self, event: TraceEvent) -> None:
        try:
            self._trace_dir.mkdir(parents=True, exist_ok=True)
            trace_file = self._trace_dir / f"{event.session_id}.jsonl"
            with trace_file.open("a", encoding="utf-8") as f:
                f.write(event.model_dump_json() + "\n")
        except OSError as e:
            # Tracing must never take the session down
            logger.warning("trace_write_failed", error=str(e))

    def get_trace(self, session_id: str) -> SessionTrace:
        """Assemble a session trace — memory first, then disk."""
        events = [e for e in self._events if e.session_id == session_id]
        if not events:
            events = self._load_from_file(session_id)

        events.sort(key=lambda e: e.timestamp)
        trace = SessionTrace(
            session_id=session_id,
            events=events,
            sources=sorted({e.source for e in events}),
        )
        if events:
            trace.started_at = events[0].timestamp
            trace.completed_at = events[-1].timestamp
            total = (trace.completed_at - trace.started_at).total_seconds() * 1000
            trace.total_duration_ms = round(total, 2)
            trace.success = not any(e.error for e in events)
        return trace

    def _load_from_file(self, session_id: str) -> list[TraceEvent]:
        trace_file = self._trace_dir / f"{session_id}.jsonl"
        if not trace_file.exists():
            return []
        events = []
        with trace_file.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    events.append(TraceEvent.model_validate_json(line))
        return events

    def list_traces(self, limit: int = 20) -> list[str]:
        """Recent session ids from persisted trace files (newest first)."""
        if not self._trace_dir.exists():
            return []
        files = sorted(
            self._trace_dir.glob("*.jsonl"),
            key=lambda f: f.stat().st_mtime,
            reverse=True,
        )
        return [f.stem for f in files[:limit]]

    def events_of(self, event_type: str) -> list[TraceEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def clear(self) -> None:
        self._events.clear()

    @property
    def event_count(self) -> int:
        return len(self._events)
