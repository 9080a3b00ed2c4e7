from __future__ import annotations

import time
import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class McpSession:
    """Identity of one client session plus per-call scoping (trace id, deadline)."""

    session_id: str
    trace_id: str | None = None
    deadline_ts: float | None = None  # unix timestamp

    @classmethod
    def new(cls, trace_id: str | None = None) -> "McpSession":
        return cls(session_id=f"sess_{uuid.uuid4().hex}", trace_id=trace_id)

    def new_call(self, *, trace_id: str | None = None) -> "McpSession":
        """Create a per-tool-call session view with a fresh trace_id."""
        tid = trace_id or f"trace_{uuid.uuid4().hex}"
        return McpSession(session_id=self.session_id, trace_id=tid, deadline_ts=self.deadline_ts)

    def with_deadline(self, timeout_ms: int) -> "McpSession":
        """Return a session view whose tool calls must finish within `timeout_ms`."""
        if timeout_ms <= 0:
            deadline = time.time()
        else:
            deadline = time.time() + (timeout_ms / 1000.0)
        return McpSession(session_id=self.session_id, trace_id=self.trace_id, deadline_ts=deadline)

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None without one."""
        if self.deadline_ts is None:
            return None
        return max(0.0, self.deadline_ts - time.time())
