"""Per-run execution context: identity plus the cancellation token."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from ..errors import WorkflowCancelledError


@dataclass
class ExecutionContext:
    """Context handed to every node invocation of a single run.

    The engine polls check() before invoking each node; cancellation is never
    preemptive inside a node.

    Attributes:
        run_id: Unique id of this run
        workflow_id: Id of the graph being executed (set by the executor)
        timeout: Seconds after creation before the run counts as timed out (None = no limit)
    """

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    workflow_id: str = ""
    timeout: Optional[float] = None
    _cancelled: bool = field(default=False, init=False, repr=False)
    _started_at: float = field(default_factory=time.monotonic, init=False, repr=False)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def timed_out(self) -> bool:
        if not self.timeout:
            return False
        return time.monotonic() - self._started_at >= self.timeout

    def check(self, node_id: Optional[str] = None) -> None:
        """Raise WorkflowCancelledError if the run was cancelled or timed out."""
        if self._cancelled:
            raise WorkflowCancelledError("cancelled", node_id)
        if self.timed_out:
            raise WorkflowCancelledError("timed out", node_id)
