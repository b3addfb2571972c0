"""Thread-safe progress counting for a running batch."""

import queue
import threading
import time
from typing import Callable, Optional

from ..core.logging_config import get_logger
from ..core.models import ProgressSnapshot
from ..core.protocols import ProgressSinkProtocol


def build_snapshot(
    processed: int, total: int, current_file: str, elapsed: float
) -> ProgressSnapshot:
    """Compute a snapshot after ``processed`` of ``total`` tasks finished."""
    percent = processed / total * 100 if total else 100.0
    rate = processed / elapsed if elapsed > 0 else 0.0
    remaining = elapsed / processed * (total - processed) if processed else 0.0
    return ProgressSnapshot(
        percent_complete=percent,
        processed=processed,
        total=total,
        current_file=current_file,
        elapsed=elapsed,
        estimated_remaining=remaining,
        rate=rate,
    )


class ProgressTracker:
    """
    Counts completed tasks and buffers snapshots for a progress sink.

    Workers call :meth:`advance` once per finished task. Snapshots go onto an
    unbounded queue, so workers never wait on the sink; the orchestrator
    thread delivers them with :meth:`drain`.
    """

    def __init__(
        self,
        total: int,
        keep_snapshots: bool = True,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.total = total
        self._keep_snapshots = keep_snapshots
        self._clock = clock
        self._start = clock()
        self._processed = 0
        self._lock = threading.Lock()
        self._snapshots: "queue.SimpleQueue[ProgressSnapshot]" = queue.SimpleQueue()

    @property
    def processed(self) -> int:
        with self._lock:
            return self._processed

    def advance(self, current_file: str) -> Optional[ProgressSnapshot]:
        """Record one completed task and return the resulting snapshot."""
        with self._lock:
            self._processed += 1
            processed = self._processed

        if not self._keep_snapshots:
            return None

        snapshot = build_snapshot(
            processed, self.total, current_file, self._clock() - self._start
        )
        self._snapshots.put(snapshot)
        return snapshot

    def drain(self, sink: ProgressSinkProtocol) -> int:
        """
        Deliver buffered snapshots to ``sink``.

        Progress is informational, so a failing sink is logged and the
        remaining snapshots are still delivered.

        Returns:
            Number of snapshots handed to the sink
        """
        delivered = 0
        while True:
            try:
                snapshot = self._snapshots.get_nowait()
            except queue.Empty:
                return delivered
            try:
                sink(snapshot)
            except Exception:  # noqa: BLE001
                get_logger("images-optimizer.orchestrator").warning(
                    "Progress sink raised; continuing", exc_info=True
                )
            delivered += 1
