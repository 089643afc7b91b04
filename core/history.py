# ================================
# file: core/history.py
# ================================
"""
Bounded, movement-gated history of (scan, pose) snapshots.
Used for the trajectory trail and for overlaying older scans.
"""
from __future__ import annotations
from typing import Iterator, List, Optional, Tuple
from collections import deque

from core.types import Snapshot
from core.config import (
    HISTORY_CAPACITY, HISTORY_DIST_SQ_THRESHOLD, HISTORY_HEADING_THRESHOLD
)


class HistoryBuffer:
    """Oldest-first ring of snapshots with a fixed capacity.

    - seed() once at startup so the buffer is never empty
    - offer() admits a candidate only if the robot moved or turned enough
      since the newest stored snapshot
    - one admission evicts at most one oldest entry
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY,
                 distance_threshold_sq: float = HISTORY_DIST_SQ_THRESHOLD,
                 heading_threshold: float = HISTORY_HEADING_THRESHOLD) -> None:
        if int(capacity) <= 0:
            raise ValueError(f"history capacity must be positive, got {capacity}")
        self._capacity = int(capacity)
        self.distance_threshold_sq = float(distance_threshold_sq)
        self.heading_threshold = float(heading_threshold)
        self._items: deque = deque()
        self._seeded = False
        self._next_seq = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(tuple(self._items))

    def _append(self, snap: Snapshot) -> None:
        # the stored entry is our own copy; the caller's candidate keeps seq -1
        self._items.append(snap._with_seq(self._next_seq))
        self._next_seq += 1
        if len(self._items) > self._capacity:
            self._items.popleft()

    def seed(self, snapshot: Snapshot) -> None:
        """Insert the first snapshot unconditionally."""
        if self._seeded:
            raise RuntimeError("history buffer already seeded")
        self._append(snapshot)
        self._seeded = True

    def offer(self, candidate: Snapshot,
              distance_threshold_sq: Optional[float] = None,
              heading_threshold: Optional[float] = None) -> bool:
        """Admit candidate if it moved or turned past a threshold.
        Returns True when admitted. Rejection is the normal idle case.
        """
        if not self._seeded:
            raise RuntimeError("history buffer must be seeded before offer()")
        d_th = self.distance_threshold_sq if distance_threshold_sq is None else float(distance_threshold_sq)
        h_th = self.heading_threshold if heading_threshold is None else float(heading_threshold)

        base = self._items[-1]._pose
        pose = candidate._pose
        moved = pose.distance_sq_to(base) > d_th
        turned = pose.heading_delta_to(base) > h_th
        if not (moved or turned):
            return False
        self._append(candidate)
        return True

    def snapshots(self) -> Tuple[Snapshot, ...]:
        return tuple(self._items)

    def newest(self) -> Snapshot:
        if not self._items:
            raise RuntimeError("history buffer is empty; seed() it first")
        return self._items[-1]

    def oldest(self) -> Snapshot:
        if not self._items:
            raise RuntimeError("history buffer is empty; seed() it first")
        return self._items[0]

    def poses_xy(self) -> List[Tuple[float, float]]:
        """Trail points, oldest-first."""
        return [s.xy for s in self._items]
