# Overview: Optimistic local updates with a queue of remote patches to reconcile.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from ..errors import ShopLedgerError


@dataclass
class PendingPatch:
    """One remote write that backs an already-applied local change."""
    table: str
    row_id: str
    fields: dict
    apply: Callable[[], object]
    attempts: int = 0
    last_error: str | None = None


@dataclass
class ReconciliationQueue:
    """
    Holds remote patches for optimistic updates.

    flush() issues every queued patch independently: one failure does not stop
    the others. Failures are logged and the patch stays in `failed`; nothing is
    rolled back locally and nothing is retried automatically.
    """
    logger: logging.Logger
    pending: list[PendingPatch] = field(default_factory=list)
    failed: list[PendingPatch] = field(default_factory=list)

    def enqueue(self, patch: PendingPatch) -> None:
        self.pending.append(patch)

    def flush(self) -> int:
        """Returns the number of patches that were persisted."""
        batch, self.pending = self.pending, []
        persisted = 0
        for patch in batch:
            patch.attempts += 1
            try:
                patch.apply()
            except ShopLedgerError as exc:
                patch.last_error = str(exc)
                self.failed.append(patch)
                self.logger.warning(
                    "Failed to persist %s %s %s: %s",
                    patch.table, patch.row_id, patch.fields, exc,
                )
                continue
            persisted += 1
        return persisted

    def requeue_failed(self) -> int:
        count = len(self.failed)
        self.pending.extend(self.failed)
        self.failed = []
        return count
