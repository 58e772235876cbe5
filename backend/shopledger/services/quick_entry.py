# Overview: Quick-entry controller; one-tap ledger writes with a one-slot undo/redo.

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional, Union

from ..errors import Result, ValidationError
from .ledger_service import LedgerStore, parse_amount
from shopledger.time_utils import to_utc_z, utcnow
"""
Quick Entry (authoritative)

States: IDLE -> SUBMITTING -> (SUCCESS | ERROR) -> IDLE

Last action is a tagged union:
- NoAction
- Undoable(draft, committed_id)   after a successful entry or redo
- Redoable(draft)                 after an undo

Transitions:
- instant_entry ok  : any -> Undoable(new draft, new id)   (previous slot discarded)
- instant_entry err : slot unchanged
- undo   (Undoable) : ledger delete       -> Redoable(draft)
- redo   (Redoable) : ledger add of draft -> Undoable(draft, NEW id)

A redo never resurrects the deleted row: ids and timestamps are fresh.
"""

IDLE = "idle"
SUBMITTING = "submitting"
SUCCESS = "success"
ERROR = "error"

QUICK_ENTRY_DESCRIPTION = "quick entry"


@dataclass(frozen=True)
class NoAction:
    mode = "none"


@dataclass(frozen=True)
class Undoable:
    draft: dict
    committed_id: str
    mode = "add"


@dataclass(frozen=True)
class Redoable:
    draft: dict
    mode = "delete"


LastAction = Union[NoAction, Undoable, Redoable]


@dataclass(frozen=True)
class Banner:
    kind: str  # success | error | undo
    message: str
    action: Optional[str]  # undo | redo | None
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "action": self.action,
            "expires_at": to_utc_z(self.expires_at),
        }


class QuickEntryController:

    def __init__(
        self,
        ledger: LedgerStore,
        logger: logging.Logger,
        *,
        banner_seconds: int = 6,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger = ledger
        self.logger = logger
        self.banner_seconds = banner_seconds
        self.clock = clock
        self.state = IDLE
        self.last_action: LastAction = NoAction()
        self._banner: Optional[Banner] = None
        self._guard = threading.Lock()

    # ------------------------------------------------------------------
    # Banner
    # ------------------------------------------------------------------

    def _show(self, kind: str, message: str, action: Optional[str] = None) -> None:
        self._banner = Banner(
            kind=kind,
            message=message,
            action=action,
            expires_at=self.clock() + timedelta(seconds=self.banner_seconds),
        )

    def status(self) -> Optional[Banner]:
        if self._banner is not None and self.clock() >= self._banner.expires_at:
            self._banner = None
        return self._banner

    def dismiss(self) -> None:
        self._banner = None

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def instant_entry(self, category: dict, amount) -> Optional[Result[dict]]:
        """
        Book `amount` against `category` in one tap.

        Returns None when ignored because a submission is already in flight.
        """
        if not self._guard.acquire(blocking=False):
            return None
        try:
            try:
                value = parse_amount(amount)
            except ValidationError as e:
                return Result.fail(e)

            self.state = SUBMITTING
            self._banner = None
            draft = {
                "type": category["type"],
                "category": category["name"],
                "amount": value,
                "description": QUICK_ENTRY_DESCRIPTION,
            }
            result = self._submit(dict(draft, timestamp=self.clock()))
            if not result.success:
                self.state = ERROR
                self._show("error", f"Could not save entry: {result.message}")
                return result

            row = result.data
            self.state = SUCCESS
            self.last_action = Undoable(draft=draft, committed_id=row["id"])
            self._show("success", f"{category.get('label') or category['name']}: {value} saved", action="undo")
            return Result.ok(row)
        finally:
            self.state = IDLE
            self._guard.release()

    def bulk_entry(self, type_: str, entries: dict[str, dict]) -> Optional[Result[list[dict]]]:
        """
        Book several categories at once: {category_name: {"amount": ..., "description": ...}}.

        Entries whose amount is blank, zero or negative are skipped. Does not
        touch the undo slot.
        """
        if not self._guard.acquire(blocking=False):
            return None
        try:
            drafts = []
            for name, entry in entries.items():
                try:
                    value = parse_amount(entry.get("amount"))
                except ValidationError:
                    continue
                drafts.append({
                    "type": type_,
                    "category": name,
                    "amount": value,
                    "description": entry.get("description") or None,
                })
            if not drafts:
                e = ValidationError("enter an amount for at least one category")
                self._show("error", str(e))
                return Result.fail(e)

            self.state = SUBMITTING
            self._banner = None
            now = self.clock()
            result = self.ledger.add_many([dict(d, timestamp=now) for d in drafts])
            if not result.success:
                self.state = ERROR
                self._show("error", f"Could not save entries: {result.message}")
                return result
            self.state = SUCCESS
            self._show("success", f"{len(result.data)} transactions saved")
            return result
        finally:
            self.state = IDLE
            self._guard.release()

    # ------------------------------------------------------------------
    # Undo / redo
    # ------------------------------------------------------------------

    def undo(self) -> Optional[Result[None]]:
        """Delete the last quick entry. Returns None while another write is in flight."""
        if not self._guard.acquire(blocking=False):
            return None
        try:
            action = self.last_action
            if not isinstance(action, Undoable):
                return Result.fail(ValidationError("nothing to undo"))

            self.state = SUBMITTING
            # The undo affordance is the confirmation.
            result = self.ledger.delete(action.committed_id, confirm=lambda _msg: True)
            if not result.success:
                self._show("error", f"Could not undo: {result.message}")
                return result

            self.last_action = Redoable(draft=action.draft)
            self._show("undo", "Entry removed", action="redo")
            return Result.ok()
        finally:
            self.state = IDLE
            self._guard.release()

    def redo(self) -> Optional[Result[dict]]:
        if not self._guard.acquire(blocking=False):
            return None
        try:
            action = self.last_action
            if not isinstance(action, Redoable):
                return Result.fail(ValidationError("nothing to redo"))

            self.state = SUBMITTING
            result = self._submit(dict(action.draft, timestamp=self.clock()))
            if not result.success:
                self._show("error", f"Could not redo: {result.message}")
                return result

            row = result.data
            self.last_action = Undoable(draft=action.draft, committed_id=row["id"])
            self._show("success", "Entry restored", action="undo")
            return Result.ok(row)
        finally:
            self.state = IDLE
            self._guard.release()

    def _submit(self, draft: dict) -> Result[dict]:
        result = self.ledger.add_many([draft])
        if not result.success:
            self.logger.warning("Quick entry for %s failed: %s", draft["category"], result.error)
            return result
        return Result.ok(result.data[0])

    def describe(self) -> dict:
        action = self.last_action
        banner = self.status()
        return {
            "state": self.state,
            "last_action": {
                "mode": action.mode,
                "committed_id": getattr(action, "committed_id", None),
                "draft": _draft_to_dict(getattr(action, "draft", None)),
            },
            "banner": banner.to_dict() if banner else None,
        }


def _draft_to_dict(draft: Optional[dict]) -> Optional[dict]:
    if draft is None:
        return None
    return {k: (str(v) if isinstance(v, Decimal) else v) for k, v in draft.items()}
