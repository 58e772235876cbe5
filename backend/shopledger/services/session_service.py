# Overview: Application session state; local-admin flag and remote auth notifications.

"""
Session State

WHY: Every write path needs to know who the operator is (Transaction.created_by)
and whether the terminal is signed in at all. That knowledge lives in one
explicit AppSession object handed to each consumer, never in a module global.

Two inputs move the state, both through AppSession.apply():
- LocalFlagChecked: the device-local "local admin" flag read at startup
- RemoteSessionChanged: a notification from the auth channel

PRECEDENCE:
- The local admin bypass wins while the flag is set; it grants the admin role
  and books entries with created_by = NULL.
- Otherwise the latest remote notification decides.
"""

from __future__ import annotations

import hmac
import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import bcrypt

LOCAL_ADMIN_KEY = "local_admin"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class LocalFlagChecked:
    enabled: bool


@dataclass(frozen=True)
class RemoteSessionChanged:
    """operator None means the remote session is gone."""
    operator: Optional[str]
    role: str = "staff"


@dataclass(frozen=True)
class SessionSnapshot:
    authenticated: bool
    operator: Optional[str] = None
    role: Optional[str] = None
    local_admin: bool = False

    def to_dict(self) -> dict:
        return {
            "authenticated": self.authenticated,
            "operator": self.operator,
            "role": self.role,
            "local_admin": self.local_admin,
        }


SIGNED_OUT = SessionSnapshot(authenticated=False)
LOCAL_ADMIN = SessionSnapshot(authenticated=True, operator=None, role=ROLE_ADMIN, local_admin=True)


def transition(
    current: SessionSnapshot,
    event,
    *,
    remote: Optional[RemoteSessionChanged],
) -> SessionSnapshot:
    """
    Pure state transition; `remote` is the last remote notification seen.
    """
    if isinstance(event, LocalFlagChecked):
        if event.enabled:
            return LOCAL_ADMIN
        return _from_remote(remote)

    if isinstance(event, RemoteSessionChanged):
        if current.local_admin:
            return current
        return _from_remote(event)

    raise ValueError(f"unknown session event: {event!r}")


def _from_remote(remote: Optional[RemoteSessionChanged]) -> SessionSnapshot:
    if remote is None or not remote.operator:
        return SIGNED_OUT
    return SessionSnapshot(authenticated=True, operator=remote.operator, role=remote.role)


class LocalFlagStore:
    """Persistent device-local key/value flags kept in a small JSON file."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError:
                return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: bool = False) -> bool:
        with self._lock:
            return bool(self._read().get(key, default))

    def set(self, key: str, value: bool) -> None:
        with self._lock:
            data = self._read()
            data[key] = bool(value)
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(data, fh)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                with open(self.path, "w", encoding="utf-8") as fh:
                    json.dump(data, fh)


class AuthChannel:
    """Remote session-change notifications (publish/subscribe)."""

    def __init__(self):
        self._subscribers: list[Callable[[RemoteSessionChanged], None]] = []

    def subscribe(self, callback: Callable[[RemoteSessionChanged], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: RemoteSessionChanged) -> None:
        for callback in list(self._subscribers):
            callback(event)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


def hash_local_admin_password(password: str) -> str:
    """bcrypt hash for LOCAL_ADMIN_PASSWORD_HASH (cost factor 12)."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_local_admin(
    username, password, *, expected_username: str, password_hash: Optional[str]
) -> bool:
    """
    Check local admin credentials against the configured username and hash.

    Timing-safe: the username goes through hmac.compare_digest and the
    password through bcrypt.checkpw. Both are always evaluated.
    An unset or malformed hash never matches.
    """
    if not isinstance(username, str) or not isinstance(password, str):
        return False
    if not password_hash:
        return False
    name_ok = hmac.compare_digest(username.encode("utf-8"), expected_username.encode("utf-8"))
    try:
        password_ok = bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
    return name_ok and password_ok


class AppSession:
    """
    Who is operating this terminal.

    Consumers receive this object explicitly (LedgerStore, routes) and read
    `current`; only apply() changes it.
    """

    def __init__(self, flags: LocalFlagStore, logger: logging.Logger):
        self.flags = flags
        self.logger = logger
        self.current: SessionSnapshot = SIGNED_OUT
        self._remote: Optional[RemoteSessionChanged] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def apply(self, event) -> SessionSnapshot:
        if isinstance(event, RemoteSessionChanged):
            self._remote = event
        previous = self.current
        self.current = transition(previous, event, remote=self._remote)
        if self.current != previous:
            self._log_transition(previous)
        return self.current

    def start(self, channel: AuthChannel) -> SessionSnapshot:
        """Check the local flag, then follow remote notifications until detach()."""
        self._unsubscribe = channel.subscribe(self.apply)
        return self.apply(LocalFlagChecked(self.flags.get(LOCAL_ADMIN_KEY)))

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def enable_local_admin(self) -> SessionSnapshot:
        self.flags.set(LOCAL_ADMIN_KEY, True)
        return self.apply(LocalFlagChecked(True))

    def disable_local_admin(self) -> SessionSnapshot:
        self.flags.remove(LOCAL_ADMIN_KEY)
        return self.apply(LocalFlagChecked(False))

    def sign_out(self) -> SessionSnapshot:
        self.flags.remove(LOCAL_ADMIN_KEY)
        self.apply(LocalFlagChecked(False))
        return self.apply(RemoteSessionChanged(operator=None))

    @property
    def is_authenticated(self) -> bool:
        return self.current.authenticated

    @property
    def operator(self) -> Optional[str]:
        """created_by for new entries; None for the local admin bypass."""
        return self.current.operator

    def _log_transition(self, previous: SessionSnapshot) -> None:
        current = self.current
        if current.local_admin:
            self.logger.info("Session: local admin bypass active")
        elif current.authenticated:
            self.logger.info("Session: signed in as %s (%s)", current.operator, current.role)
        elif previous.authenticated:
            self.logger.info("Session: signed out")
