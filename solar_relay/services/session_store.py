from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from solar_relay.config import get_settings


@dataclass(frozen=True)
class Session:
    """Credentials returned by one successful upstream login."""

    cookies: tuple[str, ...]
    csrf_token: str

    def cookie_header(self) -> str:
        return "; ".join(self.cookies)


@dataclass
class _Entry:
    session: Session
    stored_at: float


class SessionStore:
    """In-memory map of username -> Session.

    Keys are used exactly as supplied (case-sensitive). `put` always
    overwrites, so concurrent logins for one username end with whichever
    finished last. Entries never expire unless `ttl_seconds` is set.

    No lock: every handler runs on the same event loop and the store never
    awaits, so a reader sees either the old or the new entry.
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def get(self, username: str) -> Session | None:
        entry = self._entries.get(username)
        if entry is None or self._is_expired(entry, self._clock()):
            return None
        return entry.session

    def put(self, username: str, session: Session) -> None:
        now = self._clock()
        if self._ttl_seconds is not None:
            self._sweep(now)
        self._entries[username] = _Entry(session=session, stored_at=now)

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not self._is_expired(entry, now))

    def _is_expired(self, entry: _Entry, now: float) -> bool:
        if self._ttl_seconds is None:
            return False
        return now - entry.stored_at >= self._ttl_seconds

    def _sweep(self, now: float) -> None:
        expired = [name for name, entry in self._entries.items() if self._is_expired(entry, now)]
        for name in expired:
            del self._entries[name]


_store: SessionStore | None = None


def set_session_store(store: SessionStore | None) -> None:
    global _store
    _store = store


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        _store = SessionStore(ttl_seconds=get_settings().session_ttl_seconds)
    return _store
