"""
api/session.py — multi-user in-memory sessions (cookie based)

Each browser gets a UUID session id; every session holds its own
independent attempt. Sessions expire after SESSION_TTL seconds without access.
"""

import threading
import time
import uuid
from typing import Any

from config import SESSION_TTL

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "attempt": None,   # MockTestSession
    }


def _drop(sid: str) -> None:
    # caller holds _lock
    attempt = _sessions.pop(sid).get("attempt")
    del _timestamps[sid]
    if attempt is not None:
        attempt.cancel_countdown()


def create_session() -> str:
    """Create a new session and return its id."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """Session data for an id. None if missing or expired."""
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > SESSION_TTL:
            _drop(sid)
            return None
        _timestamps[sid] = time.time()  # refresh on access
        return _sessions[sid]


def get(sid: str, key: str, default=None):
    """Read a value from a session."""
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    """Write a value into a session."""
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> Any:
    """Clear a session. Returns the previous attempt so the caller can stop it."""
    with _lock:
        if sid not in _sessions:
            return None
        previous = _sessions[sid].get("attempt")
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
        return previous


def cleanup_expired() -> int:
    """Drop expired sessions. Returns how many were removed."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for sid in expired:
            _drop(sid)
            removed += 1
    return removed
