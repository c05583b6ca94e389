"""
Session Store - bounded per-user conversation history.

A session is the last K turns exchanged with a user plus the time of the
last write. Stores are plain read/write collaborators: ``get`` never fails
(a missing or unreadable record is an empty session) and ``put`` replaces
the whole turn list, last write wins.
"""
import hashlib
import json
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from owlpost.core.errors import ConfigurationError
from owlpost.core.logging import logger
from owlpost.utils.json_parser import safe_json_parse


USER = "user"
ASSISTANT = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """One message in a conversation's rolling history."""
    role: str
    content: str

    def __post_init__(self):
        if self.role not in (USER, ASSISTANT):
            raise ValueError(f"Invalid turn role: {self.role!r}")

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> 'Turn':
        return cls(role=data["role"], content=str(data.get("content", "")))


@dataclass(frozen=True)
class Session:
    """Snapshot of a user's conversation as read from a store."""
    user_id: str
    turns: Tuple[Turn, ...] = field(default_factory=tuple)
    last_active_at: Optional[datetime] = None

    @classmethod
    def empty(cls, user_id: str) -> 'Session':
        return cls(user_id=user_id)

    @property
    def is_empty(self) -> bool:
        return not self.turns


def trim_turns(turns: Sequence[Turn], max_turns: int) -> List[Turn]:
    """Keep the ``max_turns`` most recent turns, dropping the oldest first."""
    turns = list(turns)
    if max_turns <= 0:
        return []
    if len(turns) > max_turns:
        turns = turns[-max_turns:]
    return turns


def _turns_from_json(user_id: str, raw) -> Tuple[Turn, ...]:
    """Decode a stored turn list, skipping malformed entries."""
    if not isinstance(raw, list):
        return ()
    turns = []
    for item in raw:
        try:
            turns.append(Turn.from_dict(item))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"[SessionStore] Dropping malformed turn for {user_id}: {item!r}")
    return tuple(turns)


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


class SessionStore(ABC):
    """Keyed mapping from user id to a bounded list of turns."""

    name: str = "abstract"

    @abstractmethod
    def get(self, user_id: str) -> Session:
        """Return the user's session, or an empty one. Never raises."""
        pass

    @abstractmethod
    def put(
        self,
        user_id: str,
        turns: Sequence[Turn],
        last_active_at: Optional[datetime] = None,
    ) -> None:
        """Replace the user's turns (upsert, last write wins)."""
        pass


class InMemorySessionStore(SessionStore):
    """Process-local store. Suitable for tests and single-process deployments."""

    name = "memory"

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Session:
        with self._lock:
            return self._sessions.get(user_id) or Session.empty(user_id)

    def put(self, user_id, turns, last_active_at=None) -> None:
        session = Session(
            user_id=user_id,
            turns=tuple(turns),
            last_active_at=last_active_at or _utcnow(),
        )
        with self._lock:
            self._sessions[user_id] = session

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


class JsonFileSessionStore(SessionStore):
    """One JSON document per user under a directory."""

    name = "file"

    def __init__(self, directory):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path_for(self, user_id: str) -> Path:
        # User ids come from chat platforms; hash them into safe file names
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, user_id: str) -> Session:
        path = self._path_for(user_id)
        if not path.exists():
            return Session.empty(user_id)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"[SessionStore] Could not read session file {path}: {e}")
            return Session.empty(user_id)

        if not isinstance(data, dict):
            logger.error(f"[SessionStore] Unexpected session document in {path}")
            return Session.empty(user_id)

        return Session(
            user_id=user_id,
            turns=_turns_from_json(user_id, data.get("turns")),
            last_active_at=_parse_timestamp(data.get("last_active_at")),
        )

    def put(self, user_id, turns, last_active_at=None) -> None:
        path = self._path_for(user_id)
        document = {
            "user_id": user_id,
            "turns": [turn.to_dict() for turn in turns],
            "last_active_at": (last_active_at or _utcnow()).isoformat(),
        }
        tmp_path = path.with_suffix(f".{threading.get_ident()}.tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(document, f, ensure_ascii=False)
        os.replace(tmp_path, path)


class SqliteSessionStore(SessionStore):
    """Sessions table keyed by user id, upserted on every write."""

    name = "sqlite"

    def __init__(self, db_path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    user_id TEXT PRIMARY KEY,
                    context TEXT NOT NULL,
                    last_active TEXT NOT NULL
                )
            """)

    def get(self, user_id: str) -> Session:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT context, last_active FROM sessions WHERE user_id = ?",
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"[SessionStore] Session read failed for {user_id}: {e}")
            return Session.empty(user_id)

        if row is None:
            return Session.empty(user_id)

        context, last_active = row
        return Session(
            user_id=user_id,
            turns=_turns_from_json(user_id, safe_json_parse(context, fallback=[])),
            last_active_at=_parse_timestamp(last_active),
        )

    def put(self, user_id, turns, last_active_at=None) -> None:
        context = json.dumps([turn.to_dict() for turn in turns], ensure_ascii=False)
        last_active = (last_active_at or _utcnow()).isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO sessions (user_id, context, last_active)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    context = excluded.context,
                    last_active = excluded.last_active
            """, (user_id, context, last_active))


class CachedSessionStore(SessionStore):
    """Read-through cache in front of a durable store.

    The durable store stays the source of truth: every ``put`` writes
    through and drops the cached entry, so the next ``get`` re-reads it.
    A read that overlaps a write is returned but not cached.
    """

    def __init__(self, backend: SessionStore):
        self.backend = backend
        self.name = f"cached-{backend.name}"
        self._cache: Dict[str, Session] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Session:
        with self._lock:
            cached = self._cache.get(user_id)
            generation = self._generations.get(user_id, 0)
        if cached is not None:
            return cached

        session = self.backend.get(user_id)
        with self._lock:
            if self._generations.get(user_id, 0) == generation:
                self._cache[user_id] = session
        return session

    def put(self, user_id, turns, last_active_at=None) -> None:
        try:
            self.backend.put(user_id, turns, last_active_at)
        finally:
            self.invalidate(user_id)

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            self._cache.pop(user_id, None)
            self._generations[user_id] = self._generations.get(user_id, 0) + 1


class UserLockRegistry:
    """Per-user locks for serializing session read-modify-write cycles.

    Locks are reference counted so idle users do not accumulate entries.
    """

    def __init__(self):
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        with self._guard:
            lock, holders = self._locks.get(user_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[user_id] = (lock, holders + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, holders = self._locks[user_id]
                if holders <= 1:
                    del self._locks[user_id]
                else:
                    self._locks[user_id] = (lock, holders - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def create_session_store(config=None) -> SessionStore:
    """Build the session store selected in settings."""
    if config is None:
        from owlpost.core.config import settings as config

    backend = (config.session.backend or "memory").lower()
    if backend == "memory":
        store: SessionStore = InMemorySessionStore()
    elif backend == "file":
        store = JsonFileSessionStore(config.session_path)
    elif backend == "sqlite":
        store = SqliteSessionStore(config.session_path)
    else:
        raise ConfigurationError(f"Unknown session backend: {backend!r}")

    if config.session.cache_enabled:
        store = CachedSessionStore(store)

    logger.info(f"[SessionStore] Using {store.name} session store")
    return store
