"""
Analytics Store

JSON file persistence for the three analytics tables: visitors, visitor
sessions and page views. All tables live in one document, analytics.json, so
a commit is a single os.replace and either every table changes or none does.

Writes go through transaction(), a unit of work that loads the document, lets
the caller mutate the in-memory snapshot and saves it only if the block
completes. An exclusive flock on a sibling lock file serializes writers across
threads and processes (server workers, the maintenance CLI). Readers use
snapshot() without locking.

Every transaction rewrites the whole document, so write cost grows with the
stored history.
"""

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional

from .errors import StoreError
from .models import PageView, Visitor, VisitorSession

logger = logging.getLogger(__name__)

DATA_FILE = "analytics.json"
LOCK_FILE = "analytics.lock"

VISITORS_TABLE = "visitors"
SESSIONS_TABLE = "visitor_sessions"
PAGE_VIEWS_TABLE = "page_views"
TABLES = (VISITORS_TABLE, SESSIONS_TABLE, PAGE_VIEWS_TABLE)


@dataclass
class AnalyticsSnapshot:
    """In-memory copy of all analytics tables."""

    visitors: Dict[str, Visitor] = field(default_factory=dict)
    sessions: Dict[str, VisitorSession] = field(default_factory=dict)
    page_views: List[PageView] = field(default_factory=list)

    def __post_init__(self):
        self._by_fingerprint: Dict[str, str] = {}
        for visitor in self.visitors.values():
            self._index_visitor(visitor)

    def _index_visitor(self, visitor: Visitor) -> None:
        existing = self._by_fingerprint.get(visitor.fingerprint)
        if existing is not None and existing != visitor.id:
            raise StoreError(f"Duplicate fingerprint {visitor.fingerprint}")
        self._by_fingerprint[visitor.fingerprint] = visitor.id

    def find_visitor(self, fingerprint: str) -> Optional[Visitor]:
        visitor_id = self._by_fingerprint.get(fingerprint)
        return self.visitors.get(visitor_id) if visitor_id else None

    def add_visitor(self, visitor: Visitor) -> None:
        self._index_visitor(visitor)
        self.visitors[visitor.id] = visitor

    def add_session(self, session: VisitorSession) -> None:
        if session.visitor_id not in self.visitors:
            raise StoreError(f"Session {session.id} references unknown visitor {session.visitor_id}")
        self.sessions[session.id] = session

    def add_page_view(self, page_view: PageView) -> None:
        if page_view.visitor_id not in self.visitors:
            raise StoreError(f"Page view references unknown visitor {page_view.visitor_id}")
        session = self.sessions.get(page_view.session_id)
        if session is None or session.visitor_id != page_view.visitor_id:
            raise StoreError(f"Page view references unknown session {page_view.session_id}")
        self.page_views.append(page_view)

    def sessions_for(self, visitor_id: str) -> List[VisitorSession]:
        """Sessions of a visitor, oldest first."""
        return sorted(
            (s for s in self.sessions.values() if s.visitor_id == visitor_id),
            key=lambda s: s.started_at
        )

    def latest_session(self, visitor_id: str) -> Optional[VisitorSession]:
        """Most recently started session of a visitor, in one pass."""
        latest = None
        for session in self.sessions.values():
            if session.visitor_id != visitor_id:
                continue
            if latest is None or session.started_at >= latest.started_at:
                latest = session
        return latest

    def open_sessions(self) -> List[VisitorSession]:
        return [s for s in self.sessions.values() if s.is_open]


class AnalyticsStore:
    """File-backed store for visitors, sessions and page views."""

    def __init__(self, data_dir: Path):
        """Initialize the analytics store.

        Args:
            data_dir: Directory holding the analytics document and its lock file
        """
        self.data_dir = Path(data_dir)
        self.data_file = self.data_dir / DATA_FILE
        self.lock_file = self.data_dir / LOCK_FILE
        self._lock = RLock()

        self._ensure_files_exist()

    def _ensure_files_exist(self):
        """Ensure the data directory and an empty document exist."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if not self.data_file.exists():
                with self._write_lock():
                    if not self.data_file.exists():
                        self._write_document({table: [] for table in TABLES})
        except OSError as e:
            raise StoreError(f"Cannot initialise analytics store in {self.data_dir}: {e}") from e

    @contextmanager
    def _write_lock(self) -> Iterator[None]:
        """Hold the exclusive writer lock shared by every process using data_dir."""
        with self._lock:
            with open(self.lock_file, "a", encoding="utf-8") as lock_handle:
                fcntl.flock(lock_handle, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_handle, fcntl.LOCK_UN)

    def _load_document(self) -> Dict[str, List[Dict[str, Any]]]:
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return {table: [] for table in TABLES}
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read {self.data_file.name}: {e}") from e

        if not isinstance(document, dict):
            raise StoreError(f"Corrupt {self.data_file.name}: expected an object of tables")
        tables = {}
        for table in TABLES:
            rows = document.get(table, [])
            if not isinstance(rows, list):
                raise StoreError(f"Corrupt table {table}: expected a list")
            tables[table] = rows
        return tables

    def _write_document(self, document: Dict[str, List[Dict[str, Any]]]) -> None:
        """Write to a temporary sibling, then swap it in with one os.replace."""
        tmp_path = self.data_file.with_name(f"{self.data_file.name}.{os.getpid()}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.data_file)
        except OSError:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

    def _load_snapshot(self) -> AnalyticsSnapshot:
        document = self._load_document()
        try:
            visitors = [Visitor.from_dict(row) for row in document[VISITORS_TABLE]]
            sessions = [VisitorSession.from_dict(row) for row in document[SESSIONS_TABLE]]
            page_views = [PageView.from_dict(row) for row in document[PAGE_VIEWS_TABLE]]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Corrupt analytics record: {e}") from e

        return AnalyticsSnapshot(
            visitors={v.id: v for v in visitors},
            sessions={s.id: s for s in sessions},
            page_views=page_views
        )

    def _save_snapshot(self, snapshot: AnalyticsSnapshot) -> None:
        """Save all tables in a single atomic commit."""
        document = {
            VISITORS_TABLE: [v.to_dict() for v in snapshot.visitors.values()],
            SESSIONS_TABLE: [s.to_dict() for s in snapshot.sessions.values()],
            PAGE_VIEWS_TABLE: [pv.to_dict() for pv in snapshot.page_views],
        }
        try:
            self._write_document(document)
        except OSError as e:
            raise StoreError(f"Cannot write analytics tables: {e}") from e

    def snapshot(self) -> AnalyticsSnapshot:
        """Load a read-only copy of all tables without taking the write lock."""
        return self._load_snapshot()

    @contextmanager
    def transaction(self) -> Iterator[AnalyticsSnapshot]:
        """Run a unit of work against the store.

        The writer lock is held for the whole block, so a transaction always
        loads the latest committed data and no other writer, in this process
        or another, can commit in between. Changes are saved only when the
        block exits without an exception.
        """
        with self._write_lock():
            snapshot = self._load_snapshot()
            yield snapshot
            self._save_snapshot(snapshot)
