# plate_inventory/session.py

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from .config import MAX_CAPTURE_SESSIONS, SESSION_TTL_SECONDS
from .exceptions import PendingPlateConflict, SessionNotFound
from .schemas import PendingPlate
from .store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class CaptureSession:
    """
    State of one capture workflow. The manifest snapshot is loaded once at
    start and never refreshed; manifest changes made elsewhere show up only
    in the next session.
    """
    id: str
    manifest: FrozenSet[str]
    created_at: datetime = field(default_factory=datetime.utcnow)
    pending: Optional[PendingPlate] = None
    processing: bool = False
    last_used: float = field(default_factory=time.monotonic)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @contextmanager
    def capturing(self):
        """One capture at a time, and none while a plate waits for a decision."""
        with self.lock:
            if self.processing:
                raise PendingPlateConflict("A capture is already being processed for this session")
            if self.pending is not None:
                raise PendingPlateConflict(
                    f"Plate {self.pending.plate_number} is waiting for confirmation; add or skip it first"
                )
            self.processing = True
        try:
            yield self
        finally:
            with self.lock:
                self.processing = False


class CaptureSessionRegistry:
    """
    In-process capture sessions, keyed by id. Sessions idle longer than
    `ttl_seconds` are dropped, and the least recently used ones are evicted
    once `max_sessions` is reached; both sweeps run when a session starts.
    """

    def __init__(self, ttl_seconds: float = SESSION_TTL_SECONDS, max_sessions: int = MAX_CAPTURE_SESSIONS):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._sessions: Dict[str, CaptureSession] = {}
        self._lock = threading.Lock()

    def _sweep(self) -> None:
        now = time.monotonic()
        expired = [sid for sid, s in self._sessions.items() if now - s.last_used > self.ttl_seconds]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Dropped {len(expired)} idle capture sessions")

        overflow = len(self._sessions) - self.max_sessions + 1
        if overflow > 0:
            oldest = sorted(self._sessions.values(), key=lambda s: s.last_used)[:overflow]
            for session in oldest:
                del self._sessions[session.id]
            logger.warning(f"Evicted {len(oldest)} capture sessions, limit is {self.max_sessions}")

    def start(self, store: RecordStore) -> CaptureSession:
        # ManifestFetchFailure propagates: no session means no scanning
        manifest = store.load_manifest()
        session = CaptureSession(id=uuid.uuid4().hex, manifest=manifest)
        with self._lock:
            self._sweep()
            self._sessions[session.id] = session
        logger.info(f"Capture session {session.id} started with {len(manifest)} warehouse plates")
        return session

    def get(self, session_id: str) -> CaptureSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_used = time.monotonic()
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def end(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        logger.info(f"Capture session {session_id} ended")

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


capture_sessions = CaptureSessionRegistry()
