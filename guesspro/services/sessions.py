"""Live push-channel sessions.

A channel is anything with ``write(event, payload)`` and ``close()``; the
registry never depends on the transport that backs it.
"""
import logging
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

from guesspro.errors import CapacityExceeded
from guesspro.models import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, max_sessions: int = 1000, inactive_timeout: float = 120,
                 clock: Callable[[], float] = time.monotonic):
        self.max_sessions = max_sessions
        self.inactive_timeout = inactive_timeout
        self.clock = clock
        # Called with a session id for every session the sweep expires.
        # Defaults to plain removal; the app wires it to a full room departure.
        self.on_expire: Optional[Callable[[str], None]] = None
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.RLock()
        self._sweeping = False

    def create(self, session_id: str, gamer_id: str, display_name: str,
               room_id: Optional[str], channel) -> Session:
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                logger.error(
                    f"[session-cap] rejected session={session_id} count={len(self._sessions)} max={self.max_sessions}"
                )
                raise CapacityExceeded()
            session = Session(session_id, gamer_id, display_name, room_id, channel, now=self.clock())
            self._sessions[session_id] = session
            total = len(self._sessions)
        logger.info(f"[session-create] session={session_id} gamer={gamer_id} room={room_id} total={total}")
        return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[Session]:
        """Forget the session and close its channel. Returns the removed session."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            remaining = len(self._sessions)
        if session is None:
            logger.debug(f"[session-remove] session={session_id} not found")
            return None
        try:
            session.channel.close()
        except Exception as exc:
            logger.error(f"[session-close-failed] session={session_id} error={exc}")
        logger.info(f"[session-remove] session={session_id} gamer={session.gamer_id} remaining={remaining}")
        return session

    def heartbeat(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                # The sweep may already have reclaimed it
                logger.warning(f"[session-heartbeat] session={session_id} not found")
                return False
            session.last_active_at = self.clock()
        logger.debug(f"[session-heartbeat] session={session_id} gamer={session.gamer_id}")
        return True

    def for_room(self, room_id: str) -> List[Session]:
        with self._lock:
            return [s for s in self._sessions.values() if s.room_id == room_id]

    def detach_room(self, room_id: str) -> List[Session]:
        """Reset the room binding of every session bound to a torn-down room."""
        with self._lock:
            detached = [s for s in self._sessions.values() if s.room_id == room_id]
            for session in detached:
                session.room_id = None
        return detached

    def broadcast(self, room_id: str, event: str, payload: dict,
                  exclude: Iterable[str] = ()) -> int:
        """Write one event to every channel bound to ``room_id``.

        A failing channel is logged and skipped. Returns the number of
        successful writes.
        """
        skip = set(exclude)
        targets = [s for s in self.for_room(room_id) if s.session_id not in skip]
        sent = failed = 0
        for session in targets:
            try:
                session.channel.write(event, payload)
                sent += 1
            except Exception as exc:
                failed += 1
                logger.error(
                    f"[broadcast-failed] session={session.session_id} room={room_id} event={event} error={exc}"
                )
        logger.debug(f"[broadcast] room={room_id} event={event} sent={sent} failed={failed}")
        return sent

    def sweep(self) -> List[str]:
        """Expire every session idle for longer than ``inactive_timeout``."""
        now = self.clock()
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items()
                if now - s.last_active_at > self.inactive_timeout
            ]
        if expired:
            logger.info(f"[session-sweep] expiring count={len(expired)} sessions={expired}")
        for session_id in expired:
            if self.on_expire is not None:
                self.on_expire(session_id)
            else:
                self.remove(session_id)
        return expired

    def run_sweeper(self, socketio, interval: float) -> None:
        """Background loop; start with ``socketio.start_background_task``."""
        if self._sweeping:
            return
        self._sweeping = True
        logger.info(f"[session-sweeper] started interval={interval}s timeout={self.inactive_timeout}s")
        while self._sweeping:
            socketio.sleep(interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("[session-sweeper] sweep failed")

    def stop_sweeper(self) -> None:
        self._sweeping = False

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)
