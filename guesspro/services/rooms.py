"""Room lifecycle: pending -> waiting <-> ready -> inProgress -> ended.

Create and join hand out a one-shot session id bound to a pending
membership. The membership only becomes a room member when the push
channel presenting that id opens (``confirm_join``); unconfirmed claims
expire on a timer so an abandoned join never occupies a room slot.

All state lives in process memory and is owned by ``RoomRegistry``.
Lock order is rooms -> sessions; ``SessionRegistry`` never calls back
into this class while holding its own lock.
"""
import logging
import threading
import uuid
from typing import Callable, Dict, Iterable, Optional

from guesspro.errors import (
    AlreadyJoined, InvalidSession, InvalidState, NoGuessesLeft, NoTarget,
    RoomFull, RoomNotFound, RoomUnavailable,
)
from guesspro.models import DIFFICULTIES, Gamer, Guess, PendingMembership, Player, Room, RoomStatus, utcnow
from guesspro.services.comparison import compare, is_correct_guess

logger = logging.getLogger(__name__)

JOINABLE = (RoomStatus.PENDING, RoomStatus.WAITING)
LOBBY = (RoomStatus.WAITING, RoomStatus.READY)


def _new_id() -> str:
    return str(uuid.uuid4())


class RoomRegistry:
    def __init__(self, sessions, directory, timers, guesses_per_gamer: int = 8,
                 max_gamers: int = 3, pending_timeout: float = 30,
                 id_factory: Callable[[], str] = _new_id):
        self.sessions = sessions
        self.directory = directory
        self.timers = timers
        self.guesses_per_gamer = guesses_per_gamer
        self.max_gamers = max_gamers
        self.pending_timeout = pending_timeout
        self._new_id = id_factory
        self._rooms: Dict[str, Room] = {}
        self._pending: Dict[str, PendingMembership] = {}
        # gamer id -> room id, confirmed members only
        self._gamer_rooms: Dict[str, str] = {}
        self._lock = threading.RLock()

    # ---- lookups ----

    def get(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    def require(self, room_id: Optional[str]) -> Room:
        room = self.get(room_id) if room_id else None
        if room is None:
            raise RoomNotFound()
        return room

    def get_pending(self, session_id: str) -> Optional[PendingMembership]:
        with self._lock:
            return self._pending.get(session_id)

    def room_of(self, gamer_id: str) -> Optional[str]:
        with self._lock:
            return self._gamer_rooms.get(gamer_id)

    def snapshot(self, room_id: str) -> dict:
        with self._lock:
            return self.require(room_id).to_dict()

    def count(self) -> int:
        with self._lock:
            return len(self._rooms)

    # ---- pending memberships ----

    def _issue_pending(self, room_id: str, gamer_id: str, display_name: str, is_host: bool) -> str:
        session_id = self._new_id()
        pending = PendingMembership(session_id, room_id, gamer_id, display_name, is_host=is_host)
        pending.timer = self.timers.call_later(self.pending_timeout, self._expire_pending, session_id, pending)
        self._pending[session_id] = pending
        return session_id

    def _expire_pending(self, session_id: str, pending: PendingMembership) -> None:
        with self._lock:
            # A confirm or teardown may have won the race
            if self._pending.get(session_id) is not pending:
                return
            del self._pending[session_id]
            logger.warning(
                f"[pending-expired] session={session_id} room={pending.room_id} gamer={pending.gamer_id} host={pending.is_host}"
            )
            if pending.is_host:
                room = self._rooms.get(pending.room_id)
                if room is not None:
                    self._teardown(room, reason='host-never-connected')

    def _cancel_pending(self, predicate) -> int:
        stale = [sid for sid, p in self._pending.items() if predicate(p)]
        for sid in stale:
            pending = self._pending.pop(sid)
            if pending.timer is not None:
                pending.timer.cancel()
        return len(stale)

    # ---- lifecycle ----

    def create(self, host_gamer_id: str, display_name: str, difficulty: str = 'all') -> dict:
        if difficulty not in DIFFICULTIES:
            difficulty = 'all'
        with self._lock:
            if host_gamer_id in self._gamer_rooms:
                logger.warning(f"[room-create-rejected] gamer={host_gamer_id} already in room={self._gamer_rooms[host_gamer_id]}")
                raise AlreadyJoined('Already in a room')
            room_id = self._new_id()
            self._rooms[room_id] = Room(room_id, host_gamer_id, difficulty)
            session_id = self._issue_pending(room_id, host_gamer_id, display_name, is_host=True)
            total = len(self._rooms)
        logger.info(
            f"[room-create] room={room_id} host={host_gamer_id} session={session_id} difficulty={difficulty} rooms={total}"
        )
        return {'roomId': room_id, 'sessionId': session_id}

    def join(self, room_id: str, gamer_id: str, display_name: str) -> dict:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                logger.warning(f"[room-join-rejected] room={room_id} gamer={gamer_id} reason=not-found")
                raise RoomNotFound()
            if room.status not in JOINABLE:
                logger.warning(f"[room-join-rejected] room={room_id} gamer={gamer_id} status={room.status}")
                raise RoomUnavailable()
            if len(room.gamers) >= self.max_gamers:
                logger.warning(f"[room-join-rejected] room={room_id} gamer={gamer_id} reason=full size={len(room.gamers)}")
                raise RoomFull()
            if gamer_id in room.gamers or gamer_id in self._gamer_rooms:
                logger.warning(f"[room-join-rejected] room={room_id} gamer={gamer_id} reason=already-joined")
                raise AlreadyJoined()
            session_id = self._issue_pending(room_id, gamer_id, display_name, is_host=False)
        logger.info(f"[room-join] room={room_id} gamer={gamer_id} session={session_id}")
        return {'roomId': room_id, 'sessionId': session_id, 'difficulty': room.difficulty}

    def confirm_join(self, session_id: str) -> PendingMembership:
        """Consume a pending membership and make its gamer a room member."""
        with self._lock:
            pending = self._pending.pop(session_id, None)
            if pending is None:
                logger.error(f"[confirm-rejected] session={session_id} reason=invalid-or-expired")
                raise InvalidSession()
            if pending.timer is not None:
                pending.timer.cancel()

            room = self._rooms.get(pending.room_id)
            if room is None:
                logger.error(f"[confirm-rejected] session={session_id} room={pending.room_id} reason=room-gone")
                raise RoomNotFound()
            if room.status not in (RoomStatus.PENDING,) + LOBBY:
                raise RoomUnavailable()
            if pending.gamer_id in self._gamer_rooms:
                raise AlreadyJoined()
            if len(room.gamers) >= self.max_gamers:
                raise RoomFull()

            room.gamers[pending.gamer_id] = Gamer(pending.gamer_id, pending.display_name, self.guesses_per_gamer)
            self._gamer_rooms[pending.gamer_id] = room.room_id
            previous = room.status
            if room.status == RoomStatus.PENDING:
                room.status = RoomStatus.WAITING
            else:
                self._refresh_readiness(room)
            logger.info(
                f"[confirm] room={room.room_id} gamer={pending.gamer_id} members={len(room.gamers)} status={previous}->{room.status}"
            )
        return pending

    def _refresh_readiness(self, room: Room) -> bool:
        # The host commits by starting, so only the other members gate readiness.
        # A host alone in the room stays waiting.
        if room.status not in LOBBY:
            return False
        others = [g for g in room.gamers.values() if g.gamer_id != room.host_gamer_id]
        all_ready = bool(others) and all(g.ready for g in others)
        status = RoomStatus.READY if all_ready else RoomStatus.WAITING
        if status != room.status:
            logger.info(f"[room-status] room={room.room_id} {room.status}->{status}")
            room.status = status
        return all_ready

    def set_ready(self, room_id: str, gamer_id: str, ready: bool) -> bool:
        """Set a member's ready flag. Returns True when every non-host member is ready.

        Unknown rooms or gamers return False instead of raising so stale
        client retries stay harmless. Once the game has started the flag is
        frozen and InvalidState is raised.
        """
        with self._lock:
            room = self._rooms.get(room_id)
            gamer = room.gamers.get(gamer_id) if room else None
            if gamer is None:
                logger.warning(f"[ready-ignored] room={room_id} gamer={gamer_id} reason=not-found")
                return False
            if room.status not in LOBBY:
                logger.warning(f"[ready-rejected] room={room_id} gamer={gamer_id} status={room.status}")
                raise InvalidState('Ready can only change before the game starts')
            gamer.ready = bool(ready)
            logger.info(f"[ready] room={room_id} gamer={gamer_id} ready={gamer.ready}")
            return self._refresh_readiness(room)

    def start_game(self, room_id: str) -> Player:
        """Pick the target and move the room to inProgress.

        Host permission is checked by the caller. Every non-host member
        must be ready; the host commits by starting.
        """
        with self._lock:
            room = self.require(room_id)
            if room.status not in LOBBY:
                logger.error(f"[start-rejected] room={room_id} status={room.status}")
                raise InvalidState('Cannot start game')
            waiting_on = [
                g.gamer_id for g in room.gamers.values()
                if g.gamer_id != room.host_gamer_id and not g.ready
            ]
            if waiting_on:
                logger.error(f"[start-rejected] room={room_id} not_ready={waiting_on}")
                raise InvalidState('Cannot start game: not every player is ready')
            target = self.directory.random_from(room.difficulty)
            room.target_player = target
            room.status = RoomStatus.IN_PROGRESS
            room.started_at = utcnow()
            logger.info(
                f"[game-start] room={room_id} difficulty={room.difficulty} target={target.id} members={len(room.gamers)}"
            )
            return target

    def process_guess(self, room_id: str, gamer_id: str, guessed_name: str) -> dict:
        with self._lock:
            room = self.require(room_id)
            if room.status != RoomStatus.IN_PROGRESS:
                logger.error(f"[guess-rejected] room={room_id} gamer={gamer_id} status={room.status}")
                raise InvalidState('Game not in progress')
            if room.target_player is None:
                logger.error(f"[guess-rejected] room={room_id} reason=target-missing")
                raise NoTarget()
            gamer = room.gamers.get(gamer_id)
            if gamer is None:
                raise InvalidSession('Not a member of this room')
            if gamer.guesses_remaining <= 0:
                logger.warning(f"[guess-rejected] room={room_id} gamer={gamer_id} reason=no-guesses-left")
                raise NoGuessesLeft()
            guessed = self.directory.find_by_name(guessed_name, room.difficulty)

            mask = compare(guessed, room.target_player)
            gamer.guesses_remaining -= 1
            gamer.guesses.append(Guess(guessed.id, mask))
            is_correct = is_correct_guess(guessed, room.target_player)

            if is_correct:
                room.winner_gamer_id = gamer_id
                room.status = RoomStatus.ENDED
                logger.info(f"[game-end] room={room_id} winner={gamer_id}")
            elif self._guesses_exhausted(room):
                room.status = RoomStatus.ENDED
                logger.info(f"[game-end] room={room_id} reason=guesses-exhausted")

            logger.info(
                f"[guess] room={room_id} gamer={gamer_id} guess={guessed.id} correct={is_correct} left={gamer.guesses_remaining}"
            )
            return {
                'guessId': guessed.id,
                'mask': mask,
                'guessesRemaining': gamer.guesses_remaining,
                'isCorrect': is_correct,
                'isEnded': room.status == RoomStatus.ENDED,
            }

    def remove_gamer(self, room_id: str, gamer_id: str) -> bool:
        """Remove a member. Returns True when the room was torn down.

        The room goes away when it empties or when the host leaves; there
        is no host migration.
        """
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                logger.warning(f"[remove-gamer] room={room_id} gamer={gamer_id} reason=room-not-found")
                return False
            if room.gamers.pop(gamer_id, None) is None:
                logger.warning(f"[remove-gamer] room={room_id} gamer={gamer_id} reason=not-a-member")
                return False
            self._gamer_rooms.pop(gamer_id, None)
            logger.info(f"[remove-gamer] room={room_id} gamer={gamer_id} remaining={len(room.gamers)}")
            if not room.gamers:
                self._teardown(room, reason='empty')
                return True
            if gamer_id == room.host_gamer_id:
                self._teardown(room, reason='host-left')
                return True
            if room.status == RoomStatus.IN_PROGRESS and self._guesses_exhausted(room):
                room.status = RoomStatus.ENDED
                logger.info(f"[game-end] room={room_id} reason=guesses-exhausted-on-leave")
            self._refresh_readiness(room)
            return False

    def _guesses_exhausted(self, room: Room) -> bool:
        return all(g.guesses_remaining == 0 for g in room.gamers.values())

    def game_ended_payload(self, room: Room) -> dict:
        if room.target_player is None:
            raise NoTarget(f'Room {room.room_id} ended without a target player')
        payload = {'status': RoomStatus.ENDED, 'targetPlayer': room.target_player.to_dict()}
        if room.winner_gamer_id:
            payload['winner'] = room.winner_gamer_id
        return payload

    def _teardown(self, room: Room, reason: str) -> None:
        room_id = room.room_id
        cancelled = self._cancel_pending(lambda p: p.room_id == room_id)
        for gamer_id in room.gamers:
            self._gamer_rooms.pop(gamer_id, None)
        del self._rooms[room_id]
        self.sessions.broadcast(room_id, 'roomEnded', {})
        detached = self.sessions.detach_room(room_id)
        logger.info(
            f"[room-teardown] room={room_id} reason={reason} members={len(room.gamers)} "
            f"pending_cancelled={cancelled} sessions_detached={len(detached)}"
        )

    def release_session(self, session_id: str) -> None:
        """Drop a session and its membership: explicit leave, channel close or idle expiry."""
        with self._lock:
            session = self.sessions.remove(session_id)
            if session is None or not session.room_id:
                return
            room_id = session.room_id
            room = self._rooms.get(room_id)
            was_playing = room is not None and room.status == RoomStatus.IN_PROGRESS
            torn_down = self.remove_gamer(room_id, session.gamer_id)
            if torn_down:
                return
            self.broadcast(room_id, 'gamerLeft', {'gamerId': session.gamer_id})
            if was_playing and room.status == RoomStatus.ENDED:
                self.broadcast(room_id, 'gameEnded', self.game_ended_payload(room))

    def broadcast(self, room_id: str, event: str, payload: dict, exclude: Iterable[str] = ()) -> int:
        with self._lock:
            if room_id not in self._rooms:
                logger.debug(f"[broadcast-skipped] room={room_id} event={event} reason=room-gone")
                return 0
            return self.sessions.broadcast(room_id, event, payload, exclude=exclude)
