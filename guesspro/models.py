import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


ROLES = ('AWPer', 'Rifler', 'Unknown')
DIFFICULTIES = ('all', 'normal', 'hard')


class RoomStatus:
    PENDING = 'pending'
    WAITING = 'waiting'
    READY = 'ready'
    IN_PROGRESS = 'inProgress'
    ENDED = 'ended'


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Player:
    """A professional player from the roster. Immutable once loaded."""

    __slots__ = ('id', 'display_name', 'team', 'country', 'birth_year', 'tournaments_played', 'role')

    def __init__(self, id, display_name, team, country, birth_year, tournaments_played, role):
        object.__setattr__(self, 'id', id)
        object.__setattr__(self, 'display_name', display_name)
        object.__setattr__(self, 'team', team)
        object.__setattr__(self, 'country', country)
        object.__setattr__(self, 'birth_year', int(birth_year))
        object.__setattr__(self, 'tournaments_played', int(tournaments_played))
        object.__setattr__(self, 'role', role if role in ROLES else 'Unknown')

    def __setattr__(self, name, value):
        raise AttributeError(f'Player is immutable (tried to set {name})')

    def __eq__(self, other):
        return isinstance(other, Player) and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f'<Player {self.id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'displayName': self.display_name,
            'team': self.team,
            'country': self.country,
            'birthYear': self.birth_year,
            'tournamentsPlayed': self.tournaments_played,
            'role': self.role,
        }


class Guess:
    __slots__ = ('guessed_player_id', 'mask', 'created_at')

    def __init__(self, guessed_player_id: str, mask: Dict[str, str]):
        self.guessed_player_id = guessed_player_id
        self.mask = dict(mask)
        self.created_at = utcnow()

    def to_dict(self):
        return {
            'guessId': self.guessed_player_id,
            'mask': dict(self.mask),
        }


class Gamer:
    """A confirmed room member."""

    def __init__(self, gamer_id: str, display_name: str, guesses_remaining: int):
        self.gamer_id = gamer_id
        self.display_name = display_name
        self.ready = False
        self.joined_at = utcnow()
        self.guesses_remaining = guesses_remaining
        self.guesses: List[Guess] = []

    def to_dict(self):
        return {
            'gamerId': self.gamer_id,
            'displayName': self.display_name,
            'ready': self.ready,
            'joinedAt': _iso(self.joined_at),
            'guessesRemaining': self.guesses_remaining,
            'guesses': [g.to_dict() for g in self.guesses],
        }


class Room:
    def __init__(self, room_id: str, host_gamer_id: str, difficulty: str = 'all'):
        self.room_id = room_id
        self.host_gamer_id = host_gamer_id
        # Insertion ordered: join order
        self.gamers: Dict[str, Gamer] = {}
        self.status = RoomStatus.PENDING
        self.difficulty = difficulty
        self.target_player: Optional[Player] = None
        self.created_at = utcnow()
        self.started_at: Optional[datetime] = None
        self.winner_gamer_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'roomId': self.room_id,
            'hostGamerId': self.host_gamer_id,
            'difficulty': self.difficulty,
            'roomStatus': self.status,
            'gamers': [g.to_dict() for g in self.gamers.values()],
            'createdAt': _iso(self.created_at),
            'startedAt': _iso(self.started_at),
            'winner': self.winner_gamer_id,
        }


class PendingMembership:
    """One-shot claim check issued by create/join, consumed when the channel opens."""

    __slots__ = ('session_id', 'room_id', 'gamer_id', 'display_name', 'is_host', 'timer')

    def __init__(self, session_id, room_id, gamer_id, display_name, is_host=False, timer=None):
        self.session_id = session_id
        self.room_id = room_id
        self.gamer_id = gamer_id
        self.display_name = display_name
        self.is_host = is_host
        self.timer = timer


class Session:
    """Live binding between an open push channel and a room membership."""

    def __init__(self, session_id, gamer_id, display_name, room_id, channel, now=None):
        self.session_id = session_id
        self.gamer_id = gamer_id
        self.display_name = display_name
        self.room_id: Optional[str] = room_id
        self.channel = channel
        self.last_active_at = now if now is not None else time.monotonic()

    def __repr__(self):
        return f'<Session {self.session_id} gamer={self.gamer_id} room={self.room_id}>'
