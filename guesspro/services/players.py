"""Roster lookups shared by target selection, guess validation and search."""
import json
import logging
import os
import random
import threading
from typing import Dict, List, Optional

from guesspro.errors import DataUnavailable, EmptyPool, PlayerNotFound
from guesspro.models import DIFFICULTIES, Player

logger = logging.getLogger(__name__)

PLAYERS_FILE = 'players.json'
TIERS_FILE = 'difficulty_tiers.json'

_LOOKALIKES = str.maketrans({'1': 'i', '0': 'o', '3': 'e'})


def normalize_name(name: str) -> str:
    """Lowercase and fold digit look-alikes so 's1mple' matches 'simple'."""
    return name.lower().translate(_LOOKALIKES)


class PlayerDirectory:
    """Loads the roster once and answers lookups against it.

    ``difficulty`` is one of ``all``, ``normal`` or ``hard``. Unknown tiers
    fall back to ``all``.
    """

    def __init__(self, data_dir: str, rng: Optional[random.Random] = None):
        self.data_dir = data_dir
        self._rng = rng or random.Random()
        self._players: Optional[List[Player]] = None
        self._tiers: Optional[Dict[str, List[str]]] = None
        self._lock = threading.Lock()

    def _read_json(self, filename: str):
        path = os.path.join(self.data_dir, filename)
        try:
            with open(path, encoding='utf-8') as fh:
                return json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error(f"[roster-load-failed] file={path} error={exc}")
            raise DataUnavailable(f'Could not load {filename}') from exc

    def load_all(self) -> List[Player]:
        if self._players is not None:
            return self._players
        with self._lock:
            if self._players is None:
                raw = self._read_json(PLAYERS_FILE)
                if not isinstance(raw, dict):
                    raise DataUnavailable(f'{PLAYERS_FILE} must map player names to attributes')
                players = []
                try:
                    for name, data in raw.items():
                        players.append(Player(
                            id=name,
                            display_name=name,
                            team=data.get('team') or 'Unknown',
                            country=data.get('country') or 'Unknown',
                            birth_year=data.get('birth_year') or 2000,
                            tournaments_played=data.get('tournaments_played', data.get('majorsPlayed')) or 0,
                            role=data.get('role') or 'Unknown',
                        ))
                except (AttributeError, TypeError, ValueError) as exc:
                    logger.error(f"[roster-load-failed] file={PLAYERS_FILE} error={exc}")
                    raise DataUnavailable(f'{PLAYERS_FILE} is malformed') from exc
                self._players = players
                logger.info(f"[roster-loaded] players={len(players)} dir={self.data_dir}")
        return self._players

    def _load_tiers(self) -> Dict[str, List[str]]:
        if self._tiers is None:
            raw = self._read_json(TIERS_FILE)
            if not isinstance(raw, dict):
                raise DataUnavailable(f'{TIERS_FILE} must map tiers to player lists')
            self._tiers = {tier: list(ids or []) for tier, ids in raw.items()}
        return self._tiers

    def by_difficulty(self, difficulty: str = 'all') -> List[Player]:
        players = self.load_all()
        if difficulty not in DIFFICULTIES or difficulty == 'all':
            return players
        allowed = set(self._load_tiers().get(difficulty, []))
        return [p for p in players if p.id in allowed]

    def find_by_name(self, name: str, difficulty: str = 'all') -> Player:
        wanted = (name or '').strip().lower()
        for player in self.by_difficulty(difficulty):
            if player.display_name.lower() == wanted:
                return player
        raise PlayerNotFound(f'Player not found: {name}')

    def random_from(self, difficulty: str = 'all') -> Player:
        pool = self.by_difficulty(difficulty)
        if not pool:
            raise EmptyPool(f'No players available for difficulty {difficulty}')
        return self._rng.choice(pool)

    def search(self, query: str, difficulty: str = 'all', limit: int = 10) -> List[Player]:
        needle = normalize_name((query or '').strip())
        if not needle:
            return []
        matches = [p for p in self.by_difficulty(difficulty) if needle in normalize_name(p.display_name)]
        # Prefix matches first, then alphabetical
        matches.sort(key=lambda p: (not normalize_name(p.display_name).startswith(needle), p.display_name.lower()))
        return matches[:limit]

    def tier_counts(self) -> Dict[str, int]:
        return {tier: len(self.by_difficulty(tier)) for tier in DIFFICULTIES}
