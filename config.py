import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [
        o.strip() for o in (
            os.environ.get('CORS_ORIGINS')
            or 'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000'
        ).split(',') if o.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Roster files (players.json, difficulty_tiers.json)
    PLAYER_DATA_DIR = os.environ.get('PLAYER_DATA_DIR') or os.path.join(BASE_DIR, 'guesspro', 'data')
    # Room rules
    GUESSES_PER_GAMER = int(os.environ.get('GUESSES_PER_GAMER', '8'))
    MAX_GAMERS_PER_ROOM = int(os.environ.get('MAX_GAMERS_PER_ROOM', '3'))
    # Unconfirmed create/join claims expire after this many seconds
    PENDING_TIMEOUT_SEC = int(os.environ.get('PENDING_TIMEOUT_SEC', '30'))
    # Session table
    MAX_TOTAL_SESSIONS = int(os.environ.get('MAX_TOTAL_SESSIONS', '1000'))
    SESSION_INACTIVE_TIMEOUT_SEC = int(os.environ.get('SESSION_INACTIVE_TIMEOUT_SEC', '120'))
    # Idle-session sweep interval (sec). 0 disables.
    SESSION_SWEEP_INTERVAL_SEC = int(os.environ.get('SESSION_SWEEP_INTERVAL_SEC', '30'))
    # Push-channel keepalive interval (sec). 0 disables.
    HEARTBEAT_INTERVAL_SEC = int(os.environ.get('HEARTBEAT_INTERVAL_SEC', '30'))
