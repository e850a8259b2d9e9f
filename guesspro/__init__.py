from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, timers=None):
    """Build the Flask app and its in-memory registries.

    ``timers`` schedules pending-membership expiry; defaults to Socket.IO
    background tasks. Tests pass a manual implementation.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    # Flask's app logger is the "guesspro" package logger; module loggers propagate to it
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, origins=allowed_origins, allow_headers=['Content-Type', 'X-Session-Id'])
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from guesspro.services import EXTENSION_KEY
    from guesspro.services.players import PlayerDirectory
    from guesspro.services.rooms import RoomRegistry
    from guesspro.services.sessions import SessionRegistry
    from guesspro.services.timers import BackgroundTimers

    cfg = flask_app.config
    directory = PlayerDirectory(cfg['PLAYER_DATA_DIR'])
    sessions = SessionRegistry(
        max_sessions=int(cfg.get('MAX_TOTAL_SESSIONS', 1000)),
        inactive_timeout=int(cfg.get('SESSION_INACTIVE_TIMEOUT_SEC', 120)),
    )
    rooms = RoomRegistry(
        sessions,
        directory,
        timers if timers is not None else BackgroundTimers(socketio),
        guesses_per_gamer=int(cfg.get('GUESSES_PER_GAMER', 8)),
        max_gamers=int(cfg.get('MAX_GAMERS_PER_ROOM', 3)),
        pending_timeout=int(cfg.get('PENDING_TIMEOUT_SEC', 30)),
    )
    # Idle expiry releases the room membership too, not just the channel
    sessions.on_expire = rooms.release_session
    flask_app.extensions[EXTENSION_KEY] = {
        'players': directory,
        'sessions': sessions,
        'rooms': rooms,
    }

    from guesspro.main import main
    flask_app.register_blueprint(main)

    from guesspro.api.rooms import rooms as rooms_bp
    flask_app.register_blueprint(rooms_bp, url_prefix='/api/rooms')

    from guesspro.api.players import players as players_bp
    flask_app.register_blueprint(players_bp, url_prefix='/api/players')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from guesspro.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    sweep_interval = int(cfg.get('SESSION_SWEEP_INTERVAL_SEC', 0))
    if sweep_interval > 0 and not flask_app.config.get('TESTING'):
        socketio.start_background_task(sessions.run_sweeper, socketio, sweep_interval)

    @click.command('roster-check')
    def roster_check_command():
        """Loads the player roster and prints per-tier counts."""
        from guesspro.errors import GameError
        try:
            counts = directory.tier_counts()
        except GameError as exc:
            raise click.ClickException(exc.message)
        for tier, count in counts.items():
            click.echo(f'{tier}: {count}')

    flask_app.cli.add_command(roster_check_command)

    return flask_app
