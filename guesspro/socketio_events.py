import logging
from datetime import datetime, timezone
from typing import Dict

from flask import current_app, request
from flask_socketio import ConnectionRefusedError, emit

from guesspro import socketio
from guesspro.errors import GameError, InvalidSession
from guesspro.services import get_rooms, get_sessions
from guesspro.validation import require_session_id

logger = logging.getLogger(__name__)

NAMESPACE = '/ws'

# socket sid -> confirmed session id
_sid_to_session: Dict[str, str] = {}


class SocketIOChannel:
    """Push channel backed by one Socket.IO connection."""

    def __init__(self, sid: str, namespace: str = NAMESPACE):
        self.sid = sid
        self.namespace = namespace

    def write(self, event: str, payload: dict) -> None:
        socketio.emit(event, payload, to=self.sid, namespace=self.namespace)

    def close(self) -> None:
        socketio.server.disconnect(self.sid, namespace=self.namespace)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_sid() -> str:
    return request.sid  # type: ignore


def _session_id_from(auth) -> str:
    if isinstance(auth, dict) and auth.get('session_id'):
        return auth['session_id']
    return request.args.get('session_id')


def handle_connect(auth=None):
    """Open the push channel for a pending membership.

    Confirms the membership, registers the session, then sends
    ``connected`` and a ``roomState`` snapshot to the new channel and
    ``gamerJoined`` to everyone else in the room.
    """
    rooms = get_rooms()
    sessions = get_sessions()
    try:
        session_id = require_session_id(_session_id_from(auth))
        pending = rooms.confirm_join(session_id)
    except GameError as exc:
        raise ConnectionRefusedError(exc.to_dict())

    channel = SocketIOChannel(_get_sid(), request.namespace)
    try:
        sessions.create(session_id, pending.gamer_id, pending.display_name, pending.room_id, channel)
    except GameError as exc:
        # Undo the confirm so the slot is not held by a gamer with no channel
        rooms.remove_gamer(pending.room_id, pending.gamer_id)
        raise ConnectionRefusedError(exc.to_dict())
    _sid_to_session[_get_sid()] = session_id

    emit('connected', {
        'gamerId': pending.gamer_id,
        'displayName': pending.display_name,
        'roomId': pending.room_id,
    })
    try:
        snapshot = rooms.snapshot(pending.room_id)
    except GameError:
        snapshot = None
    if snapshot and snapshot['gamers']:
        emit('roomState', {
            'gamers': snapshot['gamers'],
            'roomStatus': snapshot['roomStatus'],
            'hostGamerId': snapshot['hostGamerId'],
            'difficulty': snapshot['difficulty'],
        })
    rooms.broadcast(pending.room_id, 'gamerJoined', {
        'gamerId': pending.gamer_id,
        'displayName': pending.display_name,
    }, exclude=[session_id])

    interval = int(current_app.config.get('HEARTBEAT_INTERVAL_SEC', 0))
    if interval > 0:
        socketio.start_background_task(_heartbeat_loop, sessions, session_id, channel, interval)


def _heartbeat_loop(sessions, session_id: str, channel: SocketIOChannel, interval: int) -> None:
    while True:
        socketio.sleep(interval)
        session = sessions.get(session_id)
        if session is None or session.channel is not channel:
            return
        try:
            channel.write('heartbeat', {'timestamp': _timestamp()})
        except Exception as exc:
            logger.warning(f"[heartbeat-failed] session={session_id} error={exc}")
            try:
                channel.close()
            except Exception as close_exc:
                logger.error(f"[heartbeat-close-failed] session={session_id} error={close_exc}")
            return


def handle_disconnect(reason=None):
    # Channel close counts as leaving the room
    session_id = _sid_to_session.pop(_get_sid(), None)
    if not session_id:
        return
    logger.info(f"[channel-closed] session={session_id} reason={reason}")
    get_rooms().release_session(session_id)


def handle_heartbeat(data=None):
    session_id = _sid_to_session.get(_get_sid())
    if session_id and get_sessions().heartbeat(session_id):
        emit('heartbeat', {'timestamp': _timestamp()})
        return
    emit('error', InvalidSession().to_dict())


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('heartbeat', handle_heartbeat, namespace=ns)
