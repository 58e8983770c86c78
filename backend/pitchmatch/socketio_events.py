from flask import current_app, request
from flask_socketio import emit
from typing import Any, Dict

from pitchmatch import socketio
from pitchmatch.services.match import MatchError, SessionCoordinator, UnknownPlayer

NAMESPACE = '/ws'


class SocketIOBroadcastChannel:
    """BroadcastChannel that emits on the game namespace."""

    def __init__(self, namespace: str = NAMESPACE):
        self.namespace = namespace

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        socketio.emit(event, payload, namespace=self.namespace)

    def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
        socketio.emit(event, payload, to=connection_id, namespace=self.namespace)


def _coordinator() -> SessionCoordinator:
    return current_app.extensions['pitchmatch']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _join(player_id) -> None:
    sid = _get_sid()
    try:
        _coordinator().on_connect(sid, str(player_id))
    except UnknownPlayer as exc:
        # Connection stays open without a session
        current_app.logger.info(f"[join-rejected] sid={sid} reason={exc}")


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {NAMESPACE}'})
    player_id = _payload(auth).get('playerId') or request.args.get('playerId')
    if player_id:
        _join(player_id)


def handle_disconnect(reason=None):
    _coordinator().on_disconnect(_get_sid())


def handle_join_game(data):
    player_id = _payload(data).get('playerId')
    if not player_id:
        current_app.logger.debug(f"[join-ignored] sid={_get_sid()} missing playerId")
        return
    _join(player_id)


def handle_start_round(data=None):
    try:
        _coordinator().on_start_round(_get_sid())
    except MatchError as exc:
        current_app.logger.debug(f"[event-ignored] sid={_get_sid()} reason={exc}")


def handle_submit_round(data=None):
    try:
        _coordinator().on_submit_round(_get_sid())
    except MatchError as exc:
        current_app.logger.debug(f"[event-ignored] sid={_get_sid()} reason={exc}")


def handle_player_update(data):
    try:
        _coordinator().on_player_update(_get_sid(), _payload(data).get('frequency'))
    except MatchError as exc:
        current_app.logger.debug(f"[event-ignored] sid={_get_sid()} reason={exc}")


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('joinGame', handle_join_game, namespace=NAMESPACE)
    socketio.on_event('startRound', handle_start_round, namespace=NAMESPACE)
    socketio.on_event('submitRound', handle_submit_round, namespace=NAMESPACE)
    socketio.on_event('playerUpdate', handle_player_update, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
