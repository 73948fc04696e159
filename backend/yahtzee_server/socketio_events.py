from flask import current_app, request

from yahtzee_server import socketio
from yahtzee_server.match import COMMANDS, Match


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _match() -> Match:
    return current_app.extensions['yahtzee_match']


def handle_connect(auth=None):
    _match().join(_get_sid())


def handle_disconnect(reason=None):
    _match().leave(_get_sid())


def _command_handler(command: str):
    def handler(data=None):
        _match().dispatch(_get_sid(), command, data)

    handler.__name__ = f"handle_{command}"
    return handler


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the connection lifecycle and every game command on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for command in COMMANDS:
        socketio.on_event(command, _command_handler(command), namespace=namespace)
