import logging

from flask import request
from flask_socketio import emit

from trivia import socketio
from trivia.events import COMMANDS


logger = logging.getLogger(__name__)


def make_publisher(namespace='/'):
    """Return a callable delivering emissions to their Socket.IO sessions.

    Player ids are Socket.IO session ids, so each recipient is addressed
    directly. Works from handlers and from background timer tasks alike.
    """
    def publish(emissions):
        for emission in emissions:
            payload = emission.payload
            for sid in emission.to:
                socketio.emit(emission.name, payload, to=sid, namespace=namespace)
    return publish


def handle_connect(auth=None):
    logger.info(f"[connect] sid={request.sid}")
    emit('connected', {'playerId': request.sid})


def register_socketio_handlers(dispatcher, namespace='/') -> None:
    """Register one handler per inbound lobby event on ``namespace``.

    Each handler forwards the raw payload to the dispatcher under the caller's
    session id; parsing, validation and error replies happen there.
    """
    def _forward(event):
        def handler(data=None):
            dispatcher.submit(request.sid, event, data)
        handler.__name__ = f'handle_{event}'
        return handler

    def handle_disconnect(reason=None):
        logger.info(f"[disconnect] sid={request.sid} reason={reason}")
        dispatcher.submit(request.sid, 'disconnect')

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for event in COMMANDS:
        if event == 'disconnect':
            continue
        socketio.on_event(event, _forward(event), namespace=namespace)
