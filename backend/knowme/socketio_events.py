from flask_socketio import join_room, leave_room, emit
from flask import current_app, has_app_context
from knowme import socketio
from typing import List

NAMESPACE = '/ws'


def session_room(session_id: str) -> str:
    return f"session:{session_id}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_session(data):
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    room = session_room(session_id)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_session(data):
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    room = session_room(session_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def broadcast_session_events(session_id: str, events: List) -> None:
    """Push domain events of a saved session to every client in its room.

    Clients get one ``session_event`` per event followed by a single
    ``state_update`` telling them to refetch the session state.
    """
    room = session_room(session_id)
    for event in events:
        socketio.emit('session_event', event.to_dict(), to=room, namespace=NAMESPACE)
    socketio.emit('state_update', {'session_id': session_id}, to=room, namespace=NAMESPACE)
    if has_app_context():
        current_app.logger.debug(
            f"[broadcast] session={session_id} events={','.join(e.name for e in events)}"
        )


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_session', handle_join_session, namespace=namespace)
        socketio.on_event('leave_session', handle_leave_session, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
