from flask_socketio import join_room, leave_room, emit
from scoreboard import socketio
from scoreboard.services.broadcast import NAMESPACE, ROOM
from scoreboard.services.coordinator import get_coordinator


def _emit_current_state():
    coordinator = get_coordinator()
    emit('state_update', {'kind': 'match', 'state': coordinator.match.state.to_dict()})
    emit('state_update', {'kind': 'tournament', 'state': coordinator.bracket.state.to_view()})


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})
    _emit_current_state()


def handle_subscribe(data=None):
    # Displays join the shared room to receive every state change
    join_room(ROOM)
    emit('subscribed', {'room': ROOM})
    _emit_current_state()


def handle_unsubscribe(data=None):
    leave_room(ROOM)
    emit('unsubscribed', {'room': ROOM})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('subscribe', handle_subscribe, namespace=namespace)
        socketio.on_event('unsubscribe', handle_unsubscribe, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
