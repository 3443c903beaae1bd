from scoreboard import socketio


ROOM = 'scoreboard'
NAMESPACE = '/ws'


def broadcast_state(kind: str, state: dict) -> None:
    """Push a fresh state to every subscribed display."""
    socketio.emit('state_update', {'kind': kind, 'state': state}, to=ROOM, namespace=NAMESPACE)
