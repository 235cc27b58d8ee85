import time
from typing import Dict, Tuple

from ricpacsoe import socketio, get_registry
from . import room_channel

# (room_id, seat) -> deadline of the pending release
_release_deadline: Dict[Tuple[str, int], float] = {}


def release_seat(app, room_id: str, seat: int) -> bool:
    """Vacate a seat still held without a connection and tell the room."""
    registry = get_registry(app)
    with registry.locked(room_id) as room:
        if room is None or not room.release_seat(seat):
            return False
        app.logger.info(f"[seat-release] room={room_id} seat={seat}")
        if room.is_empty:
            socketio.emit('room_closed', {'room_id': room.id}, to=room_channel(room.id), namespace='/ws')
        else:
            socketio.emit('state', room.snapshot(), to=room_channel(room.id), namespace='/ws')
    return True


def schedule_seat_release(app, room_id: str, seat: int) -> None:
    """Hold a dropped player's seat for RECONNECT_GRACE_SEC, then vacate it.

    - A grace of 0 (the test default) vacates immediately
    - Rejoining under the same name inside the window keeps the seat
    - Only the latest deadline for a (room, seat) pair may fire
    """
    try:
        grace = float(app.config.get('RECONNECT_GRACE_SEC', 30))
    except (TypeError, ValueError):
        grace = 30.0
    key = (room_id, seat)
    if grace <= 0:
        _release_deadline.pop(key, None)
        release_seat(app, room_id, seat)
        return

    deadline = time.time() + grace
    _release_deadline[key] = deadline
    app.logger.info(f"[seat-hold] room={room_id} seat={seat} grace={grace}s")

    def _worker(code: str, held_seat: int, expected: float):
        sleep_for = max(0.0, expected - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _release_deadline.get((code, held_seat)) != expected:
            app.logger.info(f"[seat-hold-skip] room={code} seat={held_seat} superseded")
            return
        _release_deadline.pop((code, held_seat), None)
        with app.app_context():
            release_seat(app, code, held_seat)

    socketio.start_background_task(_worker, room_id, seat, deadline)


def cancel_seat_release(room_id: str, seat: int) -> None:
    _release_deadline.pop((room_id, seat), None)


def pending_releases() -> Dict[Tuple[str, int], float]:
    return dict(_release_deadline)
