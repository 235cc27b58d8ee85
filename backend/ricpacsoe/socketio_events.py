from flask_socketio import join_room, leave_room, emit
from ricpacsoe import socketio, get_registry
from ricpacsoe.services.games import room_channel
from ricpacsoe.services.games.scheduler import schedule_seat_release, cancel_seat_release
from flask import current_app, request


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room_id(data):
    room_id = (data or {}).get('room_id') if isinstance(data, dict) else None
    if not room_id or not isinstance(room_id, str):
        emit('error', {'message': 'room_id is required'})
        return None
    return room_id.strip().upper()


def _broadcast(room, highlights=()) -> None:
    """Send one snapshot to every member; highlights are not kept afterwards."""
    socketio.emit('state', room.snapshot(highlights), to=room_channel(room.id), namespace='/ws')


def _apply(data, action, *args):
    """Run a room action under the room lock and broadcast on success.

    Rejected actions (unknown room, not a member, out of turn, illegal
    target) change nothing and send nothing.
    """
    room_id = _room_id(data)
    if not room_id:
        return
    sid = _get_sid()
    with get_registry().locked(room_id) as room:
        if room is None:
            return
        highlights = getattr(room, action)(sid, *args)
        if highlights is None:
            current_app.logger.debug(f"[rejected] room={room_id} sid={sid} action={action}")
            return
        _broadcast(room, highlights)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_create_room(data=None):
    settings = data.get('settings') if isinstance(data, dict) else None
    room = get_registry().create(settings if isinstance(settings, dict) else None)
    current_app.logger.info(f"[room-create] room={room.id}")
    emit('room_created', {'room_id': room.id})


def handle_join_room(data=None):
    room_id = _room_id(data)
    if not room_id:
        return
    name = data.get('name')
    as_spectator = bool(data.get('spectator'))
    sid = _get_sid()
    with get_registry().locked(room_id, create=True) as room:
        if room is None:
            return
        result = room.join(sid, name, as_spectator=as_spectator)
        if result['role'] == 'player':
            cancel_seat_release(room.id, result['seat'])
        join_room(room_channel(room.id))
        current_app.logger.info(f"[join] room={room.id} sid={sid} role={result['role']} seat={result['seat']}")
        emit('joined', {'room_id': room.id, **result})
        _broadcast(room)


def handle_leave_room(data=None):
    room_id = _room_id(data)
    if not room_id:
        return
    sid = _get_sid()
    registry = get_registry()
    with registry.locked(room_id) as room:
        if room is None or not room.leave(sid):
            return
        leave_room(room_channel(room.id))
        emit('left', {'room_id': room.id})
        _broadcast(room)
    if room_id not in registry:
        socketio.emit('room_closed', {'room_id': room_id}, to=room_channel(room_id), namespace='/ws')


def handle_new_game(data=None):
    _apply(data, 'new_game', (data or {}).get('settings'))


def handle_place_piece(data=None):
    data = data or {}
    _apply(data, 'place_piece', data.get('row'), data.get('col'), data.get('symbol'))


def handle_move_blocker(data=None):
    data = data or {}
    _apply(data, 'move_blocker', data.get('from'), data.get('to'))


def handle_chat(data=None):
    _apply(data, 'add_chat', (data or {}).get('text'))


def handle_request_state(data=None):
    room_id = _room_id(data)
    if not room_id:
        return
    with get_registry().locked(room_id) as room:
        if room is None:
            return
        emit('state', room.snapshot())


def handle_list_rooms(data=None):
    emit('rooms', get_registry().list_rooms())


def handle_disconnect(reason=None):
    # Players keep their seat for the grace period; spectators just go
    sid = _get_sid()
    registry = get_registry()
    app = current_app._get_current_object()
    for room_id in registry.rooms_for_handle(sid):
        held = None
        with registry.locked(room_id) as room:
            if room is None:
                continue
            held = room.detach(sid)
            _broadcast(room)
        if held is not None:
            schedule_seat_release(app, room_id, held.seat)


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'create_room': handle_create_room,
        'join_room': handle_join_room,
        'leave_room': handle_leave_room,
        'new_game': handle_new_game,
        'place_piece': handle_place_piece,
        'move_blocker': handle_move_blocker,
        'chat': handle_chat,
        'request_state': handle_request_state,
        'list_rooms': handle_list_rooms,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
