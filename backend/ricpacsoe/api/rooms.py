from flask import Blueprint, jsonify, current_app, request
from ricpacsoe import get_registry


rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['GET'])
def list_rooms():
    return jsonify(get_registry().list_rooms())


@rooms.route('/create', methods=['POST'])
def create_room():
    data = request.get_json(silent=True) or {}
    settings = data.get('settings') if isinstance(data, dict) else None
    room = get_registry().create(settings if isinstance(settings, dict) else None)
    current_app.logger.info(f"[room-create] room={room.id} via http")
    return jsonify({
        'message': 'New room created!',
        'room_id': room.id
    }), 201


@rooms.route('/<string:room_id>/state', methods=['GET'])
def get_room_state(room_id):
    with get_registry().locked(room_id) as room:
        if room is None:
            return jsonify({'error': 'Room not found'}), 404
        return jsonify(room.snapshot())
