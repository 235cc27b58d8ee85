import pytest

from ricpacsoe import get_registry, socketio


def events(client, name):
    return [pkt['args'][0] for pkt in client.get_received('/ws') if pkt['name'] == name]


@pytest.fixture()
def second_client(flask_app):
    test_client = socketio.test_client(flask_app, namespace='/ws')
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


@pytest.fixture()
def game(flask_app, sio_client, second_client):
    """Two connected players in a started room; returns the room id."""
    sio_client.emit('create_room', namespace='/ws')
    code = events(sio_client, 'room_created')[0]['room_id']
    sio_client.emit('join_room', {'room_id': code, 'name': 'Alice'}, namespace='/ws')
    second_client.emit('join_room', {'room_id': code, 'name': 'Bob'}, namespace='/ws')
    sio_client.emit('new_game', {'room_id': code, 'settings': {'blocker_count': 0}}, namespace='/ws')
    sio_client.get_received('/ws')
    second_client.get_received('/ws')
    return code


def test_socket_connect_and_join(sio_client):
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)

    # Joining an unknown id opens that room
    sio_client.emit('join_room', {'room_id': 'abcd1', 'name': 'Alice'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    joined = [p['args'][0] for p in received if p['name'] == 'joined']
    assert joined == [{'room_id': 'ABCD1', 'role': 'player', 'seat': 0}]
    states = [p['args'][0] for p in received if p['name'] == 'state']
    assert states[-1]['players'][0]['name'] == 'Alice'


def test_create_room_with_settings(sio_client):
    sio_client.emit('create_room', {'settings': {'points_to_win': 3}}, namespace='/ws')
    code = events(sio_client, 'room_created')[0]['room_id']
    sio_client.emit('request_state', {'room_id': code}, namespace='/ws')
    state = events(sio_client, 'state')[0]
    assert state['settings']['points_to_win'] == 3


def test_spectator_only_room_closes_when_they_leave(flask_app, sio_client):
    sio_client.emit('join_room', {'room_id': 'ghost', 'spectator': True}, namespace='/ws')
    assert 'GHOST' in get_registry(flask_app)
    sio_client.emit('leave_room', {'room_id': 'ghost'}, namespace='/ws')
    assert 'GHOST' not in get_registry(flask_app)


def test_missing_room_id_is_an_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('place_piece', {'row': 0, 'col': 0, 'symbol': 'rock'}, namespace='/ws')
    assert events(sio_client, 'error') == [{'message': 'room_id is required'}]


def test_placement_broadcasts_to_everyone(game, sio_client, second_client):
    sio_client.emit('place_piece', {'room_id': game, 'row': 0, 'col': 0, 'symbol': 'rock'}, namespace='/ws')
    mine = events(sio_client, 'state')
    theirs = events(second_client, 'state')
    assert len(mine) == len(theirs) == 1
    assert theirs[0]['board'][0][0] == {'type': 'piece', 'player': 0, 'symbol': 'rock'}
    assert theirs[0]['turn'] == 1

    second_client.emit('place_piece', {'room_id': game, 'row': 0, 'col': 1, 'symbol': 'scissors'}, namespace='/ws')
    state = events(sio_client, 'state')[0]
    assert state['highlights'] == [{'row': 0, 'col': 0, 'player': 1, 'kind': 'elimination'}]
    assert state['players'][1]['score'] == 1


def test_rejected_action_sends_nothing(game, sio_client, second_client):
    # not Bob's turn
    second_client.emit('place_piece', {'room_id': game, 'row': 0, 'col': 0, 'symbol': 'rock'}, namespace='/ws')
    assert events(second_client, 'state') == []
    assert events(sio_client, 'state') == []
    # unknown room is a no-op
    sio_client.emit('place_piece', {'room_id': 'NOPE1', 'row': 0, 'col': 0, 'symbol': 'rock'}, namespace='/ws')
    assert sio_client.get_received('/ws') == []


def test_request_state_has_no_highlights(game, sio_client, second_client):
    sio_client.emit('place_piece', {'room_id': game, 'row': 0, 'col': 0, 'symbol': 'rock'}, namespace='/ws')
    second_client.emit('place_piece', {'room_id': game, 'row': 0, 'col': 1, 'symbol': 'scissors'}, namespace='/ws')
    sio_client.get_received('/ws')
    sio_client.emit('request_state', {'room_id': game}, namespace='/ws')
    sio_client.emit('request_state', {'room_id': game}, namespace='/ws')
    first, second = events(sio_client, 'state')
    assert first == second
    assert first['highlights'] == []


def test_blocker_move_over_socket(flask_app, game, sio_client, second_client):
    from ricpacsoe.models import BLOCKER
    with get_registry(flask_app).locked(game) as room:
        room.board.set(2, 2, BLOCKER)
    sio_client.emit('move_blocker', {'room_id': game, 'from': [2, 2], 'to': [4, 4]}, namespace='/ws')
    assert events(second_client, 'state') == []
    sio_client.emit('move_blocker', {'room_id': game, 'from': [2, 2], 'to': [3, 3]}, namespace='/ws')
    state = events(second_client, 'state')[0]
    assert state['board'][3][3] == {'type': 'blocker'}
    assert state['turn'] == 1


def test_chat_and_list_rooms(game, sio_client, second_client):
    second_client.emit('chat', {'room_id': game, 'text': 'good luck'}, namespace='/ws')
    state = events(sio_client, 'state')[0]
    assert state['chat'][-1]['name'] == 'Bob'
    assert state['chat'][-1]['text'] == 'good luck'
    sio_client.emit('list_rooms', namespace='/ws')
    rooms = events(sio_client, 'rooms')[0]
    assert rooms[0]['id'] == game
    assert rooms[0]['player_count'] == 2


def test_spectator_joins_started_room(flask_app, game, sio_client):
    watcher = socketio.test_client(flask_app, namespace='/ws')
    watcher.emit('join_room', {'room_id': game, 'name': 'Sam'}, namespace='/ws')
    assert events(watcher, 'joined')[0]['role'] == 'spectator'
    state = events(sio_client, 'state')[0]
    assert state['spectators'] == ['Sam']
    watcher.disconnect(namespace='/ws')


def test_disconnect_vacates_seat_without_grace(flask_app, game, sio_client, second_client):
    second_client.disconnect(namespace='/ws')
    states = events(sio_client, 'state')
    assert [p['name'] for p in states[-1]['players']] == ['Alice']
    assert states[-1]['turn'] == 0


def test_last_player_leaving_closes_room(flask_app, game, sio_client, second_client):
    second_client.emit('leave_room', {'room_id': game}, namespace='/ws')
    assert events(second_client, 'left') == [{'room_id': game}]
    sio_client.emit('leave_room', {'room_id': game}, namespace='/ws')
    assert game not in get_registry(flask_app)


def test_ping(sio_client):
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert events(sio_client, 'pong') == [{'n': 1}]
