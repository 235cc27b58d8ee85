from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

EXTENSION_KEY = 'ricpacsoe.registry'


def get_registry(app=None):
    """Return the room registry owned by the given (or current) app."""
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from ricpacsoe.models import RoomSettings, generate_room_code
    from ricpacsoe.services.games.registry import RoomRegistry
    cfg = flask_app.config
    defaults = RoomSettings().updated({
        'tiles_per_symbol': cfg.get('DEFAULT_TILES_PER_SYMBOL'),
        'blocker_count': cfg.get('DEFAULT_BLOCKER_COUNT'),
        'points_to_win': cfg.get('DEFAULT_POINTS_TO_WIN'),
    })
    code_length = int(cfg.get('ROOM_CODE_LENGTH', 5))
    flask_app.extensions[EXTENSION_KEY] = RoomRegistry(
        code_factory=lambda: generate_room_code(code_length),
        default_settings=defaults,
        board_size=int(cfg.get('BOARD_SIZE', 8)),
        max_players=int(cfg.get('MAX_PLAYERS', 4)),
        chat_limit=int(cfg.get('CHAT_HISTORY_LIMIT', 50)),
    )

    # Import and register blueprints here
    from ricpacsoe.main import main
    flask_app.register_blueprint(main)

    from ricpacsoe.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers
    from ricpacsoe.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('list-rooms')
    def list_rooms_command():
        """Prints the rooms currently held in memory."""
        summaries = get_registry(flask_app).list_rooms()
        if not summaries:
            click.echo('No rooms.')
            return
        for s in summaries:
            state = 'started' if s['started'] else 'waiting'
            click.echo(f"{s['id']}  players={s['player_count']} spectators={s['spectator_count']} {state}")

    flask_app.cli.add_command(list_rooms_command)

    return flask_app
