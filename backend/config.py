import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173'
    ).split(',') if o.strip()]
    BOARD_SIZE = int(os.environ.get('BOARD_SIZE', '8'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    # Defaults for new rooms; clients may change them on "new game"
    DEFAULT_TILES_PER_SYMBOL = int(os.environ.get('DEFAULT_TILES_PER_SYMBOL', '7'))
    DEFAULT_BLOCKER_COUNT = int(os.environ.get('DEFAULT_BLOCKER_COUNT', '4'))
    DEFAULT_POINTS_TO_WIN = int(os.environ.get('DEFAULT_POINTS_TO_WIN', '10'))
    CHAT_HISTORY_LIMIT = int(os.environ.get('CHAT_HISTORY_LIMIT', '50'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '5'))
    # Seconds a dropped player's seat is held for reconnection. 0 vacates at once.
    RECONNECT_GRACE_SEC = float(os.environ.get('RECONNECT_GRACE_SEC', '30'))
