import logging
import random
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from ricpacsoe.models import RoomSettings, generate_room_code
from .board import BOARD_SIZE
from .rooms import MAX_PLAYERS, Room

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 100


class RoomRegistry:
    """In-memory store of rooms keyed by their short code.

    Each room has its own lock; :meth:`locked` holds it for the whole
    read-modify-broadcast of an action so actions on one room run one at a
    time while different rooms proceed independently.
    """

    def __init__(self, code_factory: Optional[Callable[[], str]] = None, default_settings: Optional[RoomSettings] = None,
                 board_size: int = BOARD_SIZE, max_players: int = MAX_PLAYERS, chat_limit: int = 50,
                 clock=time.time, rng=None):
        self._code_factory = code_factory or generate_room_code
        self.default_settings = default_settings or RoomSettings()
        self.board_size = board_size
        self.max_players = max_players
        self.chat_limit = chat_limit
        self._clock = clock
        self._rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    @staticmethod
    def normalize(room_id) -> Optional[str]:
        if not isinstance(room_id, str) or not room_id.strip():
            return None
        return room_id.strip().upper()

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return self.normalize(room_id) in self._rooms

    def _new_room(self, room_id: str, settings=None) -> Room:
        room = Room(room_id, self.default_settings.updated(settings), board_size=self.board_size,
                    max_players=self.max_players, chat_limit=self.chat_limit, clock=self._clock, rng=self._rng)
        self._rooms[room_id] = room
        self._locks[room_id] = threading.RLock()
        logger.info("created room %s", room_id)
        return room

    def create(self, settings=None) -> Room:
        """Register a room under a fresh code; `settings` are clamped over the defaults."""
        with self._lock:
            for _ in range(MAX_CODE_ATTEMPTS):
                code = self.normalize(self._code_factory())
                if code and code not in self._rooms:
                    return self._new_room(code, settings)
        raise RuntimeError(f"could not allocate a free room code after {MAX_CODE_ATTEMPTS} attempts")

    def get(self, room_id) -> Optional[Room]:
        return self._rooms.get(self.normalize(room_id))

    def remove(self, room_id) -> Optional[Room]:
        code = self.normalize(room_id)
        with self._lock:
            self._locks.pop(code, None)
            room = self._rooms.pop(code, None)
        if room:
            logger.info("removed room %s", code)
        return room

    @contextmanager
    def locked(self, room_id, create: bool = False) -> Iterator[Optional[Room]]:
        """Yield the room with its lock held, or None for an unknown id.

        With ``create=True`` an unknown id is registered first. The room is
        dismantled before the lock is released when its last player left
        inside the block, or when the last member of a room nobody ever sat
        in left. A freshly created room stays until someone has joined.
        """
        code = self.normalize(room_id)
        if code is None:
            yield None
            return
        with self._lock:
            room = self._rooms.get(code)
            if room is None and create:
                room = self._new_room(code)
            lock = self._locks.get(code)
        if room is None:
            yield None
            return
        with lock:
            # dismantled while we were waiting
            if self._rooms.get(code) is not room:
                yield None
                return
            seated, occupied = not room.is_empty, room.has_members
            try:
                yield room
            finally:
                # spectators alone do not keep a room alive
                if (seated and room.is_empty) or (occupied and not room.has_members):
                    self.remove(code)

    def rooms_for_handle(self, handle) -> List[str]:
        with self._lock:
            rooms = list(self._rooms.values())
        return [room.id for room in rooms if room.is_member(handle)]

    def list_rooms(self) -> List[Dict]:
        with self._lock:
            rooms = list(self._rooms.values())
        return sorted((room.summary() for room in rooms), key=lambda s: s['updated_at'], reverse=True)
