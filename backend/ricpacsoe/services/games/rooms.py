"""Room state: roster, turn order and the placement state machine.

Every mutating method returns ``None`` when the action is rejected (and leaves
the room untouched) or a list of highlights when it was applied. Highlights are
never stored on the room; callers pass them to :meth:`Room.snapshot` for the
one broadcast that follows the action.
"""

import logging
import random
import time
from collections import deque
from typing import Dict, List, Optional, Sequence

from ricpacsoe.models import BLOCKER, EMPTY, Player, RoomSettings, Spectator, Symbol, piece
from .board import BOARD_SIZE, Board, place_blockers
from .scoring import Highlight, evaluate_placement, result_message, winners

logger = logging.getLogger(__name__)

MAX_PLAYERS = 4
MAX_NAME_LENGTH = 20
MAX_CHAT_LENGTH = 200

WAITING = 'waiting_for_players'
IN_PROGRESS = 'in_progress'
GAME_OVER = 'game_over'


def _coord(value):
    """(row, col) from a two-item pair of plain ints, else None."""
    try:
        row, col = value
    except (TypeError, ValueError):
        return None
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in (row, col)):
        return None
    return row, col


class Room:
    def __init__(self, room_id: str, settings: Optional[RoomSettings] = None, board_size: int = BOARD_SIZE,
                 max_players: int = MAX_PLAYERS, chat_limit: int = 50, clock=time.time, rng=None):
        self.id = room_id
        self.settings = settings or RoomSettings()
        self.max_players = max_players
        self.players: List[Player] = []
        self.spectators: List[Spectator] = []
        self.board = Board(board_size)
        self.turn = 0
        self.started = False
        self.game_over = False
        self.message = ''
        self.winners: List[int] = []
        self.chat = deque(maxlen=chat_limit)
        self._clock = clock
        self._rng = rng or random.Random()
        self.updated_at = self._clock()

    # ---- lookups ----

    @property
    def state(self) -> str:
        if not self.started:
            return WAITING
        return GAME_OVER if self.game_over else IN_PROGRESS

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def has_members(self) -> bool:
        return bool(self.players or self.spectators)

    def player_for(self, handle) -> Optional[Player]:
        if handle is None:
            return None
        return next((p for p in self.players if p.handle == handle), None)

    def spectator_for(self, handle) -> Optional[Spectator]:
        if handle is None:
            return None
        return next((s for s in self.spectators if s.handle == handle), None)

    def is_member(self, handle) -> bool:
        return self.player_for(handle) is not None or self.spectator_for(handle) is not None

    def current_player(self) -> Optional[Player]:
        if not self.players:
            return None
        return self.players[self.turn]

    def _touch(self) -> None:
        self.updated_at = self._clock()

    def _free_seat(self) -> Optional[int]:
        taken = {p.seat for p in self.players}
        return next((s for s in range(self.max_players) if s not in taken), None)

    def _seat(self, seat: int, name: str, handle) -> Player:
        player = Player(seat=seat, name=name, handle=handle)
        player.reset(self.settings.tiles_per_symbol)
        self.players.append(player)
        self.players.sort(key=lambda p: p.seat)
        return player

    # ---- membership ----

    def join(self, handle, name=None, as_spectator=False) -> Dict:
        """Seat `handle` as a player when possible, otherwise as a spectator."""
        name = name if isinstance(name, str) else ''
        name = name.strip()[:MAX_NAME_LENGTH] or f"Player {len(self.players) + len(self.spectators) + 1}"

        existing = self.player_for(handle)
        if existing:
            return {'role': 'player', 'seat': existing.seat}
        if self.spectator_for(handle):
            return {'role': 'spectator', 'seat': None}

        if not as_spectator:
            # a disconnected seat is reclaimed by name during the grace period
            orphan = next((p for p in self.players if not p.connected and p.name == name), None)
            if orphan:
                orphan.handle = handle
                self._touch()
                logger.info("room %s: %s reclaimed seat %d", self.id, name, orphan.seat)
                return {'role': 'player', 'seat': orphan.seat}

        seat = self._free_seat()
        if as_spectator or self.started or seat is None:
            self.spectators.append(Spectator(name=name, handle=handle, wants_seat=not as_spectator))
            self._touch()
            logger.info("room %s: %s joined as spectator", self.id, name)
            return {'role': 'spectator', 'seat': None}

        self._seat(seat, name, handle)
        self._touch()
        logger.info("room %s: %s took seat %d", self.id, name, seat)
        return {'role': 'player', 'seat': seat}

    def _remove_player(self, player: Player) -> None:
        index = self.players.index(player)
        self.players.remove(player)
        if not self.players:
            self.turn = 0
            return
        if index < self.turn:
            self.turn -= 1
        self.turn %= len(self.players)

    def leave(self, handle) -> bool:
        player = self.player_for(handle)
        if player:
            self._remove_player(player)
            self._touch()
            logger.info("room %s: %s left seat %d", self.id, player.name, player.seat)
            return True
        spectator = self.spectator_for(handle)
        if spectator:
            self.spectators.remove(spectator)
            self._touch()
            return True
        return False

    def detach(self, handle) -> Optional[Player]:
        """Mark a player's connection lost but keep the seat.

        Spectators are dropped outright. Returns the player whose seat is now
        held without a connection, if any.
        """
        player = self.player_for(handle)
        if player:
            player.handle = None
            self._touch()
            return player
        spectator = self.spectator_for(handle)
        if spectator:
            self.spectators.remove(spectator)
            self._touch()
        return None

    def release_seat(self, seat: int) -> bool:
        """Vacate a seat whose connection never came back."""
        player = next((p for p in self.players if p.seat == seat and not p.connected), None)
        if not player:
            return False
        self._remove_player(player)
        self._touch()
        logger.info("room %s: released seat %d of %s", self.id, seat, player.name)
        return True

    # ---- game flow ----

    def new_game(self, handle, config=None) -> Optional[List[Highlight]]:
        if not self.is_member(handle):
            return None
        settings = self.settings.updated(config)

        for spectator in [s for s in self.spectators if s.wants_seat]:
            seat = self._free_seat()
            if seat is None:
                break
            self.spectators.remove(spectator)
            self._seat(seat, spectator.name, spectator.handle)
        if not self.players:
            return None

        self.settings = settings
        self.board.clear()
        place_blockers(self.board, settings.blocker_count, self._rng)
        for player in self.players:
            player.reset(settings.tiles_per_symbol)
        self.turn = 0
        self.started = True
        self.game_over = False
        self.message = ''
        self.winners = []
        self._touch()
        logger.info("room %s: new game with %d players %s", self.id, len(self.players), settings.to_dict())
        return []

    def _can_act(self, handle) -> Optional[Player]:
        if self.state != IN_PROGRESS:
            return None
        player = self.player_for(handle)
        if player is None or player is not self.current_player():
            return None
        return player

    def _advance_turn(self) -> None:
        self.turn = (self.turn + 1) % len(self.players)

    def _finish(self, seats: List[int], reason: Optional[str] = None) -> None:
        self.game_over = True
        self.winners = seats
        self.message = result_message(self.players, seats, reason)
        logger.info("room %s: game over, %s", self.id, self.message)

    def _reject(self, action: str, handle, reason: str) -> None:
        logger.debug("room %s: rejected %s by %s (%s)", self.id, action, handle, reason)
        return None

    def place_piece(self, handle, row, col, symbol) -> Optional[List[Highlight]]:
        player = self._can_act(handle)
        if player is None:
            return self._reject('placement', handle, 'not your turn')
        symbol = Symbol.parse(symbol)
        if symbol is None:
            return self._reject('placement', handle, 'bad symbol')
        cell = _coord((row, col))
        if cell is None:
            return self._reject('placement', handle, 'bad coordinates')
        row, col = cell
        if not self.board.in_bounds(row, col):
            return self._reject('placement', handle, 'out of bounds')
        if not self.board.get(row, col).is_empty:
            return self._reject('placement', handle, 'cell occupied')
        if player.stock.get(symbol, 0) <= 0:
            return self._reject('placement', handle, f"no {symbol.value} left")

        player.stock[symbol] -= 1
        player.last_symbol = symbol
        self.board.set(row, col, piece(player.seat, symbol))

        outcome = evaluate_placement(self.board, row, col)
        by_seat = {p.seat: p for p in self.players}
        for seat, points in outcome.deltas.items():
            # pieces of a departed seat can still be on the board
            if seat in by_seat:
                by_seat[seat].score += points

        if player.score >= self.settings.points_to_win:
            self._finish([player.seat])
        elif any(p.remaining == 0 for p in self.players):
            self._finish(winners(self.players), 'Out of tiles.')
        elif self.board.is_full():
            self._finish(winners(self.players), 'Board full.')
        else:
            self._advance_turn()
        self._touch()
        return outcome.highlights

    def move_blocker(self, handle, source, target) -> Optional[List[Highlight]]:
        player = self._can_act(handle)
        if player is None:
            return self._reject('blocker move', handle, 'not your turn')
        source, target = _coord(source), _coord(target)
        if source is None or target is None:
            return self._reject('blocker move', handle, 'bad coordinates')
        if not (self.board.in_bounds(*source) and self.board.in_bounds(*target)):
            return self._reject('blocker move', handle, 'out of bounds')
        dr, dc = target[0] - source[0], target[1] - source[1]
        if max(abs(dr), abs(dc)) != 1:
            return self._reject('blocker move', handle, 'not one step')
        if not self.board.get(*source).is_blocker or not self.board.get(*target).is_empty:
            return self._reject('blocker move', handle, 'no blocker or target occupied')
        # a diagonal step cannot squeeze between two occupied cells
        if dr and dc and not self.board.get(source[0], target[1]).is_empty \
                and not self.board.get(target[0], source[1]).is_empty:
            return self._reject('blocker move', handle, 'diagonal blocked')

        self.board.set(*source, EMPTY)
        self.board.set(*target, BLOCKER)
        self._advance_turn()
        self._touch()
        return []

    def add_chat(self, handle, text) -> Optional[List[Highlight]]:
        member = self.player_for(handle) or self.spectator_for(handle)
        if member is None or not isinstance(text, str):
            return None
        text = text.strip()[:MAX_CHAT_LENGTH]
        if not text:
            return None
        self.chat.append({'name': member.name, 'text': text, 'ts': self._clock()})
        self._touch()
        return []

    # ---- projections ----

    def snapshot(self, highlights: Sequence[Highlight] = ()) -> Dict:
        return {
            'room_id': self.id,
            'state': self.state,
            'settings': self.settings.to_dict(),
            'players': [p.to_dict() for p in self.players],
            'spectators': [s.name for s in self.spectators],
            'turn': self.turn,
            'board': self.board.to_list(),
            'game_over': self.game_over,
            'message': self.message,
            'winners': list(self.winners),
            'started': self.started,
            'chat': list(self.chat),
            'highlights': [hl.to_dict() for hl in highlights],
            'updated_at': self.updated_at,
        }

    def summary(self) -> Dict:
        return {
            'id': self.id,
            'player_count': len(self.players),
            'spectator_count': len(self.spectators),
            'started': self.started,
            'updated_at': self.updated_at,
        }
