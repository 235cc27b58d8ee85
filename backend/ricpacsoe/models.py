from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
import random
import string


class Symbol(str, Enum):
    ROCK = 'rock'
    PAPER = 'paper'
    SCISSORS = 'scissors'

    @classmethod
    def parse(cls, value) -> Optional['Symbol']:
        if isinstance(value, Symbol):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    def beats(self, other: 'Symbol') -> bool:
        return BEATS[self] is other

    @property
    def defeated_by(self) -> 'Symbol':
        """The one symbol that beats this one."""
        return next(s for s, loser in BEATS.items() if loser is self)


# winner -> loser
BEATS = {
    Symbol.SCISSORS: Symbol.ROCK,
    Symbol.ROCK: Symbol.PAPER,
    Symbol.PAPER: Symbol.SCISSORS,
}


class CellKind(str, Enum):
    EMPTY = 'empty'
    BLOCKER = 'blocker'
    PIECE = 'piece'


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    owner: Optional[int] = None
    symbol: Optional[Symbol] = None

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def is_blocker(self) -> bool:
        return self.kind is CellKind.BLOCKER

    @property
    def is_piece(self) -> bool:
        return self.kind is CellKind.PIECE

    def same_piece(self, other: 'Cell') -> bool:
        return self.is_piece and other.is_piece and self.owner == other.owner and self.symbol is other.symbol

    def to_dict(self):
        if self.is_empty:
            return None
        if self.is_blocker:
            return {'type': 'blocker'}
        return {'type': 'piece', 'player': self.owner, 'symbol': self.symbol.value}


EMPTY = Cell(CellKind.EMPTY)
BLOCKER = Cell(CellKind.BLOCKER)


def piece(owner: int, symbol: Symbol) -> Cell:
    return Cell(CellKind.PIECE, owner, symbol)


PLAYER_COLORS = ['#e74c3c', '#3498db', '#2ecc71', '#f1c40f']


@dataclass
class Player:
    seat: int
    name: str
    handle: Optional[str] = None
    stock: Dict[Symbol, int] = field(default_factory=dict)
    score: int = 0
    last_symbol: Optional[Symbol] = None

    @property
    def color(self) -> str:
        return PLAYER_COLORS[self.seat % len(PLAYER_COLORS)]

    @property
    def connected(self) -> bool:
        return self.handle is not None

    @property
    def remaining(self) -> int:
        return sum(self.stock.values())

    def reset(self, tiles_per_symbol: int) -> None:
        self.stock = {s: tiles_per_symbol for s in Symbol}
        self.score = 0
        self.last_symbol = None

    def to_dict(self):
        return {
            'seat': self.seat,
            'name': self.name,
            'color': self.color,
            'score': self.score,
            'stock': {s.value: n for s, n in self.stock.items()},
            'last_symbol': self.last_symbol.value if self.last_symbol else None,
            'connected': self.connected,
        }


@dataclass
class Spectator:
    name: str
    handle: str
    # set when the room had no seat to give; seated on the next new game
    wants_seat: bool = False


def _clamp(value, low, high, fallback):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return max(low, min(high, number))


@dataclass(frozen=True)
class RoomSettings:
    tiles_per_symbol: int = 7
    blocker_count: int = 4
    points_to_win: int = 10

    TILES_RANGE = (1, 20)
    BLOCKERS_RANGE = (0, 16)
    POINTS_RANGE = (1, 50)

    def updated(self, data=None) -> 'RoomSettings':
        """Return a copy with any values from `data` clamped into range.

        Missing or non-numeric values keep the current setting.
        """
        data = data or {}
        return RoomSettings(
            tiles_per_symbol=_clamp(data.get('tiles_per_symbol', self.tiles_per_symbol), *self.TILES_RANGE, self.tiles_per_symbol),
            blocker_count=_clamp(data.get('blocker_count', self.blocker_count), *self.BLOCKERS_RANGE, self.blocker_count),
            points_to_win=_clamp(data.get('points_to_win', self.points_to_win), *self.POINTS_RANGE, self.points_to_win),
        )

    def to_dict(self):
        return {
            'tiles_per_symbol': self.tiles_per_symbol,
            'blocker_count': self.blocker_count,
            'points_to_win': self.points_to_win,
        }


def generate_room_code(length=5):
    """Generate a short, human-typeable room code."""
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
