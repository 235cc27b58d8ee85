from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ricpacsoe.models import EMPTY, Player
from .board import Board, Coord

# horizontal, vertical, diagonal, anti-diagonal
DIRECTIONS: Tuple[Coord, ...] = ((0, 1), (1, 0), (1, 1), (1, -1))

ELIMINATION = 'elimination'
LINE = 'line'
MISPLACEMENT = 'misplacement'


@dataclass(frozen=True)
class Highlight:
    row: int
    col: int
    player: int
    kind: str

    def to_dict(self):
        return {'row': self.row, 'col': self.col, 'player': self.player, 'kind': self.kind}


@dataclass
class PlacementOutcome:
    deltas: Dict[int, int] = field(default_factory=dict)
    highlights: List[Highlight] = field(default_factory=list)
    eliminated: List[Coord] = field(default_factory=list)


def run_extent(board: Board, row: int, col: int, dr: int, dc: int) -> Tuple[int, int]:
    """Steps the same-owner, same-symbol run through (row, col) extends backward and forward."""
    origin = board.get(row, col)

    def _walk(sign: int) -> int:
        steps = 0
        r, c = row + sign * dr, col + sign * dc
        while board.in_bounds(r, c) and origin.same_piece(board.get(r, c)):
            steps += 1
            r, c = r + sign * dr, c + sign * dc
        return steps

    return _walk(-1), _walk(1)


def misplacement_penalties(board: Board, row: int, col: int) -> List[Highlight]:
    """Score opponents for a piece dropped between two of their counter pieces.

    Per axis, the windows ending at, centered at and starting at (row, col)
    are checked in that order. A window qualifies when the other two cells
    both hold the symbol that beats the placed one and belong to one and the
    same opponent. Only the first qualifying window of an axis counts; each
    yields three highlights tagged with the rewarded opponent.
    """
    placed = board.get(row, col)
    counter = placed.symbol.defeated_by
    highlights: List[Highlight] = []
    for dr, dc in DIRECTIONS:
        for start in (-2, -1, 0):
            window = [(row + (start + i) * dr, col + (start + i) * dc) for i in range(3)]
            if not all(board.in_bounds(r, c) for r, c in window):
                continue
            others = [board.get(r, c) for r, c in window if (r, c) != (row, col)]
            if not all(cell.is_piece and cell.symbol is counter for cell in others):
                continue
            owners = {cell.owner for cell in others}
            if len(owners) != 1 or placed.owner in owners:
                continue
            opponent = owners.pop()
            highlights.extend(Highlight(r, c, opponent, MISPLACEMENT) for r, c in window)
            break
    return highlights


def resolve_eliminations(board: Board, row: int, col: int) -> List[Highlight]:
    """Remove beaten opposing pieces sitting just past either end of each run.

    This mutates the board. One highlight (tagged with the placer) per removal.
    """
    placed = board.get(row, col)
    highlights: List[Highlight] = []
    for dr, dc in DIRECTIONS:
        back, forward = run_extent(board, row, col, dr, dc)
        ends = (
            (row - (back + 1) * dr, col - (back + 1) * dc),
            (row + (forward + 1) * dr, col + (forward + 1) * dc),
        )
        for r, c in ends:
            if not board.in_bounds(r, c):
                continue
            target = board.get(r, c)
            if target.is_piece and target.owner != placed.owner and placed.symbol.beats(target.symbol):
                board.set(r, c, EMPTY)
                highlights.append(Highlight(r, c, placed.owner, ELIMINATION))
    return highlights


def line_bonuses(board: Board, row: int, col: int) -> List[List[Highlight]]:
    """One 3-cell window per axis where the run through (row, col) reaches 3."""
    placed = board.get(row, col)
    windows = []
    for dr, dc in DIRECTIONS:
        back, forward = run_extent(board, row, col, dr, dc)
        if back + forward + 1 < 3:
            continue
        # center on the placed cell, shifted to stay inside the run
        start = max(-back, min(-1, forward - 2))
        windows.append([
            Highlight(row + (start + i) * dr, col + (start + i) * dc, placed.owner, LINE)
            for i in range(3)
        ])
    return windows


def evaluate_placement(board: Board, row: int, col: int) -> PlacementOutcome:
    """Apply the rules for the piece just placed at (row, col).

    Order matters: misplacement is scored first, then eliminations are
    resolved (mutating the board), then line bonuses are counted on what is
    left.
    """
    placer = board.get(row, col).owner
    outcome = PlacementOutcome()
    deltas = defaultdict(int)

    penalties = misplacement_penalties(board, row, col)
    for hl in penalties[::3]:
        deltas[hl.player] += 1
    outcome.highlights.extend(penalties)

    removed = resolve_eliminations(board, row, col)
    if removed:
        deltas[placer] += len(removed)
        outcome.eliminated = [(hl.row, hl.col) for hl in removed]
        outcome.highlights.extend(removed)

    for window in line_bonuses(board, row, col):
        deltas[placer] += 1
        outcome.highlights.extend(window)

    outcome.deltas = dict(deltas)
    return outcome


def winners(players: Iterable[Player]) -> List[int]:
    """Seats sharing the top score."""
    players = list(players)
    if not players:
        return []
    best = max(p.score for p in players)
    return [p.seat for p in players if p.score == best]


def result_message(players: Iterable[Player], seats: List[int], reason: Optional[str] = None) -> str:
    by_seat = {p.seat: p for p in players}
    named = [by_seat[s] for s in seats]
    prefix = f"{reason} " if reason else ''
    if len(named) == 1:
        return f"{prefix}{named[0].name} wins with {named[0].score} points!"
    names = ', '.join(p.name for p in named)
    return f"{prefix}Tie between {names} with {named[0].score} points!"
