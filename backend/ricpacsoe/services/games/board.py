import random
from typing import Iterator, List, Tuple

from ricpacsoe.models import BLOCKER, EMPTY, Cell

BOARD_SIZE = 8

Coord = Tuple[int, int]


class Board:
    """Fixed N x N grid of cells. Every cell starts Empty."""

    def __init__(self, size: int = BOARD_SIZE):
        self.size = size
        self.cells: List[List[Cell]] = [[EMPTY] * size for _ in range(size)]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def get(self, row: int, col: int) -> Cell:
        return self.cells[row][col]

    def set(self, row: int, col: int, cell: Cell) -> None:
        self.cells[row][col] = cell

    def clear(self) -> None:
        for row in self.cells:
            row[:] = [EMPTY] * self.size

    def coords(self) -> Iterator[Coord]:
        for r in range(self.size):
            for c in range(self.size):
                yield r, c

    def empty_cells(self) -> List[Coord]:
        return [(r, c) for r, c in self.coords() if self.cells[r][c].is_empty]

    def is_full(self) -> bool:
        return not any(cell.is_empty for row in self.cells for cell in row)

    def to_list(self):
        return [[cell.to_dict() for cell in row] for row in self.cells]


def place_blockers(board: Board, count: int, rng=random) -> List[Coord]:
    """Mark up to `count` distinct random empty cells as blockers.

    Places every remaining empty cell when fewer than `count` exist.
    """
    empties = board.empty_cells()
    chosen = rng.sample(empties, min(max(count, 0), len(empties)))
    for r, c in chosen:
        board.set(r, c, BLOCKER)
    return chosen
