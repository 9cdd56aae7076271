"""
Board representation for Connect Four.

The whole position is two bitboards and a move counter:

  occupied   every square holding a piece
  ownership  the squares whose piece belongs to the player to move

Each move sets one bit in occupied and then flips ownership across every
occupied square, so after the move ownership holds the next player's pieces.
Which absolute player owns a piece is recovered from move parity.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
import numpy as np

from .bitboard import (
    WIDTH, HEIGHT, NUM_CELLS, BOARD_MASK,
    BOTTOM_MASKS, TOP_MASKS, COLUMN_MASKS,
    bit, square, lsb, popcount, column_height, has_four, is_valid_cell,
)


class Cell(Enum):
    """Contents of one board cell."""
    EMPTY = 0
    X = 1  # First player
    O = 2  # Second player

    @property
    def opponent(self) -> Cell:
        if self is Cell.X:
            return Cell.O
        if self is Cell.O:
            return Cell.X
        raise ValueError("Empty cell has no opponent")

    @classmethod
    def from_char(cls, c: str) -> Optional[Cell]:
        """Parse a display character, or None if it is not a cell symbol."""
        return _CHAR_TO_CELL.get(c)

    def to_char(self) -> str:
        return _CELL_TO_CHAR[self]


_CELL_TO_CHAR = {Cell.EMPTY: ' ', Cell.X: 'R', Cell.O: 'Y'}
_CHAR_TO_CELL = {c: cell for cell, c in _CELL_TO_CHAR.items()}


class MoveResult(Enum):
    """Outcome of applying one move."""
    NONE = 'none'
    WIN_X = 'win_x'
    WIN_O = 'win_o'
    DRAW = 'draw'
    ILLEGAL = 'illegal'

    @property
    def winner(self) -> Cell:
        """Player named by a win result, EMPTY for anything else."""
        if self is MoveResult.WIN_X:
            return Cell.X
        if self is MoveResult.WIN_O:
            return Cell.O
        return Cell.EMPTY

    @property
    def is_terminal(self) -> bool:
        return self in (MoveResult.WIN_X, MoveResult.WIN_O, MoveResult.DRAW)

    @classmethod
    def for_winner(cls, cell: Cell) -> MoveResult:
        if cell is Cell.X:
            return cls.WIN_X
        if cell is Cell.O:
            return cls.WIN_O
        raise ValueError("Empty cell cannot win")


@dataclass
class Board:
    """
    A Connect Four position.

    Attributes:
        occupied: Bitboard of all pieces on the board
        ownership: Bitboard of the pieces belonging to the player to move
        move_count: Number of pieces placed so far
    """
    occupied: int = 0
    ownership: int = 0
    move_count: int = 0

    @classmethod
    def new_game(cls) -> Board:
        """Create an empty board."""
        return cls()

    @classmethod
    def from_moves(cls, columns: Iterable[int]) -> Board:
        """Replay a sequence of columns from the empty board."""
        board = cls()
        for i, col in enumerate(columns):
            if board.apply_move(col) is MoveResult.ILLEGAL:
                raise ValueError(f"Illegal move {col} at ply {i}")
        return board

    @classmethod
    def from_string(cls, text: str) -> Board:
        """
        Parse a grid as produced by render().

        Only the HEIGHT lines starting with '|' are read, top row first.
        The cell symbols are 'R' (X), 'Y' (O) and ' ' or '.' (empty).
        """
        rows = [line for line in text.splitlines() if line.startswith('|')][:HEIGHT]
        if len(rows) != HEIGHT:
            raise ValueError(f"Expected {HEIGHT} board rows, got {len(rows)}")

        stones = {Cell.X: 0, Cell.O: 0}
        for y, line in enumerate(rows):
            row = HEIGHT - 1 - y
            fields = line.split('|')[1:WIDTH + 1]
            if len(fields) != WIDTH:
                raise ValueError(f"Row {row}: expected {WIDTH} cells")
            for col, field in enumerate(fields):
                symbol = field.strip() or ' '
                cell = Cell.EMPTY if symbol == '.' else Cell.from_char(symbol)
                if cell is None:
                    raise ValueError(f"Unknown cell symbol {symbol!r} at ({col}, {row})")
                if cell is not Cell.EMPTY:
                    stones[cell] |= bit(square(col, row))

        occupied = stones[Cell.X] | stones[Cell.O]
        # Gravity: each column is a solid run starting at row 0
        for col in range(WIDTH):
            height = column_height(occupied, col)
            run = ((1 << height) - 1) << square(col, 0)
            if occupied & COLUMN_MASKS[col] != run:
                raise ValueError(f"Column {col} has a floating piece")

        n_x, n_o = popcount(stones[Cell.X]), popcount(stones[Cell.O])
        if n_x - n_o not in (0, 1):
            raise ValueError(f"Piece counts do not alternate: {n_x} R vs {n_o} Y")

        move_count = n_x + n_o
        to_move = Cell.X if move_count % 2 == 0 else Cell.O
        return cls(occupied=occupied, ownership=stones[to_move], move_count=move_count)

    def copy(self) -> Board:
        """Create a detached copy."""
        return Board(
            occupied=self.occupied,
            ownership=self.ownership,
            move_count=self.move_count,
        )

    def current_player(self) -> Cell:
        """Player to move, from move parity."""
        return Cell.X if self.move_count % 2 == 0 else Cell.O

    def is_full(self) -> bool:
        return self.move_count == NUM_CELLS

    def is_legal(self, column: int) -> bool:
        """Check if a piece can be dropped into column."""
        if not 0 <= column < WIDTH:
            return False
        return (self.occupied & TOP_MASKS[column]) == 0

    def legal_moves(self) -> list[int]:
        """All playable columns, in ascending order."""
        return [col for col in range(WIDTH) if self.occupied & TOP_MASKS[col] == 0]

    def apply_move(self, column: int) -> MoveResult:
        """
        Drop a piece for the player to move into column.

        Modifies the board in-place unless the move is illegal, in which case
        the board is untouched and ILLEGAL is returned.
        """
        if not self.is_legal(column):
            return MoveResult.ILLEGAL

        mover = self.current_player()

        # Adding the column's bottom bit carries through the filled run and
        # lands on the lowest free row; OR/XOR with occupied isolates it.
        new_bit = ((self.occupied + BOTTOM_MASKS[column]) | self.occupied) ^ self.occupied

        mover_stones = self.ownership | new_bit
        self.occupied |= new_bit
        self.ownership = mover_stones ^ self.occupied
        self.move_count += 1

        if has_four(mover_stones, lsb(new_bit)):
            return MoveResult.for_winner(mover)
        if self.is_full():
            return MoveResult.DRAW
        return MoveResult.NONE

    def get(self, column: int, row: int) -> Cell:
        """Contents of (column, row), row 0 being the bottom."""
        if not is_valid_cell(column, row):
            raise ValueError(f"Cell ({column}, {row}) is off the board")
        b = bit(square(column, row))
        if not self.occupied & b:
            return Cell.EMPTY
        to_move = self.current_player()
        return to_move if self.ownership & b else to_move.opponent

    def column_height(self, column: int) -> int:
        """Number of pieces in column."""
        return column_height(self.occupied, column)

    def to_array(self) -> np.ndarray:
        """
        Convert board to a (2, HEIGHT, WIDTH) float32 array.

          - Plane 0: Current player's pieces
          - Plane 1: Opponent's pieces

        Row 0 of each plane is the bottom of the board.
        """
        planes = np.zeros((2, HEIGHT, WIDTH), dtype=np.float32)
        opponent = self.occupied & ~self.ownership
        for col in range(WIDTH):
            for row in range(HEIGHT):
                b = bit(square(col, row))
                if self.ownership & b:
                    planes[0, row, col] = 1.0
                elif opponent & b:
                    planes[1, row, col] = 1.0
        return planes

    def render(self) -> str:
        """Text grid: top row first, then a rule and the column numbers."""
        lines = []
        for row in range(HEIGHT - 1, -1, -1):
            lines.append("".join(f"|{self.get(col, row).to_char()} " for col in range(WIDTH)) + "|")
        lines.append("+--" * WIDTH + "+")
        lines.append("".join(f"|{col} " for col in range(WIDTH)) + "|")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()

    def __hash__(self) -> int:
        return hash((self.occupied, self.ownership, self.move_count))

    def check_invariants(self) -> None:
        """Assert the structural invariants of the encoding."""
        assert self.occupied & ~BOARD_MASK == 0, "piece outside the board"
        assert self.ownership & ~self.occupied == 0, "ownership of an empty cell"
        assert popcount(self.occupied) == self.move_count, "move count mismatch"
        for col in range(WIDTH):
            height = column_height(self.occupied, col)
            run = ((1 << height) - 1) << square(col, 0)
            assert self.occupied & COLUMN_MASKS[col] == run, \
                f"column {col} has a gap"
