"""
Bitboard utilities for Connect Four.

Board layout (7 columns x 6 rows, each column in an 8-bit lane of a 64-bit int):

  guard |  7 15 23 31 39 47 55
  guard |  6 14 22 30 38 46 54
      6 |  5 13 21 29 37 45 53
      5 |  4 12 20 28 36 44 52
      4 |  3 11 19 27 35 43 51
      3 |  2 10 18 26 34 42 50
      2 |  1  9 17 25 33 41 49
      1 |  0  8 16 24 32 40 48
        +---------------------
           0  1  2  3  4  5  6

Square index = col * 8 + row (row 0 = bottom).
The top two bits of each lane are never set, so a carry out of a full
column or a shifted window cannot reach the next column's cells.
"""

from typing import Iterator

# Board dimensions
WIDTH = 7
HEIGHT = 6
PADDED_HEIGHT = 8
NUM_CELLS = WIDTH * HEIGHT  # 42
NUM_SQUARES = WIDTH * PADDED_HEIGHT  # 56

# Bit spacing between neighbouring cells of a line
VERTICAL = 1
HORIZONTAL = PADDED_HEIGHT
DIAGONAL_UP = PADDED_HEIGHT + 1    # up-right
DIAGONAL_DOWN = PADDED_HEIGHT - 1  # down-right

# (col step, row step, bit step) for each line direction
DIRECTIONS = {
    'vertical': (0, 1, VERTICAL),
    'horizontal': (1, 0, HORIZONTAL),
    'diagonal_up': (1, 1, DIAGONAL_UP),
    'diagonal_down': (1, -1, DIAGONAL_DOWN),
}

# Precomputed tables (initialized at module load)
BOTTOM_MASKS: list[int] = [0] * WIDTH  # row 0 of each column
TOP_MASKS: list[int] = [0] * WIDTH     # row HEIGHT-1 of each column
COLUMN_MASKS: list[int] = [0] * WIDTH  # playable rows of each column
WIN_WINDOWS: list[dict[str, list[int]]] = [{} for _ in range(NUM_SQUARES)]  # [sq][direction]

BOARD_MASK = 0    # every playable cell
BOTTOM_ROW = 0    # row 0 of every column
GUARD_MASK = 0    # every guard-band bit


def square(col: int, row: int) -> int:
    """Convert (col, row) to square index."""
    return col * PADDED_HEIGHT + row


def sq_to_colrow(sq: int) -> tuple[int, int]:
    """Convert square index to (col, row)."""
    return sq // PADDED_HEIGHT, sq % PADDED_HEIGHT


def is_valid_cell(col: int, row: int) -> bool:
    """Check if (col, row) is a playable cell."""
    return 0 <= col < WIDTH and 0 <= row < HEIGHT


def bit(sq: int) -> int:
    """Return bitboard with single bit set at square."""
    return 1 << sq


def popcount(bb: int) -> int:
    """Count number of set bits."""
    return bin(bb).count('1')


def lsb(bb: int) -> int:
    """Return index of least significant bit (or -1 if empty)."""
    if bb == 0:
        return -1
    return (bb & -bb).bit_length() - 1


def iter_bits(bb: int) -> Iterator[int]:
    """Iterate over indices of set bits."""
    while bb:
        sq = lsb(bb)
        yield sq
        bb &= bb - 1  # Clear LSB


def column_height(occupied: int, col: int) -> int:
    """Number of pieces stacked in a column."""
    return popcount(occupied & COLUMN_MASKS[col])


def line_mask(col: int, row: int, direction: str) -> int:
    """
    Four-cell template starting at (col, row) and running along direction.

    Returns 0 if any of the four cells falls off the board.
    """
    dc, dr, step = DIRECTIONS[direction]
    if not (is_valid_cell(col, row) and is_valid_cell(col + 3 * dc, row + 3 * dr)):
        return 0
    start = bit(square(col, row))
    return start | (start << step) | (start << 2 * step) | (start << 3 * step)


def print_bitboard(bb: int, label: str = "") -> None:
    """Print bitboard in readable format, guard band included."""
    if label:
        print(f"{label}:")
    for row in range(PADDED_HEIGHT - 1, -1, -1):
        rank = ("g" if row >= HEIGHT else str(row + 1)) + " |"
        for col in range(WIDTH):
            rank += " 1" if bb & bit(square(col, row)) else " ."
        print(rank)
    print("  +" + "-" * (WIDTH * 2))
    print("   " + " ".join(str(c) for c in range(WIDTH)))


def _init_column_masks() -> None:
    """Precompute per-column bottom, top and full-column masks."""
    global BOARD_MASK, BOTTOM_ROW, GUARD_MASK
    for col in range(WIDTH):
        BOTTOM_MASKS[col] = bit(square(col, 0))
        TOP_MASKS[col] = bit(square(col, HEIGHT - 1))
        COLUMN_MASKS[col] = ((1 << HEIGHT) - 1) << (col * PADDED_HEIGHT)
        BOARD_MASK |= COLUMN_MASKS[col]
        BOTTOM_ROW |= BOTTOM_MASKS[col]
        lane = ((1 << PADDED_HEIGHT) - 1) << (col * PADDED_HEIGHT)
        GUARD_MASK |= lane & ~COLUMN_MASKS[col]


def _init_win_windows() -> None:
    """
    Precompute, for every cell and direction, the four-in-a-row templates
    that pass through that cell.

    A vertical four can only be completed by the top piece of the run, so
    vertical windows end at the cell and exist only from row 3 upward.
    The other directions slide the window start back by k = 0..3 cells,
    clamped so no window leaves the board.
    """
    for col in range(WIDTH):
        for row in range(HEIGHT):
            sq = square(col, row)
            windows = WIN_WINDOWS[sq]

            windows['vertical'] = []
            if row >= 3:
                windows['vertical'].append(line_mask(col, row - 3, 'vertical'))

            for direction in ('horizontal', 'diagonal_up', 'diagonal_down'):
                dc, dr, _ = DIRECTIONS[direction]
                masks = []
                # Start up to 3 cells back; line_mask drops windows that leave the board
                for k in range(min(3, col) + 1):
                    start_col, start_row = col - k * dc, row - k * dr
                    mask = line_mask(start_col, start_row, direction)
                    if mask:
                        masks.append(mask)
                windows[direction] = masks


def has_four(stones: int, sq: int) -> bool:
    """Check whether stones contain four in a row through square sq."""
    for masks in WIN_WINDOWS[sq].values():
        for mask in masks:
            if stones & mask == mask:
                return True
    return False


# Initialize lookup tables at module load
_init_column_masks()
_init_win_windows()
