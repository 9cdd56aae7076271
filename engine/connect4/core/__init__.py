"""Core game logic: bitboards and board state."""

from .bitboard import *
from .board import Board, Cell, MoveResult
