#!/usr/bin/env python3
"""
Terminal-based Connect Four game client.

Play against the Monte Carlo AI or watch AI vs AI games.
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from connect4.core.board import Board, Cell, MoveResult
from connect4.core.bitboard import WIDTH
from connect4.ai.montecarlo import SimulationEngine, MonteCarloConfig, select_move

logger = logging.getLogger(__name__)

PLAYER_NAMES = {Cell.X: "Red (R)", Cell.O: "Yellow (Y)"}


def print_board(board: Board) -> None:
    """Print the board with column numbers underneath."""
    print()
    print(board.render())
    print()


def parse_user_move(board: Board, input_str: str) -> int | str | None:
    """Parse user input into a column or a command."""
    input_str = input_str.strip().lower()

    if input_str in ['q', 'quit', 'exit']:
        return 'quit'
    if input_str in ['h', 'help', '?']:
        return 'help'

    try:
        column = int(input_str)
    except ValueError:
        print(f"Invalid input: {input_str!r}. Enter a column 0-{WIDTH - 1}")
        return None

    if not board.is_legal(column):
        print(f"Illegal move: column {column}")
        return None
    return column


def ai_move(engine: SimulationEngine, board: Board) -> int | None:
    """Run the engine, show its analysis and return its column (None = resign)."""
    start = time.time()
    analysis = engine.analyze(board)
    logger.debug(f"Analysis of ply {board.move_count} took {time.time() - start:.2f}s")
    print("AI analysis:")
    for m in analysis:
        print(f"  column {m['column']}: score={m['score']:+.4f} "
              f"({m['wins']}W/{m['losses']}L/{m['draws']}D)")
    return select_move({m['column']: m['score'] for m in analysis})


def announce(result: MoveResult, board: Board) -> None:
    """Print the final position and its outcome."""
    print_board(board)
    if result is MoveResult.DRAW:
        print("It's a draw!")
    else:
        print(f"{PLAYER_NAMES[result.winner]} wins!")


def play_human_vs_ai(
    human_player: Cell = Cell.X,
    num_trials: int = 1000,
    workers: int = 1,
    seed: int | None = None
) -> None:
    """Play a game: human vs AI."""
    board = Board.new_game()
    engine = SimulationEngine(MonteCarloConfig(num_trials=num_trials, workers=workers, seed=seed))

    print("\n=== Connect Four ===")
    print("You are", PLAYER_NAMES[human_player])
    print(f"Commands: column number (0-{WIDTH - 1}), 'h' help, 'q' quit")

    result = MoveResult.NONE
    while not result.is_terminal:
        print_board(board)
        player = board.current_player()

        if player == human_player:
            print(f"Your turn ({PLAYER_NAMES[player]})")

            while True:
                try:
                    user_input = input("> ").strip()
                except EOFError:
                    return

                move = parse_user_move(board, user_input)

                if move == 'quit':
                    print("Thanks for playing!")
                    return
                elif move == 'help':
                    print("Enter a column number to drop a piece, 'q' to quit")
                elif move is not None:
                    result = board.apply_move(move)
                    break
        else:
            print(f"AI thinking ({num_trials} trials per column)...")
            move = ai_move(engine, board)
            if move is None:
                print("AI sees no favourable move and resigns. You win!")
                return
            result = board.apply_move(move)
            print(f"AI plays: column {move}")

    announce(result, board)


def watch_ai_vs_ai(
    num_trials: int = 1000,
    workers: int = 1,
    seed: int | None = None,
    delay: float = 1.0
) -> None:
    """Watch AI play against itself."""
    board = Board.new_game()
    engine = SimulationEngine(MonteCarloConfig(num_trials=num_trials, workers=workers, seed=seed))

    print("\n=== AI vs AI ===")
    print(f"Trials per column: {num_trials}")

    result = MoveResult.NONE
    while not result.is_terminal:
        print_board(board)
        player = board.current_player()
        print(f"Move {board.move_count + 1}, {PLAYER_NAMES[player]}")

        move = ai_move(engine, board)
        if move is None:
            print(f"{PLAYER_NAMES[player]} resigns. {PLAYER_NAMES[player.opponent]} wins!")
            return

        result = board.apply_move(move)
        print(f"Plays: column {move}\n")
        time.sleep(delay)

    announce(result, board)


def main():
    parser = argparse.ArgumentParser(description='Connect Four Terminal Client')
    parser.add_argument('--trials', type=int, default=1000, help='Random games per column')
    parser.add_argument('--workers', type=int, default=1, help='Threads per evaluation')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--watch', action='store_true', help='Watch AI vs AI')
    parser.add_argument('--delay', type=float, default=1.0, help='Seconds between AI moves when watching')
    parser.add_argument('--play-as', type=int, choices=[1, 2], default=1,
                        help='Play as player 1 (R) or 2 (Y)')
    parser.add_argument('--verbose', action='store_true', help='Log engine statistics')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )

    if args.watch:
        watch_ai_vs_ai(args.trials, args.workers, args.seed, args.delay)
    else:
        human = Cell.X if args.play_as == 1 else Cell.O
        play_human_vs_ai(human, args.trials, args.workers, args.seed)


if __name__ == '__main__':
    main()
