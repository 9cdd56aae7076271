"""
Monte Carlo move evaluation for Connect Four.

A candidate column is scored by playing many games to completion from it,
every later move chosen uniformly at random among the legal columns, and
comparing how often the evaluated player wins and loses.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Optional
import logging
import numpy as np

from ..core.board import Board, Cell
from ..core.bitboard import WIDTH

logger = logging.getLogger(__name__)

# Score reported for a column that cannot be played
ILLEGAL_SCORE = float('-inf')


@dataclass
class MonteCarloConfig:
    """Configuration for Monte Carlo evaluation."""
    num_trials: int = 1000  # Random games played per evaluated column
    workers: int = 1  # Threads sharing the trials of one evaluation
    seed: Optional[int] = None  # Seed for reproducible single-worker runs

    def __post_init__(self) -> None:
        if self.num_trials < 0:
            raise ValueError(f"num_trials must be >= 0, got {self.num_trials}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")


@dataclass
class TrialResult:
    """Outcome of one random game."""
    outcome: int  # +1 win, -1 loss, 0 draw for the evaluated player
    plies: int  # Moves played, the candidate move included


@dataclass
class SimulationStats:
    """Aggregated outcomes of a batch of trials."""
    trials: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    plies: int = 0

    def record(self, trial: TrialResult) -> None:
        self.trials += 1
        self.plies += trial.plies
        if trial.outcome > 0:
            self.wins += 1
        elif trial.outcome < 0:
            self.losses += 1
        else:
            self.draws += 1

    def merge(self, other: SimulationStats) -> None:
        self.trials += other.trials
        self.wins += other.wins
        self.losses += other.losses
        self.draws += other.draws
        self.plies += other.plies

    @property
    def net_wins(self) -> int:
        return self.wins - self.losses

    @property
    def score(self) -> float:
        """
        Net wins divided by total plies played.

        Normalizing by game length keeps long random games from dominating
        the signal. Lies in [-1, 1]; 0 when nothing was played.
        """
        if self.plies == 0:
            return 0.0
        return self.net_wins / self.plies


def play_trial(
    board: Board,
    player: Cell,
    column: int,
    rng: np.random.Generator
) -> TrialResult:
    """
    Play column on a copy of board, then random moves until the game ends.

    The column must be legal on board.
    """
    sim_board = board.copy()
    result = sim_board.apply_move(column)
    plies = 1

    while not result.is_terminal:
        legal = sim_board.legal_moves()
        if not legal:
            break  # No moves left counts as a draw
        result = sim_board.apply_move(legal[rng.integers(len(legal))])
        plies += 1

    winner = result.winner
    if winner is Cell.EMPTY:
        outcome = 0
    elif winner is player:
        outcome = 1
    else:
        outcome = -1
    return TrialResult(outcome=outcome, plies=plies)


def select_move(scores: dict[int, float]) -> Optional[int]:
    """
    Pick the column with the strictly highest score.

    Starts from a best score of 0, so ties go to the lowest column and a
    position where no column scores above 0 yields None.
    """
    best_score = 0.0
    best_move = None
    for column in sorted(scores):
        if scores[column] > best_score:
            best_score = scores[column]
            best_move = column
    return best_move


class SimulationEngine:
    """
    Scores candidate moves by random playout.

    Every trial works on its own board copy, so trials can be split across
    worker threads; each worker draws from its own numpy Generator.
    """

    def __init__(self, config: Optional[MonteCarloConfig] = None):
        self.config = config or MonteCarloConfig()
        self._seed_seq = np.random.SeedSequence(self.config.seed)

        # Statistics
        self.total_trials = 0
        self.total_evaluations = 0

    def _spawn_rngs(self, n: int) -> list[np.random.Generator]:
        return [np.random.default_rng(s) for s in self._seed_seq.spawn(n)]

    def _run_trials(
        self,
        board: Board,
        player: Cell,
        column: int,
        num_trials: int,
        rng: np.random.Generator
    ) -> SimulationStats:
        stats = SimulationStats()
        for _ in range(num_trials):
            stats.record(play_trial(board, player, column, rng))
        return stats

    def simulate(self, board: Board, player: Cell, column: int) -> SimulationStats:
        """
        Run the configured number of trials for column.

        Returns empty stats if column is not legal on board. The board
        itself is never modified.
        """
        if not board.is_legal(column):
            return SimulationStats()

        num_trials = self.config.num_trials
        workers = min(self.config.workers, max(num_trials, 1))

        if workers == 1:
            stats = self._run_trials(board, player, column, num_trials, self._spawn_rngs(1)[0])
        else:
            # Split trials as evenly as possible across workers
            counts = [num_trials // workers + (1 if i < num_trials % workers else 0)
                      for i in range(workers)]
            stats = SimulationStats()
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self._run_trials, board, player, column, count, rng)
                    for count, rng in zip(counts, self._spawn_rngs(workers))
                ]
                for future in as_completed(futures):
                    stats.merge(future.result())

        self.total_trials += stats.trials
        self.total_evaluations += 1
        return stats

    def evaluate(self, board: Board, player: Cell, column: int) -> float:
        """
        Score playing column on board from player's point of view.

        Returns ILLEGAL_SCORE for a column that cannot be played, otherwise
        net wins per ply in [-1, 1]. Higher is better for player.
        """
        if not board.is_legal(column):
            logger.debug(f"Column {column} is not playable, skipping")
            return ILLEGAL_SCORE

        stats = self.simulate(board, player, column)
        score = stats.score
        logger.debug(
            f"Column {column}: {stats.wins}W/{stats.losses}L/{stats.draws}D "
            f"in {stats.trials} trials, {stats.plies} plies, score={score:.4f}"
        )
        return score

    def rank_moves(self, board: Board, player: Optional[Cell] = None) -> dict[int, float]:
        """Score every legal column. Player defaults to the player to move."""
        if player is None:
            player = board.current_player()
        return {column: self.evaluate(board, player, column) for column in board.legal_moves()}

    def choose_move(self, board: Board, player: Optional[Cell] = None) -> Optional[int]:
        """Best column by select_move(), or None if none scores above 0."""
        scores = self.rank_moves(board, player)
        move = select_move(scores)
        if move is None:
            logger.info(f"No column scored above 0 at ply {board.move_count}")
        else:
            logger.info(f"Chose column {move} (score {scores[move]:.4f}) at ply {board.move_count}")
        return move

    def analyze(
        self,
        board: Board,
        player: Optional[Cell] = None,
        top_k: int = WIDTH
    ) -> list[dict]:
        """
        Simulate every legal column.

        Returns list of per-column statistics, best score first.
        """
        if player is None:
            player = board.current_player()

        moves = []
        for column in board.legal_moves():
            stats = self.simulate(board, player, column)
            moves.append({
                'column': column,
                'score': stats.score,
                'wins': stats.wins,
                'losses': stats.losses,
                'draws': stats.draws,
                'plies': stats.plies,
            })

        moves.sort(key=lambda m: m['score'], reverse=True)
        return moves[:top_k]


def play_move(
    board: Board,
    num_trials: int = 1000,
    workers: int = 1,
    seed: Optional[int] = None
) -> tuple[Optional[int], dict[int, float]]:
    """
    Choose a move for the player to move.

    Args:
        board: Current position (not modified)
        num_trials: Random games per candidate column
        workers: Threads per evaluation
        seed: Seed for reproducible single-worker runs

    Returns (column or None, scores by column).
    """
    config = MonteCarloConfig(num_trials=num_trials, workers=workers, seed=seed)
    engine = SimulationEngine(config)
    scores = engine.rank_moves(board)
    return select_move(scores), scores
