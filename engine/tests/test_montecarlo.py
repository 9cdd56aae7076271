"""Tests for Monte Carlo move evaluation."""

import pytest
import sys
from pathlib import Path
import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from connect4.core.board import Board, Cell
from connect4.core.bitboard import WIDTH, HEIGHT
from connect4.ai.montecarlo import (
    SimulationEngine, MonteCarloConfig, SimulationStats, TrialResult,
    ILLEGAL_SCORE, play_trial, select_move, play_move
)

from test_terminal import DRAW_SEQUENCE

# X to move with three in column 0
X_WINS_NEXT = [0, 1, 0, 1, 0, 1]


def make_engine(num_trials: int = 50, **kwargs) -> SimulationEngine:
    return SimulationEngine(MonteCarloConfig(num_trials=num_trials, **kwargs))


class TestMonteCarloConfig:
    def test_default_config(self):
        config = MonteCarloConfig()
        assert config.num_trials == 1000
        assert config.workers == 1
        assert config.seed is None

    def test_custom_config(self):
        config = MonteCarloConfig(num_trials=100, workers=4, seed=7)
        assert config.num_trials == 100
        assert config.workers == 4
        assert config.seed == 7

    def test_negative_trials(self):
        with pytest.raises(ValueError):
            MonteCarloConfig(num_trials=-1)

    def test_no_workers(self):
        with pytest.raises(ValueError):
            MonteCarloConfig(workers=0)


class TestSimulationStats:
    def test_empty_score(self):
        assert SimulationStats().score == 0.0

    def test_record(self):
        stats = SimulationStats()
        stats.record(TrialResult(outcome=1, plies=5))
        stats.record(TrialResult(outcome=-1, plies=10))
        stats.record(TrialResult(outcome=1, plies=7))
        stats.record(TrialResult(outcome=0, plies=20))
        assert stats.trials == 4
        assert (stats.wins, stats.losses, stats.draws) == (2, 1, 1)
        assert stats.plies == 42
        assert stats.net_wins == 1
        assert stats.score == pytest.approx(1 / 42)

    def test_merge(self):
        a = SimulationStats(trials=2, wins=1, losses=1, draws=0, plies=10)
        b = SimulationStats(trials=3, wins=2, losses=0, draws=1, plies=20)
        a.merge(b)
        assert a == SimulationStats(trials=5, wins=3, losses=1, draws=1, plies=30)


class TestPlayTrial:
    def test_immediate_win(self):
        board = Board.from_moves(X_WINS_NEXT)
        rng = np.random.default_rng(0)
        assert play_trial(board, Cell.X, 0, rng) == TrialResult(outcome=1, plies=1)
        assert play_trial(board, Cell.O, 0, rng) == TrialResult(outcome=-1, plies=1)

    def test_random_games_from_empty_board(self):
        board = Board.new_game()
        rng = np.random.default_rng(1)
        for column in range(WIDTH):
            trial = play_trial(board, Cell.X, column, rng)
            assert trial.outcome in (-1, 0, 1)
            if trial.outcome == 0:
                # Only a full board ends without a winner
                assert trial.plies == WIDTH * HEIGHT
            else:
                assert 7 <= trial.plies <= WIDTH * HEIGHT

    def test_last_move_is_draw(self):
        board = Board.from_moves(DRAW_SEQUENCE[:-1])
        rng = np.random.default_rng(2)
        assert play_trial(board, Cell.O, 5, rng) == TrialResult(outcome=0, plies=1)

    def test_board_not_modified(self):
        board = Board.from_moves([3, 3, 2])
        before = board.copy()
        play_trial(board, Cell.O, 4, np.random.default_rng(3))
        assert board == before


class TestEvaluate:
    def test_illegal_column(self):
        engine = make_engine()
        board = Board.from_moves([0] * HEIGHT)
        assert engine.evaluate(board, Cell.X, 0) == ILLEGAL_SCORE
        assert engine.evaluate(board, Cell.X, -1) == ILLEGAL_SCORE
        assert engine.evaluate(board, Cell.X, WIDTH) == ILLEGAL_SCORE
        assert engine.simulate(board, Cell.X, 0).trials == 0

    def test_immediate_win_scores_one(self):
        engine = make_engine(num_trials=20)
        board = Board.from_moves(X_WINS_NEXT)
        assert engine.evaluate(board, Cell.X, 0) == pytest.approx(1.0)

    def test_immediate_loss_for_other_player(self):
        engine = make_engine(num_trials=20)
        board = Board.from_moves(X_WINS_NEXT)
        assert engine.evaluate(board, Cell.O, 0) == pytest.approx(-1.0)

    def test_winning_move_median_positive(self):
        engine = make_engine(num_trials=20)
        board = Board.from_moves(X_WINS_NEXT)
        scores = [engine.evaluate(board, Cell.X, 0) for _ in range(50)]
        assert np.median(scores) > 0.05

    def test_winning_move_ranks_first(self):
        engine = make_engine(num_trials=30)
        board = Board.from_moves(X_WINS_NEXT)
        scores = engine.rank_moves(board)
        assert set(scores) == set(range(WIDTH))
        for column in range(1, WIDTH):
            assert scores[0] > scores[column]

    def test_score_bounds(self):
        engine = make_engine(num_trials=30)
        board = Board.new_game()
        for column in range(WIDTH):
            score = engine.evaluate(board, Cell.X, column)
            assert -1.0 <= score <= 1.0

    def test_filling_move_scores_zero(self):
        engine = make_engine(num_trials=10)
        board = Board.from_moves(DRAW_SEQUENCE[:-1])
        assert engine.evaluate(board, Cell.O, 5) == 0.0
        stats = engine.simulate(board, Cell.O, 5)
        assert stats.draws == stats.trials == 10
        assert stats.plies == 10

    def test_zero_trials(self):
        engine = make_engine(num_trials=0)
        assert engine.evaluate(Board.new_game(), Cell.X, 3) == 0.0

    def test_board_not_modified(self):
        engine = make_engine(num_trials=20)
        board = Board.from_moves([3, 2, 3])
        before = board.copy()
        engine.rank_moves(board)
        assert board == before

    def test_stats_consistent(self):
        engine = make_engine(num_trials=40)
        stats = engine.simulate(Board.new_game(), Cell.X, 3)
        assert stats.trials == 40
        assert stats.wins + stats.losses + stats.draws == 40
        assert stats.plies >= 7 * (stats.wins + stats.losses)
        assert engine.total_trials == 40
        assert engine.total_evaluations == 1


class TestParallel:
    def test_trials_split_across_workers(self):
        engine = make_engine(num_trials=10, workers=4)
        stats = engine.simulate(Board.new_game(), Cell.X, 3)
        assert stats.trials == 10

    def test_more_workers_than_trials(self):
        engine = make_engine(num_trials=2, workers=8)
        assert engine.simulate(Board.new_game(), Cell.X, 3).trials == 2

    def test_parallel_immediate_win(self):
        engine = make_engine(num_trials=16, workers=4)
        board = Board.from_moves(X_WINS_NEXT)
        assert engine.evaluate(board, Cell.X, 0) == pytest.approx(1.0)


class TestSeeding:
    def test_same_seed_same_stats(self):
        board = Board.from_moves([3, 3])
        a = make_engine(num_trials=30, seed=42).simulate(board, Cell.X, 2)
        b = make_engine(num_trials=30, seed=42).simulate(board, Cell.X, 2)
        assert a == b


class TestMoveSelection:
    def test_highest_score(self):
        assert select_move({0: 0.1, 1: 0.3, 2: 0.2}) == 1

    def test_ties_go_to_lowest_column(self):
        assert select_move({4: 0.2, 2: 0.2, 5: 0.1}) == 2

    def test_non_positive_scores_choose_nothing(self):
        assert select_move({0: 0.0, 1: -0.3}) is None
        assert select_move({}) is None

    def test_illegal_score_never_chosen(self):
        assert select_move({0: ILLEGAL_SCORE, 3: 0.05}) == 3

    def test_choose_winning_move(self):
        engine = make_engine(num_trials=30)
        assert engine.choose_move(Board.from_moves(X_WINS_NEXT)) == 0

    def test_choose_on_forced_draw(self):
        engine = make_engine(num_trials=5)
        assert engine.choose_move(Board.from_moves(DRAW_SEQUENCE[:-1])) is None

    def test_play_move(self):
        move, scores = play_move(Board.from_moves(X_WINS_NEXT), num_trials=30)
        assert move == 0
        assert scores[0] == pytest.approx(1.0)


class TestAnalyze:
    def test_sorted_by_score(self):
        engine = make_engine(num_trials=20)
        analysis = engine.analyze(Board.from_moves(X_WINS_NEXT))
        assert len(analysis) == WIDTH
        assert analysis[0]['column'] == 0
        assert analysis[0]['wins'] == 20
        scores = [m['score'] for m in analysis]
        assert scores == sorted(scores, reverse=True)

    def test_top_k(self):
        engine = make_engine(num_trials=5)
        assert len(engine.analyze(Board.new_game(), top_k=3)) == 3

    def test_skips_full_columns(self):
        engine = make_engine(num_trials=5)
        analysis = engine.analyze(Board.from_moves([0] * HEIGHT))
        assert 0 not in [m['column'] for m in analysis]
