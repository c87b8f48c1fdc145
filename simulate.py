"""Headless AI vs AI simulation for testing and benchmarking.

Usage:
    python simulate.py                    # Run 1 game, enemy (P1) vs random (P2)
    python simulate.py -n 100             # Run 100 games
    python simulate.py -p1 random -p2 enemy   # Specific AI types
    python simulate.py -n 100 --verbose   # Show each game result
    python simulate.py --seed 7 --debug   # Reproducible game with AI decision logs
"""

import argparse
import logging
import random
import time
from typing import Dict, Any, Optional
from dataclasses import dataclass

from damnata.ai import EnemyAI, RandomAI, AIPlayer, HeuristicPredictor
from damnata.arena import Arena
from damnata.card_database import create_random_deck
from damnata.interfaces import RecordingTelemetry
from damnata.settings import AISettings, load_settings

AI_TYPES = ['enemy', 'random']


@dataclass
class GameResult:
    """Result of a single game."""
    winner: int  # 1 or 2, 0 for a draw or timeout
    turns: int
    duration: float  # seconds
    p1_health: int
    p2_health: int
    p1_units_remaining: int
    p2_units_remaining: int


def create_ai(ai_type: str, arena: Arena, player: int, settings: AISettings,
              rng: random.Random) -> AIPlayer:
    """Create AI player of specified type, seated on `player`."""
    seat = arena.seat(player)
    if ai_type == 'enemy':
        return EnemyAI(seat, seat, settings=settings, telemetry=RecordingTelemetry(), rng=rng,
                       predictor=HeuristicPredictor())
    elif ai_type == 'random':
        return RandomAI(seat, seat, settings=settings, rng=rng)
    else:
        raise ValueError(f"Unknown AI type: {ai_type}")


def run_game(p1_type: str = 'enemy', p2_type: str = 'random', max_rounds: int = 60,
             seed: Optional[int] = None, settings: Optional[AISettings] = None,
             debug: bool = False) -> GameResult:
    """Run a single AI vs AI game.

    Args:
        p1_type: AI type for player 1 ('enemy' or 'random')
        p2_type: AI type for player 2 ('enemy' or 'random')
        max_rounds: Maximum rounds before declaring a draw
        seed: Random seed for reproducibility
        settings: AI tuning shared by both players
        debug: Print every turn

    Returns:
        GameResult with winner, turns, duration, etc.
    """
    start_time = time.time()
    rng = random.Random(seed)
    settings = settings or AISettings()

    arena = Arena(create_random_deck(rng), create_random_deck(rng), rng=rng)
    ais = {
        1: create_ai(p1_type, arena, 1, settings, random.Random(rng.random())),
        2: create_ai(p2_type, arena, 2, settings, random.Random(rng.random())),
    }

    winner = None
    while winner is None and arena.round_number < max_rounds:
        for player in arena.start_round():
            ai = ais[player]
            arena.start_turn(player)
            report = ai.play_cards()
            arena.begin_combat()
            ai.attack_phase(report)
            arena.end_turn()

            opponent = ais[arena.other(player)]
            if isinstance(opponent, EnemyAI):
                opponent.observe_opponent_turn(report.cards_played, bool(report.attacks))

            if debug:
                p1, p2 = arena.players[1], arena.players[2]
                print(f"  R{arena.round_number} P{player} ({ai.name}): "
                      f"{len(report.cards_played)} card(s), {len(report.attacks)} attack(s)"
                      f"{' [held cards]' if report.cards_skipped else ''}"
                      f"{' [skipped attack]' if report.attack_skipped else ''}"
                      f" - HP P1={p1.life} P2={p2.life}")

            winner = arena.check_winner()
            if winner is not None:
                break

    duration = time.time() - start_time

    return GameResult(
        winner=winner or 0,
        turns=arena.round_number,
        duration=duration,
        p1_health=arena.players[1].life,
        p2_health=arena.players[2].life,
        p1_units_remaining=len(arena.players[1].active_units),
        p2_units_remaining=len(arena.players[2].active_units),
    )


def run_simulation(n_games: int = 1, p1_type: str = 'enemy', p2_type: str = 'random',
                   seed: int = 0, settings: Optional[AISettings] = None,
                   verbose: bool = False, debug: bool = False) -> Dict[str, Any]:
    """Run multiple games and collect statistics.

    Args:
        n_games: Number of games to run
        p1_type: AI type for player 1
        p2_type: AI type for player 2
        seed: Seed of the first game, later games use seed + i
        settings: AI tuning shared by both players
        verbose: Print each game result
        debug: Print every turn

    Returns:
        Dictionary with statistics
    """
    p1_wins = 0
    p2_wins = 0
    draws = 0
    total_turns = 0
    total_duration = 0.0

    print(f"Running {n_games} game(s): {p1_type} (P1) vs {p2_type} (P2)")
    print("-" * 50)

    for i in range(n_games):
        game_seed = seed + i
        if debug:
            print(f"Game {i+1} (seed={game_seed}):")
        result = run_game(p1_type, p2_type, seed=game_seed, settings=settings, debug=debug)

        if result.winner == 1:
            p1_wins += 1
        elif result.winner == 2:
            p2_wins += 1
        else:
            draws += 1

        total_turns += result.turns
        total_duration += result.duration

        if verbose:
            winner_str = f"P{result.winner}" if result.winner else "Draw"
            print(f"Game {i+1}: {winner_str} in {result.turns} rounds "
                  f"({result.duration:.3f}s) - HP: P1={result.p1_health}, P2={result.p2_health}")

    stats = {
        'games': n_games,
        'p1_type': p1_type,
        'p2_type': p2_type,
        'p1_wins': p1_wins,
        'p2_wins': p2_wins,
        'draws': draws,
        'p1_win_rate': p1_wins / n_games * 100,
        'p2_win_rate': p2_wins / n_games * 100,
        'avg_turns': total_turns / n_games,
        'avg_duration': total_duration / n_games,
        'total_duration': total_duration,
        'games_per_second': n_games / total_duration if total_duration > 0 else 0,
    }

    print("-" * 50)
    print(f"Results after {n_games} game(s):")
    print(f"  P1 ({p1_type}): {p1_wins} wins ({stats['p1_win_rate']:.1f}%)")
    print(f"  P2 ({p2_type}): {p2_wins} wins ({stats['p2_win_rate']:.1f}%)")
    print(f"  Draws: {draws}")
    print(f"  Avg rounds: {stats['avg_turns']:.1f}")
    print(f"  Avg duration: {stats['avg_duration']*1000:.1f}ms per game")
    print(f"  Speed: {stats['games_per_second']:.1f} games/second")

    return stats


def main():
    parser = argparse.ArgumentParser(description='Run AI vs AI simulations')
    parser.add_argument('-n', '--games', type=int, default=1,
                        help='Number of games to run (default: 1)')
    parser.add_argument('-p1', '--player1', type=str, default='enemy', choices=AI_TYPES,
                        help='AI type for player 1 (default: enemy)')
    parser.add_argument('-p2', '--player2', type=str, default='random', choices=AI_TYPES,
                        help='AI type for player 2 (default: random)')
    parser.add_argument('--seed', type=int, default=0,
                        help='Seed of the first game (default: 0)')
    parser.add_argument('--settings', type=str, default=None,
                        help='AI settings JSON file (default: built-in defaults)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show each game result')
    parser.add_argument('-d', '--debug', action='store_true',
                        help='Show every turn and AI decision logs')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(name)s %(levelname)s: %(message)s',
    )
    settings = load_settings(args.settings) if args.settings else AISettings()

    run_simulation(
        n_games=args.games,
        p1_type=args.player1,
        p2_type=args.player2,
        seed=args.seed,
        settings=settings,
        verbose=args.verbose,
        debug=args.debug,
    )


if __name__ == '__main__':
    main()
