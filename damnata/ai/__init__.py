"""AI module for the enemy player.

AI players read the game through a UnitProvider and act through an
ActionExecutor; they never touch game state directly.

Usage:
    from damnata.ai import EnemyAI
    from damnata.arena import Arena

    arena = Arena(deck_p1, deck_p2, seed=1)
    seat = arena.seat(2)
    ai = EnemyAI(seat, seat, seed=1)

    # In game loop, on the AI's turn:
    arena.start_turn(2)
    ai.play_cards()
    arena.begin_combat()
    ai.attack_phase()
    arena.end_turn()
"""

from .base import AIPlayer, AIAction, ActionKind, TurnReport
from .enemy_ai import EnemyAI
from .random_ai import RandomAI
from .attack_planner import AttackPlanner, AttackStep, AttackContext
from .card_planner import CardPlanner, CardPlan
from .card_evaluator import CardEvaluator
from .board_evaluator import BoardStateEvaluator, build_board_state
from .predictor import BehaviorPredictor, HeuristicPredictor, CardHistory, PredictedAction

__all__ = [
    'AIPlayer', 'AIAction', 'ActionKind', 'TurnReport', 'EnemyAI', 'RandomAI',
    'AttackPlanner', 'AttackStep', 'AttackContext', 'CardPlanner', 'CardPlan',
    'CardEvaluator', 'BoardStateEvaluator', 'build_board_state',
    'BehaviorPredictor', 'HeuristicPredictor', 'CardHistory', 'PredictedAction',
]
