"""Strategic mode (Aggro / Defensive) and the attack-phase skip decision."""
import logging
from typing import Optional, Sequence

from ..board_state import BoardState
from ..card import Unit
from ..constants import StrategicMode
from ..settings import AttackSettings
from .life_total import can_target_life_total
from .predictor import BehaviorPredictor, PredictedAction
from .variance import DecisionVariance

logger = logging.getLogger(__name__)

# Board control advantage counted as "ahead on board"
BOARD_ADVANTAGE_RATIO = 1.3

# Opponent life that invites aggression
OPPONENT_LOW_HEALTH = 15

# Our own life below which we fall back to defence
OWN_LOW_HEALTH = 15

# Predicted opponent aggression that tips an even board to Defensive
PREDICTED_AGGRESSION_THRESHOLD = 0.75


def determine_strategic_mode(state: Optional[BoardState],
                             settings: Optional[AttackSettings] = None,
                             variance: Optional[DecisionVariance] = None,
                             predictor: Optional[BehaviorPredictor] = None) -> StrategicMode:
    """Pick the posture for this attack phase.

    Checked in order: a lone unit usually plays safe; acting first next turn
    means we can afford to push; clear advantages or a late game push to
    Aggro; low own health or a worse board fall back to Defensive; otherwise
    a weighted roll. A predictor, when given, can only tilt Aggro to Defensive.
    """
    settings = settings or AttackSettings()
    variance = variance or DecisionVariance()
    if state is None:
        return StrategicMode.DEFENSIVE

    health_advantage = state.self_health > state.opponent_health + settings.health_threshold_for_aggro
    board_advantage = state.self_board_control > state.opponent_board_control * BOARD_ADVANTAGE_RATIO
    late_game = state.turn_count > settings.aggressive_turn_threshold
    opponent_low = state.opponent_health <= OPPONENT_LOW_HEALTH
    active_units = sum(1 for u in state.self_units if u.is_active)

    if active_units <= 1 and variance.chance(settings.single_unit_defensive_chance):
        mode = StrategicMode.DEFENSIVE
    elif state.self_acts_next:
        mode = StrategicMode.AGGRO
    elif health_advantage or board_advantage or late_game or opponent_low:
        mode = StrategicMode.AGGRO
    elif state.self_health < OWN_LOW_HEALTH or state.opponent_board_control > state.self_board_control:
        mode = StrategicMode.DEFENSIVE
    elif variance.chance(settings.aggro_fallback_chance):
        mode = StrategicMode.AGGRO
    else:
        mode = StrategicMode.DEFENSIVE

    if mode == StrategicMode.AGGRO and predictor is not None and not board_advantage:
        aggression = predictor.predict_action(state, PredictedAction.ATTACK)
        if aggression >= PREDICTED_AGGRESSION_THRESHOLD:
            logger.debug(f"Predicted opponent aggression {aggression:.2f}, playing defensive")
            mode = StrategicMode.DEFENSIVE

    logger.info(f"Strategic mode: {mode.name}")
    return mode


def maybe_change_strategy(mode: StrategicMode, settings: AttackSettings,
                          variance: DecisionVariance) -> StrategicMode:
    """Mid-phase change of heart."""
    if variance.chance(settings.strategy_change_chance):
        new_mode = StrategicMode.DEFENSIVE if mode == StrategicMode.AGGRO else StrategicMode.AGGRO
        logger.info(f"Strategy changed mid-phase: {mode.name} -> {new_mode.name}")
        return new_mode
    return mode


class AttackSkipEvaluator:
    """Occasionally skips a whole attack phase while comfortably ahead."""

    # Never skip from this turn on
    LATE_TURN = 5
    # Never skip when the opponent is this low
    LOW_OPPONENT_HEALTH = 10
    # Advantage multiple over the threshold that allows skipping even when we act next
    STRONG_ADVANTAGE_FACTOR = 1.5

    def __init__(self, settings: Optional[AttackSettings] = None,
                 variance: Optional[DecisionVariance] = None):
        self.settings = settings or AttackSettings()
        self.variance = variance or DecisionVariance()

    def should_skip(self, state: Optional[BoardState], mode: StrategicMode,
                    defenders: Sequence[Unit] = (), is_lethal: bool = False) -> bool:
        if state is None or is_lethal:
            return False
        if can_target_life_total(defenders):
            return False
        if mode == StrategicMode.AGGRO:
            return False
        if state.opponent_health <= self.LOW_OPPONENT_HEALTH or state.turn_count >= self.LATE_TURN:
            return False

        threshold = self.settings.attack_skip_advantage_threshold
        advantage = state.control_ratio
        if advantage <= threshold:
            return False
        if not (state.is_opponent_first_next_turn or advantage >= threshold * self.STRONG_ADVANTAGE_FACTOR):
            return False

        skip = self.variance.chance(self.settings.attack_skip_chance)
        if skip:
            logger.info(f"Skipping attack phase (advantage {advantage:.2f})")
        return skip
