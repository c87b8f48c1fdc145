"""Trade evaluation - is it worth losing this unit to kill that one?"""
import logging
from typing import Optional, Sequence

from ..board_state import BoardState
from ..card import Unit
from ..constants import Keyword
from ..settings import AttackSettings

logger = logging.getLogger(__name__)


# =============================================================================
# COMBAT MATH - shared by every attack-phase evaluator
# =============================================================================

def would_kill(attacker: Unit, target: Unit) -> bool:
    """Attacker's hit (after Tough) kills the target."""
    return target.damage_taken_from(attacker.attack) >= target.health


def counter_damage(attacker: Unit, target: Unit) -> int:
    """Damage the attacker takes back. Ranged attackers take none."""
    if attacker.has_keyword(Keyword.RANGED) or target.attack <= 0:
        return 0
    return attacker.damage_taken_from(target.attack)


def dies_to_counter(attacker: Unit, target: Unit) -> bool:
    return counter_damage(attacker, target) >= attacker.health and target.attack > 0


def entity_value(unit: Optional[Unit]) -> float:
    """Trade value of a unit: attack counts double, keywords add a flat bonus."""
    if unit is None:
        return 0.0
    value = unit.attack * 2 + unit.health
    if unit.has_keyword(Keyword.TAUNT):
        value += 3
    if unit.has_keyword(Keyword.RANGED):
        value += 4
    if unit.has_keyword(Keyword.OVERWHELM):
        value += 3
    if unit.has_keyword(Keyword.TOUGH):
        value += 2
    return value


class TradeEvaluator:
    """Judges whether trading an attacker for a target is acceptable."""

    def __init__(self, settings: Optional[AttackSettings] = None):
        self.settings = settings or AttackSettings()

    def acceptable_ratio(self, state: Optional[BoardState]) -> float:
        """Required target/attacker value ratio for the current board."""
        ratio = self.settings.base_trade_ratio
        if state is not None:
            advantage = state.self_board_control / max(1.0, state.opponent_board_control)
            if advantage > 1.5:
                ratio += 0.3    # Ahead: be selective
            elif advantage > 1.2:
                ratio += 0.15
            elif advantage < 0.8:
                ratio -= 0.2    # Behind: take worse trades

            if state.turn_count >= 4:
                ratio -= 0.15

            ratio += -0.1 if state.self_acts_next else 0.1

            if state.opponent_health <= 15:
                ratio -= 0.2
            elif state.self_health <= 15:
                ratio += 0.2
        return min(max(ratio, 1.0), self.settings.valuable_trade_ratio)

    def is_valuable_trade(self, attacker: Unit, target: Unit,
                          state: Optional[BoardState] = None) -> bool:
        if attacker is None or target is None:
            return False
        if target.attack >= self.settings.high_threat_attack:
            logger.debug(f"Trade {attacker} -> {target}: high threat, accepted")
            return True

        attacker_value = entity_value(attacker)
        if attacker_value <= 0:
            return True
        value_ratio = entity_value(target) / attacker_value
        required = self.acceptable_ratio(state)
        accepted = value_ratio >= required
        logger.debug(f"Trade {attacker} -> {target}: ratio {value_ratio:.2f}, "
                     f"required {required:.2f} - {'ACCEPT' if accepted else 'REJECT'}")
        return accepted

    def would_clear_board(self, attacker: Unit, target: Unit,
                          all_targets: Sequence[Unit], is_last_unit: bool) -> bool:
        """Our last unit dies trading into their last unit, which also dies."""
        if not is_last_unit:
            return False
        return (dies_to_counter(attacker, target)
                and len(all_targets) == 1
                and would_kill(attacker, target))
