"""When to hit the opponent's life total directly.

The life total is only a legal target while the opposing board is empty, so
every branch below ends in the same reachability check. The branches exist
to name the reason for the strike, which ends up in the log and telemetry.
"""
import logging
from typing import Optional, Sequence

from ..board_state import BoardState
from ..card import Unit, LifeTotal
from ..settings import AttackSettings
from .variance import DecisionVariance

logger = logging.getLogger(__name__)

# Opponent life at or below this is "critically low" when they act first next
CRITICAL_LIFE = 10

# Life above attack * this is comfortably out of one-hit range
SAFE_STRIKE_FACTOR = 1.5


def can_target_life_total(defenders: Optional[Sequence[Unit]]) -> bool:
    """Life totals are attackable only when the defending side has no active units."""
    if not defenders:
        return True
    return not any(d is not None and d.is_active for d in defenders)


class LifeTotalPolicy:
    """Decides (and explains) direct strikes at the opponent's life total."""

    def __init__(self, settings: Optional[AttackSettings] = None,
                 variance: Optional[DecisionVariance] = None):
        self.settings = settings or AttackSettings()
        self.variance = variance or DecisionVariance()

    def strike_reason(self, attacker: Unit, defenders: Sequence[Unit],
                      life_total: Optional[LifeTotal], state: Optional[BoardState],
                      is_last_unit: bool = False) -> Optional[str]:
        """Reason to strike the life total, or None when we should not."""
        if attacker is None or life_total is None:
            return None
        reachable = can_target_life_total(defenders)
        if not reachable:
            return None

        if self.variance.chance(self.settings.health_icon_mistake_chance):
            return "mistake"

        if (self.settings.avoid_losing_last_monster and is_last_unit
                and life_total.health > attacker.attack * SAFE_STRIKE_FACTOR):
            return "safe strike with last unit"

        opponent_first = state is not None and state.is_opponent_first_next_turn
        if opponent_first and life_total.health <= CRITICAL_LIFE:
            return "critical life before their turn"

        if not opponent_first and life_total.health <= attacker.attack * SAFE_STRIKE_FACTOR:
            return "sets up next-turn kill"

        return "no unit target"

    def should_strike(self, attacker: Unit, defenders: Sequence[Unit],
                      life_total: Optional[LifeTotal], state: Optional[BoardState],
                      is_last_unit: bool = False) -> bool:
        reason = self.strike_reason(attacker, defenders, life_total, state, is_last_unit)
        if reason is None:
            return False
        logger.debug(f"{attacker} strikes {life_total}: {reason}")
        return True
