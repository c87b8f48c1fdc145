"""Attack ordering - which of our units swings first."""
import logging
from typing import List, Optional, Sequence

from ..board_state import BoardState
from ..card import Unit
from ..constants import Keyword
from ..settings import AttackSettings
from .trade import TradeEvaluator, dies_to_counter, would_kill
from .variance import DecisionVariance

logger = logging.getLogger(__name__)

# Adjacent-swap probability used by the partial shuffle
SHUFFLE_SWAP_CHANCE = 0.4


class AttackOrderStrategy:
    """Orders attackers for the lethal and board-control cases."""

    def __init__(self, settings: Optional[AttackSettings] = None,
                 variance: Optional[DecisionVariance] = None,
                 trade_evaluator: Optional[TradeEvaluator] = None):
        self.settings = settings or AttackSettings()
        self.variance = variance or DecisionVariance()
        self.trade_evaluator = trade_evaluator or TradeEvaluator(self.settings)

    def order(self, attackers: Sequence[Unit], defenders: Sequence[Unit],
              state: Optional[BoardState], is_lethal: bool) -> List[Unit]:
        attackers = [a for a in attackers if a is not None]
        defenders = [d for d in defenders if d is not None and d.is_alive]
        if is_lethal:
            return self.order_for_lethal(attackers, defenders, state)
        if len(attackers) <= 1:
            return attackers

        ordered = self.order_for_board_control(attackers, defenders, state)
        if self.variance.chance(self.settings.attack_order_randomization_chance):
            ordered = self.variance.partial_shuffle(ordered, SHUFFLE_SWAP_CHANCE)
            logger.debug(f"Attack order shuffled: {ordered}")
        return ordered

    def order_for_lethal(self, attackers: List[Unit], defenders: List[Unit],
                         state: Optional[BoardState]) -> List[Unit]:
        """Lethal ordering: highest attack first, Taunt walls cleared by the small units.

        When the swing would leave us with no units because every attacker
        dies to a Taunt counter, we fall back to a cautious order unless the
        trade is worth it.
        """
        taunts = [d for d in defenders if d.has_keyword(Keyword.TAUNT)]

        if taunts and self.would_empty_board(attackers, taunts, state):
            if self.variance.chance(self.settings.decision_variance):
                logger.debug("Ignoring last unit protection for lethal")
            else:
                worth_it = any(t.attack >= 4 for t in taunts) or any(
                    self.trade_evaluator.is_valuable_trade(a, t, state)
                    for a in attackers for t in taunts)
                if worth_it:
                    return sorted(attackers, key=lambda a: -a.attack)
                logger.debug("Lethal would cost our whole board - cautious order")
                return sorted(attackers, key=lambda a: (
                    not a.has_keyword(Keyword.RANGED), -a.attack, a.health))

        if taunts:
            return sorted(attackers, key=lambda a: (a.health, -a.attack))
        return sorted(attackers, key=lambda a: -a.attack)

    @staticmethod
    def would_empty_board(attackers: List[Unit], taunts: List[Unit],
                          state: Optional[BoardState]) -> bool:
        """True when the attackers are our whole board and none survives a Taunt counter."""
        if not attackers:
            return False
        if state is not None and len(attackers) < len(state.self_units):
            return False
        return all(any(dies_to_counter(a, t) for t in taunts) for a in attackers)

    def order_for_board_control(self, attackers: List[Unit], defenders: List[Unit],
                                state: Optional[BoardState]) -> List[Unit]:
        """Composite descending key, most important first."""
        opponent_next = state is not None and state.is_opponent_first_next_turn
        several_defenders = len(defenders) > 1

        def key(a: Unit):
            ranged = a.has_keyword(Keyword.RANGED)
            ranged_first = 3 if opponent_next and ranged else 0
            setups = 0 if opponent_next else sum(
                1 for d in defenders if a.attack < d.health <= a.attack * 2)
            overwhelm = 2 if a.has_keyword(Keyword.OVERWHELM) and several_defenders else 0
            can_kill = 1 if any(would_kill(a, d) for d in defenders) else 0
            tough_tank = 1 if a.has_keyword(Keyword.TOUGH) and any(d.attack >= 4 for d in defenders) else 0
            return (-ranged_first, -setups, -overwhelm, -int(ranged), -can_kill,
                    -tough_tank, -a.attack, a.health)

        return sorted(attackers, key=key)
