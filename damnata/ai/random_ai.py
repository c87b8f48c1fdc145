"""Random AI - plays random legal cards and random legal attacks.

This is the simplest AI implementation, useful for:
- Testing that the AI framework works
- Providing an easy opponent
- Baseline for comparing EnemyAI in simulations
"""
import logging
from typing import Optional

from ..constants import Keyword, Side
from .base import AIPlayer, TurnReport

logger = logging.getLogger(__name__)

# Chance to stop playing cards after each card
STOP_CHANCE = 0.25


class RandomAI(AIPlayer):
    """AI that picks random legal actions.

    Cards: keeps playing random affordable cards until none is left or a
    coin flip says stop. Attacks: every unit attacks a random legal target.
    """

    name = "Random"

    def play_cards(self, report: Optional[TurnReport] = None) -> TurnReport:
        report = report if report is not None else TurnReport()
        if not self.is_ready():
            return report

        while True:
            state = self.board_state
            if state is None:
                break
            free_slots = self.provider.get_free_slots(Side.SELF)
            options = []
            for card in self.provider.get_hand():
                if card.cost > state.self_mana:
                    continue
                if card.is_monster and (not free_slots or not state.phase.is_prep):
                    continue
                if card.is_spell and not self.spell_targets.has_legal_target(card, state):
                    continue
                if card.bloodprice_value and card.bloodprice_value >= state.self_health:
                    continue
                options.append(card)
            if not options:
                break

            card = self.rng.choice(options)
            target = None
            position = None
            if card.is_monster:
                position = self.rng.choice(free_slots)
            elif card.needs_target:
                target = self.rng.choice(self.spell_targets.valid_targets(card.primary_effect, state))
            action = self._execute_play(card, target, position)
            report.actions.append(action)
            if not action.success or self.rng.random() < STOP_CHANCE:
                break
        return report

    def attack_phase(self, report: Optional[TurnReport] = None) -> TurnReport:
        report = report if report is not None else TurnReport()
        if not self.is_ready():
            return report

        state = self.board_state
        if state is None:
            return report
        for unit_id in [u.id for u in state.self_units]:
            while True:
                state = self.board_state
                attacker = state.find_unit(unit_id) if state is not None else None
                if attacker is None or not attacker.can_attack:
                    break
                defenders = [u for u in state.opponent_units if u.is_active]
                taunts = [u for u in defenders if u.has_keyword(Keyword.TAUNT)]
                if taunts or defenders:
                    target = self.rng.choice(taunts or defenders)
                else:
                    target = self.provider.get_life_total(Side.OPPONENT)
                action = self.attack(attacker, target)
                report.actions.append(action)
                if not action.success:
                    break
        return report
