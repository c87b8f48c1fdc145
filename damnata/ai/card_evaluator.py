"""Card evaluation - how good is playing this card right now?

CardEvaluator combines a mana-efficiency term, a monster or spell specific
score, health-race and turn-order adjustments, and finally the decision
variance perturbation.
"""
import logging
from typing import Optional

from ..board_state import BoardState
from ..card import CardData
from ..constants import Keyword, SpellEffect, HAND_LIMIT
from ..settings import CardPlaySettings
from .keywords import (
    BaseKeywordEvaluator, BaseEffectEvaluator, KeywordEvaluator, EffectEvaluator,
)
from .variance import DecisionVariance

logger = logging.getLogger(__name__)

# Score for cards that would kill the caster
LETHAL_REJECTION_SCORE = -1_000_000.0

LOW_OPPONENT_HEALTH = 10
LOW_OWN_HEALTH = 10
CRITICAL_OWN_HEALTH_RATIO = 0.4


class MonsterCardEvaluator:
    """Scores monster cards from their stats and keywords."""

    def __init__(self, keyword_evaluator: Optional[BaseKeywordEvaluator] = None):
        self.keyword_evaluator = keyword_evaluator

    def evaluate(self, card: CardData, state: BoardState) -> float:
        score = card.attack * 1.0 + card.health * 0.7
        attack_health_ratio = card.attack / max(1, card.health)

        if card.has_keyword(Keyword.RANGED):
            score += 30
            if attack_health_ratio > 1.5:
                score += 20
            if state.is_opponent_first_next_turn and card.health <= 2:
                score -= 15
        else:
            if card.health >= 5:
                score += 25
            if card.health <= 2 and card.attack > 3:
                score -= 10

        if card.has_keyword(Keyword.TOUGH):
            score += self._tough_bonus(card, state)
        if card.has_keyword(Keyword.OVERWHELM):
            score += self._overwhelm_bonus(card, state)

        # Remaining keywords (Taunt) go through the pluggable evaluator
        if self.keyword_evaluator is not None:
            for keyword in card.keywords:
                if keyword in (Keyword.RANGED, Keyword.TOUGH, Keyword.OVERWHELM):
                    continue
                score += self.keyword_evaluator.evaluate_keyword(keyword, True, state) * 1.2
        return score

    def _tough_bonus(self, card: CardData, state: BoardState) -> float:
        bonus = 0.0
        if state.is_self_behind_on_health:
            bonus += 25
        if card.health >= 4:
            bonus += 15
        if any(u.attack >= 4 for u in state.opponent_units):
            bonus += 20
        if state.is_opponent_first_next_turn:
            bonus += 20
        return bonus

    def _overwhelm_bonus(self, card: CardData, state: BoardState) -> float:
        bonus = 0.0
        if state.self_health > state.opponent_health:
            bonus += 15
        if card.attack >= 4:
            bonus += 15 + min(card.attack * 0.8, 15)
        if any(u.health <= 2 for u in state.opponent_units):
            bonus += 15
        if state.opponent_health <= LOW_OPPONENT_HEALTH:
            bonus += 20
        if state.self_acts_next:
            bonus += 15
        bonus += self._splash_bonus(card, state)
        return min(bonus, 60)

    def _splash_bonus(self, card: CardData, state: BoardState) -> float:
        enemies = state.opponent_units
        if not enemies:
            return 0.0
        splash = card.attack * 0.5
        bonus = 0.0
        kills = sum(1 for u in enemies if u.health <= splash)
        if kills:
            bonus += min(kills * 10, 25)
        weakened = sum(1 for u in enemies if u.health <= splash * 2)
        if weakened >= 2:
            bonus += min(weakened * 5, 15)
        return bonus


class SpellCardEvaluator:
    """Scores spell cards from their effects."""

    def __init__(self, effect_evaluator: Optional[BaseEffectEvaluator] = None,
                 hand_limit: int = HAND_LIMIT):
        self.effect_evaluator = effect_evaluator
        self.hand_limit = hand_limit

    def evaluate(self, card: CardData, state: BoardState) -> float:
        if not card.effects:
            return 0.0

        has_bloodprice = card.has_effect(SpellEffect.BLOODPRICE)
        if has_bloodprice and card.bloodprice_value >= state.self_health:
            return LETHAL_REJECTION_SCORE

        has_draw = card.has_effect(SpellEffect.DRAW)
        has_damage = card.has_effect(SpellEffect.DAMAGE)
        has_burn = card.has_effect(SpellEffect.BURN)
        has_heal = card.has_effect(SpellEffect.HEAL)

        if has_draw:
            score = self.draw_value(card, state)
        else:
            score = sum(self._effect_score(effect, state) for effect in card.ordered_effects)

        # Emergency heal / finishing damage
        if has_heal and state.self_health < state.self_max_health * CRITICAL_OWN_HEALTH_RATIO:
            score += 20
        if (has_damage or has_burn) and state.opponent_health <= LOW_OPPONENT_HEALTH:
            score += 25

        if state.is_opponent_first_next_turn:
            if has_heal:
                score *= 1.2
                if has_bloodprice:
                    ratio = card.effect_value / card.bloodprice_value if card.bloodprice_value > 0 else 0
                    if ratio >= 2.0:
                        score *= 1.15
                    elif ratio < 1.0 and state.self_health < state.self_max_health * CRITICAL_OWN_HEALTH_RATIO:
                        score *= 0.6
            if has_draw and not has_bloodprice:
                score *= 0.9
            if (has_damage or has_burn) and state.opponent_health <= LOW_OPPONENT_HEALTH:
                score *= 1.3
        else:
            if has_draw:
                score *= 1.15
            if has_burn:
                score *= 1.2
            if has_bloodprice and has_heal and state.self_health > state.self_max_health * 0.3:
                score *= 1.1

        if has_draw and has_bloodprice:
            score = self._draw_bloodprice_adjustment(card, state, score)
        return score

    def _effect_score(self, effect: SpellEffect, state: BoardState) -> float:
        if self.effect_evaluator is None:
            return 0.0
        target = self.effect_evaluator.best_target(effect, state)
        return self.effect_evaluator.score_effect(effect, state, target, True)

    def draw_value(self, card: CardData, state: BoardState) -> float:
        """Draw spells are worth more with an empty hand and a healthy deck."""
        if card.draw_value <= 0:
            return 0.0
        base = self._effect_score(SpellEffect.DRAW, state)

        limit = max(1, self.hand_limit)
        fullness = min(1.0, state.self_hand_size / limit)
        fullness_pct = int(fullness * 100)
        empty = 1.0 - fullness

        multiplier = 1.0 + empty * 1.5
        if fullness_pct == 0:
            multiplier += 1.0
        elif fullness_pct <= 20:
            multiplier += 0.7
        elif fullness_pct <= 40:
            multiplier += 0.4
        elif fullness_pct <= 50:
            multiplier += 0.2

        if empty > 0.3:
            multiplier *= min(1.0 + card.draw_value * 0.1, 1.5)

        free_slots = limit - state.self_hand_size
        efficiency = 1.0 if free_slots >= card.draw_value else max(0, free_slots) / card.draw_value
        if efficiency < 1.0:
            multiplier *= 0.3 + efficiency * 0.7

        if state.self_deck_size < card.draw_value:
            multiplier *= 0.1
        elif state.self_deck_size < card.draw_value * 2:
            multiplier *= 0.5
        elif state.self_deck_size < 5:
            multiplier *= 0.8

        if state.turn_count <= 3:
            multiplier *= 1.2
        return base * multiplier

    def _draw_bloodprice_adjustment(self, card: CardData, state: BoardState, score: float) -> float:
        bloodprice = card.bloodprice_value if card.bloodprice_value > 0 else 1
        if card.draw_value / bloodprice > 1.5:
            score *= 1.15
        if state.self_health < LOW_OWN_HEALTH and card.bloodprice_value > 3:
            score *= 0.65
            if state.is_opponent_first_next_turn:
                score *= 0.75
        return score


class CardEvaluator:
    """Top-level card scoring used by the card planner."""

    def __init__(self, settings: Optional[CardPlaySettings] = None,
                 keyword_evaluator: Optional[BaseKeywordEvaluator] = None,
                 effect_evaluator: Optional[BaseEffectEvaluator] = None,
                 variance: Optional[DecisionVariance] = None):
        self.settings = settings or CardPlaySettings()
        self.keyword_evaluator = keyword_evaluator if keyword_evaluator is not None else KeywordEvaluator()
        self.effect_evaluator = effect_evaluator if effect_evaluator is not None else EffectEvaluator()
        self.variance = variance or DecisionVariance()
        self.monster_evaluator = MonsterCardEvaluator(self.keyword_evaluator)
        self.spell_evaluator = SpellCardEvaluator(self.effect_evaluator)

    def evaluate(self, card: CardData, state: BoardState) -> float:
        """Score without variance. Pure function of (card, state)."""
        if card is None or state is None:
            return 0.0

        score = (1 - card.cost / max(1, state.self_mana)) * 50

        if card.is_monster:
            score += self.monster_evaluator.evaluate(card, state)
        else:
            spell_score = self.spell_evaluator.evaluate(card, state)
            if spell_score <= LETHAL_REJECTION_SCORE:
                return LETHAL_REJECTION_SCORE
            score += spell_score
            if card.has_effect(SpellEffect.HEAL) and card.has_effect(SpellEffect.BLOODPRICE):
                score = self._heal_bloodprice_tradeoff(card, state, score)
                if score <= LETHAL_REJECTION_SCORE:
                    return LETHAL_REJECTION_SCORE

        if state.is_self_behind_on_health:
            if card.has_keyword(Keyword.TAUNT):
                score += 30
            if card.has_effect(SpellEffect.HEAL):
                score += 40
        else:
            if card.attack > 0:
                score += 20
            if card.has_effect(SpellEffect.DAMAGE):
                score += 30

        score += self._turn_order_bonus(card, state)
        return score

    def score(self, card: CardData, state: BoardState) -> float:
        """Score with decision variance applied."""
        base = self.evaluate(card, state)
        if base <= LETHAL_REJECTION_SCORE:
            logger.debug(f"{card.name} rejected: would kill the caster")
            return base
        return self.variance.perturb_card_score(
            base, self.settings.suboptimal_play_chance, self.settings.evaluation_variance)

    def _turn_order_bonus(self, card: CardData, state: BoardState) -> float:
        bonus = 0.0
        if state.is_opponent_first_next_turn:
            if card.has_keyword(Keyword.TAUNT):
                bonus += 25
            if card.has_effect(SpellEffect.HEAL) and state.self_health < 15:
                bonus += 35
            if card.is_monster and card.health >= 4:
                bonus += 15
        else:
            if card.is_monster and card.attack >= 4:
                bonus += 20
            if card.has_effect(SpellEffect.DRAW):
                bonus += 25
        return bonus

    def _heal_bloodprice_tradeoff(self, card: CardData, state: BoardState, score: float) -> float:
        heal = card.effect_value
        price = card.bloodprice_value
        if heal <= 0 or price <= 0:
            return score
        if price >= state.self_health:
            return LETHAL_REJECTION_SCORE

        own_ratio = state.self_health / max(1, state.self_max_health)
        efficiency = heal / price
        if efficiency > 1.5:
            score *= 1.3
        elif efficiency > 1.0:
            score *= 1.1
        elif efficiency < 1.0 and own_ratio < 0.3:
            score *= 0.5

        own_units = [u for u in state.self_units if u.is_alive]
        if own_units:
            target = min(own_units, key=lambda u: u.health_ratio)
            if target.health_ratio < 0.3 and heal > target.max_health * 0.3:
                score *= 1.4
            elif target.health_ratio > 0.7:
                score *= 0.8
            target_value = target.attack * 1.2 + target.max_health * 0.8
            if target.has_keyword(Keyword.TAUNT):
                target_value += 30
            if target.has_keyword(Keyword.RANGED):
                target_value += 25
            if target_value > 15:
                score *= 1.2

        if own_ratio < 0.2:
            score *= 0.6
        elif own_ratio > 0.7:
            score *= 1.2

        if state.self_board_control < state.opponent_board_control * 0.7:
            score *= 1.25
        if state.is_opponent_first_next_turn and state.opponent_board_control > state.self_board_control:
            score *= 1.3

        net = heal - price
        score += net * 5 if net > 0 else net * 2
        return score
