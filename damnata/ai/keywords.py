"""Keyword and spell-effect evaluators.

Both are pluggable: TargetEvaluator and the card evaluators only talk to the
BaseKeywordEvaluator / BaseEffectEvaluator interfaces, so a different scoring
table can be swapped in without touching planner logic.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..board_state import BoardState
from ..card import Unit, LifeTotal
from ..constants import Keyword, SpellEffect, Side

logger = logging.getLogger(__name__)


@dataclass
class KeywordEvaluation:
    """Scoring entry for one monster keyword."""
    base_score: float
    is_positive: bool = True
    is_defensive: bool = False
    is_offensive: bool = False


@dataclass
class EffectEvaluation:
    """Scoring entry for one spell effect."""
    base_score: float
    is_positive: bool = True
    is_stackable: bool = False
    requires_target: bool = True
    is_damaging: bool = False


DEFAULT_KEYWORDS = {
    Keyword.TAUNT: KeywordEvaluation(40, is_defensive=True),
    Keyword.RANGED: KeywordEvaluation(30, is_offensive=True),
    Keyword.TOUGH: KeywordEvaluation(35, is_defensive=True),
    Keyword.OVERWHELM: KeywordEvaluation(35, is_offensive=True),
}

DEFAULT_EFFECTS = {
    SpellEffect.DAMAGE: EffectEvaluation(35, is_positive=False, is_damaging=True),
    SpellEffect.BURN: EffectEvaluation(30, is_positive=False, is_stackable=True, is_damaging=True),
    SpellEffect.HEAL: EffectEvaluation(25),
    SpellEffect.BUFF: EffectEvaluation(20),
    SpellEffect.DEBUFF: EffectEvaluation(20, is_positive=False),
    SpellEffect.DOUBLE_ATTACK: EffectEvaluation(25),
    SpellEffect.DRAW: EffectEvaluation(30, requires_target=False),
    SpellEffect.BLOODPRICE: EffectEvaluation(-10, requires_target=False),
}


class BaseKeywordEvaluator(ABC):
    """Scores monster keywords."""

    @abstractmethod
    def evaluate_keyword(self, keyword: Keyword, is_own_card: bool,
                         state: Optional[BoardState]) -> float:
        """Value of one keyword for the owner (negative for the opponent's units)."""

    @abstractmethod
    def score_keywords(self, attacker: Unit, target: Unit,
                       state: Optional[BoardState] = None) -> float:
        """Keyword contribution to attacking `target` with `attacker`."""


class BaseEffectEvaluator(ABC):
    """Scores spell effects."""

    @abstractmethod
    def score_effect(self, effect: SpellEffect, state: Optional[BoardState],
                     target: Optional[Union[Unit, LifeTotal]] = None,
                     is_own_card: bool = True) -> float:
        """Value of casting `effect` (on `target` when given)."""

    def best_target(self, effect: SpellEffect, state: Optional[BoardState]):
        """Preferred target for `effect`, or None when the evaluator has no opinion."""
        return None


class KeywordEvaluator(BaseKeywordEvaluator):
    """Table-driven keyword scoring."""

    def __init__(self, evaluations: Optional[Dict[Keyword, KeywordEvaluation]] = None):
        self.evaluations = dict(DEFAULT_KEYWORDS if evaluations is None else evaluations)

    def add_keyword_evaluation(self, keyword: Keyword, evaluation: KeywordEvaluation):
        self.evaluations[keyword] = evaluation

    def evaluate_keyword(self, keyword, is_own_card, state):
        evaluation = self.evaluations.get(keyword)
        if evaluation is None:
            return 0.0

        score = evaluation.base_score
        if is_own_card:
            if state is not None and state.is_self_behind_on_health:
                if evaluation.is_defensive:
                    score *= 1.5
                if evaluation.is_offensive:
                    score *= 0.8
            elif evaluation.is_offensive:
                score *= 1.3
        elif evaluation.is_positive:
            score = -score
        return score

    def score_keywords(self, attacker, target, state=None):
        if attacker is None or target is None:
            return 0.0
        score = 0.0
        for keyword in attacker.keywords:
            score += self.evaluate_keyword(keyword, True, state)
        # Opposing keywords are negative values; subtracting them makes
        # keyword-bearing targets more attractive.
        for keyword in target.keywords:
            score -= self.evaluate_keyword(keyword, False, state)
        return score


class EffectEvaluator(BaseEffectEvaluator):
    """Table-driven spell effect scoring."""

    def __init__(self, evaluations: Optional[Dict[SpellEffect, EffectEvaluation]] = None,
                 late_game_turn: int = 10):
        self.evaluations = dict(DEFAULT_EFFECTS if evaluations is None else evaluations)
        self.late_game_turn = late_game_turn

    def add_effect_evaluation(self, effect: SpellEffect, evaluation: EffectEvaluation):
        self.evaluations[effect] = evaluation

    def score_effect(self, effect, state, target=None, is_own_card=True):
        evaluation = self.evaluations.get(effect)
        if evaluation is None:
            logger.debug(f"No evaluation for effect {effect.name}")
            return 0.0

        score = evaluation.base_score
        if not is_own_card:
            return -score if evaluation.is_positive else score

        if evaluation.is_stackable and isinstance(target, Unit) and target.burn_turns > 0:
            score *= 1.4

        if evaluation.is_damaging and target is not None:
            if isinstance(target, LifeTotal):
                if target.side == Side.SELF:
                    return 0.0  # Never damage our own life total
                ratio = target.health_ratio
                if ratio <= 0.3:
                    score *= 2.5
                elif ratio <= 0.5:
                    score *= 1.8
                if state is not None and state.turn_count >= self.late_game_turn:
                    score *= 1.5
            elif target.health_ratio < 0.5:
                score *= 1.3

        if state is not None and state.is_self_behind_on_health and not evaluation.is_damaging:
            score *= 1.2
        return score

    def best_target(self, effect: SpellEffect, state: Optional[BoardState]):
        """Best target for an effect cast by SELF, or None.

        Positive effects go to our most damaged unit (or our life total when
        the effect is not damaging). Negative effects go to the most
        threatening opposing unit, or the opposing life total for damage
        when the opposing board is empty.
        """
        evaluation = self.evaluations.get(effect)
        if evaluation is None or state is None:
            return None

        if evaluation.is_positive:
            own = [u for u in state.self_units if u.is_active]
            if own:
                return min(own, key=lambda u: u.health_ratio)
            if not evaluation.is_damaging:
                return LifeTotal(Side.SELF, state.self_health, state.self_max_health)
            return None

        enemies = [u for u in state.opponent_units if u.is_active]
        if enemies:
            return max(enemies, key=lambda u: u.attack * 1.2 + u.health * 0.8)
        if evaluation.is_damaging:
            return LifeTotal(Side.OPPONENT, state.opponent_health, state.opponent_max_health)
        return None
