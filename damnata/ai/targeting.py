"""Target evaluation - scores one attacker hitting one enemy unit."""
import logging
import math
from typing import Optional

from ..board_state import BoardState
from ..card import Unit
from ..constants import Keyword, StrategicMode
from ..settings import AttackSettings
from .keywords import BaseKeywordEvaluator, KeywordEvaluator
from .trade import counter_damage, dies_to_counter, would_kill
from .variance import DecisionVariance

logger = logging.getLogger(__name__)

MIN_SCORE = -100.0
MAX_SCORE = 200.0
KEYWORD_INTERACTION_LIMIT = 60.0


class TargetEvaluator:
    """Scores (attacker, target) pairs for the attack planner.

    The final score is clamped to [MIN_SCORE, MAX_SCORE] and then receives
    bounded noise: U(-m, m) with m = min(|score| * variance, cap). With a
    variance of 0 the evaluator is a pure function of its inputs.
    """

    def __init__(self, settings: Optional[AttackSettings] = None,
                 keyword_evaluator: Optional[BaseKeywordEvaluator] = None,
                 variance: Optional[DecisionVariance] = None):
        self.settings = settings or AttackSettings()
        self.keyword_evaluator = keyword_evaluator if keyword_evaluator is not None else KeywordEvaluator()
        self.variance = variance or DecisionVariance()

    def evaluate(self, attacker: Unit, target: Unit, state: Optional[BoardState],
                 mode: StrategicMode = StrategicMode.AGGRO) -> float:
        """Noisy, clamped score for attacking `target` with `attacker`."""
        if attacker is None or target is None:
            return MIN_SCORE
        score = self.base_score(attacker, target, state, mode)
        return self.variance.bounded_noise(score, self.settings.target_score_variance,
                                           self.settings.target_score_variance_cap)

    def base_score(self, attacker: Unit, target: Unit, state: Optional[BoardState],
                   mode: StrategicMode = StrategicMode.AGGRO) -> float:
        """Clamped score before noise."""
        score = attacker.attack * 1.2 - target.health * 0.8

        if mode == StrategicMode.AGGRO:
            score += target.attack * 0.7
            if would_kill(attacker, target):
                score += 90
        else:
            score -= attacker.health * 0.2
            if target.has_keyword(Keyword.TAUNT):
                score += 60

        score += self.turn_order_score(attacker, target, state)
        score += self.keyword_interaction_score(attacker, target, state)
        if self.keyword_evaluator is not None:
            score += self.keyword_evaluator.score_keywords(attacker, target, state) * 1.2
        score -= self.counter_risk(attacker, target)

        return min(max(score, MIN_SCORE), MAX_SCORE)

    def counter_risk(self, attacker: Unit, target: Unit) -> float:
        """Penalty for the damage the attacker takes back."""
        if attacker.has_keyword(Keyword.RANGED):
            return 0.0
        if dies_to_counter(attacker, target):
            return 80.0
        if attacker.health <= 0:
            return 0.0
        return counter_damage(attacker, target) / attacker.health * 40

    def turn_order_score(self, attacker: Unit, target: Unit, state: Optional[BoardState]) -> float:
        if state is None:
            return 0.0

        score = 0.0
        kills = would_kill(attacker, target)
        if state.is_opponent_first_next_turn:
            # They swing first: remove big threats now
            if target.attack >= 4:
                score += 30
                if kills:
                    score += 40
            if attacker.attack >= 4 and target.attack >= attacker.health:
                score -= 30
            if attacker.has_keyword(Keyword.RANGED):
                score += 20
            if attacker.has_keyword(Keyword.TOUGH):
                score += 15
        else:
            # We swing first next turn: soften targets for a two-turn kill
            if attacker.attack < target.health <= attacker.attack * 2:
                score += 30
            if kills:
                score -= 10
            if attacker.health <= target.attack:
                score += 15
            if attacker.has_keyword(Keyword.OVERWHELM):
                score += 20
        return score

    def keyword_interaction_score(self, attacker: Unit, target: Unit,
                                  state: Optional[BoardState]) -> float:
        """Overwhelm splash and Tough interactions, limited to +/-60."""
        score = 0.0

        if attacker.has_keyword(Keyword.OVERWHELM) and state is not None:
            splash = math.floor(attacker.attack * 0.5)
            others = [u for u in state.units(target.side)
                      if u.id != target.id and u.is_alive]
            splash_kills = sum(1 for u in others if u.damage_taken_from(splash) >= u.health)
            score += min(splash * len(others) * 0.8, 30)
            score += min(splash_kills * 15, 35)

        if target.has_keyword(Keyword.TOUGH):
            score -= 15
            if attacker.attack // 2 >= target.health:
                score += 25
            if attacker.has_keyword(Keyword.OVERWHELM):
                score += 10

        if attacker.has_keyword(Keyword.TOUGH):
            score += 10
            if target.attack >= 4:
                score += 15
            if target.attack // 2 < attacker.health:
                score += 20

        return min(max(score, -KEYWORD_INTERACTION_LIMIT), KEYWORD_INTERACTION_LIMIT)
