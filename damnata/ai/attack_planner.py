"""Attack planning - which unit hits what, and in which order.

AttackPlanner.plan() produces the whole ordered (attacker, target) list for a
snapshot by simulating each attack on copies of the units. The runner does
not trust that list blindly: after every executed attack it rebuilds the
snapshot and asks select_target() again, so a unit killed by splash damage
is never attacked twice.

Pipeline per phase:
    1. Drop attackers with no attack (logged)
    2. Lethal detection
    3. Ordering (AttackOrderStrategy)
    4. Per-attacker targeting (Taunt, Overwhelm splash, scored candidates,
       last-unit protection, suboptimal picks and reconsideration)
    5. Life-total policy when no unit target exists
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from ..board_state import BoardState
from ..card import Unit, LifeTotal
from ..constants import Keyword, StrategicMode
from ..settings import AttackSettings
from .attack_order import AttackOrderStrategy
from .keywords import BaseKeywordEvaluator
from .life_total import LifeTotalPolicy
from .overwhelm import OverwhelmEvaluator, splash_damage
from .strategy import determine_strategic_mode
from .targeting import TargetEvaluator
from .trade import TradeEvaluator, dies_to_counter, counter_damage
from .variance import DecisionVariance

logger = logging.getLogger(__name__)

Target = Union[Unit, LifeTotal]

# Score adjustments applied on top of TargetEvaluator
VALUABLE_LAST_UNIT_TRADE_BONUS = 50.0
HARMLESS_TARGET_BONUS = 100.0
CLEAR_BOARD_BONUS = 200.0
THREAT_ATTACK = 4


@dataclass
class AttackStep:
    """One planned attack."""
    attacker: Unit
    target: Target

    @property
    def is_life_total(self) -> bool:
        return isinstance(self.target, LifeTotal)

    def __repr__(self):
        return f"AttackStep({self.attacker} -> {self.target})"


@dataclass
class AttackContext:
    """Everything one attack phase works on.

    Mutated as units die mid-sequence, discarded at the end of the phase.
    """
    attackers: List[Unit] = field(default_factory=list)
    defenders: List[Unit] = field(default_factory=list)
    life_total: Optional[LifeTotal] = None
    state: Optional[BoardState] = None
    is_valid: bool = True
    error_message: str = ""

    @classmethod
    def build(cls, attackers: Optional[Sequence[Unit]], defenders: Optional[Sequence[Unit]],
              life_total: Optional[LifeTotal], state: Optional[BoardState]) -> 'AttackContext':
        context = cls(
            attackers=[a for a in (attackers or []) if a is not None and a.is_active],
            defenders=[d for d in (defenders or []) if d is not None and d.is_active],
            life_total=life_total,
            state=state,
        )
        if not context.attackers:
            context.invalidate("no attackers")
        elif state is None:
            context.invalidate("no board state")
        return context

    def invalidate(self, message: str):
        self.is_valid = False
        self.error_message = message

    def remove_dead(self):
        self.attackers = [a for a in self.attackers if a.is_active]
        self.defenders = [d for d in self.defenders if d.is_active]

    @property
    def taunt_defenders(self) -> List[Unit]:
        return [d for d in self.defenders if d.has_keyword(Keyword.TAUNT)]


class AttackPlanner:
    """Plans the attack phase for one side."""

    def __init__(self, settings: Optional[AttackSettings] = None,
                 variance: Optional[DecisionVariance] = None,
                 keyword_evaluator: Optional[BaseKeywordEvaluator] = None,
                 target_evaluator: Optional[TargetEvaluator] = None,
                 trade_evaluator: Optional[TradeEvaluator] = None,
                 order_strategy: Optional[AttackOrderStrategy] = None,
                 life_total_policy: Optional[LifeTotalPolicy] = None,
                 overwhelm_evaluator: Optional[OverwhelmEvaluator] = None):
        self.settings = settings or AttackSettings()
        self.variance = variance or DecisionVariance()
        self.target_evaluator = target_evaluator or TargetEvaluator(
            self.settings, keyword_evaluator, self.variance)
        self.trade_evaluator = trade_evaluator or TradeEvaluator(self.settings)
        self.order_strategy = order_strategy or AttackOrderStrategy(
            self.settings, self.variance, self.trade_evaluator)
        self.life_total_policy = life_total_policy or LifeTotalPolicy(self.settings, self.variance)
        self.overwhelm_evaluator = overwhelm_evaluator or OverwhelmEvaluator()

    # =========================================================================
    # PLANNING
    # =========================================================================

    def plan(self, attackers: Optional[Sequence[Unit]], defenders: Optional[Sequence[Unit]],
             life_total: Optional[LifeTotal], state: Optional[BoardState],
             mode: Optional[StrategicMode] = None) -> List[AttackStep]:
        """Ordered attack plan. Empty when there is nothing sensible to do."""
        context = AttackContext.build(self.valid_attackers(attackers), defenders, life_total, state)
        if not context.is_valid:
            logger.debug(f"Empty attack plan: {context.error_message}")
            return []
        if mode is None:
            mode = determine_strategic_mode(state, self.settings, self.variance)

        lethal = self.is_lethal(context.attackers, context.taunt_defenders, context.life_total)
        if lethal:
            logger.info(f"Lethal detected against {context.life_total}")
        ordered = self.order_strategy.order(context.attackers, context.defenders, state, lethal)
        return self._simulate(ordered, context, mode)

    def _simulate(self, ordered: List[Unit], context: AttackContext,
                  mode: StrategicMode) -> List[AttackStep]:
        """Walk the order on a copy of the context, removing units as they would die."""
        attacker_originals = {a.id: a for a in ordered}
        defender_originals = {d.id: d for d in context.defenders}
        sim = AttackContext(
            attackers=[a.snapshot() for a in ordered],
            defenders=[d.snapshot() for d in context.defenders],
            state=context.state,
        )
        if context.life_total is not None:
            sim.life_total = LifeTotal(context.life_total.side, context.life_total.health,
                                       context.life_total.max_health)
        own_units = len([u for u in context.state.self_units if u.is_active]) or len(sim.attackers)

        steps = []
        for attacker in list(sim.attackers):
            if not attacker.is_active:
                continue
            target = self.select_target(attacker, sim.defenders, sim.life_total, sim.state, mode,
                                        is_last_unit=own_units == 1)
            if target is None:
                logger.debug(f"{attacker} holds back")
                continue

            if isinstance(target, LifeTotal):
                steps.append(AttackStep(attacker_originals[attacker.id], context.life_total))
                sim.life_total.take_damage(attacker.attack)
                if sim.life_total.health <= 0:
                    break
                continue

            steps.append(AttackStep(attacker_originals[attacker.id], defender_originals[target.id]))
            if self._resolve(attacker, target, sim.defenders):
                own_units -= 1
            sim.remove_dead()

        logger.info(f"Attack plan: {steps}")
        return steps

    @staticmethod
    def _resolve(attacker: Unit, target: Unit, defenders: List[Unit]) -> bool:
        """Apply one simulated attack to the copies. Returns True if the attacker died."""
        retaliation = counter_damage(attacker, target)
        target.take_damage(attacker.attack)
        if attacker.has_keyword(Keyword.OVERWHELM):
            splash = splash_damage(attacker)
            for other in defenders:
                if other.id != target.id and other.is_active:
                    other.take_damage(splash)
        if retaliation > 0:
            attacker.health -= min(retaliation, attacker.health)
            if attacker.health <= 0:
                attacker.is_dead = True
        return not attacker.is_alive

    def valid_attackers(self, attackers: Optional[Sequence[Unit]]) -> List[Unit]:
        """Active units with an attack left. Zero-attack units are logged and dropped."""
        if not attackers:
            return []
        valid = []
        for unit in attackers:
            if unit is None or not unit.is_active or unit.remaining_attacks <= 0:
                continue
            if unit.attack <= 0:
                logger.info(f"{unit} has no attack, staying back as a defender")
                continue
            valid.append(unit)
        return valid

    def is_lethal(self, attackers: Sequence[Unit], defenders: Sequence[Unit],
                  life_total: Optional[LifeTotal]) -> bool:
        """Our damage, after paying for Taunt walls, meets their life total."""
        if life_total is None or not attackers:
            return False
        damage = sum(a.attack for a in attackers if a is not None)
        wall = sum(self._hits_to_clear(d) for d in defenders
                   if d is not None and d.is_active and d.has_keyword(Keyword.TAUNT))
        return damage - wall >= life_total.health

    @staticmethod
    def _hits_to_clear(unit: Unit) -> int:
        """Raw attack needed to remove a unit (Tough doubles it)."""
        if unit.has_keyword(Keyword.TOUGH):
            return unit.health * 2
        return unit.health

    # =========================================================================
    # TARGETING
    # =========================================================================

    def select_target(self, attacker: Unit, defenders: Sequence[Unit],
                      life_total: Optional[LifeTotal], state: Optional[BoardState],
                      mode: StrategicMode = StrategicMode.AGGRO,
                      is_last_unit: bool = False) -> Optional[Target]:
        """Target for one attacker against the current defenders.

        Returns a Unit, the LifeTotal, or None when the attacker should hold.
        """
        if attacker is None or not attacker.is_active or attacker.attack <= 0:
            return None

        live = [d for d in (defenders or []) if d is not None and d.is_active]
        if not live:
            if self.life_total_policy.should_strike(attacker, live, life_total, state, is_last_unit):
                return life_total
            return None

        taunts = [d for d in live if d.has_keyword(Keyword.TAUNT)]
        candidates = taunts or live
        candidates = self._protect_last_unit(attacker, candidates, live, state, is_last_unit)
        if not candidates:
            logger.debug(f"{attacker} is our last unit and every target is a bad trade")
            return None

        if attacker.has_keyword(Keyword.OVERWHELM) and len(candidates) >= 2:
            return self.overwhelm_evaluator.select_target(attacker, candidates, live)
        return self._best_scored_target(attacker, candidates, live, state, mode, is_last_unit)

    def _protect_last_unit(self, attacker: Unit, candidates: List[Unit], live: List[Unit],
                           state: Optional[BoardState], is_last_unit: bool) -> List[Unit]:
        """Drop targets that would kill our only unit on the counter, unless worth it."""
        if not (is_last_unit and self.settings.avoid_losing_last_monster):
            return candidates
        if self.variance.chance(self.settings.last_monster_ignore_chance):
            logger.debug(f"Ignoring last-unit protection for {attacker}")
            return candidates

        kept = []
        for target in candidates:
            if not dies_to_counter(attacker, target):
                kept.append(target)
            elif self.trade_evaluator.would_clear_board(attacker, target, live, is_last_unit):
                kept.append(target)
            elif self.trade_evaluator.is_valuable_trade(attacker, target, state):
                kept.append(target)
            else:
                logger.debug(f"Last unit {attacker} avoids {target}")
        return kept

    def _best_scored_target(self, attacker: Unit, candidates: List[Unit], live: List[Unit],
                            state: Optional[BoardState], mode: StrategicMode,
                            is_last_unit: bool) -> Unit:
        if len(candidates) == 1:
            return candidates[0]

        ranked = self.rank_targets(attacker, candidates, live, state, mode, is_last_unit)
        index = self.variance.suboptimal_index(ranked, self.settings.decision_variance)
        if index:
            logger.debug(f"{attacker} makes a suboptimal pick (#{index + 1})")
        elif self.variance.chance(self.settings.target_reconsideration_chance):
            index = 1
            logger.debug(f"{attacker} reconsiders its target")
        return ranked[index][1]

    def rank_targets(self, attacker: Unit, candidates: Sequence[Unit], live: Sequence[Unit],
                     state: Optional[BoardState], mode: StrategicMode,
                     is_last_unit: bool = False) -> List[Tuple[float, Unit]]:
        """(score, target) pairs, best first. Ties keep candidate order."""
        scored = []
        for target in candidates:
            score = self.target_evaluator.evaluate(attacker, target, state, mode)
            score = self._adjust_for_last_unit(score, attacker, target, state, is_last_unit)
            score = self._adjust_for_turn_order(score, attacker, target, state, is_last_unit)
            if self.trade_evaluator.would_clear_board(attacker, target, live, is_last_unit):
                score += CLEAR_BOARD_BONUS
            logger.debug(f"  {attacker} -> {target}: {score:.1f}")
            scored.append((score, target))
        return sorted(scored, key=lambda pair: -pair[0])

    def _adjust_for_last_unit(self, score: float, attacker: Unit, target: Unit,
                              state: Optional[BoardState], is_last_unit: bool) -> float:
        if not is_last_unit:
            return score
        if dies_to_counter(attacker, target):
            # Only valuable trades survive _protect_last_unit
            return score + VALUABLE_LAST_UNIT_TRADE_BONUS
        if target.attack == 0:
            return score + HARMLESS_TARGET_BONUS
        return score

    def _adjust_for_turn_order(self, score: float, attacker: Unit, target: Unit,
                               state: Optional[BoardState], is_last_unit: bool) -> float:
        if state is None:
            return score

        kills = target.damage_taken_from(attacker.attack) >= target.health
        risky_trade = is_last_unit and attacker.health <= target.attack

        if state.is_opponent_first_next_turn:
            if target.attack >= THREAT_ATTACK and kills:
                if risky_trade:
                    score += 30 if self.trade_evaluator.is_valuable_trade(attacker, target, state) else -30
                else:
                    score += 40
            elif target.attack >= THREAT_ATTACK:
                score -= 20
        else:
            if kills:
                if risky_trade:
                    score += 20 if self.trade_evaluator.is_valuable_trade(attacker, target, state) else -10
                else:
                    score += 20
            if attacker.attack < target.health <= attacker.attack * 2:
                score += 25
        return score
