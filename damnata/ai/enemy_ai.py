"""Enemy AI - the full heuristic opponent.

Preparation phase:
    CardPlanner picks the cards; each card is then played against a fresh
    snapshot so spell targets and monster slots reflect earlier plays.

Combat phase:
    Strategic mode -> optional attack skip -> AttackPlanner plan -> execute
    one attack at a time. Before every attack the snapshot is rebuilt; the
    planned target is kept while it is still legal, otherwise the planner
    picks again for that attacker.

Opponent observation:
    observe_opponent_turn() passes the opponent's cards and attacks to the
    optional predictor, which then tilts the next strategic mode.
"""
import logging
import random
from typing import List, Optional, Sequence

from ..board_state import BoardState
from ..card import CardData, Unit, LifeTotal
from ..constants import CombatPhase, Keyword, Side, StrategicMode
from ..interfaces import UnitProvider, ActionExecutor, TelemetrySink, Target
from ..settings import AISettings
from .attack_planner import AttackPlanner, AttackStep
from .base import AIPlayer, TurnReport
from .card_evaluator import CardEvaluator
from .card_planner import CardPlanner
from .keywords import BaseKeywordEvaluator, BaseEffectEvaluator, KeywordEvaluator, EffectEvaluator
from .life_total import can_target_life_total
from .predictor import BehaviorPredictor, PredictedAction
from .strategy import AttackSkipEvaluator, determine_strategic_mode, maybe_change_strategy

logger = logging.getLogger(__name__)

# Attack passes per combat phase (a second pass serves units with extra attacks)
MAX_ATTACK_PASSES = 2


class EnemyAI(AIPlayer):
    """Heuristic opponent built from the card and attack planners."""

    name = "Enemy"

    def __init__(self, provider: Optional[UnitProvider], executor: Optional[ActionExecutor],
                 settings: Optional[AISettings] = None,
                 telemetry: Optional[TelemetrySink] = None,
                 seed: Optional[int] = None,
                 rng: Optional[random.Random] = None,
                 keyword_evaluator: Optional[BaseKeywordEvaluator] = None,
                 effect_evaluator: Optional[BaseEffectEvaluator] = None,
                 predictor: Optional[BehaviorPredictor] = None):
        super().__init__(provider, executor, settings, telemetry, seed, rng)
        s = self.settings
        self.keyword_evaluator = keyword_evaluator or KeywordEvaluator()
        self.effect_evaluator = effect_evaluator or EffectEvaluator(
            late_game_turn=s.board.late_game_turn_threshold)
        self.predictor = predictor

        self.card_evaluator = CardEvaluator(s.card_play, self.keyword_evaluator,
                                            self.effect_evaluator, self.variance)
        self.card_planner = CardPlanner(s.card_play, self.card_evaluator, self.variance,
                                        self.spell_targets)
        self.attack_planner = AttackPlanner(s.attack, self.variance, self.keyword_evaluator)
        self.skip_evaluator = AttackSkipEvaluator(s.attack, self.variance)

    # =========================================================================
    # PREPARATION PHASE
    # =========================================================================

    def play_cards(self, report: Optional[TurnReport] = None) -> TurnReport:
        report = report if report is not None else TurnReport()
        if not self.is_ready():
            return report
        if self.predictor is not None:
            self.predictor.phase_switched(CombatPhase.SELF_PREP)

        state = self.board_state
        if state is None:
            logger.warning("No board state, skipping card play")
            return report

        plan = self.card_planner.plan(self.provider.get_hand(), state)
        self._notify('card_plan', cards=[c.name for c in plan], skipped=plan.skipped,
                     mana=state.self_mana)
        if plan.skipped:
            report.cards_skipped = True
            return report

        for card in plan:
            self._pause()
            action = self.play_card(card)
            if action.success:
                self._record_card(card, Side.SELF)
            report.actions.append(action)
        return report

    # =========================================================================
    # COMBAT PHASE
    # =========================================================================

    def attack_phase(self, report: Optional[TurnReport] = None) -> TurnReport:
        report = report if report is not None else TurnReport()
        if not self.is_ready():
            return report
        if self.predictor is not None:
            self.predictor.phase_switched(CombatPhase.SELF_COMBAT)

        state = self.board_state
        if state is None:
            logger.warning("No board state, skipping attacks")
            return report

        attackers = self.attack_planner.valid_attackers(state.self_units)
        if not attackers:
            return report

        mode = determine_strategic_mode(state, self.settings.attack, self.variance, self.predictor)
        report.mode = mode
        self._notify('strategic_mode', mode=mode.name)

        life_total = self.provider.get_life_total(Side.OPPONENT)
        lethal = self.attack_planner.is_lethal(attackers, state.opponent_units, life_total)
        if self.skip_evaluator.should_skip(state, mode, state.opponent_units, lethal):
            report.attack_skipped = True
            self._notify('attack_skipped', advantage=state.control_ratio)
            return report

        passed_on = set()
        for _ in range(MAX_ATTACK_PASSES):
            state = self.board_state
            if state is None or self._opponent_dead():
                break
            attackers = [a for a in self.attack_planner.valid_attackers(state.self_units)
                         if a.id not in passed_on]
            plan = self.attack_planner.plan(attackers, state.opponent_units,
                                            self.provider.get_life_total(Side.OPPONENT),
                                            state, mode)
            if not plan:
                break
            for attacker in attackers:
                if all(step.attacker.id != attacker.id for step in plan):
                    passed_on.add(attacker.id)
            mode = self._execute_plan(plan, mode, report, passed_on)
        return report

    def _execute_plan(self, plan: List[AttackStep], mode: StrategicMode, report: TurnReport,
                      passed_on: set) -> StrategicMode:
        attack_settings = self.settings.attack
        for step in plan:
            mode = maybe_change_strategy(mode, attack_settings, self.variance)

            state = self.board_state
            if state is None or self._opponent_dead():
                break
            attacker = state.find_unit(step.attacker.id)
            if attacker is None or attacker.side != Side.SELF or not attacker.can_attack:
                logger.debug(f"{step.attacker} can no longer attack")
                continue

            if self.variance.chance(attack_settings.missed_attack_chance):
                logger.info(f"{attacker} misses its attack")
                self._notify('attack_missed', attacker=attacker.id)
                passed_on.add(attacker.id)
                continue

            target = self._current_target(step, attacker, state, mode)
            if target is None:
                passed_on.add(attacker.id)
                continue

            self._pause()
            report.actions.append(self.attack(attacker, target))
        return mode

    def _current_target(self, step: AttackStep, attacker: Unit, state: BoardState,
                        mode: StrategicMode) -> Optional[Target]:
        """The planned target if it is still legal, otherwise a fresh pick."""
        defenders = [u for u in state.opponent_units if u.is_active]
        life_total = self.provider.get_life_total(Side.OPPONENT)

        if step.is_life_total:
            if can_target_life_total(defenders):
                return life_total
        else:
            planned = state.find_unit(step.target.id)
            taunts = [d for d in defenders if d.has_keyword(Keyword.TAUNT)]
            if (planned is not None and planned.is_active and planned.side == Side.OPPONENT
                    and (not taunts or planned.has_keyword(Keyword.TAUNT))):
                return planned

        own_units = [u for u in state.self_units if u.is_active]
        logger.debug(f"Re-targeting {attacker}, planned target {step.target} is gone")
        return self.attack_planner.select_target(attacker, defenders, life_total, state, mode,
                                                 is_last_unit=len(own_units) == 1)

    def _opponent_dead(self) -> bool:
        life: Optional[LifeTotal] = self.provider.get_life_total(Side.OPPONENT)
        return life is not None and life.health <= 0

    # =========================================================================
    # OPPONENT OBSERVATION
    # =========================================================================

    def observe_opponent_turn(self, cards_played: Sequence[CardData], attacked: bool):
        """Feed the opponent's finished turn to the predictor.

        Hosts call this after every opponent turn. Without a predictor it
        does nothing.
        """
        if self.predictor is None:
            return
        state = self.board_state
        for card in cards_played:
            self._record_card(card, Side.OPPONENT, state)
            if not card.is_monster:
                self.predictor.update_model(state, PredictedAction.SPELL)
        if attacked:
            self.predictor.update_model(state, PredictedAction.ATTACK)
        self._notify('opponent_observed', cards=[c.name for c in cards_played], attacked=attacked)

    def _record_card(self, card: CardData, side: Side, state: Optional[BoardState] = None):
        if self.predictor is None:
            return
        if state is None:
            state = self.board_state
        turn = state.turn_count if state is not None else 0
        self.predictor.record_card(card, side, turn)
