"""Board state evaluation - turns units into board-control scores.

Board control is a single number per side summarising how strong that side
is. It starts from the units on the board and is then adjusted by
contextual factors (numbers advantage, formations, resources, health and
turn order). All contextual factors are expressed from the AI's (SELF) side.
"""
import logging
import math
from typing import Iterable, Optional, Tuple

from ..board_state import BoardState
from ..card import Unit
from ..constants import Keyword, Side
from ..interfaces import UnitProvider
from ..settings import BoardStateSettings

logger = logging.getLogger(__name__)


class BoardStateEvaluator:
    """Computes control scores and builds BoardState snapshots."""

    def __init__(self, settings: Optional[BoardStateSettings] = None):
        self.settings = settings or BoardStateSettings()

    # =========================================================================
    # UNIT VALUE
    # =========================================================================

    def keyword_multiplier(self, unit: Unit) -> float:
        """Multiplicative keyword value for one unit.

        Each keyword scales with the stat it makes better; units with more
        than one keyword get a synergy bonus on top.
        """
        s = self.settings
        multiplier = 1.0
        count = 0
        if unit.has_keyword(Keyword.TAUNT):
            multiplier *= s.taunt_value * max(0.7, unit.health_ratio)
            count += 1
        if unit.has_keyword(Keyword.RANGED):
            multiplier *= s.ranged_value * (1 + 0.03 * unit.attack)
            count += 1
        if unit.has_keyword(Keyword.TOUGH):
            multiplier *= s.tough_value * (1 + 0.02 * unit.health)
            count += 1
        if unit.has_keyword(Keyword.OVERWHELM):
            multiplier *= s.overwhelm_value * (1 + 0.03 * unit.attack)
            count += 1
        if count > 1:
            multiplier *= 1 + s.keyword_synergy_bonus * (count - 1)
        return multiplier

    def unit_value(self, unit: Unit) -> float:
        value = unit.attack * 1.2 + unit.health
        value *= self.keyword_multiplier(unit)
        ratio = unit.health_ratio
        if ratio < 0.5:
            value *= 0.7 + 0.6 * ratio
        if unit.remaining_attacks > 0:
            value *= 1.2
        return value

    def evaluate(self, units: Optional[Iterable[Unit]]) -> float:
        """Raw control score of a group of units.

        Unit values are summed and the total is scaled by sqrt(count), so a
        wide board counts for more than the same value on one unit.
        """
        if not units:
            return 0.0
        values = [self.unit_value(u) for u in units if u is not None and u.is_alive]
        if not values:
            return 0.0
        return sum(values) * math.sqrt(len(values))

    # =========================================================================
    # CONTEXTUAL FACTORS
    # =========================================================================

    def apply_contextual_factors(self, state: BoardState) -> BoardState:
        """Return a copy of `state` with both control scalars recomputed.

        Starts from the raw unit scores and applies, in order: positioning,
        resources, health, turn order.
        """
        own = self.evaluate(state.self_units)
        enemy = self.evaluate(state.opponent_units)
        own = self._apply_positioning(state, own)
        own = self._apply_resources(state, own)
        own, enemy = self._apply_health(state, own, enemy)
        own = self._apply_turn_order(state, own)
        logger.debug(f"Board control: self={own:.2f} opponent={enemy:.2f}")
        return state.with_control(own, enemy)

    def _apply_positioning(self, state: BoardState, control: float) -> float:
        own_count = len(state.self_units)
        enemy_count = len(state.opponent_units)
        if own_count > 0 and enemy_count > 0:
            presence = own_count / enemy_count
            if presence > 1.5:
                control *= 1 + self.settings.board_presence_multiplier * (presence - 1)

        taunters = sum(1 for u in state.self_units if u.has_keyword(Keyword.TAUNT))
        ranged = sum(1 for u in state.self_units if u.has_keyword(Keyword.RANGED))
        if taunters and ranged:
            control *= 1 + 0.15 * min(taunters, ranged)
        return control

    def _apply_resources(self, state: BoardState, control: float) -> float:
        weight = self.settings.resource_advantage_weight
        if state.card_advantage > 0:
            control += state.card_advantage * weight
        if state.self_mana > 0:
            control += state.self_mana * weight
        return control

    def _apply_health(self, state: BoardState, own: float, enemy: float) -> Tuple[float, float]:
        s = self.settings
        factor = self.health_importance(state.turn_count)
        influence = s.health_influence_factor * factor
        own += state.self_health * influence
        enemy += state.opponent_health * influence

        critical = s.critical_health_threshold
        if critical > 0:
            own_ratio = state.health_ratio(Side.SELF)
            enemy_ratio = state.health_ratio(Side.OPPONENT)
            if own_ratio < critical:
                own *= 1 - 0.2 * (1 - own_ratio / critical)
            if enemy_ratio < critical:
                own *= 1 + 0.15 * (1 - enemy_ratio / critical)

        if self.is_lethal_next_turn(state):
            own *= 1.5
        return own, enemy

    def _apply_turn_order(self, state: BoardState, control: float) -> float:
        if state.is_opponent_first_next_turn:
            return control * 0.9

        control *= 1.15
        damage = state.total_attack(Side.SELF)
        if state.opponent_health > 0 and damage > state.opponent_health * 0.35:
            control *= 1 + min(0.25, damage / state.opponent_health)
        return control

    def health_importance(self, turn_count: int) -> float:
        """How much raw health counts at this stage of the game."""
        if turn_count <= 3:
            return 0.8
        if turn_count >= self.settings.late_game_turn_threshold:
            return 1.5
        return 1.0

    # =========================================================================
    # DERIVED FLAGS
    # =========================================================================

    def is_lethal_next_turn(self, state: BoardState, side: Side = Side.SELF) -> bool:
        """True if `side` acts first next turn with enough attack to finish the other side."""
        acts_first = state.self_acts_next if side == Side.SELF else state.is_opponent_first_next_turn
        return acts_first and state.total_attack(side) >= state.health(side.other)

    def is_critical_health(self, state: BoardState, side: Side = Side.SELF) -> bool:
        return state.health_ratio(side) < self.settings.critical_health_threshold

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def capture(self, provider: UnitProvider) -> Optional[BoardState]:
        """Build a fresh, evaluated snapshot from the live game.

        Returns None when the provider cannot supply a consistent view.
        """
        if provider is None:
            return None
        info = provider.get_game_info()
        own_life = provider.get_life_total(Side.SELF)
        enemy_life = provider.get_life_total(Side.OPPONENT)
        if info is None or own_life is None or enemy_life is None:
            return None

        state = BoardState(
            self_units=tuple(u.snapshot() for u in provider.get_active_units(Side.SELF) if u is not None),
            opponent_units=tuple(u.snapshot() for u in provider.get_active_units(Side.OPPONENT) if u is not None),
            self_health=own_life.health,
            self_max_health=own_life.max_health,
            opponent_health=enemy_life.health,
            opponent_max_health=enemy_life.max_health,
            turn_count=info.turn_count,
            self_mana=info.self_mana,
            self_hand_size=info.self_hand_size,
            self_deck_size=info.self_deck_size,
            opponent_hand_size=info.opponent_hand_size,
            opponent_deck_size=info.opponent_deck_size,
            is_opponent_first_next_turn=info.is_opponent_first_next_turn,
            phase=info.phase,
        )
        return self.apply_contextual_factors(state)


def build_board_state(evaluator: Optional[BoardStateEvaluator] = None, **fields) -> BoardState:
    """Build an evaluated BoardState from keyword fields.

    Convenience for callers that already hold the raw values.
    """
    evaluator = evaluator or BoardStateEvaluator()
    fields['self_units'] = tuple(fields.get('self_units', ()))
    fields['opponent_units'] = tuple(fields.get('opponent_units', ()))
    return evaluator.apply_contextual_factors(BoardState(**fields))
