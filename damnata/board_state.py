"""BoardState - immutable per-decision snapshot of both sides of the table.

A BoardState is never patched in place. Whenever a card is played or an
attack resolves the AI builds a new one from the live units
(see BoardStateEvaluator.capture).
"""
from dataclasses import dataclass, replace
from typing import Tuple, List

from .card import Unit
from .constants import Side, Keyword, CombatPhase


@dataclass(frozen=True)
class BoardState:
    """Snapshot of the board from the AI's point of view (SELF vs OPPONENT)."""
    self_units: Tuple[Unit, ...] = ()
    opponent_units: Tuple[Unit, ...] = ()
    self_health: int = 30
    self_max_health: int = 30
    opponent_health: int = 30
    opponent_max_health: int = 30
    turn_count: int = 1
    self_mana: int = 0
    self_hand_size: int = 0
    self_deck_size: int = 0
    opponent_hand_size: int = 0
    opponent_deck_size: int = 0
    is_opponent_first_next_turn: bool = False
    phase: CombatPhase = CombatPhase.SELF_PREP

    # Derived by BoardStateEvaluator, never set by hand
    self_board_control: float = 0.0
    opponent_board_control: float = 0.0

    @property
    def self_acts_next(self) -> bool:
        return not self.is_opponent_first_next_turn

    @property
    def card_advantage(self) -> int:
        return self.self_hand_size - self.opponent_hand_size

    @property
    def board_control_difference(self) -> float:
        return self.self_board_control - self.opponent_board_control

    @property
    def control_ratio(self) -> float:
        """Self control divided by opponent control.

        999 when the opponent has nothing and we have something, 1 when both are empty.
        """
        if self.opponent_board_control > 0:
            return self.self_board_control / self.opponent_board_control
        if self.self_board_control > 0:
            return 999.0
        return 1.0

    @property
    def is_self_behind_on_health(self) -> bool:
        return self.self_health < self.opponent_health

    def units(self, side: Side) -> Tuple[Unit, ...]:
        return self.self_units if side == Side.SELF else self.opponent_units

    def health(self, side: Side) -> int:
        return self.self_health if side == Side.SELF else self.opponent_health

    def max_health(self, side: Side) -> int:
        return self.self_max_health if side == Side.SELF else self.opponent_max_health

    def health_ratio(self, side: Side) -> float:
        max_health = self.max_health(side)
        return self.health(side) / max_health if max_health > 0 else 0.0

    def board_control(self, side: Side) -> float:
        return self.self_board_control if side == Side.SELF else self.opponent_board_control

    def total_attack(self, side: Side) -> int:
        return sum(u.attack for u in self.units(side) if u.is_alive)

    def taunt_units(self, side: Side) -> List[Unit]:
        return [u for u in self.units(side) if u.is_alive and u.has_keyword(Keyword.TAUNT)]

    @property
    def opponent_has_taunt(self) -> bool:
        return bool(self.taunt_units(Side.OPPONENT))

    def find_unit(self, unit_id: int):
        """Find a unit on either side by id, or None."""
        for unit in self.self_units + self.opponent_units:
            if unit.id == unit_id:
                return unit
        return None

    def with_control(self, self_control: float, opponent_control: float) -> 'BoardState':
        """Copy with new control scalars (used only by the evaluator)."""
        return replace(self, self_board_control=self_control,
                       opponent_board_control=opponent_control)

    def __repr__(self):
        return (f"BoardState(T{self.turn_count} mana={self.self_mana} "
                f"hp={self.self_health}/{self.opponent_health} "
                f"units={len(self.self_units)}v{len(self.opponent_units)} "
                f"control={self.self_board_control:.1f}/{self.opponent_board_control:.1f})")
