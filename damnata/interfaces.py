"""Interfaces between the AI and the game that hosts it.

The AI reads the game through a UnitProvider and issues intents through an
ActionExecutor. It never mutates units, health or mana itself.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Union, Dict, Any

from .card import CardData, Unit, LifeTotal
from .constants import Side, CombatPhase

logger = logging.getLogger(__name__)

Target = Union[Unit, LifeTotal]


@dataclass
class GameInfo:
    """Non-unit game facts needed to build a BoardState."""
    turn_count: int
    self_mana: int
    self_hand_size: int
    self_deck_size: int
    opponent_hand_size: int
    opponent_deck_size: int
    is_opponent_first_next_turn: bool
    phase: CombatPhase = CombatPhase.SELF_PREP


@dataclass
class AttackOutcome:
    """Result of executing one attack."""
    success: bool
    target_died: bool = False
    damage_dealt: int = 0
    counter_damage_dealt: int = 0
    attacker_died: bool = False
    splash_kills: int = 0
    error: Optional[str] = None


@dataclass
class PlayOutcome:
    """Result of playing one card."""
    success: bool
    error: Optional[str] = None
    summoned: Optional[Unit] = None


class UnitProvider(ABC):
    """Read access to the live game."""

    @abstractmethod
    def get_active_units(self, side: Side) -> List[Unit]:
        """Units that are alive and placed (dead/unplaced units excluded)."""

    @abstractmethod
    def get_life_total(self, side: Side) -> LifeTotal:
        """The side's health pool."""

    @abstractmethod
    def get_game_info(self) -> GameInfo:
        """Turn, mana, hand and deck sizes, turn order."""

    @abstractmethod
    def get_hand(self) -> List[CardData]:
        """Cards in the AI's hand."""

    def get_free_slots(self, side: Side) -> List[int]:
        """Board slots without a unit. Empty list if the game has no slots."""
        return []


class ActionExecutor(ABC):
    """Applies AI intents to the game."""

    @abstractmethod
    def execute_attack(self, attacker: Unit, target: Target) -> AttackOutcome:
        """Attack a unit, or the life total when that side has no units."""

    @abstractmethod
    def execute_play_card(self, card: CardData, target: Optional[Target] = None,
                          position: Optional[int] = None) -> PlayOutcome:
        """Play a card from hand, with a spell target or monster slot."""


class TelemetrySink(ABC):
    """Fire-and-forget notifications about AI decisions."""

    @abstractmethod
    def notify(self, event: str, data: Dict[str, Any]):
        pass


class NullTelemetry(TelemetrySink):
    """Discards every notification."""

    def notify(self, event: str, data: Dict[str, Any]):
        pass


class LoggingTelemetry(TelemetrySink):
    """Writes notifications to the log at debug level."""

    def notify(self, event: str, data: Dict[str, Any]):
        logger.debug(f"[telemetry] {event}: {data}")


@dataclass
class RecordingTelemetry(TelemetrySink):
    """Keeps every notification in memory (simulations and tests)."""
    events: List[tuple] = field(default_factory=list)

    def notify(self, event: str, data: Dict[str, Any]):
        self.events.append((event, dict(data)))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]
