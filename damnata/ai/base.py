"""Base class for AI players.

AI players read the game through a UnitProvider and act through an
ActionExecutor, exactly like the host would drive a human player. They never
touch units, health or mana directly.

Every action is preceded by a fresh snapshot (see AIPlayer.board_state):
the previous action may have killed, summoned or damaged anything.
"""
import logging
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Any

from ..board_state import BoardState
from ..card import CardData, Unit, LifeTotal
from ..constants import Side, StrategicMode
from ..interfaces import (
    UnitProvider, ActionExecutor, TelemetrySink, NullTelemetry, Target,
)
from ..settings import AISettings
from .board_evaluator import BoardStateEvaluator
from .positioning import MonsterPositionSelector
from .spell_targets import SpellTargetSelector
from .variance import DecisionVariance

logger = logging.getLogger(__name__)


class ActionKind(Enum):
    PLAY_CARD = auto()
    ATTACK = auto()


@dataclass
class AIAction:
    """An action the AI took (or tried to take)."""
    kind: ActionKind
    success: bool
    card: Optional[CardData] = None
    attacker: Optional[Unit] = None
    target: Optional[Target] = None
    position: Optional[int] = None
    description: str = ""

    def __repr__(self):
        status = "ok" if self.success else "failed"
        return f"AIAction({self.kind.name}, {self.description}, {status})"


@dataclass
class TurnReport:
    """What happened during one AI turn."""
    actions: List[AIAction] = field(default_factory=list)
    mode: Optional[StrategicMode] = None
    cards_skipped: bool = False
    attack_skipped: bool = False

    @property
    def cards_played(self) -> List[CardData]:
        return [a.card for a in self.actions if a.kind == ActionKind.PLAY_CARD and a.success]

    @property
    def attacks(self) -> List[AIAction]:
        return [a for a in self.actions if a.kind == ActionKind.ATTACK and a.success]


class AIPlayer(ABC):
    """Base class for AI opponents.

    Subclasses implement play_cards() (preparation phase) and
    attack_phase() (combat phase). take_turn() runs both.
    """

    name = "AI"

    def __init__(self, provider: Optional[UnitProvider], executor: Optional[ActionExecutor],
                 settings: Optional[AISettings] = None,
                 telemetry: Optional[TelemetrySink] = None,
                 seed: Optional[int] = None,
                 rng: Optional[random.Random] = None):
        """Initialize AI player.

        Args:
            provider: Read access to the game
            executor: Applies our actions to the game
            settings: AI tuning (defaults if omitted)
            telemetry: Notification sink (discarded if omitted)
            seed: Seed for a private random.Random, ignored when rng is given
            rng: Random source shared with the caller
        """
        self.provider = provider
        self.executor = executor
        self.settings = settings or AISettings()
        self.telemetry = telemetry or NullTelemetry()
        self.rng = rng if rng is not None else random.Random(seed)
        self.variance = DecisionVariance(self.rng)
        self.board_evaluator = BoardStateEvaluator(self.settings.board)
        self.spell_targets = SpellTargetSelector()
        self.position_selector = MonsterPositionSelector()

    @property
    def board_state(self) -> Optional[BoardState]:
        """Fresh evaluated snapshot, rebuilt on every access."""
        if self.provider is None:
            return None
        return self.board_evaluator.capture(self.provider)

    def is_ready(self) -> bool:
        """Both collaborators are present."""
        if self.provider is None or self.executor is None:
            logger.warning(f"{self.name} AI has no "
                           f"{'provider' if self.provider is None else 'executor'}, doing nothing")
            return False
        return True

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def play_card(self, card: CardData) -> AIAction:
        """Play a card, picking its target or slot against a fresh snapshot."""
        state = self.board_state
        if state is None or card.cost > state.self_mana:
            return AIAction(ActionKind.PLAY_CARD, False, card=card,
                            description=f"cannot afford {card.name}")

        target = None
        position = None
        if card.is_monster:
            position = self.position_selector.select(card, self.provider.get_free_slots(Side.SELF))
        elif card.needs_target:
            target = self.spell_targets.best_target(card, state)
            if target is None:
                return AIAction(ActionKind.PLAY_CARD, False, card=card,
                                description=f"no target for {card.name}")
        return self._execute_play(card, target, position)

    def _execute_play(self, card: CardData, target: Optional[Target],
                      position: Optional[int]) -> AIAction:
        outcome = self.executor.execute_play_card(card, target, position)
        description = card.name if target is None else f"{card.name} -> {target}"
        if not outcome.success:
            logger.warning(f"Playing {description} failed: {outcome.error}")
        else:
            logger.info(f"{self.name} plays {description}")
        self._notify('card_played', card=card.name, success=outcome.success,
                     target=repr(target) if target is not None else None, position=position)
        return AIAction(ActionKind.PLAY_CARD, outcome.success, card=card, target=target,
                        position=position, description=description)

    def attack(self, attacker: Unit, target: Target) -> AIAction:
        outcome = self.executor.execute_attack(attacker, target)
        description = f"{attacker} -> {target}"
        if not outcome.success:
            logger.warning(f"Attack {description} failed: {outcome.error}")
        else:
            logger.info(f"{self.name} attacks {description} "
                        f"({outcome.damage_dealt} dmg, {outcome.counter_damage_dealt} back)")
        self._notify('attack', attacker=attacker.id,
                     target='life_total' if isinstance(target, LifeTotal) else target.id,
                     success=outcome.success, target_died=outcome.target_died,
                     damage=outcome.damage_dealt)
        return AIAction(ActionKind.ATTACK, outcome.success, attacker=attacker,
                        target=target, description=description)

    def _pause(self, factor: float = 1.0):
        """Pacing between actions. Never sleeps when headless."""
        execution = self.settings.execution
        if execution.headless or execution.action_delay <= 0:
            return
        spread = execution.action_delay * execution.delay_variance
        delay = execution.action_delay * factor + self.rng.uniform(-spread, spread)
        if delay > 0:
            time.sleep(delay)

    def _notify(self, event: str, **data: Any):
        """Fire-and-forget telemetry. Sink errors are logged, never raised."""
        try:
            self.telemetry.notify(event, data)
        except Exception as e:
            logger.warning(f"Telemetry sink failed on '{event}': {e}")

    # =========================================================================
    # TURN
    # =========================================================================

    @abstractmethod
    def play_cards(self, report: TurnReport) -> TurnReport:
        """Preparation phase. Subclasses must implement this."""
        pass

    @abstractmethod
    def attack_phase(self, report: TurnReport) -> TurnReport:
        """Combat phase. Subclasses must implement this."""
        pass

    def take_turn(self) -> TurnReport:
        """Run both phases back to back.

        Hosts with explicit phase transitions call play_cards() and
        attack_phase() themselves.
        """
        report = TurnReport()
        if not self.is_ready():
            return report
        self.play_cards(report)
        self.attack_phase(report)
        return report
