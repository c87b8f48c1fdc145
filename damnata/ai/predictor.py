"""Opponent behaviour prediction.

Purely optional: EnemyAI consults a predictor only to tilt its strategic
mode, and feeds it the cards both sides play and what the opponent did on
its turn. There is no training loop; HeuristicPredictor reads the board,
the card history and the observed opponent actions.
"""
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Dict, Optional

from ..board_state import BoardState
from ..card import CardData
from ..constants import CombatPhase, Keyword, Side, SpellEffect


class PredictedAction(Enum):
    ATTACK = auto()
    SPELL = auto()


@dataclass
class CardPlayRecord:
    """One observed card play."""
    card: CardData
    side: Side
    turn: int


@dataclass
class CardHistory:
    """Cards played so far, per side and per turn."""
    records: List[CardPlayRecord] = field(default_factory=list)

    def record(self, card: CardData, side: Side, turn: int):
        self.records.append(CardPlayRecord(card, side, turn))

    def plays(self, side: Side) -> List[CardPlayRecord]:
        return [r for r in self.records if r.side == side]

    def count(self, side: Side) -> int:
        return len(self.plays(side))

    def cards_played_in_turn(self, turn: int) -> int:
        return sum(1 for r in self.records if r.turn == turn)

    def clear(self):
        self.records.clear()


class BehaviorPredictor(ABC):
    """Likelihood that the opponent takes an action type next."""

    @abstractmethod
    def predict_action(self, state: BoardState, action: PredictedAction) -> float:
        """Probability in [0, 1]."""
        pass

    def record_card(self, card: CardData, side: Side, turn: int):
        """A card was played by either side. No-op by default."""
        pass

    def update_model(self, state: Optional[BoardState], action: PredictedAction):
        """Feed an observed opponent action. No-op by default."""
        pass

    def phase_switched(self, phase: CombatPhase):
        """Phase change notification. No-op by default."""
        pass


class HeuristicPredictor(BehaviorPredictor):
    """Rule-of-thumb predictor backed by a CardHistory.

    Observed opponent actions (update_model) are blended into every
    prediction with OBSERVED_WEIGHT once there is at least one.
    """

    AGGRESSIVE_KEYWORDS = frozenset([Keyword.OVERWHELM, Keyword.RANGED])
    ACTIVE_SPELL_EFFECTS = frozenset([SpellEffect.DAMAGE, SpellEffect.HEAL,
                                      SpellEffect.DRAW, SpellEffect.BURN])
    OBSERVED_WEIGHT = 0.25

    def __init__(self, history: Optional[CardHistory] = None):
        self.history = history if history is not None else CardHistory()
        self.observed: Dict[PredictedAction, int] = defaultdict(int)

    def predict_action(self, state: BoardState, action: PredictedAction) -> float:
        if state is None:
            return 0.5
        if action == PredictedAction.ATTACK:
            prediction = self._attack_prediction(state)
        else:
            prediction = self._spell_prediction(state)

        total = sum(self.observed.values())
        if total:
            share = self.observed[action] / total
            prediction = prediction * (1 - self.OBSERVED_WEIGHT) + share * self.OBSERVED_WEIGHT
        return min(max(prediction, 0.0), 1.0)

    def _attack_prediction(self, state: BoardState) -> float:
        prediction = 0.8 if state.opponent_health < state.opponent_max_health * 0.5 else 0.3

        if state.phase == CombatPhase.SELF_PREP:
            prediction *= 0.6
        elif state.phase == CombatPhase.SELF_COMBAT:
            prediction *= 1.3

        if state.self_acts_next and state.turn_count < 5:
            prediction *= 1.2
        if state.self_board_control > state.opponent_board_control * 1.5:
            prediction *= 1.25

        plays = self.history.plays(Side.OPPONENT)
        if plays:
            aggressive = sum(1 for r in plays if r.card.keywords & self.AGGRESSIVE_KEYWORDS)
            prediction = (prediction + aggressive / len(plays)) / 2

        recent = sum(self.history.cards_played_in_turn(state.turn_count - i)
                     for i in range(2) if state.turn_count - i > 0)
        if recent > 4:
            prediction *= 1.15
        return prediction

    def _spell_prediction(self, state: BoardState) -> float:
        prediction = 0.7 if state.self_health < state.self_max_health * 0.5 else 0.4

        if state.phase == CombatPhase.SELF_PREP:
            prediction *= 1.2
        elif state.phase == CombatPhase.SELF_COMBAT and state.board_control_difference < 0:
            prediction *= 1.15

        if state.is_opponent_first_next_turn and state.board_control_difference < 0:
            prediction *= 1.15
        if state.turn_count <= 3:
            prediction *= 1.1

        plays = self.history.plays(Side.OPPONENT)
        if plays:
            spells = sum(1 for r in plays if r.card.effects & self.ACTIVE_SPELL_EFFECTS)
            prediction = (prediction + spells / len(plays)) / 2
        return prediction

    def record_card(self, card: CardData, side: Side, turn: int):
        self.history.record(card, side, turn)

    def update_model(self, state: Optional[BoardState], action: PredictedAction):
        self.observed[action] += 1
