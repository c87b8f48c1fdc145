"""Card planning - what to play this turn within the mana budget.

Order of checks (first match wins):
    1. Opponent at low health: no turn skip and no holding, play the best cards
    2. Turn skip: only while already ahead on board
    3. Greedy best-first selection, with the two hold rules applied per card
    4. Early stop once two cards are down and the rest are weak

The planner never fixes spell targets or monster slots. Those are picked
against a fresh snapshot when each card is actually played.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..board_state import BoardState
from ..card import CardData
from ..constants import BOARD_SLOTS
from ..settings import CardPlaySettings
from .card_evaluator import CardEvaluator, LETHAL_REJECTION_SCORE
from .spell_targets import SpellTargetSelector
from .variance import DecisionVariance

logger = logging.getLogger(__name__)

# Turn from which skipping is rare
LATE_GAME_TURN = 5
# Chance to skip outright before the late game, once the skip roll has fired
EARLY_SKIP_CHANCE = 0.7
# Late-game advantage below which we never skip
LATE_SKIP_ADVANTAGE = 2.0


@dataclass
class ScoredCard:
    """A playable card with its current and future value."""
    card: CardData
    score: float
    future_value: float


@dataclass
class CardPlan:
    """Cards to play this turn, in order."""
    cards: List[CardData] = field(default_factory=list)
    skipped: bool = False
    reason: str = ""

    @property
    def total_cost(self) -> int:
        return sum(c.cost for c in self.cards)

    def __iter__(self):
        return iter(self.cards)

    def __len__(self):
        return len(self.cards)


class CardPlanner:
    """Chooses and orders cards for the preparation phase."""

    def __init__(self, settings: Optional[CardPlaySettings] = None,
                 evaluator: Optional[CardEvaluator] = None,
                 variance: Optional[DecisionVariance] = None,
                 target_selector: Optional[SpellTargetSelector] = None,
                 board_slots: int = BOARD_SLOTS):
        self.settings = settings or CardPlaySettings()
        self.variance = variance or DecisionVariance()
        self.evaluator = evaluator or CardEvaluator(self.settings, variance=self.variance)
        self.target_selector = target_selector or SpellTargetSelector()
        self.board_slots = board_slots

    def plan(self, hand: Optional[Sequence[CardData]], state: Optional[BoardState]) -> CardPlan:
        """Ordered cards to play. Total cost never exceeds state.self_mana."""
        if not hand or state is None:
            return CardPlan(reason="nothing to play")

        playable = self.playable_cards(hand, state)
        if not playable:
            return CardPlan(reason="no playable cards")

        if self.should_skip(playable, state):
            logger.info("Holding every card this turn")
            return CardPlan(skipped=True, reason="turn skipped")

        scored = self.score_cards(playable, state)
        cards = self.select(scored, state)
        logger.info(f"Card plan ({sum(c.cost for c in cards)}/{state.self_mana} mana): "
                    f"{[c.name for c in cards]}")
        return CardPlan(cards=cards)

    # =========================================================================
    # FILTERING
    # =========================================================================

    def free_slots(self, state: BoardState) -> int:
        return max(0, self.board_slots - len([u for u in state.self_units if u.is_active]))

    def playable_cards(self, hand: Sequence[CardData], state: BoardState) -> List[CardData]:
        """Affordable cards that can legally be played right now."""
        has_slot = self.free_slots(state) > 0
        playable = []
        for card in hand:
            if card is None or card.cost > state.self_mana:
                continue
            if card.is_monster:
                if not state.phase.is_prep or not has_slot:
                    continue
            elif not self.target_selector.has_legal_target(card, state):
                logger.debug(f"{card.name}: no legal target")
                continue
            if card.bloodprice_value and card.bloodprice_value >= state.self_health:
                logger.debug(f"{card.name}: bloodprice would kill us")
                continue
            playable.append(card)
        return playable

    def opponent_low(self, state: BoardState) -> bool:
        return state.opponent_health <= self.settings.player_low_health_threshold

    @staticmethod
    def board_advantage(state: BoardState) -> float:
        """Our control over theirs, with their control floored at 1."""
        opponent = state.opponent_board_control if state.opponent_board_control > 0 else 1.0
        return state.self_board_control / opponent

    # =========================================================================
    # SKIP CHECK
    # =========================================================================

    def should_skip(self, playable: Sequence[CardData], state: BoardState) -> bool:
        """Play nothing this turn. Only ever true while ahead on board."""
        if not playable or self.opponent_low(state):
            return False
        if not self.variance.chance(self.settings.skip_card_play_chance):
            return False

        advantage = self.board_advantage(state)
        if advantage < self.settings.card_hold_board_advantage_threshold:
            return False

        late_game = state.turn_count >= LATE_GAME_TURN
        if not late_game and self.variance.chance(EARLY_SKIP_CHANCE):
            return True

        average = sum(self.evaluator.evaluate(c, state) for c in playable) / len(playable)
        if average < self.settings.low_value_card_threshold:
            return True
        if late_game and advantage < LATE_SKIP_ADVANTAGE:
            return False
        if state.self_deck_size < self.settings.low_deck_size_threshold:
            return self.variance.chance(self.settings.low_deck_size_conservation_chance)
        return False

    # =========================================================================
    # SCORING & SELECTION
    # =========================================================================

    def future_value(self, card: CardData, state: BoardState) -> float:
        value = card.cost * self.settings.future_value_multiplier
        if state.turn_count < self.settings.early_game_turn_limit:
            value *= self.settings.early_game_expensive_card_multiplier
        return value

    def score_cards(self, cards: Sequence[CardData], state: BoardState) -> List[ScoredCard]:
        """Scored cards, best first. Ties keep hand order."""
        scored = []
        for card in cards:
            score = self.evaluator.score(card, state)
            if score <= LETHAL_REJECTION_SCORE:
                continue
            scored.append(ScoredCard(card, score, self.future_value(card, state)))
            logger.debug(f"  {card.name}: score {score:.1f}, future {scored[-1].future_value:.1f}")
        return sorted(scored, key=lambda s: -s.score)

    def select(self, scored: List[ScoredCard], state: BoardState) -> List[CardData]:
        """Greedy mana-constrained selection with hold rules and early stop."""
        remaining_mana = state.self_mana
        slots = self.free_slots(state)
        advantage = self.board_advantage(state)
        may_hold = not self.opponent_low(state)
        selected: List[CardData] = []
        picked = set()

        for index, entry in enumerate(scored):
            card = entry.card
            if card.cost > remaining_mana:
                continue
            if card.is_monster and slots <= 0:
                continue
            if may_hold and self._should_hold(entry, state, advantage):
                continue

            selected.append(card)
            picked.add(index)
            remaining_mana -= card.cost
            if card.is_monster:
                slots -= 1
            if remaining_mana <= 0:
                break

            if len(selected) >= 2 and self._should_stop_early(scored, picked, remaining_mana, advantage):
                logger.debug("Stopping early, remaining cards are weak")
                break
        return selected

    def _should_hold(self, entry: ScoredCard, state: BoardState, advantage: float) -> bool:
        settings = self.settings
        expensive = entry.card.cost >= settings.expensive_card_cost
        early = state.turn_count <= settings.early_game_turn_limit
        if (expensive and early
                and advantage > settings.card_hold_board_advantage_threshold
                and entry.score < settings.high_value_card_threshold
                and self.variance.chance(settings.hold_expensive_card_chance)):
            logger.debug(f"Holding expensive {entry.card.name} for later")
            return True

        if (entry.future_value > entry.score * settings.future_to_current_value_ratio
                and state.self_board_control > state.opponent_board_control
                and self.variance.chance(settings.hold_high_future_value_chance)):
            logger.debug(f"Holding {entry.card.name} for its future value")
            return True
        return False

    def _should_stop_early(self, scored: List[ScoredCard], picked: set,
                           remaining_mana: int, advantage: float) -> bool:
        if advantage <= self.settings.early_stop_board_advantage_threshold:
            return False
        rest = [s for i, s in enumerate(scored) if i not in picked and s.card.cost <= remaining_mana]
        if any(s.score >= self.settings.low_value_card_threshold for s in rest):
            return False
        return self.variance.chance(self.settings.strategic_stop_chance)
