"""Pytest fixtures for enemy AI testing."""
import itertools
import random
import pytest
from typing import Optional, Union

from damnata.ai.board_evaluator import BoardStateEvaluator, build_board_state
from damnata.arena import Arena
from damnata.board_state import BoardState
from damnata.card import CardData, Unit, LifeTotal, create_unit, monster
from damnata.card_database import get_card
from damnata.constants import Keyword, Side, CombatPhase
from damnata.settings import AISettings


class FixedRandom(random.Random):
    """random.Random whose random() always returns the same value.

    FixedRandom(0.0) makes every DecisionVariance.chance(p > 0) fire,
    FixedRandom(0.999) makes none of them fire.
    """

    def __init__(self, value: float = 0.0):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def settings() -> AISettings:
    """AI settings with every random decision disabled or pinned."""
    return AISettings.deterministic()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_unit():
    """Factory fixture for board units.

    Usage:
        grunt = make_unit(3, 4)
        wall = make_unit(1, 6, Keyword.TAUNT, side=Side.OPPONENT)
    """
    ids = itertools.count(1)

    def _make(attack: int = 1, health: int = 1, *keywords: Keyword,
              side: Side = Side.SELF, remaining_attacks: int = 1,
              max_health: Optional[int] = None, name: str = "Unit") -> Unit:
        return Unit(
            id=next(ids),
            side=side,
            name=name,
            attack=attack,
            health=health,
            max_health=max_health if max_health is not None else health,
            keywords=frozenset(keywords),
            remaining_attacks=remaining_attacks,
        )

    return _make


@pytest.fixture
def make_state():
    """Factory fixture for evaluated BoardStates.

    Usage:
        state = make_state(self_units=[a], opponent_units=[b], self_mana=3)
    """
    evaluator = BoardStateEvaluator()

    def _make(**fields) -> BoardState:
        return build_board_state(evaluator, **fields)

    return _make


@pytest.fixture
def arena() -> Arena:
    """Empty arena, round 1, Player 1 in the prep stage."""
    a = Arena([], [], seed=0)
    a.round_number = 1
    a.active_player = 1
    a.stage = CombatPhase.SELF_PREP
    return a


@pytest.fixture
def place_unit(arena: Arena):
    """Factory fixture to put units straight onto the arena board.

    Usage:
        hound = place_unit(1, "Rotting Hound")
        wall = place_unit(2, monster("Wall", 1, 0, 9, Keyword.TAUNT), ready=False)
    """
    def _place(player: int, card: Union[str, CardData], slot: Optional[int] = None,
               ready: bool = True) -> Unit:
        if isinstance(card, str):
            card = get_card(card)
            if card is None:
                raise ValueError("Unknown card")
        if slot is None:
            slot = arena.free_slots(player)[0]
        unit = create_unit(card, Side.SELF, arena._next_unit_id, slot=slot)
        arena._next_unit_id += 1
        unit.remaining_attacks = 1 if ready else 0
        arena.players[player].units.append(unit)
        return unit

    return _place


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def life(health: int, side: Side = Side.OPPONENT, max_health: int = 30) -> LifeTotal:
    return LifeTotal(side, health, max_health)


def plain(name: str, cost: int, attack: int = 2, health: int = 2) -> CardData:
    """Keyword-less monster card."""
    return monster(name, cost, attack, health)


def assert_alive(unit: Unit, msg: str = ""):
    """Assert that a unit is alive."""
    assert unit.is_alive, f"{unit} should be alive. {msg}"


def assert_dead(unit: Unit, msg: str = ""):
    """Assert that a unit is dead."""
    assert not unit.is_alive, f"{unit} should be dead. {msg}"


def assert_hp(unit: Union[Unit, LifeTotal], expected: int, msg: str = ""):
    """Assert a unit or life total has specific HP."""
    assert unit.health == expected, \
        f"{unit} HP: expected {expected}, got {unit.health}. {msg}"


def assert_within_mana(cards, mana: int):
    """Assert the total cost of `cards` fits the mana pool."""
    total = sum(c.cost for c in cards)
    assert total <= mana, f"Planned {[c.name for c in cards]} costs {total}, only {mana} mana"


def assert_targets_taunt(plan):
    """Assert every unit target in an attack plan has Taunt."""
    for step in plan:
        if not step.is_life_total:
            assert step.target.has_keyword(Keyword.TAUNT), f"{step} ignores Taunt"
