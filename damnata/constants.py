"""Game constants and enums."""
from enum import Enum, auto


# Board layout
BOARD_SLOTS = 5          # Monster slots per side
HAND_LIMIT = 7           # Cards above this are burned on draw
MAX_MANA = 10
STARTING_HEALTH = 30
STARTING_HAND = 4


class Side(Enum):
    """Which side of the table a unit or life total belongs to.

    SELF is the side the AI is playing, OPPONENT is the human (or other AI).
    """
    SELF = auto()
    OPPONENT = auto()

    @property
    def other(self) -> 'Side':
        return Side.OPPONENT if self is Side.SELF else Side.SELF


class CardType(Enum):
    """Card types."""
    MONSTER = auto()
    SPELL = auto()


class Keyword(Enum):
    """Monster keywords."""
    TAUNT = auto()       # Must be attacked first
    RANGED = auto()      # Takes no counter damage
    TOUGH = auto()       # Halves damage taken
    OVERWHELM = auto()   # Splashes half attack to other units


class SpellEffect(Enum):
    """Spell effect types."""
    DAMAGE = auto()
    HEAL = auto()
    BURN = auto()
    BUFF = auto()
    DEBUFF = auto()
    DOUBLE_ATTACK = auto()
    DRAW = auto()
    BLOODPRICE = auto()


# Effects that hurt whatever they hit
DAMAGING_EFFECTS = frozenset([SpellEffect.DAMAGE, SpellEffect.BURN])

# Effects that never need a target on the board
UNTARGETED_EFFECTS = frozenset([SpellEffect.DRAW, SpellEffect.BLOODPRICE])


class CombatPhase(Enum):
    """Round phases. Each side has a prep (card play) and combat phase."""
    SELF_PREP = auto()
    SELF_COMBAT = auto()
    OPPONENT_PREP = auto()
    OPPONENT_COMBAT = auto()
    CLEANUP = auto()

    @property
    def is_prep(self) -> bool:
        return self in (CombatPhase.SELF_PREP, CombatPhase.OPPONENT_PREP)


class StrategicMode(Enum):
    """Attack posture, recomputed every combat phase."""
    AGGRO = auto()
    DEFENSIVE = auto()
