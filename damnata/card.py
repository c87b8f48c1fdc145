"""CardData definitions, board Units and LifeTotal targets."""
from dataclasses import dataclass, field, replace
from typing import Optional, FrozenSet, Dict, Any, List

from .constants import (
    CardType, Keyword, Side, SpellEffect, DAMAGING_EFFECTS, UNTARGETED_EFFECTS,
)


@dataclass(frozen=True)
class CardData:
    """Immutable card definition, as held in hand or deck."""
    name: str
    cost: int  # Mana cost
    card_type: CardType = CardType.MONSTER
    attack: int = 0
    health: int = 0
    keywords: FrozenSet[Keyword] = frozenset()
    effects: FrozenSet[SpellEffect] = frozenset()
    effect_value: int = 0            # Damage / heal / buff amount
    effect_value_per_turn: int = 0   # Burn damage per tick
    duration: int = 0                # Burn ticks
    draw_value: int = 0              # Cards drawn by Draw
    bloodprice_value: int = 0        # Health paid by the caster
    description: str = ""

    @property
    def is_monster(self) -> bool:
        return self.card_type == CardType.MONSTER

    @property
    def is_spell(self) -> bool:
        return self.card_type == CardType.SPELL

    def has_keyword(self, keyword: Keyword) -> bool:
        return keyword in self.keywords

    def has_effect(self, effect: SpellEffect) -> bool:
        return effect in self.effects

    @property
    def ordered_effects(self) -> List[SpellEffect]:
        """Effects in SpellEffect declaration order (stable across runs)."""
        return [e for e in SpellEffect if e in self.effects]

    @property
    def primary_effect(self) -> Optional[SpellEffect]:
        """First effect that needs a target, else the first effect."""
        ordered = self.ordered_effects
        for effect in ordered:
            if effect not in UNTARGETED_EFFECTS:
                return effect
        return ordered[0] if ordered else None

    @property
    def is_damaging(self) -> bool:
        return bool(self.effects & DAMAGING_EFFECTS)

    @property
    def needs_target(self) -> bool:
        """Spells with only Draw/Bloodprice resolve without a target."""
        return self.is_spell and bool(self.effects - UNTARGETED_EFFECTS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'cost': self.cost,
            'card_type': self.card_type.name,
            'attack': self.attack,
            'health': self.health,
            'keywords': sorted(k.name for k in self.keywords),
            'effects': sorted(e.name for e in self.effects),
            'effect_value': self.effect_value,
            'effect_value_per_turn': self.effect_value_per_turn,
            'duration': self.duration,
            'draw_value': self.draw_value,
            'bloodprice_value': self.bloodprice_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CardData':
        return cls(
            name=data['name'],
            cost=data['cost'],
            card_type=CardType[data.get('card_type', 'MONSTER')],
            attack=data.get('attack', 0),
            health=data.get('health', 0),
            keywords=frozenset(Keyword[k] for k in data.get('keywords', [])),
            effects=frozenset(SpellEffect[e] for e in data.get('effects', [])),
            effect_value=data.get('effect_value', 0),
            effect_value_per_turn=data.get('effect_value_per_turn', 0),
            duration=data.get('duration', 0),
            draw_value=data.get('draw_value', 0),
            bloodprice_value=data.get('bloodprice_value', 0),
        )


@dataclass
class Unit:
    """A monster on the board.

    Owned and mutated by the game (arena); the AI only ever reads Units,
    usually through the copies held by a BoardState.
    """
    id: int
    side: Side
    name: str
    attack: int
    health: int
    max_health: int
    keywords: FrozenSet[Keyword] = frozenset()
    remaining_attacks: int = 0  # Summoned this turn = cannot attack yet
    is_dead: bool = False
    is_placed: bool = True
    slot: Optional[int] = None

    # Ongoing burn
    burn_damage: int = field(default=0)
    burn_turns: int = field(default=0)

    @property
    def is_alive(self) -> bool:
        return not self.is_dead and self.health > 0

    @property
    def is_active(self) -> bool:
        """Alive and on the board."""
        return self.is_alive and self.is_placed

    @property
    def can_attack(self) -> bool:
        return self.is_active and self.attack > 0 and self.remaining_attacks > 0

    @property
    def health_ratio(self) -> float:
        if self.max_health <= 0:
            return 0.0
        return self.health / self.max_health

    def has_keyword(self, keyword: Keyword) -> bool:
        return keyword in self.keywords

    def damage_taken_from(self, amount: int) -> int:
        """Damage this unit would actually take from a hit of `amount`."""
        if self.has_keyword(Keyword.TOUGH):
            return amount // 2
        return amount

    def take_damage(self, amount: int) -> int:
        """Apply damage (after Tough), return actual damage dealt."""
        actual = min(self.damage_taken_from(max(0, amount)), self.health)
        self.health -= actual
        if self.health <= 0:
            self.is_dead = True
        return actual

    def heal(self, amount: int) -> int:
        """Heal, return actual healing done."""
        actual = max(0, min(amount, self.max_health - self.health))
        self.health += actual
        return actual

    def snapshot(self) -> 'Unit':
        """Detached copy for a BoardState."""
        return replace(self)

    def __repr__(self):
        kw = ",".join(sorted(k.name[0] for k in self.keywords))
        return f"Unit({self.name}#{self.id} {self.attack}/{self.health}{' ' + kw if kw else ''})"


@dataclass
class LifeTotal:
    """A side's health pool. Attackable only when that side has no units."""
    side: Side
    health: int
    max_health: int

    @property
    def health_ratio(self) -> float:
        if self.max_health <= 0:
            return 0.0
        return self.health / self.max_health

    def take_damage(self, amount: int) -> int:
        actual = max(0, amount)
        self.health -= actual
        return actual

    def heal(self, amount: int) -> int:
        actual = max(0, min(amount, self.max_health - self.health))
        self.health += actual
        return actual

    def __repr__(self):
        return f"LifeTotal({self.side.name} {self.health}/{self.max_health})"


def create_unit(card: CardData, side: Side, unit_id: int, slot: Optional[int] = None) -> Unit:
    """Create a Unit when a monster card resolves."""
    if not card.is_monster:
        raise ValueError(f"Cannot summon non-monster card: {card.name}")
    return Unit(
        id=unit_id,
        side=side,
        name=card.name,
        attack=card.attack,
        health=card.health,
        max_health=card.health,
        keywords=card.keywords,
        remaining_attacks=0,
        slot=slot,
    )


def monster(name: str, cost: int, attack: int, health: int, *keywords: Keyword) -> CardData:
    """Shorthand for monster card definitions."""
    return CardData(name=name, cost=cost, card_type=CardType.MONSTER,
                    attack=attack, health=health, keywords=frozenset(keywords))


def spell(name: str, cost: int, *effects: SpellEffect, **values) -> CardData:
    """Shorthand for spell card definitions."""
    return CardData(name=name, cost=cost, card_type=CardType.SPELL,
                    effects=frozenset(effects), **values)
