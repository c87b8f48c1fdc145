"""Card database - card definitions used by the arena and simulations."""
import random
from typing import List, Optional

from .card import CardData, monster, spell
from .constants import Keyword, SpellEffect


# =============================================================================
# CARD DATABASE - All card definitions
# =============================================================================

_CARDS = [
    # Monsters
    monster("Ghoul", 1, 1, 2),
    monster("Bone Archer", 2, 2, 1, Keyword.RANGED),
    monster("Grave Warden", 2, 1, 4, Keyword.TAUNT),
    monster("Rotting Hound", 2, 3, 2),
    monster("Plague Bearer", 3, 2, 4, Keyword.TOUGH),
    monster("Crypt Stalker", 3, 4, 2),
    monster("Shade Sniper", 3, 3, 2, Keyword.RANGED),
    monster("Iron Golem", 4, 3, 6, Keyword.TAUNT, Keyword.TOUGH),
    monster("Flesh Colossus", 5, 5, 5, Keyword.OVERWHELM),
    monster("Bog Horror", 4, 4, 4, Keyword.OVERWHELM),
    monster("Lich Marksman", 5, 5, 3, Keyword.RANGED),
    monster("Abyssal Titan", 7, 7, 8, Keyword.TOUGH, Keyword.OVERWHELM),
    # Spells
    spell("Hex Bolt", 2, SpellEffect.DAMAGE, effect_value=3),
    spell("Soul Fire", 4, SpellEffect.DAMAGE, effect_value=5),
    spell("Searing Brand", 3, SpellEffect.BURN, effect_value=1,
          effect_value_per_turn=2, duration=2),
    spell("Mend Flesh", 2, SpellEffect.HEAL, effect_value=4),
    spell("Dark Insight", 2, SpellEffect.DRAW, draw_value=2),
    spell("Blood Pact", 1, SpellEffect.DRAW, SpellEffect.BLOODPRICE,
          draw_value=2, bloodprice_value=3),
    spell("Frenzy", 2, SpellEffect.BUFF, effect_value=2),
    spell("Wither", 2, SpellEffect.DEBUFF, effect_value=2),
    spell("Twin Strike", 3, SpellEffect.DOUBLE_ATTACK),
]

CARD_DATABASE = {card.name: card for card in _CARDS}


def get_card(name: str) -> Optional[CardData]:
    """Look up a card definition by name."""
    return CARD_DATABASE.get(name)


def create_random_deck(rng: random.Random, size: int = 30) -> List[CardData]:
    """Create a random deck, up to 3 copies per card."""
    all_cards = list(CARD_DATABASE.values())
    deck = []
    counts = {}
    while len(deck) < size:
        card = rng.choice(all_cards)
        count = counts.get(card.name, 0)
        if count < 3:
            deck.append(card)
            counts[card.name] = count + 1
    return deck
