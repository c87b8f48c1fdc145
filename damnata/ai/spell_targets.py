"""Spell target selection.

Targets are always derived from the snapshot current at cast time, never
frozen during planning, so a unit killed earlier in the turn is never picked.
"""
import logging
from typing import List, Optional

from ..board_state import BoardState
from ..card import CardData, LifeTotal
from ..constants import Keyword, Side, SpellEffect, DAMAGING_EFFECTS
from ..interfaces import Target

logger = logging.getLogger(__name__)

# Effects aimed at the opponent's side; these obey Taunt
HOSTILE_EFFECTS = DAMAGING_EFFECTS | {SpellEffect.DEBUFF}

# Effects aimed at our own units
FRIENDLY_UNIT_EFFECTS = frozenset([SpellEffect.BUFF, SpellEffect.DOUBLE_ATTACK])


class SpellTargetSelector:
    """Finds legal spell targets and picks the most valuable one."""

    def valid_targets(self, effect: SpellEffect, state: BoardState) -> List[Target]:
        """Legal targets for `effect` cast by SELF."""
        if state is None:
            return []

        if effect in HOSTILE_EFFECTS:
            enemies = [u for u in state.opponent_units if u.is_active]
            taunts = [u for u in enemies if u.has_keyword(Keyword.TAUNT)]
            if taunts:
                return list(taunts)
            if enemies:
                return enemies
            if effect in DAMAGING_EFFECTS:
                return [LifeTotal(Side.OPPONENT, state.opponent_health, state.opponent_max_health)]
            return []

        if effect == SpellEffect.HEAL:
            targets: List[Target] = [u for u in state.self_units if u.is_active]
            if state.self_health < state.self_max_health:
                targets.append(LifeTotal(Side.SELF, state.self_health, state.self_max_health))
            return targets

        if effect in FRIENDLY_UNIT_EFFECTS:
            return [u for u in state.self_units if u.is_active]

        return []

    def has_legal_target(self, card: CardData, state: BoardState) -> bool:
        """Untargeted spells (Draw/Bloodprice only) are always castable."""
        if not card.is_spell or not card.effects:
            return False
        if not card.needs_target:
            return True
        return bool(self.valid_targets(card.primary_effect, state))

    def threat_score(self, target: Target, card: CardData) -> float:
        """Priority of a target for this card (higher first)."""
        if isinstance(target, LifeTotal):
            score = target.health * 0.5
            if target.health < 10:
                score += 100
            return score

        score = target.attack * 1.2 + target.health * 0.8
        if target.has_keyword(Keyword.TAUNT):
            score += 40
        if target.has_keyword(Keyword.TOUGH):
            score += 25
            if card.has_effect(SpellEffect.DAMAGE):
                score -= 15
        if target.has_keyword(Keyword.OVERWHELM):
            score += 35
        return score

    def heal_priority(self, target: Target, card: CardData) -> float:
        """Heals go where the most health is missing, life total on ties."""
        missing = target.max_health - target.health
        healed = min(missing, card.effect_value) if card.effect_value > 0 else missing
        bonus = 0.5 if isinstance(target, LifeTotal) else 0.0
        return healed + bonus

    def best_target(self, card: CardData, state: BoardState) -> Optional[Target]:
        """Target for `card`, or None if it needs none or none is legal."""
        if card is None or not card.needs_target:
            return None

        effect = card.primary_effect
        targets = self.valid_targets(effect, state)
        if not targets:
            logger.warning(f"No valid target for {card.name} ({effect.name})")
            return None

        if effect == SpellEffect.HEAL:
            return max(targets, key=lambda t: self.heal_priority(t, card))
        if effect in FRIENDLY_UNIT_EFFECTS:
            return max(targets, key=lambda u: (u.attack + u.health, u.remaining_attacks))
        return max(targets, key=lambda t: self.threat_score(t, card))
