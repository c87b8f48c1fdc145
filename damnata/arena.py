"""Headless arena - a minimal two-player game host for the AI.

The arena owns the authoritative game state and the combat rules. AI players
never see it directly: each player gets an ArenaSeat, which implements
UnitProvider and ActionExecutor from that player's point of view (SELF is
always the seat's own player).

Rules:
- Rounds alternate who goes first; each player has a prep and a combat stage
- Mana refills to min(round, MAX_MANA) at the start of each turn
- Units summoned this turn cannot attack until their owner's next turn
- Taunt units must be attacked (and targeted by hostile spells) first
- Life totals can only be attacked while the defending board is empty
- Tough halves all damage taken (rounded down)
- Ranged attackers take no counter damage
- Overwhelm splashes floor(attack / 2) to the other defending units
"""
import logging
import random
from dataclasses import dataclass, field, replace
from typing import List, Optional, Dict, Tuple

from .card import CardData, Unit, LifeTotal, create_unit
from .constants import (
    Keyword, Side, SpellEffect, CombatPhase,
    BOARD_SLOTS, HAND_LIMIT, MAX_MANA, STARTING_HEALTH, STARTING_HAND,
)
from .interfaces import (
    UnitProvider, ActionExecutor, GameInfo, AttackOutcome, PlayOutcome, Target,
)

logger = logging.getLogger(__name__)

HOSTILE_SPELL_EFFECTS = frozenset([SpellEffect.DAMAGE, SpellEffect.BURN, SpellEffect.DEBUFF])


@dataclass
class PlayerState:
    """Per-player state container."""
    player: int  # 1 or 2
    deck: List[CardData] = field(default_factory=list)
    hand: List[CardData] = field(default_factory=list)
    units: List[Unit] = field(default_factory=list)
    life: int = STARTING_HEALTH
    max_life: int = STARTING_HEALTH
    mana: int = 0
    cards_burned: int = 0  # Drawn into a full hand

    # Burn on the life total
    burn_damage: int = 0
    burn_turns: int = 0

    @property
    def active_units(self) -> List[Unit]:
        return [u for u in self.units if u.is_active]

    @property
    def is_alive(self) -> bool:
        return self.life > 0


class Arena:
    """Authoritative game state and rules for two players."""

    def __init__(self, deck_p1: List[CardData], deck_p2: List[CardData],
                 seed: Optional[int] = None, rng: Optional[random.Random] = None,
                 slot_count: int = BOARD_SLOTS, starting_health: int = STARTING_HEALTH,
                 starting_hand: int = STARTING_HAND, first_player: int = 1):
        self.rng = rng if rng is not None else random.Random(seed)
        self.slot_count = slot_count
        self.first_player = first_player
        self.players: Dict[int, PlayerState] = {
            1: PlayerState(1, deck=list(deck_p1), life=starting_health, max_life=starting_health),
            2: PlayerState(2, deck=list(deck_p2), life=starting_health, max_life=starting_health),
        }
        for state in self.players.values():
            self.rng.shuffle(state.deck)
            for _ in range(starting_hand):
                self.draw(state.player)

        self.round_number = 0
        self.active_player: Optional[int] = None
        self.stage = CombatPhase.CLEANUP
        self._next_unit_id = 1

    # =========================================================================
    # TURN STRUCTURE
    # =========================================================================

    @staticmethod
    def other(player: int) -> int:
        return 2 if player == 1 else 1

    def first_player_of(self, round_number: int) -> int:
        """First player alternates every round."""
        if round_number % 2 == 1:
            return self.first_player
        return self.other(self.first_player)

    def start_round(self) -> Tuple[int, int]:
        """Advance to the next round. Returns players in acting order."""
        self.round_number += 1
        first = self.first_player_of(self.round_number)
        return first, self.other(first)

    def start_turn(self, player: int):
        """Refill mana, draw, ready units and tick burns for `player`."""
        state = self.players[player]
        self.active_player = player
        self.stage = CombatPhase.SELF_PREP
        state.mana = min(self.round_number, MAX_MANA)
        self.draw(player)

        for unit in state.active_units:
            unit.remaining_attacks = 1
            if unit.burn_turns > 0:
                unit.take_damage(unit.burn_damage)
                unit.burn_turns -= 1
        if state.burn_turns > 0:
            state.life -= state.burn_damage
            state.burn_turns -= 1
        self._remove_dead()

    def begin_combat(self):
        self.stage = CombatPhase.SELF_COMBAT

    def end_turn(self):
        if self.active_player is not None:
            for unit in self.players[self.active_player].units:
                unit.remaining_attacks = 0
        self.stage = CombatPhase.CLEANUP
        self.active_player = None

    def check_winner(self) -> Optional[int]:
        """Winner (1 or 2), 0 for a draw, or None while the game goes on."""
        alive_p1 = self.players[1].is_alive
        alive_p2 = self.players[2].is_alive
        if not alive_p1 and not alive_p2:
            return 0
        if not alive_p1:
            return 2
        if not alive_p2:
            return 1
        return None

    def draw(self, player: int, count: int = 1) -> int:
        """Draw cards. Cards drawn into a full hand are burned."""
        state = self.players[player]
        drawn = 0
        for _ in range(count):
            if not state.deck:
                break
            card = state.deck.pop()
            if len(state.hand) >= HAND_LIMIT:
                state.cards_burned += 1
                logger.debug(f"P{player} burns {card.name} (hand full)")
                continue
            state.hand.append(card)
            drawn += 1
        return drawn

    # =========================================================================
    # QUERIES
    # =========================================================================

    def free_slots(self, player: int) -> List[int]:
        taken = {u.slot for u in self.players[player].active_units}
        return [slot for slot in range(self.slot_count) if slot not in taken]

    def find_unit(self, unit_id: int) -> Tuple[Optional[int], Optional[Unit]]:
        """(owner, unit) for an active unit id, or (None, None)."""
        for player, state in self.players.items():
            for unit in state.active_units:
                if unit.id == unit_id:
                    return player, unit
        return None, None

    def stage_for(self, player: int) -> CombatPhase:
        """Current stage as seen by `player`."""
        if self.stage == CombatPhase.CLEANUP or self.active_player is None:
            return CombatPhase.CLEANUP
        if player == self.active_player:
            return self.stage
        return CombatPhase.OPPONENT_PREP if self.stage.is_prep else CombatPhase.OPPONENT_COMBAT

    def _remove_dead(self):
        for state in self.players.values():
            for unit in state.units:
                if unit.health <= 0:
                    unit.is_dead = True
            state.units = [u for u in state.units if not u.is_dead]

    def _check_turn(self, player: int) -> Optional[str]:
        if player != self.active_player:
            return f"not P{player}'s turn"
        if not self.players[player].is_alive or not self.players[self.other(player)].is_alive:
            return "game is over"
        return None

    # =========================================================================
    # ATTACKS
    # =========================================================================

    def attack(self, player: int, attacker_id: int, target: Target) -> AttackOutcome:
        error = self._check_turn(player)
        if error:
            return AttackOutcome(False, error=error)

        owner, attacker = self.find_unit(attacker_id)
        if attacker is None or owner != player:
            return AttackOutcome(False, error=f"unknown attacker {attacker_id}")
        if not attacker.can_attack:
            return AttackOutcome(False, error=f"{attacker} cannot attack")

        enemy = self.players[self.other(player)]
        defenders = enemy.active_units

        if isinstance(target, LifeTotal):
            if target.side != Side.OPPONENT:
                return AttackOutcome(False, error="cannot attack own life total")
            if defenders:
                return AttackOutcome(False, error="life total is protected by units")
            attacker.remaining_attacks -= 1
            enemy.life -= attacker.attack
            logger.debug(f"P{player} {attacker} hits P{enemy.player} for {attacker.attack}")
            return AttackOutcome(True, target_died=enemy.life <= 0, damage_dealt=attacker.attack)

        target_owner, defender = self.find_unit(target.id)
        if defender is None or target_owner != enemy.player:
            return AttackOutcome(False, error=f"invalid target {target!r}")
        taunts = [d for d in defenders if d.has_keyword(Keyword.TAUNT)]
        if taunts and not defender.has_keyword(Keyword.TAUNT):
            return AttackOutcome(False, error="a Taunt unit must be attacked first")

        attacker.remaining_attacks -= 1
        counter = 0
        if not attacker.has_keyword(Keyword.RANGED) and defender.attack > 0:
            counter = attacker.take_damage(defender.attack)
        dealt = defender.take_damage(attacker.attack)

        splash_kills = 0
        if attacker.has_keyword(Keyword.OVERWHELM):
            splash = attacker.attack // 2
            for other in defenders:
                if other is defender or not other.is_active:
                    continue
                other.take_damage(splash)
                if not other.is_alive:
                    splash_kills += 1

        outcome = AttackOutcome(
            True,
            target_died=not defender.is_alive,
            damage_dealt=dealt,
            counter_damage_dealt=counter,
            attacker_died=not attacker.is_alive,
            splash_kills=splash_kills,
        )
        logger.debug(f"P{player} {attacker} attacks {defender}: {outcome}")
        self._remove_dead()
        return outcome

    # =========================================================================
    # CARDS
    # =========================================================================

    def play_card(self, player: int, card: CardData, target: Optional[Target] = None,
                  position: Optional[int] = None) -> PlayOutcome:
        error = self._check_turn(player)
        if error:
            return PlayOutcome(False, error=error)

        state = self.players[player]
        if card not in state.hand:
            return PlayOutcome(False, error=f"{card.name} is not in hand")
        if card.cost > state.mana:
            return PlayOutcome(False, error=f"{card.name} costs {card.cost}, have {state.mana}")

        if card.is_monster:
            return self._summon(player, card, position)

        resolved, error = self._resolve_spell_target(player, card, target)
        if error:
            return PlayOutcome(False, error=error)
        state.hand.remove(card)
        state.mana -= card.cost
        for effect in card.ordered_effects:
            self._apply_effect(player, card, effect, resolved)
        self._remove_dead()
        logger.debug(f"P{player} casts {card.name} on {resolved}")
        return PlayOutcome(True)

    def _summon(self, player: int, card: CardData, position: Optional[int]) -> PlayOutcome:
        if not self.stage.is_prep:
            return PlayOutcome(False, error="monsters can only be summoned during prep")
        free = self.free_slots(player)
        if not free:
            return PlayOutcome(False, error="board is full")
        if position is None:
            position = free[0]
        elif position not in free:
            return PlayOutcome(False, error=f"slot {position} is not free")

        state = self.players[player]
        state.hand.remove(card)
        state.mana -= card.cost
        unit = create_unit(card, Side.SELF, self._next_unit_id, slot=position)
        self._next_unit_id += 1
        state.units.append(unit)
        logger.debug(f"P{player} summons {unit} in slot {position}")
        return PlayOutcome(True, summoned=unit)

    def _resolve_spell_target(self, player: int, card: CardData,
                              target: Optional[Target]) -> Tuple[object, Optional[str]]:
        """Map a (snapshot) target onto live state. Returns (unit | PlayerState | None, error)."""
        if not card.needs_target:
            return None, None
        if target is None:
            return None, f"{card.name} needs a target"

        effect = card.primary_effect
        hostile = effect in HOSTILE_SPELL_EFFECTS
        enemy = self.other(player)

        if isinstance(target, LifeTotal):
            owner = player if target.side == Side.SELF else enemy
            if effect not in (SpellEffect.DAMAGE, SpellEffect.BURN, SpellEffect.HEAL):
                return None, f"{card.name} cannot target a life total"
            if (hostile and owner != enemy) or (not hostile and owner != player):
                return None, f"{card.name} targets the wrong life total"
            if hostile and self.players[enemy].active_units:
                return None, "life total is protected by units"
            return self.players[owner], None

        owner, unit = self.find_unit(target.id)
        if unit is None:
            return None, f"invalid target {target!r}"
        if hostile:
            if owner != enemy:
                return None, f"{card.name} must target an enemy unit"
            taunts = [u for u in self.players[enemy].active_units if u.has_keyword(Keyword.TAUNT)]
            if taunts and not unit.has_keyword(Keyword.TAUNT):
                return None, "a Taunt unit must be targeted first"
        elif owner != player:
            return None, f"{card.name} must target a friendly unit"
        return unit, None

    def _apply_effect(self, player: int, card: CardData, effect: SpellEffect, target):
        state = self.players[player]
        if effect == SpellEffect.DRAW:
            self.draw(player, card.draw_value)
        elif effect == SpellEffect.BLOODPRICE:
            state.life -= card.bloodprice_value
        elif target is None:
            logger.warning(f"{card.name}: {effect.name} has no target")
        elif effect == SpellEffect.DAMAGE:
            if isinstance(target, PlayerState):
                target.life -= card.effect_value
            else:
                target.take_damage(card.effect_value)
        elif effect == SpellEffect.HEAL:
            if isinstance(target, PlayerState):
                target.life = min(target.max_life, target.life + card.effect_value)
            else:
                target.heal(card.effect_value)
        elif effect == SpellEffect.BURN:
            if isinstance(target, PlayerState):
                target.life -= card.effect_value
            else:
                target.take_damage(card.effect_value)
            target.burn_damage = card.effect_value_per_turn
            target.burn_turns = card.duration
        elif isinstance(target, PlayerState):
            logger.warning(f"{card.name}: {effect.name} cannot apply to a life total")
        elif effect == SpellEffect.BUFF:
            target.attack += card.effect_value
        elif effect == SpellEffect.DEBUFF:
            target.attack = max(0, target.attack - card.effect_value)
        elif effect == SpellEffect.DOUBLE_ATTACK:
            target.remaining_attacks += 1

    def seat(self, player: int) -> 'ArenaSeat':
        return ArenaSeat(self, player)


class ArenaSeat(UnitProvider, ActionExecutor):
    """One player's view of the arena. SELF is always `player`."""

    def __init__(self, arena: Arena, player: int):
        self.arena = arena
        self.player = player

    @property
    def opponent(self) -> int:
        return self.arena.other(self.player)

    def _player_for(self, side: Side) -> int:
        return self.player if side == Side.SELF else self.opponent

    def get_active_units(self, side: Side) -> List[Unit]:
        units = self.arena.players[self._player_for(side)].active_units
        return [replace(u, side=side) for u in units]

    def get_life_total(self, side: Side) -> LifeTotal:
        state = self.arena.players[self._player_for(side)]
        return LifeTotal(side, state.life, state.max_life)

    def get_game_info(self) -> GameInfo:
        own = self.arena.players[self.player]
        enemy = self.arena.players[self.opponent]
        next_first = self.arena.first_player_of(self.arena.round_number + 1)
        return GameInfo(
            turn_count=max(1, self.arena.round_number),
            self_mana=own.mana,
            self_hand_size=len(own.hand),
            self_deck_size=len(own.deck),
            opponent_hand_size=len(enemy.hand),
            opponent_deck_size=len(enemy.deck),
            is_opponent_first_next_turn=next_first != self.player,
            phase=self.arena.stage_for(self.player),
        )

    def get_hand(self) -> List[CardData]:
        return list(self.arena.players[self.player].hand)

    def get_free_slots(self, side: Side) -> List[int]:
        return self.arena.free_slots(self._player_for(side))

    def execute_attack(self, attacker: Unit, target: Target) -> AttackOutcome:
        if attacker is None or target is None:
            return AttackOutcome(False, error="missing attacker or target")
        return self.arena.attack(self.player, attacker.id, target)

    def execute_play_card(self, card: CardData, target: Optional[Target] = None,
                          position: Optional[int] = None) -> PlayOutcome:
        if card is None:
            return PlayOutcome(False, error="missing card")
        return self.arena.play_card(self.player, card, target, position)
