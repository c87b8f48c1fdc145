"""Tests for the headless arena rules and player seats."""
import pytest

from damnata.arena import Arena
from damnata.card import LifeTotal
from damnata.card_database import get_card
from damnata.constants import CombatPhase, HAND_LIMIT, STARTING_HAND, Side

from tests.conftest import assert_alive, assert_dead, assert_hp


def give(arena: Arena, player: int, name: str, mana: int = 10):
    """Put a card in a player's hand and enough mana to play it."""
    card = get_card(name)
    arena.players[player].hand.append(card)
    arena.players[player].mana = mana
    return card


class TestTurnStructure:
    """Rounds, turns, mana and drawing."""

    def test_opening_hands(self):
        """Each player starts with a full opening hand."""
        deck = [get_card("Ghoul")] * 10
        arena = Arena(deck, deck, seed=3)
        assert len(arena.players[1].hand) == STARTING_HAND
        assert len(arena.players[2].deck) == 10 - STARTING_HAND

    def test_first_player_alternates(self):
        """The first player swaps every round."""
        arena = Arena([], [], seed=0)
        assert arena.start_round() == (1, 2)
        assert arena.start_round() == (2, 1)
        assert arena.start_round() == (1, 2)

    def test_mana_refill(self, arena):
        """Mana refills to the round number, capped at 10."""
        arena.round_number = 3
        arena.start_turn(1)
        assert arena.players[1].mana == 3
        arena.round_number = 12
        arena.start_turn(1)
        assert arena.players[1].mana == 10

    def test_units_ready_on_turn_start(self, arena, place_unit):
        """Units can attack again at their owner's turn start."""
        hound = place_unit(1, "Rotting Hound", ready=False)
        arena.start_turn(1)
        assert hound.remaining_attacks == 1
        arena.end_turn()
        assert hound.remaining_attacks == 0

    def test_full_hand_burns(self, arena):
        """Cards drawn into a full hand are burned."""
        player = arena.players[1]
        player.hand = [get_card("Ghoul")] * HAND_LIMIT
        player.deck = [get_card("Hex Bolt")]
        assert arena.draw(1) == 0
        assert player.cards_burned == 1
        assert len(player.hand) == HAND_LIMIT

    def test_check_winner(self, arena):
        """Winner, draw and ongoing game."""
        assert arena.check_winner() is None
        arena.players[2].life = 0
        assert arena.check_winner() == 1
        arena.players[1].life = -2
        assert arena.check_winner() == 0


class TestSummoning:
    """Monster cards."""

    def test_summon_into_slot(self, arena):
        """A summoned unit takes the requested slot and costs its mana."""
        ghoul = give(arena, 1, "Ghoul", mana=1)
        outcome = arena.play_card(1, ghoul, position=2)
        assert outcome.success
        assert outcome.summoned.slot == 2
        assert arena.players[1].mana == 0
        assert arena.players[1].hand == []

    def test_summoning_sickness(self, arena):
        """A unit cannot attack on the turn it was summoned."""
        hound = give(arena, 1, "Rotting Hound")
        unit = arena.play_card(1, hound).summoned
        arena.begin_combat()
        outcome = arena.attack(1, unit.id, LifeTotal(Side.OPPONENT, 30, 30))
        assert not outcome.success
        assert "cannot attack" in outcome.error

    def test_not_during_combat(self, arena):
        """Monsters are summoned only in the prep stage."""
        ghoul = give(arena, 1, "Ghoul")
        arena.begin_combat()
        assert not arena.play_card(1, ghoul).success

    def test_slot_taken(self, arena, place_unit):
        """An occupied slot is refused."""
        place_unit(1, "Ghoul", slot=0)
        ghoul = give(arena, 1, "Ghoul")
        assert not arena.play_card(1, ghoul, position=0).success

    def test_not_enough_mana(self, arena):
        """Cards above the mana pool are refused."""
        titan = give(arena, 1, "Abyssal Titan", mana=6)
        outcome = arena.play_card(1, titan)
        assert not outcome.success
        assert "costs 7" in outcome.error

    def test_card_not_in_hand(self, arena):
        """Only cards in hand can be played."""
        arena.players[1].mana = 5
        assert not arena.play_card(1, get_card("Ghoul")).success


class TestCombat:
    """Attack resolution."""

    def test_taunt_must_be_attacked(self, arena, place_unit):
        """Non-Taunt units are shielded by a Taunt unit."""
        hound = place_unit(1, "Rotting Hound")
        warden = place_unit(2, "Grave Warden")
        ghoul = place_unit(2, "Ghoul")
        outcome = arena.attack(1, hound.id, ghoul)
        assert not outcome.success
        assert "Taunt" in outcome.error

        outcome = arena.attack(1, hound.id, warden)
        assert outcome.success
        assert_hp(warden, 1)
        assert_hp(hound, 1)

    def test_life_total_protected(self, arena, place_unit):
        """Life totals are attackable only past an empty board."""
        hound = place_unit(1, "Rotting Hound")
        place_unit(2, "Ghoul")
        assert not arena.attack(1, hound.id, LifeTotal(Side.OPPONENT, 30, 30)).success

    def test_life_total_hit(self, arena, place_unit):
        """With the board empty the attack hits the life total."""
        hound = place_unit(1, "Rotting Hound")
        outcome = arena.attack(1, hound.id, LifeTotal(Side.OPPONENT, 30, 30))
        assert outcome.success
        assert arena.players[2].life == 27
        assert hound.remaining_attacks == 0

    def test_own_life_total_rejected(self, arena, place_unit):
        """A unit never attacks its own life total."""
        hound = place_unit(1, "Rotting Hound")
        outcome = arena.attack(1, hound.id, LifeTotal(Side.SELF, 30, 30))
        assert not outcome.success
        assert arena.players[1].life == 30
        assert arena.players[2].life == 30
        assert hound.remaining_attacks == 1

    def test_tough_halves_damage(self, arena, place_unit):
        """Tough units take half damage and the counter still lands."""
        stalker = place_unit(1, "Crypt Stalker")
        bearer = place_unit(2, "Plague Bearer")
        outcome = arena.attack(1, stalker.id, bearer)
        assert outcome.damage_dealt == 2
        assert_hp(bearer, 2)
        assert outcome.attacker_died
        assert_dead(stalker)
        assert stalker not in arena.players[1].units

    def test_ranged_takes_no_counter(self, arena, place_unit):
        """Ranged attackers are never hit back."""
        archer = place_unit(1, "Bone Archer")
        ghoul = place_unit(2, "Ghoul")
        outcome = arena.attack(1, archer.id, ghoul)
        assert outcome.target_died
        assert outcome.counter_damage_dealt == 0
        assert_alive(archer)

    def test_overwhelm_splash(self, arena, place_unit):
        """Overwhelm splashes half its attack onto the other defenders."""
        colossus = place_unit(1, "Flesh Colossus")
        hound = place_unit(2, "Rotting Hound")
        ghouls = [place_unit(2, "Ghoul"), place_unit(2, "Ghoul")]
        outcome = arena.attack(1, colossus.id, hound)
        assert outcome.target_died
        assert outcome.splash_kills == 2
        assert all(not g.is_alive for g in ghouls)
        assert_hp(colossus, 2)
        assert arena.players[2].active_units == []

    def test_not_your_turn(self, arena, place_unit):
        """Only the active player can act."""
        ghoul = place_unit(2, "Ghoul")
        outcome = arena.attack(2, ghoul.id, LifeTotal(Side.OPPONENT, 30, 30))
        assert not outcome.success
        assert outcome.error == "not P2's turn"

    def test_unknown_attacker(self, arena, place_unit):
        """Attackers must belong to the acting player."""
        ghoul = place_unit(2, "Ghoul")
        assert not arena.attack(1, ghoul.id, LifeTotal(Side.OPPONENT, 30, 30)).success


class TestSpells:
    """Spell effects."""

    def test_damage_kills_unit(self, arena, place_unit):
        """Damage spells kill and remove units."""
        hound = place_unit(2, "Rotting Hound")
        bolt = give(arena, 1, "Hex Bolt", mana=2)
        assert arena.play_card(1, bolt, target=hound).success
        assert_dead(hound)
        assert arena.players[2].units == []
        assert arena.players[1].mana == 0

    def test_damage_life_total(self, arena, place_unit):
        """Damage spells reach an unprotected life total only."""
        bolt = give(arena, 1, "Hex Bolt")
        assert arena.play_card(1, bolt, target=LifeTotal(Side.OPPONENT, 30, 30)).success
        assert arena.players[2].life == 27

        place_unit(2, "Ghoul")
        bolt = give(arena, 1, "Hex Bolt")
        outcome = arena.play_card(1, bolt, target=LifeTotal(Side.OPPONENT, 27, 30))
        assert not outcome.success
        assert bolt in arena.players[1].hand

    def test_hostile_spell_obeys_taunt(self, arena, place_unit):
        """Hostile spells must target a Taunt unit first."""
        place_unit(2, "Grave Warden")
        ghoul = place_unit(2, "Ghoul")
        bolt = give(arena, 1, "Hex Bolt")
        assert not arena.play_card(1, bolt, target=ghoul).success

    def test_heal_capped(self, arena):
        """Healing never exceeds max life."""
        arena.players[1].life = 28
        mend = give(arena, 1, "Mend Flesh")
        assert arena.play_card(1, mend, target=LifeTotal(Side.SELF, 28, 30)).success
        assert arena.players[1].life == 30

    def test_heal_wrong_side(self, arena):
        """Heals cannot target the opponent's life total."""
        mend = give(arena, 1, "Mend Flesh")
        outcome = arena.play_card(1, mend, target=LifeTotal(Side.OPPONENT, 30, 30))
        assert not outcome.success

    def test_double_attack(self, arena, place_unit):
        """Double attack grants one more attack this turn."""
        hound = place_unit(1, "Rotting Hound")
        twin = give(arena, 1, "Twin Strike")
        assert arena.play_card(1, twin, target=hound).success
        assert hound.remaining_attacks == 2

    def test_debuff_floor(self, arena, place_unit):
        """Debuffs never push attack below zero."""
        ghoul = place_unit(2, "Ghoul")
        wither = give(arena, 1, "Wither")
        assert arena.play_card(1, wither, target=ghoul).success
        assert ghoul.attack == 0

    def test_bloodprice_and_draw(self, arena):
        """Blood Pact costs life and draws cards."""
        arena.players[1].deck = [get_card("Ghoul"), get_card("Ghoul")]
        pact = give(arena, 1, "Blood Pact")
        assert arena.play_card(1, pact).success
        assert arena.players[1].life == 27
        assert len(arena.players[1].hand) == 2

    def test_burn_ticks(self, arena):
        """Burn hits once now and again at each of the victim's turn starts."""
        brand = give(arena, 1, "Searing Brand")
        assert arena.play_card(1, brand, target=LifeTotal(Side.OPPONENT, 30, 30)).success
        assert arena.players[2].life == 29
        arena.end_turn()
        arena.start_turn(2)
        assert arena.players[2].life == 27
        arena.end_turn()
        arena.start_turn(2)
        arena.end_turn()
        arena.start_turn(2)
        assert arena.players[2].life == 25

    def test_spell_needs_target(self, arena):
        """Targeted spells without a target are refused."""
        bolt = give(arena, 1, "Hex Bolt")
        assert arena.play_card(1, bolt).error == "Hex Bolt needs a target"


class TestSeat:
    """A player's relative view of the arena."""

    def test_relative_sides(self, arena, place_unit):
        """SELF is always the seat's own player."""
        hound = place_unit(1, "Rotting Hound")
        ghoul = place_unit(2, "Ghoul")
        seat = arena.seat(2)
        own = seat.get_active_units(Side.SELF)
        enemy = seat.get_active_units(Side.OPPONENT)
        assert [u.id for u in own] == [ghoul.id]
        assert own[0].side == Side.SELF
        assert [u.id for u in enemy] == [hound.id]
        assert enemy[0].side == Side.OPPONENT
        assert hound.side == Side.SELF

    def test_life_totals(self, arena):
        """Life totals are reported per relative side."""
        arena.players[1].life = 12
        life = arena.seat(2).get_life_total(Side.OPPONENT)
        assert life.side == Side.OPPONENT
        assert life.health == 12

    def test_turn_order(self, arena):
        """In round 1 Player 2 acts first in round 2."""
        assert arena.seat(1).get_game_info().is_opponent_first_next_turn
        assert not arena.seat(2).get_game_info().is_opponent_first_next_turn

    def test_phase_per_seat(self, arena):
        """The inactive player sees the opponent's stage."""
        assert arena.seat(1).get_game_info().phase == CombatPhase.SELF_PREP
        assert arena.seat(2).get_game_info().phase == CombatPhase.OPPONENT_PREP
        arena.begin_combat()
        assert arena.seat(2).get_game_info().phase == CombatPhase.OPPONENT_COMBAT

    def test_missing_arguments(self, arena):
        """None attackers, targets and cards are refused without raising."""
        seat = arena.seat(1)
        assert not seat.execute_attack(None, None).success
        assert not seat.execute_play_card(None).success

    def test_free_slots(self, arena, place_unit):
        """Free slots follow the relative side."""
        place_unit(2, "Ghoul", slot=1)
        assert arena.seat(1).get_free_slots(Side.OPPONENT) == [0, 2, 3, 4]
        assert arena.seat(1).get_free_slots(Side.SELF) == [0, 1, 2, 3, 4]
