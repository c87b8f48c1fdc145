"""Tests for attack planning and per-attacker targeting."""
from dataclasses import replace

import pytest

from damnata.ai.attack_planner import AttackPlanner, AttackContext, AttackStep
from damnata.ai.trade import TradeEvaluator
from damnata.ai.variance import DecisionVariance
from damnata.card import LifeTotal
from damnata.constants import Keyword, Side, StrategicMode
from damnata.settings import AttackSettings

from tests.conftest import FixedRandom, life, assert_targets_taunt


@pytest.fixture
def planner(settings) -> AttackPlanner:
    return AttackPlanner(settings.attack)


class TestScenarios:
    """End-to-end planning scenarios."""

    def test_forced_taunt_trade(self, planner, make_unit, make_state):
        """A lone Taunt unit is the forced target, and the trade is accepted."""
        attacker = make_unit(3, 4)
        wall = make_unit(5, 2, Keyword.TAUNT, side=Side.OPPONENT)
        state = make_state(self_units=[attacker], opponent_units=[wall])

        plan = planner.plan([attacker], [wall], life(30), state, StrategicMode.AGGRO)

        assert len(plan) == 1
        assert plan[0].attacker.id == attacker.id
        assert plan[0].target.id == wall.id
        assert TradeEvaluator().is_valuable_trade(attacker, wall, state)

    def test_direct_strike_empty_board(self, planner, make_unit, make_state):
        """With no defenders the life total is attacked directly."""
        attacker = make_unit(6, 3)
        state = make_state(self_units=[attacker], opponent_health=5)

        plan = planner.plan([attacker], [], life(5), state, StrategicMode.DEFENSIVE)

        assert len(plan) == 1
        assert plan[0].is_life_total
        assert isinstance(plan[0].target, LifeTotal)


class TestLethal:
    """Lethal detection and lethal plans."""

    def test_lethal_without_taunt(self, planner, make_unit):
        """Enough attack against an empty board is lethal."""
        assert planner.is_lethal([make_unit(3, 1), make_unit(4, 1)], [], life(7))
        assert not planner.is_lethal([make_unit(3, 1), make_unit(3, 1)], [], life(7))

    def test_taunt_health_is_subtracted(self, planner, make_unit):
        """Taunt walls soak damage first, Tough walls twice as much."""
        attackers = [make_unit(5, 1), make_unit(5, 1)]
        wall = make_unit(0, 3, Keyword.TAUNT, side=Side.OPPONENT)
        tough_wall = make_unit(0, 3, Keyword.TAUNT, Keyword.TOUGH, side=Side.OPPONENT)
        assert planner.is_lethal(attackers, [wall], life(7))
        assert not planner.is_lethal(attackers, [tough_wall], life(7))

    def test_lethal_plan_deals_enough(self, planner, make_unit, make_state):
        """A lethal plan's life-total damage covers the life total."""
        a, b = make_unit(3, 2), make_unit(4, 2)
        state = make_state(self_units=[a, b], opponent_health=6)
        plan = planner.plan([a, b], [], life(6), state, StrategicMode.AGGRO)
        assert plan
        assert all(step.is_life_total for step in plan)
        assert sum(step.attacker.attack for step in plan) >= 6

    def test_lethal_plan_stops_at_kill(self, planner, make_unit, make_state):
        """Attackers left after the kill are not sent in."""
        units = [make_unit(5, 2), make_unit(4, 2), make_unit(3, 2)]
        state = make_state(self_units=units, opponent_health=8)
        plan = planner.plan(units, [], life(8), state, StrategicMode.AGGRO)
        assert len(plan) == 2


class TestTaunt:
    """Taunt exclusivity."""

    def test_every_target_is_taunt(self, planner, make_unit, make_state):
        """While a Taunt unit stands no other unit is targeted."""
        attackers = [make_unit(2, 5), make_unit(3, 5)]
        wall = make_unit(1, 20, Keyword.TAUNT, side=Side.OPPONENT)
        glass = make_unit(4, 1, side=Side.OPPONENT)
        state = make_state(self_units=attackers, opponent_units=[wall, glass])
        plan = planner.plan(attackers, [wall, glass], life(30), state, StrategicMode.AGGRO)
        assert len(plan) == 2
        assert_targets_taunt(plan)

    def test_taunt_falls_then_others(self, planner, make_unit, make_state):
        """Once the simulated Taunt dies, the next attacker may pick freely."""
        attackers = [make_unit(4, 5), make_unit(4, 5)]
        wall = make_unit(1, 2, Keyword.TAUNT, side=Side.OPPONENT)
        glass = make_unit(1, 1, side=Side.OPPONENT)
        state = make_state(self_units=attackers, opponent_units=[wall, glass])
        plan = planner.plan(attackers, [wall, glass], life(30), state, StrategicMode.AGGRO)
        assert plan[0].target.id == wall.id
        assert plan[1].target.id == glass.id


class TestLastUnitSafety:
    """Protection of our only unit."""

    def test_avoids_bad_counter_lethal_target(self, planner, make_unit, make_state):
        """The last unit never takes a bad trade that kills it."""
        attacker = make_unit(3, 2)
        bad = make_unit(2, 3, side=Side.OPPONENT)
        harmless = make_unit(0, 5, side=Side.OPPONENT)
        state = make_state(self_units=[attacker], opponent_units=[bad, harmless])
        assert not TradeEvaluator().is_valuable_trade(attacker, bad, state)

        target = planner.select_target(attacker, [bad, harmless], life(30), state,
                                       StrategicMode.AGGRO, is_last_unit=True)
        assert target is not None
        assert target.id == harmless.id

    def test_holds_when_only_bad_targets(self, planner, make_unit, make_state):
        """With nothing safe to hit the last unit stays back."""
        attacker = make_unit(3, 2)
        bad = make_unit(2, 3, side=Side.OPPONENT)
        other = make_unit(2, 3, side=Side.OPPONENT)
        state = make_state(self_units=[attacker], opponent_units=[bad, other])
        target = planner.select_target(attacker, [bad, other], life(30), state,
                                       StrategicMode.AGGRO, is_last_unit=True)
        assert target is None

    def test_protection_can_be_ignored(self, make_unit, make_state):
        """The ignore roll lets the last unit attack anyway."""
        settings = AttackSettings(last_monster_ignore_chance=1.0, decision_variance=0.0,
                                  target_reconsideration_chance=0.0, target_score_variance=0.0)
        planner = AttackPlanner(settings, DecisionVariance(FixedRandom(0.999)))
        attacker = make_unit(3, 2)
        bad = make_unit(2, 3, side=Side.OPPONENT)
        state = make_state(self_units=[attacker], opponent_units=[bad])
        target = planner.select_target(attacker, [bad], life(30), state,
                                       StrategicMode.AGGRO, is_last_unit=True)
        assert target is not None and target.id == bad.id

    def test_not_last_unit_unprotected(self, planner, make_unit, make_state):
        """With other units on board any target is fair."""
        attacker = make_unit(3, 2)
        bad = make_unit(2, 3, side=Side.OPPONENT)
        state = make_state(self_units=[attacker, make_unit(1, 1)], opponent_units=[bad])
        target = planner.select_target(attacker, [bad], life(30), state,
                                       StrategicMode.AGGRO, is_last_unit=False)
        assert target.id == bad.id


class TestTargeting:
    """Per-attacker target selection."""

    def test_overwhelm_uses_splash_scorer(self, planner, make_unit, make_state):
        """Overwhelm picks the target whose splash kills the most."""
        crusher = make_unit(6, 9, Keyword.OVERWHELM)
        big = make_unit(1, 6, side=Side.OPPONENT)
        small = [make_unit(1, 3, side=Side.OPPONENT), make_unit(1, 3, side=Side.OPPONENT)]
        defenders = [small[0], big, small[1]]
        state = make_state(self_units=[crusher, make_unit(1, 1)], opponent_units=defenders)
        target = planner.select_target(crusher, defenders, life(30), state, StrategicMode.AGGRO)
        assert target.id == big.id

    def test_suboptimal_pick(self, make_unit, make_state):
        """The decision-variance roll can pick the second best target."""
        settings = AttackSettings(decision_variance=1.0, target_score_variance=0.0)
        planner = AttackPlanner(settings, DecisionVariance(FixedRandom(0.0)))
        attacker = make_unit(3, 9)
        kill = make_unit(2, 3, side=Side.OPPONENT)
        wall = make_unit(1, 9, side=Side.OPPONENT)
        state = make_state(self_units=[attacker, make_unit(1, 1)], opponent_units=[kill, wall])
        ranked = planner.rank_targets(attacker, [kill, wall], [kill, wall], state, StrategicMode.AGGRO)
        target = planner.select_target(attacker, [kill, wall], life(30), state, StrategicMode.AGGRO)
        assert target.id == ranked[1][1].id

    def test_target_reconsideration(self, settings, make_unit, make_state):
        """The reconsideration roll moves to the second ranked target."""
        attack_settings = replace(settings.attack, target_reconsideration_chance=1.0)
        planner = AttackPlanner(attack_settings, DecisionVariance(FixedRandom(0.999)))
        attacker = make_unit(3, 9)
        kill = make_unit(2, 3, side=Side.OPPONENT)
        wall = make_unit(1, 9, side=Side.OPPONENT)
        state = make_state(self_units=[attacker, make_unit(1, 1)], opponent_units=[kill, wall])
        ranked = planner.rank_targets(attacker, [kill, wall], [kill, wall], state, StrategicMode.AGGRO)
        target = planner.select_target(attacker, [kill, wall], life(30), state, StrategicMode.AGGRO)
        assert target.id == ranked[1][1].id

    def test_no_reconsideration_by_default(self, planner, make_unit, make_state):
        """Without the roll the best ranked target is kept."""
        attacker = make_unit(3, 9)
        kill = make_unit(2, 3, side=Side.OPPONENT)
        wall = make_unit(1, 9, side=Side.OPPONENT)
        state = make_state(self_units=[attacker, make_unit(1, 1)], opponent_units=[kill, wall])
        ranked = planner.rank_targets(attacker, [kill, wall], [kill, wall], state, StrategicMode.AGGRO)
        target = planner.select_target(attacker, [kill, wall], life(30), state, StrategicMode.AGGRO)
        assert target.id == ranked[0][1].id

    def test_rank_is_stable(self, planner, make_unit, make_state):
        """Equal scores keep candidate order."""
        attacker = make_unit(3, 9)
        twins = [make_unit(1, 9, side=Side.OPPONENT), make_unit(1, 9, side=Side.OPPONENT)]
        state = make_state(self_units=[attacker], opponent_units=twins)
        ranked = planner.rank_targets(attacker, twins, twins, state, StrategicMode.AGGRO)
        assert [t.id for _, t in ranked] == [twins[0].id, twins[1].id]

    def test_units_not_targetable_life_total(self, planner, make_unit, make_state):
        """Live defenders keep the life total out of reach."""
        attacker = make_unit(9, 9)
        blocker = make_unit(0, 1, side=Side.OPPONENT)
        state = make_state(self_units=[attacker], opponent_units=[blocker])
        target = planner.select_target(attacker, [blocker], life(3), state)
        assert not isinstance(target, LifeTotal)


class TestFailureModes:
    """Empty and invalid input."""

    def test_no_attackers(self, planner, make_unit, make_state):
        """No attackers means no plan."""
        assert planner.plan([], [make_unit(1, 1, side=Side.OPPONENT)], life(30), make_state()) == []
        assert planner.plan(None, None, None, None) == []

    def test_none_entries_filtered(self, planner, make_unit, make_state):
        """None attackers and defenders are skipped."""
        attacker = make_unit(6, 6)
        state = make_state(self_units=[attacker], opponent_health=5)
        plan = planner.plan([None, attacker], [None], life(5), state, StrategicMode.AGGRO)
        assert len(plan) == 1 and plan[0].is_life_total

    def test_zero_attack_units_dropped(self, planner, make_unit):
        """Units without attack never attack."""
        wall = make_unit(0, 5)
        spent = make_unit(3, 3, remaining_attacks=0)
        assert planner.valid_attackers([wall, spent, None]) == []

    def test_no_state(self, planner, make_unit):
        """A missing snapshot invalidates the context."""
        context = AttackContext.build([make_unit(2, 2)], [], life(30), None)
        assert not context.is_valid
        assert context.error_message == "no board state"

    def test_context_remove_dead(self, make_unit, make_state):
        """Dead units leave the context."""
        a = make_unit(2, 2)
        d = make_unit(1, 1, side=Side.OPPONENT)
        context = AttackContext.build([a], [d], life(30), make_state())
        d.is_dead = True
        context.remove_dead()
        assert context.defenders == []
        assert context.attackers == [a]

    def test_context_taunt_defenders(self, make_unit, make_state):
        """The context lists its Taunt defenders."""
        wall = make_unit(1, 3, Keyword.TAUNT, side=Side.OPPONENT)
        glass = make_unit(2, 1, side=Side.OPPONENT)
        context = AttackContext.build([make_unit(2, 2)], [wall, glass], life(30), make_state())
        assert context.taunt_defenders == [wall]

    def test_splash_kills_leave_the_plan(self, planner, make_unit, make_state):
        """Units killed by splash are not attacked again, and live units are untouched."""
        crusher = make_unit(6, 9, Keyword.OVERWHELM)
        helper = make_unit(2, 2)
        big = make_unit(1, 6, side=Side.OPPONENT)
        small = [make_unit(1, 3, side=Side.OPPONENT), make_unit(1, 3, side=Side.OPPONENT)]
        defenders = [small[0], big, small[1]]
        state = make_state(self_units=[crusher, helper], opponent_units=defenders,
                           is_opponent_first_next_turn=True)
        plan = planner.plan([crusher, helper], defenders, life(30), state, StrategicMode.AGGRO)
        assert [s.attacker.id for s in plan] == [crusher.id, helper.id]
        assert plan[0].target.id == big.id
        assert plan[1].is_life_total
        assert big.health == 6 and small[0].health == 3

    def test_step_repr(self, make_unit):
        """Steps describe themselves for the log."""
        step = AttackStep(make_unit(1, 1, name="Ghoul"), life(30))
        assert "Ghoul" in repr(step)
        assert step.is_life_total
