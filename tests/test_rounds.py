"""
Unit tests for single-round resolution.

Variance draws are scripted so each round is exact.
"""
import pytest

from spacecommand.config import EngineSettings
from spacecommand.models import ATTACKER, DEFENDER, AttackType, FleetSnapshot
from spacecommand.power import assess
from spacecommand.simulators.rounds import (
    RoundSimulator,
    apply_losses,
    casualties,
    clamp,
    loser_loss_fraction,
)


class ScriptedRng:
    """Stands in for ``random.Random``; returns queued variance factors."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = []

    def uniform(self, a, b):
        self.calls.append((a, b))
        return self.values.pop(0)


def snap(**ships) -> FleetSnapshot:
    return FleetSnapshot(owner_id="P", composition=dict(ships))


class TestLossFraction:
    def test_clamp(self):
        assert clamp(-1.0, 0.05, 0.5) == 0.05
        assert clamp(0.3, 0.05, 0.5) == 0.3
        assert clamp(2.0, 0.05, 0.5) == 0.5

    def test_gap_sets_fraction(self):
        assert loser_loss_fraction(10.0, 8.0) == pytest.approx(0.2)
        assert loser_loss_fraction(10.0, 5.0) == pytest.approx(0.5)

    def test_fraction_is_clamped(self):
        assert loser_loss_fraction(10.0, 10.0) == pytest.approx(0.05)
        assert loser_loss_fraction(10.0, 0.01) == pytest.approx(0.5)

    def test_zero_holder_power(self):
        assert loser_loss_fraction(0.0, 0.0) == pytest.approx(0.05)

    def test_custom_bounds(self):
        s = EngineSettings(min_loss_fraction=0.1, max_loss_fraction=0.3)
        assert loser_loss_fraction(10.0, 1.0, s) == pytest.approx(0.3)
        assert loser_loss_fraction(10.0, 10.0, s) == pytest.approx(0.1)


class TestCasualties:
    def test_floor_with_carry(self):
        losses, damage = casualties(snap(scout=10), 0.25)
        assert losses == {"scout": 2}
        assert damage == {"scout": pytest.approx(0.5)}

    def test_carry_is_realized_later(self):
        f = snap(scout=10)
        f.damage = {"scout": 0.5}
        losses, damage = casualties(f, 0.25)
        assert losses == {"scout": 3}
        assert damage == {}

    def test_single_ship_dies_over_two_rounds(self):
        f = snap(cruiser=1)
        losses, damage = casualties(f, 0.5)
        assert losses == {}
        apply_losses(f, losses, damage)
        losses, damage = casualties(f, 0.5)
        assert losses == {"cruiser": 1}
        apply_losses(f, losses, damage)
        assert f.is_empty()
        assert f.damage == {}

    def test_losses_never_exceed_counts(self):
        f = snap(scout=3, fighter=1)
        f.damage = {"scout": 0.9, "fighter": 0.9}
        losses, _ = casualties(f, 1.0)
        assert losses == {"scout": 3, "fighter": 1}
        apply_losses(f, losses, {})
        assert f.composition == {"scout": 0, "fighter": 0}

    def test_losses_follow_numeric_presence(self):
        losses, _ = casualties(snap(scout=20, dreadnought=2), 0.5)
        assert losses == {"scout": 10, "dreadnought": 1}


class TestRoundSimulator:
    def test_tie_goes_to_attacker(self):
        a = snap(fighter=10)
        d = snap(fighter=10)
        rng = ScriptedRng(1.0, 1.0)
        out = RoundSimulator(rng).simulate_round(assess(a), assess(d), a, d)
        assert out.holder == ATTACKER
        assert out.loss_fraction == pytest.approx(0.05)
        assert out.defender_fraction == pytest.approx(0.05)
        assert out.attacker_fraction == pytest.approx(0.0125)

    def test_draws_attacker_first_within_bounds(self):
        a = snap(fighter=10)
        d = snap(fighter=10)
        rng = ScriptedRng(0.8, 1.2)
        out = RoundSimulator(rng).simulate_round(assess(a), assess(d), a, d)
        assert rng.calls == [(0.8, 1.2), (0.8, 1.2)]
        assert out.holder == DEFENDER
        assert out.attacker_adjusted == pytest.approx(assess(a).effective_power * 0.8)
        assert out.loss_fraction == pytest.approx(1 - 0.8 / 1.2)
        assert out.defender_fraction == pytest.approx(out.loss_fraction * 0.25)

    def test_bombard_doubles_defender_losses(self):
        a = snap(destroyer=4)
        d = snap(scout=40)
        assault = RoundSimulator(ScriptedRng(1.0, 1.0)).simulate_round(
            assess(a), assess(d), a, d, AttackType.ASSAULT)
        bombard = RoundSimulator(ScriptedRng(1.0, 1.0)).simulate_round(
            assess(a), assess(d), a, d, AttackType.BOMBARD)
        assert bombard.defender_fraction == pytest.approx(min(1.0, assault.defender_fraction * 2))
        assert bombard.defender_losses["scout"] >= assault.defender_losses["scout"]
        assert bombard.attacker_fraction == assault.attacker_fraction

    def test_does_not_touch_fleets(self):
        a = snap(fighter=10)
        d = snap(scout=10)
        RoundSimulator(ScriptedRng(1.1, 0.9)).simulate_round(assess(a), assess(d), a, d)
        assert a.composition == {"fighter": 10} and d.composition == {"scout": 10}
        assert a.damage == {} and d.damage == {}
