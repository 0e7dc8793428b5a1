"""Single-round damage exchange.

Each round draws one variance factor per side (attacker first), compares the
adjusted powers and converts the gap into a loss fraction for each side.
Fractions turn into whole casualties by floor rounding; the remainder is kept
as carry damage on the fleet and realized in later rounds.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import math
import random
from typing import Dict, Optional, Tuple

from ..config import DEFAULT_SETTINGS, EngineSettings
from ..models import ATTACKER, DEFENDER, AttackType, FleetSnapshot, PowerAssessment

_EPS = 1e-9


@dataclass
class RoundOutcome:
    attacker_adjusted: float
    defender_adjusted: float
    holder: str
    loss_fraction: float
    attacker_fraction: float
    defender_fraction: float
    attacker_losses: Dict[str, int] = field(default_factory=dict)
    defender_losses: Dict[str, int] = field(default_factory=dict)
    attacker_damage: Dict[str, float] = field(default_factory=dict)
    defender_damage: Dict[str, float] = field(default_factory=dict)


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def loser_loss_fraction(
    holder_power: float, loser_power: float, settings: EngineSettings = DEFAULT_SETTINGS
) -> float:
    """Fraction of its fleet the side that lost the round gives up."""

    ratio = 1.0 if holder_power <= 0 else loser_power / holder_power
    return clamp(1.0 - ratio, settings.min_loss_fraction, settings.max_loss_fraction)


def casualties(fleet: FleetSnapshot, fraction: float) -> Tuple[Dict[str, int], Dict[str, float]]:
    """Split ``fraction`` of a fleet's hull across its ship types.

    Every type gives up the same share of its own health, so losses follow
    each type's numeric presence.  Returns whole ships lost per type and the
    carry damage left afterwards.
    """

    losses: Dict[str, int] = {}
    damage: Dict[str, float] = {}
    for ship_type, count in fleet.composition.items():
        if count <= 0:
            continue
        owed = fraction * count + fleet.damage.get(ship_type, 0.0)
        lost = min(count, int(math.floor(owed + _EPS)))
        carry = 0.0 if lost >= count else max(0.0, owed - lost)
        if lost > 0:
            losses[ship_type] = lost
        if carry > _EPS:
            damage[ship_type] = min(carry, 1.0 - _EPS)
    return losses, damage


def apply_losses(fleet: FleetSnapshot, losses: Dict[str, int], damage: Dict[str, float]) -> None:
    """Decrement ``fleet`` in place; counts never go below zero."""

    for ship_type, lost in losses.items():
        fleet.composition[ship_type] = max(0, fleet.composition.get(ship_type, 0) - lost)
    fleet.damage = {k: v for k, v in damage.items() if fleet.composition.get(k, 0) > 0}


class RoundSimulator:
    """Runs one exchange of fire using an injected random source."""

    def __init__(self, rng: random.Random, settings: Optional[EngineSettings] = None):
        self.rng = rng
        self.settings = settings or DEFAULT_SETTINGS

    def draw_variance(self) -> float:
        return self.rng.uniform(self.settings.variance_min, self.settings.variance_max)

    def simulate_round(
        self,
        attacker: PowerAssessment,
        defender: PowerAssessment,
        attacker_fleet: FleetSnapshot,
        defender_fleet: FleetSnapshot,
        attack_type: AttackType = AttackType.ASSAULT,
    ) -> RoundOutcome:
        variance_a = self.draw_variance()
        variance_b = self.draw_variance()
        adjusted_a = attacker.effective_power * variance_a
        adjusted_b = defender.effective_power * variance_b

        # Attacker holds the engagement on an exact tie.
        if adjusted_a >= adjusted_b:
            holder = ATTACKER
            fraction = loser_loss_fraction(adjusted_a, adjusted_b, self.settings)
            attacker_fraction = fraction * self.settings.winner_loss_ratio
            defender_fraction = fraction
        else:
            holder = DEFENDER
            fraction = loser_loss_fraction(adjusted_b, adjusted_a, self.settings)
            attacker_fraction = fraction
            defender_fraction = fraction * self.settings.winner_loss_ratio

        if attack_type is AttackType.BOMBARD:
            defender_fraction = min(1.0, defender_fraction * self.settings.bombard_multiplier)

        attacker_losses, attacker_damage = casualties(attacker_fleet, attacker_fraction)
        defender_losses, defender_damage = casualties(defender_fleet, defender_fraction)
        return RoundOutcome(
            attacker_adjusted=adjusted_a,
            defender_adjusted=adjusted_b,
            holder=holder,
            loss_fraction=fraction,
            attacker_fraction=attacker_fraction,
            defender_fraction=defender_fraction,
            attacker_losses=attacker_losses,
            defender_losses=defender_losses,
            attacker_damage=attacker_damage,
            defender_damage=defender_damage,
        )


__all__ = [
    "RoundOutcome",
    "RoundSimulator",
    "apply_losses",
    "casualties",
    "clamp",
    "loser_loss_fraction",
]
