"""Fleet power model.

Effective power multiplies aggregate attack by aggregate health, so it grows
with the square of fleet size, then applies the experience and morale
multipliers.  Values are only ever compared against each other.
"""
from __future__ import annotations

from typing import Mapping, Optional

from .catalog import ShipCatalog, default_catalog
from .config import DEFAULT_SETTINGS, EngineSettings
from .errors import InvalidComposition
from .models import FleetSnapshot, PowerAssessment


def experience_bonus(experience: int, settings: EngineSettings = DEFAULT_SETTINGS) -> float:
    """0.2% per experience point by default, with no upper bound."""
    return 1.0 + experience * settings.experience_rate


def morale_bonus(morale: int, settings: EngineSettings = DEFAULT_SETTINGS) -> float:
    """1% per point away from the baseline, never below zero."""
    return max(0.0, 1.0 + (morale - settings.morale_baseline) * settings.morale_rate)


class FleetPowerCalculator:
    def __init__(
        self,
        catalog: Optional[ShipCatalog] = None,
        settings: Optional[EngineSettings] = None,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.settings = settings or DEFAULT_SETTINGS

    def assess(self, fleet: FleetSnapshot) -> PowerAssessment:
        if fleet.experience < 0:
            raise InvalidComposition(
                f"Fleet experience cannot be negative ({fleet.experience})",
                {"experience": fleet.experience},
            )
        if not isinstance(fleet.composition, Mapping):
            raise InvalidComposition(
                "Fleet composition must be a mapping of ship type to quantity",
                {"composition": type(fleet.composition).__name__},
            )
        total_attack = 0
        total_health = 0
        ship_count = 0
        for ship_type, count in fleet.composition.items():
            if isinstance(count, bool) or not isinstance(count, int):
                raise InvalidComposition(
                    f"Quantity for '{ship_type}' must be an integer, got {count!r}",
                    {"ship_type": ship_type},
                )
            if count < 0:
                raise InvalidComposition(
                    f"Quantity for '{ship_type}' cannot be negative ({count})",
                    {"ship_type": ship_type, "quantity": count},
                )
            if count == 0:
                continue
            stats = self.catalog.stats_for(ship_type)
            total_attack += count * stats.attack
            total_health += count * stats.health
            ship_count += count

        exp_bonus = experience_bonus(fleet.experience, self.settings)
        mor_bonus = morale_bonus(fleet.morale, self.settings)
        if ship_count == 0:
            power = 0.0
        else:
            power = total_attack * total_health * exp_bonus * mor_bonus / self.settings.normalization
        return PowerAssessment(
            total_attack=total_attack,
            total_health=total_health,
            effective_power=power,
            ship_count=ship_count,
            experience_bonus=exp_bonus,
            morale_bonus=mor_bonus,
        )


def assess(fleet: FleetSnapshot, catalog: Optional[ShipCatalog] = None) -> PowerAssessment:
    return FleetPowerCalculator(catalog).assess(fleet)


__all__ = ["FleetPowerCalculator", "assess", "experience_bonus", "morale_bonus"]
