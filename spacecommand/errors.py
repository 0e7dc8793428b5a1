"""Typed failures raised by the combat engine.

Every error aborts :meth:`CombatResolver.resolve` and reaches the caller, except
:class:`RoundLimitExceeded`, which the resolver handles itself by forcing a
decision once the round cap is reached.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class CombatEngineError(Exception):
    """Base class for all engine failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        return self.message


class UnknownShipType(CombatEngineError, KeyError):
    """A ship type is missing from the catalog (configuration error)."""

    def __init__(self, ship_type: str, available: Optional[list] = None):
        known = ", ".join(available or [])
        message = f"Unknown ship type '{ship_type}'"
        if known:
            message += f". Available: {known}"
        super().__init__(message, {"ship_type": ship_type})
        self.ship_type = ship_type


class InvalidComposition(CombatEngineError, ValueError):
    """A fleet composition holds a negative or malformed quantity."""


class InvalidAttackType(InvalidComposition):
    """The requested attack type is not one of assault, raid or bombard."""


class InvalidCombatant(CombatEngineError, ValueError):
    """An empty fleet was presented for battle."""


class RoundLimitExceeded(CombatEngineError):
    """Raised inside the resolver when a battle reaches the round cap."""

    def __init__(self, round_cap: int):
        super().__init__(f"Battle reached the round cap of {round_cap}", {"round_cap": round_cap})
        self.round_cap = round_cap


class CatalogError(CombatEngineError):
    """A ship catalog file could not be parsed into valid stats."""


__all__ = [
    "CatalogError",
    "CombatEngineError",
    "InvalidAttackType",
    "InvalidCombatant",
    "InvalidComposition",
    "RoundLimitExceeded",
    "UnknownShipType",
]
