"""SpaceCommand combat engine: fleet power, round simulation and battle resolution."""

from importlib import import_module
from typing import Any

__version__ = "0.1.0"
__all__ = [
    "AttackType",
    "CombatStatus",
    "FleetSnapshot",
    "PowerAssessment",
    "RoundLogEntry",
    "CombatRecord",
    "CombatResult",
    "RetreatOrder",
    "ShipCatalog",
    "ShipStats",
    "default_catalog",
    "load_catalog",
    "FleetPowerCalculator",
    "RoundSimulator",
    "CombatResolver",
    "resolve_combat",
    "BalanceHarness",
    "EngineSettings",
    "CombatEngineError",
    "UnknownShipType",
    "InvalidComposition",
    "InvalidCombatant",
    "__version__",
]

_EXPORTS = {
    "AttackType": ("models", "AttackType"),
    "CombatStatus": ("models", "CombatStatus"),
    "FleetSnapshot": ("models", "FleetSnapshot"),
    "PowerAssessment": ("models", "PowerAssessment"),
    "RoundLogEntry": ("models", "RoundLogEntry"),
    "CombatRecord": ("models", "CombatRecord"),
    "CombatResult": ("models", "CombatResult"),
    "RetreatOrder": ("models", "RetreatOrder"),
    "ShipCatalog": ("catalog", "ShipCatalog"),
    "ShipStats": ("catalog", "ShipStats"),
    "default_catalog": ("catalog", "default_catalog"),
    "load_catalog": ("catalog", "load_catalog"),
    "FleetPowerCalculator": ("power", "FleetPowerCalculator"),
    "RoundSimulator": ("simulators.rounds", "RoundSimulator"),
    "CombatResolver": ("simulators.combat", "CombatResolver"),
    "resolve_combat": ("simulators.combat", "resolve_combat"),
    "BalanceHarness": ("balance", "BalanceHarness"),
    "EngineSettings": ("config", "EngineSettings"),
    "CombatEngineError": ("errors", "CombatEngineError"),
    "UnknownShipType": ("errors", "UnknownShipType"),
    "InvalidComposition": ("errors", "InvalidComposition"),
    "InvalidCombatant": ("errors", "InvalidCombatant"),
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module_name, attr_name = _EXPORTS[name]
        module = import_module(f".{module_name}", __name__)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(__all__)))
