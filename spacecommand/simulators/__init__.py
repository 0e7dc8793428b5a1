"""Round and battle simulators."""

from .combat import CombatResolver, resolve_combat
from .rounds import RoundOutcome, RoundSimulator

__all__ = ["CombatResolver", "RoundOutcome", "RoundSimulator", "resolve_combat"]
