"""Plain data carried in and out of the combat engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import InvalidAttackType, InvalidComposition

ATTACKER = "attacker"
DEFENDER = "defender"
SIDES = (ATTACKER, DEFENDER)


class AttackType(str, Enum):
    ASSAULT = "assault"
    RAID = "raid"
    BOMBARD = "bombard"

    @classmethod
    def parse(cls, value: Any) -> "AttackType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise InvalidAttackType(
                f"Unsupported attack type {value!r}. Expected one of: {allowed}",
                {"attack_type": value},
            ) from None


class CombatStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    RETREATED = "retreated"


def parse_quantity(ship_type: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidComposition(f"Quantity for '{ship_type}' must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise InvalidComposition(
        f"Quantity for '{ship_type}' must be an integer, got {value!r}",
        {"ship_type": ship_type},
    )


@dataclass
class FleetSnapshot:
    """One side of a battle: ship counts plus the fleet-wide modifiers."""

    owner_id: Any
    composition: Dict[str, int] = field(default_factory=dict)
    experience: int = 0
    morale: int = 100
    supplies: int = 100
    fleet_id: Any = None
    # Fraction of one ship's hull already lost per type, always in [0, 1).
    damage: Dict[str, float] = field(default_factory=dict)

    def total_ships(self) -> int:
        return sum(count for count in self.composition.values() if count > 0)

    def is_empty(self) -> bool:
        return self.total_ships() == 0

    def quantity(self, ship_type: str) -> int:
        return max(0, self.composition.get(ship_type, 0))

    def copy(self) -> "FleetSnapshot":
        return FleetSnapshot(
            owner_id=self.owner_id,
            composition=dict(self.composition),
            experience=self.experience,
            morale=self.morale,
            supplies=self.supplies,
            fleet_id=self.fleet_id,
            damage=dict(self.damage),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "fleet_id": self.fleet_id,
            "composition": dict(self.composition),
            "experience": self.experience,
            "morale": self.morale,
            "supplies": self.supplies,
            "damage": {k: round(v, 6) for k, v in self.damage.items() if v > 0},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FleetSnapshot":
        raw = data.get("composition") or {}
        if not isinstance(raw, dict):
            raise InvalidComposition("composition must be a mapping of ship type to quantity")
        composition = {str(k): parse_quantity(str(k), v) for k, v in raw.items()}
        damage = {str(k): float(v) for k, v in (data.get("damage") or {}).items()}
        return cls(
            owner_id=data.get("owner_id"),
            fleet_id=data.get("fleet_id"),
            composition=composition,
            experience=int(data.get("experience", 0)),
            morale=int(data.get("morale", 100)),
            supplies=int(data.get("supplies", 100)),
            damage=damage,
        )


@dataclass(frozen=True)
class PowerAssessment:
    total_attack: int
    total_health: int
    effective_power: float
    ship_count: int
    experience_bonus: float = 1.0
    morale_bonus: float = 1.0

    @property
    def empty(self) -> bool:
        return self.ship_count == 0

    def scaled(self, factor: float) -> "PowerAssessment":
        return PowerAssessment(
            total_attack=self.total_attack,
            total_health=self.total_health,
            effective_power=self.effective_power * factor,
            ship_count=self.ship_count,
            experience_bonus=self.experience_bonus,
            morale_bonus=self.morale_bonus,
        )


@dataclass
class RoundLogEntry:
    round_number: int
    attacker_power: float
    defender_power: float
    attacker_losses: Dict[str, int] = field(default_factory=dict)
    defender_losses: Dict[str, int] = field(default_factory=dict)
    holder: str = ATTACKER
    loss_fraction: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round_number": self.round_number,
            "attacker_power": round(self.attacker_power, 4),
            "defender_power": round(self.defender_power, 4),
            "attacker_losses": dict(self.attacker_losses),
            "defender_losses": dict(self.defender_losses),
            "holder": self.holder,
            "loss_fraction": round(self.loss_fraction, 4),
        }


@dataclass
class RetreatOrder:
    """Caller-issued retreat for one side, effective after ``after_round``."""

    side: str
    after_round: int = 1

    def __post_init__(self) -> None:
        if self.side not in SIDES:
            raise ValueError(f"Retreat side must be one of {SIDES}, got {self.side!r}")
        if self.after_round < 1:
            raise ValueError("Retreat cannot be ordered before the first round")


@dataclass
class CombatResult:
    winner_id: Any
    final_attacker_fleet: FleetSnapshot
    final_defender_fleet: FleetSnapshot
    decided_by: str
    rounds_fought: int
    casualties: Dict[str, Dict[str, int]] = field(default_factory=dict)
    experience_gained: Dict[str, int] = field(default_factory=dict)
    morale_change: Dict[str, int] = field(default_factory=dict)
    winner_side: Optional[str] = None
    retreated_side: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner_id": self.winner_id,
            "winner_side": self.winner_side,
            "decided_by": self.decided_by,
            "retreated_side": self.retreated_side,
            "rounds_fought": self.rounds_fought,
            "final_attacker_fleet": self.final_attacker_fleet.to_dict(),
            "final_defender_fleet": self.final_defender_fleet.to_dict(),
            "casualties": {side: dict(v) for side, v in self.casualties.items()},
            "experience_gained": dict(self.experience_gained),
            "morale_change": dict(self.morale_change),
        }


@dataclass
class CombatRecord:
    attacker_id: Any
    defender_id: Any
    attack_type: AttackType
    status: CombatStatus = CombatStatus.PENDING
    rounds: List[RoundLogEntry] = field(default_factory=list)
    result: Optional[CombatResult] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    attacker_fleet_id: Any = None
    defender_fleet_id: Any = None
    location: Any = None
    seed: Optional[int] = None

    @property
    def winner_id(self) -> Any:
        return self.result.winner_id if self.result else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attacker_id": self.attacker_id,
            "defender_id": self.defender_id,
            "attacker_fleet_id": self.attacker_fleet_id,
            "defender_fleet_id": self.defender_fleet_id,
            "location": self.location,
            "attack_type": self.attack_type.value,
            "status": self.status.value,
            "rounds": [r.to_dict() for r in self.rounds],
            "result": self.result.to_dict() if self.result else None,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "seed": self.seed,
        }


__all__ = [
    "ATTACKER",
    "DEFENDER",
    "SIDES",
    "AttackType",
    "CombatRecord",
    "CombatResult",
    "CombatStatus",
    "FleetSnapshot",
    "PowerAssessment",
    "RetreatOrder",
    "RoundLogEntry",
]
