"""Combat resolution for SpaceCommand.

A battle is a loop of abstract rounds over aggregate ship counts: both fleets
are assessed, :class:`~spacecommand.simulators.rounds.RoundSimulator` exchanges
fire, losses are applied to working copies, and terminal conditions are
checked.  The driver is :meth:`CombatResolver.resolve`, which returns a
finalized :class:`~spacecommand.models.CombatRecord`; :func:`resolve_combat`
wraps it with the default catalog and settings.

The resolver holds no per-battle state, so one instance can serve concurrent
callers as long as each call gets its own random generator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import random
from typing import Any, Callable, Dict, Optional, Tuple

from ..catalog import ShipCatalog, default_catalog
from ..config import DEFAULT_SETTINGS, EngineSettings
from ..errors import InvalidCombatant, RoundLimitExceeded
from ..models import (
    ATTACKER,
    DEFENDER,
    AttackType,
    CombatRecord,
    CombatResult,
    CombatStatus,
    FleetSnapshot,
    PowerAssessment,
    RetreatOrder,
    RoundLogEntry,
)
from ..power import FleetPowerCalculator
from .rounds import RoundSimulator, apply_losses

logger = logging.getLogger(__name__)

ANNIHILATION = "annihilation"
RAID = "raid"
ROUND_CAP = "round_cap"
RETREAT = "retreat"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================
# Working state
# =============================


@dataclass
class _Battle:
    """Mutable state of one battle in progress; never outlives ``resolve``."""

    record: CombatRecord
    attacker: FleetSnapshot
    defender: FleetSnapshot
    simulator: RoundSimulator
    attack_type: AttackType
    cumulative: Dict[str, float] = field(default_factory=lambda: {ATTACKER: 0.0, DEFENDER: 0.0})
    starting_health: Dict[str, float] = field(default_factory=dict)
    retreated_side: Optional[str] = None

    def side(self, name: str) -> FleetSnapshot:
        return self.attacker if name == ATTACKER else self.defender


# =============================
# Core combat driver
# =============================


class CombatResolver:
    def __init__(
        self,
        catalog: Optional[ShipCatalog] = None,
        settings: Optional[EngineSettings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.catalog = catalog or default_catalog()
        self.settings = settings or DEFAULT_SETTINGS
        self.calculator = FleetPowerCalculator(self.catalog, self.settings)
        self.clock = clock

    # ----- Public API -----

    def resolve(
        self,
        attacker: FleetSnapshot,
        defender: FleetSnapshot,
        attack_type: Any = AttackType.ASSAULT,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        retreat: Optional[RetreatOrder] = None,
        location: Any = None,
    ) -> CombatRecord:
        kind = AttackType.parse(attack_type)
        self._validate_combatants(attacker, defender)

        record = CombatRecord(
            attacker_id=attacker.owner_id,
            defender_id=defender.owner_id,
            attack_type=kind,
            attacker_fleet_id=attacker.fleet_id,
            defender_fleet_id=defender.fleet_id,
            location=location,
            seed=seed,
            start_time=self.clock(),
        )
        battle = _Battle(
            record=record,
            attacker=attacker.copy(),
            defender=defender.copy(),
            simulator=RoundSimulator(rng or random.Random(seed), self.settings),
            attack_type=kind,
            starting_health={
                ATTACKER: self._remaining_health(attacker),
                DEFENDER: self._remaining_health(defender),
            },
        )
        logger.debug(
            "battle start: %s %s vs %s (seed=%s)",
            kind.value, attacker.composition, defender.composition, seed,
        )

        record.status = CombatStatus.IN_PROGRESS
        try:
            decided_by, winner_side = self._engagement_loop(battle, retreat)
        except RoundLimitExceeded as exc:
            winner_side = self._forced_decision(battle)
            decided_by = ROUND_CAP
            logger.debug("%s; forced decision for %s", exc, winner_side)

        self._finalize(battle, attacker, defender, decided_by, winner_side)
        logger.debug(
            "battle end: %s after %d rounds, winner=%s",
            decided_by, len(record.rounds), record.winner_id,
        )
        return record

    # ----- Validation -----

    def _validate_combatants(self, attacker: FleetSnapshot, defender: FleetSnapshot) -> None:
        if attacker.owner_id is not None and attacker.owner_id == defender.owner_id:
            raise InvalidCombatant(
                "Cannot attack your own fleet",
                {"owner_id": attacker.owner_id},
            )
        # Assessing validates every quantity and ship type up front.
        for name, fleet in ((ATTACKER, attacker), (DEFENDER, defender)):
            if self.calculator.assess(fleet).empty:
                raise InvalidCombatant(
                    f"The {name} fleet has no ships and cannot enter combat",
                    {"side": name, "owner_id": fleet.owner_id},
                )

    # ----- Engagement rounds -----

    def _engagement_loop(
        self, battle: _Battle, retreat: Optional[RetreatOrder]
    ) -> Tuple[str, Optional[str]]:
        for round_number in range(1, self.settings.round_cap + 1):
            holder = self._engagement_round(battle, round_number)
            attacker_alive = not battle.attacker.is_empty()
            defender_alive = not battle.defender.is_empty()
            if not (attacker_alive and defender_alive):
                if attacker_alive:
                    return ANNIHILATION, ATTACKER
                if defender_alive:
                    return ANNIHILATION, DEFENDER
                return ANNIHILATION, None
            if retreat is not None and round_number >= retreat.after_round:
                battle.retreated_side = retreat.side
                return RETREAT, None
            weakened = self._weakened_side(battle)
            if weakened is not None:
                battle.retreated_side = weakened
                logger.debug("%s fell below the retreat threshold in round %d", weakened, round_number)
                return RETREAT, None
            if battle.attack_type is AttackType.RAID:
                return RAID, holder
        raise RoundLimitExceeded(self.settings.round_cap)

    def _engagement_round(self, battle: _Battle, round_number: int) -> str:
        attacker_power = self._assess_for_round(battle.attacker)
        defender_power = self._assess_for_round(battle.defender)
        outcome = battle.simulator.simulate_round(
            attacker_power,
            defender_power,
            battle.attacker,
            battle.defender,
            battle.attack_type,
        )
        battle.record.rounds.append(
            RoundLogEntry(
                round_number=round_number,
                attacker_power=outcome.attacker_adjusted,
                defender_power=outcome.defender_adjusted,
                attacker_losses=dict(outcome.attacker_losses),
                defender_losses=dict(outcome.defender_losses),
                holder=outcome.holder,
                loss_fraction=outcome.loss_fraction,
            )
        )
        battle.cumulative[ATTACKER] += outcome.attacker_adjusted
        battle.cumulative[DEFENDER] += outcome.defender_adjusted
        apply_losses(battle.attacker, outcome.attacker_losses, outcome.attacker_damage)
        apply_losses(battle.defender, outcome.defender_losses, outcome.defender_damage)
        for fleet in (battle.attacker, battle.defender):
            fleet.supplies = max(0, fleet.supplies - self.settings.supplies_per_round)
        return outcome.holder

    def _weakened_side(self, battle: _Battle) -> Optional[str]:
        threshold = self.settings.retreat_threshold
        if threshold <= 0:
            return None
        # Attacker is checked first, so it withdraws when both sides qualify.
        for side in (ATTACKER, DEFENDER):
            start = battle.starting_health[side]
            if self._remaining_health(battle.side(side)) <= threshold * start:
                return side
        return None

    def _remaining_health(self, fleet: FleetSnapshot) -> float:
        total = 0.0
        for ship_type, count in fleet.composition.items():
            if count > 0:
                hull = self.catalog.stats_for(ship_type).health
                total += (count - fleet.damage.get(ship_type, 0.0)) * hull
        return total

    def _assess_for_round(self, fleet: FleetSnapshot) -> PowerAssessment:
        assessment = self.calculator.assess(fleet)
        if fleet.supplies <= 0:
            return assessment.scaled(self.settings.out_of_supply_penalty)
        return assessment

    def _forced_decision(self, battle: _Battle) -> str:
        # Attacker keeps the field on an exact tie, as within a round.
        if battle.cumulative[ATTACKER] >= battle.cumulative[DEFENDER]:
            return ATTACKER
        return DEFENDER

    # ----- Post-battle -----

    def _finalize(
        self,
        battle: _Battle,
        attacker_in: FleetSnapshot,
        defender_in: FleetSnapshot,
        decided_by: str,
        winner_side: Optional[str],
    ) -> None:
        record = battle.record
        casualties = {
            ATTACKER: _losses(attacker_in, battle.attacker),
            DEFENDER: _losses(defender_in, battle.defender),
        }
        rounds_fought = len(record.rounds)

        experience: Dict[str, int] = {}
        for side, enemy in ((ATTACKER, DEFENDER), (DEFENDER, ATTACKER)):
            fleet = battle.side(side)
            if fleet.is_empty():
                experience[side] = 0
                continue
            destroyed_health = sum(
                lost * self.catalog.stats_for(ship_type).health
                for ship_type, lost in casualties[enemy].items()
            )
            gain = (
                rounds_fought * self.settings.experience_per_round
                + destroyed_health // self.settings.experience_health_divisor
            )
            fleet.experience += gain
            experience[side] = gain

        morale: Dict[str, int] = {}
        for side in (ATTACKER, DEFENDER):
            delta = self._morale_delta(side, decided_by, winner_side, battle.retreated_side)
            fleet = battle.side(side)
            before = fleet.morale
            fleet.morale = max(0, min(self.settings.morale_cap, before + delta))
            morale[side] = fleet.morale - before

        winner_id = battle.side(winner_side).owner_id if winner_side else None
        record.result = CombatResult(
            winner_id=winner_id,
            winner_side=winner_side,
            final_attacker_fleet=battle.attacker,
            final_defender_fleet=battle.defender,
            decided_by=decided_by,
            rounds_fought=rounds_fought,
            casualties=casualties,
            experience_gained=experience,
            morale_change=morale,
            retreated_side=battle.retreated_side,
        )
        record.status = CombatStatus.RETREATED if decided_by == RETREAT else CombatStatus.COMPLETED
        record.end_time = self.clock()

    def _morale_delta(
        self,
        side: str,
        decided_by: str,
        winner_side: Optional[str],
        retreated_side: Optional[str],
    ) -> int:
        s = self.settings
        if decided_by == RETREAT and retreated_side is not None:
            return s.morale_retreat if side == retreated_side else s.morale_hold
        if winner_side is None:
            return s.morale_loss
        return s.morale_win if side == winner_side else s.morale_loss


def _losses(before: FleetSnapshot, after: FleetSnapshot) -> Dict[str, int]:
    lost: Dict[str, int] = {}
    for ship_type, start in before.composition.items():
        diff = max(0, start) - after.quantity(ship_type)
        if diff > 0:
            lost[ship_type] = diff
    return lost


def resolve_combat(
    attacker: FleetSnapshot,
    defender: FleetSnapshot,
    attack_type: Any = AttackType.ASSAULT,
    **kwargs: Any,
) -> CombatRecord:
    return CombatResolver().resolve(attacker, defender, attack_type, **kwargs)


__all__ = [
    "ANNIHILATION",
    "RAID",
    "RETREAT",
    "ROUND_CAP",
    "CombatResolver",
    "resolve_combat",
]
