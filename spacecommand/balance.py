"""Monte-Carlo balance harness.

Drives :class:`~spacecommand.simulators.combat.CombatResolver` with synthetic
fleets across many trials and tabulates win rates.  Trial ``i`` of every
matchup uses seed ``seed + i``, so matchups share random draws (common random
numbers) and results do not depend on how many workers ran them.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .models import ATTACKER, DEFENDER, AttackType, CombatRecord, CombatStatus, FleetSnapshot
from .simulators.combat import CombatResolver

logger = logging.getLogger(__name__)

DEFAULT_COMPOSITIONS: Dict[str, Dict[str, int]] = {
    "Pure Scouts": {"scout": 20},
    "Pure Fighters": {"fighter": 10},
    "Pure Corvettes": {"corvette": 5},
    "Pure Destroyers": {"destroyer": 3},
    "Balanced Light": {"scout": 5, "fighter": 5, "corvette": 2},
    "Balanced Heavy": {"destroyer": 2, "cruiser": 1, "battleship": 1},
    "Mixed Fleet": {"scout": 3, "fighter": 3, "corvette": 2, "destroyer": 1},
    "Capital Ship": {"cruiser": 1, "battleship": 1},
    "Dreadnought Solo": {"dreadnought": 1},
}

DEFAULT_EXPERIENCE_LEVELS = (0, 25, 50, 75, 100)


@dataclass
class MatchupStats:
    """Aggregate outcome of one fleet (always the attacker) against another."""

    label_a: str
    label_b: str
    attack_type: str
    trials: int = 0
    wins_a: int = 0
    wins_b: int = 0
    draws: int = 0
    retreats: int = 0
    total_rounds: int = 0

    @property
    def win_rate(self) -> float:
        return self.wins_a / self.trials if self.trials else 0.0

    @property
    def loss_rate(self) -> float:
        return self.wins_b / self.trials if self.trials else 0.0

    @property
    def mean_rounds(self) -> float:
        return self.total_rounds / self.trials if self.trials else 0.0

    def add(self, record: CombatRecord) -> None:
        self.trials += 1
        self.total_rounds += len(record.rounds)
        if record.status is CombatStatus.RETREATED:
            self.retreats += 1
            return
        side = record.result.winner_side if record.result else None
        if side == ATTACKER:
            self.wins_a += 1
        elif side == DEFENDER:
            self.wins_b += 1
        else:
            self.draws += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "a": self.label_a,
            "b": self.label_b,
            "attack_type": self.attack_type,
            "trials": self.trials,
            "wins_a": self.wins_a,
            "wins_b": self.wins_b,
            "draws": self.draws,
            "retreats": self.retreats,
            "win_rate": round(self.win_rate, 4),
            "mean_rounds": round(self.mean_rounds, 3),
        }


@dataclass
class BalanceSummary:
    trials: int
    seed: int
    ship_matrix: Dict[str, Dict[str, float]] = field(default_factory=dict)
    matrix_issues: List[str] = field(default_factory=list)
    compositions: List[MatchupStats] = field(default_factory=list)
    cost_effectiveness: List[Dict[str, Any]] = field(default_factory=list)
    experience: Dict[int, float] = field(default_factory=dict)


def _fleet(owner: str, composition: Mapping[str, int], experience: int = 0, morale: int = 100) -> FleetSnapshot:
    return FleetSnapshot(
        owner_id=owner,
        composition=dict(composition),
        experience=experience,
        morale=morale,
    )


def _label(composition: Mapping[str, int]) -> str:
    return ", ".join(f"{k}={v}" for k, v in composition.items())


class BalanceHarness:
    def __init__(
        self,
        resolver: Optional[CombatResolver] = None,
        trials: int = 1000,
        seed: int = 12345,
        workers: int = 1,
    ):
        if trials < 1:
            raise ValueError("trials must be at least 1")
        self.resolver = resolver or CombatResolver()
        self.trials = trials
        self.seed = seed
        self.workers = max(1, int(workers))

    def _trial_count(self, trials: Optional[int]) -> int:
        n = self.trials if trials is None else trials
        if n < 1:
            raise ValueError("trials must be at least 1")
        return n

    # ----- Single matchup -----

    def win_rate(
        self,
        fleet_a: FleetSnapshot,
        fleet_b: FleetSnapshot,
        attack_type: Any = AttackType.ASSAULT,
        trials: Optional[int] = None,
        seed: Optional[int] = None,
        label_a: Optional[str] = None,
        label_b: Optional[str] = None,
    ) -> MatchupStats:
        kind = AttackType.parse(attack_type)
        n = self._trial_count(trials)
        base = self.seed if seed is None else seed
        stats = MatchupStats(
            label_a=label_a or _label(fleet_a.composition),
            label_b=label_b or _label(fleet_b.composition),
            attack_type=kind.value,
        )

        def trial(i: int) -> CombatRecord:
            return self.resolver.resolve(fleet_a, fleet_b, kind, seed=base + i)

        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                records: Iterable[CombatRecord] = list(pool.map(trial, range(n)))
        else:
            records = (trial(i) for i in range(n))
        for record in records:
            stats.add(record)
        logger.info(
            "%s vs %s (%s): %.1f%% over %d trials",
            stats.label_a, stats.label_b, kind.value, stats.win_rate * 100, n,
        )
        return stats

    # ----- Batteries -----

    def ship_matrix(
        self, ship_types: Optional[Sequence[str]] = None, trials: int = 100
    ) -> Dict[str, Dict[str, float]]:
        """1v1 win rate of every ship type (row, attacking) against every other."""
        types = list(ship_types or self.resolver.catalog.ship_types())
        matrix: Dict[str, Dict[str, float]] = {}
        for attacker in types:
            matrix[attacker] = {}
            for defender in types:
                stats = self.win_rate(
                    _fleet("A", {attacker: 1}),
                    _fleet("B", {defender: 1}),
                    trials=trials,
                    label_a=attacker,
                    label_b=defender,
                )
                matrix[attacker][defender] = stats.win_rate
        return matrix

    def composition_round_robin(
        self,
        compositions: Optional[Mapping[str, Mapping[str, int]]] = None,
        trials: int = 50,
    ) -> List[MatchupStats]:
        comps = dict(compositions or DEFAULT_COMPOSITIONS)
        names = list(comps)
        results: List[MatchupStats] = []
        for i, name_a in enumerate(names):
            for name_b in names[i + 1:]:
                results.append(
                    self.win_rate(
                        _fleet("A", comps[name_a]),
                        _fleet("B", comps[name_b]),
                        trials=trials,
                        label_a=name_a,
                        label_b=name_b,
                    )
                )
        return results

    def cost_effectiveness(self, budget: int = 1000) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        catalog = self.resolver.catalog
        for ship_type in catalog.ship_types():
            stats = catalog.stats_for(ship_type)
            quantity = budget // stats.cost
            total_attack = quantity * stats.attack
            total_health = quantity * stats.health
            rows.append({
                "ship_type": ship_type,
                "quantity": quantity,
                "total_attack": total_attack,
                "total_health": total_health,
                "score": total_attack * total_health / 1000,
            })
        return rows

    def experience_sweep(
        self,
        levels: Sequence[int] = DEFAULT_EXPERIENCE_LEVELS,
        composition: Optional[Mapping[str, int]] = None,
        trials: Optional[int] = None,
    ) -> Dict[int, float]:
        """Win rate of a veteran fleet against an identical rookie one."""
        comp = dict(composition or {"fighter": 5})
        rates: Dict[int, float] = {}
        for level in levels:
            stats = self.win_rate(
                _fleet("veteran", comp, experience=level),
                _fleet("rookie", comp),
                trials=trials,
                label_a=f"experience {level}",
                label_b="rookie",
            )
            rates[level] = stats.win_rate
        return rates

    def run_all(self, trials: Optional[int] = None) -> BalanceSummary:
        n = self._trial_count(trials)
        matrix = self.ship_matrix(trials=n)
        return BalanceSummary(
            trials=n,
            seed=self.seed,
            ship_matrix=matrix,
            matrix_issues=analyze_matrix(matrix),
            compositions=self.composition_round_robin(trials=n),
            cost_effectiveness=self.cost_effectiveness(),
            experience=self.experience_sweep(trials=n),
        )


def analyze_matrix(
    matrix: Mapping[str, Mapping[str, float]],
    dominant: float = 0.7,
    weak: float = 0.3,
    share: float = 0.6,
) -> List[str]:
    """Flag ship types that dominate or lose most of their matchups."""
    issues: List[str] = []
    types = list(matrix)
    for attacker in types:
        row = matrix[attacker]
        dominant_count = sum(1 for d in types if row.get(d, 0.0) > dominant)
        weak_count = sum(1 for d in types if row.get(d, 0.0) < weak)
        if dominant_count > len(types) * share:
            issues.append(f"{attacker} is overpowered (dominates {dominant_count}/{len(types)} matchups)")
        if weak_count > len(types) * share:
            issues.append(f"{attacker} is underpowered (loses {weak_count}/{len(types)} matchups)")
    return issues


__all__ = [
    "DEFAULT_COMPOSITIONS",
    "DEFAULT_EXPERIENCE_LEVELS",
    "BalanceHarness",
    "BalanceSummary",
    "MatchupStats",
    "analyze_matrix",
]
