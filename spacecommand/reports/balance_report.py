from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List
from datetime import datetime, timezone
import json

from ..balance import BalanceSummary

@dataclass
class MatchupRow:
    a: str
    b: str
    win_rate: float
    draws: int
    mean_rounds: float

@dataclass
class BalanceReport:
    timestamp: str
    trials: int
    seed: int
    ship_matrix: Dict[str, Dict[str, float]]
    issues: List[str]
    matchups: List[MatchupRow]
    cost_effectiveness: List[Dict[str, Any]]
    experience: Dict[str, float] = field(default_factory=dict)

    def to_json(self) -> str:
        d = asdict(self)
        return json.dumps(d, indent=2, sort_keys=False)

    def to_markdown(self) -> str:
        lines = []
        lines.append("# SpaceCommand Combat Balance Report")
        lines.append(f"- **Timestamp:** {self.timestamp}")
        lines.append(f"- **Seed:** {self.seed}  |  **Trials per matchup:** {self.trials}")
        if self.ship_matrix:
            types = list(self.ship_matrix)
            lines.append("\n## Ship vs Ship Win Rates (row attacks column)")
            lines.append("| attacker | " + " | ".join(types) + " |")
            lines.append("|---|" + "---:|" * len(types))
            for att in types:
                cells = " | ".join(f"{self.ship_matrix[att].get(d, 0.0) * 100:.1f}%" for d in types)
                lines.append(f"| {att} | {cells} |")
        lines.append("\n## Balance Issues")
        if self.issues:
            for issue in self.issues:
                lines.append(f"- {issue}")
        else:
            lines.append("- none detected")
        if self.matchups:
            lines.append("\n## Fleet Compositions")
            for m in self.matchups:
                lines.append(f"- {m.a} vs {m.b}: {m.win_rate * 100:.1f}% (draws {m.draws}, {m.mean_rounds:.1f} rounds avg)")
        if self.cost_effectiveness:
            lines.append("\n## Cost-Effectiveness")
            for row in self.cost_effectiveness:
                lines.append(
                    f"- {row['ship_type']}: {row['quantity']} ships, attack {row['total_attack']}, "
                    f"health {row['total_health']}, score {row['score']:.1f}"
                )
        if self.experience:
            lines.append("\n## Experience Impact")
            for level, rate in self.experience.items():
                lines.append(f"- experience {level}: {rate * 100:.1f}% vs rookies")
        return "\n".join(lines)

def build_balance_report(summary: BalanceSummary) -> BalanceReport:
    timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    matchups = [
        MatchupRow(
            a=m.label_a,
            b=m.label_b,
            win_rate=round(m.win_rate, 4),
            draws=m.draws,
            mean_rounds=round(m.mean_rounds, 3),
        )
        for m in summary.compositions
    ]
    return BalanceReport(
        timestamp=timestamp,
        trials=summary.trials,
        seed=summary.seed,
        ship_matrix={a: {d: round(r, 4) for d, r in row.items()} for a, row in summary.ship_matrix.items()},
        issues=list(summary.matrix_issues),
        matchups=matchups,
        cost_effectiveness=list(summary.cost_effectiveness),
        experience={str(k): round(v, 4) for k, v in summary.experience.items()},
    )
