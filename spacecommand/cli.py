from __future__ import annotations
import argparse, json, logging, sys, time
from typing import Any, Dict

from .balance import BalanceHarness
from .catalog import default_catalog, load_catalog
from .config import ENV_PREFIX, EngineSettings, resolve_settings
from .errors import CombatEngineError, InvalidComposition
from .models import FleetSnapshot, RetreatOrder, parse_quantity
from .power import FleetPowerCalculator
from .reports.balance_report import build_balance_report
from .simulators.combat import CombatResolver


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m spacecommand.cli",
        description="SpaceCommand combat engine CLI"
    )
    sub = p.add_subparsers(dest="cmd")

    # resolve
    rs = sub.add_parser("resolve", help="Resolve one battle and print its record")
    _add_common_args(rs)
    rs.add_argument("--attacker", type=str, required=True, help="Attacker composition, e.g. fighter=5,scout=2")
    rs.add_argument("--defender", type=str, required=True, help="Defender composition")
    rs.add_argument("--type", dest="attack_type", choices=["assault", "raid", "bombard"], default="assault")
    rs.add_argument("--attacker-experience", type=int, default=0)
    rs.add_argument("--defender-experience", type=int, default=0)
    rs.add_argument("--attacker-morale", type=int, default=100)
    rs.add_argument("--defender-morale", type=int, default=100)
    rs.add_argument("--retreat", type=str, default=None, help="side:round, e.g. attacker:2")
    rs.add_argument("--seed", type=int, default=None)
    rs.add_argument("--json", action="store_true", help="Print the full record as JSON")

    # assess
    ss = sub.add_parser("assess", help="Print the power assessment of one fleet")
    _add_common_args(ss)
    ss.add_argument("--fleet", type=str, required=True)
    ss.add_argument("--experience", type=int, default=0)
    ss.add_argument("--morale", type=int, default=100)

    # balance
    bl = sub.add_parser("balance", help="Run the balance harness and emit a report")
    _add_common_args(bl)
    bl.add_argument("--trials", type=int, default=100, help="Trials per matchup")
    bl.add_argument("--seed", type=int, default=12345)
    bl.add_argument("--workers", type=int, default=1)
    bl.add_argument("--report", type=str, default=None, help="Path to save report (.json or .md)")
    bl.add_argument("--print-md", action="store_true", help="Print Markdown report to stdout")

    args = p.parse_args(argv)
    if getattr(args, "cmd", None) is None:
        p.print_help()
        sys.exit(2)
    return args


def _add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--config", type=str, action="append", default=[], help="YAML/JSON config files (merged)")
    ap.add_argument("--env-prefix", type=str, default=ENV_PREFIX, help="Env prefix for overrides")
    ap.add_argument("--catalog", type=str, default=None, help="YAML/JSON ship catalog (default: bundled)")
    ap.add_argument("--round-cap", type=int, default=None)
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")


def parse_composition(text: str) -> Dict[str, int]:
    """``"fighter=5,scout=2"`` -> ``{"fighter": 5, "scout": 2}``."""
    out: Dict[str, int] = {}
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, sep, qty = chunk.partition("=")
        name = name.strip()
        if not sep or not name:
            raise InvalidComposition(f"Expected type=quantity, got {chunk!r}")
        out[name] = out.get(name, 0) + parse_quantity(name, qty.strip())
    return out


def _settings(args: argparse.Namespace) -> EngineSettings:
    """Layer config files, then env, then explicit CLI flags."""
    overrides: Dict[str, Any] = {}
    if getattr(args, "round_cap", None) is not None:
        overrides = {"combat": {"round_cap": args.round_cap}}
    return resolve_settings(getattr(args, "config", []), overrides, getattr(args, "env_prefix", ENV_PREFIX))


def _resolver(args: argparse.Namespace) -> CombatResolver:
    catalog = load_catalog(args.catalog) if args.catalog else default_catalog()
    return CombatResolver(catalog=catalog, settings=_settings(args))


def _retreat(text: str | None) -> RetreatOrder | None:
    if not text:
        return None
    side, _, rnd = text.partition(":")
    return RetreatOrder(side=side.strip(), after_round=int(rnd or 1))


def _resolve(args: argparse.Namespace) -> int:
    resolver = _resolver(args)
    attacker = FleetSnapshot(
        owner_id="attacker",
        composition=parse_composition(args.attacker),
        experience=args.attacker_experience,
        morale=args.attacker_morale,
    )
    defender = FleetSnapshot(
        owner_id="defender",
        composition=parse_composition(args.defender),
        experience=args.defender_experience,
        morale=args.defender_morale,
    )
    record = resolver.resolve(
        attacker, defender, args.attack_type, seed=args.seed, retreat=_retreat(args.retreat)
    )
    if args.json:
        print(json.dumps(record.to_dict(), indent=2))
        return 0
    result = record.result
    print(f"{record.attack_type.value}: {record.status.value} ({result.decided_by}) after {len(record.rounds)} rounds")
    for entry in record.rounds:
        print(
            f"  round {entry.round_number}: {entry.attacker_power:.2f} vs {entry.defender_power:.2f}"
            f"  held by {entry.holder}  losses A={entry.attacker_losses} D={entry.defender_losses}"
        )
    print(f"winner: {result.winner_id}")
    print(f"attacker left: {result.final_attacker_fleet.composition}")
    print(f"defender left: {result.final_defender_fleet.composition}")
    return 0


def _assess(args: argparse.Namespace) -> int:
    resolver = _resolver(args)
    calc = FleetPowerCalculator(resolver.catalog, resolver.settings)
    fleet = FleetSnapshot(
        owner_id="fleet",
        composition=parse_composition(args.fleet),
        experience=args.experience,
        morale=args.morale,
    )
    a = calc.assess(fleet)
    print(json.dumps({
        "total_attack": a.total_attack,
        "total_health": a.total_health,
        "effective_power": a.effective_power,
        "ship_count": a.ship_count,
        "experience_bonus": a.experience_bonus,
        "morale_bonus": a.morale_bonus,
        "empty": a.empty,
    }, indent=2))
    return 0


def _balance(args: argparse.Namespace) -> int:
    if args.report and not args.report.endswith((".json", ".md")):
        print("Report path must end with .json or .md", file=sys.stderr)
        return 2
    harness = BalanceHarness(_resolver(args), trials=args.trials, seed=args.seed, workers=args.workers)
    t0 = time.perf_counter()
    summary = harness.run_all()
    elapsed = max(1e-9, time.perf_counter() - t0)
    report = build_balance_report(summary)
    if args.report:
        with open(args.report, "w", encoding="utf-8") as f:
            f.write(report.to_json() if args.report.endswith(".json") else report.to_markdown())
    if args.print_md:
        print(report.to_markdown())
    else:
        for issue in report.issues:
            print(f"- {issue}")
        print(f"balance run finished in {elapsed:.2f}s")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    handlers = {"resolve": _resolve, "assess": _assess, "balance": _balance}
    try:
        return handlers[args.cmd](args)
    except (CombatEngineError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
