"""Adapters between stored rows and engine data.

The engine never touches storage.  These helpers translate the ``fleets`` row
shape into a :class:`FleetSnapshot`, and a finished :class:`CombatRecord` (plus
the post-battle fleets) back into row dictionaries a repository can write in
one transaction.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

from .errors import InvalidComposition
from .models import CombatRecord, FleetSnapshot, parse_quantity


def _ships_list(raw: Any) -> List[Dict[str, Any]]:
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise InvalidComposition("Fleet 'ships' column is not valid JSON") from exc
    if not isinstance(raw, list):
        raise InvalidComposition("Fleet 'ships' must be a list of ship entries")
    return raw


def _column(row: Dict[str, Any], key: str, default: int) -> int:
    value = row.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidComposition(f"Fleet column '{key}' must be an integer, got {value!r}") from exc


def snapshot_from_row(row: Dict[str, Any]) -> FleetSnapshot:
    """Build a snapshot from a stored fleet row.

    ``ships`` entries look like ``{"type", "quantity", "damage", "experience"}``
    where ``damage`` is the percent of one ship's hull already lost.  Repeated
    types are summed; the damage of the last entry for a type wins.
    """
    composition: Dict[str, int] = {}
    damage: Dict[str, float] = {}
    for entry in _ships_list(row.get("ships")):
        if not isinstance(entry, dict) or "type" not in entry:
            raise InvalidComposition(f"Malformed ship entry: {entry!r}")
        ship_type = str(entry["type"])
        quantity = parse_quantity(ship_type, entry.get("quantity", 0))
        composition[ship_type] = composition.get(ship_type, 0) + quantity
        percent = float(entry.get("damage", 0) or 0)
        if percent > 0:
            damage[ship_type] = min(percent, 99.999) / 100.0
    return FleetSnapshot(
        owner_id=row.get("empire_id"),
        fleet_id=row.get("id"),
        composition=composition,
        experience=_column(row, "experience", 0),
        morale=_column(row, "morale", 100),
        supplies=_column(row, "supplies", 100),
        damage=damage,
    )


def fleet_row_update(row: Dict[str, Any], snapshot: FleetSnapshot) -> Dict[str, Any]:
    """Column values to write back for a fleet after battle."""
    previous = {
        str(e.get("type")): e for e in _ships_list(row.get("ships")) if isinstance(e, dict)
    }
    ships: List[Dict[str, Any]] = []
    for ship_type, quantity in snapshot.composition.items():
        if quantity <= 0:
            continue
        ships.append({
            "type": ship_type,
            "quantity": quantity,
            "damage": round(snapshot.damage.get(ship_type, 0.0) * 100, 3),
            "experience": previous.get(ship_type, {}).get("experience", 0),
        })
    return {
        "ships": ships,
        "experience": snapshot.experience,
        "morale": snapshot.morale,
        "supplies": snapshot.supplies,
        "status": "destroyed" if snapshot.is_empty() else row.get("status", "idle"),
    }


def record_to_row(record: CombatRecord) -> Dict[str, Any]:
    """``combat_records`` columns; ``rounds`` and ``result`` are JSON text."""
    data = record.to_dict()
    return {
        "attacker_id": record.attacker_id,
        "defender_id": record.defender_id,
        "attacker_fleet_id": record.attacker_fleet_id,
        "defender_fleet_id": record.defender_fleet_id,
        "location": json.dumps(record.location) if record.location is not None else None,
        "type": record.attack_type.value,
        "status": record.status.value,
        "rounds": json.dumps(data["rounds"]),
        "result": json.dumps(data["result"]) if data["result"] is not None else None,
        "start_time": record.start_time,
        "end_time": record.end_time,
    }


__all__ = ["fleet_row_update", "record_to_row", "snapshot_from_row"]
