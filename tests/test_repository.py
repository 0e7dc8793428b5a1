import json

import pytest

from spacecommand.errors import InvalidComposition
from spacecommand.models import DEFENDER, FleetSnapshot, RetreatOrder
from spacecommand.repository import fleet_row_update, record_to_row, snapshot_from_row
from spacecommand.simulators.combat import resolve_combat


def fleet_row(**overrides):
    row = {
        "id": 12,
        "empire_id": 3,
        "ships": json.dumps([
            {"type": "fighter", "quantity": 4, "damage": 0, "experience": 5},
            {"type": "scout", "quantity": 2, "damage": 50, "experience": 0},
            {"type": "fighter", "quantity": 1, "damage": 0, "experience": 5},
        ]),
        "experience": 30,
        "morale": 90,
        "supplies": 40,
        "status": "idle",
    }
    row.update(overrides)
    return row


def test_snapshot_from_row():
    snap = snapshot_from_row(fleet_row())
    assert snap.owner_id == 3 and snap.fleet_id == 12
    assert snap.composition == {"fighter": 5, "scout": 2}
    assert snap.damage == {"scout": pytest.approx(0.5)}
    assert (snap.experience, snap.morale, snap.supplies) == (30, 90, 40)

def test_snapshot_accepts_decoded_ships_and_defaults():
    snap = snapshot_from_row({"id": 1, "empire_id": 2, "ships": [{"type": "cruiser", "quantity": 1}]})
    assert snap.composition == {"cruiser": 1}
    assert (snap.experience, snap.morale, snap.supplies) == (0, 100, 100)

@pytest.mark.parametrize("ships", ["not json", json.dumps({"type": "scout"}), json.dumps([{"quantity": 1}])])
def test_snapshot_rejects_malformed_ships(ships):
    with pytest.raises(InvalidComposition):
        snapshot_from_row(fleet_row(ships=ships))

def test_snapshot_rejects_bad_columns():
    with pytest.raises(InvalidComposition):
        snapshot_from_row(fleet_row(morale="high"))

def test_fleet_row_update_keeps_ship_experience():
    row = fleet_row()
    snap = snapshot_from_row(row)
    snap.composition["fighter"] = 3
    update = fleet_row_update(row, snap)
    assert update["status"] == "idle"
    assert {"type": "fighter", "quantity": 3, "damage": 0.0, "experience": 5} in update["ships"]
    scout = next(s for s in update["ships"] if s["type"] == "scout")
    assert scout["damage"] == pytest.approx(50.0)

def test_fleet_row_update_marks_destroyed():
    row = fleet_row()
    snap = FleetSnapshot(owner_id=3, fleet_id=12, composition={"fighter": 0, "scout": 0})
    update = fleet_row_update(row, snap)
    assert update["ships"] == []
    assert update["status"] == "destroyed"

def test_record_to_row():
    attacker = snapshot_from_row(fleet_row())
    defender = snapshot_from_row(fleet_row(id=13, empire_id=4, ships=[{"type": "corvette", "quantity": 2}]))
    record = resolve_combat(attacker, defender, "bombard", seed=5, location={"x": 4, "y": -1})
    row = record_to_row(record)
    assert row["attacker_id"] == 3 and row["defender_id"] == 4
    assert row["attacker_fleet_id"] == 12 and row["defender_fleet_id"] == 13
    assert row["type"] == "bombard"
    assert row["status"] == "completed"
    assert json.loads(row["location"]) == {"x": 4, "y": -1}
    assert len(json.loads(row["rounds"])) == len(record.rounds)
    assert json.loads(row["result"])["winner_id"] == record.winner_id
    assert row["end_time"] >= row["start_time"]

def test_snapshot_dict_roundtrip():
    snap = snapshot_from_row(fleet_row())
    again = FleetSnapshot.from_dict(snap.to_dict())
    assert again.composition == snap.composition
    assert again.damage == snap.damage
    assert (again.owner_id, again.fleet_id, again.morale) == (3, 12, 90)

def test_snapshot_from_dict_rejects_bad_composition():
    with pytest.raises(InvalidComposition):
        FleetSnapshot.from_dict({"owner_id": 1, "composition": ["scout"]})
    with pytest.raises(InvalidComposition):
        FleetSnapshot.from_dict({"owner_id": 1, "composition": {"scout": "lots"}})

def test_record_to_row_without_location():
    record = resolve_combat(
        FleetSnapshot(owner_id=1, composition={"scout": 1}),
        FleetSnapshot(owner_id=2, composition={"scout": 1}),
        seed=2,
    )
    assert record_to_row(record)["location"] is None

def test_record_to_row_keeps_retreating_side():
    attacker = snapshot_from_row(fleet_row())
    defender = snapshot_from_row(fleet_row(id=13, empire_id=4, ships=[{"type": "fighter", "quantity": 5}]))
    record = resolve_combat(attacker, defender, seed=6, retreat=RetreatOrder(side=DEFENDER, after_round=1))
    result = json.loads(record_to_row(record)["result"])
    assert result["retreated_side"] == DEFENDER
    assert result["winner_id"] is None
