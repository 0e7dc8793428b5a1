import json

import pytest

from spacecommand.cli import main, parse_composition
from spacecommand.errors import InvalidComposition


def test_parse_composition():
    assert parse_composition("fighter=5, scout=2,fighter=1") == {"fighter": 6, "scout": 2}
    with pytest.raises(InvalidComposition):
        parse_composition("fighter")
    with pytest.raises(InvalidComposition):
        parse_composition("fighter=many")

def test_resolve_json(capsys):
    rc = main(["resolve", "--attacker", "fighter=5", "--defender", "scout=10", "--seed", "7", "--json"])
    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert data["attack_type"] == "assault"
    assert data["status"] == "completed"
    assert data["seed"] == 7

def test_resolve_with_retreat_text(capsys):
    rc = main(["resolve", "--attacker", "cruiser=10", "--defender", "cruiser=10",
               "--seed", "3", "--retreat", "attacker:2"])
    assert rc == 0
    out = capsys.readouterr().out
    assert out.startswith("assault: retreated (retreat) after 2 rounds")
    assert "winner: None" in out

def test_round_cap_flag(capsys):
    rc = main(["resolve", "--attacker", "scout=100", "--defender", "scout=100",
               "--seed", "1", "--round-cap", "1", "--json"])
    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data["rounds"]) == 1
    assert data["result"]["decided_by"] == "round_cap"

def test_config_file_and_env(tmp_path, monkeypatch, capsys):
    cfg = tmp_path / "engine.yaml"
    cfg.write_text("combat:\n  round_cap: 4\n", encoding="utf-8")
    monkeypatch.setenv("SPACECOMMAND__COMBAT__ROUND_CAP", "1")
    rc = main(["resolve", "--config", str(cfg), "--attacker", "scout=100",
               "--defender", "scout=100", "--seed", "2", "--json"])
    assert rc == 0
    assert len(json.loads(capsys.readouterr().out)["rounds"]) == 1

def test_assess(capsys):
    rc = main(["assess", "--fleet", "fighter=5", "--experience", "50"])
    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert data["ship_count"] == 5
    assert data["effective_power"] == pytest.approx(1.875 * 1.1)

def test_custom_catalog(tmp_path, capsys):
    path = tmp_path / "ships.yaml"
    path.write_text("gunboat:\n  cost: 10\n  attack: 2\n  health: 5\n", encoding="utf-8")
    rc = main(["assess", "--catalog", str(path), "--fleet", "gunboat=10"])
    assert rc == 0
    assert json.loads(capsys.readouterr().out)["total_attack"] == 20

def test_engine_errors_return_nonzero(capsys):
    assert main(["resolve", "--attacker", "frigate=1", "--defender", "scout=1"]) == 1
    assert "Unknown ship type 'frigate'" in capsys.readouterr().err
    assert main(["resolve", "--attacker", "scout=0", "--defender", "scout=1"]) == 1

def test_balance_report(tmp_path, capsys):
    out = tmp_path / "balance.md"
    rc = main(["balance", "--trials", "2", "--seed", "5", "--report", str(out)])
    assert rc == 0
    assert out.read_text(encoding="utf-8").startswith("# SpaceCommand Combat Balance Report")
    assert "balance run finished" in capsys.readouterr().out

def test_balance_rejects_unknown_report_suffix(tmp_path):
    assert main(["balance", "--trials", "1", "--report", str(tmp_path / "x.txt")]) == 2
