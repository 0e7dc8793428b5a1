import json

import pytest

from spacecommand.config import (
    DEFAULT_SETTINGS,
    EngineSettings,
    _deep_merge,
    env_overrides,
    load_configs,
    resolve_settings,
)

def test_deep_merge_simple():
    a = {"combat": {"round_cap": 10, "variance_min": 0.8}, "balance": {"trials": 100}}
    b = {"combat": {"round_cap": 12}, "balance": {"seed": 7}}
    c = _deep_merge(a, b)
    assert c["combat"]["round_cap"] == 12 and c["combat"]["variance_min"] == 0.8
    assert c["balance"]["trials"] == 100 and c["balance"]["seed"] == 7

def test_env_overrides_parsing(monkeypatch):
    monkeypatch.setenv("SPACECOMMAND__COMBAT__ROUND_CAP", "12")
    monkeypatch.setenv("SPACECOMMAND__COMBAT__BOMBARD_MULTIPLIER", "2.5")
    monkeypatch.setenv("SPACECOMMAND__LAB__RELOAD", "true")
    d = env_overrides()
    assert d["combat"]["round_cap"] == 12
    assert d["combat"]["bombard_multiplier"] == 2.5
    assert d["lab"]["reload"] is True

def test_settings_from_config_ignores_unknown_keys():
    s = EngineSettings.from_config({"combat": {"round-cap": "4", "not_a_knob": 1}})
    assert s.round_cap == 4
    assert s.variance_max == DEFAULT_SETTINGS.variance_max

def test_settings_reject_bad_bounds():
    with pytest.raises(ValueError):
        EngineSettings(round_cap=0)
    with pytest.raises(ValueError):
        EngineSettings(variance_min=1.3, variance_max=1.2)
    with pytest.raises(ValueError):
        EngineSettings(min_loss_fraction=0.6, max_loss_fraction=0.5)

def test_resolve_settings_layers_files_env_and_overrides(tmp_path, monkeypatch):
    yml = tmp_path / "base.yaml"
    yml.write_text("combat:\n  round_cap: 6\n  morale_win: 20\n", encoding="utf-8")
    js = tmp_path / "extra.json"
    js.write_text(json.dumps({"combat": {"morale_win": 30}}), encoding="utf-8")
    monkeypatch.setenv("SPACECOMMAND__COMBAT__ROUND_CAP", "8")

    s = resolve_settings([str(yml), str(js)], overrides={"combat": {"morale_loss": -20}})
    assert s.round_cap == 8
    assert s.morale_win == 30
    assert s.morale_loss == -20

def test_load_configs_rejects_non_mapping(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_configs([str(bad)])
