from __future__ import annotations

import os
from pathlib import Path

from bingo90.config import prize_rules_from_config, resolve_parameters


def test_env_precedence_over_config(tmp_path: Path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("count: 12\nseries: true\n", encoding="utf-8")
    monkeypatch.setenv("BINGO90_COUNT", "18")

    resolved, params_hash, _ = resolve_parameters(config_path_str=str(cfg), cli_overrides={}, env=os.environ)
    assert resolved["count"] == 18
    assert resolved["series"] is True
    assert params_hash.startswith("sha256:")


def test_cli_precedence_over_env(tmp_path: Path, monkeypatch):
    cfg = tmp_path / "config.json"
    cfg.write_text('{"count": 12}', encoding="utf-8")
    monkeypatch.setenv("BINGO90_COUNT", "18")

    resolved, _hash, _ = resolve_parameters(config_path_str=str(cfg), cli_overrides={"count": 24}, env=os.environ)
    assert resolved["count"] == 24


def test_nested_prize_settings_merge(tmp_path: Path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("prizes:\n  jackpot_threshold: 35\n", encoding="utf-8")
    env = {"BINGO90_QUINE_PERCENT": "20", "BINGO90_SEED_VALUE": "7"}

    resolved, _hash, _ = resolve_parameters(config_path_str=str(cfg), cli_overrides={}, env=env)
    rules = prize_rules_from_config(resolved)
    assert rules.jackpot_threshold == 35
    assert rules.quine_percent == 20
    assert rules.bingo_percent == 50
    assert resolved["seed"] == {"engine": "py_random", "value": 7}


def test_path_normalization_cli_vs_config(tmp_path: Path, monkeypatch):
    cfg_dir = tmp_path / "cfg"
    cfg_dir.mkdir()
    cfg = cfg_dir / "conf.yaml"
    cfg.write_text("out_cards: cards.json\n", encoding="utf-8")

    monkeypatch.chdir(tmp_path)
    resolved, _hash, _ = resolve_parameters(
        config_path_str=str(cfg),
        cli_overrides={"out_report": "rep.json"},
        env={},
    )
    assert Path(resolved["out_cards"]).parent == cfg_dir.resolve()
    assert Path(resolved["out_report"]).parent == tmp_path.resolve()


def test_params_hash_ignores_output_and_logging():
    base = {"count": 30, "series": True, "seed.value": 20250824}
    _, h1, _ = resolve_parameters(config_path_str=None, cli_overrides=base, env={})
    _, h2, _ = resolve_parameters(
        config_path_str=None, cli_overrides={**base, "log_level": "DEBUG", "out_cards": "x.json"}, env={}
    )
    _, h3, _ = resolve_parameters(config_path_str=None, cli_overrides={**base, "count": 31}, env={})
    assert h1 == h2
    assert h1 != h3
