from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from bingo90.cli import app

runner = CliRunner()


def test_generate_then_verify(tmp_path: Path):
    out = tmp_path / "cards.json"
    result = runner.invoke(app, ["generate", "--count", "9", "--series", "--seed", "42", "--out-cards", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert len(data["cards"]) == 9
    assert len(data["series"]) == 2
    assert data["run_meta"]["seed"] == 42
    assert data["cards_hash"].startswith("sha256:")

    report = tmp_path / "report.json"
    result = runner.invoke(app, ["verify", "--cards", str(out), "--out-report", str(report)])
    assert result.exit_code == 0, result.output
    assert json.loads(report.read_text(encoding="utf-8"))["ok"] is True


def test_generate_refuses_overwrite(tmp_path: Path):
    out = tmp_path / "cards.json"
    out.write_text("{}", encoding="utf-8")
    result = runner.invoke(app, ["generate", "--count", "1", "--seed", "1", "--out-cards", str(out)])
    assert result.exit_code == 1


def test_verify_fails_on_tampered_card(tmp_path: Path):
    out = tmp_path / "cards.json"
    runner.invoke(app, ["generate", "--count", "2", "--seed", "3", "--out-cards", str(out)])
    data = json.loads(out.read_text(encoding="utf-8"))
    row = data["cards"][0]["grid"][0]
    idx = next(i for i, v in enumerate(row) if v is not None)
    row[idx] = None
    out.write_text(json.dumps(data), encoding="utf-8")
    result = runner.invoke(app, ["verify", "--cards", str(out)])
    assert result.exit_code == 1


def test_simulate_writes_report(tmp_path: Path):
    report = tmp_path / "round.json"
    result = runner.invoke(
        app,
        [
            "simulate",
            "--count",
            "12",
            "--series",
            "--seed",
            "7",
            "--base-pool",
            "10000",
            "--jackpot",
            "500",
            "--out-report",
            str(report),
        ],
    )
    assert result.exit_code == 0, result.output
    data = json.loads(report.read_text(encoding="utf-8"))
    assert len(data["cards"]) == 12
    bingo_cards = {w["card_id"] for w in data["wins"] if w["kind"] == "bingo"}
    assert len(bingo_cards) == 12
    payouts = data["payouts"]
    jackpot_used = 500 if payouts["jackpot_won"] else 0
    assert payouts["total_paid"] + payouts["house_retained"] == 10000 + jackpot_used


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip()
