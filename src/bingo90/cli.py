from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from .config import lookup, prize_rules_from_config, resolve_parameters
from .core import BuildParams, CardBuilder, GameRound, PrizePool, WinKind, split_sales
from .core.models import MAX_NUMBER, MIN_NUMBER, BingoCard
from .errors import Bingo90Error
from .logging_setup import setup_logging
from .rng import create_rng, derive_seed, new_seed
from .serialize import build_run_meta, emit_cards_json, emit_report_json, emit_summary_csv, load_cards_json
from .verify import verify as verify_cards
from .version import __version__

app = typer.Typer(help="European 90-ball bingo: cards, draws and payouts")
console = Console()


@app.callback(invoke_without_command=True)
def common_options(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show application version and exit", is_eager=True),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _overrides(**values: Any) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _setup(resolved: Dict[str, Any]) -> None:
    setup_logging(
        level=str(resolved.get("log_level", "INFO")),
        log_file=resolved.get("log_file"),
        json_format=(str(resolved.get("log_format", "text")) == "json"),
        colors=str(resolved.get("colors", "auto")),
    )


def _build(resolved: Dict[str, Any], seed: int):
    params = BuildParams(
        count=int(resolved["count"]),
        series=bool(resolved["series"]),
        seed=seed,
        rng_engine=str(lookup(resolved, "seed.engine", "py_random")),
        max_attempts=int(resolved["max_attempts"]),
        parallelism=int(resolved["parallelism"]),
    )
    return CardBuilder(max_attempts=params.max_attempts).build(params)


def render_card(card: BingoCard) -> Table:
    table = Table(title=card.card_id, show_header=False, show_lines=True)
    for _ in range(9):
        table.add_column(justify="right", width=3)
    for row in card.grid:
        table.add_row(*("" if x is None else str(x) for x in row))
    return table


@app.command()
def generate(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    count: int = typer.Option(None, "--count", "-n", help="Number of cards"),
    series: Optional[bool] = typer.Option(None, "--series/--singles", help="Build six-card series covering 1-90"),
    seed: int = typer.Option(None, "--seed", help="Base seed (random when omitted)"),
    out_cards: str = typer.Option(None, "--out-cards", help="cards.json output path"),
    show: bool = typer.Option(False, "--show", help="Print the cards"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARN|ERROR"),
    colors: str = typer.Option(None, "--colors", help="auto|always|never"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
    no_mkdirs: bool = typer.Option(False, "--no-mkdirs", help="Do not create parent directories"),
) -> None:
    """Generate cards (or series) and write them with audit hashes."""
    cli_overrides = _overrides(
        count=count,
        series=series,
        out_cards=out_cards,
        log_file=log_file,
        log_level=log_level,
        colors=colors,
        **({"seed.value": seed} if seed is not None else {}),
    )
    resolved, params_hash, _cfg_path = resolve_parameters(config_path_str=config, cli_overrides=cli_overrides)
    _setup(resolved)

    seed_value = lookup(resolved, "seed.value")
    seed_value = int(seed_value) if seed_value is not None else new_seed()
    try:
        result = _build(resolved, seed_value)
    except Bingo90Error as exc:
        typer.echo(f"Generation failed: {exc}", err=True)
        raise typer.Exit(code=2)

    if show:
        for card in result.cards:
            console.print(render_card(card))

    out_path = Path(resolved.get("out_cards") or "cards.json")
    run_meta = build_run_meta(
        app_version=__version__,
        params_hash=params_hash,
        seed=seed_value,
        rng_engine=str(lookup(resolved, "seed.engine", "py_random")),
        parallelism=int(resolved["parallelism"]),
    )
    try:
        emit_cards_json(
            out_path,
            cards=result.cards,
            series=result.series,
            run_meta=run_meta,
            mkdirs=not no_mkdirs,
            overwrite=force,
        )
    except FileExistsError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Generated {len(result.cards)} cards in {result.metrics.total_time:.2f}s -> {out_path}")
    typer.echo(f"Cards hash: {result.cards_hash}")


def _play(game: GameRound, draws: Sequence[int]) -> None:
    cards = len(game.detector.card_ids)
    for number in draws:
        game.draw(number)
        if len(game.records(WinKind.BINGO)) == cards:
            break


@app.command()
def simulate(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    count: int = typer.Option(None, "--count", "-n", help="Number of cards in play"),
    series: Optional[bool] = typer.Option(None, "--series/--singles", help="Play with six-card series"),
    seed: int = typer.Option(None, "--seed", help="Base seed for cards and draws"),
    sales: int = typer.Option(None, "--sales", help="Card sales in cents; sets the base pool"),
    base_pool: int = typer.Option(None, "--base-pool", help="Base pool in cents (overrides --sales)"),
    jackpot: int = typer.Option(None, "--jackpot", help="Jackpot carried into the round, in cents"),
    out_report: str = typer.Option(None, "--out-report", help="Write the round report JSON here"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARN|ERROR"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
) -> None:
    """Play an offline round with a seeded draw order and settle it."""
    cli_overrides = _overrides(
        count=count,
        series=series,
        out_report=out_report,
        log_file=log_file,
        log_level=log_level,
        **({"seed.value": seed} if seed is not None else {}),
        **({"prizes.sales": sales} if sales is not None else {}),
        **({"prizes.base_pool": base_pool} if base_pool is not None else {}),
        **({"prizes.jackpot": jackpot} if jackpot is not None else {}),
    )
    resolved, params_hash, _cfg_path = resolve_parameters(config_path_str=config, cli_overrides=cli_overrides)
    _setup(resolved)
    rules = prize_rules_from_config(resolved)

    seed_value = lookup(resolved, "seed.value")
    seed_value = int(seed_value) if seed_value is not None else new_seed()
    engine = str(lookup(resolved, "seed.engine", "py_random"))

    try:
        result = _build(resolved, seed_value)
        game = GameRound(f"sim-{seed_value}", result.cards)
        draws = list(range(MIN_NUMBER, MAX_NUMBER + 1))
        create_rng(engine, derive_seed(seed_value, 0, "draws")).shuffle(draws)
        _play(game, draws)
        game.close()

        contribution = 0
        pool_value = lookup(resolved, "prizes.base_pool")
        if pool_value is None:
            pool_value, contribution = split_sales(int(lookup(resolved, "prizes.sales", 0)), rules)
        pool = PrizePool(base_pool=int(pool_value), jackpot=int(lookup(resolved, "prizes.jackpot", 0)))
        payouts = game.settle(pool, rules)
    except (Bingo90Error, ValueError) as exc:
        typer.echo(f"Simulation failed: {exc}", err=True)
        raise typer.Exit(code=2)

    table = Table(title=f"Round {game.round_id}: {len(game.ledger)} draws")
    for column in ("card", "kind", "draws", "row"):
        table.add_column(column)
    for rec in game.records():
        row_idx = "" if rec.winning_row_index is None else str(rec.winning_row_index)
        table.add_row(rec.card_id, rec.kind.value, str(rec.draw_count_at_win), row_idx)
    console.print(table)
    typer.echo(
        f"Paid {payouts.total_paid}, house keeps {payouts.house_retained}, "
        f"jackpot {'won' if payouts.jackpot_won else 'carried'}; next jackpot {payouts.next_jackpot + contribution}"
    )

    if resolved.get("out_report"):
        report = {
            "run_meta": build_run_meta(
                app_version=__version__,
                params_hash=params_hash,
                seed=seed_value,
                rng_engine=engine,
                parallelism=int(resolved["parallelism"]),
            ),
            "round_id": game.round_id,
            "cards": [c.to_dict() for c in result.cards],
            "draws": list(game.ledger.snapshot()),
            "wins": [r.to_dict() for r in game.records()],
            "pool": {"base_pool": pool.base_pool, "jackpot": pool.jackpot, "jackpot_contribution": contribution},
            "payouts": payouts.to_dict(),
        }
        try:
            emit_report_json(Path(resolved["out_report"]), report=report, mkdirs=True, overwrite=force)
        except FileExistsError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1)


@app.command()
def verify(
    cards_file: str = typer.Option(..., "--cards", help="Path to cards.json"),
    out_report: str = typer.Option(None, "--out-report", help="Write the audit report JSON here"),
    summary_csv: str = typer.Option(None, "--summary-csv", help="Per-number frequency CSV"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
) -> None:
    """Re-check every card and series in a cards file."""
    loaded = load_cards_json(Path(cards_file))
    report = verify_cards(loaded.cards, loaded.series, loaded.series_card_ids)

    uniformity = report["uniformity"]
    typer.echo(f"Cards: {report['cards']}, series: {report['series']}")
    typer.echo(f"Duplicate cards: {len(report['duplicate_cards'])}")  # type: ignore[arg-type]
    typer.echo(f"Uniformity p-value: {uniformity['p_value']}")  # type: ignore[index]
    for card_id, problems in report["card_violations"].items():  # type: ignore[union-attr]
        for problem in problems:
            typer.echo(f"card {card_id}: {problem}", err=True)
    for series_id, problems in report["series_violations"].items():  # type: ignore[union-attr]
        for problem in problems:
            typer.echo(f"series {series_id}: {problem}", err=True)

    if out_report:
        emit_report_json(Path(out_report), report=report, mkdirs=True, overwrite=force)
    if summary_csv:
        emit_summary_csv(Path(summary_csv), freqs=report["frequencies"], mkdirs=True, overwrite=force)  # type: ignore[arg-type]

    raise typer.Exit(code=0 if report["ok"] else 1)


def main(_argv: Optional[list[str]] = None) -> int:
    try:
        app(standalone_mode=True)
        return 0
    except SystemExit as e:
        return int(e.code) if e.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
