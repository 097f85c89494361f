from __future__ import annotations

import copy
import hashlib
import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Tuple

import yaml

from .core.prizes import PrizeRules

ENV_PREFIX = "BINGO90_"

DEFAULTS: Dict[str, Any] = {
    "count": 6,
    "series": False,
    "max_attempts": 2000,
    "parallelism": 1,
    "seed": {"engine": "py_random"},
    "prizes": {
        "quine_percent": 15,
        "bingo_percent": 50,
        "jackpot_threshold": 40,
        "jackpot_contribution_percent": 10,
    },
    "log_level": "INFO",
    "log_format": "text",
    "colors": "auto",
}

# keys that change generated cards or payouts; paths and logging stay out of the hash
CONTRACT_KEYS = (
    "count",
    "series",
    "max_attempts",
    "seed.engine",
    "seed.value",
    "prizes.quine_percent",
    "prizes.bingo_percent",
    "prizes.jackpot_threshold",
    "prizes.jackpot_contribution_percent",
)

PATH_KEYS = ("out_cards", "out_report", "log_file", "summary_csv")


def _as_int(raw: str) -> Any:
    try:
        return int(raw)
    except ValueError:
        return raw


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# BINGO90_<NAME> -> (dotted config key, parser)
ENV_VARS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "COUNT": ("count", _as_int),
    "SERIES": ("series", _as_bool),
    "MAX_ATTEMPTS": ("max_attempts", _as_int),
    "PARALLELISM": ("parallelism", _as_int),
    "SEED_VALUE": ("seed.value", _as_int),
    "SEED_ENGINE": ("seed.engine", str),
    "QUINE_PERCENT": ("prizes.quine_percent", _as_int),
    "BINGO_PERCENT": ("prizes.bingo_percent", _as_int),
    "JACKPOT_THRESHOLD": ("prizes.jackpot_threshold", _as_int),
    "JACKPOT_CONTRIBUTION_PERCENT": ("prizes.jackpot_contribution_percent", _as_int),
    "BASE_POOL": ("prizes.base_pool", _as_int),
    "JACKPOT": ("prizes.jackpot", _as_int),
    "SALES": ("prizes.sales", _as_int),
    "LOG_LEVEL": ("log_level", str),
    "LOG_FORMAT": ("log_format", str),
    "LOG_FILE": ("log_file", str),
    "COLORS": ("colors", str),
    "OUT_CARDS": ("out_cards", str),
    "OUT_REPORT": ("out_report", str),
    "SUMMARY_CSV": ("summary_csv", str),
}


def load_config_file(config_path: Path | None) -> Dict[str, Any]:
    """Read a YAML or JSON config file; the top level must be a mapping."""
    if config_path is None:
        return {}
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config extension: {suffix}")
    if not isinstance(data, dict):
        raise ValueError(f"Top-level config in {config_path.name} must be a mapping")
    return data


def env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    found: Dict[str, Any] = {}
    for name, (key, parse) in ENV_VARS.items():
        raw = env.get(ENV_PREFIX + name)
        if raw is not None:
            found[key] = parse(raw)
    return found


def lookup(resolved: Mapping[str, Any], dotted_key: str, default: Any = None) -> Any:
    cur: Any = resolved
    for part in dotted_key.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return default
        cur = cur[part]
    return cur


def merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``overrides`` into a copy of ``base``; dotted keys address nested mappings."""
    merged: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        *parents, leaf = key.split(".")
        target = merged
        for part in parents:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        if isinstance(value, Mapping) and isinstance(target.get(leaf), dict):
            target[leaf] = merge(target[leaf], value)
        else:
            target[leaf] = copy.deepcopy(value)
    return merged


def compute_params_hash(resolved: Mapping[str, Any]) -> str:
    contract = {k: lookup(resolved, k) for k in CONTRACT_KEYS if lookup(resolved, k) is not None}
    payload = json.dumps(contract, ensure_ascii=True, sort_keys=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


def resolve_paths(resolved: Dict[str, Any], config_file: Path | None, cli_keys: set) -> Dict[str, Any]:
    """Make output paths absolute.

    Paths given on the command line are relative to the CWD; everything else
    is relative to the config file's directory when there is one.
    """
    result = dict(resolved)
    for key in PATH_KEYS:
        value = resolved.get(key)
        if not value:
            result.pop(key, None)
            continue
        path = Path(str(value))
        if not path.is_absolute():
            base = Path.cwd() if key in cli_keys or config_file is None else config_file.parent
            path = (base / path).resolve()
        result[key] = str(path)
    return result


def resolve_parameters(
    *,
    config_path_str: str | None,
    cli_overrides: Mapping[str, Any],
    env: Mapping[str, str] | None = None,
) -> Tuple[Dict[str, Any], str, Path | None]:
    """Resolve parameters with precedence CLI > ENV > config > defaults.

    Returns (resolved_params, params_hash, config_path)
    """
    config_path = Path(config_path_str).resolve() if config_path_str else None
    merged = DEFAULTS
    for layer in (
        load_config_file(config_path),
        env_overrides(os.environ if env is None else env),
        cli_overrides,
    ):
        merged = merge(merged, layer)
    merged = resolve_paths(merged, config_path, set(cli_overrides))
    return merged, compute_params_hash(merged), config_path


def prize_rules_from_config(resolved: Mapping[str, Any]) -> PrizeRules:
    defaults = PrizeRules()
    return PrizeRules(
        quine_percent=int(lookup(resolved, "prizes.quine_percent", defaults.quine_percent)),
        bingo_percent=int(lookup(resolved, "prizes.bingo_percent", defaults.bingo_percent)),
        jackpot_threshold=int(lookup(resolved, "prizes.jackpot_threshold", defaults.jackpot_threshold)),
        jackpot_contribution_percent=int(
            lookup(resolved, "prizes.jackpot_contribution_percent", defaults.jackpot_contribution_percent)
        ),
    )
