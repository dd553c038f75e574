from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import json
import logging

from .conflicts import DEFAULT_UNBIND_INPUT, ConflictPolicy
from .errors import ConfigError
from .inputs import encode_input, normalize_input
from .layout import MAX_COLUMNS, MIN_ROWS


@dataclass
class RebinderConfig:
    players: int = 2
    conflict_policy: ConflictPolicy = ConflictPolicy.SWAP
    unbind_input: str | None = DEFAULT_UNBIND_INPUT
    custom_actions: dict[int, list[str]] = field(default_factory=dict)
    max_columns: int = MAX_COLUMNS
    min_rows: int = MIN_ROWS


def default_config_data() -> dict[str, object]:
    return {
        "players": 2,
        "conflict_policy": ConflictPolicy.SWAP.value,
        "unbind_input": encode_input(DEFAULT_UNBIND_INPUT),
        "custom_actions": {
            "0": ["Next Loadout"],
            "1": ["Next Loadout"],
        },
        "max_columns": MAX_COLUMNS,
        "min_rows": MIN_ROWS,
    }


def load_config(config_path: Path, log: logging.Logger | None = None) -> RebinderConfig:
    config_path = Path(config_path)
    logger = log or logging.getLogger("rebinder.config")

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(default_config_data(), indent=2), encoding="utf-8")
        logger.info("config_created path=%s", config_path)

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError("Failed to read config", path=str(config_path)) from exc
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be an object", path=str(config_path))

    defaults = default_config_data()
    try:
        players = int(raw.get("players", defaults["players"]))
        max_columns = int(raw.get("max_columns", defaults["max_columns"]))
        min_rows = int(raw.get("min_rows", defaults["min_rows"]))
    except (TypeError, ValueError) as exc:
        raise ConfigError("Config numbers must be integers", path=str(config_path)) from exc
    if players < 1:
        raise ConfigError("players must be at least 1", path=str(config_path), players=players)
    if max_columns < 1 or min_rows < 1:
        raise ConfigError(
            "grid bounds must be positive",
            path=str(config_path),
            max_columns=max_columns,
            min_rows=min_rows,
        )

    policy_raw = raw.get("conflict_policy", defaults["conflict_policy"])
    try:
        policy = ConflictPolicy.parse(policy_raw)
    except ValueError:
        logger.warning(
            "config_invalid_policy policy=%s fallback=%s path=%s",
            policy_raw,
            ConflictPolicy.SWAP.value,
            config_path,
        )
        policy = ConflictPolicy.SWAP

    custom_actions: dict[int, list[str]] = {}
    custom_raw = raw.get("custom_actions", {})
    if not isinstance(custom_raw, dict):
        logger.warning("config_invalid_custom_actions path=%s", config_path)
        custom_raw = {}
    for slot_raw, names in custom_raw.items():
        try:
            slot = int(slot_raw)
        except (TypeError, ValueError):
            slot = -1
        if not 0 <= slot < players:
            logger.warning("config_invalid_player_slot slot=%s players=%s path=%s", slot_raw, players, config_path)
            continue
        if not isinstance(names, list):
            logger.warning("config_invalid_action_list slot=%s path=%s", slot_raw, config_path)
            continue
        custom_actions[slot] = [str(n) for n in names if str(n).strip()]

    cfg = RebinderConfig(
        players=players,
        conflict_policy=policy,
        unbind_input=normalize_input(raw.get("unbind_input", defaults["unbind_input"])),
        custom_actions=custom_actions,
        max_columns=max_columns,
        min_rows=min_rows,
    )
    logger.info(
        "config_loaded path=%s players=%s policy=%s unbind=%s custom_actions=%s",
        config_path,
        cfg.players,
        cfg.conflict_policy.value,
        cfg.unbind_input,
        cfg.custom_actions,
    )
    return cfg


def save_config(config_path: Path, config: RebinderConfig, log: logging.Logger | None = None) -> None:
    config_path = Path(config_path)
    logger = log or logging.getLogger("rebinder.config")
    payload = {
        "players": config.players,
        "conflict_policy": config.conflict_policy.value,
        "unbind_input": encode_input(config.unbind_input),
        "custom_actions": {str(slot): list(names) for slot, names in sorted(config.custom_actions.items())},
        "max_columns": config.max_columns,
        "min_rows": config.min_rows,
    }
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("config_saved path=%s policy=%s unbind=%s", config_path, payload["conflict_policy"], payload["unbind_input"])
