# tollgate_node/config.py
import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

log = logging.getLogger(__name__)

CONFIG_FILENAME = "tollgate_config.yaml"

# -------- Defaults --------
_DEFAULT: Dict[str, Any] = {
    "content": {
        "url_max_bytes": 256,
        "acl_capacity": 100,
        # False makes getContent public for every caller
        "reads_are_gated": True,
    },
    "governance": {
        "quorum": 100,
        "description_max_bytes": 256,
        "balance_gated_votes": True,
        # "cumulative" | "single"
        "vote_policy": "cumulative",
        # 0 = never closes
        "voting_period_sec": 0,
    },
    "profiles": {"username_max_bytes": 32, "bio_max_bytes": 256},
    "ledger": {
        # identity -> amount, credited once into an empty state
        "genesis_balances": {},
    },
    "persistence": {
        # "json" | "memory"
        "driver": "json",
        "data_dir": "data",
        "filename": "tollgate_state.json",
        "keep_backups": 2,
    },
    "logging": {"level": "INFO"},
}


def _bool(val: str) -> bool:
    v = val.strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {val!r}")


# -------- ENV overrides --------
_ENV_MAP = {
    ("governance", "quorum"): ("TOLLGATE_QUORUM", int),
    ("governance", "balance_gated_votes"): ("TOLLGATE_BALANCE_GATED_VOTES", _bool),
    ("governance", "vote_policy"): ("TOLLGATE_VOTE_POLICY", str),
    ("governance", "voting_period_sec"): ("TOLLGATE_VOTING_PERIOD_SEC", int),
    ("content", "reads_are_gated"): ("TOLLGATE_CONTENT_READS_GATED", _bool),
    ("persistence", "data_dir"): ("TOLLGATE_DATA_DIR", str),
    ("logging", "level"): ("TOLLGATE_LOG_LEVEL", str),
}


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULT)


def deep_merge(base: Dict[str, Any], overlay: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None or val == "":
            continue
        try:
            casted = cast(val)
        except ValueError:
            log.warning("Ignoring %s=%r: expected %s", env_name, val, getattr(cast, "__name__", cast))
            continue
        cfg.setdefault(section, {})
        cfg[section][key] = casted
    return cfg


def load_config(repo_root: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Loads repo_root/tollgate_config.yaml over the defaults, then applies
    ENV overrides, then `overrides` (used by tests and the CLI).
    Falls back to defaults if the file doesn't exist or can't be parsed.
    """
    path = os.path.join(repo_root, CONFIG_FILENAME)
    cfg = default_config()

    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            log.warning("Could not read %s; using defaults", path, exc_info=True)
            data = {}
        if isinstance(data, dict):
            cfg = deep_merge(cfg, data)
        else:
            log.warning("%s is not a mapping; using defaults", path)

    cfg = _apply_env_overrides(cfg)
    return deep_merge(cfg, overrides)


# -------- Small helpers used by the executor / CLI --------
def get_persistence_driver(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("persistence", {}).get("driver", "json")).strip().lower()


def get_data_dir(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("persistence", {}).get("data_dir", "data"))


def get_log_level(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("logging", {}).get("level", "INFO")).upper()


def get_genesis_balances(cfg: Dict[str, Any]) -> Dict[str, int]:
    raw = cfg.get("ledger", {}).get("genesis_balances") or {}
    return {str(k): int(v) for k, v in raw.items()}
