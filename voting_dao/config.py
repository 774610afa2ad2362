# voting_dao/config.py
import copy
import logging
import os
from typing import Any, Dict

import yaml

CONFIG_FILENAME = "dao_config.yaml"

# -------- Defaults (non-secret) --------
_DEFAULT: Dict[str, Any] = {
    "persistence": {"state_file": "dao_state.json", "keep_backups": 2},
    "dao": {
        # deployer / chairman default to a fixed dev account when unset
        "deployer": "0x" + "11" * 20,
        "chairman": "",
        "minimum_quorum": 30,  # percent
        "debating_period_sec": 3 * 24 * 60 * 60,
    },
    "token": {
        "name": "TestToken",
        "symbol": "TST",
        "decimals": 18,
        "initial_supply": 1_000_000 * 10**18,
    },
    "security": {
        "chain_id": "dao-dev",
        "require_signed_tx": False,
        # enables POST /dev/increase-time
        "dev_tools": True,
    },
    "clock": {"mode": "system"},
    "logging": {"level": "INFO"},
    "server": {"host": "127.0.0.1", "port": 8000},
}

_BOOL_TRUE = {"1", "true", "yes", "on"}


def _bool(val: str) -> bool:
    return str(val).strip().lower() in _BOOL_TRUE


# -------- ENV overrides --------
_ENV_MAP = {
    ("dao", "minimum_quorum"): ("DAO_MINIMUM_QUORUM", int),
    ("dao", "debating_period_sec"): ("DAO_DEBATING_PERIOD_SEC", int),
    ("dao", "chairman"): ("DAO_CHAIRMAN", str),
    ("dao", "deployer"): ("DAO_DEPLOYER", str),
    ("security", "require_signed_tx"): ("DAO_REQUIRE_SIGNED_TX", _bool),
    ("security", "dev_tools"): ("DAO_DEV_TOOLS", _bool),
    ("security", "chain_id"): ("DAO_CHAIN_ID", str),
    ("logging", "level"): ("DAO_LOG_LEVEL", str),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            logging.getLogger(__name__).warning("Ignoring %s=%r (not a valid %s)", env_name, val, cast.__name__)
            continue
        cfg.setdefault(section, {})
        cfg[section][key] = casted
    return cfg


def load_config(repo_root: str) -> Dict[str, Any]:
    """
    Loads the YAML config from repo_root/dao_config.yaml.
    Returns defaults if the file doesn't exist or can't be parsed.
    Also applies ENV overrides for the keys in _ENV_MAP.
    """
    path = os.path.join(repo_root, CONFIG_FILENAME)
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.getLogger(__name__).warning("Ignoring %s: %s", path, e)
            data = {}
        if isinstance(data, dict):
            cfg = _deep_merge(cfg, data)

    return _apply_env_overrides(cfg)


def configure_logging(cfg: Dict[str, Any]) -> None:
    level = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


# -------- Small helpers used by the app --------
def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))


def get_chain_id(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("security", {}).get("chain_id", "dao-dev"))


def dev_tools_enabled(cfg: Dict[str, Any]) -> bool:
    return bool(cfg.get("security", {}).get("dev_tools", False))
