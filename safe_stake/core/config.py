import json
import os
from pathlib import Path
from typing import Any

from safe_stake.core.constants.base import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_TRANSACTION_TIMEOUT,
)

_CONFIG_ENV_KEYS = ("SAFE_STAKE_CONFIG_PATH", "SAFE_STAKE_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_STAKE_SECTION = "stake"

# Environment fallbacks for the "stake" section.
_ENV_RPC_URL = "RPC_URL"
_ENV_SAFE_ADDRESS = "SAFE_ADDRESS"
_ENV_POOL_ADDRESS = "AAVE_POOL_ADDRESS"
_ENV_CHAIN_ID = "CHAIN_ID"
_ENV_AGENT_PRIVATE_KEY = "AGENT_PRIVATE_KEY"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Config file is not valid JSON: {cfg_path}: {exc}") from exc


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_stake_config() -> dict[str, Any]:
    section = CONFIG.get(_STAKE_SECTION, {})
    return section if isinstance(section, dict) else {}


def _stake_value(key: str, env_key: str | None = None) -> Any:
    value = get_stake_config().get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        value = os.environ.get(env_key) if env_key else None
    if isinstance(value, str):
        value = value.strip() or None
    return value


def get_rpc_url() -> str | None:
    return _stake_value("rpc_url", _ENV_RPC_URL)


def get_safe_address() -> str | None:
    return _stake_value("safe_address", _ENV_SAFE_ADDRESS)


def get_pool_address() -> str | None:
    return _stake_value("pool_address", _ENV_POOL_ADDRESS)


def get_chain_id() -> int | None:
    value = _stake_value("chain_id", _ENV_CHAIN_ID)
    return int(value) if value is not None else None


def get_agent_private_key() -> str | None:
    # The environment wins so the key can stay out of config.json entirely.
    value = os.environ.get(_ENV_AGENT_PRIVATE_KEY, "").strip()
    if value:
        return value
    return _stake_value("agent_private_key")


def get_receipt_timeout() -> float:
    value = _stake_value("receipt_timeout")
    return float(value) if value is not None else float(DEFAULT_TRANSACTION_TIMEOUT)


def get_rpc_timeout() -> float:
    value = _stake_value("rpc_timeout")
    return float(value) if value is not None else DEFAULT_HTTP_TIMEOUT


def get_confirmations() -> int:
    value = _stake_value("confirmations")
    return max(1, int(value)) if value is not None else DEFAULT_CONFIRMATIONS


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def get_verify_chain_id() -> bool:
    value = _stake_value("verify_chain_id")
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"stake.verify_chain_id must be a boolean, got {value!r}")
    return bool(value)


def get_multisend_call_only_address() -> str | None:
    return _stake_value("multisend_call_only_address")
