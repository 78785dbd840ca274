"""Pydantic settings loaded from .env, with conf.json overlay."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# conf.json: runtime config kept in the data directory
# ---------------------------------------------------------------------------


def get_switch_dir() -> Path:
    """Resolve the data directory. DYNAMIC_SWITCH_DIR env var or ~/.config/dynamic-switch."""
    d = os.environ.get("DYNAMIC_SWITCH_DIR", "")
    return Path(d).expanduser() if d else Path.home() / ".config" / "dynamic-switch"


class SwitchConf(BaseModel):
    log_level: str = ""
    log_file: str = ""
    default_number_of_outputs: int | None = None
    cors_allow_all_origins: bool | None = None  # None = use Settings default


_logger = logging.getLogger(__name__)


def load_conf() -> SwitchConf:
    """Load conf.json from the data directory."""
    conf_path = get_switch_dir() / "conf.json"
    if conf_path.exists():
        try:
            return SwitchConf.model_validate_json(conf_path.read_text())
        except Exception:
            _logger.warning("Failed to parse %s, using defaults", conf_path, exc_info=True)
    return SwitchConf()


def save_conf(config: SwitchConf) -> None:
    """Save conf.json to the data directory."""
    switch_dir = get_switch_dir()
    switch_dir.mkdir(parents=True, exist_ok=True)
    (switch_dir / "conf.json").write_text(config.model_dump_json(indent=2))


# ---------------------------------------------------------------------------
# Bootstrap: load .env, load conf.json
# ---------------------------------------------------------------------------

_env_file = BASE_DIR.parent / ".env"
load_dotenv(_env_file)
_conf = load_conf()

# ---------------------------------------------------------------------------
# Settings (pydantic-settings): .env / env vars override conf.json defaults
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    LOG_LEVEL: str = _conf.log_level or "INFO"
    LOG_FILE: str = _conf.log_file or ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    # Used when numberOfOutputs is missing or not a number.
    DEFAULT_NUMBER_OF_OUTPUTS: int = (
        _conf.default_number_of_outputs if _conf.default_number_of_outputs is not None else 2
    )

    CORS_ALLOW_ALL_ORIGINS: bool = (
        _conf.cors_allow_all_origins if _conf.cors_allow_all_origins is not None else True
    )

    model_config = ConfigDict(
        env_file=str(BASE_DIR.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
