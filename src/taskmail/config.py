"""
Settings for taskmail, merged from (highest precedence first):

  1. TASKMAIL_* environment variables
  2. a YAML config file ($TASKMAIL_CONFIG or ~/.config/taskmail/config.yml)
  3. built-in defaults
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from taskmail.mail import BACKENDS, BACKEND_WEBMAIL
from taskmail.report import SHORT_DATE_FORMAT
from taskmail.recovery import ConfigError
from taskmail.logs import get_logger

log = get_logger("config")

ENV_PREFIX = "TASKMAIL"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "taskmail" / "config.yml"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "taskmail" / "data"

# setting name -> environment variable
ENV_VARS = {
    "data_dir": f"{ENV_PREFIX}_DATA_DIR",
    "date_format": f"{ENV_PREFIX}_DATE_FORMAT",
    "mail_backend": f"{ENV_PREFIX}_MAIL_BACKEND",
    "draft_dir": f"{ENV_PREFIX}_DRAFT_DIR",
}


class Settings(BaseModel):
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory holding the task blob")
    date_format: str = Field(default=SHORT_DATE_FORMAT, description="strftime format for report dates")
    mail_backend: str = Field(default=BACKEND_WEBMAIL, description="One of webmail, mailto, draft")
    draft_dir: Optional[Path] = Field(default=None, description="Where draft .eml files go; defaults to <data_dir>/drafts")

    @field_validator('data_dir', 'draft_dir')
    @classmethod
    def expand_user(cls, v):
        return v.expanduser() if v is not None else v

    @field_validator('mail_backend')
    @classmethod
    def validate_backend(cls, v):
        v = v.strip().lower()
        if v not in BACKENDS:
            raise ValueError(f"mail_backend must be one of {', '.join(BACKENDS)}, got {v!r}")
        return v

    @field_validator('date_format')
    @classmethod
    def validate_date_format(cls, v):
        if '%' not in v:
            raise ValueError(f"date_format must contain strftime directives, got {v!r}")
        return v

    @model_validator(mode='after')
    def default_draft_dir(self):
        if self.draft_dir is None:
            self.draft_dir = self.data_dir / "drafts"
        return self


def _config_path(path: Union[Path, str, None]) -> Path:
    if path is not None:
        return Path(path).expanduser()
    env_path = os.getenv(f"{ENV_PREFIX}_CONFIG", "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        log.debug(f"No config file at {config_path}")
        return {}
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {config_path} is not valid YAML: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    log.debug(f"Loaded config file {config_path}")
    return data


def _env_overrides() -> Dict[str, str]:
    overrides = {}
    for setting, env_name in ENV_VARS.items():
        value = os.getenv(env_name)
        if value is not None and value.strip() != "":
            overrides[setting] = value.strip()
    return overrides


def load_settings(path: Union[Path, str, None] = None) -> Settings:
    """Build Settings from the config file and environment.

    Raises:
        ConfigError: if the file is unreadable or a value is rejected.
    """
    values = _read_config_file(_config_path(path))
    values.update(_env_overrides())
    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
