from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

MIB = 1024 * 1024
MIN_BODY_BYTES = 50 * MIB

CONFIG_ENV_VAR = "TOONVOCAB_CONFIG"


def load_config(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path)
    if not config_path.exists():
        return {}
    with config_path.open('r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return {}
    return data


def get_config_value(config: Dict[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


def resolve_value(arg_value: Any, config: Dict[str, Any], keys: Iterable[str], default: Any) -> Any:
    if arg_value is not None:
        return arg_value
    cfg_value = get_config_value(config, keys, default=None)
    return default if cfg_value is None else cfg_value


class Settings(BaseModel):
    """Runtime settings for the notebook server"""
    data_root: Path = Field(default=Path("server_data"))
    data_file: str = "data.json"
    images_dir: str = "images"
    image_prefix: str = "/images"
    image_retention: str = "replace"
    seed_on_start: bool = True
    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)
    max_body_bytes: int = Field(default=MIN_BODY_BYTES, ge=MIN_BODY_BYTES)
    request_timeout: float = Field(default=120.0, gt=0)
    log_level: str = "INFO"

    @field_validator("image_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip().strip("/")
        if not value:
            raise ValueError("image_prefix must name a path segment")
        return "/" + value

    @field_validator("image_retention")
    @classmethod
    def _check_retention(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("replace", "preserve"):
            raise ValueError("image_retention must be 'replace' or 'preserve'")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def data_path(self) -> Path:
        return self.data_root / self.data_file

    @property
    def images_path(self) -> Path:
        return self.data_root / self.images_dir


# setting name -> (environment variable, YAML key path)
_SETTING_SOURCES = {
    "data_root": ("TOONVOCAB_DATA_ROOT", ("storage", "root")),
    "data_file": ("TOONVOCAB_DATA_FILE", ("storage", "data_file")),
    "images_dir": ("TOONVOCAB_IMAGES_DIR", ("storage", "images_dir")),
    "image_prefix": ("TOONVOCAB_IMAGE_PREFIX", ("storage", "image_prefix")),
    "image_retention": ("TOONVOCAB_IMAGE_RETENTION", ("storage", "image_retention")),
    "seed_on_start": ("TOONVOCAB_SEED", ("storage", "seed_on_start")),
    "host": ("TOONVOCAB_HOST", ("server", "host")),
    "port": ("TOONVOCAB_PORT", ("server", "port")),
    "max_body_bytes": ("TOONVOCAB_MAX_BODY_BYTES", ("server", "max_body_bytes")),
    "request_timeout": ("TOONVOCAB_REQUEST_TIMEOUT", ("server", "request_timeout")),
    "log_level": ("TOONVOCAB_LOG_LEVEL", ("logging", "level")),
}


def load_settings(config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables, then the YAML file, then defaults

    - **config_path**: YAML file; falls back to $TOONVOCAB_CONFIG
    - **environ**: mapping to read variables from (defaults to os.environ)
    """
    env = os.environ if environ is None else environ
    config = load_config(config_path or env.get(CONFIG_ENV_VAR))

    values: Dict[str, Any] = {}
    for name, (env_var, keys) in _SETTING_SOURCES.items():
        value = resolve_value(env.get(env_var) or None, config, keys, default=None)
        if value is not None:
            values[name] = value
    return Settings(**values)
