"""Configuration loading and settings resolution."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import yaml

from .utils import constants as K

log = logging.getLogger(__name__)


@dataclass
class Settings:
    path: str = K.DEFAULT_ENVFILE_PATH
    lock_timeout: float = K.DEFAULT_LOCK_TIMEOUT
    marker_dir: str = K.DEFAULT_MARKER_DIR
    log_level: str = K.DEFAULT_LOG_LEVEL


def load_config(path: str) -> dict:
    """Load YAML config from disk."""
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)
    if cfg is None:
        raise ValueError(f"Config file {path} is empty or invalid YAML")
    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return cfg


def _section(cfg: Mapping, key: str) -> dict:
    sec = cfg.get(key, {}) or {}
    if not isinstance(sec, dict):
        raise ValueError(f"Config section '{key}' must be a mapping")
    return sec


def _as_timeout(raw, source: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{source} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{source} must not be negative, got {raw!r}")
    return value


def resolve_settings(
    cfg: Optional[Mapping] = None, environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """Resolve settings: defaults -> config file -> ENVFILE_* environment variables."""
    cfg = cfg or {}
    environ = os.environ if environ is None else environ
    envfile_cfg = _section(cfg, K.KEY_ENVFILE)
    markers_cfg = _section(cfg, K.KEY_MARKERS)
    logging_cfg = _section(cfg, K.KEY_LOGGING)

    s = Settings()
    if envfile_cfg.get(K.KEY_ENVFILE_PATH):
        s.path = str(envfile_cfg[K.KEY_ENVFILE_PATH])
    if envfile_cfg.get(K.KEY_ENVFILE_LOCK_TIMEOUT) is not None:
        s.lock_timeout = _as_timeout(
            envfile_cfg[K.KEY_ENVFILE_LOCK_TIMEOUT], f"{K.KEY_ENVFILE}.{K.KEY_ENVFILE_LOCK_TIMEOUT}"
        )
    if markers_cfg.get(K.KEY_MARKERS_DIR):
        s.marker_dir = str(markers_cfg[K.KEY_MARKERS_DIR])
    if logging_cfg.get(K.KEY_LOGGING_LEVEL):
        s.log_level = str(logging_cfg[K.KEY_LOGGING_LEVEL]).upper()

    if environ.get(K.ENV_PATH):
        s.path = environ[K.ENV_PATH]
    if environ.get(K.ENV_LOCK_TIMEOUT):
        s.lock_timeout = _as_timeout(environ[K.ENV_LOCK_TIMEOUT], K.ENV_LOCK_TIMEOUT)
    if environ.get(K.ENV_MARKER_DIR):
        s.marker_dir = environ[K.ENV_MARKER_DIR]
    if environ.get(K.ENV_LOG_LEVEL):
        s.log_level = environ[K.ENV_LOG_LEVEL].upper()

    log.debug("Resolved settings: %s", s)
    return s
