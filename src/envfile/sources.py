"""Turn the various places variables come from into plain incoming mappings."""

from __future__ import annotations

import json
import os
from typing import Dict, Iterable

from dotenv import dotenv_values

from .utils import constants as K


def list_to_object(items: Iterable[str]) -> Dict[str, str]:
    """Convert ``["A=1", "B=x=y"]`` into ``{"A": "1", "B": "x=y"}``.

    Items without ``=`` are dropped; the value keeps everything after the first ``=``.
    """
    out: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep:
            continue
        out[key] = value
    return out


def env_from_dotenv(path: str) -> Dict[str, str]:
    """Read a dotenv file. Bare keys with no value are dropped."""
    if not os.path.isfile(path):
        raise ValueError(f"dotenv file not found: {path}")
    values = dotenv_values(path)
    return {k: v for k, v in values.items() if v is not None}


def env_from_image_config(path: str) -> Dict[str, str]:
    """Read ``config.Env`` from an OCI image config file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except OSError as e:
        raise ValueError(f"read container config {path}: {e}") from e
    except ValueError as e:
        raise ValueError(f"parse container config {path}: {e}") from e

    if not isinstance(cfg, dict):
        raise ValueError(f"container config {path} must be a JSON object")
    image_cfg = cfg.get(K.KEY_IMAGE_CONFIG) or {}
    if not isinstance(image_cfg, dict):
        raise ValueError(f"container config {path}: '{K.KEY_IMAGE_CONFIG}' must be an object")
    env_list = image_cfg.get(K.KEY_IMAGE_ENV) or []
    if not isinstance(env_list, list) or not all(isinstance(e, str) for e in env_list):
        raise ValueError(f"container config {path}: '{K.KEY_IMAGE_ENV}' must be a list of strings")
    return list_to_object(env_list)
