from __future__ import annotations

import logging
import os
from typing import Mapping

from . import constants as K

log = logging.getLogger(__name__)


def env_marker_content(env: Mapping[str, str]) -> str:
    """Render a mapping as sorted ``KEY=VALUE`` lines so equal inputs give equal markers."""
    return "\n".join(sorted(f"{k}={v}" for k, v in env.items()))


def marker_exists(name: str, content: str, marker_dir: str = K.DEFAULT_MARKER_DIR) -> bool:
    """Return True if the marker already records ``content``; otherwise record it.

    An empty ``content`` matches any existing marker. Raises OSError when the
    marker cannot be read (other than missing) or written.
    """
    marker = os.path.join(marker_dir, name + K.MARKER_SUFFIX)
    try:
        with open(marker, "r", encoding="utf-8") as f:
            stored = f.read()
    except FileNotFoundError:
        stored = None
    if stored is not None and (content == "" or stored == content):
        return True

    os.makedirs(marker_dir, exist_ok=True)
    with open(marker, "w", encoding="utf-8") as f:
        f.write(content)
    log.debug("Marker %s updated", marker)
    return False
