"""The one place that writes to the live process environment."""

from __future__ import annotations

import logging
import os
from typing import Optional

from .models import ApplyResult, EnvRecord
from .utils.logging import diag

log = logging.getLogger(__name__)


def apply_env(record: EnvRecord, logger: Optional[logging.Logger] = None) -> ApplyResult:
    """Copy every entry of ``record`` into ``os.environ``, overwriting existing values.

    A key the OS refuses (empty name, ``=`` or NUL in it, NUL in the value) is
    skipped and the rest are still set.
    """
    logger = logger or log
    result = ApplyResult()
    for key, value in record.env.items():
        try:
            os.environ[key] = value
        except (TypeError, ValueError, OSError) as e:
            diag(logger, logging.DEBUG, "Error setting env %r: %s", key, e)
            result.skipped.append(key)
            continue
        result.applied.append(key)
    return result
