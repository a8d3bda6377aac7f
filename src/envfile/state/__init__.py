"""State management and persistence for the shared envfile record."""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Mapping, Optional

from ..models import EnvRecord, LoadOutcome, LoadResult, PersistOutcome
from ..utils import constants as K
from ..utils.logging import diag

log = logging.getLogger(__name__)


def load_state(path: str, logger: Optional[logging.Logger] = None) -> LoadResult:
    """Load the record from disk. A missing, unreadable or corrupt file reads as empty."""
    logger = logger or log
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        return LoadResult(EnvRecord(), False, LoadOutcome.MISSING)
    except OSError as e:
        diag(logger, logging.DEBUG, "Error reading envfile %s: %s", path, e)
        return LoadResult(EnvRecord(), False, LoadOutcome.UNREADABLE)

    try:
        record = EnvRecord.from_json(raw)
    except (ValueError, RecursionError) as e:
        diag(logger, logging.DEBUG, "Error parsing envfile %s: %s", path, e)
        return LoadResult(EnvRecord(), False, LoadOutcome.CORRUPT)
    return LoadResult(record, True, LoadOutcome.LOADED)


def save_state(
    path: str, record: EnvRecord, logger: Optional[logging.Logger] = None
) -> PersistOutcome:
    """Replace the record on disk with ``record``.

    The bytes go to a private temp file next to ``path`` which is then renamed
    over it, so readers see either the old or the new file, never a partial one.
    """
    logger = logger or log
    try:
        payload = record.to_json().encode("utf-8")
    except (TypeError, ValueError) as e:
        diag(logger, logging.DEBUG, "Error marshalling envfile: %s", e)
        return PersistOutcome.SERIALIZE_FAILED

    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=K.TEMP_PREFIX, suffix=K.TEMP_SUFFIX, dir=directory)
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, K.FILE_MODE)
        os.replace(tmp_path, path)
    except OSError as e:
        diag(logger, logging.WARNING, "Error writing envfile %s: %s", path, e)
        if tmp_path is not None:
            _remove_quietly(tmp_path)
        return PersistOutcome.WRITE_FAILED
    diag(logger, logging.DEBUG, "Envfile saved to %s (%d vars)", path, len(record))
    return PersistOutcome.WRITTEN


def merge_env(existing: Optional[EnvRecord], incoming: Mapping[str, str]) -> EnvRecord:
    """Merge incoming variables into the existing record without clobbering untouched keys."""
    out = dict(existing.env) if existing is not None else {}
    out.update(incoming)
    return EnvRecord(env=out)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        diag(log, logging.DEBUG, "Could not remove temp file %s: %s", path, e)
