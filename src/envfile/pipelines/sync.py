from __future__ import annotations

import logging
from typing import Mapping, Optional

from ..config import Settings, resolve_settings
from ..environ import apply_env
from ..models import SyncReport
from ..state import load_state, merge_env, save_state
from ..utils.locking import exclusive_lock
from ..utils.logging import diag

log = logging.getLogger(__name__)


def _settings(logger: logging.Logger) -> Settings:
    try:
        return resolve_settings()
    except ValueError as e:
        diag(logger, logging.DEBUG, "Ignoring invalid envfile settings: %s", e)
        return Settings()


def apply(logger: Optional[logging.Logger] = None, path: Optional[str] = None) -> SyncReport:
    """Load the persisted record (if any) into the current process environment."""
    logger = logger or log
    if path is None:
        path = _settings(logger).path

    loaded = load_state(path, logger)
    applied = apply_env(loaded.record, logger)
    return SyncReport(load=loaded.outcome, applied=applied.applied, failed_keys=applied.skipped)


def merge_and_apply(
    new_vars: Mapping[str, str],
    logger: Optional[logging.Logger] = None,
    path: Optional[str] = None,
    lock_timeout: Optional[float] = None,
) -> SyncReport:
    """Merge ``new_vars`` into the persisted record, save it and apply it in-process.

    Nothing happens at all when ``new_vars`` is empty. The merged record is
    applied even when it could not be saved.
    """
    logger = logger or log
    if not new_vars:
        return SyncReport(skipped=True)

    if path is None or lock_timeout is None:
        settings = _settings(logger)
        path = settings.path if path is None else path
        lock_timeout = settings.lock_timeout if lock_timeout is None else lock_timeout

    report = SyncReport()
    with exclusive_lock(path, timeout=lock_timeout, logger=logger) as locked:
        report.locked = locked
        loaded = load_state(path, logger)
        report.load = loaded.outcome
        merged = merge_env(loaded.record if loaded.found else None, new_vars)
        report.persist = save_state(path, merged, logger)

    applied = apply_env(merged, logger)
    report.applied = applied.applied
    report.failed_keys = applied.skipped
    return report
