"""Persistent environment variables shared between independent processes on one host."""

from .models import EnvRecord, LoadOutcome, PersistOutcome, SyncReport
from .pipelines.sync import apply, merge_and_apply

__all__ = [
    "EnvRecord",
    "LoadOutcome",
    "PersistOutcome",
    "SyncReport",
    "apply",
    "merge_and_apply",
]
