"""Record type and the structured outcomes reported by the store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .utils import constants as K


class LoadOutcome(str, Enum):
    LOADED = "loaded"
    MISSING = "missing"
    UNREADABLE = "unreadable"
    CORRUPT = "corrupt"


class PersistOutcome(str, Enum):
    WRITTEN = "written"
    SERIALIZE_FAILED = "serialize_failed"
    WRITE_FAILED = "write_failed"


@dataclass
class EnvRecord:
    """The persisted set of environment variables.

    On disk this is ``{"env": {"NAME": "VALUE", ...}}``; the ``env`` field is
    left out when the mapping is empty.
    """

    env: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.env)

    def to_dict(self) -> dict:
        if not self.env:
            return {}
        return {K.KEY_RECORD_ENV: dict(self.env)}

    def to_json(self) -> str:
        """Serialize to compact JSON with sorted keys.

        Raises TypeError for non-string names or values so a bad record never
        reaches the disk.
        """
        for key, value in self.env.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise TypeError(
                    f"env entries must be strings, got {type(key).__name__}={type(value).__name__}"
                )
        return json.dumps(self.to_dict(), separators=(",", ":"), sort_keys=True)

    @classmethod
    def from_dict(cls, payload: Any) -> "EnvRecord":
        """Build a record from decoded JSON. Raises ValueError on a bad shape."""
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ValueError(f"record must be an object, got {type(payload).__name__}")
        env = payload.get(K.KEY_RECORD_ENV)
        if env is None:
            return cls()
        if not isinstance(env, Mapping):
            raise ValueError(f"'{K.KEY_RECORD_ENV}' must be an object, got {type(env).__name__}")
        out: Dict[str, str] = {}
        for key, value in env.items():
            if not isinstance(value, str):
                raise ValueError(f"value of {key!r} must be a string")
            out[key] = value
        return cls(env=out)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "EnvRecord":
        return cls.from_dict(json.loads(raw))


@dataclass
class LoadResult:
    record: EnvRecord
    found: bool
    outcome: LoadOutcome


@dataclass
class ApplyResult:
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


@dataclass
class SyncReport:
    """What an apply / merge_and_apply call actually did.

    Purely informational: callers may ignore it. ``skipped`` is set when the
    merge short-circuited on an empty incoming mapping.
    """

    skipped: bool = False
    load: Optional[LoadOutcome] = None
    persist: Optional[PersistOutcome] = None
    locked: bool = False
    applied: List[str] = field(default_factory=list)
    failed_keys: List[str] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        return self.persist is PersistOutcome.WRITTEN
