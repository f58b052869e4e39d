"""Lock configuration record.

A ``LockConfig`` is fixed when a :class:`~global_file_lock.lock.GlobalLock`
is constructed and shared read-only by every acquisition made through it.

Classes
-------
- LockConfig  — backoff tunables with documented defaults
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field


class LockConfig(BaseModel):
    """Backoff tunables for lock acquisition.

    Delays are expressed in an abstract time unit; ``time_unit`` converts
    one unit to seconds.  The default unit is one millisecond.

    Parameters
    ----------
    initial_delay:
        Delay before the second claim attempt.  Grows by a random factor in
        ``[1, 2)`` after every failed attempt.  Default: 1.
    restart_delay:
        Delay value used when a new round starts after the cap was reached.
        Default: 20.
    delay_cap:
        Once the delay reaches this value the attempt counts as an over-cap
        round.  Default: 600.
    max_over_cap_retries:
        Number of over-cap rounds allowed before giving up with
        :class:`~global_file_lock.errors.LockTimeoutError`.  Default: 8.
    time_unit:
        Seconds per delay unit.  Default: 0.001.
    """

    initial_delay: float = Field(default=1.0, gt=0)
    restart_delay: float = Field(default=20.0, gt=0)
    delay_cap: float = Field(default=600.0, gt=0)
    max_over_cap_retries: int = Field(default=8, ge=0)
    time_unit: float = Field(default=0.001, gt=0)

    model_config = {"frozen": True, "extra": "forbid"}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None = None, **overrides: Any) -> LockConfig:
        """Build a config from a mapping, dropping ``None`` values.

        ``overrides`` win over ``data``.  Unset fields keep their defaults.
        """
        merged: dict[str, Any] = {}
        for source in (data or {}, overrides):
            merged.update({key: value for key, value in source.items() if value is not None})
        return cls(**merged)

    @classmethod
    def from_yaml(cls, path: str | os.PathLike[str], **overrides: Any) -> LockConfig:
        """Load a config from a YAML file.

        The file holds either the fields at top level or under a ``lock:``
        key.  An empty file yields the defaults.

        Raises
        ------
        ValueError
            If the document is not a mapping.
        """
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if raw is None:
            raw = {}
        if isinstance(raw, dict) and isinstance(raw.get("lock"), dict):
            raw = raw["lock"]
        if not isinstance(raw, dict):
            raise ValueError(f"Lock config {os.fspath(path)!r} must be a YAML mapping.")
        return cls.from_mapping(raw, **overrides)

    def seconds(self, units: float) -> float:
        """Convert ``units`` delay units to seconds."""
        return units * self.time_unit


__all__ = ["LockConfig"]
