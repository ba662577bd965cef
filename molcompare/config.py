"""
Engine configuration.

Defaults for search budgets, the batch worker pool and the topological
constraint. Values can be overridden from environment variables prefixed
with ``MOLCOMPARE_`` or from a plain dictionary (e.g. loaded from JSON).
Configurations are immutable; there is no process-wide instance.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

from molcompare.budget import SearchBudget

ENV_PREFIX = "MOLCOMPARE_"


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for matching, common-subgraph search and batches."""

    # Default common-subgraph budget (seconds / expanded nodes, None = no limit)
    mcs_timeout: float | None = 60.0
    mcs_max_nodes: int | None = None

    # Safety budget for boolean isomorphism queries
    match_timeout: float | None = 10.0

    # Batch worker pool size (None = number of CPUs)
    max_workers: int | None = None

    # Topological constraint defaults
    topological_diameter: int = 8
    topological_tolerance: int = 1

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.topological_diameter < 0 or self.topological_tolerance < 0:
            raise ValueError("Topological diameter and tolerance must be non-negative")

    @property
    def mcs_budget(self) -> SearchBudget:
        """Budget applied to common-subgraph searches without an explicit one."""
        return SearchBudget(timeout=self.mcs_timeout, max_nodes=self.mcs_max_nodes)

    @property
    def match_budget(self) -> SearchBudget:
        """Safety budget applied to exact and substructure matching."""
        return SearchBudget(timeout=self.match_timeout)

    @property
    def workers(self) -> int:
        """Effective worker pool size."""
        return self.max_workers or os.cpu_count() or 1

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """Build a configuration from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_file(cls, path: str | Path) -> "EngineConfig":
        """Load a configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineConfig":
        """Build a configuration with ``MOLCOMPARE_*`` environment overrides.

        ``MOLCOMPARE_MCS_TIMEOUT=none`` disables the default deadline.
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            raw = raw.strip()
            if raw.lower() in ("none", ""):
                overrides[f.name] = None
            elif f.name in ("mcs_timeout", "match_timeout"):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = int(raw)

        return replace(cls(), **overrides)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def resolve_config(config: EngineConfig | None) -> EngineConfig:
    """Use the given configuration, or defaults with environment overrides."""
    return config if config is not None else EngineConfig.from_env()
