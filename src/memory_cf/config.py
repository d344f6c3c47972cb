from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .neighbors import MIN_NEIGHBORS
from .predict import check_prediction_type
from .similarity import check_metric


@dataclass(frozen=True)
class MemoryCFConfig:
    metric: str = "pearson"
    num_neighbors: int = 3
    prediction: str = "simple"

    def validate(self, n_users: int | None = None) -> "MemoryCFConfig":
        """Raise ValueError on any unusable setting; `n_users` bounds the neighborhood."""
        check_metric(self.metric)
        check_prediction_type(self.prediction)
        if int(self.num_neighbors) < MIN_NEIGHBORS:
            raise ValueError(f"num_neighbors must be >= {MIN_NEIGHBORS}, got {self.num_neighbors}")
        if n_users is not None and int(self.num_neighbors) > int(n_users) - 1:
            raise ValueError(
                f"num_neighbors={self.num_neighbors} exceeds the {int(n_users) - 1} other users available"
            )
        return self


def read_yaml(path: Path) -> dict[str, Any]:
    path = Path(path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    cfg = yaml.safe_load(path.read_text())
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Expected config YAML to be a mapping, got: {type(cfg)}")
    return cfg


def load_config(path: Path | None = None, **overrides: Any) -> MemoryCFConfig:
    """Build a config from the `memory_cf` section of a YAML file.

    Non-None keyword overrides (e.g. CLI flags) win over the file, which wins
    over the dataclass defaults.
    """
    cfg = MemoryCFConfig()
    if path is not None:
        raw = read_yaml(path)
        section = raw.get("memory_cf")
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ValueError(f"Expected `memory_cf` in {path} to be a mapping, got: {type(section)}")
        known = {f.name for f in fields(MemoryCFConfig)}
        unknown = sorted(set(section) - known)
        if unknown:
            raise ValueError(f"Unknown memory_cf settings in {path}: {unknown}")
        cfg = replace(cfg, **section)

    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    return replace(
        cfg,
        metric=str(cfg.metric).lower(),
        num_neighbors=int(cfg.num_neighbors),
        prediction=str(cfg.prediction).lower(),
    )
