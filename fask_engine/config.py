"""
Search parameters.

SearchConfig holds the scalar knobs of one search run, validated on construction:

    two_cycle_alpha        Welch test significance, 0 < a < 1
    penalty_discount       BIC penalty multiplier of the default skeleton, > 0
    depth                  largest two-cycle conditioning subset (and Fisher-Z level), >= 0
    max_iterations         orientation rounds after the initial pass, >= 0
    max_degree             skeleton degree cap, -1 for none
    faithfulness_assumed   skeleton forward step only over pairs with positive gain
    symmetric_first_step   skeleton insertion gain averaged over both endpoints
    skeleton_method        "sem_bic" (default) or "fisher_z"
    skeleton_alpha         Fisher-Z significance, 0 < a < 1
    verbose                log per-edge decisions and skewness at INFO
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .knowledge import Knowledge
from .skeleton import SkeletonConfig

SKELETON_METHODS = ("sem_bic", "fisher_z")


def _check_alpha(name: str, value: float) -> None:
    if not (0.0 < value < 1.0):
        raise ConfigurationError(f"{name} must be in (0, 1), got {value}")


@dataclass
class SearchConfig:
    two_cycle_alpha: float = 0.05
    penalty_discount: float = 1.0
    depth: int = 1000
    max_iterations: int = 15
    max_degree: int = -1
    faithfulness_assumed: bool = True
    symmetric_first_step: bool = False
    skeleton_method: str = "sem_bic"
    skeleton_alpha: float = 0.01
    verbose: bool = False

    def __post_init__(self) -> None:
        _check_alpha("two_cycle_alpha", self.two_cycle_alpha)
        _check_alpha("skeleton_alpha", self.skeleton_alpha)
        if not self.penalty_discount > 0:
            raise ConfigurationError(f"penalty_discount must be > 0, got {self.penalty_discount}")
        if self.depth < 0:
            raise ConfigurationError(f"depth must be >= 0, got {self.depth}")
        if self.max_iterations < 0:
            raise ConfigurationError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if self.max_degree < -1:
            raise ConfigurationError(f"max_degree must be >= -1, got {self.max_degree}")
        if self.skeleton_method not in SKELETON_METHODS:
            raise ConfigurationError(
                f"skeleton_method must be one of {SKELETON_METHODS}, got {self.skeleton_method!r}")
        for f in ("faithfulness_assumed", "symmetric_first_step", "verbose"):
            if not isinstance(getattr(self, f), bool):
                raise ConfigurationError(f"{f} must be a boolean, got {getattr(self, f)!r}")

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "SearchConfig":
        d = dict(d or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigurationError(f"Unknown search keys: {unknown}")
        return cls(**d)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def skeleton_config(self, knowledge: Optional[Knowledge] = None) -> SkeletonConfig:
        return SkeletonConfig(
            penalty_discount=self.penalty_discount,
            max_degree=self.max_degree,
            faithfulness_assumed=self.faithfulness_assumed,
            symmetric_first_step=self.symmetric_first_step,
            alpha=self.skeleton_alpha,
            depth=self.depth,
            knowledge=knowledge or Knowledge(),
        )
