"""
Shared pytest fixtures for fask_engine tests.

Creates a minimal search config in a temp folder, points outputs to tmp_path,
and provides seeded generators plus the three reference datasets:

  independent  two independent normals                    → no edges
  skewed_chain X skewed, Y = 0.8 X + skewed noise         → X --> Y
  exchangeable designed symmetric cloud (X, Y) ~ (Y, X)   → X <=> Y
  (plus variants with a third column to condition on)
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

import numpy as np
import pytest

from fask_engine.data import DataSet
from fask_engine.utils.config_loader import load_yaml


_MIN_SEARCH_YAML = """\
run:
  output_dir: "{OUT}"

data:
  center: true
  nonparanormal: false

search:
  two_cycle_alpha: 0.05
  max_iterations: 15
  skeleton_method: "sem_bic"

knowledge: {}

logging:
  level: "WARNING"
  to_file: false
  to_json: false
  dir: "{LOGS}"
"""


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """init_logging() replaces the root handlers; put the originals back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)


@pytest.fixture(scope="function")
def cfg_path(tmp_path: Path) -> Path:
    """Writes a minimal search.yaml into tmp_path/configs/ and returns its path."""
    cfg_dir = tmp_path / "configs"
    cfg_dir.mkdir(parents=True, exist_ok=True)
    text = (_MIN_SEARCH_YAML
            .replace("{OUT}", str((tmp_path / "outputs").as_posix()))
            .replace("{LOGS}", str((tmp_path / "logs").as_posix())))
    p = cfg_dir / "search.yaml"
    p.write_text(text, encoding="utf-8")
    return p


@pytest.fixture(scope="function")
def cfg(cfg_path: Path) -> Dict:
    """Loads the YAML produced by cfg_path for convenience."""
    return load_yaml(cfg_path)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240611)


def make_skewed_chain(n: int = 2000, seed: int = 7) -> np.ndarray:
    r = np.random.default_rng(seed)
    x = r.exponential(1.0, n) - 1.0
    y = 0.8 * x + (r.exponential(1.0, n) - 1.0)
    return np.column_stack([x, y])


def make_exchangeable(m: int = 100, jitter: float = 0.05, seed: int = 3) -> np.ndarray:
    """
    Half the mass near (2, 2), a quarter near (-4, 0) and a quarter near (0, -4).

    Every row also appears with its columns swapped, so the joint law is symmetric.
    Both left-right statistics agree, and truncating on either variable moves the
    mean of the ratio sample from about 1/3 to about 1.
    """
    r = np.random.default_rng(seed)
    a = np.array([2.0, 2.0]) + jitter * r.standard_normal((m, 2))
    b = np.array([-4.0, 0.0]) + jitter * r.standard_normal((m, 2))
    half = np.vstack([a, b])
    return np.vstack([half, half[:, ::-1]])


@pytest.fixture
def independent_ds() -> DataSet:
    r = np.random.default_rng(11)
    return DataSet.from_array(r.standard_normal((1000, 2)), names=["X", "Y"])


@pytest.fixture
def skewed_ds() -> DataSet:
    return DataSet.from_array(make_skewed_chain(), names=["X", "Y"])


@pytest.fixture
def exchangeable_ds() -> DataSet:
    return DataSet.from_array(make_exchangeable(), names=["X", "Y"])


@pytest.fixture
def exchangeable_noise_ds() -> DataSet:
    """Symmetric cloud plus an independent normal column A."""
    xy = make_exchangeable()
    a = np.random.default_rng(17).standard_normal(xy.shape[0])
    return DataSet.from_array(np.column_stack([xy, a]), names=["X", "Y", "A"])


@pytest.fixture
def exchangeable_sum_ds() -> DataSet:
    """
    Symmetric cloud plus S = X + Y.

    Given S the residuals of X and Y are exact negatives on any row subset, so the
    ratio sample has mean -1 with or without truncation and no Welch test rejects.
    """
    xy = make_exchangeable()
    return DataSet.from_array(np.column_stack([xy, xy.sum(axis=1)]), names=["X", "Y", "S"])


@pytest.fixture
def gaussian_chain_ds() -> DataSet:
    """X --> Y --> Z, linear Gaussian, n = 2000."""
    r = np.random.default_rng(5)
    n = 2000
    x = r.standard_normal(n)
    y = 0.8 * x + r.standard_normal(n)
    z = 0.8 * y + r.standard_normal(n)
    return DataSet.from_array(np.column_stack([x, y, z]), names=["X", "Y", "Z"])
