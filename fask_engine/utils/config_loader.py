"""
Config loader & resolver

- load_yaml(path): loads YAML into dict (requires PyYAML)
- resolve_config(path, overrides_json): loads and applies optional JSON overrides
- default_config(): the built-in layout used when no YAML file is given
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import yaml
except ImportError as e:
    raise ImportError(
        "PyYAML is required to load configs. Install with: pip install pyyaml"
    ) from e


def load_yaml(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    return yaml.safe_load(p.read_text(encoding="utf-8")) or {}


def dump_yaml(cfg: Dict[str, Any]) -> str:
    return yaml.safe_dump(cfg, sort_keys=False)


def deep_merge(a: Dict, b: Dict) -> Dict:
    """Recursively merge dict b into a (returns a new dict)."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def default_config() -> Dict[str, Any]:
    return {
        "run": {"output_dir": "outputs"},
        "data": {"center": True, "nonparanormal": False},
        "search": {},
        "knowledge": {},
        "logging": {"level": "INFO", "to_file": False, "to_json": False, "dir": "logs"},
    }


def resolve_config(path: Optional[str | Path] = None, overrides_json: Optional[str] = None) -> Dict:
    cfg = default_config()
    if path is not None:
        cfg = deep_merge(cfg, load_yaml(path))
    if overrides_json:
        # Accept a JSON string (e.g. {"search":{"two_cycle_alpha":0.01}})
        overrides = json.loads(overrides_json)
        cfg = deep_merge(cfg, overrides)
    return cfg
