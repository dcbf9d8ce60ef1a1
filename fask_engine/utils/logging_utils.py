# fask_engine/utils/logging_utils.py
# ======================================================================================
# Logging: run-tagged records for searches started from the CLI or a host app
# --------------------------------------------------------------------------------------
# Engine modules only call get_logger("fask.<module>") and attach structured context
# through `extra`:
#     pair=[X, Y]      the edge a decision or test is about (orientation, two-cycles)
#     config={...}     the resolved search section, logged once by init_logging
#
# init_logging(cfg, run_id) is what the CLI uses:
#     • level from logging.level, console on stdout
#     • optional text log  <dir>/fask_<run_id>.log    (run id in every line)
#     • optional JSONL log <dir>/fask_<run_id>.jsonl  (run id + pair/config fields)
#
# Dependencies: Python stdlib only (logging, json, datetime, pathlib).
# ======================================================================================

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(run_id)s %(name)s: %(message)s"

# Structured fields copied from `extra` into JSONL records when present.
_CONTEXT_FIELDS = ("pair", "config")


class _RunIdFilter(logging.Filter):
    """Stamps every record passing a handler with the current run id."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


class _JSONLineFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, run id, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "run_id": getattr(record, "run_id", None),
            "msg": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def init_logging(cfg: Dict[str, Any], run_id: Optional[str] = None) -> str:
    """
    Configure the root logger from the "logging" section of a config dict.

    Parameters
    ----------
    cfg : dict
        Resolved config; "logging" holds level, to_file, to_json and dir.
        The "search" section, if any, is logged once as structured context.
    run_id : str, optional
        Run identifier for file names and records; a UTC timestamp when omitted.

    Returns
    -------
    str
        The run id actually used.
    """
    cfg = cfg or {}
    log_cfg = cfg.get("logging", {}) or {}
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    run_tag = run_id or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_filter = _RunIdFilter(run_tag)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    root.setLevel(level)

    def _add(handler: logging.Handler, formatter: logging.Formatter) -> None:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(run_filter)
        root.addHandler(handler)

    _add(logging.StreamHandler(sys.stdout), logging.Formatter(_CONSOLE_FORMAT))

    log_dir = Path(log_cfg.get("dir", "logs"))
    if log_cfg.get("to_file", False) or log_cfg.get("to_json", False):
        log_dir.mkdir(parents=True, exist_ok=True)
    if log_cfg.get("to_file", False):
        _add(logging.FileHandler(log_dir / f"fask_{run_tag}.log", encoding="utf-8"),
             logging.Formatter(_FILE_FORMAT))
    if log_cfg.get("to_json", False):
        _add(logging.FileHandler(log_dir / f"fask_{run_tag}.jsonl", encoding="utf-8"),
             _JSONLineFormatter())

    get_logger("fask.run").info("Run %s started", run_tag, extra={"config": cfg.get("search")})
    return run_tag


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
