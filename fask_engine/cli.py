# FILE: fask_engine/cli.py
# =============================================================================
# FASK engine: Typer CLI
#
# Commands
# --------
#   search            Load a CSV + YAML config, run the search, write graph.json
#                     and graph.dot to the output dir and echo the edges
#   effective-config  Emit the fully resolved config (after overrides) as JSON or YAML
#   version           Package version
#
# Logging controls on `search`:
#   --run-id auto|<str>   → stamps file/JSON logs (auto = UTC timestamp)
#   --log-level LEVEL     → overrides config.logging.level (INFO|DEBUG|...)
#   --log-file/--no-log-file, --log-json/--no-log-json → force on/off regardless of config
#
# Usage examples
# --------------
#   python -m fask_engine search --data data.csv -c configs/search.yaml --out outputs
#   python -m fask_engine search --data data.csv -o '{"search":{"two_cycle_alpha":0.01}}'
#   python -m fask_engine effective-config -c configs/search.yaml --out resolved.yaml
# =============================================================================

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import typer

from . import get_version
from .config import SearchConfig
from .data import DataSet
from .errors import FaskError
from .graph import EdgeKind, Graph
from .knowledge import Knowledge
from .search import FaskSearch
from .utils.config_loader import dump_yaml, resolve_config
from .utils.logging_utils import get_logger, init_logging

app = typer.Typer(add_completion=False, help="FASK engine: skew-based cyclic causal orientation")

_EDGE_COLORS = {
    EdgeKind.DIRECTED: None,
    EdgeKind.UNDIRECTED: "yellow",
    EdgeKind.BIDIRECTED: "cyan",
    EdgeKind.TWO_CYCLE: "red",
}


# =============================================================================
# Helpers
# =============================================================================


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=False), encoding="utf-8")


def _auto_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _merge_logging_overrides(cfg: Dict[str, Any],
                             level: Optional[str],
                             to_file: Optional[bool],
                             to_json: Optional[bool]) -> Dict[str, Any]:
    c = dict(cfg or {})
    lc = dict(c.get("logging", {}) or {})
    if level:
        lc["level"] = level
    if to_file is not None:
        lc["to_file"] = bool(to_file)
    if to_json is not None:
        lc["to_json"] = bool(to_json)
    lc.setdefault("dir", "logs")
    c["logging"] = lc
    return c


def _bootstrap_logging(cfg: Dict[str, Any],
                       run_id: Optional[str],
                       level: Optional[str],
                       to_file: Optional[bool],
                       to_json: Optional[bool]) -> Tuple[Dict[str, Any], str]:
    """
    Apply CLI logging overrides, compute run_id (auto|str), and initialize logging.
    Returns (merged_cfg, resolved_run_id).
    """
    merged = _merge_logging_overrides(cfg, level, to_file, to_json)
    rid = _auto_run_id() if (run_id == "auto" or not run_id) else run_id
    init_logging(merged, run_id=rid)
    return merged, rid


def _load_initial_graph(path: Optional[str]) -> Optional[Graph]:
    if not path:
        return None
    return Graph.from_json(json.loads(Path(path).read_text(encoding="utf-8")))


# =============================================================================
# Commands
# =============================================================================


@app.command("search")
def cli_search(
    data: str = typer.Option(..., "--data", "-d", help="CSV file, one column per variable."),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to search config YAML."),
    overrides: Optional[str] = typer.Option(None, "--override", "-o", help="JSON string of overrides."),
    out: Optional[str] = typer.Option(None, "--out", help="Output dir (defaults to run.output_dir)."),
    initial_graph: Optional[str] = typer.Option(None, "--initial-graph", help="graph.json to start from."),
    run_id: str = typer.Option("auto", "--run-id", help='Run identifier ("auto" => UTC timestamp).'),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override logging level (e.g. INFO, DEBUG)."),
    log_file: Optional[bool] = typer.Option(None, "--log-file/--no-log-file", help="Enable/disable file logging."),
    log_json: Optional[bool] = typer.Option(None, "--log-json/--no-log-json", help="Enable/disable JSONL logging."),
):
    """Run the FASK search on a CSV file."""
    cfg = resolve_config(config, overrides_json=overrides)
    cfg, rid = _bootstrap_logging(cfg, run_id, log_level, log_file, log_json)
    log = get_logger("fask.cli")

    try:
        search_cfg = SearchConfig.from_dict(cfg.get("search"))
        knowledge = Knowledge.from_dict(cfg.get("knowledge"))
        data_cfg = cfg.get("data", {}) or {}
        ds = DataSet.from_csv(
            data,
            center=bool(data_cfg.get("center", True)),
            nonparanormal=bool(data_cfg.get("nonparanormal", False)),
        )
        fask = FaskSearch(ds, search_cfg, knowledge, initial_graph=_load_initial_graph(initial_graph))
        graph = fask.search()
    except (FaskError, ValueError, KeyError) as e:
        log.error("Search failed: %s", e)
        raise typer.Exit(code=2)

    out_dir = Path(out or cfg.get("run", {}).get("output_dir", "outputs"))
    result = graph.to_json()
    result["run_id"] = rid
    result["config"] = {"search": search_cfg.to_dict(), "knowledge": knowledge.to_dict()}
    _write_json(out_dir / "graph.json", result)
    (out_dir / "graph.dot").write_text(graph.to_dot(), encoding="utf-8")
    log.info("Wrote %s and %s", (out_dir / "graph.json").as_posix(), (out_dir / "graph.dot").as_posix())

    for e in sorted(graph.edges(), key=lambda e: (e.u.index, e.v.index)):
        click.secho(str(e), fg=_EDGE_COLORS[e.kind])


@app.command("effective-config")
def cli_effective_config(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config."),
    overrides: Optional[str] = typer.Option(None, "--override", "-o", help="JSON string of overrides."),
    out: Optional[str] = typer.Option(None, "--out", help="Write resolved config to this path (json|yaml)."),
):
    """
    Render the fully-resolved config (after JSON overrides), search defaults filled in.
    """
    cfg = resolve_config(config, overrides_json=overrides)
    try:
        cfg["search"] = SearchConfig.from_dict(cfg.get("search")).to_dict()
    except FaskError as e:
        raise typer.BadParameter(str(e))
    if out:
        outp = Path(out)
        outp.parent.mkdir(parents=True, exist_ok=True)
        if outp.suffix.lower() in (".yml", ".yaml"):
            outp.write_text(dump_yaml(cfg), encoding="utf-8")
        else:
            _write_json(outp, cfg)
        typer.echo(f"Wrote resolved config → {outp.as_posix()}")
    else:
        typer.echo(json.dumps(cfg, indent=2))


@app.command("version")
def cli_version():
    typer.echo(get_version())


@app.callback(invoke_without_command=False)
def _root() -> None:
    """FASK engine: CLI entrypoint."""
    return


def main() -> None:
    app()


if __name__ == "__main__":
    main()
