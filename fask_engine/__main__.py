# FILE: fask_engine/__main__.py
# =============================================================================
# Package entrypoint: enables `python -m fask_engine` to launch the CLI.
#
#     python -m fask_engine --help
#     python -m fask_engine search --data data.csv -c configs/search.yaml
# =============================================================================

from __future__ import annotations

import sys


def _run() -> int:
    # Typer is only needed when running the CLI, not to import the package.
    from fask_engine.cli import main as _cli_main

    _cli_main()
    return 0


if __name__ == "__main__":
    sys.exit(_run())
