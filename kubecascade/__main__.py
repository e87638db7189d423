"""Entry point for `python -m kubecascade`.

Usage:
    python -m kubecascade analyze configmap app-config -n default
    uv run python -m kubecascade serve
"""

from __future__ import annotations

from kubecascade.cli import cli

cli()
