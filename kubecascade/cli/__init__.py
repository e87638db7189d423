"""kubecascade command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubecascade`` script).
"""

from kubecascade.cli.main import cli

__all__ = ["cli"]
