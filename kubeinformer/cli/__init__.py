"""kubeinformer command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubeinformer`` script).
"""

from kubeinformer.cli.main import cli

__all__ = ["cli"]
