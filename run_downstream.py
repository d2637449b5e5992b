"""Convenience shim to run the downstream trigger workflow."""

from __future__ import annotations

import sys

from src.downstream.runner import main as downstream_main


if __name__ == "__main__":
    sys.exit(downstream_main(sys.argv[1:]))
