"""Trigger downstream Drone builds for repositories found by a GitHub search."""

from .runner import main, run

__all__ = ["main", "run"]
