"""
Scheduler infrastructure for periodic sweeps.
"""

from .sweep_scheduler import SweepScheduler

__all__ = ["SweepScheduler"]
