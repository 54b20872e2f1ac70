"""
Oyaji Video CLI Tools

Tools:
- progress_monitor: Follow a running studio's SSE stream
"""

from .progress_monitor import ProgressMonitor

__all__ = ["ProgressMonitor"]
