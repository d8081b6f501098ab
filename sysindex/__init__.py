"""
CLI and terminal dashboard for host OS, CPU, memory, disk and network information.
"""

__all__ = ["collector", "report", "dashboard", "config", "cli"]
__version__ = "0.1.0"
