# Frecent Utilities Package
"""
Utility functions for launching entries.
"""

from .helpers import launch_entry, parse_command, run_command

__all__ = ["launch_entry", "parse_command", "run_command"]
