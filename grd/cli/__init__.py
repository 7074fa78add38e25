"""CLI module for grd.

This module provides the command-line interface components including
argument parsing and command execution orchestration.
"""

from .parser import CLIParser
from .runner import CLIRunner

__all__ = ["CLIParser", "CLIRunner"]
