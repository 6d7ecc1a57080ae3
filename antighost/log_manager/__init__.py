"""
Logging Package for Anti-Ghost-Ping

Provides centralized file-only logging so that log records never interleave
with the ghost ping reports printed to the console.
All logs are written to $ANTIGHOST_HOME/logs/ (default ~/.antighost/logs/)
"""

from .manager import LoggingManager, get_logger, configure_logging, get_logging_manager

__all__ = ['LoggingManager', 'get_logger', 'configure_logging', 'get_logging_manager']
