"""Ghost ping reports and their console rendering."""

from .diff import DiffReporter, GhostPingReport, CHANGE_MARKER, UNKNOWN_CHANNEL
from .console import ConsoleDisplay

__all__ = ['DiffReporter', 'GhostPingReport', 'ConsoleDisplay', 'CHANGE_MARKER', 'UNKNOWN_CHANNEL']
