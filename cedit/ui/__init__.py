"""Terminal-facing hub subscribers used by the CLI.

- **progress**: ``ProgressMonitor`` (domain event counters)
- **completion**: ``CompletionHandler`` (summary / abort -> output + exit code)
- **log_bridge**: ``LogBridge`` (every event -> log)
"""

from cedit.ui.completion import EXIT_FAILURE, EXIT_SUCCESS, CompletionHandler
from cedit.ui.log_bridge import LogBridge
from cedit.ui.progress import ProgressInfo, ProgressMonitor

__all__ = [
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "CompletionHandler",
    "LogBridge",
    "ProgressInfo",
    "ProgressMonitor",
]
