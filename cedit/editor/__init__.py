"""Applying text-editor commands to the working directory.

- **base**: ``CommandExecutor`` protocol (envelope -> domain event)
- **executor**: ``LocalEditExecutor``, the file-system implementation
- **storage**: path confinement, atomic writes, backups and line statistics
"""

from cedit.editor.base import CommandExecutor
from cedit.editor.executor import LocalEditExecutor

__all__ = ["CommandExecutor", "LocalEditExecutor"]
