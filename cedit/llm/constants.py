"""Tool descriptor sent with every completion request."""

from __future__ import annotations

from typing import Any

from cedit.models.enums import CommandKind

TEXT_EDITOR_TOOL_NAME = "text_editor"

TEXT_EDITOR_TOOL: dict[str, Any] = {
    "name": TEXT_EDITOR_TOOL_NAME,
    "description": (
        "Tool for viewing and modifying files. "
        "Use commands like view, str_replace, insert, create, undo_edit."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "kind": {
                "type": "string",
                "enum": [kind.value for kind in CommandKind],
                "description": "The type of edit operation to perform.",
            },
            "path": {
                "type": "string",
                "description": "Relative path to the file.",
            },
            "lineFrom": {
                "type": "number",
                "description": "Start line number (0-indexed). Used by str_replace and view.",
            },
            "lineTo": {
                "type": "number",
                "description": "End line number (0-indexed, inclusive). Used by str_replace and view.",
            },
            "content": {
                "type": "string",
                "description": "New content to insert, replace with, or create the file with.",
            },
            "after": {
                "type": "number",
                "description": "Line number (0-indexed) after which to insert. -1 inserts at the top.",
            },
        },
        "required": ["kind", "path"],
    },
}

# Rough token cost of TEXT_EDITOR_TOOL, added to the prompt estimate.
TOOL_DEFINITION_OVERHEAD = 700
