"""Template interpolation for prompt specs.

Placeholders have the form ``{{var.NAME}}``.  Values come from the spec's own
``variables``, overridden by caller-supplied values on key collision.

Substitution is a single pass over the text, so a substituted value is never
scanned again and the result does not depend on variable order.  Placeholders
naming an unknown variable are left as they are.

Prompts routinely contain source code, so no general template engine is used
here: only the exact ``{{var.NAME}}`` form is touched.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from loguru import logger

from cedit.errors import InterpolationError
from cedit.models.prompt import Prompt

if TYPE_CHECKING:
    from cedit.execution.loader import Attachment
    from cedit.models.prompt import PromptSpec

_PLACEHOLDER = re.compile(r"\{\{var\.([^{}]+?)\}\}")


def merge_variables(declared: Mapping[str, str], overrides: Mapping[str, str] | None) -> dict[str, str]:
    """Combine spec variables with overrides (override wins)."""
    merged = dict(declared)
    if overrides:
        logger.info("Applying {} variable overrides", len(overrides))
        merged.update(overrides)
    for name, value in merged.items():
        if not isinstance(value, str):
            msg = f"Variable '{name}' must be a string, got {type(value).__name__}"
            raise InterpolationError(msg)
    return merged


def interpolate_text(text: str, variables: Mapping[str, str]) -> str:
    return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), m.group(0)), text)


def render_attachments(user: str, attachments: Sequence[Attachment]) -> str:
    if not attachments:
        return user
    blocks = [f"File: {a.path}\n```\n{a.content}\n```" for a in attachments]
    return "\n\n".join([user, *blocks])


def build_prompt(
    spec: PromptSpec,
    overrides: Mapping[str, str] | None = None,
    attachments: Sequence[Attachment] = (),
) -> Prompt:
    """Interpolate *spec* into the prompt sent to the provider."""
    variables = merge_variables(spec.variables, overrides)
    logger.info("Interpolating {} variables", len(variables))
    return Prompt(
        system=interpolate_text(spec.system, variables),
        user=render_attachments(interpolate_text(spec.user, variables), attachments),
    )
