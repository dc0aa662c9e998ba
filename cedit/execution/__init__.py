"""Execution pipeline for a single prompt spec.

- **loader**: YAML spec loading and attachment reading
- **interpolate**: ``{{var.NAME}}`` substitution (spec variables + overrides -> Prompt)
- **coordinator**: Run orchestration (load -> stream -> dispatch -> publish -> summarize)
"""
