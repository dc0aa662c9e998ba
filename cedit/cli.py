import sys
from functools import partial
from pathlib import Path

import click


def _parse_vars(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", ctx=ctx, param=param)
        parsed[key] = value
    return parsed


def _load_settings(**overrides):
    """Environment settings with command-line values layered on top."""
    from pydantic import ValidationError

    from cedit.settings import get_settings

    try:
        settings = get_settings()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc

    update = {key: value for key, value in overrides.items() if value is not None}
    if "vars_override" in update:
        update["vars_override"] = {**settings.vars_override, **update["vars_override"]}
    return settings.model_copy(update=update)


@click.group()
def main() -> None:
    """cedit - apply LLM-generated edits to files from a prompt spec."""


@main.command()
@click.argument("spec", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--var", "variables", multiple=True, callback=_parse_vars, help="Override a template variable (KEY=VALUE).")
@click.option("--dry-run", is_flag=True, default=False, help="Write edits to <name>.updated<ext> instead.")
@click.option("--model", default=None, help="Model name (default: from CEDIT_MODEL).")
@click.option("--max-tokens", type=click.IntRange(min=1), default=None, help="Input token budget.")
@click.option("--retries", type=click.IntRange(min=1), default=None, help="Attempts to open the provider stream.")
@click.option("--retry-delay-ms", type=click.IntRange(min=0), default=None, help="Sleep between attempts.")
@click.option("--log-level", default=None, help="Log level (default: from CEDIT_LOG_LEVEL or INFO).")
@click.option("--log-dir", default=None, help="Also write daily log files here.")
@click.option("--backup-dir", default=None, help="Where backups of edited files go.")
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip the confirmation prompt.")
@click.option("--debug-events", is_flag=True, default=False, help="Log every published hub payload (redacted).")
def run(
    spec: Path,
    variables: dict[str, str],
    dry_run: bool,
    model: str | None,
    max_tokens: int | None,
    retries: int | None,
    retry_delay_ms: int | None,
    log_level: str | None,
    log_dir: str | None,
    backup_dir: str | None,
    yes: bool,
    debug_events: bool,
) -> None:
    """Run a prompt spec and apply the edits it produces."""
    import anyio

    from cedit.bus import EventHub, emit_init_complete, emit_init_config
    from cedit.editor import LocalEditExecutor
    from cedit.execution.coordinator import run_pipeline
    from cedit.log import setup_logging
    from cedit.ui import EXIT_FAILURE, EXIT_SUCCESS, CompletionHandler, LogBridge, ProgressMonitor

    settings = _load_settings(
        vars_override=variables or None,
        dry_run=dry_run or None,
        model=model,
        max_tokens=max_tokens,
        retries=retries,
        retry_delay_ms=retry_delay_ms,
        log_level=log_level,
        log_dir=log_dir,
        backup_dir=backup_dir,
    )
    setup_logging(settings.log_level, settings.log_dir)

    hub = EventHub(strict=settings.strict_contracts, debug=debug_events)
    bridge = LogBridge(hub)
    progress = ProgressMonitor(hub)
    completion = CompletionHandler(hub)
    bridge.attach()

    try:
        emit_init_config(hub, settings)

        # -- Confirmation ------------------------------------------------------
        if yes:
            emit_init_complete(hub, success=True, message="Auto-confirmed due to --yes flag")
        elif not sys.stdin.isatty():
            click.echo(
                click.style("Error: confirmation required. Run in an interactive terminal or pass --yes.", fg="red"),
                err=True,
            )
            emit_init_complete(hub, success=False, message="Non-interactive terminal without --yes flag")
            sys.exit(EXIT_FAILURE)
        elif not click.confirm(f"Apply edits from {spec}?", default=True):
            emit_init_complete(hub, success=False, message="Cancelled by user")
            click.echo("Cancelled.")
            sys.exit(EXIT_SUCCESS)
        else:
            emit_init_complete(hub, success=True, message="Confirmed by user")

        # -- Run ---------------------------------------------------------------
        completion.start()
        progress.start()
        click.echo(f"{click.style('Processing spec:', fg='blue')} {click.style(str(spec), fg='cyan')}")
        anyio.run(
            partial(run_pipeline, spec, settings, hub=hub, executor=LocalEditExecutor(), publish_config=False)
        )
    finally:
        progress.stop()
        completion.stop()
        bridge.detach()

    sys.exit(completion.exit_code if completion.exit_code is not None else EXIT_FAILURE)


@main.command()
@click.argument("spec", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--var", "variables", multiple=True, callback=_parse_vars, help="Override a template variable (KEY=VALUE).")
@click.option("--max-tokens", type=click.IntRange(min=1), default=None, help="Input token budget.")
def check(spec: Path, variables: dict[str, str], max_tokens: int | None) -> None:
    """Load and interpolate a spec and estimate its size, without calling the model."""
    import anyio

    from cedit.errors import CeditError, TokenBudgetExceeded
    from cedit.execution.interpolate import build_prompt
    from cedit.execution.loader import load_attachments, load_spec
    from cedit.llm.client import estimate_prompt_tokens

    settings = _load_settings(vars_override=variables or None, max_tokens=max_tokens)

    async def _prepare():
        loaded = await load_spec(spec)
        return build_prompt(loaded, settings.vars_override, await load_attachments(loaded.attachments))

    try:
        prompt = anyio.run(_prepare)
    except CeditError as exc:
        raise click.ClickException(str(exc)) from exc

    estimated = estimate_prompt_tokens(prompt)
    limit = settings.token_budget
    click.echo(f"Spec: {spec}")
    click.echo(f"Estimated tokens: {estimated} (limit {limit})")
    if estimated > limit:
        raise click.ClickException(str(TokenBudgetExceeded(estimated, limit)))
    click.echo(click.style("OK", fg="green"))


if __name__ == "__main__":
    main()
