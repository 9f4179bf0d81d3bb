"""CLI interface for rimpub."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .config import CONFIG_KEYS, GlobalConfig
from .exceptions import RimpubError
from .generate import generate_config_file, generate_ignore_file
from .output import OutputFormatter
from .publish import PublishEngine, PublishOutcome, PublishRequest, PublishResult

logger = logging.getLogger(__name__)

COMMAND_ALIASES = {
    "pub": "publish",
    "p": "publish",
    "cfg": "config",
    "c": "config",
    "gen": "generate",
    "g": "generate",
}

# Exit status of `publish --strict` when some entries failed to copy
EXIT_COMPLETED_WITH_ERRORS = 2


class AliasedGroup(click.Group):
    """Click group that also resolves the short command aliases."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        alias_target = COMMAND_ALIASES.get(cmd_name)
        if alias_target is None:
            return None
        return super().get_command(ctx, alias_target)

    def resolve_command(self, ctx: click.Context, args: list[str]) -> Any:
        # Report the canonical name, not the alias
        _, command, args = super().resolve_command(ctx, args)
        return command.name if command else None, command, args


def prompt_confirmation(prompt: str) -> bool:
    """Ask a yes/no question on the terminal.

    Only "y" or "yes" (any case) count as yes; anything else, including
    an empty answer or end of input, is a no.
    """
    try:
        answer = click.prompt(
            f"{prompt} (y/N)", default="", show_default=False, prompt_suffix=": "
        )
    except click.Abort:
        return False
    return answer.strip().lower() in ("y", "yes")


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("rimpub").setLevel(level)


def _get_config(ctx: click.Context) -> GlobalConfig:
    return ctx.obj["config"]


@click.group(cls=AliasedGroup)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase log verbosity (-v info, -vv debug)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.version_option(version=__version__, prog_name="rimpub")
@click.pass_context
def main(ctx: Any, verbose: int, quiet: bool, json_output: bool) -> None:
    """rimpub - publish a RimWorld mod project into the game's Mods folder."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json_output, quiet=quiet)
    _configure_logging(verbose)

    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = GlobalConfig.load()
        except RimpubError as e:
            ctx.obj["out"].error(f"Failed to load config file: {e}")
            ctx.exit(1)


def _report_publish(out: OutputFormatter, result: PublishResult) -> None:
    mirror = result.mirror
    if mirror is None:
        return

    if result.outcome == PublishOutcome.COMPLETED_WITH_ERRORS:
        out.warning(
            "Error encountered during processing, "
            f"{len(mirror.errors)} entries could not be copied:"
        )
        for error in mirror.errors:
            out.warning(f"  {error}")
    else:
        out.success(f"Successfully processed {result.plan.project_name}")

    out.print_summary(
        "Publish Complete",
        [
            ("Project", result.plan.project_name),
            ("Destination", str(result.plan.destination_root)),
            ("Files copied", str(mirror.files_copied)),
            ("Directories created", str(mirror.directories_created)),
            ("Errors", str(len(mirror.errors))),
        ],
    )


@main.command()
@click.option(
    "--target-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Alternate target directory used instead of the configured mods path",
)
@click.option(
    "--strict",
    is_flag=True,
    help=f"Exit with status {EXIT_COMPLETED_WITH_ERRORS} if any file failed to copy",
)
@click.pass_context
def publish(ctx: Any, target_dir: Optional[Path], strict: bool) -> None:
    """Publish the current folder as a RimWorld mod to the configured path.

    Aliases: pub, p
    """
    out: OutputFormatter = ctx.obj["out"]
    engine = PublishEngine(
        _get_config(ctx), confirm=prompt_confirmation, output=out
    )

    try:
        result = engine.publish(PublishRequest(target_dir_override=target_dir))
    except Exception as e:
        logger.debug("Publish failed", exc_info=True)
        out.error(f"Unexpected error during exec: {e}")
        ctx.exit(1)

    _report_publish(out, result)
    if strict and result.outcome == PublishOutcome.COMPLETED_WITH_ERRORS:
        ctx.exit(EXIT_COMPLETED_WITH_ERRORS)


@main.group("config")
@click.pass_context
def config_group(ctx: Any) -> None:
    """Configure the mod publishing settings.

    Aliases: cfg, c
    """


@config_group.command("get")
@click.argument("key", required=False)
@click.pass_context
def config_get(ctx: Any, key: Optional[str]) -> None:
    """Get a configuration value (all values if KEY is omitted)."""
    out: OutputFormatter = ctx.obj["out"]
    config = _get_config(ctx)

    try:
        keys = [key] if key else list(CONFIG_KEYS)
        values = {k: config.get(k) for k in keys}
    except RimpubError as e:
        out.error(f"Unexpected error during exec: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(values)
        return

    if key:
        value = values[key]
        if value is None:
            out.warning(f"'{key}' not set")
        else:
            out.info(f"'{key}' = {value}")
        return

    out.print_summary(
        "Config",
        [(k, v if v is not None else "(not set)") for k, v in values.items()]
        + [("config file", str(config.config_path))],
    )


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: Any, key: str, value: str) -> None:
    """Set a configuration value."""
    out: OutputFormatter = ctx.obj["out"]
    config = _get_config(ctx)

    try:
        config.set(key, value)
    except RimpubError as e:
        out.error(f"Unexpected error during exec: {e}")
        ctx.exit(1)

    out.success(f"Set '{key.lower()}' to {config.get(key)}")


@config_group.command("check")
@click.pass_context
def config_check(ctx: Any) -> None:
    """Check that the current config is valid."""
    out: OutputFormatter = ctx.obj["out"]
    problems = _get_config(ctx).check()

    if problems:
        for problem in problems:
            out.warning(problem)
        out.warning("Config check failed")
        ctx.exit(1)

    out.success("Config ready")


def _run_generators(out: OutputFormatter, config_file: bool, ignore_file: bool) -> None:
    working_dir = Path.cwd()
    generated = []
    if config_file:
        out.info("Generating configuration file...")
        path = generate_config_file(working_dir)
        if path is None:
            out.warning("Configuration file already exists")
        else:
            generated.append(path)
    if ignore_file:
        out.info("Generating ignore file...")
        path = generate_ignore_file(working_dir)
        if path is None:
            out.warning("Ignore file already exists")
        else:
            generated.append(path)
    for path in generated:
        out.success(f"Created {path}")


@main.group(invoke_without_command=True)
@click.pass_context
def generate(ctx: Any) -> None:
    """Generate template files for the mod.

    Without a subcommand both the config and the ignore file are generated.

    Aliases: gen, g
    """
    if ctx.invoked_subcommand is not None:
        return

    out: OutputFormatter = ctx.obj["out"]
    out.info("No subcommand provided, generating both config and ignore files")
    try:
        _run_generators(out, config_file=True, ignore_file=True)
    except RimpubError as e:
        out.error(f"Unexpected error during exec: {e}")
        ctx.exit(1)


@generate.command("config-file")
@click.pass_context
def generate_config(ctx: Any) -> None:
    """Generate a configuration file for the mod."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        _run_generators(out, config_file=True, ignore_file=False)
    except RimpubError as e:
        out.error(f"Unexpected error during exec: {e}")
        ctx.exit(1)


@generate.command("ignore-file")
@click.pass_context
def generate_ignore(ctx: Any) -> None:
    """Generate an ignore file for the mod."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        _run_generators(out, config_file=False, ignore_file=True)
    except RimpubError as e:
        out.error(f"Unexpected error during exec: {e}")
        ctx.exit(1)


if __name__ == "__main__":
    main()
