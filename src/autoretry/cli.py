"""CLI for inspecting retry profiles and resolved policies"""

import logging
import random
from pathlib import Path
from typing import List, Optional

import click
from pydantic import ValidationError

from autoretry.domain.catalog import PROFILE_CATALOG
from autoretry.domain.config.retry import RetryBinding
from autoretry.domain.models.profile import ProfileName
from autoretry.infrastructure.config.config_manager import ConfigManager, ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def parse_delays(value: Optional[str]) -> Optional[List[int]]:
    """Parse a comma separated delay list ("10,50,100")

    An empty string means an explicitly empty sequence (no retries).
    """
    if value is None:
        return None
    parts = [part.strip() for part in value.split(",") if part.strip()]
    try:
        return [int(part) for part in parts]
    except ValueError as e:
        raise click.BadParameter(f"delays must be comma separated integers: {value}") from e


def _load_config(ctx) -> ConfigManager:
    try:
        return ConfigManager(ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .auto-retry.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """autoretry - retry policy inspection"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
def profiles():
    """List the built-in retry profiles"""
    for profile in PROFILE_CATALOG.values():
        click.echo(profile.describe())


@cli.command()
@click.option(
    "--profile",
    type=click.Choice([name.value for name in ProfileName], case_sensitive=False),
    help="Retry profile. Without it the default profile applies.",
)
@click.option("--max-retries", type=click.IntRange(min=0), help="Override max retries (RANDOM only)")
@click.option("--delays", type=str, help="Override delays in ms, comma separated")
@click.option("--not-nullable", is_flag=True, help="Treat None results as failures")
@click.option("--label", type=str, help="Resolve the binding configured for this operation label")
@click.option("--seed", type=int, help="Seed for randomized delays")
@click.pass_context
def resolve(
    ctx,
    profile: Optional[str],
    max_retries: Optional[int],
    delays: Optional[str],
    not_nullable: bool,
    label: Optional[str],
    seed: Optional[int],
):
    """Resolve and print a retry policy"""
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    resolver = config_manager.create_resolver(random.Random(seed) if seed is not None else None)

    if label and profile:
        _die("Use either --label or --profile, not both", verbose=verbose)

    if label:
        binding = config_manager.get_binding(label)
        if binding is None:
            click.echo(f"No retry binding configured for {label}, using default profile")
    elif profile:
        try:
            binding = RetryBinding(
                profile=profile,
                nullable=not not_nullable,
                max_retries=max_retries,
                delays=parse_delays(delays),
            )
        except ValidationError as e:
            _die(f"Invalid retry overrides: {e}", verbose=verbose, exc=e)
    else:
        if max_retries is not None or delays is not None or not_nullable:
            _die("Overrides require --profile", verbose=verbose)
        binding = None

    policy = resolver.resolve(binding, label or "cli")
    click.echo(f"Profile: {policy.profile.value}")
    click.echo(f"Max retries: {policy.max_retries}")
    click.echo(f"Delays (ms): {', '.join(str(d) for d in policy.delays) or '-'}")
    click.echo(f"Nullable: {policy.nullable}")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
