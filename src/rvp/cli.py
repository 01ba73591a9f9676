"""Command-line interface for rvp."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import click
import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from rvp import __version__
from rvp.config import Settings, load_settings
from rvp.exceptions import RvpError
from rvp.observability import configure_logging
from rvp.output import batch_to_json, format_value, print_batch_table
from rvp.schema import URL_PARAM_PLACEHOLDER, Config, SelectorType, load_config, save_config
from rvp.scraper import Extractor, HtmlFetcher, run_batch, validate_config
from rvp.scraper.values import ParsedValue

logger = structlog.get_logger(__name__)


def print_success(console: Console, message: str) -> None:
    console.print(f"[green]✓[/green] {escape(message)}", highlight=False)


def print_warning(console: Console, message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {escape(message)}", highlight=False)


def _load(path: Path) -> Config:
    try:
        return load_config(path)
    except RvpError as e:
        raise click.ClickException(str(e)) from e


def prompt_for_parameters(config: Config, ignore_token: str) -> List[str]:
    """Ask for one value per resource that needs a parameter."""
    params = []
    for index, resource in enumerate(config.resources):
        if resource.needs_parameter:
            params.append(click.prompt(f"Parameter for resource {index} ({resource.url})", type=str))
        else:
            params.append(ignore_token)
    return params


@click.group()
@click.version_option(version=__version__, prog_name="rvp")
@click.option(
    "--settings",
    "-c",
    "settings_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Settings file (YAML). Defaults to ./rvp.yaml when present.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides settings).",
)
@click.pass_context
def cli(ctx: click.Context, settings_path: Optional[Path], log_level: Optional[str]) -> None:
    """rvp - Remote Value Parser.

    Grab values from static web pages with CSS selectors, and replay named
    extraction configs in batch.
    """
    try:
        settings = load_settings(settings_path)
    except (OSError, ValidationError) as e:
        raise click.ClickException(f"invalid settings: {e}") from e
    if log_level:
        settings.monitoring.log_level = log_level.upper()

    configure_logging(settings.monitoring)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.option(
    "--path",
    "-p",
    "config_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Path to the config file (.toml or .json).",
)
@click.argument("params", nargs=-1)
@click.option(
    "--shared",
    "shared",
    metavar="VALUE",
    help=f"One parameter substituted for {URL_PARAM_PLACEHOLDER} in every resource that needs one.",
)
@click.option("--prompt", is_flag=True, help="Ask for missing parameters interactively.")
@click.option("--json", "output_json", is_flag=True, help="Output the data in JSON format.")
@click.option("--fail-fast", is_flag=True, help="Abort the whole batch on the first failed resource.")
@click.option("--max-concurrency", type=click.IntRange(min=1), help="Maximum simultaneous fetches.")
@click.pass_context
def batch(
    ctx: click.Context,
    config_path: Path,
    params: tuple[str, ...],
    shared: Optional[str],
    prompt: bool,
    output_json: bool,
    fail_fast: bool,
    max_concurrency: Optional[int],
) -> None:
    """Parse the data fields of every resource defined in a config file.

    PARAMS are positional, one per resource, substituted for the placeholder
    in that resource's URL. Use "_" for resources that do not need one:

        rvp batch -p stocks.toml AAPL _ MSFT
    """
    settings: Settings = ctx.obj["settings"]
    if fail_fast:
        settings.batch.fail_fast = True
    if max_concurrency is not None:
        settings.fetch.max_concurrency = max_concurrency

    config = _load(config_path)
    if params and shared is not None:
        raise click.UsageError("positional PARAMS and --shared are mutually exclusive")

    logger.debug("Batch requested", config=config.name, resources=len(config.resources), params=len(params))
    param_list: Optional[List[str]] = list(params) or None
    if prompt and config.needs_parameters and param_list is None and shared is None:
        param_list = prompt_for_parameters(config, settings.extraction.ignore_token)

    try:
        result = asyncio.run(run_batch(config.resources, settings, param_list, shared))
    except RvpError as e:
        raise click.ClickException(str(e)) from e

    if output_json:
        click.echo(batch_to_json(result))
    else:
        print_batch_table(result, Console())

    if not result.ok:
        ctx.exit(1)


async def _grab(settings: Settings, selector: str, url: str, parsed_type: SelectorType):
    async with HtmlFetcher(settings.fetch) as fetcher:
        return await Extractor(fetcher, settings.extraction).grab_one(selector, url, parsed_type)


@cli.command()
@click.option(
    "--selector",
    "-s",
    required=True,
    metavar="PATH",
    help='Selector path to grab, e.g. "body > div > h1" (browser devtools: Copy > Selector).',
)
@click.option("--from", "-f", "url", required=True, metavar="URL", help="URL of the web page to grab from.")
@click.option(
    "--type",
    "value_type",
    type=click.Choice(["string", "number"], case_sensitive=False),
    default="string",
    show_default=True,
    help="Type the grabbed text as a string or a number.",
)
@click.option("--json", "output_json", is_flag=True, help="Output the value in JSON format.")
@click.pass_context
def grab(ctx: click.Context, selector: str, url: str, value_type: str, output_json: bool) -> None:
    """Simply grab one value from a web page."""
    settings: Settings = ctx.obj["settings"]
    parsed_type = SelectorType.NUMBER if value_type.lower() == "number" else SelectorType.STRING
    try:
        value = asyncio.run(_grab(settings, selector, url, parsed_type))
    except RvpError as e:
        raise click.ClickException(str(e)) from e

    if output_json:
        click.echo(json.dumps({"url": url, "data": [ParsedValue(name=selector, value=value).to_dict()]}))
    elif isinstance(value, str):
        click.echo(value)
    else:
        click.echo(format_value(value))


@cli.command()
@click.option("--path", "-p", "config_path", required=True, type=click.Path(path_type=Path))
def validate(config_path: Path) -> None:
    """Check a config's selectors and URLs without fetching anything."""
    config = _load(config_path)
    try:
        validate_config(config)
    except RvpError as e:
        raise click.ClickException(str(e)) from e

    console = Console()
    selectors = sum(len(resource.selectors) for resource in config.resources)
    print_success(
        console, f"Config '{config.name}' is valid: {len(config.resources)} resource(s), {selectors} selector(s)"
    )
    for index, resource in enumerate(config.resources):
        if not resource.selectors:
            print_warning(console, f"resource {index} ({resource.url}) has no selectors")
        if resource.needs_parameter:
            console.print(f"  resource {index} needs a parameter: {resource.url}", highlight=False, markup=False)


@cli.command()
@click.option("--path", "-p", "config_path", required=True, type=click.Path(path_type=Path))
@click.option("--output", "-o", "output_path", required=True, type=click.Path(path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite the output file if it exists.")
def convert(config_path: Path, output_path: Path, force: bool) -> None:
    """Re-save a config in the format implied by the output extension (.toml or .json)."""
    config = _load(config_path)
    if output_path.exists() and not force:
        raise click.ClickException(f"{output_path} already exists, use --force to overwrite")
    try:
        save_config(config, output_path)
    except RvpError as e:
        raise click.ClickException(str(e)) from e
    print_success(Console(), f"Saved {output_path}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
