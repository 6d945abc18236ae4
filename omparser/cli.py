"""CLI commands for omparser."""

import logging
from enum import Enum
from typing import Optional

import typer
from rich.console import Console

from omparser import __version__
from omparser.config import Config, load_config, save_config, set_config_value
from omparser.display import (
    display_config,
    display_document,
    display_family_samples,
    display_json,
    display_parse_error,
    print_error,
    print_success,
    print_warning,
)
from omparser.errors import ParseError
from omparser.model import Document
from omparser.parser import parse_openmetrics
from omparser.prometheus import parse_prometheus
from omparser.sources import SourceError, read_exposition
from omparser.transformer import document_to_dict

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="omparser",
    help="Parse and validate OpenMetrics and Prometheus text expositions.",
    add_completion=False,
)
config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")

console = Console()

SOURCE_HELP = (
    "File path, '-' for standard input, or an http(s) URL. "
    "Defaults to the configured fetch.url"
)


class ExpositionFormat(str, Enum):
    """Text formats the parser understands."""

    OPENMETRICS = "openmetrics"
    PROMETHEUS = "prometheus"


PARSERS = {
    ExpositionFormat.OPENMETRICS: parse_openmetrics,
    ExpositionFormat.PROMETHEUS: parse_prometheus,
}

FORMAT_NAMES = {
    ExpositionFormat.OPENMETRICS: "OpenMetrics",
    ExpositionFormat.PROMETHEUS: "Prometheus",
}


def _setup_logging(config: Config) -> None:
    """Configure logging."""
    log_level = getattr(logging, config.logging.level.upper(), logging.WARNING)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if config.logging.file:
        try:
            file_handler = logging.FileHandler(config.logging.file)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            logging.getLogger().addHandler(file_handler)
        except OSError:
            logger.warning(f"Cannot write to log file: {config.logging.file}")


def _parse_source(
    source: Optional[str],
    config: Config,
    exposition_format: ExpositionFormat = ExpositionFormat.OPENMETRICS,
) -> tuple[str, Document]:
    """Read and parse an exposition, exiting with status 1 on failure."""
    if source is None:
        source = config.fetch.url

    try:
        raw = read_exposition(source, config.fetch)
    except SourceError as e:
        print_error(str(e))
        raise typer.Exit(1)

    try:
        document = PARSERS[exposition_format](raw)
    except ParseError as e:
        logger.info(f"Failed to parse {source}: {e!r}")
        display_parse_error(e, raw.decode("utf-8", errors="replace"))
        raise typer.Exit(1)

    logger.info(f"Parsed {len(document)} metric families from {source}")
    return source, document


@app.command()
def parse(
    source: Optional[str] = typer.Argument(None, help=SOURCE_HELP),
    as_json: bool = typer.Option(
        False, "--json", "-j",
        help="Print the document as JSON"
    ),
    samples: bool = typer.Option(
        False, "--samples", "-s",
        help="Show the samples of each family"
    ),
    family: Optional[str] = typer.Option(
        None, "--family", "-f",
        help="Only show this metric family"
    ),
    exposition_format: ExpositionFormat = typer.Option(
        ExpositionFormat.OPENMETRICS, "--format", "-F",
        help="Exposition text format"
    ),
):
    """Parse an exposition and show its metric families."""
    config = load_config()
    _setup_logging(config)

    source, document = _parse_source(source, config, exposition_format)

    if family is not None:
        selected = document.get_family(family)
        if selected is None:
            print_error(f"Metric family not found: {family}")
            raise typer.Exit(1)
        document = Document(families=(selected,))

    if as_json:
        display_json(document_to_dict(document, source))
        return

    if not document.families:
        print_warning("Exposition contains no metric families")
        return

    display_document(document, source)
    if samples or family is not None:
        for metric_family in document:
            display_family_samples(metric_family, config.display.max_samples)


@app.command()
def validate(
    source: Optional[str] = typer.Argument(None, help=SOURCE_HELP),
    exposition_format: ExpositionFormat = typer.Option(
        ExpositionFormat.OPENMETRICS, "--format", "-F",
        help="Exposition text format"
    ),
):
    """Check that an exposition is valid."""
    config = load_config()
    _setup_logging(config)

    source, document = _parse_source(source, config, exposition_format)
    sample_count = len(document.all_samples())
    print_success(
        f"Valid {FORMAT_NAMES[exposition_format]} exposition: "
        f"{len(document)} families, {sample_count} samples"
    )


@app.command()
def version():
    """Show version information."""
    console.print(f"omparser v{__version__}")


# Config subcommands
@config_app.command("show")
def config_show():
    """Show current configuration."""
    config = load_config()
    display_config(config.model_dump())


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Value to set"),
):
    """Set a configuration value.

    Available keys:
    - fetch.url: Default scrape URL
    - fetch.timeout: HTTP timeout in seconds
    - fetch.accept: Accept header sent when scraping
    - logging.level: Log level (DEBUG, INFO, WARNING, ERROR)
    - logging.file: Log file path (empty to disable)
    - display.max_samples: Samples shown per family (0 for all)
    """
    try:
        set_config_value(key, value)
        print_success(f"{key} = {value}")
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except PermissionError:
        print_error("Permission denied writing the configuration file.")
        raise typer.Exit(1)


@config_app.command("reset")
def config_reset():
    """Reset configuration to defaults."""
    try:
        save_config(Config())
        print_success("Configuration reset to defaults")
    except PermissionError:
        print_error("Permission denied writing the configuration file.")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
