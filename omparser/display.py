"""Rich terminal output for parsed documents and errors."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from omparser.errors import ParseError
from omparser.model import MetricFamily, Document, Number, NumberKind

console = Console()


def get_type_color(type_name: str) -> str:
    """Get color for a metric type.

    Args:
        type_name: Metric type value

    Returns:
        Color name for Rich
    """
    return {
        "counter": "green",
        "gauge": "cyan",
        "histogram": "magenta",
        "gaugehistogram": "magenta",
        "summary": "yellow",
        "stateset": "blue",
        "info": "blue",
    }.get(type_name, "dim")


def format_number(number: Number) -> str:
    """Format a number for display, highlighting non-finite values."""
    if number.kind is NumberKind.FINITE:
        return number.to_text()
    return f"[yellow]{number.to_text()}[/yellow]"


def display_document(document: Document, source: Optional[str] = None) -> None:
    """Display a summary table of the metric families in a document.

    Args:
        document: Parsed document
        source: Where the exposition was read from
    """
    table = Table(show_header=True, box=None, padding=(0, 1), expand=True)
    table.add_column("Family", style="bold cyan")
    table.add_column("Type", width=14)
    table.add_column("Unit", width=10)
    table.add_column("Samples", justify="right", width=8)
    table.add_column("Help")

    for family in document.families:
        type_name = family.type.value
        color = get_type_color(type_name)
        table.add_row(
            family.name,
            f"[{color}]{type_name}[/{color}]",
            family.unit or "",
            str(len(family.samples)),
            Text(family.help or ""),
        )

    sample_count = len(document.all_samples())
    title = f"{len(document)} families • {sample_count} samples"
    subtitle = f"[dim]{source}[/dim]" if source else None
    console.print(Panel(table, title=title, subtitle=subtitle, border_style="blue"))


def display_family_samples(family: MetricFamily, max_samples: int = 20) -> None:
    """Display the samples of one metric family.

    Args:
        family: Metric family to display
        max_samples: Maximum number of rows to show (0 for no limit)
    """
    table = Table(show_header=True, box=None, padding=(0, 1))
    table.add_column("Sample", style="cyan")
    table.add_column("Labels")
    table.add_column("Value", justify="right")
    table.add_column("Timestamp", justify="right")
    table.add_column("Exemplar")

    samples = family.samples
    if max_samples:
        samples = samples[:max_samples]

    for sample in samples:
        exemplar = ""
        if sample.exemplar is not None:
            exemplar = f"{sample.exemplar.labels.to_text() or '{}'} {sample.exemplar.value.to_text()}"
        table.add_row(
            sample.name,
            Text(sample.labels.to_text()),
            format_number(sample.value),
            sample.timestamp.to_text() if sample.timestamp is not None else "",
            Text(exemplar),
        )

    hidden = len(family.samples) - len(samples)
    subtitle = f"[dim]{hidden} more samples not shown[/dim]" if hidden > 0 else None
    console.print(Panel(table, title=family.name, subtitle=subtitle, border_style="cyan"))


def display_parse_error(error: ParseError, text: Optional[str] = None) -> None:
    """Display a parse error, pointing at the offending line when available.

    Args:
        error: Parse error
        text: Decoded exposition the error refers to
    """
    print_error(f"{error.kind.value}: {error}")
    if text is None:
        return
    line = error.source_line(text)
    if line is None:
        return
    console.print(Text(f"  {error.line} | {line}", style="dim"))
    gutter = " " * (len(str(error.line)) + 5)
    console.print(Text(gutter + " " * (error.column - 1) + "^", style="red"))


def display_config(config: dict[str, Any]) -> None:
    """Display configuration.

    Args:
        config: Configuration dictionary
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    # Flatten and display config
    def add_items(d: dict, prefix: str = ""):
        for key, value in d.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                add_items(value, full_key)
            else:
                table.add_row(full_key, str(value))

    add_items(config)

    panel = Panel(table, title="Configuration", border_style="blue")
    console.print(panel)


def display_json(data: dict[str, Any]) -> None:
    """Display JSON data with syntax highlighting.

    Args:
        data: Dictionary to display as JSON
    """
    json_str = json.dumps(data, indent=2, default=str)
    syntax = Syntax(json_str, "json", theme="monokai", line_numbers=False)
    console.print(syntax)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(Text(f"✅ {message}", style="green"))


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(Text(f"❌ {message}", style="red"))


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(Text(f"⚠️  {message}", style="yellow"))
