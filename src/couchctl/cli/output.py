"""Output formatting for CLI commands."""

import json
import sys
from enum import StrEnum
from typing import Any

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from couchctl.core.types import Attachment, Description, UpdateResult
from couchctl.exceptions import CouchctlError

console = Console()
err_console = Console(stderr=True)


class OutputFormat(StrEnum):
    """Output formats selectable with --format."""

    FRIENDLY = "friendly"
    JSON = "json"
    YAML = "yaml"
    RAW = "raw"


class OutputFormatter:
    """Formats command results for the terminal, JSON, YAML or raw output."""

    def __init__(self, fmt: OutputFormat = OutputFormat.FRIENDLY) -> None:
        """Initialize formatter.

        Args:
            fmt: Output format for results and errors
        """
        self.fmt = fmt

    @property
    def friendly(self) -> bool:
        return self.fmt == OutputFormat.FRIENDLY

    def print_data(self, data: Any) -> None:
        """Print a JSON-compatible value (document, list, info object)."""
        if self.fmt == OutputFormat.YAML:
            print(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), end="")
        elif self.fmt == OutputFormat.RAW:
            print(json.dumps(data, default=str))
        elif self.fmt == OutputFormat.JSON:
            print(json.dumps(data, default=str, indent=2))
        else:
            console.print_json(data=data, default=str)

    def print_ok(self) -> None:
        """Report success of a command with no result body."""
        if self.friendly:
            console.print("OK", style="green")
        else:
            self.print_data({"ok": True})

    def print_update_result(self, result: UpdateResult) -> None:
        """Print the document ID and new revision of a write."""
        if self.friendly:
            console.print(f"✓ {result.id}", style="green")
            console.print(f"  rev: {result.rev}", style="dim")
        else:
            self.print_data(result.model_dump())

    def print_description(self, description: Description) -> None:
        """Print the response headers returned by a HEAD request."""
        if self.fmt == OutputFormat.RAW:
            for key, value in description.headers.items():
                print(f"{key}: {value}")
        elif not self.friendly:
            self.print_data(description.model_dump())
        else:
            table = Table(title=description.url, show_header=True, header_style="bold magenta")
            table.add_column("Header")
            table.add_column("Value")
            for key, value in sorted(description.headers.items()):
                table.add_row(key, value)
            console.print(table)

    def print_attachment(self, attachment: Attachment) -> None:
        """Write attachment content as is, or its metadata for JSON/YAML."""
        if self.fmt in (OutputFormat.JSON, OutputFormat.YAML):
            self.print_data(attachment.model_dump())
            return
        sys.stdout.buffer.write(attachment.content)
        sys.stdout.flush()

    def print_error(self, error: Exception, usage_hint: str = "") -> None:
        """Print error message to stderr.

        Args:
            error: Exception to display
            usage_hint: Shown after the message for command-line mistakes
        """
        if not self.friendly:
            if isinstance(error, CouchctlError):
                output = error.to_dict()
            else:
                output = {"error": error.__class__.__name__, "message": str(error)}
            print(json.dumps(output, default=str, indent=2), file=sys.stderr)
            return

        error_text = str(error)
        if isinstance(error, CouchctlError) and error.context:
            context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
            error_text = f"{error_text}\n\n{context_str}"
        if usage_hint:
            error_text = f"{error_text}\n\n{usage_hint}"

        panel = Panel(
            error_text,
            title="[red]Error[/red]",
            border_style="red",
        )
        err_console.print(panel)
