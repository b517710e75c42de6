"""couchctl CLI - Main entry point."""

import logging
from typing import Annotated

import typer

import couchctl
from couchctl.cli.context import BoolOptionsArg, CLIContext, OptionsArg, run
from couchctl.cli.output import OutputFormat, OutputFormatter
from couchctl.cli.parsing import parse_duration
from couchctl.dsn import DEFAULT_CONFIG_FILE, Config, Resolved
from couchctl.dsn.options import parse_bool_options, parse_key_values
from couchctl.exceptions import CouchctlError, UnavailableError

# Create main Typer app
app = typer.Typer(
    name="couchctl",
    help="couchctl - command-line client for CouchDB-compatible servers",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s" if not debug else "%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _duration(value: str | None, flag: str) -> float | None:
    return parse_duration(value, flag) if value else None


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_file: Annotated[
        str,
        typer.Option(
            "--config",
            envvar="COUCHCTL_CONFIG",
            help="Path to the config file",
        ),
    ] = DEFAULT_CONFIG_FILE,
    context_name: Annotated[
        str | None,
        typer.Option("--context", help="Use the named context from the config file"),
    ] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug output")] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format", case_sensitive=False),
    ] = OutputFormat.FRIENDLY,
    options: OptionsArg = None,
    bool_options: BoolOptionsArg = None,
    retry: Annotated[
        int, typer.Option("--retry", min=0, help="Retry transient failures this many times")
    ] = 0,
    retry_delay: Annotated[
        str | None,
        typer.Option("--retry-delay", help="Fixed delay between retries, e.g. 2s"),
    ] = None,
    retry_timeout: Annotated[
        str | None,
        typer.Option("--retry-timeout", help="Give up retrying after this long"),
    ] = None,
    connect_timeout: Annotated[
        str | None,
        typer.Option("--connect-timeout", help="Limit the time to connect to the server"),
    ] = None,
    request_timeout: Annotated[
        str | None,
        typer.Option("--request-timeout", help="Limit the time to wait for a response"),
    ] = None,
) -> None:
    """Initialize CLI context with global options."""
    setup_logging(debug)
    formatter = OutputFormatter(output_format)

    try:
        config = Config.read(config_file)
        if context_name:
            config = config.use(context_name)
        cli_ctx = CLIContext(
            config=config,
            formatter=formatter,
            options=parse_key_values(options or []),
            bool_options=parse_bool_options(parse_key_values(bool_options or [])),
            connect_timeout=_duration(connect_timeout, "connect-timeout"),
            request_timeout=_duration(request_timeout, "request-timeout"),
            retries=retry,
            retry_delay=_duration(retry_delay, "retry-delay"),
            retry_timeout=_duration(retry_timeout, "retry-timeout") or 0.0,
        )
    except CouchctlError as e:
        formatter.print_error(e, usage_hint=f"Run '{ctx.command_path} --help' for usage.")
        raise typer.Exit(code=e.exit_code) from e

    # Store in Typer context for command access
    ctx.obj = cli_ctx


@app.command()
def version(
    ctx: typer.Context,
    dsn: Annotated[str | None, typer.Argument(help="Also show this server's version")] = None,
) -> None:
    """Show version information."""
    cli_ctx: CLIContext = ctx.obj
    typer.echo(f"couchctl v{couchctl.__version__}")
    if dsn is None and cli_ctx.config.current_or_none() is None:
        return

    def server_version(cli_ctx: CLIContext, resolved: Resolved) -> None:
        client = cli_ctx.client(resolved.context)
        typer.echo(f"server {client.dsn} v{cli_ctx.retry(client.version)}")

    run(ctx, dsn, server_version)


@app.command()
def ping(
    ctx: typer.Context,
    dsn: Annotated[str | None, typer.Argument(help="Server DSN")] = None,
) -> None:
    """Check that the server is up."""

    def do_ping(cli_ctx: CLIContext, resolved: Resolved) -> None:
        client = cli_ctx.client(resolved.context)
        if not cli_ctx.retry(client.ping):
            raise UnavailableError(f"{client.dsn} is down", {"dsn": client.dsn})
        cli_ctx.formatter.print_ok()

    run(ctx, dsn, do_ping)


# Register commands
from couchctl.cli.commands import copy, delete, describe, get, post, put  # noqa: E402

app.command(name="get")(get.get_command)
app.command(name="put")(put.put_command)
app.command(name="post")(post.post_command)
app.command(name="delete")(delete.delete_command)
app.command(name="describe")(describe.describe_command)
app.command(name="descr", hidden=True)(describe.describe_command)
app.command(name="copy")(copy.copy_command)

# Shortcuts for post subcommands
app.command(name="compact")(post.compact_command)
app.command(name="compact-views")(post.compact_views_command)
app.command(name="flush")(post.flush_command)
app.command(name="view-cleanup")(post.view_cleanup_command)
app.command(name="purge")(post.purge_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
