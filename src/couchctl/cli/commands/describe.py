"""Describe command: show the headers of a resource."""

from typing import Annotated

import typer

from couchctl.cli.context import BoolOptionsArg, CLIContext, OptionsArg, dispatch
from couchctl.dsn import Resolved, ResourceKind


def describe_attachment(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db, doc_id, filename = resolved.context.db_doc_filename()
    client = cli_ctx.client(resolved.context)
    description = cli_ctx.retry(
        lambda: client.describe_attachment(db, doc_id, filename, resolved.options)
    )
    cli_ctx.formatter.print_description(description)


def describe_document(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db, doc_id = resolved.context.db_doc()
    client = cli_ctx.client(resolved.context)
    description = cli_ctx.retry(lambda: client.describe_doc(db, doc_id, resolved.options))
    cli_ctx.formatter.print_description(description)


def describe_database(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = resolved.context.db()
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_description(cli_ctx.retry(lambda: client.describe_db(db)))


def describe_server(cli_ctx: CLIContext, resolved: Resolved) -> None:
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_description(cli_ctx.retry(client.describe_server))


def describe_command(
    ctx: typer.Context,
    args: Annotated[
        list[str] | None,
        typer.Argument(metavar="[KIND] [DSN]", help="Optional resource kind, then the DSN"),
    ] = None,
    options: OptionsArg = None,
    bool_options: BoolOptionsArg = None,
) -> None:
    """Describe a resource with a HEAD request.

    KIND is one of server, database, document or attachment.

    Examples:

        couchctl describe mydb/mydoc
        couchctl describe server http://localhost:5984/
    """
    dispatch(
        ctx,
        args,
        {
            ResourceKind.ATTACHMENT: describe_attachment,
            ResourceKind.DOCUMENT: describe_document,
            ResourceKind.DATABASE: describe_database,
            ResourceKind.SERVER: describe_server,
        },
        options=options,
        bool_options=bool_options,
    )
