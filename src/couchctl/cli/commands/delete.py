"""Delete command: remove a resource."""

from functools import partial
from typing import Annotated

import typer

from couchctl.cli.context import BoolOptionsArg, CLIContext, OptionsArg, config_key, dispatch
from couchctl.dsn import Resolved, ResourceKind
from couchctl.exceptions import UsageError

DEFAULT_NODE = "_local"


def delete_config(cli_ctx: CLIContext, resolved: Resolved, node: str, key: str) -> None:
    node, section, name = config_key(resolved, node, key)
    if not section or not name:
        raise UsageError("section/key must contain a slash", {"key": key})
    client = cli_ctx.client(resolved.context)
    old = cli_ctx.retry(lambda: client.delete_config(node, section, name))
    cli_ctx.formatter.print_data(old)


def delete_attachment(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db, doc_id, filename = resolved.context.db_doc_filename()
    client = cli_ctx.client(resolved.context)
    result = cli_ctx.retry(
        lambda: client.delete_attachment(db, doc_id, filename, resolved.options)
    )
    cli_ctx.formatter.print_update_result(result)


def delete_document(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db, doc_id = resolved.context.db_doc()
    if not doc_id:
        raise UsageError("document ID required", {"dsn": resolved.context.dsn()})
    client = cli_ctx.client(resolved.context)
    result = cli_ctx.retry(lambda: client.delete_doc(db, doc_id, resolved.options))
    cli_ctx.formatter.print_update_result(result)


def delete_database(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = resolved.context.db()
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.destroy_db(db))
    cli_ctx.formatter.print_ok()


def delete_command(
    ctx: typer.Context,
    args: Annotated[
        list[str] | None,
        typer.Argument(metavar="[KIND] [DSN]", help="Optional resource kind, then the DSN"),
    ] = None,
    options: OptionsArg = None,
    bool_options: BoolOptionsArg = None,
    node: Annotated[
        str, typer.Option("--node", "-n", help="Node name for config deletion")
    ] = DEFAULT_NODE,
    key: Annotated[str, typer.Option("--key", "-k", help="Config section/key")] = "",
) -> None:
    """Delete a resource.

    KIND is one of document, database, attachment or config. Without it,
    the kind is taken from the DSN.

    Examples:

        couchctl delete mydb/mydoc -O rev=1-abc
        couchctl delete http://localhost:5984/mydb
        couchctl delete http://localhost:5984/_node/_local/_config/log/level
    """
    dispatch(
        ctx,
        args,
        {
            ResourceKind.CONFIG: partial(delete_config, node=node, key=key),
            ResourceKind.ATTACHMENT: delete_attachment,
            ResourceKind.DOCUMENT: delete_document,
            ResourceKind.DATABASE: delete_database,
        },
        options=options,
        bool_options=bool_options,
    )
