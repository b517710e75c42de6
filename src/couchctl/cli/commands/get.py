"""Get command: fetch a resource."""

from functools import partial
from typing import Annotated

import typer

from couchctl.cli.context import BoolOptionsArg, CLIContext, OptionsArg, config_key, dispatch
from couchctl.dsn import Resolved, ResourceKind
from couchctl.dsn.paths import security_locator

DEFAULT_NODE = "_local"


def get_config(cli_ctx: CLIContext, resolved: Resolved, node: str, key: str) -> None:
    node, section, name = config_key(resolved, node, key)
    client = cli_ctx.client(resolved.context)
    value = cli_ctx.retry(lambda: client.get_config(node, section, name))
    cli_ctx.formatter.print_data(value)


def get_security(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = security_locator(resolved.path) or resolved.context.db()
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_data(cli_ctx.retry(lambda: client.get_security(db)))


def get_all_dbs(cli_ctx: CLIContext, resolved: Resolved) -> None:
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_data(cli_ctx.retry(lambda: client.all_dbs(resolved.options)))


def get_cluster_setup(cli_ctx: CLIContext, resolved: Resolved) -> None:
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_data(cli_ctx.retry(lambda: client.cluster_setup(resolved.options)))


def get_attachment(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db, doc_id, filename = resolved.context.db_doc_filename()
    client = cli_ctx.client(resolved.context)
    attachment = cli_ctx.retry(
        lambda: client.get_attachment(db, doc_id, filename, resolved.options)
    )
    cli_ctx.formatter.print_attachment(attachment)


def get_document(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db, doc_id = resolved.context.db_doc()
    client = cli_ctx.client(resolved.context)
    doc = cli_ctx.retry(lambda: client.get_doc(db, doc_id, resolved.options))
    cli_ctx.formatter.print_data(doc)


def get_database(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = resolved.context.db()
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_data(cli_ctx.retry(lambda: client.db_info(db)))


def get_server(cli_ctx: CLIContext, resolved: Resolved) -> None:
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_data(cli_ctx.retry(client.server_info))


def get_command(
    ctx: typer.Context,
    args: Annotated[
        list[str] | None,
        typer.Argument(metavar="[KIND] [DSN]", help="Optional resource kind, then the DSN"),
    ] = None,
    options: OptionsArg = None,
    bool_options: BoolOptionsArg = None,
    node: Annotated[
        str, typer.Option("--node", "-n", help="Node name for config lookups")
    ] = DEFAULT_NODE,
    key: Annotated[
        str, typer.Option("--key", "-k", help="Config section, or section/key")
    ] = "",
) -> None:
    """Get a resource.

    KIND is one of document, database, attachment, config, security,
    cluster-setup or all-dbs. Without it, the kind is taken from the DSN.

    Examples:

        couchctl get http://localhost:5984/mydb/mydoc
        couchctl get mydb/mydoc?rev=1-abc
        couchctl get config --key couchdb/max_document_size
        couchctl get mydb/_security
    """
    dispatch(
        ctx,
        args,
        {
            ResourceKind.CONFIG: partial(get_config, node=node, key=key),
            ResourceKind.SECURITY: get_security,
            ResourceKind.ALL_DBS: get_all_dbs,
            ResourceKind.CLUSTER_SETUP: get_cluster_setup,
            ResourceKind.ATTACHMENT: get_attachment,
            ResourceKind.DOCUMENT: get_document,
            ResourceKind.DATABASE: get_database,
            ResourceKind.SERVER: get_server,
        },
        options=options,
        bool_options=bool_options,
    )
