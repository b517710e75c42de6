"""Put command: create or replace a resource."""

import mimetypes
from functools import partial
from typing import Annotated

import typer

from couchctl.cli.context import BoolOptionsArg, CLIContext, OptionsArg, config_key, dispatch
from couchctl.cli.parsing import read_document, read_raw
from couchctl.core.types import Attachment
from couchctl.dsn import Resolved, ResourceKind
from couchctl.dsn.paths import security_locator
from couchctl.exceptions import UsageError

DEFAULT_NODE = "_local"

DataOption = Annotated[
    str | None, typer.Option("--data", "-d", help="JSON document data")
]
DataFileOption = Annotated[
    str | None,
    typer.Option(
        "--data-file",
        "-D",
        help="Read data from the named file; - for stdin. YAML if the name ends in .yaml or .yml",
    ),
]
YamlOption = Annotated[bool, typer.Option("--yaml", help="Treat input data as YAML")]


def put_config(
    cli_ctx: CLIContext,
    resolved: Resolved,
    node: str,
    key: str,
    data: str | None,
    data_file: str | None,
) -> None:
    node, section, name = config_key(resolved, node, key)
    if not section or not name:
        raise UsageError("section/key must contain a slash", {"key": key})
    value = read_raw(data, data_file).decode()
    client = cli_ctx.client(resolved.context)
    old = cli_ctx.retry(lambda: client.set_config(node, section, name, value))
    cli_ctx.formatter.print_data(old)


def put_security(
    cli_ctx: CLIContext, resolved: Resolved, data: str | None, data_file: str | None, yaml: bool
) -> None:
    db = security_locator(resolved.path) or resolved.context.db()
    security = read_document(data, data_file, yaml)
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.set_security(db, security))
    cli_ctx.formatter.print_ok()


def put_attachment(
    cli_ctx: CLIContext,
    resolved: Resolved,
    data: str | None,
    data_file: str | None,
    content_type: str | None,
) -> None:
    db, doc_id, filename = resolved.context.db_doc_filename()
    content = read_raw(data, data_file)
    if not content_type:
        content_type, _ = mimetypes.guess_type(filename)
    attachment = Attachment(
        filename=filename,
        content_type=content_type or "application/octet-stream",
        length=len(content),
        content=content,
    )
    client = cli_ctx.client(resolved.context)
    result = cli_ctx.retry(
        lambda: client.put_attachment(db, doc_id, attachment, resolved.options)
    )
    cli_ctx.formatter.print_update_result(result)


def put_document(
    cli_ctx: CLIContext, resolved: Resolved, data: str | None, data_file: str | None, yaml: bool
) -> None:
    db, doc_id = resolved.context.db_doc()
    if not doc_id:
        raise UsageError("document ID required", {"dsn": resolved.context.dsn()})
    doc = read_document(data, data_file, yaml)
    client = cli_ctx.client(resolved.context)
    result = cli_ctx.retry(lambda: client.put_doc(db, doc_id, doc, resolved.options))
    cli_ctx.formatter.print_update_result(result)


def put_database(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = resolved.context.db()
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.create_db(db, resolved.options))
    cli_ctx.formatter.print_ok()


def put_command(
    ctx: typer.Context,
    args: Annotated[
        list[str] | None,
        typer.Argument(metavar="[KIND] [DSN]", help="Optional resource kind, then the DSN"),
    ] = None,
    options: OptionsArg = None,
    bool_options: BoolOptionsArg = None,
    data: DataOption = None,
    data_file: DataFileOption = None,
    yaml: YamlOption = False,
    content_type: Annotated[
        str | None, typer.Option("--content-type", help="Attachment content type")
    ] = None,
    node: Annotated[
        str, typer.Option("--node", "-n", help="Node name for config updates")
    ] = DEFAULT_NODE,
    key: Annotated[str, typer.Option("--key", "-k", help="Config section/key")] = "",
) -> None:
    """Create or replace a resource.

    KIND is one of document, database, attachment, config or security.
    Without it, the kind is taken from the DSN.

    Examples:

        couchctl put http://localhost:5984/mydb
        couchctl put mydb/mydoc -d '{"foo": "bar"}'
        couchctl put mydb/mydoc/photo.jpg -D photo.jpg -O rev=1-abc
        couchctl put config --key log/level -d debug
    """
    dispatch(
        ctx,
        args,
        {
            ResourceKind.CONFIG: partial(
                put_config, node=node, key=key, data=data, data_file=data_file
            ),
            ResourceKind.SECURITY: partial(
                put_security, data=data, data_file=data_file, yaml=yaml
            ),
            ResourceKind.ATTACHMENT: partial(
                put_attachment, data=data, data_file=data_file, content_type=content_type
            ),
            ResourceKind.DOCUMENT: partial(
                put_document, data=data, data_file=data_file, yaml=yaml
            ),
            ResourceKind.DATABASE: put_database,
        },
        options=options,
        bool_options=bool_options,
    )
