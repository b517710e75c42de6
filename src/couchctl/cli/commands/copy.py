"""Copy command: duplicate a document, possibly onto another server."""

import logging
from functools import partial
from typing import Annotated, Any

import typer

from couchctl.cli.context import BoolOptionsArg, CLIContext, OptionsArg, run
from couchctl.dsn import Context, Resolved, parse_dsn
from couchctl.exceptions import UsageError

logger = logging.getLogger(__name__)


def should_emulate_copy(source: Context, target: Context) -> bool:
    """Return True if the server's COPY method cannot reach the target."""
    if target.host != source.host or target.scheme != source.scheme:
        return True
    return target.db_doc()[0] != source.db_doc()[0]


def copy_document(
    cli_ctx: CLIContext, resolved: Resolved, target: str, target_rev: str
) -> None:
    source = resolved.context
    source_db, source_doc = source.db_doc()
    if not source_doc:
        raise UsageError("source document ID required", {"dsn": source.dsn()})
    if not target:
        raise UsageError("missing target")
    try:
        parsed, target_opts = parse_dsn(target)
    except UsageError as e:
        raise UsageError(f"invalid target: {e}", {"target": target}) from e
    target_ctx = parsed.merge(source)
    target_rev = target_rev or str(target_opts.get("rev", ""))
    target_db, target_doc = target_ctx.db_doc()
    if not target_doc:
        raise UsageError("target document ID required", {"target": target})

    logger.debug(f"will copy {source.dsn()} to {target_ctx.dsn()}")
    client = cli_ctx.client(source)
    if not should_emulate_copy(source, target_ctx):
        result = cli_ctx.retry(
            lambda: client.copy_doc(source_db, source_doc, target_doc, target_rev)
        )
        cli_ctx.formatter.print_update_result(result)
        return

    target_client = cli_ctx.client(target_ctx)
    doc: dict[str, Any] = cli_ctx.retry(
        lambda: client.get_doc(source_db, source_doc, resolved.options)
    )
    for field in ("_id", "_rev", "_attachments"):
        doc.pop(field, None)
    params = {"rev": target_rev} if target_rev else None
    result = cli_ctx.retry(lambda: target_client.put_doc(target_db, target_doc, doc, params))
    cli_ctx.formatter.print_update_result(result)


def copy_command(
    ctx: typer.Context,
    source: Annotated[str | None, typer.Argument(help="Source document DSN")] = None,
    target_arg: Annotated[
        str | None, typer.Argument(metavar="[TARGET]", help="Target document DSN")
    ] = None,
    target: Annotated[
        str, typer.Option("--target", "-t", help="Target DSN, when the source comes from config")
    ] = "",
    target_rev: Annotated[
        str,
        typer.Option(
            "--target-rev",
            "-R",
            help="Current revision of the target document; or append ?rev= to the target",
        ),
    ] = "",
    options: OptionsArg = None,
    bool_options: BoolOptionsArg = None,
) -> None:
    """Copy a document.

    Within one database the server copies the document itself; to another
    database or server the document is read and written again.

    Examples:

        couchctl copy mydb/mydoc mydoc-copy
        couchctl copy http://a:5984/db/doc http://b:5984/db/doc
        couchctl copy --target other/doc?rev=2-abc
    """
    if target_arg and not target:
        target = target_arg
    run(
        ctx,
        source,
        partial(copy_document, target=target, target_rev=target_rev),
        options=options,
        bool_options=bool_options,
    )
