"""Post command and the database maintenance shortcuts."""

import json
from functools import partial
from typing import Annotated, Any

import typer

from couchctl.cli.commands.put import DataFileOption, DataOption, YamlOption
from couchctl.cli.context import BoolOptionsArg, CLIContext, OptionsArg, dispatch, run
from couchctl.cli.parsing import has_input, read_document
from couchctl.dsn import Resolved, ResourceKind
from couchctl.dsn.paths import DESIGN_PREFIX, compact_view_locator, db_command_locator
from couchctl.exceptions import DataError, UsageError

RevsOption = Annotated[
    list[str] | None,
    typer.Option("--revs", "-R", help="Revision to purge; repeat or comma-separate"),
]


def _command_db(resolved: Resolved) -> str:
    if locator := db_command_locator(resolved.path):
        return locator.database
    return resolved.context.db()


def post_compact_views(cli_ctx: CLIContext, resolved: Resolved) -> None:
    if locator := compact_view_locator(resolved.path):
        db, ddoc = locator
    else:
        db, ddoc = resolved.context.db_doc()
        ddoc = ddoc.removeprefix(f"{DESIGN_PREFIX}/")
    if not ddoc:
        raise UsageError("design document required", {"dsn": resolved.context.dsn()})
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.compact_views(db, ddoc))
    cli_ctx.formatter.print_ok()


def post_view_cleanup(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = _command_db(resolved)
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.view_cleanup(db))
    cli_ctx.formatter.print_ok()


def post_flush(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = _command_db(resolved)
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.ensure_full_commit(db))
    cli_ctx.formatter.print_ok()


def post_compact(cli_ctx: CLIContext, resolved: Resolved) -> None:
    db = _command_db(resolved)
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.compact(db))
    cli_ctx.formatter.print_ok()


def _split_revs(revs: list[str] | None) -> list[str]:
    return [rev for item in revs or [] for rev in item.split(",") if rev]


def post_purge(
    cli_ctx: CLIContext,
    resolved: Resolved,
    revs: list[str] | None,
    data: str | None,
    data_file: str | None,
    yaml: bool,
) -> None:
    """Purge the revisions given with --revs, or a doc ID to revisions map."""
    if has_input(data, data_file):
        doc_revs = read_document(data, data_file, yaml)
        if not all(isinstance(v, list) for v in doc_revs.values()):
            raise DataError("purge input must map document IDs to lists of revisions")
        db = _command_db(resolved)
    else:
        db, doc_id = resolved.context.db_doc()
        if not doc_id:
            raise UsageError("document ID required", {"dsn": resolved.context.dsn()})
        doc_revs = {doc_id: _split_revs(revs)}
    client = cli_ctx.client(resolved.context)
    result = cli_ctx.retry(lambda: client.purge(db, doc_revs))
    cli_ctx.formatter.print_data(result)


def _replication_endpoint(name: str, value: Any) -> Any:
    if isinstance(value, str) and value.startswith("{"):
        try:
            return json.loads(value)
        except ValueError as e:
            raise UsageError(f"invalid {name}: {e}", {name: value}) from e
    return value


def post_replicate(cli_ctx: CLIContext, resolved: Resolved) -> None:
    """Start a server-managed replication between -O source and -O target."""
    params: dict[str, Any] = dict(resolved.options)
    source = params.pop("source", "")
    target = params.pop("target", "")
    if not source and not target:
        raise UsageError("explicit source or target required")
    source = _replication_endpoint("source", source)
    target = _replication_endpoint("target", target)
    if isinstance(doc_ids := params.get("doc_ids"), str) and doc_ids:
        params["doc_ids"] = doc_ids.split(",")
    client = cli_ctx.client(resolved.context)
    cli_ctx.retry(lambda: client.replicate(source, target, params))
    cli_ctx.formatter.print_ok()


def post_cluster_setup(
    cli_ctx: CLIContext, resolved: Resolved, data: str | None, data_file: str | None, yaml: bool
) -> None:
    action = read_document(data, data_file, yaml)
    client = cli_ctx.client(resolved.context)
    cli_ctx.formatter.print_data(cli_ctx.retry(lambda: client.cluster_setup_action(action)))


def post_document(
    cli_ctx: CLIContext, resolved: Resolved, data: str | None, data_file: str | None, yaml: bool
) -> None:
    db, doc_id = resolved.context.db_doc()
    doc = read_document(data, data_file, yaml)
    if doc_id:
        doc.setdefault("_id", doc_id)
    client = cli_ctx.client(resolved.context)
    result = cli_ctx.retry(lambda: client.post_doc(db, doc, resolved.options))
    cli_ctx.formatter.print_update_result(result)


def post_command(
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
    revs: RevsOption = None,
) -> None:
    """Post to a resource.

    KIND is one of document, view-cleanup, flush, compact, compact-views,
    purge, replicate or cluster-setup. Without it, the kind is taken from
    the DSN; a DSN naming a database posts a new document.

    Examples:

        couchctl post mydb -d '{"foo": "bar"}'
        couchctl post mydb/_compact
        couchctl post mydb/_compact/myddoc
        couchctl post _replicate -O source=db1 -O target=db2
    """
    inputs = {"data": data, "data_file": data_file, "yaml": yaml}
    dispatch(
        ctx,
        args,
        {
            ResourceKind.COMPACT_VIEWS: post_compact_views,
            ResourceKind.VIEW_CLEANUP: post_view_cleanup,
            ResourceKind.FLUSH: post_flush,
            ResourceKind.COMPACT: post_compact,
            ResourceKind.PURGE: partial(post_purge, revs=revs, **inputs),
            ResourceKind.REPLICATE: post_replicate,
            ResourceKind.CLUSTER_SETUP: partial(post_cluster_setup, **inputs),
            ResourceKind.DOCUMENT: partial(post_document, **inputs),
        },
        matchers={ResourceKind.DOCUMENT: lambda r: r.context.has_db()},
        options=options,
        bool_options=bool_options,
    )


DSNArgument = Annotated[str | None, typer.Argument(help="Database DSN")]


def compact_command(ctx: typer.Context, dsn: DSNArgument = None) -> None:
    """Compact a database."""
    run(ctx, dsn, post_compact)


def compact_views_command(
    ctx: typer.Context,
    dsn: Annotated[str | None, typer.Argument(help="Design document DSN")] = None,
) -> None:
    """Compact the views of a design document."""
    run(ctx, dsn, post_compact_views)


def flush_command(ctx: typer.Context, dsn: DSNArgument = None) -> None:
    """Commit recent database changes to disk."""
    run(ctx, dsn, post_flush)


def view_cleanup_command(ctx: typer.Context, dsn: DSNArgument = None) -> None:
    """Remove index files no longer used by any design document."""
    run(ctx, dsn, post_view_cleanup)


def purge_command(
    ctx: typer.Context,
    dsn: Annotated[str | None, typer.Argument(help="Document or database DSN")] = None,
    data: DataOption = None,
    data_file: DataFileOption = None,
    yaml: YamlOption = False,
    revs: RevsOption = None,
) -> None:
    """Permanently remove document revisions."""
    run(
        ctx,
        dsn,
        partial(post_purge, revs=revs, data=data, data_file=data_file, yaml=yaml),
    )
