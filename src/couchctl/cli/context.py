"""CLI context: configuration, request options and client lifecycle."""

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Annotated, TypeVar

import typer

from couchctl.cli.output import OutputFormatter
from couchctl.cli.parsing import fmt_duration
from couchctl.client import Client, connect
from couchctl.dsn import Config, Context, Resolved, ResourceKind, resolve
from couchctl.dsn.options import parse_bool_options, parse_key_values
from couchctl.dsn.paths import config_locator
from couchctl.exceptions import CouchctlError, UsageError, is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")

INITIAL_RETRY_DELAY = 0.5
RETRY_MULTIPLIER = 1.5

# Short names accepted in place of the full resource kind keyword
KIND_ALIASES = {
    "doc": ResourceKind.DOCUMENT,
    "db": ResourceKind.DATABASE,
    "att": ResourceKind.ATTACHMENT,
    "attach": ResourceKind.ATTACHMENT,
    "sec": ResourceKind.SECURITY,
    "cluster": ResourceKind.CLUSTER_SETUP,
    "rep": ResourceKind.REPLICATE,
    "ensure-full-commit": ResourceKind.FLUSH,
}

OptionsArg = Annotated[
    list[str] | None,
    typer.Option("--option", "-O", help="Request option as key=value; repeatable"),
]
BoolOptionsArg = Annotated[
    list[str] | None,
    typer.Option("--option-bool", "-B", help="Boolean request option as key=true|false"),
]

Handler = Callable[["CLIContext", Resolved], None]
Matcher = Callable[[Resolved], bool]


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Holds the configuration and global options, and manages client
    connections for the duration of a command.
    """

    config: Config
    formatter: OutputFormatter
    options: dict[str, str] = field(default_factory=dict)
    bool_options: dict[str, bool] = field(default_factory=dict)
    connect_timeout: float | None = None
    request_timeout: float | None = None
    retries: int = 0
    retry_delay: float | None = None
    retry_timeout: float = 0.0
    _clients: list[Client] = field(default_factory=list, init=False, repr=False)

    def resolve(
        self,
        dsn: str | None,
        options: Mapping[str, str] | None = None,
        bool_options: Mapping[str, bool] | None = None,
    ) -> Resolved:
        """Resolve a DSN with the global options and those given to the command.

        -O options take precedence over -B options.
        """
        return resolve(
            self.config,
            dsn,
            {**self.options, **(options or {})},
            {**self.bool_options, **(bool_options or {})},
        )

    def client(self, context: Context) -> Client:
        """Connect to the server addressed by ``context``."""
        client = connect(context, self.connect_timeout, self.request_timeout)
        self._clients.append(client)
        return client

    def retry(self, fn: Callable[[], T]) -> T:
        """Call ``fn``, retrying transient failures.

        Delays grow exponentially from half a second unless --retry-delay
        fixes them; a fixed delay of zero retries immediately.
        --retry-timeout bounds the total time spent retrying.
        """
        deadline = time.monotonic() + self.retry_timeout if self.retry_timeout else None
        fixed = self.retry_delay is not None
        delay = INITIAL_RETRY_DELAY if self.retry_delay is None else self.retry_delay
        retries_left = self.retries
        while True:
            try:
                return fn()
            except CouchctlError as e:
                if retries_left <= 0 or not is_transient(e):
                    raise
                if deadline is not None and time.monotonic() + delay > deadline:
                    raise
                logger.warning(
                    f"Warning: Transient problem: {e}. Will retry in {fmt_duration(delay)}. "
                    f"{retries_left} retries left."
                )
                time.sleep(delay)
                retries_left -= 1
                if not fixed:
                    delay *= RETRY_MULTIPLIER

    def close(self) -> None:
        """Close any clients opened by the command."""
        while self._clients:
            self._clients.pop().close()


def _match(kind: ResourceKind) -> Matcher:
    if kind == ResourceKind.ATTACHMENT:
        return lambda r: r.context.has_attachment()
    if kind == ResourceKind.DOCUMENT:
        return lambda r: r.context.has_doc()
    if kind == ResourceKind.DATABASE:
        return lambda r: r.context.has_db()
    if kind == ResourceKind.SERVER:
        return lambda r: True
    return lambda r: r.kind == kind


def parse_kind(
    args: list[str] | None, kinds: Mapping[ResourceKind, Handler]
) -> tuple[ResourceKind | None, str | None]:
    """Split the positional arguments into an optional KIND keyword and a DSN.

    Raises:
        UsageError: For an unknown keyword or too many arguments
    """
    args = list(args or [])
    if len(args) > 2:
        raise UsageError(f"too many arguments: {' '.join(args)}")
    keyword = args[0].lower() if args else ""
    kind = KIND_ALIASES.get(keyword)
    if kind is None and keyword in {k.value for k in kinds}:
        kind = ResourceKind(keyword)
    if kind is not None and kind in kinds:
        return kind, args[1] if len(args) == 2 else None
    if len(args) == 2:
        choices = ", ".join(k.value for k in kinds)
        raise UsageError(f"unknown resource kind: {args[0]} (expected one of: {choices})")
    return None, args[0] if args else None


def dispatch(
    ctx: typer.Context,
    args: list[str] | None,
    handlers: Mapping[ResourceKind, Handler],
    matchers: Mapping[ResourceKind, Matcher] | None = None,
    keywords: bool = True,
    options: list[str] | None = None,
    bool_options: list[str] | None = None,
) -> None:
    """Resolve the target of a command and run the matching handler.

    With an explicit KIND keyword that handler runs. Otherwise handlers are
    tried in order and the first whose resource matches the DSN runs.

    Errors raised before the target is resolved are usage errors and are
    reported with a hint to read the command help; errors raised by the
    handler are reported as is. Either way the process exits with the
    error's exit code.
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = cli_ctx.formatter
    matchers = matchers or {}

    try:
        if keywords:
            kind, dsn = parse_kind(args, handlers)
        else:
            kind, dsn = None, args[0] if args else None
        resolved = cli_ctx.resolve(
            dsn,
            parse_key_values(options or []),
            parse_bool_options(parse_key_values(bool_options or [])),
        )
        if kind is None:
            kind = next(
                (k for k in handlers if matchers.get(k, _match(k))(resolved)),
                None,
            )
        if kind is None:
            raise UsageError(
                f"don't know how to {ctx.info_name} {resolved.context.dsn() or 'this'}",
                {"dsn": resolved.context.dsn()},
            )
        logger.debug(f"{ctx.info_name}: dispatching to {kind} handler")
    except CouchctlError as e:
        formatter.print_error(e, usage_hint=f"Run '{ctx.command_path} --help' for usage.")
        raise typer.Exit(code=e.exit_code) from e

    try:
        handlers[kind](cli_ctx, resolved)
    except CouchctlError as e:
        formatter.print_error(e)
        raise typer.Exit(code=e.exit_code) from e
    finally:
        cli_ctx.close()


def run(
    ctx: typer.Context,
    dsn: str | None,
    action: Handler,
    options: list[str] | None = None,
    bool_options: list[str] | None = None,
) -> None:
    """Run a single-purpose command against ``dsn``."""
    dispatch(
        ctx,
        [dsn] if dsn else [],
        {ResourceKind.SERVER: action},
        keywords=False,
        options=options,
        bool_options=bool_options,
    )


def config_key(resolved: Resolved, node: str, key: str) -> tuple[str, str, str]:
    """Return node, section and key, preferring those given in the DSN path."""
    if locator := config_locator(resolved.path):
        node, key = locator
    section, _, name = key.partition("/")
    return node, section, name

