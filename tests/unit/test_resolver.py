"""Tests for DSN resolution and resource classification."""

import pytest

from couchctl.dsn.config import Config
from couchctl.dsn.context import Context
from couchctl.dsn.resolver import Resolved, ResourceKind, classify, resolve
from couchctl.exceptions import UsageError


@pytest.fixture
def config():
    """Config whose current context names a server and a database."""
    return Config(contexts={"dev": Context(host="localhost:5984", database="foo")})


class TestClassify:
    """Tests for classify."""

    @pytest.mark.parametrize(
        ("path", "kind"),
        [
            ("/_node/_local/_config", ResourceKind.CONFIG),
            ("/_node/_local/_config/log/level", ResourceKind.CONFIG),
            ("/db/_compact/ddoc", ResourceKind.COMPACT_VIEWS),
            ("/db/_security", ResourceKind.SECURITY),
            ("/db/_view_cleanup", ResourceKind.VIEW_CLEANUP),
            ("/db/_ensure_full_commit", ResourceKind.FLUSH),
            ("/db/_compact", ResourceKind.COMPACT),
            ("/db/_purge", ResourceKind.PURGE),
            ("/_all_dbs", ResourceKind.ALL_DBS),
            ("/_cluster_setup", ResourceKind.CLUSTER_SETUP),
            ("/_replicate", ResourceKind.REPLICATE),
            ("/db/doc/file.txt", ResourceKind.ATTACHMENT),
            ("/db/doc", ResourceKind.DOCUMENT),
            ("/db/_design/foo", ResourceKind.DOCUMENT),
            ("/db", ResourceKind.DATABASE),
            ("/", ResourceKind.SERVER),
        ],
    )
    def test_kinds(self, path, kind):
        ctx = Context(host="h", database=path)
        assert classify(ctx) == kind

    def test_root_prefix_ignored(self):
        """Reserved paths are recognised below a server root prefix."""
        ctx = Context(host="h", database="/couchdb//_all_dbs")
        assert classify(ctx) == ResourceKind.ALL_DBS


class TestResolve:
    """Tests for resolve."""

    def test_complete_dsn(self, config):
        resolved = resolve(config, "http://other:5984/db/doc")
        assert isinstance(resolved, Resolved)
        assert resolved.context.host == "other:5984"
        assert resolved.kind == ResourceKind.DOCUMENT
        assert resolved.path == "/db/doc"

    def test_partial_dsn_merged(self, config):
        """A bare document ID is completed from the current context."""
        resolved = resolve(config, "bar")
        assert resolved.context.host == "localhost:5984"
        assert resolved.context.db_doc() == ("foo", "bar")
        assert resolved.kind == ResourceKind.DOCUMENT

    def test_trailing_slash_on_partial_dsn(self, config):
        """A trailing slash does not turn a document into an attachment."""
        resolved = resolve(config, "db/doc/")
        assert resolved.kind == ResourceKind.DOCUMENT
        assert resolved.path == "/db/doc"
        assert resolved.context.db_doc() == ("db", "doc")

    def test_no_dsn_uses_current(self, config):
        resolved = resolve(config, None)
        assert resolved.context == config.current()
        assert resolved.kind == ResourceKind.DATABASE

    def test_no_dsn_no_context(self):
        with pytest.raises(UsageError, match="no context specified"):
            resolve(Config(), None)

    def test_partial_dsn_without_context(self):
        """Without a current context the partial DSN is kept as is."""
        resolved = resolve(Config(), "db/doc")
        assert resolved.context.host == ""

    def test_option_precedence(self, config):
        """Query options win over -O options, which win over -B options."""
        resolved = resolve(
            config,
            "db/doc?rev=1-abc",
            {"rev": "2-def", "attachments": "false"},
            {"attachments": True, "conflicts": True},
        )
        assert resolved.options == {"rev": "1-abc", "attachments": "false", "conflicts": True}

    def test_invalid_dsn(self, config):
        with pytest.raises(UsageError):
            resolve(config, "http://h/%zz")

    def test_resolved_is_frozen(self, config):
        resolved = resolve(config, "bar")
        with pytest.raises(AttributeError):
            resolved.kind = ResourceKind.SERVER
