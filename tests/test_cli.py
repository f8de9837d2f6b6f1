"""Tests for cli.py module."""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from kubeseal_sync import __version__
from kubeseal_sync.cli import cli
from kubeseal_sync.exceptions import ClusterConnectionError, LockError
from kubeseal_sync.models import Environment, ReconcileReport, RecordOutcome, SecretRef


@pytest.fixture
def mock_syncer():
    """Patch the facade used by the CLI and yield the entered instance."""
    with patch("kubeseal_sync.cli.SealedSecretsSync") as mock_cls, patch("kubeseal_sync.cli.load_settings") as mock_load:
        mock_load.return_value = MagicMock()
        mock_instance = MagicMock()
        mock_instance.__enter__ = MagicMock(return_value=mock_instance)
        mock_instance.__exit__ = MagicMock(return_value=False)
        mock_instance.sync_all.return_value = ReconcileReport()
        mock_instance.sync_with_prompt.return_value = ReconcileReport()
        mock_cls.return_value = mock_instance
        mock_instance.cls = mock_cls
        yield mock_instance


class TestCliGlobalOptions:
    """Tests for the command group."""

    def test_version_flag(self):
        """Test --version flag prints version."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_short_flag(self):
        """Test -v flag prints version."""
        result = CliRunner().invoke(cli, ["-v"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self):
        """Test help output lists every command."""
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("sync", "regenerate", "list"):
            assert command in result.output

    def test_no_command_prints_help(self):
        """Test invoking the group alone shows usage."""
        result = CliRunner().invoke(cli, [])

        assert result.exit_code == 0
        assert "Usage" in result.output


class TestCliSync:
    """Tests for the sync command."""

    def test_sync_all(self, mock_syncer):
        """Test --all reseals everything without prompting."""
        result = CliRunner().invoke(cli, ["sync", "--env", "development", "--all"])

        assert result.exit_code == 0
        mock_syncer.load.assert_called_once()
        mock_syncer.sync_all.assert_called_once()
        mock_syncer.sync_with_prompt.assert_not_called()
        assert mock_syncer.cls.call_args.args == (Environment.DEVELOPMENT,)

    def test_sync_prompted(self, mock_syncer):
        """Test the interactive selection is the default."""
        result = CliRunner().invoke(cli, ["sync", "-e", "local"])

        assert result.exit_code == 0
        mock_syncer.sync_with_prompt.assert_called_once()

    def test_sync_detached(self, mock_syncer):
        """Test --cert and --select are passed to the facade."""
        result = CliRunner().invoke(cli, ["sync", "-e", "local", "--all", "--cert", "cert.pem", "--select"])

        assert result.exit_code == 0
        kwargs = mock_syncer.cls.call_args.kwargs
        assert kwargs["certificate"] == "cert.pem"
        assert kwargs["select_context"] is True

    def test_sync_regenerates_first(self, mock_syncer):
        """Test --regenerate runs the generator instead of a plain load."""
        result = CliRunner().invoke(cli, ["sync", "-e", "local", "--all", "--regenerate"])

        assert result.exit_code == 0
        mock_syncer.regenerate.assert_called_once()
        mock_syncer.load.assert_not_called()

    def test_environment_prompted(self, mock_syncer):
        """Test the environment is asked for when omitted."""
        with patch("kubeseal_sync.cli.prompt_environment", return_value=Environment.STAGING) as mock_prompt:
            result = CliRunner().invoke(cli, ["sync", "--all"])

        assert result.exit_code == 0
        mock_prompt.assert_called_once()
        assert mock_syncer.cls.call_args.args == (Environment.STAGING,)

    def test_invalid_environment(self):
        """Test unknown environments are rejected by click."""
        result = CliRunner().invoke(cli, ["sync", "-e", "qa"])

        assert result.exit_code == 2

    def test_failures_exit_nonzero(self, mock_syncer):
        """Test a report with failures exits with status 1."""
        mock_syncer.sync_all.return_value = ReconcileReport(
            outcomes=[RecordOutcome(ref=SecretRef("a", "b"), error="path not found")]
        )

        result = CliRunner().invoke(cli, ["sync", "-e", "local", "--all"])

        assert result.exit_code == 1

    def test_library_error_exit_nonzero(self, mock_syncer):
        """Test library errors are printed and exit with status 1."""
        mock_syncer.load.side_effect = ClusterConnectionError("Failed to connect")

        with patch("kubeseal_sync.cli.console") as mock_console:
            result = CliRunner().invoke(cli, ["sync", "-e", "local", "--all"])

        assert result.exit_code == 1
        mock_console.error.assert_called_once_with("Failed to connect")

    def test_lock_contention(self, mock_syncer):
        """Test a held lock is reported as an error."""
        mock_syncer.__enter__.side_effect = LockError("Another reconciliation is running")

        result = CliRunner().invoke(cli, ["sync", "-e", "local", "--all"])

        assert result.exit_code == 1


class TestCliRegenerate:
    """Tests for the regenerate command."""

    def test_image_tags(self, mock_syncer):
        """Test repeated --image-tag options become a mapping."""
        result = CliRunner().invoke(
            cli,
            ["regenerate", "-e", "local", "--image-tag", "GRAPHQL_MONGO=abc", "--image-tag", "REACT_WEB=def"],
        )

        assert result.exit_code == 0
        mock_syncer.regenerate.assert_called_once_with({"GRAPHQL_MONGO": "abc", "REACT_WEB": "def"})

    def test_bad_image_tag(self, mock_syncer):
        """Test malformed image tags are rejected."""
        result = CliRunner().invoke(cli, ["regenerate", "-e", "local", "--image-tag", "nope"])

        assert result.exit_code == 2
        assert "NAME=TAG" in result.output


class TestCliList:
    """Tests for the list command."""

    def test_list_kind(self, mock_syncer):
        """Test --kind filters the listing."""
        mock_syncer.list_secrets.return_value = []

        with patch("kubeseal_sync.cli.console") as mock_console:
            result = CliRunner().invoke(cli, ["list", "-e", "local", "--kind", "SealedSecret"])

        assert result.exit_code == 0
        mock_syncer.list_secrets.assert_called_once_with("SealedSecret")
        mock_console.records_table.assert_called_once_with([])
