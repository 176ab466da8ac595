"""CLI tests."""

from typer.testing import CliRunner

from daytrack_server import __version__
from daytrack_server.cli import app

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_issue_key_rejects_bad_user_id() -> None:
    """Malformed owner ids are refused before touching the database."""
    result = runner.invoke(app, ["issue-key", "not a valid id"])

    assert result.exit_code == 2
