from typing import Iterator

import pytest
from typer.testing import CliRunner

from content_assets import cli
from content_assets.cli import app
from content_assets.core.config import Settings

runner = CliRunner()


@pytest.fixture
def cli_env(settings_override: Settings, mocker) -> Iterator[dict]:
    """
    Runs CLI commands against the temporary database of settings_override.
    Logging setup is mocked so handlers are not bound to the runner's streams.
    """
    mock_setup_logging = mocker.patch("content_assets.cli.setup_logging")
    result = runner.invoke(app, ["setup-db"])
    assert result.exit_code == 0, result.output

    yield {"settings": settings_override, "setup_logging": mock_setup_logging}

    if cli.global_state.db_manager is not None:
        cli.global_state.db_manager.dispose()
        cli.global_state.db_manager = None


def test_setup_db_reports_success(cli_env):
    result = runner.invoke(app, ["setup-db"])
    assert result.exit_code == 0
    assert "Database tables created." in result.output


def test_log_level_option_is_passed_to_logging_setup(cli_env):
    result = runner.invoke(app, ["--log-level", "DEBUG", "list-types"])
    assert result.exit_code == 0, result.output
    cli_env["setup_logging"].assert_called_with("DEBUG")


def test_list_types(cli_env):
    result = runner.invoke(app, ["list-types"])
    assert result.exit_code == 0, result.output
    assert "poll" in result.output
    assert "Asset.polls" in result.output
    assert "Discussion" in result.output


def test_create_search_and_stats(cli_env):
    result = runner.invoke(app, ["create", "poll", "--title", "Favorite editor?"])
    assert result.exit_code == 0, result.output
    assert "Created poll 1 (1-favorite-editor)" in result.output

    runner.invoke(app, ["create", "discussion", "--title", "Editor wars", "--description", "Vim vs Emacs"])

    result = runner.invoke(app, ["search", "editor"])
    assert result.exit_code == 0, result.output
    assert "poll\t1\tCommunity | Favorite editor?" in result.output
    assert "discussion\t1\tCommunity | Editor wars" in result.output

    result = runner.invoke(app, ["search", "emacs", "--type", "discussion"])
    assert result.output.strip() == "discussion\t1\tCommunity | Editor wars"

    result = runner.invoke(app, ["stats"])
    assert "polls: 1" in result.output
    assert "discussions: 1" in result.output


def test_search_without_results(cli_env):
    result = runner.invoke(app, ["search", "nothing-here"])
    assert result.exit_code == 0
    assert "No content found." in result.output


def test_search_rejects_unknown_order(cli_env):
    result = runner.invoke(app, ["search", "x", "--order", "random"])
    assert result.exit_code == 1
    assert "Unknown ordering 'random'" in result.output


def test_comment_and_archive(cli_env):
    runner.invoke(app, ["create", "poll", "--title", "Lunch?"])

    result = runner.invoke(app, ["comment", "poll", "1", "Pizza"])
    assert result.exit_code == 0, result.output
    assert "poll 1 now has 1 comment(s)" in result.output

    result = runner.invoke(app, ["archive", "poll", "1"])
    assert result.exit_code == 0, result.output
    assert "poll 1 archived" in result.output

    result = runner.invoke(app, ["archive", "poll", "1"])
    assert "poll 1 unarchived" in result.output


def test_unknown_type_and_missing_record(cli_env):
    result = runner.invoke(app, ["archive", "video", "1"])
    assert result.exit_code == 1
    assert "Unknown content type 'video'" in result.output

    result = runner.invoke(app, ["archive", "poll", "42"])
    assert result.exit_code == 1
    assert "Poll with ID 42 not found." in result.output
