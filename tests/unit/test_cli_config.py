"""Tests for config CLI commands."""
import pytest
from click.testing import CliRunner

from fideoctl.cli.config import config
from fideoctl.config import Config, set_config


@pytest.fixture
def runner():
    """Provide a Click test runner."""
    return CliRunner()


def test_config_show_toml(runner, reset_global_config):
    """Test fideoctl config show command with TOML output."""
    set_config(Config(
        output={"directory": "/test/recordings"},
        server={"dist_dir": "/srv/dist", "compress": False}
    ))

    result = runner.invoke(config, ['show'])

    assert result.exit_code == 0
    assert "[output]" in result.output
    assert "[server]" in result.output
    assert 'directory = "/test/recordings"' in result.output
    assert 'dist_dir = "/srv/dist"' in result.output
    assert "compress = false" in result.output


def test_config_show_env(runner, reset_global_config):
    """Test fideoctl config show --format=env command."""
    set_config(Config(
        output={"directory": "/env/test"},
        control={"retry_step": 5, "path_length": 6}
    ))

    result = runner.invoke(config, ['show', '--format', 'env'])

    assert result.exit_code == 0
    output_lines = result.output.strip().split('\n')
    assert "FIDEOCTL_OUTPUT_DIRECTORY=/env/test" in output_lines
    assert "FIDEOCTL_CONTROL_RETRY_STEP=5.0" in output_lines
    assert "FIDEOCTL_CONTROL_PATH_LENGTH=6" in output_lines
    assert "FIDEOCTL_SERVER_COMPRESS=true" in output_lines


def test_config_show_rejects_unknown_format(runner, reset_global_config):
    """Test invalid --format values are refused."""
    result = runner.invoke(config, ['show', '--format', 'yaml'])

    assert result.exit_code != 0
    assert "Invalid value" in result.output
