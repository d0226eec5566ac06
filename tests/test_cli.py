"""
CLI interface tests for site-deptree.
Tests the command-line entry point and its exit codes.
"""

from unittest.mock import patch

from click.testing import CliRunner

from conftest import write_distribution
from site_deptree.error_handling import LocatorError
from site_deptree.main import cli


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_rejects_arguments(self):
        """The command takes no positional arguments."""
        runner = CliRunner()
        result = runner.invoke(cli, ["requests"])

        assert result.exit_code == 2

    def test_has_no_help_option(self):
        """Options, help included, are usage errors."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 2


class TestTreeOutput:
    """Test the printed dependency tree."""

    def test_prints_tree(self, site_packages, monkeypatch):
        """Test printing the tree of a configured site-packages dir."""
        monkeypatch.setenv("SITE_DEPTREE_SITE_PACKAGES", str(site_packages))
        runner = CliRunner()
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert "click [installed=8.1.7]" in lines
        assert "requests [installed=2.32.3]" in lines
        assert "----urllib3 [required=<3,>=1.21.1, installed=2.2.3]" in lines
        assert lines.index("click [installed=8.1.7]") < lines.index("requests [installed=2.32.3]")

    @patch("site_deptree.main.get_python_dependencies_loc")
    def test_discovers_environment(self, mock_locate, site_packages):
        """Test scanning the directories reported by the locator."""
        mock_locate.return_value = [site_packages]
        runner = CliRunner()
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        assert "requests [installed=2.32.3]" in result.output
        mock_locate.assert_called_once()

    def test_empty_environment_prints_nothing(self, temp_dir, monkeypatch):
        monkeypatch.setenv("SITE_DEPTREE_SITE_PACKAGES", str(temp_dir))
        runner = CliRunner()
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        assert result.output == ""


class TestErrorHandling:
    """Test CLI error handling."""

    def test_broken_metadata_fails(self, site_packages, monkeypatch):
        """A malformed distribution aborts the run by default."""
        write_distribution(site_packages, "broken-1.0.dist-info", ["Name: broken"])
        monkeypatch.setenv("SITE_DEPTREE_SITE_PACKAGES", str(site_packages))
        runner = CliRunner()
        result = runner.invoke(cli, [])

        assert result.exit_code == 1
        assert "Problem parsing" in result.output
        assert "requests [installed=2.32.3]" not in result.output

    def test_broken_metadata_skipped_when_not_fail_fast(self, site_packages, monkeypatch):
        """Test best-effort mode from the environment."""
        write_distribution(site_packages, "broken-1.0.dist-info", ["Name: broken"])
        monkeypatch.setenv("SITE_DEPTREE_SITE_PACKAGES", str(site_packages))
        monkeypatch.setenv("SITE_DEPTREE_FAIL_FAST", "false")
        runner = CliRunner()
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        assert "requests [installed=2.32.3]" in result.output

    @patch("site_deptree.main.get_python_dependencies_loc")
    def test_locator_failure(self, mock_locate):
        """Test a missing interpreter."""
        mock_locate.side_effect = LocatorError("No <python3> or <python> alias is set in your env")
        runner = CliRunner()
        result = runner.invoke(cli, [])

        assert result.exit_code == 1
        assert "Can not locate python environment" in result.output

    @patch("site_deptree.main.get_dep_dag_from_env")
    def test_keyboard_interrupt(self, mock_build, site_packages, monkeypatch):
        mock_build.side_effect = KeyboardInterrupt
        monkeypatch.setenv("SITE_DEPTREE_SITE_PACKAGES", str(site_packages))
        runner = CliRunner()
        result = runner.invoke(cli, [])

        assert result.exit_code == 130
