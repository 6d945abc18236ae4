"""Tests for CLI commands."""

import pytest
from unittest.mock import patch
from typer.testing import CliRunner

from omparser.cli import app
from omparser.config import Config
from omparser.sources import SourceError


runner = CliRunner()


@pytest.fixture(autouse=True)
def default_config():
    """Use default configuration regardless of the user's config file."""
    with patch("omparser.cli.load_config", return_value=Config()) as mock_load_config:
        yield mock_load_config


@pytest.fixture
def exposition_file(tmp_path, sample_exposition):
    path = tmp_path / "metrics.txt"
    path.write_text(sample_exposition)
    return path


class TestVersionCommand:
    """Tests for version command."""

    def test_version_output(self):
        """Test version command outputs version."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "omparser v" in result.output


class TestValidateCommand:
    """Tests for validate command."""

    def test_valid_file(self, exposition_file):
        """Test a valid exposition is reported with its counts."""
        result = runner.invoke(app, ["validate", str(exposition_file)])

        assert result.exit_code == 0
        assert "7 families, 21 samples" in result.output

    def test_invalid_file(self, tmp_path):
        """Test an invalid exposition exits with status 1."""
        path = tmp_path / "metrics.txt"
        path.write_text("foo 1\n")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "missing_sentinel" in result.output

    def test_error_points_at_line(self, tmp_path):
        """Test the offending line is shown for a parse error."""
        path = tmp_path / "metrics.txt"
        path.write_text("foo 1\nbar abc\n# EOF\n")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "invalid_number" in result.output
        assert "2 | bar abc" in result.output

    def test_missing_file(self, tmp_path):
        """Test a missing file exits with status 1."""
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.txt")])

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_stdin(self):
        """Test '-' validates standard input."""
        result = runner.invoke(app, ["validate", "-"], input="foo 1\n# EOF\n")

        assert result.exit_code == 0
        assert "1 families, 1 samples" in result.output

    def test_prometheus_format(self):
        """Test a Prometheus exposition without # EOF validates with --format."""
        text = "# TYPE foo counter\nfoo 1\n\nbar{a=\"1\",} 2\n"

        result = runner.invoke(app, ["validate", "-", "--format", "prometheus"], input=text)

        assert result.exit_code == 0
        assert "Valid Prometheus exposition: 2 families, 2 samples" in result.output

    def test_prometheus_text_is_not_openmetrics(self):
        """Test the default format still requires # EOF."""
        result = runner.invoke(app, ["validate", "-"], input="foo 1\n")

        assert result.exit_code == 1
        assert "missing_sentinel" in result.output

    def test_unknown_format(self):
        """Test an unknown format is rejected."""
        result = runner.invoke(app, ["validate", "-", "--format", "json"], input="# EOF\n")

        assert result.exit_code != 0

    @patch("omparser.cli.read_exposition")
    def test_default_source(self, mock_read, simple_exposition):
        """Test the configured URL is used when no source is given."""
        mock_read.return_value = simple_exposition.encode()

        result = runner.invoke(app, ["validate"])

        assert result.exit_code == 0
        assert mock_read.call_args[0][0] == "http://localhost:9100/metrics"

    @patch("omparser.cli.read_exposition")
    def test_fetch_failure(self, mock_read):
        """Test a failed scrape exits with status 1."""
        mock_read.side_effect = SourceError("Failed to fetch http://localhost:9100/metrics")

        result = runner.invoke(app, ["validate"])

        assert result.exit_code == 1
        assert "Failed to fetch" in result.output


class TestParseCommand:
    """Tests for parse command."""

    def test_summary(self, exposition_file):
        """Test the family summary is shown."""
        result = runner.invoke(app, ["parse", str(exposition_file)])

        assert result.exit_code == 0
        assert "go_goroutines" in result.output
        assert "7 families" in result.output

    def test_json(self, exposition_file):
        """Test JSON output."""
        result = runner.invoke(app, ["parse", str(exposition_file), "--json"])

        assert result.exit_code == 0
        assert '"name": "acme_http_router_request_seconds"' in result.output
        assert '"type": "gaugehistogram"' in result.output

    def test_family_filter(self, exposition_file):
        """Test showing a single family with its samples."""
        result = runner.invoke(app, ["parse", str(exposition_file), "--family", "feature"])

        assert result.exit_code == 0
        assert "1 families" in result.output
        assert 'feature="b"' in result.output

    def test_family_not_found(self, exposition_file):
        """Test an unknown family exits with status 1."""
        result = runner.invoke(app, ["parse", str(exposition_file), "-f", "missing"])

        assert result.exit_code == 1
        assert "Metric family not found: missing" in result.output

    def test_prometheus_json(self, tmp_path):
        """Test JSON output for a Prometheus exposition."""
        path = tmp_path / "metrics.prom"
        path.write_text("# HELP up Target is up\n# TYPE up gauge\nup 1 1700000000000\n")

        result = runner.invoke(app, ["parse", str(path), "-F", "prometheus", "--json"])

        assert result.exit_code == 0
        assert '"name": "up"' in result.output
        assert '"type": "gauge"' in result.output

    def test_empty_exposition(self, tmp_path):
        """Test an exposition without families is reported."""
        path = tmp_path / "metrics.txt"
        path.write_text("# EOF\n")

        result = runner.invoke(app, ["parse", str(path)])

        assert result.exit_code == 0
        assert "no metric families" in result.output

    def test_invalid_exposition(self, tmp_path):
        """Test a parse error exits with status 1."""
        path = tmp_path / "metrics.txt"
        path.write_text("# EOF\nfoo 1\n")

        result = runner.invoke(app, ["parse", str(path)])

        assert result.exit_code == 1
        assert "trailing_content" in result.output


class TestConfigCommands:
    """Tests for config subcommands."""

    def test_config_show(self):
        """Test config show command."""
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "fetch.url" in result.output

    @patch("omparser.cli.set_config_value")
    def test_config_set(self, mock_set_value):
        """Test config set command."""
        mock_set_value.return_value = Config()

        result = runner.invoke(app, ["config", "set", "fetch.timeout", "10"])

        assert result.exit_code == 0
        mock_set_value.assert_called_once_with("fetch.timeout", "10")

    @patch("omparser.cli.set_config_value")
    def test_config_set_prints_value_verbatim(self, mock_set_value):
        """Test brackets in a value are printed, not read as markup."""
        mock_set_value.return_value = Config()

        result = runner.invoke(app, ["config", "set", "fetch.accept", "text/[plain]"])

        assert result.exit_code == 0
        assert "fetch.accept = text/[plain]" in result.output

    @patch("omparser.cli.set_config_value")
    def test_config_set_invalid_key(self, mock_set_value):
        """Test config set with invalid key."""
        mock_set_value.side_effect = ValueError("Unknown configuration key")

        result = runner.invoke(app, ["config", "set", "invalid.key", "value"])

        assert result.exit_code == 1

    @patch("omparser.cli.save_config")
    def test_config_reset(self, mock_save):
        """Test config reset command."""
        result = runner.invoke(app, ["config", "reset"])

        assert result.exit_code == 0
        mock_save.assert_called_once()
