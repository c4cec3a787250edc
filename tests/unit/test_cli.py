"""Unit tests for the forestdot command line."""

import json
import re
from unittest.mock import patch

import joblib
from sklearn.linear_model import LinearRegression
from typer.testing import CliRunner

from forestdot import __version__
from forestdot.cli import app
from forestdot.errors import OutputError
from forestdot.model_store import load_model

runner = CliRunner()


class TestArgumentErrors:
    """Test usage and validation errors exit with status 1."""

    def test_unknown_flag(self):
        """Test an unknown flag prints usage."""
        result = runner.invoke(app, ["--bogus"])

        assert result.exit_code == 1
        assert "--bogus" in result.stdout
        assert "Usage:" in result.stdout

    def test_usage_error_lists_options(self):
        """Test a usage error prints the full option list."""
        result = runner.invoke(app, ["--bogus"])

        assert result.exit_code == 1
        assert "ERROR:" in result.stdout
        for option in ["--input", "--output", "--fontsize", "--direct"]:
            assert option in result.stdout
        assert "Traceback" not in result.stdout

    def test_missing_input(self):
        """Test -i is mandatory."""
        result = runner.invoke(app, ["--tree", "0"])

        assert result.exit_code == 1
        assert "Must specify -i" in result.stdout
        assert "Usage:" in result.stdout

    def test_missing_flag_value(self):
        """Test a flag without its value prints usage."""
        result = runner.invoke(app, ["--tree"])

        assert result.exit_code == 1
        assert "Usage:" in result.stdout

    def test_extra_argument(self, model_file):
        """Test stray positional arguments are rejected."""
        result = runner.invoke(app, ["-i", str(model_file), "stray"])

        assert result.exit_code == 1
        assert "Usage:" in result.stdout

    def test_invalid_number(self, model_file):
        """Test a non-numeric value reports the offending flag."""
        result = runner.invoke(app, ["-i", str(model_file), "--tree", "abc"])

        assert result.exit_code == 1
        assert "invalid --tree argument (abc)" in result.stdout

    def test_invalid_font_size(self, model_file):
        """Test short flags report their long name."""
        result = runner.invoke(app, ["-i", str(model_file), "-f", "big"])

        assert result.exit_code == 1
        assert "invalid --fontsize argument (big)" in result.stdout

    def test_out_of_range_values(self, model_file):
        """Test range validation of numeric flags."""
        for args, field in [
            (["--levels", "0"], "max_levels_per_edge"),
            (["-d", "-1"], "decimal_places"),
            (["-f", "0"], "font_size"),
            (["--tree", "-2"], "tree_index"),
        ]:
            result = runner.invoke(app, ["-i", str(model_file), *args])
            assert result.exit_code == 1, args
            assert field in result.stdout

    def test_model_load_failure(self, tmp_path):
        """Test an unreadable model fails fast."""
        result = runner.invoke(app, ["-i", str(tmp_path / "missing.joblib")])

        assert result.exit_code == 1
        assert "invalid --input argument" in result.stdout

    def test_unsupported_model(self, tmp_path, iris):
        """Test a non-tree model is rejected."""
        X, y = iris
        path = tmp_path / "linear.joblib"
        joblib.dump(LinearRegression().fit(X, y), path)

        result = runner.invoke(app, ["-i", str(path)])

        assert result.exit_code == 1
        assert "Unknown model type" in result.stdout

    def test_tree_out_of_range(self, model_file):
        """Test selecting a tree the model does not have."""
        result = runner.invoke(app, ["-i", str(model_file), "--tree", "99"])

        assert result.exit_code == 1
        assert "Tree 99 does not exist" in result.stdout


class TestEagerModelLoad:
    """Test the model is loaded when -i is processed."""

    def test_load_happens_before_later_bad_value(self, model_file):
        """Test a bad value after -i fails with the model already loaded."""
        with patch("forestdot.cli.load_model", wraps=load_model) as loader:
            result = runner.invoke(app, ["-i", str(model_file), "--levels", "x"])

        assert result.exit_code == 1
        loader.assert_called_once()

    def test_bad_value_before_input_stops_loading(self, model_file):
        """Test a bad value before -i fails before the model is loaded."""
        with patch("forestdot.cli.load_model", wraps=load_model) as loader:
            result = runner.invoke(app, ["--levels", "x", "-i", str(model_file)])

        assert result.exit_code == 1
        loader.assert_not_called()


class TestConsoleOutput:
    """Test DOT text written to stdout."""

    def test_all_trees(self, model_file):
        """Test all trees are printed by default."""
        result = runner.invoke(app, ["-i", str(model_file)])

        assert result.exit_code == 0
        assert "digraph G {" in result.stdout
        assert result.stdout.count("subgraph cluster_") == 3

    def test_single_tree(self, model_file):
        """Test --tree selects exactly one tree."""
        result = runner.invoke(app, ["--tree", "1", "-i", str(model_file)])

        assert result.exit_code == 0
        assert result.stdout.count("subgraph cluster_") == 1
        assert 'label="Tree 1"' in result.stdout

    def test_formatting_flags(self, model_file):
        """Test title, font size, detail and rounding flags."""
        result = runner.invoke(app, [
            "-i", str(model_file), "--tree", "0", "--title", "Forest", "-f", "20", "-d", "2", "--detail",
        ])

        assert result.exit_code == 0
        assert 'label="Forest"' in result.stdout
        assert "fontsize=14" not in result.stdout
        assert "fontsize=20" in result.stdout
        assert "\\nN0\\n" in result.stdout
        for number in re.findall(r'label="[<>]=? (-?[\d.]+)"', result.stdout):
            assert len(number.split(".")[1]) <= 2

    def test_levels(self, model_file):
        """Test --levels bounds the printed depth."""
        result = runner.invoke(app, ["-i", str(model_file), "--tree", "0", "--levels", "1"])

        assert result.exit_code == 0
        assert "/* Level 1 */" in result.stdout
        assert "/* Level 2 */" not in result.stdout

    def test_internal(self, model_file):
        """Test --internal switches to raw feature indices."""
        result = runner.invoke(app, ["-i", str(model_file), "--tree", "0", "--internal"])

        assert result.exit_code == 0
        assert 'label="feature[' in result.stdout

    def test_raw_dump_before_dot(self, model_file):
        """Test --raw prints the graph dump ahead of the DOT text."""
        result = runner.invoke(app, ["-i", str(model_file), "--tree", "0", "--raw"])

        assert result.exit_code == 0
        assert result.stdout.index("Subgraph 0: Tree 0") < result.stdout.index("digraph G {")

    def test_version(self):
        """Test --version prints the version and exits 0."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestFileOutput:
    """Test DOT text written to files."""

    def test_output_file(self, model_file, tmp_path):
        """Test -o writes the DOT text to the named file."""
        out = tmp_path / "model.gv"
        result = runner.invoke(app, ["-i", str(model_file), "-o", str(out)])

        assert result.exit_code == 0
        assert "digraph G {" not in result.stdout
        assert out.read_text(encoding="utf-8").count("subgraph cluster_") == 3

    def test_output_file_unwritable(self, model_file, tmp_path):
        """Test an unwritable output path exits with status 2."""
        out = tmp_path / "missing" / "model.gv"
        result = runner.invoke(app, ["-i", str(model_file), "-o", str(out)])

        assert result.exit_code == 2
        assert "Cannot open" in result.stdout

    def test_config_file_defaults(self, model_file, tmp_path):
        """Test config file render defaults apply when flags are absent."""
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({"render": {"levels": 1, "fontSize": 9}}))
        out = tmp_path / "model.gv"

        result = runner.invoke(app, ["-i", str(model_file), "-c", str(config), "-o", str(out), "--tree", "0"])

        assert result.exit_code == 0
        dot = out.read_text(encoding="utf-8")
        assert "/* Level 2 */" not in dot
        assert "fontsize=9" in dot

    def test_invalid_config_file(self, model_file, tmp_path):
        """Test a broken config file exits with status 1."""
        config = tmp_path / "settings.json"
        config.write_text("{broken")

        result = runner.invoke(app, ["-i", str(model_file), "-c", str(config)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.stdout

    def test_missing_config_file(self, model_file, tmp_path):
        """Test an explicitly named config file that does not exist exits with status 1."""
        result = runner.invoke(app, ["-i", str(model_file), "-c", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "Config file not found" in result.stdout


class TestDirectImage:
    """Test --direct renders through a temporary DOT file."""

    def test_direct_uses_temp_file(self, model_file, tmp_path):
        """Test the image is rendered from a temporary DOT file."""
        image = tmp_path / "tree.png"
        with patch("forestdot.output.render_png") as render_png:
            result = runner.invoke(app, ["-i", str(model_file), "--direct", str(image)])

        assert result.exit_code == 0
        dot_path, image_path = render_png.call_args.args
        assert image_path == image
        assert dot_path.name.startswith("forestdot-")
        assert dot_path.read_text(encoding="utf-8").count("subgraph cluster_") == 3

    def test_direct_ignores_output_file(self, model_file, tmp_path):
        """Test the temp file detour is taken even with -o."""
        image = tmp_path / "tree.png"
        out = tmp_path / "model.gv"
        with patch("forestdot.output.render_png") as render_png:
            result = runner.invoke(app, ["-i", str(model_file), "-o", str(out), "--direct", str(image)])

        assert result.exit_code == 0
        dot_path, _ = render_png.call_args.args
        assert dot_path != out
        assert not out.exists()

    def test_render_failure_exits_2(self, model_file, tmp_path):
        """Test a failing render exits with status 2."""
        with patch("forestdot.output.render_png", side_effect=OutputError("Failed to render tree.png")):
            result = runner.invoke(app, ["-i", str(model_file), "--direct", str(tmp_path / "tree.png")])

        assert result.exit_code == 2
        assert "Failed to render" in result.stdout
