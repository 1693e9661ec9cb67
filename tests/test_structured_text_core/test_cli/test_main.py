"""Tests for the CLI main module."""

import io
import json

import pytest

from structured_text_core.cli.main import (
    create_argument_parser,
    format_validation,
    main,
)
from structured_text_core.lines import validate


@pytest.fixture
def write_file(tmp_path):
    """Write ``content`` to a file in a temporary directory."""
    def _write(name, content):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write


class TestArgumentParser:
    """Test argument parsing."""

    def test_subcommands(self):
        """All sub-commands parse."""
        parser = create_argument_parser()
        assert parser.parse_args(["xml2json", "a.xml"]).command == "xml2json"
        assert parser.parse_args(["json2xml", "a.json"]).command == "json2xml"
        args = parser.parse_args(["validate", "a.jsonl", "--format", "json"])
        assert args.command == "validate"
        assert args.format == "json"

    def test_no_command(self, capsys):
        """Running without a command prints help and fails."""
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out


class TestXML2JSON:
    """Test the xml2json command."""

    def test_convert_file(self, write_file, capsys):
        """XML files are converted to JSON on stdout."""
        path = write_file("doc.xml", "<root><item>1</item><item>2</item></root>")

        assert main(["xml2json", str(path)]) == 0
        assert json.loads(capsys.readouterr().out) == {"root": {"item": ["1", "2"]}}

    def test_single_line(self, write_file, capsys):
        """--indent 0 writes a single line."""
        path = write_file("doc.xml", "<root><a>1</a></root>")

        assert main(["xml2json", str(path), "--indent", "0"]) == 0
        assert capsys.readouterr().out.strip() == '{"root": {"a": "1"}}'

    def test_invalid_xml(self, write_file, capsys):
        """Malformed XML is reported with exit code 1."""
        path = write_file("bad.xml", "<root><unclosed>")

        assert main(["xml2json", str(path)]) == 1
        assert "Invalid XML" in capsys.readouterr().err

    def test_output_file(self, write_file, tmp_path, capsys):
        """--output writes the result to a file."""
        path = write_file("doc.xml", "<r>x</r>")
        output = tmp_path / "out.json"

        assert main(["xml2json", str(path), "--output", str(output)]) == 0
        assert json.loads(output.read_text(encoding="utf-8")) == {"r": "x"}
        assert "Results written" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        """Unreadable input fails cleanly."""
        assert main(["xml2json", str(tmp_path / "missing.xml")]) == 1
        assert "Error" in capsys.readouterr().err


class TestJSON2XML:
    """Test the json2xml command."""

    def test_convert_file(self, write_file, capsys):
        """JSON files render as XML."""
        path = write_file("doc.json", '{"person": {"name": "John", "age": 30}}')

        assert main(["json2xml", str(path)]) == 0
        assert capsys.readouterr().out.strip() == (
            "<person>\n  <name>John</name>\n  <age>30</age>\n</person>"
        )

    def test_invalid_json(self, write_file, capsys):
        """Malformed JSON fails with exit code 1."""
        path = write_file("doc.json", "{oops")

        assert main(["json2xml", str(path)]) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_compact_preset(self, write_file, capsys):
        """The compact preset disables pretty printing."""
        path = write_file("doc.json", '{"p": {"a": 1}}')

        assert main(["--preset", "compact", "json2xml", str(path)]) == 0
        assert capsys.readouterr().out.strip() == "<p><a>1</a></p>"


class TestValidateCommand:
    """Test the validate command."""

    def test_valid_document(self, write_file, capsys):
        """A clean document exits with 0."""
        path = write_file("ok.jsonl", '{"a":1}\n{"a":2}\n')

        assert main(["validate", str(path)]) == 0
        out = capsys.readouterr().out
        assert "2 valid, 0 invalid, 1 empty" in out
        assert "a: 2" in out

    def test_invalid_document(self, write_file, capsys):
        """Invalid lines are listed and the exit code is 1."""
        path = write_file("bad.jsonl", '{"a":1}\n{bad json}\n\n{"b":2}')

        assert main(["validate", str(path)]) == 1
        out = capsys.readouterr().out
        assert "Line 2, column 2" in out
        assert "{bad json}" in out

    def test_json_report(self, write_file, capsys):
        """--format json emits the summary as JSON."""
        path = write_file("bad.jsonl", '{"a":1}\n{bad json}')

        assert main(["validate", str(path), "--format", "json"]) == 1
        report = json.loads(capsys.readouterr().out)
        assert report["invalid_lines"] == 1
        assert report["errors"][0]["column_number"] == 2

    def test_records_as_array(self, write_file, capsys):
        """Valid records can be printed as one JSON array."""
        path = write_file("bad.jsonl", '{"a":1}\n{bad json}\n\n{"b":2}')

        assert main(["--preset", "compact", "validate", str(path), "--records-as-array"]) == 1
        assert capsys.readouterr().out.strip() == '[{"a":1},{"b":2}]'

    def test_stdin(self, monkeypatch, capsys):
        """A dash reads from standard input."""
        monkeypatch.setattr("sys.stdin", io.StringIO('{"a":1}\n'))

        assert main(["validate", "-", "--format", "json"]) == 0
        assert json.loads(capsys.readouterr().out)["valid_lines"] == 1

    def test_config_file(self, write_file, capsys):
        """A JSON configuration file is honoured."""
        config = write_file("config.json", '{"validator": {"allow_nan": true}}')
        path = write_file("nan.jsonl", '{"x": NaN}')

        assert main(["--config", str(config), "validate", str(path)]) == 0

    def test_invalid_config_file(self, write_file, capsys):
        """An invalid configuration file fails cleanly."""
        config = write_file("config.json", '{"validator": {"max_line_length": 0}}')
        path = write_file("ok.jsonl", "1")

        assert main(["--config", str(config), "validate", str(path)]) == 1
        assert "Invalid configuration" in capsys.readouterr().err

    def test_config_file_layers_over_preset(self, write_file, capsys):
        """--config only replaces the fields it names in the --preset."""
        config = write_file("config.json", '{"validator": {"allow_nan": true}}')
        path = write_file("nan.jsonl", '{"x": NaN}\n{"y": 1}')

        args = ["--preset", "compact", "--config", str(config), "validate", str(path)]
        assert main(args + ["--records-as-array"]) == 0
        assert capsys.readouterr().out.strip() == '[{"x":NaN},{"y":1}]'

    def test_byte_order_mark(self, tmp_path, capsys):
        """Files saved with a UTF-8 byte order mark validate cleanly."""
        path = tmp_path / "bom.jsonl"
        path.write_bytes(b'\xef\xbb\xbf{"a":1}\n{"b":2}')

        assert main(["validate", str(path)]) == 0
        assert "2 valid, 0 invalid" in capsys.readouterr().out

    @pytest.mark.parametrize("command", ["validate", "json2xml"])
    def test_undecodable_input(self, tmp_path, capsys, command):
        """Input that is not UTF-8 fails with exit code 1 instead of a traceback."""
        path = tmp_path / "latin1.txt"
        path.write_bytes(b'{"a":"\xff"}')

        assert main([command, str(path)]) == 1
        assert "Error:" in capsys.readouterr().err


class TestFormatValidation:
    """Test report formatting."""

    def test_caret_under_column(self):
        """The text report points at the failing column."""
        report = format_validation(validate("  {x}"), "text")
        lines = report.splitlines()
        index = next(i for i, line in enumerate(lines) if line == "     {x}")
        assert lines[index + 1] == "      ^"

    def test_error_list_truncated(self):
        """Long error lists are truncated."""
        report = format_validation(validate("\n".join(["{"] * 25)), "text")
        assert "... and 5 more errors" in report
