"""Tests for JSON Lines validation."""

import json
import math

import pytest

from structured_text_core.lines.validator import (
    JSONLinesValidator,
    ParseError,
    Record,
    ValidationResult,
    to_json_array_string,
    validate,
)
from structured_text_core.shared import ValidatorConfig


class TestValidate:
    """Test line classification and aggregate counts."""

    def test_mixed_document(self):
        """Valid, invalid and empty lines are counted separately."""
        result = validate('{"a":1}\n{bad json}\n\n{"b":2}')

        assert result.total_lines == 4
        assert result.valid_lines == 2
        assert result.invalid_lines == 1
        assert result.empty_lines == 1
        assert len(result.errors) == 1
        assert result.errors[0].line_number == 2
        assert result.key_frequency == {"a": 1, "b": 1}

    def test_empty_input(self):
        """Empty input yields an all-zero result."""
        assert validate("") == ValidationResult()

    def test_whitespace_only_input(self):
        """Whitespace-only input yields an all-zero result."""
        result = validate("   \n\t\n  ")
        assert result.total_lines == 0
        assert result.empty_lines == 0
        assert result.errors == []

    def test_key_frequency(self):
        """Top-level keys are counted across lines."""
        text = "\n".join([
            '{"id":1,"level":"info","message":"ok"}',
            '{"id":2,"level":"warn"}',
            '{"id":3,"level":"error","code":"E_TIMEOUT"}',
        ])
        result = validate(text)

        assert result.total_lines == 3
        assert result.valid_lines == 3
        assert result.key_frequency == {"id": 3, "level": 3, "message": 1, "code": 1}

    def test_nested_keys_not_counted(self):
        """Only top-level keys contribute to the frequency table."""
        result = validate('{"a":{"b":1,"a":2}}')
        assert result.key_frequency == {"a": 1}

    def test_duplicate_keys_counted_once(self):
        """A key repeated within a line is counted once."""
        result = validate('{"a":1,"a":2}')
        assert result.key_frequency == {"a": 1}
        assert result.records[0].value == {"a": 2}

    def test_non_object_values_are_valid(self):
        """Any JSON value is a valid record."""
        result = validate('"text"\n42\ntrue\nnull\n[1,2,3]')

        assert result.valid_lines == 5
        assert result.invalid_lines == 0
        assert result.key_frequency == {}
        assert result.values == ["text", 42, True, None, [1, 2, 3]]

    def test_crlf_line_endings(self):
        """Windows line endings split lines like plain newlines."""
        result = validate('{"a":1}\r\n{"b":2}\r\n')

        assert result.total_lines == 3
        assert result.valid_lines == 2
        assert result.empty_lines == 1
        assert result.errors == []

    def test_whitespace_lines_never_reported(self):
        """Blank lines appear in neither errors nor records."""
        result = validate('{"a":1}\n   \n\t\n{"b":2}')

        assert result.empty_lines == 2
        reported = {e.line_number for e in result.errors}
        reported |= {r.line_number for r in result.records}
        assert reported == {1, 4}

    def test_surrounding_whitespace_allowed(self):
        """Lines are parsed after trimming."""
        result = validate('   {"a": 1}   ')
        assert result.valid_lines == 1

    def test_leading_byte_order_mark_ignored(self):
        """A UTF-8 byte order mark before the first line is not content."""
        result = validate('\ufeff{"a":1}\n{"b":2}')

        assert result.is_valid
        assert result.valid_lines == 2
        assert result.records[0].value == {"a": 1}

    def test_byte_order_mark_only(self):
        """A lone byte order mark is an empty document."""
        assert validate("\ufeff") == ValidationResult()


class TestParseErrors:
    """Test per-line error reporting."""

    def test_errors_do_not_stop_processing(self):
        """Every line is examined even after failures."""
        result = validate('{"ok": true}\n\n{\nnot-json\n{"ok": false}')

        assert result.total_lines == 5
        assert result.empty_lines == 1
        assert result.valid_lines == 2
        assert result.invalid_lines == 2
        assert [e.line_number for e in result.errors] == [3, 4]
        assert result.errors[0].line_content == "{"
        assert result.errors[1].line_content == "not-json"

    def test_column_points_at_offending_character(self):
        """Columns are 1-based offsets into the line."""
        result = validate("{bad json}")
        assert result.errors[0].column_number == 2

    def test_column_counts_leading_whitespace(self):
        """Columns refer to the raw, untrimmed line."""
        result = validate("   {bad}")
        error = result.errors[0]

        assert error.line_content == "   {bad}"
        assert error.column_number == 5
        assert error.line_content[error.column_number - 1] == "b"

    def test_extra_data(self):
        """Two values on one line are rejected."""
        result = validate('{"a":1} {"b":2}')
        assert result.invalid_lines == 1
        assert result.errors[0].column_number == 9

    def test_message_is_human_readable(self):
        """The decoder message is kept."""
        result = validate("{")
        assert "Expecting" in result.errors[0].message

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_constants_rejected(self, literal):
        """NaN and Infinity are not JSON."""
        result = validate(f'{{"x": {literal}}}')

        assert result.invalid_lines == 1
        assert literal in result.errors[0].message
        assert result.errors[0].column_number == 7

    def test_non_standard_constants_allowed(self):
        """NaN can be accepted through configuration."""
        result = validate('{"x": NaN}', ValidatorConfig(allow_nan=True))
        assert result.valid_lines == 1
        assert math.isnan(result.records[0].value["x"])

    def test_max_line_length(self):
        """Over-long lines are reported without parsing."""
        result = validate('{"abc":1}\n1', ValidatorConfig(max_line_length=5))

        assert result.invalid_lines == 1
        assert result.valid_lines == 1
        assert "maximum length" in result.errors[0].message
        assert result.errors[0].column_number is None

    def test_constant_column_skips_strings(self):
        """The column points at the bare literal, not a string containing it."""
        assert validate('{"s":"NaN","v":NaN}').errors[0].column_number == 16
        assert validate('{"s":"a\\"NaN","v":NaN}').errors[0].column_number == 19

    def test_deep_nesting_reported_per_line(self):
        """A line nested beyond the decoder's limit is one invalid line."""
        deep = "[" * 100000 + "]" * 100000
        result = validate('{"a":1}\n' + deep + '\n{"b":2}')

        assert result.valid_lines == 2
        assert result.invalid_lines == 1
        error = result.errors[0]
        assert error.line_number == 2
        assert error.message == "Maximum nesting depth exceeded"
        assert error.column_number is None

    def test_parse_error_str(self):
        """ParseError renders with its location."""
        error = ParseError(2, "Expecting value", "x", column_number=1)
        assert str(error) == "Line 2, column 1: Expecting value"
        assert str(ParseError(3, "Too long", "x")) == "Line 3: Too long"


class TestInvariants:
    """Test properties that hold for every input."""

    DOCUMENTS = [
        "",
        "\n",
        '{"a":1}',
        '{"a":1}\n{bad}\n\n  \n[1]\n"x"\n{',
        "\n\n\n",
        '1\n2\n3\r\n\r\n{"k":"v"}\nnope',
    ]

    @pytest.mark.parametrize("text", DOCUMENTS)
    def test_line_buckets_add_up(self, text):
        """Every line lands in exactly one bucket."""
        result = validate(text)

        assert result.total_lines == (
            result.valid_lines + result.invalid_lines + result.empty_lines
        )
        assert len(result.errors) == result.invalid_lines
        assert len(result.records) == result.valid_lines

    @pytest.mark.parametrize("text", DOCUMENTS)
    def test_key_counts_bounded_by_valid_lines(self, text):
        """No key is counted more often than there are valid lines."""
        result = validate(text)
        assert all(count <= result.valid_lines for count in result.key_frequency.values())

    @pytest.mark.parametrize("text", DOCUMENTS)
    def test_idempotent(self, text):
        """Validating twice yields equal results."""
        assert validate(text) == validate(text)

    def test_order_preserved(self):
        """Swapping two valid lines swaps their records."""
        forward = validate('{"a":1}\n{"b":2}')
        backward = validate('{"b":2}\n{"a":1}')

        assert forward.values == [{"a": 1}, {"b": 2}]
        assert backward.values == [{"b": 2}, {"a": 1}]


class TestValidationResult:
    """Test result objects."""

    def test_records_carry_line_numbers_and_keys(self):
        """Records keep their source line and top-level keys."""
        result = validate('\n{"a":1,"b":2}\n5')

        assert result.records == [
            Record(2, {"a": 1, "b": 2}, ("a", "b")),
            Record(3, 5, ()),
        ]

    def test_is_valid(self):
        """is_valid reflects the absence of errors."""
        assert validate('{"a":1}').is_valid is True
        assert validate("{").is_valid is False

    def test_to_dict(self):
        """The summary is JSON-serializable."""
        summary = validate('{"a":1}\n{').to_dict()

        assert summary["valid_lines"] == 1
        assert summary["errors"][0]["line_number"] == 2
        assert json.loads(json.dumps(summary)) == summary

    def test_performance_metrics(self):
        """Timing and volume metrics are recorded."""
        result = validate('{"a":1}\n{"b":2}')

        assert result.performance.lines_processed == 2
        assert result.performance.characters_processed == 15

    def test_validator_class(self):
        """The configured class behaves like the function."""
        validator = JSONLinesValidator(correlation_id="req-1")
        assert validator.validate('{"a":1}') == validate('{"a":1}')


class TestToJSONArrayString:
    """Test serializing valid records as a JSON array."""

    def test_round_trip_of_valid_records(self):
        """Valid records serialize back to a JSON array."""
        result = validate('{"a":1}\n{bad json}\n\n{"b":2}')
        assert to_json_array_string(result, indent=None) == '[{"a":1},{"b":2}]'

    def test_pretty_printed(self):
        """The default output is indented by two spaces."""
        records = [Record(1, {"id": 1}), Record(2, {"id": 2})]
        assert to_json_array_string(records) == (
            '[\n  {\n    "id": 1\n  },\n  {\n    "id": 2\n  }\n]'
        )

    def test_bare_values(self):
        """Plain values are accepted as records."""
        assert to_json_array_string([1, "x", None], indent=None) == '[1,"x",null]'

    def test_records_not_modified(self):
        """Serialization leaves the records untouched."""
        result = validate('{"a":[1,2]}')
        before = list(result.records)
        to_json_array_string(result)
        assert result.records == before

    def test_empty(self):
        """No records gives an empty array."""
        assert to_json_array_string(validate("")) == "[]"
