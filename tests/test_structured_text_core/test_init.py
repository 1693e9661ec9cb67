"""Test module for structured_text_core package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    import structured_text_core

    assert structured_text_core is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    import structured_text_core

    assert structured_text_core.__version__ == "0.1.0"


def test_top_level_api() -> None:
    """Test that the simple functions are exported at top level."""
    import structured_text_core

    for name in ("convert", "to_xml", "validate", "to_json_array_string"):
        assert name in structured_text_core.__all__
        assert callable(getattr(structured_text_core, name))


def test_top_level_round_trip() -> None:
    """Test the documented end-to-end usage."""
    from structured_text_core import convert, to_json_array_string, validate

    assert convert("<root><name>test</name></root>") == {"root": {"name": "test"}}
    result = validate('{"a":1}\n{bad json}\n\n{"b":2}')
    assert to_json_array_string(result, indent=None) == '[{"a":1},{"b":2}]'
