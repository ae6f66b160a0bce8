from pathlib import Path

import pytest

from objjc.diagnostics import WARNING_CATEGORIES
from objjc.options import CompilerOptions, OptionsError, load_options, options_from_mapping


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "objjc.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    options = load_options(_write(tmp_path, ""))

    assert options == CompilerOptions()
    assert options.warnings == WARNING_CATEGORIES


def test_load_options_from_yaml(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
disable_warnings: [debugger, hidden-globals]
transform_named_function_to_assignment: true
accessors:
  getter: "get{Name}"
  copy_types: [CPString]
known_classes: [CPObject, CPView]
environments: [browser]
format:
  indent_string: "\\t"
  indent_width: 1
  rules:
    assign: {before: "", after: ""}
    comma: ","
""",
    )

    options = load_options(path)

    assert "debugger" not in options.warnings
    assert "hidden-globals" not in options.warnings
    assert "implicit-globals" in options.warnings
    assert options.transform_named_function_to_assignment
    assert options.accessor_getter_template == "get{Name}"
    assert options.accessor_setter_template == "set{Name}:"
    assert options.copy_accessor_types == frozenset({"CPString"})
    assert options.known_classes == ("CPObject", "CPView")
    assert options.environments == ("browser",)
    assert (options.indent_string, options.indent_width) == ("\t", 1)
    assert options.format_rules == {"assign": ("", ""), "comma": ("", ",")}


def test_warnings_key_replaces_enabled_set() -> None:
    options = options_from_mapping({"warnings": ["debugger"]})

    assert options.warnings == frozenset({"debugger"})


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"colour": True}, "unknown option 'colour'"),
        ({"warnings": ["loud"]}, "unknown warning category 'loud'"),
        ({"warnings": "debugger"}, "warnings must be list"),
        ({"transform_named_function_to_assignment": "yes"}, "must be bool"),
        ({"known_classes": ["CPObject", 3]}, r"known_classes\[1\] must be str"),
        ({"environments": ["mainframe"]}, "unknown environment 'mainframe'"),
        ({"format": {"indent_width": True}}, "format.indent_width must be int"),
        ({"format": {"indent_width": -1}}, "must be non-negative"),
        ({"format": {"rules": {"assign": 4}}}, "format.rules.assign must be dict"),
        (["not", "a", "mapping"], "must be dict"),
    ],
)
def test_invalid_options_are_rejected(raw: object, message: str) -> None:
    with pytest.raises(OptionsError, match=message):
        options_from_mapping(raw, source="objjc.yaml")


def test_invalid_yaml_is_reported(tmp_path: Path) -> None:
    path = _write(tmp_path, "format: [unclosed\n")

    with pytest.raises(OptionsError, match="invalid YAML"):
        load_options(path)


def test_with_warning_toggles_category() -> None:
    options = CompilerOptions().with_warning("debugger", False)

    assert "debugger" not in options.warnings
    assert "debugger" in options.with_warning("debugger", True).warnings


def test_with_warning_rejects_unknown_category() -> None:
    with pytest.raises(OptionsError, match="Unknown warning category 'loud'"):
        CompilerOptions().with_warning("loud", True)
