import pytest

from objjc.output import FormatRules, Indentation, OutputBuffer
from objjc.spans import SourcePos, SourceSpan


def _buffer(indent_string: str = " ", indent_width: int = 4, rules: dict | None = None) -> OutputBuffer:
    return OutputBuffer(Indentation(indent_string, indent_width), FormatRules(rules))


def test_indentation_is_applied_at_line_starts() -> None:
    out = _buffer()

    out.concat("{")
    out.indentation.indent()
    out.concat("\nreturn 1;")
    out.indentation.dedent()
    out.concat("\n}")

    assert out.to_string() == "{\n    return 1;\n}"


def test_blank_lines_are_not_indented() -> None:
    out = _buffer()
    out.indentation.indent()

    out.concat("a;\n\nb;")

    assert out.to_string() == "    a;\n\n    b;"


def test_unbalanced_dedent_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unbalanced dedent"):
        Indentation().dedent()


def test_format_rules_surround_text() -> None:
    out = _buffer(rules={"operator": ("", "")})

    out.concat("a")
    out.concat_operator("+")
    out.concat("b")
    out.concat_comma()
    out.concat_with_format("=", "assign")

    assert out.to_string() == "a+b,  = "


def test_unknown_format_rule_is_rejected() -> None:
    with pytest.raises(KeyError, match="Unknown format rule 'sparkle'"):
        FormatRules().resolve("sparkle")


def test_concat_records_node_span_on_token() -> None:
    position = SourcePos(path="a.j", offset=0, line=1, column=1)
    span = SourceSpan(start=position, end=position)

    class Node:
        pass

    node = Node()
    node.span = span  # type: ignore[attr-defined]

    token = _buffer().concat("x", node)

    assert token is not None
    assert token.span == span
    assert _buffer().concat("") is None


def test_fork_starts_mid_line_and_splices_back() -> None:
    out = _buffer()
    out.concat("var x = ")
    fragment = out.fork()
    fragment.concat("1")
    out.indentation.indent()
    fragment.concat("\n+ 2")
    out.indentation.dedent()

    assert fragment.to_string() == "1\n    + 2"

    out.concat_buffer(fragment)
    out.concat(";")

    assert out.to_string() == "var x = 1\n    + 2;"


def test_rewritten_token_changes_output() -> None:
    out = _buffer()
    token = out.concat("self.")
    out.concat("count")

    assert token is not None
    token.text = ""

    assert out.to_string() == "count"
    assert not out.is_empty()
    assert _buffer().is_empty()


def test_clearing_a_line_start_token_keeps_indentation() -> None:
    out = _buffer()
    out.indentation.indent()
    out.concat("\n")
    token = out.concat("self.")
    out.concat("count = 2;")

    assert token is not None
    token.text = ""

    assert out.to_string() == "\n    count = 2;"


def test_fork_spliced_at_line_start_is_indented() -> None:
    out = _buffer()
    out.indentation.indent()
    out.concat("{\n")
    fragment = out.fork()
    fragment.concat("self")
    out.concat_buffer(fragment)
    out.concat(".run();")
    out.concat_buffer(fragment)

    assert out.to_string() == "{\n    self.run();self"
