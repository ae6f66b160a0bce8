from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from objjc.spans import SourceSpan


DEFAULT_FORMAT_RULES: dict[str, tuple[str, str]] = {
    "assign": (" ", " "),
    "operator": (" ", " "),
    "comma": ("", " "),
    "colon": ("", " "),
    "label-colon": ("", ""),
    "case-colon": ("", ""),
    "before-left-paren": (" ", ""),
    "before-left-brace": (" ", ""),
    "else": (" ", ""),
    "before-catch": (" ", ""),
    "before-finally": (" ", ""),
    "before-label": (" ", ""),
    "in": (" ", " "),
    "left-bracket": ("", ""),
    "right-bracket": ("", ""),
    "between-case-blocks": ("", "\n"),
}


class Indentation:
    def __init__(self, indent_string: str = " ", indent_width: int = 4):
        self.unit = indent_string * indent_width
        self.level = 0

    def indent(self) -> None:
        self.level += 1

    def dedent(self) -> None:
        if self.level == 0:
            raise ValueError("Unbalanced dedent")
        self.level -= 1

    def current(self) -> str:
        return self.unit * self.level


class FormatRules:
    def __init__(self, overrides: dict[str, tuple[str, str]] | None = None):
        self.rules = dict(DEFAULT_FORMAT_RULES)
        if overrides:
            self.rules.update(overrides)

    def resolve(self, rule: str) -> tuple[str, str]:
        spacing = self.rules.get(rule)
        if spacing is None:
            raise KeyError(f"Unknown format rule '{rule}'")
        return spacing


@dataclass
class OutputToken:
    text: str
    span: SourceSpan | None = None


class OutputBuffer:
    def __init__(self, indentation: Indentation, rules: FormatRules):
        self.indentation = indentation
        self.rules = rules
        self.tokens: list[OutputToken] = []
        self._at_line_start = True

    def fork(self) -> "OutputBuffer":
        fragment = OutputBuffer(self.indentation, self.rules)
        fragment._at_line_start = False
        return fragment

    def concat(self, text: str, node: Any = None) -> OutputToken | None:
        """Append ``text``, emitting line indentation as separate tokens."""
        if not text:
            return None

        span = getattr(node, "span", None)
        pieces: list[str] = []
        for index, line in enumerate(text.split("\n")):
            if index > 0:
                pieces.append("\n")
                self._at_line_start = True
            if line:
                if self._at_line_start:
                    if pieces:
                        self.tokens.append(OutputToken("".join(pieces), span))
                        pieces = []
                    self._indent_line()
                pieces.append(line)
                self._at_line_start = False

        token = OutputToken("".join(pieces), span)
        self.tokens.append(token)
        return token

    def _indent_line(self) -> None:
        indent = self.indentation.current()
        if indent:
            self.tokens.append(OutputToken(indent))

    def concat_format(self, rule: str) -> None:
        before, after = self.rules.resolve(rule)
        self.concat(before + after)

    def concat_with_format(self, text: str, rule: str, node: Any = None) -> None:
        before, after = self.rules.resolve(rule)
        self.concat(before)
        self.concat(text, node)
        self.concat(after)

    def concat_operator(self, operator: str, node: Any = None) -> None:
        self.concat_with_format(operator, "operator", node)

    def concat_comma(self) -> None:
        self.concat_with_format(",", "comma")

    def concat_buffer(self, other: "OutputBuffer") -> None:
        if not other.tokens:
            return
        # A fork renders its first line without indentation.
        if self._at_line_start and not other.tokens[0].text.startswith("\n"):
            self._indent_line()
        self.tokens.extend(other.tokens)
        self._at_line_start = other._at_line_start

    def is_empty(self) -> bool:
        return not any(token.text for token in self.tokens)

    def to_string(self) -> str:
        return "".join(token.text for token in self.tokens)

    def __str__(self) -> str:
        return self.to_string()
