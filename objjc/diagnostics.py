from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any

from objjc.spans import SourceSpan, format_span


logger = logging.getLogger(__name__)


class Severity(str, Enum):
    WARNING = "warning"
    NOTE = "note"
    FATAL = "fatal"


WARNING_CATEGORIES = frozenset({
    "implicit-globals",
    "unknown-identifiers",
    "hidden-globals",
    "hidden-ivars",
    "read-only-globals",
    "debugger",
    "reserved-words",
})


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    template: str
    args: tuple[Any, ...]
    span: SourceSpan | None
    node: Any = field(default=None, compare=False, repr=False)
    category: str | None = None
    identifier: str | None = None


class CompileError(ValueError):
    def __init__(self, message: str, span: SourceSpan | None, node: Any = None):
        if span is not None:
            super().__init__(f"{message} at {span.start.path}:{span.start.line}:{span.start.column}")
        else:
            super().__init__(message)
        self.message = message
        self.span = span
        self.node = node
        self.diagnostics: list[Diagnostic] = []


def _span_of(node: Any) -> SourceSpan | None:
    return getattr(node, "span", None)


class DiagnosticSink:
    def __init__(self, enabled_categories: frozenset[str] = WARNING_CATEGORIES):
        self.enabled_categories = enabled_categories
        self.items: list[Diagnostic] = []

    def should_warn_about(self, category: str) -> bool:
        return category in self.enabled_categories

    def _add(
        self,
        severity: Severity,
        node: Any,
        template: str,
        args: tuple[Any, ...],
        category: str | None,
        identifier: str | None,
    ) -> Diagnostic:
        message = template % args if args else template
        diagnostic = Diagnostic(
            severity=severity,
            message=message,
            template=template,
            args=args,
            span=_span_of(node),
            node=node,
            category=category,
            identifier=identifier,
        )
        self.items.append(diagnostic)
        logger.debug("%s: %s", severity.value, message)
        return diagnostic

    def warning(
        self,
        node: Any,
        template: str,
        *args: Any,
        category: str | None = None,
        identifier: str | None = None,
    ) -> Diagnostic:
        return self._add(Severity.WARNING, node, template, args, category, identifier)

    def note(self, node: Any, template: str, *args: Any) -> Diagnostic:
        return self._add(Severity.NOTE, node, template, args, None, None)

    def fatal(self, node: Any, template: str, *args: Any) -> CompileError:
        diagnostic = self._add(Severity.FATAL, node, template, args, None, None)
        error = CompileError(diagnostic.message, diagnostic.span, node)
        error.diagnostics = list(self.items)
        return error

    def remove(self, diagnostics: list[Diagnostic]) -> None:
        doomed = {id(item) for item in diagnostics}
        self.items = [item for item in self.items if id(item) not in doomed]

    def warnings(self) -> list[Diagnostic]:
        return [item for item in self.items if item.severity is Severity.WARNING]

    def notes(self) -> list[Diagnostic]:
        return [item for item in self.items if item.severity is Severity.NOTE]


def format_diagnostic(diagnostic: Diagnostic) -> str:
    return f"{format_span(diagnostic.span)}: {diagnostic.severity.value}: {diagnostic.message}"
