from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
import yaml

from objjc.ast_json import load_program
from objjc.codegen import compile_program
from objjc.diagnostics import CompileError, Severity
from objjc.options import options_from_mapping


CASES_ROOT = Path(__file__).resolve().parent / "cases"


@dataclass(frozen=True)
class GoldenExpect:
    js: str | None
    warnings: list[str] | None
    error: str | None


@dataclass(frozen=True)
class GoldenCase:
    name: str
    ast: dict
    options: dict | None
    expect: GoldenExpect


def _require_type(value: object, expected_type: type, label: str) -> None:
    if not isinstance(value, expected_type):
        raise ValueError(f"{label} must be {expected_type.__name__}")


def _optional_str(raw: dict, key: str, label: str) -> str | None:
    value = raw.get(key)
    if value is not None:
        _require_type(value, str, f"{label}.{key}")
    return value


def _parse_expect(raw: object, *, case_path: Path) -> GoldenExpect:
    label = f"{case_path}: expect"
    _require_type(raw, dict, label)
    assert isinstance(raw, dict)

    warnings = raw.get("warnings")
    if warnings is not None:
        _require_type(warnings, list, f"{label}.warnings")
        for index, message in enumerate(warnings):
            _require_type(message, str, f"{label}.warnings[{index}]")

    expect = GoldenExpect(
        js=_optional_str(raw, "js", label),
        warnings=warnings,
        error=_optional_str(raw, "error", label),
    )
    if expect.js is None and expect.error is None:
        raise ValueError(f"{label} needs 'js' or 'error'")
    return expect


def load_case(case_path: Path) -> GoldenCase:
    raw = yaml.safe_load(case_path.read_text(encoding="utf-8"))
    _require_type(raw, dict, str(case_path))

    name = raw.get("name", case_path.stem)
    _require_type(name, str, f"{case_path}: name")
    _require_type(raw.get("ast"), dict, f"{case_path}: ast")
    options = raw.get("options")
    if options is not None:
        _require_type(options, dict, f"{case_path}: options")

    return GoldenCase(
        name=name,
        ast=raw["ast"],
        options=options,
        expect=_parse_expect(raw.get("expect"), case_path=case_path),
    )


CASE_PATHS = sorted(CASES_ROOT.glob("*.yaml"))


@pytest.mark.parametrize("case_path", CASE_PATHS, ids=[path.stem for path in CASE_PATHS])
def test_golden_case(case_path: Path) -> None:
    case = load_case(case_path)
    program = load_program(case.ast, source_path=case_path.name)
    options = options_from_mapping(case.options, source=str(case_path))

    if case.expect.error is not None:
        with pytest.raises(CompileError) as excinfo:
            compile_program(program, options)
        assert excinfo.value.message == case.expect.error
        return

    result = compile_program(program, options)

    assert result.code == case.expect.js
    fatal = [item for item in result.diagnostics if item.severity is Severity.FATAL]
    assert fatal == []
    if case.expect.warnings is not None:
        assert [item.message for item in result.warnings()] == case.expect.warnings


def test_golden_cases_are_present() -> None:
    assert len(CASE_PATHS) >= 8
