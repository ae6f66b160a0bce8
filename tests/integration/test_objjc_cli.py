from __future__ import annotations

import json
import sys
from pathlib import Path

from objjc.cli import main


def _identifier(name: str) -> dict:
    return {"type": "Identifier", "name": name}


def _write_program(tmp_path: Path, *body: dict, name: str = "main.json") -> Path:
    path = tmp_path / name
    path.write_text(json.dumps({"type": "Program", "body": list(body)}), encoding="utf-8")
    return path


def _var_statement(name: str, raw: str) -> dict:
    return {
        "type": "VariableDeclaration",
        "declarations": [
            {
                "type": "VariableDeclarator",
                "id": _identifier(name),
                "init": {"type": "Literal", "value": int(raw), "raw": raw},
            }
        ],
    }


def _debugger_at(line: int) -> dict:
    return {
        "type": "DebuggerStatement",
        "loc": {"start": {"line": line, "column": 0}, "end": {"line": line, "column": 9}},
    }


def _root_class(name: str, *, ivars: list[dict] | None = None, body: list[dict] | None = None) -> dict:
    return {
        "type": "ClassDeclaration",
        "classname": _identifier(name),
        "ivardeclarations": ivars or [],
        "body": body or [],
    }


def test_cli_writes_javascript_to_stdout(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, _var_statement("x", "1"))
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry)])

    rc = main()
    captured = capsys.readouterr()

    assert rc == 0
    assert captured.out == "var x = 1;\n"
    assert captured.err == ""


def test_cli_writes_output_file(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, _var_statement("x", "1"))
    out_file = tmp_path / "main.js"
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry), "-o", str(out_file)])

    rc = main()

    assert rc == 0
    assert out_file.read_text(encoding="utf-8") == "var x = 1;\n"
    assert capsys.readouterr().out == ""


def test_cli_reports_warnings_with_locations(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, _debugger_at(2))
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry)])

    rc = main()
    captured = capsys.readouterr()

    assert rc == 0
    assert captured.out == "debugger;\n"
    assert f"{entry}:2:1: warning: debugger statement" in captured.err


def test_cli_can_disable_warning_category(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, _debugger_at(1))
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry), "-Wno-debugger"])

    rc = main()

    assert rc == 0
    assert capsys.readouterr().err == ""


def test_cli_rejects_unknown_warning_category(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, _debugger_at(1))
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry), "-Wloud"])

    rc = main()

    assert rc == 1
    assert "objjc: Unknown warning category 'loud'" in capsys.readouterr().err


def test_cli_applies_yaml_config(tmp_path: Path, monkeypatch, capsys) -> None:
    function = {
        "type": "FunctionDeclaration",
        "id": _identifier("f"),
        "params": [],
        "body": {"type": "BlockStatement", "body": [{"type": "ReturnStatement", "argument": None}]},
    }
    entry = _write_program(tmp_path, function)
    config = tmp_path / "objjc.yaml"
    config.write_text(
        "transform_named_function_to_assignment: true\nformat:\n  indent_width: 2\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry), "--config", str(config)])

    rc = main()

    assert rc == 0
    assert capsys.readouterr().out == "f = function() {\n  return;\n}\n"


def test_cli_reports_fatal_errors(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, _root_class("Foo"), _root_class("Foo"))
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry)])

    rc = main()
    captured = capsys.readouterr()

    assert rc == 1
    assert captured.out == ""
    assert "<unknown>: fatal: duplicate class Foo" in captured.err
    assert "objjc: duplicate class Foo" in captured.err


def test_cli_reports_unsupported_ast(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, {"type": "YieldExpression"})
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry)])

    rc = main()

    assert rc == 1
    assert "Unsupported AST node type 'YieldExpression'" in capsys.readouterr().err


def test_cli_prints_ast_before_code(tmp_path: Path, monkeypatch, capsys) -> None:
    entry = _write_program(tmp_path, {"type": "EmptyStatement"})
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry), "--print-ast"])

    rc = main()
    captured = capsys.readouterr()

    assert rc == 0
    ast_text, code = captured.out[: -len(";\n")], captured.out[-len(";\n"):]
    assert json.loads(ast_text) == {"type": "Program", "body": [{"type": "EmptyStatement"}]}
    assert code == ";\n"


def test_cli_prints_class_registry(tmp_path: Path, monkeypatch, capsys) -> None:
    ivar = {"type": "IvarDeclaration", "ivartype": _identifier("int"), "id": _identifier("count")}
    method = {
        "type": "MethodDeclaration",
        "methodtype": "-",
        "selectors": [_identifier("count")],
        "arguments": [],
        "returntype": {"type": "ObjectiveJType", "name": "int"},
        "body": {"type": "BlockStatement", "body": []},
    }
    entry = _write_program(tmp_path, _root_class("Counter", ivars=[ivar], body=[method]))
    monkeypatch.setattr(sys, "argv", ["objjc", str(entry), "--print-classes", "-o", str(tmp_path / "out.js")])

    rc = main()
    captured = capsys.readouterr()

    assert rc == 0
    assert captured.out == "Counter\n    ivar int count\n    - count ['int']\n"
