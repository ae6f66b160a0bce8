from __future__ import annotations

from dataclasses import fields, is_dataclass
import json
from typing import Any

from objjc.ast_nodes import *
from objjc.spans import SourcePos, SourceSpan


NODE_TYPES: dict[str, type] = {
    "Program": ProgramAst,
    "BlockStatement": BlockStmt,
    "ExpressionStatement": ExprStmt,
    "EmptyStatement": EmptyStmt,
    "IfStatement": IfStmt,
    "LabeledStatement": LabeledStmt,
    "BreakStatement": BreakStmt,
    "ContinueStatement": ContinueStmt,
    "WithStatement": WithStmt,
    "SwitchStatement": SwitchStmt,
    "SwitchCase": SwitchCase,
    "ReturnStatement": ReturnStmt,
    "ThrowStatement": ThrowStmt,
    "TryStatement": TryStmt,
    "CatchClause": CatchClause,
    "WhileStatement": WhileStmt,
    "DoWhileStatement": DoWhileStmt,
    "ForStatement": ForStmt,
    "ForInStatement": ForInStmt,
    "DebuggerStatement": DebuggerStmt,
    "FunctionDeclaration": FunctionDecl,
    "VariableDeclaration": VarDeclStmt,
    "VariableDeclarator": VarDeclarator,
    "ThisExpression": ThisExpr,
    "ArrayExpression": ArrayExpr,
    "ObjectExpression": ObjectExpr,
    "Property": PropertyNode,
    "FunctionExpression": FunctionExpr,
    "SequenceExpression": SequenceExpr,
    "UnaryExpression": UnaryExpr,
    "UpdateExpression": UpdateExpr,
    "BinaryExpression": BinaryExpr,
    "LogicalExpression": LogicalExpr,
    "AssignmentExpression": AssignExpr,
    "ConditionalExpression": ConditionalExpr,
    "NewExpression": NewExpr,
    "CallExpression": CallExpr,
    "MemberExpression": MemberExpr,
    "Identifier": IdentifierExpr,
    "Literal": LiteralExpr,
    "ArrayLiteral": ArrayLiteralExpr,
    "DictionaryLiteral": DictionaryLiteralExpr,
    "ImportStatement": ImportStmt,
    "ClassDeclaration": ClassDecl,
    "ProtocolDeclaration": ProtocolDecl,
    "IvarDeclaration": IvarDecl,
    "MethodDeclaration": MethodDecl,
    "ObjectiveJType": TypeRef,
    "MessageSendExpression": MessageSendExpr,
    "SelectorLiteralExpression": SelectorLiteralExpr,
    "ProtocolLiteralExpression": ProtocolLiteralExpr,
    "Reference": ReferenceExpr,
    "Dereference": DereferenceExpr,
    "ClassStatement": ClassStmt,
    "GlobalStatement": GlobalStmt,
    "PreprocessStatement": PreprocessStmt,
}

TYPE_NAMES: dict[type, str] = {node_type: name for name, node_type in NODE_TYPES.items()}

FIELD_ALIASES: dict[tuple[type, str], tuple[str, ...]] = {
    (MessageSendExpr, "super_object"): ("superObject",),
    (TypeRef, "is_class"): ("typeisclass",),
    (ImportStmt, "is_local"): ("isLocal", "localfilepath"),
}


class AstLoadError(ValueError):
    def __init__(self, message: str, path: str = "<memory>"):
        super().__init__(f"{message} in {path}")
        self.message = message
        self.path = path


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _span_from_json(raw: dict[str, Any], source_path: str) -> SourceSpan | None:
    loc = raw.get("loc")
    if not isinstance(loc, dict):
        return None
    start = loc.get("start") or {}
    end = loc.get("end") or start
    start_offset = raw.get("start", 0)
    end_offset = raw.get("end", start_offset)
    return SourceSpan(
        start=SourcePos(
            path=source_path,
            offset=start_offset,
            line=start.get("line", 0),
            column=start.get("column", 0) + 1,
        ),
        end=SourcePos(
            path=source_path,
            offset=end_offset,
            line=end.get("line", 0),
            column=end.get("column", 0) + 1,
        ),
    )


class _Loader:
    def __init__(self, source_path: str):
        self.source_path = source_path

    def load_node(self, raw: Any) -> Any:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise AstLoadError(f"Expected AST node object, got {type(raw).__name__}", self.source_path)

        type_name = raw.get("type")
        node_type = NODE_TYPES.get(type_name) if isinstance(type_name, str) else None
        if node_type is None:
            raise AstLoadError(f"Unsupported AST node type '{type_name}'", self.source_path)

        kwargs: dict[str, Any] = {}
        for node_field in fields(node_type):
            if node_field.name == "span":
                kwargs["span"] = _span_from_json(raw, self.source_path)
                continue
            found, value = self._lookup(raw, node_type, node_field.name)
            if not found:
                continue
            kwargs[node_field.name] = self._load_field(node_type, node_field.name, value)

        if node_type is LiteralExpr and "raw" not in kwargs:
            kwargs["raw"] = json.dumps(raw.get("value"))

        try:
            return node_type(**kwargs)
        except TypeError as error:
            raise AstLoadError(f"Malformed '{type_name}' node: {error}", self.source_path) from error

    def _lookup(self, raw: dict[str, Any], node_type: type, field_name: str) -> tuple[bool, Any]:
        candidates = (field_name, _camel_case(field_name), *FIELD_ALIASES.get((node_type, field_name), ()))
        for key in candidates:
            if key in raw:
                return True, raw[key]
        return False, None

    def _load_field(self, node_type: type, field_name: str, value: Any) -> Any:
        if node_type is MethodDecl and field_name == "arguments":
            return [self._load_method_argument(item) for item in value or []]
        if node_type is IvarDecl and field_name == "accessors":
            return self._load_accessors(value)
        if node_type is ImportStmt and field_name == "filename" and isinstance(value, dict):
            return str(value.get("value", ""))
        if node_type is SelectorLiteralExpr and field_name == "selector" and isinstance(value, dict):
            return str(value.get("name", ""))
        return self._load_value(value)

    def _load_value(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._load_value(item) for item in value]
        if isinstance(value, dict):
            return self.load_node(value)
        return value

    def _load_method_argument(self, raw: Any) -> MethodArgument:
        if not isinstance(raw, dict) or "identifier" not in raw:
            raise AstLoadError("Method argument requires an 'identifier'", self.source_path)
        return MethodArgument(
            identifier=self.load_node(raw["identifier"]),
            type=self.load_node(raw.get("type")),
            span=_span_from_json(raw, self.source_path),
        )

    def _load_accessors(self, raw: Any) -> AccessorsSpec | None:
        if raw is None or raw is False:
            return None
        if raw is True:
            return AccessorsSpec()
        if not isinstance(raw, dict):
            raise AstLoadError("Accessors must be an object", self.source_path)

        def name_of(key: str) -> str | None:
            value = raw.get(key)
            if isinstance(value, dict):
                return value.get("name")
            return value if isinstance(value, str) else None

        copy_raw = raw.get("copy")
        return AccessorsSpec(
            property=name_of("property"),
            getter=name_of("getter"),
            setter=name_of("setter"),
            readonly=bool(raw.get("readonly", False)),
            copy=None if copy_raw is None else bool(copy_raw),
            span=_span_from_json(raw, self.source_path),
        )


def load_program(data: Any, *, source_path: str = "<memory>") -> ProgramAst:
    program = _Loader(source_path).load_node(data)
    if not isinstance(program, ProgramAst):
        raise AstLoadError("Top-level AST node must be a 'Program'", source_path)
    return program


def load_node(data: Any, *, source_path: str = "<memory>") -> Any:
    return _Loader(source_path).load_node(data)


def load_program_json(text: str, *, source_path: str = "<memory>") -> ProgramAst:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as error:
        raise AstLoadError(f"Invalid JSON: {error}", source_path) from error
    return load_program(data, source_path=source_path)


def ast_to_debug_data(node: Any, *, include_spans: bool = False) -> Any:
    if node is None:
        return None

    if isinstance(node, (str, int, float, bool)):
        return node

    if isinstance(node, (list, tuple)):
        return [ast_to_debug_data(item, include_spans=include_spans) for item in node]

    if is_dataclass(node):
        result: dict[str, Any] = {"type": TYPE_NAMES.get(type(node), type(node).__name__)}
        for node_field in fields(node):
            value = getattr(node, node_field.name)
            if node_field.name == "span":
                if include_spans and value is not None:
                    result["loc"] = {
                        "source": value.start.path,
                        "start": {"line": value.start.line, "column": value.start.column - 1},
                        "end": {"line": value.end.line, "column": value.end.column - 1},
                    }
                continue
            result[node_field.name] = ast_to_debug_data(value, include_spans=include_spans)
        return result

    raise TypeError(f"Unsupported AST debug serialization value: {type(node).__name__}")


def ast_to_debug_json(node: Any, *, include_spans: bool = False) -> str:
    data = ast_to_debug_data(node, include_spans=include_spans)
    return json.dumps(data, indent=2, sort_keys=True)
