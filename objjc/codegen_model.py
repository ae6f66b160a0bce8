from __future__ import annotations

from objjc.ast_nodes import (
    AssignExpr,
    BinaryExpr,
    BreakStmt,
    CallExpr,
    ConditionalExpr,
    ContinueStmt,
    DebuggerStmt,
    DoWhileStmt,
    EmptyStmt,
    ExprStmt,
    FunctionExpr,
    ImportStmt,
    LogicalExpr,
    MemberExpr,
    NewExpr,
    ReturnStmt,
    ThrowStmt,
    UnaryExpr,
    UpdateExpr,
    VarDeclStmt,
)


WORD_PREFIX_OPERATORS = frozenset({"delete", "in", "instanceof", "new", "typeof", "void"})

OPERATOR_PRECEDENCE: dict[str, int] = {
    # Member access and calls never reach the operator comparison.
    ".": 0,
    "[]": 0,
    "new": 1,
    "!": 2,
    "~": 2,
    "++": 2,
    "--": 2,
    "typeof": 2,
    "void": 2,
    "delete": 2,
    "*": 3,
    "/": 3,
    "%": 3,
    "+": 4,
    "-": 4,
    "<<": 5,
    ">>": 5,
    ">>>": 5,
    "<": 6,
    "<=": 6,
    ">": 6,
    ">=": 6,
    "in": 6,
    "instanceof": 6,
    "==": 7,
    "!=": 7,
    "===": 7,
    "!==": 7,
    "&": 8,
    "^": 9,
    "|": 10,
    "&&": 11,
    "||": 12,
}

EXPRESSION_TYPE_PRECEDENCE: dict[type, int] = {
    MemberExpr: 0,
    CallExpr: 1,
    NewExpr: 2,
    FunctionExpr: 3,
    UnaryExpr: 4,
    UpdateExpr: 4,
    BinaryExpr: 5,
    LogicalExpr: 6,
    ConditionalExpr: 7,
    AssignExpr: 8,
}

BINARY_LIKE_TYPES = (BinaryExpr, LogicalExpr)

SEMICOLON_STATEMENTS = (
    ExprStmt,
    VarDeclStmt,
    ReturnStmt,
    BreakStmt,
    ContinueStmt,
    ThrowStmt,
    DoWhileStmt,
    DebuggerStmt,
    ImportStmt,
    EmptyStmt,
)

RECEIVER_TEMP_PREFIX = "___r"
MAX_COUNTED_DISPATCH_ARGUMENTS = 3

SELF_NAME = "self"
CMD_NAME = "_cmd"
EVAL_NAME = "eval"

ARRAY_CLASS_NAME = "CPArray"
DICTIONARY_CLASS_NAME = "CPDictionary"

CLASS_VAR = "$the_class"
PROTOCOL_VAR = "$the_protocol"

YES_LITERAL = "YES"
NO_LITERAL = "NO"

VOID_TYPE = "void"


def superclass_accessor(class_name: str, *, meta: bool) -> str:
    getter = "objj_getMetaClass" if meta else "objj_getClass"
    return f'{getter}("{class_name}").super_class'


def method_function_name(class_name: str, selector: str, category_name: str | None = None) -> str:
    owner = class_name if category_name is None else f"{class_name}_{category_name}"
    return f"${owner}__{selector.replace(':', '_')}"


def quote_js_string(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def accessor_selector(template: str, name: str) -> str:
    return template.format(name=name, Name=capitalize_first(name))
