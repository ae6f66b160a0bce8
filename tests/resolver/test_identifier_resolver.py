from objjc.ast_nodes import (
    AssignExpr,
    BlockStmt,
    ExprStmt,
    FunctionDecl,
    IdentifierExpr,
    LiteralExpr,
    MessageSendExpr,
    ProgramAst,
    VarDeclarator,
    VarDeclStmt,
)
from objjc.codegen import CompileResult, compile_program
from objjc.model import CompilationContext
from objjc.options import CompilerOptions
from objjc.resolver import check_variable_name, validate_identifier_reference
from objjc.scope import BindingKind, Scope, ScopeKind


def _id(name: str) -> IdentifierExpr:
    return IdentifierExpr(name)


def _assign(name: str, raw: str = "1") -> ExprStmt:
    return ExprStmt(AssignExpr(_id(name), "=", LiteralExpr(raw)))


def _var(name: str, raw: str | None = None) -> VarDeclStmt:
    return VarDeclStmt([VarDeclarator(_id(name), LiteralExpr(raw) if raw is not None else None)])


def _function(name: str, body: list, params: list[str] | None = None) -> FunctionDecl:
    return FunctionDecl(_id(name), [_id(param) for param in params or []], BlockStmt(body))


def _compile(*statements, options: CompilerOptions | None = None) -> CompileResult:
    return compile_program(ProgramAst(list(statements)), options)


def _messages(result: CompileResult) -> list[str]:
    return [item.message for item in result.warnings()]


def test_implicit_global_in_function_warns_once_per_scope() -> None:
    result = _compile(_function("f", [_assign("x"), _assign("x")]))

    assert _messages(result) == [
        "implicitly creating a global variable in the function 'f'; did you mean to use var?"
    ]


def test_file_level_assignment_creates_global_silently() -> None:
    result = _compile(_assign("total"), _function("f", [ExprStmt(_id("total"))]))

    assert _messages(result) == []


def test_unknown_receiver_warns_with_class_suggestion() -> None:
    options = CompilerOptions(known_classes=("CPString",))
    send = MessageSendExpr(_id("CPSting"), [_id("string")])

    result = _compile(ExprStmt(send), options=options)

    assert _messages(result) == ["reference to unknown identifier 'CPSting'; did you mean 'CPString'?"]


def test_unknown_identifier_outside_receiver_has_no_suggestion() -> None:
    options = CompilerOptions(known_classes=("CPString",))

    result = _compile(ExprStmt(_id("CPSting")), options=options)

    assert _messages(result) == ["reference to unknown identifier 'CPSting'"]


def test_unknown_identifier_warning_dropped_when_declared_later_in_file() -> None:
    result = _compile(
        _function("f", [ExprStmt(_id("later"))]),
        _var("later", "1"),
    )

    assert _messages(result) == []


def test_read_only_predefined_global_assignment_warns() -> None:
    result = _compile(_function("f", [_assign("undefined")]))

    assert _messages(result) == ["assigning to a read-only predefined global"]


def test_writable_predefined_global_assignment_is_allowed() -> None:
    result = _compile(_function("f", [_assign("onload")]))

    assert _messages(result) == []


def test_local_shadowing_file_var_warns_with_note() -> None:
    result = _compile(_var("shared", "1"), _function("f", [_var("shared", "2")]))

    assert _messages(result) == ["local declaration of 'shared' hides a file variable"]
    notes = [item.message for item in result.diagnostics if item.severity.value == "note"]
    assert notes == ["declaration is here"]


def test_local_shadowing_predefined_global_warns() -> None:
    result = _compile(_function("f", [_var("parseInt")]))

    assert _messages(result) == ["local declaration of 'parseInt' hides a predefined global"]


def test_shadow_ignored_for_shadowable_predefined_globals() -> None:
    result = _compile(_function("f", [_var("name")]))

    assert _messages(result) == []


def test_reserved_word_variable_name_warns() -> None:
    result = _compile(_var("NaN"))

    assert _messages(result) == ["reserved word used for variable name"]


def test_disabled_categories_are_silent() -> None:
    options = CompilerOptions().with_warning("implicit-globals", False).with_warning("unknown-identifiers", False)

    result = _compile(_function("f", [_assign("x"), ExprStmt(_id("y"))]), options=options)

    assert _messages(result) == []


def test_validate_identifier_reference_records_implicit_global_marker() -> None:
    ctx = CompilationContext()
    root = Scope(None, ScopeKind.FILE)
    function = Scope(root, ScopeKind.FUNCTION)
    block = Scope(function, ScopeKind.BLOCK)
    block.assignment = True

    validate_identifier_reference(_id("leak"), block, ctx)
    validate_identifier_reference(_id("leak"), block, ctx)

    assert function.vars["leak"].kind is BindingKind.IMPLICIT_GLOBAL
    assert len(ctx.diagnostics.warnings()) == 1


def test_check_variable_name_skips_hidden_global_check_at_file_scope() -> None:
    ctx = CompilationContext()
    root = Scope(None, ScopeKind.FILE)

    check_variable_name(_id("parseInt"), root, ctx)

    assert ctx.diagnostics.items == []
