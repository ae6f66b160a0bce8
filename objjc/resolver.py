from __future__ import annotations

from typing import Any

from objjc.ast_nodes import ClassDecl, ClassStmt, IdentifierExpr
from objjc.diagnostics import Diagnostic
from objjc.globals_table import RESERVED_WORDS
from objjc.model import ClassDef, CompilationContext, IvarDef
from objjc.scope import BindingKind, IvarRef, Scope


FILE_VAR_DESCRIPTIONS = {
    BindingKind.GLOBAL_DECL: "a @global declaration",
    BindingKind.CLASS_DECL: "a @class declaration",
    BindingKind.FILE_VAR: "a file variable",
    BindingKind.FUNCTION: "a function",
}


def class_declaration_node(class_def: ClassDef) -> Any:
    node = class_def.node
    if isinstance(node, ClassDecl):
        return node.classname
    if isinstance(node, ClassStmt):
        return node.id
    return node


def ivar_for_identifier(name: str, scope: Scope) -> IvarDef | None:
    class_def = scope.current_class_def()
    if class_def is None:
        return None
    return class_def.get_ivar(name)


def is_rewritable_ivar(name: str, scope: Scope) -> bool:
    """True when a bare ``name`` in this scope reads an instance variable."""
    if scope.current_method_type() != "-":
        return False
    if ivar_for_identifier(name, scope) is None:
        return False
    return scope.lookup_local(name) is None


def validate_identifier_reference(node: IdentifierExpr, scope: Scope, ctx: CompilationContext) -> None:
    diagnostics = ctx.diagnostics
    name = node.name

    if scope.lookup(name) is not None:
        return

    predefined = ctx.predefined_global(name)
    if predefined is not None:
        if scope.assignment and not predefined.writable and diagnostics.should_warn_about("read-only-globals"):
            diagnostics.warning(
                node,
                "assigning to a read-only predefined global",
                category="read-only-globals",
                identifier=name,
            )
        return

    if scope.assignment:
        if scope.var_scope().is_root_scope():
            return
        var_scope = scope.var_scope()
        var_scope.declare(name, BindingKind.IMPLICIT_GLOBAL, node)
        if diagnostics.should_warn_about("implicit-globals"):
            context_kind, context_name = scope.context_description()
            diagnostics.warning(
                node,
                "implicitly creating a global variable in the %s '%s'; did you mean to use var?",
                context_kind,
                context_name,
                category="implicit-globals",
                identifier=name,
            )
        return

    if ctx.identifier_is_global(name) or ctx.get_class_def(name) is not None:
        return

    if diagnostics.should_warn_about("unknown-identifiers"):
        suggestion = ""
        # A misspelled class name is only likely as a message receiver.
        class_def = ctx.find_class_def(name) if scope.receiver else None
        if class_def is not None:
            suggestion = f"; did you mean '{class_def.name}'?"
        diagnostics.warning(
            node,
            "reference to unknown identifier '%s'%s",
            name,
            suggestion,
            category="unknown-identifiers",
            identifier=name,
        )


def check_variable_name(node: IdentifierExpr, scope: Scope, ctx: CompilationContext) -> None:
    diagnostics = ctx.diagnostics
    name = node.name

    if name in RESERVED_WORDS:
        if diagnostics.should_warn_about("reserved-words"):
            diagnostics.warning(node, "reserved word used for variable name", category="reserved-words", identifier=name)
        return

    if scope.var_scope().is_local_scope() and diagnostics.should_warn_about("hidden-globals"):
        check_for_hidden_global_var(node, scope, ctx)


def check_for_hidden_global_var(node: IdentifierExpr, scope: Scope, ctx: CompilationContext) -> None:
    diagnostics = ctx.diagnostics
    name = node.name
    shadow_type: str | None = None
    shadowed_node: Any = None

    predefined = ctx.predefined_global(name)
    if predefined is not None:
        if predefined.ignore_shadow:
            return
        shadow_type = "a predefined global"
    elif ctx.identifier_is_global(name):
        shadow_type = "a global variable"
        shadowed_node = ctx.get_global(name)
    else:
        file_var = scope.lookup_file_scope(name)
        if file_var is not None and file_var.kind in FILE_VAR_DESCRIPTIONS:
            shadow_type = FILE_VAR_DESCRIPTIONS[file_var.kind]
            shadowed_node = file_var.node
        else:
            class_def = ctx.get_class_def(name)
            if class_def is not None:
                shadow_type = "a class"
                shadowed_node = class_declaration_node(class_def)

    if shadow_type is None:
        return

    diagnostics.warning(
        node,
        "local declaration of '%s' hides %s",
        name,
        shadow_type,
        category="hidden-globals",
        identifier=name,
    )
    if shadowed_node is not None:
        diagnostics.note(shadowed_node, "declaration is here")


def record_ivar_reference(node: IdentifierExpr, ivar: IvarDef, scope: Scope, receiver_token: Any) -> None:
    scope.add_ivar_ref(IvarRef(name=node.name, node=node, ivar=ivar, receiver_token=receiver_token))


def warn_hidden_ivar(node: IdentifierExpr, ivar: IvarDef, ctx: CompilationContext) -> None:
    diagnostics = ctx.diagnostics
    if not diagnostics.should_warn_about("hidden-ivars"):
        return
    diagnostics.warning(
        node,
        "local declaration of '%s' hides an instance variable",
        node.name,
        category="hidden-ivars",
        identifier=node.name,
    )
    diagnostics.note(ivar.node, "instance variable is declared here")


def check_for_shadowed_ivar(scope: Scope, declaration: IdentifierExpr, ctx: CompilationContext) -> None:
    """Undo ``self.`` rewrites of references that a later ``var`` turns into locals."""
    refs = scope.take_ivar_refs(declaration.name)
    if not refs:
        return

    for ref in refs:
        if ref.receiver_token is not None:
            ref.receiver_token.text = ""

    warn_hidden_ivar(declaration, refs[0].ivar, ctx)


def filter_identifier_issues(root: Scope, ctx: CompilationContext) -> None:
    diagnostics = ctx.diagnostics
    resolved: list[Diagnostic] = []
    for item in diagnostics.items:
        if item.category not in {"unknown-identifiers", "implicit-globals"} or item.identifier is None:
            continue
        name = item.identifier
        binding = root.vars.get(name)
        declared_at_file_scope = binding is not None and binding.kind is not BindingKind.IMPLICIT_GLOBAL
        if item.category == "unknown-identifiers":
            if declared_at_file_scope or ctx.identifier_is_global(name) or ctx.get_class_def(name) is not None:
                resolved.append(item)
        elif declared_at_file_scope:
            resolved.append(item)
    diagnostics.remove(resolved)
