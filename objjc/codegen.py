from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable

from objjc.ast_nodes import (
    ArrayExpr,
    ArrayLiteralExpr,
    AssignExpr,
    BinaryExpr,
    BlockStmt,
    BreakStmt,
    CallExpr,
    ClassDecl,
    ClassStmt,
    ConditionalExpr,
    ContinueStmt,
    DebuggerStmt,
    DereferenceExpr,
    DictionaryLiteralExpr,
    DoWhileStmt,
    EmptyStmt,
    ExprStmt,
    ForInStmt,
    ForStmt,
    FunctionDecl,
    FunctionExpr,
    GlobalStmt,
    IdentifierExpr,
    IfStmt,
    ImportStmt,
    LabeledStmt,
    LiteralExpr,
    LogicalExpr,
    MemberExpr,
    MessageSendExpr,
    MethodDecl,
    NewExpr,
    ObjectExpr,
    PreprocessStmt,
    ProgramAst,
    ProtocolDecl,
    ProtocolLiteralExpr,
    ReferenceExpr,
    ReturnStmt,
    SelectorLiteralExpr,
    SequenceExpr,
    SwitchStmt,
    ThisExpr,
    ThrowStmt,
    TryStmt,
    UnaryExpr,
    UpdateExpr,
    VarDeclStmt,
    WhileStmt,
    WithStmt,
)
from objjc.codegen_model import (
    ARRAY_CLASS_NAME,
    BINARY_LIKE_TYPES,
    DICTIONARY_CLASS_NAME,
    EVAL_NAME,
    EXPRESSION_TYPE_PRECEDENCE,
    NO_LITERAL,
    OPERATOR_PRECEDENCE,
    SELF_NAME,
    SEMICOLON_STATEMENTS,
    WORD_PREFIX_OPERATORS,
    YES_LITERAL,
    quote_js_string,
)
from objjc.declarations import (
    compile_class_declaration,
    compile_method_statement,
    compile_protocol_declaration,
)
from objjc.diagnostics import Diagnostic, Severity
from objjc.message_send import compile_message_send
from objjc.model import ClassDef, CompilationContext, ProtocolDef
from objjc.options import CompilerOptions
from objjc.output import FormatRules, Indentation, OutputBuffer
from objjc.resolver import (
    check_for_shadowed_ivar,
    check_variable_name,
    filter_identifier_issues,
    ivar_for_identifier,
    record_ivar_reference,
    validate_identifier_reference,
    warn_hidden_ivar,
)
from objjc.scope import BindingKind, Scope, ScopeKind


logger = logging.getLogger(__name__)

DEREFERENCEABLE_TYPES = (IdentifierExpr, MemberExpr, CallExpr)

Handler = Callable[[Any, Scope, OutputBuffer], None]


def _operator_precedence(node: Any) -> int:
    return OPERATOR_PRECEDENCE.get(getattr(node, "operator", ""), -1)


def _joins_sign(operator: str, subnode: Any) -> bool:
    """True when ``operator`` written before ``subnode`` would fuse into ``--`` or ``++``."""
    if operator not in ("+", "-"):
        return False
    if isinstance(subnode, UnaryExpr) or (isinstance(subnode, UpdateExpr) and subnode.prefix):
        return subnode.operator.startswith(operator)
    return False


def subnode_needs_parens(node: Any, subnode: Any, right: bool = False) -> bool:
    """Decide whether ``subnode`` must be parenthesized when emitted inside ``node``."""
    if isinstance(node, MemberExpr) and isinstance(subnode, (CallExpr, MemberExpr)):
        return False
    if isinstance(node, UnaryExpr) and _joins_sign(node.operator, subnode):
        return True
    if isinstance(node, NewExpr) and isinstance(subnode, CallExpr):
        return True

    node_precedence = EXPRESSION_TYPE_PRECEDENCE.get(type(node), -1)
    subnode_precedence = EXPRESSION_TYPE_PRECEDENCE.get(type(subnode), -1)
    if subnode_precedence > node_precedence:
        return True
    if subnode_precedence != node_precedence or not isinstance(node, BINARY_LIKE_TYPES):
        return False

    node_operator = _operator_precedence(node)
    subnode_operator = _operator_precedence(subnode)
    if subnode_operator > node_operator:
        return True
    return right and subnode_operator == node_operator


@dataclass
class CompileResult:
    code: str
    classes: dict[str, ClassDef]
    protocols: dict[str, ProtocolDef]
    diagnostics: list[Diagnostic]

    def warnings(self) -> list[Diagnostic]:
        return [item for item in self.diagnostics if item.severity is Severity.WARNING]


class CodeGenerator:
    def __init__(self, ctx: CompilationContext) -> None:
        self.ctx = ctx
        self.options = ctx.options
        self.indentation = Indentation(self.options.indent_string, self.options.indent_width)
        self.rules = FormatRules(self.options.format_rules)
        self._handlers: dict[type, Handler] = {
            ProgramAst: self._emit_program,
            BlockStmt: self._emit_block,
            ExprStmt: self._emit_expression_statement,
            EmptyStmt: self._emit_empty,
            IfStmt: self._emit_if,
            LabeledStmt: self._emit_labeled,
            BreakStmt: self._emit_break_or_continue,
            ContinueStmt: self._emit_break_or_continue,
            WithStmt: self._emit_with,
            SwitchStmt: self._emit_switch,
            ReturnStmt: self._emit_return,
            ThrowStmt: self._emit_throw,
            TryStmt: self._emit_try,
            WhileStmt: self._emit_while,
            DoWhileStmt: self._emit_do_while,
            ForStmt: self._emit_for,
            ForInStmt: self._emit_for_in,
            DebuggerStmt: self._emit_debugger,
            FunctionDecl: self._emit_function,
            VarDeclStmt: self._emit_var_decl,
            ImportStmt: self._emit_import,
            ClassStmt: self._emit_class_statement,
            GlobalStmt: self._emit_global_statement,
            PreprocessStmt: self._emit_empty,
            ThisExpr: self._emit_this,
            ArrayExpr: self._emit_array,
            ObjectExpr: self._emit_object,
            FunctionExpr: self._emit_function,
            SequenceExpr: self._emit_sequence,
            UnaryExpr: self._emit_unary,
            UpdateExpr: self._emit_update,
            BinaryExpr: self._emit_binary,
            LogicalExpr: self._emit_binary,
            AssignExpr: self._emit_assign,
            ConditionalExpr: self._emit_conditional,
            NewExpr: self._emit_new,
            CallExpr: self._emit_call,
            MemberExpr: self._emit_member,
            IdentifierExpr: self._emit_identifier,
            LiteralExpr: self._emit_literal,
            ArrayLiteralExpr: self._emit_array_literal,
            DictionaryLiteralExpr: self._emit_dictionary_literal,
            SelectorLiteralExpr: self._emit_selector_literal,
            ProtocolLiteralExpr: self._emit_protocol_literal,
            ReferenceExpr: self._emit_reference,
            DereferenceExpr: self._emit_dereference,
            MessageSendExpr: lambda node, scope, out: compile_message_send(self, node, scope, out),
            ClassDecl: lambda node, scope, out: compile_class_declaration(self, node, scope, out),
            ProtocolDecl: lambda node, scope, out: compile_protocol_declaration(self, node, scope, out),
            MethodDecl: lambda node, scope, out: compile_method_statement(self, node, scope, out),
        }

    def new_buffer(self) -> OutputBuffer:
        return OutputBuffer(self.indentation, self.rules)

    def new_fragment(self) -> OutputBuffer:
        return self.new_buffer().fork()

    def generate(self, program: ProgramAst) -> str:
        root = Scope(None, ScopeKind.FILE)
        out = self.new_buffer()
        self.compile_node(program, root, out)
        text = out.to_string()
        if text and not text.endswith("\n"):
            text += "\n"
        return text

    # Dispatch

    def compile_node(self, node: Any, scope: Scope, out: OutputBuffer) -> None:
        handler = self._handlers.get(type(node))
        if handler is None:
            raise NotImplementedError(f"code generation not implemented for {type(node).__name__}")
        handler(node, scope, out)

    def compile_statement(self, node: Any, scope: Scope, out: OutputBuffer) -> None:
        self.compile_node(node, scope, out)
        if isinstance(node, SEMICOLON_STATEMENTS):
            out.concat(";")

    def _emit_statement_list(self, statements: list[Any], scope: Scope, out: OutputBuffer) -> None:
        self.indentation.indent()
        for statement in statements:
            out.concat("\n")
            self.compile_statement(statement, scope, out)
        self.indentation.dedent()

    def _emit_dependent(self, node: Any, scope: Scope, out: OutputBuffer) -> None:
        if isinstance(node, BlockStmt):
            out.concat_format("before-left-brace")
            self.compile_node(node, scope, out)
            return
        self.indentation.indent()
        out.concat("\n")
        self.compile_statement(node, scope, out)
        self.indentation.dedent()

    def _emit_parenthesized(self, node: Any, scope: Scope, out: OutputBuffer) -> None:
        out.concat_format("before-left-paren")
        out.concat("(")
        self.compile_node(node, scope, out)
        out.concat(")")

    def _emit_precedence_expression(
        self,
        node: Any,
        subnode: Any,
        scope: Scope,
        out: OutputBuffer,
        right: bool = False,
    ) -> None:
        if subnode_needs_parens(node, subnode, right):
            out.concat("(")
            self.compile_node(subnode, scope, out)
            out.concat(")")
        else:
            self.compile_node(subnode, scope, out)

    def _emit_arguments(self, arguments: list[Any], scope: Scope, out: OutputBuffer) -> None:
        out.concat("(")
        for index, argument in enumerate(arguments):
            if index > 0:
                out.concat_comma()
            self.compile_node(argument, scope, out)
        out.concat(")")

    # Statements

    def _emit_program(self, node: ProgramAst, scope: Scope, out: OutputBuffer) -> None:
        body = out.fork()
        for index, statement in enumerate(node.body):
            if index > 0:
                body.concat("\n")
            self.compile_statement(statement, scope, body)

        scope.close()
        filter_identifier_issues(scope, self.ctx)

        temps = scope.receiver_temps().declared_names()
        if temps:
            out.concat(f"var {', '.join(temps)};\n")
        out.concat_buffer(body)
        logger.debug(
            "compiled %d statements, %d classes, %d diagnostics",
            len(node.body),
            len(self.ctx.classes),
            len(self.ctx.diagnostics.items),
        )

    def _emit_block(self, node: BlockStmt, scope: Scope, out: OutputBuffer) -> None:
        block_scope = Scope(scope, ScopeKind.BLOCK)
        out.concat("{", node)
        self._emit_statement_list(node.body, block_scope, out)
        out.concat("\n}")
        scope.absorb(block_scope.close())

    def _emit_expression_statement(self, node: ExprStmt, scope: Scope, out: OutputBuffer) -> None:
        # A leading function or object literal would parse as a declaration or a block.
        if isinstance(node.expression, (FunctionExpr, ObjectExpr)):
            out.concat("(", node)
            self.compile_node(node.expression, scope, out)
            out.concat(")")
            return
        self.compile_node(node.expression, scope, out)

    def _emit_empty(self, node: Any, scope: Scope, out: OutputBuffer) -> None:
        return

    def _emit_if(self, node: IfStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("if", node)
        self._emit_parenthesized(node.test, scope, out)
        self._emit_dependent(node.consequent, scope, out)
        if node.alternate is None:
            return

        if isinstance(node.consequent, BlockStmt):
            out.concat_with_format("else", "else")
        else:
            out.concat("\nelse")

        if isinstance(node.alternate, IfStmt):
            out.concat(" ")
            self.compile_node(node.alternate, scope, out)
        else:
            self._emit_dependent(node.alternate, scope, out)

    def _emit_labeled(self, node: LabeledStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat(node.label.name, node.label)
        out.concat_with_format(":", "colon")
        self.compile_statement(node.body, scope, out)

    def _emit_break_or_continue(self, node: BreakStmt | ContinueStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("break" if isinstance(node, BreakStmt) else "continue", node)
        if node.label is not None:
            out.concat_format("before-label")
            out.concat(node.label.name, node.label)

    def _emit_with(self, node: WithStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("with", node)
        self._emit_parenthesized(node.object, scope, out)
        self._emit_dependent(node.body, scope, out)

    def _emit_switch(self, node: SwitchStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("switch", node)
        self._emit_parenthesized(node.discriminant, scope, out)
        out.concat_format("before-left-brace")
        out.concat("{")
        last = len(node.cases) - 1
        for index, case in enumerate(node.cases):
            out.concat("\n")
            if case.test is not None:
                out.concat("case ", case)
                self.compile_node(case.test, scope, out)
            else:
                out.concat("default", case)
            out.concat_with_format(":", "case-colon")
            if case.consequent:
                self._emit_statement_list(case.consequent, scope, out)
                if index < last:
                    out.concat_format("between-case-blocks")
        out.concat("\n}")

    def _emit_return(self, node: ReturnStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("return", node)
        if node.argument is not None:
            out.concat(" ")
            self.compile_node(node.argument, scope, out)

    def _emit_throw(self, node: ThrowStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("throw ", node)
        self.compile_node(node.argument, scope, out)

    def _emit_try(self, node: TryStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("try", node)
        out.concat_format("before-left-brace")
        self.compile_node(node.block, scope, out)

        if node.handler is not None:
            handler = node.handler
            catch_scope = Scope(scope, ScopeKind.BLOCK)
            catch_scope.declare(handler.param.name, BindingKind.LOCAL_VAR, handler.param)
            out.concat_with_format("catch", "before-catch", handler)
            out.concat_format("before-left-paren")
            out.concat(f"({handler.param.name})", handler.param)
            out.concat_format("before-left-brace")
            self.compile_node(handler.body, catch_scope, out)
            scope.absorb(catch_scope.close())

        if node.finalizer is not None:
            out.concat_with_format("finally", "before-finally")
            out.concat_format("before-left-brace")
            self.compile_node(node.finalizer, scope, out)

    def _emit_while(self, node: WhileStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("while", node)
        self._emit_parenthesized(node.test, scope, out)
        self._emit_dependent(node.body, scope, out)

    def _emit_do_while(self, node: DoWhileStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("do", node)
        self._emit_dependent(node.body, scope, out)
        if isinstance(node.body, BlockStmt):
            out.concat(" while")
        else:
            out.concat("\nwhile")
        self._emit_parenthesized(node.test, scope, out)

    def _emit_for(self, node: ForStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("for", node)
        out.concat_format("before-left-paren")
        out.concat("(")
        if node.init is not None:
            self.compile_node(node.init, scope, out)
        out.concat(";")
        if node.test is not None:
            out.concat(" ")
            self.compile_node(node.test, scope, out)
        out.concat(";")
        if node.update is not None:
            out.concat(" ")
            self.compile_node(node.update, scope, out)
        out.concat(")")
        self._emit_dependent(node.body, scope, out)

    def _emit_for_in(self, node: ForInStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("for", node)
        out.concat_format("before-left-paren")
        out.concat("(")
        if isinstance(node.left, VarDeclStmt):
            self.compile_node(node.left, scope, out)
        else:
            self._emit_assignment_target(node.left, scope, out)
        out.concat_with_format("in", "in")
        self.compile_node(node.right, scope, out)
        out.concat(")")
        self._emit_dependent(node.body, scope, out)

    def _emit_debugger(self, node: DebuggerStmt, scope: Scope, out: OutputBuffer) -> None:
        diagnostics = self.ctx.diagnostics
        if diagnostics.should_warn_about("debugger"):
            diagnostics.warning(node, "debugger statement", category="debugger")
        out.concat("debugger", node)

    def _emit_function(self, node: FunctionDecl | FunctionExpr, scope: Scope, out: OutputBuffer) -> None:
        inner = Scope(scope, ScopeKind.FUNCTION)
        name = node.id.name if node.id is not None else None
        inner.function_name = name or "<anonymous>"
        transform = name is not None and self.options.transform_named_function_to_assignment

        if node.id is not None:
            if isinstance(node, FunctionDecl):
                scope.var_scope().declare(node.id.name, BindingKind.FUNCTION, node.id)
            else:
                inner.declare(node.id.name, BindingKind.FUNCTION_NAME, node.id)

        for param in node.params:
            inner.declare(param.name, BindingKind.ARGUMENT, param)

        if transform and node.id is not None:
            out.concat(node.id.name, node.id)
            out.concat_with_format("=", "assign")
            out.concat("function", node)
        elif name is not None:
            out.concat(f"function {name}", node)
        else:
            out.concat("function", node)

        out.concat("(" + ", ".join(param.name for param in node.params) + ")")
        out.concat_format("before-left-brace")
        self.compile_function_body(node.body, inner, out)
        scope.absorb(inner.close())

    def compile_function_body(self, body: BlockStmt, function_scope: Scope, out: OutputBuffer) -> None:
        """Emit ``{ ... }`` for a function or method, declaring any receiver temporaries first."""
        out.concat("{", body)
        statements = out.fork()
        self._emit_statement_list(body.body, function_scope, statements)

        temps = function_scope.receiver_temps().declared_names()
        if temps:
            self.indentation.indent()
            out.concat(f"\nvar {', '.join(temps)};")
            self.indentation.dedent()
        out.concat_buffer(statements)
        out.concat("\n}")

    def _emit_var_decl(self, node: VarDeclStmt, scope: Scope, out: OutputBuffer) -> None:
        out.concat("var ", node)
        for index, declarator in enumerate(node.declarations):
            identifier = declarator.id
            if index > 0:
                out.concat_comma()
            check_variable_name(identifier, scope, self.ctx)
            scope.declare_var(identifier.name, identifier)
            out.concat(identifier.name, identifier)
            if declarator.init is not None:
                out.concat_with_format("=", "assign")
                self.compile_node(declarator.init, scope, out)
            if scope.var_scope().is_local_scope():
                check_for_shadowed_ivar(scope, identifier, self.ctx)

    def _emit_import(self, node: ImportStmt, scope: Scope, out: OutputBuffer) -> None:
        flag = YES_LITERAL if node.is_local else NO_LITERAL
        out.concat(f"objj_executeFile({quote_js_string(node.filename)}, {flag})", node)

    def _emit_class_statement(self, node: ClassStmt, scope: Scope, out: OutputBuffer) -> None:
        name = node.id.name
        if self.ctx.get_class_def(name) is None:
            self.ctx.register_class(self.ctx.create_class(name, node, is_placeholder=True))
        scope.root_scope().declare(name, BindingKind.CLASS_DECL, node.id)
        out.concat(f"// @class {name}", node)

    def _emit_global_statement(self, node: GlobalStmt, scope: Scope, out: OutputBuffer) -> None:
        name = node.id.name
        scope.root_scope().declare(name, BindingKind.GLOBAL_DECL, node.id)
        out.concat(f"// @global {name}", node)

    # Expressions

    def _emit_this(self, node: ThisExpr, scope: Scope, out: OutputBuffer) -> None:
        out.concat("this", node)

    def _emit_array(self, node: ArrayExpr, scope: Scope, out: OutputBuffer) -> None:
        out.concat("[", node)
        for index, element in enumerate(node.elements):
            if index > 0:
                out.concat_comma()
            if element is not None:
                self.compile_node(element, scope, out)
        out.concat("]")

    def _emit_object(self, node: ObjectExpr, scope: Scope, out: OutputBuffer) -> None:
        out.concat("{", node)
        for index, prop in enumerate(node.properties):
            if index > 0:
                out.concat_comma()
            scope.is_property_key = True
            self.compile_node(prop.key, scope, out)
            scope.is_property_key = False
            out.concat_with_format(":", "colon")
            self.compile_node(prop.value, scope, out)
        out.concat("}")

    def _emit_sequence(self, node: SequenceExpr, scope: Scope, out: OutputBuffer) -> None:
        out.concat("(", node)
        for index, expression in enumerate(node.expressions):
            if index > 0:
                out.concat_comma()
            self.compile_node(expression, scope, out)
        out.concat(")")

    def _emit_unary(self, node: UnaryExpr, scope: Scope, out: OutputBuffer) -> None:
        out.concat(node.operator, node)
        if node.operator in WORD_PREFIX_OPERATORS:
            out.concat(" ")
        self._emit_precedence_expression(node, node.argument, scope, out)

    def _emit_update(self, node: UpdateExpr, scope: Scope, out: OutputBuffer) -> None:
        if isinstance(node.argument, DereferenceExpr):
            self._emit_dereference_update(node, node.argument, scope, out)
            return

        if node.prefix:
            out.concat(node.operator, node)
            self._emit_precedence_expression(node, node.argument, scope, out)
        else:
            self._emit_precedence_expression(node, node.argument, scope, out)
            out.concat(node.operator, node)

    def _emit_dereference_update(
        self,
        node: UpdateExpr,
        target: DereferenceExpr,
        scope: Scope,
        out: OutputBuffer,
    ) -> None:
        # @deref(r)++ reads through r(), writes through r(value) and yields the old value.
        if not node.prefix:
            out.concat("(", node)
        out.concat("(", node)
        self.compile_node(target.expr, scope, out)
        out.concat(")(")
        self.compile_node(target, scope, out)
        out.concat_operator(node.operator[0])
        out.concat("1)")
        if not node.prefix:
            out.concat_operator("-" if node.operator == "++" else "+")
            out.concat("1)")

    def _emit_binary(self, node: BinaryExpr | LogicalExpr, scope: Scope, out: OutputBuffer) -> None:
        self._emit_precedence_expression(node, node.left, scope, out)
        out.concat_operator(node.operator, node)
        self._emit_precedence_expression(node, node.right, scope, out, right=True)

    def _emit_assignment_target(self, target: Any, scope: Scope, out: OutputBuffer) -> None:
        if not isinstance(target, IdentifierExpr):
            self.compile_node(target, scope, out)
            return
        saved = scope.assignment
        scope.assignment = True
        self.compile_node(target, scope, out)
        scope.assignment = saved

    def _emit_assign(self, node: AssignExpr, scope: Scope, out: OutputBuffer) -> None:
        target = node.left
        if isinstance(target, DereferenceExpr):
            self._emit_dereference_assign(node, target, scope, out)
            return

        if isinstance(target, IdentifierExpr):
            if target.name == SELF_NAME:
                found = scope.lookup_local(SELF_NAME)
                if found is not None:
                    found[1].self_reassigned = True
            if scope.var_scope().is_root_scope() and scope.lookup(target.name) is None:
                self.ctx.add_global(target.name, target)

        if subnode_needs_parens(node, target):
            out.concat("(")
            self._emit_assignment_target(target, scope, out)
            out.concat(")")
        else:
            self._emit_assignment_target(target, scope, out)
        out.concat_with_format(node.operator, "assign", node)
        self._emit_precedence_expression(node, node.right, scope, out, right=True)

    def _emit_dereference_assign(
        self,
        node: AssignExpr,
        target: DereferenceExpr,
        scope: Scope,
        out: OutputBuffer,
    ) -> None:
        if node.operator == "=":
            self._check_can_dereference(target.expr)
        out.concat("(", node)
        self.compile_node(target.expr, scope, out)
        out.concat(")(")
        if node.operator != "=":
            self.compile_node(target, scope, out)
            out.concat_operator(node.operator[:-1])
        self.compile_node(node.right, scope, out)
        out.concat(")")

    def _emit_conditional(self, node: ConditionalExpr, scope: Scope, out: OutputBuffer) -> None:
        self._emit_precedence_expression(node, node.test, scope, out)
        out.concat_operator("?")
        self.compile_node(node.consequent, scope, out)
        out.concat_operator(":")
        self.compile_node(node.alternate, scope, out)

    def _emit_new(self, node: NewExpr, scope: Scope, out: OutputBuffer) -> None:
        out.concat("new ", node)
        self._emit_precedence_expression(node, node.callee, scope, out)
        self._emit_arguments(node.arguments, scope, out)

    def _emit_call(self, node: CallExpr, scope: Scope, out: OutputBuffer) -> None:
        if isinstance(node.callee, IdentifierExpr) and node.callee.name == EVAL_NAME:
            found = scope.lookup_local(SELF_NAME)
            if found is not None:
                found[1].self_reassigned = True
        self._emit_precedence_expression(node, node.callee, scope, out)
        self._emit_arguments(node.arguments, scope, out)

    def _emit_member(self, node: MemberExpr, scope: Scope, out: OutputBuffer) -> None:
        self._emit_precedence_expression(node, node.object, scope, out)
        if node.computed:
            out.concat("[")
            self.compile_node(node.property, scope, out)
            out.concat("]")
            return
        out.concat(".")
        saved = scope.second_member_expression
        scope.second_member_expression = True
        self.compile_node(node.property, scope, out)
        scope.second_member_expression = saved

    def _emit_identifier(self, node: IdentifierExpr, scope: Scope, out: OutputBuffer) -> None:
        name = node.name
        valid = scope.second_member_expression or scope.is_property_key
        # Only the direct property name is exempt, not identifiers nested inside it.
        scope.second_member_expression = False

        if not valid and scope.is_local_scope() and scope.current_method_type() == "-":
            ivar = ivar_for_identifier(name, scope)
            if ivar is not None:
                if scope.lookup_local(name) is not None:
                    warn_hidden_ivar(node, ivar, self.ctx)
                else:
                    token = out.concat("self.", node)
                    record_ivar_reference(node, ivar, scope, token)
                    valid = True

        out.concat(name, node)
        if not valid:
            validate_identifier_reference(node, scope, self.ctx)

    def _emit_literal(self, node: LiteralExpr, scope: Scope, out: OutputBuffer) -> None:
        raw = node.raw
        # Objective-J string literals are written @"..."
        if raw.startswith("@"):
            raw = raw[1:]
        out.concat(raw, node)

    def _emit_array_literal(self, node: ArrayLiteralExpr, scope: Scope, out: OutputBuffer) -> None:
        allocation = f'objj_msgSend(objj_msgSend({ARRAY_CLASS_NAME}, "alloc"), '
        if not node.elements:
            out.concat(allocation + '"init")', node)
            return
        out.concat(allocation + '"initWithObjects:count:", [', node)
        for index, element in enumerate(node.elements):
            if index > 0:
                out.concat_comma()
            self.compile_node(element, scope, out)
        out.concat(f"], {len(node.elements)})")

    def _emit_dictionary_literal(self, node: DictionaryLiteralExpr, scope: Scope, out: OutputBuffer) -> None:
        allocation = f'objj_msgSend(objj_msgSend({DICTIONARY_CLASS_NAME}, "alloc"), '
        if not node.keys:
            out.concat(allocation + '"init")', node)
            return
        out.concat(allocation + '"initWithObjectsAndKeys:"', node)
        for key, value in zip(node.keys, node.values):
            out.concat_comma()
            self.compile_node(value, scope, out)
            out.concat_comma()
            self.compile_node(key, scope, out)
        out.concat(")")

    def _emit_selector_literal(self, node: SelectorLiteralExpr, scope: Scope, out: OutputBuffer) -> None:
        out.concat(f"sel_getUid({quote_js_string(node.selector)})", node)

    def _emit_protocol_literal(self, node: ProtocolLiteralExpr, scope: Scope, out: OutputBuffer) -> None:
        name = node.id.name
        if self.ctx.get_protocol_def(name) is None:
            self.ctx.diagnostics.warning(node.id, "cannot find protocol declaration for '%s'", name)
        out.concat(f"objj_getProtocol({quote_js_string(name)})", node)

    def _emit_reference(self, node: ReferenceExpr, scope: Scope, out: OutputBuffer) -> None:
        name = node.element.name
        out.concat("function(__input)", node)
        out.concat_format("before-left-brace")
        out.concat("{")
        self.indentation.indent()
        out.concat("\nif (arguments.length)")
        self.indentation.indent()
        out.concat(f"\nreturn {name} = __input;")
        self.indentation.dedent()
        out.concat(f"\nreturn {name};")
        self.indentation.dedent()
        out.concat("\n}")

    def _check_can_dereference(self, expr: Any) -> None:
        if not isinstance(expr, DEREFERENCEABLE_TYPES):
            self.ctx.diagnostics.warning(
                expr,
                "@deref expects a CPReference, CPReference-compatible call or member expression",
            )

    def _emit_dereference(self, node: DereferenceExpr, scope: Scope, out: OutputBuffer) -> None:
        self._check_can_dereference(node.expr)
        self.compile_node(node.expr, scope, out)
        out.concat("()")


def compile_program(
    program: ProgramAst,
    options: CompilerOptions | None = None,
    *,
    context: CompilationContext | None = None,
) -> CompileResult:
    ctx = context or CompilationContext(options)
    code = CodeGenerator(ctx).generate(program)
    return CompileResult(
        code=code,
        classes=dict(ctx.classes),
        protocols=dict(ctx.protocols),
        diagnostics=list(ctx.diagnostics.items),
    )


def emit_js(program: ProgramAst, options: CompilerOptions | None = None) -> str:
    return compile_program(program, options).code
