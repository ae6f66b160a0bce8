from __future__ import annotations

from typing import TYPE_CHECKING

from objjc.ast_nodes import IdentifierExpr, MessageSendExpr
from objjc.codegen_model import (
    MAX_COUNTED_DISPATCH_ARGUMENTS,
    SELF_NAME,
    quote_js_string,
    superclass_accessor,
)
from objjc.model import CompilationContext
from objjc.output import OutputBuffer
from objjc.resolver import is_rewritable_ivar
from objjc.scope import Scope, ScopeKind

if TYPE_CHECKING:
    from objjc.codegen import CodeGenerator


def assemble_selector(selectors: list[IdentifierExpr | None], argument_count: int) -> str:
    """Build the runtime selector: one colon per argument, missing keywords stay empty."""
    first = selectors[0] if selectors else None
    selector = first.name if first is not None else ""
    for index in range(argument_count):
        if index == 0:
            selector += ":"
            continue
        fragment = selectors[index] if index < len(selectors) else None
        selector += (fragment.name if fragment is not None else "") + ":"
    return selector


def receiver_needs_temp(receiver: object, scope: Scope) -> bool:
    if not isinstance(receiver, IdentifierExpr):
        return True
    return is_rewritable_ivar(receiver.name, scope)


def receiver_may_be_nil(name: str, scope: Scope, ctx: CompilationContext) -> bool:
    local = scope.lookup_local(name)
    if name == SELF_NAME:
        # Only the implicit method argument is known to be non-nil.
        return local is None or local[1].kind is not ScopeKind.METHOD or local[1].self_reassigned
    return local is not None or ctx.get_class_def(name) is None


def _emit_arguments(gen: CodeGenerator, node: MessageSendExpr, scope: Scope, out: OutputBuffer) -> None:
    for argument in [*node.arguments, *node.parameters]:
        out.concat(", ")
        gen.compile_node(argument, scope, out)


def _compile_super_send(gen: CodeGenerator, node: MessageSendExpr, scope: Scope, out: OutputBuffer) -> None:
    ctx = gen.ctx
    class_def = scope.current_class_def()
    if class_def is None:
        ctx.diagnostics.warning(node, "'super' used outside of a class implementation")
        superclass = "Nil"
    else:
        superclass = superclass_accessor(class_def.name, meta=scope.current_method_type() == "+")

    selector = assemble_selector(node.selectors, len(node.arguments))
    out.concat(f"objj_msgSendSuper({{ receiver: self, super_class: {superclass} }}", node)
    out.concat(", " + quote_js_string(selector))
    _emit_arguments(gen, node, scope, out)
    out.concat(")")


def compile_message_send(gen: CodeGenerator, node: MessageSendExpr, scope: Scope, out: OutputBuffer) -> None:
    if node.super_object:
        _compile_super_send(gen, node, scope, out)
        return

    ctx = gen.ctx
    receiver = node.object
    if receiver is None:
        raise ctx.diagnostics.fatal(node, "message send without a receiver")

    use_temp = receiver_needs_temp(receiver, scope)

    # The receiver is referenced up to three times below but must be evaluated once.
    receiver_out = out.fork()
    saved_receiver = scope.receiver
    scope.receiver = isinstance(receiver, IdentifierExpr)
    gen.compile_node(receiver, scope, receiver_out)
    scope.receiver = saved_receiver

    temps = scope.receiver_temps()
    temp_name: str | None = None
    guarded = True

    if not use_temp and isinstance(receiver, IdentifierExpr):
        guarded = receiver_may_be_nil(receiver.name, scope, ctx)
        if guarded:
            out.concat("(", node)
            out.concat_buffer(receiver_out)
            out.concat(" == null ? null : ")
        out.concat_buffer(receiver_out)
    else:
        temp_name = temps.acquire()
        out.concat(f"(({temp_name} = ", node)
        out.concat_buffer(receiver_out)
        out.concat(f"), {temp_name} === null ? null : {temp_name}")

    out.concat(".isa.objj_msgSend")

    argument_count = len(node.arguments) + len(node.parameters)
    if argument_count <= MAX_COUNTED_DISPATCH_ARGUMENTS:
        out.concat(str(argument_count))

    out.concat("(")
    if temp_name is not None:
        out.concat(temp_name)
    else:
        out.concat_buffer(receiver_out)

    selector = assemble_selector(node.selectors, len(node.arguments))
    out.concat(", " + quote_js_string(selector))
    _emit_arguments(gen, node, scope, out)

    if guarded:
        out.concat(")")
    if temp_name is not None:
        temps.release()
    out.concat(")")
