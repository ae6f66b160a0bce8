from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from objjc.ast_nodes import (
    AccessorsSpec,
    ClassDecl,
    IvarDecl,
    MethodDecl,
    ProtocolDecl,
    TypeRef,
)
from objjc.codegen_model import (
    CLASS_VAR,
    CMD_NAME,
    PROTOCOL_VAR,
    SELF_NAME,
    VOID_TYPE,
    accessor_selector,
    method_function_name,
    quote_js_string,
)
from objjc.message_send import assemble_selector
from objjc.model import DYNAMIC_TYPE_NAME, ClassDef, CompilationContext, IvarDef, MethodDef, ProtocolDef
from objjc.output import OutputBuffer
from objjc.scope import BindingKind, Scope, ScopeKind

if TYPE_CHECKING:
    from objjc.codegen import CodeGenerator


logger = logging.getLogger(__name__)

SETTER_ARGUMENT = "newValue"


def _types_literal(types: list[str] | tuple[str, ...]) -> str:
    return "[" + ", ".join(quote_js_string(name) for name in types) + "]"


def _protocol_list_comment(names: list[str]) -> str:
    if not names:
        return ""
    return " <" + ", ".join(names) + ">"


# Classes


def declare_class(gen: CodeGenerator, node: ClassDecl, fragment: OutputBuffer) -> tuple[ClassDef, str]:
    """Create or reopen the ClassDef for ``node`` and emit its runtime allocation."""
    ctx = gen.ctx
    name = node.classname.name
    existing = ctx.get_class_def(name)

    if node.categoryname is not None:
        class_def = existing
        if class_def is None:
            class_def = ctx.create_class(name, node.classname, is_placeholder=True)
            ctx.register_class(class_def)
        class_def.category_names.append(node.categoryname.name)
        comment = f"@implementation {name} ({node.categoryname.name})"
        comment += _protocol_list_comment([protocol.name for protocol in node.protocols])
        fragment.concat(f"// {comment}", node)
        fragment.concat(f'\nvar {CLASS_VAR} = objj_getClass("{name}");')
        fragment.concat(f"\nif (!{CLASS_VAR})")
        gen.indentation.indent()
        fragment.concat(f"\nthrow new ReferenceError(\"Cannot find declaration for class '{name}'\");")
        gen.indentation.dedent()
        return class_def, comment

    if existing is not None and not existing.is_placeholder:
        raise ctx.diagnostics.fatal(node.classname, "duplicate class %s", name)

    superclass: ClassDef | None = None
    if node.superclassname is not None:
        superclass = ctx.get_class_def(node.superclassname.name)
        if superclass is None:
            raise ctx.diagnostics.fatal(
                node.superclassname,
                "cannot find the superclass '%s' of '%s'",
                node.superclassname.name,
                name,
            )

    if existing is not None:
        # Fill in a @class forward declaration so earlier references see the real class.
        class_def = existing
        class_def.superclass = superclass
        class_def.node = node
        class_def.is_placeholder = False
    else:
        class_def = ctx.create_class(name, node, superclass)
        ctx.register_class(class_def)

    comment = f"@implementation {name}"
    if superclass is not None:
        comment += f" : {superclass.name}"
    comment += _protocol_list_comment([protocol.name for protocol in node.protocols])
    superclass_name = superclass.name if superclass is not None else "Nil"
    fragment.concat(f"// {comment}", node)
    fragment.concat(f'\nvar {CLASS_VAR} = objj_allocateClassPair({superclass_name}, "{name}");')
    return class_def, comment


def _adopt_protocols(
    gen: CodeGenerator,
    node: ClassDecl,
    class_def: ClassDef,
    fragment: OutputBuffer,
) -> None:
    ctx = gen.ctx
    for index, protocol_id in enumerate(node.protocols):
        protocol_name = protocol_id.name
        protocol_def = ctx.get_protocol_def(protocol_name)
        if protocol_def is None:
            ctx.diagnostics.warning(protocol_id, "cannot find protocol declaration for '%s'", protocol_name)
        elif protocol_def not in class_def.protocols:
            class_def.protocols.append(protocol_def)

        declare = "var " if index == 0 else ""
        fragment.concat(f'\n{declare}{PROTOCOL_VAR} = objj_getProtocol("{protocol_name}");', protocol_id)
        fragment.concat(f"\nif (!{PROTOCOL_VAR})")
        gen.indentation.indent()
        fragment.concat(
            f"\nthrow new ReferenceError(\"Cannot find protocol declaration for '{protocol_name}'\");"
        )
        gen.indentation.dedent()
        fragment.concat(f"\nclass_addProtocol({CLASS_VAR}, {PROTOCOL_VAR});")


def _accessor_selectors(ivar: IvarDef, accessors: AccessorsSpec, ctx: CompilationContext) -> tuple[str, str | None]:
    options = ctx.options
    property_name = accessors.property or ivar.name
    getter = accessors.getter or accessor_selector(options.accessor_getter_template, property_name)
    if accessors.readonly:
        return getter, None
    setter = accessors.setter or accessor_selector(options.accessor_setter_template, property_name)
    if not setter.endswith(":"):
        setter += ":"
    return getter, setter


def _accessor_copies(ivar: IvarDef, accessors: AccessorsSpec, ctx: CompilationContext) -> bool:
    if accessors.copy is not None:
        return accessors.copy
    return ivar.type_name in ctx.options.copy_accessor_types


def add_ivars(gen: CodeGenerator, node: ClassDecl, class_def: ClassDef, fragment: OutputBuffer) -> None:
    ctx = gen.ctx
    diagnostics = ctx.diagnostics

    if node.categoryname is not None and node.ivardeclarations:
        diagnostics.warning(node.ivardeclarations[0], "instance variables cannot be added in a category")
        return

    entries: list[tuple[str, IvarDecl]] = []
    for ivar_node in node.ivardeclarations:
        name = ivar_node.id.name
        existing = class_def.get_ivar(name)
        if existing is not None:
            diagnostics.warning(ivar_node.id, "duplicate instance variable '%s'", name)
            diagnostics.note(existing.node, "previous declaration is here")
            continue

        ivar = IvarDef(name=name, type_name=ivar_node.ivartype.name, node=ivar_node.id, accessors=ivar_node.accessors)
        class_def.add_ivar(ivar)
        entries.append((f"new objj_ivar({quote_js_string(name)}, {quote_js_string(ivar.type_name)})", ivar_node))

        if ivar.accessors is not None:
            getter, setter = _accessor_selectors(ivar, ivar.accessors, ctx)
            class_def.add_instance_method(MethodDef(getter, (ivar.type_name,), ivar.node, synthesized=True))
            if setter is not None:
                class_def.add_instance_method(
                    MethodDef(setter, (VOID_TYPE, ivar.type_name), ivar.node, synthesized=True)
                )

    if not entries:
        return

    fragment.concat(f"\nclass_addIvars({CLASS_VAR},\n[")
    gen.indentation.indent()
    for index, (entry, ivar_node) in enumerate(entries):
        if index > 0:
            fragment.concat(",")
        fragment.concat("\n" + entry, ivar_node)
    gen.indentation.dedent()
    fragment.concat("\n]);")


def _synthesized_getter(gen: CodeGenerator, class_def: ClassDef, ivar: IvarDef, selector: str) -> OutputBuffer:
    fragment = gen.new_fragment()
    function_name = method_function_name(class_def.name, selector)
    fragment.concat(
        f"\nnew objj_method(sel_getUid({quote_js_string(selector)}), function {function_name}({SELF_NAME}, {CMD_NAME})",
        ivar.node,
    )
    fragment.concat("\n{")
    gen.indentation.indent()
    fragment.concat(f"\nreturn {SELF_NAME}.{ivar.name};")
    gen.indentation.dedent()
    fragment.concat(f"\n}}, {_types_literal([ivar.type_name])})")
    return fragment


def _synthesized_setter(
    gen: CodeGenerator,
    class_def: ClassDef,
    ivar: IvarDef,
    selector: str,
    copies: bool,
) -> OutputBuffer:
    fragment = gen.new_fragment()
    function_name = method_function_name(class_def.name, selector)
    field = f"{SELF_NAME}.{ivar.name}"
    fragment.concat(
        f"\nnew objj_method(sel_getUid({quote_js_string(selector)}), "
        f"function {function_name}({SELF_NAME}, {CMD_NAME}, {SETTER_ARGUMENT})",
        ivar.node,
    )
    fragment.concat("\n{")
    gen.indentation.indent()
    if copies:
        fragment.concat(f"\nif ({field} !== {SETTER_ARGUMENT})")
        gen.indentation.indent()
        fragment.concat(
            f"\n{field} = {SETTER_ARGUMENT} == null ? null : "
            f'{SETTER_ARGUMENT}.isa.objj_msgSend0({SETTER_ARGUMENT}, "copy");'
        )
        gen.indentation.dedent()
    else:
        fragment.concat(f"\n{field} = {SETTER_ARGUMENT};")
    gen.indentation.dedent()
    fragment.concat(f"\n}}, {_types_literal([VOID_TYPE, ivar.type_name])})")
    return fragment


def generate_accessors(gen: CodeGenerator, node: ClassDecl, class_def: ClassDef) -> list[OutputBuffer]:
    """Build method fragments for synthesized accessors no user method replaced."""
    ctx = gen.ctx
    fragments: list[OutputBuffer] = []
    for ivar_node in node.ivardeclarations:
        ivar = class_def.get_own_ivar(ivar_node.id.name)
        accessors = ivar.accessors if ivar is not None else None
        if ivar is None or accessors is None or ivar.node is not ivar_node.id:
            continue
        getter, setter = _accessor_selectors(ivar, accessors, ctx)
        method = class_def.instance_methods.get(getter)
        if method is not None and method.synthesized:
            fragments.append(_synthesized_getter(gen, class_def, ivar, getter))
        if setter is not None:
            method = class_def.instance_methods.get(setter)
            if method is not None and method.synthesized:
                fragments.append(_synthesized_setter(gen, class_def, ivar, setter, _accessor_copies(ivar, accessors, ctx)))
    return fragments


def _emit_method_block(fragment: OutputBuffer, target: str, methods: list[OutputBuffer]) -> None:
    fragment.concat(f"\nclass_addMethods({target},\n[")
    for index, method in enumerate(methods):
        if index > 0:
            fragment.concat(",")
        fragment.concat_buffer(method)
    fragment.concat("\n]);")


def compile_class_declaration(gen: CodeGenerator, node: ClassDecl, scope: Scope, out: OutputBuffer) -> None:
    # Built as a separate fragment so a fatal error leaves no partial class in the output.
    fragment = out.fork()
    class_def, comment = declare_class(gen, node, fragment)

    class_scope = Scope(scope, ScopeKind.CLASS)
    class_scope.class_def = class_def
    class_scope.category_name = node.categoryname.name if node.categoryname is not None else None

    _adopt_protocols(gen, node, class_def, fragment)
    add_ivars(gen, node, class_def, fragment)
    if node.categoryname is None:
        fragment.concat(f"\nobjj_registerClassPair({CLASS_VAR});")

    instance_methods: list[OutputBuffer] = []
    class_methods: list[OutputBuffer] = []

    for body_node in node.body:
        if not isinstance(body_node, MethodDecl):
            fragment.concat("\n")
            gen.compile_statement(body_node, class_scope, fragment)
            continue
        gen.indentation.indent()
        method_fragment = compile_method(gen, body_node, class_scope)
        gen.indentation.dedent()
        if body_node.methodtype == "+":
            class_methods.append(method_fragment)
        else:
            instance_methods.append(method_fragment)

    gen.indentation.indent()
    instance_methods.extend(generate_accessors(gen, node, class_def))
    gen.indentation.dedent()

    if instance_methods:
        fragment.concat("\n\n// Instance methods")
        _emit_method_block(fragment, CLASS_VAR, instance_methods)
    if class_methods:
        fragment.concat("\n\n// Class methods")
        _emit_method_block(fragment, f"{CLASS_VAR}.isa", class_methods)

    fragment.concat(f"\n// @end: {comment}")

    scope.absorb(class_scope.close())
    check_protocol_conformance(ctx=gen.ctx, node=node, class_def=class_def)
    out.concat_buffer(fragment)
    logger.debug("compiled %s", comment)


def check_protocol_conformance(*, ctx: CompilationContext, node: ClassDecl, class_def: ClassDef) -> int:
    """Warn once per required selector the class chain does not implement.

    Only presence is checked here. Signatures are compared against the
    protocol, including protocols adopted by a superclass, when each method is
    declared (see ``check_method_override``).
    """
    diagnostics = ctx.diagnostics
    seen: set[str] = set()
    missing = 0

    for protocol_id in node.protocols:
        adopted = ctx.get_protocol_def(protocol_id.name)
        if adopted is None:
            continue
        for protocol in adopted.expanded():
            if protocol.name in seen:
                continue
            seen.add(protocol.name)
            for selector, method in protocol.instance_methods.items():
                if class_def.get_instance_method(selector) is None:
                    missing += 1
                    diagnostics.warning(
                        protocol_id,
                        "method '%s' in protocol '%s' not implemented",
                        selector,
                        protocol.name,
                    )
                    diagnostics.note(method.node, "method '%s' declared here", selector)
            for selector, method in protocol.class_methods.items():
                if class_def.get_class_method(selector) is None:
                    missing += 1
                    diagnostics.warning(
                        protocol_id,
                        "class method '%s' in protocol '%s' not implemented",
                        selector,
                        protocol.name,
                    )
                    diagnostics.note(method.node, "method '%s' declared here", selector)
    return missing


# Methods


def method_selector(node: MethodDecl) -> str:
    return assemble_selector(node.selectors, len(node.arguments))


def method_types(node: MethodDecl) -> list[str]:
    if node.returntype is not None:
        return_type = node.returntype.name
    else:
        return_type = VOID_TYPE if node.action else DYNAMIC_TYPE_NAME
    types = [return_type]
    for argument in node.arguments:
        types.append(argument.type.name if argument.type is not None else DYNAMIC_TYPE_NAME)
    return types


def _previous_type_node(method: MethodDef, index: int) -> Any:
    node = method.node
    if not isinstance(node, MethodDecl):
        return node
    if index == 0:
        return node.returntype or node
    argument = node.arguments[index - 1] if index - 1 < len(node.arguments) else None
    if argument is None:
        return node
    return argument.type or argument.identifier


def _narrows_dynamic_type(ctx: CompilationContext, declared: str, type_ref: TypeRef | None) -> bool:
    if declared != DYNAMIC_TYPE_NAME or type_ref is None:
        return False
    return ctx.is_class_type(type_ref.name, type_ref.is_class)


def check_method_override(
    ctx: CompilationContext,
    node: MethodDecl,
    types: list[str],
    previous: MethodDef,
    selector: str,
) -> None:
    declared = previous.types
    if not declared:
        return
    diagnostics = ctx.diagnostics

    if declared[0] != types[0] and not _narrows_dynamic_type(ctx, declared[0], node.returntype):
        diagnostics.warning(
            node.returntype or node,
            "conflicting return type in implementation of '%s': '%s' vs '%s'",
            selector,
            declared[0],
            types[0],
        )
        diagnostics.note(_previous_type_node(previous, 0), "previous implementation is here")

    for index in range(1, min(len(declared), len(types))):
        argument = node.arguments[index - 1]
        if declared[index] == types[index] or _narrows_dynamic_type(ctx, declared[index], argument.type):
            continue
        diagnostics.warning(
            argument.type or argument.identifier,
            "conflicting parameter type in implementation of '%s': '%s' vs '%s'",
            selector,
            declared[index],
            types[index],
        )
        diagnostics.note(_previous_type_node(previous, index), "previous implementation is here")


def _warn_undefined_protocols(ctx: CompilationContext, type_ref: TypeRef | None) -> None:
    if type_ref is None:
        return
    for protocol_id in type_ref.protocols:
        if ctx.get_protocol_def(protocol_id.name) is None:
            ctx.diagnostics.warning(protocol_id, "cannot find protocol declaration for '%s'", protocol_id.name)


def _find_previous_method(
    owner: ClassDef | ProtocolDef,
    selector: str,
    is_instance: bool,
) -> MethodDef | None:
    previous = owner.get_instance_method(selector) if is_instance else owner.get_class_method(selector)
    if previous is not None:
        return previous
    if isinstance(owner, ClassDef):
        protocols = [protocol for class_def in owner.ancestors() for protocol in class_def.protocols]
    else:
        protocols = owner.protocols
    for protocol in protocols:
        previous = protocol.get_instance_method(selector) if is_instance else protocol.get_class_method(selector)
        if previous is not None:
            return previous
    return None


def compile_method(gen: CodeGenerator, node: MethodDecl, scope: Scope) -> OutputBuffer:
    """Register the method on its class or protocol and return its ``objj_method`` fragment."""
    ctx = gen.ctx
    class_def = scope.class_def
    protocol_def = scope.protocol_def
    owner: ClassDef | ProtocolDef | None = class_def or protocol_def
    if owner is None:
        raise ctx.diagnostics.fatal(node, "method declaration outside of a class or protocol")

    is_instance = node.methodtype == "-"
    selector = method_selector(node)
    types = method_types(node)
    _warn_undefined_protocols(ctx, node.returntype)

    previous = _find_previous_method(owner, selector, is_instance)
    if previous is not None:
        check_method_override(ctx, node, types, previous, selector)

    method_def = MethodDef(selector, tuple(types), node)
    if is_instance:
        owner.add_instance_method(method_def)
    else:
        owner.add_class_method(method_def)

    fragment = gen.new_fragment()
    if class_def is None or node.body is None:
        fragment.concat(f"\nnew objj_method(sel_getUid({quote_js_string(selector)}), null, {_types_literal(types)})", node)
        return fragment

    method_scope = Scope(scope, ScopeKind.METHOD)
    method_scope.method_type = node.methodtype
    method_scope.selector = selector
    method_scope.declare(SELF_NAME, BindingKind.ARGUMENT, node)
    method_scope.declare(CMD_NAME, BindingKind.ARGUMENT, node)

    parameters = [SELF_NAME, CMD_NAME]
    for argument in node.arguments:
        name = argument.identifier.name
        method_scope.declare(name, BindingKind.ARGUMENT, argument.identifier)
        parameters.append(name)

    function_name = method_function_name(class_def.name, selector, scope.category_name)
    fragment.concat(
        f"\nnew objj_method(sel_getUid({quote_js_string(selector)}), function {function_name}({', '.join(parameters)})",
        node,
    )
    fragment.concat("\n")
    gen.compile_function_body(node.body, method_scope, fragment)
    fragment.concat(f", {_types_literal(types)})")

    scope.absorb(method_scope.close())
    return fragment


def compile_method_statement(gen: CodeGenerator, node: MethodDecl, scope: Scope, out: OutputBuffer) -> None:
    """Methods only compile as part of a class or protocol body."""
    raise gen.ctx.diagnostics.fatal(node, "method declaration outside of a class or protocol")


# Protocols


def compile_protocol_declaration(gen: CodeGenerator, node: ProtocolDecl, scope: Scope, out: OutputBuffer) -> None:
    ctx = gen.ctx
    name = node.protocolname.name
    if ctx.get_protocol_def(name) is not None:
        raise ctx.diagnostics.fatal(node.protocolname, "duplicate protocol %s", name)

    inherited: list[ProtocolDef] = []
    for protocol_id in node.protocols:
        protocol_def = ctx.get_protocol_def(protocol_id.name)
        if protocol_def is None:
            raise ctx.diagnostics.fatal(protocol_id, "cannot find protocol declaration for '%s'", protocol_id.name)
        inherited.append(protocol_def)

    comment = f"@protocol {name}" + _protocol_list_comment([protocol.name for protocol in node.protocols])
    fragment = out.fork()
    fragment.concat(f"// {comment}", node)
    fragment.concat(f'\nvar {PROTOCOL_VAR} = objj_allocateProtocol("{name}");')

    for index, protocol_id in enumerate(node.protocols):
        declare = "var " if index == 0 else ""
        fragment.concat(f'\n{declare}$inherited_protocol = objj_getProtocol("{protocol_id.name}");', protocol_id)
        fragment.concat("\nif (!$inherited_protocol)")
        gen.indentation.indent()
        fragment.concat(
            f"\nthrow new ReferenceError(\"Cannot find protocol declaration for '{protocol_id.name}'\");"
        )
        gen.indentation.dedent()
        fragment.concat(f"\nprotocol_addProtocol({PROTOCOL_VAR}, $inherited_protocol);")

    protocol_def = ProtocolDef(name=name, node=node, protocols=inherited)
    ctx.register_protocol(protocol_def)

    protocol_scope = Scope(scope, ScopeKind.PROTOCOL)
    protocol_scope.protocol_def = protocol_def

    # Only required methods are registered; @optional ones carry no conformance obligation.
    instance_methods: list[OutputBuffer] = []
    class_methods: list[OutputBuffer] = []
    gen.indentation.indent()
    for method_node in node.required:
        method_fragment = compile_method(gen, method_node, protocol_scope)
        if method_node.methodtype == "+":
            class_methods.append(method_fragment)
        else:
            instance_methods.append(method_fragment)
    gen.indentation.dedent()

    fragment.concat(f"\nobjj_registerProtocol({PROTOCOL_VAR});")
    for methods, is_instance in ((instance_methods, "true"), (class_methods, "false")):
        if not methods:
            continue
        fragment.concat(f"\nprotocol_addMethodDescriptions({PROTOCOL_VAR},\n[")
        for index, method in enumerate(methods):
            if index > 0:
                fragment.concat(",")
            fragment.concat_buffer(method)
        fragment.concat(f"\n], true, {is_instance});")

    fragment.concat(f"\n// @end: {comment}")
    scope.absorb(protocol_scope.close())
    out.concat_buffer(fragment)
    logger.debug("compiled %s", comment)
