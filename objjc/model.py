from __future__ import annotations

from dataclasses import dataclass, field
import difflib
import logging
from typing import Any

from objjc.ast_nodes import AccessorsSpec, ClassDecl, ProtocolDecl
from objjc.diagnostics import DiagnosticSink
from objjc.globals_table import PredefinedGlobal, build_predefined_globals
from objjc.options import CompilerOptions


logger = logging.getLogger(__name__)

DYNAMIC_TYPE_NAME = "id"


@dataclass(frozen=True)
class MethodDef:
    selector: str
    types: tuple[str, ...]
    node: Any
    synthesized: bool = False

    @property
    def return_type(self) -> str:
        return self.types[0]

    @property
    def parameter_types(self) -> tuple[str, ...]:
        return self.types[1:]


@dataclass(frozen=True)
class IvarDef:
    name: str
    type_name: str
    node: Any
    accessors: AccessorsSpec | None = None


@dataclass(eq=False)
class ProtocolDef:
    name: str
    node: ProtocolDecl | None
    protocols: list["ProtocolDef"] = field(default_factory=list)
    instance_methods: dict[str, MethodDef] = field(default_factory=dict)
    class_methods: dict[str, MethodDef] = field(default_factory=dict)

    def add_instance_method(self, method: MethodDef) -> None:
        self.instance_methods[method.selector] = method

    def add_class_method(self, method: MethodDef) -> None:
        self.class_methods[method.selector] = method

    def expanded(self) -> list["ProtocolDef"]:
        """Return this protocol followed by every inherited protocol, once each."""
        ordered: list[ProtocolDef] = []
        seen: set[str] = set()

        def visit(protocol: ProtocolDef) -> None:
            if protocol.name in seen:
                return
            seen.add(protocol.name)
            ordered.append(protocol)
            for inherited in protocol.protocols:
                visit(inherited)

        visit(self)
        return ordered

    def get_instance_method(self, selector: str) -> MethodDef | None:
        for protocol in self.expanded():
            method = protocol.instance_methods.get(selector)
            if method is not None:
                return method
        return None

    def get_class_method(self, selector: str) -> MethodDef | None:
        for protocol in self.expanded():
            method = protocol.class_methods.get(selector)
            if method is not None:
                return method
        return None


@dataclass(eq=False)
class ClassDef:
    name: str
    superclass: "ClassDef | None"
    node: ClassDecl | Any | None
    protocols: list[ProtocolDef] = field(default_factory=list)
    ivars: dict[str, IvarDef] = field(default_factory=dict)
    instance_methods: dict[str, MethodDef] = field(default_factory=dict)
    class_methods: dict[str, MethodDef] = field(default_factory=dict)
    category_names: list[str] = field(default_factory=list)
    is_placeholder: bool = False

    def ancestors(self) -> list["ClassDef"]:
        chain: list[ClassDef] = []
        current: ClassDef | None = self
        while current is not None and current not in chain:
            chain.append(current)
            current = current.superclass
        return chain

    def get_ivar(self, name: str) -> IvarDef | None:
        for class_def in self.ancestors():
            ivar = class_def.ivars.get(name)
            if ivar is not None:
                return ivar
        return None

    def get_own_ivar(self, name: str) -> IvarDef | None:
        return self.ivars.get(name)

    def add_ivar(self, ivar: IvarDef) -> None:
        self.ivars[ivar.name] = ivar

    def get_instance_method(self, selector: str) -> MethodDef | None:
        for class_def in self.ancestors():
            method = class_def.instance_methods.get(selector)
            if method is not None:
                return method
        return None

    def get_class_method(self, selector: str) -> MethodDef | None:
        for class_def in self.ancestors():
            method = class_def.class_methods.get(selector)
            if method is not None:
                return method
        return None

    def add_instance_method(self, method: MethodDef) -> None:
        self.instance_methods[method.selector] = method

    def add_class_method(self, method: MethodDef) -> None:
        self.class_methods[method.selector] = method

    def adopts(self, protocol_name: str) -> bool:
        return any(
            protocol.name == protocol_name
            for class_def in self.ancestors()
            for adopted in class_def.protocols
            for protocol in adopted.expanded()
        )


class CompilationContext:
    """Registry and shared services for one compilation unit."""

    def __init__(self, options: CompilerOptions | None = None):
        self.options = options or CompilerOptions()
        self.diagnostics = DiagnosticSink(self.options.warnings)
        self.predefined_globals: dict[str, PredefinedGlobal] = build_predefined_globals(self.options.environments)
        self.classes: dict[str, ClassDef] = {}
        self.protocols: dict[str, ProtocolDef] = {}
        self.globals: dict[str, Any] = {}

        for name in self.options.known_classes:
            self.classes[name] = ClassDef(name=name, superclass=None, node=None, is_placeholder=True)

    def get_class_def(self, name: str | None) -> ClassDef | None:
        if name is None:
            return None
        return self.classes.get(name)

    def find_class_def(self, name: str) -> ClassDef | None:
        """Find a class whose name is close to ``name``, for misspelling hints."""
        lowered = name.lower()
        for class_name, class_def in self.classes.items():
            if class_name.lower() == lowered:
                return class_def
        matches = difflib.get_close_matches(name, list(self.classes), n=1, cutoff=0.8)
        if matches:
            return self.classes[matches[0]]
        return None

    def create_class(
        self,
        name: str,
        node: Any,
        superclass: ClassDef | None = None,
        *,
        is_placeholder: bool = False,
    ) -> ClassDef:
        return ClassDef(name=name, superclass=superclass, node=node, is_placeholder=is_placeholder)

    def register_class(self, class_def: ClassDef) -> None:
        self.classes[class_def.name] = class_def
        logger.debug("registered class %s", class_def.name)

    def get_protocol_def(self, name: str) -> ProtocolDef | None:
        return self.protocols.get(name)

    def register_protocol(self, protocol_def: ProtocolDef) -> None:
        self.protocols[protocol_def.name] = protocol_def
        logger.debug("registered protocol %s", protocol_def.name)

    def predefined_global(self, name: str) -> PredefinedGlobal | None:
        return self.predefined_globals.get(name)

    def add_global(self, name: str, node: Any) -> None:
        self.globals.setdefault(name, node)

    def identifier_is_global(self, name: str) -> bool:
        return name in self.globals

    def get_global(self, name: str) -> Any:
        return self.globals.get(name)

    def is_class_type(self, type_name: str, declared_as_class: bool = False) -> bool:
        return declared_as_class or type_name in self.classes
