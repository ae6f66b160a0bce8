from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from objjc.output import OutputToken

if TYPE_CHECKING:
    from objjc.model import ClassDef, IvarDef, ProtocolDef


class BindingKind(str, Enum):
    LOCAL_VAR = "local var"
    ARGUMENT = "argument"
    FUNCTION = "function"
    FUNCTION_NAME = "function name"
    FILE_VAR = "file var"
    GLOBAL_DECL = "@global"
    CLASS_DECL = "@class"
    IMPLICIT_GLOBAL = "implicit global"


FILE_ONLY_KINDS = frozenset({BindingKind.FILE_VAR, BindingKind.GLOBAL_DECL, BindingKind.CLASS_DECL})


class ScopeKind(str, Enum):
    FILE = "file"
    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"
    PROTOCOL = "protocol"
    BLOCK = "block"


VAR_SCOPE_KINDS = frozenset({ScopeKind.FILE, ScopeKind.FUNCTION, ScopeKind.METHOD})


@dataclass(frozen=True)
class Binding:
    kind: BindingKind
    node: Any


@dataclass
class IvarRef:
    name: str
    node: Any
    ivar: "IvarDef"
    receiver_token: OutputToken | None


@dataclass(frozen=True)
class ClosedScope:
    ivar_refs: dict[str, list[IvarRef]]


class ReceiverTempAllocator:
    """Hands out ``___rN`` temporaries for cached message receivers.

    The depth counts nested sends that are currently being emitted, so two
    sibling sends reuse ``___r1`` while a send inside a receiver gets ``___r2``.
    """

    def __init__(self, prefix: str = "___r"):
        self.prefix = prefix
        self.depth = 0
        self.max_depth = 0

    def acquire(self) -> str:
        self.depth += 1
        self.max_depth = max(self.max_depth, self.depth)
        return f"{self.prefix}{self.depth}"

    def release(self) -> None:
        if self.depth == 0:
            raise ValueError("Receiver temporary released more often than acquired")
        self.depth -= 1

    def declared_names(self) -> list[str]:
        return [f"{self.prefix}{index}" for index in range(1, self.max_depth + 1)]


class Scope:
    def __init__(self, parent: Scope | None = None, kind: ScopeKind = ScopeKind.BLOCK):
        if parent is None and kind is not ScopeKind.FILE:
            raise ValueError("Only the file scope may be created without a parent")
        self.parent = parent
        self.kind = kind
        self.vars: dict[str, Binding] = {}
        self.ivar_refs: dict[str, list[IvarRef]] = {}
        self.class_def: ClassDef | None = None
        self.protocol_def: ProtocolDef | None = None
        self.category_name: str | None = None
        self.method_type: str | None = None
        self.selector: str | None = None
        self.function_name: str | None = None
        self.self_reassigned = False
        self.is_property_key = False
        self.second_member_expression = False
        self.assignment = False
        self.receiver = False
        self.temps = ReceiverTempAllocator() if kind in VAR_SCOPE_KINDS else None

    def root_scope(self) -> Scope:
        scope = self
        while scope.parent is not None:
            scope = scope.parent
        return scope

    def is_root_scope(self) -> bool:
        return self.parent is None

    def is_local_scope(self) -> bool:
        return self.parent is not None

    def var_scope(self) -> Scope:
        if self.kind in VAR_SCOPE_KINDS or self.parent is None:
            return self
        return self.parent.var_scope()

    def receiver_temps(self) -> ReceiverTempAllocator:
        temps = self.var_scope().temps
        if temps is None:
            raise ValueError(f"{self.kind.value} scope has no receiver temporaries")
        return temps

    def declare(self, name: str, kind: BindingKind, node: Any) -> Binding:
        if kind in FILE_ONLY_KINDS and not self.is_root_scope():
            raise ValueError(f"'{kind.value}' bindings belong to the file scope")
        binding = Binding(kind=kind, node=node)
        self.vars[name] = binding
        return binding

    def declare_var(self, name: str, node: Any) -> Binding:
        target = self.var_scope()
        kind = BindingKind.FILE_VAR if target.is_root_scope() else BindingKind.LOCAL_VAR
        return target.declare(name, kind, node)

    def lookup_with_scope(self, name: str) -> tuple[Binding, Scope] | None:
        scope: Scope | None = self
        while scope is not None:
            binding = scope.vars.get(name)
            if binding is not None:
                return binding, scope
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Binding | None:
        found = self.lookup_with_scope(name)
        return found[0] if found is not None else None

    def lookup_local(self, name: str) -> tuple[Binding, Scope] | None:
        found = self.lookup_with_scope(name)
        if found is None or found[1].is_root_scope():
            return None
        return found

    def lookup_file_scope(self, name: str) -> Binding | None:
        return self.root_scope().vars.get(name)

    def current_class_def(self) -> ClassDef | None:
        scope: Scope | None = self
        while scope is not None:
            if scope.class_def is not None:
                return scope.class_def
            scope = scope.parent
        return None

    def current_method_type(self) -> str | None:
        scope: Scope | None = self
        while scope is not None:
            if scope.method_type is not None:
                return scope.method_type
            scope = scope.parent
        return None

    def context_description(self) -> tuple[str, str]:
        scope: Scope | None = self
        while scope is not None:
            if scope.function_name is not None:
                return "function", scope.function_name
            if scope.selector is not None:
                return "method", scope.selector
            scope = scope.parent
        return "file", "<top level>"

    def add_ivar_ref(self, ref: IvarRef) -> None:
        self.ivar_refs.setdefault(ref.name, []).append(ref)

    def take_ivar_refs(self, name: str) -> list[IvarRef]:
        # Refs still sitting in open inner scopes belong to the same var scope.
        refs: list[IvarRef] = []
        scope: Scope | None = self
        boundary = self.var_scope()
        while scope is not None:
            refs.extend(scope.ivar_refs.pop(name, []))
            if scope is boundary:
                break
            scope = scope.parent
        return refs

    def close(self) -> ClosedScope:
        closed = ClosedScope(ivar_refs=self.ivar_refs)
        self.ivar_refs = {}
        return closed

    def absorb(self, closed: ClosedScope) -> None:
        for name, refs in closed.ivar_refs.items():
            self.ivar_refs.setdefault(name, []).extend(refs)
