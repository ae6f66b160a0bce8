from __future__ import annotations

from dataclasses import dataclass, field

from objjc.spans import SourceSpan


@dataclass(frozen=True)
class IdentifierExpr:
    name: str
    span: SourceSpan | None = None


@dataclass(frozen=True)
class TypeRef:
    name: str
    is_class: bool = False
    protocols: list[IdentifierExpr] = field(default_factory=list)
    span: SourceSpan | None = None


@dataclass(frozen=True)
class AccessorsSpec:
    property: str | None = None
    getter: str | None = None
    setter: str | None = None
    readonly: bool = False
    copy: bool | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class LiteralExpr:
    raw: str
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ThisExpr:
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ArrayExpr:
    elements: list["Expression | None"]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class PropertyNode:
    key: "Expression"
    value: "Expression"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ObjectExpr:
    properties: list[PropertyNode]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class FunctionExpr:
    id: IdentifierExpr | None
    params: list[IdentifierExpr]
    body: "BlockStmt"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class SequenceExpr:
    expressions: list["Expression"]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class UnaryExpr:
    operator: str
    argument: "Expression"
    prefix: bool = True
    span: SourceSpan | None = None


@dataclass(frozen=True)
class UpdateExpr:
    operator: str
    argument: "Expression"
    prefix: bool = False
    span: SourceSpan | None = None


@dataclass(frozen=True)
class BinaryExpr:
    left: "Expression"
    operator: str
    right: "Expression"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class LogicalExpr:
    left: "Expression"
    operator: str
    right: "Expression"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class AssignExpr:
    left: "Expression"
    operator: str
    right: "Expression"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ConditionalExpr:
    test: "Expression"
    consequent: "Expression"
    alternate: "Expression"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class NewExpr:
    callee: "Expression"
    arguments: list["Expression"] = field(default_factory=list)
    span: SourceSpan | None = None


@dataclass(frozen=True)
class CallExpr:
    callee: "Expression"
    arguments: list["Expression"] = field(default_factory=list)
    span: SourceSpan | None = None


@dataclass(frozen=True)
class MemberExpr:
    object: "Expression"
    property: "Expression"
    computed: bool = False
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ArrayLiteralExpr:
    elements: list["Expression"]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class DictionaryLiteralExpr:
    keys: list["Expression"]
    values: list["Expression"]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class MessageSendExpr:
    object: "Expression | None"
    selectors: list[IdentifierExpr | None]
    arguments: list["Expression"] = field(default_factory=list)
    parameters: list["Expression"] = field(default_factory=list)
    super_object: bool = False
    span: SourceSpan | None = None


@dataclass(frozen=True)
class SelectorLiteralExpr:
    selector: str
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ProtocolLiteralExpr:
    id: IdentifierExpr
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ReferenceExpr:
    element: IdentifierExpr
    span: SourceSpan | None = None


@dataclass(frozen=True)
class DereferenceExpr:
    expr: "Expression"
    span: SourceSpan | None = None


Expression = (
    IdentifierExpr
    | LiteralExpr
    | ThisExpr
    | ArrayExpr
    | ObjectExpr
    | FunctionExpr
    | SequenceExpr
    | UnaryExpr
    | UpdateExpr
    | BinaryExpr
    | LogicalExpr
    | AssignExpr
    | ConditionalExpr
    | NewExpr
    | CallExpr
    | MemberExpr
    | ArrayLiteralExpr
    | DictionaryLiteralExpr
    | MessageSendExpr
    | SelectorLiteralExpr
    | ProtocolLiteralExpr
    | ReferenceExpr
    | DereferenceExpr
)


@dataclass(frozen=True)
class BlockStmt:
    body: list["Statement"]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ExprStmt:
    expression: Expression
    span: SourceSpan | None = None


@dataclass(frozen=True)
class EmptyStmt:
    span: SourceSpan | None = None


@dataclass(frozen=True)
class IfStmt:
    test: Expression
    consequent: "Statement"
    alternate: "Statement | None" = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class LabeledStmt:
    label: IdentifierExpr
    body: "Statement"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class BreakStmt:
    label: IdentifierExpr | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ContinueStmt:
    label: IdentifierExpr | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class WithStmt:
    object: Expression
    body: "Statement"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class SwitchCase:
    test: Expression | None
    consequent: list["Statement"]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class SwitchStmt:
    discriminant: Expression
    cases: list[SwitchCase]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ReturnStmt:
    argument: Expression | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ThrowStmt:
    argument: Expression
    span: SourceSpan | None = None


@dataclass(frozen=True)
class CatchClause:
    param: IdentifierExpr
    body: BlockStmt
    span: SourceSpan | None = None


@dataclass(frozen=True)
class TryStmt:
    block: BlockStmt
    handler: CatchClause | None = None
    finalizer: BlockStmt | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class WhileStmt:
    test: Expression
    body: "Statement"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class DoWhileStmt:
    body: "Statement"
    test: Expression
    span: SourceSpan | None = None


@dataclass(frozen=True)
class VarDeclarator:
    id: IdentifierExpr
    init: Expression | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class VarDeclStmt:
    declarations: list[VarDeclarator]
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ForStmt:
    init: "VarDeclStmt | Expression | None"
    test: Expression | None
    update: Expression | None
    body: "Statement"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ForInStmt:
    left: "VarDeclStmt | Expression"
    right: Expression
    body: "Statement"
    span: SourceSpan | None = None


@dataclass(frozen=True)
class DebuggerStmt:
    span: SourceSpan | None = None


@dataclass(frozen=True)
class FunctionDecl:
    id: IdentifierExpr
    params: list[IdentifierExpr]
    body: BlockStmt
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ImportStmt:
    filename: str
    is_local: bool = True
    span: SourceSpan | None = None


@dataclass(frozen=True)
class IvarDecl:
    ivartype: IdentifierExpr
    id: IdentifierExpr
    outlet: bool = False
    accessors: AccessorsSpec | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class MethodArgument:
    identifier: IdentifierExpr
    type: TypeRef | None = None
    span: SourceSpan | None = None


@dataclass(frozen=True)
class MethodDecl:
    methodtype: str
    selectors: list[IdentifierExpr | None]
    arguments: list[MethodArgument] = field(default_factory=list)
    returntype: TypeRef | None = None
    body: BlockStmt | None = None
    action: bool = False
    parameters: bool = False
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ClassDecl:
    classname: IdentifierExpr
    superclassname: IdentifierExpr | None = None
    categoryname: IdentifierExpr | None = None
    protocols: list[IdentifierExpr] = field(default_factory=list)
    ivardeclarations: list[IvarDecl] = field(default_factory=list)
    body: list["Statement"] = field(default_factory=list)
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ProtocolDecl:
    protocolname: IdentifierExpr
    protocols: list[IdentifierExpr] = field(default_factory=list)
    required: list[MethodDecl] = field(default_factory=list)
    optional: list[MethodDecl] = field(default_factory=list)
    span: SourceSpan | None = None


@dataclass(frozen=True)
class ClassStmt:
    id: IdentifierExpr
    span: SourceSpan | None = None


@dataclass(frozen=True)
class GlobalStmt:
    id: IdentifierExpr
    span: SourceSpan | None = None


@dataclass(frozen=True)
class PreprocessStmt:
    span: SourceSpan | None = None


Statement = (
    BlockStmt
    | ExprStmt
    | EmptyStmt
    | IfStmt
    | LabeledStmt
    | BreakStmt
    | ContinueStmt
    | WithStmt
    | SwitchStmt
    | ReturnStmt
    | ThrowStmt
    | TryStmt
    | WhileStmt
    | DoWhileStmt
    | ForStmt
    | ForInStmt
    | DebuggerStmt
    | FunctionDecl
    | VarDeclStmt
    | ImportStmt
    | ClassDecl
    | ProtocolDecl
    | IvarDecl
    | MethodDecl
    | ClassStmt
    | GlobalStmt
    | PreprocessStmt
)


@dataclass(frozen=True)
class ProgramAst:
    body: list[Statement]
    span: SourceSpan | None = None
