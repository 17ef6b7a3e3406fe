"""
Defines the abstract syntax tree (AST) node structure for the Misty scripting language.

The node set is closed: every construct the parser can produce has exactly one
class below, and every class carries a `kind` tag the interpreter dispatches on
(`exec_<kind>` / `eval_<kind>`). Nodes are frozen and hold tuples rather than
lists, so a parsed program can be shared and evaluated any number of times.

Each node tracks:
    kind (str): The syntactic construct type (e.g. "procedure", "incase", "call").
    line (int): Source line of the node's first token, for diagnostics.
    col (int): Source column of the node's first token.

Positions are excluded from equality so trees built by hand in tests compare
equal to parsed ones.

Usage:
    program = Program((VariableDeclaration("x", True, NumberLiteral(1.0)),))
    program.to_dict()  # nested plain dicts, JSON serializable
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Union


@dataclass(frozen=True)
class ASTNode:
    """Base class for every Misty AST node."""

    kind: ClassVar[str] = "node"

    line: int = field(default=0, kw_only=True, compare=False)
    col: int = field(default=0, kw_only=True, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Converts the node (and all descendants) into nested dictionaries."""
        out: dict[str, Any] = {"kind": self.kind}
        for f in fields(self):
            if f.name in ("line", "col"):
                continue
            out[f.name] = _to_plain(getattr(self, f.name))
        out["line"] = self.line
        out["col"] = self.col
        return out


def _to_plain(value: Any) -> Any:
    if isinstance(value, ASTNode):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_to_plain(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    return value


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumberLiteral(ASTNode):
    kind: ClassVar[str] = "number"
    value: float


@dataclass(frozen=True)
class StringLiteral(ASTNode):
    kind: ClassVar[str] = "string"
    value: str


@dataclass(frozen=True)
class BooleanLiteral(ASTNode):
    kind: ClassVar[str] = "boolean"
    value: bool


@dataclass(frozen=True)
class NullLiteral(ASTNode):
    kind: ClassVar[str] = "null"


@dataclass(frozen=True)
class NaNLiteral(ASTNode):
    kind: ClassVar[str] = "nan"


@dataclass(frozen=True)
class Identifier(ASTNode):
    kind: ClassVar[str] = "identifier"
    name: str


@dataclass(frozen=True)
class ArrayLiteral(ASTNode):
    kind: ClassVar[str] = "array"
    elements: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class ObjectLiteral(ASTNode):
    """`{ key: value, ... }`. Duplicate keys are kept; the last one wins at runtime."""

    kind: ClassVar[str] = "object"
    properties: tuple[tuple[str, Expression], ...] = ()


@dataclass(frozen=True)
class BinaryExpression(ASTNode):
    kind: ClassVar[str] = "binary"
    operator: str
    left: Expression
    right: Expression


@dataclass(frozen=True)
class UnaryExpression(ASTNode):
    kind: ClassVar[str] = "unary"
    operator: str
    operand: Expression


@dataclass(frozen=True)
class MemberExpression(ASTNode):
    """Fixed-name access: `obj.name`."""

    kind: ClassVar[str] = "member"
    object: Expression
    property: str


@dataclass(frozen=True)
class ComputedMemberExpression(ASTNode):
    """Runtime-keyed access: `obj[key]` or `obj->key`."""

    kind: ClassVar[str] = "computed_member"
    object: Expression
    key: Expression


@dataclass(frozen=True)
class CallExpression(ASTNode):
    kind: ClassVar[str] = "call"
    callee: Expression
    arguments: tuple[Expression, ...] = ()


Expression = Union[
    NumberLiteral,
    StringLiteral,
    BooleanLiteral,
    NullLiteral,
    NaNLiteral,
    Identifier,
    ArrayLiteral,
    ObjectLiteral,
    BinaryExpression,
    UnaryExpression,
    MemberExpression,
    ComputedMemberExpression,
    CallExpression,
]


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VariableDeclaration(ASTNode):
    kind: ClassVar[str] = "var_decl"
    name: str
    is_constant: bool
    value: Expression


@dataclass(frozen=True)
class Assignment(ASTNode):
    kind: ClassVar[str] = "assign"
    name: str
    value: Expression


@dataclass(frozen=True)
class MemberAssignment(ASTNode):
    """`obj.name = v` (property is a str) or `obj[key] = v` / `obj->key = v` (an expression)."""

    kind: ClassVar[str] = "member_assign"
    object: Expression
    property: Union[str, Expression]
    is_computed: bool
    value: Expression


@dataclass(frozen=True)
class ProcedureDeclaration(ASTNode):
    kind: ClassVar[str] = "procedure"
    name: str
    parameters: tuple[str, ...]
    body: tuple[Statement, ...]


@dataclass(frozen=True)
class ReturnStatement(ASTNode):
    kind: ClassVar[str] = "return"
    value: Expression


@dataclass(frozen=True)
class BreakStatement(ASTNode):
    kind: ClassVar[str] = "break"


@dataclass(frozen=True)
class ContinueStatement(ASTNode):
    kind: ClassVar[str] = "continue"


@dataclass(frozen=True)
class ElifBranch(ASTNode):
    kind: ClassVar[str] = "elif"
    condition: Expression
    body: tuple[Statement, ...]


@dataclass(frozen=True)
class IncaseStatement(ASTNode):
    """`incase (c) { } elif (c) { } else { }`. `else_body` is None when absent."""

    kind: ClassVar[str] = "incase"
    condition: Expression
    body: tuple[Statement, ...]
    elif_branches: tuple[ElifBranch, ...] = ()
    else_body: tuple[Statement, ...] | None = None


@dataclass(frozen=True)
class DriftLoop(ASTNode):
    """Counting loop: `drift (mut i = 0; i < n; i = i + 1) { }`."""

    kind: ClassVar[str] = "drift"
    init: VariableDeclaration
    condition: Expression
    update: Assignment
    body: tuple[Statement, ...]


@dataclass(frozen=True)
class DriftThroughLoop(ASTNode):
    """Iterating loop: `drift (const x through xs) { }`."""

    kind: ClassVar[str] = "drift_through"
    name: str
    is_constant: bool
    iterable: Expression
    body: tuple[Statement, ...]


Statement = Union[
    VariableDeclaration,
    Assignment,
    MemberAssignment,
    ProcedureDeclaration,
    ReturnStatement,
    BreakStatement,
    ContinueStatement,
    IncaseStatement,
    DriftLoop,
    DriftThroughLoop,
    Expression,
]


@dataclass(frozen=True)
class Program(ASTNode):
    kind: ClassVar[str] = "program"
    body: tuple[Statement, ...] = ()


__all__ = [
    "ASTNode",
    "ArrayLiteral",
    "Assignment",
    "BinaryExpression",
    "BooleanLiteral",
    "BreakStatement",
    "CallExpression",
    "ComputedMemberExpression",
    "ContinueStatement",
    "DriftLoop",
    "DriftThroughLoop",
    "ElifBranch",
    "Expression",
    "Identifier",
    "IncaseStatement",
    "MemberAssignment",
    "MemberExpression",
    "NaNLiteral",
    "NullLiteral",
    "NumberLiteral",
    "ObjectLiteral",
    "ProcedureDeclaration",
    "Program",
    "ReturnStatement",
    "Statement",
    "StringLiteral",
    "UnaryExpression",
    "VariableDeclaration",
]
