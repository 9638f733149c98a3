"""Syntax tree produced by the script parser."""

from dataclasses import dataclass, field
from typing import Any


# Expressions

@dataclass
class Literal:
    value: Any


@dataclass
class Name:
    name: str


@dataclass
class ArrayLiteral:
    items: list


@dataclass
class Member:
    """Property access by name: ``obj.name``."""

    obj: Any
    name: str


@dataclass
class Index:
    """Computed property access: ``obj[key]``."""

    obj: Any
    key: Any


@dataclass
class Call:
    callee: Any
    args: list


@dataclass
class Unary:
    op: str
    operand: Any


@dataclass
class Binary:
    op: str
    left: Any
    right: Any


@dataclass
class Logical:
    """Short-circuit ``&&`` / ``||``; yields one of the operands, not a boolean."""

    op: str
    left: Any
    right: Any


@dataclass
class Conditional:
    test: Any
    then: Any
    otherwise: Any


@dataclass
class Assign:
    op: str  # =, +=, -=
    target: Any
    value: Any


@dataclass
class Arrow:
    """Anonymous function: ``x => ...``, ``() => ...`` or ``function (a, b) { ... }``."""

    params: list
    body: list


# Statements

@dataclass
class FunctionDecl:
    name: str
    params: list
    body: list


@dataclass
class Return:
    value: Any = None


@dataclass
class If:
    test: Any
    then: Any
    otherwise: Any = None


@dataclass
class Declare:
    kind: str  # let, const, var
    name: str
    value: Any = None


@dataclass
class ForOf:
    kind: str
    name: str
    iterable: Any
    body: Any


@dataclass
class While:
    test: Any
    body: Any


@dataclass
class Break:
    pass


@dataclass
class Continue:
    pass


@dataclass
class Throw:
    value: Any


@dataclass
class Block:
    body: list


@dataclass
class ExprStatement:
    expr: Any


@dataclass
class Program:
    body: list = field(default_factory=list)
