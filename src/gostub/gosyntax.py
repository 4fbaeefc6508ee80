"""Syntactic model of the Go file the synthesizer produces.

Only the node kinds a stub needs are modeled. Nodes are immutable and built
bottom-up; `gostub.printer` turns a `File` into source text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .typeref import ChanDir


@dataclass(frozen=True)
class Ident:
    name: str


@dataclass(frozen=True)
class Selector:
    x: "Expr"
    sel: str


@dataclass(frozen=True)
class Star:
    x: "Expr"


@dataclass(frozen=True)
class Unary:
    op: str
    x: "Expr"


@dataclass(frozen=True)
class ArrayType:
    elt: "Expr"
    # None for slices.
    length: str | None = None


@dataclass(frozen=True)
class Ellipsis:
    elt: "Expr"


@dataclass(frozen=True)
class MapType:
    key: "Expr"
    value: "Expr"


@dataclass(frozen=True)
class ChanType:
    dir: ChanDir
    value: "Expr"


@dataclass(frozen=True)
class Field:
    names: tuple[str, ...]
    type: "Expr"


@dataclass(frozen=True)
class FuncType:
    params: tuple[Field, ...] = ()
    results: tuple[Field, ...] = ()
    type_params: tuple[Field, ...] = ()


@dataclass(frozen=True)
class InterfaceType:
    # Empty text is `interface{}`.
    text: str = ""


@dataclass(frozen=True)
class StructType:
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class IndexExpr:
    x: "Expr"
    index: "Expr"


@dataclass(frozen=True)
class IndexListExpr:
    x: "Expr"
    indices: tuple["Expr", ...]


@dataclass(frozen=True)
class ParenExpr:
    x: "Expr"


@dataclass(frozen=True)
class KeyValue:
    key: "Expr"
    value: "Expr"


@dataclass(frozen=True)
class CompositeLit:
    type: "Expr"
    elts: tuple[KeyValue, ...] = ()


@dataclass(frozen=True)
class CallExpr:
    fun: "Expr"
    args: tuple["Expr", ...] = ()
    # Spread the last argument (`f(a, b...)`).
    ellipsis: bool = False


@dataclass(frozen=True)
class BinaryExpr:
    x: "Expr"
    op: str
    y: "Expr"


Expr = Union[
    Ident,
    Selector,
    Star,
    Unary,
    ArrayType,
    Ellipsis,
    MapType,
    ChanType,
    FuncType,
    InterfaceType,
    StructType,
    IndexExpr,
    IndexListExpr,
    ParenExpr,
    CompositeLit,
    CallExpr,
    BinaryExpr,
]


@dataclass(frozen=True)
class Block:
    stmts: tuple["Stmt", ...] = ()


@dataclass(frozen=True)
class ExprStmt:
    x: Expr


@dataclass(frozen=True)
class AssignStmt:
    lhs: tuple[Expr, ...]
    tok: str
    rhs: tuple[Expr, ...]


@dataclass(frozen=True)
class ReturnStmt:
    results: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class DeferStmt:
    call: CallExpr


@dataclass(frozen=True)
class IfStmt:
    cond: Expr
    body: Block
    else_: Block | None = None


Stmt = Union[ExprStmt, AssignStmt, ReturnStmt, DeferStmt, IfStmt]


@dataclass(frozen=True)
class ImportSpec:
    path: str
    name: str | None = None


@dataclass(frozen=True)
class ImportDecl:
    # Groups are separated by a blank line.
    groups: tuple[tuple[ImportSpec, ...], ...]


@dataclass(frozen=True)
class TypeDecl:
    name: str
    type: Expr
    type_params: tuple[Field, ...] = ()


@dataclass(frozen=True)
class FuncDecl:
    name: str
    type: FuncType
    body: Block
    recv: Field | None = None


Decl = Union[ImportDecl, TypeDecl, FuncDecl]


@dataclass(frozen=True)
class File:
    package: str
    decls: tuple[Decl, ...] = ()
    # Comment lines (without the leading `//`) placed above the package clause.
    header: tuple[str, ...] = ()


def ident(name: str) -> Ident:
    return Ident(name)


def sel(x: str | Expr, *names: str) -> Expr:
    """`sel("s", "mu", "Lock")` -> `s.mu.Lock`."""
    out: Expr = Ident(x) if isinstance(x, str) else x
    for n in names:
        out = Selector(out, n)
    return out


def instantiate(name: str, args: tuple[Expr, ...]) -> Expr:
    """Generic instantiation `name[args]`; plain identifier when there are no args."""
    if not args:
        return Ident(name)
    if len(args) == 1:
        return IndexExpr(Ident(name), args[0])
    return IndexListExpr(Ident(name), tuple(args))
