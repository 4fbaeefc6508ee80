"""Print the syntactic model as gofmt-style Go source.

The layout follows what gofmt produces for the node shapes the synthesizer
builds (tab indentation, space-aligned struct fields, one blank line between
top-level declarations), so output is canonical even without a `gofmt` pass.
"""

from __future__ import annotations

from .errors import RenderError
from .gosyntax import (
    ArrayType,
    AssignStmt,
    BinaryExpr,
    Block,
    CallExpr,
    ChanType,
    CompositeLit,
    DeferStmt,
    Ellipsis,
    Expr,
    ExprStmt,
    Field,
    File,
    FuncDecl,
    FuncType,
    Ident,
    IfStmt,
    ImportDecl,
    ImportSpec,
    IndexExpr,
    IndexListExpr,
    InterfaceType,
    KeyValue,
    MapType,
    ParenExpr,
    ReturnStmt,
    Selector,
    Star,
    Stmt,
    StructType,
    TypeDecl,
    Unary,
)
from .typeref import ChanDir


def print_file(f: File) -> str:
    out: list[str] = []
    for line in f.header:
        out.append(f"// {line}" if line else "//")
    if f.header:
        out.append("")
    out.append(f"package {f.package}")
    for d in f.decls:
        out.append("")
        if isinstance(d, ImportDecl):
            out.extend(_import_decl(d))
        elif isinstance(d, TypeDecl):
            out.extend(_type_decl(d))
        elif isinstance(d, FuncDecl):
            out.extend(_func_decl(d))
        else:
            raise RenderError(f"cannot print declaration {type(d).__name__}")
    return "\n".join(out) + "\n"


def expr(e: Expr) -> str:
    if isinstance(e, Ident):
        return e.name
    if isinstance(e, Selector):
        return f"{expr(e.x)}.{e.sel}"
    if isinstance(e, Star):
        return f"*{expr(e.x)}"
    if isinstance(e, Unary):
        return f"{e.op}{expr(e.x)}"
    if isinstance(e, ArrayType):
        return f"[{e.length or ''}]{expr(e.elt)}"
    if isinstance(e, Ellipsis):
        return f"...{expr(e.elt)}"
    if isinstance(e, MapType):
        return f"map[{expr(e.key)}]{expr(e.value)}"
    if isinstance(e, ChanType):
        return _chan(e)
    if isinstance(e, FuncType):
        return "func" + _type_params(e.type_params) + _signature(e)
    if isinstance(e, InterfaceType):
        return canonical_braces(e.text) if e.text else "interface{}"
    if isinstance(e, StructType):
        if e.fields:
            raise RenderError("struct types with fields are only printed in type declarations")
        return "struct{}"
    if isinstance(e, IndexExpr):
        return f"{expr(e.x)}[{expr(e.index)}]"
    if isinstance(e, IndexListExpr):
        return f"{expr(e.x)}[{', '.join(expr(i) for i in e.indices)}]"
    if isinstance(e, ParenExpr):
        return f"({expr(e.x)})"
    if isinstance(e, KeyValue):
        return f"{expr(e.key)}: {expr(e.value)}"
    if isinstance(e, CompositeLit):
        return f"{expr(e.type)}{{{', '.join(expr(kv) for kv in e.elts)}}}"
    if isinstance(e, CallExpr):
        args = ", ".join(expr(a) for a in e.args)
        return f"{expr(e.fun)}({args}{'...' if e.ellipsis else ''})"
    if isinstance(e, BinaryExpr):
        return f"{expr(e.x)} {e.op} {expr(e.y)}"
    raise RenderError(f"cannot print expression {type(e).__name__}")


def canonical_braces(text: str) -> str:
    """`interface{M() int}` -> `interface{ M() int }` (gofmt spacing for one-line bodies)."""
    out: list[str] = []
    stack: list[bool] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "{":
            if i + 1 < len(text) and text[i + 1] == "}":
                out.append("{}")
                i += 2
                continue
            out.append("{ ")
            stack.append(True)
        elif ch == "}" and stack:
            stack.pop()
            out.append(" }")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _chan(e: ChanType) -> str:
    value = expr(e.value)
    if e.dir == ChanDir.SEND:
        return f"chan<- {value}"
    if e.dir == ChanDir.RECV:
        return f"<-chan {value}"
    if isinstance(e.value, ChanType) and e.value.dir == ChanDir.RECV:
        # `chan <-chan T` would parse as `chan<- chan T`.
        return f"chan ({value})"
    return f"chan {value}"


def _fields(fields: tuple[Field, ...]) -> str:
    parts: list[str] = []
    for f in fields:
        if f.names:
            parts.append(f"{', '.join(f.names)} {expr(f.type)}")
        else:
            parts.append(expr(f.type))
    return ", ".join(parts)


def _type_params(fields: tuple[Field, ...]) -> str:
    if not fields:
        return ""
    return f"[{_fields(fields)}]"


def _signature(t: FuncType) -> str:
    s = f"({_fields(t.params)})"
    if not t.results:
        return s
    if len(t.results) == 1 and not t.results[0].names:
        return f"{s} {expr(t.results[0].type)}"
    return f"{s} ({_fields(t.results)})"


def _import_decl(d: ImportDecl) -> list[str]:
    groups = [g for g in d.groups if g]
    specs = [s for g in groups for s in g]
    if len(specs) == 1:
        return [f"import {_import_spec(specs[0])}"]
    lines = ["import ("]
    for i, g in enumerate(groups):
        if i:
            lines.append("")
        lines.extend(f"\t{_import_spec(s)}" for s in g)
    lines.append(")")
    return lines


def _import_spec(s: ImportSpec) -> str:
    quoted = '"' + s.path.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return f"{s.name} {quoted}" if s.name else quoted


def _type_decl(d: TypeDecl) -> list[str]:
    head = f"type {d.name}{_type_params(d.type_params)}"
    if not isinstance(d.type, StructType) or not d.type.fields:
        return [f"{head} {expr(d.type)}"]

    cells = [(", ".join(f.names), expr(f.type)) for f in d.type.fields]
    width = max(len(name) for name, _ in cells)
    lines = [f"{head} struct {{"]
    for name, typ in cells:
        if name:
            lines.append(f"\t{name.ljust(width)} {typ}")
        else:
            lines.append(f"\t{typ}")
    lines.append("}")
    return lines


def _func_decl(d: FuncDecl) -> list[str]:
    recv = ""
    if d.recv is not None:
        recv = f"({_fields((d.recv,))}) "
    head = f"func {recv}{d.name}{_type_params(d.type.type_params)}{_signature(d.type)} {{"
    return [head, *_block(d.body, 1), "}"]


def _block(b: Block, level: int) -> list[str]:
    lines: list[str] = []
    for s in b.stmts:
        lines.extend(_stmt(s, level))
    return lines


def _stmt(s: Stmt, level: int) -> list[str]:
    indent = "\t" * level
    if isinstance(s, ExprStmt):
        return [indent + expr(s.x)]
    if isinstance(s, AssignStmt):
        lhs = ", ".join(expr(x) for x in s.lhs)
        rhs = ", ".join(expr(x) for x in s.rhs)
        return [f"{indent}{lhs} {s.tok} {rhs}"]
    if isinstance(s, ReturnStmt):
        if not s.results:
            return [indent + "return"]
        return [f"{indent}return {', '.join(expr(x) for x in s.results)}"]
    if isinstance(s, DeferStmt):
        return [f"{indent}defer {expr(s.call)}"]
    if isinstance(s, IfStmt):
        lines = [f"{indent}if {expr(s.cond)} {{", *_block(s.body, level + 1)]
        if s.else_ is not None:
            lines.append(f"{indent}}} else {{")
            lines.extend(_block(s.else_, level + 1))
        lines.append(indent + "}")
        return lines
    raise RenderError(f"cannot print statement {type(s).__name__}")
