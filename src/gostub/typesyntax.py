"""TypeRef -> Go type expression, as seen from the target package."""

from __future__ import annotations

import re
from typing import Mapping

from .errors import UnsupportedTypeError
from .gosyntax import (
    ArrayType,
    ChanType,
    Ellipsis,
    Expr,
    Field,
    FuncType,
    Ident,
    IndexExpr,
    IndexListExpr,
    InterfaceType,
    MapType,
    Selector,
    Star,
)
from .typeref import (
    QUALIFIER_MARK,
    Array,
    Basic,
    Chan,
    Func,
    FuncVar,
    Interface,
    Map,
    Named,
    Pointer,
    Slice,
    TypeParam,
    TypeRef,
)

_QUALIFIER_RE = re.compile(re.escape(QUALIFIER_MARK) + r"([^" + re.escape(QUALIFIER_MARK) + r"]*)" + re.escape(QUALIFIER_MARK) + r"\.")


def type_expr(t: TypeRef, *, target_path: str, imports: Mapping[str, str]) -> Expr:
    if isinstance(t, Basic):
        return Ident(t.name)
    if isinstance(t, Named):
        base: Expr
        if not t.pkg_path or t.pkg_path == target_path:
            base = Ident(t.name)
        else:
            local = imports.get(t.pkg_path) or t.pkg_name
            base = Selector(Ident(local), t.name)
        if not t.type_args:
            return base
        args = tuple(type_expr(a, target_path=target_path, imports=imports) for a in t.type_args)
        if len(args) == 1:
            return IndexExpr(base, args[0])
        return IndexListExpr(base, args)
    if isinstance(t, Pointer):
        return Star(type_expr(t.elem, target_path=target_path, imports=imports))
    if isinstance(t, Slice):
        return ArrayType(type_expr(t.elem, target_path=target_path, imports=imports))
    if isinstance(t, Array):
        return ArrayType(type_expr(t.elem, target_path=target_path, imports=imports), length=str(t.length))
    if isinstance(t, Map):
        return MapType(
            type_expr(t.key, target_path=target_path, imports=imports),
            type_expr(t.value, target_path=target_path, imports=imports),
        )
    if isinstance(t, Chan):
        return ChanType(t.dir, type_expr(t.elem, target_path=target_path, imports=imports))
    if isinstance(t, Func):
        return FuncType(
            params=var_fields(t.params, variadic=t.variadic, target_path=target_path, imports=imports),
            results=var_fields(t.results, target_path=target_path, imports=imports),
        )
    if isinstance(t, Interface):
        if t.empty:
            return InterfaceType()
        return InterfaceType(qualify_text(t.text, target_path=target_path, imports=imports))
    if isinstance(t, TypeParam):
        return Ident(t.name)
    raise UnsupportedTypeError(f"cannot render {type(t).__name__} as a Go type")


def var_fields(
    vars: tuple[FuncVar, ...],
    *,
    target_path: str,
    imports: Mapping[str, str],
    variadic: bool = False,
) -> tuple[Field, ...]:
    """Parameter/result list of a func type; names only where the source has them."""
    # Go requires all-or-nothing naming inside one list.
    any_named = any(v.name for v in vars)
    out: list[Field] = []
    for i, v in enumerate(vars):
        typ = param_type_expr(
            v.type,
            variadic=variadic and i == len(vars) - 1,
            target_path=target_path,
            imports=imports,
        )
        names = (v.name or "_",) if any_named else ()
        out.append(Field(names, typ))
    return tuple(out)


def param_type_expr(t: TypeRef, *, variadic: bool, target_path: str, imports: Mapping[str, str]) -> Expr:
    """Type of a parameter; the variadic one is written `...T`."""
    if not variadic:
        return type_expr(t, target_path=target_path, imports=imports)
    if not isinstance(t, Slice):
        raise UnsupportedTypeError(f"variadic parameter must be a slice, got {type(t).__name__}")
    return Ellipsis(type_expr(t.elem, target_path=target_path, imports=imports))


def qualify_text(text: str, *, target_path: str, imports: Mapping[str, str]) -> str:
    """Replace marked package qualifiers with the local names used by the target file."""

    def repl(m: re.Match[str]) -> str:
        path = m.group(1)
        if not path or path == target_path:
            return ""
        local = imports.get(path) or path.rsplit("/", 1)[-1]
        return f"{local}."

    return _QUALIFIER_RE.sub(repl, text)
