"""Build the syntactic model of a stub file from an InterfaceModel.

Layout of the generated file, for interface I:

    import block (locking package, options package, foreign packages)
    per method M: StubIMCall, StubIMReturns (only when M has results)
    StubI            mu, isLocked, then MFunc / MCalls / MReturns per method
    NewStubI(opts)   sets isLocked from opts.WithLocking
    one method per interface method, in interface order

Generic interfaces propagate their type parameters to every struct, the
constructor and the receivers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from .config import GeneratorOptions
from .gosyntax import (
    ArrayType,
    AssignStmt,
    BinaryExpr,
    Block,
    CallExpr,
    CompositeLit,
    Decl,
    DeferStmt,
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
    KeyValue,
    ReturnStmt,
    Selector,
    Star,
    Stmt,
    StructType,
    TypeDecl,
    Unary,
    instantiate,
    sel,
)
from .imports import ImportSet, last_segment
from .model import BLANK, InterfaceModel, Method
from .typeref import base_type_name
from .typesyntax import param_type_expr, type_expr

logger = logging.getLogger(__name__)

HEADER = "Code generated by gostub. DO NOT EDIT."
RECEIVER = "s"
OPTIONS_PARAM = "opts"

# Identifiers the method bodies refer to besides the receiver.
_BODY_IDENTS = frozenset({"append", "nil"})


def title(name: str) -> str:
    return name[:1].upper() + name[1:]


@dataclass(frozen=True)
class _MethodPlan:
    method: Method
    param_locals: tuple[str, ...]
    # None when the results are unnamed in the declaration.
    result_locals: tuple[str, ...] | None
    call_fields: tuple[str, ...]
    returns_fields: tuple[str, ...]
    call_struct: str
    returns_struct: str
    func_field: str
    calls_field: str
    returns_field: str


@dataclass(frozen=True)
class _Ctx:
    model: InterfaceModel
    imports: dict[str, str]
    stub_name: str
    type_param_fields: tuple[Field, ...]
    type_args: tuple[Expr, ...]
    sync_local: str
    options_local: str
    mu_field: str
    locked_field: str

    def typ(self, t) -> Expr:
        return type_expr(t, target_path=self.model.target_package_path, imports=self.imports)

    def param_typ(self, t, *, variadic: bool) -> Expr:
        return param_type_expr(
            t, variadic=variadic, target_path=self.model.target_package_path, imports=self.imports
        )

    def inst(self, name: str) -> Expr:
        return instantiate(name, self.type_args)


def synthesize(model: InterfaceModel, *, opts: GeneratorOptions | None = None) -> File:
    opts = opts or GeneratorOptions()
    stub_name = f"Stub{model.interface_name}"
    imports = dict(model.imports)

    sync_local, options_local, import_decl = _import_decl(imports, opts)

    taken = {m.name for m in model.methods}
    mu_field = _alloc("mu", taken)
    locked_field = _alloc("isLocked", taken)

    ctx_base = _Ctx(
        model=model,
        imports=imports,
        stub_name=stub_name,
        type_param_fields=(),
        type_args=tuple(Ident(tp.name) for tp in model.type_params),
        sync_local=sync_local,
        options_local=options_local,
        mu_field=mu_field,
        locked_field=locked_field,
    )
    ctx = replace(
        ctx_base,
        type_param_fields=tuple(Field((tp.name,), ctx_base.typ(tp.constraint)) for tp in model.type_params),
    )

    plans = [_plan_method(ctx, m, taken) for m in model.methods]

    decls: list[Decl] = [import_decl]
    for p in plans:
        decls.append(_call_struct(ctx, p))
        if p.method.results:
            decls.append(_returns_struct(ctx, p))
    decls.append(_stub_struct(ctx, plans))
    decls.append(_constructor(ctx))
    for p in plans:
        decls.append(_method_decl(ctx, p))

    logger.debug(
        "synthesized %s: %d method(s), %d foreign import(s), generic=%s",
        stub_name,
        len(plans),
        len(imports),
        model.generic,
    )
    return File(
        package=model.target_package_name,
        decls=tuple(decls),
        header=(HEADER,) if opts.header else (),
    )


def _import_decl(imports: dict[str, str], opts: GeneratorOptions) -> tuple[str, str, ImportDecl]:
    fixed_paths = {opts.locking_package, opts.options_package}
    foreign = {path: name for path, name in imports.items() if path not in fixed_paths}
    foreign_names = set(foreign.values())

    def fixed(path: str, fallback_alias: str) -> ImportSpec:
        local = imports.get(path) or last_segment(path)
        if local in foreign_names:
            logger.warning("import %s: %s is used by another package, aliasing as %s", path, local, fallback_alias)
            local = fallback_alias
        imports[path] = local
        return ImportSpec(path, None if local == last_segment(path) else local)

    sync_spec = fixed(opts.locking_package, "stubsync")
    options_spec = fixed(opts.options_package, "stuboptions")
    foreign_specs = tuple(ImportSpec(path, alias) for alias, path in ImportSet(foreign).specs())
    decl = ImportDecl(groups=((sync_spec,), (options_spec,), foreign_specs))
    return imports[opts.locking_package], imports[opts.options_package], decl


def _alloc(name: str, taken: set[str]) -> str:
    out = name
    while out in taken:
        out += "_"
    if out != name:
        logger.warning("stub field %s collides with a method or field, using %s", name, out)
    taken.add(out)
    return out


def _unique(names: list[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for i, n in enumerate(names):
        cand = n
        if cand in seen and cand != BLANK:
            cand = f"{n}{i}"
            while cand in seen:
                cand += "_"
            logger.warning("field %s is ambiguous, using %s", n, cand)
        seen.add(cand)
        out.append(cand)
    return tuple(out)


def _is_blank(name: str) -> bool:
    return not name or name == BLANK


def _plan_method(ctx: _Ctx, m: Method, taken: set[str]) -> _MethodPlan:
    used: set[str] = {RECEIVER, *_BODY_IDENTS, *(tp.name for tp in ctx.model.type_params)}

    param_locals: list[str] = []
    for i, p in enumerate(m.params):
        local = f"arg{i}" if _is_blank(p.name) else p.name
        while local in used:
            local += "_"
        used.add(local)
        param_locals.append(local)

    result_locals: tuple[str, ...] | None = None
    if any(r.named for r in m.results):
        out: list[str] = []
        for r in m.results:
            local = r.name if r.named and r.name else BLANK
            if local != BLANK:
                while local in used:
                    local += "_"
                used.add(local)
            out.append(local)
        result_locals = tuple(out)

    call_fields = _unique(
        [title(local if _is_blank(p.name) else p.name) for p, local in zip(m.params, param_locals)]
    )
    returns_fields = _unique(
        [
            title(r.name) if not _is_blank(r.name) else f"{title(base_type_name(r.type))}{i}"
            for i, r in enumerate(m.results)
        ]
    )

    plan = _MethodPlan(
        method=m,
        param_locals=tuple(param_locals),
        result_locals=result_locals,
        call_fields=call_fields,
        returns_fields=returns_fields,
        call_struct=f"{ctx.stub_name}{m.name}Call",
        returns_struct=f"{ctx.stub_name}{m.name}Returns",
        func_field=_alloc(f"{m.name}Func", taken),
        calls_field=_alloc(f"{m.name}Calls", taken),
        returns_field=_alloc(f"{m.name}Returns", taken) if m.results else "",
    )
    logger.debug("method %s: params=%s results=%s", m.name, plan.call_fields, plan.returns_fields)
    return plan


def _call_struct(ctx: _Ctx, p: _MethodPlan) -> TypeDecl:
    fields = tuple(Field((name,), ctx.typ(param.type)) for name, param in zip(p.call_fields, p.method.params))
    return TypeDecl(p.call_struct, StructType(fields), ctx.type_param_fields)


def _returns_struct(ctx: _Ctx, p: _MethodPlan) -> TypeDecl:
    fields = tuple(Field((name,), ctx.typ(r.type)) for name, r in zip(p.returns_fields, p.method.results))
    return TypeDecl(p.returns_struct, StructType(fields), ctx.type_param_fields)


def _hook_type(ctx: _Ctx, p: _MethodPlan) -> FuncType:
    """The method's own signature with source parameter names and the declared result names."""
    m = p.method
    last = len(m.params) - 1
    params_named = any(param.named for param in m.params)
    params = tuple(
        Field(
            (param.name or BLANK,) if params_named else (),
            ctx.param_typ(param.type, variadic=m.variadic and i == last),
        )
        for i, param in enumerate(m.params)
    )
    if p.result_locals is not None:
        results = tuple(Field((name,), ctx.typ(r.type)) for name, r in zip(p.result_locals, m.results))
    else:
        results = tuple(Field((), ctx.typ(r.type)) for r in m.results)
    return FuncType(params=params, results=results)


def _stub_struct(ctx: _Ctx, plans: list[_MethodPlan]) -> TypeDecl:
    fields: list[Field] = [
        Field((ctx.mu_field,), Selector(Ident(ctx.sync_local), "Mutex")),
        Field((ctx.locked_field,), Ident("bool")),
    ]
    for p in plans:
        fields.append(Field((p.func_field,), _hook_type(ctx, p)))
        fields.append(Field((p.calls_field,), ArrayType(ctx.inst(p.call_struct))))
        if p.method.results:
            fields.append(Field((p.returns_field,), ctx.inst(p.returns_struct)))
    return TypeDecl(ctx.stub_name, StructType(tuple(fields)), ctx.type_param_fields)


def _constructor(ctx: _Ctx) -> FuncDecl:
    stub = ctx.inst(ctx.stub_name)
    return FuncDecl(
        name=f"New{ctx.stub_name}",
        type=FuncType(
            params=(Field((OPTIONS_PARAM,), Selector(Ident(ctx.options_local), "StubOptions")),),
            results=(Field((), Star(stub)),),
            type_params=ctx.type_param_fields,
        ),
        body=Block(
            (
                ReturnStmt(
                    (
                        Unary(
                            "&",
                            CompositeLit(
                                stub,
                                (KeyValue(Ident(ctx.locked_field), sel(OPTIONS_PARAM, "WithLocking")),),
                            ),
                        ),
                    )
                ),
            )
        ),
    )


def _method_decl(ctx: _Ctx, p: _MethodPlan) -> FuncDecl:
    m = p.method
    last = len(m.params) - 1
    params = tuple(
        Field((local,), ctx.param_typ(param.type, variadic=m.variadic and i == last))
        for i, (local, param) in enumerate(zip(p.param_locals, m.params))
    )
    if p.result_locals is not None:
        results = tuple(Field((name,), ctx.typ(r.type)) for name, r in zip(p.result_locals, m.results))
    else:
        results = tuple(Field((), ctx.typ(r.type)) for r in m.results)

    body: list[Stmt] = [
        IfStmt(
            cond=sel(RECEIVER, ctx.locked_field),
            body=Block(
                (
                    ExprStmt(CallExpr(sel(RECEIVER, ctx.mu_field, "Lock"))),
                    DeferStmt(CallExpr(sel(RECEIVER, ctx.mu_field, "Unlock"))),
                )
            ),
        ),
        AssignStmt(
            (sel(RECEIVER, p.calls_field),),
            "=",
            (
                CallExpr(
                    Ident("append"),
                    (
                        sel(RECEIVER, p.calls_field),
                        CompositeLit(
                            ctx.inst(p.call_struct),
                            tuple(KeyValue(Ident(f), Ident(local)) for f, local in zip(p.call_fields, p.param_locals)),
                        ),
                    ),
                ),
            ),
        ),
    ]

    if m.results:
        hook_call = CallExpr(
            sel(RECEIVER, p.func_field),
            tuple(Ident(local) for local in p.param_locals),
            ellipsis=m.variadic and bool(m.params),
        )
        body.append(
            IfStmt(
                cond=BinaryExpr(sel(RECEIVER, p.func_field), "!=", Ident("nil")),
                body=Block((ReturnStmt((hook_call,)),)),
            )
        )
        body.append(ReturnStmt(tuple(sel(RECEIVER, p.returns_field, f) for f in p.returns_fields)))
    else:
        body.append(ReturnStmt())

    return FuncDecl(
        name=m.name,
        type=FuncType(params=params, results=results),
        body=Block(tuple(body)),
        recv=Field((RECEIVER,), Star(ctx.inst(ctx.stub_name))),
    )
