from __future__ import annotations

import logging
from typing import Any, Iterable

from .errors import DuplicateError, NotFoundError, UnsupportedTypeError
from .loader.packages import Declaration, LoadedPackage
from .model import BLANK, InterfaceModel, Method, Param, Result, TypeParameter
from .typeref import EMPTY_INTERFACE, Slice, from_wire

logger = logging.getLogger(__name__)


def find_interface(packages: Iterable[LoadedPackage], name: str) -> tuple[LoadedPackage, Declaration]:
    """Locate the single package declaring interface `name`.

    Declarations of that name that are not interfaces are skipped.
    """
    packages = list(packages)
    found: list[tuple[LoadedPackage, Declaration]] = []
    for pkg in packages:
        decl = pkg.lookup(name)
        if decl is None:
            continue
        if not decl.is_interface:
            logger.debug("skipping %s.%s: %s is not an interface", pkg.path, name, decl.kind)
            continue
        found.append((pkg, decl))

    if len(found) > 1:
        a, b = found[0][0], found[1][0]
        raise DuplicateError(f"interface {name} is declared in more than one package: {a.path} and {b.path}")
    if not found:
        where = ", ".join(p.path for p in packages) or "<no packages>"
        raise NotFoundError(f"interface {name} not found in {where}")
    return found[0]


def resolve_interface(
    packages: Iterable[LoadedPackage],
    interface_name: str,
    *,
    target_package_name: str,
    target_package_path: str,
    typed_result_names: bool = False,
) -> InterfaceModel:
    pkg, decl = find_interface(packages, interface_name)
    model = build_model(
        pkg,
        decl,
        target_package_name=target_package_name,
        target_package_path=target_package_path,
        typed_result_names=typed_result_names,
    )
    logger.debug(
        "resolved %s.%s: %d method(s), %d type parameter(s)",
        pkg.path,
        interface_name,
        len(model.methods),
        len(model.type_params),
    )
    return model


def build_model(
    pkg: LoadedPackage,
    decl: Declaration,
    *,
    target_package_name: str,
    target_package_path: str,
    typed_result_names: bool = False,
) -> InterfaceModel:
    type_params: list[TypeParameter] = []
    for tp in decl.type_params:
        raw = tp.get("constraint")
        constraint = from_wire(raw) if raw is not None else EMPTY_INTERFACE
        type_params.append(TypeParameter(name=_name(tp, decl.name), constraint=constraint))

    methods = tuple(
        _method(m, decl.name, typed_result_names=typed_result_names) for m in decl.methods
    )
    return InterfaceModel(
        target_package_name=target_package_name,
        target_package_path=target_package_path,
        interface_name=decl.name,
        type_params=tuple(type_params),
        methods=methods,
        source_package_name=pkg.name,
        source_package_path=pkg.path,
    )


def _method(raw: dict[str, Any], iface: str, *, typed_result_names: bool) -> Method:
    name = _name(raw, iface)
    params: list[Param] = []
    for v in raw.get("params") or []:
        pname = v.get("name") or ""
        params.append(Param(name=pname or BLANK, type=from_wire(v.get("type")), named=bool(pname)))

    results: list[Result] = []
    for i, v in enumerate(raw.get("results") or []):
        rname = v.get("name") or ""
        if rname in ("", BLANK):
            default = "" if typed_result_names else f"R{i}"
            results.append(Result(name=default, type=from_wire(v.get("type")), named=False))
        else:
            results.append(Result(name=rname, type=from_wire(v.get("type"))))

    variadic = bool(raw.get("variadic", False))
    if variadic and (not params or not isinstance(params[-1].type, Slice)):
        raise UnsupportedTypeError(f"{iface}.{name}: variadic method without a trailing slice parameter")
    return Method(name=name, params=tuple(params), results=tuple(results), variadic=variadic)


def _name(raw: Any, iface: str) -> str:
    name = raw.get("name") if isinstance(raw, dict) else None
    if not isinstance(name, str) or not name:
        raise UnsupportedTypeError(f"{iface}: declaration entry without a name")
    return name
