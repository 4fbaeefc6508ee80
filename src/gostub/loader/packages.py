from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import LoadError


@dataclass(frozen=True)
class Declaration:
    """One top-level declaration as reported by the Go loader helper.

    `type_params` and `methods` stay in wire form; they are decoded into
    TypeRefs only for the interface that is actually stubbed.
    """

    name: str
    kind: str  # interface, constraint, type, func, var, const
    type_params: list[dict[str, Any]] = field(default_factory=list)
    methods: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"


@dataclass(frozen=True)
class LoadedPackage:
    name: str
    path: str
    dir: str
    module_path: str = ""
    module_dir: str = ""
    errors: tuple[str, ...] = ()
    decls: tuple[Declaration, ...] = ()

    def lookup(self, name: str) -> Declaration | None:
        for d in self.decls:
            if d.name == name:
                return d
        return None

    def interfaces(self) -> list[Declaration]:
        return [d for d in self.decls if d.is_interface]


def parse_loader_output(obj: Any) -> list[LoadedPackage]:
    """Turn the helper's JSON document into packages, first occurrence of a path wins."""
    if not isinstance(obj, dict):
        raise LoadError("go loader output: expected an object")
    raw = obj.get("packages")
    if not isinstance(raw, list):
        raise LoadError("go loader output: missing packages list")

    out: list[LoadedPackage] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        path = item.get("path")
        name = item.get("name")
        if not isinstance(path, str) or not isinstance(name, str):
            continue
        if path in seen:
            continue
        seen.add(path)

        errors = item.get("errors") or []
        decls: list[Declaration] = []
        for d in item.get("decls") or []:
            if not isinstance(d, dict):
                continue
            dname = d.get("name")
            kind = d.get("kind")
            if not isinstance(dname, str) or not isinstance(kind, str):
                continue
            tps = d.get("type_params") or []
            methods = d.get("methods") or []
            if not isinstance(tps, list) or not isinstance(methods, list):
                raise LoadError(f"go loader output: malformed declaration {dname} in {path}")
            decls.append(Declaration(name=dname, kind=kind, type_params=list(tps), methods=list(methods)))

        out.append(
            LoadedPackage(
                name=name,
                path=path,
                dir=str(item.get("dir") or ""),
                module_path=str(item.get("module_path") or ""),
                module_dir=str(item.get("module_dir") or ""),
                errors=tuple(str(e) for e in errors if e),
                decls=tuple(decls),
            )
        )
    return out
