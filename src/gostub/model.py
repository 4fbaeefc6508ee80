from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import LoadError
from .typeref import TypeRef, from_wire, to_wire

BLANK = "_"


@dataclass(frozen=True)
class Param:
    name: str
    type: TypeRef
    # False when the declaration leaves the parameter unnamed (name is then "_").
    named: bool = True


@dataclass(frozen=True)
class Result:
    name: str
    type: TypeRef
    # False when the declaration leaves the result unnamed; `name` then holds
    # the positional default (R{i}) or "" when typed result names are wanted.
    named: bool = True


@dataclass(frozen=True)
class TypeParameter:
    name: str
    constraint: TypeRef


@dataclass(frozen=True)
class Method:
    name: str
    params: tuple[Param, ...] = ()
    results: tuple[Result, ...] = ()
    # Last param is a Slice declared as `...T`.
    variadic: bool = False


@dataclass
class InterfaceModel:
    """Everything the synthesizer needs to know about one interface.

    Built by the resolver, `imports` filled in by the import collector, then
    treated as read-only.
    """

    target_package_name: str
    target_package_path: str
    interface_name: str
    type_params: tuple[TypeParameter, ...] = ()
    methods: tuple[Method, ...] = ()
    # import path -> preferred local name
    imports: dict[str, str] = field(default_factory=dict)
    source_package_name: str = ""
    source_package_path: str = ""

    @property
    def generic(self) -> bool:
        return bool(self.type_params)

    def to_wire(self) -> dict[str, Any]:
        return {
            "target_package_name": self.target_package_name,
            "target_package_path": self.target_package_path,
            "interface_name": self.interface_name,
            "source_package_name": self.source_package_name,
            "source_package_path": self.source_package_path,
            "type_params": [{"name": tp.name, "constraint": to_wire(tp.constraint)} for tp in self.type_params],
            "methods": [
                {
                    "name": m.name,
                    "params": [{"name": p.name, "type": to_wire(p.type), "named": p.named} for p in m.params],
                    "results": [{"name": r.name, "type": to_wire(r.type), "named": r.named} for r in m.results],
                    "variadic": m.variadic,
                }
                for m in self.methods
            ],
            "imports": dict(sorted(self.imports.items())),
        }

    @classmethod
    def from_wire(cls, obj: Any) -> "InterfaceModel":
        if not isinstance(obj, dict):
            raise LoadError("interface model: expected an object")
        try:
            type_params = tuple(
                TypeParameter(name=str(tp["name"]), constraint=from_wire(tp["constraint"]))
                for tp in obj.get("type_params", [])
            )
            methods = tuple(
                Method(
                    name=str(m["name"]),
                    params=tuple(
                        Param(name=str(p["name"]), type=from_wire(p["type"]), named=bool(p.get("named", True)))
                        for p in m.get("params", [])
                    ),
                    results=tuple(
                        Result(name=str(r["name"]), type=from_wire(r["type"]), named=bool(r.get("named", True)))
                        for r in m.get("results", [])
                    ),
                    variadic=bool(m.get("variadic", False)),
                )
                for m in obj.get("methods", [])
            )
            imports = obj.get("imports") or {}
            if not isinstance(imports, dict):
                raise LoadError("interface model: imports must be a mapping")
            return cls(
                target_package_name=str(obj["target_package_name"]),
                target_package_path=str(obj.get("target_package_path", "")),
                interface_name=str(obj["interface_name"]),
                type_params=type_params,
                methods=methods,
                imports={str(k): str(v) for k, v in imports.items()},
                source_package_name=str(obj.get("source_package_name", "")),
                source_package_path=str(obj.get("source_package_path", "")),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise LoadError(f"interface model: malformed field: {e}") from e
