"""Closed description of Go types as seen in interface signatures.

`TypeRef` is a tagged union of frozen dataclasses. The wire form (plain dicts,
see `from_wire`/`to_wire`) is what the Go loader helper prints as JSON and what
model snapshots store as MessagePack.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .errors import UnsupportedTypeError

# Package qualifiers inside the text of anonymous interfaces are written as
# QUALIFIER_MARK + path + QUALIFIER_MARK + "." by the loader.
QUALIFIER_MARK = "\x01"


class ChanDir(str, Enum):
    SEND = "send"
    RECV = "recv"
    BOTH = "both"


@dataclass(frozen=True)
class Basic:
    name: str


@dataclass(frozen=True)
class Named:
    pkg_path: str
    pkg_name: str
    name: str
    type_args: tuple["TypeRef", ...] = ()


@dataclass(frozen=True)
class Pointer:
    elem: "TypeRef"


@dataclass(frozen=True)
class Slice:
    elem: "TypeRef"


@dataclass(frozen=True)
class Array:
    length: int
    elem: "TypeRef"


@dataclass(frozen=True)
class Map:
    key: "TypeRef"
    value: "TypeRef"


@dataclass(frozen=True)
class Chan:
    dir: ChanDir
    elem: "TypeRef"


@dataclass(frozen=True)
class FuncVar:
    # Empty when the signature does not name the variable.
    name: str
    type: "TypeRef"


@dataclass(frozen=True)
class Func:
    params: tuple[FuncVar, ...] = ()
    results: tuple[FuncVar, ...] = ()
    # When set, the last param is a Slice written as `...T` in source.
    variadic: bool = False


@dataclass(frozen=True)
class Interface:
    # Empty text is the empty interface; otherwise the textual form of the
    # interface with marked package qualifiers (see QUALIFIER_MARK).
    text: str = ""
    packages: tuple[tuple[str, str], ...] = ()

    @property
    def empty(self) -> bool:
        return not self.text


@dataclass(frozen=True)
class TypeParam:
    name: str
    constraint: "TypeRef | None" = None


TypeRef = Union[Basic, Named, Pointer, Slice, Array, Map, Chan, Func, Interface, TypeParam]

EMPTY_INTERFACE = Interface()


def base_type_name(t: TypeRef) -> str:
    """Simple base name used to derive field names for unnamed results."""
    if isinstance(t, (Pointer, Slice, Array, Chan)):
        return base_type_name(t.elem)
    if isinstance(t, (Basic, Named, TypeParam)):
        return t.name
    if isinstance(t, Map):
        return "Map"
    if isinstance(t, Interface):
        return "Interface"
    return "Any"


def from_wire(obj: Any) -> TypeRef:
    if not isinstance(obj, dict):
        raise UnsupportedTypeError(f"type: expected object, got {type(obj).__name__}")
    kind = obj.get("kind")

    if kind == "basic":
        return Basic(name=_str(obj, "name"))
    if kind == "named":
        args = obj.get("args") or []
        if not isinstance(args, list):
            raise UnsupportedTypeError("named type: args must be a list")
        return Named(
            pkg_path=_str(obj, "path", allow_empty=True),
            pkg_name=_str(obj, "pkg", allow_empty=True),
            name=_str(obj, "name"),
            type_args=tuple(from_wire(a) for a in args),
        )
    if kind == "pointer":
        return Pointer(elem=from_wire(obj.get("elem")))
    if kind == "slice":
        return Slice(elem=from_wire(obj.get("elem")))
    if kind == "array":
        length = obj.get("len")
        if not isinstance(length, int) or isinstance(length, bool) or length < 0:
            raise UnsupportedTypeError(f"array type: invalid length {length!r}")
        return Array(length=length, elem=from_wire(obj.get("elem")))
    if kind == "map":
        return Map(key=from_wire(obj.get("key")), value=from_wire(obj.get("value")))
    if kind == "chan":
        raw_dir = obj.get("dir", "both")
        try:
            d = ChanDir(raw_dir)
        except ValueError:
            raise UnsupportedTypeError(f"chan type: invalid direction {raw_dir!r}") from None
        return Chan(dir=d, elem=from_wire(obj.get("elem")))
    if kind == "func":
        return Func(
            params=_vars_from_wire(obj.get("params")),
            results=_vars_from_wire(obj.get("results")),
            variadic=bool(obj.get("variadic", False)),
        )
    if kind == "interface":
        pkgs = obj.get("packages") or []
        out: list[tuple[str, str]] = []
        for p in pkgs:
            if (
                not isinstance(p, (list, tuple))
                or len(p) != 2
                or not all(isinstance(x, str) for x in p)
            ):
                raise UnsupportedTypeError("interface type: packages must be [path, name] pairs")
            out.append((p[0], p[1]))
        return Interface(text=_str(obj, "text", allow_empty=True), packages=tuple(out))
    if kind == "typeparam":
        c = obj.get("constraint")
        return TypeParam(name=_str(obj, "name"), constraint=from_wire(c) if c is not None else None)
    if kind == "unsupported":
        raise UnsupportedTypeError(f"unsupported type in signature: {obj.get('text', '?')}")
    raise UnsupportedTypeError(f"unknown type kind {kind!r}")


def to_wire(t: TypeRef) -> dict[str, Any]:
    if isinstance(t, Basic):
        return {"kind": "basic", "name": t.name}
    if isinstance(t, Named):
        out: dict[str, Any] = {"kind": "named", "path": t.pkg_path, "pkg": t.pkg_name, "name": t.name}
        if t.type_args:
            out["args"] = [to_wire(a) for a in t.type_args]
        return out
    if isinstance(t, Pointer):
        return {"kind": "pointer", "elem": to_wire(t.elem)}
    if isinstance(t, Slice):
        return {"kind": "slice", "elem": to_wire(t.elem)}
    if isinstance(t, Array):
        return {"kind": "array", "len": t.length, "elem": to_wire(t.elem)}
    if isinstance(t, Map):
        return {"kind": "map", "key": to_wire(t.key), "value": to_wire(t.value)}
    if isinstance(t, Chan):
        return {"kind": "chan", "dir": t.dir.value, "elem": to_wire(t.elem)}
    if isinstance(t, Func):
        return {
            "kind": "func",
            "params": [{"name": v.name, "type": to_wire(v.type)} for v in t.params],
            "results": [{"name": v.name, "type": to_wire(v.type)} for v in t.results],
            "variadic": t.variadic,
        }
    if isinstance(t, Interface):
        return {"kind": "interface", "text": t.text, "packages": [list(p) for p in t.packages]}
    if isinstance(t, TypeParam):
        out = {"kind": "typeparam", "name": t.name}
        if t.constraint is not None:
            out["constraint"] = to_wire(t.constraint)
        return out
    raise UnsupportedTypeError(f"cannot encode {type(t).__name__} as a type")


def _vars_from_wire(raw: Any) -> tuple[FuncVar, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise UnsupportedTypeError("func type: params/results must be a list")
    out: list[FuncVar] = []
    for v in raw:
        if not isinstance(v, dict):
            raise UnsupportedTypeError("func type: expected {name, type} objects")
        name = v.get("name") or ""
        if not isinstance(name, str):
            raise UnsupportedTypeError("func type: variable name must be a string")
        out.append(FuncVar(name=name, type=from_wire(v.get("type"))))
    return tuple(out)


def _str(obj: dict[str, Any], key: str, *, allow_empty: bool = False) -> str:
    v = obj.get(key, "")
    if not isinstance(v, str) or (not v and not allow_empty):
        raise UnsupportedTypeError(f"{obj.get('kind', 'type')}: missing or invalid {key!r}")
    return v
