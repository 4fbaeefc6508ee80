from __future__ import annotations

import logging

from .model import InterfaceModel
from .typeref import (
    Array,
    Basic,
    Chan,
    Func,
    Interface,
    Map,
    Named,
    Pointer,
    Slice,
    TypeParam,
    TypeRef,
)

logger = logging.getLogger(__name__)


def last_segment(path: str) -> str:
    return path.rsplit("/", 1)[-1]


class ImportSet:
    """Import path -> local name, one entry per path.

    Writes through to `backing` so the interface model's `imports` mapping is the
    single source of truth. A local name already claimed by a different path is
    suffixed with a counter (`errors`, `errors2`, ...).
    """

    def __init__(self, backing: dict[str, str] | None = None):
        self._by_path: dict[str, str] = backing if backing is not None else {}

    def add(self, path: str, name: str) -> str:
        existing = self._by_path.get(path)
        if existing is not None:
            return existing

        local = name or last_segment(path)
        taken = set(self._by_path.values())
        if local in taken:
            i = 2
            while f"{local}{i}" in taken:
                i += 1
            logger.warning("import %s: local name %s is taken, using %s%d", path, local, local, i)
            local = f"{local}{i}"
        self._by_path[path] = local
        return local

    def specs(self) -> list[tuple[str | None, str]]:
        """(alias, path) pairs sorted by path; alias is None when it equals the last path segment."""
        out: list[tuple[str | None, str]] = []
        for path in sorted(self._by_path):
            local = self._by_path[path]
            out.append((None if local == last_segment(path) else local, path))
        return out

    def __len__(self) -> int:
        return len(self._by_path)


def collect_imports(
    t: TypeRef,
    *,
    target_path: str,
    imports: ImportSet,
    _seen: set[tuple] | None = None,
) -> None:
    """Record every foreign package `t` refers to, transitively."""
    seen = _seen if _seen is not None else set()

    if isinstance(t, Named):
        key = (t.pkg_path, t.name, t.type_args)
        if key in seen:
            return
        seen.add(key)
        if t.pkg_path and t.pkg_path != target_path:
            imports.add(t.pkg_path, t.pkg_name)
        for a in t.type_args:
            collect_imports(a, target_path=target_path, imports=imports, _seen=seen)
    elif isinstance(t, (Pointer, Slice, Array, Chan)):
        collect_imports(t.elem, target_path=target_path, imports=imports, _seen=seen)
    elif isinstance(t, Map):
        collect_imports(t.key, target_path=target_path, imports=imports, _seen=seen)
        collect_imports(t.value, target_path=target_path, imports=imports, _seen=seen)
    elif isinstance(t, Func):
        for v in (*t.params, *t.results):
            collect_imports(v.type, target_path=target_path, imports=imports, _seen=seen)
    elif isinstance(t, TypeParam):
        if t.constraint is not None:
            collect_imports(t.constraint, target_path=target_path, imports=imports, _seen=seen)
    elif isinstance(t, Interface):
        # Anonymous interfaces travel as text; the loader lists the packages it mentions.
        for path, name in t.packages:
            if path and path != target_path:
                imports.add(path, name)
    elif isinstance(t, Basic):
        return


def collect_model_imports(model: InterfaceModel) -> ImportSet:
    """Fill `model.imports` from every type the interface mentions."""
    imports = ImportSet(model.imports)
    target = model.target_package_path
    seen: set[tuple] = set()
    for tp in model.type_params:
        collect_imports(tp.constraint, target_path=target, imports=imports, _seen=seen)
    for m in model.methods:
        for v in (*m.params, *m.results):
            collect_imports(v.type, target_path=target, imports=imports, _seen=seen)
    logger.debug("%s: %d foreign import(s)", model.interface_name, len(imports))
    return imports
