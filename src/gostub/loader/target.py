from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from ..errors import ConfigError
from .packages import LoadedPackage

logger = logging.getLogger(__name__)

DEFAULT_STUB_DIR = "stubs"
TEST_SUFFIX = "_test"

_GO_KEYWORDS = frozenset(
    {
        "break", "case", "chan", "const", "continue", "default", "defer", "else",
        "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
        "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
    }
)

_NOT_IDENT = re.compile(r"[^0-9A-Za-z_]+")


@dataclass(frozen=True)
class Target:
    output_file: Path
    package_name: str
    package_path: str


def default_output_file(interface_name: str, *, stub_dir: str | Path = DEFAULT_STUB_DIR, test_package: bool = False) -> Path:
    """`stubs/stub_<lower(name)>.go` (or `..._test.go`), relative to the working directory."""
    suffix = "_test.go" if test_package else ".go"
    return Path(stub_dir) / f"stub_{interface_name.lower()}{suffix}"


def sanitize_package_name(raw: str) -> str:
    name = _NOT_IDENT.sub("_", raw).strip("_").lower()
    if not name:
        name = "stubs"
    if name[0].isdigit():
        name = "_" + name
    if name in _GO_KEYWORDS:
        name += "_"
    return name


def derive_target(
    *,
    source: LoadedPackage,
    output_file: Path,
    package_name: str | None = None,
    test_package: bool = False,
) -> Target:
    """Work out the package the stub file will belong to.

    The name comes from `package_name`, else the source package when the stub
    lands next to it, else the output directory. The path is the module path
    plus the output directory relative to the module root, or empty when the
    output lies outside the source module.
    """
    output_file = Path(output_file).absolute()
    out_dir = output_file.parent
    source_dir = Path(source.dir).resolve() if source.dir else None
    same_dir = source_dir is not None and _same_path(out_dir, source_dir)

    if package_name:
        if not re.fullmatch(r"[A-Za-z_][0-9A-Za-z_]*", package_name) or package_name in _GO_KEYWORDS:
            raise ConfigError(f"invalid Go package name: {package_name!r}")
        name = package_name
    elif same_dir:
        name = source.name
    else:
        name = sanitize_package_name(out_dir.name)

    path = ""
    if same_dir:
        path = source.path
    elif source.module_path and source.module_dir:
        rel = _relative_to(out_dir, Path(source.module_dir).resolve())
        if rel is not None:
            path = source.module_path if rel == "." else f"{source.module_path}/{rel}"

    if test_package:
        if not name.endswith(TEST_SUFFIX):
            name += TEST_SUFFIX
        if path:
            path += TEST_SUFFIX

    logger.debug("target package %s (%s) for %s", name, path or "<outside module>", output_file)
    return Target(output_file=output_file, package_name=name, package_path=path)


def _same_path(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False


def _relative_to(p: Path, root: Path) -> str | None:
    # Output directories may not exist yet; resolve the deepest existing ancestor.
    existing = p
    tail: list[str] = []
    while not existing.exists() and existing.parent != existing:
        tail.append(existing.name)
        existing = existing.parent
    resolved = existing.resolve().joinpath(*reversed(tail))
    try:
        rel = resolved.relative_to(root)
    except ValueError:
        return None
    return rel.as_posix()
