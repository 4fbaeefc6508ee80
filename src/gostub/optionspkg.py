"""Source of the Go package that declares `StubOptions`.

Generated constructors take a `StubOptions` value from the options package
(`GeneratorOptions.options_package`). Projects that do not depend on a
published copy can vendor one with `gostub options <dir>`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .generate import write_stub
from .loader.target import sanitize_package_name

logger = logging.getLogger(__name__)

OPTIONS_FILE = "options.go"


def options_source(package_name: str = "options") -> str:
    return "\n".join(
        [
            f"// Package {package_name} configures stubs generated by gostub.",
            f"package {package_name}",
            "",
            "// StubOptions is passed to NewStub* constructors.",
            "type StubOptions struct {",
            "\t// WithLocking serializes every method call on the stub with a mutex.",
            "\tWithLocking bool",
            "}",
            "",
        ]
    )


def write_options_package(out_dir: Path, *, package_name: str | None = None) -> Path:
    out_dir = Path(out_dir)
    name = package_name or sanitize_package_name(out_dir.resolve().name)
    path = out_dir / OPTIONS_FILE
    write_stub(path, options_source(name))
    logger.info("options package written: %s", path)
    return path
