"""Pipeline driver: load -> resolve -> collect -> synthesize -> render -> write.

Each step runs inside `phase`, which tags escaping GoStubErrors with the step
name. Nothing is written unless every earlier step succeeded.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .codec import write_model
from .config import GeneratorOptions
from .errors import GoStubError, OutputError
from .imports import collect_model_imports
from .loader.scan import load_packages
from .loader.target import DEFAULT_STUB_DIR, default_output_file, derive_target
from .model import InterfaceModel
from .render import render
from .resolver import find_interface, resolve_interface
from .synthesize import synthesize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedStub:
    model: InterfaceModel
    source: str
    # None when the stub was not written to disk.
    output_file: Path | None = None


@contextmanager
def phase(name: str) -> Iterator[None]:
    try:
        yield
    except GoStubError as e:
        if e.phase is None:
            e.phase = name
        raise


def generate(
    *,
    input_dir: Path,
    interface_name: str,
    output_file: Path | None = None,
    stub_dir: str | Path = DEFAULT_STUB_DIR,
    test_package: bool = False,
    recursive: bool = False,
    package_name: str | None = None,
    opts: GeneratorOptions | None = None,
    write: bool = True,
    dump_model: Path | None = None,
) -> GeneratedStub:
    """Generate the stub for `interface_name` declared under `input_dir`.

    `output_file` defaults to `<stub_dir>/stub_<lower(name)>.go` (`_test.go` with
    `test_package`). With `write=False` the source is only returned.
    """
    opts = opts or GeneratorOptions.from_env()
    if output_file is None:
        output_file = default_output_file(interface_name, stub_dir=stub_dir, test_package=test_package)

    with phase("load"):
        packages = load_packages(input_dir=Path(input_dir), name=interface_name, recursive=recursive, go=opts.go)

    with phase("resolve"):
        source_pkg, _ = find_interface(packages, interface_name)
        target = derive_target(
            source=source_pkg,
            output_file=Path(output_file),
            package_name=package_name,
            test_package=test_package,
        )
        model = resolve_interface(
            packages,
            interface_name,
            target_package_name=target.package_name,
            target_package_path=target.package_path,
            typed_result_names=opts.typed_result_names,
        )

    source = render_model(model, opts=opts)

    if dump_model is not None:
        with phase("write"):
            try:
                write_model(Path(dump_model), model)
            except OSError as e:
                raise OutputError(f"cannot write model snapshot {dump_model}: {e}") from e
            logger.info("model snapshot written: %s", dump_model)

    if not write:
        return GeneratedStub(model=model, source=source)

    with phase("write"):
        write_stub(target.output_file, source)
    logger.info("stub written: %s", target.output_file)
    return GeneratedStub(model=model, source=source, output_file=target.output_file)


def render_model(model: InterfaceModel, *, opts: GeneratorOptions | None = None) -> str:
    """Collect imports, synthesize and render an already resolved model."""
    opts = opts or GeneratorOptions.from_env()
    with phase("collect"):
        collect_model_imports(model)
    with phase("synthesize"):
        f = synthesize(model, opts=opts)
    with phase("render"):
        return render(f, opts=opts)


def write_stub(path: Path, source: str) -> None:
    """Write `source` to `path` atomically, creating parent directories."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(f"cannot create output directory {path.parent}: {e}") from e

    try:
        fd, tmp = tempfile.mkstemp(prefix=path.name + ".", dir=str(path.parent))
    except OSError as e:
        raise OutputError(f"cannot write {path}: {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(source)
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except OSError as e:
        raise OutputError(f"cannot write {path}: {e}") from e
    finally:
        try:
            if os.path.exists(tmp):
                os.unlink(tmp)
        except OSError:
            pass
