from __future__ import annotations

import logging
import shutil
import subprocess

from .config import GeneratorOptions
from .errors import RenderError
from .gosyntax import File
from .printer import print_file

logger = logging.getLogger(__name__)


def render(f: File, *, opts: GeneratorOptions | None = None) -> str:
    """Print `f` as Go source, optionally normalized through `gofmt`.

    The printer already emits gofmt layout; the gofmt pass is a check that the
    result parses. With mode "auto" it only runs when gofmt is on PATH.
    """
    opts = opts or GeneratorOptions()
    src = print_file(f)

    if opts.gofmt == "never":
        return src
    if opts.gofmt == "auto" and shutil.which(opts.gofmt_bin) is None:
        logger.warning("gofmt (%s) not found on PATH; using printer output as is", opts.gofmt_bin)
        return src
    return gofmt(src, gofmt_bin=opts.gofmt_bin)


def gofmt(src: str, *, gofmt_bin: str = "gofmt") -> str:
    try:
        proc = subprocess.run(
            [gofmt_bin],
            input=src.encode("utf-8"),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except FileNotFoundError as e:
        raise RenderError(f"gofmt not found (`{gofmt_bin}` is missing from PATH)") from e

    if proc.returncode != 0:
        stderr = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
        raise RenderError(f"gofmt rejected the generated source\n{stderr}")

    out = (proc.stdout or b"").decode("utf-8", errors="replace")
    if out != src:
        logger.debug("gofmt adjusted the printer output")
    return out
