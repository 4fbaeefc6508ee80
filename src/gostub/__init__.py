"""gostub: generate type-faithful test stubs for Go interfaces."""

from __future__ import annotations

from . import errors
from .config import GeneratorOptions
from .generate import GeneratedStub, generate, render_model

__all__ = [
    "GeneratedStub",
    "GeneratorOptions",
    "errors",
    "generate",
    "render_model",
]
