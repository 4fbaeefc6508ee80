from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigError

DEFAULT_OPTIONS_PACKAGE = "github.com/phildrip/toe/options"
DEFAULT_LOCKING_PACKAGE = "sync"

GOFMT_MODES = ("auto", "always", "never")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class GeneratorOptions:
    options_package: str = DEFAULT_OPTIONS_PACKAGE
    locking_package: str = DEFAULT_LOCKING_PACKAGE
    typed_result_names: bool = False
    gofmt: str = "auto"
    go: str = "go"
    gofmt_bin: str = "gofmt"
    header: bool = True

    def __post_init__(self) -> None:
        if self.gofmt not in GOFMT_MODES:
            raise ConfigError(f"invalid gofmt mode {self.gofmt!r} (expected one of {', '.join(GOFMT_MODES)})")
        if not self.options_package.strip():
            raise ConfigError("options package import path must not be empty")
        if not self.locking_package.strip():
            raise ConfigError("locking package import path must not be empty")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides) -> "GeneratorOptions":
        """Build options from `GOSTUB_*` environment variables.

        Keyword overrides win over the environment; `None` overrides are ignored
        so CLI flags that were not given fall through.
        """
        env = os.environ if env is None else env
        values: dict[str, object] = {}

        if env.get("GOSTUB_OPTIONS_PACKAGE"):
            values["options_package"] = env["GOSTUB_OPTIONS_PACKAGE"]
        if env.get("GOSTUB_GOFMT"):
            values["gofmt"] = env["GOSTUB_GOFMT"].strip().lower()
        if env.get("GOSTUB_GO"):
            values["go"] = env["GOSTUB_GO"]
        if env.get("GOSTUB_GOFMT_BIN"):
            values["gofmt_bin"] = env["GOSTUB_GOFMT_BIN"]
        if "GOSTUB_TYPED_RESULT_NAMES" in env:
            values["typed_result_names"] = _parse_bool(
                "GOSTUB_TYPED_RESULT_NAMES", env["GOSTUB_TYPED_RESULT_NAMES"]
            )

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]


def _parse_bool(name: str, raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {raw!r}")
