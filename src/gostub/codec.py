"""MessagePack snapshots of resolved interface models (format 1).

A snapshot decouples loading from rendering: `gostub gen --dump-model` writes
one, `gostub render` turns it back into a stub without a Go toolchain.
"""

from __future__ import annotations

from pathlib import Path

import msgpack

from .errors import LoadError
from .model import InterfaceModel

SNAPSHOT_FORMAT = 1


def encode_model(model: InterfaceModel) -> bytes:
    payload = {
        "format": SNAPSHOT_FORMAT,
        "model": model.to_wire(),
    }
    return msgpack.packb(payload, use_bin_type=True)


def decode_model(payload: bytes) -> InterfaceModel:
    try:
        obj = msgpack.unpackb(payload, raw=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise LoadError(f"invalid model snapshot: {e}") from e

    if not isinstance(obj, dict) or "model" not in obj:
        raise LoadError("invalid model snapshot: missing model")
    fmt = obj.get("format")
    if fmt != SNAPSHOT_FORMAT:
        raise LoadError(f"unsupported model snapshot format: {fmt!r}")
    return InterfaceModel.from_wire(obj["model"])


def write_model(path: Path, model: InterfaceModel) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_model(model))


def read_model(path: Path) -> InterfaceModel:
    try:
        payload = path.read_bytes()
    except OSError as e:
        raise LoadError(f"cannot read model snapshot {path}: {e}") from e
    return decode_model(payload)
