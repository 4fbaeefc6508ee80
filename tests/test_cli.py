import importlib
from pathlib import Path

import pytest


def _basic(name):
    return {"kind": "basic", "name": name}


def _packages(root: Path):
    from gostub.loader.packages import Declaration, LoadedPackage

    store = Declaration(
        name="Store",
        kind="interface",
        methods=[
            {
                "name": "Get",
                "params": [{"name": "key", "type": _basic("string")}],
                "results": [{"name": "", "type": _basic("string")}, {"name": "", "type": _basic("error")}],
            }
        ],
    )
    cache = Declaration(
        name="Cache",
        kind="interface",
        type_params=[{"name": "T", "constraint": _basic("any")}],
        methods=[],
    )
    return [
        LoadedPackage(
            name="app",
            path="example.com/app",
            dir=str(root),
            module_path="example.com/app",
            module_dir=str(root),
            decls=(store, cache, Declaration(name="Config", kind="type")),
        )
    ]


def _patch_loader(monkeypatch, module: str, root: Path):
    # The package re-exports `generate`, which shadows the submodule attribute.
    monkeypatch.setattr(importlib.import_module(module), "load_packages", lambda **kw: _packages(root))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("GOSTUB_OPTIONS_PACKAGE", "GOSTUB_TYPED_RESULT_NAMES", "GOSTUB_GO", "GOSTUB_GOFMT_BIN"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GOSTUB_GOFMT", "never")


def test_cli_version(capsys):
    from gostub.cli import main

    main(["version"])
    assert capsys.readouterr().out.strip()


def test_cli_gen_writes_stub(tmp_path, monkeypatch, capsys):
    from gostub.cli import main

    _patch_loader(monkeypatch, "gostub.generate", tmp_path)
    out = tmp_path / "stubs" / "stub_store.go"

    main(["gen", str(tmp_path), "Store", "-o", str(out), "--options-package", "example.com/app/stubopts"])

    assert capsys.readouterr().out.strip() == f"Stub generated in {out.absolute()}"
    src = out.read_text(encoding="utf-8")
    assert '\t"example.com/app/stubopts"\n' in src
    assert "func (s *StubStore) Get(key string) (string, error) {" in src


def test_cli_gen_stdout_and_typed_result_names(tmp_path, monkeypatch, capsys):
    from gostub.cli import main

    _patch_loader(monkeypatch, "gostub.generate", tmp_path)

    main(["gen", str(tmp_path), "Store", "--stub-dir", str(tmp_path / "fakes"), "--stdout", "--typed-result-names"])

    out = capsys.readouterr().out
    assert out.startswith("// Code generated by gostub. DO NOT EDIT.\n\npackage fakes\n")
    assert "String0 string" in out
    assert "Error1  error" in out
    assert not (tmp_path / "fakes").exists()


def test_cli_gen_missing_interface_exits_with_error(tmp_path, monkeypatch):
    from gostub.cli import main

    _patch_loader(monkeypatch, "gostub.generate", tmp_path)

    with pytest.raises(SystemExit) as ei:
        main(["gen", str(tmp_path), "Missing", "-o", str(tmp_path / "stubs" / "x.go")])
    assert str(ei.value.code).startswith("error: [resolve] interface Missing not found")
    assert not (tmp_path / "stubs").exists()


def test_cli_render_from_snapshot(tmp_path, monkeypatch, capsys):
    from gostub.cli import main

    _patch_loader(monkeypatch, "gostub.generate", tmp_path)
    snap = tmp_path / "store.msgpack"
    main(["gen", str(tmp_path), "Store", "--stdout", "--dump-model", str(snap)])
    generated = capsys.readouterr().out

    out = tmp_path / "rendered.go"
    main(["render", str(snap), "-o", str(out)])
    assert capsys.readouterr().out.strip() == f"Stub generated in {out}"
    assert out.read_text(encoding="utf-8") == generated


def test_cli_render_requires_destination(tmp_path):
    from gostub.cli import main

    with pytest.raises(SystemExit) as ei:
        main(["render", str(tmp_path / "model.msgpack")])
    assert "requires -o/--output or --stdout" in str(ei.value.code)


def test_cli_render_bad_snapshot(tmp_path):
    from gostub.cli import main

    snap = tmp_path / "bad.msgpack"
    snap.write_bytes(b"\xc1")
    with pytest.raises(SystemExit) as ei:
        main(["render", str(snap), "--stdout"])
    assert str(ei.value.code).startswith("error: [load] invalid model snapshot")


def test_cli_list_interfaces(tmp_path, monkeypatch, capsys):
    from gostub.cli import main

    _patch_loader(monkeypatch, "gostub.loader.scan", tmp_path)

    main(["list", str(tmp_path)])

    assert capsys.readouterr().out.splitlines() == [
        "example.com/app.Store\t1 method(s)",
        "example.com/app.Cache[...]\t0 method(s)",
    ]


def test_cli_options_package(tmp_path, capsys):
    from gostub.cli import main

    main(["options", str(tmp_path / "options")])

    path = tmp_path / "options" / "options.go"
    assert capsys.readouterr().out.strip() == str(path)
    assert "type StubOptions struct {" in path.read_text(encoding="utf-8")
