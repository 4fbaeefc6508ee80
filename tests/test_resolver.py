import pytest


def _basic(name):
    return {"kind": "basic", "name": name}


def _pkg(path, decls, *, name=None):
    from gostub.loader.packages import LoadedPackage

    return LoadedPackage(
        name=name or path.rsplit("/", 1)[-1],
        path=path,
        dir=f"/src/{path}",
        module_path="example.com/app",
        module_dir="/src/example.com/app",
        decls=tuple(decls),
    )


def _iface(name, methods=(), type_params=()):
    from gostub.loader.packages import Declaration

    return Declaration(name=name, kind="interface", methods=list(methods), type_params=list(type_params))


def _calculate():
    return {
        "name": "Calculate",
        "params": [{"name": "x", "type": _basic("int")}, {"name": "y", "type": _basic("int")}],
        "results": [{"name": "", "type": _basic("int")}, {"name": "", "type": _basic("error")}],
        "variadic": False,
    }


def test_resolve_builds_model_with_default_names():
    from gostub.model import Param, Result
    from gostub.resolver import resolve_interface
    from gostub.typeref import Basic

    pkg = _pkg(
        "example.com/app",
        [
            _iface(
                "MyInterface",
                [
                    _calculate(),
                    {"name": "Touch", "params": [{"name": "", "type": _basic("string")}], "results": []},
                ],
            )
        ],
    )
    model = resolve_interface(
        [pkg],
        "MyInterface",
        target_package_name="stubs",
        target_package_path="example.com/app/stubs",
    )
    assert model.interface_name == "MyInterface"
    assert model.source_package_path == "example.com/app"
    assert model.target_package_name == "stubs"
    assert [m.name for m in model.methods] == ["Calculate", "Touch"]
    calc = model.methods[0]
    assert calc.params == (Param("x", Basic("int")), Param("y", Basic("int")))
    assert calc.results == (Result("R0", Basic("int"), named=False), Result("R1", Basic("error"), named=False))
    assert model.methods[1].params == (Param("_", Basic("string"), named=False),)
    assert model.imports == {}


def test_resolve_typed_result_names_leaves_names_empty():
    from gostub.resolver import resolve_interface

    pkg = _pkg("example.com/app", [_iface("MyInterface", [_calculate()])])
    model = resolve_interface(
        [pkg],
        "MyInterface",
        target_package_name="stubs",
        target_package_path="",
        typed_result_names=True,
    )
    assert [r.name for r in model.methods[0].results] == ["", ""]


def test_resolve_generic_interface_type_params():
    from gostub.model import TypeParameter
    from gostub.resolver import resolve_interface
    from gostub.typeref import Basic, EMPTY_INTERFACE, TypeParam

    pkg = _pkg(
        "example.com/app",
        [
            _iface(
                "Cache",
                [
                    {
                        "name": "Get",
                        "params": [{"name": "key", "type": {"kind": "typeparam", "name": "K"}}],
                        "results": [{"name": "", "type": {"kind": "typeparam", "name": "V"}}],
                    }
                ],
                type_params=[
                    {"name": "K", "constraint": _basic("comparable")},
                    {"name": "V", "constraint": {"kind": "interface", "text": ""}},
                ],
            )
        ],
    )
    model = resolve_interface([pkg], "Cache", target_package_name="app", target_package_path="example.com/app")
    assert model.generic
    assert model.type_params == (
        TypeParameter("K", Basic("comparable")),
        TypeParameter("V", EMPTY_INTERFACE),
    )
    assert model.methods[0].params[0].type == TypeParam("K")


def test_resolve_variadic_method():
    from gostub.resolver import resolve_interface
    from gostub.typeref import Slice

    pkg = _pkg(
        "example.com/app",
        [
            _iface(
                "Logger",
                [
                    {
                        "name": "Logf",
                        "params": [
                            {"name": "format", "type": _basic("string")},
                            {"name": "args", "type": {"kind": "slice", "elem": _basic("any")}},
                        ],
                        "results": [],
                        "variadic": True,
                    }
                ],
            )
        ],
    )
    m = resolve_interface([pkg], "Logger", target_package_name="stubs", target_package_path="").methods[0]
    assert m.variadic
    assert isinstance(m.params[-1].type, Slice)


def test_resolve_not_found():
    from gostub.errors import NotFoundError
    from gostub.resolver import resolve_interface

    pkg = _pkg("example.com/app", [_iface("Other")])
    with pytest.raises(NotFoundError, match=r"interface Missing not found in example.com/app"):
        resolve_interface([pkg], "Missing", target_package_name="stubs", target_package_path="")


def test_resolve_non_interface_is_not_found():
    from gostub.errors import NotFoundError
    from gostub.loader.packages import Declaration
    from gostub.resolver import resolve_interface

    pkg = _pkg("example.com/app", [Declaration(name="Config", kind="type")])
    with pytest.raises(NotFoundError):
        resolve_interface([pkg], "Config", target_package_name="stubs", target_package_path="")


def test_resolve_skips_non_interface_when_another_package_has_the_interface():
    from gostub.loader.packages import Declaration
    from gostub.resolver import find_interface

    a = _pkg("example.com/app/a", [Declaration(name="Store", kind="type")])
    b = _pkg("example.com/app/b", [_iface("Store")])
    pkg, decl = find_interface([a, b], "Store")
    assert pkg.path == "example.com/app/b"
    assert decl.is_interface


def test_resolve_duplicate_names_both_packages():
    from gostub.errors import DuplicateError
    from gostub.resolver import find_interface

    a = _pkg("example.com/app/a", [_iface("Store")])
    b = _pkg("example.com/app/b", [_iface("Store")])
    with pytest.raises(DuplicateError) as ei:
        find_interface([a, b], "Store")
    assert "example.com/app/a" in str(ei.value)
    assert "example.com/app/b" in str(ei.value)


def test_resolve_unsupported_type_in_signature():
    from gostub.errors import UnsupportedTypeError
    from gostub.resolver import resolve_interface

    pkg = _pkg(
        "example.com/app",
        [
            _iface(
                "Weird",
                [
                    {
                        "name": "Do",
                        "params": [{"name": "v", "type": {"kind": "unsupported", "text": "struct{}"}}],
                        "results": [],
                    }
                ],
            )
        ],
    )
    with pytest.raises(UnsupportedTypeError):
        resolve_interface([pkg], "Weird", target_package_name="stubs", target_package_path="")


def test_resolve_blank_result_name_is_unnamed():
    from gostub.model import Result
    from gostub.resolver import resolve_interface
    from gostub.typeref import Basic

    pkg = _pkg(
        "example.com/app",
        [
            _iface(
                "Doer",
                [
                    {
                        "name": "Do",
                        "params": [],
                        "results": [{"name": "n", "type": _basic("int")}, {"name": "_", "type": _basic("error")}],
                    }
                ],
            )
        ],
    )
    m = resolve_interface([pkg], "Doer", target_package_name="stubs", target_package_path="").methods[0]
    assert m.results == (Result("n", Basic("int")), Result("R1", Basic("error"), named=False))
