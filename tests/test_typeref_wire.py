import pytest


def test_from_wire_nested_types():
    from gostub.typeref import Basic, Chan, ChanDir, Map, Named, Pointer, Slice, from_wire

    t = from_wire(
        {
            "kind": "map",
            "key": {"kind": "basic", "name": "string"},
            "value": {
                "kind": "slice",
                "elem": {
                    "kind": "pointer",
                    "elem": {"kind": "named", "path": "example.com/app/model", "pkg": "model", "name": "User"},
                },
            },
        }
    )
    assert t == Map(Basic("string"), Slice(Pointer(Named("example.com/app/model", "model", "User"))))

    c = from_wire({"kind": "chan", "dir": "recv", "elem": {"kind": "basic", "name": "int"}})
    assert c == Chan(ChanDir.RECV, Basic("int"))


def test_from_wire_generic_named_and_typeparam():
    from gostub.typeref import Basic, Named, TypeParam, from_wire

    t = from_wire(
        {
            "kind": "named",
            "path": "example.com/app",
            "pkg": "app",
            "name": "Pair",
            "args": [{"kind": "typeparam", "name": "K"}, {"kind": "basic", "name": "int"}],
        }
    )
    assert t == Named("example.com/app", "app", "Pair", (TypeParam("K"), Basic("int")))


def test_from_wire_func_keeps_names_and_variadic():
    from gostub.typeref import Basic, Func, FuncVar, Slice, from_wire

    t = from_wire(
        {
            "kind": "func",
            "params": [
                {"name": "format", "type": {"kind": "basic", "name": "string"}},
                {"name": "", "type": {"kind": "slice", "elem": {"kind": "basic", "name": "any"}}},
            ],
            "results": [{"name": "", "type": {"kind": "basic", "name": "error"}}],
            "variadic": True,
        }
    )
    assert t == Func(
        params=(FuncVar("format", Basic("string")), FuncVar("", Slice(Basic("any")))),
        results=(FuncVar("", Basic("error")),),
        variadic=True,
    )


def test_from_wire_interface_text_and_packages():
    from gostub.typeref import Interface, from_wire

    empty = from_wire({"kind": "interface", "text": ""})
    assert empty.empty

    t = from_wire(
        {
            "kind": "interface",
            "text": "interface{Read(p []byte) (n int, err error)}",
            "packages": [["io", "io"]],
        }
    )
    assert isinstance(t, Interface)
    assert not t.empty
    assert t.packages == (("io", "io"),)


def test_from_wire_unsupported_kind_raises():
    from gostub.errors import UnsupportedTypeError
    from gostub.typeref import from_wire

    with pytest.raises(UnsupportedTypeError, match=r"struct\{X int\}"):
        from_wire({"kind": "unsupported", "text": "struct{X int}"})

    with pytest.raises(UnsupportedTypeError, match=r"unknown type kind"):
        from_wire({"kind": "tuple"})

    with pytest.raises(UnsupportedTypeError):
        from_wire({"kind": "array", "len": -1, "elem": {"kind": "basic", "name": "int"}})

    with pytest.raises(UnsupportedTypeError):
        from_wire({"kind": "chan", "dir": "sideways", "elem": {"kind": "basic", "name": "int"}})


def test_to_wire_matches_loader_shape():
    from gostub.typeref import Array, Basic, Named, to_wire

    assert to_wire(Array(4, Basic("byte"))) == {
        "kind": "array",
        "len": 4,
        "elem": {"kind": "basic", "name": "byte"},
    }
    assert to_wire(Named("context", "context", "Context")) == {
        "kind": "named",
        "path": "context",
        "pkg": "context",
        "name": "Context",
    }


def test_base_type_name():
    from gostub.typeref import (
        Array,
        Basic,
        Chan,
        ChanDir,
        Func,
        Interface,
        Map,
        Named,
        Pointer,
        Slice,
        TypeParam,
        base_type_name,
    )

    assert base_type_name(Basic("error")) == "error"
    assert base_type_name(Pointer(Named("example.com/m", "m", "User"))) == "User"
    assert base_type_name(Slice(Array(3, Basic("int")))) == "int"
    assert base_type_name(Chan(ChanDir.BOTH, TypeParam("T"))) == "T"
    assert base_type_name(Map(Basic("string"), Basic("int"))) == "Map"
    assert base_type_name(Interface()) == "Interface"
    assert base_type_name(Func()) == "Any"
