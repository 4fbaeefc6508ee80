def test_import_set_is_idempotent_per_path():
    from gostub.imports import ImportSet

    imports = ImportSet()
    assert imports.add("context", "context") == "context"
    assert imports.add("context", "ctx") == "context"
    assert len(imports) == 1
    assert imports.specs() == [(None, "context")]


def test_import_set_disambiguates_clashing_local_names():
    from gostub.imports import ImportSet

    backing: dict[str, str] = {}
    imports = ImportSet(backing)
    assert imports.add("errors", "errors") == "errors"
    assert imports.add("github.com/pkg/errors", "errors") == "errors2"
    assert imports.add("example.com/x/errors", "errors") == "errors3"
    # Writes through to the backing mapping.
    assert backing["github.com/pkg/errors"] == "errors2"


def test_import_set_specs_omit_alias_equal_to_last_segment():
    from gostub.imports import ImportSet

    imports = ImportSet({"gopkg.in/yaml.v3": "yaml", "example.com/app/model": "model", "errors": "errors"})
    imports.add("github.com/pkg/errors", "errors")
    assert imports.specs() == [
        (None, "errors"),
        (None, "example.com/app/model"),
        ("errors2", "github.com/pkg/errors"),
        ("yaml", "gopkg.in/yaml.v3"),
    ]


def test_collect_imports_skips_target_and_builtin_types():
    from gostub.imports import ImportSet, collect_imports
    from gostub.typeref import Basic, Map, Named, Pointer, Slice

    imports = ImportSet()
    t = Map(
        Basic("string"),
        Slice(Pointer(Named("example.com/app/stubs", "stubs", "Local"))),
    )
    collect_imports(t, target_path="example.com/app/stubs", imports=imports)
    assert len(imports) == 0

    collect_imports(Named("", "", "error"), target_path="example.com/app/stubs", imports=imports)
    assert len(imports) == 0


def test_collect_imports_walks_every_position():
    from gostub.imports import ImportSet, collect_imports
    from gostub.typeref import Chan, ChanDir, Func, FuncVar, Interface, Named, TypeParam

    imports = ImportSet()
    t = Func(
        params=(
            FuncVar("ctx", Named("context", "context", "Context")),
            FuncVar("in", Chan(ChanDir.RECV, Named("example.com/app/model", "model", "Event"))),
        ),
        results=(
            FuncVar(
                "",
                Named(
                    "example.com/app/box",
                    "box",
                    "Box",
                    (Named("time", "time", "Duration"),),
                ),
            ),
        ),
    )
    collect_imports(t, target_path="example.com/app", imports=imports)
    collect_imports(
        TypeParam("T", Interface("interface{\x01io\x01.Reader}", (("io", "io"),))),
        target_path="example.com/app",
        imports=imports,
    )
    paths = {path for _, path in imports.specs()}
    assert paths == {"context", "example.com/app/model", "example.com/app/box", "time", "io"}


def test_collect_imports_guards_against_revisiting_named_types():
    from gostub.imports import ImportSet, collect_imports
    from gostub.typeref import Named, Pointer

    class CountingSet(ImportSet):
        def __init__(self):
            super().__init__()
            self.calls = 0

        def add(self, path, name):
            self.calls += 1
            return super().add(path, name)

    node = Named("example.com/list", "list", "Node")
    imports = CountingSet()
    seen: set = set()
    for _ in range(3):
        collect_imports(Pointer(node), target_path="", imports=imports, _seen=seen)
    assert imports.calls == 1


def test_collect_model_imports_fills_model():
    from gostub.imports import collect_model_imports
    from gostub.model import InterfaceModel, Method, Param, Result, TypeParameter
    from gostub.typeref import Basic, Named

    model = InterfaceModel(
        target_package_name="stubs",
        target_package_path="example.com/app/stubs",
        interface_name="Repo",
        type_params=(TypeParameter("T", Named("example.com/app/constraints", "constraints", "Entity")),),
        methods=(
            Method(
                name="Save",
                params=(Param("ctx", Named("context", "context", "Context")),),
                results=(Result("R0", Basic("error"), named=False),),
            ),
        ),
    )
    collect_model_imports(model)
    assert model.imports == {"example.com/app/constraints": "constraints", "context": "context"}
