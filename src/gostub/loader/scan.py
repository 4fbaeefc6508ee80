from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from ..errors import LoadError
from .packages import LoadedPackage, parse_loader_output

logger = logging.getLogger(__name__)


def load_packages(
    *,
    input_dir: Path,
    name: str | None = None,
    recursive: bool = False,
    go: str = "go",
) -> list[LoadedPackage]:
    """Load and type-check the package(s) in `input_dir` with the Go toolchain.

    With `name`, each package reports the declaration of that name (if any);
    without it, every interface the package declares is reported.
    Packages with load or type errors raise LoadError.
    """
    input_dir = Path(input_dir).resolve()
    if not input_dir.is_dir():
        raise LoadError(f"input directory not found: {input_dir}")

    with tempfile.TemporaryDirectory(prefix="gostub-loader-") as td:
        loader_dir = Path(td)
        (loader_dir / "go.mod").write_text(
            "\n".join(
                [
                    "module gostub.loader",
                    "",
                    "go 1.22",
                    "",
                ]
            ),
            encoding="utf-8",
        )
        (loader_dir / "main.go").write_text(_loader_go_source(), encoding="utf-8")

        cmd = [go, "run", ".", "-dir", str(input_dir), "-go", go, "-gowork", os.environ.get("GOWORK", "")]
        if name:
            cmd += ["-name", name]
        if recursive:
            cmd.append("-recursive")

        # The helper module must not be resolved against the caller's go.work.
        env = dict(os.environ)
        env["GOWORK"] = "off"

        logger.debug("running go loader in %s (name=%s, recursive=%s)", input_dir, name, recursive)
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(loader_dir),
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=False,
                check=False,
            )
        except FileNotFoundError as e:
            raise LoadError(
                f"Go toolchain not found (`{go}` is missing from PATH). "
                "Install Go and ensure `go` is available on PATH, or set GOSTUB_GO."
            ) from e

    stdout = (proc.stdout or b"").decode("utf-8", errors="replace")
    stderr = (proc.stderr or b"").decode("utf-8", errors="replace")
    if proc.returncode != 0:
        out = "\n".join(s for s in [stdout.strip("\n"), stderr.strip("\n")] if s)
        raise LoadError(f"go loader failed for {input_dir}\n{out}")

    pkgs = parse_loader_output(_parse_json(stdout))
    if not pkgs:
        raise LoadError(f"no Go packages found in {input_dir}")

    bad = [p for p in pkgs if p.errors]
    if bad:
        lines = [f"{p.path}: {e}" for p in bad for e in p.errors]
        raise LoadError("package has errors:\n" + "\n".join(lines))

    logger.debug("loaded %d package(s): %s", len(pkgs), ", ".join(p.path for p in pkgs))
    return pkgs


def _parse_json(out: str) -> Any:
    try:
        return json.loads(out)
    except Exception:  # noqa: BLE001
        # `go run` can print toolchain messages before the document; take the first object.
        start = out.find("{")
        if start == -1:
            raise LoadError("failed to parse go loader output") from None
        try:
            obj, _ = json.JSONDecoder().raw_decode(out[start:])
        except Exception as e:  # noqa: BLE001
            raise LoadError(f"failed to parse go loader output: {e}") from e
        return obj


def _loader_go_source() -> str:
    # Keep this file stdlib-only so `go run` doesn't need network access.
    return r'''
package main

import (
	"bytes"
	"encoding/json"
	"fmt"
	"flag"
	"go/ast"
	"go/importer"
	"go/parser"
	"go/token"
	"go/types"
	"io"
	"os"
	"os/exec"
	"path/filepath"
	"sort"
	"strings"
)

type listModule struct {
	Path string
	Dir  string
}

type listError struct {
	Err string
}

type listPkg struct {
	ImportPath string
	Name       string
	Dir        string
	Export     string
	GoFiles    []string
	CgoFiles   []string
	ImportMap  map[string]string
	DepOnly    bool
	Module     *listModule
	Error      *listError
	DepsErrors []*listError
}

type outVar struct {
	Name string         `json:"name"`
	Type map[string]any `json:"type"`
}

type outMethod struct {
	Name     string   `json:"name"`
	Params   []outVar `json:"params"`
	Results  []outVar `json:"results"`
	Variadic bool     `json:"variadic"`
}

type outTypeParam struct {
	Name       string         `json:"name"`
	Constraint map[string]any `json:"constraint"`
}

type outDecl struct {
	Name       string         `json:"name"`
	Kind       string         `json:"kind"`
	TypeParams []outTypeParam `json:"type_params"`
	Methods    []outMethod    `json:"methods"`
}

type outPkg struct {
	Name       string    `json:"name"`
	Path       string    `json:"path"`
	Dir        string    `json:"dir"`
	ModulePath string    `json:"module_path"`
	ModuleDir  string    `json:"module_dir"`
	Errors     []string  `json:"errors"`
	Decls      []outDecl `json:"decls"`
}

type outObj struct {
	Packages []outPkg `json:"packages"`
}

// Uses of the predeclared `any` share this type (or are *types.Alias with no package).
var universeAny = types.Universe.Lookup("any").Type()

func main() {
	var dir, name, goBin, goWork string
	var recursive bool
	flag.StringVar(&dir, "dir", "", "package directory")
	flag.StringVar(&name, "name", "", "declaration to describe; all interfaces when empty")
	flag.StringVar(&goBin, "go", "go", "go command")
	flag.StringVar(&goWork, "gowork", "", "GOWORK value for go list")
	flag.BoolVar(&recursive, "recursive", false, "load ./... instead of .")
	flag.Parse()

	if dir == "" {
		fmt.Fprintln(os.Stderr, "missing -dir")
		os.Exit(2)
	}

	pattern := "."
	if recursive {
		pattern = "./..."
	}

	pkgs, err := goList(goBin, goWork, dir, pattern)
	if err != nil {
		fmt.Fprintln(os.Stderr, err.Error())
		os.Exit(1)
	}

	exports := map[string]string{}
	for _, p := range pkgs {
		if p.Export == "" {
			continue
		}
		if _, ok := exports[p.ImportPath]; !ok {
			exports[p.ImportPath] = p.Export
		}
	}

	fset := token.NewFileSet()
	gc := importer.ForCompiler(fset, "gc", func(path string) (io.ReadCloser, error) {
		f, ok := exports[path]
		if !ok {
			return nil, fmt.Errorf("no export data for %q", path)
		}
		return os.Open(f)
	})

	out := outObj{Packages: []outPkg{}}
	seen := map[string]bool{}
	for _, p := range pkgs {
		if p.DepOnly || seen[p.ImportPath] {
			continue
		}
		seen[p.ImportPath] = true
		out.Packages = append(out.Packages, describe(fset, gc, p, name))
	}

	if err := json.NewEncoder(os.Stdout).Encode(out); err != nil {
		fmt.Fprintf(os.Stderr, "encode: %v\n", err)
		os.Exit(1)
	}
}

func goList(goBin, goWork, dir, pattern string) ([]listPkg, error) {
	cmd := exec.Command(goBin, "list", "-e", "-export", "-deps", "-json", pattern)
	cmd.Dir = dir
	env := make([]string, 0, len(os.Environ())+1)
	for _, kv := range os.Environ() {
		if !strings.HasPrefix(kv, "GOWORK=") {
			env = append(env, kv)
		}
	}
	if goWork != "" {
		env = append(env, "GOWORK="+goWork)
	}
	cmd.Env = env

	var stdout, stderr bytes.Buffer
	cmd.Stdout = &stdout
	cmd.Stderr = &stderr
	if err := cmd.Run(); err != nil {
		return nil, fmt.Errorf("go list failed: %v\n%s", err, stderr.String())
	}

	dec := json.NewDecoder(&stdout)
	pkgs := []listPkg{}
	for {
		var p listPkg
		err := dec.Decode(&p)
		if err == io.EOF {
			break
		}
		if err != nil {
			return nil, fmt.Errorf("decode go list output: %v", err)
		}
		pkgs = append(pkgs, p)
	}
	return pkgs, nil
}

type mappedImporter struct {
	base types.Importer
	m    map[string]string
}

func (mi mappedImporter) Import(path string) (*types.Package, error) {
	if to, ok := mi.m[path]; ok {
		path = to
	}
	return mi.base.Import(path)
}

func describe(fset *token.FileSet, gc types.Importer, p listPkg, name string) outPkg {
	op := outPkg{Name: p.Name, Path: p.ImportPath, Dir: p.Dir, Errors: []string{}, Decls: []outDecl{}}
	if p.Module != nil {
		op.ModulePath = p.Module.Path
		op.ModuleDir = p.Module.Dir
	}
	if p.Error != nil {
		op.Errors = append(op.Errors, p.Error.Err)
	}
	for _, e := range p.DepsErrors {
		if e != nil {
			op.Errors = append(op.Errors, e.Err)
		}
	}
	if len(op.Errors) > 0 {
		return op
	}

	files := make([]*ast.File, 0, len(p.GoFiles)+len(p.CgoFiles))
	for _, group := range [][]string{p.GoFiles, p.CgoFiles} {
		for _, fn := range group {
			f, err := parser.ParseFile(fset, filepath.Join(p.Dir, fn), nil, parser.SkipObjectResolution)
			if err != nil {
				op.Errors = append(op.Errors, err.Error())
				continue
			}
			files = append(files, f)
		}
	}
	if len(op.Errors) > 0 {
		return op
	}

	conf := types.Config{
		Importer:    mappedImporter{base: gc, m: p.ImportMap},
		FakeImportC: len(p.CgoFiles) > 0,
		Error: func(err error) {
			op.Errors = append(op.Errors, err.Error())
		},
	}
	info := &types.Info{
		Types: map[ast.Expr]types.TypeAndValue{},
		Defs:  map[*ast.Ident]types.Object{},
	}
	pkg, _ := conf.Check(p.ImportPath, fset, files, info)
	if len(op.Errors) > 0 || pkg == nil {
		return op
	}

	specs := interfaceSpecs(files, info)
	names := []string{name}
	if name == "" {
		names = pkg.Scope().Names()
	}
	for _, n := range names {
		obj := pkg.Scope().Lookup(n)
		if obj == nil {
			continue
		}
		d := describeDecl(obj, specs, info)
		if name == "" && d.Kind != "interface" {
			continue
		}
		op.Decls = append(op.Decls, d)
	}
	return op
}

func interfaceSpecs(files []*ast.File, info *types.Info) map[*types.TypeName]*ast.InterfaceType {
	out := map[*types.TypeName]*ast.InterfaceType{}
	for _, f := range files {
		for _, decl := range f.Decls {
			gd, ok := decl.(*ast.GenDecl)
			if !ok || gd.Tok != token.TYPE {
				continue
			}
			for _, s := range gd.Specs {
				ts, ok := s.(*ast.TypeSpec)
				if !ok || ts.Assign.IsValid() {
					continue
				}
				it, ok := ts.Type.(*ast.InterfaceType)
				if !ok {
					continue
				}
				if tn, ok := info.Defs[ts.Name].(*types.TypeName); ok {
					out[tn] = it
				}
			}
		}
	}
	return out
}

func describeDecl(obj types.Object, specs map[*types.TypeName]*ast.InterfaceType, info *types.Info) outDecl {
	d := outDecl{Name: obj.Name(), TypeParams: []outTypeParam{}, Methods: []outMethod{}}
	tn, ok := obj.(*types.TypeName)
	if !ok {
		switch obj.(type) {
		case *types.Func:
			d.Kind = "func"
		case *types.Var:
			d.Kind = "var"
		case *types.Const:
			d.Kind = "const"
		default:
			d.Kind = "other"
		}
		return d
	}

	t := types.Unalias(tn.Type())
	iface, ok := t.Underlying().(*types.Interface)
	if !ok {
		d.Kind = "type"
		return d
	}
	if !iface.IsMethodSet() {
		d.Kind = "constraint"
		return d
	}
	d.Kind = "interface"

	if named, ok := t.(*types.Named); ok && named.TypeArgs().Len() == 0 {
		tps := named.TypeParams()
		for i := 0; i < tps.Len(); i++ {
			tp := tps.At(i)
			d.TypeParams = append(d.TypeParams, outTypeParam{Name: tp.Obj().Name(), Constraint: enc(tp.Constraint())})
		}
	}

	for _, m := range orderedMethods(t, iface, specs, info) {
		sig := m.Type().(*types.Signature)
		d.Methods = append(d.Methods, outMethod{
			Name:     m.Name(),
			Params:   vars(sig.Params()),
			Results:  vars(sig.Results()),
			Variadic: sig.Variadic(),
		})
	}
	return d
}

// orderedMethods lists the method set in declaration order, with embedded
// interfaces expanded where they are embedded. go/types sorts methods, so the
// order comes from the syntax of interfaces declared in this package.
func orderedMethods(t types.Type, iface *types.Interface, specs map[*types.TypeName]*ast.InterfaceType, info *types.Info) []*types.Func {
	byName := map[string]*types.Func{}
	for i := 0; i < iface.NumMethods(); i++ {
		m := iface.Method(i)
		byName[m.Name()] = m
	}

	var order []string
	methodOrder(t, specs, info, map[*types.TypeName]bool{}, &order)

	out := make([]*types.Func, 0, iface.NumMethods())
	used := map[string]bool{}
	for _, n := range order {
		if m, ok := byName[n]; ok && !used[n] {
			used[n] = true
			out = append(out, m)
		}
	}
	for i := 0; i < iface.NumMethods(); i++ {
		m := iface.Method(i)
		if !used[m.Name()] {
			used[m.Name()] = true
			out = append(out, m)
		}
	}
	return out
}

func methodOrder(t types.Type, specs map[*types.TypeName]*ast.InterfaceType, info *types.Info, visiting map[*types.TypeName]bool, order *[]string) {
	t = types.Unalias(t)
	if named, ok := t.(*types.Named); ok {
		obj := named.Origin().Obj()
		if visiting[obj] {
			return
		}
		visiting[obj] = true
		if spec, ok := specs[obj]; ok {
			for _, field := range spec.Methods.List {
				if len(field.Names) > 0 {
					for _, n := range field.Names {
						*order = append(*order, n.Name)
					}
					continue
				}
				if tv, ok := info.Types[field.Type]; ok {
					methodOrder(tv.Type, specs, info, visiting, order)
				}
			}
			return
		}
	}
	iface, ok := t.Underlying().(*types.Interface)
	if !ok {
		return
	}
	for i := 0; i < iface.NumExplicitMethods(); i++ {
		*order = append(*order, iface.ExplicitMethod(i).Name())
	}
	for i := 0; i < iface.NumEmbeddeds(); i++ {
		methodOrder(iface.EmbeddedType(i), specs, info, visiting, order)
	}
}

func vars(t *types.Tuple) []outVar {
	out := make([]outVar, 0, t.Len())
	for i := 0; i < t.Len(); i++ {
		v := t.At(i)
		out = append(out, outVar{Name: v.Name(), Type: enc(v.Type())})
	}
	return out
}

func basic(name string) map[string]any {
	return map[string]any{"kind": "basic", "name": name}
}

func enc(t types.Type) map[string]any {
	if t == universeAny {
		return basic("any")
	}
	switch t := t.(type) {
	case *types.Alias:
		if t.Obj().Pkg() == nil {
			return basic(t.Obj().Name())
		}
		return enc(types.Unalias(t))
	case *types.Basic:
		if t.Kind() == types.UnsafePointer {
			return map[string]any{"kind": "named", "path": "unsafe", "pkg": "unsafe", "name": "Pointer"}
		}
		return basic(t.Name())
	case *types.Named:
		obj := t.Obj()
		if obj.Pkg() == nil {
			return basic(obj.Name())
		}
		out := map[string]any{"kind": "named", "path": obj.Pkg().Path(), "pkg": obj.Pkg().Name(), "name": obj.Name()}
		if args := t.TypeArgs(); args.Len() > 0 {
			list := make([]any, 0, args.Len())
			for i := 0; i < args.Len(); i++ {
				list = append(list, enc(args.At(i)))
			}
			out["args"] = list
		}
		return out
	case *types.Pointer:
		return map[string]any{"kind": "pointer", "elem": enc(t.Elem())}
	case *types.Slice:
		return map[string]any{"kind": "slice", "elem": enc(t.Elem())}
	case *types.Array:
		return map[string]any{"kind": "array", "len": t.Len(), "elem": enc(t.Elem())}
	case *types.Map:
		return map[string]any{"kind": "map", "key": enc(t.Key()), "value": enc(t.Elem())}
	case *types.Chan:
		dir := "both"
		switch t.Dir() {
		case types.SendOnly:
			dir = "send"
		case types.RecvOnly:
			dir = "recv"
		}
		return map[string]any{"kind": "chan", "dir": dir, "elem": enc(t.Elem())}
	case *types.Signature:
		return map[string]any{"kind": "func", "params": vars(t.Params()), "results": vars(t.Results()), "variadic": t.Variadic()}
	case *types.Interface:
		if t.Empty() {
			return map[string]any{"kind": "interface", "text": ""}
		}
		pkgs := map[string]string{}
		text := types.TypeString(t, func(p *types.Package) string {
			pkgs[p.Path()] = p.Name()
			return "\x01" + p.Path() + "\x01"
		})
		paths := make([]string, 0, len(pkgs))
		for path := range pkgs {
			paths = append(paths, path)
		}
		sort.Strings(paths)
		list := make([]any, 0, len(paths))
		for _, path := range paths {
			list = append(list, []string{path, pkgs[path]})
		}
		return map[string]any{"kind": "interface", "text": text, "packages": list}
	case *types.TypeParam:
		return map[string]any{"kind": "typeparam", "name": t.Obj().Name()}
	}
	return map[string]any{"kind": "unsupported", "text": types.TypeString(t, func(p *types.Package) string { return p.Name() })}
}
'''
