from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from pathlib import Path

from .config import GOFMT_MODES
from .errors import GoStubError


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="gostub")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Print gostub version.")

    p_gen = sub.add_parser("gen", help="Generate a stub for a Go interface.")
    p_gen.add_argument("input_dir", help="Directory of the Go package declaring the interface.")
    p_gen.add_argument("interface", help="Name of the interface to stub.")
    p_gen.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file (default: <stub-dir>/stub_<interface-lowercased>.go).",
    )
    p_gen.add_argument("--stub-dir", default="stubs", help="Directory for the default output file (default: stubs).")
    p_gen.add_argument(
        "--test-package",
        action="store_true",
        help="Emit the stub into the `_test` package (file name gets `_test.go`).",
    )
    p_gen.add_argument("--recursive", action="store_true", help="Search every package below input_dir.")
    p_gen.add_argument("--package-name", default=None, help="Package name of the generated file.")
    p_gen.add_argument(
        "--options-package",
        default=None,
        help="Import path of the package declaring StubOptions (default: GOSTUB_OPTIONS_PACKAGE or built-in).",
    )
    p_gen.add_argument("--stdout", action="store_true", help="Print the stub instead of writing it.")
    p_gen.add_argument("--dump-model", default=None, help="Also write the resolved model as a MessagePack snapshot.")
    p_gen.add_argument(
        "--typed-result-names",
        action="store_true",
        default=None,
        help="Name fields of unnamed results after their type (Error1) instead of R{i}.",
    )
    p_gen.add_argument("--gofmt", choices=GOFMT_MODES, default=None, help="Run gofmt on the output (default: auto).")

    p_render = sub.add_parser("render", help="Render a stub from a model snapshot written by `gen --dump-model`.")
    p_render.add_argument("model_file", help="MessagePack model snapshot.")
    p_render.add_argument("-o", "--output", default=None, help="Output .go file.")
    p_render.add_argument("--stdout", action="store_true", help="Print the stub instead of writing it.")
    p_render.add_argument("--options-package", default=None, help="Import path of the package declaring StubOptions.")
    p_render.add_argument("--gofmt", choices=GOFMT_MODES, default=None, help="Run gofmt on the output (default: auto).")

    p_list = sub.add_parser("list", help="List interfaces declared in a Go package.")
    p_list.add_argument("input_dir", help="Directory of the Go package.")
    p_list.add_argument("--recursive", action="store_true", help="Include every package below input_dir.")

    p_opts = sub.add_parser("options", help="Write a Go package declaring StubOptions.")
    p_opts.add_argument("out_dir", help="Directory to write options.go into.")
    p_opts.add_argument("--package-name", default=None, help="Package name (default: directory name).")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "version":
        try:
            print(importlib.metadata.version("gostub"))
        except Exception:
            # Best-effort fallback for editable/local-only contexts.
            print("0.0.0")
        return

    try:
        _dispatch(args)
    except GoStubError as e:
        raise SystemExit(f"error: {e}") from e


def _dispatch(args: argparse.Namespace) -> None:
    from .config import GeneratorOptions

    if args.cmd == "gen":
        from .generate import generate

        opts = GeneratorOptions.from_env(
            options_package=args.options_package,
            typed_result_names=args.typed_result_names,
            gofmt=args.gofmt,
        )
        res = generate(
            input_dir=Path(args.input_dir),
            interface_name=args.interface,
            output_file=Path(args.output) if args.output else None,
            stub_dir=args.stub_dir,
            test_package=bool(args.test_package),
            recursive=bool(args.recursive),
            package_name=args.package_name,
            opts=opts,
            write=not args.stdout,
            dump_model=Path(args.dump_model) if args.dump_model else None,
        )
        if args.stdout:
            sys.stdout.write(res.source)
        else:
            print(f"Stub generated in {res.output_file}")
        return

    if args.cmd == "render":
        from .codec import read_model
        from .errors import ConfigError
        from .generate import phase, render_model, write_stub

        if not args.stdout and not args.output:
            raise ConfigError("render requires -o/--output or --stdout")
        opts = GeneratorOptions.from_env(options_package=args.options_package, gofmt=args.gofmt)
        with phase("load"):
            model = read_model(Path(args.model_file))
        source = render_model(model, opts=opts)
        if args.stdout:
            sys.stdout.write(source)
            return
        with phase("write"):
            write_stub(Path(args.output), source)
        print(f"Stub generated in {args.output}")
        return

    if args.cmd == "list":
        from .loader.scan import load_packages

        opts = GeneratorOptions.from_env()
        pkgs = load_packages(input_dir=Path(args.input_dir), recursive=bool(args.recursive), go=opts.go)
        for pkg in pkgs:
            for decl in pkg.interfaces():
                generic = "[...]" if decl.type_params else ""
                print(f"{pkg.path}.{decl.name}{generic}\t{len(decl.methods)} method(s)")
        return

    if args.cmd == "options":
        from .optionspkg import write_options_package

        path = write_options_package(Path(args.out_dir), package_name=args.package_name)
        print(str(path))
        return
