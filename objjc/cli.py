from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from objjc.ast_json import ast_to_debug_json, load_program_json
from objjc.codegen import CompileResult, compile_program
from objjc.diagnostics import CompileError, format_diagnostic
from objjc.options import CompilerOptions, load_options


logger = logging.getLogger(__name__)


def _apply_warning_flags(options: CompilerOptions, flags: list[str]) -> CompilerOptions:
    for flag in flags:
        if flag.startswith("no-"):
            options = options.with_warning(flag[len("no-"):], False)
        else:
            options = options.with_warning(flag, True)
    return options


def _print_classes(result: CompileResult) -> None:
    for name in sorted(result.classes):
        class_def = result.classes[name]
        if class_def.is_placeholder:
            continue
        header = name
        if class_def.superclass is not None:
            header += f" : {class_def.superclass.name}"
        if class_def.protocols:
            header += " <" + ", ".join(protocol.name for protocol in class_def.protocols) + ">"
        print(header)
        for ivar in class_def.ivars.values():
            print(f"    ivar {ivar.type_name} {ivar.name}")
        for selector, method in sorted(class_def.instance_methods.items()):
            print(f"    - {selector} {list(method.types)}")
        for selector, method in sorted(class_def.class_methods.items()):
            print(f"    + {selector} {list(method.types)}")
    for name in sorted(result.protocols):
        protocol = result.protocols[name]
        print(f"@protocol {name}")
        for selector in sorted(protocol.instance_methods):
            print(f"    - {selector}")
        for selector in sorted(protocol.class_methods):
            print(f"    + {selector}")


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="objjc",
        description="Objective-J compiler backend (default: emit JavaScript).",
    )
    parser.add_argument("input", help="Input AST file (ESTree JSON)")
    parser.add_argument("-o", "--output", help="Output JavaScript file path (default: stdout)")
    parser.add_argument("--config", help="YAML file with compiler options")
    parser.add_argument("--print-ast", action="store_true", help="Print the loaded AST as JSON")
    parser.add_argument("--print-ast-spans", action="store_true", help="Include spans in --print-ast output")
    parser.add_argument("--print-classes", action="store_true", help="Print the class and protocol registry")
    parser.add_argument(
        "-W",
        dest="warnings",
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Enable a warning category; -Wno-CATEGORY disables it",
    )
    parser.add_argument("--verbose", action="store_true", help="Log compiler progress to stderr")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        input_path = Path(args.input)
        options = load_options(args.config) if args.config else CompilerOptions()
        options = _apply_warning_flags(options, args.warnings)

        program = load_program_json(input_path.read_text(encoding="utf-8"), source_path=str(input_path))
        if args.print_ast:
            print(ast_to_debug_json(program, include_spans=args.print_ast_spans))

        try:
            result = compile_program(program, options)
        except CompileError as error:
            for diagnostic in error.diagnostics:
                print(format_diagnostic(diagnostic), file=sys.stderr)
            raise

        for diagnostic in result.diagnostics:
            print(format_diagnostic(diagnostic), file=sys.stderr)
        logger.debug("%s: %d diagnostics", input_path, len(result.diagnostics))

        if args.print_classes:
            _print_classes(result)

        if args.output:
            Path(args.output).write_text(result.code, encoding="utf-8")
        else:
            print(result.code, end="")
        return 0
    except Exception as error:
        print(f"objjc: {error}", file=sys.stderr)
        return 1
