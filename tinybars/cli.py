"""Command-line front end: compile one template file to a Python module."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from . import constants
from .compiler import compile_template
from .context import CompileOptions, OutputFormat
from .errors import TemplateError

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinybars",
        description="Compile a handlebars-style template into a Python render function",
    )
    parser.add_argument("template", help="Template file to compile")
    parser.add_argument(
        "--output", "-o", default=None, help="Write the module here (default: stdout)"
    )
    parser.add_argument(
        "--map",
        action="store_true",
        help="Also write a source map next to the output as <output>.map",
    )
    parser.add_argument(
        "--format",
        "-f",
        default=OutputFormat.MODULE.value,
        choices=[fmt.value for fmt in OutputFormat],
        help="Module shape (default: module)",
    )
    parser.add_argument(
        "--function-name",
        default=constants.DEFAULT_FUNCTION_NAME,
        help=f"Name of the generated function (default: {constants.DEFAULT_FUNCTION_NAME})",
    )
    parser.add_argument(
        "--scope-var",
        default=constants.DEFAULT_SCOPE_VAR,
        help=f"Scope parameter name (default: {constants.DEFAULT_SCOPE_VAR})",
    )
    parser.add_argument(
        "--data-var",
        default=constants.DEFAULT_DATA_VAR,
        help=f"Data parameter name (default: {constants.DEFAULT_DATA_VAR})",
    )
    parser.add_argument(
        "--omit-comments",
        action="store_true",
        help="Drop template comments from the generated code",
    )
    parser.add_argument(
        "--ignore-standalone",
        action="store_true",
        help="Keep the whitespace around tags that stand alone on a line",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.map and not args.output:
        parser.error("--map requires --output")

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        options = CompileOptions(
            scope_var=args.scope_var,
            data_var=args.data_var,
            function_name=args.function_name,
            omit_comments=args.omit_comments,
            ignore_standalone=args.ignore_standalone,
            format=args.format,
            src_name=args.template,
        )
    except ValidationError as exc:
        print(f"tinybars: invalid options: {exc}", file=sys.stderr)
        return 2

    try:
        source = Path(args.template).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"tinybars: {exc}", file=sys.stderr)
        return 1

    try:
        result = compile_template(source, options)
    except TemplateError as exc:
        print(f"{args.template}:{exc.loc}: {exc.message}", file=sys.stderr)
        return 1

    if not args.output:
        sys.stdout.write(result.code)
        return 0

    output = Path(args.output)
    output.write_text(result.code, encoding="utf-8")
    logger.info("Wrote %s", output)
    if args.map:
        map_path = output.with_name(output.name + ".map")
        map_path.write_text(result.source_map.to_json(), encoding="utf-8")
        logger.info("Wrote %s", map_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
