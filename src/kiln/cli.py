"""Command-line entry point.

    kiln render templates/page.html --vars data.json --var title=Home
    kiln compile templates/page.html --vars data.json
    kiln clean templates/page.html

Variables come from a JSON object file and/or ``--var name=value`` pairs
(values are JSON-decoded when possible, otherwise kept as strings). Plain
JSON values are scalars, so the CLI allows `Scalar` alongside `Displayable`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from kiln.capabilities import Displayable, Scalar
from kiln.environment import Environment, TemplateError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kiln", description="Compile and render Kiln templates.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log cache and compile activity")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a template to stdout")
    compile_ = sub.add_parser("compile", help="Compile a template and print the artifact")
    for command in (render, compile_):
        command.add_argument("template", type=str, help="Path to the template")
        command.add_argument("--vars", type=str, default=None, help="JSON file with a variables object")
        command.add_argument(
            "--var",
            action="append",
            default=[],
            metavar="NAME=VALUE",
            help="Set one variable (repeatable)",
        )
        command.add_argument("--debug", action="store_true", help="Raise on undefined or disallowed values")

    render.add_argument("--always-recompile", action="store_true", help="Ignore an existing artifact")
    render.add_argument("--show-compiled", action="store_true", help="Print the compiled text first")

    clean = sub.add_parser("clean", help="Remove a template's compiled artifact")
    clean.add_argument("template", type=str, help="Path to the template")
    return parser


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def load_variables(vars_file: str | None, pairs: list[str]) -> dict[str, Any]:
    """Merge the JSON variables file with ``NAME=VALUE`` overrides."""
    variables: dict[str, Any] = {}
    if vars_file is not None:
        data = json.loads(Path(vars_file).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{vars_file} must contain a JSON object")
        variables.update(data)
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got {pair!r}")
        variables[name] = _parse_value(raw)
    return variables


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    env = Environment(types={Displayable, Scalar})

    try:
        if args.command == "clean":
            removed = env.cache.invalidate(args.template)
            print(f"{'Removed' if removed else 'No'} artifact for {args.template}")
            return 0

        variables = load_variables(args.vars, args.var)
        if args.command == "compile":
            source = env.cache.read_template(args.template)
            sys.stdout.write(env.compile(source, variables=variables, debug=args.debug, name=args.template))
            return 0

        for chunk in env.render_stream(
            args.template,
            variables=variables,
            always_recompile=args.always_recompile,
            debug=args.debug,
            show_compiled=args.show_compiled,
        ):
            sys.stdout.write(chunk)
        return 0
    except TemplateError as e:
        print(e.format_compact(), file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"kiln: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
