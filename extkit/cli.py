"""Command line entry point.

Usage::

    extkit create checkout-ui @shopify/checkout-ui-extensions-react typescript-react ./my-ext
    extkit types
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.markup import escape

from extkit.config import Config
from extkit.errors import ScaffoldError, ValidationError
from extkit.scaffolder import Scaffolder
from extkit.utils import console


def _add_common_options(parser: argparse.ArgumentParser, default: object) -> None:
    parser.add_argument(
        "--config",
        default=default,
        help="JSON configuration file (defaults come from EXTKIT_* variables)",
    )
    parser.add_argument(
        "--template-dir",
        default=default,
        help="Template directory to use instead of the bundled templates",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False if default is None else default,
        help="Print each step",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extkit",
        description="Scaffold extension projects from templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  extkit create checkout-ui @shopify/checkout-ui-extensions-react typescript-react ./ext\n"
            "  extkit create post-purchase @shopify/post-purchase-ui-extensions vanilla-js ./pp\n"
            "  extkit types --template-dir ./my-templates\n"
        ),
    )
    _add_common_options(parser, None)

    # Subcommand copies default to SUPPRESS, leaving values given before the subcommand intact.
    common = argparse.ArgumentParser(add_help=False)
    _add_common_options(common, argparse.SUPPRESS)

    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", parents=[common], help="Create a new extension project")
    create.add_argument("type", help="Extension type, e.g. checkout-ui")
    create.add_argument("renderer", help="Renderer package name")
    create.add_argument("template", help="Template id, e.g. typescript-react")
    create.add_argument("root_dir", help="Directory to create the project in")
    create.add_argument("--build-dir", default=None, help="Build directory (default: build)")

    commands.add_parser("types", parents=[common], help="List the available extension types")
    return parser


def _load_config(args: argparse.Namespace) -> Config:
    config = Config.load(Path(args.config)) if args.config else Config.from_env()
    updates: dict[str, object] = {}
    if args.template_dir:
        updates["template_dir"] = Path(args.template_dir)
    if args.verbose:
        updates["verbose"] = True
    if getattr(args, "build_dir", None):
        updates["build_dir"] = args.build_dir
    return config.model_copy(update=updates) if updates else config


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``extkit`` / ``python -m extkit``."""
    args = _build_parser().parse_args(argv)

    try:
        config = _load_config(args)
        scaffolder = Scaffolder(config=config)
    except (OSError, ValueError, ScaffoldError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        return 1

    if args.command == "types":
        for name in scaffolder.extension_types():
            console.print(name)
        return 0

    try:
        descriptor = scaffolder.scaffold(
            {
                "type": args.type,
                "renderer_name": args.renderer,
                "template_id": args.template,
                "root_dir": args.root_dir,
            }
        )
    except ValidationError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        return 1
    except ScaffoldError:
        # Already reported by the scaffolder.
        return 1

    console.print(
        f"[bold green]Extension project ready:[/bold green] {escape(str(descriptor.root_dir))}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
