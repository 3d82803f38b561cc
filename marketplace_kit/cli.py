"""Command line interface: ``marketplace create|validate|register|list|verify``.

Exit codes:
    0 - Success (validation passed, warnings allowed unless --strict)
    1 - Operation failed or validation found errors
    2 - Invalid command line arguments
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from .config import DEFAULT_CATEGORY, ROOT_ENV_VAR, SUGGESTED_CATEGORIES, MarketplaceConfig, resolve_config
from .debug import DebugConsole
from .errors import MarketplaceError
from .listing import list_plugins, plugins_json, print_listing
from .register import ConfirmOverwrite, register_plugin
from .scaffold import DEFAULT_DESCRIPTION, create_plugin
from .validate import print_report, validate_plugin
from .verify import print_verification, verify_marketplace

console = Console()
err_console = Console(stderr=True)

Handler = Callable[[MarketplaceConfig, argparse.Namespace], int]


def cmd_create(config: MarketplaceConfig, args: argparse.Namespace) -> int:
    console.print(f"[yellow]Creating plugin: {escape(args.name)}[/yellow]")
    path = create_plugin(config, args.name, args.description)

    console.print(f"[green]✓ Plugin created successfully at: {escape(str(path))}[/green]")
    console.print()
    console.print("Next steps:")
    console.print("  1. Edit the plugin.json with your details")
    console.print("  2. Add your skills in the skills/ directory")
    console.print(f"  3. Test locally: claude --plugin-dir {escape(str(path))}", highlight=False)
    console.print(f"  4. Register in marketplace: marketplace register {escape(args.name)}")
    return 0


def cmd_validate(config: MarketplaceConfig, args: argparse.Namespace) -> int:
    report = validate_plugin(config, args.target)
    print_report(report, console, strict=args.strict)
    return report.exit_code(strict=args.strict)


def confirm_overwrite(assume_yes: bool) -> ConfirmOverwrite | None:
    """Build the overwrite callback for ``register``.

    With --yes every overwrite is accepted. Otherwise the user is asked when
    stdin is a terminal; with no terminal there is nobody to ask and None is
    returned, which makes the overwrite fail.
    """
    if not assume_yes and not sys.stdin.isatty():
        return None

    def ask(existing: dict[str, Any], candidate: dict[str, Any]) -> bool:
        existing_version = str(existing.get("version", "unknown"))
        console.print(f"[cyan]Plugin '{escape(candidate['name'])}' is already registered in marketplace[/cyan]")
        console.print(f"  Marketplace version: [yellow]{escape(existing_version)}[/yellow]")
        console.print(f"  Plugin.json version: [yellow]{escape(candidate['version'])}[/yellow]")
        if existing_version == candidate["version"]:
            console.print(
                "[yellow]Warning: Same version already registered. Consider updating the version.[/yellow]"
            )
        if assume_yes:
            return True
        return Confirm.ask("Do you want to update the entry?", default=False, console=console)

    return ask


def cmd_register(config: MarketplaceConfig, args: argparse.Namespace) -> int:
    result = register_plugin(config, args.name, args.category, confirm=confirm_overwrite(args.yes))

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {escape(warning)}[/yellow]")
    console.print(f"[green]✓ Plugin '{escape(args.name)}' registered in marketplace[/green]")
    console.print()
    console.print("Entry added:")
    console.print_json(data=result.entry)
    console.print()
    registry_rel = config.registry_path.relative_to(config.root).as_posix()
    console.print("[cyan]Next steps:[/cyan]")
    console.print(f"  1. Review the changes: git diff {registry_rel}", highlight=False)
    console.print(
        f"  2. Commit: git add {registry_rel} && git commit -m 'Register {escape(args.name)} plugin'",
        highlight=False,
    )
    return 0


def cmd_list(config: MarketplaceConfig, args: argparse.Namespace) -> int:
    if args.json:
        sys.stdout.write(plugins_json(config) + "\n")
        return 0
    listing = list_plugins(config, with_skills=args.verbose)
    print_listing(listing, console, verbose=args.verbose)
    return 0


def cmd_verify(config: MarketplaceConfig, args: argparse.Namespace) -> int:
    mode_text = "[bold cyan]Verifying marketplace structure"
    if args.strict:
        mode_text += " (strict mode)"
    console.print("\n" + mode_text + "...[/bold cyan]\n")
    result = verify_marketplace(config)
    return print_verification(result, console, strict=args.strict)


def add_global_options(parser: argparse.ArgumentParser, *, default: Any = None) -> None:
    """Add --root and --debug, accepted before or after the subcommand."""
    parser.add_argument(
        "--root",
        default=default,
        help=f"Marketplace root directory (default: ${ROOT_ENV_VAR}, "
        "else the nearest directory with .claude-plugin/marketplace.json)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False if default is None else default,
        help="Print debug tracing to stderr",
    )


def build_parser() -> argparse.ArgumentParser:
    # SUPPRESS keeps an option given before the subcommand from being reset
    common = argparse.ArgumentParser(add_help=False)
    add_global_options(common, default=argparse.SUPPRESS)

    parser = argparse.ArgumentParser(
        prog="marketplace",
        description="Manage the plugins of a Claude Code marketplace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  marketplace create my-plugin "A collection of awesome skills"
  marketplace validate my-plugin
  marketplace register my-plugin security
  marketplace list --verbose
        """,
    )
    add_global_options(parser)
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    create = subparsers.add_parser(
        "create", parents=[common], help="Create a new plugin from the template"
    )
    create.add_argument("name", help="Plugin name (kebab-case, e.g. my-plugin)")
    create.add_argument(
        "description", nargs="?", default=None, help=f"Plugin description (default: {DEFAULT_DESCRIPTION!r})"
    )
    create.set_defaults(handler=cmd_create)

    validate = subparsers.add_parser(
        "validate", parents=[common], help="Validate a plugin's structure and required files"
    )
    validate.add_argument("target", help="Plugin name or path to a plugin directory")
    validate.add_argument(
        "--strict", action="store_true", help="Treat warnings as errors (useful for CI/CD)"
    )
    validate.set_defaults(handler=cmd_validate)

    register = subparsers.add_parser(
        "register",
        parents=[common],
        help="Register a plugin in marketplace.json",
        epilog=f"Available categories: {', '.join(SUGGESTED_CATEGORIES)}",
    )
    register.add_argument("name", help="Name of the plugin to register")
    register.add_argument(
        "category", nargs="?", default=DEFAULT_CATEGORY, help=f"Category (default: {DEFAULT_CATEGORY})"
    )
    register.add_argument(
        "-y", "--yes", action="store_true", help="Replace an existing entry without asking"
    )
    register.set_defaults(handler=cmd_register)

    list_ = subparsers.add_parser("list", parents=[common], help="List all plugins in the marketplace")
    list_.add_argument("--json", action="store_true", help="Output the plugins array as JSON")
    list_.add_argument(
        "-v", "--verbose", action="store_true", help="Show additional details (skills)"
    )
    list_.set_defaults(handler=cmd_list)

    verify = subparsers.add_parser(
        "verify", parents=[common], help="Verify marketplace.json and every local plugin it lists"
    )
    verify.add_argument(
        "--strict", action="store_true", help="Treat warnings as errors (useful for CI/CD)"
    )
    verify.set_defaults(handler=cmd_verify)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    DebugConsole.enabled = args.debug
    handler: Handler = args.handler
    try:
        config = resolve_config(args.root)
        return handler(config, args)
    except MarketplaceError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return e.exit_code


def create_main() -> int:
    return main(["create", *sys.argv[1:]])


def validate_main() -> int:
    return main(["validate", *sys.argv[1:]])


def register_main() -> int:
    return main(["register", *sys.argv[1:]])


def list_main() -> int:
    return main(["list", *sys.argv[1:]])


if __name__ == "__main__":
    sys.exit(main())
