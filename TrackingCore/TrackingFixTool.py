#!/usr/bin/env python3
"""
Tracking Fix Tool

Applies the San Francisco / New York tracking tables to a selection snapshot
and reports what would change. Snapshots are never written back.

Usage:
    tracking-fix <subcommand> [options]

Subcommands:
    fix         Fix every text run in a selection snapshot (JSON)
    table       Print the dense tracking table of one or all variants
    lookup      Show the family and letter-spacing for a family at a size
    fonts       List the families and styles installed in font folders

Examples:
    tracking-fix fix selection.json
    tracking-fix fix selection.json --fonts ~/Library/Fonts -r -v
    tracking-fix fix selection.json --missing "SF Pro Display/Bold"
    tracking-fix table "SF Pro Text"
    tracking-fix lookup "SF Pro Display" 18
    tracking-fix fonts /Library/Fonts --recursive
"""

import argparse
import asyncio
import json
import math
import sys
from typing import List, Optional

import TrackingCore.core_console_styles as cs
from TrackingCore.core_config import DEFAULT_CONFIG
from TrackingCore.core_error_handling import (
    ErrorContext,
    ErrorTracker,
    FontLoadError,
    SceneFormatError,
)
from TrackingCore.core_font_registry import FontRegistry, RegistryFontLoader
from TrackingCore.core_logging_config import (
    HandlerAPI,
    Verbosity,
    print_summary,
    setup_logging,
)
from TrackingCore.core_run_transformer import RunOutcome, RunPlan, plan_run
from TrackingCore.core_scene_io import load_scene, scene_to_dict
from TrackingCore.core_scene_model import (
    FontLoader,
    FontName,
    LetterSpacing,
    StaticFontLoader,
    StyleRun,
    TextNode,
    TextStyle,
)
from TrackingCore.core_selection_traversal import fix_selection
from TrackingCore.core_tracking_tables import get_tracking_tables
from TrackingCore.core_typeface_dictionaries import (
    SUPPORTED_FAMILIES,
    TypefaceVariant,
    resolve_variant,
)

console = cs.get_console()


def _parse_font_arg(value: str) -> FontName:
    family, sep, style = value.partition("/")
    if not family.strip():
        raise argparse.ArgumentTypeError(f"Expected FAMILY or FAMILY/STYLE, got {value!r}")
    return FontName(family.strip(), style.strip() if sep and style.strip() else "Regular")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"Expected at least 1, got {number}")
    return number


def _font_size(value: str) -> float:
    try:
        size = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected a number, got {value!r}") from None
    if not math.isfinite(size) or size <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive font size, got {value!r}")
    return size


def _verbosity(args: argparse.Namespace) -> Verbosity:
    if getattr(args, "quiet", False):
        return Verbosity.QUIET
    level = Verbosity.BRIEF + getattr(args, "verbose", 0)
    return Verbosity(min(level, Verbosity.TRACE))


def _build_loader(args: argparse.Namespace, handler: HandlerAPI) -> FontLoader:
    if args.fonts:
        registry = FontRegistry.from_paths(args.fonts, recursive=args.recursive)
        if registry.errors.errors:
            handler.warning(
                f"{len(registry.errors)} font file(s) could not be read and are ignored"
            )
        if len(registry) == 0:
            handler.warning("No fonts found; every supported text will fail to load")
        for font in args.missing or []:
            registry.discard(font)
        return RegistryFontLoader(registry)
    return StaticFontLoader(missing=args.missing or [])


def _report_plan(handler: HandlerAPI, plan: RunPlan) -> None:
    run = plan.run
    if not plan.is_supported:
        handler.skipped(run.node.name, plan.skip_reason or "unsupported", run.char_range)
        return
    after = TextStyle(plan.new_font, run.size, plan.new_letter_spacing)
    if plan.outcome is RunOutcome.MODIFIED:
        handler.run_updated(
            run.node.name,
            run.style.describe(),
            after.describe(),
            run.char_range,
            swapped_to=plan.new_font.family if plan.family_changed else None,
        )
    else:
        handler.run_unchanged(run.node.name, after.describe(), run.char_range)


def command_fix(args: argparse.Namespace) -> int:
    """Fix a selection snapshot and print the summary line."""
    _, handler, metrics = setup_logging(_verbosity(args))
    config = DEFAULT_CONFIG.with_overrides(
        concurrent=args.concurrent or None,
        stop_on_error=args.stop_on_error or None,
        compare_digits=args.digits,
    )

    try:
        selection = load_scene(args.scene)
    except (SceneFormatError, OSError) as e:
        tracker = ErrorTracker()
        tracker.add_from_exception(
            ErrorContext.SCENE_IO, e, message=f"Cannot read selection snapshot {args.scene}"
        )
        tracker.print_summary(console=console)
        return 2

    handler.info(
        f"Loaded {cs.fmt_count(len(selection))} selected node(s) from {args.scene}"
    )
    loader = _build_loader(args, handler)

    try:
        report = asyncio.run(fix_selection(selection, loader, config=config))
    except FontLoadError as e:
        handler.error(str(e))
        return 1

    for plan in report.plans:
        _report_plan(handler, plan)
    for error in report.errors.errors:
        handler.error(error.message, node_name=error.node_name)

    if handler.verbosity >= Verbosity.VERBOSE:
        print_summary(metrics, console=console)
    if args.show_scene:
        print(json.dumps(scene_to_dict(selection), indent=2, ensure_ascii=False))

    cs.emit(report.summary, console=console)
    return 0 if report.ok else 1


def command_table(args: argparse.Namespace) -> int:
    """Print dense tracking tables."""
    tables = get_tracking_tables()
    if args.variant:
        variant = resolve_variant(args.variant)
        if variant is None:
            cs.StatusIndicator("error").add_message(args.variant).with_explanation(
                f"not one of {', '.join(SUPPORTED_FAMILIES)}"
            ).emit(console)
            return 2
        variants = [variant]
    else:
        variants = list(TypefaceVariant)

    for variant in variants:
        table = tables[variant]
        rich_table = cs.create_table(
            title=f"{variant.family} [{table.min_size}, {table.max_size})"
        )
        rich_table.add_column("Size", justify="right")
        rich_table.add_column("Tracking (1/1000 em)", justify="right")
        rich_table.add_column("Letter-spacing", justify="right")
        for size, coefficient in table.items():
            rich_table.add_row(
                str(size),
                str(coefficient),
                f"{size * coefficient / DEFAULT_CONFIG.tracking_unit:+.3f}px",
            )
        console.print(rich_table)
    return 0


def command_lookup(args: argparse.Namespace) -> int:
    """Show what a run in the given family and size would become."""
    style = TextStyle(FontName(args.family, args.style), args.size, LetterSpacing())
    node = TextNode("lookup", "lookup", " ", style=style)
    plan = plan_run(StyleRun(node, 0, 1, style))
    if not plan.is_supported:
        cs.StatusIndicator("warning").add_message(args.family).with_explanation(
            f"is not supported; use one of {', '.join(SUPPORTED_FAMILIES)}"
        ).emit(console)
        return 2
    indicator = cs.StatusIndicator("info").add_message(
        f"{plan.new_font.family} {args.size:g}pt"
    )
    indicator.add_item(cs.fmt_field("letter-spacing", str(plan.new_letter_spacing)))
    if plan.family_changed:
        indicator.add_item(
            cs.fmt_field("family", cs.fmt_change(args.family, plan.new_font.family))
        )
    indicator.emit(console)
    return 0


def command_fonts(args: argparse.Namespace) -> int:
    """List installed families, highlighting the supported ones."""
    registry = FontRegistry.from_paths(args.paths, recursive=args.recursive)
    registry.errors.print_summary(console=console)
    if len(registry) == 0:
        cs.StatusIndicator("warning").add_message("No font files found").emit(console)
        return 1
    for family, styles in registry.families():
        status = "success" if family in SUPPORTED_FAMILIES else "info"
        cs.StatusIndicator(status).add_message(family).add_item(", ".join(styles)).emit(
            console
        )
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        description="Fix tracking and optical variants of SF and New York text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tracking-fix fix selection.json
  tracking-fix fix selection.json --fonts ~/Library/Fonts -r -v
  tracking-fix table "SF Pro Text"
  tracking-fix lookup "SF Pro Display" 18
  tracking-fix fonts /Library/Fonts --recursive
        """,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available subcommands")

    fix_parser = subparsers.add_parser("fix", help="Fix a selection snapshot")
    fix_parser.add_argument("scene", help="Selection snapshot (JSON)")
    fix_parser.add_argument(
        "--fonts",
        action="append",
        help="Font file or folder to load fonts from (default: every font loads)",
    )
    fix_parser.add_argument(
        "--recursive", "-r", action="store_true", help="Scan font folders recursively"
    )
    fix_parser.add_argument(
        "--missing",
        "-m",
        action="append",
        type=_parse_font_arg,
        help="Treat FAMILY/STYLE as unavailable (repeatable)",
    )
    fix_parser.add_argument(
        "--concurrent", action="store_true", help="Visit sibling nodes concurrently"
    )
    fix_parser.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Abort on the first font that cannot be loaded",
    )
    fix_parser.add_argument(
        "--digits",
        type=_positive_int,
        default=None,
        help="Significant digits when comparing letter-spacing (default: 2)",
    )
    fix_parser.add_argument(
        "--show-scene", action="store_true", help="Print the fixed snapshot as JSON"
    )
    fix_parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase verbosity"
    )
    fix_parser.add_argument(
        "--quiet", "-q", action="store_true", help="Only print the summary and errors"
    )

    table_parser = subparsers.add_parser("table", help="Print tracking tables")
    table_parser.add_argument("variant", nargs="?", help="Family name (default: all)")

    lookup_parser = subparsers.add_parser("lookup", help="Look up one family and size")
    lookup_parser.add_argument("family", help="Font family, e.g. 'SF Pro Display'")
    lookup_parser.add_argument("size", type=_font_size, help="Font size in points")
    lookup_parser.add_argument("--style", default="Regular", help="Font style")

    fonts_parser = subparsers.add_parser("fonts", help="List installed families")
    fonts_parser.add_argument("paths", nargs="+", help="Font files or folders")
    fonts_parser.add_argument(
        "--recursive", "-r", action="store_true", help="Scan folders recursively"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        return 0

    if args.subcommand == "fix":
        return command_fix(args)
    elif args.subcommand == "table":
        return command_table(args)
    elif args.subcommand == "lookup":
        return command_lookup(args)
    elif args.subcommand == "fonts":
        return command_fonts(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
