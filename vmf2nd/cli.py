"""Command line front end: ``vmf2nd INPUT [OUTPUT]``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .pipeline.converter import ConversionPipeline
from .settings import TEXTURE_MODES, ConverterSettings, SettingsError, load_settings

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vmf2nd",
        description="Convert a Portal 2 VMF into a Narbacular Drop level.",
    )
    p.add_argument("input", type=Path, help="Input VMF file")
    p.add_argument("output", type=Path, nargs="?", help="Compiled level (default: INPUT with .cmf suffix)")
    p.add_argument("--config", type=Path, help="Settings JSON (default: ~/.config/vmf2nd/settings.json)")
    p.add_argument("--tools-dir", help="Level creation kit directory")
    p.add_argument(
        "--texture-mode",
        choices=TEXTURE_MODES,
        help="hash: converted texture pack, rules: stock textures, auto: hash when the pack exists",
    )
    p.add_argument("--unit-scale", type=float, help="Scale applied to every coordinate")
    p.add_argument(
        "--door-hints",
        action="store_true",
        default=None,
        help="Show a message when the player walks up to a locked door",
    )
    p.add_argument(
        "--no-compile",
        dest="compile",
        action="store_false",
        default=None,
        help="Only write the .map file",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def resolve_settings(args: argparse.Namespace) -> ConverterSettings:
    """Settings file values, overridden by any flag given on the command line."""
    settings = load_settings(args.config)
    return settings.with_overrides(
        tools_dir=args.tools_dir,
        texture_mode=args.texture_mode,
        unit_scale=args.unit_scale,
        door_hints=args.door_hints,
        compile=args.compile,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if not args.input.is_file():
        parser.error(f"input file not found: {args.input}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = resolve_settings(args)
    except SettingsError as e:
        logger.error("%s", e)
        return 1

    result = ConversionPipeline(settings).convert(args.input, args.output)
    if not result.success:
        for error in result.errors:
            logger.error("%s", error)
        return 1

    logger.info("Wrote %s", result.level_file or result.map_file)
    if result.warnings:
        logger.info("%d warning(s)", len(result.warnings))
    return 0


if __name__ == "__main__":
    sys.exit(main())
