import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from pokescan.logging_config import configure_logging
from pokescan.pipeline.analyze import default_context, analyze_screenshot
from pokescan.services.species import PokeApiBaseStatsProvider, build_name_cache
from pokescan.state.types import BaseStats, IVs
from pokescan.state.validation import validate_result
from pokescan.stats.level_calc import compute_level


def _base_stats(values: list[int] | None) -> BaseStats | None:
    if not values:
        return None
    atk, def_, sta = values
    return BaseStats(atk=atk, def_=def_, sta=sta)


def cmd_analyze(args: argparse.Namespace) -> int:
    # stdout carries the JSON result
    configure_logging(args.log_level, to_file=not args.no_log_file, stream=sys.stderr)
    path = Path(args.image)
    try:
        image = Image.open(path)
        image.load()
    except (OSError, UnidentifiedImageError) as e:
        raise SystemExit(f"Cannot read image {path}: {e}")

    names = build_name_cache() if args.fetch_names else None
    ctx = default_context(names=names)
    if args.fetch_base and not args.base:
        ctx = replace(ctx, base_stats=PokeApiBaseStatsProvider())
    width, height = image.size
    result = asyncio.run(analyze_screenshot(image, width, height, _base_stats(args.base), context=ctx))
    payload = {
        "image_path": str(path),
        "result": result.to_dict(),
        "errors": validate_result(result),
    }
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text + "\n")
    return 0


def cmd_level(args: argparse.Namespace) -> int:
    atk, def_, sta = args.iv
    try:
        ivs = IVs(atk=atk, def_=def_, sta=sta)
    except ValueError as e:
        raise SystemExit(str(e))
    level = compute_level(args.cp, _base_stats(args.base), ivs)
    sys.stdout.write(json.dumps({"cp": args.cp, "level": level}) + "\n")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pokescan", description="Read appraisal screenshots")
    sub = parser.add_subparsers(dest="command", required=True)

    p_an = sub.add_parser("analyze", help="Analyse one screenshot and print the result as JSON")
    p_an.add_argument("image", help="Path to the screenshot")
    p_an.add_argument(
        "--base",
        type=int,
        nargs=3,
        metavar=("ATK", "DEF", "STA"),
        help="Species base stats, enables the CP-formula level fallback",
    )
    p_an.add_argument("--output", help="Write the JSON here instead of stdout")
    p_an.add_argument(
        "--fetch-names",
        action="store_true",
        help="Validate names against the PokeAPI species list",
    )
    p_an.add_argument(
        "--fetch-base",
        action="store_true",
        help="Look up base stats on PokeAPI when --base is not given",
    )
    p_an.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    p_an.add_argument("--no-log-file", action="store_true", help="Log to stderr only")
    p_an.set_defaults(func=cmd_analyze)

    p_lv = sub.add_parser("level", help="Find the level for a CP from base stats and IVs")
    p_lv.add_argument("--cp", type=int, required=True)
    p_lv.add_argument("--base", type=int, nargs=3, required=True, metavar=("ATK", "DEF", "STA"))
    p_lv.add_argument("--iv", type=int, nargs=3, required=True, metavar=("ATK", "DEF", "STA"))
    p_lv.set_defaults(func=cmd_level)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    result: int = args.func(args)
    return result


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
