from __future__ import annotations

import argparse
import sys
from typing import Sequence

from zonerunner.cli.pygame_viewer import DEFAULT_SEED, run_pygame_viewer
from zonerunner.content.io import DEFAULT_MAP_PATH, MapFormatError
from zonerunner.content.maps import ensure_map_file


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python play.py", description="Canonical Zone launcher.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Master seed for the effect RNG stream.")
    parser.add_argument("--map-path", default=DEFAULT_MAP_PATH, help="Map path; the starter map is written here if missing.")
    parser.add_argument("--headless", action="store_true", help="Run startup path in headless mode.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        zone_map = ensure_map_file(args.map_path)
    except MapFormatError as exc:
        print(f"[zonerunner.play] cannot prepare map: {exc}", file=sys.stderr)
        return 1
    print(f"[zonerunner.play] map ready path={args.map_path} size={zone_map.width}x{zone_map.height}")
    return run_pygame_viewer(map_path=args.map_path, seed=args.seed, headless=args.headless)


if __name__ == "__main__":
    raise SystemExit(main())
