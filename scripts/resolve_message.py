"""Resolve chat messages against the local catalogs without starting the API."""

import argparse
import json
import pathlib
from dataclasses import asdict

from partfinder.catalog import load_local
from partfinder.config import settings
from partfinder.resolver import Resolver


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("messages", nargs="+", help="Messages to resolve.")
    parser.add_argument(
        "--catalog",
        type=pathlib.Path,
        default=settings.catalog_path,
        help="Parts catalog snapshot (JSON key -> descriptor mapping).",
    )
    parser.add_argument(
        "--schematics",
        type=pathlib.Path,
        default=settings.schematic_catalog_path,
        help="Schematic catalog snapshot (JSON key -> descriptor mapping).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    catalogs = [
        load_local(args.catalog, "asset"),
        load_local(args.schematics, "schematic"),
    ]
    resolver = Resolver(settings.trigger_phrases)

    for message in args.messages:
        result = resolver.resolve(message, catalogs)
        if result is None:
            print(f"{message!r} -> no match (forwarded to the assistant)")
        else:
            print(f"{message!r} -> {json.dumps(asdict(result), ensure_ascii=False)}")


if __name__ == "__main__":
    main()
