#!/usr/bin/env python3
"""
Open Entry Inspection Tool

Loads (or builds and saves) the open-entry index for the configured
grammar cache and shows which labels will be spoken-launchable. Labels
mapping to more than RESULT_LIMIT components stay in the index but are
left out of the grammar.

Usage:
    python3 tools/inspect_open_entries.py
    python3 tools/inspect_open_entries.py --apps apps.json --rebuild
    python3 tools/inspect_open_entries.py --config config.yaml --label maps
"""

import sys
import argparse
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from voicedialer.apps import JsonAppDirectory, load_app_directory
from voicedialer.config import load_config
from voicedialer.errors import GrammarBuildFailure
from voicedialer.open_entries import OpenEntryIndex, RESULT_LIMIT, components_of


def cache_dir_of(config) -> Path:
    cache_dir = config.get("recognizer.cache_dir")
    return Path(cache_dir).expanduser() if cache_dir else config.storage_path / "grammar"


def main():
    parser = argparse.ArgumentParser(description="Inspect the open-entry index")
    parser.add_argument("--config", help="Config file (default: config.yaml)")
    parser.add_argument("--apps", help="apps.json to build from (default: apps.file)")
    parser.add_argument("--rebuild", action="store_true",
                        help="Delete the saved index and compiled grammar, then build the index again")
    parser.add_argument("--label", help="Show a single label")
    args = parser.parse_args()

    config = load_config(args.config)
    apps = JsonAppDirectory(Path(args.apps), config) if args.apps else load_app_directory(config)
    index = OpenEntryIndex(cache_dir_of(config), config)

    if args.rebuild:
        index.invalidate()

    try:
        entries = index.get_or_build(apps, config.get("session.self_class_name"))
    except GrammarBuildFailure as e:
        print(f"❌ {e}")
        sys.exit(1)

    print(f"Open entries: {index.path}")

    if args.label:
        value = index.get(args.label)
        if value is None:
            print(f"❌ No entry for '{args.label}'")
            sys.exit(1)
        for component in components_of(value):
            print(f"  {component}")
        return

    excluded = 0
    for label in sorted(entries):
        count = len(components_of(entries[label]))
        marker = "  " if count <= RESULT_LIMIT else "⚠️ "
        if count > RESULT_LIMIT:
            excluded += 1
        print(f"{marker}{label:<30} {count} component(s)")

    print(f"\n{'='*60}")
    print(f"{len(entries)} labels, {len(entries) - excluded} in grammar")
    if excluded:
        print(f"⚠️  {excluded} labels exceed {RESULT_LIMIT} components and are not spoken-launchable")


if __name__ == "__main__":
    main()
