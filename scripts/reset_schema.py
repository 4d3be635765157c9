#!/usr/bin/env python3
"""
Reset Store Schema

Drops the products table of one environment and recreates its baseline
schema. All products and every dynamically added column are lost.

Usage:
    python3 reset_schema.py --env virtual --dry-run
    python3 reset_schema.py --env regular --confirm
"""

import argparse
import logging
import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from catalog_sync.common import load_settings
from catalog_sync.common.log_config import setup_logging
from catalog_sync.store import ProductStore, baseline_columns

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Reset an environment store to its baseline schema"
    )
    parser.add_argument(
        "--env",
        required=True,
        choices=["virtual", "regular"],
        help="Environment whose store is reset"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the columns that would be dropped without changing anything"
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Required to actually reset (destructive)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging"
    )

    args = parser.parse_args()
    setup_logging(verbose=args.verbose)

    settings = load_settings(args.env)
    store = ProductStore.from_settings(settings)

    baseline = {name.lower() for name in baseline_columns(store.profile)}
    dynamic = [name for name in store.get_columns() if name.lower() not in baseline]

    print("=" * 60)
    print("Reset Store Schema")
    print("=" * 60)
    print(f"  Environment:     {args.env}")
    print(f"  Store:           {settings.store_path}")
    print(f"  Products:        {store.count_products()}")
    print(f"  Dynamic columns: {len(dynamic)}")
    for name in dynamic:
        print(f"    - {name}")

    if args.dry_run:
        print("\n  DRY RUN - nothing changed")
        return

    if not args.confirm:
        print("\nError: refusing to reset without --confirm")
        sys.exit(1)

    store.reset_database_schema()
    print(f"\n  Reset complete: {len(store.get_columns())} baseline columns")


if __name__ == "__main__":
    main()
