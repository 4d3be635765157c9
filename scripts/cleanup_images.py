#!/usr/bin/env python3
"""
Cleanup Unused Images

Removes locally hosted product images that no stored product references
any more. Only applies to local placement.

Usage:
    python3 cleanup_images.py --env virtual
    python3 cleanup_images.py --env regular --dry-run
"""

import argparse
import logging
import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from catalog_sync.attachments import LocalPlacement
from catalog_sync.common import load_settings
from catalog_sync.common.constants import ASSET_PRODUCTS
from catalog_sync.common.log_config import setup_logging
from catalog_sync.store import ProductStore

logger = logging.getLogger(__name__)


def referenced_urls(products) -> set:
    """Every string URL held in any list or string field of the products."""
    urls = set()
    for product in products:
        for value in product.values():
            items = value if isinstance(value, list) else [value]
            for item in items:
                if isinstance(item, str) and "/" in item:
                    urls.add(item)
    return urls


def main():
    parser = argparse.ArgumentParser(
        description="Remove local product images no longer referenced"
    )
    parser.add_argument(
        "--env",
        required=True,
        choices=["virtual", "regular"],
        help="Environment to clean"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count unreferenced files without deleting them"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging"
    )

    args = parser.parse_args()
    setup_logging(verbose=args.verbose)

    settings = load_settings(args.env)
    if settings.placement_mode != "local":
        print(f"Error: images for '{args.env}' are not hosted locally")
        sys.exit(1)

    store = ProductStore.from_settings(settings)
    placement = LocalPlacement(settings.images_dir, url_prefix=settings.url_prefix)
    keep = referenced_urls(store.get_all_products())

    print("=" * 60)
    print("Cleanup Unused Images")
    print("=" * 60)
    print(f"  Environment: {args.env}")
    print(f"  Directory:   {settings.images_dir / args.env / ASSET_PRODUCTS}")
    print(f"  Referenced:  {len(keep)}")

    if args.dry_run:
        directory = settings.images_dir / args.env / ASSET_PRODUCTS
        keep_names = {url.rstrip("/").split("/")[-1] for url in keep}
        unused = [p for p in directory.iterdir() if p.is_file() and p.name not in keep_names] \
            if directory.is_dir() else []
        print(f"\n  DRY RUN - {len(unused)} file(s) would be removed")
        return

    removed = placement.cleanup_unused(args.env, ASSET_PRODUCTS, keep)
    print(f"\n  Removed: {removed}")


if __name__ == "__main__":
    main()
