#!/usr/bin/env python3
"""
Catalog Sync Script

Pulls the remote catalog into the environment store:
1. Clears the store (environments with full refresh enabled)
2. Fetches every record and writes the column manifest
3. Normalizes records, re-hosts their images and upserts them
4. Rebuilds category relations and compares counts

Usage:
    python3 sync_catalog.py --env virtual
    python3 sync_catalog.py --context distri1 --webphotos
    python3 sync_catalog.py --env regular --strict --json
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from catalog_sync.common import CatalogSyncError, load_settings, resolve_environment
from catalog_sync.common.log_config import setup_logging
from catalog_sync.sync import CatalogSyncOrchestrator

logger = logging.getLogger(__name__)


def print_result(title: str, result) -> None:
    print()
    print("=" * 60)
    print(title)
    print("=" * 60)
    print(f"  Environment:     {result.environment}")
    print(f"  Records fetched: {result.total_records}")
    print(f"  Synced:          {result.synced_count}")
    print(f"  In store:        {result.final_database_count}")
    if result.category_relations:
        print(f"  Relations:       {result.category_relations}")
    print(f"  Success:         {result.success}")
    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for error in result.errors[:20]:
            print(f"    - {error}")
        if len(result.errors) > 20:
            print(f"    ... and {len(result.errors) - 20} more")


def main():
    parser = argparse.ArgumentParser(
        description="Sync the remote product catalog into the local store"
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--env",
        choices=["virtual", "regular"],
        help="Environment to sync"
    )
    group.add_argument(
        "--context",
        help="Storefront context (e.g. distri1, naranjos2); mapped to an environment"
    )
    parser.add_argument(
        "--webphotos",
        action="store_true",
        help="Also sync web photos and logos"
    )
    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Upsert over existing rows instead of clearing the store first"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail the pass when the final count differs from the fetched count"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a summary"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress info messages, show only warnings and errors"
    )

    args = parser.parse_args()
    setup_logging(verbose=args.verbose, quiet=args.quiet)

    environment = args.env or resolve_environment(args.context)
    settings = load_settings(environment)
    if args.no_clear:
        settings = replace(settings, full_refresh=False)
    if args.strict:
        settings = replace(settings, strict_verification=True)

    if not settings.has_credentials:
        print(f"Error: No catalog credentials configured for '{environment}' (see .env.example)")
        sys.exit(1)

    if not args.json:
        print("=" * 60)
        print("Catalog Sync")
        print("=" * 60)
        print(f"  Environment:  {environment}")
        print(f"  Store:        {settings.store_path}")
        print(f"  Full refresh: {settings.full_refresh}")
        print(f"  Images:       {settings.placement_mode}")

    orchestrator = CatalogSyncOrchestrator.from_settings(settings)
    results = []
    try:
        results.append(("Product Sync", orchestrator.run_full_sync()))
        if args.webphotos:
            results.append(("Web Photo Sync", orchestrator.sync_webphotos()))
    except CatalogSyncError as e:
        print(f"\nSync aborted: {e}")
        sys.exit(1)
    finally:
        orchestrator.close()

    if args.json:
        print(json.dumps([result.to_dict() for _, result in results], indent=2, ensure_ascii=False))
    else:
        for title, result in results:
            print_result(title, result)

    if not all(result.success for _, result in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
