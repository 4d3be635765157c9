"""
Catalog Sync Orchestrator

Drives one sync pass for one environment:

    lease -> clear + verify -> connectivity check -> fetch -> manifest
          -> per record: normalize, resolve images, upsert
          -> category relations -> final count -> release

The clear step only runs when full refresh is enabled for the environment;
otherwise the pass upserts over existing rows. A failing record is logged,
listed in the result errors and skipped. Connectivity and verification
failures abort the pass.
"""

from __future__ import annotations

import logging
import os
import socket
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..airtable import AirtableClient, write_column_manifest
from ..attachments import AttachmentPipeline
from ..common.constants import ASSET_PRODUCTS, ASSET_WEBPHOTOS
from ..common.errors import ConnectivityError, VerificationError
from ..models import FieldMeta, RemoteRecord, SyncResult
from ..normalization import FieldMapper, normalize_webphoto
from ..store import ProductStore, WebPhotoStore
from .lock import SyncLease

logger = logging.getLogger(__name__)

# One lease table per process, shared by every orchestrator
_process_lease: Optional[SyncLease] = None


def get_process_lease(ttl_seconds: float = 1800) -> SyncLease:
    global _process_lease
    if _process_lease is None:
        _process_lease = SyncLease(ttl_seconds=ttl_seconds)
    return _process_lease


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _default_owner() -> str:
    return f"{socket.gethostname()}:{os.getpid()}"


class CatalogSyncOrchestrator:
    """
    Runs product and web-photo syncs for one environment.

    Usage:
        settings = load_settings("virtual")
        orchestrator = CatalogSyncOrchestrator.from_settings(settings)
        result = orchestrator.run_full_sync()
        print(result.to_dict())
    """

    def __init__(
        self,
        settings,
        client: AirtableClient,
        store: ProductStore,
        pipeline: AttachmentPipeline,
        lease: Optional[SyncLease] = None,
        webphoto_store: Optional[WebPhotoStore] = None,
        owner: str = "",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.environment = settings.environment
        self.client = client
        self.store = store
        self.pipeline = pipeline
        self.lease = lease or get_process_lease(settings.lease_ttl_seconds)
        self.webphoto_store = webphoto_store or WebPhotoStore(store.engine)
        self.owner = owner or _default_owner()
        self.clock = clock

    @classmethod
    def from_settings(cls, settings, lease: Optional[SyncLease] = None, owner: str = ""):
        client = AirtableClient(
            settings.api_key,
            settings.base_id,
            table_name=settings.products_table,
            view=settings.view,
            timeout=settings.request_timeout,
        )
        return cls(
            settings,
            client,
            ProductStore.from_settings(settings),
            AttachmentPipeline.from_settings(settings),
            lease=lease,
            owner=owner,
        )

    def close(self) -> None:
        self.client.close()
        self.pipeline.close()

    @property
    def products_key(self) -> str:
        return f"products:{self.environment}"

    @property
    def webphotos_key(self) -> str:
        return f"webphotos:{self.environment}"

    # ── Products ──────────────────────────────────────────────────────────

    def run_full_sync(self) -> SyncResult:
        """
        Run one product sync pass.

        Returns:
            SyncResult; inspect `errors` as well as `success`

        Raises:
            LockConflictError: If a pass for this environment is in flight
            ConnectivityError: If the remote catalog is unreachable
            VerificationError: If the store could not be cleared
        """
        result = SyncResult(environment=self.environment, started_at=_now())

        with self.lease.hold(self.products_key, self.owner):
            logger.info("Starting %s sync (full refresh: %s)",
                        self.environment, self.settings.full_refresh)

            if self.settings.full_refresh:
                self.store.clear_all_products()

            records = self._fetch_records()
            result.total_records = len(records)

            fields = self._write_manifest(records)
            mapper = FieldMapper(
                self.environment,
                field_types={meta.name: meta.type for meta in fields},
                clock=self.clock,
            )

            for record in records:
                if self._sync_record(record, mapper, result.errors):
                    result.synced_count += 1

            result.category_relations = self.store.populate_category_relations()
            result.final_database_count = self.store.count_products()
            result.success = self._verify_count(result)

        result.finished_at = _now()
        logger.info("Finished %s sync: %d/%d records, %d in store, %d error(s)",
                    self.environment, result.synced_count, result.total_records,
                    result.final_database_count, len(result.errors))
        return result

    def _fetch_records(self, table: Optional[str] = None) -> List[RemoteRecord]:
        if not self.client.test_connection():
            raise ConnectivityError(
                f"Cannot reach the {self.environment} catalog (base {self.settings.base_id or 'unset'})"
            )
        try:
            return self.client.fetch_all_records(table)
        except ConnectionError as e:
            raise ConnectivityError(str(e)) from e

    def _write_manifest(self, records: List[RemoteRecord]) -> List[FieldMeta]:
        """Write the column manifest; returns the field list used for it."""
        fields = self.client.fetch_field_metadata()
        if not fields:
            # No metadata: derive names from the records, type unknown
            seen: Dict[str, FieldMeta] = {}
            for record in records:
                for name in record.fields:
                    seen.setdefault(name, FieldMeta(name))
            fields = list(seen.values())

        write_column_manifest(self.settings.manifest_path, fields)
        return fields

    def _sync_record(self, record: RemoteRecord, mapper: FieldMapper, errors: List[str]) -> bool:
        try:
            bag = mapper.normalize(record)
            self.pipeline.resolve_fields(bag, self.environment, ASSET_PRODUCTS, errors)
            stored = self.store.upsert_product(bag)
        except Exception as e:
            logger.error("Record %s failed: %s", record.id, e)
            errors.append(f"Record {record.id}: {e}")
            return False

        if stored is None:
            errors.append(f"Record {record.id}: not persisted")
            return False
        return True

    def _verify_count(self, result: SyncResult) -> bool:
        if result.final_database_count == result.total_records:
            return True

        message = (f"Store holds {result.final_database_count} products "
                   f"but {result.total_records} records were fetched")
        if self.settings.strict_verification:
            logger.error(message)
            result.errors.append(str(VerificationError(message)))
            return False
        logger.warning(message)
        return True

    # ── Web photos ────────────────────────────────────────────────────────

    def sync_webphotos(self) -> SyncResult:
        """
        Sync site imagery from the web-photos table.

        Raises:
            LockConflictError: If a web-photo sync for this environment is in flight
            ConnectivityError: If the remote catalog is unreachable
        """
        result = SyncResult(environment=self.environment, started_at=_now())

        with self.lease.hold(self.webphotos_key, self.owner):
            records = self._fetch_records(self.settings.webphotos_table)
            result.total_records = len(records)

            for record in records:
                try:
                    photo = normalize_webphoto(record)
                    url = self.pipeline.resolve(
                        photo["descriptors"], self.environment, ASSET_WEBPHOTOS, result.errors
                    )[0]
                    self.webphoto_store.upsert_webphoto(photo["name"], url)
                except Exception as e:
                    logger.error("Web photo %s failed: %s", record.id, e)
                    result.errors.append(f"Web photo {record.id}: {e}")
                    continue
                result.synced_count += 1

            result.final_database_count = len(self.webphoto_store.get_all_webphotos())
            result.success = True

        result.finished_at = _now()
        logger.info("Finished %s web photo sync: %d/%d", self.environment,
                    result.synced_count, result.total_records)
        return result
