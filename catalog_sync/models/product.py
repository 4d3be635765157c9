"""
Catalog data models.

Pure data classes for remote records, attachment references, category
relations and sync summaries. No I/O - only data structure definitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class RemoteRecord:
    """One row from the remote catalog provider."""
    id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    created_time: str = ""


@dataclass(frozen=True)
class FieldMeta:
    """Declared name and type of one remote field."""
    name: str
    type: str = "unknown"


@dataclass(frozen=True)
class AttachmentDescriptor:
    """
    Reference to a remote binary asset.

    `url` is always present. `filename` is the original upload name when
    the provider reports one, `attachment_id` the provider's own id.
    """
    url: str
    filename: str = ""
    attachment_id: str = ""


@dataclass
class CategoryRelation:
    """Category/subcategory pair derived from the product set."""
    id: str
    category: str
    subcategory: str = ""
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "subcategory": self.subcategory,
            "isActive": self.is_active,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class SyncResult:
    """
    Summary of one sync pass.

    `success` only reports that the pass ran to completion; per-record and
    per-image failures are listed in `errors` and must be inspected too.
    """
    environment: str
    success: bool = False
    synced_count: int = 0
    total_records: int = 0
    final_database_count: int = 0
    category_relations: int = 0
    errors: List[str] = field(default_factory=list)
    started_at: str = ""
    finished_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "environment": self.environment,
            "syncedCount": self.synced_count,
            "totalRecords": self.total_records,
            "finalDatabaseCount": self.final_database_count,
            "categoryRelations": self.category_relations,
            "errors": list(self.errors),
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
        }
