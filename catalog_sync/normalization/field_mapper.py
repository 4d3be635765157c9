"""
Environment Field Mapper

Converts one raw remote record into one product attribute bag.
Pure transformation: no I/O, the clock is injectable.

Environment conventions:
    virtual - single `price`, single `stock` (no `quantity` key)
    regular - `price1` + `price2`, canonical `quantity` (`stock` kept as-is)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..common.constants import (
    DEFAULT_BRAND,
    DEFAULT_NAME,
    ENV_REGULAR,
    ENVIRONMENTS,
)
from ..common.errors import ConversionError
from ..models import RemoteRecord
from .attachments import is_attachment_field, to_attachment_descriptors

logger = logging.getLogger(__name__)

# Fixed-core fields, folded to this exact case
CORE_FIELDS = ("name", "brand", "type", "colors", "category", "subCategory", "imageURL")
# Source keys folded the same way; `Price` feeds the generic price rules
FOLDED_FIELDS = CORE_FIELDS + ("price",)
_CORE_LOOKUP = {name.lower(): name for name in FOLDED_FIELDS}

# Fixed-core list fields that are never null after normalization
LIST_DEFAULTS = ("colors", "category", "subCategory", "imageURL")

# Virtual stock is probed in this order; first non-null wins
VIRTUAL_STOCK_CANDIDATES = ("Stock", "stock", "Quantity", "quantity", "Qty", "qty")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _take_folded(
    product: Dict[str, Any],
    *names: str,
    missing: Callable[[Any], bool] = _is_missing,
) -> Any:
    """
    Pop every key matching one of `names` ignoring case.

    Returns the first value not considered missing: the listed spellings
    in order, then any other spelling in record order. Removing all of
    them keeps a differently-cased source key from shadowing the
    canonical key in the store.
    """
    lowered = {name.lower() for name in names}
    keys = [name for name in names if name in product]
    keys += [key for key in product if key.lower() in lowered and key not in names]

    value = None
    for key in keys:
        raw = product.pop(key)
        if value is None and not missing(raw):
            value = raw
    return value


def parse_int(value: Any, default: int = 0) -> int:
    """Parse an integer count, falling back to `default`."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def parse_float(value: Any, default: float = 0.0) -> float:
    """Parse a price, falling back to `default`."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip().replace(",", "."))
    except (TypeError, ValueError):
        return default


RecordLike = Union[RemoteRecord, Mapping[str, Any]]


class FieldMapper:
    """
    Maps raw remote records to attribute bags for one environment.

    Usage:
        mapper = FieldMapper("regular", field_types={"Photos": "multipleAttachments"})
        bag = mapper.normalize({"id": "rec1", "fields": {"Name": "Bolso", "Price1": 100}})
        # {'id': 'rec1', 'name': 'Bolso', 'price1': 100, 'price2': 100, ...}
    """

    def __init__(
        self,
        environment: str,
        field_types: Optional[Mapping[str, str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            environment: 'virtual' or 'regular'
            field_types: Declared remote field types by name (metadata call)
            clock: Returns the timestamp stamped into `lastUpdated`
        """
        if environment not in ENVIRONMENTS:
            raise ValueError(f"Unknown environment: {environment}")
        self.environment = environment
        self.field_types = dict(field_types or {})
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def normalize(self, record: RecordLike) -> Dict[str, Any]:
        """
        Normalize one record.

        Args:
            record: RemoteRecord or {"id": ..., "fields": {...}}

        Returns:
            Attribute bag; attachment fields hold AttachmentDescriptor lists

        Raises:
            ConversionError: If the record has no id or its fields are not a mapping
        """
        record_id, fields = self._unpack(record)

        product: Dict[str, Any] = {
            "id": record_id,
            "lastUpdated": self.clock().isoformat(),
        }

        for field_name, raw_value in fields.items():
            if not isinstance(field_name, str) or not field_name.strip():
                logger.warning("Record %s: skipping unnamed field", record_id)
                continue
            key = _CORE_LOOKUP.get(field_name.lower(), field_name)
            value = self._convert_value(record_id, field_name, raw_value)
            if key != field_name and key in product and product[key] is not None:
                # Exact-case core key already set; keep it
                continue
            product[key] = value

        if self.environment == ENV_REGULAR:
            self._map_regular_prices(product)
            self._map_regular_stock(product)
        else:
            self._map_virtual_price(product)
            self._map_virtual_stock(product)

        self._apply_defaults(product)
        return product

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _unpack(record: RecordLike) -> tuple[str, Mapping[str, Any]]:
        if isinstance(record, RemoteRecord):
            record_id, fields = record.id, record.fields
        elif isinstance(record, Mapping):
            record_id, fields = record.get("id"), record.get("fields")
        else:
            raise ConversionError(str(record)[:40], f"unsupported record type {type(record).__name__}")

        if not isinstance(record_id, str) or not record_id.strip():
            raise ConversionError(str(record_id), "missing record id")
        if fields is None:
            fields = {}
        if not isinstance(fields, Mapping):
            raise ConversionError(record_id, f"fields must be a mapping, got {type(fields).__name__}")
        return record_id, fields

    def _convert_value(self, record_id: str, field_name: str, value: Any) -> Any:
        """Convert one raw value; unconvertible values are logged and become None."""
        try:
            if value is None:
                return None

            if field_name.upper() == "SKU":
                return str(value)

            if is_attachment_field(field_name, self.field_types, value):
                return to_attachment_descriptors(value)

            if isinstance(value, (str, int, float, bool)):
                return value
            if isinstance(value, (list, tuple)):
                return list(value)
            if isinstance(value, Mapping):
                return json.dumps(value, ensure_ascii=False)
            return str(value)
        except (TypeError, ValueError) as e:
            logger.error("Record %s: cannot convert field %s: %s", record_id, field_name, e)
            return None

    @staticmethod
    def _map_regular_prices(product: Dict[str, Any]) -> None:
        price1 = _take_folded(product, "Price1", "price1")
        price2 = _take_folded(product, "Price2", "price2")

        if _is_missing(price1) and _is_missing(price2):
            generic = product.get("price")
            if not _is_missing(generic):
                price1 = price2 = generic
            else:
                price1 = price2 = 0
        elif _is_missing(price1):
            price1 = price2
        elif _is_missing(price2):
            price2 = price1

        product["price1"] = price1
        product["price2"] = price2

    @staticmethod
    def _map_virtual_price(product: Dict[str, Any]) -> None:
        if _is_missing(product.get("price")):
            product["price"] = 0

    @staticmethod
    def _map_regular_stock(product: Dict[str, Any]) -> None:
        quantity = _take_folded(product, "quantity", "Quantity")
        if _is_missing(quantity):
            quantity = next(
                (product[k] for k in ("stock", "Stock") if not _is_missing(product.get(k))),
                0,
            )
        product["quantity"] = parse_int(quantity)

    @staticmethod
    def _map_virtual_stock(product: Dict[str, Any]) -> None:
        stock = _take_folded(product, *VIRTUAL_STOCK_CANDIDATES, missing=lambda v: v is None)
        product["stock"] = parse_int(stock)

    @staticmethod
    def _apply_defaults(product: Dict[str, Any]) -> None:
        if _is_missing(product.get("name")):
            product["name"] = DEFAULT_NAME
        if _is_missing(product.get("brand")):
            product["brand"] = DEFAULT_BRAND
        for key in LIST_DEFAULTS:
            if product.get(key) is None:
                product[key] = []


def normalize_webphoto(record: RecordLike) -> Dict[str, Any]:
    """
    Convert a web-photo/logo record into {id, name, descriptors}.

    The name has hyphens replaced by underscores; the image comes from the
    first populated of image, imageURL, ImageURL, URL, Image, Photo.

    Raises:
        ConversionError: If the record has no id, no name or no image
    """
    record_id, fields = FieldMapper._unpack(record)

    raw_name = fields.get("name") or fields.get("Name") or ""
    name = str(raw_name).strip().replace("-", "_")
    if not name:
        raise ConversionError(record_id, "web photo has no name")

    raw_image = next(
        (fields[k] for k in ("image", "imageURL", "ImageURL", "URL", "Image", "Photo")
         if fields.get(k)),
        None,
    )
    descriptors = to_attachment_descriptors(raw_image)[:1]
    if not descriptors:
        raise ConversionError(record_id, f"web photo {name} has no image")

    return {"id": record_id, "name": name, "descriptors": descriptors}
