"""
Persistence for synchronized catalog data.

This package provides:
- ProductStore: schema-evolving product table per environment
- Category relation CRUD (mixed into ProductStore)
- WebPhotoStore: site imagery keyed by name
"""

from .database import dispose_engines, get_engine
from .product_store import ProductStore, generate_product_id
from .relations import category_relation_id
from .schema import PROFILES, SchemaProfile, baseline_columns
from .webphoto_store import WebPhotoStore

__all__ = [
    # Products
    'ProductStore',
    'generate_product_id',
    # Relations
    'category_relation_id',
    # Schema
    'PROFILES',
    'SchemaProfile',
    'baseline_columns',
    # Web photos
    'WebPhotoStore',
    # Engines
    'dispose_engines',
    'get_engine',
]
