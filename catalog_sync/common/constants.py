"""
Shared constants for the project.

This module contains application-wide constants that should have a single source of truth.
"""

# Deployment environments. Each owns a physically separate store.
ENV_VIRTUAL = "virtual"
ENV_REGULAR = "regular"
ENVIRONMENTS = (ENV_VIRTUAL, ENV_REGULAR)

# Sync-trigger contexts that select the regular environment
REGULAR_CONTEXTS = frozenset({"regular", "distri1", "naranjos2"})

# Placeholders substituted for missing required fields
DEFAULT_NAME = "Sin Nombre"
DEFAULT_BRAND = "Sin Marca"
DEFAULT_CATEGORY = "Sin Categoría"

# Asset classes (namespace for re-hosted images)
ASSET_PRODUCTS = "products"
ASSET_WEBPHOTOS = "webphotos"

# Fields stored as 0/1
BOOLEAN_FIELDS = frozenset({"isProductStarred", "isProductStarredAirtable"})

# Numeric fields: floats for prices, ints for stock counts
FLOAT_FIELDS = frozenset({"price", "price1", "price2", "distriPrice"})
INT_FIELDS = frozenset({"stock", "quantity"})

# Bookkeeping columns excluded from the column manifest
TIMESTAMP_FIELDS = frozenset({"lastUpdated", "createdAt", "updatedAt"})
