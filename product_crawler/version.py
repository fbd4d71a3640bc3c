"""Central versioning and schema constants for product_crawler."""

__all__ = ["__version__", "CONFIG_SCHEMA_VERSION"]

#: Semantic version of this codebase (bump using SemVer).
__version__ = "0.2.0"

#: Configuration schema version (increment if the config file format breaks).
#: v2 replaced ``start_urls``/``max_depth`` with ``start_url``/``max_pages``.
CONFIG_SCHEMA_VERSION = 2
