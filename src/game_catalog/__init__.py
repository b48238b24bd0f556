"""
Game Catalog Importer.

Batch pipeline that pulls game metadata from IGDB and
materializes it into the local catalog store.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
