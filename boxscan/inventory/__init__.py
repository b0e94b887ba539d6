"""
Container inventory: records, the persisted store, search and import/export.
"""

from boxscan.inventory.models import Container, Origin
from boxscan.inventory.ContainerStore import ContainerStore
from boxscan.inventory.SearchIndex import SearchMatch, search
from boxscan.inventory.transfer import export_collection, export_filename, import_collection

__all__ = [
    'Container',
    'Origin',
    'ContainerStore',
    'SearchMatch',
    'search',
    'export_collection',
    'export_filename',
    'import_collection',
]
