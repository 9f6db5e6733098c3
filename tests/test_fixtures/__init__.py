"""
Test Fixture Factories

Factories for building catalog records and failing stores in tests.
"""

from .catalog_factory import CatalogFactory
from .store_factory import StoreTestFactory

__all__ = ["CatalogFactory", "StoreTestFactory"]
