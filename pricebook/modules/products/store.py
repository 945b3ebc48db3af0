"""Process-wide snapshot of the product catalog, dropped whenever a watched table changes."""
import threading
import logging
from typing import Callable, Dict, List, Optional

from pricebook.modules.products.schemas import ProductRow

logger = logging.getLogger(__name__)

PRODUCT_TABLES = ("product", "pricehist")
AUDIT_TABLE = "product_audit"


class CatalogStore:
    """
    Rows are kept only while a change feed is live; without one nothing tells
    this process about writes made elsewhere, so every read re-fetches.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: Optional[List[ProductRow]] = None
        self._live = False
        self._epoch = 0
        self._versions: Dict[str, int] = {table: 0 for table in (*PRODUCT_TABLES, AUDIT_TABLE)}

    def get_rows(self, loader: Callable[[], List[ProductRow]]) -> List[ProductRow]:
        """Cached rows, or a full re-fetch through loader after an invalidation"""
        with self._lock:
            if self._rows is not None:
                return self._rows
            generation = self._generation()
        rows = loader()
        with self._lock:
            # An invalidation that landed while loading makes these rows stale
            if self._live and generation == self._generation():
                self._rows = rows
        return rows

    @property
    def live(self) -> bool:
        return self._live

    def set_live(self, live: bool) -> None:
        """Called by the change feed when its subscriptions come up or go down"""
        with self._lock:
            self._live = live
            self._epoch += 1
            self._rows = None
        logger.info(f"Catalog caching {'enabled' if live else 'disabled'}")

    def invalidate(self, table: str) -> None:
        with self._lock:
            self._versions[table] = self._versions.get(table, 0) + 1
            if table in PRODUCT_TABLES:
                self._rows = None
        logger.debug(f"Catalog invalidated by change on {table}")

    def versions(self) -> Dict[str, int]:
        """Change counters per table; a moved counter tells the UI to re-fetch that list"""
        with self._lock:
            return dict(self._versions)

    def _generation(self) -> int:
        return self._epoch + sum(self._versions[table] for table in PRODUCT_TABLES)


catalog_store = CatalogStore()


def get_catalog_store() -> CatalogStore:
    return catalog_store
