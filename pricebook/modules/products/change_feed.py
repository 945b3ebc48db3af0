import logging
from supabase import AsyncClient
from pricebook.modules.products.store import CatalogStore, PRODUCT_TABLES, AUDIT_TABLE
from typing import Any, Iterable, List

logger = logging.getLogger(__name__)

WATCHED_TABLES = (*PRODUCT_TABLES, AUDIT_TABLE)


class ChangeFeed:
    """
    Supabase realtime subscription on the catalog tables.

    Every postgres change event invalidates the catalog store so the next
    read is a full re-fetch; events are never applied incrementally.
    """

    def __init__(self, store: CatalogStore, tables: Iterable[str] = WATCHED_TABLES, schema: str = "public"):
        self.store = store
        self.tables = tuple(tables)
        self.schema = schema
        self._channels: List[Any] = []

    @property
    def is_running(self) -> bool:
        return bool(self._channels)

    async def start(self, client: AsyncClient) -> None:
        for table in self.tables:
            channel = client.channel(f"{table}-changes")
            channel.on_postgres_changes(
                "*",
                schema=self.schema,
                table=table,
                callback=self._callback_for(table)
            )
            await channel.subscribe()
            self._channels.append(channel)
            logger.info(f"Subscribed to realtime changes on {self.schema}.{table}")
        self.store.set_live(True)

    async def stop(self, client: AsyncClient) -> None:
        self.store.set_live(False)
        while self._channels:
            channel = self._channels.pop()
            try:
                await client.remove_channel(channel)
            except Exception as e:
                logger.warning(f"Error removing realtime channel: {e}")
        logger.info("Realtime change feed stopped")

    def _callback_for(self, table: str):
        def on_change(payload: Any) -> None:
            self.handle_change(table, payload)
        return on_change

    def handle_change(self, table: str, payload: Any = None) -> None:
        try:
            event = None
            if isinstance(payload, dict):
                data = payload.get("data") or {}
                event = data.get("type") or payload.get("eventType")
            logger.debug(f"Realtime {event or 'change'} on {table}")
            self.store.invalidate(table)
        except Exception as e:
            logger.error(f"Error handling realtime change on {table}: {e}")
