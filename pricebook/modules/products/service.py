import logging
from datetime import date
from supabase import Client
from pricebook.database.errors import is_unique_violation
from pricebook.modules.products.schemas import (
    ProductRow, ProductWithPrice, ProductCreate, ProductUpdate,
    PriceChange, CatalogSummary, format_price
)
from pricebook.modules.products.store import CatalogStore
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PRODUCT_TABLE = "product"
PRICE_TABLE = "pricehist"
PRODUCT_SELECT = "prodcode, description, unit, deleted, pricehist(unitprice, effdate)"
RECENT_CHANGES_LIMIT = 5


class ProductService:
    """
    Product reads and writes.

    Writes are last-write-wins: there is no version column, so two edits of
    the same product simply overwrite one another.
    """

    def __init__(self, supabase: Client, store: CatalogStore):
        self.supabase = supabase
        self.store = store

    def _fetch_rows(self) -> List[ProductRow]:
        try:
            result = self.supabase.table(PRODUCT_TABLE)\
                .select(PRODUCT_SELECT)\
                .order("prodcode")\
                .execute()
            return [ProductRow(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error fetching products: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to fetch products: {str(e)}")

    def _get_row(self, code: str) -> ProductRow:
        try:
            result = self.supabase.table(PRODUCT_TABLE)\
                .select(PRODUCT_SELECT)\
                .eq("prodcode", code)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Product not found")
            return ProductRow(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching product {code}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_products(self, search: Optional[str] = None, include_deleted: bool = False) -> List[ProductWithPrice]:
        """All products with their current price, filtered after fetch"""
        rows = self.store.get_rows(self._fetch_rows)
        products = [ProductWithPrice.from_row(row) for row in rows]
        if not include_deleted:
            products = [p for p in products if not p.deleted]
        if search:
            products = [p for p in products if p.matches(search)]
        return products

    def get_product(self, code: str) -> ProductWithPrice:
        """Single product, including soft-deleted ones"""
        return ProductWithPrice.from_row(self._get_row(code))

    def add_product(self, data: ProductCreate) -> ProductWithPrice:
        try:
            existing = self.supabase.table(PRODUCT_TABLE)\
                .select("prodcode")\
                .eq("prodcode", data.code)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail=f"Product {data.code} already exists")

            self.supabase.table(PRODUCT_TABLE).insert({
                "prodcode": data.code,
                "description": data.description,
                "unit": data.unit,
                "deleted": False
            }).execute()
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail=f"Product {data.code} already exists")
            logger.error(f"Error adding product {data.code}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to add product: {str(e)}")
        finally:
            self.store.invalidate(PRODUCT_TABLE)

        if data.initial_price is not None:
            self._add_initial_price(data.code, data.initial_price)

        logger.info(f"Added product {data.code}")
        return self.get_product(data.code)

    def _add_initial_price(self, code: str, price: float) -> None:
        """The product row is already committed; a failed first price leaves it unpriced"""
        try:
            self.supabase.table(PRICE_TABLE).insert({
                "prodcode": code,
                "effdate": date.today().isoformat(),
                "unitprice": price
            }).execute()
        except Exception as e:
            logger.error(f"Product {code} added but initial price failed: {e}")
        finally:
            self.store.invalidate(PRICE_TABLE)

    def edit_product(self, code: str, data: ProductUpdate) -> ProductWithPrice:
        current = self._get_row(code)
        if current.deleted:
            raise HTTPException(status_code=409, detail="Product is deleted; recover it before editing")

        update_data = data.model_dump(exclude_none=True)
        self._update(code, update_data, "update")
        logger.info(f"Edited product {code}: {sorted(update_data)}")
        return self.get_product(code)

    def soft_delete(self, code: str) -> ProductWithPrice:
        """Flag the product as deleted; the row and its price history stay"""
        current = self._get_row(code)
        if current.deleted:
            raise HTTPException(status_code=409, detail="Product is already deleted")

        self._update(code, {"deleted": True}, "delete")
        logger.info(f"Soft-deleted product {code}")
        return self.get_product(code)

    def recover(self, code: str) -> ProductWithPrice:
        current = self._get_row(code)
        if not current.deleted:
            raise HTTPException(status_code=409, detail="Product is not deleted")

        self._update(code, {"deleted": False}, "recover")
        logger.info(f"Recovered product {code}")
        return self.get_product(code)

    def _update(self, code: str, update_data: dict, verb: str) -> None:
        try:
            result = self.supabase.table(PRODUCT_TABLE)\
                .update(update_data)\
                .eq("prodcode", code)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Product not found")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error trying to {verb} product {code}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to {verb} product: {str(e)}")
        finally:
            self.store.invalidate(PRODUCT_TABLE)

    def summarize(self) -> CatalogSummary:
        """Dashboard figures over active products"""
        rows = [row for row in self.store.get_rows(self._fetch_rows) if not row.deleted]
        products = [ProductWithPrice.from_row(row) for row in rows]
        prices = [p.current_price for p in products if p.current_price is not None]
        average = round(sum(prices) / len(prices), 2) if prices else None

        changes = []
        for row in rows:
            points = sorted(
                (p for p in row.pricehist if p.unitprice is not None),
                key=lambda p: p.effdate
            )
            if len(points) < 2 or not points[-2].unitprice:
                continue
            previous, latest = points[-2].unitprice, points[-1].unitprice
            change = latest - previous
            changes.append(PriceChange(
                code=row.prodcode,
                description=row.description or "",
                previous_price=previous,
                latest_price=latest,
                change=round(change, 2),
                percent_change=round(change / previous * 100, 2)
            ))
        changes.sort(key=lambda c: abs(c.percent_change), reverse=True)

        return CatalogSummary(
            total_products=len(products),
            priced_products=len(prices),
            average_price=average,
            average_price_display=format_price(average),
            recent_changes=changes[:RECENT_CHANGES_LIMIT]
        )
