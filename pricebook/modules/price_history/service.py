import logging
from datetime import date
from supabase import Client
from pricebook.database.errors import is_unique_violation, is_foreign_key_violation
from pricebook.modules.price_history.schemas import PricePoint, PricePointCreate, PricePointUpdate
from pricebook.modules.products.store import CatalogStore
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PRICE_TABLE = "pricehist"
PRODUCT_TABLE = "product"
DUPLICATE_DATE_DETAIL = "A price for this product and date already exists"


class PriceHistoryService:
    def __init__(self, supabase: Client, store: CatalogStore):
        self.supabase = supabase
        self.store = store

    def _require_product(self, code: str, active: bool = False) -> None:
        """404 for an unknown product; with active, 409 for a soft-deleted one"""
        try:
            result = self.supabase.table(PRODUCT_TABLE)\
                .select("prodcode, deleted")\
                .eq("prodcode", code)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching product {code}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Product not found")
        if active and result.data[0].get("deleted"):
            raise HTTPException(status_code=409, detail="Product is deleted; recover it before changing its prices")

    def list_points(self, code: str) -> List[PricePoint]:
        """Price points of a product, newest first"""
        self._require_product(code)
        try:
            result = self.supabase.table(PRICE_TABLE)\
                .select("*")\
                .eq("prodcode", code)\
                .order("effdate", desc=True)\
                .execute()
            return [PricePoint.from_row(row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error fetching price history for {code}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch price history")

    def add_point(self, code: str, data: PricePointCreate) -> PricePoint:
        self._require_product(code, active=True)
        try:
            result = self.supabase.table(PRICE_TABLE).insert({
                "prodcode": code,
                "effdate": data.effective_date.isoformat(),
                "unitprice": data.unit_price
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add new price")
            logger.info(f"Added price {data.unit_price} for {code} on {data.effective_date}")
            return PricePoint.from_row(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail=DUPLICATE_DATE_DETAIL)
            if is_foreign_key_violation(e):
                raise HTTPException(status_code=404, detail="Product not found")
            logger.error(f"Error adding price for {code}: {e}")
            raise HTTPException(status_code=500, detail="Failed to add new price")
        finally:
            self.store.invalidate(PRICE_TABLE)

    def edit_point(self, code: str, effective_date: date, data: PricePointUpdate) -> PricePoint:
        self._require_product(code, active=True)
        new_date = data.effective_date or effective_date
        try:
            result = self.supabase.table(PRICE_TABLE)\
                .update({
                    "unitprice": data.unit_price,
                    "effdate": new_date.isoformat()
                })\
                .eq("prodcode", code)\
                .eq("effdate", effective_date.isoformat())\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Price point not found")
            logger.info(f"Updated price for {code} on {effective_date} -> {data.unit_price} on {new_date}")
            return PricePoint.from_row(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail=DUPLICATE_DATE_DETAIL)
            logger.error(f"Error updating price for {code} on {effective_date}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update price")
        finally:
            self.store.invalidate(PRICE_TABLE)

    def delete_point(self, code: str, effective_date: date) -> bool:
        self._require_product(code, active=True)
        try:
            result = self.supabase.table(PRICE_TABLE)\
                .delete()\
                .eq("prodcode", code)\
                .eq("effdate", effective_date.isoformat())\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Price point not found")
            logger.info(f"Deleted price for {code} on {effective_date}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting price for {code} on {effective_date}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete price")
        finally:
            self.store.invalidate(PRICE_TABLE)
