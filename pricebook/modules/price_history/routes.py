from datetime import date
from fastapi import APIRouter, Depends
from pricebook.core.dependencies import get_current_identity, require_capability
from pricebook.database.supabase_client import get_supabase
from pricebook.modules.auth.schemas import Identity
from pricebook.modules.price_history.schemas import PricePoint, PricePointCreate, PricePointUpdate
from pricebook.modules.price_history.service import PriceHistoryService
from pricebook.modules.products.store import CatalogStore, get_catalog_store
from supabase import Client
from typing import List

router = APIRouter(prefix="/products/{code}/price-history", tags=["price-history"])


def get_price_history_service(
    supabase: Client = Depends(get_supabase),
    store: CatalogStore = Depends(get_catalog_store)
) -> PriceHistoryService:
    return PriceHistoryService(supabase, store)


@router.get("", response_model=List[PricePoint])
async def list_price_history(
    code: str,
    identity: Identity = Depends(get_current_identity),
    service: PriceHistoryService = Depends(get_price_history_service)
):
    """Price points for a product, newest first"""
    return service.list_points(code)


@router.post("", response_model=PricePoint, status_code=201)
async def add_price(
    code: str,
    data: PricePointCreate,
    identity: Identity = Depends(require_capability("add_price_history")),
    service: PriceHistoryService = Depends(get_price_history_service)
):
    return service.add_point(code, data)


@router.put("/{effective_date}", response_model=PricePoint)
async def edit_price(
    code: str,
    effective_date: date,
    data: PricePointUpdate,
    identity: Identity = Depends(require_capability("edit_price_history")),
    service: PriceHistoryService = Depends(get_price_history_service)
):
    """Change the price and optionally the date of an existing point"""
    return service.edit_point(code, effective_date, data)


@router.delete("/{effective_date}", status_code=204)
async def delete_price(
    code: str,
    effective_date: date,
    identity: Identity = Depends(require_capability("delete_price_history")),
    service: PriceHistoryService = Depends(get_price_history_service)
):
    service.delete_point(code, effective_date)
    return None
