from fastapi import APIRouter, Depends, BackgroundTasks
from pricebook.core.dependencies import get_current_identity, require_capability, require_admin
from pricebook.database.supabase_client import get_supabase
from pricebook.modules.audit.routes import get_audit_logger
from pricebook.modules.audit.schemas import AuditAction, AuditRecord
from pricebook.modules.audit.service import AuditLogger
from pricebook.modules.auth.schemas import Identity
from pricebook.modules.products.schemas import (
    ProductWithPrice, ProductCreate, ProductUpdate, CatalogSummary
)
from pricebook.modules.products.service import ProductService
from pricebook.modules.products.store import CatalogStore, get_catalog_store
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/products", tags=["products"])


def get_product_service(
    supabase: Client = Depends(get_supabase),
    store: CatalogStore = Depends(get_catalog_store)
) -> ProductService:
    return ProductService(supabase, store)


def _audit(background_tasks: BackgroundTasks, audit: AuditLogger, product: ProductWithPrice,
           action: AuditAction, identity: Identity) -> None:
    # Runs after the response; the product change is already committed
    background_tasks.add_task(
        audit.record,
        product.code,
        product.description or product.code,
        action,
        identity.user_name
    )


@router.get("", response_model=List[ProductWithPrice])
async def list_products(
    search: Optional[str] = None,
    include_deleted: bool = False,
    identity: Identity = Depends(get_current_identity),
    service: ProductService = Depends(get_product_service)
):
    """Products with their current price; search matches code, description and unit"""
    return service.list_products(search=search, include_deleted=include_deleted)


@router.get("/versions", response_model=Dict[str, int])
async def get_change_versions(
    identity: Identity = Depends(get_current_identity),
    store: CatalogStore = Depends(get_catalog_store)
):
    """Per-table change counters fed by the realtime subscription"""
    return store.versions()


@router.get("/summary", response_model=CatalogSummary)
async def get_catalog_summary(
    identity: Identity = Depends(get_current_identity),
    service: ProductService = Depends(get_product_service)
):
    """Dashboard figures: counts, average price, largest recent price moves"""
    return service.summarize()


@router.post("", response_model=ProductWithPrice, status_code=201)
async def add_product(
    data: ProductCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_capability("add_product")),
    service: ProductService = Depends(get_product_service),
    audit: AuditLogger = Depends(get_audit_logger)
):
    product = service.add_product(data)
    _audit(background_tasks, audit, product, AuditAction.ADDED, identity)
    return product


@router.get("/{code}", response_model=ProductWithPrice)
async def get_product(
    code: str,
    identity: Identity = Depends(get_current_identity),
    service: ProductService = Depends(get_product_service)
):
    """Single product; soft-deleted products are returned with deleted=true"""
    return service.get_product(code)


@router.put("/{code}", response_model=ProductWithPrice)
async def edit_product(
    code: str,
    data: ProductUpdate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_capability("edit_product")),
    service: ProductService = Depends(get_product_service),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Edit description and/or unit"""
    product = service.edit_product(code, data)
    _audit(background_tasks, audit, product, AuditAction.EDITED, identity)
    return product


@router.delete("/{code}", response_model=ProductWithPrice)
async def delete_product(
    code: str,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_capability("delete_product")),
    service: ProductService = Depends(get_product_service),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Soft delete: the product stays fetchable with deleted=true"""
    product = service.soft_delete(code)
    _audit(background_tasks, audit, product, AuditAction.DELETED, identity)
    return product


@router.post("/{code}/recover", response_model=ProductWithPrice)
async def recover_product(
    code: str,
    background_tasks: BackgroundTasks,
    admin: Identity = Depends(require_admin()),
    service: ProductService = Depends(get_product_service),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Clear the deleted flag (admin only)"""
    product = service.recover(code)
    _audit(background_tasks, audit, product, AuditAction.RECOVERED, admin)
    return product


@router.get("/{code}/audit", response_model=List[AuditRecord])
async def get_product_audit_trail(
    code: str,
    identity: Identity = Depends(get_current_identity),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Audit trail of a single product, newest first"""
    return audit.list_records(product_code=code)
