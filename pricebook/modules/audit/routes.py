from fastapi import APIRouter, Depends
from pricebook.core.dependencies import require_admin
from pricebook.database.supabase_client import get_supabase
from pricebook.modules.audit.schemas import AuditAction, AuditRecord
from pricebook.modules.audit.service import AuditLogger
from pricebook.modules.auth.schemas import Identity
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/audit", tags=["audit"])


def get_audit_logger(supabase: Client = Depends(get_supabase)) -> AuditLogger:
    return AuditLogger(supabase)


@router.get("", response_model=List[AuditRecord])
async def list_audit_records(
    performed_by: Optional[str] = None,
    action: Optional[AuditAction] = None,
    product_code: Optional[str] = None,
    admin: Identity = Depends(require_admin()),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Product audit trail, newest first"""
    return audit.list_records(performed_by=performed_by, action=action, product_code=product_code)


@router.get("/performers", response_model=List[str])
async def list_audit_performers(
    admin: Identity = Depends(require_admin()),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """Users that appear in the audit trail, for grouping the log by user"""
    return audit.list_performers()
