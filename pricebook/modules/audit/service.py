import logging
from datetime import datetime, timezone
from supabase import Client
from pricebook.modules.audit.schemas import AuditAction, AuditRecord
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

AUDIT_TABLE = "product_audit"


class AuditLogger:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def record(
        self,
        product_code: str,
        product_name: Optional[str],
        action: AuditAction,
        performed_by: str
    ) -> Optional[AuditRecord]:
        """
        Append one audit row. Runs after the product change has committed and
        never raises: a failed write is logged and the change stands.
        """
        try:
            result = self.supabase.table(AUDIT_TABLE).insert({
                "product_id": product_code,
                "product_name": product_name,
                "action": AuditAction(action).value,
                "performed_by": performed_by,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }).execute()
            if not result.data:
                logger.error(f"Audit write for {product_code} ({action}) returned no row")
                return None
            return AuditRecord(**result.data[0])
        except Exception as e:
            logger.error(f"Audit write failed for {product_code} ({action}) by {performed_by}: {e}")
            return None

    def list_records(
        self,
        performed_by: Optional[str] = None,
        action: Optional[AuditAction] = None,
        product_code: Optional[str] = None
    ) -> List[AuditRecord]:
        """Audit rows, newest first, optionally filtered"""
        try:
            query = self.supabase.table(AUDIT_TABLE).select("*")
            if performed_by:
                query = query.eq("performed_by", performed_by)
            if action:
                query = query.eq("action", AuditAction(action).value)
            if product_code:
                query = query.eq("product_id", product_code)
            result = query.order("timestamp", desc=True).execute()
            return [AuditRecord(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error fetching audit records: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_performers(self) -> List[str]:
        """Distinct performed_by values, most recently active first"""
        performers = []
        for record in self.list_records():
            if record.performed_by not in performers:
                performers.append(record.performed_by)
        return performers
