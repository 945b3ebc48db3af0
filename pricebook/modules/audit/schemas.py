from enum import Enum
from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime


class AuditAction(str, Enum):
    ADDED = "ADDED"
    EDITED = "EDITED"
    DELETED = "DELETED"
    RECOVERED = "RECOVERED"


class AuditRecord(BaseModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    action: AuditAction
    performed_by: str
    timestamp: datetime

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return str(value)

    class Config:
        from_attributes = True
