from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime

from pricebook.config.capabilities import CAPABILITY_FLAGS, ADMIN_FLAG

PERMISSION_FLAGS = [*CAPABILITY_FLAGS, ADMIN_FLAG]


class PermissionRecord(BaseModel):
    id: str
    user_id: Optional[str] = None
    user_name: str
    add_product: bool = False
    edit_product: bool = False
    delete_product: bool = False
    add_price_history: bool = False
    edit_price_history: bool = False
    delete_price_history: bool = False
    is_admin: bool = False
    created_at: Optional[datetime] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return None if value is None else str(value)

    @field_validator(*PERMISSION_FLAGS, mode="before")
    @classmethod
    def null_flag_is_false(cls, value):
        return bool(value) if value is not None else False

    class Config:
        from_attributes = True


class Capabilities(BaseModel):
    """Flags the UI uses to decide which controls to render. Advisory only."""
    add_product: bool = False
    edit_product: bool = False
    delete_product: bool = False
    add_price_history: bool = False
    edit_price_history: bool = False
    delete_price_history: bool = False
    is_admin: bool = False

    @classmethod
    def from_record(cls, record: Optional[PermissionRecord]) -> "Capabilities":
        if record is None:
            return cls()
        return cls(**{flag: getattr(record, flag) for flag in PERMISSION_FLAGS})

    def allows(self, flag: str) -> bool:
        return bool(getattr(self, flag, False))


class PermissionCreate(BaseModel):
    user_name: str
    add_product: bool = False
    edit_product: bool = False
    delete_product: bool = False
    add_price_history: bool = False
    edit_price_history: bool = False
    delete_price_history: bool = False
    is_admin: bool = False

    @field_validator("user_name")
    @classmethod
    def user_name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("User name is required")
        return value


class PermissionUpdate(BaseModel):
    add_product: Optional[bool] = None
    edit_product: Optional[bool] = None
    delete_product: Optional[bool] = None
    add_price_history: Optional[bool] = None
    edit_price_history: Optional[bool] = None
    delete_price_history: Optional[bool] = None
    is_admin: Optional[bool] = None
