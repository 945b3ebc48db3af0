from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, Any, Literal

from pricebook.modules.permissions.schemas import Capabilities, PermissionRecord

AccountType = Literal["user", "admin"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str
    account_type: AccountType = "user"

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("full_name is required")
        return value


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None

    @model_validator(mode="after")
    def require_a_change(self):
        if self.full_name is not None:
            self.full_name = self.full_name.strip()
            if not self.full_name:
                raise ValueError("full_name cannot be blank")
        if self.full_name is None and self.email is None:
            raise ValueError("Provide full_name and/or email")
        return self


class Identity(BaseModel):
    """Local view of a Supabase auth user."""
    id: str
    email: str
    display_name: str
    account_type: AccountType = "user"

    @property
    def user_name(self) -> str:
        """Name used to match pre-linked user_permissions rows."""
        return self.display_name

    @classmethod
    def from_auth_user(cls, user: Any) -> "Identity":
        metadata = getattr(user, "user_metadata", None) or {}
        email = getattr(user, "email", None) or ""
        display_name = (metadata.get("full_name") or metadata.get("name") or "").strip()
        if not display_name:
            display_name = email.split("@")[0]
        account_type = metadata.get("account_type")
        if account_type not in ("user", "admin"):
            account_type = "user"
        return cls(
            id=str(user.id),
            email=email,
            display_name=display_name,
            account_type=account_type,
        )


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user: Identity


class MeResponse(BaseModel):
    user: Identity
    permissions: Optional[PermissionRecord] = None
    capabilities: Capabilities
