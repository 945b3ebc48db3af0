from fastapi import APIRouter, Depends, Request
from pricebook.config.capabilities import get_capability_matrix
from pricebook.config.settings import settings
from pricebook.core.dependencies import (
    get_auth_service, get_current_token, get_current_identity,
    get_current_permissions
)
from pricebook.core.rate_limit import limiter
from pricebook.modules.auth.schemas import (
    LoginRequest, RegisterRequest, RegisterResponse, TokenResponse,
    ProfileUpdate, Identity, MeResponse
)
from pricebook.modules.auth.service import AuthService
from pricebook.modules.permissions.schemas import Capabilities, PermissionRecord
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Sign in and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Sign out and revoke the session"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    identity: Identity = Depends(get_current_identity),
    permissions: Optional[PermissionRecord] = Depends(get_current_permissions)
):
    """Current identity with its permissions row and capability flags (for frontend UI)."""
    return MeResponse(
        user=identity,
        permissions=permissions,
        capabilities=Capabilities.from_record(permissions)
    )


@router.put("/me", response_model=Identity)
async def update_me(
    profile: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    service: AuthService = Depends(get_auth_service)
):
    """Update display name and/or email"""
    return service.update_profile(identity, profile)


@router.get("/capabilities")
async def list_capabilities(identity: Identity = Depends(get_current_identity)):
    """Capability flags and role templates"""
    return get_capability_matrix()
