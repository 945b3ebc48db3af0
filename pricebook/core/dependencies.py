"""
Core dependencies for route protection and capability checking

Capability flags are checked here, on the server, before any mutating
Supabase call is issued. Table queries run with the service_role key,
which bypasses row level security, so these checks are the only thing
that denies a request made through the API. The same flags are handed to
the UI through /auth/me so it can hide controls; hiding is cosmetic.
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pricebook.config.capabilities import ADMIN_FLAG
from pricebook.database.supabase_client import get_supabase, get_auth_supabase, get_admin_supabase
from pricebook.modules.auth.schemas import Identity
from pricebook.modules.auth.service import AuthService
from pricebook.modules.permissions.schemas import Capabilities, PermissionRecord
from pricebook.modules.permissions.service import PermissionResolver
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(
    supabase: Client = Depends(get_auth_supabase),
    admin_supabase: Optional[Client] = Depends(get_admin_supabase)
) -> AuthService:
    return AuthService(supabase, admin_supabase)


def get_permission_resolver(supabase: Client = Depends(get_supabase)) -> PermissionResolver:
    return PermissionResolver(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_identity(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Identity:
    """Resolve the bearer token to the signed-in identity"""
    return auth_service.get_current_identity(token)


def get_current_permissions(
    identity: Identity = Depends(get_current_identity),
    resolver: PermissionResolver = Depends(get_permission_resolver)
) -> Optional[PermissionRecord]:
    """Permissions row for the caller, or None if it could not be resolved (fail closed)"""
    try:
        return resolver.resolve(identity)
    except Exception as e:
        logger.error(f"Error resolving permissions for user {identity.id}: {e}")
        return None


def get_current_capabilities(
    permissions: Optional[PermissionRecord] = Depends(get_current_permissions)
) -> Capabilities:
    return Capabilities.from_record(permissions)


def require_capability(flag: str):
    """Factory function to create capability check dependency"""
    def check_capability(
        identity: Identity = Depends(get_current_identity),
        capabilities: Capabilities = Depends(get_current_capabilities)
    ) -> Identity:
        """Dependency to check the caller holds the required capability flag"""
        if not capabilities.allows(flag):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {flag}"
            )
        return identity
    return check_capability


def require_admin():
    return require_capability(ADMIN_FLAG)
