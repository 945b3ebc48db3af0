import logging
from supabase import Client
from pricebook.modules.auth.schemas import (
    LoginRequest, RegisterRequest, RegisterResponse, TokenResponse,
    ProfileUpdate, Identity
)
from fastapi import HTTPException
from typing import Optional

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client, admin_supabase: Optional[Client] = None):
        self.supabase = supabase
        self.admin_supabase = admin_supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {
                        "full_name": register_data.full_name,
                        "account_type": register_data.account_type,
                    }
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            logger.info(f"Registered user {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                refresh_token=auth_response.session.refresh_token,
                token_type="bearer",
                user=Identity.from_auth_user(auth_response.user)
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def get_current_identity(self, token: str) -> Identity:
        """Resolve a Supabase access token to the signed-in identity"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            return Identity.from_auth_user(user_response.user)
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Revoke the session behind token; best effort, the JWT still expires on its own"""
        if self.admin_supabase is None:
            return False
        try:
            self.admin_supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")
            return False

    def update_profile(self, identity: Identity, profile: ProfileUpdate) -> Identity:
        """Update display name and/or email (requires service role key)"""
        if self.admin_supabase is None:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot update profile."
            )
        try:
            attributes = {}
            if profile.email is not None:
                attributes["email"] = profile.email
            if profile.full_name is not None:
                attributes["user_metadata"] = {
                    "full_name": profile.full_name,
                    "account_type": identity.account_type,
                }

            response = self.admin_supabase.auth.admin.update_user_by_id(identity.id, attributes)

            if not response.user:
                raise HTTPException(status_code=404, detail="User not found")

            return Identity.from_auth_user(response.user)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Profile update failed for {identity.id}: {e}")
            raise HTTPException(
                status_code=500,
                detail=f"Failed to update profile: {str(e)}"
            )
