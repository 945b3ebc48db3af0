import logging
from supabase import Client
from pricebook.config.capabilities import get_role_grants
from pricebook.modules.auth.schemas import Identity
from pricebook.modules.permissions.schemas import (
    PermissionRecord, PermissionCreate, PermissionUpdate
)
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PERMISSIONS_TABLE = "user_permissions"


class PermissionResolver:
    """
    Maps a signed-in identity to its user_permissions row, creating a default
    row the first time the identity is seen.

    Lookup order:
    1. row linked to the identity's user_id
    2. row pre-created by an admin under the identity's user_name, not yet
       linked; it is linked with a conditional update so only one request wins
    3. a default row (no capabilities), written with an upsert on the unique
       user_id index so concurrent first sign-ins end up with a single row

    Errors are raised to the caller, which must treat them as "no capabilities".
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def resolve(self, identity: Identity) -> PermissionRecord:
        record = self.find_by_user_id(identity.id)
        if record:
            return record

        record = self._link_by_user_name(identity)
        if record:
            return record

        return self._create_default(identity)

    def find_by_user_id(self, user_id: str) -> Optional[PermissionRecord]:
        result = self.supabase.table(PERMISSIONS_TABLE)\
            .select("*")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return PermissionRecord(**result.data[0])

    def _link_by_user_name(self, identity: Identity) -> Optional[PermissionRecord]:
        if not identity.user_name:
            return None
        candidates = self.supabase.table(PERMISSIONS_TABLE)\
            .select("*")\
            .eq("user_name", identity.user_name)\
            .is_("user_id", "null")\
            .limit(1)\
            .execute()
        if not candidates.data:
            return None

        candidate_id = candidates.data[0]["id"]
        linked = self.supabase.table(PERMISSIONS_TABLE)\
            .update({"user_id": identity.id})\
            .eq("id", candidate_id)\
            .is_("user_id", "null")\
            .execute()
        if linked.data:
            logger.info(f"Linked permissions {candidate_id} ({identity.user_name}) to user {identity.id}")
            return PermissionRecord(**linked.data[0])

        # Someone linked it between our read and write
        return self.find_by_user_id(identity.id)

    def _create_default(self, identity: Identity) -> PermissionRecord:
        row = {
            "user_id": identity.id,
            "user_name": identity.user_name,
            **get_role_grants("DEFAULT"),
        }
        self.supabase.table(PERMISSIONS_TABLE)\
            .upsert(row, on_conflict="user_id", ignore_duplicates=True)\
            .execute()

        record = self.find_by_user_id(identity.id)
        if record is None:
            raise RuntimeError(f"Default permissions for user {identity.id} were not persisted")
        logger.info(f"Default permissions ready for user {identity.id} ({identity.user_name})")
        return record


class PermissionService:
    """Admin management of user_permissions rows."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_records(self) -> List[PermissionRecord]:
        try:
            result = self.supabase.table(PERMISSIONS_TABLE)\
                .select("*")\
                .order("user_name")\
                .execute()
            return [PermissionRecord(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing permissions: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_record(self, record_id: str) -> PermissionRecord:
        try:
            result = self.supabase.table(PERMISSIONS_TABLE)\
                .select("*")\
                .eq("id", record_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User permissions not found")
            return PermissionRecord(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_record(self, data: PermissionCreate) -> PermissionRecord:
        """Create a row keyed by user_name only; it is linked on that user's first sign-in"""
        try:
            existing = self.supabase.table(PERMISSIONS_TABLE)\
                .select("id")\
                .eq("user_name", data.user_name)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="A user with this name already exists")

            result = self.supabase.table(PERMISSIONS_TABLE)\
                .insert(data.model_dump())\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add user")
            return PermissionRecord(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding permissions for {data.user_name}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_record(self, record_id: str, data: PermissionUpdate) -> PermissionRecord:
        update_data = data.model_dump(exclude_none=True)
        if not update_data:
            return self.get_record(record_id)
        try:
            result = self.supabase.table(PERMISSIONS_TABLE)\
                .update(update_data)\
                .eq("id", record_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User permissions not found")
            return PermissionRecord(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating permissions {record_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_record(self, record_id: str) -> bool:
        try:
            result = self.supabase.table(PERMISSIONS_TABLE)\
                .delete()\
                .eq("id", record_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User permissions not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting permissions {record_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
