"""
Seed Admin Script
Creates (or promotes) a user_permissions row with the ADMIN grants from the
capability config. The row is keyed by user name, so it can be seeded before
the user has ever signed in; the first sign-in links it to the auth user.

Usage: python -m pricebook.scripts.seed_admin "Jane Doe" ["Other Admin" ...]
"""

import argparse
import sys

from pricebook.config.capabilities import get_role_grants
from pricebook.database.supabase_client import SupabaseClient
from pricebook.modules.permissions.service import PERMISSIONS_TABLE
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_admin(supabase: Client, user_name: str) -> str:
    """Grant admin to user_name; returns "created" or "updated" """
    grants = get_role_grants("ADMIN")
    existing = supabase.table(PERMISSIONS_TABLE)\
        .select("id")\
        .eq("user_name", user_name)\
        .execute()

    if existing.data:
        for row in existing.data:
            supabase.table(PERMISSIONS_TABLE)\
                .update(grants)\
                .eq("id", row["id"])\
                .execute()
        logger.info(f"Promoted {user_name} to admin")
        return "updated"

    supabase.table(PERMISSIONS_TABLE).insert({
        "user_name": user_name,
        **grants
    }).execute()
    logger.info(f"Created admin permissions for {user_name}")
    return "created"


def main(argv=None):
    """Main function to seed admin permissions"""
    parser = argparse.ArgumentParser(description="Grant admin capabilities by user name")
    parser.add_argument("user_names", nargs="+", help="Display name(s) as used at sign-up")
    args = parser.parse_args(argv)

    try:
        # service_role bypasses the admin-only write policy on user_permissions
        supabase = SupabaseClient.get_service_client()
        created = updated = 0
        for user_name in args.user_names:
            user_name = user_name.strip()
            if not user_name:
                continue
            if seed_admin(supabase, user_name) == "created":
                created += 1
            else:
                updated += 1
        logger.info(f"Seeding completed: {created} created, {updated} updated")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
