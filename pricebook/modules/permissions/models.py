# Supabase table: user_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL lives in supabase/migrations/

"""
Expected Supabase table structure:

user_permissions:
- id: uuid (primary key, default gen_random_uuid())
- user_id: uuid (nullable, references auth.users.id, unique)
    null while the row is pre-linked by user_name only; set on the user's
    first sign-in. The unique index makes "one row per user" hold even when
    two sign-ins race.
- user_name: text (not null) - display name, or email local part
- add_product: bool (default false)
- edit_product: bool (default false)
- delete_product: bool (default false)
- add_price_history: bool (default false)
- edit_price_history: bool (default false)
- delete_price_history: bool (default false)
- is_admin: bool (default false)
- created_at: timestamp (default: now())

Row level security: signed-in users may read their own row; only rows with
is_admin = true may write other rows. The API checks the same flags before
calling Supabase, and the flags returned by /auth/me only drive what the UI
shows.
"""
