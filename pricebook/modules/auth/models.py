# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Sign-in and session management
# - JWT token generation and validation
# - Profile edits through the admin API (service_role key)

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (metadata: full_name, account_type)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve a JWT to its user
- auth.admin.sign_out() - Revoke a session server-side
- auth.admin.update_user_by_id() - Change email / user_metadata

user_metadata keys written at sign-up:
- full_name: text - becomes the display name and the permissions user_name
- account_type: "user" | "admin" - a profile tag only; capabilities come
  from the user_permissions table, never from this value
"""
