# Supabase table: product_audit
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

product_audit:
- id: uuid (primary key, default gen_random_uuid())
- product_id: text (not null) - product.prodcode; no foreign key so the
  trail survives any hard delete done outside this API
- product_name: text (nullable) - product description at the time of the action
- action: text (not null, check in ('ADDED', 'EDITED', 'DELETED', 'RECOVERED'))
- performed_by: text (not null) - display name of the acting user
- timestamp: timestamptz (not null, default now())

Rows are insert-only: there is no update or delete path in the API and the
row level security policies grant neither.
"""
