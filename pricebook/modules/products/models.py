# Supabase tables: product, pricehist
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

product:
- prodcode: text (primary key) - immutable once created; new codes are 1-32 characters
  of letters, digits, ".", "_" and "-" (see schemas.PRODUCT_CODE_PATTERN)
- description: text (nullable)
- unit: text (nullable)
- deleted: bool (not null, default false) - soft delete flag

pricehist:
- prodcode: text (foreign key to product.prodcode, not null)
- effdate: date (not null)
- unitprice: numeric (not null, check unitprice > 0); rows loaded from older data with a null price are ignored
- primary key (prodcode, effdate)

The current price of a product is not stored. It is the pricehist row with
the greatest effdate, derived on read (see schemas.latest_price_point).

Both tables are part of the supabase_realtime publication; every change
invalidates the catalog snapshot held by store.CatalogStore.
"""
