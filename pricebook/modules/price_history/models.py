# Supabase table: pricehist
# Shared with the products module (see products/models.py for the full layout)

"""
pricehist:
- prodcode: text (foreign key to product.prodcode, not null)
- effdate: date (not null)
- unitprice: numeric (nullable, check unitprice > 0)
- primary key (prodcode, effdate)

The add path does not look for an existing point on the same date first;
the primary key rejects the duplicate and the API answers 409.
"""
