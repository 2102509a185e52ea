"""
Catalog schema and sample data.

The pricing service only reads. Everything that writes the catalog from this repo lives here:
- Alembic migrations for accommodations, tariff periods, price rules and maintenance orders
- A deterministic seed that builds one year of tariffs (`pricing-seed`)
"""
