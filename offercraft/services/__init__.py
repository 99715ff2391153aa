"""
Business logic services package.

WHY: Services hold the offer rules (pricing, status machine, versioning,
signing) between the API routes and the DAOs (API -> Service -> DAO).
"""
