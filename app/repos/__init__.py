"""
Repository layer for data access operations.

Repositories map between ORM rows and the immutable domain entities and
share one AsyncSession through the UnitOfWork. They never commit.
"""
