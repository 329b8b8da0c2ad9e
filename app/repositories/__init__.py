"""
Repository package for data access layers.

Repositories wrap an `AsyncSession` and return plain dicts for reads so the
catalog service can cache them without touching ORM state.
"""
