"""Entity-Helper: inheritance-aware helpers for SQLAlchemy ORM entities."""

from entity_helper.orm import EntityHelper, SortableEntity, to_pairs

__all__ = [
    "EntityHelper",
    "SortableEntity",
    "to_pairs",
]
