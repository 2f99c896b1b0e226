"""
This orm module contains the helpers working on top of SQLAlchemy ORM mappings:
result pairing, mapper metadata, the entity hierarchy helper, repositories,
Unit of Work patterns, and database connection utilities.
"""

from entity_helper.orm.data_utils import to_pairs
from entity_helper.orm.helper import EntityHelper, SortableEntity

__all__ = [
    "EntityHelper",
    "SortableEntity",
    "to_pairs",
]
