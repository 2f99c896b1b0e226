"""Repository module for Entity-Helper ORM."""

from entity_helper.orm.repository.sortable import SortableRepository

__all__ = ["SortableRepository"]
