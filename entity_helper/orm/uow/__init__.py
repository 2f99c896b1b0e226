"""Unit of Work (UoW) for Entity-Helper.

- HierarchyUnitOfWork: Entity helper and sortable repositories bound to one session
"""

from entity_helper.orm.uow.hierarchy_uow import HierarchyUnitOfWork

__all__ = ["HierarchyUnitOfWork"]
