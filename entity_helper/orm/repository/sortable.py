"""Repository for tree-shaped entities ordered by a position column.

The managed class is expected to map ``id``, ``position``, a many-to-one
``parent`` relationship and its ``children`` collection.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

T = TypeVar("T")


class SortableRepository(Generic[T]):
    """Sibling-group queries for one positioned entity class."""

    def __init__(self, session: Session, model_cls: type[T]):
        """Bind the repository to a session.

        Args:
            session: Session the queries run in. Its identity map is shared with the caller.
            model_cls: Mapped class with ``id``, ``position`` and a self-referencing ``parent``.
        """
        self.session = session
        self.model_cls = model_cls

    def get_by_id(self, _id: Any) -> T | None:
        """Return the entity with this primary key from the identity map or the database."""
        return self.session.get(self.model_cls, _id)

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.model_cls)
        return self.session.execute(stmt).scalar_one()

    def get_root_level(self) -> list[T]:
        """Retrieve all entities without a parent ordered by position.

        Returns:
            Root-level entities, lowest position first.
        """
        stmt = (
            select(self.model_cls)
            .where(self.model_cls.parent == None)  # noqa: E711
            .order_by(self.model_cls.position.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_children(self, parent_id: Any) -> list[T]:
        """Retrieve the children of a parent ordered by position.

        Args:
            parent_id: The parent entity ID.

        Returns:
            Child entities, lowest position first.
        """
        stmt = (
            select(self.model_cls)
            .where(self.model_cls.parent.has(id=parent_id))
            .order_by(self.model_cls.position.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_single_by_id_ordered(self, _id: Any) -> T:
        """Retrieve exactly one entity with the given id.

        A ``None`` id compares with ``IS NULL`` and therefore never matches.

        Raises:
            sqlalchemy.exc.NoResultFound: If no entity matches.
            sqlalchemy.exc.MultipleResultsFound: If more than one entity matches.
        """
        stmt = select(self.model_cls).where(self.model_cls.id == _id).order_by(self.model_cls.position.asc())
        return self.session.execute(stmt).scalars().one()
