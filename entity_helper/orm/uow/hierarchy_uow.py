"""Hierarchy Unit of Work for Entity-Helper.

Opens one session per ``with`` block and binds an ``EntityHelper`` and the
sortable repositories to it, so concurrent callers never share a session.
"""

from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session, sessionmaker
from typing_extensions import Self

from entity_helper.exceptions import SessionNotSetError
from entity_helper.orm.helper import EntityHelper
from entity_helper.orm.repository.sortable import SortableRepository
from entity_helper.util import declared_display_name


class HierarchyUnitOfWork:
    """Session scope for remapping and re-sequencing entities.

    Nothing is committed implicitly: positions and discriminators written by
    the helper stay in the transaction until ``commit()``. Leaving the block
    with an exception rolls the transaction back.

    Example:
        >>> with HierarchyUnitOfWork(session_factory) as uow:
        ...     category = uow.repository(Category).get_by_id(3)
        ...     uow.helper.sort_entities(category, previous_id=1)
        ...     uow.commit()
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        display_name_resolver: Callable[[type], str | None] = declared_display_name,
    ):
        """Initialize Hierarchy Unit of Work with a session factory.

        Args:
            session_factory: SQLAlchemy sessionmaker instance.
            display_name_resolver: Passed to the ``EntityHelper``.
        """
        self.session_factory = session_factory
        self.display_name_resolver = display_name_resolver
        self.session: Session | None = None
        self._helper: EntityHelper | None = None
        self._repositories: dict[type, SortableRepository] = {}

    def __enter__(self) -> Self:
        self.session = self.session_factory()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.session is not None:
            if exc_type is not None:
                self.session.rollback()
            self.session.close()
            self.session = None
        # helper and repositories hold the closed session
        self._helper = None
        self._repositories = {}

    def _require_session(self) -> Session:
        if self.session is None:
            raise SessionNotSetError
        return self.session

    @property
    def helper(self) -> EntityHelper:
        """EntityHelper bound to the current session, created on first access.

        Raises:
            SessionNotSetError: Outside of the ``with`` block.
        """
        session = self._require_session()
        if self._helper is None:
            self._helper = EntityHelper(session, self.display_name_resolver)
        return self._helper

    def repository(self, model_cls: type) -> SortableRepository:
        """Repository for ``model_cls``, cached per class for the lifetime of the session.

        Raises:
            SessionNotSetError: Outside of the ``with`` block.
        """
        session = self._require_session()
        if model_cls not in self._repositories:
            self._repositories[model_cls] = SortableRepository(session, model_cls)
        return self._repositories[model_cls]

    def commit(self) -> None:
        self._require_session().commit()

    def rollback(self) -> None:
        self._require_session().rollback()

    def flush(self) -> None:
        self._require_session().flush()
