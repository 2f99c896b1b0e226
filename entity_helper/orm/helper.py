"""Entity hierarchy helper for Entity-Helper.

Reasons about single-table inheritance hierarchies through SQLAlchemy mapper
metadata: lists the variants of an entity, picks the most specific variant,
changes the discriminator of a stored row and re-sequences sibling positions.
"""

import logging
import warnings
from collections.abc import Callable, Iterable
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import inspect, update
from sqlalchemy.exc import MultipleResultsFound, NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session

from entity_helper.exceptions import (
    DatabaseError,
    EntityContractError,
    ParentResolutionError,
    RemapAcrossTablesError,
    RemapWarning,
)
from entity_helper.orm.metadata import get_class_metadata, get_mapper, inheritance_depth, resolve_entity
from entity_helper.orm.repository.sortable import SortableRepository
from entity_helper.util import declared_display_name, humanize_class_name, qualified_name

logger = logging.getLogger("Entity-Helper")


@runtime_checkable
class SortableEntity(Protocol):
    """Shape of an entity that can be re-sequenced inside its sibling group."""

    id: Any
    parent: Any
    position: int


class EntityHelper:
    """Helper around one SQLAlchemy session for inheritance-aware entity operations.

    Example:
        >>> helper = EntityHelper(session)
        >>> helper.get_entity_variants(BaseProduct)
        {BaseProduct: 'base product', Product: 'product', CustomProduct: 'custom product'}
        >>> helper.get_best_of_type(BaseProduct)
        <class 'CustomProduct'>
    """

    def __init__(
        self,
        session: Session,
        display_name_resolver: Callable[[type], str | None] = declared_display_name,
    ):
        """Initialize the helper.

        Args:
            session: SQLAlchemy session used for queries, identity map eviction and flushes.
            display_name_resolver: Returns an explicit label for a class, or None to derive one from its name.
        """
        self.session = session
        self.display_name_resolver = display_name_resolver

    def get_entity_variants(self, entity: type, exclude: Iterable[type | str] | None = None) -> dict[type, str]:
        """Return the classes which are variants of the given entity, with a readable label.

        Args:
            entity: Any mapped class of the hierarchy.
            exclude: Variants to leave out of the result, as classes or as class names (short or dotted).

        Returns:
            Concrete class -> label, in discriminator map order. Empty for non-polymorphic entities.
        """
        variants: dict[type, str] = {}
        for variant in get_class_metadata(entity).discriminator_map.values():
            name = self.display_name_resolver(variant)
            variants[variant] = name if name is not None else humanize_class_name(qualified_name(variant))

        excluded = set(exclude or ())
        for variant in list(variants):
            if excluded & {variant, variant.__name__, qualified_name(variant)}:
                del variants[variant]

        return variants

    def get_best_of_type(self, entity: type) -> type:
        """Return the most embedded variant of the entity.

        In case of ``CustomProduct`` extends ``Product`` extends ``BaseProduct``,
        return ``CustomProduct``. On equal depth the variant defined first wins.
        """
        variants = self.get_entity_variants(entity)
        if len(variants) in (0, 1):
            return entity

        top_depth = 0
        top_type = entity
        for variant in variants:
            try:
                depth = inheritance_depth(variant)
            except DatabaseError:
                logger.warning(f"Can not compute inheritance depth of '{qualified_name(variant)}', using 0")
                depth = 0

            if depth > top_depth:
                top_depth = depth
                top_type = variant

        return top_type

    def get_table_name_by_entity(self, entity: type) -> str:
        """Return the real table name of an entity class."""
        return get_class_metadata(entity).table_name

    def get_root_entity(self, entity: type) -> type:
        """Return the top-most mapped class of the entity's hierarchy."""
        return get_class_metadata(entity).root_entity

    def get_root_entity_name(self, entity: type) -> str:
        return self.get_root_entity(entity).__name__

    def get_discriminator_column(self, entity: type) -> str | None:
        """Return the attribute name of the discriminator column, or None."""
        return get_class_metadata(entity).discriminator_field

    def get_discriminator_by_entity(self, entity: type) -> Any:
        """Return the discriminator value stored for rows of exactly this class.

        The entity's own discriminator map is searched first, then the map of
        the hierarchy root.

        Returns:
            The polymorphic identity, or an empty string when the class has none.
        """
        for discriminator, variant in get_class_metadata(entity).discriminator_map.items():
            if variant is entity:
                return discriminator

        root = self.get_root_entity(entity)
        for discriminator, variant in get_class_metadata(root).discriminator_map.items():
            if variant is entity:
                return discriminator

        return ""

    def remap_entity_to_best_type(self, instance: Any) -> Any | None:
        """Elevate the type of an entity to the best possible variant and return it as the new type.

        Raises:
            DatabaseError: See ``remap_entity``.
        """
        from_type = type(instance)
        best_type = self.get_best_of_type(from_type)
        if best_type is from_type:
            return instance

        return self.remap_entity(instance, best_type)

    def remap_entity(self, instance: Any, target: Any) -> Any | None:
        """Change the stored type of an entity by rewriting its discriminator.

        SQLAlchemy does not support changing the class of a persisted object,
        so this rewrites the row behind its back. Every instance of the
        hierarchy is evicted from the session first. Afterwards treat all
        previously loaded objects of the hierarchy as stale and load them again.

        Args:
            instance: A persisted entity.
            target: Target class, class name, discriminator value, or an instance of the target class.

        Returns:
            The row loaded as the target class, the unchanged instance when the
            discriminator is already equal, or None if the row can not be found.

        Raises:
            RemapAcrossTablesError: If the source and the target live in different tables.
            DatabaseError: If the session can not evict the hierarchy.
        """
        from_type = type(instance)
        if not isinstance(target, (type, str)):
            target = type(target) if inspect(target, raiseerr=False) is not None else str(target)
        to_type = resolve_entity(from_type, target)

        from_discriminator = self.get_discriminator_by_entity(from_type)
        to_discriminator = self.get_discriminator_by_entity(to_type)
        if from_discriminator == to_discriminator:
            return instance

        from_meta = get_class_metadata(from_type)
        to_meta = get_class_metadata(to_type)
        if from_meta.table_name != to_meta.table_name:
            raise RemapAcrossTablesError(from_meta.table_name, to_meta.table_name)
        if from_meta.discriminator_column is None:
            raise DatabaseError(f"Entity '{from_type.__name__}' has no discriminator column.")

        primary_key = get_mapper(from_type).primary_key_from_instance(instance)

        try:
            self._clear_hierarchy(from_meta.root_entity)
        except SQLAlchemyError as e:
            logger.exception(f"Can not clear identity map of '{from_meta.root_entity.__name__}'")
            raise DatabaseError(str(e)) from e

        stmt = (
            update(from_meta.table)
            .where(*[column == value for column, value in zip(from_meta.primary_key, primary_key, strict=True)])
            .values({from_meta.discriminator_column.name: to_discriminator})
        )
        try:
            self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.exception(f"Discriminator update of '{from_meta.table_name}' failed")
            warnings.warn(str(e), RemapWarning, stacklevel=2)

        identity = primary_key[0] if len(primary_key) == 1 else tuple(primary_key)
        return self.session.get(to_type, identity)

    def _clear_hierarchy(self, root: type) -> None:
        """Expunge every loaded instance whose class belongs to the hierarchy of ``root``."""
        root_mapper = get_mapper(root)
        for obj in list(self.session.identity_map.values()):
            if inspect(obj).mapper.base_mapper is root_mapper:
                self.session.expunge(obj)

    def sort_entities(self, item: Any, previous_id: Any = None, parent_id: Any = None) -> None:
        """Place ``item`` right after the sibling ``previous_id`` and renumber the sibling group.

        Positions of the group become ``0, 1, 2, ...`` without gaps. Without
        ``previous_id`` the item goes to position 0. When ``previous_id`` is
        not part of the group the item is appended at the end. The item itself
        is always skipped while walking the group, so it is positioned once.

        Args:
            item: Entity implementing ``SortableEntity``.
            previous_id: ID of the sibling that should precede the item.
            parent_id: ID of the parent the item belongs to after sorting. None keeps a root-level item at root level.

        Raises:
            EntityContractError: If the entity does not implement ``SortableEntity``.
            ParentResolutionError: If ``parent_id`` differs from the current parent and matches no
                entity or several entities. A child item called without ``parent_id`` fails here too.
            DatabaseError: If flushing the new positions fails.
        """
        if not isinstance(item, SortableEntity):
            raise EntityContractError(type(item).__name__, SortableEntity.__name__)

        repository = SortableRepository(self.session, type(item))
        parent = item.parent
        current_parent_id = parent.id if parent is not None else None

        if current_parent_id != parent_id:
            try:
                parent = repository.get_single_by_id_ordered(parent_id)
            except NoResultFound as e:
                raise ParentResolutionError(parent_id, "no entity found") from e
            except MultipleResultsFound as e:
                raise ParentResolutionError(parent_id, "more than one entity found") from e
            item.parent = parent

        siblings = repository.get_root_level() if parent is None else list(parent.children)

        position = 0
        if previous_id is None:
            item.position = position
            position += 1
            for sibling in siblings:
                if sibling is item or sibling.id == item.id:
                    continue
                sibling.position = position
                position += 1
        else:
            item_was_set = False
            for sibling in siblings:
                if sibling is item or sibling.id == item.id:
                    continue
                sibling.position = position
                position += 1
                if sibling.id == previous_id:
                    item.position = position
                    position += 1
                    item_was_set = True

            if not item_was_set:
                item.position = position

        try:
            self.session.flush()
        except SQLAlchemyError as e:
            logger.exception(f"Can not save positions of '{type(item).__name__}' siblings")
            raise DatabaseError(str(e)) from e
