"""Read-only view of SQLAlchemy mapper metadata.

Wraps the pieces of ``Mapper`` the entity helper relies on (table,
discriminator, polymorphic map, inheritance chain) in a plain dataclass.
Nothing is cached: every call inspects the mapper again so that the result
always reflects the current mapper configuration.
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Column, Table, inspect
from sqlalchemy.orm import Mapper
from sqlalchemy.orm.exc import UnmappedColumnError

from entity_helper.exceptions import UnknownEntityError, UnmappedEntityError
from entity_helper.util import qualified_name


@dataclass(frozen=True)
class EntityMetadata:
    """Snapshot of the mapping information of one entity class.

    Attributes:
        entity: The mapped class.
        table: Table the class is persisted in. Single-table subclasses share the table of their parent.
        discriminator_column: Column holding the polymorphic identity, or None for non-polymorphic classes.
        discriminator_field: Mapped attribute name of the discriminator column, if it is mapped.
        discriminator_map: Polymorphic identity -> concrete class, in mapper definition order.
        root_entity: Top-most mapped class of the hierarchy.
        parent_entity: Directly inherited mapped class, or None for a hierarchy root.
        primary_key: Primary key columns of the table.
    """

    entity: type
    table: Table
    discriminator_column: Column | None
    discriminator_field: str | None
    discriminator_map: dict[Any, type] = field(default_factory=dict)
    root_entity: type | None = None
    parent_entity: type | None = None
    primary_key: tuple[Column, ...] = ()

    @property
    def table_name(self) -> str:
        return self.table.name


def get_mapper(entity: Any) -> Mapper:
    """Return the mapper of a mapped class.

    Raises:
        UnmappedEntityError: If ``entity`` is not a mapped class.
    """
    mapper = inspect(entity, raiseerr=False) if isinstance(entity, type) else None
    if not isinstance(mapper, Mapper):
        raise UnmappedEntityError(entity)
    return mapper


def get_class_metadata(entity: type) -> EntityMetadata:
    """Build the metadata snapshot for a mapped class.

    Args:
        entity: The mapped class.

    Returns:
        EntityMetadata for the class.

    Raises:
        UnmappedEntityError: If ``entity`` is not a mapped class.
    """
    mapper = get_mapper(entity)

    discriminator_column = mapper.polymorphic_on
    discriminator_field = None
    discriminator_map: dict[Any, type] = {}
    if discriminator_column is not None:
        try:
            discriminator_field = mapper.get_property_by_column(discriminator_column).key
        except UnmappedColumnError:
            discriminator_field = None
        discriminator_map = {identity: m.class_ for identity, m in mapper.polymorphic_map.items()}

    return EntityMetadata(
        entity=mapper.class_,
        table=mapper.local_table,
        discriminator_column=discriminator_column,
        discriminator_field=discriminator_field,
        discriminator_map=discriminator_map,
        root_entity=mapper.base_mapper.class_,
        parent_entity=mapper.inherits.class_ if mapper.inherits is not None else None,
        primary_key=tuple(mapper.primary_key),
    )


def inheritance_depth(entity: type) -> int:
    """Count the mapped classes from ``entity`` up to its hierarchy root.

    In case of ``CustomProduct`` extends ``Product`` extends ``BaseProduct``:
    CustomProduct -> 3, Product -> 2, BaseProduct -> 1.

    Raises:
        UnmappedEntityError: If ``entity`` is not a mapped class.
    """
    depth = 0
    mapper: Mapper | None = get_mapper(entity)
    while mapper is not None:
        depth += 1
        mapper = mapper.inherits
    return depth


def resolve_entity(member: type, target: type | str) -> type:
    """Resolve ``target`` to a mapped class inside the hierarchy of ``member``.

    Strings are matched against the class name, the dotted qualified name and
    the polymorphic identity of every class in the hierarchy.

    Args:
        member: Any class of the hierarchy.
        target: A class (returned unchanged) or a name / identity.

    Returns:
        The resolved class.

    Raises:
        UnknownEntityError: If no class of the hierarchy matches ``target``.
    """
    if isinstance(target, type):
        return target

    meta = get_class_metadata(member)
    candidates = dict(meta.discriminator_map) or {None: meta.entity}
    for identity, cls in candidates.items():
        if target in (cls.__name__, qualified_name(cls)):
            return cls
        if identity is not None and str(identity) == target:
            return cls

    raise UnknownEntityError(target, meta.root_entity.__name__)
