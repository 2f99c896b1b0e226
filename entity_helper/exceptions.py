from typing import Any


class EnvNotFoundError(Exception):
    """Raised when a required environment variable is not found."""

    def __init__(self, env_var_name: str):
        super().__init__(f"Environment variable '{env_var_name}' not found.")


class SessionNotSetError(Exception):
    """Raised when the database session is not set."""

    def __init__(self):
        super().__init__("Database session is not set.")


class EmptyResultSchemaError(ValueError):
    """Raised when a result row does not contain any column."""

    def __init__(self):
        super().__init__("Result set does not contain any column.")


class DatabaseError(Exception):
    """Base class for errors raised by the entity helper."""


class UnmappedEntityError(DatabaseError):
    """Raised when a class is not mapped by the ORM."""

    def __init__(self, entity: Any):
        super().__init__(f"Entity '{entity!r}' is not a mapped class.")


class UnknownEntityError(DatabaseError):
    """Raised when a target type cannot be resolved inside an inheritance hierarchy."""

    def __init__(self, target: str, root_name: str):
        super().__init__(f"Entity '{target}' is not a variant of '{root_name}'.")


class RemapAcrossTablesError(DatabaseError):
    """Raised when an entity is remapped to a type stored in a different table."""

    def __init__(self, from_table: str, to_table: str):
        self.from_table = from_table
        self.to_table = to_table
        super().__init__(
            f"Can not remap entity across different tables: '{from_table}' is not the same table as '{to_table}'."
        )


class EntityContractError(DatabaseError):
    """Raised when an entity does not expose the attributes an operation needs."""

    def __init__(self, entity_name: str, contract: str):
        super().__init__(f"Entity '{entity_name}' must implement {contract}.")


class ParentResolutionError(DatabaseError):
    """Raised when the requested parent entity is missing or ambiguous."""

    def __init__(self, parent_id: Any, reason: str):
        self.parent_id = parent_id
        super().__init__(f"Can not resolve parent with id '{parent_id}': {reason}.")


class RemapWarning(UserWarning):
    """Emitted when the discriminator update of a remap fails and the remap is left incomplete."""
