"""Helpers turning executed statements into plain Python structures."""

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.engine import Result

from entity_helper.exceptions import EmptyResultSchemaError


def _fetch_rows(result: Result | Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    if isinstance(result, Result):
        return list(result.mappings().all())
    return list(result)


def to_pairs(
    result: Result | Iterable[Mapping[str, Any]],
    key: str | None = None,
    value: str | None = None,
) -> list[Any] | dict[str, Any]:
    """Convert the rows of an executed statement to a list or a key/value dict.

    When neither ``key`` nor ``value`` is given, the columns of the first row
    decide: a single column becomes the value column, otherwise the first two
    columns are used as key and value and any further columns are ignored.

    Args:
        result: An executed SQLAlchemy result, or any iterable of column -> value mappings.
        key: Column whose (stringified) value becomes the dict key. Without a key a list is returned.
        value: Column whose value is collected. Without a value the whole row (as a dict) is collected.

    Returns:
        A list when no key column is used, otherwise a dict. Repeated keys keep the last value.

    Raises:
        EmptyResultSchemaError: If the first row does not contain any column.

    Example:
        >>> result = session.execute(text("SELECT id, name FROM product"))
        >>> to_pairs(result)
        {'1': 'Chair', '2': 'Table'}
    """
    rows = _fetch_rows(result)
    if not rows:
        return [] if key is None else {}

    columns = list(rows[0].keys())
    if not columns:
        raise EmptyResultSchemaError

    if key is None and value is None:
        if len(columns) == 1:
            value = columns[0]
        else:
            key, value = columns[0], columns[1]

    if key is None:
        return [dict(row) if value is None else row[value] for row in rows]

    pairs: dict[str, Any] = {}
    for row in rows:
        pairs[str(row[key])] = dict(row) if value is None else row[value]
    return pairs
