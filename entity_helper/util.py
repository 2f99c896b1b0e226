"""Naming helpers shared by the entity helper."""

import re

_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def qualified_name(cls: type) -> str:
    """Return the dotted ``module.QualName`` of a class."""
    return f"{cls.__module__}.{cls.__qualname__}"


def humanize_class_name(name: str) -> str:
    """Turn a (possibly dotted) class name into lowercase words.

    Only the part after the last ``.`` is used.

    Example:
        >>> humanize_class_name("shop.models.CustomProduct")
        'custom product'
        >>> humanize_class_name("Product2Variant")
        'product2 variant'
    """
    short_name = name.rsplit(".", 1)[-1]
    return _WORD_BOUNDARY.sub(r"\1 \2", short_name).lower()


def declared_display_name(cls: type) -> str | None:
    """Default display name lookup.

    Reads ``__display_name__`` declared on the class itself. Values inherited
    from a parent class are ignored so that every variant gets its own label.
    """
    name = vars(cls).get("__display_name__")
    if name is None:
        return None
    return str(name)
