"""
Helpers for building LDAP filters and DNs from untrusted input.

Filter values and DN values have different metacharacters, so they are
escaped by different functions.
"""

import re

from ldap.dn import escape_dn_chars
from ldap.filter import escape_filter_chars
from ldap_filter import Filter

from .config import USERNAME_PLACEHOLDER

#: Something that looks like ``( ... )``
FILTER_SYNTAX = re.compile(r"\(.*\)")


def escape_filter_value(value: str) -> str:
    """
    Escape ``value`` for use inside a search filter (``*``, ``(``, ``)``,
    ``\\`` and NUL).
    """
    return escape_filter_chars(value)


def escape_dn_value(value: str) -> str:
    """
    Escape ``value`` for use as an attribute value inside a DN (``,``, ``+``,
    ``"``, ``\\``, ``<``, ``>``, ``;``, ``=``, leading ``#`` and spaces).
    """
    return escape_dn_chars(value)


def has_filter_syntax(value: str) -> bool:
    return bool(FILTER_SYNTAX.search(value))


def substitute_username(template: str, username: str) -> str:
    """
    Replace every ``[username]`` placeholder in ``template`` with ``username``.
    The caller is responsible for escaping ``username`` first.
    """
    return template.replace(USERNAME_PLACEHOLDER, username)


def build_filter(terms: list[tuple[str, str]], operator: str = "|") -> str:
    """
    Combine ``(attribute, value)`` equality terms into one filter string.

    Args:
        terms: the ``(attribute, value)`` pairs to match
        operator: ``"|"`` to OR the terms together, ``"&"`` to AND them

    Raises:
        ValueError: ``operator`` is not ``"|"`` or ``"&"``, or ``terms`` is empty

    Returns:
        An LDAP filter string like ``(|(member=cn=a)(member=cn=b))``.

    """
    if operator not in ("|", "&"):
        msg = f"Unknown filter operator: {operator!r}"
        raise ValueError(msg)
    if not terms:
        msg = "build_filter needs at least one term"
        raise ValueError(msg)
    filters = [Filter.attribute(attr).equal_to(value) for attr, value in terms]
    if len(filters) == 1:
        return filters[0].to_string()
    if operator == "|":
        return Filter.OR(filters).to_string()
    return Filter.AND(filters).to_string()
