"""
Read-only access to the entries returned by a search or read.
"""

from collections.abc import Iterator
from typing import Any

from .typing import LDAPData


def decode_value(value: Any) -> Any:
    """
    Decode a raw attribute value to ``str``.  Binary values that are not
    valid UTF-8 (``jpegPhoto``, ``objectGUID``, ...) stay ``bytes``.
    """
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value
    return value


class ResultSet:
    """
    An immutable snapshot of zero or more directory entries, each with a DN
    and an ordered mapping of attribute name to an ordered list of values.

    Attribute names are matched case-insensitively.  Entry, attribute and
    value positions are 0-based.  Asking for something that is not there
    raises :py:class:`ResultSet.NotFound`, except for :py:meth:`dn`, which
    returns ``None`` so callers can test for "no usable result" without an
    exception.

    Args:
        data: the ``(dn, attributes)`` tuples returned by python-ldap

    """

    class NotFound(LookupError):
        """Raised when an entry, attribute or value does not exist."""

    def __init__(self, data: list[LDAPData] | None = None) -> None:
        self._entries: list[tuple[str | None, dict[str, list[Any]]]] = []
        # lower-cased attribute name -> attribute name as returned, per entry
        self._names: list[dict[str, str]] = []
        for dn, attrs in data or []:
            values = {
                name: [decode_value(v) for v in vals] for name, vals in attrs.items()
            }
            self._entries.append((dn or None, values))
            self._names.append({name.lower(): name for name in values})

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[str | None, dict[str, list[Any]]]]:
        for dn, values in self._entries:
            yield dn, {name: list(vals) for name, vals in values.items()}

    def __repr__(self) -> str:
        return f"<ResultSet: {len(self)} entries>"

    def _entry(self, index: int) -> tuple[str | None, dict[str, list[Any]]]:
        if not 0 <= index < len(self._entries):
            msg = f"No entry at index {index}; result has {len(self._entries)}"
            raise self.NotFound(msg)
        return self._entries[index]

    def _values(self, index: int, attribute: str) -> list[Any] | None:
        dn, values = self._entry(index)
        if attribute.lower() == "dn":
            return [dn] if dn else []
        name = self._names[index].get(attribute.lower())
        if name is None:
            return None
        return values[name]

    def count_entries(self) -> int:
        return len(self._entries)

    def dn(self, index: int) -> str | None:
        """
        Return the DN of the entry at ``index``, or ``None`` if there is no
        such entry or it has no DN.
        """
        if not 0 <= index < len(self._entries):
            return None
        return self._entries[index][0]

    def count_values(self, index: int, attribute: str) -> int:
        """
        Return the number of values ``attribute`` has on the entry at
        ``index``; 0 if the entry does not have that attribute.

        Raises:
            ResultSet.NotFound: there is no entry at ``index``

        """
        return len(self._values(index, attribute) or [])

    def value(self, index: int, attribute: str, value_index: int = 0) -> Any:
        """
        Return one value of ``attribute`` on the entry at ``index``.

        The pseudo attribute ``dn`` returns the entry DN.

        Raises:
            ResultSet.NotFound: the entry, attribute or value does not exist

        """
        values = self._values(index, attribute)
        if values is None:
            msg = f"Entry {index} has no attribute {attribute!r}"
            raise self.NotFound(msg)
        if not 0 <= value_index < len(values):
            msg = (
                f"Attribute {attribute!r} of entry {index} has no value at "
                f"index {value_index}"
            )
            raise self.NotFound(msg)
        return values[value_index]

    def attribute(self, index: int, attribute: str) -> list[Any]:
        """
        Return every value of ``attribute`` on the entry at ``index``, in
        order; an empty list if the entry does not have that attribute.

        Raises:
            ResultSet.NotFound: there is no entry at ``index``

        """
        return list(self._values(index, attribute) or [])

    def attributes(self, index: int) -> dict[str, list[Any]]:
        """
        Return a copy of all the attributes of the entry at ``index``.

        Raises:
            ResultSet.NotFound: there is no entry at ``index``

        """
        _, values = self._entry(index)
        return {name: list(vals) for name, vals in values.items()}
