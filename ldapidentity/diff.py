"""
Compute the attribute operations needed to turn one set of attribute values
into another.

Single-valued attributes get an add, a replace or a delete.  Multi-valued
attributes are ordered, and not every directory server can update an ordered
multi-valued attribute atomically, so a changed multi-valued attribute is
always deleted and re-added in full; it never becomes a replace.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .results import decode_value
from .typing import AttributeMap


def is_empty(value: Any) -> bool:
    """
    Return ``True`` if ``value`` means "no value": ``None``, an empty string
    or bytes, or an empty sequence.
    """
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple)):
        return len(value) == 0
    return False


def is_multi_valued(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def as_list(value: Any) -> list[Any]:
    """
    Return ``value`` as a list of values: ``None`` is no values, a scalar is
    one value.
    """
    if value is None:
        return []
    if is_multi_valued(value):
        return list(value)
    return [value]


def normalize_value(value: Any) -> Any:
    """
    Return ``value`` the way the directory will hand it back: decoded to
    ``str``, with numbers and other scalars converted with ``str()``.
    Undecodable binary values stay ``bytes``.
    """
    value = decode_value(value)
    if value is None or isinstance(value, (str, bytes)):
        return value
    return str(value)


def same_value(a: Any, b: Any) -> bool:
    return normalize_value(a) == normalize_value(b)



@dataclass
class AttributeOperationSet:
    """
    The operations needed to update one directory entry.  Apply them in the
    order delete, add, replace.
    """

    #: Attributes to remove entirely
    to_delete: set[str] = field(default_factory=set)
    #: Attributes to create, with their values
    to_add: dict[str, Any] = field(default_factory=dict)
    #: Attributes whose single value changes
    to_replace: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.to_delete or self.to_add or self.to_replace)

    def apply_to(self, current: AttributeMap) -> dict[str, list[Any]]:
        """
        Return what ``current`` would look like after a directory applied
        these operations.  ``current`` itself is not modified.
        """
        result = {key: as_list(value) for key, value in current.items()}
        for key in self.to_delete:
            result.pop(key, None)
        for key, value in self.to_add.items():
            result[key] = result.get(key, []) + as_list(value)
        for key, value in self.to_replace.items():
            result[key] = as_list(value)
        return result


def diff(current: AttributeMap, desired: Mapping[str, Any]) -> AttributeOperationSet:
    """
    Work out the operations that bring ``current`` up to ``desired``.

    Only the keys in ``desired`` are considered; attributes in ``current``
    that ``desired`` does not mention are left alone.

    Args:
        current: the attributes as they are in the directory now
        desired: the attributes as they should be.  A list or tuple value is
            a multi-valued attribute whose order matters.

    Returns:
        The operations to apply.  This is empty, not an error, when there is
        nothing to change.

    """
    ops = AttributeOperationSet()
    for key, value in desired.items():
        if is_multi_valued(value):
            _diff_multi_valued(ops, current, key, value)
        else:
            _diff_single_valued(ops, current, key, value)
    return ops


def _diff_single_valued(
    ops: AttributeOperationSet, current: AttributeMap, key: str, value: Any
) -> None:
    if key not in current:
        if not is_empty(value):
            ops.to_add[key] = value
        return
    stored = as_list(current[key])
    if not stored:
        if not is_empty(value):
            ops.to_replace[key] = value
        return
    if same_value(stored[0], value):
        return
    if is_empty(value):
        ops.to_delete.add(key)
    else:
        ops.to_replace[key] = value


def _diff_multi_valued(
    ops: AttributeOperationSet, current: AttributeMap, key: str, value: Any
) -> None:
    new = [v for v in value if not is_empty(v)]
    stored = as_list(current.get(key))
    if len(stored) == len(new) and all(map(same_value, stored, new)):
        return
    if stored:
        ops.to_delete.add(key)
    if new:
        ops.to_add[key] = new
