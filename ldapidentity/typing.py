"""
Aliases shared by the transport and the attribute diff.

``AttributeMap`` is what callers pass in and get back: attribute names mapped
to one value or an ordered list of values.  ``LDAPData`` is a raw
``(dn, attrs)`` pair from python-ldap, and the ``*ModListEntry`` aliases are
the tuples handed to ``modify_s``.
"""

from collections.abc import Mapping
from typing import Any

DeleteModListEntry = tuple[int, str, None]
ModifyModListEntry = tuple[int, str, list[bytes]]
ModifyModList = list[DeleteModListEntry | ModifyModListEntry]
LDAPData = tuple[str, dict[str, list[bytes]]]
#: Attribute name to a single value or an ordered sequence of values
AttributeMap = Mapping[str, Any]
