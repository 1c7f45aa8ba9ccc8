"""
Nested group discovery.

Some directories, Active Directory in particular, do not flatten group
membership: if group A is a member of group B, members of A do not show up
as members of B.  :py:func:`recursive_groups` walks those links.
"""

import logging
from typing import TYPE_CHECKING

from .filters import build_filter

if TYPE_CHECKING:
    from .client import DirectoryClient

logger = logging.getLogger("django-ldapidentity")


def recursive_groups(
    directory: "DirectoryClient",
    search_dns: list[str] | None,
    depth: int,
    visited: set[str] | None = None,
    attribute: str = "memberOf",
    query_attribute: str = "member",
) -> set[str]:
    """
    Find every group transitively reachable from ``search_dns``.

    Each level does one search for the entries whose ``query_attribute`` is
    any of the current DNs, retrieving ``attribute``.  Entries not seen
    before are added to ``visited`` and their ``attribute`` values become the
    DNs for the next level.  Already visited entries are not followed again,
    so cycles terminate.

    The DNs in ``search_dns`` are only added to ``visited`` if a search
    returns them.

    With ``attribute="dn"`` each level follows the DNs of the groups just
    found, which walks ``member`` links upwards one group at a time.

    Args:
        directory: the client to search with
        search_dns: the DNs to start from
        depth: how many levels to search; 0 means no limit

    Keyword Args:
        visited: DNs already discovered.  This set is updated in place.
        attribute: the attribute holding the next DNs to follow
        query_attribute: the attribute to match the current DNs against

    Returns:
        ``visited``, with every newly discovered DN added.

    """
    if visited is None:
        visited = set()
    while True:
        depth -= 1
        if not search_dns:
            return visited
        searchfilter = build_filter(
            [(query_attribute, dn) for dn in search_dns], operator="|"
        )
        result = directory.search(None, searchfilter, [attribute])
        next_dns: list[str] = []
        for i in range(len(result)):
            dn = result.dn(i)
            if dn is None or dn in visited:
                continue
            visited.add(dn)
            next_dns.extend(result.attribute(i, attribute))
        logger.debug(
            "groups.level searched=%d found=%d next=%d",
            len(search_dns),
            len(result),
            len(next_dns),
        )
        # A starting depth of 0 goes negative and never stops us here
        if not next_dns or depth == 0:
            return visited
        search_dns = next_dns
