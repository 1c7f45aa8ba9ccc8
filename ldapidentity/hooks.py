"""
Hooks run around :py:meth:`ldapidentity.client.DirectoryClient.get_user_details`.

Subclass :py:class:`ReadHook` and pass instances to the client::

    class GroupHook(ReadHook):

        def before_read(self, context):
            return ["memberOf"]

        def after_read(self, context, attributes):
            return "cn=staff,ou=groups,dc=example,dc=com" in attributes["memberOf"]

    client = DirectoryClient(config, hooks=[GroupHook()])
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import DirectoryClient


@dataclass(frozen=True)
class ReadContext:
    #: The client doing the read
    client: "DirectoryClient"
    #: The DN being read
    dn: str
    #: The name of the operation doing the read
    source: str


class ReadHook:
    """
    Base class for read hooks.  The default implementations ask for nothing
    extra and allow everything.
    """

    def before_read(self, context: ReadContext) -> list[str]:
        """
        Return any extra attribute names that should be read.
        """
        return []

    def after_read(self, context: ReadContext, attributes: dict[str, Any]) -> bool:
        """
        Inspect (and optionally alter) the attributes that were read.

        Returns:
            ``False`` to reject the user, ``True`` to allow it.

        """
        return True
