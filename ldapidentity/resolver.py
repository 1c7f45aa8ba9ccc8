"""
Turn a username into the DN of a directory entry.

There are two ways to find the DN, chosen by ``DirectoryConfig.use_search``:

* **search mode**: ``user_query`` is a filter like ``(uid=[username])``.  We
  proxy bind, search under ``basedn`` and every entry found is a candidate.
* **direct mode**: ``user_query`` is one or more ``;`` separated DN templates
  like ``uid=[username],ou=people,dc=example,dc=com``.  Each filled in
  template is a candidate.

If we must authenticate, the first candidate that binds with the password
wins.  Otherwise search mode trusts the first candidate (the search proved it
exists) and direct mode reads each candidate to find one that exists.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import USERNAME_PLACEHOLDER, DirectoryConfig
from .exceptions import ConfigurationError, DirectoryError, ErrorCode, InvalidUser
from .filters import (
    escape_dn_value,
    escape_filter_value,
    has_filter_syntax,
    substitute_username,
)

if TYPE_CHECKING:
    from .client import DirectoryClient

logger = logging.getLogger("django-ldapidentity")

#: Separates the DN templates of a direct mode ``user_query``
DN_SEPARATOR = ";"


@dataclass(frozen=True)
class ResolvedIdentity:
    #: The DN the username resolved to
    dn: str
    #: The username we were given
    username: str


class IdentityResolver:
    """
    Resolve usernames to DNs using the binds, searches and reads of
    ``directory``, so that the client's bind state follows every bind we do.

    Args:
        directory: the client to resolve through

    """

    def __init__(self, directory: "DirectoryClient") -> None:
        self.directory = directory
        self.logger = logger

    @property
    def config(self) -> DirectoryConfig:
        return self.directory.config

    @property
    def mode(self) -> str:
        return "search" if self.config.use_search else "direct"

    def candidates_by_search(self, username: str) -> list[str]:
        """
        Find the candidate DNs for ``username`` by searching the directory.

        Raises:
            ConfigurationError: there is no ``basedn``
            DirectoryError: the proxy bind or the search failed

        Returns:
            The DN of every matching entry, in the order the server returned them.

        """
        query = substitute_username(
            self.config.user_query or "", escape_filter_value(username)
        )
        if not has_filter_syntax(query):
            query = f"({query})"
        if not self.config.basedn:
            msg = "Search mode needs a basedn, but none is configured"
            raise ConfigurationError(msg, ErrorCode.NO_BASE_DN)
        if not self.directory.proxy_bind():
            msg = "Could not bind with the proxy user to search for users"
            raise DirectoryError(msg, ErrorCode.PROXY_BIND_FAILED)
        result = self.directory.search(None, query, [self.config.ldap_uid])
        return [dn for dn in (result.dn(i) for i in range(len(result))) if dn]

    def candidates_directly(self, username: str) -> list[str]:
        """
        Build the candidate DNs for ``username`` from the DN templates.

        Raises:
            ConfigurationError: ``user_query`` looks like a filter

        """
        template = self.config.user_query or ""
        if "(" in template:
            msg = (
                "user_query contains filter syntax, but use_search is off; "
                "direct mode needs DN templates"
            )
            raise ConfigurationError(msg, ErrorCode.DIRECT_QUERY_IS_FILTER)
        escaped = escape_dn_value(username)
        candidates = []
        for part in template.split(DN_SEPARATOR):
            dn = substitute_username(part, escaped).strip()
            if dn:
                candidates.append(dn)
        return candidates

    def _authenticate(self, username: str, password: str | None, dns: list[str]) -> str:
        for dn in dns:
            if self.directory.bind(dn, password):
                self.logger.debug("resolver.authenticated user=%s dn=%s", username, dn)
                return dn
        if self.config.use_search:
            msg = "User found, but the password did not bind"
            raise InvalidUser(msg, ErrorCode.SEARCH_BIND_FAILED, username)
        msg = "Could not bind to any of the user's distinguished names"
        raise InvalidUser(msg, ErrorCode.DIRECT_BIND_FAILED, username)

    def _verify_direct(self, username: str, dns: list[str]) -> str:
        if not self.directory.proxy_bind():
            # Without a proxy bind we cannot read the directory to check
            # which DN exists.
            if not self.config.trust_unverified_dn:
                msg = "Could not verify the user exists: proxy bind failed"
                raise InvalidUser(msg, ErrorCode.DIRECT_DN_UNVERIFIABLE, username)
            self.logger.warning(
                "resolver.unverified_dn user=%s dn=%s reason=proxy_bind_failed",
                username,
                dns[0],
            )
            return dns[0]
        for dn in dns:
            if len(self.directory.read(dn, None, ["dn"])):
                return dn
        msg = "None of the user's distinguished names exist in the directory"
        raise InvalidUser(msg, ErrorCode.DIRECT_DN_NOT_FOUND, username)

    def resolve(
        self,
        username: str,
        password: str | None = None,
        authenticate: bool = False,
    ) -> ResolvedIdentity:
        """
        Find the DN for ``username``, optionally proving the password is right.

        Args:
            username: the username as the user typed it
            password: the user's password; only used if ``authenticate``

        Keyword Args:
            authenticate: bind as the user with ``password`` to prove who they are

        Raises:
            ConfigurationError: no ``user_query``, no ``basedn`` in search
                mode, or a filter in direct mode
            DirectoryError: the proxy bind failed in search mode, or a search
                or read failed
            InvalidUser: the user does not exist, could not be verified, or
                the password is wrong

        Returns:
            The resolved identity.

        """
        if not self.config.user_query:
            msg = "No user_query is configured; cannot look up users"
            raise ConfigurationError(msg, ErrorCode.NO_USER_QUERY)
        if not username:
            msg = "No username was given"
            raise InvalidUser(msg, ErrorCode.USER_NOT_FOUND, username)
        self.logger.debug(
            "resolver.start user=%s query=%s mode=%s",
            username,
            self.config.user_query.replace(USERNAME_PLACEHOLDER, username),
            self.mode,
        )
        if self.config.use_search:
            dns = self.candidates_by_search(username)
        else:
            dns = self.candidates_directly(username)
        if not dns:
            # This may still be a configuration error, but we can't tell
            msg = "Could not find the user in the directory"
            raise InvalidUser(msg, ErrorCode.USER_NOT_FOUND, username)

        if authenticate:
            dn = self._authenticate(username, password, dns)
        elif self.config.use_search:
            # The search proved these exist; we have to assume the first one
            # is the right one.
            dn = dns[0]
        else:
            dn = self._verify_direct(username, dns)
        return ResolvedIdentity(dn=dn, username=username)
