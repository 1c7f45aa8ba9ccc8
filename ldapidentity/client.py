"""
The directory client: authentication, identity resolution, searches, group
discovery and attribute updates for one directory.

Typical use::

    from ldapidentity import BindState, DirectoryConfig, get_client

    client = get_client(
        DirectoryConfig.all_from_settings(),
        mode=BindState.USER,
        username="alice",
        password="secret",
    )
    details = client.get_user_details(client.last_user_dn, ["memberOf"])
    groups = client.get_recursive_groups(details["memberOf"], depth=5, attribute="dn")
"""

import logging
from collections.abc import Callable
from enum import IntEnum
from typing import Any

from .config import USERNAME_PLACEHOLDER, DirectoryConfig
from .diff import diff
from .exceptions import (
    ConfigurationError,
    DirectoryError,
    ErrorCode,
    InvalidUser,
    LdapIdentityError,
    StackedError,
)
from .groups import recursive_groups
from .hooks import ReadContext, ReadHook
from .resolver import IdentityResolver
from .results import ResultSet
from .transport import DirectoryTransport
from .typing import AttributeMap

logger = logging.getLogger("django-ldapidentity")
#: Directory writes are recorded here, one record per operation
audit_logger = logging.getLogger("django-ldapidentity.audit")


class BindState(IntEnum):
    """
    Who we are currently bound as.  Also used as the ``mode`` argument of
    :py:meth:`DirectoryClient.authenticate`.
    """

    #: Not bound, or bound anonymously
    NONE = 0
    #: Bound as a user
    USER = 1
    #: Bound as the proxy account
    PROXY = 2


class DirectoryClient:
    """
    One session against one directory.

    The client tracks the strongest bind it has done: every call to
    :py:meth:`bind`, :py:meth:`proxy_bind` or :py:meth:`authenticate`
    resets :py:attr:`bind_state` to ``NONE``, and only a successful bind
    raises it to ``USER`` or ``PROXY``.

    A client is not thread-safe; give each thread its own.

    Args:
        config: the directory to talk to

    Keyword Args:
        transport: the connection to use.  Defaults to a new
            :py:class:`ldapidentity.transport.DirectoryTransport` for ``config``.
        hooks: hooks run around :py:meth:`get_user_details`

    """

    def __init__(
        self,
        config: DirectoryConfig,
        transport: DirectoryTransport | None = None,
        hooks: list[ReadHook] | None = None,
    ) -> None:
        self.logger = logger
        self._config = config
        self._transport = transport if transport is not None else DirectoryTransport(config)
        self._hooks: list[ReadHook] = list(hooks or [])
        self._bind_state = BindState.NONE
        self._last_user_dn: str | None = None
        self.resolver = IdentityResolver(self)

    def __enter__(self) -> "DirectoryClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<DirectoryClient: {self._config.name} {self._bind_state.name}>"

    # -----------------------
    # Accessors
    # -----------------------

    @property
    def config(self) -> DirectoryConfig:
        return self._config

    @property
    def transport(self) -> DirectoryTransport:
        return self._transport

    @property
    def bind_state(self) -> BindState:
        return self._bind_state

    @property
    def last_user_dn(self) -> str | None:
        """
        The DN from the last successful :py:meth:`get_user_dn`.
        """
        return self._last_user_dn

    @property
    def all_user_filter(self) -> str:
        return self._config.all_user_filter

    @property
    def proxy_write(self) -> bool:
        return self._config.proxy_write

    @property
    def ldap_uid(self) -> str:
        return self._config.ldap_uid

    @property
    def ldap_fullname(self) -> str:
        return self._config.ldap_fullname

    @property
    def ldap_email(self) -> str:
        return self._config.ldap_email

    # -----------------------
    # Connection and binds
    # -----------------------

    def connect(self) -> None:
        self._transport.connect()

    def close(self) -> None:
        self._transport.disconnect()
        self._bind_state = BindState.NONE

    def bind(self, dn: str | None = None, password: str | None = None) -> bool:
        """
        Bind as ``dn`` with ``password``, or anonymously if neither is given.

        Returns:
            ``True`` on success, in which case :py:attr:`bind_state` is ``USER``.

        """
        self._bind_state = BindState.NONE
        if self._transport.bind(dn, password):
            self._bind_state = BindState.USER
            return True
        return False

    def proxy_bind(self) -> bool:
        """
        Bind as the configured proxy account.  Anonymous binds are allowed
        here if no proxy account is configured.

        Returns:
            ``True`` on success, in which case :py:attr:`bind_state` is ``PROXY``.

        """
        self._bind_state = BindState.NONE
        if self._transport.proxy_bind():
            self._bind_state = BindState.PROXY
            return True
        return False

    def authenticate(
        self,
        mode: BindState = BindState.NONE,
        username: str | None = None,
        password: str | None = None,
    ) -> bool:
        """
        Authorise or authenticate against this directory.

        * ``NONE`` with no ``username``: nothing to check; we are done.
        * ``PROXY``: bind as the proxy account.
        * ``USER``: find ``username`` and bind as them with ``password``.
        * ``NONE`` with a ``username``: find ``username`` without checking
          the password.

        Args:
            mode: what to authenticate as
            username: the user to authenticate or authorise
            password: the user's password

        Raises:
            InvalidUser: authentication failed
            ConfigurationError: the configuration cannot resolve users
            DirectoryError: the directory could not be reached or searched

        Returns:
            ``True``.  Failure is always an exception.

        """
        self._bind_state = BindState.NONE
        self.connect()
        if mode == BindState.NONE and username is None:
            return True
        if mode == BindState.PROXY:
            if self.proxy_bind():
                return True
        elif self.get_user_dn(
            username or "", password, authenticate=(mode == BindState.USER)
        ):
            self.logger.info("auth.success user=%s mode=%s", username, mode.name)
            return True
        self.logger.warning("auth.failed user=%s mode=%s", username, mode.name)
        msg = "Authentication failed"
        raise InvalidUser(msg, ErrorCode.AUTHENTICATION_FAILED, username)

    # -----------------------
    # Searches
    # -----------------------

    def search(
        self,
        dn: str | None = None,
        searchfilter: str | None = None,
        attributes: list[str] | None = None,
    ) -> ResultSet:
        """
        Search the subtree under ``dn`` (default: the configured ``basedn``)
        for ``searchfilter`` (default: the configured ``default_filter``).

        Raises:
            DirectoryError: the search failed

        """
        if dn is None:
            dn = self._config.basedn or ""
        if searchfilter is None:
            searchfilter = self._config.default_filter
        return ResultSet(self._transport.search(dn, searchfilter, attributes))

    def read(
        self,
        dn: str | None = None,
        searchfilter: str | None = None,
        attributes: list[str] | None = None,
    ) -> ResultSet:
        """
        Read the entry ``dn`` (default: the configured ``basedn``).  The result
        is empty if the entry does not exist or does not match ``searchfilter``.

        Raises:
            DirectoryError: the read failed

        """
        if dn is None:
            dn = self._config.basedn or ""
        if searchfilter is None:
            searchfilter = self._config.default_filter
        return ResultSet(self._transport.read(dn, searchfilter, attributes))

    # -----------------------
    # Users
    # -----------------------

    def get_user_dn(
        self,
        username: str,
        password: str | None = None,
        authenticate: bool = False,
    ) -> str:
        """
        Return the DN for ``username``, binding as them with ``password`` if
        ``authenticate`` is set.  On success the DN is also available as
        :py:attr:`last_user_dn`.

        See :py:meth:`ldapidentity.resolver.IdentityResolver.resolve`.
        """
        identity = self.resolver.resolve(username, password, authenticate=authenticate)
        self._last_user_dn = identity.dn
        self.logger.debug("resolver.dn user=%s dn=%s", identity.username, identity.dn)
        return identity.dn

    def get_user_details(
        self, dn: str, attributes: list[str] | None = None
    ) -> dict[str, list[Any]]:
        """
        Read the uid, full name and email of the user ``dn``, plus
        ``attributes`` and anything our hooks ask for.

        If ``ldap_email`` is a template like ``[username]@example.com``
        instead of an attribute name, the email is built from the user's uid.

        Raises:
            DirectoryError: the user could not be read, or a hook rejected it

        Returns:
            Every requested attribute name mapped to its list of values;
            missing attributes map to an empty list.

        """
        context = ReadContext(client=self, dn=dn, source="get_user_details")
        requested = list(attributes or [])
        for hook in self._hooks:
            requested.extend(hook.before_read(context))
        fake_email = USERNAME_PLACEHOLDER in self.ldap_email
        requested.extend([self.ldap_fullname, self.ldap_uid])
        if not fake_email:
            requested.append(self.ldap_email)
        requested = list(dict.fromkeys(requested))

        result = self.read(dn, None, requested)
        if result.dn(0) is None:
            msg = f"Could not read the details of {dn}"
            raise DirectoryError(msg, ErrorCode.USER_DETAILS_FAILED)
        details = {name: result.attribute(0, name) for name in requested}
        if fake_email:
            uid = details[self.ldap_uid][0] if details[self.ldap_uid] else ""
            details[self.ldap_email] = [self.ldap_email.replace(USERNAME_PLACEHOLDER, uid)]

        for hook in self._hooks:
            if not hook.after_read(context, details):
                self.logger.warning("client.user_details.rejected dn=%s hook=%s", dn, hook)
                msg = f"A read hook rejected {dn}"
                raise DirectoryError(msg, ErrorCode.USER_DETAILS_REJECTED)
        return details

    # -----------------------
    # Groups
    # -----------------------

    def get_recursive_groups(
        self,
        search_dns: list[str] | None,
        depth: int = 0,
        visited: set[str] | None = None,
        attribute: str = "memberOf",
        query_attribute: str = "member",
    ) -> set[str]:
        """
        Return every group reachable from ``search_dns``.  See
        :py:func:`ldapidentity.groups.recursive_groups`.
        """
        return recursive_groups(
            self,
            search_dns,
            depth,
            visited,
            attribute=attribute,
            query_attribute=query_attribute,
        )

    # -----------------------
    # Changes
    # -----------------------

    def make_changes(self, dn: str, current: AttributeMap, changes: AttributeMap) -> bool:
        """
        Write the difference between ``current`` and ``changes`` to ``dn``.

        Deletes are applied first, then adds, then replaces.  Each is recorded
        on the audit logger.  A failure in one does not stop the others.

        Args:
            dn: the entry to change
            current: the entry's attributes as they are now
            changes: the attributes as they should be

        Raises:
            DirectoryError: ``proxy_write`` is set and the proxy bind failed

        Returns:
            ``False`` if ``changes`` is empty or any write failed, ``True``
            otherwise (including when nothing needed writing).

        """
        if not changes:
            return False
        ops = diff(current, changes)
        if ops.is_empty:
            self.logger.debug("client.make_changes.no-changes dn=%s", dn)
            return True
        if self.proxy_write and not self.proxy_bind():
            msg = f"Could not bind with the proxy user to write to {dn}"
            raise DirectoryError(msg, ErrorCode.PROXY_BIND_FAILED)

        operations: list[tuple[str, AttributeMap, Callable[[str, AttributeMap], bool]]] = [
            ("delete", {key: [] for key in sorted(ops.to_delete)}, self._transport.delete_attributes),
            ("add", ops.to_add, self._transport.add_attributes),
            ("replace", ops.to_replace, self._transport.replace_attributes),
        ]
        results = []
        for operation, attributes, method in operations:
            if not attributes:
                continue
            success = method(dn, attributes)
            audit_logger.log(
                logging.INFO if success else logging.ERROR,
                "ldap.%s_attributes dn=%s attributes=%r success=%s",
                operation,
                dn,
                dict(attributes),
                success,
            )
            results.append(success)
        return all(results)


def get_client(
    configs: list[DirectoryConfig],
    mode: BindState = BindState.NONE,
    username: str | None = None,
    password: str | None = None,
    transport_factory: Callable[[DirectoryConfig], DirectoryTransport] | None = None,
    hooks: list[ReadHook] | None = None,
) -> DirectoryClient:
    """
    Try each configuration in order and return a client for the first one
    that authenticates.  See :py:meth:`DirectoryClient.authenticate` for
    ``mode``, ``username`` and ``password``.

    Args:
        configs: the configurations to try

    Keyword Args:
        transport_factory: builds the transport for a configuration.
            Defaults to :py:class:`ldapidentity.transport.DirectoryTransport`.
        hooks: read hooks for the returned client

    Raises:
        ConfigurationError: ``configs`` is empty
        StackedError: every configuration failed; ``errors`` has each failure

    """
    if not configs:
        msg = "No LDAP configurations are available"
        raise ConfigurationError(msg, ErrorCode.NO_CONFIG)
    factory = transport_factory or DirectoryTransport
    errors: list[Exception] = []
    for config in configs:
        client = DirectoryClient(config, transport=factory(config), hooks=hooks)
        try:
            if client.authenticate(mode, username, password):
                return client
        except (LdapIdentityError, OSError) as e:
            logger.debug("client.config_failed config=%s error=%s", config.name, e)
            errors.append(e)
        client.close()
    msg = "No LDAP configuration could authenticate the user"
    raise StackedError(msg, ErrorCode.NO_MATCHING_CONFIG, errors)
