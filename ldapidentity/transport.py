"""
The python-ldap connection used by :py:class:`ldapidentity.client.DirectoryClient`.

This module owns the wire protocol: connecting, TLS, binding, searching,
reading and modifying attributes.  It knows nothing about users or groups.
"""

import logging
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

from ldapidentity import ldap

from .config import DirectoryConfig
from .exceptions import ConfigurationError, DirectoryError, ErrorCode
from .typing import AttributeMap, LDAPData, ModifyModList

logger = logging.getLogger("django-ldapidentity")


def needs_connection(func: Callable) -> Callable:
    """
    Decorator for :py:class:`DirectoryTransport` methods that talk to the
    server: open the connection first if we don't have one yet.  The
    connection stays open for the rest of the session.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> Any:
        if not self.has_connection():
            self.connect()
        return func(self, *args, **kwargs)

    return wrapper


def encode_values(value: Any) -> list[bytes]:
    """
    Convert an attribute value, or list of values, to the list of ``bytes``
    python-ldap wants.
    """
    values = value if isinstance(value, (list, tuple)) else [value]
    return [v if isinstance(v, bytes) else str(v).encode("utf-8") for v in values]


class DirectoryTransport:
    """
    A single python-ldap connection to the directory described by ``config``.

    Binds report success or failure as ``True``/``False``; searches and reads
    raise :py:class:`ldapidentity.exceptions.DirectoryError` when they fail.

    Args:
        config: the directory to talk to

    """

    def __init__(self, config: DirectoryConfig) -> None:
        self.config = config
        self.logger = logger
        self._ldap_object: ldap.ldapobject.LDAPObject | None = None  # type: ignore[name-defined]

    # -----------------------
    # Connection management
    # -----------------------

    def has_connection(self) -> bool:
        return self._ldap_object is not None

    @property
    def connection(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        The open python-ldap connection.

        Raises:
            DirectoryError: we are not connected

        """
        if self._ldap_object is None:
            msg = f"Not connected to {self.config.url}"
            raise DirectoryError(msg, ErrorCode.CONNECT_FAILED)
        return self._ldap_object

    def _check_file(self, label: str, filename: str) -> None:
        path = Path(filename)
        if not path.exists():
            msg = f"{label} file does not exist: {filename}"
            raise OSError(msg)
        if not path.is_file():
            msg = f"{label} file is not a file: {filename}"
            raise OSError(msg)

    def _initialize(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        Create a new python-ldap connection object and set its options.

        Raises:
            ConfigurationError: ``tls_verify`` is not ``"never"`` or ``"always"``
            OSError: one of the TLS files does not exist or is not a file

        """
        config = self.config
        ldap_object = ldap.initialize(config.url)
        if config.follow_referrals:
            ldap_object.set_option(ldap.OPT_REFERRALS, 1)  # type: ignore[attr-defined]
        else:
            ldap_object.set_option(ldap.OPT_REFERRALS, 0)  # type: ignore[attr-defined]
        ldap_object.set_option(ldap.OPT_NETWORK_TIMEOUT, float(config.timeout))  # type: ignore[attr-defined]
        if config.sizelimit:
            ldap_object.set_option(ldap.OPT_SIZELIMIT, int(config.sizelimit))  # type: ignore[attr-defined]
        if config.tls_verify == "never":
            ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_NEVER)  # type: ignore[attr-defined]
        elif config.tls_verify == "always":
            ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_DEMAND)  # type: ignore[attr-defined]
        else:
            msg = f"Invalid tls_verify value: {config.tls_verify}"
            raise ConfigurationError(msg, ErrorCode.INVALID_TLS_VERIFY)
        if config.tls_ca_certfile:
            self._check_file("CA Certificate", config.tls_ca_certfile)
            ldap_object.set_option(ldap.OPT_X_TLS_CACERTFILE, config.tls_ca_certfile)  # type: ignore[attr-defined]
        if config.tls_certfile:
            self._check_file("TLS Certificate", config.tls_certfile)
            ldap_object.set_option(ldap.OPT_X_TLS_CERTFILE, config.tls_certfile)  # type: ignore[attr-defined]
        if config.tls_keyfile:
            self._check_file("TLS Key", config.tls_keyfile)
            ldap_object.set_option(ldap.OPT_X_TLS_KEYFILE, config.tls_keyfile)  # type: ignore[attr-defined]
        ldap_object.set_option(ldap.OPT_X_TLS_NEWCTX, 0)  # type: ignore[attr-defined]
        return ldap_object

    def connect(self) -> None:
        """
        Open the connection, negotiating StartTLS if configured.  Does nothing
        if we are already connected.

        Raises:
            DirectoryError: the server could not be reached or TLS failed

        """
        if self.has_connection():
            return
        try:
            ldap_object = self._initialize()
            if self.config.use_starttls:
                ldap_object.start_tls_s()
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            self.logger.error("transport.connect.failed url=%s error=%s", self.config.url, e)
            msg = f"Could not connect to {self.config.url}: {e}"
            raise DirectoryError(msg, ErrorCode.CONNECT_FAILED) from e
        self._ldap_object = ldap_object
        self.logger.debug("transport.connect.success url=%s", self.config.url)

    def disconnect(self) -> None:
        """
        Close the connection, if we have one.
        """
        if self._ldap_object is None:
            return
        try:
            self._ldap_object.unbind_s()
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            self.logger.warning("transport.disconnect.failed url=%s error=%s", self.config.url, e)
        finally:
            self._ldap_object = None

    # -----------------------
    # Binds
    # -----------------------

    @needs_connection
    def bind(self, dn: str | None = None, password: str | None = None) -> bool:
        """
        Bind as ``dn`` with ``password``.  With neither, bind anonymously.

        A DN with an empty password is refused here: servers treat that as an
        unauthenticated bind and report success.

        Returns:
            ``True`` if the bind succeeded, ``False`` otherwise.

        """
        if not dn and not password:
            dn = password = None
        elif not password:
            self.logger.warning("transport.bind.empty_password dn=%s", dn)
            return False
        try:
            self.connection.simple_bind_s(dn, password)
        except ldap.INVALID_CREDENTIALS:  # type: ignore[attr-defined]
            self.logger.debug("transport.bind.invalid_credentials dn=%s", dn)
            return False
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            self.logger.warning("transport.bind.failed dn=%s error=%s", dn, e)
            return False
        self.logger.debug("transport.bind.success dn=%s", dn or "anonymous")
        return True

    def proxy_bind(self) -> bool:
        """
        Bind as the configured proxy account, or anonymously if there is none.
        """
        return self.bind(self.config.user, self.config.password)

    # -----------------------
    # Searches
    # -----------------------

    def _search(
        self,
        basedn: str,
        scope: int,
        searchfilter: str,
        attributes: list[str] | None,
    ) -> list[LDAPData]:
        data = self.connection.search_s(
            basedn, scope, filterstr=searchfilter, attrlist=attributes or None
        )
        # We have to filter out and references that AD puts in
        return [obj for obj in data if isinstance(obj[1], dict)]

    @needs_connection
    def search(
        self,
        basedn: str,
        searchfilter: str,
        attributes: list[str] | None = None,
    ) -> list[LDAPData]:
        """
        Search the subtree under ``basedn`` for entries matching ``searchfilter``.

        Args:
            basedn: where to start the search
            searchfilter: the LDAP filter string
            attributes: the attributes to return; all of them if empty

        Raises:
            DirectoryError: the search failed

        Returns:
            List of ``(dn, attributes)`` tuples.

        """
        try:
            return self._search(basedn, ldap.SCOPE_SUBTREE, searchfilter, attributes)  # type: ignore[attr-defined]
        except ldap.NO_SUCH_OBJECT:  # type: ignore[attr-defined]
            return []
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            self.logger.error(
                "transport.search.failed basedn=%s filter=%s error=%s",
                basedn,
                searchfilter,
                e,
            )
            msg = f"Search of {basedn} with {searchfilter} failed: {e}"
            raise DirectoryError(msg, ErrorCode.SEARCH_FAILED) from e

    @needs_connection
    def read(
        self,
        dn: str,
        searchfilter: str,
        attributes: list[str] | None = None,
    ) -> list[LDAPData]:
        """
        Read the single entry ``dn``, if it matches ``searchfilter``.

        Raises:
            DirectoryError: the read failed for any reason other than the
                entry not existing

        Returns:
            A list with the ``(dn, attributes)`` tuple for the entry, or an
            empty list if it does not exist.

        """
        try:
            return self._search(dn, ldap.SCOPE_BASE, searchfilter, attributes)  # type: ignore[attr-defined]
        except ldap.NO_SUCH_OBJECT:  # type: ignore[attr-defined]
            return []
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            self.logger.error("transport.read.failed dn=%s error=%s", dn, e)
            msg = f"Read of {dn} failed: {e}"
            raise DirectoryError(msg, ErrorCode.READ_FAILED) from e

    # -----------------------
    # Attribute changes
    # -----------------------

    def _get_modlist(self, attributes: AttributeMap, modtype: int) -> ModifyModList:
        """
        Build a python-ldap modlist applying ``modtype`` to every attribute.
        """
        _modlist: ModifyModList = []
        for key, value in attributes.items():
            if modtype == ldap.MOD_DELETE:  # type: ignore[attr-defined]
                _modlist.append((ldap.MOD_DELETE, key, None))  # type: ignore[attr-defined]
            else:
                _modlist.append((modtype, key, encode_values(value)))
        return _modlist

    @needs_connection
    def _modify(self, dn: str, attributes: AttributeMap, modtype: int) -> bool:
        if not attributes:
            return True
        try:
            self.connection.modify_s(dn, self._get_modlist(attributes, modtype))
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            self.logger.error(
                "transport.modify.failed dn=%s attributes=%s error=%s",
                dn,
                ",".join(attributes),
                e,
            )
            return False
        return True

    def add_attributes(self, dn: str, attributes: AttributeMap) -> bool:
        return self._modify(dn, attributes, ldap.MOD_ADD)  # type: ignore[attr-defined]

    def replace_attributes(self, dn: str, attributes: AttributeMap) -> bool:
        return self._modify(dn, attributes, ldap.MOD_REPLACE)  # type: ignore[attr-defined]

    def delete_attributes(self, dn: str, attributes: AttributeMap) -> bool:
        """
        Remove every value of each attribute named in ``attributes``; the
        values in the mapping are ignored.
        """
        return self._modify(dn, attributes, ldap.MOD_DELETE)  # type: ignore[attr-defined]
