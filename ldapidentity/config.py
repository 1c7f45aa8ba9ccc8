"""
Directory configuration.

Configurations live in ``settings.LDAP_SERVERS``, keyed by name::

    LDAP_SERVERS = {
        "default": {
            "url": "ldap://ldap.example.com",
            "user": "cn=proxy,dc=example,dc=com",
            "password": "secret",
            "basedn": "dc=example,dc=com",
            "user_query": "(uid=[username])",
            "use_search": True,
        },
    }

Each entry becomes an immutable :py:class:`DirectoryConfig`.
"""

import dataclasses
from dataclasses import dataclass, fields
from typing import Any

from django.conf import settings

from .exceptions import ConfigurationError, ErrorCode

#: The placeholder in ``user_query`` and ``ldap_email`` that gets the username
USERNAME_PLACEHOLDER = "[username]"
#: Filter used when a search or read is not given one
DEFAULT_FILTER = "(objectclass=*)"


@dataclass(frozen=True)
class DirectoryConfig:
    """
    Settings for one directory.  Built once per client, read-only thereafter.
    """

    #: The key into ``settings.LDAP_SERVERS`` this came from
    name: str = "default"

    # Connection
    #: LDAP URL of the server
    url: str = "ldap://localhost"
    #: DN of the proxy account.  Empty means the proxy bind is anonymous.
    user: str | None = None
    #: Password of the proxy account
    password: str | None = None
    #: Negotiate TLS with StartTLS after connecting
    use_starttls: bool = True
    #: ``"never"`` or ``"always"``
    tls_verify: str = "never"
    tls_ca_certfile: str | None = None
    tls_certfile: str | None = None
    tls_keyfile: str | None = None
    #: Network timeout in seconds
    timeout: float = 15.0
    sizelimit: int | None = None
    follow_referrals: bool = False

    # Identity resolution
    #: Base DN for searches, and the default DN for reads
    basedn: str | None = None
    #: A filter (search mode) or ``;`` separated list of DNs (direct mode)
    #: containing :py:data:`USERNAME_PLACEHOLDER`
    user_query: str | None = None
    #: Find users by searching instead of building their DN directly
    use_search: bool = False
    default_filter: str = DEFAULT_FILTER
    all_user_filter: str = "(objectclass=user)"
    ldap_uid: str = "uid"
    ldap_fullname: str = "fullName"
    #: An attribute name, or a template like ``[username]@example.com``
    ldap_email: str = "mail"

    # Policy
    #: In direct mode without authentication, trust the first candidate DN
    #: when the proxy bind fails.  Set to ``False`` to fail closed instead.
    trust_unverified_dn: bool = True
    #: Proxy bind before writing attribute changes
    proxy_write: bool = False
    #: Disabled configurations are skipped by :py:meth:`all_from_settings`
    enabled: bool = True

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "DirectoryConfig":
        """
        Build a configuration from a plain dictionary.

        Args:
            name: the name to give this configuration
            data: the settings for this configuration

        Raises:
            ConfigurationError: ``data`` has keys we don't know about

        Returns:
            A new configuration.

        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"LDAP_SERVERS['{name}'] has unknown keys: {', '.join(unknown)}"
            raise ConfigurationError(msg, ErrorCode.UNKNOWN_CONFIG_KEY)
        kwargs = dict(data)
        kwargs["name"] = name
        return cls(**kwargs)

    @classmethod
    def from_settings(cls, name: str = "default") -> "DirectoryConfig":
        """
        Build the configuration named ``name`` from ``settings.LDAP_SERVERS``.

        Raises:
            ConfigurationError: ``settings.LDAP_SERVERS`` does not exist, or
                has no key ``name``

        """
        try:
            data = settings.LDAP_SERVERS[name]
        except AttributeError as e:
            msg = "settings.LDAP_SERVERS does not exist!"
            raise ConfigurationError(msg, ErrorCode.NO_CONFIG) from e
        except KeyError as e:
            msg = f"settings.LDAP_SERVERS has no key '{name}'"
            raise ConfigurationError(msg, ErrorCode.NO_CONFIG) from e
        return cls.from_dict(name, data)

    @classmethod
    def all_from_settings(cls, names: list[str] | None = None) -> list["DirectoryConfig"]:
        """
        Return the enabled configurations, either every one in
        ``settings.LDAP_SERVERS`` in settings order, or those named in
        ``names`` in that order.
        """
        if names is None:
            try:
                names = list(settings.LDAP_SERVERS)
            except AttributeError as e:
                msg = "settings.LDAP_SERVERS does not exist!"
                raise ConfigurationError(msg, ErrorCode.NO_CONFIG) from e
        configs = [cls.from_settings(name) for name in names]
        return [config for config in configs if config.enabled]

    def with_options(self, **changes: Any) -> "DirectoryConfig":
        return dataclasses.replace(self, **changes)
