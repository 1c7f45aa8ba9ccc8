"""
Exceptions raised by the LDAP identity layer.

Every exception carries a numeric ``code`` from :py:class:`ErrorCode` so that
operators can tell configuration mistakes apart from genuinely bad
credentials when reading the logs.
"""

from enum import IntEnum

from django.core.exceptions import ImproperlyConfigured


class ErrorCode(IntEnum):
    """Numeric codes for every failure the identity layer reports."""

    #: Could not open a connection to the directory
    CONNECT_FAILED = 10001
    #: A subtree search failed
    SEARCH_FAILED = 10002
    #: A base scope read failed
    READ_FAILED = 10003
    #: No user query template is configured
    NO_USER_QUERY = 10301
    #: The user query produced no candidate DNs
    USER_NOT_FOUND = 10302
    #: Search mode found the user but the password did not bind
    SEARCH_BIND_FAILED = 10303
    #: None of the direct mode DNs would bind with the password
    DIRECT_BIND_FAILED = 10304
    #: Direct mode could not find any of the candidate DNs in the directory
    DIRECT_DN_NOT_FOUND = 10305
    #: Direct mode could not verify the candidate DNs and fail-open is disabled
    DIRECT_DN_UNVERIFIABLE = 10306
    #: Search mode needs a base DN
    NO_BASE_DN = 10321
    #: Search mode could not bind with the proxy account
    PROXY_BIND_FAILED = 10322
    #: Direct mode template contains filter syntax
    DIRECT_QUERY_IS_FILTER = 10331
    #: Reading user details returned no entry
    USER_DETAILS_FAILED = 10341
    #: A read hook rejected the user details
    USER_DETAILS_REJECTED = 10342
    #: Authentication failed
    AUTHENTICATION_FAILED = 10401
    #: No configuration could authenticate the user
    NO_MATCHING_CONFIG = 10411
    #: No configurations are available
    NO_CONFIG = 10412
    #: A configuration contains unknown keys
    UNKNOWN_CONFIG_KEY = 10413
    #: ``tls_verify`` is not one of the values we understand
    INVALID_TLS_VERIFY = 10414


class LdapIdentityError(Exception):
    """
    Base class for every error raised by ``ldapidentity``.

    Args:
        message: human readable description of the failure
        code: the :py:class:`ErrorCode` for this failure

    """

    def __init__(self, message: str, code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} ({self.code})"
        return self.message


class ConfigurationError(LdapIdentityError, ImproperlyConfigured):
    """Our configuration is missing something, or is self-contradictory."""


class DirectoryError(LdapIdentityError):
    """A bind, search or read against the directory failed."""


class InvalidUser(LdapIdentityError):
    """
    The user could not be found, could not be verified, or supplied the
    wrong password.

    Args:
        message: human readable description of the failure
        code: the :py:class:`ErrorCode` for this failure
        username: the username that failed

    """

    def __init__(self, message: str, code: int = 0, username: str | None = None) -> None:
        super().__init__(message, code)
        self.username = username

    def __str__(self) -> str:
        return f"{super().__str__()} [username={self.username}]"


class StackedError(LdapIdentityError):
    """
    Every configuration we tried failed.  ``errors`` holds the failure from
    each configuration, in the order they were tried.
    """

    def __init__(
        self, message: str, code: int = 0, errors: list[Exception] | None = None
    ) -> None:
        super().__init__(message, code)
        self.errors: list[Exception] = list(errors or [])

    def __str__(self) -> str:
        details = "; ".join(str(e) for e in self.errors)
        return f"{super().__str__()}: {details}" if details else super().__str__()
