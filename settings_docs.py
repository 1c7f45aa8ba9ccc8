"""
Minimal Django settings for Sphinx documentation generation.

``ldapidentity`` only needs ``LDAP_SERVERS`` from Django, so this is just
enough for autodoc to import the package.
"""

SECRET_KEY = "django-insecure-docs-only-key-for-sphinx"  # noqa: S105

DEBUG = True

INSTALLED_APPS: list[str] = []

# LDAP configuration (minimal for docs)
LDAP_SERVERS = {
    "default": {
        "url": "ldap://localhost",
        "user": "cn=admin,dc=example,dc=com",
        "password": "password",
        "basedn": "dc=example,dc=com",
        "user_query": "(uid=[username])",
        "use_search": True,
    }
}

# Disable logging for docs
LOGGING = {
    "version": 1,
    "disable_existing_loggers": True,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "root": {
        "handlers": ["null"],
    },
}
