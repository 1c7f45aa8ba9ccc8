"""
Tests for DirectoryConfig.
"""

import unittest

import django
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.test import override_settings

from ldapidentity.config import DEFAULT_FILTER, DirectoryConfig
from ldapidentity.exceptions import ConfigurationError, ErrorCode

if not settings.configured:
    settings.configure(
        LDAP_SERVERS={
            "default": {
                "url": "ldap://localhost:389",
                "basedn": "dc=example,dc=com",
                "user_query": "(uid=[username])",
                "use_search": True,
                "use_starttls": False,
            }
        }
    )
    try:
        django.setup()
    except Exception:
        pass


SERVERS = {
    "primary": {
        "url": "ldap://ldap1.example.com",
        "user": "cn=proxy,dc=example,dc=com",
        "password": "secret",
        "basedn": "dc=example,dc=com",
        "user_query": "(uid=[username])",
        "use_search": True,
    },
    "secondary": {
        "url": "ldap://ldap2.example.com",
        "user_query": "uid=[username],ou=people,dc=example,dc=com",
        "enabled": False,
    },
    "tertiary": {
        "url": "ldap://ldap3.example.com",
    },
}


class TestDirectoryConfig(unittest.TestCase):
    """Test building configurations from dicts and settings."""

    def test_defaults(self):
        """Test an empty configuration gets the documented defaults."""
        config = DirectoryConfig.from_dict("bare", {})
        self.assertEqual(config.name, "bare")
        self.assertEqual(config.default_filter, DEFAULT_FILTER)
        self.assertEqual(config.all_user_filter, "(objectclass=user)")
        self.assertEqual(config.ldap_uid, "uid")
        self.assertEqual(config.ldap_fullname, "fullName")
        self.assertEqual(config.ldap_email, "mail")
        self.assertFalse(config.use_search)
        self.assertFalse(config.proxy_write)
        self.assertTrue(config.trust_unverified_dn)
        self.assertTrue(config.enabled)
        self.assertIsNone(config.user_query)

    def test_from_dict(self):
        """Test values are copied from the dict, and name wins over the dict."""
        config = DirectoryConfig.from_dict("primary", dict(SERVERS["primary"], name="other"))
        self.assertEqual(config.name, "primary")
        self.assertEqual(config.url, "ldap://ldap1.example.com")
        self.assertEqual(config.user, "cn=proxy,dc=example,dc=com")
        self.assertTrue(config.use_search)

    def test_unknown_keys(self):
        """Test unknown keys are reported instead of silently ignored."""
        with self.assertRaises(ConfigurationError) as cm:
            DirectoryConfig.from_dict("bad", {"url": "ldap://x", "usre": "typo"})
        self.assertEqual(cm.exception.code, ErrorCode.UNKNOWN_CONFIG_KEY)
        self.assertIn("usre", str(cm.exception))

    def test_config_is_immutable(self):
        """Test a configuration can't be changed after it is built."""
        config = DirectoryConfig.from_dict("primary", SERVERS["primary"])
        with self.assertRaises(AttributeError):
            config.url = "ldap://evil.example.com"

    def test_with_options(self):
        """Test with_options returns a changed copy."""
        config = DirectoryConfig.from_dict("primary", SERVERS["primary"])
        other = config.with_options(proxy_write=True)
        self.assertTrue(other.proxy_write)
        self.assertFalse(config.proxy_write)
        self.assertEqual(other.url, config.url)

    def test_from_settings(self):
        """Test a named configuration is loaded from settings."""
        with override_settings(LDAP_SERVERS=SERVERS):
            config = DirectoryConfig.from_settings("primary")
        self.assertEqual(config.name, "primary")
        self.assertEqual(config.basedn, "dc=example,dc=com")

    def test_from_settings_missing_name(self):
        """Test asking for a configuration that doesn't exist."""
        with override_settings(LDAP_SERVERS=SERVERS):
            with self.assertRaises(ConfigurationError) as cm:
                DirectoryConfig.from_settings("nope")
        self.assertEqual(cm.exception.code, ErrorCode.NO_CONFIG)
        # ConfigurationError is also Django's ImproperlyConfigured
        self.assertIsInstance(cm.exception, ImproperlyConfigured)

    def test_from_settings_missing_setting(self):
        """Test a missing LDAP_SERVERS setting."""
        with override_settings():
            del settings.LDAP_SERVERS
            with self.assertRaises(ConfigurationError) as cm:
                DirectoryConfig.from_settings("default")
            self.assertEqual(cm.exception.code, ErrorCode.NO_CONFIG)
            with self.assertRaises(ConfigurationError):
                DirectoryConfig.all_from_settings()

    def test_all_from_settings(self):
        """Test every enabled configuration is returned in settings order."""
        with override_settings(LDAP_SERVERS=SERVERS):
            configs = DirectoryConfig.all_from_settings()
            self.assertEqual([c.name for c in configs], ["primary", "tertiary"])
            configs = DirectoryConfig.all_from_settings(["tertiary", "primary"])
            self.assertEqual([c.name for c in configs], ["tertiary", "primary"])
