"""
Tests for ResultSet.
"""

import unittest

from ldapidentity.results import ResultSet, decode_value


class TestResultSet(unittest.TestCase):
    """Test read-only access to search results."""

    def setUp(self):
        self.result = ResultSet(
            [
                (
                    "uid=alice,ou=users,dc=example,dc=com",
                    {
                        "uid": [b"alice"],
                        "memberOf": [
                            b"cn=staff,ou=groups,dc=example,dc=com",
                            b"cn=admins,ou=groups,dc=example,dc=com",
                        ],
                        "jpegPhoto": [b"\xff\xd8\xff\xe0"],
                    },
                ),
                ("uid=bob,ou=users,dc=example,dc=com", {"uid": [b"bob"]}),
                ("", {"uid": [b"nodn"]}),
            ]
        )

    def test_counts(self):
        """Test entry and value counts."""
        self.assertEqual(self.result.count_entries(), 3)
        self.assertEqual(len(self.result), 3)
        self.assertEqual(self.result.count_values(0, "memberOf"), 2)
        self.assertEqual(self.result.count_values(1, "memberOf"), 0)

    def test_empty_result(self):
        """Test an empty result has no entries and no DN."""
        result = ResultSet([])
        self.assertEqual(len(result), 0)
        self.assertIsNone(result.dn(0))
        self.assertEqual(len(ResultSet()), 0)

    def test_dn(self):
        """Test DN lookup, including the failure sentinel."""
        self.assertEqual(self.result.dn(0), "uid=alice,ou=users,dc=example,dc=com")
        self.assertEqual(self.result.dn(1), "uid=bob,ou=users,dc=example,dc=com")
        self.assertIsNone(self.result.dn(2))
        self.assertIsNone(self.result.dn(3))
        self.assertIsNone(self.result.dn(-1))

    def test_value_decodes_to_str(self):
        """Test values are decoded from bytes."""
        self.assertEqual(self.result.value(0, "uid", 0), "alice")
        self.assertEqual(
            self.result.value(0, "memberOf", 1), "cn=admins,ou=groups,dc=example,dc=com"
        )

    def test_binary_values_stay_bytes(self):
        """Test undecodable values are returned as bytes."""
        self.assertEqual(self.result.value(0, "jpegPhoto"), b"\xff\xd8\xff\xe0")

    def test_attribute_names_are_case_insensitive(self):
        """Test attribute lookups ignore case."""
        self.assertEqual(self.result.value(0, "MEMBEROF", 0), self.result.value(0, "memberof", 0))
        self.assertEqual(self.result.count_values(0, "UID"), 1)

    def test_dn_pseudo_attribute(self):
        """Test that 'dn' can be read like an attribute."""
        self.assertEqual(
            self.result.value(1, "dn", 0), "uid=bob,ou=users,dc=example,dc=com"
        )
        self.assertEqual(self.result.count_values(2, "dn"), 0)

    def test_attribute_preserves_order(self):
        """Test all values come back in order."""
        self.assertEqual(
            self.result.attribute(0, "memberOf"),
            [
                "cn=staff,ou=groups,dc=example,dc=com",
                "cn=admins,ou=groups,dc=example,dc=com",
            ],
        )
        self.assertEqual(self.result.attribute(1, "memberOf"), [])

    def test_not_found(self):
        """Test out of range access raises NotFound."""
        with self.assertRaises(ResultSet.NotFound):
            self.result.value(5, "uid", 0)
        with self.assertRaises(ResultSet.NotFound):
            self.result.value(0, "mail", 0)
        with self.assertRaises(ResultSet.NotFound):
            self.result.value(0, "uid", 1)
        with self.assertRaises(ResultSet.NotFound):
            self.result.attribute(5, "uid")
        with self.assertRaises(ResultSet.NotFound):
            self.result.count_values(-1, "uid")
        # NotFound is a LookupError
        with self.assertRaises(LookupError):
            self.result.attributes(9)

    def test_results_are_read_only_copies(self):
        """Test callers can't change the snapshot through returned values."""
        values = self.result.attribute(0, "memberOf")
        values.append("cn=bogus")
        attributes = self.result.attributes(0)
        attributes["uid"].append("mallory")
        self.assertEqual(self.result.count_values(0, "memberOf"), 2)
        self.assertEqual(self.result.attribute(0, "uid"), ["alice"])

    def test_iteration(self):
        """Test iterating yields (dn, attributes) tuples."""
        dns = [dn for dn, _ in self.result]
        self.assertEqual(
            dns,
            [
                "uid=alice,ou=users,dc=example,dc=com",
                "uid=bob,ou=users,dc=example,dc=com",
                None,
            ],
        )

    def test_decode_value(self):
        """Test decode_value leaves non-bytes alone."""
        self.assertEqual(decode_value(b"x"), "x")
        self.assertEqual(decode_value("x"), "x")
        self.assertEqual(decode_value(3), 3)
