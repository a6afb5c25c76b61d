import unittest

import helpers  # noqa: F401

from storefront.utils.validators import validate_email, validate_password


class ValidatorsTestCase(unittest.TestCase):
    def test_email(self):
        for good in ["new@example.com", "a.b+c@sub.domain.org", "x@x.com"]:
            self.assertTrue(validate_email(good), good)
        for bad in ["invalidemail", "a@b", "@example.com", "a b@example.com", ""]:
            self.assertFalse(validate_email(bad), bad)

    def test_password(self):
        for good in ["securePass", "password123", "c0rrect horse"]:
            self.assertTrue(validate_password(good), good)
        # too short, digits only, one repeated character
        for bad in ["123", "short1", "12345678901", "aaaaaaaaaa", ""]:
            self.assertFalse(validate_password(bad), bad)

    def test_password_byte_limit(self):
        self.assertTrue(validate_password("a" + "1" * 71))
        self.assertFalse(validate_password("a" + "1" * 72))
        # counted in utf-8 bytes, not characters
        self.assertTrue(validate_password("p" + "é" * 35))
        self.assertFalse(validate_password("p" + "é" * 36))
