import unittest

from threadbridge.security import _parse_signature_header, sign_payload, verify_signature


class WebhookSignatureParsingTests(unittest.TestCase):
    def test_parse_signature_header_valid(self):
        sig = _parse_signature_header("sha256=ABCDEF01")
        self.assertIsNotNone(sig)
        assert sig is not None
        self.assertEqual(sig.algorithm, "sha256")
        self.assertEqual(sig.digest, "abcdef01")

    def test_parse_signature_header_wrong_algorithm(self):
        self.assertIsNone(_parse_signature_header("sha1=abcdef01"))

    def test_parse_signature_header_not_hex(self):
        self.assertIsNone(_parse_signature_header("sha256=zzzz"))

    def test_parse_signature_header_missing_digest(self):
        self.assertIsNone(_parse_signature_header("sha256="))
        self.assertIsNone(_parse_signature_header(""))


class WebhookSignatureVerificationTests(unittest.TestCase):
    def test_valid_signature(self):
        body = b'{"action":"opened"}'
        self.assertTrue(verify_signature("s3cret", body, sign_payload("s3cret", body)))

    def test_wrong_secret_or_tampered_body(self):
        body = b'{"action":"opened"}'
        header = sign_payload("s3cret", body)

        self.assertFalse(verify_signature("other", body, header))
        self.assertFalse(verify_signature("s3cret", b'{"action":"closed"}', header))
        self.assertFalse(verify_signature("s3cret", body, "garbage"))
