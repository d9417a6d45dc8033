import unittest
from datetime import datetime, timedelta, timezone

from jose import jwt

from factories import SECRET, make_tokens
from storerate.auth.token import TokenService
from storerate.model.account import Role


class TokenServiceTests(unittest.TestCase):
    def setUp(self):
        self.tokens = make_tokens()

    def test_issue_then_verify_round_trips_identity(self):
        token = self.tokens.issue(42, "alice@example.com", Role.OWNER)
        identity = self.tokens.verify(token)
        self.assertIsNotNone(identity)
        self.assertEqual(identity.account_id, 42)
        self.assertEqual(identity.email, "alice@example.com")
        self.assertEqual(identity.role, Role.OWNER)

    def test_default_lifetime_is_seven_days(self):
        identity = self.tokens.verify(self.tokens.issue(1, "a@example.com", Role.USER))
        self.assertEqual(identity.expires_at - identity.issued_at, timedelta(days=7))

    def test_expired_token_is_invalid(self):
        issued_long_ago = TokenService(
            SECRET, clock=lambda: datetime.now(timezone.utc) - timedelta(days=8)
        )
        token = issued_long_ago.issue(1, "a@example.com", Role.USER)
        self.assertIsNone(self.tokens.verify(token))

    def test_tampered_token_is_invalid(self):
        token = self.tokens.issue(1, "a@example.com", Role.USER)
        header, payload, signature = token.split(".")
        flipped = signature[:-2] + ("A" if signature[-2] != "A" else "B") + signature[-1]
        self.assertIsNone(self.tokens.verify(f"{header}.{payload}.{flipped}"))

    def test_forged_payload_is_invalid(self):
        forged = jwt.encode(
            {"id": 1, "email": "a@example.com", "role": "ADMIN", "iat": 0, "exp": 9999999999},
            "some-other-secret",
            algorithm="HS256",
        )
        self.assertIsNone(self.tokens.verify(forged))

    def test_missing_claims_and_garbage_are_invalid(self):
        no_role = jwt.encode({"id": 1, "email": "a@example.com", "exp": 9999999999}, SECRET, algorithm="HS256")
        unknown_role = jwt.encode(
            {"id": 1, "email": "a@example.com", "role": "ROOT", "iat": 0, "exp": 9999999999},
            SECRET,
            algorithm="HS256",
        )
        for token in [no_role, unknown_role, "garbage", "a.b.c", ""]:
            self.assertIsNone(self.tokens.verify(token), token)

    def test_rotating_the_secret_invalidates_outstanding_tokens(self):
        token = self.tokens.issue(1, "a@example.com", Role.USER)
        self.assertIsNone(TokenService("rotated-secret").verify(token))

    def test_empty_secret_is_refused(self):
        with self.assertRaises(ValueError):
            TokenService("")


if __name__ == "__main__":
    unittest.main()
