"""Password hashing, token and OTP helper tests"""

import jwt
import pytest

from ticketauth.auth import JWTHandler
from ticketauth.auth.utiles import generate_otp, normalize_email, otp_matches, validate_otp_format
from ticketauth.config import Settings
from ticketauth.core import PasswordManager


class TestPasswordManager:

    @pytest.fixture
    def passwords(self):
        return PasswordManager(rounds=4)

    def test_hash_and_verify(self, passwords):
        hashed = passwords.hash_password("pw1")

        assert hashed != "pw1"
        assert hashed.startswith("$2")
        assert passwords.verify_password("pw1", hashed)
        assert not passwords.verify_password("pw2", hashed)

    def test_hashes_are_salted(self, passwords):
        assert passwords.hash_password("pw1") != passwords.hash_password("pw1")

    def test_rounds_are_applied(self, passwords):
        assert passwords.hash_password("pw1").startswith("$2b$04$")

    def test_malformed_hash(self, passwords):
        assert passwords.verify_password("pw1", "not-a-hash") is False

    def test_dummy_hash_is_stable_and_unguessable(self, passwords):
        assert passwords.dummy_hash is passwords.dummy_hash
        assert not passwords.verify_password("", passwords.dummy_hash)

    def test_dummy_hash_is_built_with_the_manager(self, monkeypatch):
        passwords = PasswordManager(rounds=4)
        assert passwords.dummy_hash.startswith("$2b$04$")

        # Later reads never hash again
        monkeypatch.setattr(passwords, "hash_password", lambda _: pytest.fail("hashed on read"))
        assert passwords.dummy_hash.startswith("$2b$04$")

    def test_bcrypt_length_limit(self, passwords):
        assert passwords.is_hashable("p" * 72)
        assert not passwords.is_hashable("p" * 73)
        # multi-byte characters count by their UTF-8 size
        assert not passwords.is_hashable("é" * 37)


class TestJWTHandler:

    @pytest.fixture
    def settings(self):
        return Settings(jwt_secret_key="unit-test-secret")

    @pytest.fixture
    def tokens(self, settings):
        return JWTHandler(settings)

    def test_round_trip(self, tokens):
        payload = tokens.verify_token(tokens.create_access_token(42, "sid-1"))

        assert payload["user_id"] == 42
        assert payload["sid"] == "sid-1"
        assert payload["type"] == "access"
        assert payload["iss"] == "ticketauth"

    @pytest.mark.parametrize("sid", [None, "", 7])
    def test_missing_session_id(self, settings, tokens, sid):
        claims = {"type": "access", "user_id": 42, "iss": "ticketauth", "iat": 0, "exp": 4102444800}
        if sid is not None:
            claims["sid"] = sid
        token = jwt.encode(claims, settings.jwt_secret_key, algorithm="HS256")

        assert tokens.verify_token(token) is None

    def test_expired_token(self, settings):
        settings.jwt_access_token_expire_minutes = -1
        tokens = JWTHandler(settings)

        assert tokens.verify_token(tokens.create_access_token(42, "sid-1")) is None

    def test_wrong_secret(self, tokens):
        forged = JWTHandler(Settings(jwt_secret_key="someone-else")).create_access_token(42, "sid-1")

        assert tokens.verify_token(forged) is None

    def test_wrong_token_type(self, tokens):
        token = tokens.create_access_token(42, "sid-1", additional_claims={"type": "refresh"})

        assert tokens.verify_token(token) is None

    def test_missing_user_id(self, settings, tokens):
        token = jwt.encode(
            {"type": "access", "sid": "sid-1", "iss": "ticketauth", "iat": 0, "exp": 4102444800},
            settings.jwt_secret_key,
            algorithm="HS256",
        )

        assert tokens.verify_token(token) is None

    def test_garbage(self, tokens):
        assert tokens.verify_token("not.a.token") is None


class TestOtpHelpers:

    def test_generate_otp(self):
        for _ in range(50):
            otp = generate_otp(6)
            assert len(otp) == 6
            assert otp.isdigit()

    def test_generate_otp_keeps_leading_zeros(self):
        codes = {generate_otp(1) for _ in range(200)}
        assert "0" in codes

    @pytest.mark.parametrize("otp,expected", [
        ("012345", True),
        ("12345", False),
        ("1234567", False),
        ("12a456", False),
        ("１２３４５６", False),
        (None, False),
        (123456, False),
    ])
    def test_validate_otp_format(self, otp, expected):
        assert validate_otp_format(otp) is expected

    def test_otp_matches(self):
        assert otp_matches("123456", "123456")
        assert not otp_matches("123456", "654321")
        assert not otp_matches("123456", None)
        assert not otp_matches(None, "123456")


class TestNormalizeEmail:

    def test_domain_is_lowercased(self):
        assert normalize_email("Alice@X.COM") == "Alice@x.com"

    @pytest.mark.parametrize("email", ["plainaddress", "a@", "a@@x.com"])
    def test_invalid(self, email):
        assert normalize_email(email) is None
