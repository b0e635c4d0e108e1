"""
Unit tests for password hashing, JWTs and one-time secrets.
"""

from datetime import timedelta

from campus.core.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_otp_code,
    generate_secure_token,
    hash_password,
    hash_token,
    is_token_expired,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)

    def test_wrong_password_fails(self):
        assert not verify_password("other", hash_password("s3cret-pass"))

    def test_malformed_hash_never_matches(self):
        """A corrupt stored hash is treated as a mismatch, not an error."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_access_token_round_trip(self):
        token = create_access_token("user-1", {"role": "teacher"})
        claims = decode_token(token)
        assert claims["sub"] == "user-1"
        assert claims["role"] == "teacher"
        assert claims["type"] == "access"
        assert claims["jti"]

    def test_each_token_has_unique_jti(self):
        first = decode_token(create_access_token("user-1"))
        second = decode_token(create_access_token("user-1"))
        assert first["jti"] != second["jti"]

    def test_refresh_token_type(self):
        claims = decode_token(create_refresh_token("user-1"))
        assert claims["type"] == REFRESH_TOKEN_TYPE

    def test_expired_token_decodes_to_none(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-10))
        assert decode_token(token) is None
        assert is_token_expired(token) is True

    def test_garbage_token(self):
        assert decode_token("not.a.jwt") is None
        assert is_token_expired("not.a.jwt") is False


class TestOneTimeSecrets:
    def test_hash_token_is_sha256_hex(self):
        digest = hash_token("abc")
        assert len(digest) == 64
        assert digest == hash_token("abc")

    def test_otp_code_is_six_digits(self):
        code = generate_otp_code()
        assert len(code) == 6
        assert code.isdigit()

    def test_secure_tokens_differ(self):
        assert generate_secure_token() != generate_secure_token()
