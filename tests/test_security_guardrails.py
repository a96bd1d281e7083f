import logging
from datetime import timedelta

from learnpath.core.jwt_auth import create_token, decode_token, token_subject
from learnpath.core.logging import LearnpathLogFilter, redact_secrets
from learnpath.core.password import hash_password, verify_password


def test_redact_secrets_masks_sensitive_values():
    raw = (
        "POST https://example.test/models/x:generateContent?key=AIzaSySecret&alt=json "
        "authorization=Bearer abc123 "
        "api_key=my-api-key "
        "token=my-token password=my-password"
    )
    masked = redact_secrets(raw)
    assert "AIzaSySecret" not in masked
    assert "abc123" not in masked
    assert "my-api-key" not in masked
    assert "my-token" not in masked
    assert "my-password" not in masked
    assert "alt=json" in masked
    assert masked.count("[REDACTED]") >= 5


def test_log_filter_masks_message_and_tags_domain():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "calling %s", ("url?key=SECRET",), None)
    assert LearnpathLogFilter().filter(record) is True
    assert record.getMessage() == "calling url?key=[REDACTED]"
    assert record.domain == "app"


def test_passwords_are_hashed():
    hashed = hash_password("secret-pass")
    assert hashed != "secret-pass"
    assert verify_password("secret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_token_round_trip_and_tampering():
    token = create_token("0b8e4f3e-58c5-4a4d-9f3c-1f1b0b8c2d11", "a@b.test")
    claims = decode_token(token)
    assert claims["sub"] == "0b8e4f3e-58c5-4a4d-9f3c-1f1b0b8c2d11"
    assert claims["email"] == "a@b.test"
    assert decode_token(token + "x") is None


def test_expired_token_is_rejected():
    token = create_token("0b8e4f3e-58c5-4a4d-9f3c-1f1b0b8c2d11", "a@b.test", lifetime=timedelta(seconds=-5))
    assert decode_token(token) is None
    assert token_subject(token) is None


def test_token_subject_is_the_profile_id():
    token = create_token("0b8e4f3e-58c5-4a4d-9f3c-1f1b0b8c2d11", "a@b.test")
    assert str(token_subject(token)) == "0b8e4f3e-58c5-4a4d-9f3c-1f1b0b8c2d11"
    assert token_subject(create_token("not-a-uuid", "a@b.test")) is None


def test_long_passwords_are_compared_in_full():
    prefix = "a" * 72
    hashed = hash_password(prefix + "RealSuffix")
    assert verify_password(prefix + "RealSuffix", hashed)
    assert not verify_password(prefix + "WrongSuffix", hashed)
    assert not verify_password(prefix, hashed)
