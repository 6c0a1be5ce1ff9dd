import base64
import hashlib
import hmac

from shinshop_api.services.notifications.signatures import (
    compute_webhook_signature,
    verify_webhook_signature,
)

BODY = b'{"eventName":"order.completed","content":{"token":"abc"}}'


def test_compute_signature_matches_hmac_sha256_base64():
    expected = base64.b64encode(hmac.new(b"secret", BODY, hashlib.sha256).digest()).decode()

    assert compute_webhook_signature(BODY, "secret") == expected


def test_valid_signature_is_accepted():
    signature = compute_webhook_signature(BODY, "secret")

    assert verify_webhook_signature(BODY, signature, "secret") is True
    assert verify_webhook_signature(BODY.decode(), signature, "secret") is True


def test_signature_over_different_bytes_is_rejected():
    signature = compute_webhook_signature(BODY, "secret")
    reserialized = b'{"eventName": "order.completed", "content": {"token": "abc"}}'

    assert verify_webhook_signature(reserialized, signature, "secret") is False
    assert verify_webhook_signature(BODY, signature, "other-secret") is False


def test_any_single_byte_change_is_rejected():
    signature = compute_webhook_signature(BODY, "secret")

    for index in range(len(BODY)):
        tampered = bytearray(BODY)
        tampered[index] ^= 0x01
        assert verify_webhook_signature(bytes(tampered), signature, "secret") is False


def test_missing_signature_fails_closed_when_secret_configured():
    assert verify_webhook_signature(BODY, None, "secret") is False
    assert verify_webhook_signature(BODY, "", "secret") is False


def test_malformed_signature_is_invalid_not_an_error():
    assert verify_webhook_signature(BODY, "!!!not-base64!!!", "secret") is False
    assert verify_webhook_signature(BODY, "abc", "secret") is False


def test_without_secret_every_request_verifies():
    assert verify_webhook_signature(BODY, None, None) is True
    assert verify_webhook_signature(BODY, "garbage", "") is True
