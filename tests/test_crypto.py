"""Tests for encryption helpers."""

from carcover_app.core.crypto import CryptoService, mask_national_id, mask_phone


def test_encrypt_decrypt_round_trip() -> None:
    key = CryptoService.generate_base64_key()
    crypto = CryptoService.from_base64_key(key)

    cipher = crypto.encrypt_text("AB1234567")
    plain = crypto.decrypt_text(cipher)

    assert plain == "AB1234567"
    assert b"AB1234567" not in cipher


def test_mask_helpers() -> None:
    assert mask_national_id("AB1234567") == "AB*****67"
    assert mask_national_id("1234") == "****"
    assert mask_phone("+82 10-1234-5678") == "+** **-****-5678"
