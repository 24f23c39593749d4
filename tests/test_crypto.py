"""Tests for credential encryption and password generation."""

import re

import pytest

from securevault.errors import ConfigurationError, DecryptionError, EncryptionError
from securevault.utils.crypto import KEY_LENGTH, CryptoBox, derive_key

TOKEN_RE = re.compile(r"^[0-9a-f]{32}:(?:[0-9a-f]{32})+$")


@pytest.mark.parametrize(
    "plaintext",
    [
        "hunter2",
        "user:with:colons",
        ":",
        "pässwörd ✓ \U0001f511",
        "exactly-16-bytes",
        "x" * 1000,
    ],
)
def test_roundtrip(crypto, plaintext):
    assert crypto.decrypt(crypto.encrypt(plaintext)) == plaintext


def test_token_format(crypto):
    token = crypto.encrypt("secret")
    assert TOKEN_RE.match(token)
    assert token.count(":") == 1


def test_same_plaintext_gives_different_tokens(crypto):
    a = crypto.encrypt("same")
    b = crypto.encrypt("same")
    assert a != b
    assert a.split(":")[0] != b.split(":")[0]
    assert crypto.decrypt(a) == crypto.decrypt(b) == "same"


@pytest.mark.parametrize("value", ["", None])
def test_encrypt_empty_raises(crypto, value):
    with pytest.raises(EncryptionError):
        crypto.encrypt(value)


def test_tampered_ciphertext_is_rejected(crypto):
    token = crypto.encrypt("s3cret-value")
    iv_hex, ct_hex = token.split(":")
    for i, ch in enumerate(ct_hex):
        flipped = "1" if ch == "0" else "0"
        tampered = f"{iv_hex}:{ct_hex[:i]}{flipped}{ct_hex[i + 1:]}"
        with pytest.raises(DecryptionError):
            crypto.decrypt(tampered)


def test_wrong_key_fails(crypto):
    token = crypto.encrypt("secret")
    with pytest.raises(DecryptionError):
        CryptoBox("a-completely-different-key").decrypt(token)


@pytest.mark.parametrize(
    "token",
    [
        "",
        "no-colon-at-all",
        "00112233445566778899aabbccddeeff",
        "00112233445566778899aabbccddeeff:00:11",
        "::",
        "0011223344556677:00112233445566778899aabbccddeeff",  # 8-byte IV
        "00112233445566778899aabbccddeeff00:00112233445566778899aabbccddeeff",  # 17-byte IV
        "zz112233445566778899aabbccddeeff:00112233445566778899aabbccddeeff",  # not hex
        "00112233445566778899aabbccddeeff:",  # empty ciphertext
        "00112233445566778899aabbccddeeff:0011223344556677",  # not a whole block
        "00112233445566778899aabbccddeeff:001",  # odd hex length
    ],
)
def test_malformed_tokens_rejected(crypto, token):
    with pytest.raises(DecryptionError):
        crypto.decrypt(token)


def test_key_is_padded_or_truncated_to_32_bytes():
    assert derive_key("short") == b"short" + b"\0" * (KEY_LENGTH - 5)
    assert derive_key("k" * 50) == b"k" * KEY_LENGTH
    assert len(derive_key("credential-encryption-key-32chars")) == KEY_LENGTH


def test_boxes_with_same_key_interoperate():
    token = CryptoBox("shared-key").encrypt("value")
    assert CryptoBox("shared-key").decrypt(token) == "value"


def test_empty_key_rejected():
    with pytest.raises(ConfigurationError):
        CryptoBox("")


def test_password_lowercase_only(crypto):
    password = crypto.generate_random_password(
        16, lowercase=True, uppercase=False, numbers=False, symbols=False
    )
    assert re.fullmatch(r"[a-z]{16}", password)


def test_password_all_classes_disabled(crypto):
    with pytest.raises(ConfigurationError):
        crypto.generate_random_password(
            16, lowercase=False, uppercase=False, numbers=False, symbols=False
        )


def test_password_invalid_length(crypto):
    with pytest.raises(ConfigurationError):
        crypto.generate_random_password(0)


def test_password_default_length_and_variety(crypto):
    passwords = {crypto.generate_random_password() for _ in range(20)}
    assert len(passwords) == 20
    assert all(len(p) == 16 for p in passwords)


def test_password_alphanumeric(crypto):
    password = crypto.generate_random_password(64, symbols=False)
    assert re.fullmatch(r"[A-Za-z0-9]{64}", password)
