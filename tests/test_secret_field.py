"""Tests for the seal/reveal contract on secret columns."""

import pytest

from securevault.errors import DecryptionError
from securevault.utils.crypto import CryptoBox
from securevault.utils.secret_field import SecretField


@pytest.mark.parametrize("value", [None, ""])
def test_empty_values_use_sentinel(secret_field, value):
    assert secret_field.seal(value) is None
    assert secret_field.reveal(value) is None


def test_seal_stores_ciphertext(secret_field):
    stored = secret_field.seal("admin@example.com")
    assert stored != "admin@example.com"
    assert "admin" not in stored
    assert secret_field.reveal(stored) == "admin@example.com"


def test_reveal_is_exact(secret_field):
    value = "  leading and trailing spaces\twith tab\n"
    assert secret_field.reveal(secret_field.seal(value)) == value


def test_reveal_corrupted_value_raises(secret_field):
    with pytest.raises(DecryptionError):
        secret_field.reveal("not-a-token")


def test_reveal_foreign_key_raises(secret_field):
    foreign = SecretField(CryptoBox("some-other-deployment-key"))
    with pytest.raises(DecryptionError):
        secret_field.reveal(foreign.seal("value"))
