"""Encryption and secret store tests."""

import base64

import pytest

from housespend.models.app_config import AppConfig
from housespend.services.encryption import DecryptionError, EncryptionService
from housespend.services.secret_store import ANTHROPIC_API_KEY, SecretStore


@pytest.fixture
def encryption():
    return EncryptionService("test-encryption-key")


def test_encrypt_decrypt(encryption):
    cipher_text = encryption.encrypt("sk-ant-secret")
    assert cipher_text != "sk-ant-secret"
    assert encryption.decrypt(cipher_text) == "sk-ant-secret"


def test_random_iv_per_value(encryption):
    first = encryption.encrypt("same value")
    second = encryption.encrypt("same value")
    assert first != second
    # IV (16 bytes) + one AES block
    assert len(base64.b64decode(first)) == 32


def test_empty_values(encryption):
    assert encryption.encrypt("") == ""
    assert encryption.decrypt("") == ""


def test_wrong_key_fails(encryption):
    cipher_text = encryption.encrypt("sk-ant-secret")
    with pytest.raises(DecryptionError):
        EncryptionService("another-key").decrypt(cipher_text)


@pytest.mark.parametrize("value", ["not base64 at all!", base64.b64encode(b"short").decode()])
def test_garbage_fails(encryption, value):
    with pytest.raises(DecryptionError):
        encryption.decrypt(value)


def test_empty_secret_rejected():
    with pytest.raises(ValueError):
        EncryptionService("")


def test_secret_store_round_trip(db, encryption):
    store = SecretStore(db, encryption)
    assert store.get(ANTHROPIC_API_KEY) is None
    assert store.has(ANTHROPIC_API_KEY) is False

    store.set(ANTHROPIC_API_KEY, "sk-ant-1")
    store.set(ANTHROPIC_API_KEY, "sk-ant-2")

    rows = db.query(AppConfig).filter(AppConfig.key == ANTHROPIC_API_KEY).all()
    assert len(rows) == 1
    assert "sk-ant" not in rows[0].value
    assert store.has(ANTHROPIC_API_KEY) is True
    assert store.get(ANTHROPIC_API_KEY) == "sk-ant-2"
