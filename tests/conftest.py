import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from hwsecure.config import ClientSettings, EncryptionSettings, KeySource
from hwsecure.crypto_engine import PayloadProtector
from hwsecure.key_store import KeyMaterial, KeyRole, KeySet


def _rsa_key(size=2048):
    return rsa.generate_private_key(public_exponent=65537, key_size=size)


def private_pem(key):
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def public_pem(key):
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def material(role, key, key_id=None):
    return KeyMaterial(role=role, key=key, algorithm="RSA", key_size=key.key_size, key_id=key_id)


def make_key_set(own_signing, own_encryption, peer_encryption, peer_verification, kids=None):
    kids = kids or {}
    return KeySet(
        own_signing=material(KeyRole.OWN_SIGNING, own_signing, kids.get("own_signing")),
        own_encryption=material(KeyRole.OWN_ENCRYPTION, own_encryption, kids.get("own_encryption")),
        peer_encryption=material(
            KeyRole.PEER_ENCRYPTION, peer_encryption.public_key(), kids.get("peer_encryption")
        ),
        peer_verification=material(
            KeyRole.PEER_VERIFICATION, peer_verification.public_key(),
            kids.get("peer_verification"),
        ),
    )


@pytest.fixture(scope="session")
def client_signing_key():
    return _rsa_key()


@pytest.fixture(scope="session")
def client_encryption_key():
    return _rsa_key()


@pytest.fixture(scope="session")
def server_signing_key():
    return _rsa_key()


@pytest.fixture(scope="session")
def server_encryption_key():
    return _rsa_key()


@pytest.fixture(scope="session")
def stranger_key():
    return _rsa_key()


@pytest.fixture
def client_keys(client_signing_key, client_encryption_key, server_signing_key, server_encryption_key):
    return make_key_set(
        client_signing_key, client_encryption_key, server_encryption_key, server_signing_key
    )


@pytest.fixture
def server_keys(client_signing_key, client_encryption_key, server_signing_key, server_encryption_key):
    return make_key_set(
        server_signing_key, server_encryption_key, client_encryption_key, client_signing_key
    )


@pytest.fixture
def client_protector(client_keys):
    return PayloadProtector(client_keys)


@pytest.fixture
def server_protector(server_keys):
    return PayloadProtector(server_keys)


@pytest.fixture
def encryption_settings(client_signing_key, client_encryption_key, server_signing_key, server_encryption_key):
    return EncryptionSettings(
        own_signing_key=KeySource(text=private_pem(client_signing_key)),
        own_encryption_key=KeySource(text=private_pem(client_encryption_key)),
        peer_encryption_key=KeySource(text=public_pem(server_encryption_key)),
        peer_verification_key=KeySource(text=public_pem(server_signing_key)),
    )


@pytest.fixture
def plain_settings():
    return ClientSettings(
        username="test-user",
        password="test-password",
        server="https://api.test.local",
        program_token="prg-default",
    )


@pytest.fixture
def sample_record():
    return {
        "clientUserId": "CSK7b8Ffch",
        "profileType": "INDIVIDUAL",
        "firstName": "Jöhn",
        "lastName": "Smith",
        "amounts": [1, 2.5, None],
    }


@pytest.fixture
def large_plaintext():
    return os.urandom(10000)
