import json

import pytest

from hwsecure.crypto_engine import (
    CONTENT_TYPE,
    AlgorithmPolicy,
    AuthenticationFailedError,
    KeyUnwrapError,
    MalformedTokenError,
    PayloadProtector,
    ProtectionError,
    SignatureExpiredError,
    SignatureInvalidError,
    UnsupportedAlgorithmError,
)
from hwsecure.crypto_engine import jwe, jws
from hwsecure.crypto_engine.compact import b64url_decode, b64url_encode
from hwsecure.crypto_engine.registry import (
    get_content_encryption_algorithm,
    get_key_management_algorithm,
)
from hwsecure.exceptions import Phase

from conftest import make_key_set


def _replace_segment(token, index, transform):
    segments = token.split(".")
    segments[index] = b64url_encode(transform(b64url_decode(segments[index])))
    return ".".join(segments)


def _flip_first_byte(data):
    return bytes([data[0] ^ 0x01]) + data[1:]


def _inner_token(token, server_keys):
    encrypted = jwe.parse_compact(token)
    policy = AlgorithmPolicy()
    return jws.parse_compact(jwe.decrypt_parts(
        encrypted,
        server_keys.own_encryption.key,
        policy.accept_key_management(encrypted.header["alg"]),
        policy.accept_content_encryption(encrypted.header["enc"]),
    ))


class TestProtectRoundTrip:

    def test_roundtrip(self, client_protector, server_protector, sample_record):
        token = client_protector.protect(sample_record)
        assert server_protector.unprotect(token) == sample_record

    def test_both_directions(self, client_protector, server_protector, sample_record):
        token = server_protector.protect({"token": "usr-1", "status": "ACTIVATED"})
        assert client_protector.unprotect(token) == {"token": "usr-1", "status": "ACTIVATED"}

    def test_accepts_bytes(self, client_protector, server_protector):
        token = client_protector.protect([1, "two", {"three": 3}])
        assert server_protector.unprotect(token.encode("ascii")) == [1, "two", {"three": 3}]

    def test_token_layout(self, client_protector):
        token = client_protector.protect({"a": 1})
        encrypted = jwe.parse_compact(token)

        assert token.count(".") == 4
        assert encrypted.header == {"alg": "RSA-OAEP-256", "enc": "A256GCM", "cty": "JWT"}
        assert len(encrypted.iv) == 12
        assert len(encrypted.tag) == 16

    def test_inner_signature_header(self, client_protector, server_keys):
        client_protector._clock = lambda: 1_700_000_000
        signed = _inner_token(client_protector.protect({"a": 1}), server_keys)

        assert signed.header["alg"] == "RS256"
        assert signed.header["typ"] == "JOSE"
        assert signed.header["exp"] == 1_700_000_300
        assert json.loads(signed.payload) == {"a": 1}

    def test_no_expiry_when_ttl_disabled(self, client_keys, server_keys):
        protector = PayloadProtector(client_keys, signature_ttl=None)
        signed = _inner_token(protector.protect({"a": 1}), server_keys)
        assert "exp" not in signed.header

    def test_key_ids_in_headers(
        self, client_signing_key, client_encryption_key, server_signing_key,
        server_encryption_key,
    ):
        client_keys = make_key_set(
            client_signing_key, client_encryption_key, server_encryption_key, server_signing_key,
            kids={"own_signing": "client-sig", "peer_encryption": "server-enc"},
        )
        server_keys = make_key_set(
            server_signing_key, server_encryption_key, client_encryption_key, client_signing_key,
            kids={"peer_verification": "client-sig"},
        )
        token = PayloadProtector(client_keys).protect({"a": 1})

        assert jwe.parse_compact(token).header["kid"] == "server-enc"
        assert _inner_token(token, server_keys).header["kid"] == "client-sig"
        assert PayloadProtector(server_keys).unprotect(token) == {"a": 1}

    def test_fresh_key_per_message(self, client_protector):
        first = jwe.parse_compact(client_protector.protect({"a": 1}))
        second = jwe.parse_compact(client_protector.protect({"a": 1}))
        assert first.encrypted_key != second.encrypted_key
        assert first.iv != second.iv

    @pytest.mark.parametrize("signing,key_management,content_encryption", [
        ("RS384", "RSA-OAEP", "A256GCM"),
        ("RS512", "RSA-OAEP-256", "A256CBC-HS512"),
        ("RS256", "RSA-OAEP", "A256CBC-HS512"),
    ])
    def test_algorithm_suites(self, client_keys, server_keys, signing, key_management, content_encryption):
        policy = AlgorithmPolicy(
            signing=signing, key_management=key_management, content_encryption=content_encryption,
        )
        token = PayloadProtector(client_keys, policy).protect({"suite": signing})

        assert PayloadProtector(server_keys, policy).unprotect(token) == {"suite": signing}

    def test_content_type(self):
        assert CONTENT_TYPE == "application/jose+json"


class TestUnprotectFailures:

    def test_tampered_ciphertext(self, client_protector, server_protector):
        token = _replace_segment(client_protector.protect({"amount": 100}), 3, _flip_first_byte)
        with pytest.raises(AuthenticationFailedError):
            server_protector.unprotect(token)

    def test_tampered_tag(self, client_protector, server_protector):
        token = _replace_segment(client_protector.protect({"amount": 100}), 4, _flip_first_byte)
        with pytest.raises(AuthenticationFailedError):
            server_protector.unprotect(token)

    def test_tampered_cbc_ciphertext(self, client_keys, server_keys):
        policy = AlgorithmPolicy(content_encryption="A256CBC-HS512")
        token = PayloadProtector(client_keys, policy).protect({"amount": 100})
        token = _replace_segment(token, 3, _flip_first_byte)
        with pytest.raises(AuthenticationFailedError):
            PayloadProtector(server_keys, policy).unprotect(token)

    def test_wrong_signer(self, client_keys, server_protector, stranger_key):
        keys = make_key_set(
            stranger_key,
            client_keys.own_encryption.key,
            server_protector.keys.own_encryption.key,
            server_protector.keys.own_signing.key,
        )
        token = PayloadProtector(keys).protect({"amount": 100})

        with pytest.raises(SignatureInvalidError) as excinfo:
            server_protector.unprotect(token)
        assert not isinstance(excinfo.value, SignatureExpiredError)

    def test_unknown_signing_kid(
        self, client_signing_key, client_encryption_key, server_signing_key,
        server_encryption_key,
    ):
        client_keys = make_key_set(
            client_signing_key, client_encryption_key, server_encryption_key, server_signing_key,
            kids={"own_signing": "old-key"},
        )
        server_keys = make_key_set(
            server_signing_key, server_encryption_key, client_encryption_key, client_signing_key,
            kids={"peer_verification": "new-key"},
        )
        token = PayloadProtector(client_keys).protect({"a": 1})

        with pytest.raises(SignatureInvalidError, match="old-key"):
            PayloadProtector(server_keys).unprotect(token)

    def test_wrong_decryption_key(self, client_protector, server_keys, stranger_key):
        keys = make_key_set(
            server_keys.own_signing.key,
            stranger_key,
            client_protector.keys.own_encryption.key,
            client_protector.keys.own_signing.key,
        )
        token = client_protector.protect({"a": 1})

        with pytest.raises(KeyUnwrapError):
            PayloadProtector(keys).unprotect(token)

    def test_disallowed_content_encryption(self, client_keys, server_protector):
        policy = AlgorithmPolicy(content_encryption="A256CBC-HS512")
        token = PayloadProtector(client_keys, policy).protect({"a": 1})

        with pytest.raises(UnsupportedAlgorithmError):
            server_protector.unprotect(token)

    def test_disallowed_signing(self, client_keys, server_protector):
        token = PayloadProtector(client_keys, AlgorithmPolicy(signing="RS512")).protect({"a": 1})
        with pytest.raises(UnsupportedAlgorithmError):
            server_protector.unprotect(token)

    def test_allow_list_accepts_extra_algorithm(self, client_keys, server_keys):
        token = PayloadProtector(client_keys, AlgorithmPolicy(key_management="RSA-OAEP")).protect({"a": 1})
        policy = AlgorithmPolicy(allowed_key_management=frozenset({"RSA-OAEP"}))

        assert PayloadProtector(server_keys, policy).unprotect(token) == {"a": 1}

    def test_header_alg_none(self, client_protector, server_protector):
        token = client_protector.protect({"a": 1})
        segments = token.split(".")
        segments[0] = b64url_encode(b'{"alg":"none","enc":"A256GCM"}')

        with pytest.raises(UnsupportedAlgorithmError):
            server_protector.unprotect(".".join(segments))

    def test_swapped_header_fails_authentication(self, client_protector, server_protector):
        token = client_protector.protect({"a": 1})
        segments = token.split(".")
        segments[0] = b64url_encode(b'{"alg":"RSA-OAEP-256","enc":"A256GCM"}')

        with pytest.raises(AuthenticationFailedError):
            server_protector.unprotect(".".join(segments))

    @pytest.mark.parametrize("header", [
        b'{"alg":["RSA-OAEP-256"],"enc":"A256GCM"}',
        b'{"alg":"RSA-OAEP-256","enc":{"name":"A256GCM"}}',
    ])
    def test_non_string_jwe_algorithm(self, client_protector, server_protector, header):
        segments = client_protector.protect({"a": 1}).split(".")
        segments[0] = b64url_encode(header)

        with pytest.raises(UnsupportedAlgorithmError):
            server_protector.unprotect(".".join(segments))

    def test_non_string_jws_algorithm(self, server_protector):
        inner = ".".join([
            b64url_encode(b'{"alg":{}}'),
            b64url_encode(b'{"a":1}'),
            b64url_encode(b"not-a-signature"),
        ])
        token = jwe.encrypt_compact(
            inner.encode("ascii"),
            server_protector.keys.own_encryption.key.public_key(),
            get_key_management_algorithm("RSA-OAEP-256"),
            get_content_encryption_algorithm("A256GCM"),
        )

        with pytest.raises(UnsupportedAlgorithmError):
            server_protector.unprotect(token)

    def test_tag_trailing_bits_changed(self, client_protector, server_protector):
        alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
        segments = client_protector.protect({"a": 1}).split(".")
        last = segments[4][-1]
        segments[4] = segments[4][:-1] + alphabet[alphabet.index(last) ^ 1]

        with pytest.raises(MalformedTokenError):
            server_protector.unprotect(".".join(segments))

    @pytest.mark.parametrize("token", [
        "",
        "not a token",
        "a.b.c",
        "a.b.c.d.e.f",
        "!!!.a.b.c.d",
        "e30.a.b.c.d",
        b"\xff\xfe.a.b.c.d",
        12345,
    ])
    def test_malformed(self, server_protector, token):
        with pytest.raises(MalformedTokenError):
            server_protector.unprotect(token)

    def test_expired_signature(self, client_keys, server_keys):
        client = PayloadProtector(client_keys, clock=lambda: 1000.0)
        token = client.protect({"a": 1})

        with pytest.raises(SignatureExpiredError):
            PayloadProtector(server_keys, clock=lambda: 1331.0).unprotect(token)

    def test_expiry_within_leeway(self, client_keys, server_keys):
        client = PayloadProtector(client_keys, clock=lambda: 1000.0)
        token = client.protect({"a": 1})

        assert PayloadProtector(server_keys, clock=lambda: 1329.0).unprotect(token) == {"a": 1}

    def test_errors_carry_phase(self, server_protector):
        with pytest.raises(ProtectionError) as excinfo:
            server_protector.unprotect("a.b.c")
        assert excinfo.value.phase is Phase.PROTECTION


class TestProtectFailures:

    def test_not_json_serializable(self, client_protector):
        with pytest.raises(MalformedTokenError):
            client_protector.protect({"when": object()})

    def test_from_settings(self, encryption_settings, server_protector):
        protector = PayloadProtector.from_settings(encryption_settings)
        assert server_protector.unprotect(protector.protect({"a": 1})) == {"a": 1}
