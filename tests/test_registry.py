import pytest
from cryptography.hazmat.primitives import hashes

from hwsecure.crypto_engine import AlgorithmPolicy, UnsupportedAlgorithmError
from hwsecure.crypto_engine.registry import (
    get_content_encryption_algorithm,
    get_key_management_algorithm,
    get_signing_algorithm,
)


class TestRegistry:

    def test_signing_algorithms(self):
        for name in ("RS256", "RS384", "RS512"):
            alg = get_signing_algorithm(name)
            assert alg.key_type == "RSA"
            assert alg.min_key_size == 2048

    def test_key_management_hashes(self):
        assert get_key_management_algorithm("RSA-OAEP-256").hash_cls is hashes.SHA256
        assert get_key_management_algorithm("RSA-OAEP").hash_cls is hashes.SHA1

    def test_content_encryption_sizes(self):
        gcm = get_content_encryption_algorithm("A256GCM")
        cbc = get_content_encryption_algorithm("A256CBC-HS512")
        assert (gcm.key_size, gcm.iv_size) == (32, 12)
        assert (cbc.key_size, cbc.iv_size) == (64, 16)

    @pytest.mark.parametrize("name", ["HS256", "none", "", None, "rs256"])
    def test_unknown_signing_algorithm(self, name):
        with pytest.raises(UnsupportedAlgorithmError):
            get_signing_algorithm(name)

    def test_unknown_content_encryption(self):
        with pytest.raises(UnsupportedAlgorithmError):
            get_content_encryption_algorithm("A128GCM")


class TestAlgorithmPolicy:

    def test_defaults(self):
        policy = AlgorithmPolicy()
        assert policy.signing == "RS256"
        assert policy.key_management == "RSA-OAEP-256"
        assert policy.content_encryption == "A256GCM"
        assert policy.allowed_signing == frozenset({"RS256"})

    def test_configured_names_always_allowed(self):
        policy = AlgorithmPolicy(signing="RS512", allowed_signing=frozenset({"RS256"}))
        assert policy.allowed_signing == frozenset({"RS256", "RS512"})
        assert policy.accept_signing("RS512").name == "RS512"

    def test_rejects_algorithm_outside_allow_list(self):
        policy = AlgorithmPolicy()
        with pytest.raises(UnsupportedAlgorithmError):
            policy.accept_content_encryption("A256CBC-HS512")
        with pytest.raises(UnsupportedAlgorithmError):
            policy.accept_key_management("RSA-OAEP")
        with pytest.raises(UnsupportedAlgorithmError):
            policy.accept_signing(None)

    def test_unregistered_name_rejected_at_construction(self):
        with pytest.raises(UnsupportedAlgorithmError):
            AlgorithmPolicy(content_encryption="A128CBC-HS256")
        with pytest.raises(UnsupportedAlgorithmError):
            AlgorithmPolicy(allowed_signing=frozenset({"ES256"}))

    def test_min_key_size(self):
        assert AlgorithmPolicy().min_key_size() == 2048
