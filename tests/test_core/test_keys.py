"""Tests for key management."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from hypothesis import given, settings, strategies as st

from hedera_node.core.keys import KeyManager, KeyPair
from hedera_node.errors import MalformedKeyError
from hedera_node.models.keys import KeyAlgorithm, PublicKey


@pytest.fixture(params=[KeyAlgorithm.ED25519, KeyAlgorithm.ECDSA_SECP256K1])
def key_pair(request) -> KeyPair:
    return KeyManager.generate_key_pair(request.param)


class TestLoadOperatorKey:
    """Tests for parsing private key strings."""

    def test_der_roundtrip(self, key_pair: KeyPair):
        """Test that a DER-encoded key loads back to the same key pair."""
        loaded = KeyManager.load_operator_key(key_pair.reveal_private_key())

        assert loaded.algorithm == key_pair.algorithm
        assert loaded.public_key == key_pair.public_key

    def test_0x_prefix_accepted(self, key_pair: KeyPair):
        """Test that hex keys may carry a 0x prefix."""
        loaded = KeyManager.load_operator_key("0x" + key_pair.reveal_private_key())

        assert loaded.public_key == key_pair.public_key

    def test_raw_32_bytes_defaults_to_ed25519(self):
        """Test that a bare 32-byte key is read as ED25519."""
        private = ed25519.Ed25519PrivateKey.generate()
        raw = private.private_bytes(
            serialization.Encoding.Raw,
            serialization.PrivateFormat.Raw,
            serialization.NoEncryption(),
        )

        loaded = KeyManager.load_operator_key(raw.hex())

        assert loaded.algorithm == KeyAlgorithm.ED25519

    def test_raw_32_bytes_with_ecdsa_hint(self):
        """Test that the algorithm hint selects ECDSA for a bare key."""
        private = ec.generate_private_key(ec.SECP256K1())
        raw = private.private_numbers().private_value.to_bytes(32, "big")

        loaded = KeyManager.load_operator_key(raw.hex(), KeyAlgorithm.ECDSA_SECP256K1)

        assert loaded.algorithm == KeyAlgorithm.ECDSA_SECP256K1

    def test_legacy_seed_plus_public(self):
        """Test that a 64-byte seed plus public key is accepted."""
        pair = KeyManager.generate_key_pair(KeyAlgorithm.ED25519)
        seed = pair.reveal_private_key()[-64:]

        loaded = KeyManager.load_operator_key(seed + pair.public_key.raw.hex())

        assert loaded.public_key == pair.public_key

    def test_legacy_seed_with_wrong_public_rejected(self):
        """Test that a seed whose public half does not match is rejected."""
        pair = KeyManager.generate_key_pair(KeyAlgorithm.ED25519)
        other = KeyManager.generate_key_pair(KeyAlgorithm.ED25519)
        seed = pair.reveal_private_key()[-64:]

        with pytest.raises(MalformedKeyError):
            KeyManager.load_operator_key(seed + other.public_key.raw.hex())

    def test_pem_accepted(self):
        """Test that PEM private keys are accepted."""
        private = ed25519.Ed25519PrivateKey.generate()
        pem = private.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode()

        loaded = KeyManager.load_operator_key(pem)

        assert loaded.algorithm == KeyAlgorithm.ED25519

    def test_unsupported_curve_rejected(self):
        """Test that keys on other curves are rejected."""
        private = ec.generate_private_key(ec.SECP256R1())
        der = private.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )

        with pytest.raises(MalformedKeyError):
            KeyManager.load_operator_key(der.hex())

    @pytest.mark.parametrize("value", ["", "   ", "zz", "abcd", "302e0201"])
    def test_malformed_keys_rejected(self, value: str):
        """Test that malformed key strings raise MalformedKeyError."""
        with pytest.raises(MalformedKeyError):
            KeyManager.load_operator_key(value)

    def test_error_does_not_echo_key(self):
        """Test that key errors never contain the key material."""
        secret = "deadbeef" * 5

        with pytest.raises(MalformedKeyError) as exc_info:
            KeyManager.load_operator_key(secret)

        assert secret not in str(exc_info.value)


class TestKeyPair:
    """Tests for KeyPair secrecy."""

    def test_repr_hides_private_key(self, key_pair: KeyPair):
        """Test that repr() of a key pair hides the private key."""
        assert key_pair.reveal_private_key() not in repr(key_pair)

    def test_equality_uses_public_key(self, key_pair: KeyPair):
        reloaded = KeyManager.load_operator_key(key_pair.reveal_private_key())

        assert reloaded == key_pair

    def test_generated_keys_differ(self):
        """Test that two generated keys are distinct."""
        a = KeyManager.generate_key_pair()
        b = KeyManager.generate_key_pair()

        assert a.public_key != b.public_key


class TestSignVerify:
    """Tests for signatures."""

    def test_sign_and_verify(self, key_pair: KeyPair):
        """Test that signatures verify under the matching public key."""
        message = b"transaction body"
        signature = KeyManager.sign(key_pair, message)

        assert KeyManager.verify(key_pair.public_key, message, signature)

    def test_ecdsa_signature_is_r_s(self):
        """Test that ECDSA signatures are 64-byte r"""
        pair = KeyManager.generate_key_pair(KeyAlgorithm.ECDSA_SECP256K1)

        assert len(KeyManager.sign(pair, b"msg")) == 64

    def test_ed25519_is_deterministic(self):
        """Test that ED25519 signatures are deterministic."""
        pair = KeyManager.generate_key_pair(KeyAlgorithm.ED25519)

        assert KeyManager.sign(pair, b"msg") == KeyManager.sign(pair, b"msg")

    def test_tampered_message_fails(self, key_pair: KeyPair):
        """Test that verification fails for a changed message."""
        signature = KeyManager.sign(key_pair, b"original")

        assert not KeyManager.verify(key_pair.public_key, b"tampered", signature)

    def test_wrong_key_fails(self, key_pair: KeyPair):
        """Test that verification fails under another key."""
        other = KeyManager.generate_key_pair(key_pair.algorithm)
        signature = KeyManager.sign(key_pair, b"msg")

        assert not KeyManager.verify(other.public_key, b"msg", signature)

    def test_sign_does_not_mutate_input(self, key_pair: KeyPair):
        """Test that signing leaves the message untouched."""
        message = bytearray(b"payload")
        KeyManager.sign(key_pair, message)

        assert message == bytearray(b"payload")

    @settings(max_examples=25)
    @given(st.binary(max_size=512))
    def test_sign_arbitrary_messages(self, message: bytes):
        """Property test: any message signs and verifies."""
        pair = KeyManager.generate_key_pair()
        assert KeyManager.verify(pair.public_key, message, KeyManager.sign(pair, message))


class TestPublicKey:
    """Tests for public key strings."""

    def test_string_roundtrip(self, key_pair: KeyPair):
        """Test that a public key parses back from its string form."""
        text = str(key_pair.public_key)

        assert PublicKey.from_string(text) == key_pair.public_key

    def test_ed25519_der_prefix(self):
        pair = KeyManager.generate_key_pair(KeyAlgorithm.ED25519)

        assert str(pair.public_key).startswith("302a300506032b6570032100")

    @pytest.mark.parametrize("value", ["", "00", "302a300506032b6570032100"])
    def test_malformed_public_keys_rejected(self, value: str):
        """Test that malformed public key strings are rejected."""
        with pytest.raises(MalformedKeyError):
            PublicKey.from_string(value)
