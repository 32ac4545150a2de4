"""Key management for operator and ephemeral account keys.

Parses, generates and signs with ED25519 and ECDSA (secp256k1) keys using the
cryptography library.

SECURITY NOTES:
- Private key material is never logged and never appears in error messages
- KeyPair hides its private half from repr(); the only way out is
  reveal_private_key()
- Nothing here touches the network or the disk
"""

from dataclasses import dataclass, field
from typing import Union

import structlog
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from hedera_node.errors import MalformedKeyError
from hedera_node.models.keys import (
    ECDSA_PRIVATE_PREFIX,
    ED25519_PRIVATE_PREFIX,
    KeyAlgorithm,
    PublicKey,
    hex_to_bytes,
)

logger = structlog.get_logger()

_PrivateKeyObject = Union[ed25519.Ed25519PrivateKey, ec.EllipticCurvePrivateKey]


@dataclass(frozen=True)
class KeyPair:
    """Private/public key pair.

    Immutable - the operator pair is shared read-only across concurrent
    requests. Equality compares public keys only.
    """

    algorithm: KeyAlgorithm
    _private: _PrivateKeyObject = field(repr=False, compare=False)
    public_key: PublicKey = field(init=False)

    def __post_init__(self) -> None:
        if self.algorithm == KeyAlgorithm.ED25519:
            raw = self._private.public_key().public_bytes(
                serialization.Encoding.Raw,
                serialization.PublicFormat.Raw,
            )
        else:
            raw = self._private.public_key().public_bytes(
                serialization.Encoding.X962,
                serialization.PublicFormat.CompressedPoint,
            )
        object.__setattr__(self, "public_key", PublicKey(self.algorithm, raw))

    def reveal_private_key(self) -> str:
        """Return the private key as DER hex.

        This is the only way private material leaves a KeyPair. Callers are
        responsible for keeping the value out of logs.
        """
        if self.algorithm == KeyAlgorithm.ED25519:
            raw = self._private.private_bytes(
                serialization.Encoding.Raw,
                serialization.PrivateFormat.Raw,
                serialization.NoEncryption(),
            )
            return (ED25519_PRIVATE_PREFIX + raw).hex()
        raw = self._private.private_numbers().private_value.to_bytes(32, "big")
        return (ECDSA_PRIVATE_PREFIX + raw).hex()


class KeyManager:
    """Loads, generates and signs with key pairs.

    Stateless - can be shared across requests.

    Example usage:
        operator = KeyManager.load_operator_key(raw_private_key)
        signature = KeyManager.sign(operator, body_bytes)
        assert KeyManager.verify(operator.public_key, body_bytes, signature)
    """

    @staticmethod
    def load_operator_key(raw: str, algorithm: KeyAlgorithm | None = None) -> KeyPair:
        """Parse a private key string.

        Accepted encodings: Hedera DER hex (ED25519 or ECDSA prefix), PKCS#8
        DER hex, PEM, raw 32-byte hex, and the legacy 64-byte ED25519
        seed+public hex. A ``0x`` prefix is allowed on hex input. Raw 32-byte
        keys are ED25519 unless ``algorithm`` says otherwise.

        Args:
            raw: Private key string
            algorithm: Algorithm hint for raw keys

        Returns:
            KeyPair for the key

        Raises:
            MalformedKeyError: If the string is not a supported key encoding
        """
        if not isinstance(raw, str) or not raw.strip():
            raise MalformedKeyError("Private key is empty")

        text = raw.strip()
        if text.startswith("-----BEGIN"):
            return _from_cryptography_key(_load_pem(text))

        data = hex_to_bytes(text)

        if data.startswith(ED25519_PRIVATE_PREFIX) and len(data) == 48:
            return _ed25519_from_raw(data[len(ED25519_PRIVATE_PREFIX):])
        if data.startswith(ECDSA_PRIVATE_PREFIX) and len(data) == 50:
            return _ecdsa_from_raw(data[len(ECDSA_PRIVATE_PREFIX):])
        if len(data) == 32:
            if algorithm == KeyAlgorithm.ECDSA_SECP256K1:
                return _ecdsa_from_raw(data)
            return _ed25519_from_raw(data)
        if len(data) == 64 and algorithm in (None, KeyAlgorithm.ED25519):
            pair = _ed25519_from_raw(data[:32])
            if pair.public_key.raw != data[32:]:
                raise MalformedKeyError("ED25519 seed does not match its public key")
            return pair

        try:
            key = serialization.load_der_private_key(data, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise MalformedKeyError("Private key is not a supported key encoding") from e
        return _from_cryptography_key(key)

    @staticmethod
    def generate_key_pair(algorithm: KeyAlgorithm = KeyAlgorithm.ED25519) -> KeyPair:
        """Generate a fresh key pair from the OS CSPRNG."""
        if algorithm == KeyAlgorithm.ED25519:
            pair = KeyPair(algorithm, ed25519.Ed25519PrivateKey.generate())
        else:
            pair = KeyPair(algorithm, ec.generate_private_key(ec.SECP256K1()))
        logger.debug("key_pair_generated", algorithm=algorithm.value)
        return pair

    @staticmethod
    def sign(key_pair: KeyPair, message: bytes) -> bytes:
        """Sign ``message``.

        ED25519 signatures are deterministic. ECDSA signatures are randomized
        and returned as 64-byte ``r || s`` over SHA-256, so callers must not
        compare signatures for equality.
        """
        message = bytes(message)
        if key_pair.algorithm == KeyAlgorithm.ED25519:
            return key_pair._private.sign(message)
        der = key_pair._private.sign(message, ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        return r.to_bytes(32, "big") + s.to_bytes(32, "big")

    @staticmethod
    def verify(public_key: PublicKey, message: bytes, signature: bytes) -> bool:
        """Check a signature produced by sign()."""
        try:
            key = public_key.to_cryptography()
            if public_key.algorithm == KeyAlgorithm.ED25519:
                key.verify(signature, message)
            else:
                if len(signature) != 64:
                    return False
                der = encode_dss_signature(
                    int.from_bytes(signature[:32], "big"),
                    int.from_bytes(signature[32:], "big"),
                )
                key.verify(der, message, ec.ECDSA(hashes.SHA256()))
        except (InvalidSignature, MalformedKeyError):
            return False
        return True


def _load_pem(text: str) -> _PrivateKeyObject:
    try:
        return serialization.load_pem_private_key(text.encode("utf-8"), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise MalformedKeyError("PEM private key could not be parsed") from e


def _ed25519_from_raw(raw: bytes) -> KeyPair:
    return KeyPair(KeyAlgorithm.ED25519, ed25519.Ed25519PrivateKey.from_private_bytes(raw))


def _ecdsa_from_raw(raw: bytes) -> KeyPair:
    value = int.from_bytes(raw, "big")
    try:
        private = ec.derive_private_key(value, ec.SECP256K1())
    except ValueError as e:
        raise MalformedKeyError("ECDSA private scalar is out of range") from e
    return KeyPair(KeyAlgorithm.ECDSA_SECP256K1, private)


def _from_cryptography_key(key: object) -> KeyPair:
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return KeyPair(KeyAlgorithm.ED25519, key)
    if isinstance(key, ec.EllipticCurvePrivateKey) and isinstance(key.curve, ec.SECP256K1):
        return KeyPair(KeyAlgorithm.ECDSA_SECP256K1, key)
    raise MalformedKeyError("Private key algorithm is not supported")
