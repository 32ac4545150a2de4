"""Public key model.

Algorithm-tagged public key bytes with the DER-hex string form used by Hedera
tooling.
"""

from dataclasses import dataclass
from enum import Enum

from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from hedera_node.errors import MalformedKeyError

# DER prefixes used by Hedera tooling for raw key bytes
ED25519_PRIVATE_PREFIX = bytes.fromhex("302e020100300506032b657004220420")
ED25519_PUBLIC_PREFIX = bytes.fromhex("302a300506032b6570032100")
ECDSA_PRIVATE_PREFIX = bytes.fromhex("3030020100300706052b8104000a04220420")
ECDSA_PUBLIC_PREFIX = bytes.fromhex("302d300706052b8104000a032200")


class KeyAlgorithm(str, Enum):
    """Supported signature schemes."""

    ED25519 = "ed25519"
    ECDSA_SECP256K1 = "ecdsa_secp256k1"


@dataclass(frozen=True)
class PublicKey:
    """Public key bytes tagged with their algorithm.

    ED25519 keys are 32 raw bytes, ECDSA keys are 33-byte compressed points.
    """

    algorithm: KeyAlgorithm
    raw: bytes

    def __post_init__(self) -> None:
        expected = 32 if self.algorithm == KeyAlgorithm.ED25519 else 33
        if len(self.raw) != expected:
            raise MalformedKeyError(
                f"{self.algorithm.value} public key must be {expected} bytes"
            )

    @classmethod
    def from_string(cls, value: str) -> "PublicKey":
        """Parse a DER-hex public key.

        Raises:
            MalformedKeyError: If the value is not a supported DER encoding
        """
        data = hex_to_bytes(value)
        if data.startswith(ED25519_PUBLIC_PREFIX) and len(data) == 44:
            key = cls(KeyAlgorithm.ED25519, data[len(ED25519_PUBLIC_PREFIX):])
        elif data.startswith(ECDSA_PUBLIC_PREFIX) and len(data) == 47:
            key = cls(KeyAlgorithm.ECDSA_SECP256K1, data[len(ECDSA_PUBLIC_PREFIX):])
        else:
            raise MalformedKeyError("Public key is not a supported DER encoding")
        # Reject bytes that are not a point on the curve
        key.to_cryptography()
        return key

    def to_der(self) -> bytes:
        if self.algorithm == KeyAlgorithm.ED25519:
            return ED25519_PUBLIC_PREFIX + self.raw
        return ECDSA_PUBLIC_PREFIX + self.raw

    def to_cryptography(self) -> ed25519.Ed25519PublicKey | ec.EllipticCurvePublicKey:
        try:
            if self.algorithm == KeyAlgorithm.ED25519:
                return ed25519.Ed25519PublicKey.from_public_bytes(self.raw)
            return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), self.raw)
        except ValueError as e:
            raise MalformedKeyError("Public key bytes are not a valid point") from e

    def __str__(self) -> str:
        return self.to_der().hex()


def hex_to_bytes(value: str) -> bytes:
    """Decode hex with an optional ``0x`` prefix.

    Raises:
        MalformedKeyError: If the value is not hex
    """
    if not isinstance(value, str):
        raise MalformedKeyError("Key must be a hex string")
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise MalformedKeyError("Key is not valid hex") from e
