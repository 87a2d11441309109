"""
nkjwt Key Derivation - Ed25519 key pairs derived from tier-tagged seeds.

A KeyPair is a pure function of its seed: the same 32 bytes of entropy always
give the same public identifier and the same signatures, which is what lets a
stored seed be re-read or imported without drift.
"""

import logging
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from jwcrypto import jwk

from nkjwt.encoding import b64encode_nopad
from nkjwt.errors import InvalidSeed, SigningError
from nkjwt.seeds import KEY_SIZE, Tier, decode_seed, encode_public_key, encode_seed


logger = logging.getLogger(__name__)


class KeyPair:
    """
    Ed25519 signing key bound to a hierarchy tier.

    Example:
        >>> kp = create_pair(Tier.TOP)
        >>> kp.public_key
        'OA...'
        >>> sig = kp.sign(b"header.payload")
    """

    def __init__(self, tier: Tier, entropy: bytes):
        """
        Args:
            tier: Tier the key belongs to.
            entropy: 32 bytes of seed entropy.

        Raises:
            InvalidSeed: If entropy is not 32 bytes.
        """
        if len(entropy) != KEY_SIZE:
            raise InvalidSeed(f"seed entropy must be {KEY_SIZE} bytes, got {len(entropy)}")

        self.tier = Tier(tier)
        self._entropy = bytes(entropy)
        self._private_key = Ed25519PrivateKey.from_private_bytes(self._entropy)
        self._public_bytes = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.public_key = encode_public_key(self.tier, self._public_bytes)

    @classmethod
    def from_seed(cls, seed: str) -> "KeyPair":
        """Derive a key pair from a seed string."""
        tier, entropy = decode_seed(seed)
        return cls(tier, entropy)

    @classmethod
    def from_entropy(cls, tier: Tier, entropy: bytes) -> "KeyPair":
        return cls(tier, entropy)

    @property
    def seed(self) -> str:
        return encode_seed(self.tier, self._entropy)

    def sign(self, data: bytes) -> bytes:
        """
        Sign data with the private key (deterministic Ed25519).

        Raises:
            SigningError: If the key material cannot produce a signature.
        """
        try:
            return self._private_key.sign(bytes(data))
        except (TypeError, ValueError) as e:
            raise SigningError(f"failed to sign with {self.tier} key: {e}") from e

    def verify(self, data: bytes, signature: bytes) -> bool:
        """Check a signature over data against this pair's public key."""
        public = Ed25519PublicKey.from_public_bytes(self._public_bytes)
        try:
            public.verify(bytes(signature), bytes(data))
        except InvalidSignature:
            return False
        return True

    def raw_public_key(self) -> bytes:
        return self._public_bytes

    def raw_private_key(self) -> bytes:
        """64-byte private key: seed entropy followed by the public key."""
        return self._entropy + self._public_bytes

    def export_public_jwk(self) -> str:
        """Public key as an OKP/Ed25519 JWK JSON string."""
        return self._jwk().export_public()

    def export_private_jwk(self) -> str:
        """Private key as an OKP/Ed25519 JWK JSON string. Keep this secret."""
        return self._jwk().export_private()

    def _jwk(self) -> jwk.JWK:
        key = jwk.JWK.from_pyca(self._private_key)
        key.update({"kid": self.public_key})
        return key

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyPair):
            return NotImplemented
        return self.tier == other.tier and self._entropy == other._entropy

    def __hash__(self) -> int:
        return hash((self.tier, self.public_key))

    def __repr__(self) -> str:
        return f"KeyPair(tier={self.tier!s}, public_key={self.public_key!r})"


@dataclass(frozen=True)
class NKeyIdentity:
    """
    Seed material plus everything derived from it.

    Attributes:
        seed: The textual seed (secret).
        tier: Tier of the key.
        public_key: Tier-tagged public identifier.
        public: Raw 32-byte public key, base64 without padding.
        private: Raw 64-byte private key, base64 without padding (secret).
    """

    seed: str
    tier: Tier
    public_key: str
    public: str
    private: str

    @classmethod
    def from_keypair(cls, kp: KeyPair) -> "NKeyIdentity":
        return cls(
            seed=kp.seed,
            tier=kp.tier,
            public_key=kp.public_key,
            public=b64encode_nopad(kp.raw_public_key()),
            private=b64encode_nopad(kp.raw_private_key()),
        )

    def to_dict(self) -> dict:
        return {
            "type": str(self.tier),
            "seed": self.seed,
            "public_key": self.public_key,
            "public": self.public,
            "private": self.private,
        }


def create_pair(tier: Tier) -> KeyPair:
    """
    Generate a fresh key pair for a tier from OS entropy.

    Raises:
        ValueError: If tier is UNKNOWN.
    """
    if tier not in (Tier.TOP, Tier.ORG, Tier.USER):
        raise ValueError(f"cannot generate keys for tier {tier}")
    kp = KeyPair(tier, os.urandom(KEY_SIZE))
    logger.debug(f"Generated {kp.tier} key {kp.public_key}")
    return kp


def generate_identity(tier: Tier) -> NKeyIdentity:
    """Generate a new seed for tier and describe it."""
    return NKeyIdentity.from_keypair(create_pair(tier))


def describe_seed(seed: str) -> NKeyIdentity:
    """Re-derive the identity of an existing seed (deterministic)."""
    return NKeyIdentity.from_keypair(KeyPair.from_seed(seed))
