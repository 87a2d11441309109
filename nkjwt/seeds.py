"""
nkjwt Seed Codec - Tier-tagged, checksummed text encodings for keys.

Seeds and public identifiers use the NKey layout:

    seed:       base32([0x90 | prefix >> 5, (prefix & 31) << 3] + entropy + crc16)
    public key: base32([prefix] + public_key + crc16)

where ``prefix`` is the tier byte and the checksum is CRC-16/XMODEM, stored
little-endian. Base32 uses the standard alphabet without padding, so seeds
read ``SO...``, ``SA...``, ``SU...`` and public keys ``O...``, ``A...``, ``U...``.
"""

from enum import IntEnum
from typing import Optional, Tuple

from nkjwt.encoding import b32decode_nopad, b32encode_nopad, crc16_bytes
from nkjwt.errors import InvalidPublicKey, InvalidSeed


SEED_PREFIX_BYTE = 18 << 3  # 'S'
KEY_SIZE = 32


class Tier(IntEnum):
    """Position of a key in the issuance hierarchy, valued by its prefix byte."""

    TOP = 14 << 3  # 'O' (operator)
    ORG = 0  # 'A' (account)
    USER = 20 << 3  # 'U'
    UNKNOWN = 25 << 3  # 'Z'

    @property
    def claim_type(self) -> str:
        """Claim type string carried on the wire."""
        return _CLAIM_TYPES[self]

    @classmethod
    def from_name(cls, name: str) -> "Tier":
        """
        Parse a tier from either vocabulary (top/operator, org/account, user).

        Raises:
            ValueError: If the name is not recognised.
        """
        key = (name or "").strip().lower()
        if key not in _TIER_NAMES:
            raise ValueError(f"unknown key type: {name!r}")
        return _TIER_NAMES[key]

    def __str__(self) -> str:
        return self.claim_type

    def __format__(self, spec: str) -> str:
        return format(self.claim_type, spec)


_CLAIM_TYPES = {
    Tier.TOP: "operator",
    Tier.ORG: "account",
    Tier.USER: "user",
    Tier.UNKNOWN: "unknown",
}

_TIER_NAMES = {
    "top": Tier.TOP,
    "operator": Tier.TOP,
    "org": Tier.ORG,
    "account": Tier.ORG,
    "user": Tier.USER,
}

_VALID_PREFIXES = frozenset(int(t) for t in Tier)


def _checked_payload(text: str, error) -> bytes:
    if not isinstance(text, str) or not text:
        raise error("key text is empty")
    try:
        raw = b32decode_nopad(text)
    except ValueError as e:
        raise error(f"key is not valid base32: {e}") from e
    if len(raw) < 4:
        raise error("key is too short")
    payload, checksum = raw[:-2], raw[-2:]
    if crc16_bytes(payload) != checksum:
        raise error("key checksum mismatch")
    return payload


def encode_seed(tier: Tier, entropy: bytes) -> str:
    """
    Encode raw entropy as a seed string for the given tier.

    Raises:
        InvalidSeed: If the tier is not a known prefix or entropy is not 32 bytes.
    """
    if int(tier) not in _VALID_PREFIXES:
        raise InvalidSeed(f"unrecognised tier prefix {int(tier)}")
    if len(entropy) != KEY_SIZE:
        raise InvalidSeed(f"seed entropy must be {KEY_SIZE} bytes, got {len(entropy)}")

    prefix = int(tier)
    b1 = SEED_PREFIX_BYTE | (prefix >> 5)
    b2 = (prefix & 31) << 3
    payload = bytes([b1, b2]) + bytes(entropy)
    return b32encode_nopad(payload + crc16_bytes(payload))


def decode_seed(text: str) -> Tuple[Tier, bytes]:
    """
    Decode a seed string into its tier and 32 bytes of entropy.

    Raises:
        InvalidSeed: On bad base32, checksum, seed marker, tier tag or length.
    """
    payload = _checked_payload(text, InvalidSeed)
    if len(payload) < 2:
        raise InvalidSeed("seed is too short")

    b1 = payload[0] & 248
    b2 = ((payload[0] & 7) << 5) | ((payload[1] & 248) >> 3)
    if b1 != SEED_PREFIX_BYTE:
        raise InvalidSeed("not a seed")
    if b2 not in _VALID_PREFIXES:
        raise InvalidSeed(f"unrecognised tier prefix {b2}")

    entropy = payload[2:]
    if len(entropy) != KEY_SIZE:
        raise InvalidSeed(f"seed entropy must be {KEY_SIZE} bytes, got {len(entropy)}")
    return Tier(b2), entropy


def encode_public_key(tier: Tier, public_key: bytes) -> str:
    """Encode a raw Ed25519 public key as a tier-tagged identifier."""
    if int(tier) not in _VALID_PREFIXES:
        raise InvalidPublicKey(f"unrecognised tier prefix {int(tier)}")
    if len(public_key) != KEY_SIZE:
        raise InvalidPublicKey(f"public key must be {KEY_SIZE} bytes")
    payload = bytes([int(tier)]) + bytes(public_key)
    return b32encode_nopad(payload + crc16_bytes(payload))


def decode_public_key(text: str) -> Tuple[Tier, bytes]:
    """
    Decode a public identifier into its tier and raw public key.

    Raises:
        InvalidPublicKey: On bad base32, checksum, tier tag or length.
    """
    payload = _checked_payload(text, InvalidPublicKey)
    prefix = payload[0]
    if prefix not in _VALID_PREFIXES:
        raise InvalidPublicKey(f"unrecognised tier prefix {prefix}")
    key = payload[1:]
    if len(key) != KEY_SIZE:
        raise InvalidPublicKey(f"public key must be {KEY_SIZE} bytes, got {len(key)}")
    return Tier(prefix), key


def is_valid_public_key(text: str, tier: Optional[Tier] = None) -> bool:
    """Check whether text is a public identifier, optionally of a given tier."""
    try:
        found, _ = decode_public_key(text)
    except InvalidPublicKey:
        return False
    return tier is None or found == tier


def looks_like_seed(text: str) -> bool:
    """Seeds always start with 'S'; public identifiers never do."""
    return isinstance(text, str) and text.startswith("S")
