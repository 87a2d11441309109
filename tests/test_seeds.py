"""
Unit tests for the seed and public key codec.
"""

import os

import pytest

from nkjwt.encoding import b32decode_nopad, b32encode_nopad, crc16
from nkjwt.errors import InvalidPublicKey, InvalidSeed
from nkjwt.seeds import (
    Tier,
    decode_public_key,
    decode_seed,
    encode_public_key,
    encode_seed,
    is_valid_public_key,
)


class TestChecksum:
    """Tests for the CRC16 used in key encodings."""

    def test_crc16_check_value(self):
        """CRC-16/XMODEM check value for '123456789'."""
        assert crc16(b"123456789") == 0x31C3

    def test_crc16_empty(self):
        assert crc16(b"") == 0


class TestSeedRoundTrip:
    """Tests for encode_seed()/decode_seed()."""

    @pytest.mark.parametrize("tier", list(Tier))
    def test_round_trip(self, tier):
        """decode(encode(tier, entropy)) returns the same pair."""
        entropy = os.urandom(32)
        assert decode_seed(encode_seed(tier, entropy)) == (tier, entropy)

    @pytest.mark.parametrize(
        "tier,prefix",
        [(Tier.TOP, "SO"), (Tier.ORG, "SA"), (Tier.USER, "SU")],
    )
    def test_seed_prefix(self, tier, prefix, fixed_entropy):
        """Seeds read SO/SA/SU for operator/account/user."""
        assert encode_seed(tier, fixed_entropy).startswith(prefix)

    def test_seed_length(self, fixed_entropy):
        """36 bytes of base32 without padding is 58 characters."""
        assert len(encode_seed(Tier.ORG, fixed_entropy)) == 58

    def test_encode_rejects_short_entropy(self):
        with pytest.raises(InvalidSeed, match="32 bytes"):
            encode_seed(Tier.TOP, b"\x00" * 16)


class TestSeedDecodeErrors:
    """Tests for decode_seed() rejections."""

    def test_checksum_mismatch(self, fixed_entropy):
        """Flipping a character breaks the checksum."""
        seed = encode_seed(Tier.USER, fixed_entropy)
        tampered = seed[:10] + ("A" if seed[10] != "A" else "B") + seed[11:]
        with pytest.raises(InvalidSeed, match="checksum"):
            decode_seed(tampered)

    def test_not_base32(self):
        with pytest.raises(InvalidSeed):
            decode_seed("not-a-seed!")

    def test_empty(self):
        with pytest.raises(InvalidSeed):
            decode_seed("")

    def test_public_key_is_not_a_seed(self, fixed_entropy):
        """A valid public key fails seed decoding."""
        public = encode_public_key(Tier.TOP, fixed_entropy)
        with pytest.raises(InvalidSeed):
            decode_seed(public)

    def test_unrecognised_tier(self, fixed_entropy):
        """A checksummed seed with a server prefix ('N') is rejected."""
        from nkjwt.encoding import crc16_bytes

        prefix = 13 << 3
        payload = bytes([(18 << 3) | (prefix >> 5), (prefix & 31) << 3]) + fixed_entropy
        seed = b32encode_nopad(payload + crc16_bytes(payload))
        with pytest.raises(InvalidSeed, match="tier"):
            decode_seed(seed)


class TestPublicKeys:
    """Tests for public identifier encoding."""

    @pytest.mark.parametrize(
        "tier,prefix",
        [(Tier.TOP, "O"), (Tier.ORG, "A"), (Tier.USER, "U")],
    )
    def test_public_prefix(self, tier, prefix, fixed_entropy):
        assert encode_public_key(tier, fixed_entropy).startswith(prefix)

    def test_round_trip(self, fixed_entropy):
        public = encode_public_key(Tier.ORG, fixed_entropy)
        assert decode_public_key(public) == (Tier.ORG, fixed_entropy)
        assert len(public) == 56

    def test_is_valid_public_key(self, fixed_entropy):
        public = encode_public_key(Tier.USER, fixed_entropy)
        assert is_valid_public_key(public)
        assert is_valid_public_key(public, Tier.USER)
        assert not is_valid_public_key(public, Tier.ORG)
        assert not is_valid_public_key("UNOTAKEY")

    def test_invalid_public_key_is_invalid_seed(self):
        """InvalidPublicKey is part of the InvalidSeed family."""
        with pytest.raises(InvalidSeed):
            decode_public_key("ABCDEFG")
        assert issubclass(InvalidPublicKey, InvalidSeed)


class TestTierNames:
    """Tests for Tier parsing and display."""

    @pytest.mark.parametrize(
        "name,tier",
        [
            ("operator", Tier.TOP),
            ("TOP", Tier.TOP),
            ("account", Tier.ORG),
            ("org", Tier.ORG),
            ("User", Tier.USER),
        ],
    )
    def test_from_name(self, name, tier):
        assert Tier.from_name(name) == tier

    def test_from_name_unknown(self):
        with pytest.raises(ValueError):
            Tier.from_name("server")

    def test_str_and_format(self):
        assert str(Tier.ORG) == "account"
        assert f"{Tier.TOP}" == "operator"


class TestBase32:
    def test_no_padding(self):
        assert "=" not in b32encode_nopad(b"\x01\x02\x03")
        assert b32decode_nopad(b32encode_nopad(b"\x01\x02\x03")) == b"\x01\x02\x03"
