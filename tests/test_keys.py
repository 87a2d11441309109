"""
Unit tests for key derivation and generation.
"""

import base64
import json

import pytest

from nkjwt import KeyPair, Tier, create_pair, generate_nkey, public_key, read_nkey
from nkjwt.errors import InvalidFieldValue, InvalidSeed
from nkjwt.seeds import encode_seed


def _b64(text: str) -> bytes:
    return base64.b64decode(text + "=" * (-len(text) % 4))


class TestDerivation:
    """Tests for KeyPair derivation."""

    def test_same_entropy_same_keys(self, fixed_entropy):
        """Deriving twice yields the same public key and signatures."""
        a = KeyPair.from_entropy(Tier.TOP, fixed_entropy)
        b = KeyPair.from_seed(encode_seed(Tier.TOP, fixed_entropy))

        assert a.public_key == b.public_key
        assert a.sign(b"message") == b.sign(b"message")
        assert a == b

    def test_public_key_carries_tier(self, fixed_entropy):
        assert KeyPair(Tier.ORG, fixed_entropy).public_key.startswith("A")
        assert KeyPair(Tier.USER, fixed_entropy).public_key.startswith("U")

    def test_seed_round_trip(self, operator_keys):
        assert KeyPair.from_seed(operator_keys.seed) == operator_keys

    def test_rejects_bad_entropy_length(self):
        with pytest.raises(InvalidSeed):
            KeyPair(Tier.USER, b"\x01" * 31)

    def test_from_bad_seed(self):
        with pytest.raises(InvalidSeed):
            KeyPair.from_seed("SOBADSEED")


class TestSigning:
    """Tests for sign()/verify()."""

    def test_signature_verifies(self, account_keys):
        sig = account_keys.sign(b"header.payload")
        assert len(sig) == 64
        assert account_keys.verify(b"header.payload", sig)

    def test_tampered_message_fails(self, account_keys):
        sig = account_keys.sign(b"header.payload")
        assert not account_keys.verify(b"header.paylaod", sig)

    def test_other_key_fails(self, account_keys, user_keys):
        sig = account_keys.sign(b"data")
        assert not user_keys.verify(b"data", sig)


class TestRawKeys:
    """Tests for raw and JWK key exports."""

    def test_raw_private_key_layout(self, fixed_entropy):
        """Private key is the 32-byte seed followed by the 32-byte public key."""
        kp = KeyPair(Tier.USER, fixed_entropy)
        raw = kp.raw_private_key()
        assert len(raw) == 64
        assert raw[:32] == fixed_entropy
        assert raw[32:] == kp.raw_public_key()

    def test_public_jwk(self, operator_keys):
        parsed = json.loads(operator_keys.export_public_jwk())
        assert parsed["kty"] == "OKP"
        assert parsed["crv"] == "Ed25519"
        assert parsed["kid"] == operator_keys.public_key
        assert "d" not in parsed

    def test_private_jwk_has_private_component(self, operator_keys):
        parsed = json.loads(operator_keys.export_private_jwk())
        assert "d" in parsed


class TestGeneration:
    """Tests for generate_nkey() and read_nkey()."""

    @pytest.mark.parametrize("name,prefix", [("operator", "SO"), ("account", "SA"), ("user", "SU")])
    def test_generate_by_name(self, name, prefix):
        identity = generate_nkey(name)
        assert identity.seed.startswith(prefix)
        assert identity.public_key == public_key(identity.seed)

    def test_generate_raw_keys(self):
        identity = generate_nkey(Tier.ORG)
        assert "=" not in identity.public
        assert "=" not in identity.private
        assert len(_b64(identity.public)) == 32
        assert len(_b64(identity.private)) == 64

    def test_generate_unique(self):
        assert generate_nkey("user").seed != generate_nkey("user").seed

    def test_generate_unknown_type(self):
        with pytest.raises(InvalidFieldValue):
            generate_nkey("cluster")

    def test_create_pair_unknown_tier(self):
        with pytest.raises(ValueError):
            create_pair(Tier.UNKNOWN)

    def test_read_is_deterministic(self):
        """Reading a stored seed reproduces the generated identity."""
        identity = generate_nkey("account")
        assert read_nkey(identity.seed) == identity

    def test_read_rejects_unknown_tier(self, fixed_entropy):
        with pytest.raises(InvalidSeed):
            read_nkey(encode_seed(Tier.UNKNOWN, fixed_entropy))

    def test_to_dict(self):
        data = generate_nkey("operator").to_dict()
        assert data["type"] == "operator"
        assert set(data) == {"type", "seed", "public_key", "public", "private"}
