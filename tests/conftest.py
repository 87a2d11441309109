"""
Shared pytest fixtures for nkjwt tests.
"""

import pytest

from nkjwt import IssuancePolicy, KeyPair, Signer, Tier, create_pair
from nkjwt import config


@pytest.fixture(autouse=True)
def strict_by_default(monkeypatch):
    """Keep tests independent of NKJWT_ALLOW_TOP_USER_ISSUANCE in the environment."""
    monkeypatch.setattr(config, "ALLOW_TOP_USER_ISSUANCE", False)


@pytest.fixture
def operator_keys() -> KeyPair:
    """A fresh operator (top tier) key pair."""
    return create_pair(Tier.TOP)


@pytest.fixture
def account_keys() -> KeyPair:
    """A fresh account (org tier) key pair."""
    return create_pair(Tier.ORG)


@pytest.fixture
def user_keys() -> KeyPair:
    """A fresh user key pair."""
    return create_pair(Tier.USER)


@pytest.fixture
def fixed_entropy() -> bytes:
    """Deterministic 32 bytes of seed entropy."""
    return bytes(range(32))


@pytest.fixture
def operator_signer(operator_keys: KeyPair) -> Signer:
    return Signer(operator_keys.seed, policy=IssuancePolicy.strict())


@pytest.fixture
def account_signer(account_keys: KeyPair) -> Signer:
    return Signer(account_keys.seed, policy=IssuancePolicy.strict())


@pytest.fixture
def sample_account_extension(account_keys: KeyPair) -> dict:
    """Account payload data with one scoped and one unscoped signing key."""
    scoped = create_pair(Tier.ORG)
    return {
        "signing_keys": {
            scoped.seed: {"kind": "user_scope", "role": "admin"},
            account_keys.public_key: None,
        },
        "limits": {"conn": 10, "subs": -1},
    }
