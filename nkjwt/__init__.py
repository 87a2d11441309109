"""
nkjwt - Deterministic NKey-signed JWT issuance.

This package turns tier-tagged Ed25519 seeds (operator -> account -> user)
into signed, self-describing JWT-shaped tokens with content-addressed
claim IDs.
"""

__version__ = "0.3.0"

# Seeds and keys
from .seeds import Tier, decode_seed, encode_seed, decode_public_key, encode_public_key
from .keys import KeyPair, NKeyIdentity, create_pair

# Claims and signing
from .claims import Claims, TopPayload, OrgPayload, UserPayload, build_claims
from .canonical import compute_claim_id, decode_token
from .hierarchy import IssuancePolicy, default_policy
from .signer import Signer

# Entry points
from .engine import IssueRequest, issue_token, generate_nkey, read_nkey, public_key

# Errors
from .errors import (
    NKeyJWTError,
    InvalidSeed,
    InvalidPublicKey,
    MissingRequiredField,
    InvalidFieldValue,
    UnknownSubjectTier,
    ExtensionDecodeError,
    DelegatedKeyTierError,
    IssuerHierarchyViolation,
    SigningError,
    SerializationError,
)


__all__ = [
    "__version__",
    # Seeds and keys
    "Tier",
    "decode_seed",
    "encode_seed",
    "decode_public_key",
    "encode_public_key",
    "KeyPair",
    "NKeyIdentity",
    "create_pair",
    # Claims and signing
    "Claims",
    "TopPayload",
    "OrgPayload",
    "UserPayload",
    "build_claims",
    "compute_claim_id",
    "decode_token",
    "IssuancePolicy",
    "default_policy",
    "Signer",
    # Entry points
    "IssueRequest",
    "issue_token",
    "generate_nkey",
    "read_nkey",
    "public_key",
    # Errors
    "NKeyJWTError",
    "InvalidSeed",
    "InvalidPublicKey",
    "MissingRequiredField",
    "InvalidFieldValue",
    "UnknownSubjectTier",
    "ExtensionDecodeError",
    "DelegatedKeyTierError",
    "IssuerHierarchyViolation",
    "SigningError",
    "SerializationError",
]
