"""
nkjwt Errors - Exception taxonomy for token issuance.

Every failure in the engine is caller input or environment related, so none
of these are retried. Each exception carries the offending field name where
one applies.
"""

from typing import Optional


class NKeyJWTError(Exception):
    """Base exception for all nkjwt errors."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidSeed(NKeyJWTError):
    """Raised when a seed fails to decode (checksum, tier tag, or length)."""

    def __init__(self, message: str = "invalid seed", field: Optional[str] = None):
        super().__init__(message, field)


class InvalidPublicKey(InvalidSeed):
    """Raised when a public identifier fails to decode."""

    def __init__(self, message: str = "invalid public key", field: Optional[str] = None):
        super().__init__(message, field)


class MissingRequiredField(NKeyJWTError):
    """Raised when iss, sub or name is absent."""

    def __init__(self, field: str):
        super().__init__(f"'{field}' is required", field)


class InvalidFieldValue(NKeyJWTError):
    """Raised when an input field has the wrong type or format."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"'{field}' is invalid: {reason}", field)


class UnknownSubjectTier(NKeyJWTError):
    """Raised when the subject key is not an operator, account or user key."""

    def __init__(self, tier, field: str = "sub"):
        super().__init__(f"subject tier {tier} cannot carry claims", field)
        self.tier = tier


class ExtensionDecodeError(NKeyJWTError):
    """Raised when extension JSON is malformed or has the wrong shape."""

    def __init__(self, message: str, field: str = "nats"):
        super().__init__(message, field)


class DelegatedKeyTierError(NKeyJWTError):
    """Raised when a delegated signing key belongs to the wrong tier."""

    def __init__(self, key: str, expected, actual, field: str = "signing_keys"):
        super().__init__(
            f"signing key {key} is a {actual} key, expected {expected}", field
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class IssuerHierarchyViolation(NKeyJWTError):
    """Raised when the issuer tier may not issue claims for the subject tier."""

    def __init__(self, subject_tier, issuer_tier, field: str = "iss"):
        super().__init__(
            f"{issuer_tier} issuer cannot issue {subject_tier} claims", field
        )
        self.subject_tier = subject_tier
        self.issuer_tier = issuer_tier


class SigningError(NKeyJWTError):
    """Raised when the signing key material is malformed."""

    pass


class SerializationError(NKeyJWTError):
    """Raised when claims cannot be canonically serialized."""

    pass
