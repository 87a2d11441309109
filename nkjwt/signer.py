"""
nkjwt Signer - Stamps, hashes and signs claims into compact tokens.

This module provides the token assembly step: given typed claims and the
issuer's seed, it produces ``header.payload.signature`` where every segment
is base64url without padding.
"""

import logging
from typing import Optional, Union

from nkjwt.canonical import (
    compute_claim_id,
    decode_token,
    encode_header,
    encode_payload,
    encode_signature,
)
from nkjwt.claims import Claims
from nkjwt.config import ALGORITHM
from nkjwt.errors import InvalidSeed, SerializationError
from nkjwt.hierarchy import IssuancePolicy, default_policy
from nkjwt.keys import KeyPair


logger = logging.getLogger(__name__)


class Signer:
    """
    Issues tokens for claims using an issuer key pair.

    The Signer checks the issuance hierarchy, stamps the issuer's public key
    and the content-derived claim ID onto a copy of the claims, and signs the
    encoded header and payload. Nothing is returned unless every step
    succeeds.

    Example:
        >>> signer = Signer('SOAB...')
        >>> claims = build_claims('AAB...', None, 'acme')
        >>> token = signer.issue(claims)
    """

    def __init__(
        self,
        issuer: Union[str, KeyPair],
        policy: Optional[IssuancePolicy] = None,
    ):
        """
        Initialize the Signer with issuer credentials.

        Args:
            issuer: Issuer seed string or an already derived KeyPair.
            policy: Issuance policy (default: from configuration).

        Raises:
            InvalidSeed: If issuer is missing or not a valid seed.
        """
        if not issuer:
            raise InvalidSeed("Signer requires an issuer seed", field="iss")

        if isinstance(issuer, KeyPair):
            self._keys = issuer
        else:
            try:
                self._keys = KeyPair.from_seed(issuer)
            except InvalidSeed as e:
                raise InvalidSeed(f"'iss' {e}", field="iss") from e

        self.policy = policy if policy is not None else default_policy()

    @property
    def public_key(self) -> str:
        """Public identifier of the issuer."""
        return self._keys.public_key

    @property
    def tier(self):
        return self._keys.tier

    def stamp(self, claims: Claims) -> Claims:
        """
        Return claims ready for encoding: issuer set and claim ID computed.

        Raises:
            IssuerHierarchyViolation: If the issuer may not sign for the subject.
            SerializationError: If the claims cannot be canonically serialized.
        """
        self.policy.validate(claims.tier, self._keys.tier)

        stamped = claims.replace(id="", issuer=self._keys.public_key)
        return stamped.replace(id=compute_claim_id(stamped))

    def issue(self, claims: Claims) -> str:
        """
        Sign claims and return the compact token.

        Args:
            claims: Claims built by build_claims(); not modified.

        Returns:
            ``header.payload.signature``.

        Raises:
            IssuerHierarchyViolation: If the issuer may not sign for the subject.
            SerializationError: If the claims cannot be canonically serialized.
            SigningError: If the key material cannot sign.
        """
        stamped = self.stamp(claims)

        to_sign = f"{encode_header(ALGORITHM)}.{encode_payload(stamped)}"
        signature = self._keys.sign(to_sign.encode("ascii"))
        token = f"{to_sign}.{encode_signature(signature)}"

        logger.debug(
            f"Issued {stamped.tier} claims {stamped.id} for {stamped.subject} "
            f"signed by {self._keys.public_key}"
        )
        return token

    def verify(self, token: str) -> bool:
        """Check that token carries a valid signature from this issuer."""
        try:
            parts = decode_token(token)
        except SerializationError:
            return False
        return self._keys.verify(parts["signed"], parts["signature"])
