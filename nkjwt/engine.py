"""
nkjwt Engine - Entry points that turn raw request fields into tokens.

Usage:
    from nkjwt import issue_token, generate_nkey, Tier

    operator = generate_nkey(Tier.TOP)
    account = generate_nkey(Tier.ORG)
    token = issue_token({
        "iss": operator.seed,
        "sub": account.public_key,
        "name": "acme",
    })
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError, field_validator

from nkjwt.claims import build_claims, to_timestamp
from nkjwt.errors import InvalidFieldValue, InvalidSeed, MissingRequiredField
from nkjwt.hierarchy import IssuancePolicy
from nkjwt.keys import KeyPair, NKeyIdentity, describe_seed, generate_identity
from nkjwt.seeds import Tier
from nkjwt.signer import Signer


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("iss", "sub", "name")

Timestamp = Union[StrictInt, StrictStr, datetime, None]


class IssueRequest(BaseModel):
    """
    Fields accepted by issue_token().

    iss, sub and name are required at issuance time; they are optional here
    so that a missing one is reported as MissingRequiredField by name.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    iss: Optional[str] = None
    sub: Optional[str] = None
    name: Optional[str] = None
    aud: Optional[str] = None
    exp: Timestamp = None
    nbf: Timestamp = None
    iat: Timestamp = None
    nats: Union[str, Dict[str, Any], None] = None

    @field_validator("exp", "nbf", "iat", mode="before")
    @classmethod
    def _whole_seconds(cls, value: Any) -> Any:
        # bool is an int subclass; a float is only a timestamp when integral
        if isinstance(value, bool):
            raise ValueError("expected a timestamp, got a boolean")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError("expected a whole number of seconds")
            return int(value)
        return value


def parse_request(request: Union[IssueRequest, Mapping[str, Any]]) -> IssueRequest:
    """
    Validate a mapping (or pass through an IssueRequest).

    Raises:
        InvalidFieldValue: If a field has the wrong type.
        MissingRequiredField: If iss, sub or name is absent or empty.
    """
    if isinstance(request, IssueRequest):
        parsed = request
    elif isinstance(request, Mapping):
        try:
            parsed = IssueRequest.model_validate(dict(request))
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else "request"
            raise InvalidFieldValue(field, first.get("msg", "invalid value")) from e
    else:
        raise InvalidFieldValue("request", f"expected a mapping, got {type(request).__name__}")

    for field in REQUIRED_FIELDS:
        if not getattr(parsed, field):
            raise MissingRequiredField(field)
    return parsed


def issue_token(
    request: Union[IssueRequest, Mapping[str, Any]],
    policy: Optional[IssuancePolicy] = None,
) -> str:
    """
    Issue a signed token from request fields.

    Args:
        request: Mapping or IssueRequest with iss (issuer seed), sub (subject
            seed or public key), name, and optional aud, exp, nbf, iat and
            nats (payload extension JSON).
        policy: Issuance policy (default: from configuration).

    Returns:
        The compact ``header.payload.signature`` token.

    Raises:
        NKeyJWTError: The specific taxonomy error; no partial token is produced.
    """
    req = parse_request(request)

    # Signer first: a bad issuer seed is reported before the subject is parsed.
    signer = Signer(req.iss, policy=policy)

    issued_at = to_timestamp(req.iat, "iat")
    if issued_at is None:
        issued_at = int(time.time())
    claims = build_claims(
        req.sub,
        None,
        req.name,
        audience=req.aud,
        expires=req.exp,
        not_before=req.nbf,
        issued_at=issued_at,
        extension=req.nats,
    )
    logger.debug(f"Built {claims.tier} claims {claims.name!r} for {claims.subject}")
    return signer.issue(claims)


def generate_nkey(tier: Union[Tier, str]) -> NKeyIdentity:
    """
    Generate a fresh seed for tier (Tier or name such as "operator").

    Raises:
        InvalidFieldValue: If the tier is not top/org/user.
    """
    try:
        resolved = Tier.from_name(tier) if isinstance(tier, str) else Tier(tier)
        return generate_identity(resolved)
    except ValueError as e:
        raise InvalidFieldValue("type", str(e)) from e


def read_nkey(seed: str) -> NKeyIdentity:
    """
    Re-derive everything from a stored seed, e.g. when importing it.

    Raises:
        InvalidSeed: If the seed does not decode.
    """
    identity = describe_seed(seed)
    if identity.tier not in (Tier.TOP, Tier.ORG, Tier.USER):
        raise InvalidSeed(f"seed tier {identity.tier} is not operator, account or user")
    return identity


def public_key(seed: str) -> str:
    """
    Public identifier of a seed.

    Raises:
        InvalidSeed: If the seed does not decode.
    """
    return KeyPair.from_seed(seed).public_key
