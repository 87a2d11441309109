"""
nkjwt Claims Model - Envelope fields plus one tier-specific payload.

The payload variant is a closed set selected by the subject's tier:

    Tier.TOP  -> TopPayload   (delegated operator signing keys + extension)
    Tier.ORG  -> OrgPayload   (account signing key -> scope pairs + extension)
    Tier.USER -> UserPayload  (extension only)

Serialized claims follow the NATS JWT v2 layout: envelope fields at the top
level and the payload under ``nats`` with its ``type`` and ``version``.
Unset optional fields are left out entirely rather than zero-filled.
"""

import copy
import dataclasses
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from nkjwt.canonical import canonical_json
from nkjwt.config import CLAIM_VERSION
from nkjwt.errors import (
    DelegatedKeyTierError,
    ExtensionDecodeError,
    InvalidFieldValue,
    InvalidSeed,
    NKeyJWTError,
    UnknownSubjectTier,
)
from nkjwt.keys import KeyPair
from nkjwt.seeds import Tier, decode_public_key, looks_like_seed


logger = logging.getLogger(__name__)


# =============================================================================
# Payload Variants
# =============================================================================


@dataclass(frozen=True)
class TopPayload:
    """Operator payload: delegated operator signing keys plus extension data."""

    tier: ClassVar[Tier] = Tier.TOP

    signing_keys: Tuple[str, ...] = ()
    extension: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.extension))
        if self.signing_keys:
            data["signing_keys"] = list(self.signing_keys)
        data["type"] = self.tier.claim_type
        data["version"] = CLAIM_VERSION
        return data


@dataclass(frozen=True)
class OrgPayload:
    """
    Account payload: signing key -> scope pairs plus extension data.

    Pairs are kept sorted by key so that two payloads built from the same
    keys in a different order compare equal and hash to the same claim ID.
    A scope of None marks an unscoped signing key.
    """

    tier: ClassVar[Tier] = Tier.ORG

    signing_keys: Tuple[Tuple[str, Any], ...] = field(default=(), hash=False)
    extension: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.extension))
        if self.signing_keys:
            data["signing_keys"] = {k: copy.deepcopy(v) for k, v in sorted(self.signing_keys)}
        data["type"] = self.tier.claim_type
        data["version"] = CLAIM_VERSION
        return data


@dataclass(frozen=True)
class UserPayload:
    """User payload: extension data only."""

    tier: ClassVar[Tier] = Tier.USER

    extension: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.extension))
        data["type"] = self.tier.claim_type
        data["version"] = CLAIM_VERSION
        return data


Payload = Union[TopPayload, OrgPayload, UserPayload]

PAYLOAD_TYPES = {
    Tier.TOP: TopPayload,
    Tier.ORG: OrgPayload,
    Tier.USER: UserPayload,
}


# =============================================================================
# Claims Envelope
# =============================================================================


@dataclass(frozen=True)
class Claims:
    """
    A complete claim set ready for hashing and signing.

    Claims are hashable; payload extension data and account key scopes
    take part in equality but not in the hash.

    Attributes:
        subject: Public identifier of the subject (tier matches payload).
        name: Human-readable name.
        payload: Tier-specific payload variant.
        issuer: Public identifier of the issuer ("" until stamped by a Signer).
        id: Claim ID ("" until computed from the canonical claims).
        issued_at: Unix seconds.
        expires: Unix seconds.
        not_before: Unix seconds.
        audience: Intended audience.
    """

    subject: str
    name: str
    payload: Payload
    issuer: str = ""
    id: str = ""
    issued_at: Optional[int] = None
    expires: Optional[int] = None
    not_before: Optional[int] = None
    audience: Optional[str] = None

    @property
    def tier(self) -> Tier:
        return self.payload.tier

    def replace(self, **changes) -> "Claims":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready structure; empty or unset fields are omitted."""
        data: Dict[str, Any] = {}
        if self.id:
            data["jti"] = self.id
        if self.issued_at is not None:
            data["iat"] = self.issued_at
        if self.issuer:
            data["iss"] = self.issuer
        if self.name:
            data["name"] = self.name
        data["sub"] = self.subject
        if self.audience is not None:
            data["aud"] = self.audience
        if self.expires is not None:
            data["exp"] = self.expires
        if self.not_before is not None:
            data["nbf"] = self.not_before
        data["nats"] = self.payload.to_dict()
        return data


# =============================================================================
# Field Helpers
# =============================================================================


def resolve_public_key(value: Any, field_name: str) -> Tuple[Tier, str]:
    """
    Reduce a seed or public identifier to (tier, public identifier).

    Raises:
        InvalidSeed: If the value decodes as neither.
    """
    if not isinstance(value, str) or not value:
        raise InvalidSeed(f"'{field_name}' must be a seed or public key", field=field_name)
    try:
        if looks_like_seed(value):
            kp = KeyPair.from_seed(value)
            return kp.tier, kp.public_key
        tier, _ = decode_public_key(value)
        return tier, value
    except InvalidSeed as e:
        raise type(e)(f"'{field_name}' {e}", field=field_name) from e


def to_timestamp(value: Any, field_name: str) -> Optional[int]:
    """
    Convert an optional timestamp to Unix seconds.

    Accepts ints, digit strings, datetimes and ISO-8601 strings; naive
    datetimes are taken as UTC.

    Raises:
        InvalidFieldValue: For any other value.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidFieldValue(field_name, "expected a timestamp, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.lstrip("-").isdigit():
            try:
                return int(text)
            except ValueError as e:
                raise InvalidFieldValue(field_name, f"not a timestamp: {value!r}") from e
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidFieldValue(field_name, f"not a timestamp: {value!r}") from e
    else:
        raise InvalidFieldValue(field_name, f"expected a timestamp, got {type(value).__name__}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def parse_extension(extension: Any) -> Dict[str, Any]:
    """
    Decode extension data (JSON text or mapping) into a fresh dict.

    Raises:
        ExtensionDecodeError: If the data is not a JSON object.
    """
    if extension is None:
        return {}
    if isinstance(extension, (bytes, bytearray)):
        try:
            extension = extension.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExtensionDecodeError(f"extension is not UTF-8: {e}") from e
    if isinstance(extension, str):
        if not extension.strip():
            return {}
        try:
            decoded = json.loads(extension)
        except ValueError as e:
            raise ExtensionDecodeError(f"extension is not valid JSON: {e}") from e
    elif isinstance(extension, Mapping):
        decoded = copy.deepcopy(dict(extension))
    else:
        raise ExtensionDecodeError(
            f"extension must be a JSON object, got {type(extension).__name__}"
        )

    if not isinstance(decoded, dict):
        raise ExtensionDecodeError("extension must be a JSON object")
    return decoded


def _check_reserved(data: Dict[str, Any], tier: Tier) -> None:
    claim_type = data.pop("type", None)
    if claim_type is not None and claim_type != tier.claim_type:
        raise ExtensionDecodeError(
            f"extension type {claim_type!r} does not match subject type {tier.claim_type!r}"
        )
    version = data.pop("version", None)
    if version is not None and version != CLAIM_VERSION:
        raise ExtensionDecodeError(f"unsupported claim version {version!r}")


def _delegated_key(entry: Any, expected: Tier) -> str:
    if not isinstance(entry, str):
        raise ExtensionDecodeError(
            f"signing key must be a string, got {type(entry).__name__}", field="signing_keys"
        )
    try:
        if looks_like_seed(entry):
            kp = KeyPair.from_seed(entry)
            tier, public_key = kp.tier, kp.public_key
        else:
            tier, _ = decode_public_key(entry)
            public_key = entry
    except InvalidSeed as e:
        raise ExtensionDecodeError(f"signing key does not decode: {e}", field="signing_keys") from e

    if tier != expected:
        raise DelegatedKeyTierError(public_key, expected, tier)
    return public_key


# =============================================================================
# Payload Decoders
# =============================================================================


def _top_payload(data: Dict[str, Any]) -> TopPayload:
    raw_keys = data.pop("signing_keys", None)
    keys = []
    if raw_keys is not None:
        if not isinstance(raw_keys, list):
            raise ExtensionDecodeError(
                "operator signing_keys must be a list", field="signing_keys"
            )
        for entry in raw_keys:
            key = _delegated_key(entry, Tier.TOP)
            if key not in keys:
                keys.append(key)
    return TopPayload(signing_keys=tuple(keys), extension=data)


def _org_payload(data: Dict[str, Any]) -> OrgPayload:
    raw_keys = data.pop("signing_keys", None)
    if raw_keys is None:
        return OrgPayload(extension=data)

    if isinstance(raw_keys, dict):
        entries = list(raw_keys.items())
    elif isinstance(raw_keys, list):
        entries = []
        for item in raw_keys:
            if isinstance(item, dict):
                scope = dict(item)
                key = scope.pop("key", None)
                entries.append((key, scope))
            else:
                entries.append((item, None))
    else:
        raise ExtensionDecodeError(
            "account signing_keys must be a mapping or a list", field="signing_keys"
        )

    pairs: Dict[str, Any] = {}
    for entry, scope in entries:
        key = _delegated_key(entry, Tier.ORG)
        if key in pairs and pairs[key] != scope:
            raise ExtensionDecodeError(
                f"signing key {key} listed twice with different scopes", field="signing_keys"
            )
        pairs[key] = scope
    return OrgPayload(signing_keys=tuple(sorted(pairs.items())), extension=data)


def _user_payload(data: Dict[str, Any]) -> UserPayload:
    if "signing_keys" in data:
        raise ExtensionDecodeError(
            "user claims do not carry signing_keys", field="signing_keys"
        )
    return UserPayload(extension=data)


_DECODERS = {
    Tier.TOP: _top_payload,
    Tier.ORG: _org_payload,
    Tier.USER: _user_payload,
}


def build_payload(tier: Tier, extension: Any = None) -> Payload:
    """
    Decode extension data into the payload variant for tier.

    Raises:
        UnknownSubjectTier: If tier has no payload variant.
        ExtensionDecodeError: If the data does not fit the variant.
        DelegatedKeyTierError: If a delegated signing key has the wrong tier.
    """
    decoder = _DECODERS.get(tier)
    if decoder is None:
        raise UnknownSubjectTier(tier)
    data = parse_extension(extension)
    _check_reserved(data, tier)
    payload = decoder(data)
    canonical_json(payload.to_dict(), field="nats")
    return payload


# =============================================================================
# Builder
# =============================================================================


def build_claims(
    subject: str,
    issuer: Optional[str],
    name: str,
    *,
    audience: Optional[str] = None,
    expires: Any = None,
    not_before: Any = None,
    issued_at: Any = None,
    extension: Any = None,
) -> Claims:
    """
    Build typed claims for a subject.

    Args:
        subject: Subject seed or public identifier; its tier picks the payload.
        issuer: Issuer seed or public identifier, or None to leave it for
            the Signer to stamp.
        name: Name claim.
        audience: Optional audience.
        expires: Optional expiry timestamp.
        not_before: Optional not-before timestamp.
        issued_at: Optional issued-at timestamp.
        extension: Optional payload data (JSON text or mapping).

    Returns:
        Claims with an empty ID.

    Raises:
        NKeyJWTError: Any taxonomy error for malformed input.
    """
    subject_tier, subject_key = resolve_public_key(subject, "sub")
    if subject_tier not in PAYLOAD_TYPES:
        raise UnknownSubjectTier(subject_tier)

    issuer_key = ""
    if issuer:
        _, issuer_key = resolve_public_key(issuer, "iss")

    if not isinstance(name, str) or not name:
        raise InvalidFieldValue("name", "must be a non-empty string")
    if audience is not None and not isinstance(audience, str):
        raise InvalidFieldValue("aud", "must be a string")

    try:
        payload = build_payload(subject_tier, extension)
    except NKeyJWTError:
        logger.debug(f"Rejected {subject_tier} extension for {subject_key}")
        raise

    return Claims(
        subject=subject_key,
        name=name,
        payload=payload,
        issuer=issuer_key,
        issued_at=to_timestamp(issued_at, "iat"),
        expires=to_timestamp(expires, "exp"),
        not_before=to_timestamp(not_before, "nbf"),
        audience=audience or None,
    )
