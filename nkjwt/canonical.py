"""
nkjwt Canonicalizer - Deterministic JSON, token segments and claim IDs.

Canonical JSON sorts keys at every level and uses compact separators, so two
logically identical claim sets (including signing-key maps built in any
order) produce byte-identical output. Segments are base64url without
padding and therefore never contain the '.' separator.
"""

import json
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives import hashes
from jwcrypto.common import base64url_decode, base64url_encode

from nkjwt.config import ALGORITHM, TOKEN_TYPE
from nkjwt.encoding import b32encode_nopad
from nkjwt.errors import SerializationError


def canonical_json(obj: Any, field: Optional[str] = None) -> bytes:
    """
    Serialize obj as canonical UTF-8 JSON.

    field names the claim reported when serialization fails.

    Raises:
        SerializationError: If obj holds values JSON cannot represent.
    """
    try:
        text = json.dumps(
            obj,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"claims are not serializable: {e}", field=field) from e
    return text.encode("utf-8")


def encode_segment(obj: Any, field: Optional[str] = None) -> str:
    """Canonical JSON of obj, base64url encoded without padding."""
    return base64url_encode(canonical_json(obj, field))


def decode_segment(segment: str) -> Dict[str, Any]:
    """
    Decode one token segment back into a dict. Does not check signatures.

    Raises:
        SerializationError: If the segment is not base64url JSON.
    """
    try:
        data = json.loads(base64url_decode(segment).decode("utf-8"))
    except (ValueError, TypeError) as e:
        raise SerializationError(f"segment is not base64url JSON: {e}") from e
    if not isinstance(data, dict):
        raise SerializationError("segment is not a JSON object")
    return data


def header(algorithm: str = ALGORITHM) -> Dict[str, str]:
    return {"typ": TOKEN_TYPE, "alg": algorithm}


def encode_header(algorithm: str = ALGORITHM) -> str:
    """Encoded header segment; constant for a given signing scheme."""
    return encode_segment(header(algorithm))


def encode_payload(claims) -> str:
    # only the payload extension carries caller-supplied JSON values
    return encode_segment(claims.to_dict(), field="nats")


def compute_claim_id(claims) -> str:
    """
    Content hash of claims with the ID blanked.

    SHA-512/256 over the canonical JSON, base32 encoded without padding.
    """
    blank = claims.replace(id="")
    digest = hashes.Hash(hashes.SHA512_256())
    digest.update(canonical_json(blank.to_dict(), field="nats"))
    return b32encode_nopad(digest.finalize())


def encode_signature(signature: bytes) -> str:
    return base64url_encode(signature)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Split a token into its decoded header, claims and raw signature.

    Inspection only: nothing here establishes that the token is trusted.

    Raises:
        SerializationError: If the token is not three valid segments.
    """
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3 or not all(parts):
        raise SerializationError("token must have three non-empty segments")
    try:
        signature = base64url_decode(parts[2])
    except (ValueError, TypeError) as e:
        raise SerializationError(f"signature segment is not base64url: {e}") from e
    return {
        "header": decode_segment(parts[0]),
        "claims": decode_segment(parts[1]),
        "signature": signature,
        "signed": f"{parts[0]}.{parts[1]}".encode("ascii"),
    }
