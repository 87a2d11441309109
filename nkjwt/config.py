# nkjwt/config.py
"""
Centralized configuration for nkjwt.

Configurable values are read from environment variables with sensible
defaults; wire-format constants are fixed.

Usage:
    from nkjwt.config import ALGORITHM, ALLOW_TOP_USER_ISSUANCE

Environment Variables:
    NKJWT_ALLOW_TOP_USER_ISSUANCE: Let operator keys issue user claims
        directly, skipping the account tier (default: false)
    NKJWT_LOG_LEVEL: CLI log level when --verbose is not given (default: WARNING)
    NKJWT_ISSUER_SEED: Default issuer seed for `nkjwt issue`
"""

import os
from typing import Final


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# Token Format
# =============================================================================

# Header values for every issued token
TOKEN_TYPE: Final[str] = "JWT"
ALGORITHM: Final[str] = "ed25519-nkey"

# Version stamped into every payload
CLAIM_VERSION: Final[int] = 2

# =============================================================================
# Issuance Policy
# =============================================================================

# Strict three-tier chain unless explicitly relaxed
ALLOW_TOP_USER_ISSUANCE: Final[bool] = _env_flag("NKJWT_ALLOW_TOP_USER_ISSUANCE")

# =============================================================================
# CLI
# =============================================================================

LOG_LEVEL: Final[str] = os.getenv("NKJWT_LOG_LEVEL", "WARNING").upper()

ISSUER_SEED_ENV: Final[str] = "NKJWT_ISSUER_SEED"


def print_config() -> None:
    """Print current configuration (useful for debugging)."""
    print("nkjwt Configuration:")
    print(f"  TOKEN_TYPE:              {TOKEN_TYPE}")
    print(f"  ALGORITHM:               {ALGORITHM}")
    print(f"  CLAIM_VERSION:           {CLAIM_VERSION}")
    print(f"  ALLOW_TOP_USER_ISSUANCE: {ALLOW_TOP_USER_ISSUANCE}")
    print(f"  LOG_LEVEL:               {LOG_LEVEL}")


if __name__ == "__main__":
    print_config()
