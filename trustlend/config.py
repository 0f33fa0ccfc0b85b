"""
Configuration module for TrustLend.

Centralizes configuration with environment variable support. Module-level
values are read once at import; LedgerSettings.from_env() snapshots them
for a ledger instance and tests build LedgerSettings directly.
"""

import os
from dataclasses import dataclass, field
from typing import Tuple

from .extractors import DEFAULT_CREDIT_SCORE_MARKER
from .util import SECONDS_PER_DAY, ZERO_ADDRESS


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(p.strip() for p in raw.split(",") if p.strip())


# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("TRUSTLEND_ENV", "dev")  # dev|stage|prod

# Epochs
EPOCH_DURATION = int(os.getenv("TRUSTLEND_EPOCH_DURATION", str(SECONDS_PER_DAY)))

# Claim gating
ALLOWED_PROVIDERS = _env_list("TRUSTLEND_ALLOWED_PROVIDERS", "http")
CREDIT_SCORE_MARKER = os.getenv("TRUSTLEND_CREDIT_SCORE_MARKER", DEFAULT_CREDIT_SCORE_MARKER)
REJECT_DUPLICATE_SIGNERS = _env_bool("TRUSTLEND_REJECT_DUPLICATE_SIGNERS", False)
REQUIRE_CLAIM_OWNER = _env_bool("TRUSTLEND_REQUIRE_CLAIM_OWNER", False)

# Accounts
LEDGER_ADDRESS = os.getenv("TRUSTLEND_LEDGER_ADDRESS", "0x" + "7e" * 20)
ADMIN_ADDRESS = os.getenv("TRUSTLEND_ADMIN", ZERO_ADDRESS)

# Tokens (in-memory reference tokens for the standalone service)
LENDING_TOKEN_ADDRESS = os.getenv("TRUSTLEND_LENDING_TOKEN", "0x" + "a1" * 20)
COLLATERAL_TOKEN_ADDRESSES = _env_list("TRUSTLEND_COLLATERAL_TOKENS", "0x" + "c0" * 20)

# Logging
LOG_LEVEL = os.getenv("TRUSTLEND_LOG_LEVEL", "INFO")
LOG_JSON = _env_bool("TRUSTLEND_LOG_JSON", True)


@dataclass(frozen=True)
class LedgerSettings:
    """Per-ledger tunables."""
    ledger_address: str = LEDGER_ADDRESS
    epoch_duration: int = EPOCH_DURATION
    allowed_providers: Tuple[str, ...] = field(default_factory=lambda: ALLOWED_PROVIDERS)
    credit_score_marker: str = CREDIT_SCORE_MARKER
    reject_duplicate_signers: bool = REJECT_DUPLICATE_SIGNERS
    require_claim_owner: bool = REQUIRE_CLAIM_OWNER

    @classmethod
    def from_env(cls) -> 'LedgerSettings':
        return cls(
            ledger_address=os.getenv("TRUSTLEND_LEDGER_ADDRESS", LEDGER_ADDRESS),
            epoch_duration=int(os.getenv("TRUSTLEND_EPOCH_DURATION", str(EPOCH_DURATION))),
            allowed_providers=_env_list("TRUSTLEND_ALLOWED_PROVIDERS", ",".join(ALLOWED_PROVIDERS)),
            credit_score_marker=os.getenv("TRUSTLEND_CREDIT_SCORE_MARKER", CREDIT_SCORE_MARKER),
            reject_duplicate_signers=_env_bool("TRUSTLEND_REJECT_DUPLICATE_SIGNERS", REJECT_DUPLICATE_SIGNERS),
            require_claim_owner=_env_bool("TRUSTLEND_REQUIRE_CLAIM_OWNER", REQUIRE_CLAIM_OWNER),
        )


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"
