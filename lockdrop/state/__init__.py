"""
State encoding for lockdrop: canonical JSON and versioned snapshots
"""

from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from .snapshot import (
    STAKING_SNAPSHOT_VERSION,
    StakingSnapshot,
    read_snapshot,
    snapshot_from_state,
    state_from_snapshot,
    write_snapshot,
)

__all__ = [
    "canonical_json_bytes",
    "domain_sep_bytes",
    "sha256_hex",
    "STAKING_SNAPSHOT_VERSION",
    "StakingSnapshot",
    "snapshot_from_state",
    "state_from_snapshot",
    "write_snapshot",
    "read_snapshot",
]
