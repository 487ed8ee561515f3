"""
Integration layer: the stateful engine, the asset-transfer boundary and
deployment configuration.
"""

from .config import CONFIG_ENV_VAR, EngineConfig, default_config_path, load_config
from .engine import StakingEngine, bank_from_config
from .transfer import AssetBank, AssetTransferError, TransferService

__all__ = [
    "CONFIG_ENV_VAR",
    "EngineConfig",
    "default_config_path",
    "load_config",
    "StakingEngine",
    "bank_from_config",
    "AssetBank",
    "AssetTransferError",
    "TransferService",
]
