"""Settlement protocol configuration.

Configuration is a plain dict of optional settings (``ProtocolConfig``)
resolved into a ``ResolvedProtocolConfig`` with every default applied.
``load_config_from_env`` builds the dict from ``PMM_*`` environment
variables, reading a ``.env`` file first when one is present.
"""

import os
from dataclasses import dataclass
from typing import Optional, TypedDict

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address

from ..order.hashing import DEFAULT_DOMAIN_NAME, DEFAULT_DOMAIN_VERSION
from ..order.utils import PERMIT2_ADDRESS, WETH_MAINNET
from .amounts import MIN_SETTLEMENT_RATIO_PCT
from .confidence import MAX_CONFIDENCE_CAP

# Address the protocol is deployed at on a fresh in-memory ledger
DEFAULT_PROTOCOL_ADDRESS = "0xa513E6E4b8f2a923D98304ec87F64353C4D5C853"

# Gas forwarded with unwrapped native value
RAW_CALL_GAS_LIMIT = 5000


class ProtocolConfig(TypedDict, total=False):
    """Settlement protocol configuration."""

    domain_name: str
    """EIP-712 domain name. Default: OnChain Labs PMM Protocol"""

    domain_version: str
    """EIP-712 domain version. Default: 1.0"""

    chain_id: int
    """Chain ID. Default: 1"""

    address: str
    """Settlement contract address (EIP-712 verifying contract)."""

    weth_address: str
    """Wrapped native asset. Default: mainnet WETH"""

    permit2_address: str
    """Permit2 contract. Default: canonical Permit2 deployment"""

    max_confidence_cap: int
    """Largest accepted confidence_cap in ppm. Default: 500000 (50%)"""

    min_settlement_ratio_pct: int
    """Minimum fill as a percentage of each quoted amount. Default: 60"""

    raw_call_gas_limit: int
    """Gas stipend for native transfers to the fill target. Default: 5000"""


@dataclass(frozen=True)
class ResolvedProtocolConfig:
    """Resolved protocol configuration with all defaults applied."""

    domain_name: str
    domain_version: str
    chain_id: int
    address: str
    weth_address: str
    permit2_address: str
    max_confidence_cap: int
    min_settlement_ratio_pct: int
    raw_call_gas_limit: int


def resolve_config(config: Optional[ProtocolConfig] = None) -> ResolvedProtocolConfig:
    """Apply defaults to a protocol config.

    Raises:
        ValueError: If an address is invalid or a limit is out of range
    """
    config = config or {}

    addresses = {}
    for key, default in (
        ("address", DEFAULT_PROTOCOL_ADDRESS),
        ("weth_address", WETH_MAINNET),
        ("permit2_address", PERMIT2_ADDRESS),
    ):
        value = config.get(key, default)
        if not is_address(value):
            raise ValueError(f"Invalid {key}: {value}")
        addresses[key] = to_checksum_address(value)

    min_ratio = config.get("min_settlement_ratio_pct", MIN_SETTLEMENT_RATIO_PCT)
    if not 0 <= min_ratio <= 100:
        raise ValueError(f"Invalid min_settlement_ratio_pct: {min_ratio}. Must be 0-100")

    max_cap = config.get("max_confidence_cap", MAX_CONFIDENCE_CAP)
    if not 0 <= max_cap <= 1_000_000:
        raise ValueError(f"Invalid max_confidence_cap: {max_cap}. Must be 0-1000000 ppm")

    return ResolvedProtocolConfig(
        domain_name=config.get("domain_name", DEFAULT_DOMAIN_NAME),
        domain_version=config.get("domain_version", DEFAULT_DOMAIN_VERSION),
        chain_id=config.get("chain_id", 1),
        address=addresses["address"],
        weth_address=addresses["weth_address"],
        permit2_address=addresses["permit2_address"],
        max_confidence_cap=max_cap,
        min_settlement_ratio_pct=min_ratio,
        raw_call_gas_limit=config.get("raw_call_gas_limit", RAW_CALL_GAS_LIMIT),
    )


_ENV_KEYS = {
    "PMM_DOMAIN_NAME": ("domain_name", str),
    "PMM_DOMAIN_VERSION": ("domain_version", str),
    "PMM_CHAIN_ID": ("chain_id", int),
    "PMM_CONTRACT_ADDRESS": ("address", str),
    "PMM_WETH_ADDRESS": ("weth_address", str),
    "PMM_PERMIT2_ADDRESS": ("permit2_address", str),
    "PMM_MAX_CONFIDENCE_CAP": ("max_confidence_cap", int),
    "PMM_MIN_SETTLEMENT_RATIO_PCT": ("min_settlement_ratio_pct", int),
    "PMM_RAW_CALL_GAS_LIMIT": ("raw_call_gas_limit", int),
}


def load_config_from_env(env_file: Optional[str] = None) -> ProtocolConfig:
    """Build a ``ProtocolConfig`` from ``PMM_*`` environment variables.

    Variables that are unset are left out so ``resolve_config`` applies its
    defaults.

    Args:
        env_file: Optional path to a .env file (default: search from cwd)
    """
    load_dotenv(env_file)

    config: ProtocolConfig = {}
    for env_name, (key, cast) in _ENV_KEYS.items():
        raw = os.environ.get(env_name)
        if raw:
            config[key] = cast(raw)  # type: ignore[literal-required]
    return config
