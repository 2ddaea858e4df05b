"""Utility functions and well-known addresses for RFQ orders."""

from decimal import Decimal


# Zero address
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Canonical Permit2 deployment (same address on every chain)
PERMIT2_ADDRESS = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

# Wrapped ether on Ethereum mainnet
WETH_MAINNET = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

UINT256_MAX = 2**256 - 1
UINT160_MAX = 2**160 - 1
UINT64_MASK = 2**64 - 1

# Confidence values are expressed in parts per million
PPM = 1_000_000


def same_address(a: str, b: str) -> bool:
    """Compare two addresses ignoring checksum casing."""
    return a.lower() == b.lower()


def format_amount(amount: int, decimals: int = 18) -> str:
    """Format a raw token amount to a human readable string.

    Args:
        amount: Raw integer amount (e.g., 1500000000000000000)
        decimals: Token decimals

    Returns:
        Human readable string (e.g., "1.5")
    """
    text = f"{Decimal(amount) / (Decimal(10) ** decimals):.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_amount(amount: str, decimals: int = 18) -> int:
    """Parse a human readable amount to raw token units.

    Uses ``Decimal`` so values such as "0.1" convert exactly.

    Args:
        amount: Human readable amount (e.g., "100" or "0.5")
        decimals: Token decimals

    Returns:
        Raw integer amount
    """
    return int(Decimal(str(amount)) * (Decimal(10) ** decimals))


def format_ppm(ppm: int) -> str:
    """Format parts-per-million to a percentage string (e.g., 50000 -> "5%")."""
    return f"{Decimal(ppm) / Decimal(10_000)}%"
