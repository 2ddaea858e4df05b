"""Records emitted by the settlement protocol."""

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderFilledRFQ:
    """A settled fill, with quoted and realized amounts."""

    order_hash: bytes
    rfq_id: int
    maker: str
    taker: str
    target: str
    maker_asset: str
    taker_asset: str
    maker_amount: int
    """Quoted maker amount."""
    taker_amount: int
    """Quoted taker amount."""
    maker_amount_filled: int
    """Maker amount actually moved, after confidence decay."""
    taker_amount_filled: int
    """Taker amount actually moved."""


@dataclass(frozen=True)
class OrderCancelledRFQ:
    rfq_id: int
    maker: str
