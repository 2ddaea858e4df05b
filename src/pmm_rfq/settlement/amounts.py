"""Fill amount calculation.

A fill request is packed into one uint256, ``flags_and_amount``: the top four
bits are flags and the rest is the requested amount. A zero amount fills the
whole order; otherwise the amount is maker- or taker-denominated and the
other side is derived proportionally, rounding in the maker's favour (taker
amounts round up, maker amounts round down).
"""

from dataclasses import dataclass
from typing import Tuple

from ..errors import (
    MakerAmountExceeded,
    SettlementTooSmall,
    TakerAmountExceeded,
    ZeroAmount,
)
from ..order.types import Order

MAKER_AMOUNT_FLAG = 1 << 255
SIGNER_SMART_CONTRACT_HINT = 1 << 254
IS_VALID_SIGNATURE_65_BYTES = 1 << 253
UNWRAP_WETH_FLAG = 1 << 252
AMOUNT_MASK = (1 << 252) - 1

MIN_SETTLEMENT_RATIO_PCT = 60


@dataclass(frozen=True)
class FillRequest:
    amount: int = 0
    maker_denominated: bool = False
    smart_account_hint: bool = False
    require_65_bytes: bool = False
    unwrap: bool = False

    @classmethod
    def decode(cls, flags_and_amount: int) -> "FillRequest":
        return cls(
            amount=flags_and_amount & AMOUNT_MASK,
            maker_denominated=bool(flags_and_amount & MAKER_AMOUNT_FLAG),
            smart_account_hint=bool(flags_and_amount & SIGNER_SMART_CONTRACT_HINT),
            require_65_bytes=bool(flags_and_amount & IS_VALID_SIGNATURE_65_BYTES),
            unwrap=bool(flags_and_amount & UNWRAP_WETH_FLAG),
        )

    def encode(self) -> int:
        if self.amount > AMOUNT_MASK:
            raise ValueError(f"Invalid amount: {self.amount}. Must fit in 252 bits")
        flags = 0
        if self.maker_denominated:
            flags |= MAKER_AMOUNT_FLAG
        if self.smart_account_hint:
            flags |= SIGNER_SMART_CONTRACT_HINT
        if self.require_65_bytes:
            flags |= IS_VALID_SIGNATURE_65_BYTES
        if self.unwrap:
            flags |= UNWRAP_WETH_FLAG
        return flags | self.amount


def compute_fill_amounts(order: Order, request: FillRequest) -> Tuple[int, int]:
    """Return the pre-decay ``(maker_amount, taker_amount)`` of a fill.

    Raises:
        MakerAmountExceeded: Maker-denominated request above the quote
        TakerAmountExceeded: Taker-denominated request above the quote
        ZeroAmount: Either side of the fill is zero
    """
    if request.amount == 0:
        maker_amount, taker_amount = order.maker_amount, order.taker_amount
    elif request.maker_denominated:
        maker_amount = request.amount
        if maker_amount > order.maker_amount:
            raise MakerAmountExceeded(
                order.rfq_id, requested=maker_amount, quoted=order.maker_amount
            )
        taker_amount = (
            maker_amount * order.taker_amount + order.maker_amount - 1
        ) // order.maker_amount
    else:
        taker_amount = request.amount
        if taker_amount > order.taker_amount:
            raise TakerAmountExceeded(
                order.rfq_id, requested=taker_amount, quoted=order.taker_amount
            )
        maker_amount = taker_amount * order.maker_amount // order.taker_amount

    if maker_amount == 0 or taker_amount == 0:
        raise ZeroAmount(order.rfq_id)
    return maker_amount, taker_amount


def check_settlement_ratio(
    order: Order,
    maker_amount: int,
    taker_amount: int,
    min_ratio_pct: int = MIN_SETTLEMENT_RATIO_PCT,
) -> None:
    """Reject fills below ``min_ratio_pct`` percent of either quoted amount.

    Runs on pre-decay amounts; confidence decay may take the realized maker
    amount below the ratio afterwards.

    Raises:
        SettlementTooSmall: Either side is below the minimum ratio
    """
    if (
        maker_amount * 100 < order.maker_amount * min_ratio_pct
        or taker_amount * 100 < order.taker_amount * min_ratio_pct
    ):
        raise SettlementTooSmall(
            order.rfq_id,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            min_ratio_pct=min_ratio_pct,
        )
