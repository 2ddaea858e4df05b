"""Asset movement for the two legs of a fill.

The maker leg goes through one of four routes, picked once per fill from the
order:

* ``DirectRoute``: plain ERC-20 allowance to the settlement contract;
* ``AllowanceRoute``: standing Permit2 allowance;
* ``SignatureRoute``: Permit2 signature transfer signed over the order's
  full ``maker_amount``, ``rfq_id`` as nonce and ``expiry`` as deadline;
* ``WitnessSignatureRoute``: the same with a witness bound in.

Either route can deliver WETH to the protocol for unwrapping into native
value. The taker leg pays the maker directly, wrapping native value when the
taker asset is WETH.
"""

import logging
from dataclasses import dataclass
from typing import Union

from ..errors import (
    AmountTooLarge,
    ExecutionReverted,
    InvalidNativeValue,
    NativeTransferFailed,
)
from ..order.permit2 import PermitTransferFrom, SignatureTransferDetails, TokenPermissions
from ..order.types import Order
from ..order.utils import UINT160_MAX, same_address
from .config import ResolvedProtocolConfig
from .interfaces import (
    DelegatedTransferService,
    DirectTransferService,
    Runtime,
    WrappedNativeService,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectRoute:
    pass


@dataclass(frozen=True)
class AllowanceRoute:
    pass


@dataclass(frozen=True)
class SignatureRoute:
    signature: bytes


@dataclass(frozen=True)
class WitnessSignatureRoute:
    signature: bytes
    witness: bytes
    witness_type: str


MakerRoute = Union[DirectRoute, AllowanceRoute, SignatureRoute, WitnessSignatureRoute]


def select_maker_route(order: Order) -> MakerRoute:
    if not order.use_permit2:
        return DirectRoute()
    if not order.permit2_signature:
        return AllowanceRoute()
    if not order.permit2_witness_type:
        return SignatureRoute(order.permit2_signature)
    return WitnessSignatureRoute(
        order.permit2_signature, order.permit2_witness, order.permit2_witness_type
    )


class AuthorizationGateway:
    def __init__(
        self,
        config: ResolvedProtocolConfig,
        runtime: Runtime,
        direct: DirectTransferService,
        delegated: DelegatedTransferService,
        wrapped_native: WrappedNativeService,
    ):
        self.config = config
        self.runtime = runtime
        self.direct = direct
        self.delegated = delegated
        self.wrapped_native = wrapped_native

    def pay_maker_leg(
        self,
        order: Order,
        route: MakerRoute,
        maker_amount: int,
        target: str,
        unwrap: bool = False,
    ) -> None:
        """Move ``maker_amount`` of the maker asset to ``target``.

        Raises:
            AmountTooLarge: Permit2 route with an amount above uint160
            DirectTransferFailed: Direct route transfer failed
            NativeTransferFailed: Unwrapped value could not be delivered
        """
        unwrap = unwrap and same_address(order.maker_asset, self.config.weth_address)
        receiver = self.config.address if unwrap else target

        if not isinstance(route, DirectRoute) and maker_amount > UINT160_MAX:
            raise AmountTooLarge(order.rfq_id, amount=maker_amount)

        if isinstance(route, DirectRoute):
            self.direct.transfer_from(
                order.maker_asset, order.maker_address, receiver, maker_amount
            )
        elif isinstance(route, AllowanceRoute):
            self.delegated.transfer_from(
                order.maker_address, receiver, maker_amount, order.maker_asset
            )
        else:
            # The signature covers the full quoted amount; only maker_amount moves
            permit = PermitTransferFrom(
                permitted=TokenPermissions(order.maker_asset, order.maker_amount),
                nonce=order.rfq_id,
                deadline=order.expiry,
            )
            details = SignatureTransferDetails(to=receiver, requested_amount=maker_amount)
            if isinstance(route, SignatureRoute):
                self.delegated.permit_transfer_from(
                    permit, details, order.maker_address, route.signature
                )
            else:
                self.delegated.permit_witness_transfer_from(
                    permit,
                    details,
                    order.maker_address,
                    route.witness,
                    route.witness_type,
                    route.signature,
                )

        if unwrap:
            self.wrapped_native.withdraw(maker_amount)
            try:
                self.runtime.send_native(
                    self.config.address,
                    target,
                    maker_amount,
                    gas_limit=self.config.raw_call_gas_limit,
                )
            except ExecutionReverted as e:
                raise NativeTransferFailed(target, maker_amount) from e

        logger.debug(
            "Maker leg paid: rfq_id=%s route=%s amount=%s unwrap=%s",
            order.rfq_id,
            type(route).__name__,
            maker_amount,
            unwrap,
        )

    def pay_taker_leg(self, order: Order, taker_amount: int, taker: str, value: int) -> None:
        """Move ``taker_amount`` of the taker asset from ``taker`` to the maker.

        ``value`` is the native value attached to the call and already held
        by the protocol.

        Raises:
            InvalidNativeValue: ``value`` doesn't match the taker leg
            DirectTransferFailed: Taker transfer failed
        """
        if same_address(order.taker_asset, self.config.weth_address) and value > 0:
            if value != taker_amount:
                raise InvalidNativeValue(order.rfq_id, value=value, expected=taker_amount)
            self.wrapped_native.deposit(taker_amount)
            self.direct.transfer(order.taker_asset, order.maker_address, taker_amount)
        else:
            if value != 0:
                raise InvalidNativeValue(order.rfq_id, value=value, expected=0)
            self.direct.transfer_from(
                order.taker_asset, taker, order.maker_address, taker_amount
            )
