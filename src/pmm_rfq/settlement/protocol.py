"""PMM RFQ settlement protocol.

``PmmProtocol`` exposes the settlement contract's entry points. A fill runs
as one atomic transaction inside a reentrancy guard:

1. reject a zero target and an expired order;
2. hash the order and verify the maker signature;
3. consume ``(maker, rfq_id)`` in the replay bitmap;
4. derive the fill amounts and check the minimum settlement ratio;
5. apply confidence decay to the maker amount;
6. pay the maker leg, then the taker leg;
7. emit ``OrderFilledRFQ``.

Any failure restores the ledger, so no leg, bitmap bit or event survives a
rejected fill.
"""

import logging
from typing import NamedTuple, Optional

from eth_utils import to_checksum_address

from ..errors import (
    AlreadyCancelledOrUsed,
    ExecutionReverted,
    NativeDepositRejected,
    OrderExpired,
    PmmError,
    ZeroDestination,
)
from ..order.hashing import domain_separator, hash_order_rfq
from ..order.types import Order
from ..order.utils import ZERO_ADDRESS, same_address
from .amounts import FillRequest, check_settlement_ratio, compute_fill_amounts
from .config import ProtocolConfig, ResolvedProtocolConfig, resolve_config
from .confidence import apply_confidence_decay, check_confidence_cap
from .events import OrderCancelledRFQ, OrderFilledRFQ
from .gateway import AuthorizationGateway, select_maker_route
from .guard import ReentrancyGuard, nonreentrant
from .interfaces import (
    BitmapStore,
    DelegatedTransferService,
    DirectTransferService,
    Runtime,
    SmartAccountValidator,
    WrappedNativeService,
)
from .invalidator import InvalidatorBitmap
from .signature import SignatureVerifier

logger = logging.getLogger(__name__)


class FillResult(NamedTuple):
    maker_amount: int
    taker_amount: int
    order_hash: bytes


class PmmProtocol:
    """Settlement contract for signed RFQ orders.

    Every entry point takes the caller as ``sender``; fills also take the
    native ``value`` attached to the call.

    Example:
        ```python
        ledger = Ledger(chain_id=42161)
        protocol = PmmProtocol.deploy_on_ledger(ledger, {"chain_id": 42161})

        maker_amount, taker_amount, order_hash = protocol.fill_order_rfq(
            order, signature, 0, sender=taker
        )
        ```
    """

    def __init__(
        self,
        config: ResolvedProtocolConfig,
        runtime: Runtime,
        invalidator_store: BitmapStore,
        direct: DirectTransferService,
        delegated: DelegatedTransferService,
        wrapped_native: WrappedNativeService,
        validator: SmartAccountValidator,
    ):
        self.config = config
        self.address = config.address
        self.runtime = runtime
        self.invalidator = InvalidatorBitmap(invalidator_store)
        self.verifier = SignatureVerifier(validator)
        self.gateway = AuthorizationGateway(config, runtime, direct, delegated, wrapped_native)
        self.direct = direct
        self._domain_separator = domain_separator(
            config.domain_name, config.domain_version, config.chain_id, config.address
        )
        self._guard = ReentrancyGuard()

    @classmethod
    def deploy_on_ledger(cls, ledger, config: Optional[ProtocolConfig] = None) -> "PmmProtocol":
        """Deploy the protocol on an in-memory ledger.

        Deploys WETH and Permit2 fakes at the configured addresses unless
        contracts already live there. ``chain_id`` defaults to the ledger's.
        """
        from ..ledger import (
            LedgerDirectTransfers,
            LedgerPermit2Transfers,
            LedgerSmartAccountValidator,
            LedgerWrappedNative,
            Permit2,
            WrappedNative,
        )

        config = dict(config or {})
        config.setdefault("chain_id", ledger.chain_id)
        resolved = resolve_config(config)  # type: ignore[arg-type]

        weth = ledger.code_at(resolved.weth_address) or WrappedNative(
            ledger, resolved.weth_address
        )
        permit2 = ledger.code_at(resolved.permit2_address) or Permit2(
            ledger, resolved.permit2_address
        )

        protocol = cls(
            config=resolved,
            runtime=ledger,
            invalidator_store=ledger.bitmap(resolved.address),
            direct=LedgerDirectTransfers(ledger, resolved.address),
            delegated=LedgerPermit2Transfers(permit2, resolved.address),
            wrapped_native=LedgerWrappedNative(weth, resolved.address),
            validator=LedgerSmartAccountValidator(ledger),
        )
        ledger.deploy(resolved.address, protocol)
        return protocol

    # --- Views ---

    def domain_separator(self) -> bytes:
        return self._domain_separator

    def hash_order_rfq(self, order: Order) -> bytes:
        return hash_order_rfq(order, self._domain_separator)

    def invalidator_for_order_rfq(self, maker: str, slot: int) -> int:
        """Return the 256-bit invalidator word of ``maker`` at ``slot``."""
        return self.invalidator.word(maker, slot)

    def is_rfq_id_used(self, maker: str, rfq_id: int) -> bool:
        return self.invalidator.is_used(maker, rfq_id)

    # --- Cancellation ---

    def cancel_order_rfq(self, rfq_id: int, *, sender: str) -> None:
        """Cancel the caller's order ``rfq_id``.

        Raises:
            AlreadyCancelledOrUsed: If the order was already filled or cancelled
        """
        sender = to_checksum_address(sender)
        with self.runtime.atomic():
            if self.invalidator.is_used(sender, rfq_id):
                raise AlreadyCancelledOrUsed(rfq_id, maker=sender)
            self.invalidator.invalidate(sender, rfq_id)
            self.runtime.emit(OrderCancelledRFQ(rfq_id=rfq_id, maker=sender))
        logger.info("Order cancelled: maker=%s rfq_id=%s", sender, rfq_id)

    # --- Fills ---

    def fill_order_rfq(
        self,
        order: Order,
        signature: bytes,
        flags_and_amount: int,
        *,
        sender: str,
        value: int = 0,
    ) -> FillResult:
        """Fill an order, sending the maker asset to the caller."""
        return self.fill_order_rfq_to(
            order, signature, flags_and_amount, sender, sender=sender, value=value
        )

    @nonreentrant
    def fill_order_rfq_compact(
        self,
        order: Order,
        r: int,
        vs: int,
        flags_and_amount: int,
        *,
        sender: str,
        value: int = 0,
    ) -> FillResult:
        """Fill an order signed with an EIP-2098 ``(r, vs)`` signature.

        The ``SIGNER_SMART_CONTRACT_HINT`` flag routes verification to
        ERC-1271; ``IS_VALID_SIGNATURE_65_BYTES`` passes the expanded 65-byte
        signature to it.
        """
        request = FillRequest.decode(flags_and_amount)

        def verify(order_hash: bytes) -> None:
            self.verifier.verify_compact(
                order.rfq_id,
                order.maker_address,
                order_hash,
                r,
                vs,
                smart_account_hint=request.smart_account_hint,
                require_65_bytes=request.require_65_bytes,
            )

        return self._settle(order, request, verify, sender, sender, value)

    @nonreentrant
    def fill_order_rfq_to(
        self,
        order: Order,
        signature: bytes,
        flags_and_amount: int,
        target: str,
        *,
        sender: str,
        value: int = 0,
    ) -> FillResult:
        """Fill an order, sending the maker asset to ``target``."""
        request = FillRequest.decode(flags_and_amount)

        def verify(order_hash: bytes) -> None:
            self.verifier.verify(order.rfq_id, order.maker_address, order_hash, signature)

        return self._settle(order, request, verify, target, sender, value)

    @nonreentrant
    def fill_order_rfq_to_with_permit(
        self,
        order: Order,
        signature: bytes,
        flags_and_amount: int,
        target: str,
        permit: bytes,
        *,
        sender: str,
        value: int = 0,
    ) -> FillResult:
        """Apply the taker's EIP-2612 permit for the taker asset, then fill.

        Raises:
            PermitPayloadMalformed: If ``permit`` is not a 224-byte payload
        """
        request = FillRequest.decode(flags_and_amount)

        def verify(order_hash: bytes) -> None:
            self.verifier.verify(order.rfq_id, order.maker_address, order_hash, signature)

        with self.runtime.atomic():
            self.direct.permit(order.taker_asset, permit)
            return self._settle(order, request, verify, target, sender, value)

    def _settle(self, order, request, verify, target, sender, value) -> FillResult:
        sender = to_checksum_address(sender)
        try:
            with self.runtime.atomic():
                result = self._fill(order, request, verify, target, sender, value)
        except (PmmError, ExecutionReverted) as e:
            logger.warning("Fill rejected: rfq_id=%s maker=%s error=%s",
                           order.rfq_id, order.maker_address, e)
            raise
        logger.info(
            "Order filled: rfq_id=%s maker=%s taker=%s maker_amount=%s taker_amount=%s",
            order.rfq_id,
            order.maker_address,
            sender,
            result.maker_amount,
            result.taker_amount,
        )
        return result

    def _fill(
        self,
        order: Order,
        request: FillRequest,
        verify,
        target: str,
        sender: str,
        value: int,
    ) -> FillResult:
        if same_address(target, ZERO_ADDRESS):
            raise ZeroDestination()
        target = to_checksum_address(target)

        self.runtime.attach_value(sender, self.address, value)

        now = self.runtime.timestamp
        if now > order.expiry:
            raise OrderExpired(order.rfq_id, expiry=order.expiry, now=now)

        order_hash = self.hash_order_rfq(order)
        verify(order_hash)

        self.invalidator.invalidate(order.maker_address, order.rfq_id)

        maker_amount, taker_amount = compute_fill_amounts(order, request)
        check_settlement_ratio(
            order, maker_amount, taker_amount, self.config.min_settlement_ratio_pct
        )

        check_confidence_cap(order, self.config.max_confidence_cap)
        maker_amount = apply_confidence_decay(order, maker_amount, now)

        route = select_maker_route(order)
        self.gateway.pay_maker_leg(order, route, maker_amount, target, request.unwrap)
        self.gateway.pay_taker_leg(order, taker_amount, sender, value)

        self.runtime.emit(
            OrderFilledRFQ(
                order_hash=order_hash,
                rfq_id=order.rfq_id,
                maker=order.maker_address,
                taker=sender,
                target=target,
                maker_asset=order.maker_asset,
                taker_asset=order.taker_asset,
                maker_amount=order.maker_amount,
                taker_amount=order.taker_amount,
                maker_amount_filled=maker_amount,
                taker_amount_filled=taker_amount,
            )
        )
        return FillResult(maker_amount, taker_amount, order_hash)

    # --- Native value ---

    def receive_native(self, sender: str, amount: int, gas_limit: Optional[int]) -> None:
        """Only the wrapped-native contract may send native value here.

        Raises:
            NativeDepositRejected: For any other sender
        """
        if not same_address(sender, self.config.weth_address):
            raise NativeDepositRejected(sender)
