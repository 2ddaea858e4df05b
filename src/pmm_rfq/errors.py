"""Error hierarchy for RFQ settlement.

Every failure aborts the whole settlement call. Order-scoped errors carry the
``rfq_id`` of the order that was rejected.
"""

from typing import Any, Dict, Optional


class PmmError(Exception):
    """Base exception for all settlement errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class OrderError(PmmError):
    """Failure tied to a specific RFQ order."""

    default_message = "order rejected"

    def __init__(self, rfq_id: int, **details: Any):
        super().__init__(self.default_message, {"rfq_id": rfq_id, **details})
        self.rfq_id = rfq_id


class ZeroDestination(PmmError):
    """Raised when the fill target is the zero address."""

    def __init__(self):
        super().__init__("zero target is forbidden")


class NativeTransferFailed(PmmError):
    """Raised when forwarding unwrapped native value to the target fails."""

    def __init__(self, target: str, amount: int):
        super().__init__("native transfer failed", {"target": target, "amount": amount})


class NativeDepositRejected(PmmError):
    """Raised when native value arrives from anyone but the wrapped-native contract."""

    def __init__(self, sender: str):
        super().__init__("native deposit rejected", {"sender": sender})


class ReentrantCall(PmmError):
    """Raised when a fill re-enters the protocol before the outer call finished."""

    def __init__(self):
        super().__init__("reentrant call")


class PermitPayloadMalformed(PmmError):
    """Raised when a taker permit is not a 7-word ABI payload."""

    def __init__(self, length: int):
        super().__init__("permit payload malformed", {"length": length})


class BadSignature(OrderError):
    default_message = "bad signature"


class OrderExpired(OrderError):
    default_message = "order expired"


class MakerAmountExceeded(OrderError):
    default_message = "maker amount exceeded"


class TakerAmountExceeded(OrderError):
    default_message = "taker amount exceeded"


class ZeroAmount(OrderError):
    default_message = "can't swap 0 amount"


class AlreadyInvalidated(OrderError):
    default_message = "invalidated order"


class AlreadyCancelledOrUsed(OrderError):
    default_message = "order already cancelled or used"


class AmountTooLarge(OrderError):
    default_message = "amount exceeds permit2 uint160 limit"


class SettlementTooSmall(OrderError):
    default_message = "settlement amount below minimum ratio"


class ConfidenceCapExceeded(OrderError):
    default_message = "confidence cap exceeds protocol ceiling"


class InvalidNativeValue(OrderError):
    default_message = "invalid msg.value"


class DirectTransferFailed(PmmError):
    """Raised when the direct-authorization transfer service fails."""

    default_message = "direct transfer failed"

    def __init__(self, asset: str, **details: Any):
        super().__init__(self.default_message, {"asset": asset, **details})
        self.asset = asset


class SafeTransferFailed(DirectTransferFailed):
    default_message = "safe transfer failed"


class SafeTransferFromFailed(DirectTransferFailed):
    default_message = "safe transferFrom failed"


class ForceApproveFailed(DirectTransferFailed):
    default_message = "force approve failed"


class SafePermitFailed(DirectTransferFailed):
    default_message = "safe permit failed"


class AssetNotContract(DirectTransferFailed):
    default_message = "asset is not a contract"


class ExecutionReverted(Exception):
    """A call into an external contract reverted."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
