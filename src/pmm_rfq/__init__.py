"""pmm-rfq: settlement engine and maker tooling for PMM RFQ orders."""

__version__ = "0.1.0"

from .errors import (
    PmmError,
    OrderError,
    ExecutionReverted,
    BadSignature,
    OrderExpired,
    MakerAmountExceeded,
    TakerAmountExceeded,
    ZeroAmount,
    AlreadyInvalidated,
    AlreadyCancelledOrUsed,
    AmountTooLarge,
    SettlementTooSmall,
    ConfidenceCapExceeded,
    InvalidNativeValue,
    ZeroDestination,
    NativeTransferFailed,
    NativeDepositRejected,
    ReentrantCall,
    PermitPayloadMalformed,
    DirectTransferFailed,
    SafeTransferFailed,
    SafeTransferFromFailed,
    ForceApproveFailed,
    SafePermitFailed,
    AssetNotContract,
)
from .order import Order, sign_order_rfq, verify_order_signature
from .settlement import (
    FillRequest,
    FillResult,
    PmmProtocol,
    ProtocolConfig,
    load_config_from_env,
    resolve_config,
)

__all__ = [
    "__version__",
    # Errors
    "PmmError",
    "OrderError",
    "ExecutionReverted",
    "BadSignature",
    "OrderExpired",
    "MakerAmountExceeded",
    "TakerAmountExceeded",
    "ZeroAmount",
    "AlreadyInvalidated",
    "AlreadyCancelledOrUsed",
    "AmountTooLarge",
    "SettlementTooSmall",
    "ConfidenceCapExceeded",
    "InvalidNativeValue",
    "ZeroDestination",
    "NativeTransferFailed",
    "NativeDepositRejected",
    "ReentrantCall",
    "PermitPayloadMalformed",
    "DirectTransferFailed",
    "SafeTransferFailed",
    "SafeTransferFromFailed",
    "ForceApproveFailed",
    "SafePermitFailed",
    "AssetNotContract",
    # Orders
    "Order",
    "sign_order_rfq",
    "verify_order_signature",
    # Settlement
    "PmmProtocol",
    "FillRequest",
    "FillResult",
    "ProtocolConfig",
    "resolve_config",
    "load_config_from_env",
]
