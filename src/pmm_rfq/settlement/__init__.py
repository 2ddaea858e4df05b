"""RFQ Settlement Module.

This module settles signed RFQ orders between a maker and a taker.

Key components:
- PmmProtocol: the fill / cancel / view entry points
- Signature verification (plain key, EIP-2098 compact, ERC-1271)
- Replay bitmap per maker
- Fill amount derivation, minimum settlement ratio and confidence decay
- Authorization gateway for the maker leg (direct, Permit2 allowance,
  Permit2 signature, Permit2 witness) with WETH wrap/unwrap
- Configuration from dicts or PMM_* environment variables

Example usage:
    ```python
    from pmm_rfq.ledger import Ledger
    from pmm_rfq.settlement import PmmProtocol, FillRequest

    ledger = Ledger(chain_id=42161)
    protocol = PmmProtocol.deploy_on_ledger(ledger, {"chain_id": 42161})

    # Fill half of the quoted taker amount
    flags = FillRequest(amount=order.taker_amount // 2).encode()
    result = protocol.fill_order_rfq(order, signature, flags, sender=taker)
    ```
"""

from .amounts import (
    AMOUNT_MASK,
    IS_VALID_SIGNATURE_65_BYTES,
    MAKER_AMOUNT_FLAG,
    MIN_SETTLEMENT_RATIO_PCT,
    SIGNER_SMART_CONTRACT_HINT,
    UNWRAP_WETH_FLAG,
    FillRequest,
    check_settlement_ratio,
    compute_fill_amounts,
)
from .confidence import (
    MAX_CONFIDENCE_CAP,
    apply_confidence_decay,
    check_confidence_cap,
    confidence_cut,
    is_decay_enabled,
)
from .config import (
    DEFAULT_PROTOCOL_ADDRESS,
    ProtocolConfig,
    ResolvedProtocolConfig,
    load_config_from_env,
    resolve_config,
)
from .events import OrderCancelledRFQ, OrderFilledRFQ
from .gateway import (
    AllowanceRoute,
    AuthorizationGateway,
    DirectRoute,
    MakerRoute,
    SignatureRoute,
    WitnessSignatureRoute,
    select_maker_route,
)
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
from .protocol import FillResult, PmmProtocol
from .signature import SignatureVerifier

__all__ = [
    # Protocol
    "PmmProtocol",
    "FillResult",
    "OrderFilledRFQ",
    "OrderCancelledRFQ",
    # Amounts
    "MAKER_AMOUNT_FLAG",
    "SIGNER_SMART_CONTRACT_HINT",
    "IS_VALID_SIGNATURE_65_BYTES",
    "UNWRAP_WETH_FLAG",
    "AMOUNT_MASK",
    "MIN_SETTLEMENT_RATIO_PCT",
    "FillRequest",
    "compute_fill_amounts",
    "check_settlement_ratio",
    # Confidence
    "MAX_CONFIDENCE_CAP",
    "is_decay_enabled",
    "check_confidence_cap",
    "confidence_cut",
    "apply_confidence_decay",
    # Config
    "DEFAULT_PROTOCOL_ADDRESS",
    "ProtocolConfig",
    "ResolvedProtocolConfig",
    "resolve_config",
    "load_config_from_env",
    # Components
    "AuthorizationGateway",
    "MakerRoute",
    "DirectRoute",
    "AllowanceRoute",
    "SignatureRoute",
    "WitnessSignatureRoute",
    "select_maker_route",
    "InvalidatorBitmap",
    "SignatureVerifier",
    "ReentrancyGuard",
    "nonreentrant",
    # Interfaces
    "DirectTransferService",
    "DelegatedTransferService",
    "WrappedNativeService",
    "SmartAccountValidator",
    "BitmapStore",
    "Runtime",
]
