"""RFQ Order Module.

This module provides the maker/taker side of RFQ orders for the PMM
settlement contract.

Key components:
- Order type and EIP-712 hashing (domain separator, struct hash, digest)
- Order signing (private key or any TypedDataSigner) and local verification
- Permit2 signature-transfer helpers (witness hashes, witness type strings)
- EIP-2612 permits for the taker asset
- Utility functions for amount formatting

Example usage:
    ```python
    import time
    from pmm_rfq.order import Order, sign_order_rfq, compact_signature

    order = Order(
        rfq_id=1,
        expiry=int(time.time()) + 90,
        maker_asset="0x...",
        taker_asset="0x...",
        maker_address="0x...",
        maker_amount=100 * 10**18,
        taker_amount=5 * 10**17,
    )

    # Sign with the maker's private key
    signature = sign_order_rfq(
        private_key="0x...",
        verifying_contract="0x...",
        chain_id=42161,
        order=order,
    )

    # Compact (r, vs) form for fill_order_rfq_compact
    r, vs = compact_signature(signature)
    ```
"""

from .types import Order, ORDER_RFQ_TYPES
from .hashing import (
    DEFAULT_DOMAIN_NAME,
    DEFAULT_DOMAIN_VERSION,
    ORDER_RFQ_TYPE,
    ORDER_RFQ_TYPEHASH,
    domain_separator,
    hash_order_rfq,
    hash_order_rfq_struct,
    hash_typed_data,
)
from .signing import (
    create_eip712_domain,
    sign_order_rfq,
    sign_order_rfq_with_signer,
    compact_signature,
    verify_order_signature,
    TypedDataSigner,
)
from .permit2 import (
    TokenPermissions,
    PermitTransferFrom,
    SignatureTransferDetails,
    EXAMPLE_WITNESS_TYPE_STRING,
    CONSIDERATION_TYPE_STRING,
    PERMIT2_DOMAIN_SEPARATORS,
    permit2_domain_separator,
    sign_permit2,
    sign_permit2_with_witness,
    generate_permit2_witness_type,
    calculate_witness,
)
from .erc20_permit import (
    Erc20Permit,
    sign_erc20_permit,
    encode_erc20_permit,
    decode_erc20_permit,
)
from .utils import (
    ZERO_ADDRESS,
    PERMIT2_ADDRESS,
    WETH_MAINNET,
    format_amount,
    parse_amount,
    format_ppm,
)

__all__ = [
    # Types
    "Order",
    "ORDER_RFQ_TYPES",
    "TypedDataSigner",
    # Hashing
    "DEFAULT_DOMAIN_NAME",
    "DEFAULT_DOMAIN_VERSION",
    "ORDER_RFQ_TYPE",
    "ORDER_RFQ_TYPEHASH",
    "domain_separator",
    "hash_order_rfq",
    "hash_order_rfq_struct",
    "hash_typed_data",
    # Signing
    "create_eip712_domain",
    "sign_order_rfq",
    "sign_order_rfq_with_signer",
    "compact_signature",
    "verify_order_signature",
    # Permit2
    "TokenPermissions",
    "PermitTransferFrom",
    "SignatureTransferDetails",
    "EXAMPLE_WITNESS_TYPE_STRING",
    "CONSIDERATION_TYPE_STRING",
    "PERMIT2_DOMAIN_SEPARATORS",
    "permit2_domain_separator",
    "sign_permit2",
    "sign_permit2_with_witness",
    "generate_permit2_witness_type",
    "calculate_witness",
    # EIP-2612
    "Erc20Permit",
    "sign_erc20_permit",
    "encode_erc20_permit",
    "decode_erc20_permit",
    # Utils
    "ZERO_ADDRESS",
    "PERMIT2_ADDRESS",
    "WETH_MAINNET",
    "format_amount",
    "parse_amount",
    "format_ppm",
]
