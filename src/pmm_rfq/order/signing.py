"""Order signing for the PMM settlement contract.

Provides EIP-712 signing functions that work with various wallet types:
- eth_account.Account (direct signing)
- Any TypedDataSigner (Privy, MetaMask, hardware wallet bridges, etc.)
"""

from typing import Any, Dict, Optional, Protocol, Tuple, TypedDict

from eth_account import Account
from eth_utils import is_address, to_bytes, to_checksum_address

from .ecdsa import recover_signature, to_compact
from .hashing import (
    DEFAULT_DOMAIN_NAME,
    DEFAULT_DOMAIN_VERSION,
    domain_separator,
    hash_order_rfq,
)
from .types import ORDER_RFQ_TYPES, Order
from .utils import ZERO_ADDRESS, same_address


class EIP712Domain(TypedDict):
    """EIP-712 domain separator."""

    name: str
    version: str
    chainId: int
    verifyingContract: str


class SmartAccountValidator(Protocol):
    """ERC-1271 ``isValidSignature`` lookup.

    Returns ``False`` for accounts without code, reverting validators and
    wrong magic values.
    """

    def is_valid_signature(self, account: str, digest: bytes, signature: bytes) -> bool:
        ...


def create_eip712_domain(
    verifying_contract: str,
    chain_id: int,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> EIP712Domain:
    """Create EIP-712 domain for the settlement contract.

    Args:
        verifying_contract: Address of the settlement contract
        chain_id: Chain ID
        name: Domain name
        version: Domain version

    Returns:
        EIP-712 domain dictionary

    Raises:
        ValueError: If the contract address is invalid
    """
    if not is_address(verifying_contract):
        raise ValueError(f"Invalid verifying contract: {verifying_contract}")

    return {
        "name": name,
        "version": version,
        "chainId": chain_id,
        "verifyingContract": to_checksum_address(verifying_contract),
    }


def sign_order_rfq(
    private_key: str,
    verifying_contract: str,
    chain_id: int,
    order: Order,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> bytes:
    """Sign an order with EIP-712 using a private key.

    Use this when you have direct access to the maker's private key.

    Args:
        private_key: Private key (hex string with or without 0x prefix)
        verifying_contract: Address of the settlement contract
        chain_id: Chain ID
        order: Order to sign
        name: Domain name
        version: Domain version

    Returns:
        65-byte packed ``r||s||v`` signature
    """
    domain = create_eip712_domain(verifying_contract, chain_id, name, version)

    account = Account.from_key(private_key)
    signed_message = account.sign_typed_data(
        domain_data=domain,
        message_types=ORDER_RFQ_TYPES,
        message_data=order.to_message(),
    )
    return bytes(signed_message.signature)


class TypedDataSigner(Protocol):
    """Protocol for signers that can sign EIP-712 typed data."""

    async def get_address(self) -> str:
        """Get the signer's address."""
        ...

    async def sign_typed_data(self, params: Dict[str, Any]) -> str:
        """Sign EIP-712 typed data.

        Args:
            params: Dict with domain, types, primaryType, and message

        Returns:
            Signature as hex string
        """
        ...


async def sign_order_rfq_with_signer(
    signer: TypedDataSigner,
    verifying_contract: str,
    chain_id: int,
    order: Order,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> bytes:
    """Sign an order with EIP-712 using any compatible signer.

    Use this when the maker key lives behind a wallet API that implements
    the TypedDataSigner protocol.

    Args:
        signer: Signer that implements TypedDataSigner protocol
        verifying_contract: Address of the settlement contract
        chain_id: Chain ID
        order: Order to sign

    Returns:
        Signature bytes as returned by the signer

    Raises:
        ValueError: If the signer is not the order's maker
    """
    signer_address = await signer.get_address()
    if not same_address(signer_address, order.maker_address):
        raise ValueError(
            f"Signer {signer_address} is not the order maker {order.maker_address}"
        )

    domain = create_eip712_domain(verifying_contract, chain_id, name, version)

    message = order.to_message()
    # Wallet APIs take JSON: big integers as strings, bytes as hex
    for key in ("rfqId", "expiry", "makerAmount", "takerAmount",
                "confidenceT", "confidenceWeight", "confidenceCap"):
        message[key] = str(message[key])
    message["permit2Signature"] = "0x" + order.permit2_signature.hex()
    message["permit2Witness"] = "0x" + order.permit2_witness.hex()

    signature = await signer.sign_typed_data(
        {
            "domain": domain,
            "types": ORDER_RFQ_TYPES,
            "primaryType": "OrderRFQ",
            "message": message,
        }
    )
    return to_bytes(hexstr=signature)


def compact_signature(signature: bytes) -> Tuple[int, int]:
    """Convert a 65-byte signature to the ``(r, vs)`` pair taken by compact fills."""
    return to_compact(signature)


def verify_order_signature(
    order: Order,
    signature: bytes,
    verifying_contract: str,
    chain_id: int,
    validator: Optional[SmartAccountValidator] = None,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> bool:
    """Verify an order signature locally before submitting it.

    EOA signatures are recovered locally. Smart-account makers need a
    ``validator`` (for example ``pmm_rfq.rpc.RpcSmartAccountValidator``)
    that can run ERC-1271 against the chain.

    Args:
        order: The signed order
        signature: Signature bytes
        verifying_contract: Address of the settlement contract
        chain_id: Chain ID
        validator: Optional ERC-1271 validator for smart-account makers

    Returns:
        True if the signature authorizes the order
    """
    if same_address(order.maker_address, ZERO_ADDRESS):
        return False
    digest = hash_order_rfq(
        order, domain_separator(name, version, chain_id, verifying_contract)
    )
    if len(signature) in (64, 65) and same_address(
        recover_signature(digest, signature), order.maker_address
    ):
        return True
    if validator is None:
        return False
    return validator.is_valid_signature(order.maker_address, digest, signature)
