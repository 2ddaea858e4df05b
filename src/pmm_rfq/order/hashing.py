"""EIP-712 hashing for RFQ orders.

The order hash is a two-level typed-data hash: a domain separator binding
the protocol name, version, chain and verifying contract, and a struct hash
over every order field in declared order. Dynamic fields
(``permit2Signature`` and ``permit2WitnessType``) enter the struct hash as
their keccak256, never inline.
"""

from eth_abi import encode
from eth_utils import keccak

from .types import Order

EIP712_DOMAIN_TYPE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)

ORDER_RFQ_TYPE = (
    "OrderRFQ("
    "uint256 rfqId,"
    "uint256 expiry,"
    "address makerAsset,"
    "address takerAsset,"
    "address makerAddress,"
    "uint256 makerAmount,"
    "uint256 takerAmount,"
    "bool usePermit2,"
    "uint256 confidenceT,"
    "uint256 confidenceWeight,"
    "uint256 confidenceCap,"
    "bytes permit2Signature,"
    "bytes32 permit2Witness,"
    "string permit2WitnessType"
    ")"
)

EIP712_DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)
ORDER_RFQ_TYPEHASH = keccak(text=ORDER_RFQ_TYPE)

DEFAULT_DOMAIN_NAME = "OnChain Labs PMM Protocol"
DEFAULT_DOMAIN_VERSION = "1.0"


def domain_separator(
    name: str, version: str, chain_id: int, verifying_contract: str
) -> bytes:
    """Compute the EIP-712 domain separator of the settlement contract.

    Args:
        name: Domain name
        version: Domain version
        chain_id: Chain ID
        verifying_contract: Address of the settlement contract

    Returns:
        32-byte domain separator
    """
    encoded = encode(
        ["bytes32", "bytes32", "bytes32", "uint256", "address"],
        [
            EIP712_DOMAIN_TYPEHASH,
            keccak(text=name),
            keccak(text=version),
            chain_id,
            verifying_contract,
        ],
    )
    return keccak(encoded)


def hash_order_rfq_struct(order: Order) -> bytes:
    """Compute the EIP-712 struct hash of an order."""
    encoded = encode(
        [
            "bytes32",
            "uint256",
            "uint256",
            "address",
            "address",
            "address",
            "uint256",
            "uint256",
            "bool",
            "uint256",
            "uint256",
            "uint256",
            "bytes32",
            "bytes32",
            "bytes32",
        ],
        [
            ORDER_RFQ_TYPEHASH,
            order.rfq_id,
            order.expiry,
            order.maker_asset,
            order.taker_asset,
            order.maker_address,
            order.maker_amount,
            order.taker_amount,
            order.use_permit2,
            order.confidence_t,
            order.confidence_weight,
            order.confidence_cap,
            keccak(order.permit2_signature),  # Hashed, not inlined
            order.permit2_witness,
            keccak(text=order.permit2_witness_type),  # Hashed, not inlined
        ],
    )
    return keccak(encoded)


def hash_typed_data(domain_sep: bytes, struct_hash: bytes) -> bytes:
    """Final EIP-712 digest: ``keccak256(0x1901 || domainSeparator || structHash)``."""
    return keccak(b"\x19\x01" + domain_sep + struct_hash)


def hash_order_rfq(order: Order, domain_sep: bytes) -> bytes:
    """Compute the signing digest of an order under ``domain_sep``."""
    return hash_typed_data(domain_sep, hash_order_rfq_struct(order))
