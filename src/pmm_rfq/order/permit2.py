"""Permit2 signature-transfer helpers.

Builds and signs the ``PermitTransferFrom`` / ``PermitWitnessTransferFrom``
messages a maker attaches to an order as ``permit2_signature``, and derives
witness hashes and witness type strings.

A witness type string follows the Permit2 stub convention::

    "{Name} witness){StructDef1}{StructDef2}..."

where the struct definitions (the witness struct plus ``TokenPermissions``)
are sorted alphabetically as EIP-712 requires.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from eth_abi import encode
from eth_account import Account
from eth_utils import keccak

from .hashing import hash_typed_data
from .utils import PERMIT2_ADDRESS

TOKEN_PERMISSIONS_TYPE = "TokenPermissions(address token,uint256 amount)"
PERMIT_TRANSFER_FROM_TYPE = (
    "PermitTransferFrom(TokenPermissions permitted,address spender,uint256 nonce,uint256 deadline)"
    + TOKEN_PERMISSIONS_TYPE
)
PERMIT_WITNESS_TRANSFER_FROM_STUB = (
    "PermitWitnessTransferFrom(TokenPermissions permitted,address spender,uint256 nonce,uint256 deadline,"
)
PERMIT2_DOMAIN_TYPE = "EIP712Domain(string name,uint256 chainId,address verifyingContract)"

TOKEN_PERMISSIONS_TYPEHASH = keccak(text=TOKEN_PERMISSIONS_TYPE)
PERMIT_TRANSFER_FROM_TYPEHASH = keccak(text=PERMIT_TRANSFER_FROM_TYPE)

EXAMPLE_WITNESS_TYPE_STRING = (
    "ExampleWitness witness)ExampleWitness(address user)" + TOKEN_PERMISSIONS_TYPE
)
CONSIDERATION_TYPE_STRING = (
    "Consideration witness)Consideration(address token,uint256 amount,address counterparty)"
    + TOKEN_PERMISSIONS_TYPE
)


@dataclass(frozen=True)
class TokenPermissions:
    token: str
    amount: int


@dataclass(frozen=True)
class PermitTransferFrom:
    """Signed permission to move up to ``permitted.amount`` once."""

    permitted: TokenPermissions
    nonce: int
    deadline: int


@dataclass(frozen=True)
class SignatureTransferDetails:
    to: str
    requested_amount: int


def permit2_domain_separator(chain_id: int, permit2_address: str = PERMIT2_ADDRESS) -> bytes:
    """Compute the Permit2 domain separator (Permit2 has no version field)."""
    return keccak(
        encode(
            ["bytes32", "bytes32", "uint256", "address"],
            [keccak(text=PERMIT2_DOMAIN_TYPE), keccak(text="Permit2"), chain_id, permit2_address],
        )
    )


# Domain separators of the canonical deployment on the main supported chains
PERMIT2_DOMAIN_SEPARATORS = {
    chain_id: permit2_domain_separator(chain_id) for chain_id in (1, 10, 56, 137, 8453, 42161)
}


def hash_token_permissions(permitted: TokenPermissions) -> bytes:
    return keccak(
        encode(
            ["bytes32", "address", "uint256"],
            [TOKEN_PERMISSIONS_TYPEHASH, permitted.token, permitted.amount],
        )
    )


def hash_permit_transfer_from(permit: PermitTransferFrom, spender: str) -> bytes:
    """Struct hash of a ``PermitTransferFrom`` for ``spender``."""
    return keccak(
        encode(
            ["bytes32", "bytes32", "address", "uint256", "uint256"],
            [
                PERMIT_TRANSFER_FROM_TYPEHASH,
                hash_token_permissions(permit.permitted),
                spender,
                permit.nonce,
                permit.deadline,
            ],
        )
    )


def hash_permit_witness_transfer_from(
    permit: PermitTransferFrom,
    spender: str,
    witness: bytes,
    witness_type_string: str,
) -> bytes:
    """Struct hash of a ``PermitWitnessTransferFrom`` for ``spender``."""
    typehash = keccak(text=PERMIT_WITNESS_TRANSFER_FROM_STUB + witness_type_string)
    return keccak(
        encode(
            ["bytes32", "bytes32", "address", "uint256", "uint256", "bytes32"],
            [
                typehash,
                hash_token_permissions(permit.permitted),
                spender,
                permit.nonce,
                permit.deadline,
                witness,
            ],
        )
    )


def _sign_digest(private_key: str, digest: bytes) -> bytes:
    signed = Account.unsafe_sign_hash(digest, private_key)
    # Packed r || s || v, v in {27, 28}
    return (
        signed.r.to_bytes(32, "big") + signed.s.to_bytes(32, "big") + bytes([signed.v])
    )


def sign_permit2(
    private_key: str,
    permit: PermitTransferFrom,
    spender: str,
    permit2_domain_sep: bytes,
) -> bytes:
    """Sign a plain ``PermitTransferFrom``.

    Args:
        private_key: Token owner's private key
        permit: Permit to sign
        spender: Settlement contract that will call Permit2
        permit2_domain_sep: Permit2 domain separator of the target chain

    Returns:
        65-byte packed ``r||s||v`` signature
    """
    digest = hash_typed_data(permit2_domain_sep, hash_permit_transfer_from(permit, spender))
    return _sign_digest(private_key, digest)


def sign_permit2_with_witness(
    private_key: str,
    permit: PermitTransferFrom,
    spender: str,
    witness: bytes,
    witness_type_string: str,
    permit2_domain_sep: bytes,
) -> bytes:
    """Sign a ``PermitWitnessTransferFrom``.

    For an RFQ order the permit is built from the order itself:
    ``permitted = (maker_asset, maker_amount)``, ``nonce = rfq_id`` and
    ``deadline = expiry``; ``spender`` is the settlement contract.

    Returns:
        65-byte packed ``r||s||v`` signature
    """
    digest = hash_typed_data(
        permit2_domain_sep,
        hash_permit_witness_transfer_from(permit, spender, witness, witness_type_string),
    )
    return _sign_digest(private_key, digest)


def _struct_definition(name: str, fields: Sequence[Mapping[str, str]]) -> str:
    field_list = ",".join(f"{f['type']} {f['name']}" for f in fields)
    return f"{name}({field_list})"


def generate_permit2_witness_type(name: str, fields: Sequence[Mapping[str, str]]) -> str:
    """Generate the Permit2 witness type string for a witness struct.

    Args:
        name: Witness struct name (e.g., "Consideration")
        fields: Struct fields as ``{"type": ..., "name": ...}`` dicts

    Returns:
        Witness type string, e.g.
        ``"ExampleWitness witness)ExampleWitness(address user)TokenPermissions(address token,uint256 amount)"``
    """
    struct_defs: List[str] = sorted([_struct_definition(name, fields), TOKEN_PERMISSIONS_TYPE])
    return f"{name} witness){''.join(struct_defs)}"


def calculate_witness(
    name: str,
    fields: Sequence[Mapping[str, str]],
    values: Dict[str, Any],
) -> bytes:
    """Hash a witness struct: ``keccak256(abi.encode(typehash, values...))``.

    Only static field types are supported; they are ABI-encoded as is.

    Raises:
        ValueError: If a field has no value
    """
    missing = [f["name"] for f in fields if f["name"] not in values]
    if missing:
        raise ValueError(f"Missing witness values: {', '.join(missing)}")

    typehash = keccak(text=_struct_definition(name, fields))
    types = ["bytes32"] + [f["type"] for f in fields]
    encoded_values = [typehash] + [values[f["name"]] for f in fields]
    return keccak(encode(types, encoded_values))
