"""EIP-2612 permits for the taker asset.

A taker can pre-authorize the settlement contract in the same call as the
fill by passing an ABI-encoded permit
``(owner, spender, value, deadline, v, r, s)``.
"""

from dataclasses import dataclass

from eth_abi import decode, encode
from eth_account import Account
from eth_utils import keccak, to_checksum_address

from .hashing import hash_typed_data

PERMIT_TYPE = (
    "Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)"
)
PERMIT_TYPEHASH = keccak(text=PERMIT_TYPE)

ERC20_PERMIT_DOMAIN_TYPE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)

# abi.encode(address, address, uint256, uint256, uint8, bytes32, bytes32)
PERMIT_PAYLOAD_LENGTH = 7 * 32

_PERMIT_ABI = ["address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32"]


@dataclass(frozen=True)
class Erc20Permit:
    owner: str
    spender: str
    value: int
    deadline: int
    v: int
    r: bytes
    s: bytes


def erc20_permit_domain_separator(
    token_name: str, token_address: str, chain_id: int, version: str = "1"
) -> bytes:
    return keccak(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                keccak(text=ERC20_PERMIT_DOMAIN_TYPE),
                keccak(text=token_name),
                keccak(text=version),
                chain_id,
                token_address,
            ],
        )
    )


def hash_erc20_permit(owner: str, spender: str, value: int, nonce: int, deadline: int) -> bytes:
    return keccak(
        encode(
            ["bytes32", "address", "address", "uint256", "uint256", "uint256"],
            [PERMIT_TYPEHASH, owner, spender, value, nonce, deadline],
        )
    )


def sign_erc20_permit(
    private_key: str,
    token_name: str,
    token_address: str,
    chain_id: int,
    spender: str,
    value: int,
    nonce: int,
    deadline: int,
) -> Erc20Permit:
    """Sign an EIP-2612 permit for ``spender``.

    Args:
        private_key: Token owner's private key
        token_name: Token ``name()``, part of the token's EIP-712 domain
        token_address: Token contract address
        chain_id: Chain ID
        spender: Address being approved (the settlement contract)
        value: Allowance to grant
        nonce: Owner's current permit nonce on the token
        deadline: Unix timestamp after which the permit is void

    Returns:
        Signed Erc20Permit
    """
    account = Account.from_key(private_key)
    digest = hash_typed_data(
        erc20_permit_domain_separator(token_name, token_address, chain_id),
        hash_erc20_permit(account.address, spender, value, nonce, deadline),
    )
    signed = Account.unsafe_sign_hash(digest, private_key)
    return Erc20Permit(
        owner=account.address,
        spender=to_checksum_address(spender),
        value=value,
        deadline=deadline,
        v=signed.v,
        r=signed.r.to_bytes(32, "big"),
        s=signed.s.to_bytes(32, "big"),
    )


def encode_erc20_permit(permit: Erc20Permit) -> bytes:
    """ABI-encode a permit into the 224-byte payload taken by permit fills."""
    return encode(
        _PERMIT_ABI,
        [
            permit.owner,
            permit.spender,
            permit.value,
            permit.deadline,
            permit.v,
            permit.r,
            permit.s,
        ],
    )


def decode_erc20_permit(payload: bytes) -> Erc20Permit:
    """Decode a 224-byte permit payload.

    Raises:
        ValueError: If the payload length is wrong
    """
    if len(payload) != PERMIT_PAYLOAD_LENGTH:
        raise ValueError(
            f"Invalid permit length: {len(payload)}. Must be {PERMIT_PAYLOAD_LENGTH} bytes"
        )
    owner, spender, value, deadline, v, r, s = decode(_PERMIT_ABI, payload)
    return Erc20Permit(
        owner=to_checksum_address(owner),
        spender=to_checksum_address(spender),
        value=value,
        deadline=deadline,
        v=v,
        r=r,
        s=s,
    )
