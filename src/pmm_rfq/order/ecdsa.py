"""secp256k1 signer recovery with ecrecover semantics.

Every function returns the zero address instead of raising when the
signature cannot be recovered: wrong length, ``v`` outside {27, 28}, zero
``r``/``s``, malleable high-``s`` values or points off the curve.
"""

from typing import Tuple

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from .utils import ZERO_ADDRESS

# Upper bound for ``s`` (secp256k1n / 2), rejects malleable signatures
SECP256K1_HALF_N = 0x7FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF5D576E7357A4501DDFE92F46681B20A0

_VS_S_MASK = (1 << 255) - 1


def recover(digest: bytes, v: int, r: int, s: int) -> str:
    """Recover the signer of ``digest`` from ``(v, r, s)``."""
    if v not in (27, 28) or r == 0 or s == 0 or s > SECP256K1_HALF_N:
        return ZERO_ADDRESS
    try:
        signature = keys.Signature(vrs=(v - 27, r, s))
        public_key = signature.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError):
        return ZERO_ADDRESS
    return public_key.to_checksum_address()


def recover_compact(digest: bytes, r: int, vs: int) -> str:
    """Recover the signer of ``digest`` from an EIP-2098 ``(r, vs)`` pair."""
    s, v = split_vs(vs)
    return recover(digest, v, r, s)


def recover_signature(digest: bytes, signature: bytes) -> str:
    """Recover the signer from a packed 65-byte ``r||s||v`` or 64-byte ``r||vs`` signature."""
    if len(signature) == 65:
        r = int.from_bytes(signature[:32], "big")
        s = int.from_bytes(signature[32:64], "big")
        return recover(digest, signature[64], r, s)
    if len(signature) == 64:
        r = int.from_bytes(signature[:32], "big")
        vs = int.from_bytes(signature[32:], "big")
        return recover_compact(digest, r, vs)
    return ZERO_ADDRESS


def split_vs(vs: int) -> Tuple[int, int]:
    """Split EIP-2098 ``vs`` into ``(s, v)``."""
    return vs & _VS_S_MASK, (vs >> 255) + 27


def to_compact(signature: bytes) -> Tuple[int, int]:
    """Convert a 65-byte ``r||s||v`` signature to EIP-2098 ``(r, vs)``.

    Raises:
        ValueError: If the signature is not 65 bytes or ``v`` is invalid
    """
    if len(signature) != 65:
        raise ValueError(f"Invalid signature length: {len(signature)}. Must be 65 bytes")
    v = signature[64]
    if v not in (27, 28):
        raise ValueError(f"Invalid signature v: {v}")
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    return r, s | ((v - 27) << 255)


def expand_compact(r: int, vs: int) -> bytes:
    """Re-encode ``(r, vs)`` as a packed 65-byte ``r||s||v`` signature."""
    s, v = split_vs(vs)
    return r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([v])


def pack_compact(r: int, vs: int) -> bytes:
    """Pack ``(r, vs)`` as a 64-byte signature."""
    return r.to_bytes(32, "big") + vs.to_bytes(32, "big")
