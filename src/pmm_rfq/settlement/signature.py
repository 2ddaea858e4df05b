"""Maker signature verification.

Two strategies, picked by the caller rather than inferred:

* plain key: recover the signer from ``(r, s, v)`` or ``(r, vs)`` and compare
  it with the maker;
* smart account: ask the maker contract through ERC-1271.

``verify`` is the auto path used by byte-signature fills: plain-key recovery
when the signature has a recoverable length, ERC-1271 otherwise or when the
recovered key is not the maker.
"""

from ..errors import BadSignature
from ..order.ecdsa import expand_compact, pack_compact, recover_compact, recover_signature
from ..order.utils import ZERO_ADDRESS, same_address
from .interfaces import SmartAccountValidator


class SignatureVerifier:
    def __init__(self, validator: SmartAccountValidator):
        self.validator = validator

    def verify(self, rfq_id: int, signer: str, digest: bytes, signature: bytes) -> None:
        """Verify a byte signature, falling back to ERC-1271.

        Raises:
            BadSignature: If neither path accepts the signature
        """
        if same_address(signer, ZERO_ADDRESS):
            raise BadSignature(rfq_id)
        if len(signature) in (64, 65) and same_address(
            recover_signature(digest, signature), signer
        ):
            return
        if not self.validator.is_valid_signature(signer, digest, signature):
            raise BadSignature(rfq_id)

    def verify_compact(
        self,
        rfq_id: int,
        signer: str,
        digest: bytes,
        r: int,
        vs: int,
        smart_account_hint: bool = False,
        require_65_bytes: bool = False,
    ) -> None:
        """Verify an EIP-2098 ``(r, vs)`` signature.

        With ``smart_account_hint`` the maker is asked through ERC-1271, passing
        ``r||vs`` or, with ``require_65_bytes``, the expanded ``r||s||v``.

        Raises:
            BadSignature: If the selected path rejects the signature
        """
        if same_address(signer, ZERO_ADDRESS):
            raise BadSignature(rfq_id)

        if smart_account_hint:
            if require_65_bytes:
                signature = expand_compact(r, vs)
            else:
                signature = pack_compact(r, vs)
            valid = self.validator.is_valid_signature(signer, digest, signature)
        else:
            valid = same_address(recover_compact(digest, r, vs), signer)

        if not valid:
            raise BadSignature(rfq_id)
