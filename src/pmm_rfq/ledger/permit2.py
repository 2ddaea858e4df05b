"""Fake Permit2 living on a ``Ledger``.

Implements the two halves of Uniswap's Permit2 that the settlement engine
uses:

* AllowanceTransfer: ``approve``/``allowance``/``transfer_from`` with a
  uint160 amount, a uint48 expiration and infinite allowance at
  ``type(uint160).max``.
* SignatureTransfer: ``permit_transfer_from`` and
  ``permit_witness_transfer_from`` with unordered nonces (a bitmap keyed
  ``nonce >> 8`` / ``nonce & 0xff``), deadlines, amount bounds and EOA or
  ERC-1271 signer checks.

Tokens are pulled with ``transfer_from`` from the owner, so the owner must
have approved Permit2 on the token itself.
"""

from typing import Optional, Tuple

from eth_utils import to_checksum_address

from ..order.ecdsa import recover_signature
from ..order.hashing import hash_typed_data
from ..order.permit2 import (
    PermitTransferFrom,
    SignatureTransferDetails,
    hash_permit_transfer_from,
    hash_permit_witness_transfer_from,
    permit2_domain_separator,
)
from ..order.utils import PERMIT2_ADDRESS, UINT160_MAX, ZERO_ADDRESS, same_address
from .accounts import ERC1271_MAGIC_VALUE
from .state import ExecutionReverted, Ledger


class Permit2Error(ExecutionReverted):
    """Base class for Permit2 custom errors."""


class InvalidNonce(Permit2Error):
    def __init__(self):
        super().__init__("InvalidNonce()")


class SignatureExpired(Permit2Error):
    def __init__(self, deadline: int):
        super().__init__(f"SignatureExpired({deadline})")
        self.deadline = deadline


class InvalidAmount(Permit2Error):
    def __init__(self, max_amount: int):
        super().__init__(f"InvalidAmount({max_amount})")
        self.max_amount = max_amount


class InvalidSigner(Permit2Error):
    def __init__(self):
        super().__init__("InvalidSigner()")


class InvalidSignatureLength(Permit2Error):
    def __init__(self):
        super().__init__("InvalidSignatureLength()")


class InvalidContractSignature(Permit2Error):
    def __init__(self):
        super().__init__("InvalidContractSignature()")


class AllowanceExpired(Permit2Error):
    def __init__(self, deadline: int):
        super().__init__(f"AllowanceExpired({deadline})")
        self.deadline = deadline


class InsufficientAllowance(Permit2Error):
    def __init__(self, amount: int):
        super().__init__(f"InsufficientAllowance({amount})")
        self.amount = amount


class Permit2:
    """Permit2 contract fake."""

    def __init__(self, ledger: Ledger, address: str = PERMIT2_ADDRESS):
        self.ledger = ledger
        self.address = to_checksum_address(address)
        self._nonces = ledger.bitmap(f"permit2:{self.address}")
        ledger.deploy(self.address, self)

    def domain_separator(self) -> bytes:
        return permit2_domain_separator(self.ledger.chain_id, self.address)

    # --- AllowanceTransfer ---

    def approve(
        self, owner: str, token: str, spender: str, amount: int, expiration: int
    ) -> None:
        if amount > UINT160_MAX:
            raise ExecutionReverted("uint160 overflow")
        _, _, nonce = self.allowance(owner, token, spender)
        # expiration 0 means "valid for this block only"
        if expiration == 0:
            expiration = self.ledger.timestamp
        self.ledger.state.permit2_allowances[self._key(owner, token, spender)] = (
            amount,
            expiration,
            nonce,
        )

    def allowance(self, owner: str, token: str, spender: str) -> Tuple[int, int, int]:
        """Return ``(amount, expiration, nonce)``."""
        return self.ledger.state.permit2_allowances.get(
            self._key(owner, token, spender), (0, 0, 0)
        )

    def transfer_from(self, caller: str, from_: str, to: str, amount: int, token: str) -> None:
        allowed, expiration, nonce = self.allowance(from_, token, caller)
        if self.ledger.timestamp > expiration:
            raise AllowanceExpired(expiration)
        if allowed != UINT160_MAX:
            if amount > allowed:
                raise InsufficientAllowance(allowed)
            self.ledger.state.permit2_allowances[self._key(from_, token, caller)] = (
                allowed - amount,
                expiration,
                nonce,
            )
        self._pull(token, from_, to, amount)

    # --- SignatureTransfer ---

    def permit_transfer_from(
        self,
        caller: str,
        permit: PermitTransferFrom,
        details: SignatureTransferDetails,
        owner: str,
        signature: bytes,
    ) -> None:
        data_hash = hash_permit_transfer_from(permit, caller)
        self._permit_transfer_from(permit, details, owner, data_hash, signature)

    def permit_witness_transfer_from(
        self,
        caller: str,
        permit: PermitTransferFrom,
        details: SignatureTransferDetails,
        owner: str,
        witness: bytes,
        witness_type_string: str,
        signature: bytes,
    ) -> None:
        data_hash = hash_permit_witness_transfer_from(permit, caller, witness, witness_type_string)
        self._permit_transfer_from(permit, details, owner, data_hash, signature)

    def nonce_bitmap(self, owner: str, word_pos: int) -> int:
        return self._nonces.load_word(owner, word_pos)

    def _permit_transfer_from(
        self,
        permit: PermitTransferFrom,
        details: SignatureTransferDetails,
        owner: str,
        data_hash: bytes,
        signature: bytes,
    ) -> None:
        if details.requested_amount > permit.permitted.amount:
            raise InvalidAmount(permit.permitted.amount)
        if self.ledger.timestamp > permit.deadline:
            raise SignatureExpired(permit.deadline)

        self._use_unordered_nonce(owner, permit.nonce)
        self._verify(signature, hash_typed_data(self.domain_separator(), data_hash), owner)
        self._pull(permit.permitted.token, owner, details.to, details.requested_amount)

    def _use_unordered_nonce(self, owner: str, nonce: int) -> None:
        word_pos, bit = nonce >> 8, 1 << (nonce & 0xFF)
        word = self._nonces.load_word(owner, word_pos)
        if word & bit:
            raise InvalidNonce()
        self._nonces.store_word(owner, word_pos, word | bit)

    def _verify(self, signature: bytes, digest: bytes, claimed_signer: str) -> None:
        contract = self.ledger.code_at(claimed_signer)
        if contract is not None:
            validate = getattr(contract, "is_valid_signature", None)
            if validate is None or validate(digest, signature) != ERC1271_MAGIC_VALUE:
                raise InvalidContractSignature()
            return

        if len(signature) not in (64, 65):
            raise InvalidSignatureLength()
        signer = recover_signature(digest, signature)
        if same_address(signer, ZERO_ADDRESS) or not same_address(signer, claimed_signer):
            raise InvalidSigner()

    def _pull(self, token: str, from_: str, to: str, amount: int) -> None:
        contract = self.ledger.code_at(token)
        if contract is None:
            raise ExecutionReverted("TRANSFER_FROM_FAILED")
        result: Optional[bool] = contract.transfer_from(self.address, from_, to, amount)
        if result is False:
            raise ExecutionReverted("TRANSFER_FROM_FAILED")

    def _key(self, owner: str, token: str, spender: str) -> Tuple[str, str, str, str]:
        return (
            self.address,
            to_checksum_address(owner),
            to_checksum_address(token),
            to_checksum_address(spender),
        )
