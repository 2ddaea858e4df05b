"""Ledger-backed implementations of the settlement engine's collaborators.

Each adapter is bound to the settlement contract's address, which acts as
``msg.sender`` for every call it makes.
"""

from eth_utils import to_checksum_address

from ..errors import (
    AssetNotContract,
    ForceApproveFailed,
    PermitPayloadMalformed,
    SafePermitFailed,
    SafeTransferFailed,
    SafeTransferFromFailed,
)
from ..order.erc20_permit import PERMIT_PAYLOAD_LENGTH, decode_erc20_permit
from ..order.permit2 import PermitTransferFrom, SignatureTransferDetails
from .accounts import ERC1271_MAGIC_VALUE
from .permit2 import Permit2
from .state import ExecutionReverted, Ledger
from .tokens import WrappedNative


class LedgerDirectTransfers:
    """SafeERC20 semantics over ledger tokens.

    A call succeeds when the token returns ``True`` or nothing; it fails
    when the token returns ``False`` or reverts. Assets without code fail
    with ``AssetNotContract``.
    """

    def __init__(self, ledger: Ledger, caller: str):
        self.ledger = ledger
        self.caller = to_checksum_address(caller)

    def transfer(self, asset: str, to: str, amount: int) -> None:
        token = self._token(asset)
        try:
            result = token.transfer(self.caller, to, amount)
        except ExecutionReverted as e:
            raise SafeTransferFailed(asset, reason=e.reason) from e
        if result is False:
            raise SafeTransferFailed(asset, reason="returned false")

    def transfer_from(self, asset: str, from_: str, to: str, amount: int) -> None:
        token = self._token(asset)
        try:
            result = token.transfer_from(self.caller, from_, to, amount)
        except ExecutionReverted as e:
            raise SafeTransferFromFailed(asset, reason=e.reason) from e
        if result is False:
            raise SafeTransferFromFailed(asset, reason="returned false")

    def force_approve(self, asset: str, spender: str, amount: int) -> None:
        token = self._token(asset)
        try:
            result = token.approve(self.caller, spender, amount)
            if result is False:
                # USDT-style tokens refuse non-zero to non-zero changes
                token.approve(self.caller, spender, 0)
                result = token.approve(self.caller, spender, amount)
        except ExecutionReverted as e:
            raise ForceApproveFailed(asset, reason=e.reason) from e
        if result is False:
            raise ForceApproveFailed(asset, reason="returned false")

    def permit(self, asset: str, permit: bytes) -> None:
        if len(permit) != PERMIT_PAYLOAD_LENGTH:
            raise PermitPayloadMalformed(len(permit))
        decoded = decode_erc20_permit(permit)
        token = self._token(asset)
        try:
            token.permit(
                self.caller,
                decoded.owner,
                decoded.spender,
                decoded.value,
                decoded.deadline,
                decoded.v,
                decoded.r,
                decoded.s,
            )
        except ExecutionReverted as e:
            raise SafePermitFailed(asset, reason=e.reason) from e

    def _token(self, asset: str):
        token = self.ledger.code_at(asset)
        if token is None:
            raise AssetNotContract(asset)
        return token


class LedgerPermit2Transfers:
    """Permit2 calls made by the settlement contract. Permit2 errors propagate."""

    def __init__(self, permit2: Permit2, caller: str):
        self.permit2 = permit2
        self.caller = to_checksum_address(caller)

    def transfer_from(self, owner: str, to: str, amount: int, asset: str) -> None:
        self.permit2.transfer_from(self.caller, owner, to, amount, asset)

    def permit_transfer_from(
        self,
        permit: PermitTransferFrom,
        details: SignatureTransferDetails,
        owner: str,
        signature: bytes,
    ) -> None:
        self.permit2.permit_transfer_from(self.caller, permit, details, owner, signature)

    def permit_witness_transfer_from(
        self,
        permit: PermitTransferFrom,
        details: SignatureTransferDetails,
        owner: str,
        witness: bytes,
        witness_type_string: str,
        signature: bytes,
    ) -> None:
        self.permit2.permit_witness_transfer_from(
            self.caller, permit, details, owner, witness, witness_type_string, signature
        )


class LedgerWrappedNative:
    """WETH calls made by the settlement contract."""

    def __init__(self, weth: WrappedNative, caller: str):
        self.weth = weth
        self.address = weth.address
        self.caller = to_checksum_address(caller)

    def deposit(self, value: int) -> None:
        self.weth.deposit(self.caller, value)

    def withdraw(self, amount: int) -> None:
        self.weth.withdraw(self.caller, amount)


class LedgerSmartAccountValidator:
    """ERC-1271 lookups against contracts deployed on the ledger."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def is_valid_signature(self, account: str, digest: bytes, signature: bytes) -> bool:
        contract = self.ledger.code_at(account)
        validate = getattr(contract, "is_valid_signature", None)
        if validate is None:
            return False
        try:
            result = validate(digest, signature)
        except ExecutionReverted:
            return False
        return result == ERC1271_MAGIC_VALUE
