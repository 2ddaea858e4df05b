"""Fake accounts with code: ERC-1271 smart wallets and native receivers."""

from typing import Optional

from eth_utils import to_checksum_address

from ..order.ecdsa import recover_signature
from ..order.utils import ZERO_ADDRESS, same_address
from .state import ExecutionReverted, Ledger

# bytes4(keccak256("isValidSignature(bytes32,bytes)"))
ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")
ERC1271_INVALID = bytes.fromhex("ffffffff")


class SmartWallet:
    """Contract wallet that accepts signatures made by its owner key.

    Args:
        ledger: Ledger to deploy on
        address: Wallet address
        owner: EOA whose signatures the wallet accepts
        accept_native: Whether plain native transfers to the wallet succeed
        receive_gas: Gas its receive hook burns; a smaller stipend reverts
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        owner: str,
        accept_native: bool = True,
        receive_gas: int = 0,
    ):
        self.ledger = ledger
        self.address = to_checksum_address(address)
        self.owner = to_checksum_address(owner)
        self.accept_native = accept_native
        self.receive_gas = receive_gas
        ledger.deploy(self.address, self)

    def is_valid_signature(self, digest: bytes, signature: bytes) -> bytes:
        signer = recover_signature(digest, signature)
        if not same_address(signer, ZERO_ADDRESS) and same_address(signer, self.owner):
            return ERC1271_MAGIC_VALUE
        return ERC1271_INVALID

    def receive_native(self, sender: str, amount: int, gas_limit: Optional[int]) -> None:
        if not self.accept_native:
            raise ExecutionReverted("wallet rejects native value")
        if gas_limit is not None and gas_limit < self.receive_gas:
            raise ExecutionReverted(
                f"receive out of gas: needs {self.receive_gas}, got {gas_limit}"
            )


class RejectingReceiver:
    """Contract whose receive hook always reverts."""

    def __init__(self, ledger: Ledger, address: str):
        self.address = to_checksum_address(address)
        ledger.deploy(self.address, self)

    def receive_native(self, sender: str, amount: int, gas_limit: Optional[int]) -> None:
        raise ExecutionReverted("receive reverted")
