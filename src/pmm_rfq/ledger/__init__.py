"""In-memory ledger for running the settlement engine without a chain.

Provides the storage repository (balances, allowances, bitmaps, events)
with atomic rollback, fake ERC-20/WETH/Permit2/smart-wallet contracts, and
adapters that plug them into ``pmm_rfq.settlement.PmmProtocol``.
"""

from .state import ExecutionReverted, InsufficientNativeBalance, Ledger, LedgerBitmapStore
from .tokens import Erc20Token, FalseReturnToken, NoReturnToken, WrappedNative
from .permit2 import (
    AllowanceExpired,
    InsufficientAllowance,
    InvalidAmount,
    InvalidContractSignature,
    InvalidNonce,
    InvalidSignatureLength,
    InvalidSigner,
    Permit2,
    Permit2Error,
    SignatureExpired,
)
from .accounts import ERC1271_MAGIC_VALUE, RejectingReceiver, SmartWallet
from .adapters import (
    LedgerDirectTransfers,
    LedgerPermit2Transfers,
    LedgerSmartAccountValidator,
    LedgerWrappedNative,
)

__all__ = [
    "ExecutionReverted",
    "InsufficientNativeBalance",
    "Ledger",
    "LedgerBitmapStore",
    "Erc20Token",
    "FalseReturnToken",
    "NoReturnToken",
    "WrappedNative",
    "AllowanceExpired",
    "InsufficientAllowance",
    "InvalidAmount",
    "InvalidContractSignature",
    "InvalidNonce",
    "InvalidSignatureLength",
    "InvalidSigner",
    "Permit2",
    "Permit2Error",
    "SignatureExpired",
    "ERC1271_MAGIC_VALUE",
    "RejectingReceiver",
    "SmartWallet",
    "LedgerDirectTransfers",
    "LedgerPermit2Transfers",
    "LedgerSmartAccountValidator",
    "LedgerWrappedNative",
]
