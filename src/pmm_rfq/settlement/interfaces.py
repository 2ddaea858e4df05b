"""Collaborators the settlement engine depends on.

The engine only talks to these protocols. ``pmm_rfq.ledger`` provides
in-memory implementations; anything else (a chain adapter, a database) can
be plugged in as long as it honours the same contracts.
"""

from typing import Any, ContextManager, Optional, Protocol

from ..order.permit2 import PermitTransferFrom, SignatureTransferDetails
from ..order.signing import SmartAccountValidator


class DirectTransferService(Protocol):
    """SafeERC20-style transfers made by the settlement contract.

    Implementations must accept tokens that return no data, treat an explicit
    ``False`` as failure, and report calls to non-contract assets separately
    from failed calls. Failures raise ``DirectTransferFailed`` subclasses.
    """

    def transfer(self, asset: str, to: str, amount: int) -> None:
        ...

    def transfer_from(self, asset: str, from_: str, to: str, amount: int) -> None:
        ...

    def force_approve(self, asset: str, spender: str, amount: int) -> None:
        ...

    def permit(self, asset: str, permit: bytes) -> None:
        ...


class DelegatedTransferService(Protocol):
    """Permit2 as seen from the settlement contract."""

    def transfer_from(self, owner: str, to: str, amount: int, asset: str) -> None:
        ...

    def permit_transfer_from(
        self,
        permit: PermitTransferFrom,
        details: SignatureTransferDetails,
        owner: str,
        signature: bytes,
    ) -> None:
        ...

    def permit_witness_transfer_from(
        self,
        permit: PermitTransferFrom,
        details: SignatureTransferDetails,
        owner: str,
        witness: bytes,
        witness_type_string: str,
        signature: bytes,
    ) -> None:
        ...


class WrappedNativeService(Protocol):
    """WETH as seen from the settlement contract."""

    address: str

    def deposit(self, value: int) -> None:
        ...

    def withdraw(self, amount: int) -> None:
        ...


class BitmapStore(Protocol):
    """256-bit words indexed by ``(owner, slot)``."""

    def load_word(self, owner: str, slot: int) -> int:
        ...

    def store_word(self, owner: str, slot: int, word: int) -> None:
        ...


class Runtime(Protocol):
    """Execution environment: block time, transactions, events and native value."""

    @property
    def timestamp(self) -> int:
        ...

    def atomic(self) -> ContextManager[None]:
        ...

    def emit(self, event: Any) -> None:
        ...

    def attach_value(self, sender: str, to: str, amount: int) -> None:
        ...

    def send_native(
        self, sender: str, to: str, amount: int, gas_limit: Optional[int] = None
    ) -> None:
        """Plain native transfer that runs the recipient's receive hook.

        ``gas_limit`` is the stipend forwarded to that hook; ``None`` forwards
        everything. Hooks that need more than the stipend revert.
        """
