"""In-memory ledger.

The ledger owns every piece of mutable state a settlement touches: token
balances and allowances, native balances, 256-bit storage words (replay
bitmaps, Permit2 nonces), Permit2 allowances, permit nonces and the event
log. Contract objects (tokens, Permit2, smart accounts, the protocol itself)
are registered by address and keep no state of their own, so a single
snapshot of ``LedgerState`` captures the whole world.
"""

import copy
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from eth_utils import to_checksum_address

from ..errors import ExecutionReverted

logger = logging.getLogger(__name__)


class InsufficientNativeBalance(ExecutionReverted):
    def __init__(self, holder: str, balance: int, amount: int):
        super().__init__(f"insufficient native balance: {holder} has {balance}, needs {amount}")


@dataclass
class LedgerState:
    balances: Dict[Tuple[str, str], int] = field(default_factory=dict)
    allowances: Dict[Tuple[str, str, str], int] = field(default_factory=dict)
    native: Dict[str, int] = field(default_factory=dict)
    words: Dict[Tuple[str, str, int], int] = field(default_factory=dict)
    permit2_allowances: Dict[Tuple[str, str, str, str], Tuple[int, int, int]] = field(
        default_factory=dict
    )
    permit_nonces: Dict[Tuple[str, str], int] = field(default_factory=dict)
    events: List[Any] = field(default_factory=list)


class Ledger:
    """A single-threaded in-memory chain.

    Args:
        chain_id: Chain ID reported to contracts
        timestamp: Initial block timestamp; defaults to wall-clock time
    """

    def __init__(self, chain_id: int = 1, timestamp: Optional[int] = None):
        self.chain_id = chain_id
        self._timestamp = int(time.time()) if timestamp is None else timestamp
        self._state = LedgerState()
        self._contracts: Dict[str, Any] = {}

    @property
    def state(self) -> LedgerState:
        return self._state

    # --- Block time ---

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def warp(self, timestamp: int) -> None:
        """Move block time to ``timestamp``."""
        self._timestamp = timestamp

    # --- Contracts ---

    def deploy(self, address: str, contract: Any) -> Any:
        """Register ``contract`` as the code living at ``address``."""
        self._contracts[to_checksum_address(address)] = contract
        return contract

    def code_at(self, address: str) -> Optional[Any]:
        return self._contracts.get(to_checksum_address(address))

    def is_contract(self, address: str) -> bool:
        return self.code_at(address) is not None

    # --- Native value ---

    def native_balance_of(self, holder: str) -> int:
        return self._state.native.get(to_checksum_address(holder), 0)

    def deal_native(self, holder: str, amount: int) -> None:
        """Set the native balance of ``holder`` (test setup)."""
        self._state.native[to_checksum_address(holder)] = amount

    def attach_value(self, sender: str, to: str, amount: int) -> None:
        """Move native value carried by a call into the callee.

        Payable calls do not run the callee's receive hook.
        """
        self._move_native(sender, to, amount)

    def send_native(
        self, sender: str, to: str, amount: int, gas_limit: Optional[int] = None
    ) -> None:
        """Plain native transfer; runs the recipient's ``receive_native`` hook if it has code."""
        self._move_native(sender, to, amount)
        contract = self.code_at(to)
        if contract is not None:
            receive = getattr(contract, "receive_native", None)
            if receive is None:
                raise ExecutionReverted(f"{to} cannot receive native value")
            receive(to_checksum_address(sender), amount, gas_limit)

    def _move_native(self, sender: str, to: str, amount: int) -> None:
        if amount == 0:
            return
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        balance = self._state.native.get(sender, 0)
        if balance < amount:
            raise InsufficientNativeBalance(sender, balance, amount)
        self._state.native[sender] = balance - amount
        self._state.native[to] = self._state.native.get(to, 0) + amount

    # --- Storage words ---

    def load_word(self, namespace: str, owner: str, slot: int) -> int:
        return self._state.words.get((namespace, to_checksum_address(owner), slot), 0)

    def store_word(self, namespace: str, owner: str, slot: int, word: int) -> None:
        self._state.words[(namespace, to_checksum_address(owner), slot)] = word

    def bitmap(self, namespace: str) -> "LedgerBitmapStore":
        """Return a bitmap store scoped to ``namespace`` (usually a contract address)."""
        return LedgerBitmapStore(self, namespace)

    # --- Events ---

    def emit(self, event: Any) -> None:
        self._state.events.append(event)

    @property
    def events(self) -> List[Any]:
        return list(self._state.events)

    # --- Transactions ---

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the block as one transaction: any exception restores the prior state."""
        snapshot = copy.deepcopy(self._state)
        try:
            yield
        except BaseException:
            self._state = snapshot
            logger.debug("Ledger transaction rolled back")
            raise


class LedgerBitmapStore:
    """``BitmapStore`` backed by ledger storage words."""

    def __init__(self, ledger: Ledger, namespace: str):
        self._ledger = ledger
        self._namespace = namespace

    def load_word(self, owner: str, slot: int) -> int:
        return self._ledger.load_word(self._namespace, owner, slot)

    def store_word(self, owner: str, slot: int, word: int) -> None:
        self._ledger.store_word(self._namespace, owner, slot, word)
